"""
Result models returned to callers of the registry and context service.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ContextResult(BaseModel):
    """
    Examples and knowledge context fetched for one user message.

    Either block may be empty when the agent has no index of that type.
    success is derived: it is True whenever at least one block has text,
    unless the result was built with ContextResult.error().
    """

    examples: str = Field(default="", description="Stitched few-shot examples")
    knowledge: str = Field(default="", description="Stitched knowledge context")
    success: bool = Field(default=False)
    error_message: str = Field(default="")

    @model_validator(mode="after")
    def derive_success(self) -> "ContextResult":
        if not self.error_message:
            self.success = bool(self.examples or self.knowledge)
        return self

    @classmethod
    def error(cls, message: str) -> "ContextResult":
        return cls(success=False, error_message=message)


class RegistryStatus(BaseModel):
    """Snapshot of what a registry currently holds."""

    initialized: bool = Field(default=False)
    agent_count: int = Field(default=0, ge=0)
    index_count: int = Field(default=0, ge=0)
    last_error: Optional[str] = Field(default=None)

    def describe(self) -> str:
        if not self.initialized:
            return f"Not initialized. Error: {self.last_error or 'Unknown'}"
        return f"Initialized: {self.agent_count} agents, {self.index_count} indices"
