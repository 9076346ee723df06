"""
Token-bounded paragraph chunker.

Splits a document on blank lines, then packs whole paragraphs into
chunks while the token count of the joined chunk text stays within
max_tokens. When a chunk is emitted, the next one is seeded with the
tail of the previous chunk so neighbouring chunks share a little context.

Overlap is approximate: the tail is cut by character count
(overlap_tokens * 5 characters) instead of re-tokenizing. Do not rely
on the overlap being an exact number of tokens.

A paragraph that alone exceeds max_tokens is sliced on sentence
boundaries ('. ', '? ', '! '). A single sentence longer than the
budget is emitted as its own oversized chunk; it is not split further.

Usage:
    from agent_rag.chunking import TokenChunker
    from agent_rag.config import ChunkingConfig

    chunker = TokenChunker(embedder.token_count, ChunkingConfig(max_tokens=160))
    for text, order in chunker.chunk_text(document):
        ...
"""

import re
from collections.abc import Callable, Iterator

from agent_rag.base.chunker import BaseChunker
from agent_rag.config import ChunkingConfig

# Characters kept per overlap token when seeding the next chunk
TAIL_CHARS_PER_TOKEN = 5

_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")
_SENTENCE_BREAK = re.compile(r"(?<=[.?!]) +")


class TokenChunker(BaseChunker):
    """
    Paragraph-first chunker driven by an external token counter.

    The counter is usually the embedder's token_count, but any
    Callable[[str], int] works (a whitespace word count is handy in tests).
    """

    def chunk_text(self, text: str) -> Iterator[tuple[str, int]]:
        """
        Lazily yield (chunk_text, order) pairs for one document.

        Token budgets are checked on the joined chunk text exactly as it
        will be emitted, so counters that are not additive over
        concatenation (subword tokenizers) still respect max_tokens.

        Each call starts over from the beginning of the text.
        """
        if text is None:
            raise TypeError("text must be a string, got None")

        max_tokens = self.config.max_tokens
        order = 0

        buffer: list[str] = []
        # False while the buffer holds nothing but the overlap seed
        has_new_text = False

        for raw in split_paragraphs(text):
            paragraph = raw.strip()
            if not paragraph:
                continue

            if self._fits(buffer, paragraph, "\n"):
                buffer.append(paragraph)
                has_new_text = True
                continue

            if has_new_text:
                emitted = "\n".join(buffer)
                yield emitted, order
                order += 1
                buffer = self._seed(emitted)
                has_new_text = False

            if self.token_counter(paragraph) > max_tokens:
                last_slice = ""
                for piece in self._slice_sentences(paragraph):
                    yield piece, order
                    order += 1
                    last_slice = piece
                buffer = self._seed(last_slice)
                continue

            if not self._fits(buffer, paragraph, "\n"):
                # Seed and paragraph do not fit together; the paragraph wins
                buffer = []

            buffer.append(paragraph)
            has_new_text = True

        if has_new_text:
            yield "\n".join(buffer), order

    def _fits(self, parts: list[str], candidate: str, separator: str) -> bool:
        """True if parts + [candidate], joined, stays within max_tokens."""
        joined = separator.join(parts + [candidate])
        return self.token_counter(joined) <= self.config.max_tokens

    def _seed(self, emitted: str) -> list[str]:
        """Start a new buffer from the tail of the chunk just emitted."""
        tail = take_tail(emitted, self.config.overlap_tokens)
        return [tail] if tail else []

    def _slice_sentences(self, paragraph: str) -> Iterator[str]:
        """
        Pack sentences into slices of at most max_tokens.

        A sentence that is over budget on its own becomes its own slice.
        """
        current: list[str] = []

        for sentence in split_sentences(paragraph):
            if current and not self._fits(current, sentence, " "):
                yield " ".join(current)
                current = []
            current.append(sentence)

        if current:
            yield " ".join(current)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def split_paragraphs(text: str) -> list[str]:
    """Split on blank lines (a line that is empty or only spaces/tabs)."""
    normalized = text.replace("\r\n", "\n")
    return _PARAGRAPH_BREAK.split(normalized)


def split_sentences(paragraph: str) -> list[str]:
    """Split after '.', '?' or '!' followed by a space, keeping the punctuation."""
    return [s.strip() for s in _SENTENCE_BREAK.split(paragraph) if s.strip()]


def take_tail(text: str, approx_tokens: int) -> str:
    """
    Return roughly the last approx_tokens tokens of text.

    Uses TAIL_CHARS_PER_TOKEN characters per token, so the cut may land
    mid-word.
    """
    if approx_tokens <= 0 or not text:
        return ""
    keep_chars = min(approx_tokens * TAIL_CHARS_PER_TOKEN, len(text))
    return text[len(text) - keep_chars:].strip()


def chunk_by_tokens(
    text: str,
    token_counter: Callable[[str], int],
    max_tokens: int,
    overlap_tokens: int = 0,
) -> Iterator[tuple[str, int]]:
    """
    One-shot helper: chunk text without building a chunker by hand.

    Raises:
        InvalidConfiguration: If max_tokens/overlap_tokens are inconsistent.
    """
    config = ChunkingConfig(max_tokens=max_tokens, overlap_tokens=overlap_tokens)
    return TokenChunker(token_counter, config).chunk_text(text)
