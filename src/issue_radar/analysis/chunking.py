"""
Recursive character splitting with overlap.

The corpus is cut at the coarsest separator that yields pieces within
budget (issue boundary, then paragraph, line, word, character). Finer
separators are only tried on the pieces that are still too large.
Separators stay attached to the end of the piece before them, so the
pieces always concatenate back to the original text.

Every chunk after the first is prefixed with the tail of the chunk
before it. Stripping ``min(chunk_overlap, len(previous))`` characters
from the front of each later chunk reconstructs the input exactly.
"""
from typing import Iterator, List, Optional, Sequence

from .formatting import ISSUE_SEPARATOR

DEFAULT_SEPARATORS = [ISSUE_SEPARATOR, "\n\n", "\n", " ", ""]


class RecursiveTextSplitter:
    """Deterministic, overlap-aware text splitter bounded by character count."""

    def __init__(
        self,
        chunk_size: int = 25000,
        chunk_overlap: int = 2500,
        separators: Optional[Sequence[str]] = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must not be negative, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"Got a larger chunk overlap ({chunk_overlap}) than chunk size ({chunk_size}), should be smaller."
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = list(separators) if separators is not None else list(DEFAULT_SEPARATORS)

    @property
    def body_budget(self) -> int:
        # New text per chunk; the overlap prefix fills the rest
        return self.chunk_size - self.chunk_overlap

    def split_text(self, text: str) -> List[str]:
        if not text:
            return []
        bodies = self._merge(self._split(text, self.separators))

        chunks: List[str] = []
        for body in bodies:
            if chunks:
                previous = chunks[-1]
                overlap = min(self.chunk_overlap, len(previous))
                chunks.append(previous[len(previous) - overlap:] + body)
            else:
                chunks.append(body)
        return chunks

    def _split(self, text: str, separators: Sequence[str]) -> Iterator[str]:
        """Yield consecutive pieces of `text`, each within budget where possible."""
        if len(text) <= self.body_budget:
            yield text
            return

        for i, separator in enumerate(separators):
            if separator == "":
                for start in range(0, len(text), self.body_budget):
                    yield text[start:start + self.body_budget]
                return
            if separator in text:
                finer = separators[i + 1:]
                for piece in _split_keeping_separator(text, separator):
                    if len(piece) <= self.body_budget:
                        yield piece
                    else:
                        yield from self._split(piece, finer)
                return

        # No separator applies: indivisible unit, passed through as is
        yield text

    def _merge(self, pieces: Iterator[str]) -> List[str]:
        """Greedily pack consecutive pieces into bodies of at most body_budget."""
        bodies: List[str] = []
        current: List[str] = []
        current_len = 0
        for piece in pieces:
            if current and current_len + len(piece) > self.body_budget:
                bodies.append("".join(current))
                current, current_len = [], 0
            current.append(piece)
            current_len += len(piece)
        if current:
            bodies.append("".join(current))
        return bodies


def _split_keeping_separator(text: str, separator: str) -> List[str]:
    parts = text.split(separator)
    pieces = [part + separator for part in parts[:-1]]
    if parts[-1]:
        pieces.append(parts[-1])
    return pieces
