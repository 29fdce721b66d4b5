"""
Text Chunker for the project-health pipeline.

Splits a raw export (issue-tracker dump, wiki pages) into bounded-size
segments that fit the oracle's context window, cutting at sentence ends
where possible.

Key Features:
- Hard upper bound: no chunk is longer than max_size characters
- Sentence-aware: cuts just after the last ". ", "! " or "? " in range
- Lossless: concatenating the chunks reproduces the input exactly
- Falls back to a hard cut (possibly mid-word) when no sentence end fits
"""

from dataclasses import dataclass

from healthscribe.logging_config import debug_log

SENTENCE_TERMINATORS = ".!?"


@dataclass(frozen=True)
class TextChunk:
    """
    A contiguous slice of a source document.

    Attributes:
        index: Position of this chunk within its source
        start: Offset of the first character in the source
        end: Offset one past the last character in the source
        text: The chunk text, equal to source[start:end]
    """

    index: int
    start: int
    end: int
    text: str

    def __len__(self) -> int:
        return self.end - self.start


def _find_sentence_cut(text: str, start: int, end: int) -> int:
    """
    Find the cut point after the last sentence terminator in text[start:end].

    The terminator must be followed by whitespace that also lies inside the
    window, so the cut (terminator + one whitespace char) never passes end.

    Returns:
        Offset just past the whitespace, or -1 if no boundary exists
    """
    for i in range(end - 2, start - 1, -1):
        if text[i] in SENTENCE_TERMINATORS and text[i + 1].isspace():
            return i + 2
    return -1


def split_into_chunks(text: str, max_size: int) -> list[TextChunk]:
    """
    Split text into contiguous chunks of at most max_size characters.

    Args:
        text: Source text (may be empty)
        max_size: Maximum chunk length in characters

    Returns:
        Ordered list of TextChunk objects; empty for empty text

    Raises:
        ValueError: If max_size is not a positive integer
    """
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
        raise ValueError(f"max_size must be a positive integer, got {max_size!r}")

    chunks: list[TextChunk] = []
    length = len(text)
    offset = 0

    while offset < length:
        end = min(offset + max_size, length)
        if end < length:
            cut = _find_sentence_cut(text, offset, end)
            if cut != -1:
                end = cut

        chunks.append(TextChunk(index=len(chunks), start=offset, end=end, text=text[offset:end]))
        offset = end

    return chunks


class TextChunker:
    """
    Configured chunker used by the extraction orchestrator.

    Example:
        chunker = TextChunker(max_chars=2000)
        chunks = chunker.chunk(jira_export)
    """

    def __init__(self, max_chars: int = 2000):
        """
        Initialize the chunker.

        Args:
            max_chars: Maximum chunk size in characters

        Raises:
            ValueError: If max_chars is not positive
        """
        if max_chars <= 0:
            raise ValueError(f"max_chars must be positive, got {max_chars}")
        self.max_chars = max_chars

    def chunk(self, text: str, source_label: str = "source") -> list[TextChunk]:
        """
        Split one source's text into chunks.

        Args:
            text: Raw text of the source
            source_label: Label used in log messages

        Returns:
            List of TextChunk objects in source order
        """
        chunks = split_into_chunks(text, self.max_chars)
        hard_cuts = sum(
            1 for chunk in chunks[:-1]
            if not (len(chunk.text) >= 2
                    and chunk.text[-2] in SENTENCE_TERMINATORS
                    and chunk.text[-1].isspace())
        )
        debug_log(
            f"[TextChunker] {source_label}: {len(text)} chars -> {len(chunks)} chunks "
            f"(max={self.max_chars}, hard cuts={hard_cuts})"
        )
        return chunks
