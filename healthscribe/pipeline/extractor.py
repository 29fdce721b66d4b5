"""
Metrics Extractor for the project-health pipeline.

Drives the oracle over every chunk of one data source and concatenates the
replies into a single free-text metrics summary. This is the MAP phase of
the pipeline; the ReportSynthesizer is the REDUCE phase.

Calls are strictly sequential within a source so the summary text keeps
chunk order. Failure policy is abort: the first failing oracle call
propagates and no partial summary is produced.
"""

from dataclasses import dataclass
from typing import Callable

from healthscribe.ai import CompletionOracle
from healthscribe.logging_config import debug_log, warning

from .chunker import TextChunk, TextChunker

CHUNK_SEPARATOR = "\n\n"

EXTRACTION_INSTRUCTION = (
    "Extract key project health metrics from this {source_label} data chunk. "
    "Focus on quantitative data."
)


@dataclass(frozen=True)
class ExtractionRequest:
    """One oracle request for one chunk."""

    chunk_text: str
    source_label: str
    instruction: str


@dataclass
class MetricsSummary:
    """
    Concatenated oracle output for one data source.

    Attributes:
        source_label: Data source name (e.g. "Jira")
        text: Per-chunk responses in chunk order, separated by a blank line
        chunk_count: Number of chunks the source was split into
        chunks_processed: Number of chunks actually sent to the oracle
    """

    source_label: str
    text: str
    chunk_count: int
    chunks_processed: int

    @property
    def truncated(self) -> bool:
        """True if the chunk cap dropped part of the source."""
        return self.chunks_processed < self.chunk_count


class MetricsExtractor:
    """
    Extracts per-chunk metrics for one data source via the oracle.

    Example:
        extractor = MetricsExtractor(oracle, TextChunker(max_chars=2000))
        summary = extractor.extract_source(jira_text, "Jira")
        print(summary.text)
    """

    def __init__(
        self,
        oracle: CompletionOracle,
        chunker: TextChunker | None = None,
        max_chunks: int | None = None,
    ):
        """
        Initialize the extractor.

        Args:
            oracle: CompletionOracle used for every chunk
            chunker: TextChunker for extract_source() (default 2000 chars)
            max_chunks: Optional cap on chunks sent per source (cost control)
        """
        if max_chunks is not None and max_chunks <= 0:
            raise ValueError(f"max_chunks must be positive, got {max_chunks}")
        self.oracle = oracle
        self.chunker = chunker or TextChunker()
        self.max_chunks = max_chunks

        debug_log(
            f"[MetricsExtractor] Initialized: max_chars={self.chunker.max_chars}, "
            f"max_chunks={max_chunks}"
        )

    def build_request(self, chunk: TextChunk, source_label: str) -> ExtractionRequest:
        """Build the oracle request for one chunk."""
        return ExtractionRequest(
            chunk_text=chunk.text,
            source_label=source_label,
            instruction=EXTRACTION_INSTRUCTION.format(source_label=source_label),
        )

    def extract_metrics(
        self,
        chunks: list[TextChunk],
        source_label: str,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> MetricsSummary:
        """
        Run the oracle over each chunk in order and join the replies.

        Args:
            chunks: Chunks of one source, in source order
            source_label: Data source name used in the instruction
            progress_callback: Optional callback(current, total)

        Returns:
            MetricsSummary for the source

        Raises:
            OracleUnavailable: If any chunk's oracle call fails (includes
                OracleTimeout). Extraction stops at the failing chunk.
        """
        selected = chunks
        if self.max_chunks is not None and len(chunks) > self.max_chunks:
            selected = chunks[:self.max_chunks]
            warning(
                f"[MetricsExtractor] {source_label}: processing first {self.max_chunks} "
                f"of {len(chunks)} chunks"
            )

        total = len(selected)
        responses = []

        for position, chunk in enumerate(selected):
            debug_log(f"[MetricsExtractor] Processing {source_label} chunk {position + 1}/{total}")
            if progress_callback:
                progress_callback(position, total)

            request = self.build_request(chunk, source_label)
            responses.append(self.oracle.complete(request.instruction, request.chunk_text))

        if progress_callback and total:
            progress_callback(total, total)

        debug_log(f"[MetricsExtractor] {source_label}: {total} chunks extracted")

        return MetricsSummary(
            source_label=source_label,
            text=CHUNK_SEPARATOR.join(responses),
            chunk_count=len(chunks),
            chunks_processed=total,
        )

    def extract_source(
        self,
        text: str,
        source_label: str,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> MetricsSummary:
        """Chunk a raw source and extract its metrics summary."""
        chunks = self.chunker.chunk(text, source_label)
        return self.extract_metrics(chunks, source_label, progress_callback)
