"""
Health Report Orchestrator for the project-health pipeline.

Coordinates the full pipeline from raw source exports to a validated report:
1. CHUNK + MAP: per source, chunk the text and extract metrics chunk by
   chunk (sources run in parallel, chunks within a source never do)
2. JOIN: wait until every source summary is available
3. SYNTHESIZE: one oracle call merges the summaries into a report

This is the main entry point for generating project health reports.
"""

import time
from collections.abc import Mapping
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Callable

from healthscribe.ai import CompletionOracle, OllamaChatClient
from healthscribe.config import PipelineSettings
from healthscribe.errors import OracleTimeout
from healthscribe.logging_config import Timer, debug_log, info
from healthscribe.parallel import ExecutorStrategy, ParallelTaskRunner, ThreadPoolStrategy

from .chunker import TextChunker
from .extractor import MetricsExtractor, MetricsSummary
from .report import ProjectHealthReport
from .synthesizer import ReportSynthesizer


@dataclass
class HealthAnalysisResult:
    """
    Complete result of one analyze() call.

    Attributes:
        report: The validated project health report
        summaries: Per-source metrics summaries, in source order
        timing: Milliseconds spent per phase ("extraction", "synthesis", "total")
    """

    report: ProjectHealthReport
    summaries: dict[str, MetricsSummary] = field(default_factory=dict)
    timing: dict[str, float] = field(default_factory=dict)

    @property
    def total_time_seconds(self) -> float:
        """Total processing time in seconds."""
        return self.timing.get("total", 0.0) / 1000

    @property
    def chunk_count(self) -> int:
        """Chunks sent to the oracle across all sources."""
        return sum(summary.chunks_processed for summary in self.summaries.values())


# Progress callback signature: (phase: str, current: int, total: int, message: str)
ProgressCallback = Callable[[str, int, int, str], None]


class HealthReportOrchestrator:
    """
    Main coordinator for project health report generation.

    Example:
        settings = load_settings()
        orchestrator = HealthReportOrchestrator.from_settings(settings)

        result = orchestrator.analyze({
            "Jira": jira_export_text,
            "Confluence": confluence_export_text,
        })
        print(result.report.project_health, result.report.score)
    """

    def __init__(
        self,
        oracle: CompletionOracle,
        settings: PipelineSettings | None = None,
        strategy: ExecutorStrategy | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            oracle: CompletionOracle shared by extraction and synthesis
            settings: Explicit pipeline settings (defaults if None)
            strategy: ExecutorStrategy for per-source work. If None, a fresh
                ThreadPoolStrategy is created for every analyze() call.
                An injected strategy is never shut down here; the caller owns it
                and it stays usable after a timed-out request.
        """
        self.settings = (settings or PipelineSettings()).validate()
        self.oracle = oracle
        self.strategy = strategy

        self.chunker = TextChunker(max_chars=self.settings.chunk_chars)
        self.extractor = MetricsExtractor(
            oracle=oracle,
            chunker=self.chunker,
            max_chunks=self.settings.max_chunks_per_source,
        )
        self.synthesizer = ReportSynthesizer(oracle=oracle)

        debug_log("[HealthReportOrchestrator] Initialized pipeline components")

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "HealthReportOrchestrator":
        """Build an orchestrator that talks to Ollama per the settings."""
        return cls(oracle=OllamaChatClient.from_settings(settings), settings=settings)

    def analyze(
        self,
        sources: Mapping[str, str],
        progress_callback: ProgressCallback | None = None,
    ) -> HealthAnalysisResult:
        """
        Generate a project health report from raw source texts.

        Args:
            sources: Mapping of source label (e.g. "Jira") to raw text
            progress_callback: Optional callback for UI updates
                Signature: (phase, current, total, message)

        Returns:
            HealthAnalysisResult with the report, summaries and timing

        Raises:
            ValueError: If no sources are given or a label/text is invalid
            OracleUnavailable: If an oracle call fails
            OracleTimeout: If an oracle call or the whole request times out
            AnalysisUnavailable: If synthesis yields no valid report
        """
        self._validate_sources(sources)

        start_time = time.time()
        deadline = None
        if self.settings.request_timeout_seconds is not None:
            deadline = time.monotonic() + self.settings.request_timeout_seconds

        timing: dict[str, float] = {}
        strategy = self.strategy or ThreadPoolStrategy(
            max_workers=min(len(sources), self.settings.max_parallel_sources)
        )

        info(f"[HealthReportOrchestrator] Analyzing {len(sources)} sources: {list(sources)}")

        try:
            summaries = self._phase_extract(sources, strategy, deadline, progress_callback, timing)
            report = self._phase_synthesize(summaries, strategy, deadline, progress_callback, timing)
        finally:
            if self.strategy is None:
                strategy.shutdown(wait=False, cancel_futures=True)

        timing["total"] = (time.time() - start_time) * 1000
        self._notify_progress(
            progress_callback,
            "complete",
            len(sources) + 1,
            len(sources) + 1,
            f"Report complete in {timing['total'] / 1000:.1f}s",
        )
        debug_log(f"[HealthReportOrchestrator] Timing breakdown: {timing}")

        return HealthAnalysisResult(report=report, summaries=summaries, timing=timing)

    def _validate_sources(self, sources: Mapping[str, str]) -> None:
        if not sources:
            raise ValueError("At least one data source is required")
        for label, text in sources.items():
            if not isinstance(label, str) or not label.strip():
                raise ValueError(f"Source labels must be non-empty strings, got {label!r}")
            if not isinstance(text, str):
                raise ValueError(f"Source {label!r} text must be a string")

    def _remaining(self, deadline: float | None) -> float | None:
        """Seconds left before the request deadline, or None if unbounded."""
        if deadline is None:
            return None
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise OracleTimeout(
                f"Request exceeded {self.settings.request_timeout_seconds} seconds"
            )
        return remaining

    def _phase_extract(
        self,
        sources: Mapping[str, str],
        strategy: ExecutorStrategy,
        deadline: float | None,
        callback: ProgressCallback | None,
        timing: dict[str, float],
    ) -> dict[str, MetricsSummary]:
        """
        Phase 1: Chunk and extract every source (one task per source).

        Returns:
            Mapping of label to MetricsSummary in the caller's source order

        Raises:
            The first per-source failure in source order, or OracleTimeout
        """
        total = len(sources) + 1
        self._notify_progress(
            callback, "extraction", 0, total, f"Extracting metrics from {len(sources)} sources..."
        )
        completed = 0

        def on_source_complete(label: str, summary: MetricsSummary):
            nonlocal completed
            completed += 1
            self._notify_progress(
                callback,
                "extraction",
                completed,
                total,
                f"{label}: {summary.chunks_processed} chunks extracted",
            )

        def extract(payload: tuple[str, str]) -> MetricsSummary:
            label, text = payload
            return self.extractor.extract_source(text, label)

        runner = ParallelTaskRunner(strategy=strategy, on_task_complete=on_source_complete)
        items = [(label, (label, text)) for label, text in sources.items()]

        with Timer("Metric extraction") as timer:
            try:
                task_results = runner.run(extract, items, timeout=self._remaining(deadline))
            except FuturesTimeoutError as e:
                raise OracleTimeout(
                    f"Request exceeded {self.settings.request_timeout_seconds} seconds "
                    "during metric extraction"
                ) from e
        timing["extraction"] = timer.get_duration_ms()

        for task_result in task_results:
            if not task_result.success:
                debug_log(
                    f"[HealthReportOrchestrator] Extraction failed for "
                    f"{task_result.task_id}: {task_result.error}"
                )
                raise task_result.error

        summaries = {result.task_id: result.result for result in task_results}
        debug_log(
            f"[HealthReportOrchestrator] Extraction: {sum(s.chunks_processed for s in summaries.values())} "
            f"chunks in {timing['extraction']:.0f}ms"
        )
        return summaries

    def _phase_synthesize(
        self,
        summaries: dict[str, MetricsSummary],
        strategy: ExecutorStrategy,
        deadline: float | None,
        callback: ProgressCallback | None,
        timing: dict[str, float],
    ) -> ProjectHealthReport:
        """
        Phase 2: Merge all summaries into the final report.

        Runs on the strategy so the request deadline also bounds the
        synthesis call.
        """
        total = len(summaries) + 1
        self._notify_progress(
            callback, "synthesis", total - 1, total, "Synthesizing project health report..."
        )

        summary_texts = {label: summary.text for label, summary in summaries.items()}

        with Timer("Report synthesis") as timer:
            future = strategy.submit(self.synthesizer.synthesize, summary_texts)
            try:
                report = future.result(timeout=self._remaining(deadline))
            except FuturesTimeoutError as e:
                future.cancel()
                raise OracleTimeout(
                    f"Request exceeded {self.settings.request_timeout_seconds} seconds "
                    "during synthesis"
                ) from e
        timing["synthesis"] = timer.get_duration_ms()

        debug_log(
            f"[HealthReportOrchestrator] Synthesis: {report.project_health.value} "
            f"in {timing['synthesis']:.0f}ms"
        )
        return report

    def _notify_progress(
        self,
        callback: ProgressCallback | None,
        phase: str,
        current: int,
        total: int,
        message: str,
    ) -> None:
        """Send progress update if callback provided."""
        if callback:
            try:
                callback(phase, current, total, message)
            except Exception as e:
                debug_log(f"[HealthReportOrchestrator] Progress callback error: {e}")
