"""
Project Health Pipeline Package for HealthScribe.

Turns raw issue-tracker and wiki exports into a structured project health
report using a Map-Reduce pattern over a text-completion oracle.

Architecture:
- TextChunker: Sentence-aware, lossless splitting into bounded chunks
- MetricsExtractor: Per-chunk oracle extraction, joined per source (MAP)
- extract_json: Tolerant JSON-object extraction from free-text replies
- ReportSynthesizer: One oracle call merging all summaries (REDUCE)
- ProjectHealthReport: Validated report model
- HealthReportOrchestrator: Coordinates the full pipeline

Usage:
    from healthscribe.config import load_settings
    from healthscribe.pipeline import HealthReportOrchestrator

    orchestrator = HealthReportOrchestrator.from_settings(load_settings())
    result = orchestrator.analyze({"Jira": jira_text, "Confluence": wiki_text})
    print(result.report.to_dict())
"""

from .chunker import TextChunk, TextChunker, split_into_chunks
from .extractor import ExtractionRequest, MetricsExtractor, MetricsSummary
from .json_extractor import extract_json
from .report import (
    HealthMetrics,
    HealthStatus,
    IssueStatusCounts,
    Milestone,
    ProjectHealthReport,
    Recommendation,
    RiskFactor,
    RiskImpact,
    WorkStatus,
)
from .synthesizer import ReportSynthesizer
from .orchestrator import HealthAnalysisResult, HealthReportOrchestrator

__all__ = [
    # Chunking and extraction
    "TextChunk",
    "TextChunker",
    "split_into_chunks",
    "ExtractionRequest",
    "MetricsExtractor",
    "MetricsSummary",
    "extract_json",
    # Report model
    "HealthMetrics",
    "HealthStatus",
    "IssueStatusCounts",
    "Milestone",
    "ProjectHealthReport",
    "Recommendation",
    "RiskFactor",
    "RiskImpact",
    "WorkStatus",
    # Synthesis and orchestration
    "ReportSynthesizer",
    "HealthAnalysisResult",
    "HealthReportOrchestrator",
]
