"""
Report Synthesizer for the project-health pipeline.

Merges the metrics summaries of every data source into one
ProjectHealthReport with a single oracle call (the REDUCE phase).

Unlike a narrative summary there is no template fallback here: if the
oracle's reply cannot be parsed, or parses into JSON that violates the
report schema, synthesis fails with AnalysisUnavailable. A placeholder
report is never substituted for a real one.
"""

from collections.abc import Mapping

from healthscribe.ai import CompletionOracle
from healthscribe.errors import AnalysisUnavailable, ExtractionFailed, ReportValidationError
from healthscribe.logging_config import debug_log, warning

from .json_extractor import extract_json
from .report import ProjectHealthReport

# JSON shape the oracle must return
REPORT_SCHEMA = """{
  "projectHealth": "GREEN" | "YELLOW" | "RED",
  "score": <number 0-100>,
  "metrics": {
    "velocity": <number 0-100>,
    "issueStatus": {"open": <integer>, "inProgress": <integer>, "closed": <integer>},
    "teamPerformance": {"collaboration": <number 0-100>, "productivity": <number 0-100>, "quality": <number 0-100>},
    "riskFactors": [
      {"factor": "<text>", "impact": "HIGH" | "MEDIUM" | "LOW",
       "status": "NOT_STARTED" | "IN_PROGRESS" | "COMPLETED", "mitigation": "<text>"}
    ],
    "milestones": [
      {"name": "<text>", "dueDate": "<YYYY-MM-DD>",
       "status": "NOT_STARTED" | "IN_PROGRESS" | "COMPLETED",
       "riskFactors": [<same shape as metrics.riskFactors items>]}
    ],
    "recommendations": [
      {"recommendation": "<text>", "priority": "HIGH" | "MEDIUM" | "LOW",
       "status": "NOT_STARTED" | "IN_PROGRESS" | "COMPLETED"}
    ]
  },
  "analysis": "<summary text>"
}"""


class ReportSynthesizer:
    """
    Produces the final ProjectHealthReport from per-source summaries.

    Example:
        synthesizer = ReportSynthesizer(oracle)
        report = synthesizer.synthesize({"Jira": jira_summary, "Confluence": wiki_summary})
        print(report.project_health, report.score)
    """

    SYSTEM_INSTRUCTION = """Create a project health analysis in JSON format.

Return exactly one JSON object with this structure:
{schema}

RULES:
- Use only the enumeration values shown (upper case)
- score, velocity and every teamPerformance value must be between 0 and 100
- issueStatus counts must be non-negative integers
- Use an empty list [] when there are no risks, milestones or recommendations
- Output strict JSON: double-quoted keys, no comments, no trailing commas
- Do not add any text before or after the JSON object"""

    USER_PROMPT = """Based on these metrics, provide the project health analysis.

{sections}"""

    def __init__(self, oracle: CompletionOracle):
        """
        Initialize the synthesizer.

        Args:
            oracle: CompletionOracle used for the synthesis call
        """
        self.oracle = oracle

    def build_system_instruction(self) -> str:
        """System instruction embedding the target JSON shape."""
        return self.SYSTEM_INSTRUCTION.format(schema=REPORT_SCHEMA)

    def build_user_content(self, source_summaries: Mapping[str, str]) -> str:
        """Enumerate each source's label and summary, in mapping order."""
        sections = "\n\n".join(
            f"{label} metrics:\n{summary}" for label, summary in source_summaries.items()
        )
        return self.USER_PROMPT.format(sections=sections)

    def synthesize(self, source_summaries: Mapping[str, str]) -> ProjectHealthReport:
        """
        Synthesize one report from all source summaries.

        Args:
            source_summaries: Mapping of source label to MetricsSummary text

        Returns:
            Validated ProjectHealthReport

        Raises:
            ValueError: If no summaries are given
            OracleUnavailable: If the synthesis call fails (includes OracleTimeout)
            AnalysisUnavailable: If the reply has no parseable JSON
                (reason UNPARSEABLE_RESPONSE) or the JSON violates the
                report schema (reason SCHEMA_VIOLATION)
        """
        if not source_summaries:
            raise ValueError("At least one source summary is required for synthesis")

        debug_log(f"[ReportSynthesizer] Synthesizing from sources: {list(source_summaries)}")

        response = self.oracle.complete(
            self.build_system_instruction(),
            self.build_user_content(source_summaries),
        )

        try:
            parsed = extract_json(response)
        except ExtractionFailed as e:
            warning("[ReportSynthesizer] Oracle returned unparseable text")
            raise AnalysisUnavailable(
                "Oracle returned unparseable text for the project health analysis",
                reason=AnalysisUnavailable.UNPARSEABLE_RESPONSE,
                raw_text=e.raw_text,
            ) from e

        try:
            report = ProjectHealthReport.from_dict(parsed)
        except ReportValidationError as e:
            warning(f"[ReportSynthesizer] Oracle JSON violates the report schema: {e}")
            raise AnalysisUnavailable(
                f"Oracle returned JSON violating the report schema: {e}",
                reason=AnalysisUnavailable.SCHEMA_VIOLATION,
                raw_text=response,
            ) from e

        debug_log(
            f"[ReportSynthesizer] Report: {report.project_health.value} "
            f"score={report.score}, {report.risk_count} risks"
        )
        return report
