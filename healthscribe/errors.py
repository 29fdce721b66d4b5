"""
Failure taxonomy for the HealthScribe pipeline.

- OracleUnavailable / OracleTimeout: the completion service could not be
  reached or did not answer in time. Safe to retry the whole request.
- ExtractionFailed: an oracle response contained no parseable JSON object.
  Carries the raw text for diagnostics; not retried automatically.
- AnalysisUnavailable: synthesis could not produce a valid report, either
  because the response was unparseable or because the JSON violated the
  report schema.
"""


class HealthScribeError(Exception):
    """Base class for all pipeline failures."""


class OracleUnavailable(HealthScribeError):
    """The completion oracle could not be reached or returned an error."""


class OracleTimeout(OracleUnavailable):
    """The completion oracle (or the whole request) exceeded its deadline."""


class ExtractionFailed(HealthScribeError):
    """No parseable JSON object was found in an oracle response."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class AnalysisUnavailable(HealthScribeError):
    """
    Synthesis failed to produce a valid ProjectHealthReport.

    Attributes:
        reason: UNPARSEABLE_RESPONSE or SCHEMA_VIOLATION
        raw_text: The oracle's raw synthesis response
    """

    UNPARSEABLE_RESPONSE = "unparseable_response"
    SCHEMA_VIOLATION = "schema_violation"

    def __init__(self, message: str, reason: str, raw_text: str = ""):
        super().__init__(message)
        self.reason = reason
        self.raw_text = raw_text


class ReportValidationError(ValueError):
    """Parsed synthesis JSON does not match the report schema."""
