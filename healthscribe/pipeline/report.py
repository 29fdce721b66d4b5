"""
Project Health Report model and schema validation.

The synthesis oracle is asked for a JSON object of this shape:

    {
      "projectHealth": "GREEN" | "YELLOW" | "RED",
      "score": 0-100,
      "metrics": {
        "velocity": 0-100,
        "issueStatus": {"open": int, "inProgress": int, "closed": int},
        "teamPerformance": {"<sub-score>": 0-100, ...},
        "riskFactors": [RiskFactor, ...],
        "milestones": [{"name", "dueDate", "status", "riskFactors": [...]}, ...],
        "recommendations": [{"recommendation", "priority", "status"}, ...]
      },
      "analysis": "summary text"
    }

where RiskFactor is {"factor", "impact": HIGH|MEDIUM|LOW,
"status": NOT_STARTED|IN_PROGRESS|COMPLETED, "mitigation"}.

ProjectHealthReport.from_dict() validates a parsed object against this
shape and raises ReportValidationError on the first violation. Values are
never clamped or defaulted into range.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from healthscribe.errors import ReportValidationError


class HealthStatus(str, Enum):
    """Overall project status."""

    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


class RiskImpact(str, Enum):
    """Impact (or priority) level of a risk or recommendation."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class WorkStatus(str, Enum):
    """Progress of a risk mitigation, milestone or recommendation."""

    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


# =============================================================================
# Field helpers
# =============================================================================

def _require(data: dict, key: str, path: str) -> Any:
    if key not in data:
        raise ReportValidationError(f"{path}.{key} is required")
    return data[key]


def _as_dict(value: Any, path: str) -> dict:
    if not isinstance(value, dict):
        raise ReportValidationError(f"{path} must be an object, got {type(value).__name__}")
    return value


def _as_list(value: Any, path: str) -> list:
    if not isinstance(value, list):
        raise ReportValidationError(f"{path} must be a list, got {type(value).__name__}")
    return value


def _as_text(value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise ReportValidationError(f"{path} must be a string, got {type(value).__name__}")
    return value


def _as_number(value: Any, path: str, low: float | None = None, high: float | None = None) -> float:
    # bool is an int subclass but never a valid metric
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ReportValidationError(f"{path} must be a number, got {value!r}")
    if low is not None and value < low:
        raise ReportValidationError(f"{path} must be >= {low}, got {value}")
    if high is not None and value > high:
        raise ReportValidationError(f"{path} must be <= {high}, got {value}")
    return value


def _as_count(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ReportValidationError(f"{path} must be a non-negative integer, got {value!r}")
    return value


def _as_enum(enum_cls: type[Enum], value: Any, path: str) -> Any:
    allowed = [member.value for member in enum_cls]
    if value not in allowed:
        raise ReportValidationError(f"{path} must be one of {allowed}, got {value!r}")
    return enum_cls(value)


def _optional_text(data: dict, key: str, path: str) -> str | None:
    value = data.get(key)
    return None if value is None else _as_text(value, f"{path}.{key}")


# =============================================================================
# Report types
# =============================================================================

@dataclass(frozen=True)
class RiskFactor:
    """
    A single project risk.

    Attributes:
        factor: Description of the risk
        impact: HIGH, MEDIUM or LOW
        status: Mitigation progress
        mitigation: Suggested mitigation, if the oracle gave one
    """

    factor: str
    impact: RiskImpact
    status: WorkStatus
    mitigation: str | None = None

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "RiskFactor":
        data = _as_dict(data, path)
        return cls(
            factor=_as_text(_require(data, "factor", path), f"{path}.factor"),
            impact=_as_enum(RiskImpact, _require(data, "impact", path), f"{path}.impact"),
            status=_as_enum(WorkStatus, _require(data, "status", path), f"{path}.status"),
            mitigation=_optional_text(data, "mitigation", path),
        )


@dataclass(frozen=True)
class Milestone:
    """A project milestone with its own risk factors."""

    name: str
    due_date: str | None = None
    status: WorkStatus | None = None
    risk_factors: tuple[RiskFactor, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "Milestone":
        data = _as_dict(data, path)
        status = data.get("status")
        risks = _as_list(data.get("riskFactors", []), f"{path}.riskFactors")
        return cls(
            name=_as_text(_require(data, "name", path), f"{path}.name"),
            due_date=_optional_text(data, "dueDate", path),
            status=None if status is None else _as_enum(WorkStatus, status, f"{path}.status"),
            risk_factors=tuple(
                RiskFactor.from_dict(risk, f"{path}.riskFactors[{i}]")
                for i, risk in enumerate(risks)
            ),
        )


@dataclass(frozen=True)
class Recommendation:
    """An actionable recommendation and its progress."""

    recommendation: str
    status: WorkStatus
    priority: RiskImpact | None = None

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "Recommendation":
        data = _as_dict(data, path)
        priority = data.get("priority")
        return cls(
            recommendation=_as_text(
                _require(data, "recommendation", path), f"{path}.recommendation"
            ),
            status=_as_enum(WorkStatus, _require(data, "status", path), f"{path}.status"),
            priority=None if priority is None else _as_enum(
                RiskImpact, priority, f"{path}.priority"
            ),
        )


@dataclass(frozen=True)
class IssueStatusCounts:
    """Issue counts by workflow state."""

    open: int
    in_progress: int
    closed: int

    @property
    def total(self) -> int:
        return self.open + self.in_progress + self.closed

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "IssueStatusCounts":
        data = _as_dict(data, path)
        return cls(
            open=_as_count(_require(data, "open", path), f"{path}.open"),
            in_progress=_as_count(_require(data, "inProgress", path), f"{path}.inProgress"),
            closed=_as_count(_require(data, "closed", path), f"{path}.closed"),
        )


@dataclass(frozen=True)
class HealthMetrics:
    """
    The metrics block of a report.

    Attributes:
        velocity: Delivery velocity score (0-100)
        issue_status: Open / in-progress / closed issue counts
        team_performance: Named sub-scores (0-100 each)
        risk_factors: Project-level risks
        milestones: Milestones with nested risks
        recommendations: Recommended actions
    """

    velocity: float
    issue_status: IssueStatusCounts
    team_performance: dict[str, float] = field(default_factory=dict)
    risk_factors: tuple[RiskFactor, ...] = ()
    milestones: tuple[Milestone, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, path: str = "metrics") -> "HealthMetrics":
        data = _as_dict(data, path)

        team = _as_dict(data.get("teamPerformance", {}), f"{path}.teamPerformance")
        team_performance = {
            str(name): _as_number(score, f"{path}.teamPerformance.{name}", 0, 100)
            for name, score in team.items()
        }

        risks = _as_list(data.get("riskFactors", []), f"{path}.riskFactors")
        milestones = _as_list(data.get("milestones", []), f"{path}.milestones")
        recommendations = _as_list(data.get("recommendations", []), f"{path}.recommendations")

        return cls(
            velocity=_as_number(_require(data, "velocity", path), f"{path}.velocity", 0, 100),
            issue_status=IssueStatusCounts.from_dict(
                _require(data, "issueStatus", path), f"{path}.issueStatus"
            ),
            team_performance=team_performance,
            risk_factors=tuple(
                RiskFactor.from_dict(risk, f"{path}.riskFactors[{i}]")
                for i, risk in enumerate(risks)
            ),
            milestones=tuple(
                Milestone.from_dict(milestone, f"{path}.milestones[{i}]")
                for i, milestone in enumerate(milestones)
            ),
            recommendations=tuple(
                Recommendation.from_dict(rec, f"{path}.recommendations[{i}]")
                for i, rec in enumerate(recommendations)
            ),
        )


@dataclass(frozen=True)
class ProjectHealthReport:
    """
    Final structured project-health report.

    Attributes:
        project_health: GREEN, YELLOW or RED
        score: Overall health score (0-100)
        metrics: Velocity, issue counts, team performance, risks,
            milestones and recommendations
        analysis: Free-text analysis summary
        raw: The parsed JSON object exactly as the oracle returned it
    """

    project_health: HealthStatus
    score: float
    metrics: HealthMetrics
    analysis: str = ""
    raw: dict = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Any) -> "ProjectHealthReport":
        """
        Validate a parsed synthesis object and build the report.

        Args:
            data: Parsed JSON object from the synthesis response

        Returns:
            ProjectHealthReport

        Raises:
            ReportValidationError: On missing fields, wrong types, values
                outside their range, or unknown enumeration members
        """
        data = _as_dict(data, "report")
        analysis = data.get("analysis", "")
        return cls(
            project_health=_as_enum(
                HealthStatus, _require(data, "projectHealth", "report"), "report.projectHealth"
            ),
            score=_as_number(_require(data, "score", "report"), "report.score", 0, 100),
            metrics=HealthMetrics.from_dict(_require(data, "metrics", "report")),
            analysis="" if analysis is None else _as_text(analysis, "report.analysis"),
            raw=copy.deepcopy(data),
        )

    def to_dict(self) -> dict:
        """Return a copy of the parsed JSON object for persistence."""
        return copy.deepcopy(self.raw)

    @property
    def risk_count(self) -> int:
        """Project-level plus milestone-level risk factors."""
        return len(self.metrics.risk_factors) + sum(
            len(m.risk_factors) for m in self.metrics.milestones
        )
