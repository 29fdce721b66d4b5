"""
Tests for ProjectHealthReport validation.

Tests cover:
- Parsing the full sample report into typed fields
- Required fields, ranges and enumeration checks
- Optional sections and the preserved raw object
"""

import copy

import pytest

from healthscribe.errors import ReportValidationError
from healthscribe.pipeline.report import (
    HealthStatus,
    ProjectHealthReport,
    RiskImpact,
    WorkStatus,
)


def _minimal_report() -> dict:
    return {
        "projectHealth": "YELLOW",
        "score": 60,
        "metrics": {"velocity": 45, "issueStatus": {"open": 1, "inProgress": 2, "closed": 3}},
    }


class TestParsing:
    """Valid reports become typed dataclasses."""

    def test_sample_report(self, sample_report):
        report = ProjectHealthReport.from_dict(sample_report)

        assert report.project_health is HealthStatus.GREEN
        assert report.score == 92
        assert report.metrics.velocity == 78
        assert report.metrics.issue_status.in_progress == 67
        assert report.metrics.issue_status.total == 100
        assert report.metrics.team_performance == {
            "collaboration": 85,
            "productivity": 80,
            "quality": 88,
        }
        assert report.metrics.risk_factors[0].impact is RiskImpact.MEDIUM
        assert report.metrics.milestones[0].due_date == "2026-12-01"
        assert report.metrics.milestones[0].risk_factors[0].status is WorkStatus.NOT_STARTED
        assert report.metrics.recommendations[0].priority is RiskImpact.HIGH
        assert report.risk_count == 2
        assert report.analysis.startswith("Delivery is on track")

    def test_minimal_report_defaults(self):
        report = ProjectHealthReport.from_dict(_minimal_report())
        assert report.metrics.team_performance == {}
        assert report.metrics.risk_factors == ()
        assert report.metrics.milestones == ()
        assert report.metrics.recommendations == ()
        assert report.analysis == ""
        assert report.risk_count == 0

    def test_to_dict_returns_parsed_object(self, sample_report):
        report = ProjectHealthReport.from_dict(sample_report)
        assert report.to_dict() == sample_report

    def test_raw_is_isolated_from_caller(self, sample_report):
        report = ProjectHealthReport.from_dict(sample_report)
        sample_report["score"] = 0
        exported = report.to_dict()
        exported["metrics"]["velocity"] = 0
        assert report.to_dict()["score"] == 92
        assert report.to_dict()["metrics"]["velocity"] == 78

    def test_extra_keys_are_kept_in_raw(self):
        data = _minimal_report()
        data["generatedBy"] = "oracle"
        assert ProjectHealthReport.from_dict(data).to_dict()["generatedBy"] == "oracle"

    def test_boundary_values_accepted(self):
        data = _minimal_report()
        data["score"] = 0
        data["metrics"]["velocity"] = 100
        data["metrics"]["teamPerformance"] = {"quality": 99.5}
        report = ProjectHealthReport.from_dict(data)
        assert report.score == 0
        assert report.metrics.team_performance["quality"] == 99.5


class TestValidation:
    """Schema violations raise ReportValidationError."""

    @pytest.mark.parametrize("key", ["projectHealth", "score", "metrics"])
    def test_missing_top_level_field(self, key):
        data = _minimal_report()
        del data[key]
        with pytest.raises(ReportValidationError, match=key):
            ProjectHealthReport.from_dict(data)

    @pytest.mark.parametrize("key", ["velocity", "issueStatus"])
    def test_missing_metrics_field(self, key):
        data = _minimal_report()
        del data["metrics"][key]
        with pytest.raises(ReportValidationError, match=key):
            ProjectHealthReport.from_dict(data)

    @pytest.mark.parametrize("score", [150, -1, 100.01, "92", True, None])
    def test_invalid_score(self, score):
        data = _minimal_report()
        data["score"] = score
        with pytest.raises(ReportValidationError):
            ProjectHealthReport.from_dict(data)

    @pytest.mark.parametrize("status", ["green", "BLUE", "", 1])
    def test_invalid_health_status(self, status):
        data = _minimal_report()
        data["projectHealth"] = status
        with pytest.raises(ReportValidationError, match="projectHealth"):
            ProjectHealthReport.from_dict(data)

    @pytest.mark.parametrize("count", [-1, 2.5, "3", False])
    def test_invalid_issue_count(self, count):
        data = _minimal_report()
        data["metrics"]["issueStatus"]["open"] = count
        with pytest.raises(ReportValidationError, match="issueStatus.open"):
            ProjectHealthReport.from_dict(data)

    def test_team_performance_out_of_range(self):
        data = _minimal_report()
        data["metrics"]["teamPerformance"] = {"quality": 101}
        with pytest.raises(ReportValidationError, match="teamPerformance.quality"):
            ProjectHealthReport.from_dict(data)

    def test_risk_factor_bad_impact_reports_path(self, sample_report):
        bad = copy.deepcopy(sample_report)
        bad["metrics"]["milestones"][0]["riskFactors"][0]["impact"] = "CRITICAL"
        with pytest.raises(ReportValidationError, match=r"milestones\[0\]\.riskFactors\[0\]\.impact"):
            ProjectHealthReport.from_dict(bad)

    def test_recommendation_requires_status(self, sample_report):
        del sample_report["metrics"]["recommendations"][0]["status"]
        with pytest.raises(ReportValidationError, match="status"):
            ProjectHealthReport.from_dict(sample_report)

    def test_risk_factors_must_be_list(self):
        data = _minimal_report()
        data["metrics"]["riskFactors"] = {"factor": "x"}
        with pytest.raises(ReportValidationError, match="riskFactors"):
            ProjectHealthReport.from_dict(data)

    def test_report_must_be_object(self):
        with pytest.raises(ReportValidationError):
            ProjectHealthReport.from_dict(["GREEN", 92])

    def test_validation_error_is_value_error(self):
        assert issubclass(ReportValidationError, ValueError)
