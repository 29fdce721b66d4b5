"""
Shared fixtures for HealthScribe tests.

StubOracle stands in for the language model so every test is deterministic.
SAMPLE_REPORT is the demo "GREEN/92" report; it only ever exists here as a
fixture, never as a pipeline fallback.
"""

import copy
import json
import sys
import threading
from pathlib import Path
from typing import Callable

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from healthscribe.errors import OracleUnavailable


SAMPLE_REPORT = {
    "projectHealth": "GREEN",
    "score": 92,
    "metrics": {
        "velocity": 78,
        "issueStatus": {"open": 23, "inProgress": 67, "closed": 10},
        "teamPerformance": {"collaboration": 85, "productivity": 80, "quality": 88},
        "riskFactors": [
            {
                "factor": "Accessibility audit backlog",
                "impact": "MEDIUM",
                "status": "IN_PROGRESS",
                "mitigation": "Dedicate one engineer per sprint to audit fixes",
            }
        ],
        "milestones": [
            {
                "name": "WCAG 2.2 compliance",
                "dueDate": "2026-12-01",
                "status": "IN_PROGRESS",
                "riskFactors": [
                    {"factor": "Screen reader regressions", "impact": "HIGH", "status": "NOT_STARTED"}
                ],
            }
        ],
        "recommendations": [
            {
                "recommendation": "Automate contrast checks in CI",
                "priority": "HIGH",
                "status": "NOT_STARTED",
            }
        ],
    },
    "analysis": "Delivery is on track; accessibility work is the main open risk.",
}


class StubOracle:
    """
    Deterministic CompletionOracle.

    Extraction calls return responder(user_content); calls whose system
    instruction asks for the JSON analysis return synthesis_response.
    Every call is recorded as (system_instruction, user_content).
    """

    def __init__(
        self,
        responder: Callable[[str], str] | None = None,
        synthesis_response: str | None = None,
        fail_on: Callable[[str, str], bool] | None = None,
    ):
        self.responder = responder or (lambda text: f"metrics[{text}]")
        self.synthesis_response = (
            synthesis_response if synthesis_response is not None else json.dumps(SAMPLE_REPORT)
        )
        self.fail_on = fail_on
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def complete(self, system_instruction: str, user_content: str) -> str:
        with self._lock:
            self.calls.append((system_instruction, user_content))
        if self.fail_on and self.fail_on(system_instruction, user_content):
            raise OracleUnavailable("stub oracle failure")
        if system_instruction.startswith("Create a project health analysis"):
            return self.synthesis_response
        return self.responder(user_content)

    @property
    def extraction_calls(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0].startswith("Extract key")]

    @property
    def synthesis_calls(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0].startswith("Create a project health")]


@pytest.fixture
def sample_report() -> dict:
    return copy.deepcopy(SAMPLE_REPORT)


@pytest.fixture
def stub_oracle() -> StubOracle:
    return StubOracle()
