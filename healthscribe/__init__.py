"""
HealthScribe: project health reports from issue-tracker and wiki exports.
"""

__version__ = "0.1.0"
