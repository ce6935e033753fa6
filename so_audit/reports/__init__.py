"""
Report rendering and persistence for the consistency audit.
"""

from .generator import ReportGenerator
from .store import ReportStore, compare_reports, load_json_report, select_issues

__all__ = [
    "ReportGenerator",
    "ReportStore",
    "compare_reports",
    "load_json_report",
    "select_issues",
]
