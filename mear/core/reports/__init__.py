"""
Report Generation Module

Generates the downloadable PDF case report from the store's report payload.
"""
from .case_report import CaseReport, CaseReportGenerator

__all__ = [
    "CaseReport",
    "CaseReportGenerator",
]
