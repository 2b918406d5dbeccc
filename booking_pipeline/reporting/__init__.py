"""
Read-only reporting and audit over the pipeline stores.
"""

from .audit import FieldCorrection, OccurrenceAudit, RecordAudit, audit_record
from .views import QualityReport, ReportingViews

__all__ = [
    "ReportingViews",
    "QualityReport",
    "audit_record",
    "RecordAudit",
    "OccurrenceAudit",
    "FieldCorrection",
]
