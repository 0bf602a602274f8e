"""Report assembly: ReportDocument, generate_report and the vend-report CLI."""

from vend_core.report.api import count_missing_keys, generate_report
from vend_core.report.document import SCHEMA_VERSION, ReportDocument, ReportMetadata

__all__ = [
    "SCHEMA_VERSION",
    "ReportDocument",
    "ReportMetadata",
    "count_missing_keys",
    "generate_report",
]
