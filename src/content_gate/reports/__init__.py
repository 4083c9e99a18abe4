"""Reports — stdout and JSON renderings of a ScanReport."""

from content_gate.reports.exporters import export_json, export_result, summary_line, write_json

__all__ = [
    "export_json",
    "export_result",
    "summary_line",
    "write_json",
]
