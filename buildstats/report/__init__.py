from .render import render_document
from .types import (
    BuildStatus,
    Failed,
    OpenOutcome,
    ReportState,
    RunTotals,
    Skipped,
    Success,
    TaskRecord,
    TaskStatus,
    render_status,
)
from .writer import ReportWriter

__all__ = [
    "ReportWriter",
    "ReportState",
    "OpenOutcome",
    "RunTotals",
    "TaskRecord",
    "TaskStatus",
    "Success",
    "Skipped",
    "Failed",
    "BuildStatus",
    "render_status",
    "render_document",
]
