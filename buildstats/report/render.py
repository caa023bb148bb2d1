"""YAML text emission for build reports.

Field order is fixed and every string is double-quoted, so lines are built by
hand rather than with ``yaml.safe_dump``.
"""

import json
from collections.abc import Iterable, Sequence

from .types import BuildStatus, TaskRecord, render_status

FORMAT_VERSION = 1


def quote(value: str) -> str:
    # JSON string escaping is a valid YAML double-quoted scalar
    return json.dumps(value, ensure_ascii=False)


def header_lines(project_name: str, start_time_millis: int) -> list[str]:
    return [
        f"version: {FORMAT_VERSION}",
        f"project: {quote(project_name)}",
        f"buildStartTime: {start_time_millis}",
    ]


def task_names_lines(task_names: Sequence[str]) -> list[str]:
    if not task_names:
        return ["buildTaskNames: []"]
    return ["buildTaskNames:", *(f"- {quote(name)}" for name in task_names)]


def task_lines(record: TaskRecord) -> list[str]:
    return [
        f"- path: {quote(record.path)}",
        f"  duration: {record.duration_ms}",
        f"  status: {quote(render_status(record.status))}",
    ]


def task_details_lines(records: Iterable[TaskRecord]) -> list[str]:
    lines = []
    for record in records:
        lines.extend(task_lines(record))
    if not lines:
        return ["taskDetails: []"]
    return ["taskDetails:", *lines]


def footer_lines(status: BuildStatus, duration_millis: int) -> list[str]:
    return [
        f"buildStatus: {quote(status.value)}",
        f"buildDuration: {duration_millis}",
    ]


def render_document(
    project_name: str,
    start_time_millis: int,
    task_names: Sequence[str],
    records: Iterable[TaskRecord],
    status: BuildStatus,
    duration_millis: int,
) -> str:
    lines = [
        *header_lines(project_name, start_time_millis),
        *task_names_lines(task_names),
        *task_details_lines(records),
        *footer_lines(status, duration_millis),
    ]
    return "\n".join(lines) + "\n"
