import re
from collections.abc import Iterable
from datetime import datetime

REPORT_EXTENSION = ".yaml"
PROVISIONAL_EXTENSION = ".yaml.inprogress"
TIMESTAMP_FORMAT = "%Y-%m-%d--%H-%M-%S"

_NAMESPACED = re.compile(r"[./=\s]")
_UNSAFE = re.compile(r"[\\/\s]+")


def format_timestamp(epoch_millis: int) -> str:
    # Local time, the way a developer reads the reports directory
    return datetime.fromtimestamp(epoch_millis / 1000).strftime(TIMESTAMP_FORMAT)


def task_segment(task_names: Iterable[str]) -> str:
    parts = []
    for name in task_names:
        if name.startswith("-"):
            continue
        last = name.rsplit(":", 1)[-1].lower()
        if not last or _NAMESPACED.search(last):
            continue
        parts.append(last)
    return "-".join(parts)


def report_stem(start_time_millis: int, project_name: str, task_names: Iterable[str]) -> str:
    project = _UNSAFE.sub("-", project_name.strip().lower())
    stem = f"{format_timestamp(start_time_millis)}-{project}"
    tasks = task_segment(task_names)
    if tasks:
        stem += f"-{tasks}"
    return stem
