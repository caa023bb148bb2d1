import logging
import threading
from collections.abc import Sequence

from buildstats.report import (
    Failed,
    OpenOutcome,
    ReportWriter,
    Skipped,
    Success,
    TaskRecord,
    TaskStatus,
)

from .types import TaskFinishEvent, TaskResult, TaskSkippedResult, TaskSuccessResult

logger = logging.getLogger(__name__)


def classify(result: TaskResult) -> TaskStatus:
    match result:
        case TaskSuccessResult(up_to_date=up_to_date, from_cache=from_cache):
            return Success(up_to_date=up_to_date, from_cache=from_cache)
        case TaskSkippedResult(message=message):
            return Skipped(message=message)
        case _:
            return Failed()


def to_record(event: TaskFinishEvent) -> TaskRecord:
    # Clock anomalies can make end_time precede start_time
    duration = max(0, event.end_time - event.start_time)
    return TaskRecord(event.task_path, duration, classify(event.result))


class TaskCompletionListener:
    def __init__(
        self,
        writer: ReportWriter,
        project_name: str,
        *,
        start_time_millis: int | None = None,
        log: logging.Logger | None = None,
    ):
        self.writer = writer
        self.project_name = project_name
        self._log = log or logger
        self._lock = threading.Lock()
        self._start_time_millis = start_time_millis
        self._last_known_task: str | None = None
        self._task_count = 0
        self._total_duration_millis = 0

    @property
    def start_time_millis(self) -> int | None:
        with self._lock:
            return self._start_time_millis

    @property
    def last_known_task(self) -> str | None:
        with self._lock:
            return self._last_known_task

    @property
    def task_count(self) -> int:
        with self._lock:
            return self._task_count

    @property
    def total_duration_millis(self) -> int:
        with self._lock:
            return self._total_duration_millis

    def on_finish(self, event: TaskFinishEvent) -> None:
        record = to_record(event)

        # Held across the writer calls so the last known task is also the
        # last record in the report. The writer never calls back in here.
        with self._lock:
            if self._start_time_millis is None:
                # Best approximation of when the run began
                self._start_time_millis = event.start_time
                self._log.debug("Derived build start time %d from %s", event.start_time, event.task_path)
            self._last_known_task = record.path
            self._task_count += 1
            self._total_duration_millis += record.duration_ms

            if self.writer.open(self.project_name, self._start_time_millis) is OpenOutcome.OPENED:
                self.writer.add_task(record)

    def final_task_names(self, requested: Sequence[str]) -> list[str]:
        if requested:
            return list(requested)
        last = self.last_known_task
        return [last] if last is not None else []
