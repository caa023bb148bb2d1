import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from buildstats.config import RunConfig
from buildstats.gate import is_active
from buildstats.listener import BuildResult, TaskCompletionListener
from buildstats.report import BuildStatus, ReportState, ReportWriter

from .registry import BuildEventsRegistry

logger = logging.getLogger(__name__)


def current_time_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class RunOutcome:
    active: bool
    report_path: Path | None = None
    status: BuildStatus | None = None
    duration_millis: int = 0
    task_names: list[str] = field(default_factory=list)


class RunCoordinator:
    """Wires the gate, the completion listener and the report writer into a
    host's lifecycle.

    ``start_time_millis`` is the host's own record of when the run began. When
    it is missing the listener derives one from the first finished task and
    the build duration falls back to the sum of task durations.
    """

    def __init__(
        self,
        config: RunConfig,
        project_name: str,
        requested_task_names: Sequence[str] = (),
        *,
        start_time_millis: int | None = None,
        clock: Callable[[], int] = current_time_millis,
        log: logging.Logger | None = None,
    ):
        self.config = config
        self.project_name = project_name
        self.requested_task_names = list(requested_task_names)
        self.start_time_millis = start_time_millis
        self.clock = clock
        self._log = log or logger
        self._lock = threading.Lock()
        self.writer: ReportWriter | None = None
        self.listener: TaskCompletionListener | None = None
        self._outcome: RunOutcome | None = None

    def start(self, registry: BuildEventsRegistry) -> bool:
        if not is_active(self.config, self.requested_task_names):
            self._log.info(
                "Build stats disabled for tasks '%s'", ", ".join(self.requested_task_names)
            )
            return False

        self.writer = ReportWriter(self.config, self.requested_task_names, log=self._log)
        self.listener = TaskCompletionListener(
            self.writer,
            self.project_name,
            start_time_millis=self.start_time_millis,
            log=self._log,
        )
        if self.start_time_millis is not None:
            self.writer.open(self.project_name, self.start_time_millis)

        registry.on_task_completion(self.listener.on_finish)
        registry.on_build_finished(self.on_build_finished)
        self._log.debug(
            "Build stats tracking %s, tasks=%s start=%s",
            self.project_name,
            self.requested_task_names,
            self.start_time_millis,
        )
        return True

    def on_build_finished(
        self, result: BuildResult | None, now_millis: int | None = None
    ) -> RunOutcome:
        with self._lock:
            if self._outcome is None:
                self._outcome = self._finish(result, now_millis)
            return self._outcome

    def _finish(self, result: BuildResult | None, now_millis: int | None) -> RunOutcome:
        if self.writer is None or self.listener is None:
            return RunOutcome(active=False)

        now = now_millis if now_millis is not None else self.clock()
        task_names = self.listener.final_task_names(self.requested_task_names)

        if result is None:
            self._log.warning("Build result missing, reporting build as FAILED")
            status = BuildStatus.FAILED
        else:
            status = BuildStatus.SUCCESS if result.succeeded else BuildStatus.FAILED

        if self.start_time_millis is not None:
            duration = max(0, now - self.start_time_millis)
        else:
            duration = self.listener.total_duration_millis

        if not is_active(self.config, task_names):
            self._log.info("Build stats disabled for tasks '%s', discarding report", ", ".join(task_names))
            self.writer.discard()
            return RunOutcome(active=False, status=status, duration_millis=duration, task_names=task_names)

        if self.writer.state is ReportState.UNOPENED:
            # Nothing finished and the host never told us when the run began
            self.writer.open(self.project_name, now - duration)

        path = self.writer.finalize(task_names, status, duration)
        return RunOutcome(
            active=True,
            report_path=path,
            status=status,
            duration_millis=duration,
            task_names=task_names,
        )
