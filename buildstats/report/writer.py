import logging
import os
import tempfile
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from buildstats.config import RunConfig

from .naming import PROVISIONAL_EXTENSION, REPORT_EXTENSION, report_stem
from .render import header_lines, render_document, task_lines
from .types import BuildStatus, OpenOutcome, ReportState, RunTotals, TaskRecord

logger = logging.getLogger(__name__)


class ReportWriter:
    """Owns the report artifact of one run.

    While open, records are appended and flushed to a provisional
    ``.yaml.inprogress`` file so a crashed run still leaves a readable
    prefix. ``finalize`` writes the complete document next to it under a name
    no other report holds, adding a ``-2``, ``-3``... suffix when needed.
    Every public method takes the same lock, and none of them raises on I/O
    failure.
    """

    def __init__(
        self,
        config: RunConfig,
        requested_task_names: Sequence[str] = (),
        *,
        log: logging.Logger | None = None,
    ):
        self.config = config
        self.requested_task_names = tuple(requested_task_names)
        self._log = log or logger
        self._lock = threading.Lock()
        self._state = ReportState.UNOPENED
        self._records: list[TaskRecord] = []
        self._totals = RunTotals()
        self._project_name: str | None = None
        self._start_time_millis: int | None = None
        self._provisional_path: Path | None = None
        self._report_path: Path | None = None
        self._handle: TextIO | None = None
        self._details_started = False

    @property
    def state(self) -> ReportState:
        with self._lock:
            return self._state

    @property
    def totals(self) -> RunTotals:
        with self._lock:
            return RunTotals(self._totals.task_count, self._totals.sum_of_durations)

    @property
    def provisional_path(self) -> Path | None:
        with self._lock:
            return self._provisional_path

    @property
    def report_path(self) -> Path | None:
        with self._lock:
            return self._report_path

    def open(self, project_name: str, start_time_millis: int) -> OpenOutcome:
        with self._lock:
            if self._state is ReportState.UNOPENED:
                self._state = self._open(project_name, start_time_millis)
            if self._state is ReportState.OPEN:
                return OpenOutcome.OPENED
            return OpenOutcome.SUPPRESSED

    def add_task(self, record: TaskRecord) -> None:
        with self._lock:
            if self._state is not ReportState.OPEN:
                return

            self._records.append(record)
            self._totals.task_count += 1
            self._totals.sum_of_durations += record.duration_ms

            lines = task_lines(record)
            if not self._details_started:
                lines.insert(0, "taskDetails:")
            try:
                self._append(lines)
                self._details_started = True
            except OSError:
                self._log.exception("Failed to append task %s to build stats report", record.path)

    def finalize(
        self,
        task_names: Sequence[str],
        status: BuildStatus | str,
        duration_millis: int,
    ) -> Path | None:
        status = BuildStatus(status)
        with self._lock:
            if self._state is not ReportState.OPEN:
                self._log.debug("finalize ignored in state %s", self._state.name)
                return None

            self._state = ReportState.FINALIZED
            self._close()

            assert self._project_name is not None and self._start_time_millis is not None
            home = Path(self.config.output_home_path)
            stem = report_stem(self._start_time_millis, self._project_name, task_names)
            text = render_document(
                self._project_name,
                self._start_time_millis,
                list(task_names),
                self._records,
                status,
                max(0, duration_millis),
            )
            try:
                final_path = _publish(home, stem, text)
            except OSError:
                self._log.exception(
                    "Failed to finalize build stats report %s, keeping %s",
                    home / (stem + REPORT_EXTENSION),
                    self._provisional_path,
                )
                return None

            self._remove_provisional()
            self._report_path = final_path
            self._log.info("Build stats report written to %s", final_path)
            return final_path

    def discard(self) -> None:
        with self._lock:
            if self._state in (
                ReportState.SUPPRESSED,
                ReportState.FINALIZED,
                ReportState.DISCARDED,
            ):
                return

            was_open = self._state is ReportState.OPEN
            self._state = ReportState.DISCARDED
            if was_open:
                self._close()
                self._remove_provisional()
            self._log.debug("Build stats report discarded")

    def _open(self, project_name: str, start_time_millis: int) -> ReportState:
        home = Path(self.config.output_home_path)
        try:
            home.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._log.warning("Cannot create build stats directory %s: %s", home, exc)
            return ReportState.SUPPRESSED

        if not os.access(home, os.W_OK):
            self._log.warning("Cannot write to build stats directory %s", home)
            return ReportState.SUPPRESSED

        path = home / (
            report_stem(start_time_millis, project_name, self.requested_task_names)
            + PROVISIONAL_EXTENSION
        )
        try:
            self._handle = path.open("x", encoding="utf-8")
        except OSError as exc:
            self._log.warning("Cannot create build stats report %s: %s", path, exc)
            return ReportState.SUPPRESSED

        self._provisional_path = path
        self._project_name = project_name
        self._start_time_millis = start_time_millis
        try:
            self._append(header_lines(project_name, start_time_millis))
        except OSError as exc:
            self._log.warning("Cannot write build stats report %s: %s", path, exc)
            self._close()
            self._remove_provisional()
            return ReportState.SUPPRESSED

        self._log.debug("Build stats report opened at %s", path)
        return ReportState.OPEN

    def _append(self, lines: list[str]) -> None:
        assert self._handle is not None
        self._handle.write("\n".join(lines) + "\n")
        self._handle.flush()

    def _close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        except OSError as exc:
            self._log.warning("Failed to close build stats report: %s", exc)
        self._handle = None

    def _remove_provisional(self) -> None:
        if self._provisional_path is None:
            return
        try:
            self._provisional_path.unlink(missing_ok=True)
        except OSError as exc:
            self._log.warning("Failed to remove %s: %s", self._provisional_path, exc)


_MAX_NAME_ATTEMPTS = 100


def _publish(home: Path, stem: str, text: str) -> Path:
    """Write ``text`` under the first free ``<stem>[-N].yaml`` name in ``home``.

    The document is written to a temporary file first and then hard-linked
    into place, so the final name appears complete and an existing report is
    never overwritten.
    """
    fd, tmp_name = tempfile.mkstemp(dir=home, prefix=f".{stem}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())

        for attempt in range(1, _MAX_NAME_ATTEMPTS + 1):
            suffix = "" if attempt == 1 else f"-{attempt}"
            path = home / f"{stem}{suffix}{REPORT_EXTENSION}"
            try:
                os.link(tmp_name, path)
            except FileExistsError:
                continue
            return path

        raise FileExistsError(f"No free report name for {home / stem}{REPORT_EXTENSION}")
    finally:
        Path(tmp_name).unlink(missing_ok=True)
