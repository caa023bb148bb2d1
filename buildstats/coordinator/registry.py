import logging
from collections.abc import Callable
from typing import Any

from buildstats.listener import BuildResult, TaskFinishEvent

logger = logging.getLogger(__name__)

TaskListener = Callable[[TaskFinishEvent], None]
BuildFinishedCallback = Callable[[BuildResult | None], Any]


class BuildEventsRegistry:
    """Host-side hook points: task completion and build completion.

    A failing subscriber is logged and skipped so it can never break the host.
    """

    def __init__(self, *, log: logging.Logger | None = None):
        self._log = log or logger
        self._task_listeners: list[TaskListener] = []
        self._build_callbacks: list[BuildFinishedCallback] = []
        self._build_done = False

    def on_task_completion(self, listener: TaskListener) -> None:
        self._task_listeners.append(listener)

    def on_build_finished(self, callback: BuildFinishedCallback) -> None:
        self._build_callbacks.append(callback)

    def task_finished(self, event: TaskFinishEvent) -> None:
        for listener in self._task_listeners:
            try:
                listener(event)
            except Exception:
                self._log.exception("Task completion listener failed for %s", event.task_path)

    def build_finished(self, result: BuildResult | None) -> list[Any]:
        if self._build_done:
            return []
        self._build_done = True

        out = []
        for callback in self._build_callbacks:
            try:
                out.append(callback(result))
            except Exception:
                self._log.exception("Build finished callback failed")
        return out
