import logging
from concurrent.futures import ThreadPoolExecutor

from buildstats.config import RunConfig
from buildstats.coordinator import (
    BuildEventsRegistry,
    RunCoordinator,
    RunOutcome,
    current_time_millis,
)

from .types import EventLog

logger = logging.getLogger(__name__)


def replay(
    event_log: EventLog,
    config: RunConfig,
    *,
    workers: int = 1,
    log: logging.Logger | None = None,
) -> RunOutcome:
    """Play a recorded run back through a coordinator, acting as the host."""
    log = log or logger
    end_time = event_log.end_time()
    coordinator = RunCoordinator(
        config,
        event_log.project,
        event_log.requested_tasks,
        start_time_millis=event_log.build_start_time,
        clock=(lambda: end_time) if end_time is not None else current_time_millis,
        log=log,
    )
    registry = BuildEventsRegistry(log=log)

    if not coordinator.start(registry):
        return RunOutcome(active=False, task_names=list(event_log.requested_tasks))

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            list(pool.map(registry.task_finished, event_log.events))
    else:
        for event in event_log.events:
            registry.task_finished(event)

    registry.build_finished(event_log.build_result)
    return coordinator.on_build_finished(event_log.build_result)
