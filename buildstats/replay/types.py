from dataclasses import dataclass, field

from buildstats.listener import BuildResult, TaskFinishEvent


@dataclass(frozen=True)
class EventLog:
    project: str
    events: list[TaskFinishEvent]
    requested_tasks: list[str] = field(default_factory=list)
    build_start_time: int | None = None
    build_end_time: int | None = None
    build_result: BuildResult | None = None

    def end_time(self) -> int | None:
        if self.build_end_time is not None:
            return self.build_end_time
        if self.events:
            return max(event.end_time for event in self.events)
        return self.build_start_time


class ReplayError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
