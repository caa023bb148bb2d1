from dataclasses import dataclass
from enum import Enum, auto


@dataclass(frozen=True)
class Success:
    up_to_date: bool = False
    from_cache: bool = False


@dataclass(frozen=True)
class Skipped:
    message: str | None = None


@dataclass(frozen=True)
class Failed:
    pass


TaskStatus = Success | Skipped | Failed


def render_status(status: TaskStatus) -> str:
    match status:
        case Success(up_to_date=up_to_date, from_cache=from_cache):
            out = "SUCCESS"
            if up_to_date:
                out += " UP-TO-DATE"
            if from_cache:
                out += " FROM-CACHE"
            return out
        case Skipped(message=message):
            return f"SKIPPED {message}" if message else "SKIPPED"
        case Failed():
            return "FAILED"
        case _:
            raise TypeError(f"Unknown task status: {status!r}")


@dataclass(frozen=True)
class TaskRecord:
    path: str
    duration_ms: int
    status: TaskStatus


@dataclass
class RunTotals:
    task_count: int = 0
    sum_of_durations: int = 0


class BuildStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class ReportState(Enum):
    UNOPENED = auto()
    OPEN = auto()
    SUPPRESSED = auto()
    FINALIZED = auto()
    DISCARDED = auto()


class OpenOutcome(Enum):
    OPENED = auto()
    SUPPRESSED = auto()
