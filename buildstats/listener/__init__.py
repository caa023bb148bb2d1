from .listener import TaskCompletionListener, classify, to_record
from .types import (
    BuildResult,
    TaskFailureResult,
    TaskFinishEvent,
    TaskResult,
    TaskSkippedResult,
    TaskSuccessResult,
)

__all__ = [
    "TaskCompletionListener",
    "classify",
    "to_record",
    "BuildResult",
    "TaskFinishEvent",
    "TaskResult",
    "TaskSuccessResult",
    "TaskSkippedResult",
    "TaskFailureResult",
]
