from dataclasses import dataclass, field


@dataclass(frozen=True)
class TaskSuccessResult:
    up_to_date: bool = False
    from_cache: bool = False


@dataclass(frozen=True)
class TaskSkippedResult:
    message: str | None = None


@dataclass(frozen=True)
class TaskFailureResult:
    failures: tuple[str, ...] = ()


TaskResult = TaskSuccessResult | TaskSkippedResult | TaskFailureResult


@dataclass(frozen=True)
class TaskFinishEvent:
    task_path: str
    start_time: int
    end_time: int
    result: TaskResult = field(default_factory=TaskFailureResult)


@dataclass(frozen=True)
class BuildResult:
    failure: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None
