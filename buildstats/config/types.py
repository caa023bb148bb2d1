from dataclasses import dataclass, field

DISABLED_KEY = "disabled"
OUTPUT_HOME_PATH_KEY = "outputHomePath"
ENABLED_FOR_TASKS_WITH_NAME_KEY = "enabledForTasksWithName"
DISABLED_FOR_TASKS_WITH_NAME_KEY = "disabledForTasksWithName"

KNOWN_KEYS = frozenset(
    {
        DISABLED_KEY,
        OUTPUT_HOME_PATH_KEY,
        ENABLED_FOR_TASKS_WITH_NAME_KEY,
        DISABLED_FOR_TASKS_WITH_NAME_KEY,
    }
)


@dataclass(frozen=True)
class RunConfig:
    active: bool
    output_home_path: str
    include_suffixes: frozenset[str] = field(default_factory=frozenset)
    exclude_suffixes: frozenset[str] = field(default_factory=frozenset)


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
