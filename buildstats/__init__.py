from .config import RunConfig, read_config
from .coordinator import BuildEventsRegistry, RunCoordinator, RunOutcome
from .gate import is_active

__all__ = [
    "RunConfig",
    "read_config",
    "is_active",
    "BuildEventsRegistry",
    "RunCoordinator",
    "RunOutcome",
]
