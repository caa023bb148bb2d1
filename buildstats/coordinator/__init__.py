from .coordinator import RunCoordinator, RunOutcome, current_time_millis
from .registry import BuildEventsRegistry

__all__ = ["RunCoordinator", "RunOutcome", "BuildEventsRegistry", "current_time_millis"]
