from .driver import replay
from .loader import load_event_log
from .types import EventLog, ReplayError

__all__ = ["replay", "load_event_log", "EventLog", "ReplayError"]
