from .live import ScoutingSession
from .replay import (
    ReplayHarness,
    descriptor_from_dict,
    descriptor_to_dict,
    event_from_dict,
    event_to_dict,
    fold_events,
)

__all__ = [
    "ReplayHarness",
    "ScoutingSession",
    "descriptor_from_dict",
    "descriptor_to_dict",
    "event_from_dict",
    "event_to_dict",
    "fold_events",
]
