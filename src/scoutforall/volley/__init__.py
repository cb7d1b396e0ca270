from .lineup import Lineup
from .match import match_stats, match_status, next_set_number, serving_team_for_set
from .snapshot import Snapshot
from .stats import Stats
from .validation import EventValidator, SetDescriptorValidator

__all__ = [
    "EventValidator",
    "Lineup",
    "SetDescriptorValidator",
    "Snapshot",
    "Stats",
    "match_stats",
    "match_status",
    "next_set_number",
    "serving_team_for_set",
]
