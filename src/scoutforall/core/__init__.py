from .errors import EngineIntegrityError, LineupError, build_forensic_artifact, configuration_error
from .events import EventBus
from .ids import make_id, now_utc, out_of_order_indexes, tick_after
from .logs import configure_logging, get_logger
from .rules import default_scoring_rules, load_scoring_rules

__all__ = [
    "EngineIntegrityError",
    "EventBus",
    "LineupError",
    "build_forensic_artifact",
    "configuration_error",
    "configure_logging",
    "default_scoring_rules",
    "get_logger",
    "load_scoring_rules",
    "make_id",
    "now_utc",
    "out_of_order_indexes",
    "tick_after",
]
