from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Mapping, Sequence


class Phase(str, Enum):
    BREAK = "break"
    SIDE_OUT = "side-out"


class TeamSide(str, Enum):
    US = "us"
    THEM = "them"

    def opponent(self) -> TeamSide:
        return TeamSide.THEM if self is TeamSide.US else TeamSide.US


class EventType(str, Enum):
    SERVE = "S"
    PASS = "P"
    ATTACK = "A"
    DIG = "D"
    BLOCK = "B"
    FAULT = "F"
    OPPONENT_SCORE = "OS"
    OPPONENT_ERROR = "OE"
    SUBSTITUTION = "R"
    CHANGE_LIBERO = "CL"
    CHANGE_SETTER = "CS"

    @property
    def friendly_name(self) -> str:
        return _FRIENDLY_EVENT_NAMES[self]


_FRIENDLY_EVENT_NAMES = {
    EventType.SERVE: "serve",
    EventType.PASS: "pass",
    EventType.ATTACK: "attack",
    EventType.DIG: "dig",
    EventType.BLOCK: "block",
    EventType.FAULT: "fault",
    EventType.OPPONENT_SCORE: "opponent score",
    EventType.OPPONENT_ERROR: "opponent error",
    EventType.SUBSTITUTION: "substitution",
    EventType.CHANGE_LIBERO: "libero change",
    EventType.CHANGE_SETTER: "setter change",
}


class Evaluation(str, Enum):
    PERFECT = "#"
    POSITIVE = "+"
    EXCLAMATIVE = "!"
    OVER = "/"
    ERROR = "="
    NEGATIVE = "-"


class Zone(IntEnum):
    ONE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9


class Role(str, Enum):
    SETTER = "setter"
    OUTSIDE_HITTER = "outside-hitter"
    MIDDLE_BLOCKER = "middle-blocker"
    OPPOSITE_HITTER = "opposite-hitter"
    LIBERO = "libero"


class ErrorType(str, Enum):
    FORCED = "forced"
    UNFORCED = "unforced"


class Metric(str, Enum):
    POSITIVE = "positive"
    EFFICIENCY = "efficiency"


@dataclass(slots=True, frozen=True)
class EventEntry:
    """One scouted action. Substitutions carry the replaced player in
    ``player_id`` and the incoming player in ``target_player_id``."""

    timestamp: datetime
    event_type: EventType
    evaluation: Evaluation | None = None
    player_id: str | None = None
    target_player_id: str | None = None


@dataclass(slots=True, frozen=True)
class SubstitutionRecord:
    replacement: str
    replaced: str


@dataclass(slots=True)
class SetDescriptor:
    set_number: int
    serving_team: TeamSide
    initial_positions: list[str]
    setter_id: str
    libero_id: str
    fallback_libero_id: str | None = None

    @property
    def starting_phase(self) -> Phase:
        return Phase.BREAK if self.serving_team == TeamSide.US else Phase.SIDE_OUT


@dataclass(slots=True)
class PlayerEntry:
    player_id: str
    name: str
    number: int
    role: Role


@dataclass(slots=True)
class TeamRoster:
    team_id: str
    name: str
    players: list[PlayerEntry] = field(default_factory=list)

    def find(self, player_id: str) -> PlayerEntry | None:
        return next((p for p in self.players if p.player_id == player_id), None)


@dataclass(slots=True)
class ScoringRules:
    target_score: int = 25
    tie_break_target_score: int = 15
    tie_break_set_number: int = 5
    minimum_lead: int = 2
    max_substitutions: int = 6
    sets_to_win: int = 3
    partial_thresholds: tuple[int, ...] = (8, 16, 21)

    def target_for_set(self, set_number: int) -> int:
        if set_number == self.tie_break_set_number:
            return self.tie_break_target_score
        return self.target_score

    @property
    def max_sets(self) -> int:
        return self.sets_to_win * 2 - 1

    def validate(self) -> None:
        values = [
            self.target_score,
            self.tie_break_target_score,
            self.tie_break_set_number,
            self.minimum_lead,
            self.max_substitutions,
            self.sets_to_win,
        ]
        if any(v <= 0 for v in values):
            raise ValueError("scoring rules values must be positive")
        if self.tie_break_set_number > self.max_sets:
            raise ValueError("tie-break set number exceeds the maximum number of sets")
        if list(self.partial_thresholds) != sorted(set(self.partial_thresholds)):
            raise ValueError("partial thresholds must be strictly increasing")
        if any(t <= 0 for t in self.partial_thresholds):
            raise ValueError("partial thresholds must be positive")


@dataclass(slots=True)
class MatchStatus:
    us_wins: int
    them_wins: int
    next_set_number: int | None
    winner: TeamSide | None = None

    @property
    def finished(self) -> bool:
        return self.winner is not None


@dataclass(slots=True)
class ValidationIssue:
    code: str
    severity: str
    field_path: str
    entity_id: str
    message: str


@dataclass(slots=True)
class ValidationResult:
    ok: bool
    issues: list[ValidationIssue]


class ValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue], context: Mapping[str, Any] | None = None) -> None:
        message = "; ".join(f"{i.code}:{i.entity_id}:{i.message}" for i in issues)
        super().__init__(message)
        self.issues = issues
        self.context = dict(context or {})

    @property
    def codes(self) -> list[str]:
        return [i.code for i in self.issues]


@dataclass(slots=True)
class ForensicArtifact:
    artifact_id: str
    timestamp: datetime
    engine_scope: str
    error_code: str
    message: str
    state_snapshot: Mapping[str, Any]
    context: Mapping[str, Any]
    identifiers: Mapping[str, str]
    causal_fragment: Sequence[str]


@dataclass(slots=True)
class CoverageAuditCheck:
    check_id: str
    description: str
    passed: bool
    evidence: str


@dataclass(slots=True)
class CoverageAuditReport:
    report_id: str
    generated_at: datetime
    scope: str
    checks: list[CoverageAuditCheck]

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def failed_checks(self) -> list[CoverageAuditCheck]:
        return [check for check in self.checks if not check.passed]
