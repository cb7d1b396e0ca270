from __future__ import annotations

from collections import Counter
from dataclasses import astuple, dataclass, fields
from enum import Enum
from typing import Generic, Iterable, Iterator, TypeVar

from scoutforall.contracts import ErrorType, Evaluation, EventType, Metric, Phase, Zone
from scoutforall.volley.tables import (
    ERROR_EVALUATIONS,
    OE,
    OS,
    F,
    P,
    error_type as error_type_of,
    metric_score,
    provides_direct_points,
)

K = TypeVar("K")

Ratio = tuple[float, int, int]


@dataclass(slots=True, frozen=True)
class EventKey:
    event_type: EventType
    phase: Phase
    rotation: int
    player_id: str | None
    zone: Zone | None
    evaluation: Evaluation | None


@dataclass(slots=True, frozen=True)
class CounterAttackKey:
    phase: Phase
    rotation: int
    player_id: str
    zone: Zone
    evaluation: Evaluation


@dataclass(slots=True, frozen=True)
class FirstRallyKey:
    rotation: int
    reception_evaluation: Evaluation | None
    finalizing_event_type: EventType | None
    finalizing_evaluation: Evaluation | None


@dataclass(slots=True, frozen=True)
class AttackKey:
    phase: Phase
    rotation: int
    player_id: str
    zone: Zone
    evaluation: Evaluation
    previous_evaluation: Evaluation


@dataclass(slots=True, frozen=True)
class DistributionKey:
    phase: Phase
    rotation: int
    player_id: str
    zone: Zone
    evaluation: Evaluation
    attack_evaluation: Evaluation


@dataclass(slots=True, frozen=True)
class ErrorKey:
    phase: Phase
    rotation: int
    player_id: str
    error_type: ErrorType


@dataclass(slots=True, frozen=True)
class PhaseRotationKey:
    phase: Phase
    rotation: int


def _plain(value: object) -> object:
    if isinstance(value, Zone):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    return value


class CountTable(Generic[K]):
    """Additive key -> count fact table."""

    key_type: type

    def __init__(self) -> None:
        self._counts: Counter[K] = Counter()

    def _increment(self, key: K) -> None:
        self._counts[key] += 1

    def merge(self, other: CountTable[K]) -> None:
        self._counts.update(other._counts)

    def _filter(self, **constraints: object) -> Iterator[tuple[K, int]]:
        active = {name: value for name, value in constraints.items() if value is not None}
        for key, count in self._counts.items():
            if all(getattr(key, name) == value for name, value in active.items()):
                yield key, count

    def total(self) -> int:
        return sum(self._counts.values())

    def __len__(self) -> int:
        return len(self._counts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CountTable):
            return NotImplemented
        return self._counts == other._counts

    def columns(self) -> list[str]:
        return [f.name for f in fields(self.key_type)] + ["count"]

    def rows(self) -> list[tuple[object, ...]]:
        rows = [tuple(_plain(v) for v in astuple(key)) + (count,) for key, count in self._counts.items()]
        return sorted(rows, key=repr)


class EventsTable(CountTable[EventKey]):
    key_type = EventKey

    def add(
        self,
        event_type: EventType,
        phase: Phase,
        rotation: int,
        player_id: str | None,
        zone: Zone | None,
        evaluation: Evaluation | None,
    ) -> None:
        self._increment(EventKey(event_type, phase, rotation, player_id, zone, evaluation))

    def query(
        self,
        event_type: EventType | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        player_id: str | None = None,
        zone: Zone | None = None,
        evaluation: Evaluation | None = None,
    ) -> Iterator[tuple[EventKey, int]]:
        return self._filter(
            event_type=event_type,
            phase=phase,
            rotation=rotation,
            player_id=player_id,
            zone=zone,
            evaluation=evaluation,
        )


class CounterAttackTable(CountTable[CounterAttackKey]):
    key_type = CounterAttackKey

    def add(self, phase: Phase, rotation: int, player_id: str, zone: Zone, evaluation: Evaluation) -> None:
        self._increment(CounterAttackKey(phase, rotation, player_id, zone, evaluation))

    def query(
        self,
        phase: Phase | None = None,
        rotation: int | None = None,
        player_id: str | None = None,
        zone: Zone | None = None,
        evaluation: Evaluation | None = None,
    ) -> Iterator[tuple[CounterAttackKey, int]]:
        return self._filter(phase=phase, rotation=rotation, player_id=player_id, zone=zone, evaluation=evaluation)


class FirstRallyTable(CountTable[FirstRallyKey]):
    key_type = FirstRallyKey

    def add(
        self,
        rotation: int,
        reception_evaluation: Evaluation | None,
        finalizing_event_type: EventType | None,
        finalizing_evaluation: Evaluation | None,
    ) -> None:
        self._increment(FirstRallyKey(rotation, reception_evaluation, finalizing_event_type, finalizing_evaluation))

    def query(
        self,
        rotation: int | None = None,
        reception_evaluation: Evaluation | None = None,
        finalizing_event_type: EventType | None = None,
        finalizing_evaluation: Evaluation | None = None,
    ) -> Iterator[tuple[FirstRallyKey, int]]:
        return self._filter(
            rotation=rotation,
            reception_evaluation=reception_evaluation,
            finalizing_event_type=finalizing_event_type,
            finalizing_evaluation=finalizing_evaluation,
        )


class AttackTable(CountTable[AttackKey]):
    key_type = AttackKey

    def add(
        self,
        phase: Phase,
        rotation: int,
        player_id: str,
        zone: Zone,
        evaluation: Evaluation,
        previous_evaluation: Evaluation,
    ) -> None:
        self._increment(AttackKey(phase, rotation, player_id, zone, evaluation, previous_evaluation))

    def query(
        self,
        phase: Phase | None = None,
        rotation: int | None = None,
        player_id: str | None = None,
        zone: Zone | None = None,
        evaluation: Evaluation | None = None,
        previous_evaluation: Evaluation | None = None,
    ) -> Iterator[tuple[AttackKey, int]]:
        return self._filter(
            phase=phase,
            rotation=rotation,
            player_id=player_id,
            zone=zone,
            evaluation=evaluation,
            previous_evaluation=previous_evaluation,
        )


class DistributionTable(CountTable[DistributionKey]):
    """Where the setter sent the ball, keyed by the quality of the touch before the set."""

    key_type = DistributionKey

    def add(
        self,
        phase: Phase,
        rotation: int,
        player_id: str,
        zone: Zone,
        evaluation: Evaluation,
        attack_evaluation: Evaluation,
    ) -> None:
        self._increment(DistributionKey(phase, rotation, player_id, zone, evaluation, attack_evaluation))

    def query(
        self,
        phase: Phase | None = None,
        rotation: int | None = None,
        player_id: str | None = None,
        zone: Zone | None = None,
        evaluation: Evaluation | None = None,
        attack_evaluation: Evaluation | None = None,
    ) -> Iterator[tuple[DistributionKey, int]]:
        return self._filter(
            phase=phase,
            rotation=rotation,
            player_id=player_id,
            zone=zone,
            evaluation=evaluation,
            attack_evaluation=attack_evaluation,
        )

    def zone_stats(
        self,
        zone: Zone,
        phase: Phase | None = None,
        rotation: int | None = None,
        player_id: str | None = None,
        evaluation: Evaluation | None = None,
    ) -> tuple[float, float] | None:
        """Share of balls sent to ``zone`` and the kill rate there, both in percent."""
        total_balls = 0
        balls_in_zone = 0
        kills = 0
        for key, count in self.query(phase, rotation, player_id, None, evaluation, None):
            total_balls += count
            if key.zone == zone:
                balls_in_zone += count
                if key.attack_evaluation == Evaluation.PERFECT:
                    kills += count
        if balls_in_zone == 0:
            return None
        return balls_in_zone / total_balls * 100.0, kills / balls_in_zone * 100.0


class ErrorsTable(CountTable[ErrorKey]):
    key_type = ErrorKey

    def add(self, phase: Phase, rotation: int, player_id: str, error_type: ErrorType) -> None:
        self._increment(ErrorKey(phase, rotation, player_id, error_type))

    def query(
        self,
        phase: Phase | None = None,
        rotation: int | None = None,
        player_id: str | None = None,
        error_type: ErrorType | None = None,
    ) -> Iterator[tuple[ErrorKey, int]]:
        return self._filter(phase=phase, rotation=rotation, player_id=player_id, error_type=error_type)


class PhaseRotationTable(CountTable[PhaseRotationKey]):
    key_type = PhaseRotationKey

    def add(self, phase: Phase, rotation: int) -> None:
        self._increment(PhaseRotationKey(phase, rotation))

    def query(self, phase: Phase | None = None, rotation: int | None = None) -> Iterator[tuple[PhaseRotationKey, int]]:
        return self._filter(phase=phase, rotation=rotation)

    def count(self, phase: Phase | None = None, rotation: int | None = None) -> int:
        return sum(count for _, count in self.query(phase, rotation))


TABLE_NAMES = (
    "events",
    "counter_attack",
    "first_rally",
    "attack",
    "distribution",
    "errors",
    "opponent_errors",
    "possessions",
    "phases",
    "earned_points",
    "scored_points",
)


def _ratio(numerator: int, denominator: int, scale: float = 1.0) -> Ratio | None:
    if denominator == 0:
        return None
    return numerator / denominator * scale, numerator, denominator


class Stats:
    def __init__(self) -> None:
        self.events = EventsTable()
        self.counter_attack = CounterAttackTable()
        self.first_rally = FirstRallyTable()
        self.attack = AttackTable()
        self.distribution = DistributionTable()
        self.errors_table = ErrorsTable()
        self.opponent_errors = PhaseRotationTable()
        self.possessions = PhaseRotationTable()
        self.phases = PhaseRotationTable()
        self.earned_points = PhaseRotationTable()
        self.scored_points_table = PhaseRotationTable()

    def tables(self) -> dict[str, CountTable]:
        return {
            "events": self.events,
            "counter_attack": self.counter_attack,
            "first_rally": self.first_rally,
            "attack": self.attack,
            "distribution": self.distribution,
            "errors": self.errors_table,
            "opponent_errors": self.opponent_errors,
            "possessions": self.possessions,
            "phases": self.phases,
            "earned_points": self.earned_points,
            "scored_points": self.scored_points_table,
        }

    def merge(self, other: Stats) -> None:
        mine = self.tables()
        for name, table in other.tables().items():
            mine[name].merge(table)

    @classmethod
    def merged(cls, items: Iterable[Stats]) -> Stats:
        total = cls()
        for stats in items:
            total.merge(stats)
        return total

    def table_sizes(self) -> dict[str, int]:
        return {name: table.total() for name, table in self.tables().items()}

    def fingerprint(self) -> dict[str, list[tuple[object, ...]]]:
        return {name: table.rows() for name, table in self.tables().items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Stats):
            return NotImplemented
        return self.tables() == other.tables()

    # ratios

    def number_of_possessions_per_earned_point(self, phase: Phase | None = None, rotation: int | None = None) -> Ratio | None:
        return _ratio(self.possessions.count(phase, rotation), self.earned_points.count(phase, rotation))

    def number_of_phases_per_scored_point(self, phase: Phase | None = None, rotation: int | None = None) -> Ratio | None:
        return _ratio(self.phases.count(phase, rotation), self.scored_points_table.count(phase, rotation))

    def attack_efficiency(
        self,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
        previous_evaluation: Evaluation | None = None,
    ) -> tuple[float, int, int] | None:
        total = 0
        score = 0
        for key, count in self.attack.query(phase, rotation, player_id, zone, None, previous_evaluation):
            total += count
            score += metric_score(Metric.EFFICIENCY, EventType.ATTACK, key.evaluation) * count
        if total == 0:
            return None
        return score / total * 100.0, total, score

    def counter_attack_conversion_rate(
        self,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
    ) -> Ratio | None:
        total = 0
        kills = 0
        for key, count in self.counter_attack.query(phase, rotation, player_id, zone):
            total += count
            if key.evaluation == Evaluation.PERFECT:
                kills += count
        result = _ratio(kills, total, 100.0)
        if result is None:
            return None
        return result[0], total, kills

    # counts

    def event_count(
        self,
        event_type: EventType,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
        evaluation: Evaluation | None = None,
    ) -> int:
        return sum(count for _, count in self.events.query(event_type, phase, rotation, player_id, zone, evaluation))

    def scored_points(
        self,
        event_type: EventType,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
    ) -> int | None:
        if not provides_direct_points(event_type):
            return None
        return self.event_count(event_type, player_id, phase, rotation, zone, Evaluation.PERFECT)

    def total_scored_points(
        self,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
    ) -> int:
        return sum(
            self.scored_points(event_type, player_id, phase, rotation, zone) or 0
            for event_type in (EventType.SERVE, EventType.ATTACK, EventType.BLOCK)
        )

    def errors(
        self,
        event_type: EventType,
        error_type: ErrorType | None = None,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
    ) -> int:
        return sum(
            self.event_count(event_type, player_id, phase, rotation, zone, evaluation)
            for evaluation in ERROR_EVALUATIONS.get(event_type, ())
            if error_type is None or error_type_of(event_type, evaluation) == error_type
        )

    def total_errors(
        self,
        error_type: ErrorType | None = None,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
    ) -> int:
        total = sum(self.errors(event_type, error_type, player_id, phase, rotation, zone) for event_type in ERROR_EVALUATIONS)
        if error_type in (None, error_type_of(F, None)):
            total += self.event_count(F, player_id, phase, rotation, zone)
        return total

    # percentages

    def event_positiveness(
        self,
        event_type: EventType,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
        metric: Metric = Metric.POSITIVE,
    ) -> tuple[float, int, int] | None:
        total = 0
        score = 0
        for key, count in self.events.query(event_type, phase, rotation, player_id, zone):
            if key.evaluation is None:
                continue
            total += count
            score += metric_score(metric, event_type, key.evaluation) * count
        if total == 0:
            return None
        return score / total * 100.0, total, score

    def event_percentage(
        self,
        event_type: EventType,
        evaluation: Evaluation,
        player_id: str | None = None,
        phase: Phase | None = None,
        rotation: int | None = None,
        zone: Zone | None = None,
    ) -> Ratio | None:
        total = 0
        matching = 0
        for key, count in self.events.query(event_type, phase, rotation, player_id, zone):
            total += count
            if key.evaluation == evaluation:
                matching += count
        result = _ratio(matching, total, 100.0)
        if result is None:
            return None
        return result[0], total, matching

    # side-out first rally

    def sideout_first_rally_positiveness(
        self,
        rotation: int | None = None,
        reception_evaluation: Evaluation | None = None,
        finalizing_event_type: EventType | None = None,
        metric: Metric = Metric.POSITIVE,
    ) -> tuple[float, int, int] | None:
        total = 0
        score = 0
        for key, count in self.first_rally.query(rotation, reception_evaluation, finalizing_event_type):
            total += count
            score += self._first_rally_score(key, metric) * count
        if total == 0:
            return None
        return score / total * 100.0, total, score

    @staticmethod
    def _first_rally_score(key: FirstRallyKey, metric: Metric) -> int:
        if key.finalizing_event_type is not None and key.finalizing_evaluation is not None:
            return metric_score(metric, key.finalizing_event_type, key.finalizing_evaluation)
        if key.finalizing_event_type == OE:
            return 1
        if key.finalizing_event_type in (OS, F):
            return -1 if metric == Metric.EFFICIENCY else 0
        if key.finalizing_event_type is None and key.reception_evaluation is not None:
            return metric_score(metric, P, key.reception_evaluation)
        return 0

    def sideout_first_rally_count(
        self,
        rotation: int | None = None,
        reception_evaluation: Evaluation | None = None,
        finalizing_event_type: EventType | None = None,
        finalizing_evaluation: Evaluation | None = None,
    ) -> int:
        return sum(
            count
            for _, count in self.first_rally.query(rotation, reception_evaluation, finalizing_event_type, finalizing_evaluation)
        )

    def sideout_first_rally_errors(
        self,
        rotation: int | None = None,
        reception_evaluation: Evaluation | None = None,
        finalizing_event_type: EventType | None = None,
        finalizing_evaluation: Evaluation | None = None,
        error_type: ErrorType | None = None,
    ) -> int:
        total = 0
        for key, count in self.first_rally.query(rotation, reception_evaluation, finalizing_event_type, finalizing_evaluation):
            if key.finalizing_event_type is None:
                continue
            found = error_type_of(key.finalizing_event_type, key.finalizing_evaluation)
            if found is not None and (error_type is None or found == error_type):
                total += count
        return total
