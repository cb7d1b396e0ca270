from __future__ import annotations

from dataclasses import asdict
from typing import Collection

from scoutforall.contracts import (
    Evaluation,
    EventEntry,
    EventType,
    Phase,
    Role,
    ScoringRules,
    SetDescriptor,
    TeamSide,
    Zone,
)
from scoutforall.core import configuration_error, default_scoring_rules, get_logger
from scoutforall.volley.lineup import Lineup
from scoutforall.volley.stats import Stats
from scoutforall.volley.tables import (
    ATTACK_SETUPS,
    COUNTER_ATTACK_SETUPS,
    DISTRIBUTION_SETUPS,
    LINEUP_EVENT_TYPES,
    RALLY_EVENT_TYPES,
    A,
    B,
    D,
    F,
    OE,
    OS,
    P,
    S,
    error_type,
    initial_legal_events,
    legal_next_events,
    next_phase,
    point_winner,
)
from scoutforall.volley.validation import EventValidator, SetDescriptorValidator

logger = get_logger(__name__)


class Snapshot:
    """Score, lineup and statistics of one set, advanced one event at a time."""

    def __init__(self, descriptor: SetDescriptor, rules: ScoringRules | None = None) -> None:
        self.rules = rules or default_scoring_rules()
        result = SetDescriptorValidator().validate(descriptor, max_sets=self.rules.max_sets)
        if not result.ok:
            raise configuration_error(
                "; ".join(issue.message for issue in result.issues),
                error_code="INVALID_SET_DESCRIPTOR",
                identifiers={"set_number": str(descriptor.set_number)},
                context={"issues": [asdict(issue) for issue in result.issues]},
            )
        self.set_number = descriptor.set_number
        self.lineup = Lineup(
            descriptor.initial_positions,
            descriptor.starting_phase,
            descriptor.setter_id,
            descriptor.libero_id,
            descriptor.fallback_libero_id,
            max_substitutions=self.rules.max_substitutions,
        )
        self.score_us = 0
        self.score_them = 0
        self.stats = Stats()
        self.last_event: EventEntry | None = None
        self.partials: list[tuple[int, int]] = []
        self._partial_thresholds_reached: set[int] = set()
        self._validator = EventValidator()

    def initial_legal_events(self) -> frozenset[EventType]:
        return initial_legal_events(self.lineup.current_phase(), self.lineup.fallback_libero() is not None)

    def serving_team(self) -> TeamSide | None:
        """Team serving the next rally, ``None`` while a rally is in progress."""
        if self.last_event is None:
            return TeamSide.US if self.lineup.current_phase() == Phase.BREAK else TeamSide.THEM
        return point_winner(self.last_event.event_type, self.last_event.evaluation)

    def winner(self, set_number: int | None = None) -> TeamSide | None:
        target = self.rules.target_for_set(self.set_number if set_number is None else set_number)
        lead = self.rules.minimum_lead
        if self.score_us >= target and self.score_us - self.score_them >= lead:
            return TeamSide.US
        if self.score_them >= target and self.score_them - self.score_us >= lead:
            return TeamSide.THEM
        return None

    def player_choices(self, event_type: EventType) -> list[str]:
        return self.lineup.player_choices(event_type)

    def apply(self, event: EventEntry, legal_event_types: Collection[EventType]) -> frozenset[EventType]:
        self._validator.ensure_valid(self, event, legal_event_types)

        phase = self.lineup.current_phase()
        rotation = self.lineup.current_rotation()
        serving = self.serving_team()
        scorer = point_winner(event.event_type, event.evaluation)
        is_lineup_event = event.event_type in LINEUP_EVENT_TYPES

        self._update_score(scorer)
        if not is_lineup_event:
            self._record_stats(event, phase, rotation, serving, scorer)
        upcoming_phase = None if is_lineup_event else next_phase(event.event_type, event.evaluation, phase)
        self.lineup.apply_event_side_effects(event, upcoming_phase)

        legal = legal_next_events(event, self.lineup.fallback_libero() is not None)
        if not is_lineup_event:
            self.last_event = event
        if legal is None:
            legal = frozenset(legal_event_types)

        logger.debug(
            "event_applied",
            event_type=event.event_type.value,
            evaluation=event.evaluation.value if event.evaluation else None,
            score=f"{self.score_us}-{self.score_them}",
            phase=self.lineup.current_phase().value,
            rotation=self.lineup.current_rotation(),
        )
        decided = self.winner()
        if scorer is not None and decided is not None:
            logger.info("set_decided", set_number=self.set_number, winner=decided.value, score=f"{self.score_us}-{self.score_them}")
        return legal

    def _update_score(self, scorer: TeamSide | None) -> None:
        if scorer == TeamSide.US:
            self.score_us += 1
        elif scorer == TeamSide.THEM:
            self.score_them += 1
        else:
            return
        leading = max(self.score_us, self.score_them)
        for threshold in self.rules.partial_thresholds:
            if threshold not in self._partial_thresholds_reached and leading >= threshold:
                self._partial_thresholds_reached.add(threshold)
                self.partials.append((self.score_us, self.score_them))

    def attack_zone(self, player_id: str) -> Zone | None:
        role = self.lineup.role_of(player_id)
        back_row = self.lineup.is_back_row(player_id)
        swapped_wings = self.lineup.current_rotation() == 0 and self.lineup.current_phase() == Phase.SIDE_OUT
        if role in (Role.SETTER, Role.MIDDLE_BLOCKER):
            return None if back_row else Zone.THREE
        if role == Role.OUTSIDE_HITTER:
            if back_row:
                return Zone.EIGHT
            return Zone.TWO if swapped_wings else Zone.FOUR
        if role == Role.OPPOSITE_HITTER:
            if back_row:
                return Zone.NINE
            return Zone.FOUR if swapped_wings else Zone.TWO
        return None

    def _record_stats(
        self,
        event: EventEntry,
        phase: Phase,
        rotation: int,
        serving: TeamSide | None,
        scorer: TeamSide | None,
    ) -> None:
        stats = self.stats
        event_type = event.event_type
        evaluation = event.evaluation
        player_id = event.player_id
        if event_type == S and player_id is None:
            player_id = self.lineup.serving_player()
        previous = self.last_event

        if serving is not None:
            stats.phases.add(phase, rotation)

        if (
            event_type in (P, D, S)
            or (event_type in (A, B) and evaluation == Evaluation.POSITIVE)
            or (event_type == OS and serving == TeamSide.THEM)
            or (event_type == F and serving == TeamSide.US)
        ):
            stats.possessions.add(phase, rotation)

        if event_type == OE:
            stats.opponent_errors.add(phase, rotation)

        kind = error_type(event_type, evaluation)
        if kind is not None and player_id is not None:
            stats.errors_table.add(phase, rotation, player_id, kind)

        if scorer == TeamSide.US:
            stats.scored_points_table.add(phase, rotation)
            if (event_type == OE and serving != TeamSide.THEM) or event_type in (S, A, B):
                stats.earned_points.add(phase, rotation)

        zone = None
        if event_type == A and player_id is not None:
            zone = self.attack_zone(player_id)
        # attacks are only counted with a zone
        unzoned_attack = event_type == A and zone is None
        if event_type in RALLY_EVENT_TYPES and evaluation is not None and player_id is not None and not unzoned_attack:
            stats.events.add(event_type, phase, rotation, player_id, zone, evaluation)
        elif event_type == F:
            stats.events.add(event_type, phase, rotation, player_id, None, None)

        if event_type == A and evaluation is not None and player_id is not None and zone is not None and previous is not None:
            setup = (previous.event_type, previous.evaluation)
            if setup in COUNTER_ATTACK_SETUPS:
                stats.counter_attack.add(phase, rotation, player_id, zone, evaluation)
            if setup in ATTACK_SETUPS and previous.evaluation is not None:
                stats.attack.add(phase, rotation, player_id, zone, evaluation, previous.evaluation)
            if setup in DISTRIBUTION_SETUPS and previous.evaluation is not None:
                stats.distribution.add(phase, rotation, player_id, zone, previous.evaluation, evaluation)

        self._record_first_rally(event, phase, rotation, serving, previous)

    def _record_first_rally(
        self,
        event: EventEntry,
        phase: Phase,
        rotation: int,
        serving: TeamSide | None,
        previous: EventEntry | None,
    ) -> None:
        if phase != Phase.SIDE_OUT:
            return
        first_rally = self.stats.first_rally
        event_type = event.event_type
        if event_type == P:
            if event.evaluation == Evaluation.ERROR:
                first_rally.add(rotation, Evaluation.ERROR, P, Evaluation.ERROR)
            return
        if serving is None and previous is not None and previous.event_type == P:
            finalizing_type = event_type if event_type in (A, OE, OS, F) else None
            finalizing_evaluation = event.evaluation if event_type == A else None
            first_rally.add(rotation, previous.evaluation, finalizing_type, finalizing_evaluation)
        elif serving == TeamSide.THEM and event_type in (OE, OS, F):
            first_rally.add(rotation, None, event_type, None)

    def summary(self) -> dict[str, object]:
        decided = self.winner()
        return {
            "set_number": self.set_number,
            "score_us": self.score_us,
            "score_them": self.score_them,
            "phase": self.lineup.current_phase().value,
            "rotation": self.lineup.current_rotation(),
            "serving_team": self.serving_team().value if self.serving_team() else None,
            "winner": decided.value if decided else None,
            "partials": [list(pair) for pair in self.partials],
            "last_event": (
                [self.last_event.event_type.value, self.last_event.evaluation.value if self.last_event.evaluation else None]
                if self.last_event
                else None
            ),
            "lineup": self.lineup.to_dict(),
            "stats": self.stats.table_sizes(),
        }

    def fingerprint(self) -> dict[str, object]:
        return {"summary": self.summary(), "stats": self.stats.fingerprint()}
