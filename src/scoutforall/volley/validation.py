from __future__ import annotations

from typing import TYPE_CHECKING, Collection

from scoutforall.contracts import (
    EventEntry,
    EventType,
    SetDescriptor,
    ValidationError,
    ValidationIssue,
    ValidationResult,
)
from scoutforall.volley.tables import (
    ALLOWED_EVALUATIONS,
    LINEUP_EVENT_TYPES,
    RALLY_EVENT_TYPES,
    TEAMLESS_EVENT_TYPES,
    requires_evaluation,
)

if TYPE_CHECKING:
    from scoutforall.volley.snapshot import Snapshot


def _issue(code: str, field_path: str, entity_id: str, message: str) -> ValidationIssue:
    return ValidationIssue(code=code, severity="blocking", field_path=field_path, entity_id=entity_id, message=message)


class SetDescriptorValidator:
    def validate(self, descriptor: SetDescriptor, *, max_sets: int = 5) -> ValidationResult:
        issues: list[ValidationIssue] = []
        entity = f"set_{descriptor.set_number}"
        if not 1 <= descriptor.set_number <= max_sets:
            issues.append(_issue("INVALID_SET_NUMBER", "set_number", entity, f"set number must be between 1 and {max_sets}"))
        positions = list(descriptor.initial_positions)
        if len(positions) != 6:
            issues.append(_issue("INVALID_LINEUP_SIZE", "initial_positions", entity, "the starting lineup must hold six players"))
        if len(set(positions)) != len(positions):
            issues.append(_issue("DUPLICATED_PLAYER", "initial_positions", entity, "a player appears twice in the starting lineup"))
        if descriptor.setter_id not in positions:
            issues.append(
                _issue("SETTER_NOT_IN_LINEUP", "setter_id", entity, f"setter {descriptor.setter_id} is not into the lineup")
            )
        for field_path, libero in (("libero_id", descriptor.libero_id), ("fallback_libero_id", descriptor.fallback_libero_id)):
            if libero is not None and libero in positions:
                issues.append(_issue("LIBERO_IN_LINEUP", field_path, entity, f"libero {libero} cannot start on court"))
        if descriptor.fallback_libero_id is not None and descriptor.fallback_libero_id == descriptor.libero_id:
            issues.append(_issue("DUPLICATED_LIBERO", "fallback_libero_id", entity, "the fallback libero must differ from the libero"))
        return ValidationResult(ok=not issues, issues=issues)


class EventValidator:
    """Checks an event against the snapshot it is about to be applied to, without touching it."""

    def validate(self, snapshot: Snapshot, event: EventEntry, legal_event_types: Collection[EventType]) -> ValidationResult:
        issues: list[ValidationIssue] = []
        entity = event.event_type.value
        if snapshot.winner() is not None:
            issues.append(_issue("SET_ALREADY_DECIDED", "event_type", entity, "the set already has a winner"))
        if event.event_type not in legal_event_types:
            issues.append(
                _issue(
                    "ILLEGAL_EVENT_TYPE",
                    "event_type",
                    entity,
                    f"{event.event_type.friendly_name} is not legal here",
                )
            )

        allowed = ALLOWED_EVALUATIONS[event.event_type]
        if requires_evaluation(event.event_type):
            if event.evaluation is None:
                issues.append(_issue("MISSING_EVALUATION", "evaluation", entity, "this event needs an evaluation"))
            elif event.evaluation not in allowed:
                issues.append(
                    _issue(
                        "EVALUATION_NOT_ALLOWED",
                        "evaluation",
                        entity,
                        f"evaluation {event.evaluation.value} is not allowed for {event.event_type.friendly_name}",
                    )
                )
        elif event.evaluation is not None:
            issues.append(_issue("UNEXPECTED_EVALUATION", "evaluation", entity, "this event takes no evaluation"))

        if event.event_type in TEAMLESS_EVENT_TYPES:
            if event.player_id is not None or event.target_player_id is not None:
                issues.append(_issue("UNEXPECTED_PLAYER", "player_id", entity, "opponent events name no player"))
        elif event.event_type in LINEUP_EVENT_TYPES:
            issues.extend(self._lineup_event_issues(snapshot, event))
        else:
            issues.extend(self._touch_issues(snapshot, event))

        if event.target_player_id is not None and event.event_type != EventType.SUBSTITUTION:
            issues.append(_issue("UNEXPECTED_TARGET", "target_player_id", entity, "only substitutions name a target player"))
        return ValidationResult(ok=not issues, issues=issues)

    def ensure_valid(self, snapshot: Snapshot, event: EventEntry, legal_event_types: Collection[EventType]) -> None:
        result = self.validate(snapshot, event, legal_event_types)
        if not result.ok:
            raise ValidationError(
                result.issues,
                context={
                    "event": event,
                    "legal_event_types": sorted(t.value for t in legal_event_types),
                },
            )

    def _touch_issues(self, snapshot: Snapshot, event: EventEntry) -> list[ValidationIssue]:
        lineup = snapshot.lineup
        entity = event.event_type.value
        player_id = event.player_id
        if player_id is None:
            if event.event_type in RALLY_EVENT_TYPES and event.event_type != EventType.SERVE:
                return [_issue("MISSING_PLAYER", "player_id", entity, "this event needs the touching player")]
            return []
        if not lineup.is_on_court(player_id):
            return [_issue("PLAYER_NOT_ON_COURT", "player_id", player_id, f"player {player_id} is not on court")]
        issues: list[ValidationIssue] = []
        if event.event_type in (EventType.SERVE, EventType.ATTACK, EventType.BLOCK) and player_id == lineup.current_libero():
            issues.append(
                _issue(
                    "LIBERO_NOT_ALLOWED",
                    "player_id",
                    player_id,
                    f"the libero cannot {event.event_type.friendly_name}",
                )
            )
        if event.event_type == EventType.BLOCK and lineup.is_back_row(player_id):
            issues.append(_issue("BACK_ROW_BLOCK", "player_id", player_id, "a back-row player cannot block"))
        if event.event_type == EventType.SERVE and player_id != lineup.serving_player():
            issues.append(
                _issue("NOT_THE_SERVER", "player_id", player_id, f"player {lineup.serving_player()} is due to serve")
            )
        return issues

    def _lineup_event_issues(self, snapshot: Snapshot, event: EventEntry) -> list[ValidationIssue]:
        lineup = snapshot.lineup
        entity = event.event_type.value
        if event.event_type == EventType.SUBSTITUTION:
            if event.player_id is None or event.target_player_id is None:
                return [
                    _issue(
                        "INCOMPLETE_SUBSTITUTION",
                        "player_id",
                        entity,
                        "a substitution needs both the replaced and the replacement player",
                    )
                ]
            problem = lineup.check_substitution(event.player_id, event.target_player_id)
            if problem is not None:
                return [_issue("SUBSTITUTION_REJECTED", "target_player_id", event.player_id, problem)]
            return []
        if event.event_type == EventType.CHANGE_LIBERO:
            issues = []
            if event.player_id is not None:
                issues.append(_issue("UNEXPECTED_PLAYER", "player_id", entity, "a libero change names no player"))
            if lineup.fallback_libero() is None:
                issues.append(_issue("NO_FALLBACK_LIBERO", "event_type", entity, "there is no fallback libero to swap in"))
            return issues
        if event.player_id is None:
            return [_issue("MISSING_PLAYER", "player_id", entity, "a setter change needs the new setter")]
        if not lineup.is_on_court(event.player_id):
            return [_issue("SETTER_NOT_ON_COURT", "player_id", event.player_id, "could not find the new setter in the lineup")]
        if event.player_id == lineup.current_libero():
            return [_issue("LIBERO_NOT_ALLOWED", "player_id", event.player_id, "the libero cannot be the setter")]
        return []
