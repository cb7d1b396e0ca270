from __future__ import annotations

from datetime import datetime

from scoutforall.contracts import (
    Evaluation,
    EventEntry,
    EventType,
    ScoringRules,
    SetDescriptor,
    TeamSide,
    ValidationError,
    ValidationIssue,
)
from scoutforall.core import EventBus, get_logger, tick_after
from scoutforall.session.replay import ReplayHarness, fold_events
from scoutforall.volley import Snapshot

logger = get_logger(__name__)


class ScoutingSession:
    """Live scouting of one set: the accepted event log plus the snapshot it produces."""

    def __init__(
        self,
        descriptor: SetDescriptor,
        rules: ScoringRules | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.rules = rules
        self.bus = bus or EventBus()
        self.events: list[EventEntry] = []
        self.snapshot = Snapshot(descriptor, rules)
        self.legal_event_types = self.snapshot.initial_legal_events()

    def record(self, event: EventEntry) -> None:
        if self.events and event.timestamp < self.events[-1].timestamp:
            raise ValidationError(
                [
                    ValidationIssue(
                        code="EVENT_OUT_OF_ORDER",
                        severity="blocking",
                        field_path="timestamp",
                        entity_id=event.event_type.value,
                        message="event is older than the last recorded one",
                    )
                ],
                context={"event": event},
            )
        try:
            legal = self.snapshot.apply(event, self.legal_event_types)
        except ValidationError as exc:
            logger.warning(
                "event_rejected",
                event_type=event.event_type.value,
                codes=exc.codes,
                score=f"{self.snapshot.score_us}-{self.snapshot.score_them}",
            )
            raise
        self.events.append(event)
        self.legal_event_types = legal
        self.bus.publish_applied(event)

    def scout(
        self,
        event_type: EventType,
        evaluation: Evaluation | None = None,
        player_id: str | None = None,
        target_player_id: str | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> EventEntry:
        previous = self.events[-1].timestamp if self.events else None
        event = EventEntry(
            timestamp=tick_after(previous, timestamp),
            event_type=event_type,
            evaluation=evaluation,
            player_id=player_id,
            target_player_id=target_player_id,
        )
        self.record(event)
        return event

    def undo(self) -> EventEntry | None:
        if not self.events:
            return None
        removed = self.events.pop()
        self.snapshot, self.legal_event_types = fold_events(self.descriptor, self.events, self.rules)
        return removed

    def is_finished(self) -> bool:
        return self.snapshot.winner() is not None

    def winner(self) -> TeamSide | None:
        return self.snapshot.winner()

    def player_choices(self, event_type: EventType) -> list[str]:
        return self.snapshot.player_choices(event_type)

    def harness(self) -> ReplayHarness:
        harness = ReplayHarness(self.descriptor, self.rules)
        for event in self.events:
            harness.record(event)
        return harness
