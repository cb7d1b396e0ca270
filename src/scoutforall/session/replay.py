from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

from scoutforall.contracts import (
    Evaluation,
    EventEntry,
    EventType,
    ScoringRules,
    SetDescriptor,
    TeamSide,
    ValidationError,
)
from scoutforall.core import EngineIntegrityError, build_forensic_artifact, get_logger, out_of_order_indexes
from scoutforall.volley import Snapshot

logger = get_logger(__name__)


def event_to_dict(event: EventEntry) -> dict[str, Any]:
    return {
        "timestamp": event.timestamp.isoformat(),
        "event_type": event.event_type.value,
        "evaluation": event.evaluation.value if event.evaluation else None,
        "player_id": event.player_id,
        "target_player_id": event.target_player_id,
    }


def event_from_dict(raw: Mapping[str, Any]) -> EventEntry:
    evaluation = raw.get("evaluation")
    return EventEntry(
        timestamp=datetime.fromisoformat(raw["timestamp"]),
        event_type=EventType(raw["event_type"]),
        evaluation=Evaluation(evaluation) if evaluation is not None else None,
        player_id=raw.get("player_id"),
        target_player_id=raw.get("target_player_id"),
    )


def descriptor_to_dict(descriptor: SetDescriptor) -> dict[str, Any]:
    return {
        "set_number": descriptor.set_number,
        "serving_team": descriptor.serving_team.value,
        "initial_positions": list(descriptor.initial_positions),
        "setter_id": descriptor.setter_id,
        "libero_id": descriptor.libero_id,
        "fallback_libero_id": descriptor.fallback_libero_id,
    }


def descriptor_from_dict(raw: Mapping[str, Any]) -> SetDescriptor:
    return SetDescriptor(
        set_number=int(raw["set_number"]),
        serving_team=TeamSide(raw["serving_team"]),
        initial_positions=list(raw["initial_positions"]),
        setter_id=raw["setter_id"],
        libero_id=raw["libero_id"],
        fallback_libero_id=raw.get("fallback_libero_id"),
    )


def fold_events(
    descriptor: SetDescriptor,
    events: Iterable[EventEntry],
    rules: ScoringRules | None = None,
) -> tuple[Snapshot, frozenset[EventType]]:
    """Apply a stored event log to a fresh snapshot.

    A stored log was accepted once, so any rejection here means the log or the
    engine changed underneath it and is reported as an integrity failure.
    """
    events = list(events)
    snapshot = Snapshot(descriptor, rules)
    disordered = list(out_of_order_indexes(e.timestamp for e in events))
    if disordered:
        raise EngineIntegrityError(
            build_forensic_artifact(
                engine_scope="replay",
                error_code="EVENT_LOG_OUT_OF_ORDER",
                message=f"event log timestamps go backwards at index {disordered[0]}",
                state_snapshot={},
                context={"indexes": disordered},
                identifiers={"set_number": str(descriptor.set_number)},
                causal_fragment=["event_log", "timestamps"],
            )
        )

    legal = snapshot.initial_legal_events()
    for index, event in enumerate(events):
        try:
            legal = snapshot.apply(event, legal)
        except ValidationError as exc:
            logger.warning("replay_aborted", event_index=index, codes=exc.codes, set_number=descriptor.set_number)
            raise EngineIntegrityError(
                build_forensic_artifact(
                    engine_scope="replay",
                    error_code="REPLAY_EVENT_REJECTED",
                    message=f"event {index} was rejected while replaying: {exc}",
                    state_snapshot=snapshot.summary(),
                    context={
                        "event_index": index,
                        "event": event_to_dict(event),
                        "legal_event_types": sorted(t.value for t in legal),
                        "issues": [asdict(issue) for issue in exc.issues],
                    },
                    identifiers={"set_number": str(descriptor.set_number)},
                    causal_fragment=["replay", *exc.codes],
                )
            ) from exc
    logger.debug("replay_completed", events=len(events), score=f"{snapshot.score_us}-{snapshot.score_them}")
    return snapshot, legal


class ReplayHarness:
    def __init__(self, descriptor: SetDescriptor, rules: ScoringRules | None = None) -> None:
        self.descriptor = descriptor
        self.rules = rules
        self.events: list[EventEntry] = []

    def record(self, event: EventEntry) -> None:
        self.events.append(event)

    def rebuild(self) -> Snapshot:
        snapshot, _ = fold_events(self.descriptor, self.events, self.rules)
        return snapshot

    def replay(self) -> tuple[dict, dict]:
        summary_a = self.fingerprint(self.rebuild())
        summary_b = self.fingerprint(self.rebuild())
        return summary_a, summary_b

    def verify_determinism(self) -> bool:
        summary_a, summary_b = self.replay()
        return summary_a == summary_b

    @staticmethod
    def fingerprint(snapshot: Snapshot) -> dict:
        return snapshot.fingerprint()

    def to_dict(self) -> dict[str, Any]:
        return {
            "descriptor": descriptor_to_dict(self.descriptor),
            "events": [event_to_dict(e) for e in self.events],
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any], rules: ScoringRules | None = None) -> ReplayHarness:
        harness = ReplayHarness(descriptor_from_dict(data["descriptor"]), rules)
        for raw in data["events"]:
            harness.events.append(event_from_dict(raw))
        return harness

    def save(self, path: Path) -> None:
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @staticmethod
    def load(path: Path, rules: ScoringRules | None = None) -> ReplayHarness:
        try:
            return ReplayHarness.from_dict(json.loads(path.read_text(encoding="utf-8")), rules)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise EngineIntegrityError(
                build_forensic_artifact(
                    engine_scope="replay",
                    error_code="EVENT_LOG_UNREADABLE",
                    message=f"cannot read event log {path}: {exc}",
                    state_snapshot={},
                    context={"path": str(path), "reason": type(exc).__name__},
                    identifiers={},
                    causal_fragment=["event_log", "decode"],
                )
            ) from exc
