from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Iterable

from scoutforall.contracts import (
    Evaluation,
    EventEntry,
    EventType,
    PlayerEntry,
    Role,
    SetDescriptor,
    TeamRoster,
    TeamSide,
)
from scoutforall.session import ScoutingSession
from scoutforall.volley import Snapshot

STARTING_SIX = ["S", "OH1", "MB2", "OPP", "OH2", "MB1"]
BASE_TIME = datetime(2025, 3, 1, 18, 0, tzinfo=UTC)


def make_descriptor(
    serving_team: TeamSide = TeamSide.US,
    *,
    set_number: int = 1,
    positions: list[str] | None = None,
    setter_id: str = "S",
    libero_id: str = "L",
    fallback_libero_id: str | None = None,
) -> SetDescriptor:
    return SetDescriptor(
        set_number=set_number,
        serving_team=serving_team,
        initial_positions=list(positions or STARTING_SIX),
        setter_id=setter_id,
        libero_id=libero_id,
        fallback_libero_id=fallback_libero_id,
    )


def make_roster() -> TeamRoster:
    roles = {
        "S": Role.SETTER,
        "OH1": Role.OUTSIDE_HITTER,
        "MB2": Role.MIDDLE_BLOCKER,
        "OPP": Role.OPPOSITE_HITTER,
        "OH2": Role.OUTSIDE_HITTER,
        "MB1": Role.MIDDLE_BLOCKER,
        "L": Role.LIBERO,
        "L2": Role.LIBERO,
        "SUB1": Role.OUTSIDE_HITTER,
        "SUB2": Role.MIDDLE_BLOCKER,
        "SUB3": Role.SETTER,
    }
    return TeamRoster(
        team_id="T01",
        name="Home",
        players=[PlayerEntry(player_id=pid, name=pid.lower(), number=n, role=role) for n, (pid, role) in enumerate(roles.items(), start=1)],
    )


def make_event(
    event_type: EventType,
    evaluation: Evaluation | None = None,
    player_id: str | None = None,
    target_player_id: str | None = None,
    *,
    index: int = 0,
) -> EventEntry:
    return EventEntry(
        timestamp=BASE_TIME + timedelta(seconds=index),
        event_type=event_type,
        evaluation=evaluation,
        player_id=player_id,
        target_player_id=target_player_id,
    )


def make_events(steps: Iterable[tuple], *, start: int = 0) -> list[EventEntry]:
    return [make_event(*step, index=start + i) for i, step in enumerate(steps)]


def drive(snapshot: Snapshot, steps: Iterable[tuple], legal: frozenset[EventType] | None = None) -> frozenset[EventType]:
    current = legal if legal is not None else snapshot.initial_legal_events()
    for event in make_events(steps):
        current = snapshot.apply(event, current)
    return current


def scout_all(session: ScoutingSession, steps: Iterable[tuple]) -> None:
    for step in steps:
        session.scout(*step)


def win_points(session: ScoutingSession, count: int) -> None:
    for _ in range(count):
        session.scout(EventType.OPPONENT_ERROR)


def lose_points(session: ScoutingSession, count: int) -> None:
    for _ in range(count):
        session.scout(EventType.FAULT)
