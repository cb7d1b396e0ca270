from __future__ import annotations

from datetime import timedelta

import pytest

from scoutforall.contracts import Evaluation, EventType, TeamSide, ValidationError
from scoutforall.core import EventBus
from scoutforall.session import ScoutingSession
from tests.helpers import BASE_TIME, lose_points, make_descriptor, make_event, scout_all, win_points


def test_record_publishes_applied_events():
    bus = EventBus()
    seen = []
    bus.subscribe_applied(seen.append)
    session = ScoutingSession(make_descriptor(TeamSide.US), bus=bus)
    scout_all(session, [(EventType.SERVE, Evaluation.PERFECT, "S"), (EventType.OPPONENT_ERROR,)])
    assert bus.emitted_count() == 2
    assert bus.emitted_count(EventType.SERVE) == 1
    assert [e.event_type for e in seen] == [EventType.SERVE, EventType.OPPONENT_ERROR]
    assert session.snapshot.score_us == 2


def test_rejected_event_is_not_logged():
    session = ScoutingSession(make_descriptor(TeamSide.US))
    with pytest.raises(ValidationError):
        session.scout(EventType.PASS, Evaluation.PERFECT, "OH1")
    assert session.events == []
    assert session.bus.emitted_count() == 0


def test_timestamps_never_go_backwards():
    session = ScoutingSession(make_descriptor(TeamSide.US))
    session.record(make_event(EventType.OPPONENT_ERROR, index=10))
    with pytest.raises(ValidationError) as ex:
        session.record(make_event(EventType.OPPONENT_ERROR, index=5))
    assert ex.value.codes == ["EVENT_OUT_OF_ORDER"]

    stamped = session.scout(EventType.OPPONENT_ERROR, timestamp=BASE_TIME)
    assert stamped.timestamp == BASE_TIME + timedelta(seconds=10, microseconds=1)


def test_undo_replays_the_shorter_log():
    session = ScoutingSession(make_descriptor(TeamSide.US))
    scout_all(
        session,
        [
            (EventType.SERVE, Evaluation.ERROR, "S"),
            (EventType.PASS, Evaluation.PERFECT, "OH1"),
            (EventType.ATTACK, Evaluation.PERFECT, "OPP"),
        ],
    )
    assert session.snapshot.lineup.current_rotation() == 5
    removed = session.undo()
    assert removed is not None and removed.event_type == EventType.ATTACK
    assert (session.snapshot.score_us, session.snapshot.score_them) == (0, 1)
    assert session.snapshot.lineup.current_rotation() == 0
    assert session.legal_event_types == {EventType.ATTACK, EventType.OPPONENT_ERROR, EventType.FAULT}
    assert session.snapshot.stats.attack.total() == 0


def test_undo_on_empty_log():
    session = ScoutingSession(make_descriptor(TeamSide.THEM))
    assert session.undo() is None


def test_deuce_runs_until_two_point_lead():
    session = ScoutingSession(make_descriptor(TeamSide.US))
    for _ in range(24):
        win_points(session, 1)
        lose_points(session, 1)
    win_points(session, 1)
    assert not session.is_finished()
    lose_points(session, 1)
    win_points(session, 2)
    assert session.is_finished()
    assert session.winner() == TeamSide.US
    assert (session.snapshot.score_us, session.snapshot.score_them) == (27, 25)
    assert session.snapshot.partials == [(8, 7), (16, 15), (21, 20)]


def test_player_choices_follow_the_lineup():
    session = ScoutingSession(make_descriptor(TeamSide.US))
    assert session.player_choices(EventType.SERVE) == ["S"]
