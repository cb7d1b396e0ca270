from __future__ import annotations

import pytest

from scoutforall.contracts import Evaluation, EventType, TeamSide, ValidationError
from scoutforall.volley import EventValidator, SetDescriptorValidator, Snapshot
from tests.helpers import drive, make_descriptor, make_event


def _codes(snapshot: Snapshot, event, legal) -> list[str]:
    return [issue.code for issue in EventValidator().validate(snapshot, event, legal).issues]


def test_valid_descriptor_passes():
    result = SetDescriptorValidator().validate(make_descriptor())
    assert result.ok
    assert result.issues == []


def test_descriptor_issues_are_collected():
    descriptor = make_descriptor(set_number=6, positions=["S", "OH1", "MB2", "OPP", "OH2", "OH2"], libero_id="OPP")
    result = SetDescriptorValidator().validate(descriptor)
    codes = [issue.code for issue in result.issues]
    assert not result.ok
    assert codes == ["INVALID_SET_NUMBER", "DUPLICATED_PLAYER", "LIBERO_IN_LINEUP"]


def test_descriptor_rejects_same_libero_twice():
    result = SetDescriptorValidator().validate(make_descriptor(fallback_libero_id="L"))
    assert [issue.code for issue in result.issues] == ["DUPLICATED_LIBERO"]


def test_illegal_event_type_is_reported_with_the_legal_set():
    snapshot = Snapshot(make_descriptor(TeamSide.US))
    legal = snapshot.initial_legal_events()
    event = make_event(EventType.PASS, Evaluation.PERFECT, "OH1")
    with pytest.raises(ValidationError) as ex:
        snapshot.apply(event, legal)
    assert ex.value.codes == ["ILLEGAL_EVENT_TYPE"]
    assert ex.value.context["event"] == event
    assert "S" in ex.value.context["legal_event_types"]


def test_evaluation_presence_and_range():
    snapshot = Snapshot(make_descriptor(TeamSide.US))
    legal = snapshot.initial_legal_events()
    assert _codes(snapshot, make_event(EventType.SERVE, None, "S"), legal) == ["MISSING_EVALUATION"]
    assert _codes(snapshot, make_event(EventType.SERVE, Evaluation.EXCLAMATIVE, "S"), legal) == ["EVALUATION_NOT_ALLOWED"]
    assert _codes(snapshot, make_event(EventType.OPPONENT_ERROR, Evaluation.PERFECT), legal) == ["UNEXPECTED_EVALUATION"]
    assert _codes(snapshot, make_event(EventType.OPPONENT_ERROR, None, "OH1"), legal) == ["UNEXPECTED_PLAYER"]


def test_players_must_be_on_court_and_allowed():
    snapshot = Snapshot(make_descriptor(TeamSide.US))
    legal = snapshot.initial_legal_events()
    assert _codes(snapshot, make_event(EventType.SERVE, Evaluation.PERFECT, "OH1"), legal) == ["NOT_THE_SERVER"]
    assert _codes(snapshot, make_event(EventType.SERVE, Evaluation.PERFECT, "MB1"), legal) == ["PLAYER_NOT_ON_COURT"]

    legal = drive(snapshot, [(EventType.SERVE, Evaluation.POSITIVE, "S"), (EventType.DIG, Evaluation.PERFECT, "L")], legal)
    assert _codes(snapshot, make_event(EventType.ATTACK, Evaluation.PERFECT, "L"), legal) == ["LIBERO_NOT_ALLOWED"]
    assert _codes(snapshot, make_event(EventType.ATTACK, Evaluation.PERFECT, None), legal) == ["MISSING_PLAYER"]
    assert _codes(snapshot, make_event(EventType.ATTACK, Evaluation.PERFECT, "OH1", "OH2"), legal) == ["UNEXPECTED_TARGET"]


def test_lineup_events():
    snapshot = Snapshot(make_descriptor(TeamSide.US))
    legal = snapshot.initial_legal_events()
    assert _codes(snapshot, make_event(EventType.SUBSTITUTION, None, "OH1"), legal) == ["INCOMPLETE_SUBSTITUTION"]
    assert _codes(snapshot, make_event(EventType.SUBSTITUTION, None, "OH1", "OPP"), legal) == ["SUBSTITUTION_REJECTED"]
    assert _codes(snapshot, make_event(EventType.SUBSTITUTION, None, "OH1", "SUB1"), legal) == []
    assert _codes(snapshot, make_event(EventType.CHANGE_SETTER, None, "L"), legal) == ["LIBERO_NOT_ALLOWED"]
    assert _codes(snapshot, make_event(EventType.CHANGE_SETTER, None, "SUB1"), legal) == ["SETTER_NOT_ON_COURT"]
    assert _codes(snapshot, make_event(EventType.CHANGE_LIBERO), legal | {EventType.CHANGE_LIBERO}) == ["NO_FALLBACK_LIBERO"]


def test_substitution_event_is_applied_between_rallies():
    snapshot = Snapshot(make_descriptor(TeamSide.US))
    legal = snapshot.initial_legal_events()
    after = drive(snapshot, [(EventType.SUBSTITUTION, None, "OH1", "SUB1")], legal)
    assert after == legal
    assert snapshot.lineup.player_at(1) == "SUB1"
    assert snapshot.stats.table_sizes()["possessions"] == 0
