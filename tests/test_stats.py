from __future__ import annotations

import pytest

from scoutforall.contracts import ErrorType, Evaluation, EventType, Metric, Phase, Zone
from scoutforall.volley import Stats
from scoutforall.volley.stats import TABLE_NAMES

BREAK, SIDE_OUT = Phase.BREAK, Phase.SIDE_OUT
S, P, A, F = EventType.SERVE, EventType.PASS, EventType.ATTACK, EventType.FAULT


def test_empty_stats_report_no_data():
    stats = Stats()
    assert stats.number_of_possessions_per_earned_point() is None
    assert stats.number_of_phases_per_scored_point() is None
    assert stats.attack_efficiency() is None
    assert stats.counter_attack_conversion_rate() is None
    assert stats.event_positiveness(S) is None
    assert stats.event_percentage(S, Evaluation.PERFECT) is None
    assert stats.sideout_first_rally_positiveness() is None
    assert stats.distribution.zone_stats(Zone.FOUR) is None
    assert stats.event_count(S) == 0
    assert stats.total_errors() == 0
    assert stats.table_sizes() == {name: 0 for name in TABLE_NAMES}


def test_queries_treat_missing_filters_as_wildcards():
    stats = Stats()
    stats.events.add(S, BREAK, 0, "S", None, Evaluation.PERFECT)
    stats.events.add(S, BREAK, 5, "OH1", None, Evaluation.ERROR)
    stats.events.add(S, SIDE_OUT, 5, "OH1", None, Evaluation.POSITIVE)
    assert stats.event_count(S) == 3
    assert stats.event_count(S, player_id="OH1") == 2
    assert stats.event_count(S, rotation=0) == 1
    assert stats.event_count(S, phase=BREAK, evaluation=Evaluation.ERROR) == 1
    assert stats.scored_points(S) == 1
    assert stats.scored_points(P) is None
    positiveness = stats.event_positiveness(S)
    assert positiveness is not None
    assert positiveness[0] == pytest.approx(66.67, abs=0.01)
    assert positiveness[1:] == (3, 2)
    assert stats.event_percentage(S, Evaluation.OVER) == (0.0, 3, 0)


def test_attack_efficiency_weights():
    stats = Stats()
    for evaluation in (Evaluation.PERFECT, Evaluation.PERFECT, Evaluation.POSITIVE, Evaluation.ERROR):
        stats.attack.add(SIDE_OUT, 0, "OPP", Zone.TWO, evaluation, Evaluation.PERFECT)
    assert stats.attack_efficiency("OPP") == (25.0, 4, 1)
    assert stats.attack_efficiency(previous_evaluation=Evaluation.NEGATIVE) is None


def test_errors_split_by_type_and_faults_are_unforced():
    stats = Stats()
    stats.events.add(A, BREAK, 0, "OH1", Zone.FOUR, Evaluation.ERROR)
    stats.events.add(A, BREAK, 0, "OH1", Zone.FOUR, Evaluation.OVER)
    stats.events.add(P, SIDE_OUT, 0, "OH2", None, Evaluation.ERROR)
    stats.events.add(F, SIDE_OUT, 0, None, None, None)
    assert stats.errors(A) == 2
    assert stats.errors(A, ErrorType.FORCED) == 1
    assert stats.total_errors() == 4
    assert stats.total_errors(ErrorType.UNFORCED) == 2
    assert stats.total_errors(ErrorType.FORCED) == 2
    assert stats.total_errors(player_id="OH1") == 2


def test_first_rally_scoring():
    stats = Stats()
    stats.first_rally.add(0, Evaluation.PERFECT, A, Evaluation.PERFECT)
    stats.first_rally.add(0, Evaluation.POSITIVE, EventType.OPPONENT_ERROR, None)
    stats.first_rally.add(0, Evaluation.NEGATIVE, None, None)
    stats.first_rally.add(0, Evaluation.ERROR, P, Evaluation.ERROR)
    assert stats.sideout_first_rally_positiveness() == (50.0, 4, 2)
    assert stats.sideout_first_rally_positiveness(metric=Metric.EFFICIENCY) == (25.0, 4, 1)
    assert stats.sideout_first_rally_count(reception_evaluation=Evaluation.NEGATIVE) == 1
    assert stats.sideout_first_rally_errors() == 1
    assert stats.sideout_first_rally_errors(error_type=ErrorType.UNFORCED) == 0


def test_zone_distribution():
    stats = Stats()
    stats.distribution.add(SIDE_OUT, 0, "OH1", Zone.FOUR, Evaluation.PERFECT, Evaluation.PERFECT)
    stats.distribution.add(SIDE_OUT, 0, "OH1", Zone.FOUR, Evaluation.PERFECT, Evaluation.ERROR)
    stats.distribution.add(SIDE_OUT, 0, "MB2", Zone.THREE, Evaluation.PERFECT, Evaluation.PERFECT)
    stats.distribution.add(SIDE_OUT, 0, "OPP", Zone.TWO, Evaluation.PERFECT, Evaluation.POSITIVE)
    assert stats.distribution.zone_stats(Zone.FOUR) == (50.0, 50.0)
    assert stats.distribution.zone_stats(Zone.NINE) is None


def test_merge_sums_every_table():
    first = Stats()
    second = Stats()
    first.possessions.add(BREAK, 0)
    second.possessions.add(BREAK, 0)
    second.earned_points.add(BREAK, 0)
    merged = Stats.merged([first, second])
    assert merged.possessions.count(BREAK, 0) == 2
    assert merged.number_of_possessions_per_earned_point() == (2.0, 2, 1)
    assert first.possessions.count() == 1


def test_fingerprint_rows_are_plain_values():
    stats = Stats()
    stats.events.add(A, SIDE_OUT, 3, "OPP", Zone.TWO, Evaluation.PERFECT)
    assert stats.fingerprint()["events"] == [("A", "side-out", 3, "OPP", 2, "#", 1)]
    assert stats.events.columns() == ["event_type", "phase", "rotation", "player_id", "zone", "evaluation", "count"]
    copy = Stats()
    copy.merge(stats)
    assert copy == stats
