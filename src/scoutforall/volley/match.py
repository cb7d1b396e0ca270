from __future__ import annotations

from typing import Iterable, Sequence

from scoutforall.contracts import MatchStatus, ScoringRules, TeamSide
from scoutforall.core import default_scoring_rules
from scoutforall.volley.snapshot import Snapshot
from scoutforall.volley.stats import Stats


def match_status(set_winners: Sequence[TeamSide], rules: ScoringRules | None = None) -> MatchStatus:
    """Tally completed sets; the match ends as soon as a team reaches ``sets_to_win``."""
    rules = rules or default_scoring_rules()
    us_wins = 0
    them_wins = 0
    for index, winner in enumerate(set_winners, start=1):
        if us_wins == rules.sets_to_win or them_wins == rules.sets_to_win:
            raise ValueError(f"set {index} was played after the match was decided")
        if winner == TeamSide.US:
            us_wins += 1
        else:
            them_wins += 1
    if us_wins == rules.sets_to_win:
        return MatchStatus(us_wins=us_wins, them_wins=them_wins, next_set_number=None, winner=TeamSide.US)
    if them_wins == rules.sets_to_win:
        return MatchStatus(us_wins=us_wins, them_wins=them_wins, next_set_number=None, winner=TeamSide.THEM)
    return MatchStatus(us_wins=us_wins, them_wins=them_wins, next_set_number=len(set_winners) + 1)


def next_set_number(set_winners: Sequence[TeamSide], rules: ScoringRules | None = None) -> int | None:
    return match_status(set_winners, rules).next_set_number


def serving_team_for_set(
    set_number: int,
    first_serving_team: TeamSide,
    *,
    tie_break_serving_team: TeamSide | None = None,
    rules: ScoringRules | None = None,
) -> TeamSide:
    rules = rules or default_scoring_rules()
    if not 1 <= set_number <= rules.max_sets:
        raise ValueError(f"set number must be between 1 and {rules.max_sets}")
    if set_number == rules.tie_break_set_number:
        # decided by a new coin toss
        if tie_break_serving_team is None:
            raise ValueError("the tie-break serving team must be chosen before the set starts")
        return tie_break_serving_team
    return first_serving_team if set_number % 2 == 1 else first_serving_team.opponent()


def match_stats(snapshots: Iterable[Snapshot]) -> Stats:
    return Stats.merged(snapshot.stats for snapshot in snapshots)
