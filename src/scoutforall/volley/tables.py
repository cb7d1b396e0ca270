from __future__ import annotations

from scoutforall.contracts import ErrorType, Evaluation, EventEntry, EventType, Metric, Phase, TeamSide

S = EventType.SERVE
P = EventType.PASS
A = EventType.ATTACK
D = EventType.DIG
B = EventType.BLOCK
F = EventType.FAULT
OS = EventType.OPPONENT_SCORE
OE = EventType.OPPONENT_ERROR
R = EventType.SUBSTITUTION
CL = EventType.CHANGE_LIBERO
CS = EventType.CHANGE_SETTER

PERFECT = Evaluation.PERFECT
POSITIVE = Evaluation.POSITIVE
EXCLAMATIVE = Evaluation.EXCLAMATIVE
OVER = Evaluation.OVER
ERROR = Evaluation.ERROR
NEGATIVE = Evaluation.NEGATIVE

RALLY_EVENT_TYPES = frozenset({S, P, A, D, B})
LINEUP_EVENT_TYPES = frozenset({R, CL, CS})
TEAMLESS_EVENT_TYPES = frozenset({OS, OE})

# phases in which each event type can be scouted: only the serving team serves,
# only the receiving team passes
EVENT_PHASES: dict[EventType, frozenset[Phase]] = {
    t: frozenset({Phase.BREAK}) if t == S else frozenset({Phase.SIDE_OUT}) if t == P else frozenset(Phase)
    for t in EventType
}

ALLOWED_EVALUATIONS: dict[EventType, frozenset[Evaluation]] = {
    S: frozenset({PERFECT, POSITIVE, OVER, NEGATIVE, ERROR}),
    A: frozenset({PERFECT, POSITIVE, OVER, NEGATIVE, ERROR}),
    B: frozenset({PERFECT, POSITIVE, OVER, NEGATIVE, ERROR}),
    P: frozenset(Evaluation),
    D: frozenset(Evaluation),
    F: frozenset(),
    OS: frozenset(),
    OE: frozenset(),
    R: frozenset(),
    CL: frozenset(),
    CS: frozenset(),
}

# between rallies: the libero change is appended when a fallback libero exists
SERVING_EVENTS = frozenset({S, F, OE, R, CS})
RECEIVING_EVENTS = frozenset({P, OS, OE, F, R, CS})

_CONTINUE_ATTACK = frozenset({A, OE, F})
_BALL_OVER = frozenset({B, D, OE, OS, F})
_SCRAMBLE = frozenset({A, B, D, OE, OS, F})

LEGAL_NEXT_EVENTS: dict[tuple[EventType, Evaluation | None], frozenset[EventType]] = {
    (S, PERFECT): SERVING_EVENTS,
    (S, POSITIVE): _BALL_OVER,
    (S, OVER): _CONTINUE_ATTACK,
    (S, NEGATIVE): _BALL_OVER,
    (S, ERROR): RECEIVING_EVENTS,
    (P, PERFECT): _CONTINUE_ATTACK,
    (P, POSITIVE): _CONTINUE_ATTACK,
    (P, EXCLAMATIVE): _CONTINUE_ATTACK,
    (P, OVER): _BALL_OVER,
    (P, NEGATIVE): _SCRAMBLE,
    (P, ERROR): RECEIVING_EVENTS,
    (D, PERFECT): _CONTINUE_ATTACK,
    (D, POSITIVE): _CONTINUE_ATTACK,
    (D, EXCLAMATIVE): _CONTINUE_ATTACK,
    (D, OVER): _BALL_OVER,
    (D, NEGATIVE): _SCRAMBLE,
    (D, ERROR): RECEIVING_EVENTS,
    (A, PERFECT): SERVING_EVENTS,
    (A, POSITIVE): _CONTINUE_ATTACK,
    (A, OVER): RECEIVING_EVENTS,
    (A, NEGATIVE): _BALL_OVER,
    (A, ERROR): RECEIVING_EVENTS,
    (B, PERFECT): SERVING_EVENTS,
    (B, POSITIVE): _CONTINUE_ATTACK,
    (B, OVER): RECEIVING_EVENTS,
    (B, NEGATIVE): _SCRAMBLE,
    (B, ERROR): RECEIVING_EVENTS,
    (F, None): RECEIVING_EVENTS,
    (OS, None): RECEIVING_EVENTS,
    (OE, None): SERVING_EVENTS,
}

NEXT_PHASE: dict[tuple[EventType, Evaluation | None, Phase], Phase] = {
    (OS, None, Phase.BREAK): Phase.SIDE_OUT,
    (F, None, Phase.BREAK): Phase.SIDE_OUT,
    (OE, None, Phase.SIDE_OUT): Phase.BREAK,
    (S, ERROR, Phase.BREAK): Phase.SIDE_OUT,
    (A, PERFECT, Phase.SIDE_OUT): Phase.BREAK,
    (B, PERFECT, Phase.SIDE_OUT): Phase.BREAK,
    (A, ERROR, Phase.BREAK): Phase.SIDE_OUT,
    (A, OVER, Phase.BREAK): Phase.SIDE_OUT,
    (B, ERROR, Phase.BREAK): Phase.SIDE_OUT,
    (B, OVER, Phase.BREAK): Phase.SIDE_OUT,
    (D, ERROR, Phase.BREAK): Phase.SIDE_OUT,
}

_POINTS_US = frozenset({(S, PERFECT), (A, PERFECT), (B, PERFECT), (OE, None)})
_POINTS_THEM = frozenset(
    {
        (S, ERROR),
        (P, ERROR),
        (D, ERROR),
        (A, ERROR),
        (A, OVER),
        (B, ERROR),
        (B, OVER),
        (F, None),
        (OS, None),
    }
)

ERROR_TYPES: dict[tuple[EventType, Evaluation | None], ErrorType] = {
    (A, ERROR): ErrorType.UNFORCED,
    (S, ERROR): ErrorType.UNFORCED,
    (B, OVER): ErrorType.UNFORCED,
    (F, None): ErrorType.UNFORCED,
    (A, OVER): ErrorType.FORCED,
    (B, ERROR): ErrorType.FORCED,
    (P, ERROR): ErrorType.FORCED,
    (D, ERROR): ErrorType.FORCED,
}

# evaluations that count as a mistake for each fundamental
ERROR_EVALUATIONS: dict[EventType, tuple[Evaluation, ...]] = {
    A: (ERROR, OVER),
    B: (ERROR, OVER),
    P: (ERROR,),
    D: (ERROR,),
    S: (ERROR,),
}

METRIC_WEIGHTS: dict[tuple[Metric, EventType], dict[Evaluation, int]] = {
    (Metric.POSITIVE, P): {PERFECT: 1, POSITIVE: 1},
    (Metric.EFFICIENCY, P): {PERFECT: 1, POSITIVE: 1, ERROR: -1, OVER: -1},
    (Metric.POSITIVE, A): {PERFECT: 1, POSITIVE: 1},
    (Metric.EFFICIENCY, A): {PERFECT: 1, ERROR: -1, OVER: -1},
    (Metric.POSITIVE, D): {PERFECT: 1, POSITIVE: 1},
    (Metric.EFFICIENCY, D): {PERFECT: 1, POSITIVE: 1, OVER: 1, ERROR: -1},
    (Metric.POSITIVE, S): {PERFECT: 1, POSITIVE: 1, OVER: 1},
    (Metric.EFFICIENCY, S): {PERFECT: 1, POSITIVE: 1, OVER: 1, ERROR: -1},
    (Metric.POSITIVE, B): {PERFECT: 1, POSITIVE: 1},
    (Metric.EFFICIENCY, B): {PERFECT: 1, POSITIVE: 1, ERROR: -1, OVER: -1},
}

# previous touch that sets up a distributed ball
DISTRIBUTION_SETUPS: frozenset[tuple[EventType, Evaluation]] = frozenset(
    {(t, e) for t in (D, P) for e in (PERFECT, POSITIVE, EXCLAMATIVE, NEGATIVE)}
    | {(A, POSITIVE), (B, POSITIVE)}
)
# a serve returned straight over counts for the attack table only
ATTACK_SETUPS: frozenset[tuple[EventType, Evaluation]] = DISTRIBUTION_SETUPS | {(S, OVER)}
COUNTER_ATTACK_SETUPS: frozenset[tuple[EventType, Evaluation]] = frozenset(
    (D, e) for e in (PERFECT, POSITIVE, EXCLAMATIVE, NEGATIVE)
)


def requires_evaluation(event_type: EventType) -> bool:
    return event_type in RALLY_EVENT_TYPES


def provides_direct_points(event_type: EventType) -> bool:
    return event_type in (S, A, B)


def point_winner(event_type: EventType, evaluation: Evaluation | None) -> TeamSide | None:
    key = (event_type, evaluation if event_type in RALLY_EVENT_TYPES else None)
    if key in _POINTS_US:
        return TeamSide.US
    if key in _POINTS_THEM:
        return TeamSide.THEM
    return None


def next_phase(event_type: EventType, evaluation: Evaluation | None, phase: Phase) -> Phase | None:
    key = (event_type, evaluation if event_type in RALLY_EVENT_TYPES else None, phase)
    return NEXT_PHASE.get(key)


def error_type(event_type: EventType, evaluation: Evaluation | None) -> ErrorType | None:
    return ERROR_TYPES.get((event_type, evaluation if event_type in RALLY_EVENT_TYPES else None))


def metric_score(metric: Metric, event_type: EventType, evaluation: Evaluation) -> int:
    return METRIC_WEIGHTS.get((metric, event_type), {}).get(evaluation, 0)


def _between_rallies(legal: frozenset[EventType], has_fallback_libero: bool) -> frozenset[EventType]:
    if has_fallback_libero and R in legal:
        return legal | {CL}
    return legal


def initial_legal_events(phase: Phase, has_fallback_libero: bool) -> frozenset[EventType]:
    base = SERVING_EVENTS if phase == Phase.BREAK else RECEIVING_EVENTS
    return _between_rallies(base, has_fallback_libero)


def legal_next_events(event: EventEntry, has_fallback_libero: bool) -> frozenset[EventType] | None:
    """Legal follow-ups after ``event``; ``None`` for lineup events, which keep the current set."""
    if event.event_type in LINEUP_EVENT_TYPES:
        return None
    key = (event.event_type, event.evaluation if event.event_type in RALLY_EVENT_TYPES else None)
    return _between_rallies(LEGAL_NEXT_EVENTS[key], has_fallback_libero)
