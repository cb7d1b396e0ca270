from __future__ import annotations

from dataclasses import asdict

from scoutforall.contracts import CoverageAuditCheck, CoverageAuditReport, EventType, Phase, TeamSide
from scoutforall.core import make_id, now_utc
from scoutforall.volley.tables import (
    ALLOWED_EVALUATIONS,
    ERROR_TYPES,
    EVENT_PHASES,
    LEGAL_NEXT_EVENTS,
    LINEUP_EVENT_TYPES,
    METRIC_WEIGHTS,
    RALLY_EVENT_TYPES,
    RECEIVING_EVENTS,
    SERVING_EVENTS,
    next_phase,
    point_winner,
)


class TableCoverageAuditor:
    """Cross-checks the scoring lookup tables against each other."""

    def run(self) -> CoverageAuditReport:
        checks = [
            self._check_legal_rows_present(),
            self._check_legal_rows_well_formed(),
            self._check_phase_follows_points(),
            self._check_rally_handover(),
            self._check_errors_are_points_lost(),
            self._check_metric_weights(),
        ]
        return CoverageAuditReport(
            report_id=make_id("coverage"),
            generated_at=now_utc(),
            scope="scoring_tables",
            checks=checks,
        )

    def to_dict(self, report: CoverageAuditReport) -> dict[str, object]:
        payload = asdict(report)
        payload["passed"] = report.passed
        return payload

    @staticmethod
    def _scoutable_keys() -> list[tuple[EventType, object]]:
        keys: list[tuple[EventType, object]] = []
        for event_type in EventType:
            if event_type in LINEUP_EVENT_TYPES:
                continue
            if event_type in RALLY_EVENT_TYPES:
                keys.extend((event_type, evaluation) for evaluation in sorted(ALLOWED_EVALUATIONS[event_type]))
            else:
                keys.append((event_type, None))
        return keys

    def _check_legal_rows_present(self) -> CoverageAuditCheck:
        missing = [f"{t.value}{e.value if e else ''}" for t, e in self._scoutable_keys() if (t, e) not in LEGAL_NEXT_EVENTS]
        return CoverageAuditCheck(
            check_id="legal_rows_present",
            description="every scoutable event and evaluation has a row of legal follow-ups",
            passed=not missing,
            evidence=", ".join(missing) or f"{len(LEGAL_NEXT_EVENTS)} rows",
        )

    def _check_legal_rows_well_formed(self) -> CoverageAuditCheck:
        problems: list[str] = []
        for (event_type, evaluation), legal in LEGAL_NEXT_EVENTS.items():
            label = f"{event_type.value}{evaluation.value if evaluation else ''}"
            if not legal:
                problems.append(f"{label}: empty")
            if any(not isinstance(t, EventType) for t in legal):
                problems.append(f"{label}: unknown event type")
            if evaluation is not None and evaluation not in ALLOWED_EVALUATIONS[event_type]:
                problems.append(f"{label}: evaluation not allowed")
        return CoverageAuditCheck(
            check_id="legal_rows_well_formed",
            description="legal rows are non-empty and only reference known event types",
            passed=not problems,
            evidence="; ".join(problems) or "ok",
        )

    def _check_phase_follows_points(self) -> CoverageAuditCheck:
        problems: list[str] = []
        for event_type, evaluation in self._scoutable_keys():
            winner = point_winner(event_type, evaluation)
            for phase in EVENT_PHASES[event_type]:
                expected = None
                if winner == TeamSide.US and phase == Phase.SIDE_OUT:
                    expected = Phase.BREAK
                elif winner == TeamSide.THEM and phase == Phase.BREAK:
                    expected = Phase.SIDE_OUT
                found = next_phase(event_type, evaluation, phase)
                if found != expected:
                    problems.append(
                        f"{event_type.value}{evaluation.value if evaluation else ''} in {phase.value}: "
                        f"expected {expected.value if expected else None}, found {found.value if found else None}"
                    )
        return CoverageAuditCheck(
            check_id="phase_follows_points",
            description="the phase changes exactly when the point goes to the receiving team",
            passed=not problems,
            evidence="; ".join(problems) or "ok",
        )

    def _check_rally_handover(self) -> CoverageAuditCheck:
        problems: list[str] = []
        for (event_type, evaluation), legal in LEGAL_NEXT_EVENTS.items():
            winner = point_winner(event_type, evaluation)
            label = f"{event_type.value}{evaluation.value if evaluation else ''}"
            if winner == TeamSide.US and legal != SERVING_EVENTS:
                problems.append(f"{label}: point won must hand over to serving events")
            elif winner == TeamSide.THEM and legal != RECEIVING_EVENTS:
                problems.append(f"{label}: point lost must hand over to receiving events")
            elif winner is None and legal & LINEUP_EVENT_TYPES:
                problems.append(f"{label}: lineup changes inside a rally")
        return CoverageAuditCheck(
            check_id="rally_handover",
            description="rally-ending rows lead to the serving or receiving set, others keep the rally open",
            passed=not problems,
            evidence="; ".join(problems) or "ok",
        )

    def _check_errors_are_points_lost(self) -> CoverageAuditCheck:
        problems = [
            f"{t.value}{e.value if e else ''}"
            for (t, e) in ERROR_TYPES
            if point_winner(t, e) != TeamSide.THEM
        ]
        return CoverageAuditCheck(
            check_id="errors_are_points_lost",
            description="every forced or unforced error gives the point away",
            passed=not problems,
            evidence=", ".join(problems) or f"{len(ERROR_TYPES)} error combinations",
        )

    def _check_metric_weights(self) -> CoverageAuditCheck:
        problems: list[str] = []
        for (metric, event_type), weights in METRIC_WEIGHTS.items():
            stray = sorted(e.value for e in weights if e not in ALLOWED_EVALUATIONS[event_type])
            if stray:
                problems.append(f"{metric.value}/{event_type.value}: {' '.join(stray)}")
        return CoverageAuditCheck(
            check_id="metric_weights",
            description="metric weights only score evaluations the event type allows",
            passed=not problems,
            evidence="; ".join(problems) or "ok",
        )
