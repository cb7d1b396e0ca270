from __future__ import annotations

from scoutforall.contracts import Phase
from scoutforall.devtools import TableCoverageAuditor
from scoutforall.volley import tables


def test_coverage_audit_passes_on_current_tables() -> None:
    report = TableCoverageAuditor().run()
    assert report.passed, report.failed_checks
    assert {check.check_id for check in report.checks} == {
        "legal_rows_present",
        "legal_rows_well_formed",
        "phase_follows_points",
        "rally_handover",
        "errors_are_points_lost",
        "metric_weights",
    }


def test_coverage_audit_flags_a_missing_row(monkeypatch) -> None:
    trimmed = dict(tables.LEGAL_NEXT_EVENTS)
    del trimmed[(tables.D, tables.NEGATIVE)]
    monkeypatch.setattr("scoutforall.devtools.coverage_audit.LEGAL_NEXT_EVENTS", trimmed)
    report = TableCoverageAuditor().run()
    assert not report.passed
    assert [check.check_id for check in report.failed_checks] == ["legal_rows_present"]
    assert "D-" in report.failed_checks[0].evidence


def test_report_serializes() -> None:
    auditor = TableCoverageAuditor()
    payload = auditor.to_dict(auditor.run())
    assert payload["passed"] is True
    assert payload["scope"] == "scoring_tables"
    assert len(payload["checks"]) == 6


def test_pass_rows_only_exist_for_side_out() -> None:
    assert tables.EVENT_PHASES[tables.P] == frozenset({Phase.SIDE_OUT})
    assert not [key for key in tables.NEXT_PHASE if key[0] == tables.P and key[2] == Phase.BREAK]
