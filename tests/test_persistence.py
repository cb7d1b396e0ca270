from __future__ import annotations

from pathlib import Path

import duckdb

from scoutforall.contracts import Evaluation, EventType, TeamSide
from scoutforall.persistence import StatsWarehouse
from scoutforall.volley import Snapshot
from tests.helpers import drive, make_descriptor

FIRST_SET = [
    (EventType.SERVE, Evaluation.ERROR, "S"),
    (EventType.PASS, Evaluation.PERFECT, "OH1"),
    (EventType.ATTACK, Evaluation.PERFECT, "OPP"),
    (EventType.SERVE, Evaluation.POSITIVE, "OH1"),
    (EventType.DIG, Evaluation.POSITIVE, "L"),
    (EventType.ATTACK, Evaluation.ERROR, "OPP"),
]


def _snapshot() -> Snapshot:
    snapshot = Snapshot(make_descriptor(TeamSide.US))
    drive(snapshot, FIRST_SET)
    return snapshot


def test_load_set_is_idempotent():
    snapshot = _snapshot()
    with StatsWarehouse() as warehouse:
        warehouse.load_set("match1-set1", snapshot.stats)
        warehouse.load_set("match1-set1", snapshot.stats)
        assert warehouse.set_ids() == ["match1-set1"]
        assert warehouse.row_count("possessions") == snapshot.stats.possessions.total()
        assert warehouse.row_count("attack", "match1-set1") == 2


def test_cross_set_queries():
    snapshot = _snapshot()
    with StatsWarehouse() as warehouse:
        warehouse.load_set("set1", snapshot.stats)
        warehouse.load_set("set2", snapshot.stats)
        efficiency = warehouse.attack_efficiency_by_rotation()
        assert [row["rotation"] for row in efficiency] == [0, 5]
        assert efficiency[0] == {"rotation": 0, "attacks": 2, "score": 2, "efficiency": 100.0}
        assert efficiency[1]["score"] == -2

        errors = warehouse.errors_by_player()
        assert {"player_id": "OPP", "error_type": "unforced", "errors": 2} in errors

        ratios = {row["phase"]: row for row in warehouse.possessions_per_earned_point()}
        assert ratios["side-out"]["earned_points"] == 2


def test_export_csv_parquet_row_count_parity(tmp_path: Path):
    stats = _snapshot().stats
    with StatsWarehouse(tmp_path / "analytics.duckdb") as warehouse:
        warehouse.load_set("set1", stats)
        outputs = warehouse.export(tmp_path / "exports")

    assert len(outputs) == 22
    filled = [name for name, size in stats.table_sizes().items() if size]
    with duckdb.connect() as conn:
        for name in filled:
            csv_path = tmp_path / "exports" / f"{name}.csv"
            parquet_path = csv_path.with_suffix(".parquet")
            csv_count = conn.execute(f"SELECT COUNT(*) FROM read_csv_auto('{csv_path.as_posix()}')").fetchone()[0]
            parquet_count = conn.execute(f"SELECT COUNT(*) FROM parquet_scan('{parquet_path.as_posix()}')").fetchone()[0]
            assert csv_count == parquet_count == len(stats.tables()[name])
