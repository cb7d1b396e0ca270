from __future__ import annotations

from pathlib import Path
from typing import Any

import duckdb

from scoutforall.volley.stats import Stats

_INTEGER_COLUMNS = frozenset({"rotation", "zone"})


def _mart_name(table_name: str) -> str:
    return f"mart_{table_name}"


class StatsWarehouse:
    """Cross-set analytics over the fact tables of many scouted sets.

    Every mart mirrors one statistics table with a leading ``set_id`` column and
    the row count in ``occurrences``.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path
        if db_path is not None:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(str(db_path) if db_path is not None else ":memory:")
        self._columns: dict[str, list[str]] = {}
        self.initialize_schema()

    def __enter__(self) -> StatsWarehouse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def initialize_schema(self) -> None:
        for name, table in Stats().tables().items():
            key_columns = table.columns()[:-1]
            self._columns[name] = key_columns
            definitions = ["set_id VARCHAR"]
            for column in key_columns:
                definitions.append(f"{column} {'INTEGER' if column in _INTEGER_COLUMNS else 'VARCHAR'}")
            definitions.append("occurrences INTEGER")
            self._conn.execute(f"CREATE TABLE IF NOT EXISTS {_mart_name(name)} ({', '.join(definitions)})")

    def load_set(self, set_id: str, stats: Stats) -> None:
        """Replace whatever was stored for ``set_id`` with the rows of ``stats``."""
        self._conn.execute("BEGIN TRANSACTION")
        try:
            for name, table in stats.tables().items():
                mart = _mart_name(name)
                self._conn.execute(f"DELETE FROM {mart} WHERE set_id = ?", [set_id])
                rows = [(set_id, *row) for row in table.rows()]
                if rows:
                    placeholders = ", ".join(["?"] * len(rows[0]))
                    self._conn.executemany(f"INSERT INTO {mart} VALUES ({placeholders})", rows)
        except duckdb.Error:
            self._conn.execute("ROLLBACK")
            raise
        self._conn.execute("COMMIT")

    def set_ids(self) -> list[str]:
        rows = self._conn.execute(
            f"SELECT DISTINCT set_id FROM {_mart_name('phases')} "
            f"UNION SELECT DISTINCT set_id FROM {_mart_name('events')} ORDER BY set_id"
        ).fetchall()
        return [r[0] for r in rows]

    def row_count(self, table_name: str, set_id: str | None = None) -> int:
        if table_name not in self._columns:
            raise KeyError(f"unknown statistics table {table_name}")
        query = f"SELECT COALESCE(SUM(occurrences), 0) FROM {_mart_name(table_name)}"
        params: list[Any] = []
        if set_id is not None:
            query += " WHERE set_id = ?"
            params.append(set_id)
        return int(self._conn.execute(query, params).fetchone()[0])

    def attack_efficiency_by_rotation(self) -> list[dict[str, Any]]:
        rows = self._conn.execute(
            f"""
            SELECT rotation,
                   SUM(occurrences) AS attacks,
                   SUM(CASE WHEN evaluation = '#' THEN occurrences
                            WHEN evaluation IN ('=', '/') THEN -occurrences
                            ELSE 0 END) AS score
            FROM {_mart_name('attack')}
            GROUP BY rotation
            ORDER BY rotation
            """
        ).fetchall()
        return [
            {"rotation": rotation, "attacks": int(attacks), "score": int(score), "efficiency": score / attacks * 100.0}
            for rotation, attacks, score in rows
        ]

    def errors_by_player(self) -> list[dict[str, Any]]:
        rows = self._conn.execute(
            f"""
            SELECT player_id, error_type, SUM(occurrences) AS errors
            FROM {_mart_name('errors')}
            GROUP BY player_id, error_type
            ORDER BY player_id, error_type
            """
        ).fetchall()
        return [{"player_id": player_id, "error_type": error_type, "errors": int(errors)} for player_id, error_type, errors in rows]

    def export(self, output_dir: Path) -> list[Path]:
        output_dir.mkdir(parents=True, exist_ok=True)
        outputs: list[Path] = []
        for name in self._columns:
            stem = output_dir / name
            csv_path = stem.with_suffix(".csv")
            parquet_path = stem.with_suffix(".parquet")
            self._conn.execute(f"COPY (SELECT * FROM {_mart_name(name)}) TO '{csv_path.as_posix()}' (HEADER, DELIMITER ',')")
            self._conn.execute(f"COPY (SELECT * FROM {_mart_name(name)}) TO '{parquet_path.as_posix()}' (FORMAT PARQUET)")
            outputs.extend([csv_path, parquet_path])
        return outputs

    def possessions_per_earned_point(self) -> list[dict[str, Any]]:
        rows = self._conn.execute(
            f"""
            WITH possessions AS (
                SELECT phase, SUM(occurrences) AS total FROM {_mart_name('possessions')} GROUP BY phase
            ),
            earned AS (
                SELECT phase, SUM(occurrences) AS total FROM {_mart_name('earned_points')} GROUP BY phase
            )
            SELECT p.phase, p.total, COALESCE(e.total, 0)
            FROM possessions p
            LEFT JOIN earned e ON e.phase = p.phase
            ORDER BY p.phase
            """
        ).fetchall()
        return [
            {
                "phase": phase,
                "possessions": int(possessions),
                "earned_points": int(earned),
                "ratio": possessions / earned if earned else None,
            }
            for phase, possessions, earned in rows
        ]
