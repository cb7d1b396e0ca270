from .duckdb_store import StatsWarehouse

__all__ = ["StatsWarehouse"]
