from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Iterable, Iterator
from uuid import uuid4


def now_utc() -> datetime:
    return datetime.now(UTC)


def make_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def tick_after(previous: datetime | None, candidate: datetime | None = None) -> datetime:
    # event logs are ordered by timestamp, ties are pushed one microsecond forward
    stamp = candidate or now_utc()
    if previous is not None and stamp <= previous:
        return previous + timedelta(microseconds=1)
    return stamp


def out_of_order_indexes(timestamps: Iterable[datetime]) -> Iterator[int]:
    previous: datetime | None = None
    for index, stamp in enumerate(timestamps):
        if previous is not None and stamp < previous:
            yield index
        previous = stamp
