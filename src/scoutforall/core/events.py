from __future__ import annotations

from collections import defaultdict
from typing import Callable, DefaultDict

from scoutforall.contracts import EventEntry, EventType

AppliedHandler = Callable[[EventEntry], None]


class EventBus:
    def __init__(self) -> None:
        self._applied_handlers: list[AppliedHandler] = []
        self._counter: DefaultDict[EventType, int] = defaultdict(int)

    def subscribe_applied(self, handler: AppliedHandler) -> None:
        self._applied_handlers.append(handler)

    def publish_applied(self, event: EventEntry) -> None:
        self._counter[event.event_type] += 1
        for handler in self._applied_handlers:
            handler(event)

    def emitted_count(self, event_type: EventType | None = None) -> int:
        if event_type is None:
            return sum(self._counter.values())
        return self._counter[event_type]

    def reset(self) -> None:
        self._counter.clear()
