from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from spendtrack.services.assistant.intent import Intent


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class ConversationContext:
    user_id: str
    timestamp: datetime
    last_intent: Intent | None = None
    last_query: str | None = None

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.timestamp > ttl

    def reset(self) -> None:
        self.last_intent = None
        self.last_query = None


class ConversationContextStore:
    """Per-user conversation context with lazy expiry and bounded size.

    Stale entries keep their key but have their fields cleared on the next
    access. The least recently touched entry is evicted once ``max_entries``
    is exceeded, and :meth:`sweep` drops entries idle for longer than the TTL.
    """

    def __init__(
        self,
        *,
        ttl: timedelta = timedelta(minutes=30),
        max_entries: int = 10_000,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ttl = ttl
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[str, ConversationContext] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    def peek(self, user_id: str) -> ConversationContext | None:
        return self._entries.get(user_id)

    def touch(self, user_id: str) -> ConversationContext:
        now = self._clock()
        context = self._entries.get(user_id)
        if context is None:
            context = ConversationContext(user_id=user_id, timestamp=now)
            self._entries[user_id] = context
        elif context.is_expired(now, self.ttl):
            context.reset()
        context.timestamp = now
        self._entries.move_to_end(user_id)
        self._evict_overflow()
        return context

    def sweep(self) -> int:
        now = self._clock()
        stale = [
            user_id
            for user_id, context in self._entries.items()
            if context.is_expired(now, self.ttl)
        ]
        for user_id in stale:
            del self._entries[user_id]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def _evict_overflow(self) -> None:
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
