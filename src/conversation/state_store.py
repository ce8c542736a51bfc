"""
Conversation State Store
Per-user ephemeral conversation state with inactivity expiry.

At most one state per user. Writes overwrite unconditionally and nothing is
locked, so concurrent events for the same user race and the last completed
write wins. Callers that need stronger ordering take ``user_lock(user_id)``.
"""
import asyncio
import time
import weakref
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from conversation.models import ConversationStage

DEFAULT_TTL_SECONDS = 600


@dataclass
class ConversationState:
    user_id: str
    stage: ConversationStage
    payload: dict = field(default_factory=dict)
    created_at: float = 0.0
    last_touched_at: float = 0.0


class ConversationStateStore:
    """In-memory state map; swap for a shared cache when running several instances."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS,
                 clock: Callable[[], float] = time.time, logger=None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._states: Dict[str, ConversationState] = {}
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self.logger = logger

    def set(self, user_id, stage: ConversationStage, payload: dict = None) -> ConversationState:
        """Overwrite the user's state and stamp the current time."""
        key = str(user_id)
        now = self._clock()
        previous = self._states.get(key)
        created_at = previous.created_at if previous and previous.stage == stage else now
        state = ConversationState(
            user_id=key,
            stage=stage,
            payload=dict(payload or {}),
            created_at=created_at,
            last_touched_at=now,
        )
        self._states[key] = state
        if self.logger:
            self.logger.log_state_change(key, stage.value)
        return state

    def get(self, user_id) -> Optional[ConversationState]:
        """Return the live state, evicting it first if it has expired."""
        key = str(user_id)
        state = self._states.get(key)
        if state is None:
            return None
        if self._clock() - state.last_touched_at > self.ttl_seconds:
            self._states.pop(key, None)
            if self.logger:
                self.logger.debug(f"State expired for user {key}", component="State")
            return None
        return state

    def clear(self, user_id) -> None:
        key = str(user_id)
        if self._states.pop(key, None) is not None and self.logger:
            self.logger.log_state_change(key, None)

    def user_lock(self, user_id) -> asyncio.Lock:
        """
        Per-user mutex for callers that opt into serialized handling.

        Only weakly held: the lock disappears once no handler holds or waits on it.
        """
        key = str(user_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, user_id) -> bool:
        return str(user_id) in self._states
