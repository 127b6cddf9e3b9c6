import logging
import time
from collections import OrderedDict
from typing import Callable, List

from pydantic import BaseModel, Field

from src.config.settings import settings

logger = logging.getLogger(__name__)


class Turn(BaseModel):
    user: str
    assistant: str


class CallSession(BaseModel):
    call_sid: str
    tenant_id: str
    history: List[Turn] = Field(default_factory=list)


class SessionStore:
    """
    In-memory conversation history per call.

    Bounded: the least recently used session is evicted once max_entries is
    reached, and sessions untouched for ttl_seconds expire.
    """

    def __init__(self, ttl_seconds: int = None, max_entries: int = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SESSION_TTL_SECONDS
        self.max_entries = max_entries if max_entries is not None else settings.SESSION_MAX_ENTRIES
        self.clock = clock
        self._sessions: "OrderedDict[str, tuple]" = OrderedDict()

    def get(self, call_sid: str, tenant_id: str) -> CallSession:
        """Return the live session for a call, or a fresh one"""
        entry = self._sessions.get(call_sid)
        if entry is not None:
            session, touched = entry
            if self.clock() - touched <= self.ttl_seconds and session.tenant_id == tenant_id:
                self._sessions.move_to_end(call_sid)
                return session
            del self._sessions[call_sid]
        return CallSession(call_sid=call_sid, tenant_id=tenant_id)

    def save(self, session: CallSession) -> None:
        self._sessions[session.call_sid] = (session, self.clock())
        self._sessions.move_to_end(session.call_sid)
        while len(self._sessions) > self.max_entries:
            evicted, _ = self._sessions.popitem(last=False)
            logger.debug(f"Evicted session {evicted}")

    def clear(self, call_sid: str) -> None:
        self._sessions.pop(call_sid, None)

    def __len__(self) -> int:
        return len(self._sessions)

