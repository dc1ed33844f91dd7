"""Per-session follow-up context.

Each chat session keeps at most one record describing the last listing it was
shown (the latest episode, or a list of videos plus the query that produced
it). "Tell me about #2" and "what was it about?" are resolved against it.
Nothing is persisted; a restart clears every session.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from agent.tools.youtube_catalog import VideoRecord


ContextMode = Literal["latest", "popular", "topic", "person", "guests"]


class ContextRecord(BaseModel):
    mode: ContextMode
    videos: List[VideoRecord] = Field(default_factory=list)
    query: Optional[str] = None
    updated_at: float = Field(default_factory=time.time)

    def pick(self, index: int) -> Optional[VideoRecord]:
        """1-indexed lookup; ``None`` when out of range."""
        if 1 <= index <= len(self.videos):
            return self.videos[index - 1]
        return None


class SessionMemory:
    """Thread-safe map of session id to its last :class:`ContextRecord`.

    Bounded to ``max_sessions``; the least recently touched session is dropped
    first.
    """

    def __init__(self, max_sessions: int = 1000) -> None:
        self.max_sessions = max(1, max_sessions)
        self._records: "OrderedDict[str, ContextRecord]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[ContextRecord]:
        with self._lock:
            record = self._records.get(session_id)
            if record is not None:
                self._records.move_to_end(session_id)
            return record

    def set(self, session_id: str, record: ContextRecord) -> None:
        with self._lock:
            self._records[session_id] = record
            self._records.move_to_end(session_id)
            while len(self._records) > self.max_sessions:
                self._records.popitem(last=False)

    def clear(self, session_id: Optional[str] = None) -> None:
        with self._lock:
            if session_id is None:
                self._records.clear()
            else:
                self._records.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
