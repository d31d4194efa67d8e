#!/usr/bin/env python3
"""
Toolkit Session Manager - Table of open SSE sessions

The SDK transport owns each session's streams; this table is what the HTTP
layer consults to cap concurrent streams and to reject posts for ids that
were never issued or whose stream has already closed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class SSESession:
    """One open event stream"""
    session_id: str
    remote: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)
    messages_sent: int = 0

    @property
    def endpoint(self) -> str:
        """Relative URL the client posts its messages to"""
        return f"/messages?sessionId={self.session_id}"

    def update_activity(self):
        """Update last activity timestamp"""
        self.last_activity = datetime.now()


class SessionManager:
    """
    Process-wide table of open streaming sessions.

    Only touched from the event loop, one step at a time.
    """

    def __init__(self, max_sessions: int = 1000):
        self.max_sessions = max_sessions
        self._sessions: Dict[str, SSESession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    @property
    def is_full(self) -> bool:
        return len(self._sessions) >= self.max_sessions

    def create_session(self, session_id: str, remote: Optional[str] = None) -> SSESession:
        """Register a stream under the id its transport issued"""
        if session_id in self._sessions:
            raise ValueError(f"Session {session_id} is already open")

        session = SSESession(session_id=session_id, remote=remote)
        self._sessions[session_id] = session
        logger.info(f"Opened session {session_id} for {remote} ({len(self._sessions)} open)")
        return session

    def get_session(self, session_id: str) -> Optional[SSESession]:
        """Get existing session"""
        return self._sessions.get(session_id)

    def remove_session(self, session_id: str) -> bool:
        """Evict a session; later lookups for its id fail"""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        logger.info(f"Closed session {session_id} after {session.messages_sent} messages "
                    f"({len(self._sessions)} open)")
        return True

    def close_all(self) -> int:
        """Evict every session and empty the table"""
        session_ids = list(self._sessions)
        for session_id in session_ids:
            self.remove_session(session_id)
        return len(session_ids)

