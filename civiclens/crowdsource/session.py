"""
Session context for report submission

A SessionContext is created when a user logs in and invalidated when they
log out. Handlers receive it explicitly; nothing reads session state from
module globals.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional

from civiclens.core.config import settings
from civiclens.core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Logged-in user session."""
    user_id: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=datetime.utcnow)
    invalidated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.invalidated_at is None

    def invalidate(self) -> None:
        if self.invalidated_at is None:
            self.invalidated_at = datetime.utcnow()

    def require_active(self, user_id: Optional[str] = None) -> "SessionContext":
        """
        Ensure the session is live and, if given, belongs to user_id.

        Raises:
            AuthorizationError: Session invalidated or owned by another user
        """
        if not self.is_active:
            raise AuthorizationError()
        if user_id is not None and user_id != self.user_id:
            raise AuthorizationError()
        return self

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
            "active": self.is_active,
        }


class SessionRegistry:
    """
    In-process store of live sessions, keyed by session id.

    Sessions older than max_age_seconds are invalidated and dropped on the
    next login or lookup.
    """

    def __init__(self, max_age_seconds: Optional[int] = None):
        if max_age_seconds is None:
            max_age_seconds = settings.session_max_age_seconds
        self.max_age = timedelta(seconds=max_age_seconds)
        self._sessions: Dict[str, SessionContext] = {}

    def evict_expired(self, now: Optional[datetime] = None) -> int:
        """Invalidate and forget sessions past max age. Returns how many."""
        now = now or datetime.utcnow()
        expired = [
            session_id for session_id, context in self._sessions.items()
            if now - context.created_at >= self.max_age
        ]
        for session_id in expired:
            self._sessions.pop(session_id).invalidate()
        if expired:
            logger.info(f"Evicted {len(expired)} expired sessions")
        return len(expired)

    def login(self, user_id: str) -> SessionContext:
        """Create a session for an already-verified user."""
        self.evict_expired()
        context = SessionContext(user_id=user_id)
        self._sessions[context.session_id] = context
        logger.info(f"Session opened for user {user_id}")
        return context

    def logout(self, session_id: str) -> bool:
        """Invalidate and forget a session. Returns False if unknown."""
        context = self._sessions.pop(session_id, None)
        if context is None:
            return False
        context.invalidate()
        logger.info(f"Session closed for user {context.user_id}")
        return True

    def get(self, session_id: str) -> Optional[SessionContext]:
        """Active session by id, or None."""
        self.evict_expired()
        context = self._sessions.get(session_id)
        if context is None or not context.is_active:
            return None
        return context

    def __len__(self) -> int:
        return len(self._sessions)
