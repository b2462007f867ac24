"""
Tests for login sessions
"""
import pytest
from datetime import datetime, timedelta

from civiclens.core.config import settings
from civiclens.core.exceptions import AuthorizationError
from civiclens.crowdsource.session import SessionContext, SessionRegistry


class TestSessionRegistry:
    """Test suite for SessionRegistry."""

    def setup_method(self):
        """Setup test fixtures."""
        self.registry = SessionRegistry()

    def test_login(self):
        context = self.registry.login("user-1")

        assert context.is_active
        assert self.registry.get(context.session_id) is context
        assert len(self.registry) == 1

    def test_sessions_are_distinct(self):
        first = self.registry.login("user-1")
        second = self.registry.login("user-1")

        assert first.session_id != second.session_id
        assert len(self.registry) == 2

    def test_logout(self):
        context = self.registry.login("user-1")

        assert self.registry.logout(context.session_id) is True
        assert not context.is_active
        assert self.registry.get(context.session_id) is None
        assert len(self.registry) == 0

    def test_logout_unknown(self):
        assert self.registry.logout("nope") is False


class TestSessionContext:

    def test_require_active(self):
        context = SessionContext(user_id="user-1")

        assert context.require_active("user-1") is context
        assert context.require_active() is context

    def test_require_active_other_user(self):
        context = SessionContext(user_id="user-1")

        with pytest.raises(AuthorizationError):
            context.require_active("user-2")

    def test_invalidated(self):
        context = SessionContext(user_id="user-1")
        context.invalidate()
        first = context.invalidated_at
        context.invalidate()

        assert context.invalidated_at == first
        with pytest.raises(AuthorizationError):
            context.require_active("user-1")

    def test_to_dict(self):
        data = SessionContext(user_id="user-1", session_id="abc").to_dict()

        assert data["session_id"] == "abc"
        assert data["user_id"] == "user-1"
        assert data["active"] is True


class TestSessionExpiry:
    """Sessions past their max age are dropped."""

    def setup_method(self):
        """Setup test fixtures."""
        self.registry = SessionRegistry(max_age_seconds=60)

    def test_expired_session_not_returned(self):
        context = self.registry.login("user-1")
        context.created_at = datetime.utcnow() - timedelta(seconds=120)

        assert self.registry.get(context.session_id) is None
        assert not context.is_active
        assert len(self.registry) == 0

    def test_fresh_session_kept(self):
        context = self.registry.login("user-1")

        assert self.registry.get(context.session_id) is context

    def test_login_evicts_stale_sessions(self):
        for _ in range(5):
            stale = self.registry.login("user-1")
            stale.created_at = datetime.utcnow() - timedelta(hours=1)

        self.registry.login("user-1")

        assert len(self.registry) == 1

    def test_evict_expired_with_reference_time(self):
        context = self.registry.login("user-1")

        assert self.registry.evict_expired(now=context.created_at + timedelta(seconds=59)) == 0
        assert self.registry.evict_expired(now=context.created_at + timedelta(seconds=60)) == 1
        assert len(self.registry) == 0

    def test_default_max_age_from_settings(self):
        assert SessionRegistry().max_age == timedelta(seconds=settings.session_max_age_seconds)
