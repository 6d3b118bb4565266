"""Tests for session lifecycle."""

import threading
from dataclasses import replace

import pytest
import yaml

from docviewer.auth.session import SessionAuthority
from docviewer.auth.users import UserStore
from docviewer.errors import InvalidCredentials, SessionInvalid, StorageUnavailable


class TestLogin:
    def test_login_returns_session(self, session_authority, clock):
        session = session_authority.login("alice", "secret")
        assert session.user_id == "u-alice"
        assert session.created_at == clock.now
        assert (session.expires_at - session.created_at).total_seconds() == 24 * 3600

    def test_token_is_long_and_random(self, session_authority):
        tokens = {session_authority.login("alice", "secret").token for _ in range(5)}
        assert len(tokens) == 5
        assert all(len(token) >= 43 for token in tokens)

    def test_wrong_password_fails(self, session_authority):
        with pytest.raises(InvalidCredentials):
            session_authority.login("alice", "wrong")

    def test_unknown_user_fails_identically(self, session_authority):
        with pytest.raises(InvalidCredentials) as unknown:
            session_authority.login("nobody", "secret")
        with pytest.raises(InvalidCredentials) as wrong:
            session_authority.login("alice", "wrong")
        assert unknown.value.message == wrong.value.message
        assert unknown.value.kind == wrong.value.kind == "InvalidCredentials"

    def test_inactive_user_cannot_login(self, session_authority):
        with pytest.raises(InvalidCredentials):
            session_authority.login("carol", "secret")


class TestValidate:
    def test_validate_returns_principal(self, session_authority):
        session = session_authority.login("alice", "secret")
        principal = session_authority.validate(session.token)
        assert principal.user_id == "u-alice"
        assert principal.group_ids == frozenset({"G1"})
        assert principal.is_admin is False

    def test_admin_flag_carried(self, session_authority):
        session = session_authority.login("root", "secret")
        assert session_authority.validate(session.token).is_admin is True

    def test_validate_is_idempotent(self, session_authority):
        session = session_authority.login("alice", "secret")
        first = session_authority.validate(session.token)
        second = session_authority.validate(session.token)
        assert first == second

    @pytest.mark.parametrize("token", [None, "", "not-a-real-token"])
    def test_unknown_token_invalid(self, session_authority, token):
        with pytest.raises(SessionInvalid):
            session_authority.validate(token)

    def test_expired_session_invalid(self, session_authority, clock):
        session = session_authority.login("alice", "secret")
        clock.advance(24 * 3600 + 1)
        with pytest.raises(SessionInvalid):
            session_authority.validate(session.token)

    def test_expired_session_invalid_before_eviction(self, user_store, clock):
        """Expiry is checked against the session itself, not only the cache TTL."""
        authority = SessionAuthority(user_store, ttl=10 * 24 * 3600, maxsize=10, clock=clock)
        session = authority.login("alice", "secret")
        # Shorten the stored session's window without touching the cache
        authority._sessions[session.token] = replace(session, expires_at=session.created_at)
        clock.advance(1)
        with pytest.raises(SessionInvalid):
            authority.validate(session.token)

    def test_validation_does_not_slide_expiry(self, session_authority, clock):
        session = session_authority.login("alice", "secret")
        clock.advance(23 * 3600)
        session_authority.validate(session.token)
        clock.advance(2 * 3600)
        with pytest.raises(SessionInvalid):
            session_authority.validate(session.token)

    def test_deactivated_user_session_invalid(self, users_yaml_content, users_config_path, clock):
        store = UserStore(users_config_path)
        authority = SessionAuthority(store, clock=clock)
        session = authority.login("alice", "secret")

        users_yaml_content["users"][0]["is_active"] = False
        with open(users_config_path, "w") as f:
            yaml.dump(users_yaml_content, f)
        store.reload_config()

        with pytest.raises(SessionInvalid):
            authority.validate(session.token)


class TestLogout:
    def test_logout_revokes(self, session_authority):
        session = session_authority.login("alice", "secret")
        session_authority.logout(session.token)
        with pytest.raises(SessionInvalid):
            session_authority.validate(session.token)

    def test_logout_unknown_token_no_error(self, session_authority):
        session_authority.logout("nonexistent")  # Should not raise
        session_authority.logout(None)

    def test_logout_expired_token_no_error(self, session_authority, clock):
        session = session_authority.login("alice", "secret")
        clock.advance(25 * 3600)
        session_authority.logout(session.token)  # Should not raise

    def test_logout_twice_no_error(self, session_authority):
        session = session_authority.login("alice", "secret")
        session_authority.logout(session.token)
        session_authority.logout(session.token)

    def test_logout_leaves_other_sessions(self, session_authority):
        first = session_authority.login("alice", "secret")
        second = session_authority.login("bob", "secret")
        session_authority.logout(first.token)
        assert session_authority.validate(second.token).user_id == "u-bob"


class TestCapacity:
    def test_full_table_refuses_login_without_evicting(self, user_store, clock):
        authority = SessionAuthority(user_store, ttl=3600, maxsize=2, clock=clock)
        alice = authority.login("alice", "secret")
        authority.login("bob", "secret")

        with pytest.raises(StorageUnavailable):
            authority.login("bob", "secret")
        assert authority.validate(alice.token).user_id == "u-alice"
        assert len(authority) == 2

    def test_expired_sessions_free_capacity(self, user_store, clock):
        authority = SessionAuthority(user_store, ttl=3600, maxsize=1, clock=clock)
        authority.login("alice", "secret")
        clock.advance(3601)
        session = authority.login("bob", "secret")
        assert authority.validate(session.token).user_id == "u-bob"

    def test_logout_frees_capacity(self, user_store, clock):
        authority = SessionAuthority(user_store, ttl=3600, maxsize=1, clock=clock)
        first = authority.login("alice", "secret")
        authority.logout(first.token)
        authority.login("bob", "secret")


def test_concurrent_validate_and_logout(session_authority):
    """Independent sessions can be validated and revoked from many threads."""
    sessions = [session_authority.login("alice", "secret") for _ in range(4)]
    errors: list[Exception] = []

    def worker(token: str, revoke: bool) -> None:
        try:
            for _ in range(200):
                session_authority.validate(token)
            if revoke:
                session_authority.logout(token)
        except Exception as e:  # collected for the assertion below
            errors.append(e)

    threads = [
        threading.Thread(target=worker, args=(s.token, i % 2 == 0))
        for i, s in enumerate(sessions)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(session_authority) == 2
