"""Tests for SessionManager, require_auth and AuthService."""

from __future__ import annotations

import pytest

from expense_tracker.auth import AuthenticationError, SessionManager, require_auth
from expense_tracker.database import DatabaseManager
from expense_tracker.models.auth_models import AuthErrorCode
from expense_tracker.models.user import User
from expense_tracker.services.auth_service import AuthService


class TestSessionManager:
    def test_starts_signed_out(self) -> None:
        session = SessionManager()
        assert not session.is_authenticated
        assert session.current_user is None

    def test_begin_and_clear(self, user: User) -> None:
        session = SessionManager()
        session.begin(user)
        assert session.current_user == user
        assert session.is_authenticated

        session.clear()
        assert not session.is_authenticated
        assert session.current_user is None


def test_require_auth(user: User) -> None:
    session = SessionManager()

    @require_auth(session)
    def greet(name: str) -> str:
        return f"hello {name}"

    with pytest.raises(AuthenticationError):
        greet("asha")
    session.begin(user)
    assert greet("asha") == "hello asha"


@pytest.fixture
def auth_service(remote_db: DatabaseManager, logger) -> tuple[AuthService, SessionManager]:
    session = SessionManager()
    return AuthService(db=remote_db, session=session, logger=logger), session


class TestAuthService:
    def test_login_success(self, auth_service, fake_supabase) -> None:
        service, session = auth_service
        fake_supabase.auth.add_account("asha@example.com", "s3cret", "user-1", full_name="Asha")

        result = service.login("  Asha@Example.com ", "s3cret")
        assert result.success
        assert result.user == User(id="user-1", email="asha@example.com", full_name="Asha")
        assert session.current_user.id == "user-1"

    def test_wrong_password(self, auth_service, fake_supabase) -> None:
        service, session = auth_service
        fake_supabase.auth.add_account("asha@example.com", "s3cret", "user-1")
        result = service.login("asha@example.com", "nope")
        assert result.error_code is AuthErrorCode.INVALID_CREDENTIALS
        assert result.error_message == "Incorrect email or password."
        assert not session.is_authenticated

    def test_missing_credentials(self, auth_service) -> None:
        service, _ = auth_service
        result = service.login("", "")
        assert result.error_code is AuthErrorCode.INVALID_CREDENTIALS

    def test_network_error(self, auth_service, fake_supabase) -> None:
        service, _ = auth_service
        fake_supabase.auth.sign_in_error = ConnectionError("unreachable")
        assert service.login("a@example.com", "x").error_code is AuthErrorCode.NETWORK_ERROR

    def test_unconfirmed_email(self, auth_service, fake_supabase) -> None:
        service, _ = auth_service
        fake_supabase.auth.sign_in_error = Exception("Email not confirmed")
        assert service.login("a@example.com", "x").error_code is AuthErrorCode.EMAIL_NOT_CONFIRMED

    def test_unknown_error(self, auth_service, fake_supabase) -> None:
        service, _ = auth_service
        fake_supabase.auth.sign_in_error = Exception("teapot")
        assert service.login("a@example.com", "x").error_code is AuthErrorCode.UNKNOWN_ERROR

    def test_login_without_backend(self, logger) -> None:
        db = DatabaseManager(supabase_url="", supabase_key="", sqlite_path=None, logger=logger)
        service = AuthService(db=db, session=SessionManager(), logger=logger)
        assert service.login("a@example.com", "x").error_code is AuthErrorCode.BACKEND_UNAVAILABLE

    def test_get_session_user(self, auth_service, fake_supabase) -> None:
        service, session = auth_service
        assert service.get_session_user().error_code is AuthErrorCode.SESSION_EXPIRED

        fake_supabase.auth.add_account("asha@example.com", "s3cret", "user-1")
        service.login("asha@example.com", "s3cret")
        session.clear()
        restored = service.get_session_user()
        assert restored.success
        assert session.current_user.id == "user-1"

    def test_logout_clears_session_even_if_server_fails(self, auth_service, fake_supabase) -> None:
        service, session = auth_service
        fake_supabase.auth.add_account("asha@example.com", "s3cret", "user-1")
        service.login("asha@example.com", "s3cret")
        fake_supabase.auth.sign_out_error = ConnectionError("offline")

        service.logout()
        assert fake_supabase.auth.signed_out
        assert not session.is_authenticated

    def test_local_profile(self, logger) -> None:
        db = DatabaseManager(supabase_url="", supabase_key="", sqlite_path=None, logger=logger)
        session = SessionManager()
        service = AuthService(db=db, session=session, logger=logger)
        result = service.use_local_profile("local-user", "local@localhost")
        assert result.success
        assert session.current_user.email == "local@localhost"
        service.logout()
        assert not session.is_authenticated
