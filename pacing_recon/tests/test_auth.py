"""
Test Module for the Credential Service.

Covers login, fixed 24-hour expiry (no renewal on use), logout, purging and
the per-settings service cache.
"""

from datetime import timedelta

import pytest
from pydantic import SecretStr

from pacing_recon.core.dependencies import (
    _credential_services,
    get_credential_service,
    reset_credential_services,
)
from pacing_recon.services.auth import (
    AuthError,
    CredentialService,
    InvalidCredentialsError,
    InvalidSessionError,
    SessionExpiredError,
)


@pytest.fixture
def service(clock) -> CredentialService:
    return CredentialService('adops', 's3cret', now=clock)


class TestLogin:
    """Tests for credential checks and token issue."""

    def test_valid_login_issues_session(self, service, clock):
        session = service.login('adops', 's3cret')

        assert session.username == 'adops'
        assert session.issued_at == clock.current
        assert session.expires_at == clock.current + timedelta(hours=24)
        assert len(session.token) >= 32

    def test_tokens_are_unique(self, service):
        assert service.login('adops', 's3cret').token != service.login('adops', 's3cret').token

    @pytest.mark.parametrize('username,password', [
        ('adops', 'wrong'),
        ('someone', 's3cret'),
        ('', ''),
    ])
    def test_invalid_credentials(self, service, username, password):
        with pytest.raises(InvalidCredentialsError):
            service.login(username, password)

    def test_errors_share_base_class(self):
        for error in (InvalidCredentialsError, InvalidSessionError, SessionExpiredError):
            assert issubclass(error, AuthError)

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValueError):
            CredentialService('adops', 's3cret', session_ttl=timedelta(0))


class TestValidate:
    """Tests for session validation and expiry."""

    def test_valid_just_before_expiry(self, service, clock):
        session = service.login('adops', 's3cret')
        clock.advance(timedelta(hours=23, minutes=59, seconds=59))

        assert service.validate(session.token) == session

    def test_expired_at_exactly_24_hours(self, service, clock):
        session = service.login('adops', 's3cret')
        clock.advance(timedelta(hours=24))

        with pytest.raises(SessionExpiredError):
            service.validate(session.token)
        # Expired sessions are removed
        with pytest.raises(InvalidSessionError):
            service.validate(session.token)

    def test_use_does_not_extend_session(self, service, clock):
        session = service.login('adops', 's3cret')
        clock.advance(timedelta(hours=12))
        service.validate(session.token)
        clock.advance(timedelta(hours=12))

        with pytest.raises(SessionExpiredError):
            service.validate(session.token)

    @pytest.mark.parametrize('token', [None, '', 'not-a-token'])
    def test_unknown_tokens(self, service, token):
        with pytest.raises(InvalidSessionError):
            service.validate(token)


class TestLogout:
    """Tests for revocation and expired-session sweeping."""

    def test_logout_revokes(self, service):
        session = service.login('adops', 's3cret')

        assert service.logout(session.token) is True
        assert service.logout(session.token) is False
        with pytest.raises(InvalidSessionError):
            service.validate(session.token)

    def test_purge_expired(self, service, clock):
        service.login('adops', 's3cret')
        clock.advance(timedelta(hours=1))
        fresh = service.login('adops', 's3cret')
        clock.advance(timedelta(hours=23))

        assert service.purge_expired() == 1
        assert service.active_session_count == 1
        assert service.validate(fresh.token) == fresh

    def test_login_sweeps_expired_sessions(self, service, clock):
        for _ in range(100):
            service.login('adops', 's3cret')
            clock.advance(timedelta(hours=25))

        assert service.active_session_count <= 1


# =============================================================================
# TEST CLASS: Service Cache
# =============================================================================

class TestCredentialServiceCache:
    """Tests for the per-settings service cache."""

    @pytest.fixture(autouse=True)
    def _fresh_cache(self):
        reset_credential_services()
        yield
        reset_credential_services()

    def test_same_settings_share_service(self, auth_settings):
        assert get_credential_service(auth_settings) is get_credential_service(auth_settings)

    def test_password_not_used_as_key(self, auth_settings):
        get_credential_service(auth_settings)

        assert len(_credential_services) == 1
        for key in _credential_services:
            assert 's3cret' not in key
            assert len(key) == 64

    def test_changed_password_gets_new_service(self, auth_settings):
        rotated = auth_settings.model_copy(update={'auth_password': SecretStr('rotated')})

        assert get_credential_service(auth_settings) is not get_credential_service(rotated)
