"""
Cliente OAuth de Google contra un transporte HTTP simulado
"""
from urllib.parse import parse_qs

import httpx
import pytest
from sqlmodel import select

from gastos_hormigas.core.errors import AuthError, AuthErrorCode
from gastos_hormigas.core.oauth import GoogleOAuthClient
from gastos_hormigas.models.auth import AuthIdentity
from gastos_hormigas.models.user import User


def _google(token=None, userinfo=None, calls=None):
    """Builds a client whose token and userinfo endpoints run the given handlers."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if request.url == GoogleOAuthClient.TOKEN_URL:
            return token(request) if token else httpx.Response(200, json={"access_token": "ya29.token"})
        if request.url == GoogleOAuthClient.USERINFO_URL:
            if userinfo:
                return userinfo(request)
            return httpx.Response(200, json={"sub": "g-123", "email": "Ana@Example.com", "name": "Ana"})
        return httpx.Response(404)

    return GoogleOAuthClient(transport=httpx.MockTransport(handler))


class TestFetchIdentity:
    def test_happy_path(self):
        calls = []
        identity = _google(calls=calls).fetch_identity("auth-code")

        assert identity.provider == "google"
        assert identity.subject == "g-123"
        assert identity.email == "Ana@Example.com"
        assert identity.display_name == "Ana"
        token_request, userinfo_request = calls
        form = parse_qs(token_request.content.decode())
        assert form["code"] == ["auth-code"]
        assert form["grant_type"] == ["authorization_code"]
        assert userinfo_request.headers["Authorization"] == "Bearer ya29.token"

    def test_sign_in_creates_profile(self, session, service):
        result = service.sign_in_with_google(session, _google(), "auth-code")

        assert not result.principal.is_anonymous
        assert session.get(User, result.principal.account_id) is not None
        identity = session.exec(select(AuthIdentity).where(AuthIdentity.subject == "g-123")).one()
        assert identity.provider == "google"
        assert identity.account_id == result.principal.account_id


class TestFailures:
    def test_rejected_code_is_invalid_credential(self, session, service):
        client = _google(token=lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(AuthError) as exc_info:
            service.sign_in_with_google(session, client, "stale-code")

        assert exc_info.value.code == AuthErrorCode.INVALID_CREDENTIAL

    def test_userinfo_server_error_is_network_failure(self, session, service):
        client = _google(userinfo=lambda request: httpx.Response(503))

        with pytest.raises(AuthError) as exc_info:
            service.sign_in_with_google(session, client, "auth-code")

        assert exc_info.value.code == AuthErrorCode.NETWORK_ERROR

    def test_connection_error_is_network_failure(self, session, service):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthError) as exc_info:
            service.sign_in_with_google(session, _google(token=refuse), "auth-code")

        assert exc_info.value.code == AuthErrorCode.NETWORK_ERROR

    def test_userinfo_without_subject_is_rejected(self, session, service):
        client = _google(userinfo=lambda request: httpx.Response(200, json={"email": "ana@example.com"}))

        with pytest.raises(AuthError) as exc_info:
            service.sign_in_with_google(session, client, "auth-code")

        assert exc_info.value.code == AuthErrorCode.INVALID_CREDENTIAL
