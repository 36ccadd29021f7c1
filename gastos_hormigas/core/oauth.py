import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from ..config import settings
from .auth_provider import OAuthIdentity
from .errors import AuthProviderError

logger = logging.getLogger(__name__)


class GoogleOAuthClient:
    """Authorization-code flow against Google's OpenID Connect endpoints."""

    provider = "google"

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def authorization_url(self, state: str) -> str:
        settings.require_google()
        query = urlencode(
            {
                "client_id": settings.google_client_id,
                "redirect_uri": settings.oauth_redirect_url,
                "response_type": "code",
                "scope": "openid email profile",
                "state": state,
                "prompt": "select_account",
            }
        )
        return f"{self.AUTHORIZE_URL}?{query}"

    def fetch_identity(self, code: str) -> OAuthIdentity:
        settings.require_google()
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            token_response = client.post(
                self.TOKEN_URL,
                data={
                    "code": code,
                    "client_id": settings.google_client_id,
                    "client_secret": settings.google_client_secret,
                    "redirect_uri": settings.oauth_redirect_url,
                    "grant_type": "authorization_code",
                },
            )
            if token_response.status_code >= 400:
                logger.warning("Google token exchange failed: %s", token_response.text)
                raise AuthProviderError("invalid_grant", "Authorization code rejected")
            access_token = token_response.json().get("access_token")

            userinfo_response = client.get(
                self.USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            userinfo_response.raise_for_status()
            info = userinfo_response.json()

        if not info.get("sub"):
            raise AuthProviderError("invalid_grant", "Userinfo without subject")
        return OAuthIdentity(
            provider=self.provider,
            subject=str(info["sub"]),
            email=info.get("email"),
            display_name=info.get("name"),
        )
