"""
Authentication Service.

State machine over the auth provider:

    Unauthenticated -> Anonymous -> Permanent
    Unauthenticated -> Permanent

Sign-in and bootstrap run in one unit of work: the provider rows and the
bootstrap rows are committed together or rolled back together.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.auth_provider import LocalAuthProvider, Principal, ProviderSession, auth_provider
from ..core.errors import (
    AuthError,
    AuthErrorCode,
    AuthProviderError,
    BootstrapError,
    normalize_auth_error,
)
from ..core.oauth import GoogleOAuthClient
from ..core.passwords import validate_password
from ..models.auth import AuthAccount, AuthSession
from . import users
from .bootstrap import BootstrapResult, bootstrap_user

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    principal: Principal
    access_token: str
    linked: bool = False
    bootstrap: Optional[BootstrapResult] = None


def check_email(email: str) -> str:
    """Local email shape check. Returns the normalized address."""
    try:
        validated = validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise AuthError(AuthErrorCode.INVALID_EMAIL)
    return validated.normalized.lower()


def check_password(password: str) -> None:
    report = validate_password(password)
    if not report.is_valid:
        raise AuthError(AuthErrorCode.WEAK_PASSWORD, details=report.messages)


class AuthService:
    def __init__(self, provider: LocalAuthProvider = auth_provider):
        self.provider = provider

    @contextmanager
    def _unit_of_work(self, session: Session, action: str):
        try:
            yield
            session.commit()
        except (AuthError, BootstrapError):
            session.rollback()
            raise
        except (AuthProviderError, httpx.HTTPError, SQLAlchemyError) as exc:
            session.rollback()
            error = normalize_auth_error(exc)
            logger.warning("%s failed (%s): %s", action, error.code.value, exc)
            raise error from exc

    def _result(self, ps: ProviderSession, bootstrap: Optional[BootstrapResult] = None, linked: bool = False) -> AuthResult:
        return AuthResult(ps.principal, ps.access_token, linked=linked, bootstrap=bootstrap)

    # ── Google ──────────────────────────────────────────────

    def link_target_from_state(self, session: Session, state: Dict[str, Any]) -> Optional[Principal]:
        """
        The anonymous principal recorded when a redirect flow started, if its
        session is still open and the account is still anonymous.
        """
        try:
            account_id = uuid.UUID(str(state["link_account"]))
            session_id = uuid.UUID(str(state["link_session"]))
        except (KeyError, ValueError):
            return None
        auth_session = session.get(AuthSession, session_id)
        if auth_session is None or auth_session.revoked_at is not None or auth_session.account_id != account_id:
            return None
        account = session.get(AuthAccount, account_id)
        if account is None or not account.is_anonymous:
            return None
        return Principal(account_id=account_id, session_id=session_id, is_anonymous=True)

    def sign_in_with_google(
        self,
        session: Session,
        oauth_client: GoogleOAuthClient,
        code: str,
        current: Optional[Principal] = None,
    ) -> AuthResult:
        with self._unit_of_work(session, "sign_in_with_google"):
            identity = oauth_client.fetch_identity(code)

            if current is not None and current.is_anonymous:
                self.provider.link_identity(session, current.account_id, identity)
                boot = bootstrap_user(session, current.account_id, identity.email, identity.display_name)
                if identity.email:
                    users.attach_email(session, current.account_id, identity.email.lower())
                result = self._result(self.provider.refresh_session(session, current), boot, linked=True)
            else:
                ps = self.provider.sign_in_with_identity(session, identity)
                boot = bootstrap_user(session, ps.principal.account_id, ps.principal.email, identity.display_name)
                result = self._result(ps, boot)

        logger.info("Google sign-in for %s (linked=%s)", result.principal.account_id, result.linked)
        return result

    # ── guest ───────────────────────────────────────────────

    def sign_in_as_guest(self, session: Session) -> AuthResult:
        with self._unit_of_work(session, "sign_in_as_guest"):
            ps = self.provider.sign_in_anonymously(session)
            boot = bootstrap_user(session, ps.principal.account_id)
        logger.info("Guest session for %s", ps.principal.account_id)
        return self._result(ps, boot)

    # ── email ───────────────────────────────────────────────

    def sign_up_with_email(
        self,
        session: Session,
        email: str,
        password: str,
        anonymous: Optional[Principal] = None,
    ) -> AuthResult:
        email_norm = check_email(email)
        check_password(password)

        with self._unit_of_work(session, "sign_up_with_email"):
            if anonymous is not None and anonymous.is_anonymous:
                self.provider.link_password(session, anonymous.account_id, email_norm, password)
                boot = bootstrap_user(session, anonymous.account_id, email_norm)
                users.attach_email(session, anonymous.account_id, email_norm)
                result = self._result(self.provider.refresh_session(session, anonymous), boot, linked=True)
            else:
                ps = self.provider.sign_up(session, email_norm, password)
                boot = bootstrap_user(session, ps.principal.account_id, email_norm)
                result = self._result(ps, boot)

        logger.info("Email sign-up for %s (linked=%s)", result.principal.account_id, result.linked)
        return result

    def sign_in_with_email(self, session: Session, email: str, password: str) -> AuthResult:
        with self._unit_of_work(session, "sign_in_with_email"):
            ps = self.provider.sign_in_with_password(session, email, password)
            account_id = ps.principal.account_id
            registered = users.get_profile(session, account_id) is not None
            if registered:
                # retries any bootstrap step a previous login left unfinished
                boot = bootstrap_user(session, account_id, ps.principal.email)
            else:
                self.provider.sign_out(session, ps.principal.session_id)

        if not registered:
            logger.warning("Account %s authenticated without a profile; session closed", account_id)
            raise AuthError(AuthErrorCode.USER_NOT_REGISTERED)
        return self._result(ps, boot)

    # ── session ─────────────────────────────────────────────

    def sign_out(self, session: Session, principal: Optional[Principal]) -> None:
        """Best effort: failures are logged, never raised."""
        if principal is None:
            return
        try:
            self.provider.sign_out(session, principal.session_id)
            session.commit()
        except Exception as exc:
            session.rollback()
            logger.warning("Error durante sign_out (no crítico): %s", exc)


auth_service = AuthService()
