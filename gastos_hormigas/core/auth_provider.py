"""
In-process auth provider.

Implements the provider surface the app consumes: password sign-up and
sign-in, anonymous sign-in, OAuth identity sign-in, identity linking,
sign-out and session lookup. Methods add and flush rows on the caller's
session but never commit; the auth service owns the unit of work.
"""

import logging
import time
import uuid
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Deque, Dict, Optional

from jose import JWTError
from sqlmodel import Session, select

from ..config import settings
from ..models.auth import AuthAccount, AuthIdentity, AuthSession
from .errors import AuthProviderError
from .jwt import create_access_token, decode_access_token
from .security import hash_password, verify_password

logger = logging.getLogger(__name__)

EMAIL_PROVIDER = "email"


@dataclass
class OAuthIdentity:
    provider: str
    subject: str
    email: Optional[str] = None
    display_name: Optional[str] = None


@dataclass
class Principal:
    account_id: uuid.UUID
    session_id: uuid.UUID
    is_anonymous: bool
    email: Optional[str] = None


@dataclass
class ProviderSession:
    principal: Principal
    access_token: str
    created: bool = False


class LoginThrottle:
    """Sliding window of failed password attempts per email."""

    def __init__(self, max_attempts: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def _prune(self, key: str) -> Deque[float]:
        attempts = self._failures[key]
        cutoff = self._clock() - self.window_seconds
        while attempts and attempts[0] <= cutoff:
            attempts.popleft()
        return attempts

    def is_blocked(self, key: str) -> bool:
        with self._lock:
            return len(self._prune(key)) >= self.max_attempts

    def record_failure(self, key: str) -> None:
        with self._lock:
            self._prune(key).append(self._clock())

    def reset(self, key: str) -> None:
        with self._lock:
            self._failures.pop(key, None)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class LocalAuthProvider:
    def __init__(self, throttle: Optional[LoginThrottle] = None):
        self.throttle = throttle or LoginThrottle(
            settings.login_max_attempts, settings.login_window_seconds
        )

    # ── sessions ────────────────────────────────────────────

    def _open_session(self, session: Session, account: AuthAccount, created: bool = False) -> ProviderSession:
        auth_session = AuthSession(account_id=account.id)
        account.last_sign_in_at = datetime.now(timezone.utc)
        session.add(auth_session)
        session.add(account)
        session.flush()
        principal = self._principal(session, account, auth_session.id)
        return ProviderSession(principal, self.issue_token(principal), created)

    def _principal(self, session: Session, account: AuthAccount, session_id: uuid.UUID) -> Principal:
        identity = session.exec(
            select(AuthIdentity)
            .where(AuthIdentity.account_id == account.id, AuthIdentity.email.is_not(None))
            .order_by(AuthIdentity.created_at)
        ).first()
        return Principal(
            account_id=account.id,
            session_id=session_id,
            is_anonymous=account.is_anonymous,
            email=identity.email if identity else None,
        )

    def issue_token(self, principal: Principal) -> str:
        return create_access_token(
            {
                "sub": str(principal.account_id),
                "sid": str(principal.session_id),
                "anon": principal.is_anonymous,
            }
        )

    def get_session(self, session: Session, token: str) -> Optional[Principal]:
        try:
            payload = decode_access_token(token)
            account_id = uuid.UUID(str(payload["sub"]))
            session_id = uuid.UUID(str(payload["sid"]))
        except (JWTError, KeyError, ValueError):
            return None

        auth_session = session.get(AuthSession, session_id)
        if auth_session is None or auth_session.revoked_at is not None:
            return None
        if auth_session.account_id != account_id:
            return None
        account = session.get(AuthAccount, account_id)
        if account is None:
            return None
        return self._principal(session, account, session_id)

    def refresh_session(self, session: Session, principal: Principal) -> ProviderSession:
        """Re-read the account and issue a new token for the same session id."""
        account = session.get(AuthAccount, principal.account_id)
        if account is None:
            raise AuthProviderError("user_not_found", "Account no longer exists")
        refreshed = self._principal(session, account, principal.session_id)
        return ProviderSession(refreshed, self.issue_token(refreshed))

    def sign_out(self, session: Session, session_id: uuid.UUID) -> None:
        auth_session = session.get(AuthSession, session_id)
        if auth_session is None or auth_session.revoked_at is not None:
            return
        auth_session.revoked_at = datetime.now(timezone.utc)
        session.add(auth_session)
        session.flush()

    # ── password ────────────────────────────────────────────

    def _email_identity(self, session: Session, email: str) -> Optional[AuthIdentity]:
        return session.exec(
            select(AuthIdentity).where(
                AuthIdentity.provider == EMAIL_PROVIDER,
                AuthIdentity.subject == email,
            )
        ).first()

    def sign_up(self, session: Session, email: str, password: str) -> ProviderSession:
        email_norm = normalize_email(email)
        if self._email_identity(session, email_norm) is not None:
            raise AuthProviderError("user_already_exists", "User already registered")

        account = AuthAccount(is_anonymous=False)
        session.add(account)
        session.flush()
        session.add(
            AuthIdentity(
                account_id=account.id,
                provider=EMAIL_PROVIDER,
                subject=email_norm,
                email=email_norm,
                hashed_password=hash_password(password),
            )
        )
        return self._open_session(session, account, created=True)

    def sign_in_with_password(self, session: Session, email: str, password: str) -> ProviderSession:
        email_norm = normalize_email(email)
        if self.throttle.is_blocked(email_norm):
            raise AuthProviderError("over_request_rate_limit", "Request rate limit reached")

        identity = self._email_identity(session, email_norm)
        if identity is None or not verify_password(password, identity.hashed_password or ""):
            self.throttle.record_failure(email_norm)
            raise AuthProviderError("invalid_credentials", "Invalid login credentials")

        self.throttle.reset(email_norm)
        account = session.get(AuthAccount, identity.account_id)
        return self._open_session(session, account)

    # ── anonymous / OAuth ───────────────────────────────────

    def sign_in_anonymously(self, session: Session) -> ProviderSession:
        account = AuthAccount(is_anonymous=True)
        session.add(account)
        session.flush()
        return self._open_session(session, account, created=True)

    def _oauth_identity(self, session: Session, identity: OAuthIdentity) -> Optional[AuthIdentity]:
        return session.exec(
            select(AuthIdentity).where(
                AuthIdentity.provider == identity.provider,
                AuthIdentity.subject == identity.subject,
            )
        ).first()

    def sign_in_with_identity(self, session: Session, identity: OAuthIdentity) -> ProviderSession:
        existing = self._oauth_identity(session, identity)
        if existing is not None:
            account = session.get(AuthAccount, existing.account_id)
            return self._open_session(session, account)

        account = AuthAccount(is_anonymous=False)
        session.add(account)
        session.flush()
        session.add(
            AuthIdentity(
                account_id=account.id,
                provider=identity.provider,
                subject=identity.subject,
                email=normalize_email(identity.email) if identity.email else None,
            )
        )
        return self._open_session(session, account, created=True)

    # ── linking ─────────────────────────────────────────────

    def _linkable_account(self, session: Session, account_id: uuid.UUID) -> AuthAccount:
        account = session.get(AuthAccount, account_id)
        if account is None:
            raise AuthProviderError("user_not_found", "Account no longer exists")
        return account

    def link_password(self, session: Session, account_id: uuid.UUID, email: str, password: str) -> AuthAccount:
        account = self._linkable_account(session, account_id)
        email_norm = normalize_email(email)
        if self._email_identity(session, email_norm) is not None:
            raise AuthProviderError("email_exists", "A user with this email address has already been registered")

        session.add(
            AuthIdentity(
                account_id=account.id,
                provider=EMAIL_PROVIDER,
                subject=email_norm,
                email=email_norm,
                hashed_password=hash_password(password),
            )
        )
        account.is_anonymous = False
        session.add(account)
        session.flush()
        logger.info("Linked email identity to account %s", account.id)
        return account

    def link_identity(self, session: Session, account_id: uuid.UUID, identity: OAuthIdentity) -> AuthAccount:
        account = self._linkable_account(session, account_id)
        existing = self._oauth_identity(session, identity)
        if existing is not None and existing.account_id != account.id:
            raise AuthProviderError("identity_already_exists", "Identity is already linked to another user")

        if existing is None:
            session.add(
                AuthIdentity(
                    account_id=account.id,
                    provider=identity.provider,
                    subject=identity.subject,
                    email=normalize_email(identity.email) if identity.email else None,
                )
            )
        account.is_anonymous = False
        session.add(account)
        session.flush()
        logger.info("Linked %s identity to account %s", identity.provider, account.id)
        return account


auth_provider = LocalAuthProvider()
