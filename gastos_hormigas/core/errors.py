"""
Normalized auth errors.

Provider failures come in many shapes (Supabase error codes, legacy Firebase
codes, raw messages, transport exceptions). They are all folded into
:class:`AuthErrorCode` so clients never branch on provider strings.
"""

from enum import Enum
from typing import Dict, List, Optional

import httpx
from fastapi import status
from sqlalchemy.exc import OperationalError


class AuthErrorCode(str, Enum):
    INVALID_CREDENTIAL = "auth/invalid-credential"
    EMAIL_ALREADY_IN_USE = "auth/email-already-in-use"
    CREDENTIAL_ALREADY_IN_USE = "auth/credential-already-in-use"
    WEAK_PASSWORD = "auth/weak-password"
    INVALID_EMAIL = "auth/invalid-email"
    TOO_MANY_REQUESTS = "auth/too-many-requests"
    NETWORK_ERROR = "auth/network-request-failed"
    USER_NOT_REGISTERED = "auth/user-not-registered"
    INTERNAL_ERROR = "auth/internal-error"


FRIENDLY_MESSAGES: Dict[AuthErrorCode, str] = {
    AuthErrorCode.INVALID_CREDENTIAL: "El correo electrónico o la contraseña son incorrectos.",
    AuthErrorCode.EMAIL_ALREADY_IN_USE: "Este correo electrónico ya está registrado. Intenta iniciar sesión.",
    AuthErrorCode.CREDENTIAL_ALREADY_IN_USE: "Esta cuenta ya está vinculada a otro usuario.",
    AuthErrorCode.WEAK_PASSWORD: "La contraseña es demasiado débil.",
    AuthErrorCode.INVALID_EMAIL: "El formato del correo electrónico no es válido.",
    AuthErrorCode.TOO_MANY_REQUESTS: "Demasiados intentos fallidos. Intenta de nuevo más tarde.",
    AuthErrorCode.NETWORK_ERROR: "Error de conexión. Verifica tu conexión a internet.",
    AuthErrorCode.USER_NOT_REGISTERED: "Este usuario no está registrado en nuestro sistema. Por favor, regístrate primero.",
    AuthErrorCode.INTERNAL_ERROR: "Ocurrió un error inesperado. Por favor, inténtalo de nuevo.",
}

HTTP_STATUS: Dict[AuthErrorCode, int] = {
    AuthErrorCode.INVALID_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.EMAIL_ALREADY_IN_USE: status.HTTP_409_CONFLICT,
    AuthErrorCode.CREDENTIAL_ALREADY_IN_USE: status.HTTP_409_CONFLICT,
    AuthErrorCode.WEAK_PASSWORD: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AuthErrorCode.INVALID_EMAIL: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AuthErrorCode.TOO_MANY_REQUESTS: status.HTTP_429_TOO_MANY_REQUESTS,
    AuthErrorCode.NETWORK_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    AuthErrorCode.USER_NOT_REGISTERED: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AuthError(Exception):
    def __init__(self, code: AuthErrorCode, details: Optional[List[str]] = None):
        self.code = code
        self.details = details or []
        super().__init__(code.value)

    @property
    def message(self) -> str:
        return FRIENDLY_MESSAGES[self.code]

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.code]


class AuthProviderError(Exception):
    """Raised by the auth provider with its own error code."""

    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message or code
        super().__init__(f"{code}: {self.message}")


class BootstrapError(Exception):
    """Profile or default-data initialization could not be written."""


_PROVIDER_CODES: Dict[str, AuthErrorCode] = {
    # Supabase
    "invalid_credentials": AuthErrorCode.INVALID_CREDENTIAL,
    "invalid_grant": AuthErrorCode.INVALID_CREDENTIAL,
    "user_not_found": AuthErrorCode.INVALID_CREDENTIAL,
    "user_already_exists": AuthErrorCode.EMAIL_ALREADY_IN_USE,
    "email_exists": AuthErrorCode.EMAIL_ALREADY_IN_USE,
    "identity_already_exists": AuthErrorCode.CREDENTIAL_ALREADY_IN_USE,
    "weak_password": AuthErrorCode.WEAK_PASSWORD,
    "email_address_invalid": AuthErrorCode.INVALID_EMAIL,
    "validation_failed": AuthErrorCode.INVALID_EMAIL,
    "over_request_rate_limit": AuthErrorCode.TOO_MANY_REQUESTS,
    "over_email_send_rate_limit": AuthErrorCode.TOO_MANY_REQUESTS,
    "request_timeout": AuthErrorCode.NETWORK_ERROR,
    # Firebase
    "auth/invalid-credential": AuthErrorCode.INVALID_CREDENTIAL,
    "auth/wrong-password": AuthErrorCode.INVALID_CREDENTIAL,
    "auth/user-not-found": AuthErrorCode.INVALID_CREDENTIAL,
    "auth/email-already-in-use": AuthErrorCode.EMAIL_ALREADY_IN_USE,
    "auth/credential-already-in-use": AuthErrorCode.CREDENTIAL_ALREADY_IN_USE,
    "auth/provider-already-linked": AuthErrorCode.CREDENTIAL_ALREADY_IN_USE,
    "auth/weak-password": AuthErrorCode.WEAK_PASSWORD,
    "auth/invalid-email": AuthErrorCode.INVALID_EMAIL,
    "auth/too-many-requests": AuthErrorCode.TOO_MANY_REQUESTS,
    "auth/network-request-failed": AuthErrorCode.NETWORK_ERROR,
    "auth/user-not-registered": AuthErrorCode.USER_NOT_REGISTERED,
}

_PROVIDER_MESSAGES = (
    ("invalid login credentials", AuthErrorCode.INVALID_CREDENTIAL),
    ("user already registered", AuthErrorCode.EMAIL_ALREADY_IN_USE),
    ("already been registered", AuthErrorCode.EMAIL_ALREADY_IN_USE),
    ("password should be", AuthErrorCode.WEAK_PASSWORD),
    ("rate limit", AuthErrorCode.TOO_MANY_REQUESTS),
    ("failed to fetch", AuthErrorCode.NETWORK_ERROR),
)


def normalize_auth_error(exc: BaseException) -> AuthError:
    if isinstance(exc, AuthError):
        return exc
    if isinstance(exc, (httpx.HTTPError, OperationalError)):
        return AuthError(AuthErrorCode.NETWORK_ERROR)
    if isinstance(exc, AuthProviderError):
        code = _PROVIDER_CODES.get(exc.code)
        if code is not None:
            return AuthError(code)
        text = exc.message
    else:
        text = str(exc)

    lowered = text.lower()
    for fragment, code in _PROVIDER_MESSAGES:
        if fragment in lowered:
            return AuthError(code)
    return AuthError(AuthErrorCode.INTERNAL_ERROR)
