import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlmodel import SQLModel, Session

from ..config import settings
from ..core.auth_provider import LocalAuthProvider, Principal
from ..core.device import OAuthFlow, choose_oauth_flow
from ..core.jwt import create_oauth_state, decode_oauth_state
from ..core.oauth import GoogleOAuthClient
from ..core.passwords import PasswordIssue, PasswordStrength, validate_password
from ..database import get_session
from ..dependencies import (
    get_auth_provider,
    get_current_principal,
    get_oauth_client,
    get_optional_principal,
)
from ..services.auth_service import AuthResult, AuthService


router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def get_auth_service(provider: LocalAuthProvider = Depends(get_auth_provider)) -> AuthService:
    return AuthService(provider)


class CredentialsIn(SQLModel):
    email: str
    password: str


class SessionOut(SQLModel):
    access_token: str
    token_type: str = "bearer"
    user_id: uuid.UUID
    is_anonymous: bool
    email: Optional[str] = None
    linked: bool = False


class PrincipalOut(SQLModel):
    user_id: uuid.UUID
    is_anonymous: bool
    email: Optional[str] = None


class GoogleStartOut(SQLModel):
    flow: OAuthFlow
    authorization_url: str
    state: str


class GoogleCallbackIn(SQLModel):
    code: str
    state: str


class PasswordCheckIn(SQLModel):
    password: str


class PasswordCheckOut(SQLModel):
    is_valid: bool
    strength: PasswordStrength
    score: int
    issues: List[PasswordIssue]
    messages: List[str]


def _session_response(result: AuthResult, response: Response) -> SessionOut:
    # In production (cross-site), we need SameSite=None and Secure.
    is_prod = settings.is_production
    response.set_cookie(
        key="access_token",
        value=result.access_token,
        httponly=True,
        secure=is_prod,
        samesite="none" if is_prod else "lax",
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )
    return SessionOut(
        access_token=result.access_token,
        user_id=result.principal.account_id,
        is_anonymous=result.principal.is_anonymous,
        email=result.principal.email,
        linked=result.linked,
    )


@router.post(
    "/guest",
    response_model=SessionOut,
    status_code=status.HTTP_201_CREATED,
)
def sign_in_as_guest(
    response: Response,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    return _session_response(service.sign_in_as_guest(session), response)


@router.post(
    "/signup",
    response_model=SessionOut,
    status_code=status.HTTP_201_CREATED,
)
def sign_up(
    payload: CredentialsIn,
    response: Response,
    session: Session = Depends(get_session),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: AuthService = Depends(get_auth_service),
):
    """
    Registro con email y contraseña.

    - Si la petición trae una sesión de invitado, la credencial se vincula a
      esa cuenta y se conserva su id y sus datos.
    """
    anonymous = principal if principal is not None and principal.is_anonymous else None
    result = service.sign_up_with_email(session, payload.email, payload.password, anonymous)
    return _session_response(result, response)


@router.post(
    "/login",
    response_model=SessionOut,
    status_code=status.HTTP_200_OK,
)
def login(
    payload: CredentialsIn,
    response: Response,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    result = service.sign_in_with_email(session, payload.email, payload.password)
    return _session_response(result, response)


@router.post(
    "/token",
    response_model=SessionOut,
    status_code=status.HTTP_200_OK,
)
def token(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    # OAuth2PasswordRequestForm usa 'username' como el campo de email
    result = service.sign_in_with_email(session, form_data.username, form_data.password)
    return _session_response(result, response)


@router.get(
    "/google/start",
    response_model=GoogleStartOut,
    status_code=status.HTTP_200_OK,
)
def google_start(
    max_touch_points: int = Query(default=0, ge=0),
    viewport_width: Optional[int] = Query(default=None, ge=0),
    user_agent: Optional[str] = Header(default=None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
):
    """
    Elige popup o redirect según el dispositivo y arma la URL de autorización.

    Si quien llama es invitado, el state firmado recuerda su cuenta para
    vincularla al volver del redirect.
    """
    claims = {"nonce": uuid.uuid4().hex}
    if principal is not None and principal.is_anonymous:
        claims["link_account"] = str(principal.account_id)
        claims["link_session"] = str(principal.session_id)
    state = create_oauth_state(claims)
    return GoogleStartOut(
        flow=choose_oauth_flow(user_agent, max_touch_points, viewport_width),
        authorization_url=oauth_client.authorization_url(state),
        state=state,
    )


@router.post(
    "/google/callback",
    response_model=SessionOut,
    status_code=status.HTTP_200_OK,
)
def google_callback(
    payload: GoogleCallbackIn,
    response: Response,
    session: Session = Depends(get_session),
    principal: Optional[Principal] = Depends(get_optional_principal),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
    service: AuthService = Depends(get_auth_service),
):
    try:
        state = decode_oauth_state(payload.state)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OAuth state")

    current = principal
    if current is None or not current.is_anonymous:
        current = service.link_target_from_state(session, state) or current
    result = service.sign_in_with_google(session, oauth_client, payload.code, current)
    return _session_response(result, response)


@router.get(
    "/session",
    response_model=PrincipalOut,
    status_code=status.HTTP_200_OK,
)
def current_session(principal: Principal = Depends(get_current_principal)):
    return PrincipalOut(
        user_id=principal.account_id,
        is_anonymous=principal.is_anonymous,
        email=principal.email,
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
)
def logout(
    response: Response,
    session: Session = Depends(get_session),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: AuthService = Depends(get_auth_service),
):
    service.sign_out(session, principal)
    response.delete_cookie(key="access_token", path="/")
    return None


@router.post(
    "/password/check",
    response_model=PasswordCheckOut,
    status_code=status.HTTP_200_OK,
)
def password_check(payload: PasswordCheckIn):
    report = validate_password(payload.password)
    return PasswordCheckOut(
        is_valid=report.is_valid,
        strength=report.strength,
        score=report.score,
        issues=report.issues,
        messages=report.messages,
    )
