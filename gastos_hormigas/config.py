from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel
import os

# Carga el .env automáticamente
load_dotenv()


class ConfigurationError(RuntimeError):
    """A required setting is missing or invalid."""


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_list(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "development")
    database_url: Optional[str] = os.getenv("DATABASE_URL")
    database_echo: bool = _as_bool(os.getenv("DATABASE_ECHO"))
    jwt_secret: Optional[str] = os.getenv("JWT_SECRET")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM") or "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))
    cors_origins: List[str] = _as_list(
        os.getenv("CORS_ORIGINS"),
        ["http://localhost:5173", "http://127.0.0.1:5173"],
    )
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Google OAuth, only needed by the /auth/google endpoints
    google_client_id: Optional[str] = os.getenv("GOOGLE_CLIENT_ID")
    google_client_secret: Optional[str] = os.getenv("GOOGLE_CLIENT_SECRET")
    oauth_redirect_url: str = os.getenv(
        "OAUTH_REDIRECT_URL", "http://localhost:5173/auth/callback"
    )

    login_max_attempts: int = int(os.getenv("LOGIN_MAX_ATTEMPTS", "5"))
    login_window_seconds: int = int(os.getenv("LOGIN_WINDOW_SECONDS", "300"))

    debug_registry: bool = _as_bool(os.getenv("DEBUG_REGISTRY"))

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate_required(self) -> "Settings":
        missing = [
            name
            for name, value in (
                ("DATABASE_URL", self.database_url),
                ("JWT_SECRET", self.jwt_secret),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Faltan variables de entorno requeridas: {', '.join(missing)}"
            )
        return self

    def require_google(self) -> None:
        if not self.google_client_id or not self.google_client_secret:
            raise ConfigurationError(
                "Faltan las variables de entorno de Google: GOOGLE_CLIENT_ID y GOOGLE_CLIENT_SECRET"
            )


# Instancia global de settings
settings = Settings().validate_required()
