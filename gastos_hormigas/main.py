import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import ConfigurationError, settings
from .core.auth_provider import auth_provider
from .core.debug import DebugRegistry
from .core.errors import AuthError, BootstrapError
from .core.realtime import category_hub
from .database import engine, init_db
from .routers import assets as assets_router
from .routers import auth as auth_router
from .routers import categories as categories_router
from .routers import expenses as expenses_router
from .routers import financials as financials_router
from .routers import fixed_expenses as fixed_expenses_router
from .routers import incomes as incomes_router
from .routers import liabilities as liabilities_router
from .routers import savings_goals as savings_goals_router
from .routers import users as users_router

logger = logging.getLogger(__name__)


def _debug_registry() -> DebugRegistry:
    enabled = settings.environment.lower() == "development" and settings.debug_registry
    registry = DebugRegistry(enabled)
    if enabled:
        registry.register("engine", engine)
        registry.register("auth_provider", auth_provider)
        registry.register("category_hub", category_hub)
        logger.warning("Debug registry enabled: %s", ", ".join(registry.names()))
    return registry


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="Gastos Hormigas – Backend", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code.value, "errors": exc.details},
        )

    @app.exception_handler(BootstrapError)
    async def bootstrap_error_handler(request: Request, exc: BootstrapError):
        logger.error("Bootstrap error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "No se pudo inicializar la cuenta. Inténtalo de nuevo."},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error("Configuration error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
        )

    @app.on_event("startup")
    def on_startup():
        init_db()

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.state.debug_registry = _debug_registry()
    if app.state.debug_registry.enabled:

        @app.get("/debug/registry", tags=["debug"])
        def debug_registry():
            registry = app.state.debug_registry
            return {name: type(registry.get(name)).__name__ for name in registry.names()}

    app.include_router(auth_router.router)
    app.include_router(users_router.router)
    app.include_router(categories_router.router)
    app.include_router(expenses_router.router)
    app.include_router(fixed_expenses_router.router)
    app.include_router(incomes_router.router)
    app.include_router(savings_goals_router.router)
    app.include_router(financials_router.router)
    app.include_router(assets_router.router)
    app.include_router(liabilities_router.router)

    return app


app = create_app()
