# storefront/main.py
from contextlib import asynccontextmanager
from datetime import timedelta
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from storefront.core.config import Settings, get_settings
from storefront.core.errors import (
    AuthError,
    CryptoUnavailable,
    EmailAlreadyRegistered,
    Forbidden,
    IntegrityError,
    NotFound,
    StoreError,
    StoreUnavailable,
    StorefrontError,
    Timeout,
    ValidationError,
)
from storefront.core.security import PasswordHasher
from storefront.core.tokens import TokenService
from storefront.repositories.factory import build_record_store
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.record_store import RecordStore
from storefront.repositories.user_repo import UserRepository
from storefront.services.order_service import OrderCoordinator, OrderService
from storefront.services.user_service import UserService

# Routers
from storefront.routers.auth import router as auth_router
from storefront.routers.orders import router as orders_router
from storefront.routers.users import router as users_router

logger = logging.getLogger("uvicorn")


# Most specific first; the first matching class wins.
ERROR_STATUS: list[tuple[type[StorefrontError], int]] = [
    (EmailAlreadyRegistered, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (IntegrityError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (Timeout, status.HTTP_504_GATEWAY_TIMEOUT),
    (CryptoUnavailable, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: StorefrontError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """
    Map domain errors to HTTP responses shaped like HTTPException
    ({"detail": ...}).
    """
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.__class__.__name__)

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(status_code=status_code, content={"detail": exc.message}, headers=headers)


def create_app(settings: Settings | None = None, store: RecordStore | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Startup order:
      - settings (raises if JWT_SECRET is missing or empty)
      - record store selected by RECORD_STORE (or the one passed in)
      - hasher, token service, services; stored on app.state
    """
    settings = settings or get_settings()
    store = store or build_record_store(settings)

    logging.basicConfig(level=settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Startup:
          - Verify store connectivity and create tables / indexes.

        Shutdown:
          - Release store connections.
        """
        logger.info("Startup: initializing %s record store...", settings.RECORD_STORE)
        try:
            store.init_schema()
            logger.info("Startup: record store OK.")
        except StoreError as e:
            logger.error(f"Startup: record store FAILED: {e}")
            raise
        yield
        store.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )

    token_service = TokenService(
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALG,
        default_ttl=timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES),
    )
    hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)

    app.state.settings = settings
    app.state.store = store
    app.state.token_service = token_service
    app.state.user_service = UserService(
        UserRepository(store),
        hasher,
        token_service,
        hash_timeout=settings.HASH_TIMEOUT_SECONDS,
    )
    app.state.order_service = OrderService(
        OrderRepository(store),
        OrderCoordinator(store),
    )

    app.add_exception_handler(StorefrontError, storefront_error_handler)

    # Versioned API prefix, e.g. /api/v1
    app.include_router(users_router, prefix=settings.API_V1_STR)
    app.include_router(auth_router, prefix=settings.API_V1_STR)
    app.include_router(orders_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "storefront"}

    return app
