import logging
import time
from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import DEFAULT_JWT_SECRET, Settings, get_settings
from app.errors import AppError
from app.logging_config import configure_logging
from app.routers import auth_router, posts_router, users_router
from app.schemas import ApiIndexResponse, EndpointGroups, HealthResponse
from app.services.auth_service import AuthService
from app.services.post_service import PostService
from app.stores import build_stores

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI):
    """
    Map service errors to JSON responses.

    Unexpected exceptions (storage, hashing) become a generic 500; the
    detail is only written to the server log.
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            loc = [str(part) for part in error["loc"] if part != "body"]
            errors.append({
                "field": ".".join(loc) or "body",
                "message": error["msg"],
            })
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


def register_middleware(app: FastAPI):

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug(
            "%s %s %s - %.3fs",
            request.method, request.url.path, response.status_code, elapsed,
        )
        return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application with its own stores and services.

    Storage is chosen by settings.storage_backend; tests pass their own
    Settings to get an isolated instance.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    if settings.jwt_secret == DEFAULT_JWT_SECRET and settings.environment != "development":
        logger.warning("JWT_SECRET is not set; tokens are signed with the default secret")

    app = FastAPI(
        title="Blog API",
        description="Authenticated blogging API with JWT auth and owner-only posts",
        version="1.0.0",
    )

    user_store, post_store = build_stores(settings)
    app.state.settings = settings
    app.state.user_store = user_store
    app.state.post_store = post_store
    app.state.auth_service = AuthService(user_store, settings)
    app.state.post_service = PostService(post_store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middleware(app)
    register_exception_handlers(app)

    # Register routers
    app.include_router(auth_router.router, prefix="/api")
    app.include_router(users_router.router, prefix="/api")
    app.include_router(posts_router.router, prefix="/api")

    @app.get("/api/health", response_model=HealthResponse)
    async def health():
        """
        Health check endpoint.
        """
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc),
            environment=settings.environment,
            storage=settings.storage_backend,
        )

    @app.get("/api", response_model=ApiIndexResponse)
    async def api_index():
        """
        List the available endpoints, split by whether they need a token.
        """
        return ApiIndexResponse(
            message="Welcome to the Blog API",
            version=app.version,
            endpoints=EndpointGroups(
                public=[
                    "GET /api/health",
                    "POST /api/auth/register",
                    "POST /api/auth/login",
                    "GET /api/posts",
                ],
                protected=[
                    "GET /api/users/profile",
                    "POST /api/posts",
                    "PUT /api/posts/:id",
                    "DELETE /api/posts/:id",
                ],
            ),
            documentation=app.docs_url,
        )

    return app


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
