"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, storage,
routers) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from blog_api.api.routes import auth_router, health_router, posts_router
from blog_api.core.config import parse_csv, settings
from blog_api.core.exception_handlers import setup_exception_handlers
from blog_api.core.logging import configure_logging
from blog_api.core.middleware import request_id_middleware
from blog_api.core.openapi import apply_openapi_customizations
from blog_api.core.rate_limit import build_rate_limiters
from blog_api.db.session import build_engine, get_session_maker, init_db
from blog_api.services.upload_service import PUBLIC_PREFIX

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Settings are read when this is called, so tests can adjust the
    environment and build a fresh app per test.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Blog API",
        description=(
            "REST API for a blog platform: account registration and JWT login, "
            "post CRUD with ownership checks, paginated search and image uploads. "
            "Sensitive endpoints are rate limited per client IP."
        ),
        version="1.0.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_csv(settings.app.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            settings.log.request_id_header,
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    # Storage
    engine = build_engine(settings.db.url, echo=settings.db.echo)
    init_db(engine)
    app.state.engine = engine
    app.state.session_factory = get_session_maker(engine)

    # One limiter per scope, owned by this app instance
    app.state.rate_limiters = build_rate_limiters(settings.app)

    upload_dir = Path(settings.app.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.state.upload_dir = upload_dir
    app.mount(f"/{PUBLIC_PREFIX}", StaticFiles(directory=upload_dir), name=PUBLIC_PREFIX)

    # Routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(posts_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "env": settings.app_env,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
            "rate_limit_strategy": settings.app.rate_limit_strategy,
        },
    )
    return app
