from __future__ import annotations

from blog_api.api.routes.auth import router as auth_router
from blog_api.api.routes.health import router as health_router
from blog_api.api.routes.posts import router as posts_router

__all__ = ["auth_router", "health_router", "posts_router"]
