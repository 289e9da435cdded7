"""OpenAPI customization.

Enriches the generated schema with:
- A JWT bearer security scheme (``bearerAuth``) required by default
- ``security: []`` on public operations (health, login/registration, post reads)
- Tags metadata

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

BEARER_SCHEME_NAME = "bearerAuth"

# (method, path) pairs that can be called without a token
PUBLIC_OPERATIONS = {
    ("get", "/health"),
    ("post", "/api/auth/register"),
    ("post", "/api/auth/login"),
    ("get", "/api/posts"),
    ("get", "/api/posts/{post_id}"),
}

TAGS_METADATA = [
    {
        "name": "Auth",
        "description": "Registration, login and the current user.",
    },
    {
        "name": "Posts",
        "description": "Blog post CRUD, search, pagination and uploads.",
    },
    {
        "name": "Health",
        "description": "Liveness and readiness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security and tags.

    - Injects components.securitySchemes for bearer JWT auth
    - Marks all operations as requiring a token by default, then exempts the
      public ones by setting ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        # HTTPBearer registers its own scheme; document a single one
        security_schemes.pop("HTTPBearer", None)
        security_schemes.setdefault(
            BEARER_SCHEME_NAME,
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Access token returned by /api/auth/login or /api/auth/register.",
            },
        )

        schema["security"] = [{BEARER_SCHEME_NAME: []}]

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method, operation in methods.items():
                if not isinstance(operation, dict):
                    continue
                if (method, path) in PUBLIC_OPERATIONS:
                    operation["security"] = []
                else:
                    operation["security"] = [{BEARER_SCHEME_NAME: []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
