"""OpenAPI customization.

Declares the Clerk session as a Bearer security scheme, requires it on
every operation by default and exempts the public ones (listing posts and
health checks) with ``security: []``.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

PUBLIC_OPERATIONS = {
    ("/v1/posts", "get"),
    ("/health", "get"),
    ("/health/ready", "get"),
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ClerkSession",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Clerk session token (or the __session cookie).",
            },
        )
        schema.setdefault("security", [{"ClerkSession": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Posts",
                "description": "List recent posts and create new emoji-only posts.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method, method_obj in methods.items():
                if (path, method) in PUBLIC_OPERATIONS and isinstance(method_obj, dict):
                    method_obj["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
