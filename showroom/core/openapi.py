"""OpenAPI customization utilities.

Adds the ``X-API-Key`` security scheme to the generated schema and marks
only admin and inventory-replacement operations as requiring it, plus tag
metadata for the docs.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {"name": "Search", "description": "Substring search, filtered search and suggestions."},
    {"name": "Inventory", "description": "Vehicle listings; replacement requires an API key."},
    {"name": "Rate limits", "description": "Remaining quota of the calling identity."},
    {"name": "Admin", "description": "Cache, index and rate limiter maintenance (API key)."},
    {"name": "Health", "description": "Liveness checks."},
]


def _requires_api_key(path: str, method: str) -> bool:
    return "/admin/" in path or (path.endswith("/vehicles") and method.lower() == "put")


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security and tags."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Provide your API key via the X-API-Key header.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        tags.extend(tag for tag in _TAGS if tag["name"] not in existing_tag_names)

        for path, methods in schema.get("paths", {}).items():
            for method, method_obj in methods.items():
                if isinstance(method_obj, dict) and _requires_api_key(path, method):
                    method_obj["security"] = [{"ApiKeyAuth": []}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
