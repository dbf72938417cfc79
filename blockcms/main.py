# blockcms/main.py
from __future__ import annotations

from fastapi.openapi.utils import get_openapi
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from blockcms.api.personalization import router as personalization_router
from blockcms.api.public import router as public_router
from blockcms.api.v1.router import api_router
from blockcms.core.config import create_app
from blockcms.core.logging import configure_logging
from blockcms.core.settings import settings
from blockcms.middleware.ratelimit import RateLimitMiddleware
from blockcms.web.admin.router import router as admin_router
from blockcms.web.auth.router import router as auth_web_router
from blockcms.web.site.router import router as site_router
from blockcms.web.templating import STATIC_DIR

configure_logging(debug=settings.DEBUG)
app = create_app()

# Public JSON routes that should not carry the bearer requirement in the docs
PUBLIC_API_PREFIXES = ("/api/contact", "/api/newsletter", "/api/navigation", "/api/auth/")
PUBLIC_API_PATHS = ("/api/personalization/state", "/api/personalization/industry", f"{settings.API_V1_STR}/health/")


def _inject_bearer_security(app):
    """
    Adds bearerAuth globally to the OpenAPI document; public routes are then
    opted out in ``_mark_public_routes`` (docs only, endpoints enforce auth themselves).
    """
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=settings.APP_NAME,
            version="1.0.0",
            description="Headless content API and personalization endpoints",
            routes=app.routes,
        )
        components = openapi_schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes["bearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
        openapi_schema["security"] = [{"bearerAuth": []}]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi


def _mark_public_routes(app):
    for route in app.routes:
        if isinstance(route, APIRoute):
            path = route.path or ""
            if path.startswith(PUBLIC_API_PREFIXES) or path.startswith(PUBLIC_API_PATHS) \
                    or path == f"{settings.API_V1_STR}/auth/login" \
                    or (path == f"{settings.API_V1_STR}/tags" and "GET" in route.methods):
                extra = dict(route.openapi_extra or {})
                extra["security"] = []
                route.openapi_extra = extra


_inject_bearer_security(app)

# Added last runs first: proxy headers -> session -> rate limit -> routes
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.JWT_SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    same_site=settings.SESSION_COOKIE_SAMESITE,
    https_only=settings.SESSION_COOKIE_SECURE,
)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.FORWARDED_ALLOW_IPS)

# Private API (JWT)
app.include_router(api_router, prefix=settings.API_V1_STR)

# Public JSON
app.include_router(personalization_router)
app.include_router(public_router)

# Web (admin login + editor)
app.include_router(auth_web_router)
app.include_router(admin_router)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Site pages last: "/{slug}" would shadow everything registered after it
app.include_router(site_router)

_mark_public_routes(app)
