"""Middleware registration."""

from fastapi import FastAPI

from eurolens.config import Settings
from eurolens.middleware.cors import setup_cors
from eurolens.middleware.error_handler import setup_error_handlers
from eurolens.middleware.logging import setup_logging
from eurolens.middleware.request_id import RequestIdMiddleware
from eurolens.middleware.site_auth import SiteAuthMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order (last added = outermost).
    CORS is outermost so preflights and 401s from the site gate carry CORS
    headers; the request id is innermost so it tags only admitted requests.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    if settings.site_password:
        app.add_middleware(SiteAuthMiddleware, password=settings.site_password)
    setup_cors(app, settings)  # added last -> outermost
