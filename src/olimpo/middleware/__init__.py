"""Middleware registration."""

from fastapi import FastAPI

from olimpo.config import Settings
from olimpo.middleware.cors import setup_cors
from olimpo.middleware.error_handler import setup_error_handlers
from olimpo.middleware.logging import setup_logging
from olimpo.middleware.rate_limit import RateLimitMiddleware
from olimpo.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap 429 responses from the rate limiter.
    """
    setup_logging(settings)
    setup_error_handlers(app, debug=settings.debug)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
