"""CORS for the studio front-end."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aetherwave.config import Settings

# Headers set by the request-id and rate-limit middleware.
EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured studio origins, plus preview deployments matching ``cors_origin_regex``."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=EXPOSED_HEADERS,
    )
