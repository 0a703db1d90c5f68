"""API module - HTTP application, routes and middleware."""

from src.api.app import create_app

__all__ = [
    "create_app",
]
