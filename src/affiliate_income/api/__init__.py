"""HTTP API for the affiliate income dashboard."""

from .main import create_app

__all__ = ["create_app"]
