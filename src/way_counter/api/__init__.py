"""HTTP API for way-counter."""

from .app import create_app

__all__ = ["create_app"]
