"""HTTP API for the library catalog."""

from .app import create_app

__all__ = ["create_app"]
