"""HTTP dashboard for test sessions and metrics."""

from .server import create_app

__all__ = ["create_app"]
