"""Web server package for the collaborative task board."""

from .api import create_app

__all__ = ["create_app"]
