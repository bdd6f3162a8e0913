"""Provide the public `collab_board` package exports."""

from __future__ import annotations

from .coordination import Coordinator

__all__ = ["Coordinator"]
