"""Cli."""

from .secret import secret_group

__all__ = ("secret_group",)
