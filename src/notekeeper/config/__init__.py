"""Configuration."""

from .app import APP_CONFIG
from .litestar import LITESTAR_CONFIG

__all__ = ("APP_CONFIG", "LITESTAR_CONFIG")
