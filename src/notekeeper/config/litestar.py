from __future__ import annotations

import logging
import logging.handlers
import os
import pathlib
import sys
from typing import TYPE_CHECKING

from litestar.config.allowed_hosts import AllowedHostsConfig
from litestar.config.compression import CompressionConfig
from litestar.config.cors import CORSConfig
from litestar.logging.config import LoggingConfig
from litestar.middleware.logging import LoggingMiddlewareConfig
from litestar.openapi.config import OpenAPIConfig
from litestar.openapi.plugins import (
    JsonRenderPlugin,
    ScalarRenderPlugin,
    SwaggerRenderPlugin,
    YamlRenderPlugin,
)
from msgspec import field

from notekeeper import __version__ as app_version
from notekeeper.lib.config import Struct

from .app import APP_CONFIG

if TYPE_CHECKING:
    from typing import Any, Final

__all__ = ("LITESTAR_CONFIG", "ColourFormatter")


LOGS_DIR: Final = pathlib.Path("logs")


def in_container() -> bool:
    return pathlib.Path("/.dockerenv").exists() or bool(os.getenv("IN_DOCKER"))


def supports_colour(stream: Any) -> bool:
    """Whether ANSI colours can be written to ``stream``."""
    if os.getenv("NO_COLOR"):
        return False

    is_a_tty = hasattr(stream, "isatty") and stream.isatty()

    if sys.platform == "win32":
        # Windows Terminal and ConEmu (ANSICON) understand ANSI sequences
        return is_a_tty and ("WT_SESSION" in os.environ or "ANSICON" in os.environ)

    # containers rarely attach a tty but their log collectors render colours
    return is_a_tty or in_container()


class ColourFormatter(logging.Formatter):
    """Formatter colouring the level name and tracebacks of a record."""

    _RESET = "\x1b[0m"
    _COLOURS: Final = {
        logging.DEBUG: "\x1b[37;1m",
        logging.INFO: "\x1b[32;1m",
        logging.WARNING: "\x1b[33;1m",
        logging.ERROR: "\x1b[31;1m",
        logging.CRITICAL: "\x1b[41;1m",
    }

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        colour = self._COLOURS.get(record.levelno, self._COLOURS[logging.DEBUG])
        timestamp = self.formatTime(record, self.datefmt)
        line = (
            f"\x1b[90m{timestamp}{self._RESET} "
            f"{colour}{record.levelname:<8}{self._RESET} "
            f"\x1b[36m{record.name}{self._RESET} {record.getMessage()}"
        )

        if record.exc_info:
            line += f"\n\x1b[31m{self.formatException(record.exc_info)}{self._RESET}"

        return line


def get_logging_config() -> LoggingConfig:
    log_config = APP_CONFIG.logging
    stream_formatter = (
        "colour" if supports_colour(logging.StreamHandler().stream) else "standard"
    )
    app_handlers = ["stream"]

    handlers: dict[str, dict[str, Any]] = {
        "stream": {
            "class": "logging.StreamHandler",
            "formatter": stream_formatter,
        },
    }

    if log_config.file_logging:
        LOGS_DIR.mkdir(exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOGS_DIR / f"{APP_CONFIG.name}.log",
            "maxBytes": 16 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
            "formatter": "standard",
        }
        app_handlers.append("file")

    level = logging.getLevelName(log_config.level)
    granian_logger = {"propagate": False, "handlers": ["stream"]}

    return LoggingConfig(
        formatters={
            "standard": {
                "format": "[{asctime}] [{levelname}] {name}: {message}",
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "style": "{",
            },
            "colour": {
                "()": ColourFormatter,
            },
        },
        handlers=handlers,
        loggers={
            "notekeeper": {
                "propagate": False,
                "level": level,
                "handlers": app_handlers,
            },
            "litestar": {
                "propagate": False,
                "level": level,
                "handlers": app_handlers,
            },
            "granian.server": {**granian_logger, "level": log_config.asgi_error_level},
            "granian.access": {**granian_logger, "level": log_config.asgi_access_level},
        },
        root={"level": level, "handlers": app_handlers},
        log_exceptions="always",
    )


class Config(Struct):
    allowed_hosts: AllowedHostsConfig = field(
        default_factory=lambda: AllowedHostsConfig(**APP_CONFIG.allowed_hosts.to_dict())
    )

    cors: CORSConfig = field(
        default_factory=lambda: CORSConfig(**APP_CONFIG.cors.to_dict())
    )

    compression: CompressionConfig = field(
        default_factory=lambda: CompressionConfig(**APP_CONFIG.compression.to_dict())
    )

    openapi: OpenAPIConfig = field(
        default_factory=lambda: OpenAPIConfig(
            title=APP_CONFIG.name,
            version=app_version,
            description="Multi-user notes service with token sessions.",
            use_handler_docstrings=True,
            # the first plugin is served at /docs, every one at /docs/<name>
            render_plugins=[
                ScalarRenderPlugin(),
                SwaggerRenderPlugin(),
                JsonRenderPlugin(),
                YamlRenderPlugin(),
            ],
            path="/docs",
        )
    )

    logging: LoggingConfig = field(default_factory=get_logging_config)

    logging_middleware: LoggingMiddlewareConfig = field(
        default_factory=lambda: LoggingMiddlewareConfig(
            **APP_CONFIG.logging.middleware.to_dict()
        )
    )


LITESTAR_CONFIG: Final = Config()
"""Configuration for litestar."""
