from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from litestar.di import Provide
from litestar.exceptions import HTTPException
from litestar.middleware import DefineMiddleware
from litestar.plugins import InitPlugin as LitestarInitPlugin
from litestar_granian import GranianPlugin

from notekeeper.cli import secret_group
from notekeeper.config import APP_CONFIG, LITESTAR_CONFIG
from notekeeper.domain.auth.controllers import AuthController
from notekeeper.domain.auth.services import AuthGateway, SessionRegistry, TokenIssuer
from notekeeper.domain.auth.tasks import SessionSweeper
from notekeeper.domain.notes.controllers import NoteController
from notekeeper.domain.notes.services import NoteRepository
from notekeeper.domain.system.controllers import SystemController
from notekeeper.domain.users.services import CredentialStore
from notekeeper.lib.dependencies import provide_current_user
from notekeeper.lib.exceptions import (
    HTTPError,
    http_error_to_http_response,
    litestar_http_exc_to_http_response,
    unexpected_exc_to_http_response,
)
from notekeeper.lib.services import CryptService
from notekeeper.middleware.auth import AuthMiddleware
from notekeeper.middleware.rate_limit import RateLimiter, RateLimitMiddleware
from notekeeper.utils.time import utcnow

if TYPE_CHECKING:
    from typing import Final

    from click import Group
    from litestar import Litestar
    from litestar.config.app import AppConfig

    from notekeeper.utils.time import Clock

__all__ = ("InitPlugin", "MiddlewarePlugin")


LOGGER: Final = logging.getLogger(__name__)


# Kept apart from the init plugin so all the middleware ordering lives in
# one place.
class MiddlewarePlugin(LitestarInitPlugin):
    """Plugin to register middlewares.

    Rate limiting runs first, so rejected clients never reach token
    verification. The logging middleware wraps the route handlers.
    """

    __slots__ = ()

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Add middlewares to the application.

        Parameters
        ----------
        app_config : AppConfig
            The application configuration.

        Returns
        -------
        AppConfig
            The updated configuration.
        """
        auth_middleware = DefineMiddleware(AuthMiddleware, exclude=["^/docs"])
        rate_limit_middleware = RateLimitMiddleware(
            limiter=RateLimiter(), **APP_CONFIG.rate_limit_middleware.to_dict()
        )

        app_config.middleware.insert(0, rate_limit_middleware)
        app_config.middleware.insert(1, auth_middleware)
        app_config.middleware.append(LITESTAR_CONFIG.logging_middleware.middleware)

        return app_config


class InitPlugin(LitestarInitPlugin):
    """Application configuration and CLI initialization plugin.

    This plugin configures the Litestar application, owns the lifecycle of
    the in-memory stores and extends the CLI with project-specific commands.

    Parameters
    ----------
    clock : Clock, optional
        Source of the current time shared by every store
        (the default is :func:`utcnow`).
    """

    __slots__ = ("_clock",)

    _clock: Clock

    def __init__(self, *, clock: Clock = utcnow) -> None:
        self._clock = clock

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Configure the application during initialization.

        Parameters
        ----------
        app_config : AppConfig
            The application configuration.

        Returns
        -------
        AppConfig
            The updated configuration.
        """
        app_config.debug = APP_CONFIG.debug

        app_config.allowed_hosts = LITESTAR_CONFIG.allowed_hosts

        app_config.cors_config = LITESTAR_CONFIG.cors

        app_config.openapi_config = LITESTAR_CONFIG.openapi

        app_config.compression_config = LITESTAR_CONFIG.compression

        app_config.logging_config = LITESTAR_CONFIG.logging

        # The stores are built at startup rather than here: CLI commands load
        # the application too, and `secret init` must run before a secret exists.
        app_config.on_startup.extend((self._build_state, self._start_sweeper))
        app_config.on_shutdown.append(self._stop_sweeper)

        app_config.plugins.extend((MiddlewarePlugin(), GranianPlugin()))

        app_config.route_handlers.extend(
            (
                SystemController,
                AuthController,
                NoteController,
            )
        )

        app_config.exception_handlers = {
            HTTPError: http_error_to_http_response,
            HTTPException: litestar_http_exc_to_http_response,
            Exception: unexpected_exc_to_http_response,
        }

        app_config.dependencies = {
            "current_user": Provide(provide_current_user, sync_to_thread=False)
        }

        return app_config

    def on_cli_init(self, group: Group) -> None:
        """Initialize the CLI with project-specific commands.

        Parameters
        ----------
        group : Group
            The Click command group representing the root of the CLI.
        """
        group.add_command(secret_group)

    async def _build_state(self, app: Litestar) -> None:
        at_config = APP_CONFIG.access_token
        sessions_config = APP_CONFIG.sessions

        sessions = SessionRegistry(clock=self._clock)
        gateway = AuthGateway(
            credentials=CredentialStore(
                CryptService(schemes=APP_CONFIG.crypt.schemes), clock=self._clock
            ),
            sessions=sessions,
            tokens=TokenIssuer(
                secret=at_config.secret,
                algorithm=at_config.algorithm,
                issuer=at_config.iss,
                audience=at_config.aud,
                expiry=at_config.expiry,
                clock=self._clock,
            ),
        )

        app.state.auth_gateway = gateway
        app.state.note_repository = NoteRepository(clock=self._clock)
        app.state.session_sweeper = SessionSweeper(
            sessions,
            interval=sessions_config.sweep_interval,
            max_idle=sessions_config.max_idle,
        )
        LOGGER.debug("Application state initialised.")

    @staticmethod
    async def _start_sweeper(app: Litestar) -> None:
        await app.state.session_sweeper.start()

    @staticmethod
    async def _stop_sweeper(app: Litestar) -> None:
        sweeper: SessionSweeper | None = app.state.get("session_sweeper")
        if sweeper is not None:
            await sweeper.stop()
