from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from litestar import Controller, Response, get
from litestar.datastructures import State
from litestar.status_codes import HTTP_200_OK, HTTP_500_INTERNAL_SERVER_ERROR

from notekeeper.config import APP_CONFIG

from .schemas import Health

if TYPE_CHECKING:
    from typing import Final

    from notekeeper.domain.auth.tasks import SessionSweeper

__all__ = ("SystemController",)


LOGGER: Final = logging.getLogger(__name__)


class SystemController(Controller):
    """System controller."""

    tags = ["System"]
    path = APP_CONFIG.base_url
    opt = {"exclude_from_auth": True}

    @get(path="/health")
    async def check_health(self, state: State) -> Response[Health]:
        """Check health."""
        sweeper: SessionSweeper = state.session_sweeper
        sweeper_status = "online" if sweeper.running else "offline"

        if sweeper.running:
            status_code = HTTP_200_OK
            LOGGER.debug("System Health session_sweeper=%s", sweeper_status)
        else:
            status_code = HTTP_500_INTERNAL_SERVER_ERROR
            LOGGER.warning("System Health session_sweeper=%s", sweeper_status)

        return Response(
            content=Health(
                status=sweeper_status,
                session_sweeper=sweeper_status,
            ),
            status_code=status_code,
        )
