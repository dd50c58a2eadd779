from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Litestar

from notekeeper.utils.time import utcnow

from .server.core import InitPlugin

if TYPE_CHECKING:
    from notekeeper.utils.time import Clock


def create_app(*, clock: Clock = utcnow) -> Litestar:
    """Create ASGI application."""
    return Litestar(plugins=[InitPlugin(clock=clock)])
