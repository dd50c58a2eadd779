from __future__ import annotations

from typing import Literal, TypeAlias

from notekeeper.lib.schemas import Struct

__all__ = ("Health",)

ServiceStatus: TypeAlias = Literal["online", "offline"]


class Health(Struct):
    """Represents the system health."""

    status: ServiceStatus
    session_sweeper: ServiceStatus
