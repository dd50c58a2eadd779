from __future__ import annotations

from typing import TYPE_CHECKING

from litestar.params import Body

if TYPE_CHECKING:
    from typing import Any


__all__ = ("UserLogin", "UserSignup")


def UserSignup() -> Any:
    """User signup param."""
    return Body(
        title="Account Registration Data",
        description="Username and password of the new account.",
    )


def UserLogin() -> Any:
    """User login param."""
    return Body(
        title="User Login Data",
        description="Credentials required to log in to a user account.",
    )
