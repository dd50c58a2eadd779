from __future__ import annotations

from typing import Annotated

from litestar import Controller, get, post, status_codes
from litestar.di import Provide

from notekeeper.config import APP_CONFIG
from notekeeper.domain.users import params as user_params
from notekeeper.domain.users import schemas as user_schemas
from notekeeper.lib.dependencies import provide_auth_gateway
from notekeeper.lib.schemas import Message
from notekeeper.middleware.rate_limit import RateLimitPolicy

from . import params, schemas, services

__all__ = ("AuthController",)


_SIGNUP_LIMIT = APP_CONFIG.rate_limits.signup
_LOGIN_LIMIT = APP_CONFIG.rate_limits.login


class AuthController(Controller):
    """Authentication controller."""

    tags = ["Authentication"]
    path = APP_CONFIG.base_url
    dependencies = {
        "auth_gateway": Provide(provide_auth_gateway, sync_to_thread=False),
    }

    @post(
        path="/signup",
        exclude_from_auth=True,
        rate_limits=[
            RateLimitPolicy(
                max_requests=_SIGNUP_LIMIT.max_requests,
                window=_SIGNUP_LIMIT.window_seconds,
            )
        ],
    )
    async def signup(
        self,
        auth_gateway: services.AuthGateway,
        data: Annotated[user_schemas.UserSignup, user_params.UserSignup()],
    ) -> schemas.SignupResponse:
        """Signup a new user."""
        user = await auth_gateway.signup(username=data.username, password=data.password)
        return schemas.SignupResponse(
            message="User created successfully.",
            user=user_schemas.User.signed_up(user),
        )

    @post(
        path="/login",
        status_code=status_codes.HTTP_200_OK,
        exclude_from_auth=True,
        rate_limits=[
            RateLimitPolicy(
                max_requests=_LOGIN_LIMIT.max_requests,
                window=_LOGIN_LIMIT.window_seconds,
            )
        ],
    )
    async def login(
        self,
        auth_gateway: services.AuthGateway,
        data: Annotated[user_schemas.UserLogin, user_params.UserLogin()],
    ) -> schemas.LoginResponse:
        """Login a user."""
        result = await auth_gateway.login(username=data.username, password=data.password)
        return schemas.LoginResponse(
            message="Login successful.",
            token=result.token,
            user=user_schemas.User.logged_in(result.user),
            session_id=result.session_id,
        )

    @post(path="/logout", status_code=status_codes.HTTP_200_OK)
    async def logout(
        self,
        auth_gateway: services.AuthGateway,
        current_user: schemas.AuthenticatedUser,
        session_id: Annotated[str | None, params.SessionID()] = None,
    ) -> Message:
        """Logout the current session."""
        await auth_gateway.logout(
            session_id or current_user.session_id, user_id=current_user.id
        )
        return Message(message="Logged out successfully.")

    @get(path="/me")
    async def get_me(self, current_user: schemas.AuthenticatedUser) -> schemas.Me:
        """Get current user."""
        return schemas.Me(id=current_user.id, username=current_user.username)

    @get(path="/auth/stats", exclude_from_auth=True)
    async def get_stats(self, auth_gateway: services.AuthGateway) -> schemas.AuthStats:
        """Get counts of users and live sessions."""
        return await auth_gateway.stats()
