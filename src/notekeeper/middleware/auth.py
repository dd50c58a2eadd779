from __future__ import annotations

from typing import TYPE_CHECKING

from litestar.middleware import AbstractAuthenticationMiddleware, AuthenticationResult

from notekeeper.config import APP_CONFIG
from notekeeper.lib.exceptions import NotAuthorizedError

if TYPE_CHECKING:
    from typing import Any

    from litestar.connection import ASGIConnection

    from notekeeper.domain.auth.schemas import AuthenticatedUser
    from notekeeper.domain.auth.services import AuthGateway

__all__ = ("AuthMiddleware",)


class AuthMiddleware(AbstractAuthenticationMiddleware):
    """Middleware for authenticating incoming requests using bearer tokens."""

    async def authenticate_request(
        self, connection: ASGIConnection[Any, AuthenticatedUser, str, Any]
    ) -> AuthenticationResult:
        """Authenticate an incoming request.

        Parameters
        ----------
        connection : ASGIConnection[Any, AuthenticatedUser, str, Any]
            The ASGI connection instance representing the current request.

        Returns
        -------
        AuthenticationResult
            An object containing the authenticated user and the raw token.

        Raises
        ------
        NotAuthorizedError
            If no bearer token is present.
        InvalidTokenError
            If the token is invalid, expired or its user is no longer active.
        ExpiredSessionError
            If the session the token is bound to has been revoked or swept.
        """
        data = connection.headers.get(APP_CONFIG.authorization_header_key)
        token_type = APP_CONFIG.access_token.type

        scheme, _, encoded_token = (data or "").partition(" ")
        encoded_token = encoded_token.strip()

        if scheme.lower() != token_type.lower() or not encoded_token:
            detail = "Access token required."
            raise NotAuthorizedError(detail=detail)

        gateway: AuthGateway = connection.app.state.auth_gateway
        user = await gateway.authenticate(
            encoded_token,
            session_id=connection.headers.get(APP_CONFIG.sessions.header),
        )
        return AuthenticationResult(user, encoded_token)
