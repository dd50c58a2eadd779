from __future__ import annotations

import asyncio
import datetime
import logging
import uuid
from typing import TYPE_CHECKING

import msgspec

from notekeeper.db import models
from notekeeper.domain.users.exceptions import InvalidCredentialsError
from notekeeper.lib.exceptions import InvalidTokenError
from notekeeper.lib.jwt import Token
from notekeeper.utils.time import utcnow

from . import exceptions, schemas

if TYPE_CHECKING:
    from typing import Final

    from notekeeper.domain.users.services import CredentialStore
    from notekeeper.utils.time import Clock

__all__ = ("AuthGateway", "LoginResult", "SessionRegistry", "TokenIssuer")


LOGGER: Final = logging.getLogger(__name__)

DEFAULT_TOKEN_EXPIRY: Final = datetime.timedelta(hours=24)
DEFAULT_MAX_IDLE: Final = datetime.timedelta(hours=24)


class TokenIssuer:
    """Mints and verifies signed bearer tokens.

    A token carries the user id (``sub``), the username and the id of the
    session it is bound to (``sid``). Verification only covers the signature,
    the claims and the expiry, correlating the token with live sessions and
    users is :class:`AuthGateway`'s job.

    Parameters
    ----------
    secret : str
        Process secret used to sign tokens.
    algorithm : str, optional
        JWT signing algorithm (the default is ``"HS256"``).
    issuer : str or None, optional
        Value of the ``iss`` claim, verified when set.
    audience : str or None, optional
        Value of the ``aud`` claim, verified when set.
    expiry : datetime.timedelta, optional
        Validity window from issuance (the default is 24 hours).
    clock : Clock, optional
        Source of the current time (the default is :func:`utcnow`).
    """

    __slots__ = ("_algorithm", "_audience", "_clock", "_expiry", "_issuer", "_secret")

    _REQUIRED_CLAIMS: Final = ["sub", "exp", "iat", "jti", "sid", "username"]

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        issuer: str | None = None,
        audience: str | None = None,
        expiry: datetime.timedelta = DEFAULT_TOKEN_EXPIRY,
        clock: Clock = utcnow,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer
        self._audience = audience
        self._expiry = expiry
        self._clock = clock

    def issue(self, user: models.User, session_id: str) -> str:
        """Issue a token for the user, bound to the given session."""
        # JWT timestamps have a resolution of one second.
        issued_at = self._clock().replace(microsecond=0)
        token = Token(
            iss=self._issuer,
            sub=user.id,
            aud=self._audience,
            iat=issued_at,
            exp=issued_at + self._expiry,
            username=user.username,
            sid=session_id,
        )
        return token.encode(secret=self._secret, algorithm=self._algorithm)

    def verify(self, encoded_token: str) -> schemas.TokenPayload:
        """Verify a token and return its payload.

        Raises
        ------
        InvalidTokenError
            If the signature does not verify, the payload is malformed or
            the token has expired.
        """
        token = Token.from_encoded(
            encoded_token=encoded_token,
            secret=self._secret,
            algorithm=self._algorithm,
            audience=self._audience,
            issuer=self._issuer,
            required_claims=self._REQUIRED_CLAIMS,
            verify_exp=False,
            verify_iat=False,
        )

        username = token.claims.get("username")
        session_id = token.claims.get("sid")

        if not (
            isinstance(token.sub, str)
            and isinstance(username, str)
            and isinstance(session_id, str)
            and token.iat is not None
            and token.exp is not None
        ):
            raise InvalidTokenError(detail="Malformed token payload.")

        if self._clock() > token.exp:
            raise InvalidTokenError(detail="The token has expired.")

        return schemas.TokenPayload(
            user_id=token.sub,
            username=username,
            session_id=session_id,
            issued_at=token.iat,
            expires_at=token.exp,
        )


class SessionRegistry:
    """In-memory table of live login sessions.

    A session is ``Active`` while present. Logout (:meth:`revoke`) and the
    idle sweep (:meth:`sweep`) remove it, both are terminal: a removed session
    id is never active again.

    Parameters
    ----------
    clock : Clock, optional
        Source of the current time (the default is :func:`utcnow`).
    """

    __slots__ = ("_clock", "_lock", "_sessions")

    _clock: Clock
    _lock: asyncio.Lock
    _sessions: dict[str, models.Session]

    def __init__(self, *, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        self._sessions = {}

    async def open(self, user: models.User) -> models.Session:
        """Open a new session for the user."""
        now = self._clock()
        session = models.Session(
            id=str(uuid.uuid4()),
            user_id=user.id,
            username=user.username,
            created_at=now,
            last_activity=now,
        )

        async with self._lock:
            self._sessions[session.id] = session

        return session.copy()

    async def get(self, session_id: str) -> models.Session | None:
        """Fetch a live session, ``None`` if it does not exist."""
        async with self._lock:
            session = self._sessions.get(session_id)
            return session.copy() if session is not None else None

    async def touch(self, session_id: str, *, user_id: str | None = None) -> bool:
        """Refresh the last activity of a session.

        Unknown or stale ids are ignored, an activity ping is best effort.
        When ``user_id`` is given, only a session owned by that user is
        refreshed. Returns whether a session was refreshed.
        """
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None or (user_id is not None and session.user_id != user_id):
                return False

            session.last_activity = self._clock()
            return True

    async def is_active(self, session_id: str) -> bool:
        """Whether the session exists and is active."""
        async with self._lock:
            session = self._sessions.get(session_id)
            return session is not None and session.active

    async def revoke(self, session_id: str, *, user_id: str | None = None) -> bool:
        """Remove a session.

        Parameters
        ----------
        session_id : str
            The session to remove.
        user_id : str or None, optional
            When given, only a session owned by this user is removed.

        Returns
        -------
        bool
            Whether a session was removed.
        """
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None or (user_id is not None and session.user_id != user_id):
                return False

            del self._sessions[session_id]
            return True

    async def sweep(self, max_idle: datetime.timedelta = DEFAULT_MAX_IDLE) -> int:
        """Remove every session idle for longer than ``max_idle``.

        Returns
        -------
        int
            The number of sessions removed.
        """
        async with self._lock:
            if not self._sessions:
                return 0

            now = self._clock()
            expired = [
                sid
                for sid, session in self._sessions.items()
                if now - session.last_activity > max_idle
            ]
            for sid in expired:
                del self._sessions[sid]

        return len(expired)

    async def count(self) -> int:
        """Number of live sessions."""
        async with self._lock:
            return len(self._sessions)


class LoginResult(msgspec.Struct, frozen=True):
    """Outcome of a successful login."""

    token: str
    user: models.User
    session_id: str


class AuthGateway:
    """Signup, login, logout and request authentication.

    This is the only identity component the HTTP layer talks to, it composes
    the credential store, the token issuer and the session registry.
    """

    __slots__ = ("credentials", "sessions", "tokens")

    credentials: CredentialStore
    sessions: SessionRegistry
    tokens: TokenIssuer

    def __init__(
        self,
        *,
        credentials: CredentialStore,
        sessions: SessionRegistry,
        tokens: TokenIssuer,
    ) -> None:
        self.credentials = credentials
        self.sessions = sessions
        self.tokens = tokens

    async def signup(self, *, username: str, password: str) -> models.User:
        """Register a new user."""
        return await self.credentials.create(username=username, password=password)

    async def login(self, *, username: str, password: str) -> LoginResult:
        """Verify credentials, open a session and issue a token bound to it."""
        try:
            user = await self.credentials.verify(username=username, password=password)
        except InvalidCredentialsError:
            LOGGER.warning("Failed login attempt username_length=%s", len(username))
            raise

        session = await self.sessions.open(user)
        token = self.tokens.issue(user, session.id)

        LOGGER.info("User id=%s logged in, session opened", user.id)
        return LoginResult(token=token, user=user, session_id=session.id)

    async def authenticate(
        self, token: str, *, session_id: str | None = None
    ) -> schemas.AuthenticatedUser:
        """Resolve a bearer token to the authenticated principal.

        Parameters
        ----------
        token : str
            The encoded bearer token.
        session_id : str or None, optional
            A session id sent alongside the token, its activity is refreshed
            when it belongs to the token's user.

        Raises
        ------
        InvalidTokenError
            If the token does not verify or its user is gone or inactive.
        ExpiredSessionError
            If the session the token is bound to no longer exists.
        """
        payload = self.tokens.verify(token)

        user = await self.credentials.find_by_id(payload.user_id)
        if user is None or not user.active:
            raise InvalidTokenError(detail="The user of this token is no longer active.")

        if not await self.sessions.is_active(payload.session_id):
            raise exceptions.ExpiredSessionError

        if session_id is not None:
            await self.sessions.touch(session_id, user_id=user.id)

        return schemas.AuthenticatedUser(
            id=user.id, username=user.username, session_id=payload.session_id
        )

    async def logout(self, session_id: str, *, user_id: str | None = None) -> None:
        """Revoke a session, succeeding whether or not it still existed."""
        revoked = await self.sessions.revoke(session_id, user_id=user_id)
        LOGGER.info("Logout session revoked=%s", revoked)

    async def stats(self) -> schemas.AuthStats:
        """Counts of users and live sessions."""
        user_stats = await self.credentials.stats()
        return schemas.AuthStats(
            total_users=user_stats.total_users,
            active_users=user_stats.active_users,
            recent_users=user_stats.recent_users,
            active_sessions=await self.sessions.count(),
        )
