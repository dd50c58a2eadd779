from __future__ import annotations

import asyncio
import datetime
import logging
import uuid
from typing import TYPE_CHECKING

from notekeeper.db import models
from notekeeper.lib.exceptions import ValidationError
from notekeeper.lib.services import CryptService
from notekeeper.utils.time import utcnow

from . import exceptions, schemas

if TYPE_CHECKING:
    from typing import Final

    from notekeeper.utils.time import Clock

__all__ = ("CredentialStore",)


LOGGER: Final = logging.getLogger(__name__)

RECENT_LOGIN_WINDOW: Final = datetime.timedelta(hours=24)


class CredentialStore:
    """In-memory user table and password verification.

    The store exclusively owns the user records. Every read returns a copy
    and every check-and-mutate runs under ``_lock``. Password hashing is
    awaited before the lock is taken, so a slow hash never blocks other
    users of the store.

    Parameters
    ----------
    crypt_service : CryptService, optional
        Hashing backend (the default is an argon2 :class:`CryptService`).
    clock : Clock, optional
        Source of the current time (the default is :func:`utcnow`).
    """

    __slots__ = ("_by_id", "_by_username", "_clock", "_crypt_service", "_lock")

    _by_id: dict[str, models.User]
    _by_username: dict[str, str]
    _clock: Clock
    _crypt_service: CryptService
    _lock: asyncio.Lock

    def __init__(
        self, crypt_service: CryptService | None = None, *, clock: Clock = utcnow
    ) -> None:
        self._by_id = {}
        self._by_username = {}
        self._clock = clock
        self._crypt_service = crypt_service or CryptService()
        self._lock = asyncio.Lock()

    async def create(self, *, username: str, password: str) -> models.User:
        """Create a new user.

        Raises
        ------
        ValidationError
            If the username or the password is empty.
        DuplicateUsernameError
            If the username is already taken (exact, case-sensitive match).
        """
        if not username or not password:
            detail = "Username and password are required."
            raise ValidationError(detail=detail)

        # Fail fast without paying for a hash, the authoritative check is
        # repeated under the lock below.
        if username in self._by_username:
            raise exceptions.DuplicateUsernameError(username)

        hashed_password = await self._crypt_service.hash(password)

        async with self._lock:
            if username in self._by_username:
                raise exceptions.DuplicateUsernameError(username)

            user = models.User(
                id=str(uuid.uuid4()),
                username=username,
                hashed_password=hashed_password,
                created_at=self._clock(),
            )
            self._by_id[user.id] = user
            self._by_username[username] = user.id

        LOGGER.info("Created user id=%s", user.id)
        return user.copy()

    async def verify(self, *, username: str, password: str) -> models.User:
        """Verify a username/password pair and record the login.

        Raises
        ------
        InvalidCredentialsError
            If the user does not exist, is inactive or the password is wrong.
        """
        async with self._lock:
            user_id = self._by_username.get(username)
            hashed_password = (
                self._by_id[user_id].hashed_password if user_id is not None else None
            )

        if user_id is None or hashed_password is None:
            await self._crypt_service.dummy_verify()
            raise exceptions.InvalidCredentialsError

        if not await self._crypt_service.verify(password, hashed_password):
            raise exceptions.InvalidCredentialsError

        async with self._lock:
            user = self._by_id.get(user_id)

            if user is None or not user.active:
                raise exceptions.InvalidCredentialsError

            user.last_login = self._clock()
            return user.copy()

    async def find_by_id(self, user_id: str) -> models.User | None:
        """Fetch a user by id, ``None`` if there is no such user."""
        async with self._lock:
            user = self._by_id.get(user_id)
            return user.copy() if user is not None else None

    async def set_active(self, user_id: str, *, active: bool) -> bool:
        """Activate or deactivate a user, returns whether the user exists."""
        async with self._lock:
            user = self._by_id.get(user_id)
            if user is None:
                return False

            user.active = active
            return True

    async def stats(self) -> schemas.UserStats:
        """Count total, active and recently seen users."""
        async with self._lock:
            cutoff = self._clock() - RECENT_LOGIN_WINDOW
            users = list(self._by_id.values())

        return schemas.UserStats(
            total_users=len(users),
            active_users=sum(1 for u in users if u.active),
            recent_users=sum(1 for u in users if (u.last_login or u.created_at) > cutoff),
        )
