from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from passlib.context import CryptContext

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ("CryptService",)


class CryptService:
    """Password hashing service.

    Hashing is deliberately slow, so both operations are pushed to the
    default executor and never block the event loop. Callers must not hold
    a store lock while awaiting them.

    Parameters
    ----------
    schemes : Sequence[str], optional
        Passlib schemes, the first one is used for new hashes
        (the default is ``("argon2",)``).
    """

    __slots__ = ("_crypt_context",)

    _crypt_context: CryptContext

    def __init__(self, schemes: Sequence[str] = ("argon2",)) -> None:
        self._crypt_context = CryptContext(schemes=list(schemes), deprecated="auto")

        # The reason for not instantiating loop here is, because this class is created while
        # the app is being configured, so the instantiation will happen before the eventloop runs.

    async def hash(self, secret: str) -> str:
        """Hash."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._crypt_context.hash, secret)

    async def verify(self, secret: str, hash_: str) -> bool:
        """Verify."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._crypt_context.verify, secret, hash_)

    async def dummy_verify(self) -> None:
        """Burn the time of a verification without a real hash.

        Used when the user does not exist, so that the response time does not
        reveal whether a username is registered.
        """
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._crypt_context.dummy_verify)
