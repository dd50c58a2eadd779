from __future__ import annotations

import pathlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Final

__all__ = ("ACCESS_TOKEN_SECRET_FILE", "SECRETS_DIR")

# Relative to the working directory, like the lookup in ``get_secret``.
SECRETS_DIR: Final = pathlib.Path("secrets")
ACCESS_TOKEN_SECRET_FILE: Final = "access_token_secret.txt"
