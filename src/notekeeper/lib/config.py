from __future__ import annotations

import pathlib
from typing import TYPE_CHECKING, TypeVar, dataclass_transform

import msgspec
from msgspec import toml

if TYPE_CHECKING:
    from typing import Any


__all__ = ("Struct", "get_secret", "load_toml")


@dataclass_transform(field_specifiers=(msgspec.field,), frozen_default=True)
class Struct(msgspec.Struct, frozen=True):
    """Base configuration struct for the application."""

    def to_dict(self) -> dict[str, Any]:
        """Convert the struct to a dictionary."""
        return msgspec.to_builtins(self)


T = TypeVar("T")


def load_toml(filename: str | pathlib.Path, type_: type[T]) -> T:
    """Decode a TOML file into the given config type.

    Parameters
    ----------
    filename : str or pathlib.Path
        Path of the TOML file, relative paths resolve against the cwd.
    type_ : type[T]
        The struct type to decode into.

    Returns
    -------
    T
        The decoded and validated configuration.

    Raises
    ------
    RuntimeError
        If the file does not exist.
    """
    config_file = pathlib.Path(filename).resolve()
    if not config_file.exists():
        msg = f"Config file not found at {str(config_file)!r}"
        raise RuntimeError(msg)

    return toml.decode(config_file.read_bytes(), type=type_)


def get_secret(filename: str, *, directory: str = "secrets") -> str:
    """Read a secret from the secrets directory.

    Secrets are never part of ``app.toml``; each one lives in its own file
    so it can be mounted separately (docker secrets, k8s volumes, ...).

    Raises
    ------
    ValueError
        If the secret file does not exist or is empty.
    """
    path = pathlib.Path(directory, filename).resolve()

    if not path.exists():
        msg = f"Secret file not found at path: {str(path)!r}"
        raise ValueError(msg)

    secret = path.read_text("utf-8").strip()
    if not secret:
        msg = f"Secret file at path {str(path)!r} is empty"
        raise ValueError(msg)

    return secret
