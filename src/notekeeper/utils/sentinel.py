from __future__ import annotations

from typing import TYPE_CHECKING

import msgspec
from litestar.types import Empty
from msgspec import UNSET

if TYPE_CHECKING:
    from typing import Any, TypeAlias, TypeIs  # noqa: TID251 # It's safe to use it here

    from litestar.types import EmptyType
    from msgspec import UnsetType

    SentinelType: TypeAlias = EmptyType | UnsetType

__all__ = ("SentinelType", "issentinel", "provided_fields")


def issentinel(value: Any | SentinelType) -> TypeIs[SentinelType]:
    """Check whether a value is a sentinel.

    Parameters
    ----------
    value : Any or SentinelType
        The value to check.

    Returns
    -------
    TypeIs[SentinelType]
        True if the value is a sentinel (`Empty` or `UNSET`), False otherwise.
    """
    return value is Empty or value is UNSET


def provided_fields(struct: msgspec.Struct) -> dict[str, Any]:
    """Collect the fields of a struct that were actually provided.

    Parameters
    ----------
    struct : msgspec.Struct
        A struct whose optional fields default to a sentinel.

    Returns
    -------
    dict[str, Any]
        Mapping of field name to value, skipping every sentinel value.
    """
    return {
        name: value
        for name in struct.__struct_fields__
        if not issentinel(value := getattr(struct, name))
    }
