from __future__ import annotations

import msgspec

__all__ = ("Message", "Struct")


# Most of the structs used for schema in this application reference scalar values only,
# and hence the gc=False default, If any of your structs reference containers like
# list's, dict's, structs make sure to set gc=True.
# Read this: https://jcristharif.com/msgspec/structs.html#disabling-garbage-collection-advanced
# Field names are snake_case in python and camelCase on the wire.
class Struct(msgspec.Struct, gc=False, rename="camel"):
    """Base schemas struct for application."""


class Message(Struct):
    """Message response."""

    message: str
