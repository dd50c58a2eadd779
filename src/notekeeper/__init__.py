"""A personal note-taking service built with Litestar."""

__version__ = "0.1.0"
