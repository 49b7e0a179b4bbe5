"""Base exception type shared by the whole package."""

from __future__ import annotations


class SbxgoError(Exception):
    """An error carrying a context message and, optionally, the error it wraps.

    The string form chains the messages with colons, so nested failures read
    like ``creating sandbox "x": sbx create: running "sbx": ...``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"