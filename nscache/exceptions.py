from __future__ import annotations


class NSCacheError(Exception):
    """Base exception for nscache-related errors."""

    def __init__(self, msg: str, /):
        super().__init__(msg)
        self.message = msg

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class ExtensionNotLoadedError(NSCacheError):
    """Exception raised when the shared store is not usable in this runtime."""


class InvalidArgumentError(NSCacheError, ValueError):
    """Exception raised for arguments rejected before touching the store."""


class CacheRuntimeError(NSCacheError, RuntimeError):
    """Exception raised when the store refuses a write for a reason other
    than absence or prior existence."""
