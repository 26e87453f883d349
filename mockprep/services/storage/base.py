"""Object storage abstractions."""

from __future__ import annotations

import abc


class StorageError(RuntimeError):
    """Raised when an object cannot be stored."""


class ObjectStorage(abc.ABC):
    """Bucket-style storage with public read URLs."""

    @abc.abstractmethod
    async def upload(self, path: str, data: bytes, *, content_type: str, upsert: bool = False) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def public_url(self, path: str) -> str:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release network resources held by the client."""


__all__ = ["ObjectStorage", "StorageError"]
