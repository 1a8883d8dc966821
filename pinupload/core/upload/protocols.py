"""
Protocol definitions for upload module.

Defines interfaces (protocols) for dependency injection and strategy pattern.
"""
from typing import Protocol, Dict, Any, Optional, runtime_checkable

from .models import Network


@runtime_checkable
class ByteSource(Protocol):
    """
    Protocol for the payload of an upload.

    Implementations must keep already-read ranges stable for the lifetime
    of a session.
    """

    @property
    def name(self) -> str:
        """Display name of the payload."""
        ...

    @property
    def size(self) -> int:
        """Total size in bytes."""
        ...

    @property
    def content_type(self) -> str:
        """Content type guess (stable across calls)."""
        ...

    async def read_range(self, offset: int, length: int) -> bytes:
        """
        Read ``[offset, offset + length)``.

        Args:
            offset: Start position in bytes
            length: Number of bytes to read

        Returns:
            Exactly ``length`` bytes
        """
        ...


class ChunkingStrategy(Protocol):
    """Protocol for file chunking strategies."""

    def next_length(self, offset: int, file_size: int) -> int:
        """Length of the chunk that starts at ``offset``."""
        ...


class ResultResolver(Protocol):
    """Protocol for resolving a reported identifier into a full record."""

    async def resolve(self, cid: str, network: Network) -> Optional[Dict[str, Any]]:
        """
        Look up the record of an uploaded object.

        Args:
            cid: Identifier reported by the upload endpoint
            network: Network the object was uploaded to

        Returns:
            The record, or None if the lookup found nothing
        """
        ...
