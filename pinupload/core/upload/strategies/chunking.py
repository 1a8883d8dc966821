"""
Chunking strategies for resumable uploads.

Chunks are fixed-size byte ranges; the chunk size itself is always a
positive multiple of the base chunk unit.
"""
from abc import ABC, abstractmethod
from typing import Optional

from ...config import ChunkConfig, BASE_CHUNK_SIZE


def normalize_chunk_size(
    override: Optional[int] = None,
    config: Optional[ChunkConfig] = None
) -> int:
    """
    Resolve the chunk size for a new session.

    Args:
        override: Caller-requested chunk size in bytes
        config: Chunk policy (defaults to 256 KiB units, 50 MiB default)

    Returns:
        Chunk size in bytes
    """
    return (config or ChunkConfig()).normalize(override)


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""

    @abstractmethod
    def next_length(self, offset: int, file_size: int) -> int:
        """Length of the chunk that starts at ``offset``."""
        pass


class FixedSizeChunkingStrategy(BaseChunkingStrategy):
    """
    Fixed-size chunking strategy.

    For a source of size S and chunk size C produces ``ceil(S / C)`` chunks at
    offsets 0, C, 2C, ... each of length ``min(C, S - offset)``.
    """

    DEFAULT_CHUNK_SIZE = BASE_CHUNK_SIZE

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize with chunk size.

        Args:
            chunk_size: Size of each chunk in bytes
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size

    def next_length(self, offset: int, file_size: int) -> int:
        """Length of the chunk that starts at ``offset``."""
        return max(0, min(self.chunk_size, file_size - offset))
