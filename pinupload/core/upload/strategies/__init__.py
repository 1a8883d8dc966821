"""Upload strategies module."""
from .chunking import BaseChunkingStrategy, FixedSizeChunkingStrategy, normalize_chunk_size
from .selection import UploadPath, UploadStrategySelector

__all__ = [
    'BaseChunkingStrategy',
    'FixedSizeChunkingStrategy',
    'normalize_chunk_size',
    'UploadPath',
    'UploadStrategySelector',
]
