"""
Upload module for resumable uploads.

Small payloads are sent as a single multipart request; larger payloads go
through the chunked resumable protocol with pause, resume and cancel.
"""
from .facade import UploadFacade
from .coordinator import UploadCoordinator
from .transfer import ChunkTransferLoop
from .sources import BytesSource, FileSource
from .models import (
    Network,
    UploadState,
    UploadOptions,
    UploadResult,
    UploadSession,
    ChunkInfo
)
from .protocols import ByteSource, ChunkingStrategy, ResultResolver
from .strategies import UploadPath, UploadStrategySelector, normalize_chunk_size

__all__ = [
    # Main classes
    'UploadFacade',
    'UploadCoordinator',
    'ChunkTransferLoop',

    # Sources
    'BytesSource',
    'FileSource',

    # Models
    'Network',
    'UploadState',
    'UploadOptions',
    'UploadResult',
    'UploadSession',
    'ChunkInfo',

    # Strategies
    'UploadPath',
    'UploadStrategySelector',
    'normalize_chunk_size',

    # Protocols
    'ByteSource',
    'ChunkingStrategy',
    'ResultResolver',
]
