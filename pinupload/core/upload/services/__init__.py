"""Upload services module."""
from .metadata_service import MetadataEncoder
from .session_service import SessionInitiator
from .chunk_service import ChunkUploader
from .finalize_service import Finalizer
from .direct_service import DirectUploader
from .resolver_service import ApiResultResolver

__all__ = [
    'MetadataEncoder',
    'SessionInitiator',
    'ChunkUploader',
    'Finalizer',
    'DirectUploader',
    'ApiResultResolver',
]
