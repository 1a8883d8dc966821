"""Upload models."""
from .upload_models import (
    Network,
    UploadState,
    UploadOptions,
    UploadResult,
    UploadSession,
    ChunkInfo,
    TERMINAL_STATES,
    ACTIVE_STATES,
    can_transition
)

__all__ = [
    'Network',
    'UploadState',
    'UploadOptions',
    'UploadResult',
    'UploadSession',
    'ChunkInfo',
    'TERMINAL_STATES',
    'ACTIVE_STATES',
    'can_transition'
]
