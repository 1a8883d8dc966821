"""
pinupload - Async resumable uploads for pinning services.

Usage:
    >>> from pinupload import UploadFacade, UploaderConfig
    >>>
    >>> async with UploadFacade(UploaderConfig.with_jwt(jwt)) as uploader:
    ...     result = await uploader.upload("video.mp4", "public", target_url)
    ...     print(result.cid)
"""
import logging

from .core.config import UploaderConfig, TimeoutConfig, ChunkConfig
from .core.exceptions import (
    UploadError,
    ValidationError,
    AuthenticationError,
    NetworkError,
    UploadTimeoutError,
    UnexpectedUploadError,
    InvalidStateTransition
)
from .core.upload import (
    UploadFacade,
    UploadCoordinator,
    BytesSource,
    FileSource,
    Network,
    UploadState,
    UploadOptions,
    UploadResult,
    UploadSession,
    UploadPath
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for pinupload modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'pinupload',
        'pinupload.upload',
        'pinupload.upload.coordinator',
        'pinupload.upload.transfer',
        'pinupload.upload.session',
        'pinupload.upload.chunk',
        'pinupload.upload.direct',
        'pinupload.upload.finalize',
        'pinupload.upload.resolver',
        'pinupload.upload.source',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'UploadFacade',
    'UploadCoordinator',
    'BytesSource',
    'FileSource',
    'Network',
    'UploadState',
    'UploadOptions',
    'UploadResult',
    'UploadSession',
    'UploadPath',
    'UploaderConfig',
    'TimeoutConfig',
    'ChunkConfig',
    'UploadError',
    'ValidationError',
    'AuthenticationError',
    'NetworkError',
    'UploadTimeoutError',
    'UnexpectedUploadError',
    'InvalidStateTransition',
    'setup_logging',
]
