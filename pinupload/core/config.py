"""
Uploader configuration module.

Provides configuration for the upload engine: path selection threshold,
chunk sizing, request timeouts and the headers sent with every request.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Mapping
import logging

import aiohttp


# Payloads at or above this size use the chunked resumable path
DEFAULT_DIRECT_UPLOAD_THRESHOLD = 94371840  # ~90 MiB
BASE_CHUNK_SIZE = 262144  # 256 KiB
DEFAULT_CHUNKS = 200  # 50 MiB default chunk


@dataclass
class TimeoutConfig:
    """
    Timeout configuration applied to each outstanding request.

    No total timeout by default; a chunk may take as long as it needs.
    """
    total: Optional[float] = None
    connect: Optional[float] = 30.0
    sock_read: Optional[float] = None

    def to_aiohttp_timeout(self) -> aiohttp.ClientTimeout:
        """Convert to aiohttp ClientTimeout."""
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read
        )


@dataclass
class ChunkConfig:
    """
    Chunk size policy.

    Chunks are always a positive multiple of ``base_chunk_size``.
    """
    base_chunk_size: int = BASE_CHUNK_SIZE
    default_chunks: int = DEFAULT_CHUNKS

    def __post_init__(self):
        if self.base_chunk_size <= 0:
            raise ValueError("Base chunk size must be positive")
        if self.default_chunks <= 0:
            raise ValueError("Default chunk count must be positive")

    @property
    def default_chunk_size(self) -> int:
        """Chunk size used when the caller does not override it."""
        return self.base_chunk_size * self.default_chunks

    def normalize(self, override: Optional[int] = None) -> int:
        """
        Resolve the chunk size for a session.

        Args:
            override: Caller-requested chunk size in bytes

        Returns:
            The override rounded down to a multiple of the base unit (at
            least one unit), or the default when no positive override is given
        """
        if not override or override <= 0:
            return self.default_chunk_size
        if override < self.base_chunk_size:
            return self.base_chunk_size
        return (override // self.base_chunk_size) * self.base_chunk_size


@dataclass
class UploaderConfig:
    """
    Complete uploader configuration.

    Attributes:
        direct_upload_threshold: Payloads smaller than this use a single
            multipart POST; ``None`` forces the chunked path for every size
        chunk: Chunk size policy
        timeout: Per-request timeouts
        source_tag: Value of the ``Source`` header when no custom headers
            are supplied
        jwt: Optional bearer token forwarded as ``Authorization``
        api_url: Base URL used to resolve a CID into a file record
        user_agent: User-Agent header of the owned HTTP session
        log_level: Level applied to the uploader loggers when the root
            logger is unconfigured
    """
    direct_upload_threshold: Optional[int] = DEFAULT_DIRECT_UPLOAD_THRESHOLD
    chunk: ChunkConfig = field(default_factory=ChunkConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    source_tag: str = 'sdk/python'
    jwt: Optional[str] = None
    api_url: str = 'https://api.pinata.cloud/v3'
    user_agent: str = 'pinupload/1.0.0'
    log_level: int = logging.INFO

    @classmethod
    def default(cls) -> 'UploaderConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def always_chunked(cls, **kwargs) -> 'UploaderConfig':
        """Configuration for contexts without reliable multipart support."""
        return cls(direct_upload_threshold=None, **kwargs)

    @classmethod
    def with_jwt(cls, jwt: str, **kwargs) -> 'UploaderConfig':
        """Create configuration that authenticates every request."""
        return cls(jwt=jwt, **kwargs)

    def base_headers(self, custom_headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Headers sent with every request of a session.

        Caller headers replace the default ``Source`` tag; the bearer token
        is added in both cases.

        Args:
            custom_headers: Caller-supplied headers

        Returns:
            New header dictionary
        """
        headers: Dict[str, str] = {}
        if self.jwt:
            headers['Authorization'] = f"Bearer {self.jwt}"
        if custom_headers:
            headers.update(custom_headers)
        else:
            headers['Source'] = self.source_tag
        return headers

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        return {
            'headers': {'User-Agent': self.user_agent},
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
