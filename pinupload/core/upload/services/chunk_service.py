"""
Chunk upload service.

Handles sending individual byte ranges to the session address.
"""
from typing import Mapping, Optional
import time

import aiohttp

from ...logging import get_logger
from ..models import ChunkInfo
from .http import is_success, error_from_response

CHUNK_CONTENT_TYPE = 'application/offset+octet-stream'


class ChunkUploader:
    """
    Sends chunks to a resumable upload session.

    Reuses the HTTP session for all chunks.

    Responsibilities:
    - PATCH the byte range with its offset
    - Map failures to AuthenticationError / NetworkError
    - Keep the headers of the last accepted chunk for the finalizer
    """

    def __init__(
        self,
        session_url: str,
        session: aiohttp.ClientSession,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None
    ):
        """
        Initialize chunk uploader.

        Args:
            session_url: Session address returned by the initiation request
            session: Shared HTTP session
            headers: Headers sent with every chunk (auth, source tag)
            timeout: Per-request timeout
        """
        self._session_url = session_url
        self._session = session
        self._headers = dict(headers or {})
        self._timeout = timeout or aiohttp.ClientTimeout()
        self._logger = get_logger('pinupload.upload.chunk')

    @property
    def session_url(self) -> str:
        """Returns the session address."""
        return self._session_url

    async def upload_chunk(self, chunk: ChunkInfo, data: bytes) -> Mapping[str, str]:
        """
        Upload a single chunk.

        Args:
            chunk: Position of the chunk within the source
            data: Chunk bytes (exactly ``chunk.size`` bytes)

        Returns:
            Response headers of the accepted chunk

        Raises:
            ValueError: If the data does not match the chunk size
            AuthenticationError: On HTTP 401/403
            NetworkError: On other non-2xx statuses
        """
        if len(data) != chunk.size:
            raise ValueError(
                f"Chunk {chunk.index} has {len(data)} bytes, expected {chunk.size}"
            )

        headers = {
            'Content-Type': CHUNK_CONTENT_TYPE,
            'Upload-Offset': str(chunk.start),
            **self._headers,
        }
        chunk_size_kb = chunk.size / 1024
        upload_start = time.time()
        self._logger.debug(
            f"Uploading chunk {chunk.index} at offset {chunk.start} ({chunk_size_kb:.1f} KB)"
        )

        async with self._session.patch(
            self._session_url,
            data=data,
            headers=headers,
            timeout=self._timeout
        ) as response:
            if not is_success(response.status):
                error = await error_from_response(response, "HTTP error during chunk upload")
                self._logger.error(
                    f"Chunk {chunk.index} rejected with HTTP {response.status}"
                )
                raise error
            await response.read()
            response_headers = response.headers

        upload_time = time.time() - upload_start
        speed_kbps = (chunk_size_kb / upload_time) if upload_time > 0 else 0
        self._logger.debug(
            f"Chunk {chunk.index} uploaded in {upload_time:.2f}s ({speed_kbps:.1f} KB/s)"
        )
        return response_headers
