"""
Upload facade.

Provides a simplified interface for uploads that runs a session to
completion. Follows Facade Pattern - hides the session state machine.
"""
import asyncio
from pathlib import Path
from typing import Optional, Union, Dict, Callable
import logging

import aiohttp

from ..config import UploaderConfig
from .coordinator import UploadCoordinator
from .models import Network, UploadOptions, UploadResult, UploadState
from .protocols import ByteSource, ResultResolver
from .services import ApiResultResolver
from .sources import BytesSource, FileSource


class UploadFacade:
    """
    Simplified interface for uploads.

    Example:
        >>> async with UploadFacade(UploaderConfig.with_jwt(jwt)) as uploader:
        ...     result = await uploader.upload("video.mp4", "public", target_url)
        ...     print(result.cid)
    """

    def __init__(
        self,
        config: Optional[UploaderConfig] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
        resolve_results: bool = False,
        resolver: Optional[ResultResolver] = None,
        log_level: Optional[int] = None
    ):
        """
        Initialize upload facade.

        Args:
            config: Uploader configuration
            http_session: Optional shared HTTP session
            resolve_results: Look up the full file record after chunked
                uploads using the files API at ``config.api_url``
            resolver: Custom result lookup (takes precedence)
            log_level: Optional level for the 'pinupload.upload' logger
        """
        self._config = config or UploaderConfig.default()
        self._resolve_results = resolve_results
        self._custom_resolver = resolver
        if log_level is not None:
            logging.getLogger('pinupload.upload').setLevel(log_level)
        self._coordinator = UploadCoordinator(self._config, http_session)

    @property
    def coordinator(self) -> UploadCoordinator:
        """The coordinator, for pause/resume/cancel from another task."""
        return self._coordinator

    async def __aenter__(self) -> 'UploadFacade':
        await self._coordinator.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self._coordinator.close()

    async def upload(
        self,
        source: Union[ByteSource, bytes, str, Path],
        network: Union[Network, str],
        target_url: str,
        name: Optional[str] = None,
        keyvalues: Optional[Dict[str, str]] = None,
        group_id: Optional[str] = None,
        custom_headers: Optional[Dict[str, str]] = None,
        chunk_size: Optional[int] = None,
        streamable: bool = False,
        progress_callback: Optional[Callable[[float], None]] = None
    ) -> Optional[UploadResult]:
        """
        Upload a payload and wait for the session to finish.

        Args:
            source: ByteSource, raw bytes, or a path to a file
            network: 'public' or 'private'
            target_url: Upload-target URL
            name: Display name
            keyvalues: Key/value tags
            group_id: Group identifier
            custom_headers: Headers replacing the default source tag
            chunk_size: Chunk size override in bytes
            streamable: Streaming hint
            progress_callback: Called with the progress percentage

        Returns:
            UploadResult, or None if the session was cancelled

        Raises:
            ValidationError: If the input is malformed
            AuthenticationError: On HTTP 401/403
            NetworkError: On other HTTP failures
            UnexpectedUploadError: On I/O or connection failures
        """
        options = UploadOptions(
            name=name,
            keyvalues=keyvalues,
            group_id=group_id,
            custom_headers=custom_headers,
            chunk_size=chunk_size,
            streamable=streamable
        )
        byte_source = self._to_source(source, name)
        await self._ensure_resolver(options)

        if progress_callback:
            self._coordinator.on('progress', progress_callback)
        try:
            session = await self._coordinator.start(byte_source, network, target_url, options)
            await self._coordinator.wait()
            while session.state is UploadState.PAUSED:
                # Paused by another task: wait for resume or cancel
                await self._wait_for_state_change(session.state)
                await self._coordinator.wait()
        finally:
            if progress_callback:
                self._coordinator.off('progress', progress_callback)

        if session.state is UploadState.CANCELLED:
            return None
        if session.last_error is not None:
            raise session.last_error
        return session.result

    def _to_source(self, source, name: Optional[str]) -> ByteSource:
        if isinstance(source, (bytes, bytearray, memoryview)):
            return BytesSource(source, name or 'File from SDK')
        if isinstance(source, (str, Path)):
            return FileSource(source, name=name)
        return source

    async def _ensure_resolver(self, options: UploadOptions) -> None:
        if self._custom_resolver is not None:
            self._coordinator.resolver = self._custom_resolver
        elif self._resolve_results:
            http = await self._coordinator.get_http_session()
            self._coordinator.resolver = ApiResultResolver(
                http,
                self._config.api_url,
                self._config.base_headers(options.custom_headers),
                self._config.timeout.to_aiohttp_timeout()
            )

    async def _wait_for_state_change(self, state: UploadState) -> None:
        changed = asyncio.Event()

        def on_state(new_state):
            if new_state is not state:
                changed.set()

        self._coordinator.on('state', on_state)
        try:
            if self._coordinator.state is state:
                await changed.wait()
        finally:
            self._coordinator.off('state', on_state)
