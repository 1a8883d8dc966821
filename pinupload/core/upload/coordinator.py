"""
Upload coordinator.

Owns the upload session and drives it through the direct or the chunked
path. Exposes start/pause/resume/cancel and the observable session state.
"""
import asyncio
import logging
from typing import Any, Callable, Optional, Set, Union

import aiohttp

from ..config import UploaderConfig
from ..events import EventEmitter
from ..exceptions import (
    UploadError,
    ValidationError,
    UploadTimeoutError,
    UnexpectedUploadError
)
from ..logging import get_logger
from .models import Network, UploadOptions, UploadResult, UploadSession, UploadState
from .protocols import ByteSource, ResultResolver
from .services import (
    MetadataEncoder,
    SessionInitiator,
    ChunkUploader,
    Finalizer,
    DirectUploader
)
from .strategies import FixedSizeChunkingStrategy, UploadPath, UploadStrategySelector
from .transfer import ChunkTransferLoop

logger = get_logger('pinupload.upload.coordinator')


class UploadCoordinator:
    """
    Coordinates one upload at a time.

    ``start`` allocates a fresh session and runs it as a background task;
    progress, errors and results are observed through the session state or
    the ``state``, ``progress``, ``error`` and ``complete`` events.

    Example:
        >>> async with UploadCoordinator() as uploader:
        ...     await uploader.start(BytesSource(data, "a.bin"), "public", url)
        ...     uploader.pause()
        ...     uploader.resume()
        ...     session = await uploader.wait()
        ...     print(session.result.cid)
    """

    def __init__(
        self,
        config: Optional[UploaderConfig] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
        resolver: Optional[ResultResolver] = None
    ):
        """
        Initialize upload coordinator.

        Args:
            config: Uploader configuration (uses defaults if not provided)
            http_session: Optional shared session; one is created on demand
            resolver: Optional lookup resolving the reported CID to a record
        """
        self._config = config or UploaderConfig.default()
        self._http = http_session
        self._owns_http = False
        self._resolver = resolver
        self._selector = UploadStrategySelector(self._config.direct_upload_threshold)
        self._encoder = MetadataEncoder()
        self._events = EventEmitter('pinupload.upload.events')

        self._session: Optional[UploadSession] = None
        self._path: Optional[UploadPath] = None
        self._source: Optional[ByteSource] = None
        self._transfer: Optional[ChunkTransferLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._retired: Set[asyncio.Task] = set()

        root_logger = logging.getLogger()
        if not root_logger.handlers:
            logging.getLogger('pinupload').setLevel(self._config.log_level)

    # -- observable state -------------------------------------------------

    @property
    def config(self) -> UploaderConfig:
        return self._config

    @property
    def session(self) -> Optional[UploadSession]:
        """The current session (None before the first start)."""
        return self._session

    @property
    def path(self) -> Optional[UploadPath]:
        return self._path

    @property
    def state(self) -> UploadState:
        return self._session.state if self._session else UploadState.IDLE

    @property
    def progress(self) -> float:
        return self._session.progress if self._session else 0.0

    @property
    def is_active(self) -> bool:
        return self._session.is_active if self._session else False

    @property
    def error(self) -> Optional[UploadError]:
        return self._session.last_error if self._session else None

    @property
    def result(self) -> Optional[UploadResult]:
        return self._session.result if self._session else None

    @property
    def resolver(self) -> Optional[ResultResolver]:
        return self._resolver

    @resolver.setter
    def resolver(self, value: Optional[ResultResolver]):
        self._resolver = value

    def on(self, event: str, callback: Callable) -> 'UploadCoordinator':
        """Register a handler for ``state``, ``progress``, ``error`` or ``complete``."""
        self._events.on(event, callback)
        return self

    def off(self, event: str, callback: Optional[Callable] = None) -> 'UploadCoordinator':
        """Remove an event handler."""
        self._events.off(event, callback)
        return self

    # -- HTTP session -----------------------------------------------------

    async def _get_http(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(**self._config.get_session_kwargs())
            self._owns_http = True
        return self._http

    async def get_http_session(self) -> aiohttp.ClientSession:
        """The HTTP session used for uploads (created on demand)."""
        return await self._get_http()

    async def close(self):
        """Cancel any running upload and close the session if we own it."""
        if self._session and not self._session.is_terminal:
            self.cancel()
        tasks = [t for t in (self._task, *self._retired) if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._owns_http and self._http and not self._http.closed:
            await self._http.close()
            self._http = None

    async def __aenter__(self) -> 'UploadCoordinator':
        await self._get_http()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # -- control surface --------------------------------------------------

    async def start(
        self,
        source: ByteSource,
        network: Union[Network, str],
        target_url: str,
        options: Optional[UploadOptions] = None
    ) -> UploadSession:
        """
        Start uploading ``source``; returns without waiting for completion.

        Any previous session is discarded; if it is still running it is
        asked to cancel at its next safe point.

        Args:
            source: Payload to upload
            network: 'public' or 'private'
            target_url: Upload-target URL obtained out-of-band
            options: Upload options

        Returns:
            The new session record

        Raises:
            ValidationError: If the input is malformed (no network call is made)
        """
        options = options or UploadOptions()
        network = self._validate(source, network, target_url)

        self._retire_current()

        session = UploadSession(
            total_size=source.size,
            network=network,
            chunk_size=self._config.chunk.normalize(options.chunk_size),
            name=options.name or source.name or 'File from SDK',
            headers=self._config.base_headers(options.custom_headers),
        )
        path = self._selector.select(source.size)

        self._session = session
        self._path = path
        self._source = source
        self._transfer = None

        size_mb = source.size / (1024 * 1024)
        logger.info(f"Starting {path.value} upload: {session.name} ({size_mb:.2f} MB)")
        self._emit_state(session)

        if path is UploadPath.DIRECT:
            runner = self._run_direct(session, source, target_url, options)
        else:
            runner = self._run_chunked(session, source, target_url, options)
        self._task = asyncio.create_task(self._guard(session, source, runner))
        return session

    def pause(self) -> bool:
        """
        Ask the chunked transfer to pause after the in-flight chunk.

        Returns:
            True if the pause request was recorded
        """
        session = self._session
        if session is None or self._path is not UploadPath.CHUNKED:
            return False
        if session.state not in (UploadState.INITIATING, UploadState.TRANSFERRING):
            return False
        session.pause_requested = True
        logger.debug("Pause requested")
        return True

    def resume(self) -> bool:
        """
        Continue a paused transfer from the last confirmed offset.

        Returns:
            True if the transfer is (again) running
        """
        session = self._session
        if session is None or session.is_terminal:
            return False

        if session.pause_requested and self._is_running():
            # The loop has not reached its safe point yet: keep it going
            session.pause_requested = False
            return True

        if session.state is not UploadState.PAUSED or not session.session_url:
            return False
        if self._transfer is None or self._is_running():
            return False

        session.pause_requested = False
        session.transition(UploadState.TRANSFERRING)
        logger.info(f"Resuming upload at offset {session.offset}/{session.total_size}")
        self._emit_state(session)
        self._task = asyncio.create_task(
            self._guard(session, self._source, self._transfer.run(session))
        )
        return True

    def cancel(self) -> bool:
        """
        Cancel the current session.

        Takes effect at the next safe point; an idle or paused session is
        cancelled immediately. A direct upload that has already started
        cannot be cancelled.

        Returns:
            True if the cancel request was recorded
        """
        session = self._session
        if session is None or session.is_terminal:
            return False
        if self._path is UploadPath.DIRECT and session.state is not UploadState.IDLE:
            logger.debug("Cancel ignored: direct upload already in flight")
            return False
        session.cancel_requested = True
        logger.debug("Cancel requested")
        if not self._is_running():
            session.mark_cancelled()
            self._emit_state(session)
            self._schedule_source_close(self._source)
        return True

    async def wait(self) -> Optional[UploadSession]:
        """Wait until the current run stops (terminal or paused)."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self._session

    # -- internals --------------------------------------------------------

    def _validate(
        self,
        source: Any,
        network: Union[Network, str],
        target_url: str
    ) -> Network:
        if not isinstance(source, ByteSource):
            raise ValidationError(
                f"Source must provide name, size, content_type and read_range, "
                f"got {type(source).__name__}"
            )
        if not isinstance(source.size, int) or source.size < 0:
            raise ValidationError(f"Invalid source size: {source.size!r}")
        if not target_url:
            raise ValidationError("Upload target URL is missing")
        try:
            return Network.parse(network)
        except ValueError as e:
            raise ValidationError(f"Invalid network: {network!r}") from e

    def _is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _is_current(self, session: UploadSession) -> bool:
        # A retired session must not reach observers of its replacement
        return session is self._session

    def _retire_current(self) -> None:
        previous = self._session
        if previous is not None and not previous.is_terminal:
            previous.cancel_requested = True
            if not self._is_running():
                previous.mark_cancelled()
                self._schedule_source_close(self._source)
        if self._is_running():
            task = self._task
            self._retired.add(task)
            task.add_done_callback(self._retired.discard)
        self._task = None

    async def _run_direct(
        self,
        session: UploadSession,
        source: ByteSource,
        target_url: str,
        options: UploadOptions
    ) -> None:
        if session.cancel_requested:
            session.mark_cancelled()
            return
        session.transition(UploadState.INITIATING)
        self._emit_state(session)
        session.transition(UploadState.TRANSFERRING)
        self._emit_state(session)
        http = await self._get_http()
        uploader = DirectUploader(http, self._config.timeout.to_aiohttp_timeout())
        await uploader.upload(session, source, target_url, options)

    async def _run_chunked(
        self,
        session: UploadSession,
        source: ByteSource,
        target_url: str,
        options: UploadOptions
    ) -> None:
        if session.cancel_requested:
            session.mark_cancelled()
            return
        session.transition(UploadState.INITIATING)
        self._emit_state(session)
        http = await self._get_http()
        timeout = self._config.timeout.to_aiohttp_timeout()
        metadata = self._encoder.encode(
            session.name, source.content_type, session.network, options
        )
        session_url = await SessionInitiator(http, timeout).initiate(
            session, target_url, metadata
        )
        self._emit_state(session)

        chunking = FixedSizeChunkingStrategy(session.chunk_size)
        logger.info(
            f"Transferring {session.total_chunks} chunks of up to "
            f"{session.chunk_size / 1024:.0f} KB"
        )
        transfer = ChunkTransferLoop(
            source=source,
            uploader=ChunkUploader(session_url, http, session.headers, timeout),
            finalizer=Finalizer(self._resolver),
            chunking=chunking,
            on_progress=self._emit_progress,
        )
        if self._session is session:
            self._transfer = transfer
        await transfer.run(session)

    async def _guard(self, session: UploadSession, source: ByteSource, runner) -> None:
        """Run one step of the session and turn any exception into Failed."""
        try:
            await runner
        except asyncio.CancelledError:
            if not session.is_terminal:
                session.mark_cancelled()
            raise
        except UploadError as e:
            self._fail(session, e)
        except asyncio.TimeoutError as e:
            self._fail(session, UploadTimeoutError("Request timed out", details={'error': repr(e)}))
        except Exception as e:
            wrapped = UnexpectedUploadError(f"Unexpected error during upload: {e}", e)
            wrapped.__cause__ = e
            self._fail(session, wrapped)
        finally:
            self._emit_state(session)
            if session.state is UploadState.COMPLETED and self._is_current(session):
                self._events.emit('progress', session.progress)
                self._events.emit('complete', session.result)
            if session.is_terminal:
                await self._close_source(source)

    def _fail(self, session: UploadSession, error: UploadError) -> None:
        if not session.is_active:
            logger.error(f"Error after session stopped ({session.state.value}): {error}")
            return
        logger.error(f"Upload failed at offset {session.offset}/{session.total_size}: {error}")
        session.fail(error)
        if self._is_current(session):
            self._events.emit('error', error)

    def _emit_progress(self, session: UploadSession) -> None:
        logger.debug(f"Progress {session.progress:.1f}% ({session.offset}/{session.total_size})")
        if self._is_current(session):
            self._events.emit('progress', session.progress)

    def _emit_state(self, session: UploadSession) -> None:
        if self._is_current(session):
            self._events.emit('state', session.state)

    async def _close_source(self, source: Optional[ByteSource]) -> None:
        close = getattr(source, 'close', None)
        if close is not None:
            await close()

    def _schedule_source_close(self, source: Optional[ByteSource]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self._close_source(source))
        self._retired.add(task)
        task.add_done_callback(self._retired.discard)
