"""
Chunk transfer loop.

Pushes the source to the session address one chunk at a time, strictly in
offset order, checking the pause and cancel flags between chunks.
"""
from typing import Callable, Optional
import time

from ..logging import get_logger
from .models import ChunkInfo, UploadSession, UploadState
from .protocols import ByteSource, ChunkingStrategy
from .services import ChunkUploader, Finalizer

logger = get_logger('pinupload.upload.transfer')


class ChunkTransferLoop:
    """
    State machine body of a chunked upload.

    ``run`` may be called again on the same session after a pause; it always
    continues from the last confirmed offset and never re-sends a chunk. Pause
    and cancel are cooperative: an in-flight chunk request always completes
    before either takes effect.

    Errors raised by a chunk request or the finalizer propagate to the caller,
    which fails the session. Nothing is retried here.
    """

    def __init__(
        self,
        source: ByteSource,
        uploader: ChunkUploader,
        finalizer: Finalizer,
        chunking: ChunkingStrategy,
        on_progress: Optional[Callable[[UploadSession], None]] = None
    ):
        """
        Args:
            source: Payload being uploaded
            uploader: Sends chunks to the session address
            finalizer: Builds the result once every byte is confirmed
            chunking: Chunk policy of the session
            on_progress: Called after every accepted chunk
        """
        self._source = source
        self._uploader = uploader
        self._finalizer = finalizer
        self._chunking = chunking
        self._on_progress = on_progress

    async def run(self, upload: UploadSession) -> UploadState:
        """
        Transfer chunks until the session pauses, cancels or finalizes.

        Args:
            upload: Session record in the Transferring state

        Returns:
            The state the loop stopped in (Paused, Cancelled or Completed)
        """
        loop_start = time.time()
        sent_this_run = 0

        while True:
            if upload.cancel_requested:
                logger.info(f"Upload cancelled at offset {upload.offset}/{upload.total_size}")
                upload.mark_cancelled()
                return upload.state

            if upload.pause_requested:
                upload.transition(UploadState.PAUSED)
                logger.info(f"Upload paused at offset {upload.offset}/{upload.total_size}")
                return upload.state

            if upload.offset >= upload.total_size:
                elapsed = time.time() - loop_start
                logger.debug(f"Sent {sent_this_run} chunks in {elapsed:.2f}s, finalizing")
                upload.transition(UploadState.FINALIZING)
                await self._finalizer.finalize(upload)
                return upload.state

            offset = upload.offset
            length = self._chunking.next_length(offset, upload.total_size)
            chunk = ChunkInfo(index=upload.chunks_sent, start=offset, end=offset + length)

            data = await self._source.read_range(chunk.start, chunk.size)
            headers = await self._uploader.upload_chunk(chunk, data)
            del data

            upload.last_response_headers = headers
            upload.advance(chunk.size)
            upload.progress = upload.chunk_progress()
            sent_this_run += 1

            if self._on_progress:
                self._on_progress(upload)
