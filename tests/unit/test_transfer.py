"""Tests for ChunkTransferLoop."""
from unittest.mock import AsyncMock, Mock

import pytest

from pinupload.core.exceptions import NetworkError
from pinupload.core.upload import ChunkTransferLoop, BytesSource
from pinupload.core.upload.models import Network, UploadSession, UploadState
from pinupload.core.upload.services import Finalizer
from pinupload.core.upload.strategies import FixedSizeChunkingStrategy


def make_session(total_size):
    session = UploadSession(total_size=total_size, network=Network.PUBLIC, chunk_size=100)
    session.transition(UploadState.INITIATING)
    session.session_url = "https://uploads.example.com/files/1"
    session.transition(UploadState.TRANSFERRING)
    return session


def make_loop(source, uploader, on_progress=None):
    return ChunkTransferLoop(
        source=source,
        uploader=uploader,
        finalizer=Finalizer(),
        chunking=FixedSizeChunkingStrategy(100),
        on_progress=on_progress,
    )


@pytest.fixture
def uploader():
    mock = Mock()
    mock.upload_chunk = AsyncMock(return_value={})
    return mock


class TestChunkTransferLoop:
    """Test suite for ChunkTransferLoop."""

    @pytest.mark.asyncio
    async def test_sends_all_chunks(self, uploader):
        session = make_session(250)
        progress = []

        state = await make_loop(BytesSource(b'x' * 250, 'x.bin'), uploader, progress.append).run(session)

        assert state is UploadState.COMPLETED
        chunks = [call.args[0] for call in uploader.upload_chunk.await_args_list]
        assert [(c.index, c.start, c.size) for c in chunks] == [(0, 0, 100), (1, 100, 100), (2, 200, 50)]
        assert len(progress) == 3
        assert session.chunks_sent == 3

    @pytest.mark.asyncio
    async def test_empty_source_finalizes_without_chunks(self, uploader):
        session = make_session(0)

        state = await make_loop(BytesSource(b'', 'empty.bin'), uploader).run(session)

        assert state is UploadState.COMPLETED
        uploader.upload_chunk.assert_not_awaited()
        assert session.result.size == 0

    @pytest.mark.asyncio
    async def test_pause_then_rerun_continues(self, uploader):
        session = make_session(300)

        def pause_after_first(s):
            if s.chunks_sent == 1:
                s.pause_requested = True

        loop = make_loop(BytesSource(b'y' * 300, 'y.bin'), uploader, pause_after_first)
        assert await loop.run(session) is UploadState.PAUSED
        assert session.offset == 100

        session.pause_requested = False
        session.transition(UploadState.TRANSFERRING)
        assert await loop.run(session) is UploadState.COMPLETED

        starts = [call.args[0].start for call in uploader.upload_chunk.await_args_list]
        assert starts == [0, 100, 200]

    @pytest.mark.asyncio
    async def test_cancel_flag(self, uploader):
        session = make_session(300)
        session.cancel_requested = True

        state = await make_loop(BytesSource(b'z' * 300, 'z.bin'), uploader).run(session)

        assert state is UploadState.CANCELLED
        uploader.upload_chunk.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_chunk_error_propagates(self, uploader):
        uploader.upload_chunk.side_effect = [{}, NetworkError("rejected", 500)]
        session = make_session(300)

        with pytest.raises(NetworkError):
            await make_loop(BytesSource(b'z' * 300, 'z.bin'), uploader).run(session)

        assert session.offset == 100
        assert session.state is UploadState.TRANSFERRING
