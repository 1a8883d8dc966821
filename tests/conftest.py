"""Pytest fixtures for pinupload tests."""
import asyncio
import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from pinupload.core.config import UploaderConfig, ChunkConfig
from pinupload.core.upload import UploadCoordinator, BytesSource


@dataclass
class RecordedRequest:
    """One request seen by the fake endpoint."""
    method: str
    path: str
    headers: Mapping[str, str]
    body: bytes = b''
    fields: Optional[Dict[str, Any]] = None

    @property
    def offset(self) -> int:
        return int(self.headers['Upload-Offset'])


class FakeUploadServer:
    """
    In-process resumable upload endpoint.

    POST /upload creates a session (or accepts a multipart direct upload),
    PATCH /files/{id} accepts chunks and GET /v3/files/{network} answers
    file lookups. Failure modes are switched on through attributes.
    """

    def __init__(self):
        self.requests: List[RecordedRequest] = []
        self.create_status = 201
        self.send_location = True
        self.location = '/files/session-1'
        self.reject_chunk: Optional[int] = None
        self.reject_status = 401
        self.hold_chunk: Optional[int] = None
        self.chunk_received = asyncio.Event()
        self.release = asyncio.Event()
        self.hold_direct = False
        self.direct_received = asyncio.Event()
        self.chunk_delay = 0.0
        self.send_cid = True
        self.cid = 'bafkreitestcid'
        self.file_id = 'file-0001'
        self.direct_status = 200
        self.upload_length: Optional[int] = None
        self.server: Optional[TestServer] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post('/upload', self.handle_upload)
        app.router.add_patch('/files/{session_id}', self.handle_chunk)
        app.router.add_get('/v3/files/{network}', self.handle_lookup)
        return app

    async def start(self):
        self.server = TestServer(self.build_app())
        await self.server.start_server()

    async def close(self):
        self.release.set()
        await self.server.close()

    def url(self, path: str = '/upload') -> str:
        return str(self.server.make_url(path))

    @property
    def creation_requests(self) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == 'POST' and r.fields is None]

    @property
    def direct_requests(self) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == 'POST' and r.fields is not None]

    @property
    def chunk_requests(self) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == 'PATCH']

    @property
    def offsets(self) -> List[int]:
        return [r.offset for r in self.chunk_requests]

    async def handle_upload(self, request: web.Request) -> web.Response:
        if request.content_type.startswith('multipart/'):
            return await self.handle_direct(request)

        self.requests.append(RecordedRequest('POST', request.path, request.headers))
        if self.create_status >= 300:
            return web.Response(status=self.create_status, text='creation rejected')

        self.upload_length = int(request.headers['Upload-Length'])
        headers = {'Location': self.location} if self.send_location else {}
        return web.Response(status=self.create_status, headers=headers)

    async def handle_direct(self, request: web.Request) -> web.Response:
        form = await request.post()
        content = form['file'].file.read()
        fields = {key: value for key, value in form.items() if key != 'file'}
        fields['filename'] = form['file'].filename
        self.requests.append(
            RecordedRequest('POST', request.path, request.headers, content, fields)
        )
        if self.hold_direct:
            self.direct_received.set()
            await self.release.wait()
        if self.direct_status >= 300:
            return web.Response(status=self.direct_status, text='Unauthorized')

        return web.json_response({
            'data': {
                'id': self.file_id,
                'cid': self.cid,
                'name': fields.get('name'),
                'size': len(content),
                'network': fields.get('network'),
            }
        })

    async def handle_chunk(self, request: web.Request) -> web.Response:
        index = len(self.chunk_requests)
        body = await request.read()
        self.requests.append(RecordedRequest('PATCH', request.path, request.headers, body))

        if self.hold_chunk == index:
            self.chunk_received.set()
            await self.release.wait()
        if self.chunk_delay:
            await asyncio.sleep(self.chunk_delay)
        if self.reject_chunk == index:
            return web.Response(status=self.reject_status, text='Unauthorized')

        offset = int(request.headers['Upload-Offset']) + len(body)
        headers = {'Upload-Offset': str(offset)}
        if self.send_cid and offset == self.upload_length:
            headers['upload-cid'] = self.cid
            encoded = base64.b64encode(self.file_id.encode()).decode()
            headers['upload-metadata'] = f"file_id {encoded}"
        return web.Response(status=204, headers=headers)

    async def handle_lookup(self, request: web.Request) -> web.Response:
        self.requests.append(
            RecordedRequest('GET', request.path, request.headers, fields=dict(request.query))
        )
        return web.json_response({
            'data': {
                'files': [{
                    'id': self.file_id,
                    'cid': request.query.get('cid'),
                    'name': 'resolved.bin',
                    'network': request.match_info['network'],
                }]
            }
        })


@pytest_asyncio.fixture
async def upload_server():
    """Running fake upload endpoint."""
    server = FakeUploadServer()
    await server.start()
    yield server
    await server.close()


@pytest.fixture
def payload():
    """300 bytes of deterministic content."""
    return bytes(i % 251 for i in range(300))


@pytest.fixture
def source(payload):
    """In-memory source of the 300-byte payload."""
    return BytesSource(payload, 'payload.bin')


@pytest.fixture
def chunked_config():
    """Always-chunked configuration with 100-byte chunks."""
    return UploaderConfig.always_chunked(
        chunk=ChunkConfig(base_chunk_size=100, default_chunks=1)
    )


@pytest_asyncio.fixture
async def coordinator(upload_server, chunked_config):
    """Coordinator bound to the chunked configuration."""
    async with UploadCoordinator(chunked_config) as uploader:
        yield uploader
