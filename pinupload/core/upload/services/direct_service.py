"""
Direct upload service.

Sends a small payload as one multipart/form-data request.
"""
from typing import Optional
import json
import time

import aiohttp

from ...exceptions import NetworkError
from ...logging import get_logger
from ..models import UploadSession, UploadOptions, UploadResult, UploadState
from ..protocols import ByteSource
from .http import is_success, error_from_response


class DirectUploader:
    """
    Single-request, non-resumable upload path.

    Builds a multipart form with the payload, the network scope, the display
    name and the optional group id, key/value tags and streaming flag. The
    whole upload is one network call: there is nothing to pause, resume or
    cancel once it has started.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: Optional[aiohttp.ClientTimeout] = None
    ):
        """
        Args:
            session: Shared HTTP session
            timeout: Per-request timeout
        """
        self._session = session
        self._timeout = timeout or aiohttp.ClientTimeout()
        self._logger = get_logger('pinupload.upload.direct')

    def build_form(
        self,
        data: bytes,
        source: ByteSource,
        upload: UploadSession,
        options: Optional[UploadOptions] = None
    ) -> aiohttp.FormData:
        """Build the multipart body."""
        options = options or UploadOptions()
        form = aiohttp.FormData()
        form.add_field(
            'file',
            data,
            filename=source.name,
            content_type=source.content_type
        )
        form.add_field('network', upload.network.value)
        form.add_field('name', options.name or source.name or 'File from SDK')
        if options.group_id:
            form.add_field('group_id', options.group_id)
        if options.keyvalues:
            form.add_field('keyvalues', json.dumps(dict(options.keyvalues)))
        if options.streamable:
            form.add_field('streamable', 'true')
        return form

    async def upload(
        self,
        upload: UploadSession,
        source: ByteSource,
        target_url: str,
        options: Optional[UploadOptions] = None
    ) -> UploadResult:
        """
        Upload ``source`` in one request and complete ``upload``.

        Args:
            upload: Session record in the Transferring state
            source: Payload
            target_url: Upload-target URL
            options: Upload options

        Returns:
            The upload result; ``data`` holds the response payload

        Raises:
            AuthenticationError: On HTTP 401/403
            NetworkError: On other non-2xx statuses or a non-JSON body
        """
        data = await source.read_range(0, source.size)
        form = self.build_form(data, source, upload, options)

        start = time.time()
        self._logger.debug(f"Direct upload of {source.size} bytes to {target_url}")

        async with self._session.post(
            target_url,
            data=form,
            headers=upload.headers,
            timeout=self._timeout
        ) as response:
            if not is_success(response.status):
                raise await error_from_response(response, "HTTP error")
            try:
                body = await response.json(content_type=None)
            except ValueError as e:
                raise NetworkError(
                    f"Invalid JSON in upload response: {e}",
                    response.status,
                    {'code': 'HTTP_ERROR', 'metadata': {'requestUrl': str(response.url)}}
                ) from e

        payload = body.get('data') if isinstance(body, dict) else None
        record = payload if isinstance(payload, dict) else {}

        upload.transition(UploadState.FINALIZING)
        result = UploadResult(
            cid=record.get('cid'),
            file_id=record.get('id'),
            data=payload,
            size=upload.total_size,
            network=upload.network
        )
        upload.complete(result)

        elapsed = time.time() - start
        self._logger.info(f"Direct upload completed in {elapsed:.2f}s: cid={result.cid}")
        return result
