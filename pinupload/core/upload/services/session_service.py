"""
Session initiation service.

Allocates a remote upload session with one creation request.
"""
from typing import Optional
from urllib.parse import urljoin
import time

import aiohttp

from ...exceptions import NetworkError
from ...logging import get_logger
from ..models import UploadSession, UploadState
from .http import is_success, error_from_response


class SessionInitiator:
    """
    Performs the creation request of a resumable upload.

    Responsibilities:
    - Declare total length and metadata to the endpoint
    - Map failures to AuthenticationError / NetworkError
    - Store the session address on the session record
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: Optional[aiohttp.ClientTimeout] = None
    ):
        """
        Initialize session initiator.

        Args:
            session: Shared HTTP session
            timeout: Per-request timeout
        """
        self._session = session
        self._timeout = timeout or aiohttp.ClientTimeout()
        self._logger = get_logger('pinupload.upload.session')

    async def initiate(
        self,
        upload: UploadSession,
        target_url: str,
        metadata: str
    ) -> str:
        """
        Create the remote session and move ``upload`` to Transferring.

        Args:
            upload: Session record in the Initiating state
            target_url: Upload-target URL
            metadata: Encoded Upload-Metadata header value

        Returns:
            Absolute session address

        Raises:
            AuthenticationError: On HTTP 401/403
            NetworkError: On other non-2xx statuses or a missing Location header
        """
        headers = {
            'Upload-Length': str(upload.total_size),
            'Upload-Metadata': metadata,
            **upload.headers,
        }

        start = time.time()
        self._logger.debug(f"Initiating upload of {upload.total_size} bytes at {target_url}")

        async with self._session.post(
            target_url,
            headers=headers,
            timeout=self._timeout
        ) as response:
            if not is_success(response.status):
                raise await error_from_response(response, "Error initializing upload")

            location = response.headers.get('Location')
            if not location:
                raise NetworkError(
                    "Upload URL not provided",
                    response.status,
                    {
                        'error': 'No location header found',
                        'code': 'HTTP_ERROR',
                        'metadata': {'requestUrl': str(response.url)},
                    }
                )

        session_url = urljoin(target_url, location)
        upload.session_url = session_url
        upload.transition(UploadState.TRANSFERRING)

        elapsed = time.time() - start
        self._logger.info(f"Upload session created in {elapsed:.2f}s: {session_url}")
        return session_url
