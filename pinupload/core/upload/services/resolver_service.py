"""
Result lookup service.

Resolves a reported CID into the file record held by the files API.
"""
from typing import Any, Dict, Mapping, Optional

import aiohttp

from ...exceptions import NetworkError
from ...logging import get_logger
from ..models import Network
from .http import is_success, error_from_response


class ApiResultResolver:
    """
    Looks up ``GET {api_url}/files/{network}?cid={cid}``.

    The first entry of ``data.files`` is the record.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None
    ):
        self._session = session
        self._api_url = api_url.rstrip('/')
        self._headers = dict(headers or {})
        self._timeout = timeout or aiohttp.ClientTimeout()
        self._logger = get_logger('pinupload.upload.resolver')

    async def resolve(self, cid: str, network: Network) -> Optional[Dict[str, Any]]:
        """
        Fetch the record for ``cid``.

        Returns:
            The file record, or None if the API returned no match

        Raises:
            AuthenticationError: On HTTP 401/403
            NetworkError: On other non-2xx statuses or a malformed body
        """
        url = f"{self._api_url}/files/{Network.parse(network).value}"
        async with self._session.get(
            url,
            params={'cid': cid},
            headers=self._headers,
            timeout=self._timeout
        ) as response:
            if not is_success(response.status):
                raise await error_from_response(response, "Error resolving uploaded file")
            try:
                body = await response.json(content_type=None)
            except ValueError as e:
                raise NetworkError(
                    f"Invalid JSON from file lookup: {e}",
                    response.status,
                    {'code': 'HTTP_ERROR', 'metadata': {'requestUrl': str(response.url)}}
                ) from e

        data = body.get('data') if isinstance(body, dict) else None
        files = data.get('files') if isinstance(data, dict) else None
        if not files:
            self._logger.warning(f"No file record found for {cid}")
            return None
        return files[0]
