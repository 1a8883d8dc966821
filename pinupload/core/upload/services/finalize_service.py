"""
Finalization service.

Turns the last accepted chunk response into the upload result. There is no
separate finalization request.
"""
from typing import Optional

from ...logging import get_logger
from ..models import UploadSession, UploadResult
from ..protocols import ResultResolver
from .metadata_service import MetadataEncoder

CID_HEADER = 'upload-cid'
METADATA_HEADER = 'upload-metadata'


class Finalizer:
    """
    Completes a chunked upload session.

    The result identifier comes from the ``upload-cid`` header of the last
    chunk response. A missing header is not an error: the session still
    completes, with ``cid=None``.
    """

    def __init__(self, resolver: Optional[ResultResolver] = None):
        """
        Args:
            resolver: Optional lookup that resolves the CID to a full record
        """
        self._resolver = resolver
        self._metadata = MetadataEncoder()
        self._logger = get_logger('pinupload.upload.finalize')

    async def finalize(self, upload: UploadSession) -> Optional[UploadResult]:
        """
        Build the result and move ``upload`` from Finalizing to Completed.

        A cancel requested while the resolver is running wins over completion.

        Args:
            upload: Session record in the Finalizing state

        Returns:
            The upload result, or None if the session was cancelled

        Raises:
            UploadError: If the resolver fails
        """
        headers = upload.last_response_headers or {}
        cid = headers.get(CID_HEADER) or None
        file_id = self._metadata.extract(headers.get(METADATA_HEADER), 'file_id')

        data = None
        if cid and self._resolver is not None:
            self._logger.debug(f"Resolving uploaded object {cid}")
            data = await self._resolver.resolve(cid, upload.network)
            if upload.cancel_requested:
                self._logger.info("Upload cancelled while resolving the result")
                upload.mark_cancelled()
                return None
            if file_id is None and isinstance(data, dict):
                file_id = data.get('id')

        if cid is None:
            self._logger.warning("Upload finished without an upload-cid header")

        result = UploadResult(
            cid=cid,
            file_id=file_id,
            data=data,
            size=upload.total_size,
            network=upload.network
        )
        upload.complete(result)
        self._logger.info(f"Upload completed: {upload.total_size} bytes, cid={cid}")
        return result
