"""
Upload path selection.

Small payloads go out as one multipart request, everything else through
the chunked resumable protocol.
"""
from enum import Enum
from typing import Optional

from ...config import DEFAULT_DIRECT_UPLOAD_THRESHOLD


class UploadPath(str, Enum):
    """Transfer path of an upload."""
    DIRECT = 'direct'
    CHUNKED = 'chunked'


class UploadStrategySelector:
    """
    Chooses between the direct and the chunked path.

    Example:
        >>> selector = UploadStrategySelector(direct_threshold=1024)
        >>> selector.select(100)
        <UploadPath.DIRECT: 'direct'>
        >>> UploadStrategySelector(direct_threshold=None).select(100)
        <UploadPath.CHUNKED: 'chunked'>
    """

    def __init__(self, direct_threshold: Optional[int] = DEFAULT_DIRECT_UPLOAD_THRESHOLD):
        """
        Args:
            direct_threshold: Sizes below this use the direct path; None
                disables the direct path entirely
        """
        if direct_threshold is not None and direct_threshold < 0:
            raise ValueError("Direct upload threshold cannot be negative")
        self.direct_threshold = direct_threshold

    def select(self, size: int) -> UploadPath:
        """Returns the path for a payload of ``size`` bytes."""
        if self.direct_threshold is not None and size < self.direct_threshold:
            return UploadPath.DIRECT
        return UploadPath.CHUNKED
