"""
Byte source adapters.

A byte source exposes a size, a content type and random-access reads of
``[offset, offset + length)`` ranges.
"""
from pathlib import Path
from typing import Optional, Union, Any
import base64
import binascii
import json
import mimetypes

import aiofiles

from ..exceptions import ValidationError
from ..logging import get_logger

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


def guess_content_type(name: str) -> str:
    """Guess a content type from a file name."""
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


def _check_range(offset: int, length: int, size: int) -> None:
    if offset < 0 or length < 0 or offset + length > size:
        raise ValidationError(
            f"Range [{offset}, {offset + length}) is outside source of {size} bytes"
        )


class BytesSource:
    """
    In-memory byte source.

    Example:
        >>> source = BytesSource(b"hello", "hello.txt")
        >>> source.size
        5
    """

    def __init__(
        self,
        data: Union[bytes, bytearray, memoryview],
        name: str,
        content_type: Optional[str] = None
    ):
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ValidationError(f"Expected bytes, got {type(data).__name__}")
        self._data = bytes(data)
        self._name = name
        self._content_type = content_type or guess_content_type(name)

    @classmethod
    def from_json(cls, obj: Any, name: str = 'data.json') -> 'BytesSource':
        """Create a source holding ``obj`` serialized as JSON."""
        try:
            text = json.dumps(obj)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Object is not JSON serializable: {e}") from e
        return cls(text.encode('utf-8'), name, 'application/json')

    @classmethod
    def from_base64(
        cls,
        text: str,
        name: str = 'base64 string',
        content_type: Optional[str] = None
    ) -> 'BytesSource':
        """Create a source from base64-encoded content."""
        try:
            data = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Invalid base64 content: {e}") from e
        return cls(data, name, content_type)

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def content_type(self) -> str:
        return self._content_type

    async def read_range(self, offset: int, length: int) -> bytes:
        _check_range(offset, length, self.size)
        return self._data[offset:offset + length]

    async def close(self) -> None:
        return None


class FileSource:
    """
    File-backed byte source.

    Uses aiofiles for non-blocking I/O. Keeps the file handle open between
    reads to avoid repeated open/close operations; ``close()`` releases it.
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        name: Optional[str] = None,
        content_type: Optional[str] = None
    ):
        """
        Validate and describe a file for upload.

        Args:
            file_path: Path to the file
            name: Display name (defaults to the file name)
            content_type: Content type (guessed from the name if omitted)

        Raises:
            ValidationError: If the path does not exist or is not a file
        """
        path = Path(file_path)
        if not path.exists():
            raise ValidationError(f"File not found: {path}")
        if not path.is_file():
            raise ValidationError(f"Path is not a file: {path}")

        self._path = path
        self._size = path.stat().st_size
        self._name = name or path.name
        self._content_type = content_type or guess_content_type(path.name)
        self._file_handle = None
        self._logger = get_logger('pinupload.upload.source')

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return self._size

    @property
    def content_type(self) -> str:
        return self._content_type

    async def _open(self):
        if self._file_handle is None:
            self._file_handle = await aiofiles.open(self._path, 'rb')
        return self._file_handle

    async def read_range(self, offset: int, length: int) -> bytes:
        """
        Read a byte range from the file.

        Raises:
            ValidationError: If the range is invalid or the file shrank
        """
        _check_range(offset, length, self._size)
        handle = await self._open()
        await handle.seek(offset)
        data = await handle.read(length)
        if len(data) != length:
            raise ValidationError(
                f"Short read from {self._path}: expected {length} bytes at "
                f"offset {offset}, got {len(data)}"
            )
        self._logger.debug(f"Read range: {offset}-{offset + length} ({length} bytes)")
        return data

    async def close(self) -> None:
        """Close the currently open file."""
        if self._file_handle is not None:
            await self._file_handle.close()
            self._file_handle = None
