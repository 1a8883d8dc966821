"""
Data models for upload module.

Uses dataclasses for the per-call inputs and results, and one mutable
``UploadSession`` record that every step of an upload receives by reference.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, Mapping, FrozenSet
import math

from ...exceptions import UploadError, InvalidStateTransition


class Network(str, Enum):
    """Visibility scope of an uploaded object."""
    PUBLIC = 'public'
    PRIVATE = 'private'

    @classmethod
    def parse(cls, value) -> 'Network':
        """Accept a Network or its string value."""
        if isinstance(value, cls):
            return value
        return cls(str(value).lower())


class UploadState(str, Enum):
    """Lifecycle states of an upload session."""
    IDLE = 'idle'
    INITIATING = 'initiating'
    TRANSFERRING = 'transferring'
    PAUSED = 'paused'
    FINALIZING = 'finalizing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


TERMINAL_STATES: FrozenSet[UploadState] = frozenset({
    UploadState.COMPLETED,
    UploadState.FAILED,
    UploadState.CANCELLED,
})

ACTIVE_STATES: FrozenSet[UploadState] = frozenset({
    UploadState.INITIATING,
    UploadState.TRANSFERRING,
    UploadState.FINALIZING,
})

# Cancelled is reachable from every non-terminal state and is added below
_TRANSITIONS: Dict[UploadState, FrozenSet[UploadState]] = {
    UploadState.IDLE: frozenset({UploadState.INITIATING}),
    UploadState.INITIATING: frozenset({UploadState.TRANSFERRING, UploadState.FAILED}),
    UploadState.TRANSFERRING: frozenset({
        UploadState.PAUSED, UploadState.FINALIZING, UploadState.FAILED
    }),
    UploadState.PAUSED: frozenset({UploadState.TRANSFERRING, UploadState.FINALIZING}),
    UploadState.FINALIZING: frozenset({UploadState.COMPLETED, UploadState.FAILED}),
}


def can_transition(current: UploadState, target: UploadState) -> bool:
    """Returns True if ``current -> target`` is a legal edge."""
    if current in TERMINAL_STATES:
        return False
    if target is UploadState.CANCELLED:
        return True
    return target in _TRANSITIONS.get(current, frozenset())


@dataclass(frozen=True)
class UploadOptions:
    """
    Caller-supplied options, immutable per session.

    Attributes:
        name: Display name (defaults to the source name)
        keyvalues: Key/value tags attached to the uploaded object
        group_id: Group the object is added to
        custom_headers: Headers sent instead of the default source tag
        chunk_size: Chunk size override in bytes
        streamable: Streaming hint for media payloads
    """
    name: Optional[str] = None
    keyvalues: Optional[Mapping[str, str]] = None
    group_id: Optional[str] = None
    custom_headers: Optional[Mapping[str, str]] = None
    chunk_size: Optional[int] = None
    streamable: bool = False


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a completed upload.

    Attributes:
        cid: Identifier reported by the server (may be None)
        file_id: Server-side file id, when reported
        data: Raw response payload or resolved file record
        size: Number of bytes uploaded
        network: Network the object was uploaded to
    """
    cid: Optional[str] = None
    file_id: Optional[str] = None
    data: Optional[Any] = None
    size: int = 0
    network: Optional[Network] = None


@dataclass(frozen=True)
class ChunkInfo:
    """
    One contiguous byte range of the source.

    Attributes:
        index: Chunk index
        start: Start position in bytes
        end: End position in bytes (exclusive)
    """
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        """Returns chunk size."""
        return self.end - self.start


@dataclass(eq=False)
class UploadSession:
    """
    One attempt to transfer one byte source.

    Owned by the coordinator; the transfer loop, initiator and finalizer
    mutate it in place. A terminal session is never reused.
    """
    total_size: int
    network: Network
    chunk_size: int
    name: str = ''
    headers: Dict[str, str] = field(default_factory=dict)
    state: UploadState = UploadState.IDLE
    progress: float = 0.0
    result: Optional[UploadResult] = None
    last_error: Optional[UploadError] = None
    last_response_headers: Optional[Mapping[str, str]] = None
    pause_requested: bool = False
    cancel_requested: bool = False
    chunks_sent: int = 0
    _session_url: Optional[str] = field(default=None, repr=False)
    _offset: int = field(default=0, repr=False)

    def __post_init__(self):
        if self.total_size < 0:
            raise ValueError("Total size cannot be negative")
        if self.chunk_size <= 0:
            raise ValueError("Chunk size must be positive")

    @property
    def session_url(self) -> Optional[str]:
        """Address assigned by the remote endpoint after initiation."""
        return self._session_url

    @session_url.setter
    def session_url(self, value: str):
        if self._session_url is not None:
            raise ValueError("Session URL is already set")
        self._session_url = value

    @property
    def offset(self) -> int:
        """Bytes confirmed accepted by the remote endpoint."""
        return self._offset

    def advance(self, length: int) -> int:
        """
        Record ``length`` more confirmed bytes.

        Args:
            length: Size of the chunk the endpoint accepted

        Returns:
            The new offset

        Raises:
            ValueError: If the offset would decrease or pass total_size
        """
        new_offset = self._offset + length
        if length < 0 or new_offset > self.total_size:
            raise ValueError(
                f"Offset {new_offset} out of range (0..{self.total_size})"
            )
        self._offset = new_offset
        self.chunks_sent += 1
        return new_offset

    @property
    def total_chunks(self) -> int:
        """Number of chunk requests needed for the whole source."""
        return math.ceil(self.total_size / self.chunk_size)

    @property
    def is_active(self) -> bool:
        """True while a step of the upload is running."""
        return self.state in ACTIVE_STATES

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, target: UploadState) -> None:
        """
        Move to ``target``.

        Raises:
            InvalidStateTransition: If the edge does not exist
        """
        if not can_transition(self.state, target):
            raise InvalidStateTransition(self.state, target)
        self.state = target

    def fail(self, error: UploadError) -> None:
        """Terminate with ``error``; progress stays at its last value."""
        self.transition(UploadState.FAILED)
        self.last_error = error

    def complete(self, result: UploadResult) -> None:
        """Mark the session completed with ``result``."""
        self.transition(UploadState.COMPLETED)
        self.result = result
        self.progress = 100.0

    def mark_cancelled(self) -> None:
        """Cancel and reset the presentation state."""
        self.transition(UploadState.CANCELLED)
        self.progress = 0.0
        self.result = None
        self.last_error = None
        self.pause_requested = False

    def chunk_progress(self) -> float:
        """Progress for the current offset, capped below 100 until finalized."""
        if self.total_size == 0:
            return 99.9
        return min(self._offset / self.total_size * 100, 99.9)
