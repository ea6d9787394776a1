"""
Core data models for the directory sync engine.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Iterable, List, Optional, Tuple

from ..exceptions import TransferError


@dataclass(frozen=True)
class LocalEntry:
    """A regular file found under the sync root."""
    path: str  # forward-slash path relative to the root
    fingerprint: str  # hex MD5 of the content
    size: int
    absolute_path: str


@dataclass(frozen=True)
class RemoteEntry:
    """An object currently stored in the bucket."""
    path: str
    fingerprint: str  # ETag without quotes
    size: int


@dataclass(frozen=True)
class SyncPlan:
    """Uploads, deletions and no-ops needed to make the bucket mirror the directory."""
    to_upload: Tuple[str, ...] = ()
    to_delete: Tuple[str, ...] = ()
    unchanged: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.to_upload and not self.to_delete

    @property
    def total_transfers(self) -> int:
        return len(self.to_upload) + len(self.to_delete)

    def without_deletions(self, paths: Iterable[str]) -> 'SyncPlan':
        """Return a copy of the plan that never deletes the given paths."""
        protected = set(paths)
        return SyncPlan(
            to_upload=self.to_upload,
            to_delete=tuple(p for p in self.to_delete if p not in protected),
            unchanged=self.unchanged
        )


class TransferState(Enum):
    """Lifecycle of a single planned transfer."""
    PENDING = 'pending'
    IN_FLIGHT = 'in_flight'
    RETRYING = 'retrying'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'


@dataclass
class TransferResult:
    """Outcome of one upload or delete."""
    path: str
    operation: str  # 'upload' or 'delete'
    state: TransferState
    bytes_transferred: int = 0
    attempts: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state is TransferState.SUCCEEDED


@dataclass
class ProgressEvent:
    """Snapshot of transfer progress handed to the progress consumer."""
    entries_completed: int
    total_entries: int
    bytes_transferred: int
    total_bytes: int


@dataclass
class TransferSummary:
    """Aggregate outcome of a sync run."""
    uploads_succeeded: int = 0
    uploads_failed: int = 0
    deletes_succeeded: int = 0
    deletes_failed: int = 0
    unchanged: int = 0
    bytes_transferred: int = 0
    failures: List[TransferResult] = field(default_factory=list)
    walk_errors: List[Tuple[str, str]] = field(default_factory=list)
    cancelled: bool = False

    def record(self, result: TransferResult) -> None:
        """Fold a single transfer result into the totals."""
        if result.operation == 'upload':
            if result.succeeded:
                self.uploads_succeeded += 1
                self.bytes_transferred += result.bytes_transferred
            else:
                self.uploads_failed += 1
        else:
            if result.succeeded:
                self.deletes_succeeded += 1
            else:
                self.deletes_failed += 1

        if not result.succeeded:
            self.failures.append(result)

    @property
    def entries_recorded(self) -> int:
        return (self.uploads_succeeded + self.uploads_failed
                + self.deletes_succeeded + self.deletes_failed)

    def errors(self) -> List[TransferError]:
        """Failed transfers and unreadable local files as TransferErrors."""
        errors = [TransferError(f.path, f"{f.operation} failed: {f.error}") for f in self.failures]
        errors.extend(TransferError(path, f"unreadable: {reason}") for path, reason in self.walk_errors)
        return errors

    @property
    def success(self) -> bool:
        return not self.failures and not self.walk_errors and not self.cancelled

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            'uploads_succeeded': self.uploads_succeeded,
            'uploads_failed': self.uploads_failed,
            'deletes_succeeded': self.deletes_succeeded,
            'deletes_failed': self.deletes_failed,
            'unchanged': self.unchanged,
            'bytes_transferred': self.bytes_transferred,
            'failures': [
                {'path': f.path, 'operation': f.operation, 'attempts': f.attempts, 'error': f.error}
                for f in self.failures
            ],
            'walk_errors': [{'path': p, 'error': e} for p, e in self.walk_errors],
            'cancelled': self.cancelled,
            'success': self.success
        }
