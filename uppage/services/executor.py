"""
Transfer executor: runs the uploads and deletions of a SyncPlan on a bounded
worker pool with per-entry retries.
"""
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Mapping, Optional, Tuple
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..models.data_models import (
    LocalEntry, SyncPlan, TransferResult, TransferState, TransferSummary
)
from .progress import ProgressCallback, ProgressThrottle

UPLOAD = 'upload'
DELETE = 'delete'

TRANSIENT_ERROR_CODES = {
    'BadDigest', 'InternalError', 'RequestTimeout',
    'ServiceUnavailable', 'SlowDown', 'Throttling', '500', '502', '503', '504'
}


def is_transient(error: Exception) -> bool:
    """Whether a failed call is worth retrying."""
    if isinstance(error, ClientError):
        code = error.response.get('Error', {}).get('Code', '')
        status = error.response.get('ResponseMetadata', {}).get('HTTPStatusCode') or 0
        return code in TRANSIENT_ERROR_CODES or status >= 500
    # connection resets, timeouts and checksum errors raised by botocore itself
    return isinstance(error, BotoCoreError)


class TransferExecutor:
    """
    Executes a SyncPlan against a storage client.

    Every planned transfer is attempted. Workers hand their TransferResult
    back through the future; only the thread calling ``execute`` touches the
    summary, so no locking is needed.
    """

    def __init__(self, storage, concurrency: int = 8, max_retries: int = 2,
                 backoff_factor: float = 0.5):
        """
        Args:
            storage: Object exposing put_object(key, local_path, md5_hex) and
                delete_object(key), normally an S3Manager
            concurrency: Number of parallel transfers
            max_retries: Extra attempts for a transfer that failed transiently
            backoff_factor: Base delay in seconds, doubled on each retry
        """
        self.storage = storage
        self.concurrency = concurrency
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop scheduling new transfers; in-flight ones are allowed to finish."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def execute(self, plan: SyncPlan, local_entries: Mapping[str, LocalEntry],
                progress: Optional[ProgressCallback] = None) -> TransferSummary:
        """
        Run every upload and deletion in the plan.

        Args:
            plan: The plan to execute
            local_entries: Local entries by relative path, must cover plan.to_upload
            progress: Optional callback receiving coalesced ProgressEvents

        Returns:
            TransferSummary with one record per planned transfer
        """
        tasks: List[Tuple[str, str]] = (
            [(UPLOAD, path) for path in plan.to_upload]
            + [(DELETE, path) for path in plan.to_delete]
        )
        total_bytes = sum(local_entries[path].size for path in plan.to_upload)
        summary = TransferSummary(unchanged=len(plan.unchanged))
        throttle = ProgressThrottle(progress, len(tasks), total_bytes)

        logger.info(f"Executing plan - {len(plan.to_upload)} uploads ({total_bytes} bytes), "
                    f"{len(plan.to_delete)} deletions, {len(plan.unchanged)} unchanged")

        recorded = set()

        def _record(result: TransferResult) -> None:
            summary.record(result)
            recorded.add((result.operation, result.path))
            throttle.advance(1, result.bytes_transferred if result.succeeded else 0)

        futures: Dict[Tuple[str, str], object] = {}
        pool = ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix='uppage-transfer')
        try:
            for operation, path in tasks:
                if operation == UPLOAD:
                    future = pool.submit(self._upload, local_entries[path])
                else:
                    future = pool.submit(self._delete, path)
                futures[(operation, path)] = future

            for future in as_completed(futures.values()):
                _record(future.result())
        except KeyboardInterrupt:
            logger.warning("Interrupted - waiting for in-flight transfers to finish")
            self.cancel()
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

        # Entries that never ran after a cancellation still get exactly one record
        for operation, path in tasks:
            if (operation, path) in recorded:
                continue
            future = futures.get((operation, path))
            if future is None or future.cancelled():
                _record(TransferResult(path=path, operation=operation,
                                       state=TransferState.FAILED, error='cancelled'))
            else:
                _record(future.result())

        throttle.finish()
        summary.cancelled = self.cancelled
        return summary

    def _upload(self, entry: LocalEntry) -> TransferResult:
        def _put():
            self.storage.put_object(entry.path, entry.absolute_path, entry.fingerprint)
            return entry.size

        return self._run_with_retries(entry.path, UPLOAD, _put)

    def _delete(self, path: str) -> TransferResult:
        def _remove():
            self.storage.delete_object(path)
            return 0

        return self._run_with_retries(path, DELETE, _remove)

    def _run_with_retries(self, path: str, operation: str, action: Callable[[], int]) -> TransferResult:
        """Drive one entry through IN_FLIGHT/RETRYING until it succeeds or fails."""
        result = TransferResult(path=path, operation=operation, state=TransferState.PENDING)
        max_attempts = self.max_retries + 1

        while True:
            if self.cancelled:
                result.state = TransferState.FAILED
                result.error = 'cancelled'
                return result

            result.state = TransferState.IN_FLIGHT
            result.attempts += 1
            try:
                result.bytes_transferred = action()
                result.state = TransferState.SUCCEEDED
                if result.attempts > 1:
                    logger.debug(f"{operation} {path} succeeded on attempt {result.attempts}")
                return result
            except (ClientError, BotoCoreError) as e:
                error, retry = e, is_transient(e)
            except OSError as e:
                # local file vanished or became unreadable
                error, retry = e, False
            except Exception as e:
                logger.exception(f"Unexpected error during {operation} of {path}")
                error, retry = e, False

            if not retry or result.attempts >= max_attempts:
                result.state = TransferState.FAILED
                result.error = str(error)
                logger.warning(f"{operation.capitalize()} of {path} failed after "
                               f"{result.attempts} attempt(s): {error}")
                return result

            delay = self.backoff_factor * (2 ** (result.attempts - 1))
            result.state = TransferState.RETRYING
            logger.debug(f"{operation} {path} failed (attempt {result.attempts}/{max_attempts}), "
                         f"retrying in {delay}s: {error}")
            self._cancelled.wait(delay)
