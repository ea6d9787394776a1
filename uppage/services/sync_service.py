"""
Sync service orchestrating the walk, listing, planning and transfer steps.
"""
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Optional
from loguru import logger

from ..clients.s3_manager import S3Manager
from ..models.config import PublishConfig
from ..models.data_models import SyncPlan, TransferSummary
from .executor import TransferExecutor
from .planner import plan as compute_plan
from .progress import ProgressCallback
from .walker import DirectoryWalker


class SyncService:
    """
    Mirrors a local directory into a bucket.

    A run takes one snapshot of both sides, plans against it, and executes the
    plan best-effort. Nothing is kept between runs.
    """

    def __init__(self, config: PublishConfig, storage: Optional[S3Manager] = None):
        """
        Initialize sync service with configuration.

        Args:
            config: PublishConfig for this run
            storage: Storage client for the target bucket; built from the
                config when omitted
        """
        self.config = config
        self.storage = storage or S3Manager(
            config.aws,
            config.bucket_name,
            max_pool_connections=config.concurrency
        )
        self.executor: Optional[TransferExecutor] = None
        self._snapshot_cancelled = threading.Event()

    def build_executor(self) -> TransferExecutor:
        """Build the executor for one run; executors are never reused across runs."""
        return TransferExecutor(
            self.storage,
            concurrency=self.config.concurrency,
            max_retries=self.config.max_retries
        )

    def build_plan(self, root: Optional[str] = None, delete_removed: Optional[bool] = None):
        """
        Snapshot both sides and compute the plan.

        The local walk and the remote listing run concurrently. Remote objects
        whose local file exists but could not be read are never deleted. On
        KeyboardInterrupt the walk stops at the next file and the interrupt
        is re-raised once both snapshot tasks have stopped.

        Returns:
            Tuple of (SyncPlan, local entries by path, walker errors)

        Raises:
            NotFoundError, AccessError: If the local tree cannot be walked
            RemoteListError: If the bucket listing is incomplete
        """
        root = root or self.config.path
        if delete_removed is None:
            delete_removed = self.config.delete_removed

        self._snapshot_cancelled.clear()
        walker = DirectoryWalker(root, cancel_event=self._snapshot_cancelled)
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix='uppage-snapshot')
        try:
            local_future = pool.submit(lambda: list(walker.walk()))
            remote_future = pool.submit(self.storage.list_objects)
            local_entries = local_future.result()
            remote_entries = remote_future.result()
        except KeyboardInterrupt:
            logger.warning("Interrupted - stopping the local walk")
            self._snapshot_cancelled.set()
            raise
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

        logger.info(f"Found {len(local_entries)} local files and {len(remote_entries)} remote objects")

        sync_plan: SyncPlan = compute_plan(local_entries, remote_entries, delete_removed)
        if walker.errors:
            unreadable = [path for path, _ in walker.errors]
            sync_plan = sync_plan.without_deletions(unreadable)
            logger.warning(f"{len(unreadable)} local file(s) could not be read and were skipped")

        return sync_plan, {entry.path: entry for entry in local_entries}, list(walker.errors)

    def run(self, root: Optional[str] = None, delete_removed: Optional[bool] = None,
            progress: Optional[ProgressCallback] = None) -> TransferSummary:
        """
        Perform one synchronization of the directory into the bucket.

        Args:
            root: Directory to publish, defaults to the configured path
            delete_removed: Whether to delete remote objects missing locally,
                defaults to the configured value
            progress: Optional callback receiving ProgressEvents

        Returns:
            TransferSummary for the run
        """
        start_time = datetime.now()
        logger.info(f"Starting sync of {root or self.config.path} into {self.storage.bucket}")

        sync_plan, local_entries, walk_errors = self.build_plan(root, delete_removed)
        if sync_plan.is_empty:
            logger.info("Bucket is already up to date")

        self.executor = self.build_executor()
        summary = self.executor.execute(sync_plan, local_entries, progress)
        summary.walk_errors.extend(walk_errors)

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(f"Sync completed in {duration:.2f} seconds - Uploaded: {summary.uploads_succeeded}, "
                    f"Deleted: {summary.deletes_succeeded}, Failed: {len(summary.failures)}")
        logger.debug(f"Sync Results: {json.dumps(summary.to_dict(), indent=2, default=str)}")
        return summary
