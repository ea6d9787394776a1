"""
Local directory walker producing LocalEntry records.
"""
import hashlib
import os
import threading
from typing import Iterator, List, Optional, Tuple
from loguru import logger

from ..exceptions import AccessError, NotFoundError
from ..models.data_models import LocalEntry

CHUNK_SIZE = 1024 * 1024


def file_md5(path: str, chunk_size: int = CHUNK_SIZE) -> str:
    """Hex MD5 digest of a file, read in chunks."""
    md5 = hashlib.md5()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            md5.update(chunk)
    return md5.hexdigest()


class DirectoryWalker:
    """Walks a directory tree and fingerprints every regular file in it."""

    def __init__(self, root: str, cancel_event: Optional[threading.Event] = None):
        self.root = os.path.abspath(root)
        self.cancel_event = cancel_event
        self.errors: List[Tuple[str, str]] = []

    def walk(self) -> Iterator[LocalEntry]:
        """
        Yield a LocalEntry for every regular file under the root.

        Symbolic links are skipped. A file that cannot be read is recorded in
        ``self.errors`` and skipped; calling walk() again restarts from scratch.
        The walk stops early once ``cancel_event`` is set.

        Raises:
            NotFoundError: If the root does not exist or is not a directory
            AccessError: If a directory in the tree cannot be listed
        """
        if not os.path.exists(self.root):
            raise NotFoundError(f"Directory not found: {self.root}")
        if not os.path.isdir(self.root):
            raise NotFoundError(f"Not a directory: {self.root}")

        self.errors = []
        yield from self._walk_dir(self.root)

    def _walk_dir(self, directory: str) -> Iterator[LocalEntry]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except PermissionError as e:
            raise AccessError(f"Permission denied reading {directory}") from e
        except OSError as e:
            raise AccessError(f"Could not read {directory}: {e}") from e

        for entry in entries:
            if self.cancelled:
                return

            if entry.is_symlink():
                logger.debug(f"Skipping symbolic link: {entry.path}")
                continue

            if entry.is_dir(follow_symlinks=False):
                yield from self._walk_dir(entry.path)
            elif entry.is_file(follow_symlinks=False):
                relative = self._relative_path(entry.path)
                try:
                    size = entry.stat(follow_symlinks=False).st_size
                    fingerprint = file_md5(entry.path)
                except OSError as e:
                    logger.warning(f"Cannot read {relative}: {e}")
                    self.errors.append((relative, str(e)))
                    continue

                yield LocalEntry(path=relative, fingerprint=fingerprint, size=size, absolute_path=entry.path)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _relative_path(self, path: str) -> str:
        return os.path.relpath(path, self.root).replace(os.sep, '/')
