# walker.py
import logging
import os
import stat
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import List, Optional

from .compression import DEFAULT_CHUNK_SIZE, estimate_compressed_size
from .config import get_settings
from .dto import FileMetadata
from .exceptions import (
    AccessDeniedError,
    FilesystemIOError,
    ReadFailure,
    TreeWalkError,
    WalkCancelled,
    classify_os_error,
)

DEFAULT_MAX_WORKERS = 32


def _open_for_read(path: str):
    return open(path, "rb")


def _record_name(path: str) -> str:
    name = os.path.basename(os.path.normpath(path))
    return name or path


def _modified_at(st: os.stat_result) -> datetime:
    return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).astimezone()


class TreeWalker:
    """
    Builds a FileMetadata tree for a path, walking directories concurrently.

    Every directory owns a thread pool for its own children, so a parent
    blocked on its children never occupies a worker they need. One walker
    instance serves one request: the cancellation event is shared by every
    task of that walk and set once any of them fails.
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.chunk_size = chunk_size
        self.cancel_event = threading.Event()

    def walk(self, path: str) -> FileMetadata:
        """
        Describes ``path`` and, for a directory, everything beneath it.

        :raises TreeWalkError: the first failure seen anywhere in the tree.
        """
        if self.cancel_event.is_set():
            raise WalkCancelled("Walk cancelled before start.", path)

        try:
            st = os.stat(path)
        except OSError as e:
            raise classify_os_error(e, path) from e

        if stat.S_ISDIR(st.st_mode):
            return self._walk_directory(path, st)
        if stat.S_ISREG(st.st_mode):
            return self._walk_file(path, st)
        raise FilesystemIOError(f"Unsupported file type: {path}", path)

    def _walk_file(self, path: str, st: os.stat_result) -> FileMetadata:
        try:
            stream = _open_for_read(path)
        except OSError as e:
            raise classify_os_error(e, path) from e

        with stream:
            try:
                size = estimate_compressed_size(
                    stream, self.chunk_size, cancel_event=self.cancel_event
                )
            except ReadFailure as e:
                if isinstance(e.__cause__, PermissionError):
                    raise AccessDeniedError(f"Permission denied: {path}", path) from e
                e.path = path
                raise
            except TreeWalkError as e:
                e.path = path
                raise

        logging.debug(f"Measured {path}: {size} bytes gzipped.")
        return FileMetadata.leaf(_record_name(path), _modified_at(st), size)

    def _list_directory(self, path: str) -> List[str]:
        try:
            with os.scandir(path) as entries:
                return [entry.path for entry in entries]
        except OSError as e:
            raise classify_os_error(e, path) from e

    def _walk_directory(self, path: str, st: os.stat_result) -> FileMetadata:
        child_paths = self._list_directory(path)
        children: List[FileMetadata] = []

        if child_paths:
            first_error: Optional[TreeWalkError] = None
            workers = min(len(child_paths), self.max_workers)
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="dirsize-walk"
            ) as pool:
                futures = []
                try:
                    for child in child_paths:
                        futures.append(pool.submit(self.walk, child))
                except RuntimeError as e:
                    # Thread limit reached; already-submitted children see the event and stop.
                    self.cancel_event.set()
                    for pending in futures:
                        pending.cancel()
                    raise FilesystemIOError(
                        f"Could not start a task while walking {path}: {e}", path
                    ) from e
                # Drain every future, in completion order, before leaving the pool.
                for future in as_completed(futures):
                    if future.cancelled():
                        continue
                    error = future.exception()
                    if error is None:
                        continue
                    if not isinstance(error, TreeWalkError):
                        error = FilesystemIOError(
                            f"Unexpected error while walking {path}: {error}", path
                        )
                    if isinstance(error, WalkCancelled):
                        if first_error is None:
                            first_error = error
                        continue
                    if first_error is None or isinstance(first_error, WalkCancelled):
                        first_error = error
                        self.cancel_event.set()
                        for pending in futures:
                            pending.cancel()

            if first_error is not None:
                raise first_error
            children = [future.result() for future in futures]

        logging.debug(f"Walked directory {path}: {len(children)} entries.")
        return FileMetadata.directory(_record_name(path), _modified_at(st), children)


def walk(
    path: str,
    max_workers: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> FileMetadata:
    """
    Walks ``path`` once and returns its full FileMetadata tree.

    Unset tuning parameters are taken from the service settings.
    """
    if max_workers is None or chunk_size is None:
        settings = get_settings()
        if max_workers is None:
            max_workers = settings.MAX_WORKERS_PER_DIRECTORY
        if chunk_size is None:
            chunk_size = settings.READ_CHUNK_SIZE

    walker = TreeWalker(max_workers=max_workers, chunk_size=chunk_size)
    logging.info(f"Starting walk of {path}")
    start_time = time.monotonic()
    try:
        record = walker.walk(path)
    except TreeWalkError as e:
        duration = time.monotonic() - start_time
        logging.warning(
            f"Walk of {path} failed after {duration:.2f} seconds ({e.kind}): {e}"
        )
        raise
    duration = time.monotonic() - start_time
    logging.info(f"Finished walk of {path}. Took {duration:.2f} seconds.")
    return record
