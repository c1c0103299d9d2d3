# exceptions.py
import errno


class TreeWalkError(Exception):
    """Base class for every failure that aborts a tree walk."""

    kind = "io_error"

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class NotFoundError(TreeWalkError):
    """The path does not exist (or a component of it is not a directory)."""

    kind = "not_found"


class AccessDeniedError(TreeWalkError):
    """The filesystem refused permission to stat, list or read the path."""

    kind = "access_denied"


class FilesystemIOError(TreeWalkError):
    """Any other stat, enumeration or read failure."""

    kind = "io_error"


class ReadFailure(FilesystemIOError):
    """The stream handed to the size estimator could not be fully read."""


class CompressionFailure(TreeWalkError):
    """The compressor could not produce or finalize its output."""

    kind = "compression_failure"


class WalkCancelled(TreeWalkError):
    """A sibling failed first; this task stopped without a result."""

    kind = "cancelled"


_NOT_FOUND_ERRNOS = {errno.ENOENT, errno.ENOTDIR}
_ACCESS_DENIED_ERRNOS = {errno.EACCES, errno.EPERM}


def classify_os_error(exc: OSError, path: str) -> TreeWalkError:
    """Maps an ``OSError`` onto the walk error taxonomy."""
    detail = exc.strerror or str(exc)
    if isinstance(exc, FileNotFoundError) or exc.errno in _NOT_FOUND_ERRNOS:
        return NotFoundError(f"No such file or directory: {path}", path)
    if isinstance(exc, PermissionError) or exc.errno in _ACCESS_DENIED_ERRNOS:
        return AccessDeniedError(f"Permission denied: {path}", path)
    return FilesystemIOError(f"I/O error on {path}: {detail}", path)
