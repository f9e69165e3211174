"""
FilesystemStore - Saves and deletes stored images under the upload root.
"""

import errno
import logging
import os
from typing import List, Optional

from retrying import Retrying

from .artifact_set import ArtifactSet
from .codec import CodecAdapter
from .errors import StorageError, TransientIOError

TRANSIENT_ERRNOS = {errno.EBUSY, errno.EAGAIN, errno.ETXTBSY}
if os.name == 'nt':
    # Windows reports an open handle on unlink as access denied
    TRANSIENT_ERRNOS |= {errno.EACCES, errno.EPERM}


def is_transient(error: BaseException) -> bool:
    """True for 'resource busy' failures expected to clear shortly."""
    if isinstance(error, TransientIOError):
        return True
    return isinstance(error, OSError) and error.errno in TRANSIENT_ERRNOS


class FilesystemStore:
    """
    Durable save and delete of image buffers, addressed by relative path.
    """

    def __init__(
        self,
        root_path: str,
        codec: Optional[CodecAdapter] = None,
        retry_delay_ms: int = 100,
        max_attempts: int = 5,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize filesystem store.

        Args:
            root_path: Upload root directory
            codec: Codec adapter whose handle cache is dropped before unlinking
            retry_delay_ms: Base backoff unit; attempt N waits N * retry_delay_ms
            max_attempts: Unlink attempts before giving up (default: 5)
            logger: Optional logger instance
        """
        self.root_path = root_path
        self.codec = codec or CodecAdapter()
        self.retry_delay_ms = retry_delay_ms
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger(__name__)

    def full_path(self, relative_path: str) -> str:
        """
        Resolve a relative path inside the root.

        Raises:
            ValueError: If the path escapes the root
        """
        root = os.path.abspath(self.root_path)
        full = os.path.abspath(os.path.join(root, relative_path.lstrip('/\\')))
        if full != root and not full.startswith(root + os.sep):
            raise ValueError(f"Path escapes upload root: {relative_path}")
        return full

    def save(self, data: bytes, relative_path: str) -> int:
        """
        Write a buffer, creating parent directories as needed.

        Args:
            data: Bytes to write
            relative_path: Destination relative to the root

        Returns:
            Size on disk after the write (from a fresh stat)

        Raises:
            StorageError: If directory creation, write or stat fails
        """
        path = self.full_path(relative_path)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
            size = os.stat(path).st_size
        except OSError as e:
            raise StorageError(
                f"Error saving file {relative_path}: {e}",
                details={'path': relative_path}
            ) from e

        self.logger.debug(f"Saved {relative_path} ({size} bytes)")
        return size

    def delete(self, relative_path: str) -> bool:
        """
        Delete a file, retrying while it is transiently busy.

        Every attempt runs inside the codec's cache suspension so no cached
        handle keeps the file open. Attempt N that fails with a busy error is
        followed by a wait of N * retry_delay_ms.

        Returns:
            True if the file was removed, False if it did not exist

        Raises:
            StorageError: On a non-transient failure, or once every attempt
                failed with a transient one
        """
        path = self.full_path(relative_path)
        if not os.path.lexists(path):
            return False

        retrier = Retrying(
            stop_max_attempt_number=self.max_attempts,
            wait_func=self._backoff_ms,
            retry_on_exception=is_transient,
        )
        try:
            removed = retrier.call(self._unlink_once, path)
        except TransientIOError as e:
            raise StorageError(
                f"Error deleting file {relative_path}: still busy after "
                f"{self.max_attempts} attempts ({e})",
                details={'path': relative_path, 'attempts': self.max_attempts}
            ) from e
        except OSError as e:
            raise StorageError(
                f"Error deleting file {relative_path}: {e}",
                details={'path': relative_path}
            ) from e

        if removed:
            self.logger.debug(f"Deleted {relative_path}")
        return removed

    def _unlink_once(self, path: str) -> bool:
        with self.codec.cache_suspended():
            try:
                os.unlink(path)
            except FileNotFoundError:
                return False
            except OSError as e:
                if is_transient(e):
                    self.logger.debug(f"Delete busy: {path} ({e})")
                    raise TransientIOError(str(e), details={'path': path}) from e
                raise
        return True

    def _backoff_ms(self, attempt_number: int, delay_since_first_attempt_ms: int) -> int:
        """Linear backoff: base unit times the attempt that just failed."""
        return self.retry_delay_ms * attempt_number

    def delete_set(self, artifacts: ArtifactSet) -> List[str]:
        """
        Delete every variant of an upload.

        Returns:
            Relative paths that were actually removed
        """
        deleted = []
        for relative_path in artifacts.paths().values():
            if self.delete(relative_path):
                deleted.append(relative_path)
        return deleted
