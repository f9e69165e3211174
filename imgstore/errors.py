"""
Errors - Typed errors raised by the image store core.
"""

from typing import Optional


class ImageStoreError(Exception):
    """
    Base class for all image store errors.

    Attributes:
        code: Machine-readable error code (e.g., 'FILE_NOT_FOUND')
        details: Extra context for the caller
    """

    code = 'INTERNAL_ERROR'

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        data = {'code': self.code, 'message': self.message}
        if self.details:
            data['details'] = self.details
        return data


class ValidationError(ImageStoreError):
    """Bad folder, bad upload or bad on-the-fly parameters. Raised before any I/O."""
    code = 'INVALID_PARAMETER'


class NotFoundError(ImageStoreError):
    """Delete or serve target does not exist."""
    code = 'FILE_NOT_FOUND'


class ProcessingError(ImageStoreError):
    """Codec failure while decoding, resizing or encoding."""
    code = 'PROCESSING_FAILED'


class TransientIOError(ImageStoreError):
    """File temporarily busy or locked. Retried internally by the store."""
    code = 'RESOURCE_BUSY'


class StorageError(ImageStoreError):
    """Unexpected filesystem failure (mkdir, write, stat, unlink)."""
    code = 'STORAGE_FAILED'
