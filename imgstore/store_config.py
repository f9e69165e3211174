"""
StoreConfig - Configuration for the filesystem image store.
"""

import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_MIME_TYPES = 'image/jpeg,image/png,image/webp,image/gif'


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on missing or bad values."""
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass
class StoreConfig:
    """
    Configuration for the image store.

    Attributes:
        upload_dir: Root directory of the stored image tree
        public_url: Base URL used when building image URLs
        default_quality: WebP quality for the optimized original (1-100)
        max_file_size: Maximum accepted upload size in bytes
        allowed_mime_types: MIME types accepted for upload
        log_level: Logging level name
        delete_retry_delay_ms: Base backoff unit for delete retries
        delete_max_attempts: Number of unlink attempts before giving up
    """
    upload_dir: str = './uploads'
    public_url: str = 'http://localhost:3000'
    default_quality: int = 80
    max_file_size: int = 10 * 1024 * 1024
    allowed_mime_types: List[str] = field(
        default_factory=lambda: DEFAULT_MIME_TYPES.split(',')
    )
    log_level: str = 'INFO'
    delete_retry_delay_ms: int = 100
    delete_max_attempts: int = 5

    @classmethod
    def from_env(cls) -> 'StoreConfig':
        """Create configuration from environment variables."""
        mime_types = os.environ.get('ALLOWED_MIME_TYPES', DEFAULT_MIME_TYPES)
        return cls(
            upload_dir=os.environ.get('UPLOAD_DIR', './uploads'),
            public_url=os.environ.get('PUBLIC_URL', 'http://localhost:3000'),
            default_quality=_env_int('DEFAULT_QUALITY', 80),
            max_file_size=_env_int('MAX_FILE_SIZE', 10 * 1024 * 1024),
            allowed_mime_types=[m.strip() for m in mime_types.split(',') if m.strip()],
            log_level=os.environ.get('LOG_LEVEL', 'INFO'),
            delete_retry_delay_ms=_env_int('DELETE_RETRY_DELAY_MS', 100),
        )

    @property
    def uploads_url(self) -> str:
        """Base URL under which stored images are served."""
        return f"{self.public_url.rstrip('/')}/uploads"

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not self.upload_dir:
            errors.append("UPLOAD_DIR is required")
        elif os.path.exists(self.upload_dir) and not os.path.isdir(self.upload_dir):
            errors.append(f"Upload path is not a directory: {self.upload_dir}")

        if not self.public_url:
            errors.append("PUBLIC_URL is required")

        if not 1 <= self.default_quality <= 100:
            errors.append(f"DEFAULT_QUALITY must be between 1 and 100 (got {self.default_quality})")

        if self.max_file_size <= 0:
            errors.append("MAX_FILE_SIZE must be positive")

        if not self.allowed_mime_types:
            errors.append("ALLOWED_MIME_TYPES must list at least one type")

        if self.delete_retry_delay_ms < 0:
            errors.append("DELETE_RETRY_DELAY_MS must not be negative")

        if self.delete_max_attempts < 1:
            errors.append("delete_max_attempts must be at least 1")

        return errors
