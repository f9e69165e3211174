"""
ImageRecord - Scan-time view of one stored image file.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict

from .artifact_set import ArtifactKind, derive_variant, is_derivative

DEFAULT_FOLDER = 'general'


@dataclass
class ImageRecord:
    """
    One image file found under the upload root.

    Recomputed from filesystem metadata on every scan; never persisted.

    Attributes:
        filename: Base filename
        relative_path: Path relative to the upload root, '/' separated
        folder: First path segment ('general' for files in the root itself)
        size: Size in bytes
        created_at: Local creation time
        dimensions: {'width', 'height'}, zeros if not probed or unreadable
    """
    filename: str
    relative_path: str
    folder: str
    size: int
    created_at: datetime
    dimensions: Dict[str, int] = field(
        default_factory=lambda: {'width': 0, 'height': 0}
    )

    @classmethod
    def folder_of(cls, relative_path: str) -> str:
        """Folder a relative path belongs to."""
        parts = relative_path.split('/')
        if len(parts) > 1 and parts[0]:
            return parts[0]
        return DEFAULT_FOLDER

    @property
    def is_derivative(self) -> bool:
        """True for thumbnail and small variants."""
        return is_derivative(self.filename)

    def variant_path(self, kind: ArtifactKind) -> str:
        """Relative path of a sibling variant of this (original) record."""
        return derive_variant(self.relative_path, kind.suffix)

    def created_in_month(self, year: int, month: int) -> bool:
        return self.created_at.year == year and self.created_at.month == month

    def to_dict(self, base_url: str) -> dict:
        """
        Convert to the listing entry shape.

        Args:
            base_url: URL under which the upload root is served
        """
        base = base_url.rstrip('/')
        return {
            'path': self.relative_path,
            'url': f"{base}/{self.relative_path}",
            'thumbnail': f"{base}/{self.variant_path(ArtifactKind.THUMBNAIL)}",
            'small': f"{base}/{self.variant_path(ArtifactKind.SMALL)}",
            'size': self.size,
            'createdAt': self.created_at.isoformat(),
            'folder': self.folder,
            'filename': self.filename,
            'dimensions': dict(self.dimensions),
        }


def format_bytes(bytes_val, decimals: int = 2) -> str:
    """
    Format bytes as human-readable string.

    Up to two decimals with trailing zeros dropped, e.g. "0 B", "45.2 KB", "3 MB".
    """
    units = ['B', 'KB', 'MB', 'GB', 'TB']
    value = float(bytes_val)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, decimals):g} {units[index]}"
