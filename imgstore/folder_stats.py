"""
FolderStats - Usage statistics for a single folder.
"""

from dataclasses import dataclass


@dataclass
class FolderStats:
    """
    Usage statistics for a single folder.

    Attributes:
        name: Folder name
        count: Number of originals (derivatives excluded)
        size: Bytes on disk, every variant included
        derivative_count: Number of thumbnail and small files
    """
    name: str
    count: int = 0
    size: int = 0
    derivative_count: int = 0

    @property
    def average_set_size(self) -> float:
        """Average bytes per upload, counting all of its variants."""
        if self.count == 0:
            return 0.0
        return self.size / self.count

    def to_dict(self) -> dict:
        """Convert to the stats entry shape ({count, size})."""
        return {'count': self.count, 'size': self.size}
