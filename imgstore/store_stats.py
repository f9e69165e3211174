"""
StoreStats - Aggregate usage statistics over the whole upload root.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Optional

from .folder_stats import FolderStats
from .image_record import ImageRecord, format_bytes
from .scanner import Scanner


@dataclass
class StoreStats:
    """
    Usage statistics recomputed from a full scan.

    Attributes:
        total_images: Number of originals (derivatives excluded)
        total_size: Bytes on disk, every variant included
        this_month: Originals created in the current calendar month
        folders: Per-folder statistics
        computed_at: When the statistics were computed
    """
    total_images: int = 0
    total_size: int = 0
    this_month: int = 0
    folders: Dict[str, FolderStats] = field(default_factory=dict)
    computed_at: datetime = field(default_factory=datetime.now)

    def add_record(self, record: ImageRecord) -> None:
        """Fold one scanned file into the totals."""
        if record.folder not in self.folders:
            self.folders[record.folder] = FolderStats(name=record.folder)

        folder = self.folders[record.folder]
        folder.size += record.size
        self.total_size += record.size

        if record.is_derivative:
            folder.derivative_count += 1
            return

        folder.count += 1
        self.total_images += 1
        if record.created_in_month(self.computed_at.year, self.computed_at.month):
            self.this_month += 1

    @classmethod
    def from_records(
        cls,
        records: Iterable[ImageRecord],
        now: Optional[datetime] = None
    ) -> 'StoreStats':
        stats = cls(computed_at=now or datetime.now())
        for record in records:
            stats.add_record(record)
        return stats

    def to_dict(self) -> dict:
        """Convert to the stats response shape."""
        return {
            'totalImages': self.total_images,
            'totalSize': self.total_size,
            'totalSizeHuman': format_bytes(self.total_size),
            'folders': {
                name: stats.to_dict()
                for name, stats in sorted(self.folders.items())
            },
            'thisMonth': self.this_month,
        }


class StatsAggregator:
    """
    Computes StoreStats from a scan of the whole upload root.

    Nothing is cached or retained between calls.
    """

    def __init__(self, scanner: Scanner, logger: Optional[logging.Logger] = None):
        self.scanner = scanner
        self.logger = logger or logging.getLogger(__name__)

    def compute(self, now: Optional[datetime] = None) -> StoreStats:
        records = self.scanner.scan(probe_dimensions=False)
        stats = StoreStats.from_records(records, now)
        self.logger.debug(
            f"Stats: {stats.total_images} images, {stats.total_size} bytes "
            f"in {len(stats.folders)} folders"
        )
        return stats
