"""
Scanner - Walks the upload root to enumerate stored images.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .codec import CodecAdapter
from .errors import ProcessingError, StorageError, ValidationError
from .image_record import ImageRecord

SORT_KEYS = ('date', 'size', 'name')


@dataclass
class ImagePage:
    """
    One page of a listing.

    Attributes:
        items: Records on this page
        page: 1-indexed page number
        limit: Page size
        total: Number of originals across all pages
        total_pages: Number of pages (0 when empty)
    """
    page: int
    limit: int
    total: int = 0
    total_pages: int = 0
    items: List[ImageRecord] = field(default_factory=list)

    def pagination(self) -> dict:
        return {
            'page': self.page,
            'limit': self.limit,
            'total': self.total,
            'totalPages': self.total_pages,
        }


class Scanner:
    """
    Scans the upload root and produces image records.

    The filesystem tree is the only index: every call re-reads it. Results
    are a snapshot; files written or removed while a scan runs may or may
    not show up.
    """

    IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}

    def __init__(
        self,
        root_path: str,
        codec: Optional[CodecAdapter] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scanner.

        Args:
            root_path: Upload root directory
            codec: Codec adapter used to probe dimensions when listing
            logger: Optional logger instance
        """
        self.root_path = root_path
        self.codec = codec or CodecAdapter()
        self.logger = logger or logging.getLogger(__name__)

    def scan(
        self,
        directory: Optional[str] = None,
        probe_dimensions: bool = False
    ) -> List[ImageRecord]:
        """
        Recursively collect image files.

        Uses an explicit stack so deep trees don't hit the recursion limit.

        Args:
            directory: Directory to scan (default: the whole root)
            probe_dimensions: If True, read each image's width and height

        Returns:
            Records for every image file, derivatives included
        """
        start = directory or self.root_path
        records: List[ImageRecord] = []
        if not os.path.isdir(start):
            return records

        stack = [start]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except FileNotFoundError:
                # Removed while scanning
                continue
            except OSError as e:
                raise StorageError(f"Error reading directory {current}: {e}") from e

            subdirs = []
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.path)
                elif entry.is_file() and self._is_image(entry.name):
                    record = self._make_record(entry, probe_dimensions)
                    if record is not None:
                        records.append(record)

            stack.extend(reversed(subdirs))

        self.logger.debug(f"Scanned {start}: {len(records)} image files")
        return records

    def _is_image(self, filename: str) -> bool:
        return os.path.splitext(filename)[1].lower() in self.IMAGE_EXTENSIONS

    def _make_record(self, entry: os.DirEntry, probe_dimensions: bool) -> Optional[ImageRecord]:
        try:
            stat = entry.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Error reading file {entry.path}: {e}") from e

        relative_path = os.path.relpath(entry.path, self.root_path).replace(os.sep, '/')
        created = getattr(stat, 'st_birthtime', None) or stat.st_mtime

        record = ImageRecord(
            filename=entry.name,
            relative_path=relative_path,
            folder=ImageRecord.folder_of(relative_path),
            size=stat.st_size,
            created_at=datetime.fromtimestamp(created),
        )

        if probe_dimensions:
            try:
                info = self.codec.probe(entry.path)
                record.dimensions = {'width': info['width'], 'height': info['height']}
            except ProcessingError as e:
                self.logger.debug(f"Could not probe {relative_path}: {e}")

        return record

    def list_images(
        self,
        folder: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort: str = 'date'
    ) -> ImagePage:
        """
        List stored originals with sorting and pagination.

        Args:
            folder: Restrict to one folder (None = all)
            page: 1-indexed page number
            limit: Items per page
            sort: 'date' (newest first), 'size' (largest first) or 'name'

        Returns:
            ImagePage for the requested page
        """
        if sort not in SORT_KEYS:
            raise ValidationError(
                f'Parameter "sort" must be one of: {", ".join(SORT_KEYS)}',
                details={'sort': sort}
            )
        if page < 1 or limit < 1:
            raise ValidationError(
                'Parameters "page" and "limit" must be positive',
                details={'page': page, 'limit': limit}
            )

        result = ImagePage(page=page, limit=limit)
        directory = os.path.join(self.root_path, folder) if folder else self.root_path
        if not os.path.isdir(directory):
            return result

        originals = [
            r for r in self.scan(directory, probe_dimensions=False)
            if not r.is_derivative
        ]
        self.sort_records(originals, sort)

        result.total = len(originals)
        result.total_pages = math.ceil(result.total / limit)
        start = (page - 1) * limit
        result.items = originals[start:start + limit]

        for record in result.items:
            self._probe_dimensions(record)

        return result

    def _probe_dimensions(self, record: ImageRecord) -> None:
        path = os.path.join(self.root_path, record.relative_path)
        try:
            info = self.codec.probe(path)
        except ProcessingError as e:
            self.logger.debug(f"Could not probe {record.relative_path}: {e}")
            return
        record.dimensions = {'width': info['width'], 'height': info['height']}

    @staticmethod
    def sort_records(records: List[ImageRecord], sort: str) -> None:
        """Sort records in place."""
        if sort == 'date':
            records.sort(key=lambda r: r.created_at, reverse=True)
        elif sort == 'size':
            records.sort(key=lambda r: r.size, reverse=True)
        elif sort == 'name':
            records.sort(key=lambda r: r.filename.casefold())
