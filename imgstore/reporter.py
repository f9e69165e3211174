"""
Reporter - Generates human-readable reports of store usage and listings.
"""

import logging
import sys
from typing import Optional, TextIO

from .image_record import format_bytes
from .store_stats import StoreStats


class Reporter:
    """
    Generates human-readable reports from stats and listing results.
    """

    def __init__(
        self,
        output: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize reporter.

        Args:
            output: Output stream (default: stdout)
            logger: Optional logger instance
        """
        self.output = output or sys.stdout
        self.logger = logger or logging.getLogger(__name__)

    def _print(self, text: str = "") -> None:
        """Print to output stream."""
        print(text, file=self.output)

    def report_stats(self, stats: StoreStats, upload_dir: Optional[str] = None) -> None:
        """
        Print a usage summary with a per-folder breakdown.

        Args:
            stats: Computed store statistics
            upload_dir: Upload root, shown in the header if given
        """
        self._print("=" * 70)
        self._print("IMAGE STORE SUMMARY")
        self._print("=" * 70)
        self._print()

        if upload_dir:
            self._print(f"  Root:        {upload_dir}")
        self._print(f"  Computed:    {stats.computed_at.isoformat(timespec='seconds')}")
        self._print()

        self._print(f"  Total Images:              {stats.total_images:>12,}")
        self._print(f"  This Month:                {stats.this_month:>12,}")
        self._print(f"  Total Size (all variants): {format_bytes(stats.total_size):>12}")
        self._print()

        if not stats.folders:
            self._print("No images stored.")
            self._print()
            return

        self._print("  Folders:")
        self._print(f"    {'Folder':<30} {'Images':>10} {'Size':>12} {'Avg/Upload':>12}")
        self._print(f"    {'-'*30} {'-'*10} {'-'*12} {'-'*12}")

        for name in sorted(stats.folders):
            folder = stats.folders[name]
            self._print(
                f"    {name:<30} {folder.count:>10,} "
                f"{format_bytes(folder.size):>12} "
                f"{format_bytes(folder.average_set_size):>12}"
            )

            if folder.count and folder.derivative_count != 2 * folder.count:
                self._print(
                    f"      ⚠️  {folder.derivative_count} derivatives for "
                    f"{folder.count} originals (expected {2 * folder.count})"
                )

        self._print()

    def report_listing(self, listing: dict) -> None:
        """
        Print one page of a listing.

        Args:
            listing: Result of ImageService.list_images()
        """
        pagination = listing['pagination']
        self._print(
            f"Page {pagination['page']} of {pagination['totalPages']} "
            f"({pagination['total']:,} images, {pagination['limit']} per page)"
        )
        self._print()

        if not listing['images']:
            self._print("  (no images)")
            return

        for image in listing['images']:
            dims = image['dimensions']
            self._print(
                f"  {image['createdAt'][:19]}  {format_bytes(image['size']):>10}  "
                f"{dims['width']:>5}x{dims['height']:<5}  {image['path']}"
            )
