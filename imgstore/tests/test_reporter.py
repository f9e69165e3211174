"""Tests for Reporter class."""

import io
from datetime import datetime

import pytest
from imgstore.folder_stats import FolderStats
from imgstore.reporter import Reporter
from imgstore.store_stats import StoreStats


@pytest.fixture
def sample_stats(now):
    return StoreStats(
        total_images=3,
        total_size=3 * 1024 * 1024,
        this_month=2,
        folders={
            'blog': FolderStats(name='blog', count=2, size=2 * 1024 * 1024, derivative_count=4),
            'news': FolderStats(name='news', count=1, size=1024 * 1024, derivative_count=2),
        },
        computed_at=now,
    )


@pytest.fixture
def sample_listing():
    return {
        'images': [{
            'path': 'blog/2026/10/1760000000000-abc123.webp',
            'size': 46285,
            'createdAt': '2026-10-09T08:53:20.123456',
            'dimensions': {'width': 1200, 'height': 800},
        }],
        'pagination': {'page': 1, 'limit': 20, 'total': 1, 'totalPages': 1},
    }


class TestReporter:
    """Tests for Reporter class."""

    def test_init_default_output(self):
        """Test default output is stdout."""
        import sys
        reporter = Reporter()
        assert reporter.output == sys.stdout

    def test_report_stats(self, sample_stats):
        """Test the usage summary."""
        output = io.StringIO()
        reporter = Reporter(output=output)

        reporter.report_stats(sample_stats, upload_dir='/srv/uploads')

        result = output.getvalue()
        assert 'IMAGE STORE SUMMARY' in result
        assert '/srv/uploads' in result
        assert 'Total Images:' in result
        assert 'blog' in result
        assert 'news' in result
        assert '3 MB' in result
        assert '⚠️' not in result

    def test_report_stats_orphan_warning(self, sample_stats):
        """Test folders with missing derivatives are flagged."""
        sample_stats.folders['blog'].derivative_count = 3
        output = io.StringIO()

        Reporter(output=output).report_stats(sample_stats)

        result = output.getvalue()
        assert '3 derivatives for 2 originals (expected 4)' in result

    def test_report_stats_empty(self, now):
        """Test an empty store."""
        output = io.StringIO()

        Reporter(output=output).report_stats(StoreStats(computed_at=now))

        assert 'No images stored.' in output.getvalue()

    def test_report_listing(self, sample_listing):
        """Test a listing page."""
        output = io.StringIO()

        Reporter(output=output).report_listing(sample_listing)

        result = output.getvalue()
        assert 'Page 1 of 1' in result
        assert '2026-10-09T08:53:20 ' in result
        assert '1200x800' in result
        assert 'blog/2026/10/1760000000000-abc123.webp' in result

    def test_report_listing_empty(self):
        """Test an empty listing."""
        output = io.StringIO()
        listing = {
            'images': [],
            'pagination': {'page': 1, 'limit': 20, 'total': 0, 'totalPages': 0},
        }

        Reporter(output=output).report_listing(listing)

        assert '(no images)' in output.getvalue()
