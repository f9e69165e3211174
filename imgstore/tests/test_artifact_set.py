"""Tests for the artifact naming scheme."""

import re
from datetime import datetime

import pytest
from imgstore.artifact_set import (
    ArtifactKind,
    ArtifactSet,
    derive_variant,
    is_derivative,
    new_path,
    random_id,
)


class TestNewPath:
    """Tests for creating artifact sets for new uploads."""

    def test_layout(self, now):
        """Test the folder/YYYY/MM/{millis}-{rand6}.webp layout."""
        artifacts = new_path('blog', now)

        assert re.match(r'^blog/2026/10/\d{13}-[A-Za-z0-9_-]{6}\.webp$', artifacts.relative_path)
        assert artifacts.stem.startswith(f"{int(now.timestamp() * 1000)}-")

    def test_month_is_zero_padded(self):
        """Test single digit months are padded."""
        artifacts = new_path('blog', datetime(2026, 3, 1, 8, 30))

        assert artifacts.directory == 'blog/2026/03'

    def test_variants_share_stem(self, now):
        """Test every variant carries the same stem."""
        artifacts = new_path('blog', now)
        paths = artifacts.paths()

        assert paths[ArtifactKind.ORIGINAL] == f"blog/2026/10/{artifacts.stem}.webp"
        assert paths[ArtifactKind.THUMBNAIL] == f"blog/2026/10/{artifacts.stem}-thumb.webp"
        assert paths[ArtifactKind.SMALL] == f"blog/2026/10/{artifacts.stem}-small.webp"

    def test_random_ids_differ(self, now):
        """Test two uploads in the same millisecond get different stems."""
        stems = {new_path('blog', now).stem for _ in range(50)}

        assert len(stems) == 50

    def test_random_id_alphabet(self):
        """Test random ids are six URL-safe characters."""
        for _ in range(20):
            assert re.match(r'^[A-Za-z0-9_-]{6}$', random_id())


class TestDeriveVariant:
    """Tests for derive_variant."""

    def test_inserts_suffix_before_extension(self):
        """Test suffix placement."""
        assert derive_variant('blog/2026/10/123-abc.webp', '-thumb') == 'blog/2026/10/123-abc-thumb.webp'

    def test_bare_filename(self):
        """Test a path without directories."""
        assert derive_variant('123-abc.webp', '-small') == '123-abc-small.webp'

    def test_only_final_extension(self):
        """Test dots earlier in the path are left alone."""
        assert derive_variant('a.b/2026/10/x.y.webp', '-thumb') == 'a.b/2026/10/x.y-thumb.webp'

    def test_deterministic(self):
        """Test the transform is a pure function of its input."""
        path = 'blog/2026/10/123-abc.webp'

        assert derive_variant(path, '-thumb') == derive_variant(path, '-thumb')

    def test_same_suffix_twice_is_idempotent(self):
        """Test applying a suffix twice yields the same string."""
        once = derive_variant('blog/2026/10/123-abc.webp', '-thumb')

        assert derive_variant(once, '-thumb') == once

    def test_empty_suffix(self):
        """Test the original kind leaves the path unchanged."""
        assert derive_variant('blog/2026/10/123-abc.webp', '') == 'blog/2026/10/123-abc.webp'


class TestIsDerivative:
    """Tests for derivative detection."""

    @pytest.mark.parametrize('filename,expected', [
        ('123-abc.webp', False),
        ('123-abc-thumb.webp', True),
        ('123-abc-small.webp', True),
        ('thumbnail.webp', False),
        ('my-small-dog.jpg', False),
    ])
    def test_markers(self, filename, expected):
        """Test only '-thumb.' and '-small.' mark derivatives."""
        assert is_derivative(filename) is expected


class TestFromPath:
    """Tests for recovering an artifact set from a stored path."""

    def test_from_original(self):
        """Test parsing an original path."""
        artifacts = ArtifactSet.from_path('blog/2026/10/123-abc.webp')

        assert artifacts == ArtifactSet('blog', '2026', '10', '123-abc', 'webp')

    def test_from_derivative(self):
        """Test any member of the set yields the same set."""
        original = ArtifactSet.from_path('blog/2026/10/123-abc.webp')

        assert ArtifactSet.from_path('blog/2026/10/123-abc-thumb.webp') == original
        assert ArtifactSet.from_path('blog/2026/10/123-abc-small.webp') == original

    def test_keeps_extension(self):
        """Test non-webp stored files keep their extension."""
        artifacts = ArtifactSet.from_path('legacy/2025/01/photo.jpg')

        assert artifacts.path_for(ArtifactKind.THUMBNAIL) == 'legacy/2025/01/photo-thumb.jpg'

    @pytest.mark.parametrize('path', [
        'blog/123-abc.webp',
        'a/b/c/d/123-abc.webp',
        'blog/2026/10/noextension',
    ])
    def test_rejects_other_shapes(self, path):
        """Test malformed paths are rejected."""
        with pytest.raises(ValueError):
            ArtifactSet.from_path(path)

    def test_round_trip(self, now):
        """Test a fresh set survives a path round trip."""
        artifacts = new_path('blog', now)

        assert ArtifactSet.from_path(artifacts.relative_path) == artifacts
