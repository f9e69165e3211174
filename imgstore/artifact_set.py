"""
ArtifactSet - Naming scheme shared by an upload and its derivatives.

Layout:
    {folder}/{YYYY}/{MM}/{millis}-{rand6}.webp
    {folder}/{YYYY}/{MM}/{millis}-{rand6}-thumb.webp
    {folder}/{YYYY}/{MM}/{millis}-{rand6}-small.webp
"""

import posixpath
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

STORED_EXTENSION = 'webp'
RANDOM_ID_LENGTH = 6
RANDOM_ID_ALPHABET = string.ascii_letters + string.digits + '_-'


class ArtifactKind(Enum):
    """The stored variants of one upload, mapped to their filename suffix."""
    ORIGINAL = ''
    THUMBNAIL = '-thumb'
    SMALL = '-small'

    @property
    def suffix(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.name.lower()


DERIVATIVE_MARKERS = tuple(
    f"{kind.suffix}." for kind in ArtifactKind if kind is not ArtifactKind.ORIGINAL
)


def random_id(length: int = RANDOM_ID_LENGTH) -> str:
    """Short URL-safe random id."""
    return ''.join(secrets.choice(RANDOM_ID_ALPHABET) for _ in range(length))


def derive_variant(path: str, suffix: str) -> str:
    """
    Insert a suffix immediately before the final extension of a path.

    Pure string transform. Applying a suffix the path already carries
    returns the path unchanged.

    Args:
        path: Relative or absolute path (e.g., 'blog/2026/10/123-abc.webp')
        suffix: Suffix to insert (e.g., '-thumb')

    Returns:
        Derived path (e.g., 'blog/2026/10/123-abc-thumb.webp')
    """
    dirname, filename = posixpath.split(path)
    stem, dot, ext = filename.rpartition('.')
    if not dot:
        stem, ext = filename, ''
    if suffix and stem.endswith(suffix):
        return path
    derived = f"{stem}{suffix}.{ext}" if dot else f"{stem}{suffix}"
    return posixpath.join(dirname, derived) if dirname else derived


def is_derivative(filename: str) -> bool:
    """True if the filename carries a derivative marker ('-thumb.' or '-small.')."""
    return any(marker in filename for marker in DERIVATIVE_MARKERS)


@dataclass(frozen=True)
class ArtifactSet:
    """
    One upload's stem and the paths of all its stored variants.

    Attributes:
        folder: Sanitized folder (first path segment)
        year: Four digit year
        month: Two digit month
        stem: '{millis}-{rand6}' shared by every variant
        extension: Stored file extension, without the dot
    """
    folder: str
    year: str
    month: str
    stem: str
    extension: str = STORED_EXTENSION

    @classmethod
    def new(cls, folder: str, now: Optional[datetime] = None) -> 'ArtifactSet':
        """
        Create a fresh artifact set for a new upload.

        Uniqueness relies on the millisecond timestamp plus the random id;
        the filesystem is not consulted.
        """
        now = now or datetime.now()
        millis = int(now.timestamp() * 1000)
        return cls(
            folder=folder,
            year=f"{now.year:04d}",
            month=f"{now.month:02d}",
            stem=f"{millis}-{random_id()}",
        )

    @classmethod
    def from_path(cls, path: str) -> 'ArtifactSet':
        """
        Recover the set from the relative path of any of its members.

        Raises:
            ValueError: If the path is not of the form folder/YYYY/MM/filename
        """
        parts = path.replace('\\', '/').strip('/').split('/')
        if len(parts) != 4:
            raise ValueError(f"Not a stored image path: {path}")

        folder, year, month, filename = parts
        stem, dot, extension = filename.rpartition('.')
        if not dot or not stem:
            raise ValueError(f"Stored image path has no extension: {path}")

        for kind in ArtifactKind:
            if kind.suffix and stem.endswith(kind.suffix):
                stem = stem[:-len(kind.suffix)]
                break

        return cls(folder=folder, year=year, month=month, stem=stem, extension=extension)

    @property
    def directory(self) -> str:
        """Relative directory holding every variant."""
        return f"{self.folder}/{self.year}/{self.month}"

    @property
    def filename(self) -> str:
        """Filename of the optimized original."""
        return self.filename_for(ArtifactKind.ORIGINAL)

    @property
    def relative_path(self) -> str:
        """Relative path of the optimized original."""
        return self.path_for(ArtifactKind.ORIGINAL)

    def filename_for(self, kind: ArtifactKind) -> str:
        """Filename of a variant."""
        return f"{self.stem}{kind.suffix}.{self.extension}"

    def path_for(self, kind: ArtifactKind) -> str:
        """Relative path of a variant."""
        return derive_variant(f"{self.directory}/{self.stem}.{self.extension}", kind.suffix)

    def paths(self) -> Dict[ArtifactKind, str]:
        """Relative paths of every variant, keyed by kind."""
        return {kind: self.path_for(kind) for kind in ArtifactKind}


def new_path(folder: str, now: Optional[datetime] = None) -> ArtifactSet:
    """Build the artifact set for a new upload into a folder."""
    return ArtifactSet.new(folder, now)
