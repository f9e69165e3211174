"""
Image store with WebP derivatives.

Every upload is stored as three variants sharing one stem:
    {folder}/{YYYY}/{MM}/{millis}-{rand6}.webp          optimized original
    {folder}/{YYYY}/{MM}/{millis}-{rand6}-thumb.webp    300x300 crop
    {folder}/{YYYY}/{MM}/{millis}-{rand6}-small.webp    up to 600x600

The directory tree is the only index: listings and statistics are
recomputed by scanning it.
"""

__version__ = "1.0.0"

from .errors import (
    ImageStoreError,
    ValidationError,
    NotFoundError,
    ProcessingError,
    TransientIOError,
    StorageError,
)
from .store_config import StoreConfig
from .artifact_set import ArtifactKind, ArtifactSet, derive_variant, is_derivative, new_path
from .codec import CodecAdapter
from .derivative_generator import DerivativeGenerator, DerivativeSpec, GeneratedSet, OptimizeParams
from .filesystem_store import FilesystemStore
from .image_record import ImageRecord
from .scanner import Scanner, ImagePage
from .folder_stats import FolderStats
from .store_stats import StoreStats, StatsAggregator
from .image_service import ImageService, UploadResult
from .reporter import Reporter

__all__ = [
    "ImageStoreError",
    "ValidationError",
    "NotFoundError",
    "ProcessingError",
    "TransientIOError",
    "StorageError",
    "StoreConfig",
    "ArtifactKind",
    "ArtifactSet",
    "derive_variant",
    "is_derivative",
    "new_path",
    "CodecAdapter",
    "DerivativeGenerator",
    "DerivativeSpec",
    "GeneratedSet",
    "OptimizeParams",
    "FilesystemStore",
    "ImageRecord",
    "Scanner",
    "ImagePage",
    "FolderStats",
    "StoreStats",
    "StatsAggregator",
    "ImageService",
    "UploadResult",
    "Reporter",
]
