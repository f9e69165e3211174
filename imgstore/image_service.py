"""
ImageService - Upload, listing, deletion, statistics and on-the-fly variants.

Transport-free: callers pass validated-or-raw inputs and receive plain
dictionaries or typed errors.
"""

import logging
import os
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List, Mapping, Optional

from .artifact_set import ArtifactKind, ArtifactSet, new_path
from .codec import CodecAdapter
from .derivative_generator import DerivativeGenerator
from .errors import NotFoundError, StorageError, ValidationError
from .filesystem_store import FilesystemStore
from .scanner import Scanner
from .store_config import StoreConfig
from .store_stats import StatsAggregator, StoreStats
from .validation import parse_optimize_params, sanitize_folder, validate_upload


@dataclass
class UploadResult:
    """Description of a completed upload."""
    url: str
    thumbnail: str
    small: str
    size: int
    width: int
    height: int
    folder: str
    filename: str
    path: str

    def to_dict(self) -> dict:
        return asdict(self)


class ImageService:
    """
    Coordinates the path namer, derivative generator, store and scanner.
    """

    def __init__(
        self,
        config: StoreConfig,
        codec: Optional[CodecAdapter] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize image service.

        Args:
            config: Store configuration
            codec: Codec adapter shared by every component (created if omitted)
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.codec = codec or CodecAdapter(logger=self.logger)
        self.generator = DerivativeGenerator(
            self.codec, quality=config.default_quality, logger=self.logger
        )
        self.store = FilesystemStore(
            config.upload_dir,
            codec=self.codec,
            retry_delay_ms=config.delete_retry_delay_ms,
            max_attempts=config.delete_max_attempts,
            logger=self.logger,
        )
        self.scanner = Scanner(config.upload_dir, codec=self.codec, logger=self.logger)
        self.aggregator = StatsAggregator(self.scanner, logger=self.logger)

    def url_for(self, relative_path: str) -> str:
        return f"{self.config.uploads_url}/{relative_path}"

    def upload(
        self,
        data: bytes,
        mime_type: str,
        folder: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> UploadResult:
        """
        Store an uploaded image and its derivatives.

        Every variant is generated in memory before anything is written, so a
        codec failure leaves no files behind. If a write fails, variants of
        this upload already on disk are removed on a best-effort basis.

        Raises:
            ValidationError: Bad upload
            ProcessingError: Codec failure
            StorageError: Write failure
        """
        validate_upload(data, mime_type, self.config.allowed_mime_types, self.config.max_file_size)
        folder = sanitize_folder(folder)
        artifacts = new_path(folder, now)

        self.logger.info(f"Uploading image to folder {folder} ({len(data)} bytes, {mime_type})")
        generated = self.generator.generate(data)

        sizes = {}
        written: List[str] = []
        try:
            for kind, buffer in generated.items():
                relative_path = artifacts.path_for(kind)
                # A failed save may still leave a partial file behind
                written.append(relative_path)
                sizes[kind] = self.store.save(buffer, relative_path)
        except StorageError:
            self._discard(written)
            raise

        width, height = self.generator.advertised_size(generated.metadata)
        result = UploadResult(
            url=self.url_for(artifacts.relative_path),
            thumbnail=self.url_for(artifacts.path_for(ArtifactKind.THUMBNAIL)),
            small=self.url_for(artifacts.path_for(ArtifactKind.SMALL)),
            size=sizes[ArtifactKind.ORIGINAL],
            width=width,
            height=height,
            folder=folder,
            filename=artifacts.filename,
            path=artifacts.relative_path,
        )
        self.logger.info(f"Upload complete: {result.path} ({result.size} bytes)")
        return result

    def _discard(self, relative_paths: List[str]) -> None:
        for relative_path in relative_paths:
            try:
                self.store.delete(relative_path)
            except StorageError as e:
                self.logger.warning(f"Could not remove partial upload {relative_path}: {e}")

    def list_images(
        self,
        folder: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort: str = 'date'
    ) -> dict:
        """
        List stored originals.

        Returns:
            {'images': [...], 'pagination': {page, limit, total, totalPages}}
        """
        if folder:
            folder = sanitize_folder(folder)
        result = self.scanner.list_images(folder, page=page, limit=limit, sort=sort)
        return {
            'images': [r.to_dict(self.config.uploads_url) for r in result.items],
            'pagination': result.pagination(),
        }

    def _artifacts_for(self, relative_path: str) -> ArtifactSet:
        try:
            artifacts = ArtifactSet.from_path(relative_path)
            self.store.full_path(relative_path)
        except ValueError as e:
            raise ValidationError(str(e), details={'path': relative_path}) from e
        return artifacts

    def delete_image(self, relative_path: str) -> List[str]:
        """
        Delete an image and every derivative sharing its stem.

        Returns:
            Relative paths that were removed

        Raises:
            ValidationError: Malformed path or path outside the upload root
            NotFoundError: Nothing was removed
            StorageError: Unlink failed
        """
        artifacts = self._artifacts_for(relative_path)
        self.logger.info(f"Deleting image: {artifacts.relative_path}")

        deleted = self.store.delete_set(artifacts)
        if not deleted:
            raise NotFoundError('File not found', details={'path': relative_path})

        self.logger.info(f"Deleted {len(deleted)} files for {artifacts.relative_path}")
        return deleted

    def compute_stats(self, now: Optional[datetime] = None) -> StoreStats:
        return self.aggregator.compute(now)

    def stats(self, now: Optional[datetime] = None) -> dict:
        """Usage statistics: {totalImages, totalSize, folders, thisMonth}."""
        return self.compute_stats(now).to_dict()

    def optimize(self, relative_path: str, params: Mapping) -> bytes:
        """
        Produce an on-the-fly WebP variant of a stored image. Nothing is written.

        Args:
            relative_path: Stored image path relative to the root
            params: Mapping with optional 'w', 'h', 'q', 'fit'

        Raises:
            ValidationError: Bad parameters or path
            NotFoundError: Source does not exist
            ProcessingError: Codec failure
        """
        options = parse_optimize_params(params)
        try:
            full_path = self.store.full_path(relative_path)
        except ValueError as e:
            raise ValidationError(str(e), details={'path': relative_path}) from e

        if not os.path.isfile(full_path):
            raise NotFoundError('File not found', details={'path': relative_path})

        self.logger.debug(f"Optimizing on the fly: {relative_path} {options}")
        return self.generator.on_the_fly(full_path, options)
