"""
CodecAdapter - Image decoding, resizing and encoding using Pillow.

Probing a file by path keeps its lazily-loaded image (and therefore its file
handle) in a small cache. Deleting such a file can fail while the handle is
open, so the store suspends caching around every unlink attempt with
`cache_suspended()`.
"""

import io
import logging
import os
import threading
from collections import OrderedDict
from contextlib import contextmanager
from typing import Dict, Optional, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import ProcessingError

Source = Union[bytes, str, os.PathLike]

FIT_MODES = ('cover', 'contain', 'fill', 'inside', 'outside')

METADATA_KEYS = ('exif', 'icc_profile', 'xmp', 'XML:com.adobe.xmp', 'photoshop', 'comment')


class CodecAdapter:
    """
    Thin wrapper around Pillow exposing the operations the store needs.
    """

    OUTPUT_FORMAT = 'WEBP'
    CONTENT_TYPE = 'image/webp'

    def __init__(
        self,
        cache_size: int = 64,
        effort: int = 4,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize codec adapter.

        Args:
            cache_size: Maximum number of probed files kept open
            effort: WebP encoder method (0-6, higher is slower and smaller)
            logger: Optional logger instance
        """
        self.cache_size = cache_size
        self.effort = effort
        self.logger = logger or logging.getLogger(__name__)
        self._cache: 'OrderedDict[str, Image.Image]' = OrderedDict()
        self._lock = threading.RLock()
        self._suspensions = 0

    # -- decoding ---------------------------------------------------------

    def decode(self, source: Source) -> Image.Image:
        """
        Open an image from bytes or a filesystem path.

        Raises:
            ProcessingError: If the data is not a readable image
        """
        try:
            if isinstance(source, (bytes, bytearray)):
                img = Image.open(io.BytesIO(source))
            else:
                img = Image.open(os.fspath(source))
            img.load()
            return img
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise ProcessingError(f"Could not decode image: {e}") from e

    def probe(self, source: Source) -> Dict:
        """
        Read image metadata without decoding pixel data.

        Returns:
            Dict with 'width', 'height', 'format', 'has_alpha'
        """
        if isinstance(source, (bytes, bytearray)):
            try:
                with Image.open(io.BytesIO(source)) as img:
                    return self._describe(img)
            except (UnidentifiedImageError, OSError, ValueError) as e:
                raise ProcessingError(f"Could not read image metadata: {e}") from e

        path = os.fspath(source)
        with self._lock:
            cached = self._cache.get(path)
            if cached is not None:
                self._cache.move_to_end(path)
                return self._describe(cached)

        try:
            img = Image.open(path)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise ProcessingError(f"Could not read image metadata: {e}") from e

        info = self._describe(img)
        self._remember(path, img)
        return info

    @staticmethod
    def _describe(img: Image.Image) -> Dict:
        has_alpha = img.mode in ('RGBA', 'LA', 'PA') or 'transparency' in img.info
        return {
            'width': img.width,
            'height': img.height,
            'format': (img.format or '').lower(),
            'has_alpha': has_alpha,
        }

    # -- transforms -------------------------------------------------------

    def auto_rotate(self, img: Image.Image) -> Image.Image:
        """Apply the EXIF orientation tag to the pixels."""
        try:
            return ImageOps.exif_transpose(img)
        except (OSError, ValueError) as e:
            raise ProcessingError(f"Could not auto-rotate image: {e}") from e

    def strip_metadata(self, img: Image.Image) -> Image.Image:
        """
        Return a copy carrying no EXIF, ICC or XMP metadata.

        Pixel-level info such as the palette transparency index is kept.
        """
        clean = img.copy()
        clean.info = {
            key: value for key, value in img.info.items()
            if key not in METADATA_KEYS
        }
        return clean

    def resize(
        self,
        img: Image.Image,
        width: Optional[int],
        height: Optional[int],
        fit: str = 'inside',
        allow_upscale: bool = False
    ) -> Image.Image:
        """
        Resize an image into a target box.

        Args:
            img: Source image
            width: Target width, or None to follow the aspect ratio
            height: Target height, or None to follow the aspect ratio
            fit: One of FIT_MODES
            allow_upscale: If False, images already inside the box keep their size

        Returns:
            Resized image (may be the source image if nothing changes)
        """
        if fit not in FIT_MODES:
            raise ProcessingError(f"Unknown fit mode: {fit}")
        if not width and not height:
            return img

        src_w, src_h = img.size

        if not allow_upscale:
            fits_w = width is None or src_w <= width
            fits_h = height is None or src_h <= height
            if fits_w and fits_h:
                return img

        try:
            img = self._convert_color_mode(img)
            if width is None or height is None:
                scale = (width / src_w) if width else (height / src_h)
                if not allow_upscale:
                    scale = min(scale, 1.0)
                return img.resize(self._scaled(src_w, src_h, scale), Image.Resampling.LANCZOS)

            if fit == 'fill':
                target = (width, height)
                if not allow_upscale:
                    target = (min(width, src_w), min(height, src_h))
                return img.resize(target, Image.Resampling.LANCZOS)

            if fit == 'cover':
                box = (width, height)
                if not allow_upscale:
                    box = (min(width, src_w), min(height, src_h))
                return ImageOps.fit(img, box, Image.Resampling.LANCZOS, centering=(0.5, 0.5))

            if fit == 'outside':
                scale = max(width / src_w, height / src_h)
            else:
                scale = min(width / src_w, height / src_h)
            if not allow_upscale:
                scale = min(scale, 1.0)
            resized = img.resize(self._scaled(src_w, src_h, scale), Image.Resampling.LANCZOS)

            if fit == 'contain':
                return self._letterbox(resized, (width, height))
            return resized
        except (OSError, ValueError) as e:
            raise ProcessingError(f"Could not resize image: {e}") from e

    @staticmethod
    def _scaled(src_w: int, src_h: int, scale: float) -> Tuple[int, int]:
        return max(1, round(src_w * scale)), max(1, round(src_h * scale))

    @staticmethod
    def _letterbox(img: Image.Image, box: Tuple[int, int]) -> Image.Image:
        """Center an image on a transparent canvas of the box size."""
        canvas = Image.new('RGBA', box, (0, 0, 0, 0))
        if img.mode != 'RGBA':
            img = img.convert('RGBA')
        offset = ((box[0] - img.width) // 2, (box[1] - img.height) // 2)
        canvas.paste(img, offset)
        return canvas

    # -- encoding ---------------------------------------------------------

    def encode(self, img: Image.Image, quality: int) -> bytes:
        """
        Encode an image as WebP.

        Args:
            img: Image to encode
            quality: WebP quality (1-100)

        Returns:
            Encoded bytes
        """
        img = self._convert_color_mode(img)
        output = io.BytesIO()
        try:
            img.save(output, format=self.OUTPUT_FORMAT, quality=quality, method=self.effort)
        except (OSError, ValueError, KeyError) as e:
            raise ProcessingError(f"Could not encode image: {e}") from e
        return output.getvalue()

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Convert image to a color mode WebP can hold."""
        if img.mode in ('RGB', 'RGBA'):
            return img
        if img.mode in ('LA', 'PA') or (img.mode == 'P' and 'transparency' in img.info):
            return img.convert('RGBA')
        return img.convert('RGB')

    def release_handle(self, img: Optional[Image.Image]) -> None:
        """Close an image handle, ignoring images that are already closed."""
        if img is not None:
            img.close()

    # -- handle cache -----------------------------------------------------

    @property
    def cache_enabled(self) -> bool:
        """True unless at least one caller has suspended caching."""
        with self._lock:
            return self._suspensions == 0

    @property
    def cached_paths(self) -> list:
        with self._lock:
            return list(self._cache.keys())

    def _remember(self, path: str, img: Image.Image) -> None:
        with self._lock:
            if self._suspensions or self.cache_size <= 0:
                img.close()
                return
            previous = self._cache.pop(path, None)
            if previous is not None and previous is not img:
                previous.close()
            self._cache[path] = img
            while len(self._cache) > self.cache_size:
                _, evicted = self._cache.popitem(last=False)
                evicted.close()

    def drop_cache(self) -> None:
        """Close every cached handle. Safe to call repeatedly."""
        with self._lock:
            count = len(self._cache)
            while self._cache:
                _, img = self._cache.popitem(last=False)
                img.close()
        if count:
            self.logger.debug(f"Dropped {count} cached image handles")

    @contextmanager
    def cache_suspended(self):
        """
        Scope during which no file handles are cached.

        Nested and concurrent scopes are counted; caching resumes when the
        last scope exits.
        """
        with self._lock:
            self._suspensions += 1
        try:
            self.drop_cache()
            yield self
        finally:
            with self._lock:
                self._suspensions -= 1
