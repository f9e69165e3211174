"""
DerivativeGenerator - Produces the stored variants of an uploaded image.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .artifact_set import ArtifactKind
from .codec import CodecAdapter, Source
from .errors import ProcessingError

MAX_ADVERTISED_WIDTH = 1200


@dataclass(frozen=True)
class DerivativeSpec:
    """
    Parameters for one stored variant.

    Attributes:
        kind: Which variant this produces
        width: Target box width
        height: Target box height
        quality: WebP quality
        fit: Resize fit mode
        allow_upscale: Whether images smaller than the box are enlarged
    """
    kind: ArtifactKind
    width: int
    height: int
    quality: int
    fit: str = 'inside'
    allow_upscale: bool = False


def default_specs(original_quality: int = 80) -> Dict[ArtifactKind, DerivativeSpec]:
    """The fixed derivative policy, with a configurable original quality."""
    return {
        ArtifactKind.ORIGINAL: DerivativeSpec(
            ArtifactKind.ORIGINAL, 1200, 1200, original_quality, fit='inside'),
        ArtifactKind.THUMBNAIL: DerivativeSpec(
            ArtifactKind.THUMBNAIL, 300, 300, 75, fit='cover', allow_upscale=True),
        ArtifactKind.SMALL: DerivativeSpec(
            ArtifactKind.SMALL, 600, 600, 78, fit='inside'),
    }


@dataclass
class GeneratedSet:
    """
    Encoded buffers for every stored variant, plus the source metadata.
    """
    original: bytes
    thumbnail: bytes
    small: bytes
    metadata: dict

    def buffer_for(self, kind: ArtifactKind) -> bytes:
        return getattr(self, kind.label)

    def items(self):
        """Yield (kind, buffer) in write order."""
        for kind in ArtifactKind:
            yield kind, self.buffer_for(kind)


@dataclass(frozen=True)
class OptimizeParams:
    """Validated on-the-fly parameters. None means 'not given'."""
    width: Optional[int] = None
    height: Optional[int] = None
    quality: Optional[int] = None
    fit: str = 'inside'


class DerivativeGenerator:
    """
    Generates the optimized original, thumbnail and small variants of an image.
    """

    def __init__(
        self,
        codec: Optional[CodecAdapter] = None,
        quality: int = 80,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize derivative generator.

        Args:
            codec: Codec adapter (a new one is created if omitted)
            quality: WebP quality for the optimized original (default: 80)
            logger: Optional logger instance
        """
        self.codec = codec or CodecAdapter()
        self.quality = quality
        self.specs = default_specs(quality)
        self.logger = logger or logging.getLogger(__name__)

    def probe(self, source: Source) -> dict:
        """Read width, height, format and alpha presence."""
        return self.codec.probe(source)

    def generate(self, image_data: bytes) -> GeneratedSet:
        """
        Generate every stored variant from source bytes.

        Args:
            image_data: Source image as bytes

        Returns:
            GeneratedSet with the encoded buffers and source metadata

        Raises:
            ProcessingError: If the codec fails on any variant
        """
        metadata = self.probe(image_data)
        buffers = {}
        for kind, spec in self.specs.items():
            self.logger.debug(f"Generating {kind.label} ({spec.width}x{spec.height} {spec.fit})")
            buffers[kind.label] = self.render(image_data, spec)
        return GeneratedSet(metadata=metadata, **buffers)

    def render(self, image_data: bytes, spec: DerivativeSpec) -> bytes:
        """Produce one variant."""
        img = self.codec.decode(image_data)
        try:
            rotated = self.codec.auto_rotate(img)
            resized = self.codec.resize(
                rotated, spec.width, spec.height,
                fit=spec.fit, allow_upscale=spec.allow_upscale
            )
            return self.codec.encode(self.codec.strip_metadata(resized), spec.quality)
        except ProcessingError:
            raise
        except Exception as e:
            raise ProcessingError(f"Error creating {spec.kind.label}: {e}") from e
        finally:
            self.codec.release_handle(img)

    def on_the_fly(self, source: Source, params: OptimizeParams) -> bytes:
        """
        Re-encode an image with caller-chosen parameters. Nothing is stored.

        Resizing only happens when a width or height is given, and never
        enlarges the image.
        """
        quality = params.quality or self.quality
        img = self.codec.decode(source)
        try:
            out = self.codec.auto_rotate(img)
            if params.width or params.height:
                out = self.codec.resize(
                    out, params.width, params.height,
                    fit=params.fit, allow_upscale=False
                )
            return self.codec.encode(self.codec.strip_metadata(out), quality)
        finally:
            self.codec.release_handle(img)

    @staticmethod
    def advertised_size(metadata: dict) -> tuple:
        """Width and height reported for an upload; width is capped for display."""
        width = metadata.get('width') or 0
        return min(width, MAX_ADVERTISED_WIDTH), metadata.get('height') or 0
