"""
Pytest fixtures for imgstore tests.
"""

import io
import os
from datetime import datetime

import pytest


def make_image_bytes(size=(100, 100), color='red', mode='RGB', fmt='JPEG', exif=None):
    """Build an encoded test image."""
    from PIL import Image

    img = Image.new(mode, size, color=color)
    buffer = io.BytesIO()
    if exif is not None:
        img.save(buffer, format=fmt, exif=exif)
    else:
        img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def image_factory():
    """Fixture returning the test image builder."""
    return make_image_bytes


@pytest.fixture
def sample_image_bytes():
    """Fixture providing sample JPEG image bytes."""
    return make_image_bytes((100, 100))


@pytest.fixture
def large_image_bytes():
    """Fixture providing a 2400x1600 JPEG."""
    return make_image_bytes((2400, 1600), color='blue')


@pytest.fixture
def sample_png_bytes():
    """Fixture providing sample PNG image bytes with transparency."""
    return make_image_bytes((100, 100), color=(255, 0, 0, 128), mode='RGBA', fmt='PNG')


@pytest.fixture
def upload_root(tmp_path):
    """Fixture providing an empty upload root."""
    root = tmp_path / "uploads"
    root.mkdir()
    return str(root)


@pytest.fixture
def store_config(upload_root):
    """Fixture providing a store configuration rooted in a temp dir."""
    from imgstore.store_config import StoreConfig

    return StoreConfig(
        upload_dir=upload_root,
        public_url='https://img.example.com',
        delete_retry_delay_ms=0,
    )


@pytest.fixture
def codec():
    """Fixture providing a codec adapter."""
    from imgstore.codec import CodecAdapter
    return CodecAdapter()


@pytest.fixture
def service(store_config, codec, logger):
    """Fixture providing an image service on a temp upload root."""
    from imgstore.image_service import ImageService
    return ImageService(store_config, codec=codec, logger=logger)


@pytest.fixture
def write_file(upload_root):
    """Fixture returning a helper that writes a file under the upload root."""
    def _write(relative_path, data=b'x', mtime=None):
        path = os.path.join(upload_root, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)
        if mtime is not None:
            ts = mtime.timestamp()
            os.utime(path, (ts, ts))
        return path
    return _write


@pytest.fixture
def now():
    """Fixture providing a fixed 'current' time."""
    return datetime(2026, 10, 18, 12, 0, 0)


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')
