"""
Input validation applied before any filesystem or codec work.
"""

import re
from typing import Iterable, Mapping, Optional

from .codec import FIT_MODES
from .derivative_generator import OptimizeParams
from .errors import ValidationError
from .image_record import DEFAULT_FOLDER

MAX_FOLDER_LENGTH = 50
MAX_DIMENSION = 5000

_FOLDER_REJECT = re.compile(r'[^a-zA-Z0-9_-]')


def sanitize_folder(folder: Optional[str]) -> str:
    """
    Reduce a folder name to [A-Za-z0-9_-], at most 50 characters.

    Empty results fall back to 'general'.
    """
    cleaned = _FOLDER_REJECT.sub('', folder or '')
    if not cleaned:
        return DEFAULT_FOLDER
    return cleaned[:MAX_FOLDER_LENGTH]


def validate_upload(
    data: Optional[bytes],
    mime_type: Optional[str],
    allowed_mime_types: Iterable[str],
    max_file_size: int
) -> None:
    """
    Check an upload before processing.

    Raises:
        ValidationError: Missing data, disallowed type, or too large
    """
    if not data:
        raise ValidationError('No file was provided', code='MISSING_FILE')

    allowed = list(allowed_mime_types)
    if mime_type not in allowed:
        raise ValidationError(
            f"File type not allowed. Accepted types: {', '.join(allowed)}",
            code='INVALID_FILE_TYPE',
            details={'mimetype': mime_type},
        )

    if len(data) > max_file_size:
        raise ValidationError(
            f"File exceeds the maximum size of {max_file_size / 1024 / 1024:.2f} MB",
            code='FILE_TOO_LARGE',
            details={'size': len(data), 'maxSize': max_file_size},
        )


def _bounded_int(params: Mapping, key: str, label: str, low: int, high: int) -> Optional[int]:
    value = params.get(key)
    if value is None or value == '':
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        number = None
    if number is None or not low <= number <= high:
        raise ValidationError(
            f'Parameter "{key}" ({label}) must be a number between {low} and {high}',
            details={key: value},
        )
    return number


def parse_optimize_params(params: Mapping) -> OptimizeParams:
    """
    Validate on-the-fly parameters {w, h, q, fit}.

    Values may be strings (as from a query string) or integers.

    Raises:
        ValidationError: Any value out of bounds or unknown fit mode
    """
    width = _bounded_int(params, 'w', 'width', 1, MAX_DIMENSION)
    height = _bounded_int(params, 'h', 'height', 1, MAX_DIMENSION)
    quality = _bounded_int(params, 'q', 'quality', 1, 100)

    fit = params.get('fit') or 'inside'
    if fit not in FIT_MODES:
        raise ValidationError(
            f'Parameter "fit" must be one of: {", ".join(FIT_MODES)}',
            details={'fit': fit},
        )

    return OptimizeParams(width=width, height=height, quality=quality, fit=fit)
