"""Pure image resize utilities for thumbnail generation."""

import io
from typing import Final

from PIL import Image, ImageOps, UnidentifiedImageError

# Formats Pillow can write back without conversion tricks
_WRITABLE_FORMATS: Final = frozenset(('JPEG', 'PNG', 'GIF', 'WEBP', 'BMP', 'TIFF'))
_FALLBACK_FORMAT: Final = 'PNG'
_JPEG_MODES: Final = frozenset(('RGB', 'L', 'CMYK'))
_JPEG_QUALITY: Final = 85


def thumbnail_suffix(width: int) -> str:
    """Suffix appended to an image handle for a thumbnail width.

    Args:
        width: Thumbnail width in pixels.

    Returns:
        Suffix such as '_500'.
    """
    return f'_{width}'


def resize_to_width(content: bytes, width: int) -> bytes:
    """Resize image bytes so they are at most ``width`` pixels wide.

    The aspect ratio is preserved and images already narrower than
    ``width`` keep their size. EXIF orientation is applied first so the
    thumbnail looks like the original does in a browser. The original
    format is kept when Pillow can write it, PNG otherwise.

    Args:
        content: Original image bytes.
        width: Maximum width in pixels.

    Returns:
        Encoded thumbnail bytes.

    Raises:
        ValueError: If the bytes are not a readable image, exceed
            Pillow's decompression bomb limit, or the width is not
            positive.
    """
    if width <= 0:
        raise ValueError(f'Thumbnail width must be positive, got {width}')

    try:
        image = Image.open(io.BytesIO(content))
        image.load()
    except (UnidentifiedImageError, OSError) as error:
        raise ValueError('bytes are not a valid image') from error
    except Image.DecompressionBombError as error:
        raise ValueError('image is too large to decode') from error

    image_format = image.format if image.format in _WRITABLE_FORMATS else _FALLBACK_FORMAT
    image = ImageOps.exif_transpose(image)

    original_width, original_height = image.size
    if original_width > width:
        height = max(1, round(original_height * width / original_width))
        image = image.resize((width, height), Image.Resampling.LANCZOS)

    if image_format == 'JPEG' and image.mode not in _JPEG_MODES:
        image = image.convert('RGB')

    buf = io.BytesIO()
    if image_format == 'JPEG':
        image.save(buf, format=image_format, quality=_JPEG_QUALITY)
    else:
        image.save(buf, format=image_format)
    return buf.getvalue()
