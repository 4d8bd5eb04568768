"""Metadata helpers for catalog entries and their content."""

import base64
import binascii
import mimetypes
from typing import Final

from django.core.exceptions import ValidationError

_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'
_RESERVED_DIRECTORY_NAMES: Final = frozenset(('.', '..'))


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from a file name.

    Uses Python's built-in mimetypes module to guess MIME type
    from filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def decode_content(encoded: str) -> bytes:
    """Decode base64 content sent by clients.

    Args:
        encoded: Base64 text.

    Returns:
        Decoded bytes.

    Raises:
        ValidationError: If the text is not valid base64.
    """
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as error:
        raise ValidationError('Invalid data encoding') from error


def validate_folder_name(name: str) -> None:
    """Validate that a folder name is usable as a single directory.

    Folder names become directory names in the content store, so they
    must not contain path separators or refer to the current or parent
    directory.

    Args:
        name: Proposed folder name.

    Raises:
        ValidationError: If the name cannot be a directory name.
    """
    if not name:
        raise ValidationError('Missing name')

    if name in _RESERVED_DIRECTORY_NAMES:
        raise ValidationError(f'Invalid folder name: {name}')

    if '/' in name or '\\' in name or '\x00' in name:
        raise ValidationError(
            'Folder name cannot contain path separators',
        )
