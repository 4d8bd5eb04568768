"""Tests for metadata utilities."""

import base64

import pytest
from django.core.exceptions import ValidationError

from server.apps.files.infrastructure.metadata import (
    decode_content,
    detect_mime_type,
    validate_folder_name,
)


def test_detect_mime_type():
    """Test MIME type detection from filename."""
    assert detect_mime_type('test.pdf') == 'application/pdf'
    assert detect_mime_type('test.txt') == 'text/plain'
    assert detect_mime_type('test.jpg') == 'image/jpeg'
    assert detect_mime_type('test.png') == 'image/png'


def test_detect_mime_type_unknown():
    """Test MIME type detection for unknown extension."""
    assert detect_mime_type('test.unknown') == 'application/octet-stream'
    assert detect_mime_type('no_extension') == 'application/octet-stream'


def test_decode_content():
    """Test base64 text is decoded to bytes."""
    encoded = base64.b64encode(b'Hello Webstack!\n').decode()

    assert decode_content(encoded) == b'Hello Webstack!\n'


@pytest.mark.parametrize('encoded', ['not base64!', 'abc', '****'])
def test_decode_content_invalid(encoded):
    """Test malformed base64 is rejected."""
    with pytest.raises(ValidationError, match='Invalid data encoding'):
        decode_content(encoded)


@pytest.mark.parametrize('name', ['images', 'My Photos', 'v1.2', '.hidden'])
def test_validate_folder_name_valid(name):
    """Test usable folder names pass."""
    validate_folder_name(name)


@pytest.mark.parametrize('name', ['.', '..', 'a/b', 'a\\b', 'bad\x00name', ''])
def test_validate_folder_name_invalid(name):
    """Test names that are not a single directory are rejected."""
    with pytest.raises(ValidationError):
        validate_folder_name(name)
