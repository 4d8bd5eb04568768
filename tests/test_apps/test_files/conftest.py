"""Shared fixtures for files app tests."""

import base64
import io
import uuid

import pytest
from django.contrib.auth import get_user_model
from PIL import Image

from server.apps.files.infrastructure.job_queue import DatabaseJobQueue
from server.apps.files.infrastructure.storage import get_content_store
from server.apps.files.logic.access_operations import (
    get_token_cache,
    token_cache_key,
)

User = get_user_model()


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def content_store(settings, tmp_path):
    """Point the default content store at a temporary directory.

    Returns:
        ContentStore rooted in ``tmp_path``.
    """
    settings.MEDIA_ROOT = str(tmp_path / 'files')
    return get_content_store()


@pytest.fixture
def job_queue(db):
    """Database job queue without retries.

    Returns:
        DatabaseJobQueue instance.
    """
    return DatabaseJobQueue(max_attempts=1)


def _issue_token(user_id):
    token = uuid.uuid4().hex
    get_token_cache().set(token_cache_key(token), user_id)
    return token


@pytest.fixture
def auth_token(user):
    """Session token of ``user`` stored in the token cache.

    Returns:
        Token string.
    """
    return _issue_token(user.id)


@pytest.fixture
def other_token(other_user):
    """Session token of ``other_user``.

    Returns:
        Token string.
    """
    return _issue_token(other_user.id)


@pytest.fixture
def png_bytes():
    """PNG image that is wider than every thumbnail width.

    Returns:
        Encoded 800x400 PNG.
    """
    buf = io.BytesIO()
    Image.new('RGB', (800, 400), color=(200, 30, 30)).save(buf, format='PNG')
    return buf.getvalue()


@pytest.fixture
def png_base64(png_bytes):
    """Base64 text of ``png_bytes`` as clients send it.

    Returns:
        Base64 string.
    """
    return base64.b64encode(png_bytes).decode('ascii')
