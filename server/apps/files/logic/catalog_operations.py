"""Business logic for catalog entries (metadata only)."""

import logging
from typing import Any

from django.conf import settings
from django.db import transaction

from server.apps.files.exceptions import InvalidParentError
from server.apps.files.models import ROOT_PARENT_ID, File, FileKind

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


def normalize_parent_id(parent_id: object) -> int | None:
    """Normalize a client supplied parent id.

    ``None``, empty strings and the root sentinel (``0`` or ``'0'``)
    all mean the root and become ``None``.

    Args:
        parent_id: Raw parent id from a request.

    Returns:
        Integer id of the parent, or None for the root.

    Raises:
        InvalidParentError: If the value is not an integer id.
    """
    if parent_id is None or parent_id == '':
        return None

    if isinstance(parent_id, bool):
        raise InvalidParentError(parent_id, 'Parent not found')

    try:
        normalized = int(str(parent_id).strip())
    except ValueError as error:
        raise InvalidParentError(parent_id, 'Parent not found') from error

    if normalized == ROOT_PARENT_ID:
        return None
    if normalized < 0:
        raise InvalidParentError(parent_id, 'Parent not found')
    return normalized


def get_parent(user: _User, parent_id: object) -> File | None:
    """Fetch the folder a new entry will be created in.

    Args:
        user: Owner of the new entry.
        parent_id: Raw or normalized parent id.

    Returns:
        Parent folder, or None for the root.

    Raises:
        InvalidParentError: If the parent does not exist, belongs to
            another user, or is not a folder.
    """
    normalized = normalize_parent_id(parent_id)
    if normalized is None:
        return None

    try:
        parent = File.objects.get(id=normalized, user=user)
    except File.DoesNotExist as error:
        logger.info('Parent not found: ID=%d', normalized)
        raise InvalidParentError(parent_id, 'Parent not found') from error

    if parent.kind != FileKind.FOLDER:
        logger.info('Parent is not a folder: ID=%d (%s)', normalized, parent.kind)
        raise InvalidParentError(parent_id, 'Parent is not a folder')

    return parent


def insert_entry(  # noqa: WPS211
    user: _User,
    name: str,
    kind: str,
    parent: File | None = None,
    is_public: bool = False,
    content: str = '',
    directory: str = '',
) -> File:
    """Persist a new catalog entry.

    Args:
        user: Owner of the entry.
        name: Display name.
        kind: One of ``FileKind``.
        parent: Parent folder, None for the root.
        is_public: Initial visibility.
        content: Blob handle for files and images.
        directory: Directory handle for folders.

    Returns:
        Created File instance.

    Raises:
        InvalidParentError: If ``parent`` is not a folder.
    """
    if parent is not None and parent.kind != FileKind.FOLDER:
        raise InvalidParentError(parent.id, 'Parent is not a folder')

    with transaction.atomic():
        entry = File.objects.create(
            user=user,
            name=name,
            kind=kind,
            parent=parent,
            is_public=is_public,
            content=content,
            directory=directory,
        )

    logger.info(
        'Catalog entry created: %s (ID: %d, kind: %s)',
        name,
        entry.id,
        kind,
    )
    return entry


def get_entry(user: _User, file_id: int) -> File:
    """Get an entry owned by ``user``.

    Args:
        user: Caller.
        file_id: Entry id.

    Returns:
        File instance.

    Raises:
        File.DoesNotExist: If the entry does not exist or belongs to
            another user.
    """
    return File.objects.get(id=file_id, user=user)


def get_public_entry(file_id: int) -> File:
    """Get a public entry.

    Content is served for public entries only, whoever asks, the owner
    included.

    Args:
        file_id: Entry id.

    Returns:
        File instance.

    Raises:
        File.DoesNotExist: If the entry does not exist or is not
            public.
    """
    return File.objects.get(id=file_id, is_public=True)


def publish_entry(user: _User, file_id: int) -> File:
    """Make an entry public. Publishing a public entry is a no-op.

    Args:
        user: Owner of the entry.
        file_id: Entry id.

    Returns:
        Updated File instance.

    Raises:
        File.DoesNotExist: If the entry is not found for the user.
    """
    return _set_visibility(user, file_id, is_public=True)


def unpublish_entry(user: _User, file_id: int) -> File:
    """Make an entry private. Unpublishing a private entry is a no-op.

    Args:
        user: Owner of the entry.
        file_id: Entry id.

    Returns:
        Updated File instance.

    Raises:
        File.DoesNotExist: If the entry is not found for the user.
    """
    return _set_visibility(user, file_id, is_public=False)


def _set_visibility(user: _User, file_id: int, *, is_public: bool) -> File:
    with transaction.atomic():
        entry = File.objects.select_for_update().get(id=file_id, user=user)
        if entry.is_public == is_public:
            return entry

        entry.is_public = is_public
        entry.save(update_fields=['is_public'])

    logger.info(
        'File visibility changed: ID=%d, public=%s',
        file_id,
        is_public,
    )
    return entry


def list_page(
    user: _User,
    parent_id: int | None = None,
    page: int = 0,
    page_size: int | None = None,
) -> list[File]:
    """List one page of a user's entries under a parent.

    Entries are ordered by insertion. A page past the end of the
    listing is empty, never an error.

    Args:
        user: Owner of the entries.
        parent_id: Parent folder id, None for the root.
        page: Zero-based page number, negative values mean 0.
        page_size: Entries per page, defaults to ``FILES_PAGE_SIZE``.

    Returns:
        Entries of the requested page.
    """
    if page_size is None:
        page_size = settings.FILES_PAGE_SIZE
    offset = max(page, 0) * page_size

    logger.debug(
        'Listing entries: user=%s parent=%s page=%d',
        user.id,
        parent_id,
        page,
    )

    return list(
        File.objects.filter(user=user, parent_id=parent_id)
        .order_by('id')[offset:offset + page_size],
    )
