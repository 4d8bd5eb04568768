"""Business logic for file operations."""

import logging
from typing import TYPE_CHECKING, Any

from django.core.exceptions import ValidationError

from server.apps.files.infrastructure.job_queue import get_job_queue
from server.apps.files.infrastructure.metadata import validate_folder_name
from server.apps.files.infrastructure.storage import get_content_store
from server.apps.files.infrastructure.thumbnails import thumbnail_suffix
from server.apps.files.logic.catalog_operations import get_parent, insert_entry
from server.apps.files.models import File, FileKind

if TYPE_CHECKING:
    from server.apps.files.infrastructure.job_queue import JobQueue
    from server.apps.files.infrastructure.storage import ContentStore

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


def upload_file(  # noqa: WPS211
    user: _User,
    name: str,
    kind: str,
    content: bytes | str | None = None,
    parent_id: object = None,
    is_public: bool = False,
    *,
    storage: 'ContentStore | None' = None,
    queue: 'JobQueue | None' = None,
) -> File:
    """Create a folder, file or image entry.

    Transaction safety: write to storage first, then create the catalog
    record. If the catalog insert fails, the written blob is deleted
    from storage (rollback). Images additionally get a thumbnail job,
    queued only after the record exists.

    Args:
        user: Owner of the entry.
        name: Display name.
        kind: One of ``FileKind``.
        content: Bytes (or base64 text), required unless a folder.
        parent_id: Parent folder id, root when omitted.
        is_public: Initial visibility.
        storage: Content store override.
        queue: Job queue override.

    Returns:
        Created File instance.

    Raises:
        ValidationError: If a required field is missing or malformed.
        InvalidParentError: If the parent is missing or not a folder.
        StoreWriteError: If storage rejects the write.
    """
    _validate_upload(name, kind, content)
    parent = get_parent(user, parent_id)

    if storage is None:
        storage = get_content_store()
    parent_directory = parent.directory if parent is not None else None

    if kind == FileKind.FOLDER:
        directory = storage.create_directory(name, parent_directory)
        return insert_entry(
            user,
            name,
            kind,
            parent=parent,
            is_public=is_public,
            directory=directory,
        )

    # Step 1: Write bytes to storage first
    saved_name = storage.create_blob(content, parent_directory)  # type: ignore[arg-type]

    # Step 2: Create catalog record
    try:
        entry = insert_entry(
            user,
            name,
            kind,
            parent=parent,
            is_public=is_public,
            content=saved_name,
        )
    except Exception:
        logger.exception(
            'Catalog insert failed, rolling back storage upload: %s',
            saved_name,
        )
        storage.rollback_upload(saved_name)
        raise

    # Step 3: Thumbnails are best effort and never undo the upload
    if entry.is_image:
        _queue_thumbnails(entry, queue)

    return entry


def _validate_upload(name: str, kind: str, content: bytes | str | None) -> None:
    if not name:
        raise ValidationError('Missing name')

    if kind not in FileKind.values:
        raise ValidationError('Missing or invalid type')

    if kind == FileKind.FOLDER:
        validate_folder_name(name)
    elif not content:
        raise ValidationError('Missing data')


def _queue_thumbnails(entry: File, queue: 'JobQueue | None') -> None:
    try:
        if queue is None:
            queue = get_job_queue()
        queue.enqueue(user_id=entry.user_id, file_id=entry.id)
    except Exception:
        logger.exception(
            'Failed to queue thumbnail job for file: ID=%d',
            entry.id,
        )


def read_file_content(
    entry: File,
    size: int | None = None,
    *,
    storage: 'ContentStore | None' = None,
) -> bytes:
    """Read the bytes of an entry or of one of its thumbnails.

    Args:
        entry: File or image entry.
        size: Thumbnail width, None for the original bytes.
        storage: Content store override.

    Returns:
        Stored bytes.

    Raises:
        ValidationError: If the entry is a folder.
        StoreNotFoundError: If the blob (or thumbnail) does not exist.
        StoreReadError: If the blob cannot be read.
    """
    if entry.is_folder:
        raise ValidationError("A folder doesn't have content")

    if storage is None:
        storage = get_content_store()

    name = entry.content.name
    if size is not None:
        name = f'{name}{thumbnail_suffix(size)}'

    return storage.read_blob(name)
