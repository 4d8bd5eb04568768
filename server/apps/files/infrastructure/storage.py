"""Custom storage backend for the local content store."""

import logging
import posixpath
import uuid
from pathlib import Path
from typing import Any, final, override

from django.core.exceptions import SuspiciousFileOperation
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage, default_storage

from server.apps.files.exceptions import (
    StoreNotFoundError,
    StoreReadError,
    StoreWriteError,
)
from server.apps.files.infrastructure.metadata import decode_content

logger = logging.getLogger(__name__)


def _join(parent_directory: str | None, name: str) -> str:
    if parent_directory:
        return posixpath.join(parent_directory, name)
    return name


@final
class ContentStore(FileSystemStorage):
    """Local disk storage for catalog content.

    Extends Django's FileSystemStorage with:
    - Generated, collision-free blob names (never caller supplied)
    - Idempotent directory creation for folders
    - Atomic overwrite of sibling blobs (thumbnails)
    - Enhanced error logging

    Names returned by this class are the handles stored in the catalog.
    They are relative to the store root (``MEDIA_ROOT``), which is
    created on first use.
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str | None,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save bytes to disk with error handling and logging.

        Args:
            name: Storage path for the file.
            content: File content (file-like object).
            max_length: Optional maximum length for the filename.

        Returns:
            Actual storage path used.

        Raises:
            Exception: If the write fails.
        """
        try:
            logger.info('Writing blob to storage: %s', name)
            saved_name = super().save(name, content, max_length)
            logger.info('Successfully wrote blob: %s', saved_name)
        except Exception:
            logger.exception('Failed to write blob to storage: %s', name)
            raise
        else:
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete a blob with error handling and logging.

        Args:
            name: Storage path of file to delete.

        Raises:
            Exception: If the delete fails.
        """
        try:
            logger.info('Deleting blob from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted blob: %s', name)
        except Exception:
            logger.exception('Failed to delete blob from storage: %s', name)
            raise

    def create_blob(
        self,
        content: bytes | str,
        parent_directory: str | None = None,
    ) -> str:
        """Store bytes under a freshly generated name.

        Args:
            content: Raw bytes, or base64 text to decode first.
            parent_directory: Directory handle to write into, the store
                root when omitted.

        Returns:
            Handle of the new blob.

        Raises:
            StoreWriteError: If the bytes cannot be written.
        """
        if isinstance(content, str):
            content = decode_content(content)

        name = _join(parent_directory, uuid.uuid4().hex)
        try:
            return self.save(name, ContentFile(content))
        except (OSError, SuspiciousFileOperation) as error:
            raise StoreWriteError(name) from error

    def create_directory(
        self,
        name: str,
        parent_directory: str | None = None,
    ) -> str:
        """Create a directory named exactly ``name``.

        Creating a directory that already exists is a success, including
        when a concurrent request created it first.

        Args:
            name: Directory name.
            parent_directory: Directory handle to create it in, the store
                root when omitted.

        Returns:
            Handle of the directory.

        Raises:
            StoreWriteError: If the directory cannot be created, or the
                path is taken by a regular file.
        """
        directory = _join(parent_directory, name)
        try:
            logger.info('Creating directory in storage: %s', directory)
            Path(self.path(directory)).mkdir(parents=True, exist_ok=True)
        except (OSError, SuspiciousFileOperation) as error:
            logger.exception('Failed to create directory: %s', directory)
            raise StoreWriteError(directory) from error
        return directory

    def read_blob(self, name: str) -> bytes:
        """Read the bytes of a blob.

        Args:
            name: Blob handle.

        Returns:
            Stored bytes.

        Raises:
            StoreNotFoundError: If the handle is not an existing blob.
            StoreReadError: If the blob cannot be read.
        """
        try:
            path = Path(self.path(name))
        except SuspiciousFileOperation as error:
            raise StoreNotFoundError(name) from error

        if not path.is_file():
            raise StoreNotFoundError(name)

        try:
            return path.read_bytes()
        except OSError as error:
            logger.exception('Failed to read blob from storage: %s', name)
            raise StoreReadError(name) from error

    def write_sibling(self, name: str, suffix: str, content: bytes) -> str:
        """Write bytes next to a blob, replacing any previous version.

        The bytes go to a unique temporary file first and are then
        renamed over the target, so readers never see a partial file
        and concurrent writers of the same sibling do not interfere.

        Args:
            name: Handle of the original blob.
            suffix: Suffix appended to the handle (e.g., '_500').
            content: Bytes to write.

        Returns:
            Handle of the sibling blob.

        Raises:
            StoreWriteError: If the bytes cannot be written.
        """
        sibling_name = f'{name}{suffix}'
        try:
            target = Path(self.path(sibling_name))
        except SuspiciousFileOperation as error:
            raise StoreWriteError(sibling_name) from error

        temp_path = target.with_name(f'{target.name}.{uuid.uuid4().hex}.tmp')
        try:
            logger.debug('Writing sibling blob via %s', temp_path.name)
            temp_path.write_bytes(content)
            temp_path.replace(target)
        except OSError as error:
            logger.exception('Failed to write sibling blob: %s', sibling_name)
            temp_path.unlink(missing_ok=True)
            raise StoreWriteError(sibling_name) from error

        logger.info('Wrote sibling blob: %s', sibling_name)
        return sibling_name

    def rollback_upload(self, name: str) -> None:
        """Delete a written blob after the catalog insert failed.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised, as the insert error is what the
        caller needs to see.

        Args:
            name: Storage path of the blob to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting blob: %s', name)
            self.delete(name)
            logger.info('Successfully rolled back blob upload: %s', name)
        except Exception:
            # The blob stays on disk without a catalog entry
            logger.exception(
                'Failed to rollback upload, orphaned blob: %s',
                name,
            )


def get_content_store() -> ContentStore:
    """Get the configured default storage backend.

    Returns:
        ContentStore instance rooted at ``MEDIA_ROOT``.
    """
    return default_storage  # type: ignore[return-value]
