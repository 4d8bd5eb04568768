"""Database models for files app."""

from typing import Final, final, override

from django.contrib.auth import get_user_model
from django.db import models

from server.apps.files.infrastructure.metadata import detect_mime_type

User = get_user_model()

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_HANDLE_MAX_LENGTH: Final = 1024
_KIND_MAX_LENGTH: Final = 16
_STATUS_MAX_LENGTH: Final = 16

# Parent id clients send and receive for top level entries
ROOT_PARENT_ID: Final = 0


class FileKind(models.TextChoices):
    """Kinds of catalog entries."""

    FOLDER = 'folder', 'Folder'
    FILE = 'file', 'File'
    IMAGE = 'image', 'Image'


@final
class File(models.Model):
    """Catalog entry for a folder, a file or an image.

    Entries form a tree through ``parent``; a NULL parent is the root.
    Bytes never live in the database: ``content`` is the name of a blob
    in the content store, and folders only remember the directory that
    holds their children. Neither handle is ever serialized to clients.
    """

    # Owner relationship
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='Display name chosen by the owner',
    )

    kind = models.CharField(
        max_length=_KIND_MAX_LENGTH,
        choices=FileKind.choices,
    )

    is_public = models.BooleanField(default=False)

    # Only folders may be parents, checked before insert
    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        related_name='children',
        null=True,
        blank=True,
    )

    # Blob in the content store, empty for folders
    content = models.FileField(
        upload_to='',
        blank=True,
        max_length=_HANDLE_MAX_LENGTH,
        help_text='Generated blob name inside the content store',
    )

    # Directory in the content store, set for folders only
    directory = models.CharField(
        max_length=_HANDLE_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Directory holding the children of a folder',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering = ['id']

        indexes = [
            # Optimize paginated directory listing queries
            models.Index(
                fields=['user', 'parent', 'id'],
                name='files_user_parent_idx',
            ),
        ]

        constraints = [
            # Folders never hold content, everything else always does
            models.CheckConstraint(
                condition=(
                    models.Q(kind=FileKind.FOLDER, content='') |
                    (~models.Q(kind=FileKind.FOLDER) & ~models.Q(content=''))
                ),
                name='files_content_matches_kind',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.username}:{self.name} ({self.kind})'

    @property
    def is_folder(self) -> bool:
        """Whether the entry is a folder."""
        return self.kind == FileKind.FOLDER

    @property
    def is_image(self) -> bool:
        """Whether the entry is an image."""
        return self.kind == FileKind.IMAGE

    def get_content_type(self) -> str:
        """Guess the MIME type served for the entry's bytes.

        Returns:
            MIME type derived from the display name.
        """
        return detect_mime_type(self.name)

    def to_dict(self) -> dict[str, object]:
        """Serialize the entry for API responses.

        Storage handles are deliberately absent.

        Returns:
            JSON-compatible dictionary.
        """
        return {
            'id': self.id,
            'userId': self.user_id,
            'name': self.name,
            'type': self.kind,
            'isPublic': self.is_public,
            'parentId': self.parent_id or ROOT_PARENT_ID,
        }


class JobStatus(models.TextChoices):
    """Lifecycle of a thumbnail job."""

    QUEUED = 'queued', 'Queued'
    PROCESSING = 'processing', 'Processing'
    DONE = 'done', 'Done'
    FAILED = 'failed', 'Failed'


@final
class ThumbnailJob(models.Model):
    """Queued request to derive thumbnails for one image.

    Carries ids only, the worker re-reads the bytes from the content
    store. The ids are plain integers rather than foreign keys so that
    stale or forged jobs can still be stored and then rejected.
    """

    user_id = models.PositiveBigIntegerField(null=True, blank=True)

    file_id = models.PositiveBigIntegerField(null=True, blank=True)

    status = models.CharField(
        max_length=_STATUS_MAX_LENGTH,
        choices=JobStatus.choices,
        default=JobStatus.QUEUED,
    )

    attempts = models.PositiveIntegerField(default=0)

    last_error = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Thumbnail Job'  # type: ignore[mutable-override]
        verbose_name_plural = 'Thumbnail Jobs'  # type: ignore[mutable-override]
        ordering = ['id']

        indexes = [
            # Workers pick the oldest queued job
            models.Index(
                fields=['status', 'id'],
                name='thumbnail_jobs_status_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'job {self.id}: file {self.file_id} ({self.status})'

    def to_message(self) -> dict[str, int | None]:
        """Queue message payload.

        Returns:
            Dictionary with ``userId`` and ``fileId``.
        """
        return {'userId': self.user_id, 'fileId': self.file_id}
