"""Business logic for thumbnail jobs.

A job names an image by ``(user_id, file_id)``. Processing reads the
original bytes back from the content store and writes one sibling blob
per configured width (``<handle>_500``, ``<handle>_250``,
``<handle>_100``). Re-running a job overwrites the siblings, which
makes at-least-once delivery safe.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.conf import settings

from server.apps.files.exceptions import (
    JobValidationError,
    StoreError,
    ThumbnailGenerationError,
)
from server.apps.files.infrastructure.job_queue import get_job_queue
from server.apps.files.infrastructure.storage import get_content_store
from server.apps.files.infrastructure.thumbnails import (
    resize_to_width,
    thumbnail_suffix,
)
from server.apps.files.models import File, ThumbnailJob

if TYPE_CHECKING:
    from collections.abc import Iterable

    from server.apps.files.infrastructure.job_queue import JobQueue
    from server.apps.files.infrastructure.storage import ContentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThumbnailResult:
    """Outcome of a successfully processed job."""

    file_id: int
    produced: tuple[int, ...] = ()
    failed: tuple[int, ...] = ()
    skipped: bool = False


@dataclass
class WorkerStats:
    """Counters of one worker run."""

    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        """Total number of jobs handled."""
        return self.succeeded + self.failed


def process_job(
    user_id: int | None,
    file_id: int | None,
    *,
    storage: 'ContentStore | None' = None,
    widths: 'Iterable[int] | None' = None,
) -> ThumbnailResult:
    """Generate the thumbnails requested by one job.

    Folders and plain files complete without producing anything. For
    images every width is attempted independently; a failing width is
    logged and the next one is tried.

    Args:
        user_id: Owner carried by the job.
        file_id: Entry carried by the job.
        storage: Content store override.
        widths: Thumbnail widths, defaults to ``THUMBNAIL_WIDTHS``.

    Returns:
        Widths produced and widths that failed.

    Raises:
        JobValidationError: If an id is missing, or the entry does not
            exist or belongs to someone else.
        ThumbnailGenerationError: If every width failed.
    """
    entry = _validate_job(user_id, file_id)

    if not entry.is_image:
        logger.info(
            'No thumbnails for %s entry: ID=%d',
            entry.kind,
            entry.id,
        )
        return ThumbnailResult(file_id=entry.id, skipped=True)

    if storage is None:
        storage = get_content_store()
    if widths is None:
        widths = settings.THUMBNAIL_WIDTHS

    produced: list[int] = []
    failed: list[int] = []
    for width in sorted(widths, reverse=True):
        if _generate_thumbnail(storage, entry, width):
            produced.append(width)
        else:
            failed.append(width)

    if not produced:
        raise ThumbnailGenerationError(entry.id, failed)

    logger.info(
        'Thumbnails generated for file %d: %s (failed: %s)',
        entry.id,
        produced,
        failed,
    )
    return ThumbnailResult(
        file_id=entry.id,
        produced=tuple(produced),
        failed=tuple(failed),
    )


def _validate_job(user_id: int | None, file_id: int | None) -> File:
    if not user_id:
        raise JobValidationError('Missing userId', user_id, file_id)
    if not file_id:
        raise JobValidationError('Missing fileId', user_id, file_id)

    try:
        entry = File.objects.get(id=file_id)
    except File.DoesNotExist as error:
        raise JobValidationError('File not found', user_id, file_id) from error

    if entry.user_id != user_id:
        logger.warning(
            'Thumbnail job owner mismatch: file %d belongs to %d, not %d',
            entry.id,
            entry.user_id,
            user_id,
        )
        raise JobValidationError('File not found', user_id, file_id)

    return entry


def _generate_thumbnail(storage: 'ContentStore', entry: File, width: int) -> bool:
    try:
        original = storage.read_blob(entry.content.name)
        storage.write_sibling(
            entry.content.name,
            thumbnail_suffix(width),
            resize_to_width(original, width),
        )
    except (StoreError, ValueError):
        logger.exception(
            'Failed to generate %dpx thumbnail for file: ID=%d',
            width,
            entry.id,
        )
        return False
    return True


def handle_job(job: ThumbnailJob, queue: 'JobQueue') -> bool:
    """Process a claimed job and report the outcome to the queue.

    Nothing raised by the job escapes: every failure ends up on the job
    record and in the logs so the consumer loop keeps running.

    Args:
        job: Claimed job.
        queue: Queue the job came from.

    Returns:
        True if the job succeeded.
    """
    message = job.to_message()
    try:
        process_job(message['userId'], message['fileId'])
    except JobValidationError as error:
        logger.warning('Rejected thumbnail job %d: %s', job.id, error)
        queue.fail(job, str(error), retriable=False)
        return False
    except ThumbnailGenerationError as error:
        queue.fail(job, str(error), retriable=True)
        return False
    except Exception as error:
        logger.exception('Unexpected error in thumbnail job %d', job.id)
        queue.fail(job, repr(error), retriable=True)
        return False

    queue.ack(job)
    return True


def run_pending_jobs(
    queue: 'JobQueue | None' = None,
    limit: int | None = None,
) -> WorkerStats:
    """Consume queued jobs until the queue is empty.

    Args:
        queue: Queue to consume, defaults to the configured one.
        limit: Maximum number of jobs to handle.

    Returns:
        Counters of the run.
    """
    if queue is None:
        queue = get_job_queue()

    stats = WorkerStats()
    while limit is None or stats.processed < limit:
        job = queue.dequeue()
        if job is None:
            break

        if handle_job(job, queue):
            stats.succeeded += 1
        else:
            stats.failed += 1
            stats.errors.append(f'job {job.id}: {job.last_error}')

    return stats
