"""Durable queue for thumbnail jobs.

Producers (uploads) and consumers (the thumbnail worker) only talk to
the ``JobQueue`` interface. The default implementation keeps jobs as
rows of the ``ThumbnailJob`` table so a job survives worker restarts
and becomes visible together with the upload that created it.
"""

import logging
from typing import Final, Protocol, final

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

from server.apps.files.models import JobStatus, ThumbnailJob

logger = logging.getLogger(__name__)

_ERROR_MAX_LENGTH: Final = 1000


class JobQueue(Protocol):
    """Queue operations used by producers and consumers."""

    def enqueue(self, user_id: int, file_id: int) -> int:
        """Queue a job and return its id."""

    def dequeue(self) -> ThumbnailJob | None:
        """Claim the oldest queued job, if any."""

    def ack(self, job: ThumbnailJob) -> None:
        """Mark a claimed job as done."""

    def fail(self, job: ThumbnailJob, reason: str, *, retriable: bool) -> None:
        """Record a failed attempt of a claimed job."""


@final
class DatabaseJobQueue:
    """Job queue stored in the ``ThumbnailJob`` table.

    Delivery is at-least-once: a worker that dies mid-job leaves the
    row in ``processing`` and handlers must be safe to re-run.
    """

    def __init__(self, max_attempts: int | None = None) -> None:
        """Initialize the queue.

        Args:
            max_attempts: Attempts before a retriable failure becomes
                final, defaults to ``THUMBNAIL_JOB_MAX_ATTEMPTS``.
        """
        if max_attempts is None:
            max_attempts = settings.THUMBNAIL_JOB_MAX_ATTEMPTS
        self.max_attempts = max(1, max_attempts)

    def enqueue(self, user_id: int, file_id: int) -> int:
        """Queue a thumbnail job.

        Runs in its own savepoint so a failure does not poison an
        enclosing transaction.

        Args:
            user_id: Owner of the image.
            file_id: Image entry id.

        Returns:
            Id of the queued job.
        """
        with transaction.atomic():
            job = ThumbnailJob.objects.create(
                user_id=user_id,
                file_id=file_id,
            )

        logger.info(
            'Thumbnail job queued: %d (file: %s, user: %s)',
            job.id,
            file_id,
            user_id,
        )
        return job.id

    def dequeue(self) -> ThumbnailJob | None:
        """Claim the oldest queued job.

        Row-level locking with SKIP LOCKED lets several workers poll
        the same table without claiming the same job. This needs a
        database with row locks such as PostgreSQL; SQLite ignores the
        lock, so concurrent workers there may claim one job twice and
        rely on the handler being safe to re-run.

        Returns:
            Claimed job in ``processing`` state, or None if the queue
            is empty.
        """
        with transaction.atomic():
            job = (
                ThumbnailJob.objects.select_for_update(skip_locked=True)
                .filter(status=JobStatus.QUEUED)
                .order_by('id')
                .first()
            )
            if job is None:
                return None

            job.status = JobStatus.PROCESSING
            job.attempts += 1
            job.save(update_fields=['status', 'attempts', 'updated_at'])

        logger.debug('Thumbnail job claimed: %d (attempt %d)', job.id, job.attempts)
        return job

    def ack(self, job: ThumbnailJob) -> None:
        """Mark a job as done.

        Args:
            job: Claimed job.
        """
        job.status = JobStatus.DONE
        job.last_error = ''
        job.save(update_fields=['status', 'last_error', 'updated_at'])
        logger.info('Thumbnail job done: %d', job.id)

    def fail(self, job: ThumbnailJob, reason: str, *, retriable: bool) -> None:
        """Record a failed attempt.

        Retriable failures go back to the queue until ``max_attempts``
        is reached; everything else is final.

        Args:
            job: Claimed job.
            reason: Failure description stored on the job.
            retriable: Whether running the job again could succeed.
        """
        if retriable and job.attempts < self.max_attempts:
            job.status = JobStatus.QUEUED
        else:
            job.status = JobStatus.FAILED
        job.last_error = reason[:_ERROR_MAX_LENGTH]
        job.save(update_fields=['status', 'last_error', 'updated_at'])

        logger.warning(
            'Thumbnail job %d failed (attempt %d/%d, now %s): %s',
            job.id,
            job.attempts,
            self.max_attempts,
            job.status,
            reason,
        )


def get_job_queue() -> JobQueue:
    """Build the configured job queue.

    Returns:
        Instance of ``THUMBNAIL_JOB_QUEUE``.
    """
    queue_class = import_string(settings.THUMBNAIL_JOB_QUEUE)
    return queue_class()
