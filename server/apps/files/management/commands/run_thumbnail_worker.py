"""Management command to run the thumbnail worker."""

import logging
import time
from typing import Any, Final, final, override

from django.conf import settings
from django.core.management.base import BaseCommand

from server.apps.files.infrastructure.job_queue import get_job_queue
from server.apps.files.logic.thumbnail_operations import run_pending_jobs

_DEFAULT_BATCH_SIZE: Final = 100

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Consume thumbnail jobs and write resized image variants."""

    help = 'Generate thumbnails for uploaded images'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--once',
            action='store_true',
            help='Drain the queue once and exit instead of polling',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max jobs per batch (default: {_DEFAULT_BATCH_SIZE})',
        )
        parser.add_argument(
            '--poll-interval',
            type=float,
            default=None,
            help='Seconds to sleep when the queue is empty '
                 '(default: from settings)',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the worker.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        batch_size = options['batch_size']
        poll_interval = options['poll_interval']
        if poll_interval is None:
            poll_interval = settings.THUMBNAIL_POLL_INTERVAL

        queue = get_job_queue()

        if options['once']:
            self._run_batch(queue, batch_size, report_empty=True)
            return

        self.stdout.write(
            self.style.SUCCESS(
                f'Thumbnail worker started (poll every {poll_interval}s)',
            ),
        )
        try:
            while True:
                if not self._run_batch(queue, batch_size):
                    time.sleep(poll_interval)
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING('\nShutting down...'))

    def _run_batch(
        self,
        queue: Any,
        batch_size: int,
        *,
        report_empty: bool = False,
    ) -> int:
        stats = run_pending_jobs(queue, limit=batch_size)
        for error in stats.errors:
            self.stderr.write(f'Failed {error}')

        if stats.processed or report_empty:
            logger.info(
                'Thumbnail batch finished: %d succeeded, %d failed',
                stats.succeeded,
                stats.failed,
            )
            self.stdout.write(
                self.style.SUCCESS(
                    f'Processed {stats.processed} jobs, '
                    f'{stats.failed} failed',
                ),
            )
        return stats.processed
