"""Thumbnail pipeline and listing settings."""

from decouple import Csv

from server.settings.components import config

# Thumbnail widths in pixels, produced in descending order
THUMBNAIL_WIDTHS = tuple(
    config('THUMBNAIL_WIDTHS', cast=Csv(int), default='500,250,100'),
)

# Job queue backend used by uploads and the worker
THUMBNAIL_JOB_QUEUE = config(
    'THUMBNAIL_JOB_QUEUE',
    default='server.apps.files.infrastructure.job_queue.DatabaseJobQueue',
)

# Attempts per job; 1 means a failed job is never retried
THUMBNAIL_JOB_MAX_ATTEMPTS = config(
    'THUMBNAIL_JOB_MAX_ATTEMPTS',
    cast=int,
    default=1,
)

# Seconds the worker sleeps when the queue is empty
THUMBNAIL_POLL_INTERVAL = config(
    'THUMBNAIL_POLL_INTERVAL',
    cast=float,
    default=2.0,
)

# Entries per page of the listing endpoint
FILES_PAGE_SIZE = config('FILES_PAGE_SIZE', cast=int, default=20)
