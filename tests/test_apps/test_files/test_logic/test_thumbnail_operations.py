"""Tests for thumbnail job processing."""

import io
from unittest.mock import patch

import pytest
from PIL import Image

from server.apps.files.exceptions import (
    JobValidationError,
    ThumbnailGenerationError,
)
from server.apps.files.logic.file_operations import upload_file
from server.apps.files.logic.thumbnail_operations import (
    process_job,
    run_pending_jobs,
)
from server.apps.files.models import FileKind, JobStatus, ThumbnailJob


def _width(content):
    return Image.open(io.BytesIO(content)).size[0]


@pytest.fixture
def image_entry(user, content_store, job_queue, png_bytes):
    """Uploaded 800px wide PNG with its queued job.

    Returns:
        Image File instance.
    """
    return upload_file(user, 'photo.png', FileKind.IMAGE, png_bytes, queue=job_queue)


@pytest.mark.django_db
def test_process_job_writes_all_widths(user, content_store, image_entry):
    """Test every configured width is written next to the original."""
    result = process_job(user.id, image_entry.id)

    assert result.produced == (500, 250, 100)
    assert not result.failed
    handle = image_entry.content.name
    for width in (500, 250, 100):
        assert _width(content_store.read_blob(f'{handle}_{width}')) == width


@pytest.mark.django_db
def test_process_job_is_idempotent(user, content_store, image_entry):
    """Test re-running a job overwrites the same siblings."""
    process_job(user.id, image_entry.id)
    first = content_store.read_blob(f'{image_entry.content.name}_250')

    process_job(user.id, image_entry.id)

    assert content_store.read_blob(f'{image_entry.content.name}_250') == first


@pytest.mark.django_db
def test_process_job_custom_widths(user, content_store, image_entry):
    """Test widths can be passed explicitly."""
    result = process_job(user.id, image_entry.id, widths=[50])

    assert result.produced == (50,)


@pytest.mark.django_db
@pytest.mark.parametrize('kind', [FileKind.FILE, FileKind.FOLDER])
def test_process_job_non_image_is_noop(user, content_store, kind):
    """Test folders and files complete without output."""
    content = None if kind == FileKind.FOLDER else b'plain'
    entry = upload_file(user, 'entry', kind, content)

    result = process_job(user.id, entry.id)

    assert result.skipped
    assert not result.produced


@pytest.mark.django_db
@pytest.mark.parametrize(('user_id', 'file_id', 'message'), [
    (None, 1, 'Missing userId'),
    (1, None, 'Missing fileId'),
    (1, 99999, 'File not found'),
])
def test_process_job_invalid_message(user_id, file_id, message):
    """Test malformed jobs are rejected."""
    with pytest.raises(JobValidationError, match=message):
        process_job(user_id, file_id)


@pytest.mark.django_db
def test_process_job_owner_mismatch(other_user, image_entry):
    """Test a job naming the wrong owner is rejected."""
    with pytest.raises(JobValidationError, match='File not found'):
        process_job(other_user.id, image_entry.id)


@pytest.mark.django_db
def test_process_job_partial_failure(user, content_store, image_entry):
    """Test one failing width does not stop the others."""
    original_resize = Image.Image.resize

    def flaky_resize(image, size, *args, **kwargs):
        if size[0] == 250:
            raise ValueError('resize failed')
        return original_resize(image, size, *args, **kwargs)

    with patch.object(Image.Image, 'resize', flaky_resize):
        result = process_job(user.id, image_entry.id)

    assert result.produced == (500, 100)
    assert result.failed == (250,)


@pytest.mark.django_db
def test_process_job_corrupt_image(user, content_store, job_queue):
    """Test an image whose bytes cannot be decoded fails as a whole."""
    entry = upload_file(user, 'broken.png', FileKind.IMAGE, b'not a png', queue=job_queue)

    with pytest.raises(ThumbnailGenerationError) as exc_info:
        process_job(user.id, entry.id)

    assert exc_info.value.failed_widths == [500, 250, 100]


@pytest.mark.django_db
def test_run_pending_jobs_drains_queue(content_store, job_queue, image_entry):
    """Test the consumer acknowledges successful jobs."""
    stats = run_pending_jobs(job_queue)

    assert stats.succeeded == 1
    assert stats.failed == 0
    assert ThumbnailJob.objects.get().status == JobStatus.DONE


@pytest.mark.django_db
def test_run_pending_jobs_survives_bad_jobs(content_store, job_queue, image_entry):
    """Test invalid jobs are recorded and the next job still runs."""
    bad_job_id = job_queue.enqueue(user_id=image_entry.user_id, file_id=99999)
    job_queue.enqueue(user_id=image_entry.user_id, file_id=image_entry.id)

    stats = run_pending_jobs(job_queue)

    assert stats.succeeded == 2
    assert stats.failed == 1
    bad_job = ThumbnailJob.objects.get(id=bad_job_id)
    assert bad_job.status == JobStatus.FAILED
    assert bad_job.last_error == 'File not found'
    assert stats.errors == [f'job {bad_job_id}: File not found']


@pytest.mark.django_db
def test_run_pending_jobs_retries_generation_errors(user, content_store, job_queue):
    """Test generation failures are retried while attempts remain."""
    entry = upload_file(user, 'broken.png', FileKind.IMAGE, b'not a png', queue=job_queue)
    job_queue.max_attempts = 2

    stats = run_pending_jobs(job_queue)

    assert stats.failed == 2
    job = ThumbnailJob.objects.get(file_id=entry.id)
    assert job.status == JobStatus.FAILED
    assert job.attempts == 2


@pytest.mark.django_db
def test_run_pending_jobs_limit(content_store, job_queue, image_entry):
    """Test the consumer stops after ``limit`` jobs."""
    job_queue.enqueue(user_id=image_entry.user_id, file_id=image_entry.id)

    stats = run_pending_jobs(job_queue, limit=1)

    assert stats.processed == 1
    assert ThumbnailJob.objects.filter(status=JobStatus.QUEUED).count() == 1


@pytest.mark.django_db
def test_process_job_oversized_image(user, content_store, image_entry, monkeypatch):
    """Test oversized images fail every width without escaping the loop."""
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 1000)

    with pytest.raises(ThumbnailGenerationError) as exc_info:
        process_job(user.id, image_entry.id)

    assert exc_info.value.failed_widths == [500, 250, 100]


@pytest.mark.django_db
def test_run_pending_jobs_uses_job_message(content_store, job_queue, image_entry):
    """Test the consumer processes the ids carried by the job message."""
    job = ThumbnailJob.objects.get()

    with patch(
        'server.apps.files.logic.thumbnail_operations.process_job',
    ) as process_mock:
        run_pending_jobs(job_queue)

    process_mock.assert_called_once_with(
        job.to_message()['userId'],
        job.to_message()['fileId'],
    )
