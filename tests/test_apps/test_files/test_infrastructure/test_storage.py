"""Tests for the local content store."""

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from server.apps.files.exceptions import (
    StoreNotFoundError,
    StoreReadError,
    StoreWriteError,
)
from server.apps.files.infrastructure.storage import ContentStore


@pytest.fixture
def store(tmp_path):
    """ContentStore rooted in a temporary directory.

    Returns:
        ContentStore instance.
    """
    return ContentStore(location=str(tmp_path))


def test_create_blob_writes_bytes(store, tmp_path):
    """Test bytes land under a generated name."""
    name = store.create_blob(b'hello')

    assert (tmp_path / name).read_bytes() == b'hello'
    assert len(name) == 32


def test_create_blob_decodes_base64(store):
    """Test base64 text is decoded before writing."""
    name = store.create_blob('aGVsbG8=')

    assert store.read_blob(name) == b'hello'


def test_create_blob_names_are_unique(store):
    """Test identical content never shares a handle."""
    first = store.create_blob(b'same')
    second = store.create_blob(b'same')

    assert first != second


def test_create_blob_in_directory(store, tmp_path):
    """Test blobs can be written inside a folder's directory."""
    directory = store.create_directory('images')

    name = store.create_blob(b'x', directory)

    assert name.startswith('images/')
    assert (tmp_path / name).is_file()


def test_create_directory_is_idempotent(store, tmp_path):
    """Test creating an existing directory succeeds."""
    first = store.create_directory('images')
    second = store.create_directory('images')

    assert first == second == 'images'
    assert (tmp_path / 'images').is_dir()


def test_create_directory_nested(store, tmp_path):
    """Test directories nest under their parent handle."""
    parent = store.create_directory('images')

    child = store.create_directory('2024', parent)

    assert child == 'images/2024'
    assert (tmp_path / 'images' / '2024').is_dir()


def test_create_directory_over_file_fails(store, tmp_path):
    """Test a path taken by a regular file cannot become a directory."""
    (tmp_path / 'taken').write_bytes(b'x')

    with pytest.raises(StoreWriteError):
        store.create_directory('taken')


def test_create_directory_outside_root_fails(store):
    """Test handles cannot escape the store root."""
    with pytest.raises(StoreWriteError):
        store.create_directory('..', '..')


def test_read_blob_missing(store):
    """Test reading an unknown handle."""
    with pytest.raises(StoreNotFoundError):
        store.read_blob('does-not-exist')


def test_read_blob_directory_is_not_found(store):
    """Test a directory handle is not a blob."""
    directory = store.create_directory('images')

    with pytest.raises(StoreNotFoundError):
        store.read_blob(directory)


def test_not_found_is_read_error():
    """Test callers catching read errors also catch missing blobs."""
    assert issubclass(StoreNotFoundError, StoreReadError)


def test_write_sibling_replaces_previous(store, tmp_path):
    """Test siblings are overwritten and no temp files are left."""
    name = store.create_blob(b'original')

    store.write_sibling(name, '_100', b'first')
    sibling = store.write_sibling(name, '_100', b'second')

    assert sibling == f'{name}_100'
    assert store.read_blob(sibling) == b'second'
    assert not list(Path(tmp_path).glob('*.tmp'))


def test_rollback_upload_deletes_blob(store):
    """Test rollback removes the written blob."""
    name = store.create_blob(b'x')

    store.rollback_upload(name)

    assert not store.exists(name)


def test_rollback_upload_missing_blob_does_not_raise(store):
    """Test rollback of an already missing blob is silent."""
    store.rollback_upload('missing')


def _race(count, func):
    barrier = threading.Barrier(count)

    def run(index):
        barrier.wait()
        return func(index)

    with ThreadPoolExecutor(max_workers=count) as executor:
        return list(executor.map(run, range(count)))


def test_create_directory_concurrent(store, tmp_path):
    """Test racing creators of the same directory all succeed."""
    results = _race(8, lambda _: store.create_directory('images'))

    assert set(results) == {'images'}
    assert (tmp_path / 'images').is_dir()


def test_create_blob_concurrent(store):
    """Test racing writers of identical bytes get distinct blobs."""
    names = _race(8, lambda _: store.create_blob(b'same'))

    assert len(set(names)) == 8
    assert all(store.read_blob(name) == b'same' for name in names)


def test_write_sibling_concurrent(store, tmp_path):
    """Test racing sibling writers leave one complete version."""
    name = store.create_blob(b'original')
    payloads = [bytes([index]) * 1024 for index in range(8)]

    _race(8, lambda index: store.write_sibling(name, '_100', payloads[index]))

    assert store.read_blob(f'{name}_100') in payloads
    assert not list(Path(tmp_path).glob('*.tmp'))
