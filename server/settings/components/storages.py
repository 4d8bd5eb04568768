"""Django storage configuration for the local content store.

File bytes live on the local disk under ``FOLDER_PATH``. Blobs get
generated names, folders become directories and image thumbnails are
written next to the original blob.
"""

from typing import Any, Final

from server.settings.components import config

# Root directory of the content store, created on first use
MEDIA_ROOT = config('FOLDER_PATH', default='/tmp/files_manager')  # noqa: S108

# Storage configuration dictionary
# Uses the content store for user files, local storage for static files
STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.files.infrastructure.storage.ContentStore',
    },
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
