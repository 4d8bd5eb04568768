"""
Main settings file for the files manager.

Settings are split into components living in ``server/settings/components``
and glued together with ``django-split-settings``.
"""

import django_stubs_ext
from split_settings.tools import include

# Monkeypatching Django, so stubs will work for all generics,
# see: https://github.com/typeddjango/django-stubs/tree/master/ext
django_stubs_ext.monkeypatch()

include(
    'components/common.py',
    'components/logging.py',
    'components/caches.py',
    'components/storages.py',
    'components/thumbnails.py',
)
