"""Cache settings.

Session tokens are issued by the authentication service and stored in
this cache as ``auth_<token> -> user id``. Production points the cache
at Redis (``django.core.cache.backends.redis.RedisCache``), local
development and tests use the in-memory backend.
"""

from typing import Any, Final

from server.settings.components import config

CACHES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': config(
            'TOKEN_CACHE_BACKEND',
            default='django.core.cache.backends.locmem.LocMemCache',
        ),
        'LOCATION': config(
            'TOKEN_CACHE_LOCATION',
            default='files-manager-tokens',
        ),
    },
}

# Cache alias holding session tokens
TOKEN_CACHE_ALIAS = config('TOKEN_CACHE_ALIAS', default='default')
