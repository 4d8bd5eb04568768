"""Resolve session tokens to users.

Tokens are issued and expired by the authentication service, which
stores ``auth_<token> -> user id`` in the token cache. This module only
reads that mapping.
"""

import functools
import logging
from collections.abc import Callable
from typing import Any, Final

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import caches
from django.core.cache.backends.base import BaseCache
from django.http import HttpRequest, HttpResponse, JsonResponse

User = get_user_model()
logger = logging.getLogger(__name__)

TOKEN_HEADER: Final = 'X-Token'
_TOKEN_KEY_PREFIX: Final = 'auth_'

_View = Callable[..., HttpResponse]


def get_token_cache() -> BaseCache:
    """Get the cache holding session tokens.

    Returns:
        Cache configured as ``TOKEN_CACHE_ALIAS``.
    """
    return caches[settings.TOKEN_CACHE_ALIAS]


def token_cache_key(token: str) -> str:
    """Build the cache key of a session token.

    Args:
        token: Session token.

    Returns:
        Cache key (e.g., 'auth_<token>').
    """
    return f'{_TOKEN_KEY_PREFIX}{token}'


def resolve_user(token: str | None) -> Any | None:
    """Resolve a session token to an active user.

    Args:
        token: Token sent by the client, may be missing.

    Returns:
        User instance, or None if the token is missing, unknown or
        points to a user that no longer exists.
    """
    if not token:
        return None

    user_id = get_token_cache().get(token_cache_key(token))
    if user_id is None:
        logger.debug('Unknown session token')
        return None

    try:
        return User.objects.get(pk=user_id, is_active=True)
    except (User.DoesNotExist, ValueError, TypeError):
        logger.warning('Session token points to unknown user: %s', user_id)
        return None


def get_request_user(request: HttpRequest) -> Any | None:
    """Resolve the user of a request from its token header.

    Args:
        request: Incoming request.

    Returns:
        User instance or None.
    """
    return resolve_user(request.headers.get(TOKEN_HEADER))


def token_required(view: _View) -> _View:
    """Reject requests without a valid session token.

    The resolved user is stored as ``request.files_user``.

    Args:
        view: View function to protect.

    Returns:
        Wrapped view answering 401 for unauthenticated requests.
    """
    @functools.wraps(view)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        user = get_request_user(request)
        if user is None:
            return JsonResponse({'error': 'Unauthorized'}, status=401)
        request.files_user = user  # type: ignore[attr-defined]
        return view(request, *args, **kwargs)

    return wrapper
