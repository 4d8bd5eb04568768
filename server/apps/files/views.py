"""HTTP views for the files API.

Every view speaks JSON; errors are reported as ``{"error": message}``.
"""

import json
import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError, connection
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from server.apps.files.exceptions import (
    InvalidParentError,
    StoreNotFoundError,
    StoreReadError,
    StoreWriteError,
)
from server.apps.files.forms import DataForm, ListForm, UploadForm
from server.apps.files.logic.access_operations import (
    get_token_cache,
    token_required,
)
from server.apps.files.logic.catalog_operations import (
    get_entry,
    get_public_entry,
    list_page,
    normalize_parent_id,
    publish_entry,
    unpublish_entry,
)
from server.apps.files.logic.file_operations import (
    read_file_content,
    upload_file,
)
from server.apps.files.models import File

User = get_user_model()
logger = logging.getLogger(__name__)

_STATUS_PROBE_KEY = 'files_manager_status_probe'


def _error(message: str, status: int) -> JsonResponse:
    return JsonResponse({'error': message}, status=status)


def _not_found() -> JsonResponse:
    return _error('Not found', 404)


def _json_body(request: HttpRequest) -> dict[str, Any]:
    """Decode a JSON object body.

    Args:
        request: Incoming request.

    Returns:
        Decoded object, empty for an empty body.

    Raises:
        ValidationError: If the body is not a JSON object.
    """
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise ValidationError('Invalid JSON body') from error
    if not isinstance(payload, dict):
        raise ValidationError('Invalid JSON body')
    return payload


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@token_required
def files_collection(request: HttpRequest) -> HttpResponse:
    """``POST /files`` creates an entry, ``GET /files`` lists a page."""
    if request.method == 'POST':
        return _upload(request)
    return _index(request)


def _upload(request: HttpRequest) -> HttpResponse:
    try:
        form = UploadForm(_json_body(request))
    except ValidationError as error:
        return _error(error.messages[0], 400)

    if not form.is_valid():
        return _error(form.first_error(), 400)

    try:
        entry = upload_file(request.files_user, **form.upload_kwargs())  # type: ignore[attr-defined]
    except ValidationError as error:
        return _error(error.messages[0], 400)
    except InvalidParentError as error:
        return _error(error.reason, 400)
    except StoreWriteError:
        logger.exception('Upload failed in content store')
        return _error('Failed to store file', 500)

    return JsonResponse(entry.to_dict(), status=201)


def _index(request: HttpRequest) -> HttpResponse:
    # Query string wins, a JSON body is accepted for older clients
    try:
        params = _json_body(request)
    except ValidationError:
        params = {}
    params.update(request.GET.dict())

    form = ListForm(params)
    if not form.is_valid():
        return _error(form.first_error(), 400)
    page = form.cleaned_data['page']

    try:
        parent_id = normalize_parent_id(form.cleaned_data.get('parentId'))
    except InvalidParentError:
        return JsonResponse([], safe=False)

    entries = list_page(request.files_user, parent_id, page)  # type: ignore[attr-defined]
    return JsonResponse([entry.to_dict() for entry in entries], safe=False)


@require_GET
@token_required
def file_detail(request: HttpRequest, file_id: int) -> HttpResponse:
    """``GET /files/<id>``."""
    try:
        entry = get_entry(request.files_user, file_id)  # type: ignore[attr-defined]
    except File.DoesNotExist:
        return _not_found()
    return JsonResponse(entry.to_dict())


@csrf_exempt
@require_http_methods(['PUT'])
@token_required
def file_publish(request: HttpRequest, file_id: int) -> HttpResponse:
    """``PUT /files/<id>/publish``."""
    try:
        entry = publish_entry(request.files_user, file_id)  # type: ignore[attr-defined]
    except File.DoesNotExist:
        return _not_found()
    return JsonResponse(entry.to_dict())


@csrf_exempt
@require_http_methods(['PUT'])
@token_required
def file_unpublish(request: HttpRequest, file_id: int) -> HttpResponse:
    """``PUT /files/<id>/unpublish``."""
    try:
        entry = unpublish_entry(request.files_user, file_id)  # type: ignore[attr-defined]
    except File.DoesNotExist:
        return _not_found()
    return JsonResponse(entry.to_dict())


@require_GET
def file_data(request: HttpRequest, file_id: int) -> HttpResponse:
    """``GET /files/<id>/data`` serves raw bytes.

    Only public entries are served, no token is needed. ``?size=``
    selects a thumbnail of an image.
    """
    form = DataForm(request.GET)
    if not form.is_valid():
        return _error(form.first_error(), 400)

    try:
        entry = get_public_entry(file_id)
    except File.DoesNotExist:
        return _not_found()

    try:
        content = read_file_content(entry, form.cleaned_data['size'])
    except ValidationError as error:
        return _error(error.messages[0], 400)
    except StoreNotFoundError:
        return _not_found()
    except StoreReadError:
        logger.exception('Failed to read content of file: ID=%d', file_id)
        return _error('Failed to read file', 500)

    return HttpResponse(content, content_type=entry.get_content_type())


@require_GET
def status(request: HttpRequest) -> HttpResponse:
    """``GET /status`` reports whether the backends are reachable."""
    try:
        connection.ensure_connection()
    except DatabaseError:
        logger.exception('Database is not reachable')
        db_alive = False
    else:
        db_alive = True

    try:
        cache = get_token_cache()
        cache.set(_STATUS_PROBE_KEY, 1, timeout=5)
        cache_alive = cache.get(_STATUS_PROBE_KEY) == 1
    except Exception:
        logger.exception('Token cache is not reachable')
        cache_alive = False

    return JsonResponse({'db': db_alive, 'cache': cache_alive})


@require_GET
def stats(request: HttpRequest) -> HttpResponse:
    """``GET /stats`` counts users and catalog entries."""
    return JsonResponse({
        'users': User.objects.count(),
        'files': File.objects.count(),
    })


@require_GET
@token_required
def users_me(request: HttpRequest) -> HttpResponse:
    """``GET /users/me`` describes the authenticated user."""
    user = request.files_user  # type: ignore[attr-defined]
    return JsonResponse({'id': user.id, 'email': user.email})
