"""Request validation for the files API.

JSON bodies and query strings are validated here before any business
logic runs. The first error of a form is what the API reports.
"""

from typing import Any

from django import forms
from django.conf import settings
from django.core.exceptions import ValidationError

from server.apps.files.infrastructure.metadata import (
    decode_content,
    validate_folder_name,
)
from server.apps.files.models import FileKind

_NAME_MAX_LENGTH = 255


class ApiForm(forms.Form):
    """Form whose errors are reported as a single message."""

    def first_error(self) -> str:
        """Get the first validation error message.

        Returns:
            Error message of the first invalid field.
        """
        for errors in self.errors.values():
            return str(errors[0])
        return 'Invalid request'


class UploadForm(ApiForm):
    """Body of ``POST /files``."""

    name = forms.CharField(
        max_length=_NAME_MAX_LENGTH,
        error_messages={
            'required': 'Missing name',
            'max_length': 'Name is too long',
        },
    )
    type = forms.ChoiceField(  # noqa: WPS125
        choices=FileKind.choices,
        error_messages={
            'required': 'Missing or invalid type',
            'invalid_choice': 'Missing or invalid type',
        },
    )
    data = forms.CharField(required=False, strip=False)
    # Accepted as an alias of ``data``
    content = forms.CharField(required=False, strip=False)
    parentId = forms.CharField(required=False)  # noqa: N815
    isPublic = forms.BooleanField(required=False)  # noqa: N815

    def clean(self) -> dict[str, Any]:
        """Check the fields that depend on the entry type.

        Returns:
            Cleaned data with the decoded bytes under ``content_bytes``.
        """
        cleaned_data = super().clean()
        kind = cleaned_data.get('type')
        if kind is None:
            return cleaned_data

        if kind == FileKind.FOLDER:
            name = cleaned_data.get('name')
            if name:
                try:
                    validate_folder_name(name)
                except ValidationError as error:
                    self.add_error('name', error)
            cleaned_data['content_bytes'] = None
            return cleaned_data

        encoded = cleaned_data.get('data') or cleaned_data.get('content')
        if not encoded:
            self.add_error('data', 'Missing data')
            return cleaned_data

        try:
            cleaned_data['content_bytes'] = decode_content(encoded)
        except ValidationError as error:
            self.add_error('data', error)
            return cleaned_data

        if not cleaned_data['content_bytes']:
            self.add_error('data', 'Missing data')
        return cleaned_data

    def upload_kwargs(self) -> dict[str, Any]:
        """Arguments for ``upload_file``.

        Returns:
            Keyword arguments built from the cleaned data.
        """
        return {
            'name': self.cleaned_data['name'],
            'kind': self.cleaned_data['type'],
            'content': self.cleaned_data['content_bytes'],
            'parent_id': self.cleaned_data['parentId'] or None,
            'is_public': self.cleaned_data['isPublic'],
        }


class ListForm(ApiForm):
    """Parameters of ``GET /files``."""

    parentId = forms.CharField(required=False)  # noqa: N815
    page = forms.CharField(required=False)

    def clean_page(self) -> int:
        """Parse the page number, anything unparsable is page 0.

        Returns:
            Non-negative page number.
        """
        try:
            page = int(self.cleaned_data['page'])
        except (TypeError, ValueError):
            return 0
        return max(page, 0)


class DataForm(ApiForm):
    """Parameters of ``GET /files/<id>/data``."""

    size = forms.TypedChoiceField(
        required=False,
        coerce=int,
        empty_value=None,
        error_messages={'invalid_choice': 'Invalid size'},
    )

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Offer the configured thumbnail widths as sizes."""
        super().__init__(*args, **kwargs)
        self.fields['size'].choices = [  # type: ignore[attr-defined]
            (str(width), str(width))
            for width in settings.THUMBNAIL_WIDTHS
        ]
