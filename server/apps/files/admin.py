"""Django admin configuration for files app."""


from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.files.models import File, ThumbnailJob


@admin.register(File)
class FileAdmin(admin.ModelAdmin[File]):
    """Admin interface for File model."""

    list_display = [
        'name',
        'kind',
        'user',
        'parent_display',
        'is_public',
        'created_at',
    ]

    list_filter = [
        'kind',
        'is_public',
        'created_at',
    ]

    search_fields = [
        'name',
        'user__username',
    ]

    readonly_fields = [
        'user',
        'kind',
        'parent',
        'content',
        'directory',
        'created_at',
    ]

    fieldsets = (
        ('Entry', {
            'fields': ('name', 'kind', 'user', 'parent', 'is_public'),
        }),
        ('Storage', {
            'fields': ('content', 'directory'),
        }),
        ('Timestamps', {
            'fields': ('created_at',),
        }),
    )

    def parent_display(self, obj: File) -> str:
        """Display parent folder name.

        Args:
            obj: File instance.

        Returns:
            Parent name, or '/' for root entries.
        """
        if obj.parent is None:
            return '/'
        return obj.parent.name
    parent_display.short_description = 'Parent'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user', 'parent')


@admin.register(ThumbnailJob)
class ThumbnailJobAdmin(admin.ModelAdmin[ThumbnailJob]):
    """Admin interface for ThumbnailJob model."""

    list_display = [
        'id',
        'file_id',
        'user_id',
        'status',
        'attempts',
        'updated_at',
    ]

    list_filter = [
        'status',
    ]

    search_fields = [
        'last_error',
    ]

    readonly_fields = [
        'user_id',
        'file_id',
        'attempts',
        'last_error',
        'created_at',
        'updated_at',
    ]
