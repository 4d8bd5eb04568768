"""Business logic layer for files app.

This package contains all business logic for the catalog:
- Uploads of folders, files and images
- Catalog lookups, listing and publishing
- Session token resolution
- Thumbnail job processing

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
