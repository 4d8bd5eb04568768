"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Local content store (Django file system storage)
- Thumbnail job queue
- Image resizing (Pillow)
- Metadata helpers (MIME type, content decoding)

Keep infrastructure concerns separate from business logic.
"""
