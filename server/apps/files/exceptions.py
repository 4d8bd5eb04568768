"""Exceptions for files app."""


class InvalidParentError(Exception):
    """Raised when an entry's parent is missing or not a folder."""

    def __init__(self, parent_id: object, reason: str) -> None:
        """Initialize InvalidParentError.

        Args:
            parent_id: Parent id supplied by the caller.
            reason: Client facing explanation.
        """
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(reason)


class StoreError(Exception):
    """Base class for content store failures."""

    def __init__(self, name: str, message: str) -> None:
        """Initialize StoreError.

        Args:
            name: Storage name the operation was working on.
            message: Description of the failure.
        """
        self.name = name
        super().__init__(f'{message}: {name}')


class StoreWriteError(StoreError):
    """Raised when bytes or directories cannot be written."""

    def __init__(self, name: str) -> None:
        """Initialize StoreWriteError.

        Args:
            name: Storage name that could not be written.
        """
        super().__init__(name, 'Failed to write to content store')


class StoreReadError(StoreError):
    """Raised when stored bytes cannot be read."""

    def __init__(self, name: str, message: str = 'Failed to read from content store') -> None:
        """Initialize StoreReadError.

        Args:
            name: Storage name that could not be read.
            message: Description of the failure.
        """
        super().__init__(name, message)


class StoreNotFoundError(StoreReadError):
    """Raised when a handle does not resolve to a stored blob."""

    def __init__(self, name: str) -> None:
        """Initialize StoreNotFoundError.

        Args:
            name: Storage name that does not exist.
        """
        super().__init__(name, 'Blob not found in content store')


class JobValidationError(Exception):
    """Raised for malformed, stale or forged thumbnail jobs.

    Never retried: the job cannot succeed by running it again.
    """

    def __init__(
        self,
        reason: str,
        user_id: int | None = None,
        file_id: int | None = None,
    ) -> None:
        """Initialize JobValidationError.

        Args:
            reason: Why the job was rejected.
            user_id: User id carried by the job.
            file_id: File id carried by the job.
        """
        self.reason = reason
        self.user_id = user_id
        self.file_id = file_id
        super().__init__(reason)


class ThumbnailGenerationError(Exception):
    """Raised when no thumbnail width could be produced for an image."""

    def __init__(self, file_id: int, failed_widths: list[int]) -> None:
        """Initialize ThumbnailGenerationError.

        Args:
            file_id: Image entry id.
            failed_widths: Widths that failed.
        """
        self.file_id = file_id
        self.failed_widths = failed_widths
        widths = ', '.join(str(width) for width in failed_widths)
        super().__init__(
            f'Thumbnail generation failed for file {file_id} '
            f'(widths: {widths})',
        )
