"""Protocol definitions for the pipeline's external collaborators."""

from typing import Any, Optional, Protocol, Sequence

from .models import (
    AllVariantURLs,
    ConfirmResult,
    Dimensions,
    ManipulationResult,
    Operation,
    SizeName,
    StorageHealth,
    UploadSession,
    VariantURL,
)


class ImageManipulatorProtocol(Protocol):
    """Applies geometric operations and re-encodes an image."""

    def manipulate(
        self,
        uri: str,
        operations: Sequence[Operation],
        quality: float,
        format: str = "jpeg",
    ) -> ManipulationResult:
        """Apply ``operations`` in order and encode at ``quality``."""
        ...

    def discard(self, uri: str) -> None:
        """Release an artifact previously returned by ``manipulate``."""
        ...


class BlobReaderProtocol(Protocol):
    """Reads image artifacts by URI."""

    def size_of(self, uri: str) -> int:
        """Return the byte length of the artifact."""
        ...

    def to_blob(self, uri: str) -> bytes:
        """Return the artifact as bytes."""
        ...


class DimensionProberProtocol(Protocol):
    """Reports the pixel size of an image."""

    def dimensions_of(self, uri: str) -> Dimensions:
        """Return width and height of the image at ``uri``."""
        ...


class OriginClientProtocol(Protocol):
    """Origin API operations used by the pipeline."""

    def request_upload_urls(
        self, file_key: str, sizes: Sequence[SizeName], content_type: str
    ) -> UploadSession:
        """Request presigned upload URLs."""
        ...

    def confirm_upload(
        self, image_id: str, size: Optional[SizeName] = None
    ) -> ConfirmResult:
        """Confirm that the uploaded objects are complete."""
        ...

    def get_file(self, image_id: str, size: SizeName) -> VariantURL:
        """Get a presigned download URL for one size."""
        ...

    def get_file_all_sizes(self, image_id: str) -> AllVariantURLs:
        """Get presigned download URLs for every stored size."""
        ...

    def check_health(self) -> StorageHealth:
        """Check that the origin can reach object storage."""
        ...


class StorageClientProtocol(Protocol):
    """Direct object storage access through presigned URLs."""

    def put_object(self, url: str, body: bytes, content_type: str) -> int:
        """PUT ``body`` to ``url`` and return the HTTP status code."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...
