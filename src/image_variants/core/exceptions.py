"""Exception hierarchy for the image variant pipeline."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional


class ImageVariantsError(Exception):
    """Base exception for all image variant pipeline errors."""


class ConfigurationError(ImageVariantsError):
    """Error raised for invalid configuration options or arguments."""


class DimensionError(ImageVariantsError):
    """The pixel dimensions of a source image could not be determined."""

    def __init__(self, uri: str, reason: str = "") -> None:
        self.uri = uri
        self.reason = reason
        message = f"Failed to get image dimensions for {uri}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ManipulationError(ImageVariantsError):
    """The image manipulator failed to produce an artifact."""


class NetworkError(ImageVariantsError):
    """Transport failure on a remote call."""


class CompressionBudgetExceeded(ImageVariantsError):
    """Every quality and scale step was tried without meeting the byte budget."""

    def __init__(self, size: Any, max_bytes: int, last_byte_size: Optional[int] = None):
        self.size = size
        self.max_bytes = max_bytes
        self.last_byte_size = last_byte_size
        limit_mb = max_bytes / 1024 / 1024
        super().__init__(
            f"Image cannot be compressed below {limit_mb:g}MB limit for size '{size}'"
        )


class MissingPresignedURL(ImageVariantsError):
    """The origin did not return an upload URL for a requested size."""

    def __init__(self, size: Any) -> None:
        self.size = size
        super().__init__(f"No presigned URL for {size}")


class StorageUploadError(ImageVariantsError):
    """Object storage rejected a presigned PUT."""

    def __init__(self, size: Any, status: int) -> None:
        self.size = size
        self.status = status
        super().__init__(f"Storage upload failed for {size}: {status}")


class OriginAPIError(ImageVariantsError):
    """The origin API answered with a non-success status."""

    def __init__(self, status: int, message: str = "") -> None:
        self.status = status
        self.message = message or f"Request failed with {status}"
        super().__init__(self.message)


class ConfirmError(OriginAPIError):
    """The origin refused to confirm an upload whose objects are already stored."""

    def __init__(self, image_id: str, status: int, message: str = "") -> None:
        self.image_id = image_id
        super().__init__(status, message)
        self.args = (f"Confirm failed for image {image_id}: {self.message}",)


@contextmanager
def manipulation_errors(operation: str) -> Iterator[None]:
    """Wrap image library failures in ``ManipulationError``."""
    try:
        yield
    except ImageVariantsError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ManipulationError(f"{operation} failed: {exc}") from exc
