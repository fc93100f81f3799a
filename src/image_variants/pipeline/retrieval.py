"""Read-only access to previously uploaded variants."""

from typing import Optional, Union

from ..core.exceptions import ConfigurationError
from ..core.models import AllVariantURLs, SizeName, StorageHealth, VariantURL
from ..core.observability import StructuredLogger
from ..core.profiles import parse_size
from ..core.protocols import LoggerProtocol, OriginClientProtocol


class ImageRetrievalService:
    """Fetches presigned download URLs from the origin. Errors propagate unchanged."""

    def __init__(
        self, origin: OriginClientProtocol, logger: Optional[LoggerProtocol] = None
    ):
        self._origin = origin
        self._logger = logger or StructuredLogger("retrieval")

    def get_variant_url(
        self, image_id: str, size: Union[str, SizeName]
    ) -> VariantURL:
        """Presigned download URL for one size of ``image_id``."""
        size_name = parse_size(size)
        self._logger.debug(f"Fetching {size_name.value} URL for image {image_id}")
        return self._origin.get_file(_require_id(image_id), size_name)

    def get_all_variant_urls(self, image_id: str) -> AllVariantURLs:
        """Presigned download URLs for every stored size of ``image_id``."""
        self._logger.debug(f"Fetching all URLs for image {image_id}")
        return self._origin.get_file_all_sizes(_require_id(image_id))

    def check_storage_health(self) -> StorageHealth:
        return self._origin.check_health()


def _require_id(image_id: str) -> str:
    if not image_id or not image_id.strip():
        raise ConfigurationError("image_id must not be empty")
    return image_id.strip()
