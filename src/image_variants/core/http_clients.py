"""HTTP clients for the origin files API and presigned object storage."""

from typing import Any, Dict, Optional, Sequence

import requests

from .blobs import get_http_session
from .config import PipelineConfig
from .error_handling import with_error_handling
from .exceptions import ConfirmError, OriginAPIError
from .logging_config import get_logger
from .models import (
    AllVariantURLs,
    ConfirmResult,
    SizeName,
    StorageHealth,
    UploadSession,
    VariantURL,
)


class OriginAPIClient:
    """
    Client for the origin's files API.

    Every call raises ``OriginAPIError`` on a non-2xx response and
    ``NetworkError`` on transport failures. Nothing is retried.
    """

    def __init__(
        self, config: PipelineConfig, session: Optional[requests.Session] = None
    ):
        self._config = config
        self._session = session
        self._logger = get_logger("origin")

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        return get_http_session()

    @with_error_handling
    def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Any:
        url = self._config.api_url(path)
        self._logger.debug(f"{method} {url}")
        response = self.session.request(
            method,
            url,
            json=payload,
            headers=self._config.origin_headers(),
            timeout=self._config.request_timeout,
        )

        if not response.ok:
            raise OriginAPIError(response.status_code, response.text)

        if response.status_code == 204:
            return None

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            return response.json()
        return response.text

    def request_upload_urls(
        self, file_key: str, sizes: Sequence[SizeName], content_type: str
    ) -> UploadSession:
        """POST ``upload`` and return the presigned upload session."""
        data = self._request(
            "POST",
            "upload",
            {
                "fileKey": file_key,
                "sizes": [SizeName(size).value for size in sizes],
                "contentType": content_type,
            },
        )
        return UploadSession.model_validate(data)

    def confirm_upload(
        self, image_id: str, size: Optional[SizeName] = None
    ) -> ConfirmResult:
        """POST ``confirm``; without ``size`` every size of the image is confirmed."""
        payload: Dict[str, Any] = {"imageId": image_id}
        if size is not None:
            payload["size"] = SizeName(size).value
        try:
            data = self._request("POST", "confirm", payload)
        except OriginAPIError as exc:
            raise ConfirmError(image_id, exc.status, exc.message) from exc
        return ConfirmResult.model_validate(data)

    def get_file(self, image_id: str, size: SizeName) -> VariantURL:
        """GET ``{image_id}/{size}``."""
        data = self._request("GET", f"{image_id}/{SizeName(size).value}")
        return VariantURL.model_validate(data)

    def get_file_all_sizes(self, image_id: str) -> AllVariantURLs:
        """GET ``{image_id}``."""
        data = self._request("GET", image_id)
        return AllVariantURLs.model_validate(data)

    def check_health(self) -> StorageHealth:
        """GET ``health``."""
        data = self._request("GET", "health")
        return StorageHealth.model_validate(data)


class PresignedStorageClient:
    """PUTs blobs straight to object storage. No auth headers are sent."""

    def __init__(
        self, session: Optional[requests.Session] = None, timeout: Optional[float] = None
    ):
        self._session = session
        self._timeout = timeout
        self._logger = get_logger("storage")

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        return get_http_session()

    @with_error_handling
    def put_object(self, url: str, body: bytes, content_type: str) -> int:
        """PUT ``body`` to the presigned ``url`` and return the HTTP status."""
        self._logger.debug(f"PUT {len(body)} bytes to {url.split('?', 1)[0]}")
        response = self.session.put(
            url,
            data=body,
            headers={"Content-Type": content_type},
            timeout=self._timeout,
        )
        return response.status_code
