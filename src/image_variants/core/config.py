"""Runtime configuration for the origin API and the local work directory."""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .exceptions import ConfigurationError
from .profiles import JPEG_CONTENT_TYPE

DEFAULT_API_PREFIX = "/api/v0/files"


class PipelineConfig(BaseModel):
    """Configuration for talking to the origin and producing variants."""

    api_base_url: str = ""
    api_prefix: str = DEFAULT_API_PREFIX
    auth_token: Optional[str] = None
    request_timeout: Optional[float] = None
    work_dir: Optional[str] = None
    content_type: str = JPEG_CONTENT_TYPE
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    debug: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> "PipelineConfig":
        """
        Build a configuration from environment variables.

        Environment Variables:
            IMAGE_VARIANTS_API_URL: Origin base URL
            IMAGE_VARIANTS_API_PREFIX: Path prefix of the files API
            IMAGE_VARIANTS_AUTH_TOKEN: Bearer token sent to the origin
            IMAGE_VARIANTS_TIMEOUT: Request timeout in seconds
            IMAGE_VARIANTS_WORK_DIR: Directory for intermediate artifacts

        Keyword arguments that are not None take precedence over the environment.
        """
        values: Dict[str, Any] = {
            "api_base_url": os.getenv("IMAGE_VARIANTS_API_URL", ""),
            "api_prefix": os.getenv("IMAGE_VARIANTS_API_PREFIX", DEFAULT_API_PREFIX),
            "auth_token": os.getenv("IMAGE_VARIANTS_AUTH_TOKEN") or None,
            "work_dir": os.getenv("IMAGE_VARIANTS_WORK_DIR") or None,
        }

        timeout = os.getenv("IMAGE_VARIANTS_TIMEOUT")
        if timeout:
            try:
                values["request_timeout"] = float(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"IMAGE_VARIANTS_TIMEOUT must be a number, got '{timeout}'"
                )

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def api_url(self, path: str) -> str:
        """Join the base URL, API prefix and ``path``."""
        prefix = "/" + self.api_prefix.strip("/") if self.api_prefix.strip("/") else ""
        return f"{self.api_base_url.rstrip('/')}{prefix}/{path.lstrip('/')}".rstrip("/")

    def origin_headers(self) -> Dict[str, str]:
        """Headers sent with every origin call."""
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        headers.update(self.extra_headers)
        return headers
