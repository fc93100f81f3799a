"""Reading image artifacts addressed by URI (local paths, file:// or http(s)://)."""

import os
import threading
from typing import Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import requests

from .error_handling import ensure_success, with_error_handling
from .exceptions import NetworkError
from .logging_config import get_logger

REMOTE_SCHEMES = ("http", "https")

# Thread-local storage for requests sessions
thread_local = threading.local()


def get_http_session() -> requests.Session:
    """Get thread-local requests session."""
    if not hasattr(thread_local, "session"):
        thread_local.session = requests.Session()
    return thread_local.session


def is_remote(uri: str) -> bool:
    return urlparse(uri).scheme in REMOTE_SCHEMES


def local_path(uri: str) -> str:
    """Map a ``file://`` URI or plain path to a filesystem path."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return url2pathname(unquote(parsed.path))
    return uri


class UriBlobReader:
    """
    Blob sizer and URI-to-blob converter.

    Without an injected session each worker thread fetches through its own
    ``requests.Session``.
    """

    def __init__(
        self, session: Optional[requests.Session] = None, timeout: Optional[float] = None
    ):
        self._session = session
        self._timeout = timeout
        self._logger = get_logger("blobs")

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        return get_http_session()

    @with_error_handling
    def read_bytes(self, uri: str) -> bytes:
        """Return the bytes behind ``uri``; unreachable URIs raise ``NetworkError``."""
        if is_remote(uri):
            self._logger.debug(f"Fetching {uri}")
            response = self.session.get(uri, timeout=self._timeout)
            return ensure_success(response, uri).content

        path = local_path(uri)
        try:
            with open(path, "rb") as stream:
                return stream.read()
        except OSError as exc:
            raise NetworkError(f"Cannot read {uri}: {exc}") from exc

    def to_blob(self, uri: str) -> bytes:
        return self.read_bytes(uri)

    def size_of(self, uri: str) -> int:
        """Return the byte length of the artifact at ``uri``."""
        if is_remote(uri):
            return len(self.read_bytes(uri))
        try:
            return os.path.getsize(local_path(uri))
        except OSError as exc:
            raise NetworkError(f"Cannot stat {uri}: {exc}") from exc
