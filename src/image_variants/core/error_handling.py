# src/image_variants/core/error_handling.py

import functools
import logging

import requests
from PIL import UnidentifiedImageError

from .exceptions import ImageVariantsError, ManipulationError, NetworkError


def with_error_handling(func):
    """
    A decorator to wrap collaborator calls with standardized error handling.

    Pipeline errors pass through untouched. ``requests`` failures become
    ``NetworkError`` and Pillow decoding failures become ``ManipulationError``.
    Anything else is logged and re-raised as is.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + '.' + func.__name__)
        try:
            return func(*args, **kwargs)
        except ImageVariantsError:
            raise
        except Exception as e:
            logger.error(
                f"Error in '{func.__name__}': {e}",
                exc_info=True
            )
            if isinstance(e, requests.RequestException):
                raise NetworkError(f"Network call failed in {func.__name__}: {e}") from e
            if isinstance(e, UnidentifiedImageError):
                raise ManipulationError(f"Failed to identify image in {func.__name__}: {e}") from e
            raise
    return wrapper


def ensure_success(response: requests.Response, uri: str) -> requests.Response:
    """Raise ``NetworkError`` unless ``response`` carries a 2xx status."""
    if not response.ok:
        raise NetworkError(f"Fetching {uri} failed with status {response.status_code}")
    return response
