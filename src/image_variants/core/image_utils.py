"""Image geometry helpers and the Pillow-backed manipulator and prober."""

import io
import math
import os
import shutil
import tempfile
import threading
import uuid
from typing import Optional, Sequence

from PIL import Image, ImageOps

from .blobs import UriBlobReader
from .exceptions import (
    ConfigurationError,
    DimensionError,
    ManipulationError,
    manipulation_errors,
)
from .logging_config import get_logger
from .models import (
    CropOperation,
    Dimensions,
    ManipulationResult,
    Operation,
    ResizeOperation,
)

# format name -> (Pillow format, file extension)
SAVE_FORMATS = {
    "jpeg": ("JPEG", ".jpg"),
    "png": ("PNG", ".png"),
}


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def center_square_crop(width: int, height: int) -> CropOperation:
    """
    Largest centered square inside a ``width`` x ``height`` image.

    Args:
        width: Source width in pixels
        height: Source height in pixels

    Returns:
        Crop of side ``min(width, height)``; offsets are rounded half away
        from zero, so odd margins favour the right/bottom edge.
    """
    side = min(width, height)
    return CropOperation(
        origin_x=round_half_away((width - side) / 2),
        origin_y=round_half_away((height - side) / 2),
        width=side,
        height=side,
    )


def scaled_resize(width: int, height: int, scale: float) -> ResizeOperation:
    """Resize target of ``width`` x ``height`` scaled by ``scale`` (never below 1px)."""
    return ResizeOperation(
        width=max(1, round_half_away(width * scale)),
        height=max(1, round_half_away(height * scale)),
    )


def jpeg_quality(quality: float) -> int:
    """Map a 0-1 compression quality to Pillow's 1-100 scale."""
    return max(1, min(100, round_half_away(quality * 100)))


def load_image(data: bytes) -> "Image.Image":
    """Decode ``data`` and apply the EXIF orientation."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return ImageOps.exif_transpose(image)


def apply_operation(image: "Image.Image", operation: Operation) -> "Image.Image":
    """
    Apply one geometric operation to an image.

    Raises:
        ManipulationError: If the operation type is unknown
    """
    if isinstance(operation, CropOperation):
        return image.crop(
            (
                operation.origin_x,
                operation.origin_y,
                operation.origin_x + operation.width,
                operation.origin_y + operation.height,
            )
        )
    elif isinstance(operation, ResizeOperation):
        return image.resize(
            (operation.width, operation.height), Image.Resampling.LANCZOS
        )
    else:
        raise ManipulationError(f"Unknown operation: {operation!r}")


class PillowImageManipulator:
    """Image manipulator that writes each artifact into a work directory."""

    def __init__(
        self,
        work_dir: Optional[str] = None,
        blob_reader: Optional[UriBlobReader] = None,
    ):
        self._work_dir = work_dir
        self._owns_work_dir = work_dir is None
        self._work_dir_lock = threading.Lock()
        self._blob_reader = blob_reader or UriBlobReader()
        self._logger = get_logger("manipulator")

    @property
    def work_dir(self) -> str:
        """Artifact directory, created once on first use."""
        with self._work_dir_lock:
            if self._work_dir is None:
                self._work_dir = tempfile.mkdtemp(prefix="image-variants-")
            else:
                os.makedirs(self._work_dir, exist_ok=True)
            return self._work_dir

    def manipulate(
        self,
        uri: str,
        operations: Sequence[Operation],
        quality: float,
        format: str = "jpeg",
    ) -> ManipulationResult:
        """Apply ``operations`` in order and re-encode at ``quality``."""
        if format not in SAVE_FORMATS:
            raise ConfigurationError(f"Unsupported output format: {format}")
        pil_format, extension = SAVE_FORMATS[format]

        data = self._blob_reader.read_bytes(uri)

        with manipulation_errors(f"Manipulating {uri}"):
            image = load_image(data)
            for operation in operations:
                image = apply_operation(image, operation)

            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")

            out_path = os.path.join(self.work_dir, f"{uuid.uuid4().hex}{extension}")
            save_kwargs = {"optimize": True}
            if pil_format == "JPEG":
                save_kwargs["quality"] = jpeg_quality(quality)
            image.save(out_path, format=pil_format, **save_kwargs)

        self._logger.debug(
            f"Wrote {out_path} ({image.width}x{image.height}, quality={quality})"
        )
        return ManipulationResult(uri=out_path, width=image.width, height=image.height)

    def discard(self, uri: str) -> None:
        """Delete an artifact created by this manipulator; other URIs are left alone."""
        if self._work_dir is None:
            return
        path = os.path.abspath(uri)
        if os.path.dirname(path) != os.path.abspath(self._work_dir):
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    def cleanup(self) -> None:
        """Remove the work directory when this manipulator created it."""
        with self._work_dir_lock:
            if self._owns_work_dir and self._work_dir is not None:
                shutil.rmtree(self._work_dir, ignore_errors=True)
                self._work_dir = None


class PillowDimensionProber:
    """Dimension prober backed by Pillow."""

    def __init__(self, blob_reader: Optional[UriBlobReader] = None):
        self._blob_reader = blob_reader or UriBlobReader()

    def dimensions_of(self, uri: str) -> Dimensions:
        """
        Return the displayed width and height of the image at ``uri``.

        Raises:
            DimensionError: If the image cannot be read or decoded
        """
        try:
            data = self._blob_reader.read_bytes(uri)
            image = load_image(data)
            return Dimensions(width=image.width, height=image.height)
        except Exception as exc:  # noqa: BLE001
            raise DimensionError(uri, str(exc)) from exc
