"""Core utilities and shared components for the image variant pipeline."""

from .config import PipelineConfig
from .exceptions import (
    ImageVariantsError,
    ConfigurationError,
    DimensionError,
    ManipulationError,
    NetworkError,
    CompressionBudgetExceeded,
    MissingPresignedURL,
    StorageUploadError,
    OriginAPIError,
    ConfirmError,
)
from .logging_config import get_logger, setup_logger
from .models import (
    CompressedVariant,
    CropOperation,
    Dimensions,
    ManipulationResult,
    PipelineResult,
    ResizeOperation,
    SizeName,
    SizeProfile,
    SourceImage,
    UploadSession,
)
from .profiles import SIZE_PROFILES, get_profile, normalize_sizes

__all__ = [
    "PipelineConfig",
    "ImageVariantsError",
    "ConfigurationError",
    "DimensionError",
    "ManipulationError",
    "NetworkError",
    "CompressionBudgetExceeded",
    "MissingPresignedURL",
    "StorageUploadError",
    "OriginAPIError",
    "ConfirmError",
    "get_logger",
    "setup_logger",
    "CompressedVariant",
    "CropOperation",
    "Dimensions",
    "ManipulationResult",
    "PipelineResult",
    "ResizeOperation",
    "SizeName",
    "SizeProfile",
    "SourceImage",
    "UploadSession",
    "SIZE_PROFILES",
    "get_profile",
    "normalize_sizes",
]
