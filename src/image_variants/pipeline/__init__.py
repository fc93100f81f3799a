"""Compression, upload and retrieval stages of the image variant pipeline."""

from .compression import CompressionEngine, compress_image
from .retrieval import ImageRetrievalService
from .upload import (
    UploadOrchestrator,
    upload_gallery_image,
    upload_image,
    upload_profile_picture,
)

__all__ = [
    "CompressionEngine",
    "compress_image",
    "ImageRetrievalService",
    "UploadOrchestrator",
    "upload_image",
    "upload_profile_picture",
    "upload_gallery_image",
]
