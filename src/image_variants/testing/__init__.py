"""Testing utilities and fakes for the image variant pipeline."""

from .fakes import (
    FakeBlobReader,
    FakeDimensionProber,
    FakeImageManipulator,
    FakeLogger,
    FakeOriginClient,
    FakeStorageClient,
    ManipulationCall,
    create_test_image,
    setup_fake_pipeline,
    write_test_image,
)

__all__ = [
    "FakeBlobReader",
    "FakeDimensionProber",
    "FakeImageManipulator",
    "FakeLogger",
    "FakeOriginClient",
    "FakeStorageClient",
    "ManipulationCall",
    "create_test_image",
    "setup_fake_pipeline",
    "write_test_image",
]
