"""Shared data models for the image variant pipeline."""

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class SizeName(str, Enum):
    """Closed set of variant sizes."""

    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"

    def __str__(self) -> str:
        return self.value


class Dimensions(BaseModel):
    """Pixel width and height."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)


class SizeProfile(BaseModel):
    """Static quality, geometry and byte budget for one variant size."""

    model_config = ConfigDict(frozen=True)

    quality: float = Field(gt=0, le=1)
    max_bytes: int = Field(gt=0)
    scale: Optional[float] = Field(default=None, gt=0, le=1)
    fixed_dimensions: Optional[Dimensions] = None

    @model_validator(mode="after")
    def _single_geometry(self) -> "SizeProfile":
        if self.scale is not None and self.fixed_dimensions is not None:
            raise ValueError("a size profile uses either scale or fixed_dimensions")
        return self


class SourceImage(BaseModel):
    """The caller's image; never mutated during a run."""

    model_config = ConfigDict(frozen=True)

    uri: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class CropOperation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["crop"] = "crop"
    origin_x: int = Field(ge=0)
    origin_y: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class ResizeOperation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["resize"] = "resize"
    width: int = Field(gt=0)
    height: int = Field(gt=0)


Operation = Union[CropOperation, ResizeOperation]


class ManipulationResult(BaseModel):
    """Artifact returned by the image manipulator."""

    model_config = ConfigDict(frozen=True)

    uri: str
    width: int
    height: int


class CompressedVariant(BaseModel):
    """One compressed derivative, consumed once by the uploader."""

    model_config = ConfigDict(frozen=True)

    size: SizeName
    uri: str
    width: int
    height: int
    byte_size: int


class OriginModel(BaseModel):
    """Base for origin API payloads (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PresignedUpload(OriginModel):
    size: str
    url: str


class UploadSession(OriginModel):
    """Presigned upload URLs issued by the origin for one image."""

    image_id: str
    file_key: str
    upload_urls: List[PresignedUpload] = Field(default_factory=list)
    expires_at: Optional[datetime] = None

    def url_for(self, size: SizeName) -> Optional[str]:
        """Return the upload URL for ``size``, or None when the origin omitted it."""
        for presigned in self.upload_urls:
            if presigned.size == size.value:
                return presigned.url
        return None


class ConfirmResult(OriginModel):
    image_id: str
    status: str = ""
    confirmed: int = Field(
        default=0, validation_alias=AliasChoices("confirmed", "confirmedCount")
    )


class PipelineResult(OriginModel):
    """Terminal artifact of a successful upload run."""

    image_id: str
    variants: List[SizeName]


class VariantURL(OriginModel):
    image_id: str
    size: str
    url: str
    content_type: Optional[str] = None


class AllVariantURLs(OriginModel):
    image_id: str
    files: List[VariantURL] = Field(default_factory=list)


class StorageHealth(OriginModel):
    status: str
    bucket_name: str = ""
    region: str = ""
