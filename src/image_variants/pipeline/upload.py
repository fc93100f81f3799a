"""Upload orchestrator: compress, request presigned URLs, PUT, confirm."""

import asyncio
import time
import uuid
from typing import Callable, Iterable, Optional, Union

from ..core.exceptions import (
    ConfigurationError,
    MissingPresignedURL,
    StorageUploadError,
)
from ..core.models import (
    CompressedVariant,
    PipelineResult,
    SizeName,
    SourceImage,
    UploadSession,
)
from ..core.observability import LogContext, MetricsCollector, StructuredLogger, measure
from ..core.profiles import (
    GALLERY_SIZES,
    JPEG_CONTENT_TYPE,
    PROFILE_PICTURE_SIZES,
    normalize_sizes,
)
from ..core.protocols import (
    BlobReaderProtocol,
    DimensionProberProtocol,
    LoggerProtocol,
    OriginClientProtocol,
    StorageClientProtocol,
)
from .compression import CompressionEngine


def generate_file_key() -> str:
    """Unique object key prefix for one upload: ``uploads/<epoch-ms>-<uuid4>``."""
    return f"uploads/{int(time.time() * 1000)}-{uuid.uuid4()}"


class UploadOrchestrator:
    """
    Turns a source image into confirmed remote variants.

    Phases run in order (compress, request URLs, upload, confirm); work inside
    the compress and upload phases runs in parallel. Any failure aborts the
    run and is raised to the caller. Objects already PUT before a failure are
    left unconfirmed in storage.
    """

    def __init__(
        self,
        engine: CompressionEngine,
        origin: OriginClientProtocol,
        storage: StorageClientProtocol,
        blob_reader: BlobReaderProtocol,
        prober: Optional[DimensionProberProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        content_type: str = JPEG_CONTENT_TYPE,
        file_key_factory: Callable[[], str] = generate_file_key,
    ):
        self._engine = engine
        self._origin = origin
        self._storage = storage
        self._blob_reader = blob_reader
        self._prober = prober
        self._logger = logger or StructuredLogger("upload")
        self._metrics_collector = metrics_collector
        self._content_type = content_type
        self._file_key_factory = file_key_factory

    async def load_source(self, uri: str) -> SourceImage:
        """Probe ``uri`` and build a ``SourceImage``; raises ``DimensionError``."""
        if self._prober is None:
            raise ConfigurationError("No dimension prober configured")
        dimensions = await asyncio.to_thread(self._prober.dimensions_of, uri)
        return SourceImage(uri=uri, width=dimensions.width, height=dimensions.height)

    async def upload(
        self, source: SourceImage, sizes: Iterable[Union[str, SizeName]]
    ) -> PipelineResult:
        """Compress and upload ``source`` for every size in ``sizes``."""
        requested = normalize_sizes(sizes)
        if not requested:
            raise ConfigurationError("At least one image size is required")

        context = LogContext(operation="upload", component="upload_orchestrator")
        context = context.with_metadata(
            source=source.uri, sizes=",".join(size.value for size in requested)
        )
        self._logger.info("Starting upload", context)

        # 1. Compress all variants
        variants = await self._engine.compress(source, requested)

        # 2. Request presigned URLs
        file_key = self._file_key_factory()
        try:
            session = await asyncio.to_thread(
                self._origin.request_upload_urls,
                file_key,
                requested,
                self._content_type,
            )
        except Exception:
            for variant in variants.values():
                await self._engine.release(variant)
            raise
        context = context.with_metadata(image_id=session.image_id, file_key=file_key)
        self._logger.debug("Received upload session", context)

        # 3. PUT every variant in parallel; the first failure wins
        await asyncio.gather(
            *(
                self._upload_variant(session, variant, context)
                for variant in variants.values()
            )
        )

        # 4. Confirm with the origin
        with measure(
            "confirm_upload", self._metrics_collector, image_id=session.image_id
        ):
            confirmation = await asyncio.to_thread(
                self._origin.confirm_upload, session.image_id
            )
        self._logger.info(
            "Upload confirmed",
            context,
            status=confirmation.status,
            confirmed=confirmation.confirmed,
        )

        return PipelineResult(image_id=session.image_id, variants=requested)

    async def _upload_variant(
        self, session: UploadSession, variant: CompressedVariant, context: LogContext
    ) -> None:
        variant_context = context.with_metadata(size=variant.size.value)
        with measure(
            "put_variant",
            self._metrics_collector,
            size=variant.size.value,
            byte_size=variant.byte_size,
        ):
            try:
                url = session.url_for(variant.size)
                if url is None:
                    self._logger.error("Missing presigned URL", variant_context)
                    raise MissingPresignedURL(variant.size)
                blob = await asyncio.to_thread(self._blob_reader.to_blob, variant.uri)
            finally:
                await self._engine.release(variant)

            status = await asyncio.to_thread(
                self._storage.put_object, url, blob, self._content_type
            )
            if not 200 <= status < 300:
                self._logger.error(
                    "Storage upload failed", variant_context, status=status
                )
                raise StorageUploadError(variant.size, status)

        self._logger.debug("Uploaded variant", variant_context, byte_size=len(blob))

    async def upload_uri(
        self, uri: str, sizes: Iterable[Union[str, SizeName]] = GALLERY_SIZES
    ) -> PipelineResult:
        """Probe ``uri`` then upload it; dimension errors abort before compression."""
        source = await self.load_source(uri)
        return await self.upload(source, sizes)

    async def upload_profile_picture(self, uri: str) -> str:
        """Upload only the small variant and return the image id."""
        result = await self.upload_uri(uri, PROFILE_PICTURE_SIZES)
        return result.image_id

    async def upload_gallery_image(self, uri: str) -> str:
        """Upload every variant size and return the image id."""
        result = await self.upload_uri(uri, GALLERY_SIZES)
        return result.image_id


def upload_image(
    orchestrator: UploadOrchestrator,
    uri: str,
    sizes: Iterable[Union[str, SizeName]] = GALLERY_SIZES,
) -> PipelineResult:
    """Synchronous wrapper around ``UploadOrchestrator.upload_uri``."""
    return asyncio.run(orchestrator.upload_uri(uri, sizes))


def upload_profile_picture(orchestrator: UploadOrchestrator, uri: str) -> str:
    return asyncio.run(orchestrator.upload_profile_picture(uri))


def upload_gallery_image(orchestrator: UploadOrchestrator, uri: str) -> str:
    return asyncio.run(orchestrator.upload_gallery_image(uri))

