"""Factory classes for creating configured pipeline instances."""

from typing import Optional

import requests

from ..pipeline.compression import CompressionEngine
from ..pipeline.retrieval import ImageRetrievalService
from ..pipeline.upload import UploadOrchestrator
from .blobs import UriBlobReader
from .config import PipelineConfig
from .http_clients import OriginAPIClient, PresignedStorageClient
from .image_utils import PillowDimensionProber, PillowImageManipulator
from .logging_config import set_log_level
from .observability import MetricsCollector, StructuredLogger
from .protocols import (
    BlobReaderProtocol,
    DimensionProberProtocol,
    ImageManipulatorProtocol,
    LoggerProtocol,
    OriginClientProtocol,
    StorageClientProtocol,
)


class PipelineFactory:
    """
    Wires the pipeline from a ``PipelineConfig``.

    Every collaborator can be injected; anything left out is built from the
    configuration (Pillow manipulator and prober, ``requests`` clients).
    Engines and orchestrators built here record their stage timings into
    ``metrics_collector`` unless given their own. Without an injected
    ``session`` each HTTP client uses one ``requests.Session`` per thread.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or PipelineConfig.from_env()
        self._session = session
        self.metrics_collector = MetricsCollector()
        if self.config.debug:
            set_log_level("DEBUG")

    def create_blob_reader(self) -> UriBlobReader:
        return UriBlobReader(self._session, timeout=self.config.request_timeout)

    def create_manipulator(
        self, blob_reader: Optional[UriBlobReader] = None
    ) -> PillowImageManipulator:
        return PillowImageManipulator(
            work_dir=self.config.work_dir,
            blob_reader=blob_reader or self.create_blob_reader(),
        )

    def create_prober(
        self, blob_reader: Optional[UriBlobReader] = None
    ) -> PillowDimensionProber:
        return PillowDimensionProber(blob_reader or self.create_blob_reader())

    def create_origin_client(self) -> OriginAPIClient:
        return OriginAPIClient(self.config, self._session)

    def create_storage_client(self) -> PresignedStorageClient:
        return PresignedStorageClient(self._session, timeout=self.config.request_timeout)

    def create_compression_engine(
        self,
        manipulator: Optional[ImageManipulatorProtocol] = None,
        blob_reader: Optional[BlobReaderProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> CompressionEngine:
        if blob_reader is None:
            blob_reader = self.create_blob_reader()
        if manipulator is None:
            manipulator = self.create_manipulator()
        return CompressionEngine(
            manipulator,
            blob_reader,
            logger=logger or StructuredLogger("compression"),
            metrics_collector=metrics_collector or self.metrics_collector,
        )

    def create_upload_orchestrator(
        self,
        manipulator: Optional[ImageManipulatorProtocol] = None,
        blob_reader: Optional[BlobReaderProtocol] = None,
        prober: Optional[DimensionProberProtocol] = None,
        origin: Optional[OriginClientProtocol] = None,
        storage: Optional[StorageClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> UploadOrchestrator:
        """Create a fully configured upload orchestrator."""
        if blob_reader is None:
            blob_reader = self.create_blob_reader()
        metrics_collector = metrics_collector or self.metrics_collector
        engine = self.create_compression_engine(
            manipulator=manipulator,
            blob_reader=blob_reader,
            logger=logger,
            metrics_collector=metrics_collector,
        )
        return UploadOrchestrator(
            engine,
            origin or self.create_origin_client(),
            storage or self.create_storage_client(),
            blob_reader,
            prober=prober or self.create_prober(),
            logger=logger or StructuredLogger("upload"),
            metrics_collector=metrics_collector,
            content_type=self.config.content_type,
        )

    def create_retrieval_service(
        self,
        origin: Optional[OriginClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> ImageRetrievalService:
        return ImageRetrievalService(
            origin or self.create_origin_client(),
            logger=logger or StructuredLogger("retrieval"),
        )
