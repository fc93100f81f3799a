"""Compression engine: runs the budget search for every requested size."""

import asyncio
from typing import Dict, Iterable, Optional, Union

from ..core.exceptions import CompressionBudgetExceeded
from ..core.models import CompressedVariant, SizeName, SourceImage
from ..core.observability import LogContext, MetricsCollector, StructuredLogger, measure
from ..core.profiles import get_profile, normalize_sizes
from ..core.protocols import (
    BlobReaderProtocol,
    ImageManipulatorProtocol,
    LoggerProtocol,
)
from .ladder import SearchState, advance, finish, operations_for, plan_steps

OUTPUT_FORMAT = "jpeg"


class CompressionEngine:
    """
    Produces one byte-budgeted variant per requested size.

    Sizes are compressed concurrently and share no state. Every size runs to
    completion; if any of them failed, the variants that did succeed are
    released and the first failure, in requested order, is raised.
    """

    def __init__(
        self,
        manipulator: ImageManipulatorProtocol,
        blob_reader: BlobReaderProtocol,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._manipulator = manipulator
        self._blob_reader = blob_reader
        self._logger = logger or StructuredLogger("compression")
        self._metrics_collector = metrics_collector

    async def compress(
        self, source: SourceImage, sizes: Iterable[Union[str, SizeName]]
    ) -> Dict[SizeName, CompressedVariant]:
        """Compress ``source`` for each size; keys keep the requested order."""
        ordered = normalize_sizes(sizes)
        if not ordered:
            return {}

        results = await asyncio.gather(
            *(self.compress_size(source, size) for size in ordered),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            for result in results:
                if isinstance(result, CompressedVariant):
                    await self.release(result)
            raise failures[0]
        return dict(zip(ordered, results))

    async def compress_size(
        self, source: SourceImage, size: SizeName
    ) -> CompressedVariant:
        """Run the quality/scale ladder for one size until the budget is met."""
        profile = get_profile(size)
        context = LogContext(
            operation="compress_size", component="compression_engine"
        ).with_metadata(size=size.value, source=source.uri)
        state = SearchState(size=size, max_bytes=profile.max_bytes)

        with measure(
            "compress_variant", self._metrics_collector, size=size.value
        ) as metric:
            try:
                for step in plan_steps(profile):
                    operations = operations_for(step, profile, source, state)
                    result = await asyncio.to_thread(
                        self._manipulator.manipulate,
                        source.uri,
                        operations,
                        step.quality,
                        OUTPUT_FORMAT,
                    )
                    try:
                        byte_size = await asyncio.to_thread(
                            self._blob_reader.size_of, result.uri
                        )
                    except Exception:
                        await self._discard(result.uri)
                        raise

                    previous = state.current
                    state = advance(state, step, result, byte_size)
                    if previous is not None:
                        await self._discard(previous.uri)

                    self._logger.debug(
                        "Compression attempt",
                        context,
                        attempt=len(state.attempts),
                        phase=step.phase.value,
                        quality=step.quality,
                        width=result.width,
                        height=result.height,
                        byte_size=byte_size,
                    )
                    if state.satisfied:
                        break
            except Exception:
                if state.current is not None:
                    await self._discard(state.current.uri)
                raise

            metric["attempts"] = len(state.attempts)
            metric["byte_size"] = state.byte_size

            try:
                variant = finish(state)
            except CompressionBudgetExceeded:
                if state.current is not None:
                    await self._discard(state.current.uri)
                self._logger.error(
                    "Compression budget exceeded",
                    context,
                    attempts=len(state.attempts),
                    max_bytes=profile.max_bytes,
                    byte_size=state.byte_size,
                )
                raise

        self._logger.info(
            "Compressed variant",
            context,
            attempts=len(state.attempts),
            width=variant.width,
            height=variant.height,
            byte_size=variant.byte_size,
        )
        return variant

    async def release(self, variant: CompressedVariant) -> None:
        """Dispose of a variant's artifact once it has been consumed."""
        await self._discard(variant.uri)

    async def _discard(self, uri: str) -> None:
        await asyncio.to_thread(self._manipulator.discard, uri)


def compress_image(
    engine: CompressionEngine,
    source: SourceImage,
    sizes: Iterable[Union[str, SizeName]],
) -> Dict[SizeName, CompressedVariant]:
    """Synchronous wrapper around ``CompressionEngine.compress``."""
    return asyncio.run(engine.compress(source, sizes))
