"""Tests for structured logging and stage timing helpers."""

import logging
import threading

import pytest

from image_variants.core.observability import (
    LogContext,
    MetricsCollector,
    StageTiming,
    StructuredLogger,
    measure,
    render,
)


class TestLogContext:
    """Tests for LogContext."""

    def test_with_metadata_does_not_mutate_original(self):
        context = LogContext(operation="upload", metadata={"size": "large"})

        derived = context.with_metadata(image_id="img-1")

        assert derived.metadata == {"size": "large", "image_id": "img-1"}
        assert derived.correlation_id == context.correlation_id
        assert derived.operation == "upload"
        assert context.metadata == {"size": "large"}

    def test_correlation_ids_are_unique(self):
        assert LogContext().correlation_id != LogContext().correlation_id


class TestRender:
    @pytest.mark.parametrize(
        "context, fields, expected",
        [
            (None, {}, "Done"),
            (None, {"seconds": 3}, "Done (seconds=3)"),
            (LogContext(correlation_id="abc"), {}, "[abc] Done"),
            (
                LogContext(correlation_id="abc", operation="confirm"),
                {"status": 200},
                "[confirm] [abc] Done (status=200)",
            ),
        ],
    )
    def test_render(self, context, fields, expected):
        assert render("Done", context, fields) == expected

    def test_call_fields_override_context_metadata(self):
        context = LogContext(correlation_id="abc", metadata={"attempt": 1})

        assert render("Retry", context, {"attempt": 2}) == "[abc] Retry (attempt=2)"


class TestStructuredLogger:
    """Tests for StructuredLogger."""

    def test_formats_context_and_metadata(self, caplog):
        structured = StructuredLogger("test-structured-logger")
        structured._logger.propagate = True
        context = LogContext(correlation_id="abc", operation="upload").with_metadata(
            size="small"
        )

        with caplog.at_level(logging.INFO, logger=structured._logger.name):
            structured.info("Uploaded variant", context, byte_size=10)

        assert caplog.messages == [
            "[upload] [abc] Uploaded variant (size=small, byte_size=10)"
        ]

    def test_formats_kwargs_without_context(self, caplog):
        structured = StructuredLogger("test-structured-kwargs")
        structured._logger.propagate = True

        with caplog.at_level(logging.WARNING, logger=structured._logger.name):
            structured.warning("Slow PUT", seconds=3)
            structured.debug("Hidden")

        assert caplog.messages == ["Slow PUT (seconds=3)"]

    def test_name_is_nested_under_root(self):
        assert StructuredLogger("upload")._logger.name == "image-variants.upload"


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_summary_for_one_operation(self):
        collector = MetricsCollector()
        collector.record(StageTiming("put_variant", 0.0, 0.001, True))
        collector.record(StageTiming("put_variant", 0.0, 0.003, False))
        collector.record(StageTiming("confirm_upload", 0.0, 1.0, True))

        summary = collector.get_summary("put_variant")

        assert summary == {
            "operation": "put_variant",
            "count": 2,
            "failed": 1,
            "avg_ms": 2.0,
            "max_ms": 3.0,
        }

    def test_summary_of_unknown_operation_is_empty(self):
        assert MetricsCollector().get_summary("put_variant") == {}

    def test_get_metrics_filters_by_operation(self):
        collector = MetricsCollector()
        collector.record(StageTiming("put_variant", 0.0, 1.0, True))
        collector.record(StageTiming("confirm_upload", 0.0, 1.0, True))

        assert [t.operation for t in collector.get_metrics()] == [
            "put_variant",
            "confirm_upload",
        ]
        assert len(collector.get_metrics("confirm_upload")) == 1

    def test_records_from_many_threads(self):
        collector = MetricsCollector()

        def record_many():
            for _ in range(200):
                collector.record(StageTiming("put_variant", 0.0, 1.0, True))

        workers = [threading.Thread(target=record_many) for _ in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert collector.get_summary("put_variant")["count"] == 800


class TestMeasure:
    """Tests for the measure context manager."""

    def test_records_success_with_late_metadata(self):
        collector = MetricsCollector()

        with measure("compress_variant", collector, size="large") as extra:
            extra["attempts"] = 3

        (timing,) = collector.get_metrics("compress_variant")
        assert timing.success
        assert timing.error_message is None
        assert timing.metadata == {"size": "large", "attempts": 3}
        assert timing.duration >= 0

    def test_records_failure_and_reraises(self):
        collector = MetricsCollector()

        with pytest.raises(RuntimeError):
            with measure("confirm_upload", collector):
                raise RuntimeError("origin down")

        (timing,) = collector.get_metrics()
        assert not timing.success
        assert timing.error_message == "origin down"

    def test_without_collector(self):
        with measure("noop") as extra:
            extra["ignored"] = True
