"""Main module for the image variants CLI."""

import argparse
import json
import logging
import os
import shutil
import sys
from typing import Any, Callable, Dict, List, Optional

from . import __version__
from .core.config import PipelineConfig
from .core.exceptions import ImageVariantsError
from .core.factories import PipelineFactory
from .core.logging_config import get_logger
from .core.models import SizeName, SourceImage
from .core.profiles import GALLERY_SIZES
from .pipeline.compression import compress_image
from .pipeline.upload import (
    UploadOrchestrator,
    upload_gallery_image,
    upload_image,
    upload_profile_picture,
)

SIZE_CHOICES = [size.value for size in SizeName]
TIMED_STAGES = ("compress_variant", "put_variant", "confirm_upload")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--api-url", default=None, help="Origin base URL")
    parser.add_argument("--token", default=None, help="Bearer token for the origin")
    parser.add_argument(
        "--timeout", type=float, default=None, help="Request timeout in seconds"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")


def _add_sizes_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--sizes",
        nargs="+",
        choices=SIZE_CHOICES,
        default=[size.value for size in GALLERY_SIZES],
        help="Variant sizes to produce (default: large medium small)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="image-variants",
        description="Image Variants - byte-budgeted compression and presigned uploads",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upload every size of a photo
  image-variants upload ./photo.jpg --api-url https://api.example.com

  # Upload a profile picture (small only)
  image-variants profile-picture ./me.jpg --token $TOKEN

  # Compress locally without uploading
  image-variants compress ./photo.jpg --output-dir ./out --sizes medium small

  # Look up a download URL
  image-variants get-url 3f1c... small
        """,
    )

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    upload_parser = subparsers.add_parser(
        "upload", help="Compress and upload the requested sizes"
    )
    upload_parser.add_argument("uri", help="Source image path or URL")
    _add_sizes_argument(upload_parser)
    _add_common_arguments(upload_parser)

    profile_parser = subparsers.add_parser(
        "profile-picture", help="Upload the small variant only"
    )
    profile_parser.add_argument("uri", help="Source image path or URL")
    _add_common_arguments(profile_parser)

    gallery_parser = subparsers.add_parser("gallery", help="Upload every variant size")
    gallery_parser.add_argument("uri", help="Source image path or URL")
    _add_common_arguments(gallery_parser)

    compress_parser = subparsers.add_parser(
        "compress", help="Compress locally and write the variants to a directory"
    )
    compress_parser.add_argument("uri", help="Source image path or URL")
    compress_parser.add_argument(
        "--output-dir", required=True, help="Directory for the variant files"
    )
    _add_sizes_argument(compress_parser)
    _add_common_arguments(compress_parser)

    get_url_parser = subparsers.add_parser(
        "get-url", help="Get a download URL for one size"
    )
    get_url_parser.add_argument("image_id", help="Image id returned by an upload")
    get_url_parser.add_argument("size", choices=SIZE_CHOICES, help="Variant size")
    _add_common_arguments(get_url_parser)

    get_all_parser = subparsers.add_parser(
        "get-all", help="Get download URLs for every size"
    )
    get_all_parser.add_argument("image_id", help="Image id returned by an upload")
    _add_common_arguments(get_all_parser)

    health_parser = subparsers.add_parser(
        "health", help="Check the origin's object storage connection"
    )
    _add_common_arguments(health_parser)

    subparsers.add_parser("version", help="Show version information")

    return parser


def _make_factory(args: argparse.Namespace) -> PipelineFactory:
    config = PipelineConfig.from_env(
        api_base_url=args.api_url,
        auth_token=args.token,
        request_timeout=args.timeout,
        debug=args.debug or None,
    )
    return PipelineFactory(config)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _log_stage_timings(factory: PipelineFactory, logger: logging.Logger) -> None:
    for operation in TIMED_STAGES:
        summary = factory.metrics_collector.get_summary(operation)
        if summary:
            logger.info(f"Stage timings: {json.dumps(summary)}")


def _run_upload(
    factory: PipelineFactory, run: Callable[[UploadOrchestrator], Any]
) -> Any:
    manipulator = factory.create_manipulator()
    orchestrator = factory.create_upload_orchestrator(manipulator=manipulator)
    try:
        return run(orchestrator)
    finally:
        manipulator.cleanup()


def _run_compress(
    factory: PipelineFactory, uri: str, sizes: List[str], output_dir: str
) -> List[Dict[str, Any]]:
    manipulator = factory.create_manipulator()
    engine = factory.create_compression_engine(manipulator=manipulator)
    dimensions = factory.create_prober().dimensions_of(uri)
    source = SourceImage(uri=uri, width=dimensions.width, height=dimensions.height)
    try:
        variants = compress_image(engine, source, sizes)
        os.makedirs(output_dir, exist_ok=True)
        written = []
        for size, variant in variants.items():
            target = os.path.join(output_dir, f"{size.value}.jpg")
            shutil.copyfile(variant.uri, target)
            written.append({**variant.model_dump(mode="json"), "uri": target})
        return written
    finally:
        manipulator.cleanup()


def main() -> None:
    """
    Entry point for the image variants command-line interface (CLI).

    Upload commands print the resulting ``{"imageId", "variants"}`` as JSON;
    lookup commands print the origin's response. Pipeline errors are logged
    and exit with status 1. With ``--debug`` the per-stage timing summaries
    are logged once the command finishes.
    """
    parser = build_parser()
    args: argparse.Namespace = parser.parse_args()
    logger = get_logger("cli")

    if args.command == "version":
        print("Image Variants CLI")
        print(f"Version {__version__}")
        print("Byte-budgeted image variants with presigned uploads")
        sys.exit(0)

    elif args.command is None:
        parser.print_help()
        sys.exit(1)

    else:
        factory: Optional[PipelineFactory] = None
        try:
            factory = _make_factory(args)
            if args.command == "upload":
                result = _run_upload(
                    factory, lambda o: upload_image(o, args.uri, args.sizes)
                )
                _print_json(result.model_dump(mode="json", by_alias=True))
            elif args.command == "profile-picture":
                image_id = _run_upload(
                    factory, lambda o: upload_profile_picture(o, args.uri)
                )
                _print_json({"imageId": image_id})
            elif args.command == "gallery":
                image_id = _run_upload(
                    factory, lambda o: upload_gallery_image(o, args.uri)
                )
                _print_json({"imageId": image_id})
            elif args.command == "compress":
                _print_json(_run_compress(factory, args.uri, args.sizes, args.output_dir))
            elif args.command == "get-url":
                service = factory.create_retrieval_service()
                url = service.get_variant_url(args.image_id, args.size)
                _print_json(url.model_dump(mode="json", by_alias=True, exclude_none=True))
            elif args.command == "get-all":
                service = factory.create_retrieval_service()
                urls = service.get_all_variant_urls(args.image_id)
                _print_json(urls.model_dump(mode="json", by_alias=True, exclude_none=True))
            elif args.command == "health":
                service = factory.create_retrieval_service()
                _print_json(service.check_storage_health().model_dump(by_alias=True))
        except ImageVariantsError as exc:
            logger.error(f"{args.command} failed: {exc}")
            sys.exit(1)
        finally:
            if args.debug and factory is not None:
                _log_stage_timings(factory, logger)


if __name__ == "__main__":
    main()
