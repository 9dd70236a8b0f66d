# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Command-line entry point for AWS Asset Inventory.

Usage:
    asset-inventory collect --regions us-east-1,eu-west-1 --output inventory.json
    asset-inventory collect -r us-east-1 --profile prod --report report.md
    asset-inventory report --input inventory.json --include-details
    asset-inventory permissions
    asset-inventory version

JSON and Markdown go to stdout unless a file is given; progress, warnings
and logs go to stderr.
"""

import argparse
import asyncio
import logging
import signal
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pydantic import ValidationError as ModelValidationError

from . import __version__
from .config import Settings, get_settings
from .models.inventory import InventorySnapshot
from .models.report import ReportFormat
from .services.inventory_collector import CollectionError, InventoryCollector
from .services.report_service import ReportService
from .utils.input_validation import InputValidator, ValidationError

logger = logging.getLogger(__name__)

STDOUT = "-"

REQUIRED_PERMISSIONS = [
    "config:GetDiscoveredResourceCounts",
    "config:ListDiscoveredResources",
    "config:BatchGetResourceConfig",
]


def configure_logging(log_level: str) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )

    # boto chatter stays at WARNING unless explicitly debugging
    boto_level = numeric_level if numeric_level <= logging.DEBUG else logging.WARNING
    logging.getLogger("botocore").setLevel(boto_level)
    logging.getLogger("boto3").setLevel(boto_level)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="asset-inventory",
        description="Collect AWS Config resources across regions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # collect
    collect = subparsers.add_parser(
        "collect",
        help="Collect AWS resources from AWS Config",
        description="Collect all resources that AWS Config knows about across "
                    "the given regions and write the inventory as JSON. Ctrl-C stops "
                    "collection and writes what was gathered; the process exits "
                    "once AWS calls already in flight return.",
    )
    collect.add_argument(
        "-p", "--profile",
        help="AWS profile name (uses default credential chain if omitted)",
    )
    collect.add_argument(
        "-r", "--regions",
        required=True,
        help="Comma-separated list of AWS regions",
    )
    collect.add_argument(
        "-o", "--output",
        default=STDOUT,
        help="Path for JSON inventory output (default: stdout)",
    )
    collect.add_argument(
        "--report",
        help="Also write a markdown report to this path ('-' for stdout)",
    )
    collect.add_argument(
        "--include-details",
        action="store_true",
        help="Include resource details in the report",
    )
    collect.add_argument(
        "--concurrency",
        type=int,
        help="Max concurrent region collections (default 5)",
    )
    collect.add_argument(
        "--max-retries",
        type=int,
        help="Max retries for throttled API calls (default 3)",
    )
    collect.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed progress during collection",
    )

    # report
    report = subparsers.add_parser(
        "report",
        help="Generate a markdown report from inventory JSON",
        description="Generate a markdown report from a previously collected "
                    "inventory JSON file.",
    )
    report.add_argument(
        "-i", "--input",
        required=True,
        help="Input JSON inventory file",
    )
    report.add_argument(
        "-o", "--output",
        default=STDOUT,
        help="Output file path (default: stdout)",
    )
    report.add_argument(
        "--include-details",
        action="store_true",
        help="Include resource details in the report",
    )

    subparsers.add_parser("permissions", help="Print required AWS IAM permissions")
    subparsers.add_parser("version", help="Print version information")

    return parser


def write_output(content: str, path: str, description: str) -> None:
    """Write content to a file, or to stdout when path is '-'."""
    if path == STDOUT:
        sys.stdout.write(content)
        if not content.endswith("\n"):
            sys.stdout.write("\n")
        return
    Path(path).write_text(content, encoding="utf-8")
    print(f"{description} written to: {path}", file=sys.stderr)


def report_collection_error(error: CollectionError) -> None:
    """Print failed regions and their causes to stderr."""
    print(
        f"Warning: {len(error.failures)} region(s) failed: {', '.join(error.regions)}",
        file=sys.stderr,
    )
    for failure in error.failures:
        print(f"  [{failure.region}] {failure.error}", file=sys.stderr)


async def collect_until_interrupted(
    collector: InventoryCollector,
    regions: list[str],
) -> tuple[InventorySnapshot, CollectionError | None]:
    """
    Run a collection, turning Ctrl-C into a cancellation.

    An interrupted run still returns whatever regions finished, with the
    interrupted ones reported as failures.
    """
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        logger.debug("SIGINT handler not supported by this event loop")
        handler_installed = False

    try:
        return await collector.collect(regions, cancel_event=cancel_event)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def run_collect(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the collect subcommand."""
    regions = InputValidator.validate_regions(InputValidator.parse_regions(args.regions))
    if not regions:
        raise ValidationError("regions", "at least one region must be specified")

    if args.output == STDOUT and args.report == STDOUT:
        raise ValidationError(
            "report",
            "cannot write both JSON and report to stdout; specify --report <file>",
        )

    overrides: dict = {}
    if args.profile:
        overrides["aws_profile"] = args.profile
    if args.concurrency is not None:
        if args.concurrency < 1:
            raise ValidationError("concurrency", "must be at least 1", args.concurrency)
        overrides["max_concurrency"] = args.concurrency
    if args.max_retries is not None:
        if args.max_retries < 0:
            raise ValidationError("max_retries", "must not be negative", args.max_retries)
        overrides["max_retries"] = args.max_retries
    if overrides:
        settings = settings.model_copy(update=overrides)

    if settings.aws_profile:
        print(
            f"Collecting resources from {len(regions)} region(s) "
            f"using profile '{settings.aws_profile}'...",
            file=sys.stderr,
        )
    else:
        print(
            f"Collecting resources from {len(regions)} region(s) using default credentials...",
            file=sys.stderr,
        )

    progress = (lambda message: print(message, file=sys.stderr)) if args.verbose else None
    # asyncio.run must not block on boto3 calls still in flight after Ctrl-C
    executor = ThreadPoolExecutor(
        max_workers=settings.max_concurrency,
        thread_name_prefix="aws-config",
    )
    collector = InventoryCollector.from_settings(settings, progress=progress, executor=executor)
    try:
        snapshot, error = asyncio.run(collect_until_interrupted(collector, regions))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    if error is not None:
        report_collection_error(error)

    print(f"Collected {snapshot.resource_count()} resources", file=sys.stderr)

    report_service = ReportService()
    write_output(
        report_service.format_report(snapshot, ReportFormat.JSON),
        args.output,
        "Inventory",
    )

    if args.report:
        write_output(
            report_service.format_report(
                snapshot,
                ReportFormat.MARKDOWN,
                include_details=args.include_details,
                collection_error=error,
            ),
            args.report,
            "Report",
        )

    return 0


def run_report(args: argparse.Namespace) -> int:
    """Handle the report subcommand."""
    data = Path(args.input).read_bytes()
    snapshot = InventorySnapshot.from_json(data)

    markdown = ReportService().format_report(
        snapshot,
        ReportFormat.MARKDOWN,
        include_details=args.include_details,
    )
    write_output(markdown, args.output, "Report")
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the command line.

    Returns:
        Process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "permissions":
        for permission in REQUIRED_PERMISSIONS:
            print(permission)
        return 0

    if args.command == "version":
        print(f"asset-inventory {__version__}")
        return 0

    try:
        settings = get_settings()
        configure_logging(settings.log_level)

        if args.command == "collect":
            return run_collect(args, settings)
        return run_report(args)
    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
    except ModelValidationError as e:
        print(f"Error: invalid inventory or settings: {e}", file=sys.stderr)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
    return 1
