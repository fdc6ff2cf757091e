#!/usr/bin/env python3
"""
Command-line interface for dupfind.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from .cancellation import CancellationToken, install_interrupt_handler, restore_interrupt_handler
from .config import (
    DEFAULT_FULL_BUFFER_MB,
    DEFAULT_QUICK_BUFFER_KB,
    DEFAULT_SAMPLE_SIZE,
    ScanConfig,
)
from .detector import find_duplicates
from .formatter import _format_file_size, build_results, format_json_output, format_output, save_results_json
from .hasher import get_warning_summary
from .progress import TqdmProgress
from .scanner import scan_files, validate_path
from .statistics import calculate_statistics

logger = logging.getLogger("dupfind")


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="dupfind",
        description="Fast parallel duplicate file finder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "path",
        type=Path,
        help="Directory path to scan for duplicates",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--json-file",
        type=Path,
        help="Also save results to this JSON file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )
    parser.add_argument(
        "-L", "--follow-links",
        action="store_true",
        help="Follow symbolic links",
    )
    parser.add_argument(
        "-H", "--hidden",
        action="store_true",
        help="Include hidden files and directories",
    )
    parser.add_argument(
        "--no-ignore",
        action="store_true",
        help="Don't skip common directories (.git, node_modules, etc.)",
    )
    parser.add_argument(
        "-i", "--ignore",
        action="append",
        default=[],
        metavar="DIR",
        help="Additional directory name to skip (can be used multiple times)",
    )
    parser.add_argument(
        "--quick-hash-size",
        type=int,
        default=DEFAULT_SAMPLE_SIZE,
        help=f"Quick hash sample size in bytes (default: {DEFAULT_SAMPLE_SIZE})",
    )
    parser.add_argument(
        "--quick-buffer-size",
        type=int,
        default=DEFAULT_QUICK_BUFFER_KB,
        help=f"Quick hash buffer size in KB (default: {DEFAULT_QUICK_BUFFER_KB})",
    )
    parser.add_argument(
        "--full-buffer-size",
        type=int,
        default=DEFAULT_FULL_BUFFER_MB,
        help=f"Full hash buffer size in MB (default: {DEFAULT_FULL_BUFFER_MB})",
    )
    parser.add_argument(
        "--min-size",
        type=int,
        default=0,
        help="Skip files smaller than this size in bytes (default: 0)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Manual override for worker count (default: CPU count)",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ScanConfig:
    """Translate parsed arguments into a validated ScanConfig."""
    config = ScanConfig(
        sample_size=args.quick_hash_size,
        quick_buffer_size=args.quick_buffer_size,
        full_buffer_size=args.full_buffer_size,
        min_size=args.min_size,
        follow_links=args.follow_links,
        include_hidden=args.hidden,
        use_default_ignores=not args.no_ignore,
        ignore=list(args.ignore),
        workers=args.workers,
    )
    config.validate()
    return config


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)

    # Validate conflicting flags
    if args.verbose and args.quiet:
        print("Error: Cannot use both --verbose and --quiet flags", file=sys.stderr)
        sys.exit(1)

    # Setup logging based on verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(message)s')
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR, format='%(message)s')
    else:
        logging.basicConfig(level=logging.INFO, format='%(message)s')

    try:
        config = build_config(args)
        validate_path(args.path)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    cancel = CancellationToken()
    try:
        previous_handler = install_interrupt_handler(cancel)
    except ValueError as e:
        print(f"Error: Failed to set signal handler: {e}", file=sys.stderr)
        sys.exit(1)

    show_progress = not args.quiet and args.output != "json"

    def make_progress(desc: str) -> TqdmProgress:
        return TqdmProgress(desc, disable=not show_progress)

    start_time = time.monotonic()
    try:
        logger.info("Starting duplicate file scan in %s", args.path)
        logger.debug(
            "Configuration: quick_hash=%dB, quick_buf=%dKB, full_buf=%dMB, workers=%d",
            config.sample_size, config.quick_buffer_size,
            config.full_buffer_size, config.worker_count,
        )

        with make_progress("Scanning") as progress:
            scan_result = scan_files(args.path, config, cancel, progress)
        files = scan_result.files
        logger.info("Found %d files", len(files))
        for item_type, count in scan_result.skipped_items.items():
            if count > 0:
                logger.info("  Skipped %s: %d", item_type.replace('_', ' '), count)

        if not files:
            if not args.quiet and args.output != "json":
                print("No files found in the specified directory.")
            if args.output != "json" and not args.json_file:
                sys.exit(0)

        detection = find_duplicates(files, config, cancel, make_progress)
    finally:
        restore_interrupt_handler(previous_handler)

    interrupted = scan_result.interrupted or detection.interrupted
    duration = time.monotonic() - start_time
    stats = calculate_statistics(
        detection.duplicates, detection.files_scanned, detection.size_groups
    )
    results = build_results(stats, detection.duplicates, duration, interrupted)

    # Output results based on format
    if args.output == "json":
        format_json_output(results)
    else:
        format_output(stats, detection.duplicates, interrupted=interrupted)

    if args.json_file:
        try:
            save_results_json(args.json_file, results)
        except OSError as e:
            print(f"Error: Failed to write {args.json_file}: {e}", file=sys.stderr)
            sys.exit(1)
        logger.info("Results saved to %s", args.json_file)

    # Show final warning summary from hashing operations (unless quiet or json)
    if not args.quiet and args.output != "json":
        warning_summary = get_warning_summary()
        total_hash_warnings = sum(warning_summary.values())
        if total_hash_warnings > 0:
            print(f"\n⚠️  Processing warnings summary:", file=sys.stderr)
            for warning_type, count in warning_summary.items():
                if count > 0:
                    warning_name = warning_type.replace('_', ' ').title()
                    print(f"  • {warning_name}: {count} files", file=sys.stderr)

    logger.info(
        "Scan completed in %.2fs: %d duplicate groups, %d files, %s wasted",
        duration, stats.total_duplicate_groups, stats.total_duplicate_files,
        _format_file_size(stats.total_wasted_space),
    )


if __name__ == "__main__":
    main()
