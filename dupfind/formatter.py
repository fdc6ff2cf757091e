"""
Output formatting for duplicate detection results.
"""

import json
import sys
from pathlib import Path
from typing import Dict, List, Tuple

from .scanner import FileRef
from .statistics import DuplicateGroup, ScanResults, ScanStatistics, group_size, wasted_space


def _format_file_size(size: int) -> str:
    """Format file size in human-readable format."""
    if size < 1024:
        return f"{size} bytes"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    else:
        return f"{size / (1024 * 1024 * 1024):.1f} GB"


def _format_path(path: Path) -> str:
    """Render a path as an OSC 8 terminal hyperlink when stdout is a terminal."""
    if not sys.stdout.isatty() or not path.is_absolute():
        return str(path)
    return f"\x1b]8;;{path.as_uri()}\x07{path}\x1b]8;;\x07"


def _existing_groups(duplicates: Dict[str, List[FileRef]]) -> List[Tuple[str, List[FileRef]]]:
    """
    Drop files deleted since detection and sort groups by wasted space.

    Groups left with fewer than two existing files are skipped.
    """
    groups = []
    for hash_value, files in duplicates.items():
        existing = [f for f in files if f.path.exists()]
        if len(existing) >= 2:
            groups.append((hash_value, sorted(existing, key=lambda f: str(f.path))))
    groups.sort(key=lambda item: wasted_space(item[1]), reverse=True)
    return groups


def format_output(
    stats: ScanStatistics,
    duplicates: Dict[str, List[FileRef]],
    interrupted: bool = False,
) -> None:
    """
    Print the duplicate groups and summary statistics.

    Args:
        stats: Aggregate counts for the run
        duplicates: Dictionary mapping hash to list of duplicate files
        interrupted: Whether the run was cut short by the user
    """
    if interrupted:
        print("\n⚠️  Scan was interrupted; results below are partial.")

    groups = _existing_groups(duplicates)

    if groups:
        print("\n" + "=" * 60)
        label = "duplicate group" if len(groups) == 1 else "duplicate groups"
        print(f"🔍 Found {len(groups)} {label} ({_format_file_size(stats.total_wasted_space)} wasted)")
        print("=" * 60)

        for group_num, (hash_value, file_list) in enumerate(groups, 1):
            size = group_size(file_list)
            print(f"\n📁 #{group_num} · {_format_file_size(size)} × {len(file_list)} files")
            print(f"   Hash: {hash_value[:16]}...")

            for file_ref in file_list:
                print(f"   • {_format_path(file_ref.path)}")

            if size > 0:
                savings = size * (len(file_list) - 1)
                print(f"   💾 Wasted: {_format_file_size(savings)}")
    else:
        print("\n✅ No duplicates found.")

    print("\n" + "=" * 60)
    print("📊 SUMMARY STATISTICS")
    print("=" * 60)
    print(f"📁 Total files scanned: {stats.total_files_scanned:,}")
    print(f"📏 Size groups: {stats.total_size_groups:,}")
    print(f"🔗 Duplicate groups: {stats.total_duplicate_groups:,}")
    print(f"👥 Duplicate files: {stats.total_duplicate_files:,}")
    print(f"💾 Total wasted space: {_format_file_size(stats.total_wasted_space)}")
    print("=" * 60)


def build_results(
    stats: ScanStatistics,
    duplicates: Dict[str, List[FileRef]],
    duration: float,
    interrupted: bool = False,
) -> ScanResults:
    """Assemble the persisted results document, one record per existing group."""
    groups = [
        DuplicateGroup(
            hash=hash_value,
            size=group_size(file_list),
            files=[str(f.path) for f in file_list],
        )
        for hash_value, file_list in _existing_groups(duplicates)
    ]
    return ScanResults(
        total_files_scanned=stats.total_files_scanned,
        total_size_groups=stats.total_size_groups,
        total_duplicate_groups=stats.total_duplicate_groups,
        total_duplicate_files=stats.total_duplicate_files,
        total_wasted_space=stats.total_wasted_space,
        scan_duration_seconds=round(duration, 3),
        interrupted=interrupted,
        groups=groups,
    )


def format_json_output(results: ScanResults) -> None:
    """Print the results document as JSON for scripting and programmatic access."""
    print(json.dumps(results.to_dict(), indent=2))


def save_results_json(path: Path, results: ScanResults) -> None:
    """
    Write the results document to a JSON file, replacing any existing file.

    Raises:
        OSError: if the file cannot be written
    """
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(results.to_dict(), fh, indent=2)
        fh.write("\n")
