"""
Aggregate statistics over detected duplicate groups.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List

from .scanner import FileRef


@dataclass
class DuplicateGroup:
    """Serializable record of one duplicate group."""
    hash: str
    size: int
    files: List[str]


@dataclass
class ScanStatistics:
    """Counts reported alongside the duplicate groups."""
    total_files_scanned: int = 0
    total_size_groups: int = 0
    total_duplicate_groups: int = 0
    total_duplicate_files: int = 0
    total_wasted_space: int = 0


@dataclass
class ScanResults:
    """Document persisted as JSON."""
    total_files_scanned: int
    total_size_groups: int
    total_duplicate_groups: int
    total_duplicate_files: int
    total_wasted_space: int
    scan_duration_seconds: float
    interrupted: bool = False
    groups: List[DuplicateGroup] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def group_size(files: List[FileRef]) -> int:
    """Size in bytes of each member of a duplicate group."""
    return files[0].size if files else 0


def wasted_space(files: List[FileRef]) -> int:
    """Bytes reclaimable by keeping only one copy of the group."""
    if len(files) < 2:
        return 0
    return group_size(files) * (len(files) - 1)


def calculate_statistics(
    duplicates: Dict[str, List[FileRef]],
    total_files_scanned: int,
    total_size_groups: int,
) -> ScanStatistics:
    """
    Summarize a duplicate mapping.

    Args:
        duplicates: Full hash -> files sharing that content
        total_files_scanned: Number of candidate files collected
        total_size_groups: Number of size groups with two or more files

    Returns:
        ScanStatistics with group, file and wasted-space totals
    """
    return ScanStatistics(
        total_files_scanned=total_files_scanned,
        total_size_groups=total_size_groups,
        total_duplicate_groups=len(duplicates),
        total_duplicate_files=sum(len(files) for files in duplicates.values()),
        total_wasted_space=sum(wasted_space(files) for files in duplicates.values()),
    )
