"""
Duplicate file detection logic with multi-stage optimization.
"""

import logging
import os
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from .cancellation import CancellationToken, is_cancelled
from .config import ScanConfig, get_worker_count
from .parallel_hasher import HashGroups, compute_hashes
from .progress import NullProgress, ProgressCounter, ProgressSink
from .scanner import FileRef

logger = logging.getLogger(__name__)

# Poll the cancellation token every N files while partitioning
CANCEL_CHECK_INTERVAL = 1000

SizeGroups = Dict[int, List[FileRef]]


@dataclass
class DetectionResult:
    """Outcome of one pipeline run."""
    duplicates: HashGroups = field(default_factory=dict)
    files_scanned: int = 0
    size_groups: int = 0
    interrupted: bool = False


def _size_of(file_ref: FileRef) -> Optional[int]:
    """Re-read the current size of a file, None if it is gone or changed."""
    try:
        size = os.stat(file_ref.path).st_size
    except OSError as e:
        logger.debug("Dropping %s: cannot read metadata (%s)", file_ref.path, e)
        return None
    if size != file_ref.size:
        logger.debug(
            "Dropping %s: size changed from %d to %d", file_ref.path, file_ref.size, size
        )
        return None
    return size


def _partition_chunk(
    files: List[FileRef],
    cancel: Optional[CancellationToken],
    counter: ProgressCounter,
) -> SizeGroups:
    local: SizeGroups = defaultdict(list)
    processed = 0
    for file_ref in files:
        if processed % CANCEL_CHECK_INTERVAL == 0 and is_cancelled(cancel):
            break
        processed += 1
        size = _size_of(file_ref)
        if size:
            local[size].append(file_ref)
    counter.advance(processed)
    return local


def _merge_groups(into: SizeGroups, other: SizeGroups) -> SizeGroups:
    """Fold one size map into another. Associative and commutative up to list order."""
    for size, files in other.items():
        into[size].extend(files)
    return into


def group_by_size(
    files: List[FileRef],
    cancel: Optional[CancellationToken] = None,
    progress: Optional[ProgressSink] = None,
    max_workers: Optional[int] = None,
) -> SizeGroups:
    """
    Bucket files by exact byte length.

    Each worker partitions a contiguous chunk into its own map; the maps are
    then merged, so the result does not depend on the worker count. Empty
    files, vanished files and files whose size changed since the scan are
    left out. Only sizes shared by at least two files are returned.

    Args:
        files: Candidate files
        cancel: Optional cancellation token, polled every CANCEL_CHECK_INTERVAL files
        progress: Optional sink for "files checked / total" updates
        max_workers: Worker count (None for one per CPU core)

    Returns:
        Dictionary of size -> files with that size (two or more)
    """
    if not files:
        return {}

    workers = min(get_worker_count(max_workers), len(files))
    chunk_size = -(-len(files) // workers)
    chunks = [files[i:i + chunk_size] for i in range(0, len(files), chunk_size)]
    counter = ProgressCounter(progress, len(files), report_every=CANCEL_CHECK_INTERVAL)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        local_maps = list(executor.map(lambda chunk: _partition_chunk(chunk, cancel, counter), chunks))

    size_to_files: SizeGroups = defaultdict(list)
    for local in local_maps:
        _merge_groups(size_to_files, local)

    counter.finish()
    return {size: group for size, group in size_to_files.items() if len(group) > 1}


def merge_hash_groups(results: Iterable[HashGroups]) -> HashGroups:
    """
    Merge per-bucket digest maps and keep digests with two or more files.

    Buckets are disjoint by size, so merging never joins files of
    different lengths.
    """
    merged: HashGroups = defaultdict(list)
    for bucket in results:
        for digest, files in bucket.items():
            merged[digest].extend(files)
    return {digest: files for digest, files in merged.items() if len(files) > 1}


def find_duplicates(
    files: List[FileRef],
    config: Optional[ScanConfig] = None,
    cancel: Optional[CancellationToken] = None,
    make_progress: Optional[Callable[[str], ProgressSink]] = None,
) -> DetectionResult:
    """
    Find duplicate files using multi-stage comparison.

    Stage 1: Group by file size
    Stage 2: Partial hash (first ``sample_size`` bytes) within each size group
    Stage 3: Full hash only when partial hashes match

    Args:
        files: Candidate files from the scanner
        config: Run configuration
        cancel: Optional cancellation token shared by every stage
        make_progress: Optional factory returning a progress sink per stage description

    Returns:
        DetectionResult with duplicates mapped by full hash
    """
    config = config or ScanConfig()
    make_progress = make_progress or (lambda desc: NullProgress())
    result = DetectionResult(files_scanned=len(files))

    logger.info("=== Stage 1: Grouping files by size ===")
    with make_progress("Grouping by size") as progress:
        size_groups = group_by_size(files, cancel, progress, config.workers)
    result.size_groups = len(size_groups)

    files_needing_hash = sum(len(group) for group in size_groups.values())
    logger.info("  Found %d size groups", len(size_groups))
    logger.info("  %d files need content comparison", files_needing_hash)

    if size_groups and not is_cancelled(cancel):
        logger.info("=== Stage 2-3: Partial and full hash comparison ===")
        with make_progress("Computing hashes") as progress:
            per_bucket = compute_hashes(size_groups, config, cancel, progress)
        result.duplicates = merge_hash_groups(per_bucket)

    result.interrupted = is_cancelled(cancel)
    logger.info("  Found %d duplicate groups", len(result.duplicates))
    return result
