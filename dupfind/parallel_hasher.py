"""
Parallel tiered hashing: quick hash to split size buckets, full hash to confirm.
"""

import logging
from collections import defaultdict
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Dict, List, Optional

from .cancellation import CancellationToken, is_cancelled
from .config import ScanConfig
from .hasher import full_hash_file, quick_hash_file
from .progress import ProgressCounter, ProgressSink
from .scanner import FileRef

logger = logging.getLogger(__name__)

# Push hashing progress to the sink every N full hashes
_PROGRESS_REPORT_EVERY = 100

HashGroups = Dict[str, List[FileRef]]


def group_by_quick_hash(
    files: List[FileRef],
    executor: Executor,
    sample_size: int,
    buffer_size: int,
) -> List[List[FileRef]]:
    """
    Split same-size files by the digest of their first ``sample_size`` bytes.

    Files whose quick hash fails are dropped. Sub-groups with fewer than two
    members are discarded since they already differ from every other file.

    Returns:
        List of candidate sub-groups, each with at least two members
    """
    digests = executor.map(
        lambda ref: quick_hash_file(ref.path, sample_size, buffer_size),
        files,
    )
    quick_groups: Dict[str, List[FileRef]] = defaultdict(list)
    for file_ref, digest in zip(files, digests):
        if digest is None:
            logger.debug("Dropping %s: quick hash failed", file_ref.path)
            continue
        quick_groups[digest].append(file_ref)
    return [group for group in quick_groups.values() if len(group) >= 2]


def group_by_full_hash(
    files: List[FileRef],
    executor: Executor,
    buffer_size: int,
    counter: Optional[ProgressCounter] = None,
) -> HashGroups:
    """
    Group files by the digest of their entire content.

    Files whose full hash fails are dropped, and so are digests shared by
    fewer than two files.
    """

    def _hash(file_ref: FileRef) -> Optional[str]:
        try:
            return full_hash_file(file_ref.path, buffer_size)
        finally:
            if counter is not None:
                counter.advance()

    full_groups: HashGroups = defaultdict(list)
    for file_ref, digest in zip(files, executor.map(_hash, files)):
        if digest is None:
            logger.debug("Dropping %s: full hash failed", file_ref.path)
            continue
        full_groups[digest].append(file_ref)
    return {digest: group for digest, group in full_groups.items() if len(group) >= 2}


def hash_size_group(
    size: int,
    files: List[FileRef],
    config: ScanConfig,
    executor: Executor,
    cancel: Optional[CancellationToken] = None,
    counter: Optional[ProgressCounter] = None,
) -> HashGroups:
    """
    Run both hashing stages over one size bucket.

    Cancellation is only checked before the bucket starts; once started,
    the bucket's reads run to completion.

    Returns:
        Mapping of full digest to files for this bucket, two or more per digest
    """
    if is_cancelled(cancel) or len(files) < 2:
        return {}

    candidates = group_by_quick_hash(
        files, executor, config.sample_size, config.quick_buffer_bytes
    )
    survivors = [file_ref for group in candidates for file_ref in group]
    if not survivors:
        return {}

    logger.debug(
        "Size %d: %d of %d files need a full hash", size, len(survivors), len(files)
    )
    return group_by_full_hash(survivors, executor, config.full_buffer_bytes, counter)


def compute_hashes(
    groups: Dict[int, List[FileRef]],
    config: Optional[ScanConfig] = None,
    cancel: Optional[CancellationToken] = None,
    progress: Optional[ProgressSink] = None,
) -> List[HashGroups]:
    """
    Hash every size bucket in parallel and return per-bucket digest groups.

    Buckets run concurrently on a bucket pool; inside each bucket the
    per-file reads are spread over a shared file pool, so one large bucket
    still uses every worker. Bucket tasks only wait on file tasks, which
    never wait themselves.

    Args:
        groups: Size buckets, each expected to hold at least two files
        config: Hashing configuration (sample size, buffers, workers)
        cancel: Optional cancellation token, checked before each bucket
        progress: Optional sink for "files fully hashed / total" updates

    Returns:
        One full-digest mapping per bucket; merge with merge_hash_groups
    """
    config = config or ScanConfig()
    if not groups:
        return []

    total = sum(len(files) for files in groups.values())
    counter = ProgressCounter(progress, total, report_every=_PROGRESS_REPORT_EVERY)
    workers = config.worker_count

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dupfind-file") as file_pool, \
            ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dupfind-group") as group_pool:
        futures = [
            group_pool.submit(hash_size_group, size, files, config, file_pool, cancel, counter)
            for size, files in groups.items()
            if len(files) >= 2
        ]
        results = [future.result() for future in futures]

    counter.finish()
    return results
