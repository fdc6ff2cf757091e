"""
Run configuration for duplicate detection.
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

# Quick hash sample size in bytes
DEFAULT_SAMPLE_SIZE = 8192
# Read buffer for quick hashing, in KB
DEFAULT_QUICK_BUFFER_KB = 64
# Read chunk for full hashing, in MB
DEFAULT_FULL_BUFFER_MB = 1

# Directory names skipped unless --no-ignore is given
DEFAULT_IGNORED_DIRS: FrozenSet[str] = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".venv",
    ".tox",
})


def get_worker_count(requested: Optional[int] = None) -> int:
    """
    Determine the number of worker threads for a pipeline phase.

    Args:
        requested: Explicit worker count, or None/0 for one per CPU core

    Returns:
        Number of worker threads to use
    """
    if requested:
        if requested < 0:
            raise ValueError(f"Worker count must be positive, got {requested}")
        return requested
    return os.cpu_count() or 4


@dataclass
class ScanConfig:
    """Tunables for a single duplicate detection run."""
    sample_size: int = DEFAULT_SAMPLE_SIZE
    quick_buffer_size: int = DEFAULT_QUICK_BUFFER_KB
    full_buffer_size: int = DEFAULT_FULL_BUFFER_MB
    min_size: int = 0
    follow_links: bool = False
    include_hidden: bool = False
    use_default_ignores: bool = True
    ignore: List[str] = field(default_factory=list)
    workers: Optional[int] = None

    @property
    def quick_buffer_bytes(self) -> int:
        return self.quick_buffer_size * 1024

    @property
    def full_buffer_bytes(self) -> int:
        return self.full_buffer_size * 1024 * 1024

    @property
    def worker_count(self) -> int:
        return get_worker_count(self.workers)

    def ignored_dirs(self) -> FrozenSet[str]:
        """Directory names excluded from traversal."""
        names = set(self.ignore)
        if self.use_default_ignores:
            names.update(DEFAULT_IGNORED_DIRS)
        return frozenset(names)

    def validate(self) -> None:
        """Raise ValueError for settings the pipeline cannot run with."""
        if self.sample_size <= 0:
            raise ValueError(f"Quick hash size must be positive, got {self.sample_size}")
        if self.quick_buffer_size <= 0:
            raise ValueError(f"Quick buffer size must be positive, got {self.quick_buffer_size}")
        if self.full_buffer_size <= 0:
            raise ValueError(f"Full buffer size must be positive, got {self.full_buffer_size}")
        if self.min_size < 0:
            raise ValueError(f"Minimum size cannot be negative, got {self.min_size}")
        if self.workers is not None and self.workers < 0:
            raise ValueError(f"Worker count must be positive, got {self.workers}")
