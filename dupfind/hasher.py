"""
File hashing utilities for duplicate detection.

Quick and full digests come from the same SHA-256 primitive; they differ
only in how many bytes of the file are fed to it.
"""

import hashlib
import logging
import threading
from pathlib import Path
from typing import Optional

from .config import DEFAULT_FULL_BUFFER_MB, DEFAULT_QUICK_BUFFER_KB, DEFAULT_SAMPLE_SIZE

logger = logging.getLogger(__name__)

# Global warning counter to avoid spam
_warning_counts = {
    'permission_denied': 0,
    'file_not_found': 0,
    'io_errors': 0,
    'other_errors': 0
}
_warning_lock = threading.Lock()

_MAX_WARNINGS_PER_TYPE = 5


def hash_file(file_path: Path, limit: Optional[int] = None, buffer_size: int = 65536) -> Optional[str]:
    """
    Calculate SHA256 hash of a file, or of its first ``limit`` bytes.

    Args:
        file_path: Path to the file
        limit: Maximum number of bytes to hash; None hashes the whole file
        buffer_size: Read chunk size in bytes

    Returns:
        Hex string of hash or None if error
    """
    sha256_hash = hashlib.sha256()
    try:
        with open(file_path, "rb", buffering=0) as f:
            remaining = limit
            while remaining is None or remaining > 0:
                size = buffer_size if remaining is None else min(buffer_size, remaining)
                chunk = f.read(size)
                if not chunk:
                    break
                sha256_hash.update(chunk)
                if remaining is not None:
                    remaining -= len(chunk)
        return sha256_hash.hexdigest()

    except PermissionError as e:
        _log_warning('permission_denied', f"Permission denied reading {file_path}: {e}")
        return None
    except FileNotFoundError as e:
        _log_warning('file_not_found', f"File not found {file_path}: {e}")
        return None
    except IsADirectoryError:
        # Silently skip directories that somehow got through
        return None
    except OSError as e:
        _log_warning('io_errors', f"I/O error reading {file_path}: {e}")
        return None
    except Exception as e:
        _log_warning('other_errors', f"Unexpected error reading {file_path}: {e}")
        return None


def quick_hash_file(
    file_path: Path,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    buffer_size: int = DEFAULT_QUICK_BUFFER_KB * 1024,
) -> Optional[str]:
    """Hash at most the first ``sample_size`` bytes of a file."""
    return hash_file(file_path, limit=sample_size, buffer_size=min(buffer_size, sample_size))


def full_hash_file(
    file_path: Path,
    buffer_size: int = DEFAULT_FULL_BUFFER_MB * 1024 * 1024,
) -> Optional[str]:
    """Hash the entire content of a file."""
    return hash_file(file_path, limit=None, buffer_size=buffer_size)


def _log_warning(warning_type: str, message: str) -> None:
    """Log warning messages with rate limiting to avoid spam."""
    with _warning_lock:
        count = _warning_counts.get(warning_type, 0)
        _warning_counts[warning_type] = count + 1  # Always increment counter

    if count < _MAX_WARNINGS_PER_TYPE:
        logger.warning(message)
    elif count == _MAX_WARNINGS_PER_TYPE:
        warning_name = warning_type.replace('_', ' ').title()
        logger.warning("%s: Additional warnings suppressed...", warning_name)
    else:
        logger.debug(message)


def get_warning_summary() -> dict:
    """Get summary of warnings that were logged."""
    with _warning_lock:
        return _warning_counts.copy()


def reset_warning_counters() -> None:
    """Reset warning counters (useful for testing)."""
    with _warning_lock:
        for warning_type in _warning_counts:
            _warning_counts[warning_type] = 0
