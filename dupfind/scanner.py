"""
Directory scanning functionality.
"""

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from .cancellation import CancellationToken, is_cancelled
from .config import ScanConfig
from .progress import NullProgress, ProgressSink

logger = logging.getLogger(__name__)

# Report scan progress every N files found
_PROGRESS_INTERVAL = 1000

_HIDDEN_FILE_ATTRIBUTES = (
    getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0x2) | getattr(stat, "FILE_ATTRIBUTE_SYSTEM", 0x4)
)
_UF_HIDDEN = getattr(stat, "UF_HIDDEN", 0x8000)


@dataclass(frozen=True)
class FileRef:
    """A candidate file: absolute path and size in bytes at scan time."""
    path: Path
    size: int


class ScanResult:
    """Container for scan results and warnings."""

    def __init__(self):
        self.files: List[FileRef] = []
        self.warnings: List[str] = []
        self.interrupted = False
        self.skipped_items: Dict[str, int] = {
            'permission_denied': 0,
            'broken_symlinks': 0,
            'unreadable_files': 0,
            'other_errors': 0
        }


def validate_path(path: Path) -> None:
    """
    Check that the scan root exists and is a directory.

    Raises:
        FileNotFoundError: if the path does not exist
        NotADirectoryError: if the path is not a directory
    """
    if not path.exists():
        raise FileNotFoundError(f"Path does not exist: {path}")
    if not path.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {path}")


def has_hidden_flag(st: os.stat_result) -> bool:
    """
    Check the OS-level hidden marker of a stat result.

    macOS exposes BSD ``UF_HIDDEN`` in ``st_flags`` and Windows exposes
    ``FILE_ATTRIBUTE_HIDDEN``/``FILE_ATTRIBUTE_SYSTEM`` in
    ``st_file_attributes``. Linux has neither, so only dotfiles count there.
    """
    if getattr(st, "st_flags", 0) & _UF_HIDDEN:
        return True
    if getattr(st, "st_file_attributes", 0) & _HIDDEN_FILE_ATTRIBUTES:
        return True
    return False


def is_hidden(path: Path, st: Optional[os.stat_result] = None) -> bool:
    """Return True for dotfiles and entries carrying an OS hidden flag."""
    if path.name.startswith('.') and path.name not in ('.', '..'):
        return True
    if st is None:
        try:
            st = path.stat()
        except OSError:
            return False
    return has_hidden_flag(st)


def scan_files(
    directory: Path,
    config: Optional[ScanConfig] = None,
    cancel: Optional[CancellationToken] = None,
    progress: Optional[ProgressSink] = None,
) -> ScanResult:
    """
    Recursively collect candidate files below a directory.

    Applies the inclusion policy from the config: symlink following,
    minimum size, hidden entries, and ignored directory names. Unreadable
    entries are recorded as warnings and skipped. When the token is
    cancelled the walk stops and the files found so far are returned.

    Args:
        directory: Path to directory to scan
        config: Inclusion policy (defaults to ScanConfig())
        cancel: Optional cancellation token
        progress: Optional sink receiving the running file count

    Returns:
        ScanResult containing FileRefs, warnings, and error statistics
    """
    config = config or ScanConfig()
    progress = progress or NullProgress()
    result = ScanResult()
    ignored = config.ignored_dirs()

    if not config.include_hidden and is_hidden(directory):
        logger.info("Skipping hidden root directory %s", directory)
        return result

    root = directory.absolute()
    visited: Set[Tuple[int, int]] = set()

    def _on_walk_error(error: OSError) -> None:
        if isinstance(error, PermissionError):
            result.skipped_items['permission_denied'] += 1
        else:
            result.skipped_items['other_errors'] += 1
        result.warnings.append(f"Cannot read directory {error.filename}: {error}")
        logger.warning("Error reading directory entry: %s", error)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error,
                                                followlinks=config.follow_links):
        if is_cancelled(cancel):
            result.interrupted = True
            break

        current = Path(dirpath)
        if config.follow_links:
            # Symlinked directories can form cycles
            try:
                st = current.stat()
            except OSError:
                dirnames[:] = []
                continue
            key = (st.st_dev, st.st_ino)
            if key in visited:
                dirnames[:] = []
                continue
            visited.add(key)

        dirnames[:] = [
            name for name in dirnames
            if name not in ignored and _keep_directory(current / name, config)
        ]

        for filename in filenames:
            if is_cancelled(cancel):
                result.interrupted = True
                break
            file_ref = _process_item(current / filename, config, result)
            if file_ref is None:
                continue
            result.files.append(file_ref)
            if len(result.files) % _PROGRESS_INTERVAL == 0:
                progress.update(len(result.files))

        if result.interrupted:
            break

    progress.update(len(result.files))
    return result


def _keep_directory(path: Path, config: ScanConfig) -> bool:
    if config.include_hidden:
        return True
    try:
        st = path.lstat()
    except OSError:
        return True
    return not is_hidden(path, st)


def _process_item(item: Path, config: ScanConfig, result: ScanResult) -> Optional[FileRef]:
    """Turn a directory entry into a FileRef, or None if it is excluded."""
    try:
        if item.is_symlink():
            if not config.follow_links:
                return None
            try:
                st = item.stat()
            except FileNotFoundError:
                result.warnings.append(f"Broken symlink: {item}")
                result.skipped_items['broken_symlinks'] += 1
                return None
        else:
            st = item.lstat()

        if not config.include_hidden and is_hidden(item, st):
            return None
        if not stat.S_ISREG(st.st_mode):
            return None
        if st.st_size < config.min_size:
            return None
        return FileRef(item, st.st_size)

    except PermissionError as e:
        result.warnings.append(f"Permission denied: {item} ({e})")
        result.skipped_items['permission_denied'] += 1
    except OSError as e:
        result.warnings.append(f"Cannot read metadata for {item}: {e}")
        result.skipped_items['unreadable_files'] += 1
    logger.debug("Skipping %s: %s", item, result.warnings[-1])
    return None
