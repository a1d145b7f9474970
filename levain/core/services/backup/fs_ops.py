"""
Filesystem primitives shared by the snapshot and rollback engines.

Size walks count regular files only and never follow symlinks.
Copies preserve file attributes (``shutil.copy2``) and copy symlinks
as links.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

logger = logging.getLogger(__name__)

PROGRESS_STEP_BYTES = 50 * 1024 * 1024


def directory_size(path: Path) -> int:
    """Total byte size of all regular files below ``path``.

    Entries that cannot be stat'ed are skipped.
    """
    total = 0

    def _on_error(err: OSError) -> None:
        logger.debug("Skipping entry in size calculation: %s", err)

    for dirpath, _dirnames, filenames in os.walk(path, onerror=_on_error):
        for name in filenames:
            file_path = os.path.join(dirpath, name)
            try:
                st = os.lstat(file_path)
            except OSError as e:
                _on_error(e)
                continue
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
    return total


def usable_space(path: Path) -> int:
    """Free bytes available on the filesystem hosting ``path``.

    Walks up to the nearest existing ancestor, since the target
    directory usually doesn't exist yet.
    """
    probe = path
    while not probe.exists() and probe.parent != probe:
        probe = probe.parent
    return shutil.disk_usage(probe).free


def copy_tree(source: Path, target: Path, *, total_bytes: int | None = None) -> int:
    """Recursively copy ``source`` onto a new directory ``target``.

    Returns:
        Number of file bytes copied.

    Raises:
        OSError: On any copy failure (``shutil.Error`` included).
    """
    copied = 0
    next_report = PROGRESS_STEP_BYTES

    def _copy(src: str, dst: str) -> str:
        nonlocal copied, next_report
        result = shutil.copy2(src, dst)
        copied += os.stat(src).st_size
        if copied >= next_report:
            if total_bytes:
                percent = int(copied * 100 / total_bytes)
                logger.debug("Copy progress: %d%% (%d / %d bytes)", percent, copied, total_bytes)
            else:
                logger.debug("Copy progress: %d bytes", copied)
            next_report = copied + PROGRESS_STEP_BYTES
        return result

    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, target, symlinks=True, copy_function=_copy)
    return copied


def delete_tree(path: Path) -> None:
    """Recursively delete ``path``. No-op if it doesn't exist.

    Raises:
        OSError: If any entry cannot be removed.
    """
    if not os.path.lexists(path):
        return
    if path.is_symlink() or not path.is_dir():
        path.unlink()
        return
    shutil.rmtree(path)
