"""Task-lifecycle steps that run alongside the JVM launch in a task script."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

OUT_OF_MEMORY_MARKER = "java.lang.OutOfMemoryError"
DEFAULT_OOM_EXIT_CODE = 104


def log_reports_out_of_memory(log_path: Path | str) -> bool:
    """Return whether a process log mentions a JVM out-of-memory error."""
    path = Path(log_path)
    if not path.is_file():
        return False
    with path.open(encoding="utf-8", errors="replace") as handle:
        return any(OUT_OF_MEMORY_MARKER in line for line in handle)


def classify_exit_code(
    exit_code: int,
    log_path: Path | str,
    *,
    oom_exit_code: int = DEFAULT_OOM_EXIT_CODE,
) -> int:
    """Replace a process exit code with ``oom_exit_code`` when its log shows an OOM."""
    if log_reports_out_of_memory(log_path):
        return oom_exit_code
    return exit_code


def reclaim_inputs(
    paths: Iterable[Path | str],
    *,
    enabled: bool,
    exit_code: int,
) -> tuple[Path, ...]:
    """Delete task inputs and their link targets after a successful step.

    Does nothing unless ``enabled`` is set and ``exit_code`` is zero. Each path is
    resolved to its real target; the target is removed first, then the link itself.
    Entries that are already gone are skipped. Plain directories and links to
    directories are left untouched. Returns the paths actually removed.
    """
    if not enabled or exit_code != 0:
        return ()

    removed: list[Path] = []
    for raw_path in paths:
        link = Path(raw_path)
        if link.is_symlink():
            target = Path(os.path.realpath(link))
            if target.is_dir():
                continue
            if target.is_file():
                target.unlink()
                removed.append(target)
            link.unlink()
            removed.append(link)
        elif link.is_file():
            link.unlink()
            removed.append(link)
    return tuple(removed)
