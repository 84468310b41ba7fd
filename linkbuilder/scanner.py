"""Local document discovery."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Optional

from .config import CategoryMapping
from .errors import ConfigurationError
from .models import SupportedCategory

log = logging.getLogger(__name__)

UNMATCHED_POLICIES = ("skip", "report", "error")


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(".") for part in path.relative_to(root).parts)


def _check_folder(folder: Path) -> None:
    if not folder.exists():
        raise ConfigurationError(f"Source folder does not exist: {folder}")
    if not folder.is_dir():
        raise ConfigurationError(f"Source path is not a folder: {folder}")
    if not os.access(folder, os.R_OK | os.X_OK):
        raise ConfigurationError(f"Source folder is not readable: {folder}")


def scan_folder(
    folder: Path,
    mapping: Optional[CategoryMapping] = None,
    *,
    unmatched_policy: str = "report",
    unmatched: Optional[list[Path]] = None,
) -> Iterator[tuple[SupportedCategory, Path]]:
    """Yield ``(category, path)`` for every file under *folder* that maps to a category.

    The folder is validated immediately; files are walked lazily in sorted
    order. Files that match no category are handled per *unmatched_policy*:

    - ``skip``: ignored.
    - ``report``: appended to *unmatched* (when given) and logged.
    - ``error``: ``ConfigurationError`` is raised.

    Raises:
        ConfigurationError: the folder is missing or unreadable, the policy is
            unknown, or a file is unmatched under the ``error`` policy.
    """
    if unmatched_policy not in UNMATCHED_POLICIES:
        raise ConfigurationError(
            f"Unknown unmatched-file policy {unmatched_policy!r}; "
            f"expected one of {', '.join(UNMATCHED_POLICIES)}"
        )
    folder = Path(folder)
    _check_folder(folder)
    return _walk(folder, mapping or CategoryMapping.default(), unmatched_policy, unmatched)


def _walk(
    folder: Path,
    mapping: CategoryMapping,
    policy: str,
    unmatched: Optional[list[Path]],
) -> Iterator[tuple[SupportedCategory, Path]]:
    try:
        paths = sorted(folder.rglob("*"))
    except OSError as exc:
        raise ConfigurationError(f"Could not read source folder {folder}: {exc}") from exc

    for path in paths:
        if not path.is_file() or _is_hidden(path, folder):
            continue
        category = mapping.match(path, folder)
        if category is not None:
            yield category, path
            continue

        if policy == "error":
            raise ConfigurationError(f"No category matches file: {path}")
        if policy == "report":
            log.warning("Unmatched file: %s", path.relative_to(folder))
            if unmatched is not None:
                unmatched.append(path)
        else:
            log.debug("Skipping unmatched file: %s", path)
