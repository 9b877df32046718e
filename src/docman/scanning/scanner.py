"""File system scanning into directory trees."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import List, Set, Tuple

from docman.config.models import ScanningSettings
from docman.entities import Directory, Document

LOGGER = logging.getLogger(__name__)


def creation_date(stat: os.stat_result) -> date:
    """Return the local calendar date a file was created.

    Uses the birth time where the platform reports one and the modification
    time otherwise.
    """
    timestamp = getattr(stat, "st_birthtime", None) or stat.st_mtime
    return datetime.fromtimestamp(timestamp).date()


class FileScanner:
    """Build a :class:`Directory` tree mirroring a directory on disk.

    Paths in the tree are relative to the source directory and use ``/`` as
    separator; the root itself has the path ``""``. The walk uses an explicit
    stack, so deep trees do not exhaust the interpreter's recursion limit.
    """

    def __init__(
        self,
        source: Path | str,
        *,
        include_hidden: bool = False,
        follow_symlinks: bool = False,
    ) -> None:
        self.source = Path(source).expanduser()
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks

    @classmethod
    def from_settings(cls, source: Path | str, settings: ScanningSettings) -> "FileScanner":
        """Build a scanner for ``source`` using the ``scanning`` configuration section."""
        return cls(
            source,
            include_hidden=settings.include_hidden,
            follow_symlinks=settings.follow_symlinks,
        )

    def scan(self) -> Directory:
        """Walk the source directory and return the root of the resulting tree.

        Raises:
            NotADirectoryError: If the source is not an existing directory.
        """
        root_path = self.source.resolve()
        if not root_path.is_dir():
            raise NotADirectoryError(f"Scan source is not a directory: {root_path}")

        root = Directory(path="", name=root_path.name)
        visited: Set[Path] = {root_path}
        stack: List[Tuple[Path, Directory]] = [(root_path, root)]
        while stack:
            path, node = stack.pop()
            try:
                entries = sorted(path.iterdir(), key=lambda entry: entry.name)
            except OSError as exc:
                LOGGER.debug("Skipping unreadable directory %s: %s", path, exc)
                continue

            for entry in entries:
                if not self.include_hidden and entry.name.startswith("."):
                    continue
                if entry.is_symlink() and not self.follow_symlinks:
                    continue
                relative = entry.relative_to(root_path).as_posix()
                try:
                    if entry.is_dir():
                        resolved = entry.resolve()
                        if resolved in visited:
                            continue
                        visited.add(resolved)
                        child = Directory(path=relative, name=entry.name)
                        node.directories.append(child)
                        stack.append((entry, child))
                    elif entry.is_file():
                        node.documents.append(
                            Document(
                                filename=entry.name,
                                absolute_path=relative,
                                creation_date=creation_date(entry.stat()),
                            )
                        )
                except OSError as exc:
                    LOGGER.debug("Skipping unreadable entry %s: %s", entry, exc)

        LOGGER.debug("Scanned %s.", root_path)
        return root


__all__ = ["FileScanner", "creation_date"]
