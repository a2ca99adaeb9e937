"""
Workspace Scanner
=================
Enumerates the YAML mapping documents under a workspace root.

Build output directories (target, build, _build) are pruned before os.walk
recurses into them, at any depth. Unreadable directories and files are logged
and skipped; a scan never fails as a whole.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

from fhirconnect.utils.config import ALWAYS_EXCLUDED_DIRS, DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """
    A YAML file in the workspace.

    Content is read on first access and kept only as long as this object,
    which lives for a single navigation request.
    """

    path: Path
    _content: Optional[str] = field(default=None, init=False, repr=False)
    _loaded: bool = field(default=False, init=False, repr=False)

    @property
    def content(self) -> Optional[str]:
        """File text, or None if the file could not be read."""
        if not self._loaded:
            self._loaded = True
            self._content = read_text(self.path)
        return self._content

    @property
    def name(self) -> str:
        return self.path.name

    def is_same_file(self, other: Path) -> bool:
        try:
            return self.path.resolve() == Path(other).resolve()
        except OSError:
            return str(self.path) == str(other)


def read_text(path: Path) -> Optional[str]:
    """Read a file as UTF-8, returning None on I/O or decoding errors."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Error trying to read file %s: %s", path, e)
        return None


def is_yaml_file(path: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> bool:
    return path.suffix.lower() in set(extensions)


class WorkspaceScanner:
    """Walks a workspace root yielding YAML documents in a stable order."""

    def __init__(
        self,
        root: Path,
        exclude_dirs: Iterable[str] = ALWAYS_EXCLUDED_DIRS,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ):
        self.root = Path(root)
        self.exclude_dirs = set(ALWAYS_EXCLUDED_DIRS) | set(exclude_dirs)
        self.extensions = {ext.lower() for ext in extensions}

    def _on_walk_error(self, error: OSError) -> None:
        logger.warning("Skipping unreadable entry %s: %s", error.filename, error.strerror)

    def iter_paths(self) -> Iterator[Path]:
        """
        Walk directory tree yielding YAML file paths.

        Prunes excluded directories *before* recursing so os.walk never
        enters them.
        """
        if not self.root.is_dir():
            logger.debug("Workspace root %s is not a directory", self.root)
            return

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._on_walk_error):
            # Prune in-place so os.walk skips these subtrees entirely
            dirnames[:] = sorted(d for d in dirnames if d not in self.exclude_dirs)
            for fname in sorted(filenames):
                path = Path(dirpath) / fname
                if is_yaml_file(path, self.extensions):
                    yield path

    def scan(self) -> Iterator[Document]:
        for path in self.iter_paths():
            yield Document(path)
