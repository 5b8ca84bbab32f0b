from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Set

logger = logging.getLogger(__name__)


class FileStore:
    """
    Loads and writes source files relative to a project root.

    Files are read and written with `newline=""` so the line endings of the
    file are kept as they are.
    """

    def __init__(self, root: str = ".", encoding: str = "utf-8", backup: bool = False):
        self.root = Path(root)
        self.encoding = encoding
        self.backup = backup
        self._backed_up: Set[str] = set()
        self._written: Set[str] = set()

    def resolve(self, path: str) -> Path:
        return self.root / path

    def load_code(self, path: str) -> str:
        target = self.resolve(path)
        logger.debug("LOAD: %s", target)
        with open(target, "r", encoding=self.encoding, newline="") as f:
            return f.read()

    def write_code(self, path: str, code: str) -> None:
        target = self.resolve(path)
        if self.backup and path not in self._backed_up:
            bak = target.with_name(target.name + ".bak")
            with open(target, "r", encoding=self.encoding, newline="") as f:
                original = f.read()
            with open(bak, "w", encoding=self.encoding, newline="") as bf:
                bf.write(original)
            self._backed_up.add(path)
            logger.info("BACKUP: %s", bak)
        logger.debug("WRITE: %s", target)
        with open(target, "w", encoding=self.encoding, newline="") as wf:
            wf.write(code)
        self._written.add(path)

    @property
    def changed_paths(self) -> List[str]:
        return sorted(self._written)


class DryRunStore(FileStore):
    """Keeps writes in memory; later loads of the same file see them."""

    def __init__(self, root: str = ".", encoding: str = "utf-8"):
        super().__init__(root=root, encoding=encoding, backup=False)
        self.overlay: Dict[str, str] = {}

    def load_code(self, path: str) -> str:
        if path in self.overlay:
            logger.debug("LOAD (overlay): %s", path)
            return self.overlay[path]
        return super().load_code(path)

    def write_code(self, path: str, code: str) -> None:
        logger.debug("WRITE (dry run): %s", path)
        self.overlay[path] = code

    @property
    def changed_paths(self) -> List[str]:
        return sorted(self.overlay)
