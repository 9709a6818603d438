"""Modification stamps of source files, kept in the incremental build cache."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .document import H699Document, ValueType
from .lexer import Lexer
from .log import Logger


def file_stamp(path: str | os.PathLike[str]) -> str:
    """Describe a file's mode, size and modification time; empty if it is missing."""
    try:
        info = os.stat(path)
    except OSError:
        return ""
    return f"{stat.filemode(info.st_mode)} {info.st_size} {info.st_mtime_ns} {os.fspath(path)}"


@dataclass
class IncrementCache:
    """The cache file that remembers the last seen stamp of every file."""

    path: Path
    logger: Logger = field(default_factory=Logger)
    stamp: Callable[[str], str] = file_stamp

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def _load(self) -> H699Document | None:
        if not self.path.is_file():
            return None
        document = H699Document(self.path, Lexer(self.logger))
        document.parse()
        return document

    def _save(self, document: H699Document) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document.write(self.path)

    def _store(self, document: H699Document, name: str, current: str) -> None:
        if not document.get(name).defined:
            document.new_key(name, ValueType.STRING)
        document.set(name, current)
        self._save(document)

    def _fresh(self) -> H699Document:
        return H699Document(self.path, Lexer(self.logger))

    def _examine(self, name: str, update: bool) -> bool:
        current = self.stamp(name)
        document = self._load()
        if document is None:
            document = self._fresh()
            self._store(document, name, current)
            return False
        stored = document.get(name)
        if not stored.defined:
            self._store(document, name, current)
            return False
        if stored.type is not ValueType.STRING:
            self.logger.warning(
                f"A Non-String type detected in the `{self.path}` file so deleting it "
                "as it can cause bugs in incremental builds, Note: Do not modify "
                f"`{self.path}` as it is generated by the Cook Build System."
            )
        unchanged = stored.string_value == current
        if update:
            self._store(document, name, current)
        return unchanged

    def check(self, name: str) -> bool:
        """Return True if the file is unchanged since the last check, and record it."""
        return self._examine(name, update=True)

    def compare(self, name: str) -> bool:
        """Return True if the file is unchanged; a known stamp is not updated."""
        return self._examine(name, update=False)

    def record(self, name: str) -> None:
        """Store the file's current stamp, adding the key if needed."""
        document = self._load()
        if document is None:
            document = self._fresh()
        self._store(document, name, self.stamp(name))

    def stamp_of(self, name: str) -> str:
        """Return the stored stamp of a file, or an empty string."""
        document = self._load()
        if document is None:
            return ""
        return document.get(name).string_value