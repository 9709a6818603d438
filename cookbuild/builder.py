"""Decides which recipe targets need building and prepares their commands."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .document import H699Document, ValueType
from .lexer import Lexer
from .log import Logger
from .recipe import PackageResolver, TargetSettings
from .timestamps import IncrementCache, file_stamp

GLOBAL_SCOPE = "global"


def cache_file_for(cache_dir: str | os.PathLike[str], target: str) -> Path:
    """Return the per-target cache file: slashes in the target become dots."""
    return Path(cache_dir) / (target.replace("/", ".") + ".h699")


@dataclass(frozen=True)
class BuildJob:
    """One target to build: its source, the shell script and the binary path."""

    source: str
    command: str
    binary: str


@dataclass(frozen=True)
class CompareEntry:
    """A combined file whose stamp must be copied into a target's cache after building."""

    target: str
    cache_file: Path
    source: str


@dataclass
class BuildPlanner:
    """Walks the recipe's targets and collects those that must be rebuilt."""

    cache_dir: Path = Path("CookCache")
    increment: bool = False
    logger: Logger = field(default_factory=Logger)
    settings: TargetSettings | None = None
    resolver: PackageResolver | None = None
    stamp: Callable[[str], str] = file_stamp
    compare_files: list[CompareEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.cache_dir = Path(self.cache_dir)
        if self.settings is None:
            self.settings = TargetSettings(logger=self.logger)
        if self.resolver is None:
            self.resolver = PackageResolver(logger=self.logger)
        self.cache = IncrementCache(
            self.cache_dir / "increment.h699", self.logger, self.stamp
        )

    def _combine_changed(self, combine: list[str], changed: list[str]) -> bool:
        """Check combined files' stamps; stop at the first newly changed one."""
        result = False
        for name in combine:
            if not name:
                continue
            if name in changed:
                result = True
                continue
            if not self.cache.check(name):
                changed.append(name)
                return True
        return result

    def _sync_target_cache(self, target: str, combine: list[str]) -> bool:
        """Bring the target's own cache up to date; report whether anything differed."""
        path = cache_file_for(self.cache_dir, target)
        if not path.exists():
            path.touch()
        document = H699Document(path, Lexer(self.logger))
        document.parse()
        differed = False
        for name in combine:
            if not name:
                continue
            current = self.cache.stamp_of(name)
            stored = document.get(name)
            if not stored.defined:
                document.new_key(name, ValueType.STRING)
            elif stored.type is not ValueType.STRING:
                self.logger.error(f"Corrupted Configuration at file `{path}`.")
            elif stored.string_value == current:
                continue
            document.set(name, current)
            document.write(path)
            differed = True
            self.compare_files.append(CompareEntry(target, path, name))
        return differed

    def plan(self, document: H699Document) -> list[BuildJob]:
        """Return the build jobs for every target of the recipe that needs building."""
        settings = self.settings
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        jobs: list[BuildJob] = []
        changed_combines: list[str] = []
        build_skip = False

        for target in list(document.scopes):
            if target == GLOBAL_SCOPE:
                build_skip = True
            if not build_skip and not Path(target).exists():
                self.logger.error(
                    f"Invalid target detected , Can't open the file `{target}`, "
                    "Please make sure that the entered path was valid."
                )

            skip = self.cache.compare(target)
            if skip:
                binary = settings.apply_output(document, target)
                skip = Path(binary).exists()

            combine = settings.apply_combine(document, target)
            if self._combine_changed(combine, changed_combines):
                skip = False
            if target != GLOBAL_SCOPE and self._sync_target_cache(target, combine):
                skip = False

            if skip and not self.increment:
                skip = False
            if skip:
                continue

            settings.apply(document, target)
            flags = self.resolver.resolve(
                settings.pkg_in, settings.forced_pkg_in_fetch, target
            )
            if build_skip:
                build_skip = False
                continue

            Path(settings.bin).mkdir(parents=True, exist_ok=True)
            jobs.append(
                BuildJob(
                    target,
                    settings.command(target, flags),
                    f"{settings.bin}/{settings.out}",
                )
            )
        return jobs