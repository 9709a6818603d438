"""Per-target recipe settings and the compiler command built from them."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Callable

from .document import H699Document, ValueType
from .log import Logger


def default_output(target: str) -> str:
    """Return the output name used when a target sets no `out`: text before the first dot."""
    return target.split(".", 1)[0]


def _remove(items: list[str], unwanted: list[str], first_only: bool) -> bool:
    """Blank out matching items in place; report whether anything matched."""
    removed = False
    for name in unwanted:
        for index, item in enumerate(items):
            if item == name:
                items[index] = ""
                removed = True
                if first_only:
                    break
    return removed


def _join_unique(items: list[str], prefix: str) -> str:
    result = ""
    for item in items:
        if not item or item in result:
            continue
        result += f"{prefix}{item} "
    return result


@dataclass
class TargetSettings:
    """Build settings; values set by one target carry over to the next."""

    bin: str = "bin"
    out: str = ""
    system: str = ""
    psystem: str = ""
    compiler_parguments: str = ""
    compiler_arguments: str = ""
    compiler: str = "g++"
    pkg_in: list[str] = field(default_factory=list)
    combine: list[str] = field(default_factory=list)
    include: list[str] = field(default_factory=list)
    lib: list[str] = field(default_factory=list)
    forced_pkg_in_fetch: bool = False
    logger: Logger = field(default_factory=Logger)

    def _string(self, document: H699Document, target: str, name: str) -> str | None:
        found = document.get(f"{target}.{name}")
        if not found.defined:
            return None
        if found.type is not ValueType.STRING:
            self.logger.error(
                f"Syntax Error --> `{name}` requires an string value but the entered "
                f"value was a Non-String Value! Error On File `{target}` Please fix "
                "this error by changing the type to string."
            )
        return found.string_value

    def _sequence(self, document: H699Document, target: str, name: str) -> list[str] | None:
        found = document.get(f"{target}.{name}")
        if not found.defined:
            return None
        if found.type is ValueType.STRING:
            return [found.string_value]
        if found.type is ValueType.ARRAY:
            return found.array_value
        self.logger.error(
            f"Syntax Error --> `{name}` requires an string or an array value but the "
            f"entered value was a Non-String Value! Error On File `{target}` Please "
            "fix this error by changing the type to string."
        )
        return None

    def _apply_list(
        self, document: H699Document, target: str, name: str, first_only: bool
    ) -> tuple[bool, bool]:
        """Apply name, name_add and name_rem; report (replaced, removed)."""
        items: list[str] = getattr(self, name)
        replaced = False
        base = self._sequence(document, target, name)
        if base is not None:
            items = list(base)
            replaced = True
        added = self._sequence(document, target, f"{name}_add")
        if added is not None:
            items.extend(added)
        removed = False
        unwanted = self._sequence(document, target, f"{name}_rem")
        if unwanted is not None:
            removed = _remove(items, unwanted, first_only)
        setattr(self, name, items)
        return replaced, removed

    def _apply_out(self, document: H699Document, target: str) -> None:
        out = self._string(document, target, "out")
        self.out = default_output(target) if out is None else out

    def _apply_bin(self, document: H699Document, target: str) -> None:
        bin_dir = self._string(document, target, "bin")
        if bin_dir is not None:
            self.bin = bin_dir

    def apply_output(self, document: H699Document, target: str) -> str:
        """Read `bin` and `out` for a target and return the binary's path."""
        self._apply_bin(document, target)
        self._apply_out(document, target)
        return f"{self.bin}/{self.out}"

    def apply_combine(self, document: H699Document, target: str) -> list[str]:
        """Read `combine`, `combine_add` and `combine_rem`; return the combined files."""
        self._apply_list(document, target, "combine", first_only=False)
        return self.combine

    def apply(self, document: H699Document, target: str) -> None:
        """Read every setting the recipe gives the target."""
        self._apply_out(document, target)
        show_logs = document.get(f"{target}.show_logs")
        if show_logs.defined:
            if show_logs.type is not ValueType.BOOL:
                self.logger.error(
                    "Syntax Error --> `show_logs` requires a boolean value but the "
                    f"entered value was a Non-Boolean Value! Error On File `{target}` "
                    "Please fix this error by changing the type to string."
                )
            self.logger.allowed = show_logs.bool_value
        self._apply_bin(document, target)
        for name in (
            "compiler",
            "compiler_arguments",
            "compiler_parguments",
            "system",
            "psystem",
        ):
            value = self._string(document, target, name)
            if value is not None:
                setattr(self, name, value)
        self._apply_list(document, target, "include", first_only=False)
        replaced, removed = self._apply_list(document, target, "pkg_in", first_only=True)
        if replaced:
            self.forced_pkg_in_fetch = False
        if removed:
            self.forced_pkg_in_fetch = True
        self._apply_list(document, target, "lib", first_only=True)
        self._apply_list(document, target, "combine", first_only=False)

    def include_arguments(self) -> str:
        """Return the -I flags, skipping blanks and anything already present."""
        return _join_unique(self.include, "-I")

    def lib_arguments(self) -> str:
        """Return the -l flags, skipping blanks and anything already present."""
        return _join_unique(self.lib, "-l")

    def combine_arguments(self) -> str:
        """Return the extra source files, skipping blanks and anything already present."""
        return _join_unique(self.combine, "")

    def command(self, target: str, package_flags: str) -> str:
        """Return the shell script: pre-commands, the compiler call, post-commands."""
        compile_line = (
            f"{self.compiler} {self.compiler_parguments} {target} "
            f"{self.combine_arguments()}-o {self.bin}/{self.out} "
            f"{self.include_arguments()}{self.lib_arguments()}{package_flags} "
            f"{self.compiler_arguments}"
        )
        return f"{self.psystem}\n{compile_line}\n{self.system}"


def _pkg_config(name: str) -> str | None:
    """Return the first line of pkg-config's flags for a package, or None on failure."""
    try:
        result = subprocess.run(
            ["pkg-config", "--cflags", "--libs", name],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
        )
    except OSError:
        return None
    if result.returncode != 0:
        return None
    lines = result.stdout.splitlines()
    return lines[0] if lines else ""


@dataclass
class PackageResolver:
    """Collects compiler flags of pkg-config packages, querying each only once."""

    logger: Logger = field(default_factory=Logger)
    query: Callable[[str], str | None] = _pkg_config
    fetched: list[str] = field(default_factory=list)
    flags: str = ""

    def resolve(self, packages: list[str], forced: bool, target: str) -> str:
        """Fetch flags for packages not seen yet (all of them when forced)."""
        if forced:
            self.flags = ""
            required = [name for name in packages if name]
        else:
            required = [name for name in packages if name and name not in self.fetched]
        for name in required:
            line = self.query(name)
            if line is None:
                self.logger.error(
                    f"The package `{name}` was not found on your system via pkg-config, "
                    "Please make sure that the package name is correct and it is "
                    "correctly installed and the Cook Build System has the permissions "
                    "to access it.\n\n\t As This is a critical error so the compilation "
                    f"for your file `{target}` was terminated before calling the executer "
                    "to call your compiler. The Rest of the recipe was also terminated."
                )
            self.fetched.append(name)
            self.flags += f"{line} "
        return self.flags