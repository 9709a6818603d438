"""Coloured console messages and the error type used across the build tool."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TextIO

_RESET = "\033[0m"
_LOG_PREFIX = "\033[1;92m[Cook Log]: \033[1;37m"
_WARNING_PREFIX = "\033[38;5;190m[Cook Warning]: \033[1;37m"
_ERROR_PREFIX = "\033[1;31m[Cook Error]: \033[1;37m"


class CookError(Exception):
    """A fatal build error; the command line turns it into exit status 3."""

    exit_code = 3

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass
class Logger:
    """Writes log, warning and error lines; plain logs only when allowed."""

    allowed: bool = False
    stream: TextIO | None = None

    def _write(self, prefix: str, message: str) -> None:
        out = self.stream if self.stream is not None else sys.stdout
        out.write(f"{prefix}{message}\n{_RESET}")
        out.flush()

    def log(self, message: str) -> None:
        """Print an informational line if logging is allowed."""
        if self.allowed:
            self._write(_LOG_PREFIX, message)

    def warning(self, message: str) -> None:
        """Print a warning and stop the build."""
        self._write(_WARNING_PREFIX, message)
        raise CookError(message)

    def error(self, message: str) -> None:
        """Print an error and stop the build."""
        self._write(_ERROR_PREFIX, message)
        raise CookError(message)