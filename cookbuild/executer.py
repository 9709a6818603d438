"""Runs prepared build jobs and records the new stamps in the build cache."""

from __future__ import annotations

import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from .builder import BuildJob, CompareEntry
from .document import H699Document
from .lexer import Lexer
from .log import Logger
from .timestamps import IncrementCache


def _run_shell(command: str) -> None:
    subprocess.run(command, shell=True, check=False)


@dataclass
class Executor:
    """Builds jobs one after another or on a bounded number of threads."""

    cache: IncrementCache
    logger: Logger = field(default_factory=Logger)
    parallel: bool = False
    thread_limit: int = 1
    run_command: Callable[[str], object] = _run_shell
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def run(self, jobs: Sequence[BuildJob], compare_files: Iterable[CompareEntry]) -> None:
        """Run every job's commands, then update the increment and per-target caches."""
        if self.thread_limit == 0:
            self.thread_limit = 1
            self.logger.log(
                "For your machiene safety the cook build system has automatically set "
                "the thread limits to 1 as it was 0 in input from CLI which could "
                "cause damage."
            )
        compare = list(compare_files)
        total = len(jobs)
        if self.parallel:
            with ThreadPoolExecutor(max_workers=max(1, self.thread_limit)) as pool:
                futures = [
                    pool.submit(self._build, number, job, total, compare)
                    for number, job in enumerate(jobs, start=1)
                ]
            for future in futures:
                future.result()
        else:
            for number, job in enumerate(jobs, start=1):
                self._build(number, job, total, compare)

    def _build(
        self, number: int, job: BuildJob, total: int, compare: list[CompareEntry]
    ) -> None:
        progress = number / total * 100
        self.logger.log(f"Building `{job.source}` Progress --> {progress:.6f}%")
        self.logger.log(f"Building Commands:  `{job.command}`")
        self.run_command(job.command)
        with self._lock:
            self.cache.record(job.source)
            self.cache.record(job.binary)
            self._sync_compare_files(compare)

    def _sync_compare_files(self, compare: list[CompareEntry]) -> None:
        for entry in compare:
            document = H699Document(entry.cache_file, Lexer(self.logger))
            document.parse()
            document.set(entry.source, self.cache.stamp_of(entry.source))
            document.write(entry.cache_file)