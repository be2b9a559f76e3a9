"""High-level orchestration: one file through the passes, many files in a batch."""

from __future__ import annotations

import logging
import pathlib
import time
import traceback
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .configuration import Config
from .errors import WrapperError
from .files import atomic_write, discover_files, read_source, unified_diff
from .imports import reconcile
from .injector import inject_bindings
from .policy import ErrorPolicy
from .rewriter import rewrite_module
from .source import parse_module

logger = logging.getLogger(__name__)

SLOWEST_REPORTED = 3


@dataclass
class TransformOutcome:
    """Result of running the passes over one buffer."""

    original: str
    output: str
    wrapped: int = 0
    injected: int = 0
    satisfied: int = 0

    @property
    def modified(self) -> bool:
        return self.output != self.original


def transform_source(
    text: str, path: str | pathlib.Path | None, config: Config
) -> TransformOutcome:
    """Parse, rewrite, inject, reconcile and regenerate one source buffer.

    Raises ``ParseError`` or ``GenerationError``; the input is never modified.
    """

    module = parse_module(text, path)
    rewrite = rewrite_module(module, config)
    if not rewrite.modified:
        return TransformOutcome(original=text, output=text)

    injection = inject_bindings(module, rewrite, config)
    reconcile(module, injection.requirement, config)
    return TransformOutcome(
        original=text,
        output=module.generate(),
        wrapped=rewrite.wrapped,
        injected=injection.injected,
        satisfied=injection.satisfied,
    )


@dataclass
class FileReport:
    path: pathlib.Path
    elapsed_seconds: float
    modified: bool = False
    wrapped: int = 0
    injected: int = 0
    skipped: bool = False
    failed: bool = False
    diff: Optional[str] = None


@dataclass
class WrapSummary:
    """Report returned after processing a batch."""

    pattern: str
    root: pathlib.Path
    dry_run: bool
    discovered_files: int
    processed_files: int
    modified_files: List[pathlib.Path]
    skipped_files: int
    wrapped_literals: int
    injected_bindings: int
    total_errors: int
    elapsed_seconds: float
    timings: List[Tuple[pathlib.Path, float]] = field(default_factory=list)
    error_messages: List[str] = field(default_factory=list)

    @property
    def average_seconds(self) -> float:
        if not self.timings:
            return 0.0
        return sum(seconds for _, seconds in self.timings) / len(self.timings)

    def slowest(self, count: int = SLOWEST_REPORTED) -> List[Tuple[pathlib.Path, float]]:
        return sorted(self.timings, key=lambda item: item[1], reverse=True)[:count]


class WrapRunner:
    """Coordinates discovery, per-file transformation and write-back."""

    def __init__(
        self,
        config: Config,
        *,
        root: Optional[pathlib.Path] = None,
        error_policy: Optional[ErrorPolicy] = None,
        diff_printer=None,
    ) -> None:
        self.config = config
        self.root = (root or pathlib.Path.cwd()).resolve()
        self.error_policy = error_policy or ErrorPolicy()
        self.diff_printer = diff_printer or print

    def run(self) -> WrapSummary:
        start_time = time.perf_counter()

        files = discover_files(self.config.source_pattern, self.root)
        if not files:
            logger.warning("No files matched %s", self.config.source_pattern)
        else:
            logger.info("Processing %d file(s) with %d thread(s)", len(files), self.config.threads)

        reports: List[FileReport] = []
        executor = ThreadPoolExecutor(max_workers=max(1, self.config.threads))
        try:
            futures = [executor.submit(self._process_file, path) for path in files]
            for future in as_completed(futures):
                report = future.result()
                if report.diff:
                    self.diff_printer(report.diff)
                reports.append(report)
        except KeyboardInterrupt:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown()

        reports.sort(key=lambda report: str(report.path))
        elapsed = time.perf_counter() - start_time
        completed = [report for report in reports if not report.failed and not report.skipped]
        return WrapSummary(
            pattern=self.config.source_pattern,
            root=self.root,
            dry_run=self.config.dry_run,
            discovered_files=len(files),
            processed_files=len(completed),
            modified_files=[report.path for report in reports if report.modified],
            skipped_files=sum(1 for report in reports if report.skipped),
            wrapped_literals=sum(report.wrapped for report in reports),
            injected_bindings=sum(report.injected for report in reports),
            total_errors=self.error_policy.total_errors,
            elapsed_seconds=elapsed,
            timings=[(report.path, report.elapsed_seconds) for report in completed],
            error_messages=self.error_policy.messages(),
        )

    def _process_file(self, path: pathlib.Path) -> FileReport:
        started = time.perf_counter()
        display = self._display(path)
        try:
            text = read_source(path, max_file_size=self.config.max_file_size)
            if text is None:
                return FileReport(path, time.perf_counter() - started, skipped=True)

            outcome = transform_source(text, path, self.config)
            diff = None
            if outcome.modified:
                if self.config.show_diff:
                    diff = unified_diff(outcome.original, outcome.output, display)
                if self.config.dry_run:
                    logger.info("Would update %s (%d literal(s))", display, outcome.wrapped)
                else:
                    atomic_write(path, outcome.output)
                    logger.info("Updated %s (%d literal(s))", display, outcome.wrapped)
            return FileReport(
                path,
                time.perf_counter() - started,
                modified=outcome.modified,
                wrapped=outcome.wrapped,
                injected=outcome.injected,
                diff=diff,
            )
        except WrapperError as exc:
            self.error_policy.handle_error(exc, path=str(display))
        except Exception as exc:
            self.error_policy.handle_error(
                WrapperError(f"Unexpected error: {exc}"),
                path=str(display),
                details=traceback.format_exc(),
            )
        return FileReport(path, time.perf_counter() - started, failed=True)

    def _display(self, path: pathlib.Path) -> pathlib.Path:
        try:
            return path.relative_to(self.root)
        except ValueError:
            return path
