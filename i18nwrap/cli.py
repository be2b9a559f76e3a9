"""Command line interface for the i18n wrapper."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from typing import Iterable, Optional

from .configuration import load_config
from .errors import ConfigurationError, PatternError, WrapperError
from .structures import ClientStrategy, Framework, ServerStrategy
from .wrapper import WrapRunner, WrapSummary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="i18n-wrapper",
        description=(
            "Wrap hard-coded Korean string literals in JS/TS components with t() "
            "and add the translation hook and imports they need."
        ),
    )
    parser.add_argument(
        "-p",
        "--pattern",
        help='Glob pattern for source files (default: "src/**/*.{js,jsx,ts,tsx}").',
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        default=None,
        help="Report what would change without writing any file.",
    )
    parser.add_argument(
        "--mode",
        choices=["client", "server"],
        help="Binding strategy: client hook or awaited server accessor (default: client).",
    )
    parser.add_argument(
        "--framework",
        help="Framework hint; 'nextjs' adds the \"use client\" directive in client mode.",
    )
    parser.add_argument(
        "--import-source",
        help="Module the translation hook is imported from (default: i18nexus).",
    )
    parser.add_argument(
        "--server-function",
        help="Server translation accessor name (default: getServerTranslation).",
    )
    parser.add_argument(
        "--threads",
        type=int,
        help="Number of worker threads (default: CPU count).",
    )
    parser.add_argument(
        "--diff",
        action="store_true",
        help="Print a unified diff for every modified file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    return parser


def configure_logging(verbose: bool) -> None:
    root = logging.getLogger("i18nwrap")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def execute_wrap(
    *,
    pattern: str | None,
    dry_run: bool | None,
    mode: str | None,
    framework: str | None,
    import_source: str | None,
    server_function: str | None,
    threads: int | None,
    show_diff: bool,
    root: pathlib.Path | None = None,
) -> tuple[int, WrapSummary | None, str | None]:
    """Execute a wrap run and return the exit code, summary, and message."""

    try:
        config = load_config(root)
    except ConfigurationError as exc:
        return 1, None, str(exc)

    overrides: dict = {
        "source_pattern": pattern,
        "dry_run": dry_run,
        "translation_import_source": import_source,
        "show_diff": show_diff or None,
    }
    if threads is not None:
        if threads < 1:
            return 1, None, "--threads must be at least 1."
        overrides["threads"] = threads
    if framework is not None:
        overrides["framework"] = Framework.from_hint(framework)
    if mode == "server" or (mode is None and not config.is_client):
        overrides["strategy"] = ServerStrategy(server_function or config.server_function)
    elif mode == "client":
        overrides["strategy"] = ClientStrategy(config.hook_name)
    config = config.with_overrides(**overrides)

    runner = WrapRunner(config, root=root)
    try:
        summary = runner.run()
    except PatternError as exc:
        return 1, None, str(exc)
    except ConfigurationError as exc:
        return 1, None, str(exc)
    except KeyboardInterrupt:
        return 2, None, "Run interrupted by user."
    except WrapperError as exc:
        return 1, None, str(exc)

    return 0, summary, None


def print_summary(summary: WrapSummary) -> None:
    """Output a completion report once processing completes."""

    heading = "Dry run complete." if summary.dry_run else "Wrapping complete."
    print(f"\n{heading}")
    print(f"  Pattern:         {summary.pattern}")
    print(
        "  Files:           "
        f"{summary.processed_files} processed / {summary.discovered_files} matched "
        f"({len(summary.modified_files)} modified, {summary.skipped_files} skipped)"
    )
    print(f"  Literals:        {summary.wrapped_literals} wrapped")
    print(f"  Bindings:        {summary.injected_bindings} injected")
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")
    if summary.timings:
        print(f"  Average / file:  {summary.average_seconds * 1000:.1f} ms")
        print("  Slowest files:")
        for path, seconds in summary.slowest():
            print(f"    - {path} ({seconds * 1000:.1f} ms)")
    if summary.modified_files:
        label = "Would modify" if summary.dry_run else "Modified"
        print(f"  {label}:")
        for path in summary.modified_files:
            print(f"    - {path}")
    if summary.total_errors:
        print("  Errors:")
        for message in summary.error_messages:
            print(f"    - {message}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.verbose)

    exit_code, summary, message = execute_wrap(
        pattern=args.pattern,
        dry_run=args.dry_run,
        mode=args.mode,
        framework=args.framework,
        import_source=args.import_source,
        server_function=args.server_function,
        threads=args.threads,
        show_diff=args.diff,
    )

    if message:
        print(message, file=sys.stderr)
    if summary:
        print_summary(summary)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
