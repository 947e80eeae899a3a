"""Command-line front-end.

Thin wiring over erudita.commands: parse arguments, run the operation,
print outcomes and tallies. All behaviour lives in the commands module.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from erudita import __version__
from erudita.commands import (
    BatchReport,
    PackageOutcome,
    clear_packages,
    fetch_packages,
    install_from_project,
    install_packages,
    show_package,
    uninstall_packages,
    update_packages,
)
from erudita.config import Settings
from erudita.errors import EruditaError
from erudita.logs import setup_logging
from erudita.project import load_project_config, read_manifest_dependencies
from erudita.state import AppState, build_cache, open_app_state

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from erudita.pipeline import FetchProgress


# === Output helpers ===


def _progress_printer() -> Callable[[str, FetchProgress], None] | None:
    if not sys.stdout.isatty():
        return None

    def _print(key: str, progress: FetchProgress) -> None:
        if progress.phase != "docs":
            return
        suffix = f" ({progress.errors} errors)" if progress.errors else ""
        sys.stdout.write(f"\r\x1b[K  [{progress.completed}/{progress.total}] {key}{suffix}")
        sys.stdout.flush()

    return _print


def _print_outcome(outcome: PackageOutcome) -> None:
    if sys.stdout.isatty():
        sys.stdout.write("\r\x1b[K")
    if outcome.status == "ok":
        errors = f", {outcome.errors} errors" if outcome.errors else ""
        print(f"  [ ok ] {outcome.key} ({outcome.documents} docs{errors})")
    elif outcome.status == "linked":
        print(f"  [link] {outcome.key}")
    elif outcome.status == "skipped":
        print(f"  [skip] {outcome.key} ({outcome.message})")
    else:
        print(f"  [fail] {outcome.key} - {outcome.message}")


def _print_report(report: BatchReport, verb: str) -> None:
    for outcome in report.outcomes:
        _print_outcome(outcome)
    print(
        f"\nDone: {report.succeeded} {verb}, {report.skipped} skipped, {report.failed} failed"
    )


def _select_packages(args: argparse.Namespace, project_dir: Path) -> list[str] | None:
    """Positional packages, or package.json dependencies with --deps."""
    if args.deps:
        deps = read_manifest_dependencies(project_dir, args.deps)
        if not deps:
            print("No dependencies found in package.json")
            return None
        return deps
    return list(args.packages)


# === Command implementations ===


async def _with_state(
    settings: Settings,
    run: Callable[[AppState], Awaitable[BatchReport]],
) -> BatchReport:
    async with open_app_state(settings) as state:
        return await run(state)


def cmd_fetch(args: argparse.Namespace, settings: Settings) -> int:
    packages = _select_packages(args, Path.cwd())
    if packages is None:
        return 0
    if not packages:
        print("Usage: erudita fetch <packages...> or erudita fetch --deps <dev|prod|all>")
        return 1

    print(f"Fetching documentation for {len(packages)} package(s)...\n")
    report = asyncio.run(
        _with_state(
            settings,
            lambda state: fetch_packages(
                state, packages, force=args.force, on_progress=_progress_printer()
            ),
        )
    )
    _print_report(report, "fetched")
    return 1 if report.failed else 0


def cmd_install(args: argparse.Namespace, settings: Settings) -> int:
    project_dir = Path.cwd()
    packages = _select_packages(args, project_dir)
    if packages is None:
        return 0
    mode = "copy" if args.copy else None

    if not packages:
        keys = list(load_project_config(project_dir).packages)
        print(f"Installing {len(keys)} package(s) from erudita.json...\n")
        report = asyncio.run(
            _with_state(
                settings,
                lambda state: install_from_project(
                    state,
                    project_dir,
                    force=args.force,
                    mode=mode,
                    on_progress=_progress_printer(),
                ),
            )
        )
        if report.removed_links:
            print(f"Removed {len(report.removed_links)} package link(s) not in erudita.json.")
    else:
        print(f"Installing {len(packages)} package(s)...\n")
        report = asyncio.run(
            _with_state(
                settings,
                lambda state: install_packages(
                    state,
                    project_dir,
                    packages,
                    force=args.force,
                    mode=mode,
                    on_progress=_progress_printer(),
                ),
            )
        )
    _print_report(report, "installed")
    return 1 if report.failed else 0


def cmd_update(args: argparse.Namespace, settings: Settings) -> int:
    cache = build_cache(settings)
    if not args.packages and not args.all:
        cached = cache.list_packages()
        if not cached:
            print("No cached packages to update.")
            return 0
        print("Usage: erudita update <packages...> or erudita update --all")
        print(f"\nCached packages ({len(cached)}):")
        for meta in cached:
            print(f"  {meta.name}")
        return 1

    keys = None if args.all else list(args.packages)
    report = asyncio.run(
        _with_state(
            settings,
            lambda state: update_packages(state, keys, on_progress=_progress_printer()),
        )
    )
    _print_report(report, "updated")
    return 1 if report.failed else 0


def cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    cache = build_cache(settings)
    packages = cache.list_packages()
    if not packages:
        print("No cached packages. Use `erudita fetch <package>` to cache documentation.")
        return 0

    print(f"Cached packages ({len(packages)}):\n")
    for meta in packages:
        document = cache.get_index(meta.name)
        entry_count = len(document.entries) if document is not None else 0
        if args.verbose:
            print(f"  {meta.name}")
            print(f"    Source: {meta.source_url}")
            print(f"    Fetched: {meta.fetched_at.isoformat()}")
            print(f"    Entries: {entry_count}")
            print()
        else:
            print(f"  {meta.name} ({entry_count} docs)")
    return 0


def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    cache = build_cache(settings)
    try:
        print(show_package(cache, args.package, entry=args.entry, raw=args.raw))
    except EruditaError as exc:
        print(exc.message)
        print(exc.suggestion)
        return 1
    return 0


def cmd_clear(args: argparse.Namespace, settings: Settings) -> int:
    cache = build_cache(settings)
    cached = cache.list_packages()

    if args.all:
        if not cached:
            print("Cache is already empty.")
            return 0
        cache.clear_all()
        print(f"Cleared {len(cached)} cached package(s).")
        return 0

    if not args.packages:
        if not cached:
            print("Cache is already empty.")
            return 0
        print("Usage: erudita clear <packages...> or erudita clear --all")
        print(f"\nCached packages ({len(cached)}):")
        for meta in cached:
            print(f"  {meta.name}")
        return 1

    report = clear_packages(cache, args.packages)
    for key in report.removed:
        print(f"  Removed: {key}")
    for key in report.missing:
        print(f"  Not cached: {key}")
    print(f"\nRemoved {len(report.removed)} package(s).")
    return 0


def cmd_uninstall(args: argparse.Namespace, settings: Settings) -> int:
    project_dir = Path.cwd()
    config = load_project_config(project_dir)
    if not args.packages:
        if not config.packages:
            print("No packages in erudita.json.")
            return 0
        print("Usage: erudita uninstall <packages...>")
        print(f"\nPackages in erudita.json ({len(config.packages)}):")
        for key in config.packages:
            print(f"  {key}")
        return 1

    state = AppState(settings=settings, cache=build_cache(settings))
    report = uninstall_packages(state, project_dir, args.packages)
    for key in report.removed:
        print(f"  Removed: {key}")
    for raw in report.missing:
        print(f"  Not in erudita.json: {raw}")
    print(f"\nRemoved {len(report.removed)} package(s).")
    return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    from erudita.server import main as serve

    serve()
    return 0


# === Argument parser wiring ===


def _package_key(value: str) -> str:
    key = value.strip()
    if not key:
        raise argparse.ArgumentTypeError("package key must not be empty")
    return key


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="erudita",
        description="Download, cache and link llms.txt documentation.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    def _add_fetch_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "packages",
            nargs="*",
            type=_package_key,
            help="Package keys (name or name@version).",
        )
        p.add_argument(
            "-d",
            "--deps",
            choices=["dev", "prod", "all"],
            help="Use dependencies from package.json instead.",
        )
        p.add_argument("-f", "--force", action="store_true", help="Refetch even if cached.")

    p_fetch = subparsers.add_parser("fetch", help="Fetch llms.txt documentation for packages.")
    _add_fetch_args(p_fetch)
    p_fetch.set_defaults(func=cmd_fetch)

    p_install = subparsers.add_parser(
        "install",
        aliases=["i"],
        help="Install docs and link them into .erudita/ (no args: from erudita.json).",
    )
    _add_fetch_args(p_install)
    p_install.add_argument(
        "--copy", action="store_true", help="Copy cache directories instead of symlinking."
    )
    p_install.set_defaults(func=cmd_install)

    p_list = subparsers.add_parser("list", help="List cached package documentation.")
    p_list.add_argument("-v", "--verbose", action="store_true", help="Show details.")
    p_list.set_defaults(func=cmd_list)

    p_show = subparsers.add_parser("show", help="Display cached documentation for a package.")
    p_show.add_argument("package", type=_package_key, help="Package key.")
    p_show.add_argument("-e", "--entry", help="Entry index or title substring.")
    p_show.add_argument("-r", "--raw", action="store_true", help="Print the raw llms.txt.")
    p_show.set_defaults(func=cmd_show)

    p_update = subparsers.add_parser("update", help="Refresh cached documentation.")
    p_update.add_argument("packages", nargs="*", type=_package_key, help="Package keys.")
    p_update.add_argument("-a", "--all", action="store_true", help="Update every cached package.")
    p_update.set_defaults(func=cmd_update)

    p_clear = subparsers.add_parser("clear", help="Remove cached documentation.")
    p_clear.add_argument("packages", nargs="*", type=_package_key, help="Package keys.")
    p_clear.add_argument("-a", "--all", action="store_true", help="Clear the whole cache.")
    p_clear.set_defaults(func=cmd_clear)

    p_uninstall = subparsers.add_parser(
        "uninstall", aliases=["u"], help="Remove docs links from the project."
    )
    p_uninstall.add_argument(
        "packages", nargs="*", type=_package_key, help="Package names or keys."
    )
    p_uninstall.set_defaults(func=cmd_uninstall)

    p_serve = subparsers.add_parser("serve", help="Run the MCP server over stdio.")
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings()
    setup_logging(settings)
    sys.exit(args.func(args, settings))


if __name__ == "__main__":
    main()
