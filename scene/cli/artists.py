# =============================================================================
# scene/cli/artists.py - Artist image and search commands
# =============================================================================
#
# Typical usage:
#   python -m scene.cli resolve "Bicep" "Bonobo"       # name → image URL
#   python -m scene.cli --json resolve Bicep           # machine-readable
#   python -m scene.cli show-image "Floating Points"
#   python -m scene.cli search bic
#   python -m scene.cli --json backfill
#
# The --quiet flag (auto-enabled with --json) sends log output to stderr
# at WARNING+ so stdout carries command output only.
# =============================================================================

"""Command-line interface for the Scene artist services."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import httpx

from scene.models.search import SearchState
from scene.utils.errors import SceneError
from scene.utils.logging import configure_logging


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_images(images: dict[str, str], json_output: bool) -> str:
    if json_output:
        return json.dumps(images, indent=2, sort_keys=True)
    if not images:
        return "No images found."
    width = max(len(name) for name in images)
    return "\n".join(f"{name.ljust(width)}  {url}" for name, url in sorted(images.items()))


def _format_search(results: list[Any], remote_unavailable: bool, json_output: bool) -> str:
    if json_output:
        return json.dumps(
            {
                "results": [r.model_dump() for r in results],
                "remote_unavailable": remote_unavailable,
            },
            indent=2,
        )
    lines = []
    for r in results:
        detail = r.subtitle or ", ".join(r.genres or [])
        lines.append(f"{r.name}" + (f"  ({detail})" if detail else ""))
    if not lines:
        lines.append("No artists found.")
    if remote_unavailable:
        lines.append("(remote catalogue unavailable; local results only)")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _cmd_resolve(components: dict[str, Any], args: argparse.Namespace) -> int:
    images = await components["resolver"].resolve(args.names)
    print(_format_images(images, args.json_output))
    return 0


async def _cmd_show_image(components: dict[str, Any], args: argparse.Namespace) -> int:
    url = await components["resolver"].resolve_show_image(args.name)
    if args.json_output:
        print(json.dumps({"name": args.name, "image_url": url}))
    else:
        print(url or "No show image found.")
    return 0 if url else 1


async def _cmd_search(components: dict[str, Any], args: argparse.Namespace) -> int:
    session = components["new_search_session"]()
    try:
        session.set_term(args.term)
        await session.wait_settled()
        snapshot = session.snapshot()
    finally:
        await session.close()
    print(_format_search(snapshot.results, snapshot.remote_unavailable, args.json_output))
    return 0 if snapshot.state in (SearchState.RESOLVED, SearchState.IDLE) else 1


async def _cmd_backfill(components: dict[str, Any], args: argparse.Namespace) -> int:
    report = await components["backfill_service"].run()
    if args.json_output:
        print(json.dumps(report.model_dump(), indent=2))
    else:
        print(
            f"Updated {report.updated}/{report.total} rows, "
            f"cleared {report.stale_cleared} stale image URLs."
        )
    return 0


_CLIENT_COMMANDS = {
    "resolve": _cmd_resolve,
    "show-image": _cmd_show_image,
    "search": _cmd_search,
}


async def _run(args: argparse.Namespace) -> int:
    """Build the components the command needs, run it, then clean up."""
    # Deferred: scene.main reads settings and configures logging on import.
    from scene import main as app

    if args.quiet:
        configure_logging(log_level="WARNING", stream=sys.stderr)

    try:
        if args.command == "backfill":
            components = app.build_services(app.settings)
        else:
            components = app.build_client(app.settings)
    except SceneError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    http_client: httpx.AsyncClient = components["http_client"]
    try:
        store = components["store"]
        initialize = getattr(store, "initialize", None)
        if initialize is not None:
            await initialize()

        if args.command == "backfill":
            return await _cmd_backfill(components, args)
        return await _CLIENT_COMMANDS[args.command](components, args)
    except SceneError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await components["persister"].close()
        await http_client.aclose()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m scene.cli",
        description="Resolve artist images, search artists, and run the image backfill.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output results as JSON.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings, to stderr (implied by --json).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve image URLs for artist names.")
    resolve.add_argument("names", nargs="+", help="Artist names.")

    show = sub.add_parser("show-image", help="Print an artist's image from logged shows.")
    show.add_argument("name", help="Artist name.")

    search = sub.add_parser("search", help="Search artists by name.")
    search.add_argument("term", help="Search term (at least the configured minimum length).")

    sub.add_parser("backfill", help="Clear stale image URLs and backfill missing images.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Exits 0 on success, 1 on failure, 2 on configuration errors."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    # JSON mode implies quiet: no log lines mixed into JSON output.
    args.quiet = args.quiet or args.json_output
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
