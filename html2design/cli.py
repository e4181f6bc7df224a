"""Command line entry point: ``html2design <url-or-file> [options]``."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from . import settings
from .capture import SnapshotCapturer, resolve_viewport
from .errors import Html2DesignError
from .host import InMemoryHost
from .logging_config import setup_logging
from .mapper import DesignMapper, ImportMetadata
from .snapshot import ElementNode, dump_snapshot, load_snapshot

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="ignore")


def write_output(content: str, output: Optional[str]) -> None:
    if not output:
        sys.stdout.write(content + "\n")
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def print_progress(message: str, percent: int) -> None:
    print(f"[{percent:3d}%] {message}", file=sys.stderr)


def to_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


async def capture(args: argparse.Namespace) -> ElementNode:
    viewport = resolve_viewport(args.viewport)
    source = Path(args.source)
    async with SnapshotCapturer() as capturer:
        if source.is_file():
            css = read_text(Path(args.css)) if args.css else ""
            return await capturer.capture_html(read_text(source), css, viewport, base_url=args.base_url)
        return await capturer.capture_url(args.source, viewport, selector=args.selector)


async def main_async(args: argparse.Namespace) -> None:
    logger.debug("Arguments: %s", vars(args))
    if args.from_snapshot:
        snapshot = load_snapshot(read_text(Path(args.source)))
    else:
        print_progress("Parsing HTML...", 5)
        snapshot = await capture(args)

    if args.snapshot_only:
        write_output(dump_snapshot(snapshot), args.output)
        print("\n✅ Snapshot captured", file=sys.stderr)
        return

    metadata = None
    if not snapshot.attributes.get("data-source-url") and args.base_url:
        metadata = ImportMetadata(source_url=args.base_url, viewport=snapshot.attributes.get("data-viewport"))

    host = InMemoryHost()
    mapper = DesignMapper(host, progress=print_progress)
    root = await mapper.map_snapshot(snapshot, metadata)
    write_output(to_json(root.to_dict()), args.output)

    print(f"\n✅ Import complete: {root.name}", file=sys.stderr)
    if args.output:
        print(f"Design tree: {args.output}", file=sys.stderr)


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert a web page into an editable design tree")
    parser.add_argument("source", help="URL, HTML file, or snapshot JSON (with --from-snapshot)")
    parser.add_argument("--css", help="Extra CSS file applied to an HTML file source")
    parser.add_argument(
        "--viewport",
        default=settings.DEFAULT_VIEWPORT,
        help="Viewport preset (desktop, tablet, mobile) or WIDTHxHEIGHT",
    )
    parser.add_argument("--base-url", help="Base URL for relative resources of an HTML file source")
    parser.add_argument("--selector", help="Capture only the first element matching this CSS selector")
    parser.add_argument("--output", "-o", help="Output JSON file (default: stdout)")
    parser.add_argument("--snapshot-only", action="store_true", help="Write the captured snapshot instead of the design tree")
    parser.add_argument("--from-snapshot", action="store_true", help="Treat source as a snapshot JSON file and skip capture")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    try:
        resolve_viewport(args.viewport)
    except ValueError as exc:
        parser.error(str(exc))

    setup_logging(args.verbose)
    try:
        asyncio.run(main_async(args))
    except Html2DesignError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
