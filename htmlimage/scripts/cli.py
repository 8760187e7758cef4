"""CLI tool for htmlimage."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from htmlimage.config import config
from htmlimage.logging_config import configure_logging
from htmlimage.rendering import render_markdown, size_html_images
from htmlimage.sizing import RemoteImageProbe, parse_style_attribute, resolve_once
from htmlimage.sizing.resolver import ImageSizeProbe


async def resolve_image(
    uri: str,
    *,
    width: str | None = None,
    height: str | None = None,
    style: str | None = None,
    max_width: int | None = None,
    probe: ImageSizeProbe | None = None,
) -> dict[str, Any]:
    """Resolve the size of one image and return it as a dict."""
    size = await resolve_once(
        {
            "src": uri,
            "width": width,
            "height": height,
            "style": parse_style_attribute(style),
            "max_width": max_width,
        },
        probe=probe or RemoteImageProbe(),
        timeout=config.RENDER_TIMEOUT,
    )
    return size.as_dict()


async def render_file(
    path: Path,
    *,
    max_width: int | None = None,
    probe: ImageSizeProbe | None = None,
) -> str:
    """Render a markdown or HTML file with sized images."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() not in {".html", ".htm"}:
        text = render_markdown(text)
    return await size_html_images(text, probe=probe, max_width=max_width)


def main() -> None:
    parser = argparse.ArgumentParser(description="htmlimage CLI tool.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # resolve
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve the display size of one image"
    )
    resolve_parser.add_argument("uri", help="Image URL, data URI or path")
    resolve_parser.add_argument("--width", help="Explicit width")
    resolve_parser.add_argument("--height", help="Explicit height")
    resolve_parser.add_argument("--style", help='Inline CSS, e.g. "width: 50%%"')
    resolve_parser.add_argument("--max-width", type=int, help="Maximum width")

    # render
    render_parser = subparsers.add_parser(
        "render", help="Render a markdown or HTML file with sized images"
    )
    render_parser.add_argument("file", type=Path, help="Markdown or HTML file")
    render_parser.add_argument("--max-width", type=int, help="Maximum width")

    args = parser.parse_args()
    configure_logging(debug=args.debug or config.DEBUG, access=False)

    if args.command == "resolve":
        try:
            result = asyncio.run(
                resolve_image(
                    args.uri,
                    width=args.width,
                    height=args.height,
                    style=args.style,
                    max_width=args.max_width,
                )
            )
        except TimeoutError:
            print(f"Timed out resolving {args.uri}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(result, indent=2))
    elif args.command == "render":
        if not args.file.is_file():
            print(f"File {args.file} not found.", file=sys.stderr)
            sys.exit(1)
        print(asyncio.run(render_file(args.file, max_width=args.max_width)))


if __name__ == "__main__":
    main()
