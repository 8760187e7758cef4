"""Size every ``<img>`` of an HTML document before it is shown.

Each image becomes an :class:`~htmlimage.sizing.HTMLImage`. Once all of them
settled (or the deadline passed) they are drawn into the document through
:class:`HtmlDrawer`, which writes ``width``/``height`` attributes or swaps the
tag for a placeholder.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from htmlimage.config import config
from htmlimage.rendering.markdown import render_markdown
from htmlimage.sizing.errors import DrawError
from htmlimage.sizing.gate import HTMLImage
from htmlimage.sizing.models import Dimension, StyleValue
from htmlimage.sizing.probe import RemoteImageProbe
from htmlimage.sizing.resolver import ImageSizeProbe
from htmlimage.sizing.style import parse_style_attribute

logger = logging.getLogger("htmlimage.rendering")

PLACEHOLDER_CLASS = "htmlimage-placeholder"
DRAWABLE_SCHEMES = {"http", "https", "data", "file", ""}
_SIZING_ATTRS = ("data-style-width", "data-style-height")


def format_dimension(value: Dimension) -> str:
    """Format a size for an HTML attribute (at most two decimals)."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.2f}".rstrip("0").rstrip(".")
    return str(value)


def image_props(tag: Tag, *, max_width: int | None = None) -> dict[str, Any]:
    """Build component props from an ``<img>`` tag.

    The ``width``/``height`` attributes are explicit sizes. Inline style and
    the ``data-style-*`` attributes left by the markdown renderer are style
    layers, in that order.
    """
    layers: list[dict[str, Any]] = [parse_style_attribute(tag.get("style"))]
    data_layer = {
        axis: tag.get(f"data-style-{axis}")
        for axis in ("width", "height")
        if tag.get(f"data-style-{axis}")
    }
    if data_layer:
        layers.append(data_layer)

    return {
        "src": tag.get("src"),
        "alt": tag.get("alt"),
        "width": tag.get("width"),
        "height": tag.get("height"),
        "style": layers,
        "max_width": max_width,
    }


class HtmlDrawer:
    """Draws one image into its BeautifulSoup tag."""

    def __init__(self, soup: BeautifulSoup, tag: Tag) -> None:
        self.soup = soup
        self.tag = tag

    def draw_image(
        self,
        uri: str,
        width: Dimension,
        height: Dimension,
        style: StyleValue,
    ) -> Tag:
        if self.tag.parent is None:
            raise DrawError(f"image tag for {uri} is no longer in the document")
        scheme = urlparse(uri).scheme.lower()
        if scheme not in DRAWABLE_SCHEMES:
            raise DrawError(f"cannot draw {scheme!r} URIs")

        self.tag["width"] = format_dimension(width)
        self.tag["height"] = format_dimension(height)
        for attr in _SIZING_ATTRS:
            if attr in self.tag.attrs:
                del self.tag[attr]
        return self.tag

    def draw_placeholder(self, width: int, height: int, alt_text: str | None) -> Tag:
        placeholder = self.soup.new_tag(
            "span",
            attrs={
                "class": PLACEHOLDER_CLASS,
                "style": f"display: inline-block; width: {width}px; height: {height}px",
            },
        )
        if alt_text:
            placeholder.string = alt_text
        if self.tag.parent is not None:
            self.tag.replace_with(placeholder)
        return placeholder


@dataclass
class _Entry:
    tag: Tag
    image: HTMLImage
    settled: asyncio.Future[None]


async def size_html_images(
    html: str,
    *,
    probe: ImageSizeProbe | None = None,
    max_width: int | None = None,
    timeout: float | None = None,
    initial_dimensions: tuple[int, int] | None = None,
) -> str:
    """Return ``html`` with every image sized.

    Args:
        html: HTML fragment or document
        probe: Size probe (a :class:`RemoteImageProbe` by default)
        max_width: Width cap for probed images
        timeout: Seconds to wait for probes (``RENDER_TIMEOUT`` by default)
        initial_dimensions: Size held by images while pending

    Returns:
        HTML where images carry width/height, failed draws are placeholders
        and images still pending at the deadline are left out
    """
    probe = probe or RemoteImageProbe()
    if max_width is None:
        max_width = config.IMAGES_MAX_WIDTH
    deadline = config.RENDER_TIMEOUT if timeout is None else timeout

    soup = BeautifulSoup(html, "html.parser")
    loop = asyncio.get_running_loop()
    entries: list[_Entry] = []

    for tag in soup.find_all("img"):
        if not tag.get("src"):
            logger.debug("Dropping image without src")
            tag.decompose()
            continue

        settled: asyncio.Future[None] = loop.create_future()

        def on_change(
            image: HTMLImage, settled: asyncio.Future[None] = settled
        ) -> None:
            if image.size.is_settled and not settled.done():
                settled.set_result(None)

        image = HTMLImage(
            image_props(tag, max_width=max_width),
            probe=probe,
            initial_dimensions=initial_dimensions,
            on_change=on_change,
        )
        entries.append(_Entry(tag=tag, image=image, settled=settled))
        image.mount()

    pending = [entry.settled for entry in entries if not entry.settled.done()]
    if pending:
        try:
            await asyncio.wait_for(asyncio.gather(*pending), deadline)
        except TimeoutError:
            logger.warning(
                "Gave up waiting for %d image size(s) after %ss",
                sum(1 for entry in entries if not entry.image.size.is_settled),
                deadline,
            )

    for entry in entries:
        drawn = entry.image.render(HtmlDrawer(soup, entry.tag))
        if drawn is None:
            logger.debug("Leaving out unsized image %s", entry.image.request.image_uri)
            entry.tag.decompose()
        entry.image.unmount()

    return str(soup)


async def render_markdown_with_sizes(
    text: str,
    *,
    probe: ImageSizeProbe | None = None,
    max_width: int | None = None,
    timeout: float | None = None,
) -> str:
    """Render markdown to sanitized HTML with sized images."""
    return await size_html_images(
        render_markdown(text),
        probe=probe,
        max_width=max_width,
        timeout=timeout,
    )


__all__ = [
    "HtmlDrawer",
    "format_dimension",
    "image_props",
    "render_markdown_with_sizes",
    "size_html_images",
]
