"""Markdown rendering utilities."""

import re
import xml.etree.ElementTree as etree
from html import unescape

import bleach
import markdown as md
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from htmlimage.sizing.style import parse_style_attribute

IMAGE_CLASS = "htmlimage"

ALLOWED_TAGS = [
    "p",
    "br",
    "strong",
    "em",
    "u",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "blockquote",
    "code",
    "pre",
    "ul",
    "ol",
    "li",
    "a",
    "img",
]

_LINK_ATTRS = ("href", "title")
_IMG_ATTRS = (
    "src",
    "alt",
    "title",
    "class",
    "width",
    "height",
    "data-style-width",
    "data-style-height",
)

# Characters browsers ignore inside a URI scheme, as stripped by bleach.
_URI_NOISE = re.compile(r"[`\000-\040\177-\240\s]+")


def _normalize_uri(value: str) -> str:
    return _URI_NOISE.sub("", unescape(value)).lower()


def _allow_link_attr(tag: str, name: str, value: str) -> bool:
    if name == "href":
        return not _normalize_uri(value).startswith("data:")
    return name in _LINK_ATTRS


def _allow_img_attr(tag: str, name: str, value: str) -> bool:
    if name == "src":
        uri = _normalize_uri(value)
        return not uri.startswith("data:") or uri.startswith("data:image/")
    return name in _IMG_ATTRS


# ``data:`` is only a valid protocol for inline images.
ALLOWED_ATTRS = {
    "a": _allow_link_attr,
    "img": _allow_img_attr,
}

ALLOWED_PROTOCOLS = ["http", "https", "mailto", "data"]


class ImgSizingTreeprocessor(Treeprocessor):
    """Mark images for sizing and keep their style dimensions.

    Inline ``style`` attributes do not survive sanitizing, so their width and
    height are moved into ``data-style-*`` attributes first.
    """

    def run(self, root: etree.Element) -> None:
        for img in root.iter("img"):
            img.set("class", IMAGE_CLASS)

            style = img.attrib.pop("style", None)
            layer = parse_style_attribute(style)
            for axis in ("width", "height"):
                if layer.get(axis):
                    img.set(f"data-style-{axis}", layer[axis])


class ImgSizingExtension(Extension):
    """Extension to prepare images for the sizing pass."""

    def extendMarkdown(self, md: md.Markdown) -> None:
        # Must run after attr_list (priority 8) so {: style=...} is applied.
        md.treeprocessors.register(ImgSizingTreeprocessor(md), "img_sizing", 5)


def render_markdown(text: str) -> str:
    """
    Render markdown text to sanitized HTML.

    Image sizes are left to :func:`htmlimage.rendering.html.size_html_images`.

    Args:
        text: Markdown text to render

    Returns:
        Sanitized HTML
    """
    # Convert markdown to HTML
    html = md.markdown(
        text,
        extensions=[
            "extra",
            "nl2br",
            ImgSizingExtension(),
        ],
    )

    return bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )
