"""HTML and markdown rendering with sized images."""

from __future__ import annotations

from .html import HtmlDrawer, render_markdown_with_sizes, size_html_images
from .markdown import render_markdown

__all__ = [
    "HtmlDrawer",
    "render_markdown",
    "render_markdown_with_sizes",
    "size_html_images",
]
