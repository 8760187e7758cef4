"""Extract requested image dimensions from props and style layers."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from htmlimage.sizing.models import Dimension, StyleValue

_PIXEL_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class RequestedDimensions:
    """Width/height requested by props or style, if any."""

    width: Dimension | None = None
    height: Dimension | None = None

    @property
    def complete(self) -> bool:
        return bool(self.width) and bool(self.height)


def iter_style_layers(style: StyleValue) -> Iterator[Mapping[str, Any]]:
    """Yield style layers in override order, flattening nested sequences."""
    if not style:
        return
    if isinstance(style, Mapping):
        yield style
        return
    if isinstance(style, (str, bytes)):
        return
    for layer in style:
        yield from iter_style_layers(layer)


def extract_dimensions(
    style: StyleValue,
    explicit_height: Dimension | None = None,
    explicit_width: Dimension | None = None,
) -> RequestedDimensions:
    """Return the width/height requested by explicit props and style layers.

    Explicit values always win. Otherwise every layer that defines an axis
    overwrites the previous one, so the last defining layer takes effect.
    Falsy values (``None``, ``0``, ``""``) count as undefined.
    """
    width = explicit_width or None
    height = explicit_height or None

    for layer in iter_style_layers(style):
        if not explicit_width and layer.get("width"):
            width = layer["width"]
        if not explicit_height and layer.get("height"):
            height = layer["height"]

    return RequestedDimensions(width=width, height=height)


def parse_dimension(value: Dimension | None) -> Dimension | None:
    """Convert a requested value into a renderable one.

    Percentage strings pass through unchanged, everything else becomes an
    integer pixel length by truncation. Returns None for unparseable or
    negative input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        if "%" in value:
            return value
        match = _PIXEL_RE.match(value)
        if match is None:
            return None
        pixels = int(match.group(1))
    elif isinstance(value, (int, float)):
        try:
            pixels = int(value)
        except (OverflowError, ValueError):
            # inf / nan
            return None
    else:
        return None
    return pixels if pixels >= 0 else None


def parse_style_attribute(css: str | None) -> dict[str, str]:
    """Parse an inline ``style="..."`` attribute into a single style layer."""
    layer: dict[str, str] = {}
    if not css:
        return layer
    for declaration in css.split(";"):
        name, sep, value = declaration.partition(":")
        if not sep:
            continue
        name = name.strip().lower()
        value = value.strip()
        if name and value:
            layer[name] = value
    return layer


__all__ = [
    "RequestedDimensions",
    "extract_dimensions",
    "iter_style_layers",
    "parse_dimension",
    "parse_style_attribute",
]
