"""Image sizing for layouts that render before image bytes are available.

Example:
    from htmlimage.sizing import HTMLImage, RemoteImageProbe

    image = HTMLImage(
        {"src": "https://example.com/a.png", "max_width": 320},
        probe=RemoteImageProbe(),
    )
    image.mount()
"""

from __future__ import annotations

from htmlimage.sizing.errors import DrawError, HTMLImageError, ProbeError
from htmlimage.sizing.gate import (
    GateState,
    HTMLImage,
    ImageDrawer,
    reduce_gate,
    resolve_once,
)
from htmlimage.sizing.models import (
    Dimensions,
    ResolvedSize,
    SizeRequest,
    SizeSource,
    SizeStatus,
)
from htmlimage.sizing.probe import RemoteImageProbe
from htmlimage.sizing.resolver import ImageSizeProbe, SizeResolver, scale_to_max_width
from htmlimage.sizing.style import (
    RequestedDimensions,
    extract_dimensions,
    parse_dimension,
    parse_style_attribute,
)

__all__ = [
    # Errors
    "DrawError",
    "HTMLImageError",
    "ProbeError",
    # Models
    "Dimensions",
    "ResolvedSize",
    "SizeRequest",
    "SizeSource",
    "SizeStatus",
    # Style extraction
    "RequestedDimensions",
    "extract_dimensions",
    "parse_dimension",
    "parse_style_attribute",
    # Resolution
    "ImageSizeProbe",
    "RemoteImageProbe",
    "SizeResolver",
    "scale_to_max_width",
    # Render gate
    "GateState",
    "HTMLImage",
    "ImageDrawer",
    "reduce_gate",
    "resolve_once",
]
