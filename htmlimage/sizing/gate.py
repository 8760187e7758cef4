"""Render gate for images whose size is only known after probing.

The gate is a small state machine. ``reduce_gate`` is a pure reducer over
:class:`GateState`; :class:`HTMLImage` owns one state value, feeds lifecycle
events and resolver results through the reducer and decides what to draw.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Protocol

from htmlimage.config import config
from htmlimage.sizing.errors import DrawError
from htmlimage.sizing.models import (
    Dimension,
    ResolvedSize,
    SizeRequest,
    SizeStatus,
    StyleValue,
)
from htmlimage.sizing.resolver import ImageSizeProbe, SizeResolver

logger = logging.getLogger("htmlimage.sizing")


class ImageDrawer(Protocol):
    """Paints a sized image, or the placeholder shown when that fails."""

    def draw_image(
        self,
        uri: str,
        width: Dimension,
        height: Dimension,
        style: StyleValue,
    ) -> Any: ...

    def draw_placeholder(
        self,
        width: int,
        height: int,
        alt_text: str | None,
    ) -> Any: ...


@dataclass(frozen=True)
class Mount:
    pass


@dataclass(frozen=True)
class Settle:
    size: ResolvedSize


@dataclass(frozen=True)
class DrawFailed:
    pass


@dataclass(frozen=True)
class Unmount:
    pass


GateEvent = Mount | Settle | DrawFailed | Unmount


@dataclass(frozen=True)
class GateState:
    """Current size plus the lifecycle token of one image."""

    size: ResolvedSize
    mounted: bool = False

    @property
    def status(self) -> SizeStatus:
        return self.size.status

    @property
    def drawable(self) -> bool:
        return self.mounted and self.size.is_settled


def reduce_gate(state: GateState, event: GateEvent) -> GateState:
    """Return the state that follows ``event``.

    Settle and DrawFailed are ignored once the image is unmounted.
    """
    if isinstance(event, Mount):
        return replace(state, mounted=True)
    if isinstance(event, Unmount):
        return replace(state, mounted=False)
    if not state.mounted:
        return state
    if isinstance(event, Settle):
        return replace(state, size=event.size)
    if isinstance(event, DrawFailed):
        return replace(state, size=ResolvedSize.placeholder())
    raise TypeError(f"unknown gate event: {event!r}")


class HTMLImage:
    """An image component that draws nothing until its size is known.

    Example:
        image = HTMLImage({"src": url, "style": {"width": 120}}, probe=probe)
        image.mount()
        ...
        image.render(drawer)
    """

    def __init__(
        self,
        props: Mapping[str, Any],
        *,
        probe: ImageSizeProbe,
        initial_dimensions: tuple[int, int] | None = None,
        fallback_size: int | None = None,
        on_change: Callable[[HTMLImage], None] | None = None,
        skip_unchanged: bool = False,
    ) -> None:
        """Initialize the component.

        Args:
            props: Image props (src, alt, width, height, style, max_width)
            probe: Capability reporting the natural size of an image
            initial_dimensions: Size held while pending; never drawn
            fallback_size: Square size used when probing fails without a
                max width
            on_change: Called after a result or draw failure changes state
            skip_unchanged: Skip re-resolving updates whose request did not
                change
        """
        self.props = dict(props)
        self.request = SizeRequest.from_props(self.props)
        self.initial_dimensions = initial_dimensions or config.initial_dimensions()
        width, height = self.initial_dimensions
        self._state = GateState(size=ResolvedSize.pending(width, height))
        self._resolver = SizeResolver(probe, fallback_size=fallback_size)
        self._on_change = on_change
        self.skip_unchanged = skip_unchanged

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def size(self) -> ResolvedSize:
        return self._state.size

    @property
    def status(self) -> SizeStatus:
        return self._state.status

    @property
    def mounted(self) -> bool:
        return self._state.mounted

    def mount(self) -> None:
        """Mark the image as live and start resolving its size."""
        if self._state.mounted:
            return
        self._dispatch(Mount())
        self._resolver.resolve(self.request, self._handle_settled)

    def update(self, props: Mapping[str, Any]) -> None:
        """Apply new props and resolve the size again."""
        if not self._state.mounted:
            logger.debug(
                "Ignoring update for unmounted image %s", self.request.image_uri
            )
            return
        request = SizeRequest.from_props(props)
        if self.skip_unchanged and request == self.request:
            return
        self.props = dict(props)
        self.request = request
        self._resolver.resolve(request, self._handle_settled)

    def unmount(self) -> None:
        self._dispatch(Unmount())

    def render(self, drawer: ImageDrawer) -> Any:
        """Draw the image at its resolved size.

        Returns whatever the drawer returns, or None while the size is
        pending.
        """
        state = self._state
        if not state.drawable:
            return None

        size = state.size
        if size.status is SizeStatus.FAILED:
            return self._draw_placeholder(drawer)

        try:
            return drawer.draw_image(
                self.request.image_uri,
                size.width,
                size.height,
                self.request.style,
            )
        except DrawError as exc:
            logger.warning("Failed to draw %s: %s", self.request.image_uri, exc)
            self._dispatch(DrawFailed())
            self._notify()
            return self._draw_placeholder(drawer)

    def _draw_placeholder(self, drawer: ImageDrawer) -> Any:
        size = ResolvedSize.placeholder()
        return drawer.draw_placeholder(size.width, size.height, self.request.alt_text)

    def _handle_settled(self, size: ResolvedSize) -> None:
        if not self._state.mounted:
            logger.debug(
                "Discarding size for unmounted image %s", self.request.image_uri
            )
            return
        self._dispatch(Settle(size))
        self._notify()

    def _dispatch(self, event: GateEvent) -> None:
        self._state = reduce_gate(self._state, event)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)


async def resolve_once(
    props: Mapping[str, Any],
    *,
    probe: ImageSizeProbe,
    timeout: float | None = None,
    **kwargs: Any,
) -> ResolvedSize:
    """Mount an image, wait for its size to settle and unmount it again.

    Raises:
        TimeoutError: If the size is still pending after ``timeout`` seconds
    """
    settled: asyncio.Future[None] = asyncio.get_running_loop().create_future()

    def on_change(image: HTMLImage) -> None:
        if image.size.is_settled and not settled.done():
            settled.set_result(None)

    image = HTMLImage(props, probe=probe, on_change=on_change, **kwargs)
    image.mount()
    try:
        if not image.size.is_settled:
            await asyncio.wait_for(settled, timeout)
    finally:
        image.unmount()
    return image.size


__all__ = [
    "DrawFailed",
    "GateEvent",
    "GateState",
    "HTMLImage",
    "ImageDrawer",
    "Mount",
    "Settle",
    "Unmount",
    "reduce_gate",
    "resolve_once",
]
