"""Resolve the size an image should be drawn at.

Explicit props and style layers are used when they give both axes. Otherwise
the intrinsic size is probed asynchronously and scaled down to the max width.
Every ``resolve()`` call gets a sequence number; results of older calls that
arrive after a newer call was issued are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from htmlimage.config import config
from htmlimage.sizing.errors import ProbeError
from htmlimage.sizing.models import ResolvedSize, SizeRequest, SizeSource, SizeStatus
from htmlimage.sizing.style import extract_dimensions, parse_dimension

logger = logging.getLogger("htmlimage.sizing")

SettledCallback = Callable[[ResolvedSize], None]
ProbeSuccess = Callable[[int, int], None]
ProbeFailure = Callable[[BaseException], None]


class ImageSizeProbe(Protocol):
    """Reports the natural size of an image through one of two callbacks."""

    def __call__(
        self,
        uri: str,
        on_success: ProbeSuccess,
        on_failure: ProbeFailure,
    ) -> None: ...


def scale_to_max_width(
    natural_width: int | float,
    natural_height: int | float,
    max_width: int | float | None,
) -> tuple[int | float, int | float]:
    """Cap the width at ``max_width`` keeping the aspect ratio.

    Images narrower than ``max_width`` are never scaled up. The height is not
    rounded.
    """
    if not max_width:
        return natural_width, natural_height
    optimal_width = min(max_width, natural_width)
    optimal_height = optimal_width * natural_height / natural_width
    return optimal_width, optimal_height


class SizeResolver:
    """Turns :class:`SizeRequest` objects into :class:`ResolvedSize` results."""

    def __init__(
        self,
        probe: ImageSizeProbe,
        *,
        fallback_size: int | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            probe: Capability reporting the natural size of an image
            fallback_size: Square size used when probing fails and the
                request has no max width
        """
        self._probe = probe
        self.fallback_size = (
            config.IMAGES_FALLBACK_SIZE if fallback_size is None else fallback_size
        )
        self._sequence = 0

    @property
    def latest_sequence(self) -> int:
        """Sequence number of the most recently issued request."""
        return self._sequence

    def is_current(self, sequence: int) -> bool:
        return sequence == self._sequence

    def resolve(self, request: SizeRequest, on_settled: SettledCallback) -> int:
        """Resolve ``request`` and report the result through ``on_settled``.

        ``on_settled`` is called exactly once, synchronously when explicit
        sizes are complete, unless a newer request supersedes this one first.

        Returns:
            The sequence number assigned to this request
        """
        self._sequence += 1
        sequence = self._sequence

        requested = extract_dimensions(
            request.style, request.explicit_height, request.explicit_width
        )
        if requested.complete:
            width = parse_dimension(requested.width)
            height = parse_dimension(requested.height)
            if width is not None and height is not None:
                on_settled(
                    ResolvedSize(
                        width, height, SizeStatus.RESOLVED, SizeSource.EXPLICIT
                    )
                )
                return sequence
            logger.debug(
                "Ignoring unusable size %r x %r for %s",
                requested.width,
                requested.height,
                request.image_uri,
            )

        self._start_probe(request, sequence, on_settled)
        return sequence

    def _start_probe(
        self,
        request: SizeRequest,
        sequence: int,
        on_settled: SettledCallback,
    ) -> None:
        uri = request.image_uri
        max_width = request.effective_max_width
        settled = False

        def settle(size: ResolvedSize) -> None:
            nonlocal settled
            if settled:
                logger.debug("Ignoring repeated probe callback for %s", uri)
                return
            settled = True
            if not self.is_current(sequence):
                logger.debug("Dropping superseded size for %s", uri)
                return
            on_settled(size)

        def on_failure(exc: BaseException) -> None:
            logger.debug("Could not probe %s: %s", uri, exc)
            fallback = max_width if max_width is not None else self.fallback_size
            settle(
                ResolvedSize(
                    fallback, fallback, SizeStatus.RESOLVED, SizeSource.FALLBACK
                )
            )

        def on_success(natural_width: int, natural_height: int) -> None:
            if natural_width <= 0 or natural_height < 0:
                on_failure(
                    ProbeError(
                        f"invalid natural size {natural_width}x{natural_height}",
                        uri=uri,
                    )
                )
                return
            width, height = scale_to_max_width(natural_width, natural_height, max_width)
            settle(ResolvedSize(width, height, SizeStatus.RESOLVED, SizeSource.PROBED))

        try:
            self._probe(uri, on_success, on_failure)
        except Exception as exc:
            on_failure(exc)


__all__ = [
    "ImageSizeProbe",
    "ProbeFailure",
    "ProbeSuccess",
    "SettledCallback",
    "SizeResolver",
    "scale_to_max_width",
]
