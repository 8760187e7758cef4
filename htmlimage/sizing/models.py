"""Value types shared by the sizing pipeline."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

# A pixel length (number or numeric string) or a percentage string like "50%".
Dimension: TypeAlias = int | float | str
StyleLayer: TypeAlias = Mapping[str, Any]
StyleValue: TypeAlias = StyleLayer | Sequence[Any] | None

PLACEHOLDER_WIDTH = 50
PLACEHOLDER_HEIGHT = 50


class SizeStatus(str, Enum):
    """Where an image is in its sizing lifecycle."""

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class SizeSource(str, Enum):
    """Which path produced a size."""

    INITIAL = "initial"
    EXPLICIT = "explicit"
    PROBED = "probed"
    FALLBACK = "fallback"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class Dimensions:
    """A plain width/height pair."""

    width: int
    height: int


@dataclass(frozen=True)
class SizeRequest:
    """Snapshot of everything that influences the size of one image."""

    image_uri: str
    explicit_width: Dimension | None = None
    explicit_height: Dimension | None = None
    style: StyleValue = None
    max_width: int | float | None = None
    alt_text: str | None = None

    @classmethod
    def from_props(cls, props: Mapping[str, Any]) -> SizeRequest:
        """Build a request from component props.

        Accepts ``src`` or ``image_uri`` for the source, ``alt`` or
        ``alt_text`` for the alternative text.
        """
        image_uri = props.get("image_uri") or props.get("src")
        if not image_uri:
            raise ValueError("image props need a 'src'")
        return cls(
            image_uri=str(image_uri),
            explicit_width=props.get("width"),
            explicit_height=props.get("height"),
            style=props.get("style"),
            max_width=props.get("max_width"),
            alt_text=props.get("alt_text") or props.get("alt"),
        )

    @property
    def effective_max_width(self) -> int | float | None:
        """Return the max width, or None when it is unset or not positive."""
        if self.max_width is None or isinstance(self.max_width, bool):
            return None
        if self.max_width <= 0:
            return None
        return self.max_width


@dataclass(frozen=True)
class ResolvedSize:
    """The width/height to render an image at, tagged with its status."""

    width: Dimension | None
    height: Dimension | None
    status: SizeStatus = SizeStatus.RESOLVED
    source: SizeSource = SizeSource.PROBED

    @classmethod
    def pending(cls, width: int, height: int) -> ResolvedSize:
        return cls(width, height, SizeStatus.PENDING, SizeSource.INITIAL)

    @classmethod
    def placeholder(cls) -> ResolvedSize:
        return cls(
            PLACEHOLDER_WIDTH,
            PLACEHOLDER_HEIGHT,
            SizeStatus.FAILED,
            SizeSource.PLACEHOLDER,
        )

    @property
    def is_settled(self) -> bool:
        return self.status is not SizeStatus.PENDING

    def as_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "status": self.status.value,
            "source": self.source.value,
        }


__all__ = [
    "PLACEHOLDER_HEIGHT",
    "PLACEHOLDER_WIDTH",
    "Dimension",
    "Dimensions",
    "ResolvedSize",
    "SizeRequest",
    "SizeSource",
    "SizeStatus",
    "StyleLayer",
    "StyleValue",
]
