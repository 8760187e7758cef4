from __future__ import annotations

import asyncio
import base64
from collections.abc import Callable
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image as PilImage

from htmlimage.main import app
from htmlimage.routes.images import get_probe
from htmlimage.sizing import DrawError, ProbeError


@dataclass
class ProbeCall:
    uri: str
    on_success: Callable[[int, int], None]
    on_failure: Callable[[BaseException], None]

    def succeed(self, width: int, height: int) -> None:
        self.on_success(width, height)

    def fail(self, message: str = "boom") -> None:
        self.on_failure(ProbeError(message, uri=self.uri))


class FakeProbe:
    """Records probe calls; the test decides when and how each one settles."""

    def __init__(self) -> None:
        self.calls: list[ProbeCall] = []

    def __call__(
        self,
        uri: str,
        on_success: Callable[[int, int], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        self.calls.append(ProbeCall(uri, on_success, on_failure))

    @property
    def last(self) -> ProbeCall:
        return self.calls[-1]


class StaticProbe:
    """Settles on the next loop iteration with a fixed size per URI."""

    def __init__(self, sizes: dict[str, tuple[int, int]]) -> None:
        self.sizes = sizes
        self.uris: list[str] = []

    def __call__(
        self,
        uri: str,
        on_success: Callable[[int, int], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        self.uris.append(uri)
        loop = asyncio.get_running_loop()
        if uri in self.sizes:
            loop.call_soon(on_success, *self.sizes[uri])
        else:
            loop.call_soon(on_failure, ProbeError("not found", uri=uri))


@dataclass
class RecordingDrawer:
    fail: bool = False
    calls: list[tuple[Any, ...]] = field(default_factory=list)

    def draw_image(self, uri: str, width: Any, height: Any, style: Any) -> str:
        if self.fail:
            raise DrawError("cannot draw")
        self.calls.append(("image", uri, width, height))
        return "image"

    def draw_placeholder(self, width: int, height: int, alt_text: str | None) -> str:
        self.calls.append(("placeholder", width, height, alt_text))
        return "placeholder"


def png_bytes(
    size: tuple[int, int], color: tuple[int, int, int] = (255, 0, 0)
) -> bytes:
    img = PilImage.new("RGB", size, color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def png_data_uri(size: tuple[int, int]) -> str:
    encoded = base64.b64encode(png_bytes(size)).decode("ascii")
    return f"data:image/png;base64,{encoded}"


@pytest.fixture
def fake_probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def drawer() -> RecordingDrawer:
    return RecordingDrawer()


@pytest.fixture
def static_probe() -> StaticProbe:
    return StaticProbe(
        {
            "https://example.com/wide.png": (400, 100),
            "https://example.com/square.png": (150, 150),
        }
    )


@pytest.fixture
async def test_client(static_probe: StaticProbe) -> AsyncClient:
    app.dependency_overrides[get_probe] = lambda: static_probe

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
