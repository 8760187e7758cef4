from __future__ import annotations

import pytest
from bs4 import BeautifulSoup
from conftest import StaticProbe
from httpx import AsyncClient

from htmlimage.routes.images import API_SCHEMES, get_probe
from htmlimage.sizing import RemoteImageProbe


@pytest.mark.asyncio
async def test_resolve_probes_and_scales(test_client: AsyncClient) -> None:
    response = await test_client.post(
        "/resolve",
        json={"src": "https://example.com/wide.png", "max_width": 200},
    )

    assert response.status_code == 200
    assert response.json() == {
        "width": 200,
        "height": 50,
        "status": "resolved",
        "source": "probed",
    }


@pytest.mark.asyncio
async def test_resolve_explicit_style_layers(
    test_client: AsyncClient, static_probe: StaticProbe
) -> None:
    response = await test_client.post(
        "/resolve",
        json={
            "src": "https://example.com/other.png",
            "style": [{"width": "120.7"}, {"height": "50%"}],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["width"], body["height"]) == (120, "50%")
    assert body["source"] == "explicit"
    assert static_probe.uris == []


@pytest.mark.asyncio
async def test_resolve_failed_probe_falls_back(test_client: AsyncClient) -> None:
    response = await test_client.post(
        "/resolve",
        json={"src": "https://example.com/missing.png", "max_width": 80},
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["width"], body["height"]) == (80, 80)
    assert body["status"] == "resolved"
    assert body["source"] == "fallback"


@pytest.mark.asyncio
async def test_resolve_rejects_local_paths(test_client: AsyncClient) -> None:
    response = await test_client.post("/resolve", json={"src": "/etc/passwd"})

    assert response.status_code == 400
    assert response.json()["detail"] == "invalid_src"


@pytest.mark.asyncio
async def test_resolve_validates_body(test_client: AsyncClient) -> None:
    response = await test_client.post("/resolve", json={"width": 10})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_render_markdown(test_client: AsyncClient) -> None:
    response = await test_client.post(
        "/render",
        json={
            "markdown": "# Title\n\n![wide](https://example.com/wide.png)",
            "max_width": 100,
        },
    )

    assert response.status_code == 200
    soup = BeautifulSoup(response.json()["html"], "html.parser")
    assert soup.find("h1").get_text() == "Title"
    img = soup.find("img")
    assert (img["width"], img["height"]) == ("100", "25")


def test_default_probe_refuses_local_files() -> None:
    probe = get_probe()

    assert isinstance(probe, RemoteImageProbe)
    assert probe.allowed_schemes == API_SCHEMES
    assert "" not in API_SCHEMES
    assert "file" not in API_SCHEMES
