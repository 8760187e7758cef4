"""Image sizing routes."""

from __future__ import annotations

from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from htmlimage.config import config
from htmlimage.rendering import render_markdown_with_sizes
from htmlimage.sizing import RemoteImageProbe, resolve_once
from htmlimage.sizing.resolver import ImageSizeProbe

router: APIRouter = APIRouter(tags=["images"])

# API callers must not make the server read local files.
API_SCHEMES = {"http", "https", "data"}

_probe: RemoteImageProbe | None = None


def get_probe() -> ImageSizeProbe:
    """Return the probe shared by API requests."""
    global _probe
    if _probe is None:
        _probe = RemoteImageProbe(allowed_schemes=API_SCHEMES)
    return _probe


StyleLayerIn = dict[str, int | float | str]


class RenderRequest(BaseModel):
    markdown: str
    max_width: int | None = None


class RenderResponse(BaseModel):
    html: str


class ResolveRequest(BaseModel):
    src: str
    alt: str | None = None
    width: int | float | str | None = None
    height: int | float | str | None = None
    style: StyleLayerIn | list[StyleLayerIn] | None = None
    max_width: int | None = None


class ResolveResponse(BaseModel):
    width: int | float | str | None
    height: int | float | str | None
    status: str
    source: str


@router.post("/render", response_model=RenderResponse)
async def render(
    payload: RenderRequest,
    probe: ImageSizeProbe = Depends(get_probe),
) -> RenderResponse:
    """Render markdown to HTML with sized images."""
    html = await render_markdown_with_sizes(
        payload.markdown,
        probe=probe,
        max_width=payload.max_width,
    )
    return RenderResponse(html=html)


@router.post("/resolve", response_model=ResolveResponse)
async def resolve(
    payload: ResolveRequest,
    probe: ImageSizeProbe = Depends(get_probe),
) -> ResolveResponse:
    """Resolve the display size of a single image."""
    if urlparse(payload.src).scheme.lower() not in API_SCHEMES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_src"
        )

    try:
        size = await resolve_once(
            payload.model_dump(),
            probe=probe,
            timeout=config.RENDER_TIMEOUT,
        )
    except TimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="probe_timeout"
        ) from exc

    return ResolveResponse(**size.as_dict())
