"""Probe the natural size of an image without downloading all of it.

Remote images are streamed with httpx and the bytes received so far are
handed to PIL until it can read the header. ``data:`` URIs are decoded in
memory and local files are opened in a worker thread.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from urllib.parse import unquote, unquote_to_bytes, urlparse

import anyio
import httpx
from PIL import Image as PilImage

from htmlimage.config import config
from htmlimage.sizing.errors import ProbeError
from htmlimage.sizing.models import Dimensions
from htmlimage.sizing.resolver import ProbeFailure, ProbeSuccess

logger = logging.getLogger("htmlimage.probe")

PROBE_HEADERS = {
    "Accept": "image/*",
}

_HEADER_ERRORS = (OSError, EOFError, ValueError, PilImage.DecompressionBombError)


def read_image_header(content: bytes) -> Dimensions | None:
    """Return the size encoded in ``content``, or None if PIL needs more bytes."""
    try:
        with PilImage.open(BytesIO(content)) as img:
            width, height = img.size
            return Dimensions(int(width), int(height))
    except _HEADER_ERRORS:
        return None


class _HeaderReader:
    """Accumulates streamed bytes until the image header is readable.

    The buffer is re-parsed only once it has doubled since the last attempt,
    which keeps the work linear in the bytes received.
    """

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes
        self._buffer = bytearray()
        self._parsed_at = 0

    @property
    def received(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> Dimensions | None:
        if not chunk:
            return None
        self._buffer.extend(chunk)
        if len(self._buffer) > self.max_bytes:
            raise ProbeError(f"no image header in the first {self.max_bytes} bytes")
        if len(self._buffer) < 2 * self._parsed_at:
            return None
        return self._parse()

    def finish(self) -> Dimensions | None:
        """Parse whatever arrived since the last attempt."""
        if self._parsed_at == len(self._buffer):
            return None
        return self._parse()

    def _parse(self) -> Dimensions | None:
        self._parsed_at = len(self._buffer)
        return read_image_header(bytes(self._buffer))


def _read_file(path: Path) -> Dimensions:
    try:
        with PilImage.open(path) as img:
            width, height = img.size
            return Dimensions(int(width), int(height))
    except _HEADER_ERRORS as exc:
        raise ProbeError(f"cannot read image: {exc}", uri=str(path)) from exc


def decode_data_uri(uri: str) -> bytes:
    """Return the payload of a ``data:`` URI."""
    header, sep, payload = uri[len("data:") :].partition(",")
    if not sep:
        raise ProbeError("malformed data URI", uri=uri[:64])
    if header.lower().endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ProbeError(f"invalid base64 payload: {exc}", uri=uri[:64]) from exc
    return unquote_to_bytes(payload)


class RemoteImageProbe:
    """Callback-style probe that runs each lookup as an asyncio task.

    Example:
        probe = RemoteImageProbe()
        probe(url, on_success=print, on_failure=print)
        await probe.wait_idle()
    """

    def __init__(
        self,
        *,
        timeout: float = config.PROBE_TIMEOUT,
        max_bytes: int = config.PROBE_MAX_BYTES,
        user_agent: str = config.PROBE_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
        allowed_schemes: set[str] | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            timeout: HTTP timeout in seconds
            max_bytes: Bytes to read before giving up on finding a header
            user_agent: User-Agent header for HTTP requests
            transport: Optional httpx transport, mainly for tests
            allowed_schemes: URI schemes to probe ("" for plain paths);
                all supported schemes when None
        """
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.transport = transport
        self.allowed_schemes = allowed_schemes
        self._headers = dict(PROBE_HEADERS)
        self._headers["User-Agent"] = user_agent
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def __call__(
        self,
        uri: str,
        on_success: ProbeSuccess,
        on_failure: ProbeFailure,
    ) -> None:
        """Start probing ``uri``; requires a running event loop."""
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(uri, on_success, on_failure))
        # Keep a reference so the task is not garbage collected mid-flight.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait until every probe started so far has reported back."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(
        self,
        uri: str,
        on_success: ProbeSuccess,
        on_failure: ProbeFailure,
    ) -> None:
        try:
            size = await self.fetch_size(uri)
        except ProbeError as exc:
            on_failure(exc)
            return
        except Exception as exc:
            logger.warning("Unexpected error probing %s: %s", uri, exc)
            on_failure(ProbeError(str(exc), uri=uri))
            return
        on_success(size.width, size.height)

    async def fetch_size(self, uri: str) -> Dimensions:
        """Return the natural size of the image at ``uri``.

        Raises:
            ProbeError: If the size cannot be determined
        """
        if not uri:
            raise ProbeError("empty image URI")

        parsed = urlparse(uri)
        scheme = parsed.scheme.lower()
        if self.allowed_schemes is not None and scheme not in self.allowed_schemes:
            raise ProbeError(f"scheme not allowed: {scheme or 'path'}", uri=uri[:64])
        if scheme in {"http", "https"}:
            if not parsed.netloc:
                raise ProbeError("missing host", uri=uri)
            return await self._fetch_remote(uri)
        if scheme == "data":
            size = read_image_header(decode_data_uri(uri))
            if size is None:
                raise ProbeError("cannot identify image in data URI", uri=uri[:64])
            return size
        if scheme == "file":
            path = Path(unquote(parsed.path))
        elif not scheme:
            path = Path(uri)
        else:
            raise ProbeError(f"unsupported scheme: {scheme}", uri=uri)
        return await anyio.to_thread.run_sync(_read_file, path)

    async def _fetch_remote(self, uri: str) -> Dimensions:
        reader = _HeaderReader(self.max_bytes)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers=self._headers,
                transport=self.transport,
            ) as client:
                async with client.stream("GET", uri) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes():
                        size = reader.feed(chunk)
                        if size is not None:
                            logger.debug(
                                "Probed %s as %dx%d after %d bytes",
                                uri,
                                size.width,
                                size.height,
                                reader.received,
                            )
                            return size
                size = reader.finish()
                if size is not None:
                    return size
        except httpx.HTTPError as exc:
            raise ProbeError(f"HTTP error: {exc}", uri=uri) from exc
        except ProbeError as exc:
            exc.uri = exc.uri or uri
            raise

        raise ProbeError("cannot identify image", uri=uri)


__all__ = [
    "PROBE_HEADERS",
    "RemoteImageProbe",
    "decode_data_uri",
    "read_image_header",
]
