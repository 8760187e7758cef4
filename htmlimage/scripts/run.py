"""Run the htmlimage API server."""

import os

import uvicorn

from htmlimage.config import config

DEFAULT_PORT = 7675
DEFAULT_HOST = "127.0.0.1"


def main() -> None:
    """Serve the htmlimage API with uvicorn on BIND_HOST:BIND_PORT."""
    uvicorn.run(
        "htmlimage.main:app",
        host=os.getenv("BIND_HOST", DEFAULT_HOST),
        port=int(os.getenv("BIND_PORT", str(DEFAULT_PORT))),
        log_level="debug" if config.DEBUG else "info",
        reload=False,
    )


if __name__ == "__main__":
    main()
