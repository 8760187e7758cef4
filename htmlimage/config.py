"""Configuration management for htmlimage."""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _optional_int(name: str) -> int | None:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    return int(value)


class Config:
    """Application configuration."""

    # Application
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Sizing
    IMAGES_MAX_WIDTH: int | None = _optional_int("IMAGES_MAX_WIDTH")
    IMAGES_INITIAL_WIDTH: int = int(os.getenv("IMAGES_INITIAL_WIDTH", "100"))
    IMAGES_INITIAL_HEIGHT: int = int(os.getenv("IMAGES_INITIAL_HEIGHT", "100"))
    # Square used when a probe fails and no max width is configured
    IMAGES_FALLBACK_SIZE: int = int(os.getenv("IMAGES_FALLBACK_SIZE", "100"))

    # Probing
    PROBE_TIMEOUT: float = float(os.getenv("PROBE_TIMEOUT", "10"))
    PROBE_MAX_BYTES: int = int(os.getenv("PROBE_MAX_BYTES", str(5 * 1024 * 1024)))
    PROBE_USER_AGENT: str = os.getenv("PROBE_USER_AGENT", "htmlimage/0.1")

    # Rendering
    RENDER_TIMEOUT: float = float(os.getenv("RENDER_TIMEOUT", "30"))

    @classmethod
    def initial_dimensions(cls) -> tuple[int, int]:
        """Return the configured (width, height) seed for pending images."""
        return cls.IMAGES_INITIAL_WIDTH, cls.IMAGES_INITIAL_HEIGHT


config = Config()
