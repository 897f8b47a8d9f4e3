"""Live Gallery - image gallery management backend with live-updating viewers."""

__version__ = "0.1.0"

from livegallery.core.config import GalleryConfig, config

__all__ = [
    "GalleryConfig",
    "config",
]
