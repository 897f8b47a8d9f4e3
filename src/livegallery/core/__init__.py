"""Core services for Live Gallery.

Modules
-------
config
    Pydantic Settings configuration (``LIVEGALLERY_*`` environment variables).
errors
    Error taxonomy shared with the HTTP layer.
asset_store
    Asset store protocol and the Cloudinary adapter.
ordering
    In-memory display order reconciled against the store listing.
broadcaster
    Refresh fan-out to WebSocket subscribers.
session_gate
    Shared-password session authentication.
gallery
    The service object that owns all mutable gallery state.
"""

from livegallery.core.asset_store import Asset, AssetStore, CloudinaryAssetStore
from livegallery.core.broadcaster import REFRESH_MESSAGE, NotificationBroadcaster
from livegallery.core.gallery import GalleryService
from livegallery.core.ordering import OrderReconciler
from livegallery.core.session_gate import SessionGate

__all__ = [
    "Asset",
    "AssetStore",
    "CloudinaryAssetStore",
    "GalleryService",
    "NotificationBroadcaster",
    "OrderReconciler",
    "REFRESH_MESSAGE",
    "SessionGate",
]
