"""The gallery service: single owner of all mutable gallery state.

:class:`GalleryService` is constructed once at process start with an
injected :class:`~livegallery.core.asset_store.AssetStore` and handed to the
request handlers.  It owns

- the :class:`~livegallery.core.ordering.OrderReconciler` (display order),
- the :class:`~livegallery.core.broadcaster.NotificationBroadcaster`
  (live viewers),
- the :class:`~livegallery.core.session_gate.SessionGate` (manager login),
- the gallery parameter record (``pID``/``wnr``, last write wins).

Every successful mutation ends with exactly one refresh broadcast.  A failed
mutation broadcasts nothing.

Nothing here is persisted.  A restart resets the order to the store's return
order and the parameters to their configured defaults.
"""

from __future__ import annotations

import io
import logging
import warnings

from PIL import Image, UnidentifiedImageError

from livegallery.core.asset_store import Asset, AssetStore
from livegallery.core.broadcaster import NotificationBroadcaster
from livegallery.core.config import GalleryConfig
from livegallery.core.errors import (
    AssetStoreError,
    InputValidationError,
    PayloadTooLargeError,
    UpstreamError,
)
from livegallery.core.ordering import OrderReconciler
from livegallery.core.session_gate import SessionGate

logger = logging.getLogger(__name__)


class GalleryService:
    """Gallery operations invoked by the HTTP layer.

    Attributes:
        settings (GalleryConfig): Application configuration.
        store (AssetStore): External asset host.
        reconciler (OrderReconciler): Display order.
        broadcaster (NotificationBroadcaster): Live-update subscribers.
        gate (SessionGate): Authentication state.
    """

    def __init__(self, settings: GalleryConfig, store: AssetStore) -> None:
        self.settings = settings
        self.store = store
        self.reconciler = OrderReconciler(store, settings.list_max_results)
        self.broadcaster = NotificationBroadcaster()
        self.gate = SessionGate(settings.password, settings.session_ttl_seconds)
        self._params = {"pID": settings.default_pid, "wnr": settings.default_wnr}

    # -- Reads --------------------------------------------------------------

    async def list_images(self) -> list[Asset]:
        """Return the current assets in display order.

        Raises:
            UpstreamError: If the store listing fails.
        """
        try:
            return await self.reconciler.list_ordered()
        except AssetStoreError:
            logger.exception("Error fetching images")
            raise UpstreamError("Error fetching images")

    def get_params(self) -> dict:
        return dict(self._params)

    # -- Mutations ----------------------------------------------------------

    def _check_upload(self, data: bytes, content_type: str | None) -> None:
        """Validate an upload before anything is sent to the store.

        Raises:
            InputValidationError: Empty payload, disallowed MIME type, or
                bytes that do not decode as an image.
            PayloadTooLargeError: Payload larger than ``max_upload_bytes``, or
                pixel dimensions past Pillow's decompression-bomb limit.
        """
        if content_type not in self.settings.allowed_image_types:
            raise InputValidationError("Only image uploads are allowed")
        if not data:
            raise InputValidationError("No image uploaded")
        if len(data) > self.settings.max_upload_bytes:
            limit_mb = self.settings.max_upload_bytes / (1024 * 1024)
            raise PayloadTooLargeError(f"Image exceeds the {limit_mb:g}MB limit")

        try:
            # Pillow warns, rather than raises, between one and two times
            # MAX_IMAGE_PIXELS.  Both bands are rejected.
            with warnings.catch_warnings():
                warnings.simplefilter("error", Image.DecompressionBombWarning)
                with Image.open(io.BytesIO(data)) as img:
                    img.verify()
        except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
            logger.warning(f"Rejected upload with oversized dimensions: {e}")
            raise PayloadTooLargeError(
                f"Image exceeds the {Image.MAX_IMAGE_PIXELS} pixel limit"
            )
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            logger.warning(f"Rejected upload that is not a decodable image: {e}")
            raise InputValidationError("Uploaded file is not a valid image")

    async def upload_image(self, data: bytes, content_type: str | None) -> Asset:
        """Validate *data*, store it, and append it to the display order."""
        self._check_upload(data, content_type)
        try:
            asset = await self.store.upload(data)
        except AssetStoreError:
            logger.exception("Error uploading image")
            raise UpstreamError("Error uploading image")

        await self.reconciler.record_append(asset.public_id)
        await self.broadcaster.broadcast_refresh()
        return asset

    async def delete_image(self, public_id: str) -> list[Asset]:
        """Delete an asset from the store, then from the display order.

        The order list is only touched once the store deletion succeeded.
        Deleting an identifier the order list does not hold is fine.

        Returns:
            The refreshed ordered listing.
        """
        try:
            await self.store.delete(public_id)
        except AssetStoreError:
            logger.exception(f"Error deleting image {public_id}")
            raise UpstreamError("Error deleting image")

        removed = await self.reconciler.record_remove(public_id)
        logger.info(f"Deleted image {public_id} (in order list: {removed})")
        await self.broadcaster.broadcast_refresh()
        return await self.list_images()

    async def move_image(self, from_index: int, to_index: int) -> list[Asset]:
        """Splice one entry of the display order to a new position.

        The move only touches the order list, so it is applied and broadcast
        before the refreshed listing is fetched.  If that fetch fails the move
        stays in effect and the error says so.

        Raises:
            OrderIndexError: If either index is out of range.
            UpstreamError: If the listing after the move fails.
        """
        await self.reconciler.move(from_index, to_index)
        await self.broadcaster.broadcast_refresh()
        try:
            return await self.reconciler.list_ordered()
        except AssetStoreError:
            logger.exception(f"Moved {from_index} -> {to_index} but the listing failed")
            raise UpstreamError("Image moved, but the refreshed listing could not be fetched")

    async def update_params(self, pid: str, wnr: str) -> dict:
        """Replace the parameter record.  Inputs are validated by the caller."""
        self._params = {"pID": pid, "wnr": wnr}
        logger.info(f"Updated gallery params: pID={pid} wnr={wnr}")
        await self.broadcaster.broadcast_refresh()
        return self.get_params()
