"""Adapters for the external asset-hosting service.

The gallery never stores image bytes itself.  Uploads, deletions and
listings are delegated to an :class:`AssetStore`; the production adapter is
:class:`CloudinaryAssetStore`, which talks to Cloudinary through its official
SDK.

Public identifiers
------------------
Cloudinary prefixes every ``public_id`` with the folder it lives in
(``uploads/abc123``).  The adapter strips that prefix so the rest of the
application, and the HTTP clients, only ever see the short identifier
(``abc123``).  The prefix is re-applied when an asset is destroyed.

Blocking calls
--------------
The Cloudinary SDK performs synchronous HTTP requests.  Each call is pushed
to Starlette's threadpool so the event loop keeps serving other requests
(and WebSocket subscribers) while the remote call is outstanding.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Protocol

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from livegallery.core.config import GalleryConfig
from livegallery.core.errors import AssetStoreError

logger = logging.getLogger(__name__)

# Results of ``uploader.destroy`` that count as a completed deletion.
_DESTROY_OK = {"ok", "not found"}


@dataclass(frozen=True)
class Asset:
    """An uploaded image as reported by the asset store.

    Attributes:
        public_id: Identifier relative to the upload folder.
        url: Secure delivery URL.
        created_at: Upload timestamp as reported by the store, if any.
    """

    public_id: str
    url: str
    created_at: str | None = None

    def to_dict(self) -> dict:
        """Return the ``{url, public_id}`` payload served to clients."""
        return {"url": self.url, "public_id": self.public_id}


class AssetStore(Protocol):
    """Interface consumed by the gallery service."""

    async def list_assets(self, max_results: int) -> list[Asset]:
        """Return up to *max_results* assets in the store's own order."""
        ...

    async def upload(self, data: bytes) -> Asset:
        """Store *data* as a new asset and return it."""
        ...

    async def delete(self, public_id: str) -> None:
        """Remove the asset identified by *public_id*."""
        ...


class CloudinaryAssetStore:
    """Asset store backed by a Cloudinary folder."""

    def __init__(self, settings: GalleryConfig) -> None:
        self._folder = settings.upload_folder.strip("/")
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )

    @property
    def folder(self) -> str:
        return self._folder

    def _short_id(self, public_id: str) -> str:
        prefix = f"{self._folder}/"
        if public_id.startswith(prefix):
            return public_id[len(prefix) :]
        return public_id

    def _to_asset(self, resource: dict) -> Asset:
        return Asset(
            public_id=self._short_id(resource["public_id"]),
            url=resource.get("secure_url") or resource.get("url", ""),
            created_at=resource.get("created_at"),
        )

    async def list_assets(self, max_results: int) -> list[Asset]:
        try:
            response = await run_in_threadpool(
                cloudinary.api.resources,
                type="upload",
                prefix=f"{self._folder}/",
                max_results=max_results,
            )
        except cloudinary.exceptions.Error as e:
            raise AssetStoreError(f"Cloudinary listing failed: {e}") from e

        resources = response.get("resources", [])
        logger.debug(f"Listed {len(resources)} assets under {self._folder}/")
        return [self._to_asset(resource) for resource in resources]

    async def upload(self, data: bytes) -> Asset:
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                folder=self._folder,
                resource_type="image",
            )
        except cloudinary.exceptions.Error as e:
            raise AssetStoreError(f"Cloudinary upload failed: {e}") from e

        asset = self._to_asset(result)
        logger.info(f"Uploaded asset {asset.public_id} ({len(data)} bytes)")
        return asset

    async def delete(self, public_id: str) -> None:
        full_id = f"{self._folder}/{public_id}"
        try:
            result = await run_in_threadpool(cloudinary.uploader.destroy, full_id)
        except cloudinary.exceptions.Error as e:
            raise AssetStoreError(f"Cloudinary destroy failed: {e}") from e

        outcome = result.get("result")
        if outcome not in _DESTROY_OK:
            raise AssetStoreError(f"Cloudinary destroy of {full_id} returned {outcome!r}")
        logger.info(f"Destroyed asset {full_id} ({outcome})")
