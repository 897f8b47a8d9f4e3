"""Shared pytest fixtures for Live Gallery tests."""

from __future__ import annotations

import io
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from starlette.websockets import WebSocketState

from livegallery.core.asset_store import Asset
from livegallery.core.config import GalleryConfig
from livegallery.core.errors import AssetStoreError
from livegallery.core.gallery import GalleryService

TEST_PASSWORD = "correct-horse"


class FakeAssetStore:
    """In-memory stand-in for the Cloudinary adapter.

    Assets are listed in insertion order unless ``listing_order`` is set.
    Setting ``fail_list``, ``fail_upload`` or ``fail_delete`` makes the
    corresponding call raise :class:`AssetStoreError`.
    """

    def __init__(self, ids: list[str] | None = None) -> None:
        self.assets: dict[str, Asset] = {}
        self.listing_order: list[str] | None = None
        self.fail_list = False
        self.fail_upload = False
        self.fail_delete = False
        self.deleted: list[str] = []
        self.uploaded: list[bytes] = []
        self.list_calls: list[int] = []
        self._counter = 0
        for public_id in ids or []:
            self.add(public_id)

    def add(self, public_id: str) -> Asset:
        asset = Asset(public_id=public_id, url=f"https://cdn.test/uploads/{public_id}.png")
        self.assets[public_id] = asset
        return asset

    async def list_assets(self, max_results: int) -> list[Asset]:
        self.list_calls.append(max_results)
        if self.fail_list:
            raise AssetStoreError("listing exploded")
        ids = self.listing_order if self.listing_order is not None else list(self.assets)
        return [self.assets[i] for i in ids if i in self.assets][:max_results]

    async def upload(self, data: bytes) -> Asset:
        if self.fail_upload:
            raise AssetStoreError("upload exploded")
        self._counter += 1
        self.uploaded.append(data)
        return self.add(f"img{self._counter:03d}")

    async def delete(self, public_id: str) -> None:
        if self.fail_delete:
            raise AssetStoreError("delete exploded")
        self.deleted.append(public_id)
        self.assets.pop(public_id, None)


class FakeSocket:
    """Subscriber handle shaped like a Starlette WebSocket."""

    def __init__(self, open_: bool = True, fail: bool = False) -> None:
        state = WebSocketState.CONNECTED if open_ else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state
        self.fail = fail
        self.sent: list[str] = []

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(text)


def make_png(size: tuple[int, int] = (8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(0, 128, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


def make_bilevel_png(size: tuple[int, int]) -> bytes:
    """A blank 1-bit PNG; compresses to a few KB even at huge dimensions."""
    buffer = io.BytesIO()
    Image.new("1", size).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def test_config() -> GalleryConfig:
    """Configuration that never touches Cloudinary or a .env file.

    Rate limiting is disabled so that large test classes cannot trip it;
    the limiter has its own tests.
    """
    return GalleryConfig(
        _env_file=None,
        password=TEST_PASSWORD,
        session_secret="test-secret",
        rate_limit_enabled=False,
        max_upload_bytes=64 * 1024,
    )


@pytest.fixture
def fake_store() -> FakeAssetStore:
    return FakeAssetStore()


@pytest.fixture
def service(test_config: GalleryConfig, fake_store: FakeAssetStore) -> GalleryService:
    return GalleryService(test_config, fake_store)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def test_app(test_config: GalleryConfig, fake_store: FakeAssetStore):
    from livegallery.api.main import create_app

    return create_app(test_config, fake_store)


@pytest.fixture
def test_client(test_app) -> Iterator[TestClient]:
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def authed_client(test_client: TestClient) -> TestClient:
    """A client whose session cookie has been unlocked."""
    resp = test_client.post("/authenticate", json={"password": TEST_PASSWORD})
    assert resp.status_code == 200
    return test_client
