"""Integration tests for livegallery.api.rate_limit."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from livegallery.api.main import create_app
from livegallery.api.rate_limit import client_key
from tests.conftest import TEST_PASSWORD, FakeAssetStore


def _limited_client(test_config, **limits) -> TestClient:
    settings = test_config.model_copy(update={"rate_limit_enabled": True, **limits})
    return TestClient(create_app(settings, FakeAssetStore()))


class TestGeneralLimit:
    def test_requests_over_quota_get_429(self, test_config):
        with _limited_client(test_config, rate_limit_requests=3) as client:
            for _ in range(3):
                assert client.get("/params").status_code == 200

            resp = client.get("/params")

        assert resp.status_code == 429
        assert "error" in resp.json()
        assert resp.headers["Retry-After"] == str(test_config.rate_limit_window_seconds)

    def test_health_is_exempt(self, test_config):
        with _limited_client(test_config, rate_limit_requests=1) as client:
            for _ in range(5):
                assert client.get("/health").status_code == 200

    def test_addresses_are_counted_separately(self, test_config):
        with _limited_client(test_config, rate_limit_requests=1) as client:
            assert client.get("/params", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
            assert client.get("/params", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200
            assert client.get("/params", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429


class TestUploadLimit:
    def test_upload_limit_is_stricter(self, test_config, png_bytes):
        with _limited_client(
            test_config, rate_limit_requests=100, upload_rate_limit_requests=1
        ) as client:
            client.post("/authenticate", json={"password": TEST_PASSWORD})
            files = {"image": ("a.png", png_bytes, "image/png")}

            assert client.post("/upload", files=files).status_code == 200
            assert client.post("/upload", files=files).status_code == 429
            assert client.get("/params").status_code == 200


class TestClientKey:
    @pytest.mark.parametrize(
        "header, expected",
        [("203.0.113.5", "203.0.113.5"), ("203.0.113.5, 10.0.0.1", "203.0.113.5")],
    )
    def test_forwarded_for_first_hop(self, header, expected):
        from starlette.requests import Request

        scope = {
            "type": "http",
            "headers": [(b"x-forwarded-for", header.encode())],
            "client": ("127.0.0.1", 1234),
        }
        assert client_key(Request(scope)) == expected

    def test_falls_back_to_peer(self):
        from starlette.requests import Request

        scope = {"type": "http", "headers": [], "client": ("127.0.0.1", 1234)}
        assert client_key(Request(scope)) == "127.0.0.1"
