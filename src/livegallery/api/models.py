"""Pydantic request and response models for the Live Gallery API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.  Validation failures are reported to clients as
400 responses by :mod:`livegallery.api.errors`.

Models
------
ImageOut
    One entry of ``GET /images`` and the ``POST /upload`` response.
MoveRequest
    Payload for ``POST /images/move``.
GalleryParams
    Payload and response of ``POST /update-params``; response of
    ``GET /params``.
AuthenticateRequest
    Payload for ``POST /authenticate``.
AuthStatus, LogoutResponse, HealthResponse
    Small response envelopes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

# Asset identifiers accepted in ``DELETE /images/{public_id}``.
PUBLIC_ID_PATTERN = r"^[a-zA-Z0-9_-]+$"


class ImageOut(BaseModel):
    """A gallery image as served to clients.

    Attributes:
        url: Secure delivery URL of the image.
        public_id: Identifier used for deletion.
    """

    url: str
    public_id: str


class MoveRequest(BaseModel):
    """Request body for ``POST /images/move``.

    Both indices refer to positions in the current display order.  Strict
    integers are required: ``"1"`` and ``1.0`` are rejected.
    """

    fromIndex: StrictInt = Field(..., description="Current position of the image.")
    toIndex: StrictInt = Field(..., description="Position the image should end up at.")


class GalleryParams(BaseModel):
    """Viewer-visible parameter record.

    Attributes:
        pID: Numeric-string identifier of the linked resource.
        wnr: Numeric-string identifier of the linked resource.
    """

    model_config = ConfigDict(extra="ignore")

    pID: StrictStr = Field(..., pattern=r"^\d+$", description="Digits only.")
    wnr: StrictStr = Field(..., pattern=r"^\d+$", description="Digits only.")


class AuthenticateRequest(BaseModel):
    password: StrictStr = Field(..., description="Shared management password.")


class AuthStatus(BaseModel):
    authenticated: bool


class LogoutResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    subscribers: int
    uptime_seconds: float
