"""Configuration management for the Live Gallery backend.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the LIVEGALLERY_
prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (LIVEGALLERY_* prefix)
2. .env file in the project root
3. Default values defined in GalleryConfig

Example .env file:
    LIVEGALLERY_PASSWORD=change-me
    LIVEGALLERY_SESSION_SECRET=a-long-random-string
    LIVEGALLERY_CLOUDINARY_CLOUD_NAME=my-cloud
    LIVEGALLERY_CLOUDINARY_API_KEY=123456789012345
    LIVEGALLERY_CLOUDINARY_API_SECRET=abcdefghijklmnopqrstuvwxyz
    LIVEGALLERY_SERVER_PORT=3000

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from livegallery.core.config import config

    print(config.upload_folder)
    print(config.max_upload_bytes)

    # Configuration is immutable after initialization
    # To change values, set environment variables and restart

Secrets
-------
``session_secret`` signs the session cookie.  When it is not provided a
random value is generated per process, which means every restart logs all
managers out.  Set it explicitly for anything beyond local development.
"""

import secrets
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GalleryConfig(BaseSettings):
    """Main configuration for the Live Gallery backend.

    Attributes
    ----------
    Authentication:
        password : str
            Shared secret that unlocks the management endpoints
        session_secret : str
            Key used to sign the session cookie
        session_ttl_seconds : int
            Lifetime of an authenticated session

    Asset Store (Cloudinary):
        cloudinary_cloud_name, cloudinary_api_key, cloudinary_api_secret : str
            Account credentials
        upload_folder : str
            Folder (public_id prefix) that holds the gallery images
        list_max_results : int
            Maximum number of assets fetched per listing (Cloudinary caps at 500)

    Uploads:
        max_upload_bytes : int
            Largest accepted upload in bytes
        allowed_image_types : list[str]
            Accepted MIME types for uploads

    Gallery Parameters:
        default_pid, default_wnr : str
            Initial values of the viewer-visible parameter record

    Rate Limiting:
        rate_limit_enabled : bool
            Toggle the per-address limiter
        rate_limit_window_seconds : int
            Length of the fixed window
        rate_limit_requests : int
            Requests per window for ordinary endpoints
        upload_rate_limit_requests : int
            Requests per window for ``POST /upload``

    Server:
        server_host : str
            Bind address
        server_port : int
            Bind port (1024-65535)
        log_level : Literal["debug", "info", "warning", "error"]
            Root and uvicorn log level

    Examples
    --------
        >>> custom_config = GalleryConfig(password="s3cret", server_port=8080)
        >>> custom_config.upload_folder
        'uploads'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LIVEGALLERY_",
        case_sensitive=False,
    )

    # Authentication
    password: str = Field(
        default="1234",
        description="Shared password for the management endpoints",
    )
    session_secret: str = Field(
        default_factory=lambda: secrets.token_hex(32),
        description="Secret used to sign session cookies",
    )
    session_ttl_seconds: int = Field(
        default=86400,
        description="Authenticated session lifetime in seconds",
        gt=0,
    )

    # Cloudinary
    cloudinary_cloud_name: str = Field(default="", description="Cloudinary cloud name")
    cloudinary_api_key: str = Field(default="", description="Cloudinary API key")
    cloudinary_api_secret: str = Field(default="", description="Cloudinary API secret")
    upload_folder: str = Field(
        default="uploads",
        description="Cloudinary folder holding the gallery images",
        min_length=1,
    )
    list_max_results: int = Field(
        default=500,
        description="Maximum number of assets returned by one listing call",
        ge=1,
        le=500,
    )

    # Uploads
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted upload in bytes",
        gt=0,
    )
    allowed_image_types: list[str] = Field(
        default=[
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
            "image/bmp",
            "image/tiff",
        ],
        description="MIME types accepted by POST /upload",
    )

    # Gallery parameters
    default_pid: str = Field(default="1022898", pattern=r"^\d+$")
    default_wnr: str = Field(default="92117", pattern=r"^\d+$")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_window_seconds: int = Field(default=900, gt=0)
    rate_limit_requests: int = Field(default=100, gt=0)
    upload_rate_limit_requests: int = Field(default=20, gt=0)

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=3000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(default="info")


# Global configuration instance, loaded from LIVEGALLERY_* variables and .env.
config = GalleryConfig()
