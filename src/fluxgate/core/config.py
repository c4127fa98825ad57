"""Configuration management for Fluxgate.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the FLUXGATE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (FLUXGATE_* prefix)
2. .env file in the project root
3. Default values defined in FluxgateConfig

Example .env file:
    FLUXGATE_ACCOUNT_ID=0123456789abcdef0123456789abcdef
    FLUXGATE_API_TOKEN=...
    FLUXGATE_GATEWAY_ID=ai-gateway-image-generator
    FLUXGATE_LOG_LEVEL=DEBUG

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
Credentials are optional at import so that the application (and its tests)
can start without them; the Workers AI client refuses to send requests until
both ``account_id`` and ``api_token`` are set.

Generation Parameters
---------------------
The image model is always called with a square 1024x1024 canvas and 25 steps.
These are exposed as settings for completeness but the defaults are what the
downstream model is tuned for.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FluxgateConfig(BaseSettings):
    """Main configuration for the Fluxgate gateway.

    Attributes
    ----------
    Workers AI Credentials:
        account_id : str
            Cloudflare account identifier owning the Workers AI models
        api_token : str
            API token with Workers AI read/run permission

    Endpoints:
        api_base_url : str
            Base URL of the Cloudflare REST API
        gateway_base_url : str
            Base URL of Cloudflare AI Gateway
        gateway_id : str
            AI Gateway id used to route prompt-enhancement calls

    Models:
        text_model : str
            Workers AI model used to enhance prompts
        image_model : str
            Workers AI model used to generate images

    Generation Settings:
        image_width, image_height : int
            Output canvas size sent with every generation
        image_steps : int
            Diffusion steps sent with every generation
        max_reference_images : int
            Number of ``image_N`` form slots read from each request

    Server:
        request_timeout : float
            Timeout in seconds for each upstream call
        server_host, server_port
            uvicorn bind address
        log_level
            Root logging level used by the CLI entry point

    Examples
    --------
        >>> custom = FluxgateConfig(account_id="abc", api_token="secret")
        >>> custom.is_configured
        True
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FLUXGATE_",
        case_sensitive=False,
    )

    # Workers AI credentials
    account_id: str = Field(
        default="",
        description="Cloudflare account id",
    )
    api_token: str = Field(
        default="",
        description="Cloudflare API token with Workers AI access",
    )

    # Endpoints
    api_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Cloudflare REST API base URL",
    )
    gateway_base_url: str = Field(
        default="https://gateway.ai.cloudflare.com/v1",
        description="Cloudflare AI Gateway base URL",
    )
    gateway_id: str = Field(
        default="ai-gateway-image-generator",
        description="AI Gateway id for prompt enhancement ('' to call Workers AI directly)",
    )

    # Models
    text_model: str = Field(
        default="@cf/meta/llama-3.2-3b-instruct",
        description="Model used for prompt enhancement",
    )
    image_model: str = Field(
        default="@cf/black-forest-labs/flux-2-dev",
        description="Model used for image generation",
    )

    # Generation settings
    image_width: int = Field(default=1024, ge=256, le=2048)
    image_height: int = Field(default=1024, ge=256, le=2048)
    image_steps: int = Field(default=25, ge=1, le=50)
    max_reference_images: int = Field(
        default=4,
        ge=0,
        le=4,
        description="Number of image_N form slots read per request",
    )

    # Server settings
    request_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Timeout in seconds for each upstream call",
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8787,
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level for the CLI entry point",
    )

    @property
    def is_configured(self) -> bool:
        """Whether Workers AI credentials are present."""
        return bool(self.account_id and self.api_token)


# Global configuration instance
config = FluxgateConfig()
