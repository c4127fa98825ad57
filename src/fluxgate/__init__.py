"""Fluxgate - prompt-enhancing HTTP gateway for hosted image generation."""

__version__ = "0.1.0"

from fluxgate.core.config import FluxgateConfig, config

__all__ = [
    "FluxgateConfig",
    "config",
]
