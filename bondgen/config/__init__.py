"""Job file loading and validation."""

from .loader import ConfigError, GenerateConfig, load_config

__all__ = ["ConfigError", "GenerateConfig", "load_config"]
