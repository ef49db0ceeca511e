"""Configuration utilities for tapeforge."""
from .schema import ConfigSchema, load_config, DEFAULT_CONFIG_PATH

__all__ = ["ConfigSchema", "load_config", "DEFAULT_CONFIG_PATH"]
