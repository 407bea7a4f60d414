"""Configuration management for blogsync."""

from .loader import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .models import (
    AssetConfig,
    ConfigModel,
    EmbeddingConfig,
    ExportConfig,
    LLMConfig,
    NotionConfig,
    PipelineConfig,
    StoreConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "NotionConfig",
    "LLMConfig",
    "EmbeddingConfig",
    "AssetConfig",
    "StoreConfig",
    "ExportConfig",
    "PipelineConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "save_config",
]
