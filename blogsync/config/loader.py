"""Configuration loader."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "blogsync" / "config.yaml"


class Config:
    """Configuration manager."""

    def __init__(self, config_path: Optional[Path] = None, config: Optional[ConfigModel] = None) -> None:
        """Initialize config manager.

        An already-built ``ConfigModel`` may be passed directly, in which case
        no file is read.
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config = config

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    def get_notion_token(self) -> Optional[str]:
        """Resolve the Notion token, environment first."""
        notion = self.config.notion
        if notion.token_env:
            token = os.environ.get(notion.token_env)
            if token:
                return token
        return notion.token

    def get_llm_config(self) -> Dict[str, Any]:
        """Get LLM configuration dict."""
        llm_config = self.config.llm.model_dump()

        # Handle API key from environment if specified
        if llm_config.get("api_key_env"):
            api_key = os.environ.get(llm_config["api_key_env"])
            if api_key:
                llm_config["api_key"] = api_key

        return llm_config


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
