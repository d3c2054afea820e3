"""Configuration loading and management."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from dotenv import load_dotenv

from pagestamp.core.config import TemplateConfig
from pagestamp.core.exceptions import ConfigurationError


ENV_OVERRIDES = {
    "FRONTEND_URL": "frontend_url",
    "PAGESTAMP_FONT_DIR": "font_dir",
    "PAGESTAMP_LOGO_PATH": "logo_path",
    "PAGESTAMP_PLACEHOLDER_PATH": "placeholder_path",
    "PAGESTAMP_LOG_LEVEL": "log_level",
}


def load_config(config_path: Optional[str] = None, use_dotenv: bool = True) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file (defaults to configs/default.yaml)
        use_dotenv: Read a ``.env`` file before applying environment overrides

    Returns:
        Configuration dictionary
    """
    if use_dotenv:
        load_dotenv()

    if config_path is None:
        possible_paths = [
            Path("configs/default.yaml"),
            Path(__file__).parent.parent.parent / "configs" / "default.yaml"
        ]

        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break
        else:
            return override_with_env(get_default_config())

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping",
            invalid_value=type(config).__name__
        )

    return override_with_env(config)


def save_config(config: Dict[str, Any], config_path: str) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary
        config_path: Output path
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def override_with_env(config: Dict[str, Any]) -> Dict[str, Any]:
    """Override config with environment variables."""
    for env_var, key in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            config[key] = value
    return config


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return TemplateConfig().to_dict()


def load_template_config(config_path: Optional[str] = None, use_dotenv: bool = True) -> TemplateConfig:
    """
    Load and validate configuration.

    Raises:
        ConfigurationError: unknown keys or invalid values
        FileNotFoundError: ``config_path`` does not exist
    """
    return TemplateConfig.from_dict(load_config(config_path, use_dotenv=use_dotenv))
