"""Utility functions and helpers."""

from .logger import setup_logger, get_logger, configure_logging
from .config_loader import load_config, save_config, load_template_config
from .colors import parse_color, rgb_to_hex

__all__ = [
    'setup_logger',
    'get_logger',
    'configure_logging',
    'load_config',
    'save_config',
    'load_template_config',
    'parse_color',
    'rgb_to_hex'
]
