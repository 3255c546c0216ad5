"""Configuration module for LCDMatch."""

from .config_loader import get_config, reload_config
from .models import ComparisonConfig, load_comparison_config

__all__ = ['get_config', 'reload_config', 'ComparisonConfig', 'load_comparison_config']
