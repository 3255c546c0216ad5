"""
Configuration Loader for LCDMatch

Loads the comparison table from YAML file.
Provides singleton access to configuration.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
import os


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "comparison_config.yaml"


class ConfigLoader:
    """Singleton configuration loader."""

    _instance: Optional['ConfigLoader'] = None
    _config: Optional[Dict[str, Any]] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._config is None:
            self._load_config()

    def _load_config(self):
        """Load configuration from YAML file."""
        # LCDMATCH_CONFIG points at an alternative table
        config_path = Path(os.environ.get("LCDMATCH_CONFIG", DEFAULT_CONFIG_PATH))

        if not config_path.exists():
            logger.warning(f"Configuration file not found: {config_path}, using built-in defaults")
            self._config = {}
            return

        with open(config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        # Environment variable overrides
        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """Apply environment variable overrides to config."""
        # Example: LCDMATCH_MATCHING_RATIO_MIXED=0.9
        prefix = "LCDMATCH_"

        for key, value in os.environ.items():
            if key.startswith(prefix):
                config_key = key[len(prefix):].lower()

                # Underscores are ambiguous, so resolve against the YAML structure
                parts = self._parse_config_path(config_key)

                if parts:
                    self._set_nested_value(self._config, parts, value)

    def _parse_config_path(self, env_key: str) -> list:
        """
        Parse environment variable key into config path parts.

        Handles underscores in key names by matching against actual YAML structure.

        Args:
            env_key: Environment variable key without prefix (e.g., "scoring_both_render_power")

        Returns:
            List of path parts (e.g., ["scoring", "both_render", "power"])
        """
        all_parts = env_key.split('_')

        current = self._config
        result = []
        i = 0

        while i < len(all_parts):
            # Prefer the longest key that exists at this level
            matched = False
            for length in range(len(all_parts) - i, 0, -1):
                candidate_key = '_'.join(all_parts[i:i+length])

                if isinstance(current, dict) and candidate_key in current:
                    result.append(candidate_key)
                    current = current[candidate_key]
                    i += length
                    matched = True
                    break

            if not matched:
                return []

        return result

    def _set_nested_value(self, config: Dict, parts: list, value: str):
        """Set nested configuration value."""
        current = config
        for part in parts[:-1]:
            if part in current and isinstance(current[part], dict):
                current = current[part]
            else:
                return

        # Set value with type conversion
        key = parts[-1]
        if key in current:
            original_type = type(current[key])
            try:
                if original_type == bool:
                    current[key] = value.lower() in ('true', '1', 'yes')
                elif original_type == int:
                    current[key] = int(value)
                elif original_type == float:
                    current[key] = float(value)
                else:
                    current[key] = value
            except ValueError:
                current[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., "matching.ratio_mixed")
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config = ConfigLoader()
            >>> config.get("matching.ratio_mixed")
            0.85
        """
        parts = key.split('.')
        current = self._config

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get entire configuration section.

        Args:
            section: Section name (e.g., "scoring", "logging")

        Returns:
            Configuration section as dictionary
        """
        return self.get(section, {})

    def as_dict(self) -> Dict[str, Any]:
        """Return the whole configuration table."""
        return dict(self._config)

    def reload(self):
        """Reload configuration from file."""
        self._config = None
        self._load_config()


# Singleton instance
_loader: Optional[ConfigLoader] = None


def get_config() -> ConfigLoader:
    """
    Get singleton configuration loader instance.

    Returns:
        ConfigLoader instance

    Example:
        >>> from config import get_config
        >>> config = get_config()
        >>> power = config.get("scoring.mixed.power")
    """
    global _loader
    if _loader is None:
        _loader = ConfigLoader()
    return _loader


def reload_config():
    """
    Reload configuration from file.

    Use this after modifying the YAML file or the environment.
    """
    global _loader
    if _loader is not None:
        _loader.reload()
    else:
        _loader = ConfigLoader()
