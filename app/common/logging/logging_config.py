"""Centralized logging configuration management."""

import os
import yaml
from pathlib import Path
from typing import Dict, Optional


class LoggingConfig:
    """Logging configuration for the service components (api, store, cache)."""

    _instance: Optional['LoggingConfig'] = None

    def __init__(self, config_path: Optional[str] = None):
        """Initialize logging configuration.

        Args:
            config_path: Path to logging-config.yaml (default: searched upwards
                from this package, then LOGGING_CONFIG env var)
        """
        self._config: Dict = {}

        if config_path is None:
            config_path = os.getenv("LOGGING_CONFIG")

        if config_path is None:
            current = Path(__file__).parent
            for _ in range(4):
                config_file = current / "logging-config.yaml"
                if config_file.exists():
                    config_path = str(config_file)
                    break
                current = current.parent

        if config_path and Path(config_path).exists():
            with open(config_path) as f:
                self._config = yaml.safe_load(f) or {}
        else:
            self._config = {
                'default_level': 'INFO',
                'components': {},
                'frameworks': {},
            }

    @classmethod
    def get_instance(cls) -> 'LoggingConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Drop the cached instance (tests)."""
        cls._instance = None

    def get_level(self, component: str = 'default') -> str:
        """Get log level for a component.

        LOG_LEVEL_<COMPONENT> wins over LOG_LEVEL, which wins over the file.
        """
        env_var = f"LOG_LEVEL_{component.upper().replace('-', '_')}"
        if env_level := os.getenv(env_var):
            return env_level.upper()

        if env_level := os.getenv('LOG_LEVEL'):
            return env_level.upper()

        comp_cfg = self._config.get('components', {}).get(component)
        if isinstance(comp_cfg, dict) and 'level' in comp_cfg:
            return comp_cfg['level'].upper()
        elif isinstance(comp_cfg, str):
            return comp_cfg.upper()

        return self._config.get('default_level', 'INFO').upper()

    def get_json_format(self, component: str = 'default') -> bool:
        """Get JSON format flag for a component (plain text unless enabled)."""
        env_var = f"LOG_JSON_{component.upper().replace('-', '_')}"
        if env_json := os.getenv(env_var):
            return env_json.lower() in ('true', '1', 'yes')

        if env_json := os.getenv('LOG_JSON'):
            return env_json.lower() in ('true', '1', 'yes')

        comp_cfg = self._config.get('components', {}).get(component)
        if isinstance(comp_cfg, dict):
            return bool(comp_cfg.get('json_format', False))

        return False

    def get_framework_level(self, framework: str) -> Optional[str]:
        """Get log level for a framework logger (uvicorn, sqlalchemy, ...)."""
        frameworks_cfg = self._config.get('frameworks', {})
        if framework in frameworks_cfg:
            return str(frameworks_cfg[framework]).upper()
        return None

    @property
    def frameworks(self) -> Dict[str, str]:
        return dict(self._config.get('frameworks', {}))


def get_logging_config() -> LoggingConfig:
    """Get singleton logging configuration instance."""
    return LoggingConfig.get_instance()
