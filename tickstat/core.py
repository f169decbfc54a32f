import logging
import logging.config
from typing import Any, Dict, Optional

import yaml

from .technical_analysis.base import BaseIndicator
from .technical_analysis.factory import create_from_config

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and manages indicator configuration from a YAML file."""
    def __init__(self, config_path: str):
        """Initialize with path to config file."""
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load YAML configuration file; an empty file yields an empty config."""
        try:
            with open(self.config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.error(f"Configuration file not found at '{self.config_path}'")
            raise
        except yaml.YAMLError as e:
            logger.error(f"Malformed YAML in configuration file: {e}")
            raise

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key with optional default."""
        return self.config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Dictionary-style access to config."""
        return self.config[key]

    def get_all(self) -> Dict[str, Any]:
        """Return entire configuration dictionary."""
        return self.config


def setup_logging(config: Optional[Dict[str, Any]]) -> None:
    """Configure application logging with fallback to basic config."""
    if not config:
        logging.basicConfig(level=logging.INFO,
                            format="%(asctime)s - %(levelname)s - %(message)s")
        logging.warning("No logging section in config. Using basic config.")
        return

    try:
        logging.config.dictConfig(config)
        logging.info("Logging configured successfully from config file.")
    except (ValueError, TypeError, AttributeError) as e:
        # Fallback to a basic configuration if the one in the file is malformed
        logging.basicConfig(level=logging.INFO,
                            format="%(asctime)s - %(levelname)s - %(message)s")
        logging.warning(f"Could not configure logging from dict: {e}. Using basic config.")


def load_indicators(config_path: str) -> Dict[str, BaseIndicator]:
    """Load a config file, apply its logging section and build its indicators."""
    config_loader = ConfigLoader(config_path)
    setup_logging(config_loader.get('logging'))
    return create_from_config(config_loader.get('indicators', {}))
