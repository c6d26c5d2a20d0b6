"""
Configuration manager for the measurement replay application.
"""

import copy
import json
import logging
import os
from typing import Dict, Any

from ukf_fusion.ukf import UKFConfig

logger = logging.getLogger(__name__)

class Config:
    """Configuration manager for the tracking replay."""

    DEFAULT_CONFIG = {
        # Input / output
        "measurement_file": "data/measurements.txt",
        "output_file": "ukf_output.csv",

        # UKF tuning, sensor calibration is fixed in code
        "ukf": {
            "use_lidar": True,
            "use_radar": True,
            "std_a": 3.0,
            "std_yawdd": 2.0,
            "lidar_init_v_var": 1.0,
            "lidar_init_yaw_var": 1.0,
            "lidar_init_yaw_rate_var": 1.0,
            "radar_init_yaw_var": 0.03,
            "radar_init_yaw_rate_var": 0.03
        },

        # Data logging
        "enable_logging": True,
        "log_file": "ukf_replay.log",
        "log_level": "INFO",

        # Status output every N processed samples
        "status_interval": 100
    }

    def __init__(self, config_file: str = "config.json"):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file
        """
        self.config_file = config_file
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        # Load configuration from file if it exists
        if os.path.exists(config_file):
            self.load_config()
        else:
            logger.info("Config file %s not found, using defaults", config_file)
            self.save_config()  # Create default config file

    def load_config(self) -> bool:
        """
        Load configuration from file.

        Returns:
            True if loaded successfully
        """
        try:
            with open(self.config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load config %s: %s", self.config_file, e)
            return False

        # Merge with defaults (file config overrides defaults)
        self._merge_config(self.config, file_config)

        logger.info("Configuration loaded from %s", self.config_file)
        return True

    def save_config(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if saved successfully
        """
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.error("Failed to save config %s: %s", self.config_file, e)
            return False

        logger.info("Configuration saved to %s", self.config_file)
        return True

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]):
        """Recursively merge configuration dictionaries."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default=None):
        """Get configuration value with optional default."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value."""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def ukf_config(self) -> UKFConfig:
        """Build the immutable filter configuration."""
        return UKFConfig.from_dict(self.config["ukf"])

    # Property accessors for common configuration values
    @property
    def measurement_file(self) -> str:
        return self.config["measurement_file"]

    @property
    def output_file(self) -> str:
        return self.config["output_file"]

    @property
    def enable_logging(self) -> bool:
        return self.config["enable_logging"]

    @property
    def log_file(self) -> str:
        return self.config["log_file"]

    @property
    def log_level(self) -> str:
        return self.config["log_level"]

    @property
    def status_interval(self) -> int:
        return self.config["status_interval"]

    def dumps(self) -> str:
        """Current configuration as formatted JSON."""
        return json.dumps(self.config, indent=2)
