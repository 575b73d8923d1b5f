"""Configuration loading for the sleep tracker."""

from sleeptracker.config.loader import Config, ConfigError, load_config

__all__ = ["Config", "ConfigError", "load_config"]
