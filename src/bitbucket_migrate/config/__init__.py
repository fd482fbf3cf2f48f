"""Configuration loading and validation."""

from .config import Config, ConfigurationError

__all__ = ['Config', 'ConfigurationError']
