"""Configuration module for QueryTorque JCR settings."""

from .settings import OAK_QUERY_LOGGER, Settings, get_settings

__all__ = ["Settings", "get_settings", "OAK_QUERY_LOGGER"]
