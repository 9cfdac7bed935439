"""Configuration module for bvhdump."""

from bvhdump.config.settings import ExportConfig, ExportDefaults, Settings

__all__ = ["ExportConfig", "ExportDefaults", "Settings"]
