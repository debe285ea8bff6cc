"""
Core module initialization.
Exports configuration and logging utilities.
"""

from staff_console.core.config import get_settings, Settings, EnvironmentMode, ExportBackend

__all__ = ["get_settings", "Settings", "EnvironmentMode", "ExportBackend"]
