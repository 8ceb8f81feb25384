"""I/O utilities (configuration, persistence, logging)."""

from .settings import (
    DEFAULT_SETTINGS_PATH,
    PlotterSettings,
    SettingsError,
    find_project_root,
    load_plotter_settings,
    load_settings,
    update_settings_value,
)
from .logging_setup import configure_logging

__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "PlotterSettings",
    "SettingsError",
    "configure_logging",
    "find_project_root",
    "load_plotter_settings",
    "load_settings",
    "update_settings_value",
]
