import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import yaml

from serial_plotter.stream.selector import InvalidWindowSizeError, validate_window_size

PROJECT_MARKERS: Iterable[str] = (".git", "pyproject.toml", "config")
DEFAULT_SETTINGS_PATH = Path("config/settings.yml")

PathLike = Union[str, os.PathLike]


class SettingsError(RuntimeError):
    """Raised when the settings file holds unusable values."""


@dataclass
class PlotterSettings:
    """Validated runtime settings for the plotter."""

    port: str = "COM10"
    baudrate: int = 9600
    timeout_s: float = 0.05
    window_size_s: float = 10.0
    redraw_interval_ms: int = 50
    poll_interval_s: float = 0.01
    log_directory: Path = Path("output")
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "PlotterSettings":
        serial_cfg = data.get("serial", {}) or {}
        plot_cfg = data.get("plot", {}) or {}
        acquisition_cfg = data.get("acquisition", {}) or {}
        logging_cfg = data.get("logging", {}) or {}
        defaults = cls()
        try:
            settings = cls(
                port=str(serial_cfg.get("port", defaults.port)),
                baudrate=int(serial_cfg.get("baudrate", defaults.baudrate)),
                timeout_s=float(serial_cfg.get("timeout_s", defaults.timeout_s)),
                window_size_s=validate_window_size(plot_cfg.get("window_size_s", defaults.window_size_s)),
                redraw_interval_ms=int(plot_cfg.get("redraw_interval_ms", defaults.redraw_interval_ms)),
                poll_interval_s=float(acquisition_cfg.get("poll_interval_s", defaults.poll_interval_s)),
                log_directory=Path(logging_cfg.get("directory", defaults.log_directory)),
                log_level=str(logging_cfg.get("level", defaults.log_level)).upper(),
            )
        except InvalidWindowSizeError as exc:
            raise SettingsError(f"plot.window_size_s: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"Invalid settings value: {exc}") from exc
        if settings.baudrate <= 0:
            raise SettingsError(f"serial.baudrate must be positive, got {settings.baudrate}")
        if settings.poll_interval_s <= 0:
            raise SettingsError(f"acquisition.poll_interval_s must be positive, got {settings.poll_interval_s}")
        if settings.redraw_interval_ms <= 0:
            raise SettingsError(f"plot.redraw_interval_ms must be positive, got {settings.redraw_interval_ms}")
        return settings


def find_project_root(markers: Iterable[str] = PROJECT_MARKERS) -> Path:
    """Attempt to locate the repository root by walking up until a marker file/dir appears."""
    start = Path(__file__).resolve().parent
    for candidate in [start] + list(start.parents):
        for marker in markers:
            if (candidate / marker).exists():
                return candidate
    return start


def _resolve(path: PathLike, project_root: Path) -> Path:
    target = Path(path)
    if not target.is_absolute():
        target = project_root / target
    return target


def _load_yaml(target: Path) -> Dict[str, Any]:
    if not target.exists():
        raise FileNotFoundError(f"settings file not found: {target}")
    try:
        with open(target, "r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in settings file {target}: {exc}") from exc


def load_settings(path: Optional[PathLike] = None) -> Dict[str, Any]:
    """Load the YAML settings file, defaulting to ``config/settings.yml`` under the project root."""
    project_root = find_project_root()
    target = _resolve(path or DEFAULT_SETTINGS_PATH, project_root)
    return _load_yaml(target)


def load_plotter_settings(path: Optional[PathLike] = None) -> PlotterSettings:
    """Load and validate plotter settings.

    An explicit ``path`` must exist. Without one, built-in defaults are used
    when ``config/settings.yml`` is absent.
    """
    if path is None and not _resolve(DEFAULT_SETTINGS_PATH, find_project_root()).exists():
        return PlotterSettings()
    return PlotterSettings.from_mapping(load_settings(path))


def update_settings_value(identifier: str, value: Any, path: Optional[PathLike] = None) -> None:
    """Update a value inside ``settings.yml`` given a dotted identifier.

    Identifiers use dot-separated keys, e.g. ``serial.port``. Missing
    intermediate sections are created.
    """

    project_root = find_project_root()
    target = _resolve(path or DEFAULT_SETTINGS_PATH, project_root)
    data = _load_yaml(target) if target.exists() else {}

    parts = identifier.split(".") if identifier else []
    if not parts or not all(parts):
        raise ValueError("Identifier must not be empty")

    cursor = data
    for key in parts[:-1]:
        child = cursor.setdefault(key, {})
        if not isinstance(child, dict):
            raise TypeError(f"Expected mapping at '{key}' but found {type(child).__name__}")
        cursor = child
    cursor[parts[-1]] = value

    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
