"""Load optional board server configuration from `.collab_board/config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

from .constants import (
    CONFIG_FILE,
    DATA_FILE,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    DRAG_TIMEOUT_SECONDS,
    LOCK_TIMEOUT_SECONDS,
    STATE_DIR_NAME,
    SWEEP_INTERVAL_SECONDS,
)
from .io_utils import _load_data_with_error


@dataclass(frozen=True)
class BoardConfig:
    """Runtime settings for the board server."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    data_file: Path = Path(DATA_FILE)
    lock_timeout_seconds: float = LOCK_TIMEOUT_SECONDS
    drag_timeout_seconds: float = DRAG_TIMEOUT_SECONDS
    sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    def with_overrides(self, **overrides: Any) -> "BoardConfig":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "data_file" in values:
            values["data_file"] = Path(values["data_file"])
        return replace(self, **values)


def default_config_path(project_dir: Path) -> Path:
    return project_dir / STATE_DIR_NAME / CONFIG_FILE


def _coerce(name: str, raw: Any, default: Any) -> Any:
    if isinstance(default, Path):
        return Path(raw) if isinstance(raw, str) and raw.strip() else default
    if name == "port":
        return raw if isinstance(raw, int) and not isinstance(raw, bool) and raw > 0 else default
    if isinstance(default, (int, float)):
        if isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw > 0:
            return float(raw)
        return default
    if isinstance(default, str):
        return raw if isinstance(raw, str) and raw.strip() else default
    return default


def config_from_dict(data: dict[str, Any]) -> BoardConfig:
    """Build a :class:`BoardConfig` from a raw mapping.

    Unknown keys are ignored and values of the wrong type fall back to the
    defaults.
    """
    defaults = BoardConfig()
    values: dict[str, Any] = {}
    for f in fields(BoardConfig):
        if f.name in data:
            values[f.name] = _coerce(f.name, data[f.name], getattr(defaults, f.name))
    return replace(defaults, **values)


def load_board_config(path: Optional[Path]) -> tuple[BoardConfig, str | None]:
    """Load the optional board config file.

    Args:
        path: YAML config path, or None for pure defaults.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns
        the defaults and no error.
    """
    if path is None:
        return BoardConfig(), None
    data, err = _load_data_with_error(path, {})
    if err:
        return BoardConfig(), err
    return config_from_dict(data), None
