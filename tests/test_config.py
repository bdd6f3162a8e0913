"""Tests for the optional YAML board configuration."""

from __future__ import annotations

from pathlib import Path

from collab_board.config import BoardConfig, config_from_dict, default_config_path, load_board_config
from collab_board.constants import DEFAULT_PORT, LOCK_TIMEOUT_SECONDS


def test_no_path_gives_defaults() -> None:
    config, err = load_board_config(None)
    assert err is None
    assert config == BoardConfig()
    assert config.port == DEFAULT_PORT
    assert config.data_file == Path("data.json")


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config, err = load_board_config(default_config_path(tmp_path))
    assert err is None
    assert config == BoardConfig()


def test_values_loaded_from_yaml(tmp_path: Path) -> None:
    path = default_config_path(tmp_path)
    path.parent.mkdir(parents=True)
    path.write_text(
        "port: 8080\n"
        "data_file: board.json\n"
        "lock_timeout_seconds: 60\n"
        "log_level: DEBUG\n"
        "theme: dark\n",
        encoding="utf-8",
    )
    config, err = load_board_config(path)
    assert err is None
    assert config.port == 8080
    assert config.data_file == Path("board.json")
    assert config.lock_timeout_seconds == 60.0
    assert config.log_level == "DEBUG"
    assert config.drag_timeout_seconds == BoardConfig().drag_timeout_seconds


def test_wrong_types_fall_back() -> None:
    config = config_from_dict({"port": "abc", "lock_timeout_seconds": -5, "host": "", "sweep_interval_seconds": True})
    assert config.port == DEFAULT_PORT
    assert config.lock_timeout_seconds == LOCK_TIMEOUT_SECONDS
    assert config.host == BoardConfig().host
    assert config.sweep_interval_seconds == BoardConfig().sweep_interval_seconds


def test_unparsable_yaml_reports_error(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("port: [unclosed\n", encoding="utf-8")
    config, err = load_board_config(path)
    assert config == BoardConfig()
    assert err is not None and "config.yaml" in err


def test_non_mapping_yaml_reports_error(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    config, err = load_board_config(path)
    assert config == BoardConfig()
    assert "expected object" in err


def test_overrides_skip_none() -> None:
    config = BoardConfig().with_overrides(port=9000, host=None, data_file="elsewhere.json")
    assert config.port == 9000
    assert config.host == BoardConfig().host
    assert config.data_file == Path("elsewhere.json")
