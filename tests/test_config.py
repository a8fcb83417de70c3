"""Tests for the config module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from focusloop.config import (
    get_db_path,
    load_config,
    reset_config,
    save_config,
    set_db_path,
    update_config,
)
from focusloop.models import AppConfig


def _patch_config_paths(tmp_path: Path):
    """Return context managers that redirect config and data dirs to tmp_path."""
    cfg_dir = tmp_path / "config"
    cfg_file = cfg_dir / "config.json"
    return (
        patch("focusloop.config._CONFIG_DIR", cfg_dir),
        patch("focusloop.config._CONFIG_FILE", cfg_file),
        patch("focusloop.config._DB_DIR", tmp_path / "data"),
    )


class TestLoadSaveConfig:
    def test_load_default_when_missing(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            config = load_config()
            assert config.db_path is None
            assert config.work_duration == 25
            assert config.break_duration == 5
            assert config.long_break_duration == 15
            assert config.long_break_interval == 4
            assert config.complete_elapsed_on_restart is False

    def test_save_and_load_roundtrip(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            cfg = AppConfig(db_path="/tmp/test.db", work_duration=50, long_break_interval=2)
            path = save_config(cfg)
            assert path.exists()

            loaded = load_config()
            assert loaded.db_path == "/tmp/test.db"
            assert loaded.work_duration == 50
            assert loaded.long_break_interval == 2

    def test_load_handles_corrupt_file(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            cfg_dir = tmp_path / "config"
            cfg_dir.mkdir(parents=True, exist_ok=True)
            (cfg_dir / "config.json").write_text("not valid json{{{")
            config = load_config()
            assert config.db_path is None  # falls back to default

    def test_load_handles_out_of_range_values(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            cfg_dir = tmp_path / "config"
            cfg_dir.mkdir(parents=True, exist_ok=True)
            (cfg_dir / "config.json").write_text('{"work_duration": 0}')
            assert load_config().work_duration == 25


class TestUpdateConfig:
    def test_merges_changes(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            update_config(work_duration=40)
            updated = update_config(break_duration=10)
            assert updated.work_duration == 40
            assert updated.break_duration == 10
            assert load_config().work_duration == 40

    def test_rejects_invalid_and_writes_nothing(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            update_config(work_duration=30)
            with pytest.raises(ValidationError):
                update_config(long_break_interval=0)
            assert load_config().long_break_interval == 4
            assert load_config().work_duration == 30

    def test_reset_keeps_db_path(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            set_db_path(str(tmp_path / "mine.db"))
            update_config(work_duration=45)
            cfg = reset_config()
            assert cfg.work_duration == 25
            assert cfg.db_path is not None
            assert cfg.db_path.endswith("mine.db")


class TestDbPath:
    def test_default_path(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            path = get_db_path()
            assert path.name == "focusloop.db"
            assert path.parent.exists()

    def test_set_db_path(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            custom = tmp_path / "custom" / "my.db"
            cfg = set_db_path(str(custom))
            assert cfg.db_path == str(custom)
            assert get_db_path() == custom

    def test_set_db_path_directory(self, tmp_path: Path) -> None:
        p1, p2, p3 = _patch_config_paths(tmp_path)
        with p1, p2, p3:
            d = tmp_path / "somedir"
            d.mkdir()
            cfg = set_db_path(str(d))
            assert cfg.db_path is not None
            assert cfg.db_path.endswith("focusloop.db")
