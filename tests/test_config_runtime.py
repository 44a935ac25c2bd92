"""Tests for the runtime configuration loader."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from evoblob.config import settings


def _write_tmp_config(tmp_path: Path, content: str) -> Path:
    file_path = tmp_path / "conf.yaml"
    file_path.write_text(content, encoding="utf-8")
    return file_path


def test_env_overrides_take_effect(monkeypatch):
    monkeypatch.setenv("EVOBLOB_GENO_MAX_DEPTH", "4")
    conf = settings.load_runtime_settings(args=[], env=os.environ)
    assert conf.GENO_MAX_DEPTH == 4


def test_cli_overrides_take_precedence():
    conf = settings.load_runtime_settings(args=["--block-half-width", "35"])
    assert conf.BLOCK_HALF_WIDTH == 35.0


def test_config_file_used_when_provided(tmp_path):
    config = _write_tmp_config(tmp_path, "spawn_chance: 0.5\nmotor_stiffness: 25\n")
    conf = settings.load_runtime_settings(args=["--config", str(config)])
    assert conf.SPAWN_CHANCE == 0.5
    assert conf.MOTOR_STIFFNESS == 25.0


def test_env_overrides_config(monkeypatch, tmp_path):
    config = _write_tmp_config(tmp_path, "geno_max_depth: 3\n")
    monkeypatch.setenv("EVOBLOB_GENO_MAX_DEPTH", "5")
    conf = settings.load_runtime_settings(args=["--config", str(config)], env=os.environ)
    assert conf.GENO_MAX_DEPTH == 5


def test_cli_overrides_config_and_env(monkeypatch, tmp_path):
    config = _write_tmp_config(tmp_path, "geno_max_depth: 3\n")
    monkeypatch.setenv("EVOBLOB_GENO_MAX_DEPTH", "5")
    conf = settings.load_runtime_settings(args=["--config", str(config), "--geno-max-depth", "6"], env=os.environ)
    assert conf.GENO_MAX_DEPTH == 6


def test_contact_flags_toggle(monkeypatch):
    monkeypatch.setenv("EVOBLOB_ENABLE_CONTACTS", "0")
    assert settings.load_runtime_settings(args=["--enable-contacts"], env=os.environ).ENABLE_CONTACTS is True
    assert settings.load_runtime_settings(args=["--no-contacts"], env=os.environ).ENABLE_CONTACTS is False


def test_config_env_var_points_at_file(tmp_path):
    config = _write_tmp_config(tmp_path, "debug_log_level: debug\n")
    conf = settings.load_runtime_settings(args=[], env={settings.CONFIG_ENV_VAR: str(config)})
    assert conf.DEBUG_LOG_LEVEL == "DEBUG"


def test_invalid_field_in_config_raises(tmp_path):
    config = _write_tmp_config(tmp_path, "unknown_value: 1\n")
    with pytest.raises(ValueError, match="Unknown config field"):
        settings.load_runtime_settings(args=["--config", str(config)])


def test_missing_config_file_errors(tmp_path):
    missing = tmp_path / "missing.yaml"
    with pytest.raises(FileNotFoundError):
        settings.load_runtime_settings(args=["--config", str(missing)])


def test_invalid_numeric_range_raises(tmp_path):
    config = _write_tmp_config(tmp_path, "geno_max_depth: 11\n")
    with pytest.raises(ValueError, match="GENO_MAX_DEPTH"):
        settings.load_runtime_settings(args=["--config", str(config)])


def test_invalid_choice_raises(tmp_path):
    config = _write_tmp_config(tmp_path, "debug_log_level: chatty\n")
    with pytest.raises(ValueError, match="DEBUG_LOG_LEVEL"):
        settings.load_runtime_settings(args=["--config", str(config)])


def test_invalid_relationship_raises(tmp_path):
    config = _write_tmp_config(tmp_path, "size_scale_min: 3.0\nsize_scale_max: 2.0\n")
    with pytest.raises(ValueError, match="SIZE_SCALE_MIN cannot exceed SIZE_SCALE_MAX"):
        settings.load_runtime_settings(args=["--config", str(config)])


def test_apply_runtime_settings_rebinds_module_values():
    previous = settings.current_settings()
    try:
        applied = settings.apply_runtime_settings(previous.with_updates({"MOTOR_STIFFNESS": 42.0}))
        assert settings.MOTOR_STIFFNESS == 42.0
        assert settings.current_settings() is applied
    finally:
        settings.apply_runtime_settings(previous)
    assert settings.MOTOR_STIFFNESS == previous.MOTOR_STIFFNESS
