"""Configuration constants for blob morphology generation and assembly."""

from __future__ import annotations

import argparse
import math
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

import yaml

from .constants import DEFAULTS, MAX_TREE_DEPTH

_PATH_FIELDS = {"LOG_DIRECTORY", "GENOTYPE_DIRECTORY"}
_STRING_FIELDS = {"DEBUG_LOG_FILE", "DEBUG_LOG_LEVEL"}
_BOOL_FIELDS = {"TELEMETRY_ENABLED", "ENABLE_CONTACTS"}
_FLOAT_FIELDS = {
    "BLOCK_HALF_WIDTH",
    "BLOCK_HALF_HEIGHT",
    "SPAWN_CHANCE",
    "SIZE_SCALE_MIN",
    "SIZE_SCALE_MAX",
    "JOINT_LIMIT_SCALE",
    "POSITION_EPSILON",
    "MOTOR_STIFFNESS",
    "MOTOR_DAMPING",
    "DEFAULT_DENSITY",
    "GRAVITY_X",
    "GRAVITY_Y",
}

# genotype
GENO_MAX_DEPTH = int(os.getenv("EVOBLOB_GENO_MAX_DEPTH", str(DEFAULTS["GENO_MAX_DEPTH"])))
BLOCK_HALF_WIDTH = float(DEFAULTS["BLOCK_HALF_WIDTH"])
BLOCK_HALF_HEIGHT = float(DEFAULTS["BLOCK_HALF_HEIGHT"])
SPAWN_CHANCE = 0.9
SIZE_SCALE_MIN = 0.5
SIZE_SCALE_MAX = 2.0
JOINT_LIMIT_SCALE = 0.9
POSITION_EPSILON = 0.0001

# joints
MOTOR_STIFFNESS = 10.0
MOTOR_DAMPING = 0.0
ENABLE_CONTACTS = False
DEFAULT_DENSITY = 1.0

# world
GRAVITY_X = 0.0
GRAVITY_Y = 0.0

CONFIG_ENV_VAR = "EVOBLOB_CONFIG_FILE"
DEFAULT_CONFIG_FILE = Path("configs/default.yaml")
LOG_DIRECTORY = Path(os.getenv("EVOBLOB_LOG_DIR", "logs"))
DEBUG_LOG_FILE = os.getenv("EVOBLOB_DEBUG_LOG", "evoblob_debug.log")
DEBUG_LOG_LEVEL = os.getenv("EVOBLOB_DEBUG_LOG_LEVEL", "INFO")
TELEMETRY_ENABLED = os.getenv("EVOBLOB_TELEMETRY", "0") in {"1", "true", "True"}

GENOTYPE_DIRECTORY = Path(os.getenv("EVOBLOB_GENOTYPE_DIR", "genotypes"))


@dataclass(frozen=True)
class MorphologySettings:
    GENO_MAX_DEPTH: int = GENO_MAX_DEPTH
    BLOCK_HALF_WIDTH: float = BLOCK_HALF_WIDTH
    BLOCK_HALF_HEIGHT: float = BLOCK_HALF_HEIGHT
    SPAWN_CHANCE: float = SPAWN_CHANCE
    SIZE_SCALE_MIN: float = SIZE_SCALE_MIN
    SIZE_SCALE_MAX: float = SIZE_SCALE_MAX
    JOINT_LIMIT_SCALE: float = JOINT_LIMIT_SCALE
    POSITION_EPSILON: float = POSITION_EPSILON
    MOTOR_STIFFNESS: float = MOTOR_STIFFNESS
    MOTOR_DAMPING: float = MOTOR_DAMPING
    ENABLE_CONTACTS: bool = ENABLE_CONTACTS
    DEFAULT_DENSITY: float = DEFAULT_DENSITY
    GRAVITY_X: float = GRAVITY_X
    GRAVITY_Y: float = GRAVITY_Y
    LOG_DIRECTORY: Path = LOG_DIRECTORY
    DEBUG_LOG_FILE: str = DEBUG_LOG_FILE
    DEBUG_LOG_LEVEL: str = DEBUG_LOG_LEVEL
    TELEMETRY_ENABLED: bool = TELEMETRY_ENABLED
    GENOTYPE_DIRECTORY: Path = GENOTYPE_DIRECTORY

    def with_updates(self, overrides: Dict[str, Any]) -> "MorphologySettings":
        merged = asdict(self)
        merged.update(overrides)
        _validate_settings_dict(merged)
        return MorphologySettings(**merged)


_ACTIVE_SETTINGS = MorphologySettings()
_ENV_VARS: Dict[str, str] = {
    "GENO_MAX_DEPTH": "EVOBLOB_GENO_MAX_DEPTH",
    "BLOCK_HALF_WIDTH": "EVOBLOB_BLOCK_HALF_WIDTH",
    "BLOCK_HALF_HEIGHT": "EVOBLOB_BLOCK_HALF_HEIGHT",
    "SPAWN_CHANCE": "EVOBLOB_SPAWN_CHANCE",
    "SIZE_SCALE_MIN": "EVOBLOB_SIZE_SCALE_MIN",
    "SIZE_SCALE_MAX": "EVOBLOB_SIZE_SCALE_MAX",
    "JOINT_LIMIT_SCALE": "EVOBLOB_JOINT_LIMIT_SCALE",
    "MOTOR_STIFFNESS": "EVOBLOB_MOTOR_STIFFNESS",
    "MOTOR_DAMPING": "EVOBLOB_MOTOR_DAMPING",
    "ENABLE_CONTACTS": "EVOBLOB_ENABLE_CONTACTS",
    "DEFAULT_DENSITY": "EVOBLOB_DEFAULT_DENSITY",
    "TELEMETRY_ENABLED": "EVOBLOB_TELEMETRY",
}


def _coerce(value: str, field: str) -> Any:
    if field in _PATH_FIELDS:
        return Path(value)
    if field in _STRING_FIELDS:
        return value
    if field in _BOOL_FIELDS:
        return value in {"1", "true", "True"}
    if field in _FLOAT_FIELDS:
        return float(value)
    return int(value)


def _collect_env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for field, env_name in _ENV_VARS.items():
        raw = env.get(env_name)
        if raw is not None:
            overrides[field] = _coerce(raw, field)
    return overrides


def _normalize_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value in {"1", "true", "True", "TRUE"}
    if isinstance(value, (int, float)):
        return bool(value)
    raise ValueError("Invalid boolean value in config")


def _normalize_numeric(value: Any, caster: type[float | int]) -> float | int:
    if isinstance(value, (int, float)):
        return caster(value)
    if isinstance(value, str):
        return caster(float(value) if caster is float else int(float(value)))
    raise ValueError("Invalid numeric value in config")


def _normalize_config_value(field: str, value: Any) -> Any:
    if field in _PATH_FIELDS:
        if isinstance(value, Path):
            return value
        if isinstance(value, str):
            return Path(value)
        raise ValueError(f"Field {field} must be a path or string")
    if field in _STRING_FIELDS:
        if isinstance(value, str):
            return value
        raise ValueError(f"Field {field} must be a string")
    if field in _BOOL_FIELDS:
        return _normalize_bool(value)
    if field in _FLOAT_FIELDS:
        return float(_normalize_numeric(value, float))
    return int(_normalize_numeric(value, int))


_NUMERIC_BOUNDS: Dict[str, tuple[float, float]] = {
    "GENO_MAX_DEPTH": (0, MAX_TREE_DEPTH),
    "BLOCK_HALF_WIDTH": (1.0, 1000.0),
    "BLOCK_HALF_HEIGHT": (1.0, 1000.0),
    "SPAWN_CHANCE": (0.0, 1.0),
    "SIZE_SCALE_MIN": (0.01, 10.0),
    "SIZE_SCALE_MAX": (0.01, 10.0),
    "JOINT_LIMIT_SCALE": (0.0, 1.0),
    "POSITION_EPSILON": (0.0, 1.0),
    "MOTOR_STIFFNESS": (0.0, 10000.0),
    "MOTOR_DAMPING": (0.0, 10000.0),
    "DEFAULT_DENSITY": (0.001, 1000.0),
    "GRAVITY_X": (-1000.0, 1000.0),
    "GRAVITY_Y": (-1000.0, 1000.0),
}

_CHOICE_FIELDS: Dict[str, set[str]] = {
    "DEBUG_LOG_LEVEL": {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"},
}


def _validate_settings_dict(values: Dict[str, Any]) -> None:
    for field, (lower, upper) in _NUMERIC_BOUNDS.items():
        current = values.get(field)
        if current is None:
            continue
        if isinstance(current, float) and not math.isfinite(current):
            raise ValueError(f"{field} must be finite, got {current}")
        if not (lower <= current <= upper):
            raise ValueError(f"{field} must be between {lower} and {upper}, got {current}")
    for field, choices in _CHOICE_FIELDS.items():
        current = values.get(field)
        if current is None:
            continue
        if isinstance(current, str) and current.upper() in choices:
            values[field] = current.upper()
            continue
        raise ValueError(f"{field} must be one of {sorted(choices)} (got {current})")
    _validate_relationships(values)


def _validate_relationships(values: Mapping[str, Any]) -> None:
    scale_min = values.get("SIZE_SCALE_MIN")
    scale_max = values.get("SIZE_SCALE_MAX")
    if scale_min and scale_max and scale_min > scale_max:
        raise ValueError("SIZE_SCALE_MIN cannot exceed SIZE_SCALE_MAX")


def _load_config_overrides(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as error:
            raise ValueError(f"Invalid YAML in config file {path}") from error
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must define a mapping")
    valid_fields = set(MorphologySettings.__dataclass_fields__.keys())
    overrides: Dict[str, Any] = {}
    for raw_key, value in data.items():
        key = str(raw_key).upper()
        if key not in valid_fields:
            raise ValueError(f"Unknown config field: {raw_key}")
        overrides[key] = _normalize_config_value(key, value)
    return overrides


def _resolve_config_path(cli_value: str | None, env: Mapping[str, str]) -> Path | None:
    candidate_strings = [cli_value, env.get(CONFIG_ENV_VAR)]
    for candidate in candidate_strings:
        if not candidate:
            continue
        path = Path(candidate).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        return path
    if DEFAULT_CONFIG_FILE.exists():
        return DEFAULT_CONFIG_FILE
    return None


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Blob morphology settings with runtime overrides")
    parser.add_argument("--config", type=str, help="Path to a YAML config file with runtime settings")
    parser.add_argument("--geno-max-depth", type=int, help="Maximum depth of generated genotype trees")
    parser.add_argument("--block-half-width", type=float, help="Half width of the default block")
    parser.add_argument("--block-half-height", type=float, help="Half height of the default block")
    parser.add_argument("--spawn-chance", type=float, help="Probability that a child slot gets a limb candidate")
    parser.add_argument("--size-scale-min", type=float, help="Lower size scaler for random limbs")
    parser.add_argument("--size-scale-max", type=float, help="Upper size scaler for random limbs")
    parser.add_argument("--joint-limit-scale", type=float, help="Fraction of pi used for random joint limits")
    parser.add_argument("--motor-stiffness", type=float, help="Stiffness of driven hinge motors")
    parser.add_argument("--motor-damping", type=float, help="Damping of hinge motors")
    parser.add_argument("--default-density", type=float, help="Density of attached segments")
    parser.add_argument("--telemetry-enabled", type=int, help="Enable telemetry (1 or 0)")
    parser.add_argument(
        "--enable-contacts",
        dest="enable_contacts",
        action="store_true",
        help="Let jointed segments collide with each other",
    )
    parser.add_argument(
        "--no-contacts",
        dest="enable_contacts",
        action="store_false",
        help="Disable collisions between jointed segments",
    )
    parser.set_defaults(enable_contacts=None)
    return parser


def load_runtime_settings(args: Sequence[str] | None = None, env: Mapping[str, str] | None = None) -> MorphologySettings:
    env_mapping = env or os.environ
    parser = _build_arg_parser()
    parsed = parser.parse_args(args=args)
    overrides: Dict[str, Any] = {}
    config_path = _resolve_config_path(parsed.config, env_mapping)
    if config_path is not None:
        overrides.update(_load_config_overrides(config_path))
    overrides.update(_collect_env_overrides(env_mapping))
    cli_mapping = {
        "GENO_MAX_DEPTH": parsed.geno_max_depth,
        "BLOCK_HALF_WIDTH": parsed.block_half_width,
        "BLOCK_HALF_HEIGHT": parsed.block_half_height,
        "SPAWN_CHANCE": parsed.spawn_chance,
        "SIZE_SCALE_MIN": parsed.size_scale_min,
        "SIZE_SCALE_MAX": parsed.size_scale_max,
        "JOINT_LIMIT_SCALE": parsed.joint_limit_scale,
        "MOTOR_STIFFNESS": parsed.motor_stiffness,
        "MOTOR_DAMPING": parsed.motor_damping,
        "DEFAULT_DENSITY": parsed.default_density,
        "TELEMETRY_ENABLED": None if parsed.telemetry_enabled is None else bool(parsed.telemetry_enabled),
        "ENABLE_CONTACTS": parsed.enable_contacts,
    }
    overrides.update({k: v for k, v in cli_mapping.items() if v is not None})
    return _ACTIVE_SETTINGS.with_updates(overrides)


def apply_runtime_settings(new_settings: MorphologySettings) -> MorphologySettings:
    global _ACTIVE_SETTINGS
    global GENO_MAX_DEPTH, BLOCK_HALF_WIDTH, BLOCK_HALF_HEIGHT
    global SPAWN_CHANCE, SIZE_SCALE_MIN, SIZE_SCALE_MAX, JOINT_LIMIT_SCALE, POSITION_EPSILON
    global MOTOR_STIFFNESS, MOTOR_DAMPING, ENABLE_CONTACTS, DEFAULT_DENSITY
    global GRAVITY_X, GRAVITY_Y
    global LOG_DIRECTORY, DEBUG_LOG_FILE, DEBUG_LOG_LEVEL, TELEMETRY_ENABLED, GENOTYPE_DIRECTORY

    _ACTIVE_SETTINGS = new_settings
    GENO_MAX_DEPTH = new_settings.GENO_MAX_DEPTH
    BLOCK_HALF_WIDTH = new_settings.BLOCK_HALF_WIDTH
    BLOCK_HALF_HEIGHT = new_settings.BLOCK_HALF_HEIGHT
    SPAWN_CHANCE = new_settings.SPAWN_CHANCE
    SIZE_SCALE_MIN = new_settings.SIZE_SCALE_MIN
    SIZE_SCALE_MAX = new_settings.SIZE_SCALE_MAX
    JOINT_LIMIT_SCALE = new_settings.JOINT_LIMIT_SCALE
    POSITION_EPSILON = new_settings.POSITION_EPSILON
    MOTOR_STIFFNESS = new_settings.MOTOR_STIFFNESS
    MOTOR_DAMPING = new_settings.MOTOR_DAMPING
    ENABLE_CONTACTS = new_settings.ENABLE_CONTACTS
    DEFAULT_DENSITY = new_settings.DEFAULT_DENSITY
    GRAVITY_X = new_settings.GRAVITY_X
    GRAVITY_Y = new_settings.GRAVITY_Y
    LOG_DIRECTORY = new_settings.LOG_DIRECTORY
    DEBUG_LOG_FILE = new_settings.DEBUG_LOG_FILE
    DEBUG_LOG_LEVEL = new_settings.DEBUG_LOG_LEVEL
    TELEMETRY_ENABLED = new_settings.TELEMETRY_ENABLED
    GENOTYPE_DIRECTORY = new_settings.GENOTYPE_DIRECTORY
    return _ACTIVE_SETTINGS


def current_settings() -> MorphologySettings:
    return _ACTIVE_SETTINGS
