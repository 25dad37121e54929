"""
GeoCoin — engine/config.py
TOML configuration for world generation, session and storage, validated by Pydantic.
===================================================================================
Stack:       Python 3.11+ | Pydantic v2 | tomllib
Status:      Loaded once per process; every value has a documented default.

Design Variables (data/geocoin.toml — [world], [session], [storage])
--------------------------------------------------------------------
  tile_size              1e-4     — degrees per cell edge
  spawn_probability      0.1      — share of cells holding a cache
  max_coins_per_cache    6        — exclusive upper bound of initial coins
  world_seed             0        — mixed into every luck() draw
  neighborhood_radius    8        — cells scanned around the player
  max_snapshots          64       — undo depth; oldest dropped beyond this
  origin_lat/origin_lng  Oakes College classroom
  storage_dir            "sessions"
  storage_key            "geocoinGameState"
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from engine.errors import ConfigError

# ================================================================================
# SCHEMAS
# ================================================================================

class WorldConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    tile_size: float = Field(default=1e-4, gt=0)
    spawn_probability: float = Field(default=0.1, ge=0, le=1)
    max_coins_per_cache: int = Field(default=6, ge=0)
    world_seed: int = 0

class SessionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    neighborhood_radius: int = Field(default=8, ge=0)
    max_snapshots: int = Field(default=64, ge=1)
    origin_lat: float = Field(default=36.98949379578401, ge=-90, le=90)
    origin_lng: float = Field(default=-122.06277128548504, ge=-180, le=180)

class StorageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    storage_dir: str = "sessions"
    storage_key: str = Field(default="geocoinGameState", min_length=1)

class GameConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    world: WorldConfig = Field(default_factory=WorldConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

# ================================================================================
# LOADERS & CACHE
# ================================================================================

DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_CONFIG_PATH = DATA_DIR / "geocoin.toml"

_CONFIG_CACHE: Dict[Path, GameConfig] = {}


def config_from_dict(data: Dict[str, Any]) -> GameConfig:
    """Validates a parsed TOML document. Missing tables fall back to defaults."""
    try:
        return GameConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_config(path: Optional[Path] = None) -> GameConfig:
    """Loads game configuration from TOML. Cached per path.

    A missing file yields the built-in defaults; a malformed one raises ConfigError.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    path = Path(path)

    if path in _CONFIG_CACHE:
        return _CONFIG_CACHE[path]

    if not path.exists():
        config = GameConfig()
    else:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Cannot parse {path}: {exc}") from exc
        config = config_from_dict(data)

    _CONFIG_CACHE[path] = config
    return config


def clear_config_cache() -> None:
    _CONFIG_CACHE.clear()
