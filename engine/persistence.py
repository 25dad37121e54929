"""
GeoCoin — engine/persistence.py
Persistence Codec: full game state <-> JSON text, plus the durable storage slot.
================================================================================
Stack:       Python 3.11+ | Pydantic v2 | stdlib json/tempfile

Architecture notes
------------------
- The payload is self-contained: every generated cell is written with its
  full coin list, so loading never re-runs the generator.
- decode() turns every parse/shape failure into CorruptSave. An absent save is
  not an error: load_or_init() returns a fresh default instead.
- StorageSlot writes atomically (temp file, fsync, os.replace) so a crash
  mid-write leaves the previous save intact.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from engine.errors import CorruptSave
from world.cells import CellMapping, CellState, Coin
from world.generator import CellKind
from world.grid import CellIndex

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_STORAGE_KEY = "geocoinGameState"

# ================================================================================
# SCHEMAS
# ================================================================================

class PersistedCell(BaseModel):
    model_config = ConfigDict(frozen=True)
    i: int
    j: int
    coins: List[Coin] = Field(default_factory=list)
    kind: Optional[CellKind] = None

    @model_validator(mode="after")
    def _coins_unique(self) -> "PersistedCell":
        if len(set(self.coins)) != len(self.coins):
            raise ValueError(f"duplicate coin in cell {self.i}:{self.j}")
        return self

    @classmethod
    def from_cell(cls, cell: CellState) -> "PersistedCell":
        return cls(i=cell.i, j=cell.j, coins=list(cell.coins), kind=cell.kind)

    def to_cell(self) -> CellState:
        return CellState(i=self.i, j=self.j, coins=list(self.coins), kind=self.kind)


class PersistedGameState(BaseModel):
    model_config = ConfigDict(frozen=True)
    schema_version: int = SCHEMA_VERSION
    world_seed: int = 0
    player_lat: float
    player_lng: float
    movement_trail: List[Tuple[float, float]] = Field(default_factory=list)
    inventory: List[Coin] = Field(default_factory=list)
    cell_states: List[PersistedCell] = Field(default_factory=list)

    @model_validator(mode="after")
    def _indices_unique(self) -> "PersistedGameState":
        seen = set()
        for cell in self.cell_states:
            key = (cell.i, cell.j)
            if key in seen:
                raise ValueError(f"cell {cell.i}:{cell.j} listed twice")
            seen.add(key)
        return self

    def cell_mapping(self) -> CellMapping:
        """Fresh CellState objects, owned by whoever receives them."""
        return {CellIndex(c.i, c.j): c.to_cell() for c in self.cell_states}


def capture_state(
    position: Tuple[float, float],
    trail: Iterable[Tuple[float, float]],
    inventory: Iterable[Coin],
    cells: Mapping[CellIndex, CellState],
    world_seed: int = 0,
) -> PersistedGameState:
    """Builds a PersistedGameState from live session data. Cells are written in index order."""
    return PersistedGameState(
        world_seed=world_seed,
        player_lat=position[0],
        player_lng=position[1],
        movement_trail=[tuple(p) for p in trail],
        inventory=list(inventory),
        cell_states=[PersistedCell.from_cell(cells[index]) for index in sorted(cells)],
    )


def default_state(origin_lat: float, origin_lng: float, world_seed: int = 0) -> PersistedGameState:
    """First-run state: player at the origin, trail seeded with it, nothing collected."""
    return PersistedGameState(
        world_seed=world_seed,
        player_lat=origin_lat,
        player_lng=origin_lng,
        movement_trail=[(origin_lat, origin_lng)],
    )

# ================================================================================
# CODEC
# ================================================================================

def encode(state: PersistedGameState) -> str:
    return state.model_dump_json(indent=2)


def decode(payload: Union[str, bytes]) -> PersistedGameState:
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptSave(f"Save payload is not UTF-8: {exc}") from exc
    try:
        state = PersistedGameState.model_validate_json(payload)
    except ValidationError as exc:
        raise CorruptSave(f"Save payload rejected: {exc.error_count()} error(s): {exc}") from exc
    if state.schema_version != SCHEMA_VERSION:
        raise CorruptSave(
            f"Unsupported schema_version {state.schema_version} (expected {SCHEMA_VERSION})"
        )
    return state


def load_or_init(
    payload: Optional[Union[str, bytes]],
    origin_lat: float,
    origin_lng: float,
    world_seed: int = 0,
) -> PersistedGameState:
    """Decodes an existing save, or returns the first-run default when there is none."""
    if payload is None:
        return default_state(origin_lat, origin_lng, world_seed)
    return decode(payload)

# ================================================================================
# STORAGE SLOT
# ================================================================================

class StorageSlot:
    """
    One named, durable slot holding a serialized game state.
    Backed by <directory>/<key>.json.
    """
    def __init__(self, directory: Union[str, Path], key: str = DEFAULT_STORAGE_KEY):
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Optional[bytes]:
        """Raw slot contents; decoding (and rejecting bad bytes) is decode()'s job."""
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def write(self, payload: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        temp_path: Optional[Path] = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.directory,
                delete=False,
                suffix=".tmp",
            ) as temp_file:
                temp_file.write(payload)
                temp_file.flush()
                os.fsync(temp_file.fileno())
                temp_path = Path(temp_file.name)
            os.replace(temp_path, self.path)
        except Exception:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d bytes to %s", len(payload), self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
