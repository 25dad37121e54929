"""
GeoCoin — world/generator.py
Deterministic World Generator: seeded per-cell draws deciding cache presence and size.
======================================================================================
Stack:       Python 3.11+ | hashlib
Status:      Pure. Never persisted; only its outputs are (via CellState).

Architecture notes
------------------
- luck() digests (seed, i, j, role) with sha256. Python's hash() is salted per
  process for strings and must not be used here.
- Each decision reads its own role tag, so the spawn draw and the coin-count
  draw are independent.
- Cell kinds form a closed enumeration. Shared behavior is looked up in
  _KIND_BEHAVIOR; there is no runtime registration.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from engine.errors import UnknownCellKind

ROLE_SPAWN = "spawn"
ROLE_INITIAL_COINS = "initialCoins"

LuckFn = Callable[[int, int, str], float]

_UNIT_SCALE = float(1 << 64)


def luck(i: int, j: int, role: str, seed: int = 0) -> float:
    """Stable pseudo-random value in [0, 1) for (seed, i, j, role)."""
    digest = hashlib.sha256(f"{seed}:{i}:{j}:{role}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False) / _UNIT_SCALE


# ============================================================
# CELL KINDS
# ============================================================

class CellKind(str, Enum):
    CACHE = "cache"


@dataclass(frozen=True)
class CellBehavior:
    """Kind-wide behavior shared by every cell of that kind."""
    display_name: str
    coin_label_format: str

    def coin_label(self, origin_i: int, origin_j: int, serial: int) -> str:
        return self.coin_label_format.format(i=origin_i, j=origin_j, serial=serial)


_KIND_BEHAVIOR: Dict[CellKind, CellBehavior] = {
    CellKind.CACHE: CellBehavior(display_name="Cache", coin_label_format="{i}:{j}#{serial}"),
}


def behavior_for(kind: object) -> CellBehavior:
    """Looks up shared behavior. Anything outside CellKind is a programming fault."""
    try:
        return _KIND_BEHAVIOR[CellKind(kind)]
    except (ValueError, KeyError) as exc:
        raise UnknownCellKind(f"Unknown cell kind: {kind!r}") from exc


# ============================================================
# GENERATOR
# ============================================================

class WorldGenerator:
    """
    Decides, per cell, whether a cache exists and how many coins it starts with.

    luck_fn can replace the sha256 draw (tests pin exact values through it);
    it receives (i, j, role) and must itself be deterministic.
    """
    def __init__(
        self,
        spawn_probability: float = 0.1,
        max_coins_per_cache: int = 6,
        seed: int = 0,
        luck_fn: Optional[LuckFn] = None,
    ):
        self.spawn_probability = spawn_probability
        self.max_coins_per_cache = max_coins_per_cache
        self.seed = seed
        self._luck_fn = luck_fn

    def luck(self, i: int, j: int, role: str) -> float:
        if self._luck_fn is not None:
            return self._luck_fn(i, j, role)
        return luck(i, j, role, self.seed)

    def should_spawn_cache(self, i: int, j: int) -> bool:
        return self.luck(i, j, ROLE_SPAWN) < self.spawn_probability

    def initial_coin_count(self, i: int, j: int) -> int:
        return math.floor(self.luck(i, j, ROLE_INITIAL_COINS) * self.max_coins_per_cache)

    def kind_at(self, i: int, j: int) -> Optional[CellKind]:
        """CellKind for a cell holding something, None for empty ground."""
        return CellKind.CACHE if self.should_spawn_cache(i, j) else None
