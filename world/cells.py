"""
GeoCoin — world/cells.py
Cell State Store: lazily generated, memoized per-cell coin lists.
=================================================================
Stack:       Python 3.11+ | Pydantic v2
Status:      Sole owner of every CellState. The ledger borrows them per call.

Architecture notes
------------------
- get_or_create() consults the generator at most once per index. Later calls
  return the very same CellState object, mutated in place by the ledger.
- Cells without a cache are recorded too (kind=None, no coins) so repeated
  lookups stay stable.
- replace_all() is the only operation that swaps CellState identities
  (snapshot restore, save load).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from world.generator import CellKind, WorldGenerator, behavior_for
from world.grid import CellIndex, neighborhood

logger = logging.getLogger(__name__)


class Coin(BaseModel):
    """Immutable coin record. Identity is the (origin_i, origin_j, serial) triple."""
    model_config = ConfigDict(frozen=True)
    origin_i: int
    origin_j: int
    serial: int = Field(ge=0)

    @property
    def label(self) -> str:
        return behavior_for(CellKind.CACHE).coin_label(self.origin_i, self.origin_j, self.serial)

    def __str__(self) -> str:
        return self.label


@dataclass
class CellState:
    i: int
    j: int
    coins: List[Coin] = field(default_factory=list)
    kind: Optional[CellKind] = None

    @property
    def index(self) -> CellIndex:
        return CellIndex(self.i, self.j)

    @property
    def has_cache(self) -> bool:
        return self.kind is not None

    def copy(self) -> "CellState":
        # Coins are frozen values; a new list is enough to break aliasing.
        return CellState(i=self.i, j=self.j, coins=list(self.coins), kind=self.kind)


CellMapping = Dict[CellIndex, CellState]


def clone_cells(mapping: Mapping[CellIndex, CellState]) -> CellMapping:
    """Deep copy: new dict, new CellState objects, new coin lists."""
    return {index: cell.copy() for index, cell in mapping.items()}


class CellStateStore:
    """
    Manages the generation and caching of per-cell extrinsic state.
    """
    def __init__(self, generator: WorldGenerator):
        self.generator = generator
        self._cells: CellMapping = {}

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, index: object) -> bool:
        return index in self._cells

    def __iter__(self) -> Iterator[Tuple[CellIndex, CellState]]:
        return iter(self._cells.items())

    def get(self, i: int, j: int) -> Optional[CellState]:
        """Returns the recorded state without generating anything."""
        return self._cells.get(CellIndex(i, j))

    def get_or_create(self, i: int, j: int) -> CellState:
        """Retrieve or generate the cell at (i, j)."""
        key = CellIndex(i, j)
        cell = self._cells.get(key)
        if cell is None:
            cell = self._generate_cell(i, j)
            self._cells[key] = cell
        return cell

    def _generate_cell(self, i: int, j: int) -> CellState:
        kind = self.generator.kind_at(i, j)
        if kind is None:
            return CellState(i=i, j=j)

        count = self.generator.initial_coin_count(i, j)
        coins = [Coin(origin_i=i, origin_j=j, serial=serial) for serial in range(count)]
        logger.debug("Generated %s at %d:%d with %d coins", kind.value, i, j, count)
        return CellState(i=i, j=j, coins=coins, kind=kind)

    def list_visible(self, center_i: int, center_j: int, radius: int) -> List[CellIndex]:
        """Indices within the square neighborhood that hold a cache. Read-only."""
        return [
            index
            for index in neighborhood(CellIndex(center_i, center_j), radius)
            if self.generator.should_spawn_cache(index.i, index.j)
        ]

    def replace_all(self, mapping: Mapping[CellIndex, CellState]) -> None:
        """Wholesale replacement. Takes ownership of the CellState objects passed in."""
        self._cells = dict(mapping)
        logger.debug("Cell store replaced with %d cells", len(self._cells))

    def cells(self) -> Mapping[CellIndex, CellState]:
        return self._cells

    def clone_mapping(self) -> CellMapping:
        return clone_cells(self._cells)

    def total_coins(self) -> int:
        return sum(len(cell.coins) for cell in self._cells.values())
