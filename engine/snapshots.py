"""
GeoCoin — engine/snapshots.py
Snapshot Manager: manual undo over cache contents and the inventory.
====================================================================
Stack:       Python 3.11+ | bespoke pub-sub

Architecture notes
------------------
- A Snapshot is frozen all the way down: cell records hold coin tuples, and
  Coin itself is an immutable value. Later mutation of live cells cannot
  reach a captured snapshot, and restoring builds fresh CellState objects so
  the live world never aliases the snapshot either.
- Undo scope: cache contents AND inventory. Player position and trail are
  left where they are. Restoring both coin holders keeps the coin total equal
  to what it was at capture time.
- The stack is bounded (max_snapshots); the oldest entry is dropped first.
- Undo with an empty stack is a silent no-op returning False.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from engine.components import Inventory
from engine.events import EVT_SNAPSHOT_SAVED, EVT_WORLD_RESTORED, EventBus, GameEvent
from world.cells import CellMapping, CellState, CellStateStore, Coin
from world.generator import CellKind
from world.grid import CellIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellRecord:
    i: int
    j: int
    coins: Tuple[Coin, ...]
    kind: Optional[CellKind]

    @classmethod
    def capture(cls, cell: CellState) -> "CellRecord":
        return cls(i=cell.i, j=cell.j, coins=tuple(cell.coins), kind=cell.kind)

    def restore(self) -> CellState:
        return CellState(i=self.i, j=self.j, coins=list(self.coins), kind=self.kind)


@dataclass(frozen=True)
class Snapshot:
    cells: Tuple[CellRecord, ...]
    inventory: Tuple[Coin, ...]

    def to_mapping(self) -> CellMapping:
        return {CellIndex(r.i, r.j): r.restore() for r in self.cells}

    @property
    def total_coins(self) -> int:
        return sum(len(r.coins) for r in self.cells) + len(self.inventory)


class SnapshotManager:
    def __init__(
        self,
        store: CellStateStore,
        inventory: Inventory,
        max_snapshots: int = 64,
        bus: Optional[EventBus] = None,
    ):
        self.store = store
        self.inventory = inventory
        self.bus = bus
        self._stack: Deque[Snapshot] = deque(maxlen=max_snapshots)

    @property
    def depth(self) -> int:
        return len(self._stack)

    def save(self) -> Snapshot:
        """Captures the current world and inventory and pushes it on the stack."""
        snapshot = Snapshot(
            cells=tuple(CellRecord.capture(cell) for _, cell in self.store),
            inventory=tuple(self.inventory.coins),
        )
        if len(self._stack) == self._stack.maxlen:
            logger.debug("Snapshot stack full (%d), dropping oldest", self._stack.maxlen)
        self._stack.append(snapshot)

        if self.bus is not None:
            self.bus.emit(GameEvent(event_key=EVT_SNAPSHOT_SAVED, data={"depth": self.depth}))
        return snapshot

    def undo(self) -> bool:
        """Restores the most recent snapshot. False if there is nothing to undo."""
        if not self._stack:
            return False

        snapshot = self._stack.pop()
        self.store.replace_all(snapshot.to_mapping())
        # Mutate in place: the player entity holds this same Inventory object.
        self.inventory.coins[:] = snapshot.inventory
        logger.info("Undo restored %d cells (%d snapshots left)", len(snapshot.cells), self.depth)

        if self.bus is not None:
            self.bus.emit(GameEvent(event_key=EVT_WORLD_RESTORED, data={"depth": self.depth}))
        return True

    def clear(self) -> None:
        self._stack.clear()
