"""
GeoCoin — engine/ledger.py
Coin Ledger: atomic coin transfers between a cache and the player's inventory.
==============================================================================
Stack:       Python 3.11+ | bespoke pub-sub

Architecture notes
------------------
- Stack discipline on both sides: collect pops the cache's newest coin,
  deposit pops the inventory's newest coin.
- Deposit policy: provenance is preserved. A deposited coin keeps its origin
  cell and serial wherever it ends up; a list never holds the same
  (origin, serial) twice because coins are only ever moved, never copied.
- Every refusal is raised before the first mutation.
"""

from __future__ import annotations

from typing import Optional

from engine.components import Inventory
from engine.errors import EmptyCache, EmptyInventory, NoCacheHere
from engine.events import EVT_COIN_COLLECTED, EVT_COIN_DEPOSITED, EventBus, GameEvent
from world.cells import CellState, Coin


def collect(cell: CellState, inventory: Inventory, bus: Optional[EventBus] = None) -> Coin:
    """Moves the cache's most recently added coin into the inventory."""
    if not cell.has_cache:
        raise NoCacheHere(cell.i, cell.j)
    if not cell.coins:
        raise EmptyCache(cell.i, cell.j)

    coin = cell.coins.pop()
    inventory.coins.append(coin)

    if bus is not None:
        bus.emit(GameEvent(
            event_key=EVT_COIN_COLLECTED,
            source=str(cell.index),
            target="player",
            data={"coin": coin.label, "cache_count": len(cell.coins), "inventory_count": len(inventory)},
        ))
    return coin


def deposit(cell: CellState, inventory: Inventory, bus: Optional[EventBus] = None) -> Coin:
    """Moves the inventory's most recently collected coin into the cache."""
    if not cell.has_cache:
        raise NoCacheHere(cell.i, cell.j)
    if not inventory.coins:
        raise EmptyInventory()

    coin = inventory.coins.pop()
    cell.coins.append(coin)

    if bus is not None:
        bus.emit(GameEvent(
            event_key=EVT_COIN_DEPOSITED,
            source="player",
            target=str(cell.index),
            data={"coin": coin.label, "cache_count": len(cell.coins), "inventory_count": len(inventory)},
        ))
    return coin
