"""
GeoCoin — engine/session.py
Game Session: wires the grid, generator, cell store, ledger, snapshots and storage.
===================================================================================
Stack:       Python 3.11+ | python-tcod-ecs | Pydantic v2

Architecture notes
------------------
- All mutable game state hangs off one GameSession. The player is an ECS
  entity carrying GeoPosition, MovementTrail and Inventory.
- Each public mutation runs to completion before returning; the session is
  single-threaded.
- Geolocation replies are matched against a request token. A reply older than
  the newest request is dropped instead of overwriting a fresher position.
- A corrupt save is logged and replaced by the first-run default state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import tcod.ecs

from engine import ledger
from engine.components import GeoPosition, Inventory, MovementTrail, PlayerIdentity
from engine.config import GameConfig, load_config
from engine.errors import CorruptSave, NoCacheHere
from engine.events import (
    EVT_GAME_LOADED,
    EVT_GAME_RESET,
    EVT_GAME_SAVED,
    EVT_PLAYER_MOVED,
    EventBus,
    GameEvent,
)
from engine.persistence import (
    PersistedGameState,
    StorageSlot,
    capture_state,
    default_state,
    encode,
    load_or_init,
)
from engine.snapshots import SnapshotManager
from world.cells import CellState, CellStateStore, Coin
from world.generator import LuckFn, WorldGenerator
from world.grid import CellIndex, GridMapper

logger = logging.getLogger(__name__)


class GameSession:
    """
    Core executor for one player's game.
    """
    def __init__(
        self,
        config: Optional[GameConfig] = None,
        slot: Optional[StorageSlot] = None,
        bus: Optional[EventBus] = None,
        luck_fn: Optional[LuckFn] = None,
    ):
        self.config = config if config is not None else load_config()
        self.bus = bus if bus is not None else EventBus()

        world_cfg = self.config.world
        self.grid = GridMapper(world_cfg.tile_size)
        self.generator = WorldGenerator(
            spawn_probability=world_cfg.spawn_probability,
            max_coins_per_cache=world_cfg.max_coins_per_cache,
            seed=world_cfg.world_seed,
            luck_fn=luck_fn,
        )
        self.store = CellStateStore(self.generator)

        if slot is None:
            storage_cfg = self.config.storage
            slot = StorageSlot(Path(storage_cfg.storage_dir), storage_cfg.storage_key)
        self.slot = slot

        self.registry = tcod.ecs.Registry()
        self.player = self.registry.new_entity()
        self.player.components[PlayerIdentity] = PlayerIdentity()
        self.player.components[Inventory] = Inventory()
        self._apply_state(default_state(
            self.config.session.origin_lat,
            self.config.session.origin_lng,
            world_cfg.world_seed,
        ))

        self.snapshots = SnapshotManager(
            self.store,
            self.inventory,
            max_snapshots=self.config.session.max_snapshots,
            bus=self.bus,
        )
        self._location_token = 0

    # ------------------------------------------------------------
    # Player state
    # ------------------------------------------------------------

    @property
    def inventory(self) -> Inventory:
        return self.player.components[Inventory]

    @property
    def position(self) -> Tuple[float, float]:
        return self.player.components[GeoPosition].as_tuple()

    @property
    def trail(self) -> List[Tuple[float, float]]:
        return self.player.components[MovementTrail].points

    @property
    def player_cell(self) -> CellIndex:
        lat, lng = self.position
        return self.grid.to_cell_index(lat, lng)

    def _set_position(self, lat: float, lng: float) -> None:
        pos = self.player.components[GeoPosition]
        pos.lat = lat
        pos.lng = lng
        self.trail.append((lat, lng))
        self.refresh_neighborhood()

        cell = self.player_cell
        self.bus.emit(GameEvent(
            event_key=EVT_PLAYER_MOVED,
            source="player",
            data={"lat": lat, "lng": lng, "i": cell.i, "j": cell.j},
        ))

    def move(self, di: int, dj: int) -> CellIndex:
        """Steps the player by whole tiles (north = +di, east = +dj)."""
        lat, lng = self.position
        tile = self.grid.tile_size
        self._set_position(lat + di * tile, lng + dj * tile)
        return self.player_cell

    def request_location(self) -> int:
        """Starts a geolocation request; pass the token back to apply_location()."""
        self._location_token += 1
        return self._location_token

    def apply_location(self, token: int, lat: float, lng: float) -> bool:
        """Applies a geolocation reply unless a newer request has been issued since."""
        if token <= 0 or token != self._location_token:
            logger.debug("Dropping stale location reply %d (current %d)", token, self._location_token)
            return False
        self._set_position(lat, lng)
        return True

    # ------------------------------------------------------------
    # World queries
    # ------------------------------------------------------------

    def visible_cache_indices(self) -> List[CellIndex]:
        cell = self.player_cell
        return self.store.list_visible(cell.i, cell.j, self.config.session.neighborhood_radius)

    def refresh_neighborhood(self) -> None:
        """Materializes every cache around the player."""
        for index in self.visible_cache_indices():
            self.store.get_or_create(index.i, index.j)

    def visible_caches(self) -> List[Tuple[CellIndex, CellState]]:
        """Caches around the player. Recorded cells (e.g. from a save) decide by their stored kind."""
        caches = []
        for index in self.visible_cache_indices():
            cell = self.store.get_or_create(index.i, index.j)
            if cell.has_cache:
                caches.append((index, cell))
        return caches

    def cache_at(self, i: int, j: int) -> CellState:
        cell = self.store.get_or_create(i, j)
        if not cell.has_cache:
            raise NoCacheHere(i, j)
        return cell

    def total_coins(self) -> int:
        return self.store.total_coins() + len(self.inventory)

    # ------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------

    def collect_at(self, i: int, j: int) -> Coin:
        return ledger.collect(self.cache_at(i, j), self.inventory, self.bus)

    def deposit_at(self, i: int, j: int) -> Coin:
        return ledger.deposit(self.cache_at(i, j), self.inventory, self.bus)

    # ------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------

    def save_snapshot(self) -> None:
        self.snapshots.save()

    def undo(self) -> bool:
        return self.snapshots.undo()

    # ------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------

    def capture(self) -> PersistedGameState:
        return capture_state(
            self.position,
            self.trail,
            self.inventory.coins,
            self.store.cells(),
            world_seed=self.generator.seed,
        )

    def _apply_state(self, state: PersistedGameState) -> None:
        self.store.replace_all(state.cell_mapping())
        self.player.components[GeoPosition] = GeoPosition(state.player_lat, state.player_lng)
        self.player.components[MovementTrail] = MovementTrail(points=list(state.movement_trail))
        # Keep the Inventory object: the snapshot manager holds a reference to it.
        self.inventory.coins[:] = state.inventory

    def save(self) -> None:
        self.slot.write(encode(self.capture()))
        logger.info("Saved game to %s", self.slot.path)
        self.bus.emit(GameEvent(event_key=EVT_GAME_SAVED, data={"cells": len(self.store)}))

    def load(self) -> bool:
        """
        Restores the game from the storage slot.
        Returns True when a save was applied, False when the default state was used
        (no save yet, or the save was corrupt).
        """
        cfg = self.config.session
        seed = self.generator.seed
        payload = self.slot.read()
        try:
            state = load_or_init(payload, cfg.origin_lat, cfg.origin_lng, seed)
            restored = payload is not None
        except CorruptSave as exc:
            logger.warning("Discarding corrupt save in %s: %s", self.slot.path, exc)
            state = default_state(cfg.origin_lat, cfg.origin_lng, seed)
            restored = False

        if restored and state.world_seed != seed:
            logger.warning(
                "Save was generated with world_seed %d, session uses %d; "
                "unvisited cells will follow the session seed",
                state.world_seed, seed,
            )

        self._apply_state(state)
        self.snapshots.clear()
        self.refresh_neighborhood()
        self.bus.emit(GameEvent(event_key=EVT_GAME_LOADED, data={"restored": restored}))
        return restored

    def reset(self) -> None:
        """Erases the saved game and returns to the first-run state."""
        cfg = self.config.session
        self.slot.clear()
        self._apply_state(default_state(cfg.origin_lat, cfg.origin_lng, self.generator.seed))
        self.snapshots.clear()
        self.refresh_neighborhood()
        self.bus.emit(GameEvent(event_key=EVT_GAME_RESET))
