import dataclasses
import pytest
from engine.components import Inventory
from engine.events import EVT_WORLD_RESTORED, EventBus
from engine.ledger import collect, deposit
from engine.snapshots import SnapshotManager
from world.cells import CellStateStore, Coin
from world.generator import WorldGenerator
from world.grid import CellIndex


@pytest.fixture
def world():
    gen = WorldGenerator(spawn_probability=1.0, max_coins_per_cache=6, luck_fn=lambda i, j, role: 0.5)
    store = CellStateStore(gen)
    for j in range(3):
        store.get_or_create(0, j)
    inv = Inventory()
    return store, inv


def contents(store):
    return {idx: list(cell.coins) for idx, cell in store}


def test_undo_restores_cells_and_inventory(world):
    store, inv = world
    manager = SnapshotManager(store, inv)
    before_cells = contents(store)
    manager.save()

    collect(store.get_or_create(0, 0), inv)
    collect(store.get_or_create(0, 0), inv)
    deposit(store.get_or_create(0, 2), inv)

    assert manager.undo() is True
    assert contents(store) == before_cells
    assert inv.coins == []
    assert store.total_coins() + len(inv) == 9

def test_snapshot_not_aliased_by_live_mutation(world):
    store, inv = world
    manager = SnapshotManager(store, inv)
    snap = manager.save()
    store.get_or_create(0, 1).coins.clear()
    assert snap.total_coins == 9
    assert manager.undo()
    assert len(store.get_or_create(0, 1).coins) == 3

def test_restored_cells_do_not_alias_snapshot(world):
    store, inv = world
    manager = SnapshotManager(store, inv)
    snap = manager.save()
    manager.undo()
    store.get_or_create(0, 0).coins.clear()
    assert len(snap.to_mapping()[CellIndex(0, 0)].coins) == 3

def test_snapshot_is_frozen(world):
    store, inv = world
    snap = SnapshotManager(store, inv).save()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap.inventory = ()
    assert isinstance(snap.cells[0].coins, tuple)

def test_undo_on_empty_stack_is_noop(world):
    store, inv = world
    manager = SnapshotManager(store, inv)
    before = contents(store)
    assert manager.undo() is False
    assert contents(store) == before

def test_stack_order_and_cap(world):
    store, inv = world
    manager = SnapshotManager(store, inv, max_snapshots=2)
    cell = store.get_or_create(0, 0)
    manager.save()                 # 3 coins, dropped by the cap
    collect(cell, inv)
    manager.save()                 # 2 coins
    collect(cell, inv)
    manager.save()                 # 1 coin
    collect(cell, inv)
    assert manager.depth == 2

    manager.undo()
    assert len(store.get_or_create(0, 0).coins) == 1
    manager.undo()
    assert len(store.get_or_create(0, 0).coins) == 2
    assert manager.undo() is False

def test_undo_keeps_inventory_object(world):
    store, inv = world
    manager = SnapshotManager(store, inv)
    manager.save()
    collect(store.get_or_create(0, 0), inv)
    manager.undo()
    assert manager.inventory is inv

def test_undo_signals_renderer(world):
    store, inv = world
    bus = EventBus()
    refreshed = []
    bus.subscribe(EVT_WORLD_RESTORED, refreshed.append)
    manager = SnapshotManager(store, inv, bus=bus)
    manager.undo()
    assert refreshed == []
    manager.save()
    manager.undo()
    assert len(refreshed) == 1

def test_undo_drops_cells_generated_after_save(world):
    store, inv = world
    manager = SnapshotManager(store, inv)
    manager.save()
    store.get_or_create(7, 7)
    manager.undo()
    assert CellIndex(7, 7) not in store
    # regenerated deterministically on the next visit
    assert store.get_or_create(7, 7).coins == [Coin(origin_i=7, origin_j=7, serial=s) for s in range(3)]

def test_empty_stack_undo_never_raises(world):
    store, inv = world
    manager = SnapshotManager(store, inv)
    for _ in range(3):
        assert manager.undo() is False
    assert manager.depth == 0
