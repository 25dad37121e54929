import pytest
from engine.config import (
    DEFAULT_CONFIG_PATH,
    GameConfig,
    clear_config_cache,
    config_from_dict,
    load_config,
)
from engine.errors import ConfigError


@pytest.fixture(autouse=True)
def fresh_cache():
    clear_config_cache()
    yield
    clear_config_cache()


def test_shipped_config_matches_defaults():
    assert DEFAULT_CONFIG_PATH.exists()
    config = load_config()
    assert config == GameConfig()
    assert config.world.tile_size == 1e-4
    assert config.world.spawn_probability == 0.1
    assert config.world.max_coins_per_cache == 6
    assert config.storage.storage_key == "geocoinGameState"

def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "geocoin.toml"
    path.write_text("[world]\nspawn_probability = 0.5\nworld_seed = 99\n", encoding="utf-8")
    config = load_config(path)
    assert config.world.spawn_probability == 0.5
    assert config.world.world_seed == 99
    assert config.session.neighborhood_radius == 8

def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "absent.toml") == GameConfig()

def test_config_is_cached(tmp_path):
    path = tmp_path / "geocoin.toml"
    path.write_text("[session]\nmax_snapshots = 3\n", encoding="utf-8")
    first = load_config(path)
    path.write_text("[session]\nmax_snapshots = 5\n", encoding="utf-8")
    assert load_config(path) is first

def test_config_is_frozen():
    config = GameConfig()
    with pytest.raises(Exception):
        config.world.tile_size = 1.0

@pytest.mark.parametrize("data", [
    {"world": {"tile_size": 0}},
    {"world": {"spawn_probability": 1.5}},
    {"session": {"max_snapshots": 0}},
    {"session": {"origin_lat": 200.0}},
    {"storage": {"storage_key": ""}},
])
def test_invalid_values_rejected(data):
    with pytest.raises(ConfigError):
        config_from_dict(data)

def test_unparseable_toml(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[world\ntile_size = ", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)
