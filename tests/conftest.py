import pytest

from hex_empires.core.enums import TerrainType
from hex_empires.entities.civilization import Civilization
from hex_empires.entities.tile import Tile
from hex_empires.game.events import EventBus, EventRecorder
from hex_empires.game.game_map import GameMap, GameSettings, create_game


def make_tiles(width, height, terrain=TerrainType.GRASSLAND):
    """Uniform tile grid indexed [row][col]."""
    return [[Tile(col, row, terrain) for col in range(width)] for row in range(height)]


def make_world(width=10, height=10, civ_count=2, seed=1, terrain=TerrainType.GRASSLAND):
    """Map without setup: human civilizations 0..n-1, civilization 0 active, no units."""
    keys = ["romans", "babylonians", "germans", "egyptians"][:civ_count]
    settings = GameSettings(map_width=width, map_height=height, seed=seed, civilizations=keys,
                            human_player=keys[0])
    world = GameMap(settings, tiles=make_tiles(width, height, terrain))
    for index, key in enumerate(keys):
        world.add_civilization(Civilization(id=index, name=key.title(), is_human=True,
                                            city_names=[f"{key.title()} {i}" for i in range(1, 4)]))
    world.active_civilization_id = 0
    return world


def make_started_game(seed=1, width=10, height=10):
    """Scenario game: one human civilization seeded at (5, 5) on all-grassland."""
    settings = GameSettings(map_width=width, map_height=height, seed=seed, civilizations=["romans"],
                            human_player="romans", start_positions=[(5, 5)])
    return create_game(settings, tiles=make_tiles(width, height))


@pytest.fixture
def world():
    return make_world()


@pytest.fixture
def recorder(world):
    return EventRecorder(world.events)


@pytest.fixture
def bus():
    return EventBus()
