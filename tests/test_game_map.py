import math

import pytest

from hex_empires.core.enums import TerrainType, UnitType
from hex_empires.core.exceptions import (
    InvalidGameStateError, InvalidCivilizationError, InvalidInputError
)
from hex_empires.game.events import EventBus, EventRecorder, GameEventType
from hex_empires.game.game_map import GameMap, GameSettings, create_game
from hex_empires.utils.hex_utils import hex_distance

from conftest import make_tiles, make_started_game


def test_setup_places_settler_and_militia_near_start():
    world = make_started_game()
    units = world.get_all_units()
    assert sorted(u.unit_type.value for u in units) == ["militia", "settler"]
    settler = next(u for u in units if u.unit_type == UnitType.SETTLER)
    militia = next(u for u in units if u.unit_type == UnitType.MILITIA)
    assert settler.position == (5, 5)
    assert hex_distance(militia.position, (5, 5)) == 1


def test_settler_founds_city_working_its_own_tile():
    world = make_started_game()
    settler = world.get_unit_at(5, 5)
    assert settler.settle(world).success
    city = world.get_city_at(5, 5)
    assert city.population == 1
    assert (5, 5) in city.working_tiles
    assert world.get_capital(0) is city
    assert city.name == "Rome"


def test_new_game_event_and_initial_state():
    bus = EventBus()
    recorder = EventRecorder(bus)
    settings = GameSettings(map_width=10, map_height=10, seed=1, civilizations=["romans"],
                            human_player="romans", start_positions=[(5, 5)])
    world = create_game(settings, events=bus, tiles=make_tiles(10, 10))
    assert recorder.of_type(GameEventType.NEW_GAME)
    assert world.turn == 1
    assert world.year == -4000
    assert world.active_civilization_id == 0
    assert world.get_tile(5, 5).is_visible_to(0)
    assert not world.get_tile(0, 9).is_explored_by(0)


def test_setup_twice_rejected():
    world = make_started_game()
    with pytest.raises(InvalidGameStateError):
        world.setup()


def test_start_on_water_rejected():
    tiles = make_tiles(10, 10)
    tiles[5][5].terrain = TerrainType.OCEAN
    settings = GameSettings(map_width=10, map_height=10, civilizations=["romans"], start_positions=[(5, 5)])
    with pytest.raises(InvalidGameStateError):
        create_game(settings, tiles=tiles)


def test_settings_validation():
    with pytest.raises(InvalidCivilizationError):
        GameSettings(civilizations=["romans"], human_player="greeks").validate()
    with pytest.raises(InvalidGameStateError):
        GameSettings(civilizations=["romans", "greeks"], start_positions=[(1, 1)]).validate()
    with pytest.raises(InvalidInputError):
        GameSettings(civilizations=["vikings"]).validate()


def test_tile_grid_must_match_size():
    with pytest.raises(InvalidGameStateError):
        GameMap(GameSettings(map_width=10, map_height=10), tiles=make_tiles(9, 10))


def test_generated_start_positions_are_habitable_and_distinct():
    settings = GameSettings(map_width=40, map_height=25, seed=5,
                            civilizations=["romans", "greeks", "germans"], human_player="romans")
    world = create_game(settings)
    settlers = [u for u in world.get_all_units() if u.unit_type == UnitType.SETTLER]
    assert len(settlers) == 3
    assert len({s.position for s in settlers}) == 3
    for settler in settlers:
        assert world.is_habitable(*settler.position)


def test_same_seed_same_setup():
    settings = dict(map_width=30, map_height=20, seed=9, civilizations=["romans", "greeks"], human_player="romans")
    a = create_game(GameSettings(**settings))
    b = create_game(GameSettings(**settings))
    assert sorted(u.position for u in a.get_all_units()) == sorted(u.position for u in b.get_all_units())
    assert a.get_civilization(1).personality == b.get_civilization(1).personality


def test_indices_follow_moves_and_removals(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 3, 3)
    civ = world.get_civilization(0)
    assert civ.unit_ids == [unit.id]
    unit.move_to(4, 3, world)
    assert world.get_units_at(3, 3) == []
    assert world.get_units_at(4, 3) == [unit]
    world.remove_unit(unit.id)
    assert world.get_units_at(4, 3) == []
    assert civ.unit_ids == []


def test_military_unit_captures_empty_enemy_city(world, recorder):
    city = world.found_city(1, 5, 5)
    raider = world.create_unit(UnitType.MILITIA, 0, 5, 4)
    assert raider.move_to(5, 5, world).success
    assert city.civilization_id == 0
    assert world.get_capital(0) is city
    assert world.get_capital(1) is None
    assert city.current_production is None
    assert recorder.of_type(GameEventType.CITY_CAPTURED)[0]["old_civilization_id"] == 1


def test_settler_cannot_enter_enemy_city(world):
    world.found_city(1, 5, 5)
    settler = world.create_unit(UnitType.SETTLER, 0, 5, 4)
    assert not settler.move_to(5, 5, world).success


def test_pathing_routes_around_foreign_units(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 1, 4)
    world.create_unit(UnitType.MILITIA, 1, 3, 4)
    cost = world.movement_cost_fn(unit, goal=(5, 4))
    assert math.isinf(cost((2, 4), (3, 4)))
    path = world.grid.find_path(unit.position, (5, 4), cost)
    assert path[-1] == (5, 4)
    assert (3, 4) not in path


def test_game_info_summary():
    world = make_started_game()
    info = world.get_game_info()
    assert info["turn"] == 1
    assert info["year_label"] == "4000 BC"
    assert info["unit_count"] == 2
    assert info["civilizations"][0]["name"] == "Romans"
    assert info["civilizations"][0]["researching"] == "alphabet"


def test_format_year():
    world = make_started_game()
    world.year = 20
    assert world.format_year() == "20 AD"


def test_city_founded_on_worked_tile_takes_it_over(world):
    rome = world.found_city(0, 5, 5)
    rome.population = 4
    rome.optimize_worker_assignment(world)
    target = rome.working_tiles[1]

    world.found_city(1, *target)
    assert target not in rome.working_tiles
    assert len(rome.working_tiles) == 4
    worked = [p for city in world.get_all_cities() for p in city.working_tiles]
    assert len(worked) == len(set(worked))
