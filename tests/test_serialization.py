import json

import pytest

from hex_empires import GameSettings, create_game, load_game
from hex_empires.core.enums import UnitType
from hex_empires.core.exceptions import SerializationError
from hex_empires.entities.city import ProductionItem

from conftest import make_tiles


def played_game():
    settings = GameSettings(map_width=20, map_height=20, seed=4, civilizations=["romans", "greeks"],
                            human_player="romans", start_positions=[(5, 5), (14, 14)])
    world = create_game(settings, tiles=make_tiles(20, 20))
    settler = next(u for u in world.get_units_for(0) if u.unit_type == UnitType.SETTLER)
    settler.settle(world)
    city = world.get_cities_for(0)[0]
    city.queue_production(ProductionItem.unit(UnitType.MILITIA))
    city.queue_production(ProductionItem.unit(UnitType.SETTLER))
    world.get_civilization(0).declare_war(1, world)
    for _ in range(3):
        world.process_turn()
    return world


def snapshot(world):
    return json.loads(json.dumps(world.serialize()))


def test_json_round_trip_preserves_state():
    world = played_game()
    data = snapshot(world)
    restored = load_game(data)
    assert snapshot(restored) == data
    assert restored.turn == world.turn
    assert restored.active_civilization_id == world.active_civilization_id
    assert restored.get_city_at(5, 5).build_queue == world.get_city_at(5, 5).build_queue
    assert restored.get_civilization(0).is_at_war_with(1)


def test_indices_rebuilt_after_load():
    world = played_game()
    restored = load_game(snapshot(world))
    for unit in world.get_all_units():
        assert restored.get_unit(unit.id).position == unit.position
        assert restored.get_unit_at(*unit.position) is not None
    assert [c.id for c in restored.get_cities_for(0)] == [c.id for c in world.get_cities_for(0)]


def test_ai_reattached_after_load():
    restored = load_game(snapshot(played_game()))
    assert restored.get_civilization(0).ai is None
    assert restored.get_civilization(1).ai is not None


def test_rng_state_restored():
    world = played_game()
    restored = load_game(snapshot(world))
    assert [restored.rng.random() for _ in range(5)] == [world.rng.random() for _ in range(5)]


def test_loaded_game_keeps_playing():
    restored = load_game(snapshot(played_game()))
    turn = restored.turn
    summary = restored.process_turn()
    assert summary["turn"] == turn + 1


def test_corrupt_data_rejected():
    data = snapshot(played_game())
    del data["units"]
    with pytest.raises(SerializationError) as info:
        load_game(data)
    assert info.value.error_code == "CORRUPT_STATE"


def test_tile_count_mismatch_rejected():
    data = snapshot(played_game())
    data["tiles"] = data["tiles"][:-1]
    with pytest.raises(SerializationError) as info:
        load_game(data)
    assert info.value.error_code == "TILE_COUNT"
