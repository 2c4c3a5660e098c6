import pytest

from hex_empires.core.enums import TerrainType, ResourceType, UnitType, BuildingType, FailureReason
from hex_empires.core.exceptions import UnknownTypeError
from hex_empires.entities.city import City, ProductionItem, evaluate_city_site
from hex_empires.game.events import GameEventType

MILITIA = ProductionItem.unit(UnitType.MILITIA)


def make_city(**kwargs):
    kwargs.setdefault("id", "city_test")
    kwargs.setdefault("civilization_id", 0)
    kwargs.setdefault("col", 5)
    kwargs.setdefault("row", 5)
    return City(**kwargs)


def test_center_always_worked():
    city = make_city(working_tiles=[(5, 6)])
    assert city.working_tiles[0] == (5, 5)
    assert (5, 6) in city.working_tiles


def test_growth_on_turn_storage_reaches_threshold():
    # population 1, surplus 3: 3, 6, 9, 12 -> grows on turn 4
    city = make_city()
    grew_on = None
    for turn in range(1, 10):
        city.food = 2 * city.population + 3
        if city.process_food() == "grew":
            grew_on = turn
            break
    assert grew_on == 4
    assert city.population == 2
    assert city.food_storage == 0


def test_granary_keeps_half_the_threshold():
    city = make_city(population=2, food_storage=18, buildings=[BuildingType.GRANARY])
    city.food = 2 * 2 + 2
    assert city.process_food() == "grew"
    assert city.food_storage == 10


def test_starvation_when_storage_goes_negative():
    city = make_city(population=3, food_storage=1)
    city.food = 3
    assert city.process_food() == "starved"
    assert city.population == 2
    assert city.food_storage == 0


def test_single_citizen_never_starves_below_one():
    city = make_city(population=1)
    city.food = 0
    assert city.process_food() is None
    assert city.population == 1


def test_no_growth_past_max_population():
    city = make_city(population=8, max_population=8, food_storage=79)
    city.food = 2 * 8 + 5
    assert city.process_food() is None
    assert city.population == 8
    assert city.food_storage == 80


def test_production_completes_exactly_on_turn_two():
    city = make_city()
    city.set_production(MILITIA)
    city.production = 5
    assert city.advance_production() is None
    assert city.production_progress == 5
    assert city.advance_production() == MILITIA
    assert city.carried_over_progress == 0
    assert city.current_production is None


def test_overflow_carries_to_next_queued_item():
    city = make_city()
    city.queue_production(MILITIA)
    city.queue_production(ProductionItem.building(BuildingType.BARRACKS))
    city.production = 7
    city.advance_production()
    assert city.advance_production() == MILITIA
    assert city.current_production == ProductionItem.building(BuildingType.BARRACKS)
    assert city.production_progress == 4


def test_overflow_waits_for_next_item_when_queue_empty():
    city = make_city()
    city.set_production(MILITIA)
    city.production = 12
    city.advance_production()
    assert city.carried_over_progress == 2
    city.set_production(MILITIA)
    assert city.production_progress == 2
    assert city.carried_over_progress == 0


def test_remove_queue_item():
    city = make_city()
    city.queue_production(MILITIA)
    city.queue_production(ProductionItem.unit(UnitType.SETTLER))
    assert city.remove_queue_item(5).reason == FailureReason.INVALID_INDEX
    assert city.remove_queue_item(0).success
    assert city.build_queue == []


def test_production_item_parsing():
    assert ProductionItem.parse("militia") == MILITIA
    assert ProductionItem.parse("building:granary") == ProductionItem.building(BuildingType.GRANARY)
    assert ProductionItem.parse({"kind": "unit", "key": "settler"}) == ProductionItem.unit(UnitType.SETTLER)
    assert ProductionItem.parse(BuildingType.TEMPLE).kind.value == "building"
    with pytest.raises(UnknownTypeError):
        ProductionItem.parse("spaceship")


def test_yields_use_center_minimums_and_buildings(world):
    city = world.found_city(0, 5, 5)
    city.calculate_yields(world)
    # grassland centre 3/0/0 raised to 3/1/1
    assert (city.food, city.production, city.trade) == (3, 1, 1)

    city.population = 3
    city.optimize_worker_assignment(world)
    assert len(city.working_tiles) == 3
    city.buildings.append(BuildingType.MARKETPLACE)
    yields = city.calculate_yields(world)
    assert yields["food"] == 9
    assert yields["trade"] == 1


def test_worker_assignment_prefers_food(world):
    world.tiles[5][6].terrain = TerrainType.HILLS
    world.tiles[4][5].resource = ResourceType.WHEAT
    city = world.found_city(0, 5, 5)
    city.population = 2
    worked = city.optimize_worker_assignment(world)
    assert worked == [(5, 5), (5, 4)]


def test_worker_assignment_respects_radius_and_other_cities(world):
    a = world.found_city(0, 2, 5)
    b = world.found_city(0, 6, 5)
    a.population = 8
    a.optimize_worker_assignment(world)
    b.population = 8
    b.optimize_worker_assignment(world)
    assert not set(a.working_tiles) & set(b.working_tiles)
    for col, row in a.working_tiles:
        assert abs(col - 2) + abs(row - 5) <= 2


def test_can_build_requires_technology_and_coast(world):
    city = world.found_city(0, 5, 5)
    civ = world.get_civilization(0)
    assert city.can_build(ProductionItem.unit(UnitType.PHALANX), civ, world) == FailureReason.MISSING_TECHNOLOGY
    civ.technology_manager.researched.add("map_making")
    assert city.can_build(ProductionItem.unit(UnitType.TRIREME), civ, world) == FailureReason.NOT_COASTAL
    city.buildings.append(BuildingType.BARRACKS)
    assert city.can_build(ProductionItem.building(BuildingType.BARRACKS), civ, world) == FailureReason.ALREADY_BUILT


def test_purchase_once_per_turn_and_delivered_next_turn(world, recorder):
    city = world.found_city(0, 5, 5)
    civ = world.get_civilization(0)
    civ.gold = 25
    assert city.purchase(ProductionItem.unit(UnitType.SETTLER), civ, world).reason == FailureReason.INSUFFICIENT_GOLD
    assert city.purchase(MILITIA, civ, world).success
    assert civ.gold == 15
    assert city.purchase(MILITIA, civ, world).reason == FailureReason.ALREADY_PURCHASED

    city.process_turn(world)
    assert len(world.get_units_for(0)) == 1
    assert not city.purchased_this_turn
    assert recorder.of_type(GameEventType.PRODUCTION_COMPLETED)


def test_produced_unit_spawns_and_is_supported(world):
    city = world.found_city(0, 5, 5)
    city.set_production(MILITIA)
    city.production_progress = 9
    city.process_turn(world)
    units = world.get_units_for(0)
    assert len(units) == 1
    assert units[0].home_city_id == city.id
    assert units[0].id in city.supported_unit_ids


def test_unaffordable_units_disbanded_farthest_first(world, recorder):
    city = world.found_city(0, 5, 5)
    near = world.create_unit(UnitType.MILITIA, 0, 5, 4, home_city_id=city.id)
    far = world.create_unit(UnitType.MILITIA, 0, 8, 8, home_city_id=city.id)
    city.supported_unit_ids = [near.id, far.id]
    city.production = 1
    assert city.process_unit_support(world) == [far.id]
    assert world.get_unit(near.id) is not None
    assert recorder.of_type(GameEventType.UNIT_DISBANDED)


def surround_with_enemies(world, city):
    world.create_unit(UnitType.MILITIA, 0, *city.position)
    return [world.create_unit(UnitType.MILITIA, 1, col, row)
            for col, row in world.grid.get_neighbors(city.col, city.row)]


def test_no_spawn_onto_enemy_or_occupied_tiles(world):
    city = world.found_city(0, 5, 5)
    surround_with_enemies(world, city)
    assert city.spawn_position(UnitType.MILITIA, world) is None
    assert city.complete_item(MILITIA, world) is None
    assert len(world.get_units_for(0)) == 1
    for unit in world.get_all_units():
        assert len(world.get_units_at(*unit.position)) == 1


def test_finished_unit_held_until_a_tile_frees_up(world):
    city = world.found_city(0, 5, 5)
    enemies = surround_with_enemies(world, city)
    city.set_production(MILITIA)
    city.production_progress = 9
    city.process_turn(world)
    assert city.current_production == MILITIA
    assert city.production_progress == MILITIA.cost(city.rules)
    assert len(world.get_units_for(0)) == 1

    world.remove_unit(enemies[0].id)
    city.process_turn(world)
    assert len(world.get_units_for(0)) == 2
    assert world.get_unit_at(*enemies[0].position).civilization_id == 0


def test_purchased_unit_waits_for_free_tile(world):
    city = world.found_city(0, 5, 5)
    enemies = surround_with_enemies(world, city)
    civ = world.get_civilization(0)
    civ.gold = 100
    assert city.purchase(MILITIA, civ, world).success
    city.process_turn(world)
    assert city.purchased_item == MILITIA
    assert len(world.get_units_for(0)) == 1
    assert city.purchase(MILITIA, civ, world).reason == FailureReason.ALREADY_PURCHASED

    world.remove_unit(enemies[0].id)
    city.process_turn(world)
    assert city.purchased_item is None
    assert len(world.get_units_for(0)) == 2



def test_disorder_when_unhappy():
    city = make_city(population=2)
    assert city.update_happiness()
    assert city.disorder
    city.buildings = [BuildingType.TEMPLE, BuildingType.COLOSSEUM]
    assert not city.update_happiness()
    assert not city.disorder


def test_site_score_counts_resources(world):
    base = evaluate_city_site(world.get_tile(5, 5), world)
    world.tiles[5][5].resource = ResourceType.WHEAT
    assert evaluate_city_site(world.get_tile(5, 5), world) == base + 2 + 3


def test_round_trip_keeps_queue(world):
    city = world.found_city(0, 5, 5)
    city.queue_production(MILITIA)
    city.queue_production(ProductionItem.unit(UnitType.SETTLER))
    city.queue_production(ProductionItem.building(BuildingType.BARRACKS))
    restored = City.from_dict(city.to_dict())
    assert restored.id == city.id
    assert restored.position == city.position
    assert restored.current_production == MILITIA
    assert restored.build_queue == city.build_queue
    assert restored.working_tiles == city.working_tiles


def test_auto_production_flag_round_trips(world):
    city = world.found_city(0, 5, 5)
    city.auto_production = True
    assert City.from_dict(city.to_dict()).auto_production
