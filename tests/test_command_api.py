from hex_empires import CommandAPI
from hex_empires.actions.base_action import ActionResult
from hex_empires.core.enums import UnitType, FailureReason, ImprovementType
from hex_empires.game.events import GameEventType

from conftest import make_started_game


def api_for(world):
    return CommandAPI(world)


def test_move_unit(world):
    api = api_for(world)
    unit = world.create_unit(UnitType.MILITIA, 0, 3, 3)
    outcome = api.move_unit(unit.id, 4, 3)
    assert outcome.success
    assert unit.position == (4, 3)


def test_commands_for_inactive_civilization_rejected(world):
    api = api_for(world)
    unit = world.create_unit(UnitType.MILITIA, 1, 3, 3)
    outcome = api.move_unit(unit.id, 4, 3)
    assert outcome.result == ActionResult.INVALID
    assert outcome.reason == FailureReason.NOT_ACTIVE_CIVILIZATION
    assert unit.position == (3, 3)


def test_unknown_unit(world):
    outcome = api_for(world).move_unit("unit_missing", 1, 1)
    assert outcome.reason == FailureReason.UNIT_NOT_FOUND


def test_move_out_of_bounds(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 0, 0)
    assert api_for(world).move_unit(unit.id, -1, 0).reason == FailureReason.OUT_OF_BOUNDS


def test_found_city_with_settler(world, recorder):
    api = api_for(world)
    settler = world.create_unit(UnitType.SETTLER, 0, 4, 4)
    outcome = api.found_city_with_settler(settler.id, "Roma")
    assert outcome.success
    city = world.get_city(outcome.data["city_id"])
    assert city.name == "Roma"
    assert world.get_unit(settler.id) is None
    assert recorder.of_type(GameEventType.CITY_FOUNDED)


def test_military_unit_cannot_found_city(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 4, 4)
    assert api_for(world).found_city_with_settler(unit.id).reason == FailureReason.CANNOT_SETTLE


def test_set_city_production(world):
    api = api_for(world)
    city = world.found_city(0, 5, 5)
    assert api.set_city_production(city.id, "spaceship").reason == FailureReason.UNKNOWN_ITEM
    assert api.set_city_production(city.id, "phalanx").reason == FailureReason.MISSING_TECHNOLOGY

    assert api.set_city_production(city.id, "militia").success
    outcome = api.set_city_production(city.id, "settler", enqueue=True)
    assert outcome.success
    assert outcome.data["current_production"] == "unit:militia"
    assert outcome.data["queue"] == ["unit:settler"]


def test_city_of_other_civilization_rejected(world):
    city = world.found_city(1, 5, 5)
    outcome = api_for(world).set_city_production(city.id, "militia")
    assert outcome.reason == FailureReason.NOT_ACTIVE_CIVILIZATION


def test_remove_city_queue_item(world):
    api = api_for(world)
    city = world.found_city(0, 5, 5)
    api.set_city_production(city.id, "militia")
    api.set_city_production(city.id, "settler", enqueue=True)
    assert api.remove_city_queue_item(city.id, 3).reason == FailureReason.INVALID_INDEX
    assert api.remove_city_queue_item(city.id, 0).success
    assert city.build_queue == []


def test_purchase_city_production(world):
    api = api_for(world)
    city = world.found_city(0, 5, 5)
    world.get_civilization(0).gold = 100
    assert api.purchase_city_production(city.id, "militia").success
    assert world.get_civilization(0).gold == 90
    assert api.purchase_city_production(city.id, "militia").reason == FailureReason.ALREADY_PURCHASED


def test_set_research(world):
    api = api_for(world)
    assert api.set_research(0, "warp_drive").reason == FailureReason.TECHNOLOGY_NOT_FOUND
    assert api.set_research(0, "pottery").reason == FailureReason.ALREADY_RESEARCHED
    assert api.set_research(0, "mathematics").reason == FailureReason.MISSING_PREREQUISITE
    outcome = api.set_research(0, "bronze_working")
    assert outcome.success
    assert world.get_civilization(0).technology_manager.researching == "bronze_working"


def test_unit_orders(world):
    api = api_for(world)
    unit = world.create_unit(UnitType.MILITIA, 0, 3, 3)
    assert api.unit_sleep(unit.id).success
    assert unit.sleeping
    assert api.unit_wake(unit.id).success
    assert not unit.sleeping
    assert api.skip_unit(unit.id).success
    assert unit.skipped
    assert api.unit_fortify(unit.id).success
    assert unit.fortified


def test_fortify_after_moving_rejected(world):
    api = api_for(world)
    unit = world.create_unit(UnitType.MILITIA, 0, 3, 3)
    api.move_unit(unit.id, 4, 3)
    assert api.unit_fortify(unit.id).reason == FailureReason.ALREADY_MOVED


def test_build_improvement(world):
    api = api_for(world)
    settler = world.create_unit(UnitType.SETTLER, 0, 3, 3)
    militia = world.create_unit(UnitType.MILITIA, 0, 6, 6)
    assert api.build_improvement(settler.id, "aqueduct").reason == FailureReason.UNKNOWN_ITEM
    assert api.build_improvement(militia.id, "road").reason == FailureReason.CANNOT_WORK
    assert api.build_improvement(settler.id, ImprovementType.ROAD).success
    assert settler.work_target == ImprovementType.ROAD


def test_move_onto_enemy_attacks(world, recorder):
    api = api_for(world)
    attacker = world.create_unit(UnitType.MILITIA, 0, 3, 3)
    world.create_unit(UnitType.MILITIA, 1, 4, 3)
    outcome = api.move_unit(attacker.id, 4, 3)
    assert outcome.result != ActionResult.INVALID
    assert world.get_civilization(0).is_at_war_with(1)
    assert recorder.of_type(GameEventType.WAR_DECLARED)
    assert (recorder.of_type(GameEventType.COMBAT_VICTORY) or recorder.of_type(GameEventType.COMBAT_DEFEAT))


def test_next_turn_then_game_over():
    world = make_started_game()
    api = api_for(world)
    outcome = api.next_turn()
    assert outcome.success
    assert outcome.data["turn"] == 2

    world.end_game(0)
    outcome = api.next_turn()
    assert outcome.result == ActionResult.INVALID
    assert outcome.reason == FailureReason.GAME_OVER
    settler = world.get_unit_at(5, 5)
    assert api.found_city_with_settler(settler.id).reason == FailureReason.GAME_OVER


def test_action_log_records_every_command(world):
    api = api_for(world)
    unit = world.create_unit(UnitType.MILITIA, 0, 3, 3)
    api.move_unit(unit.id, 4, 3)
    api.move_unit("unit_missing", 1, 1)
    assert [entry["action_type"] for entry in world.action_log] == ["move_unit", "move_unit"]
    assert world.action_log[1]["data"]["outcome_reason"] == "unit_not_found"


def test_subscribe_forwards_events(world):
    api = api_for(world)
    seen = []
    api.subscribe(seen.append, GameEventType.CITY_FOUNDED)
    world.found_city(0, 5, 5)
    assert len(seen) == 1


def test_set_unit_goto(world):
    api = api_for(world)
    unit = world.create_unit(UnitType.MILITIA, 0, 1, 1)
    assert api.set_unit_goto(unit.id, 1, 1).reason == FailureReason.NO_PATH
    assert api.set_unit_goto(unit.id, 30, 1).reason == FailureReason.OUT_OF_BOUNDS
    outcome = api.set_unit_goto(unit.id, 4, 1)
    assert outcome.success
    assert unit.goto_path[-1] == (4, 1)

    unit.movement = unit.max_movement
    api.move_unit(unit.id, *unit.goto_path[0])
    assert unit.goto_path == []


def test_city_auto_production(world):
    api = api_for(world)
    city = world.found_city(0, 5, 5)
    outcome = api.set_city_auto_production(city.id)
    assert outcome.success
    assert city.auto_production
    assert city.current_production is not None
    assert outcome.data["current_production"] == str(city.current_production)

    assert api.set_city_auto_production(city.id, False).success
    assert not city.auto_production
