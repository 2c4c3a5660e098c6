import pytest

from hex_empires.core.enums import TerrainType, UnitType, ImprovementType, FailureReason
from hex_empires.entities.tile import TileImprovement
from hex_empires.entities.unit import Unit
from hex_empires.game.events import GameEventType

from conftest import make_world


def test_land_unit_cannot_enter_ocean(world):
    world.tiles[2][3].terrain = TerrainType.OCEAN
    unit = world.create_unit(UnitType.MILITIA, 0, 2, 2)
    outcome = unit.move_to(3, 2, world)
    assert not outcome.success
    assert outcome.reason == FailureReason.IMPASSABLE
    assert unit.position == (2, 2)
    assert unit.movement == 1


def test_move_updates_position_and_index(world, recorder):
    unit = world.create_unit(UnitType.MILITIA, 0, 2, 2)
    unit.fortified = True
    outcome = unit.move_to(3, 2, world)
    assert outcome.success
    assert unit.position == (3, 2)
    assert world.get_unit_at(3, 2) is unit
    assert world.get_unit_at(2, 2) is None
    assert not unit.fortified
    assert unit.movement == pytest.approx(0.2)
    assert recorder.of_type(GameEventType.UNIT_MOVED)[-1]["to_position"] == (3, 2)


def test_move_rejections(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 2, 2)
    world.create_unit(UnitType.MILITIA, 0, 3, 2)
    world.create_unit(UnitType.MILITIA, 1, 1, 2)
    assert unit.can_move_to(5, 5, world) == FailureReason.NOT_ADJACENT
    assert unit.can_move_to(3, 2, world) == FailureReason.OCCUPIED
    assert unit.can_move_to(1, 2, world) == FailureReason.ENEMY_PRESENT
    assert unit.can_move_to(-1, 2, world) == FailureReason.OUT_OF_BOUNDS
    unit.movement = 0
    assert unit.can_move_to(2, 1, world) == FailureReason.NO_MOVES_LEFT


def test_roads_allow_three_steps(world):
    for col in range(2, 6):
        world.tiles[2][col].improvements.append(TileImprovement(ImprovementType.ROAD))
    unit = world.create_unit(UnitType.MILITIA, 0, 2, 2)
    for col in (3, 4, 5):
        assert unit.move_to(col, 2, world).success
    assert unit.position == (5, 2)
    assert not unit.has_moves_left()


def test_railroad_to_railroad_is_free(world):
    for col in (2, 3):
        tile = world.tiles[2][col]
        tile.improvements.append(TileImprovement(ImprovementType.ROAD))
        tile.improvements.append(TileImprovement(ImprovementType.RAILROAD))
    unit = world.create_unit(UnitType.MILITIA, 0, 2, 2)
    assert unit.step_cost(world, 3, 2) == 0
    assert unit.move_to(3, 2, world).success
    assert unit.movement == 1


def test_insufficient_movement_for_forest(world):
    world.tiles[2][3].terrain = TerrainType.FOREST
    unit = world.create_unit(UnitType.MILITIA, 0, 2, 2)
    unit.movement = 0.5
    assert unit.can_move_to(3, 2, world) == FailureReason.INSUFFICIENT_MOVEMENT


def test_fortify_toggle_and_already_moved(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 2, 2)
    assert unit.fortify(world).success
    assert unit.fortified and unit.movement == 0
    unit.start_turn(world)
    assert unit.fortify(world).success
    assert not unit.fortified

    mover = world.create_unit(UnitType.MILITIA, 0, 6, 6)
    mover.move_to(7, 6, world)
    outcome = mover.fortify(world)
    assert outcome.reason == FailureReason.ALREADY_MOVED


def test_sleeping_unit_wakes_when_enemy_adjacent(world):
    sleeper = world.create_unit(UnitType.MILITIA, 1, 4, 4)
    sleeper.sleep()
    intruder = world.create_unit(UnitType.MILITIA, 0, 6, 4)
    assert intruder.move_to(5, 4, world).success
    assert not sleeper.sleeping


def test_settle_founds_city_and_consumes_settler(world, recorder):
    settler = world.create_unit(UnitType.SETTLER, 0, 4, 4)
    outcome = settler.settle(world)
    assert outcome.success
    city = world.get_city_at(4, 4)
    assert city is not None and city.population == 1
    assert world.get_unit(settler.id) is None
    assert recorder.of_type(GameEventType.CITY_FOUNDED)


def test_settle_rules(world):
    world.found_city(0, 4, 4)
    near = world.create_unit(UnitType.SETTLER, 0, 5, 4)
    assert near.check_settle(world) == FailureReason.TOO_CLOSE_TO_CITY
    militia = world.create_unit(UnitType.MILITIA, 0, 8, 8)
    assert militia.check_settle(world) == FailureReason.CANNOT_SETTLE
    far = world.create_unit(UnitType.SETTLER, 0, 6, 4)
    assert far.check_settle(world) is None


def test_work_countdown_adds_improvement(world, recorder):
    settler = world.create_unit(UnitType.SETTLER, 0, 3, 3)
    assert settler.start_work(ImprovementType.ROAD, world).success
    assert settler.work_turns == 3
    for _ in range(3):
        settler.start_turn(world)
    assert world.get_tile(3, 3).has_improvement(ImprovementType.ROAD)
    assert not settler.is_working
    assert recorder.of_type(GameEventType.IMPROVEMENT_COMPLETED)


def test_work_time_scales_with_terrain(world):
    world.tiles[3][3].terrain = TerrainType.HILLS
    settler = world.create_unit(UnitType.SETTLER, 0, 3, 3)
    settler.start_work(ImprovementType.MINE, world)
    assert settler.work_turns == 10


def test_militia_cannot_work(world):
    militia = world.create_unit(UnitType.MILITIA, 0, 3, 3)
    assert militia.start_work(ImprovementType.ROAD, world).reason == FailureReason.CANNOT_WORK


def test_veteran_after_experience():
    unit = Unit.create(UnitType.MILITIA, 0, 0, 0)
    unit.gain_experience(60)
    assert not unit.veteran
    unit.gain_experience(40)
    assert unit.veteran


def test_round_trip_keeps_identity_and_movement(world):
    unit = world.create_unit(UnitType.CAVALRY, 1, 3, 4)
    unit.movement = 1.5
    restored = Unit.from_dict(unit.to_dict())
    assert restored.id == unit.id
    assert restored.unit_type == UnitType.CAVALRY
    assert restored.position == (3, 4)
    assert restored.movement == 1.5
    assert restored.max_movement == unit.max_movement


def test_naval_unit_stays_on_water():
    world = make_world(terrain=TerrainType.OCEAN)
    world.tiles[4][5].terrain = TerrainType.GRASSLAND
    boat = world.create_unit(UnitType.TRIREME, 0, 4, 4)
    assert boat.can_move_to(5, 4, world) == FailureReason.IMPASSABLE
    assert boat.move_to(3, 4, world).success


def test_goto_walks_one_step_per_turn_until_arrival(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 1, 1)
    outcome = unit.set_goto(4, 1, world)
    assert outcome.success
    assert outcome.data["steps_taken"] == 1
    assert len(unit.goto_path) == 2
    assert not unit.needs_orders()

    unit.start_turn(world)
    unit.start_turn(world)
    assert unit.position == (4, 1)
    assert unit.goto_path == []


def test_goto_dropped_when_path_blocked(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 1, 1)
    unit.set_goto(4, 1, world)
    blocked_at = unit.goto_path[0]
    world.create_unit(UnitType.MILITIA, 1, *blocked_at)
    position = unit.position
    unit.start_turn(world)
    assert unit.position == position
    assert unit.goto_path == []


def test_goto_rejections_and_cancellation(world):
    world.tiles[6][6].terrain = TerrainType.OCEAN
    unit = world.create_unit(UnitType.MILITIA, 0, 1, 1)
    assert unit.set_goto(6, 6, world).reason == FailureReason.NO_PATH
    assert unit.set_goto(20, 1, world).reason == FailureReason.OUT_OF_BOUNDS
    assert unit.position == (1, 1)

    unit.set_goto(1, 5, world)
    assert unit.goto_path
    unit.sleep()
    assert unit.goto_path == []


def test_goto_path_survives_round_trip(world):
    unit = world.create_unit(UnitType.MILITIA, 0, 1, 1)
    unit.set_goto(5, 5, world)
    restored = Unit.from_dict(unit.to_dict())
    assert restored.goto_path == unit.goto_path
