import random

import pytest

from hex_empires.core.enums import TerrainType, UnitType, BuildingType, FailureReason
from hex_empires.core.exceptions import CombatError
from hex_empires.entities.city import City
from hex_empires.entities.tile import Tile
from hex_empires.entities.unit import Unit
from hex_empires.game.events import GameEventType
from hex_empires.simulation.combat_system import (
    calculate_win_chance, get_attack_strength, get_defense_strength, resolve_combat
)


def test_win_chance_formula():
    assert calculate_win_chance(3, 1) == 0.75
    assert calculate_win_chance(1, 1) == 0.5
    assert calculate_win_chance(0, 2) == 0.0


def test_empirical_rate_converges():
    rng = random.Random(1234)
    grass = Tile(1, 0, TerrainType.GRASSLAND)
    town = City(id="c1", civilization_id=1, col=1, row=0, name="Town", population=3)
    fortified = Unit.create(UnitType.MILITIA, 1, 1, 0)
    fortified.fortified = True
    matchups = [
        (Unit.create(UnitType.LEGION, 0, 0, 0), Unit.create(UnitType.MILITIA, 1, 1, 0), grass, None),
        (Unit.create(UnitType.MILITIA, 0, 0, 0), Unit.create(UnitType.MILITIA, 1, 1, 0), grass, town),
        (Unit.create(UnitType.LEGION, 0, 0, 0), fortified, grass, town),
    ]
    for attacker, defender, tile, city in matchups:
        expected = resolve_combat(attacker, defender, tile, city, random.Random(0)).win_chance
        wins = sum(1 for _ in range(10000) if resolve_combat(attacker, defender, tile, city, rng).attacker_won)
        assert abs(wins / 10000 - expected) < 0.02


def test_strength_modifiers():
    veteran = Unit.create(UnitType.LEGION, 0, 0, 0, veteran=True)
    assert get_attack_strength(veteran) == 4.5

    defender = Unit.create(UnitType.MILITIA, 1, 0, 0)
    grass = Tile(0, 0, TerrainType.GRASSLAND)
    hills = Tile(0, 0, TerrainType.HILLS)
    assert get_defense_strength(defender, grass) == 1
    assert get_defense_strength(defender, hills) == 2.5

    small = City(id="c1", civilization_id=1, name="Small", population=3)
    large = City(id="c2", civilization_id=1, name="Large", population=8)
    assert get_defense_strength(defender, grass, small) == pytest.approx(2.8)
    assert get_defense_strength(defender, grass, large) == pytest.approx(3.7)

    defender.fortified = True
    assert get_defense_strength(defender, grass, small) == pytest.approx(4.2)

    small.buildings.append(BuildingType.CITY_WALLS)
    assert get_defense_strength(defender, grass, small) == pytest.approx((1 + 2 + 1.8) * 1.5)


def test_resolve_uses_single_draw():
    attacker = Unit.create(UnitType.LEGION, 0, 0, 0)
    defender = Unit.create(UnitType.MILITIA, 1, 1, 0)
    result = resolve_combat(attacker, defender, Tile(1, 0, TerrainType.GRASSLAND), None, random.Random(9))
    assert result.win_chance == 0.75
    assert result.attacker_won == (result.roll < 0.75)
    assert result.winner_id in (attacker.id, defender.id)


def test_same_owner_cannot_fight():
    a = Unit.create(UnitType.MILITIA, 0, 0, 0)
    b = Unit.create(UnitType.MILITIA, 0, 1, 0)
    with pytest.raises(CombatError):
        resolve_combat(a, b)


def test_attack_removes_loser_and_declares_war(world, recorder):
    attacker = world.create_unit(UnitType.LEGION, 0, 4, 4)
    defender = world.create_unit(UnitType.MILITIA, 1, 5, 4)
    outcome = attacker.attack_unit(defender, world)
    assert outcome.success
    assert world.get_civilization(0).is_at_war_with(1)
    assert world.get_civilization(1).is_at_war_with(0)

    if outcome.data["attacker_won"]:
        assert world.get_unit(defender.id) is None
        assert attacker.position == (5, 4)
        assert attacker.experience == 20
        assert recorder.of_type(GameEventType.COMBAT_VICTORY)
    else:
        assert world.get_unit(attacker.id) is None
        assert defender.experience == 10
        assert recorder.of_type(GameEventType.COMBAT_DEFEAT)
    assert attacker.movement == 0


def test_attack_is_reproducible_with_seed():
    from conftest import make_world

    outcomes = []
    for _ in range(2):
        world = make_world(seed=42)
        attacker = world.create_unit(UnitType.MILITIA, 0, 4, 4)
        defender = world.create_unit(UnitType.MILITIA, 1, 5, 4)
        outcomes.append(attacker.attack_unit(defender, world).data["roll"])
    assert outcomes[0] == outcomes[1]


def test_attack_rejections(world):
    attacker = world.create_unit(UnitType.MILITIA, 0, 4, 4)
    far = world.create_unit(UnitType.MILITIA, 1, 8, 8)
    friend = world.create_unit(UnitType.MILITIA, 0, 5, 4)
    settler = world.create_unit(UnitType.SETTLER, 0, 3, 4)
    assert attacker.attack_unit(far, world).reason == FailureReason.NOT_ADJACENT
    assert attacker.attack_unit(friend, world).reason == FailureReason.NOT_ENEMY
    assert settler.check_attack(far) == FailureReason.CANNOT_ATTACK
