"""
Combat System Module for Hex Empires

This module handles combat resolution between two adjacent units:
- Attack and defense strength, including veteran, fortified, terrain,
  fortress, city walls and city size modifiers
- Win probability a / (a + d)
- A single draw from the game's seeded RNG decides the winner
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging
import random

from ..core.enums import BuildingType
from ..core.exceptions import CombatError
from ..core.constants import (
    VETERAN_MULTIPLIER, FORTIFIED_MULTIPLIER, SMALL_CITY_DEFENSE_BONUS,
    LARGE_CITY_DEFENSE_BONUS, LARGE_CITY_POPULATION
)


@dataclass
class CombatResult:
    """Outcome of one resolved attack."""
    attacker_id: str
    defender_id: str
    attack_strength: float
    defense_strength: float
    win_chance: float
    roll: float
    attacker_won: bool

    @property
    def winner_id(self) -> str:
        return self.attacker_id if self.attacker_won else self.defender_id

    @property
    def loser_id(self) -> str:
        return self.defender_id if self.attacker_won else self.attacker_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attacker_id": self.attacker_id,
            "defender_id": self.defender_id,
            "attack_strength": self.attack_strength,
            "defense_strength": self.defense_strength,
            "win_chance": self.win_chance,
            "roll": self.roll,
            "attacker_won": self.attacker_won,
            "winner_id": self.winner_id,
        }


def get_attack_strength(unit) -> float:
    """Unit attack, x1.5 for veterans."""
    strength = float(unit.attack)
    if unit.veteran:
        strength *= VETERAN_MULTIPLIER
    return strength


def get_city_defense_bonus(city) -> float:
    """Flat bonus for defending inside a city; larger cities defend better."""
    if city is None:
        return 0.0
    if city.population >= LARGE_CITY_POPULATION:
        return LARGE_CITY_DEFENSE_BONUS
    return SMALL_CITY_DEFENSE_BONUS


def get_defense_strength(unit, tile=None, city=None) -> float:
    """Defense plus tile and city bonuses; the whole sum x1.5 when fortified."""
    strength = float(unit.defense)
    if unit.veteran:
        strength *= VETERAN_MULTIPLIER
    if tile is not None:
        walls = city is not None and city.has_building(BuildingType.CITY_WALLS)
        strength += tile.get_defense_bonus(walls=walls)
    strength += get_city_defense_bonus(city)
    if unit.fortified:
        strength *= FORTIFIED_MULTIPLIER
    return strength


def calculate_win_chance(attack: float, defense: float) -> float:
    """Probability that the attacker wins; 0 when it has no attack."""
    if attack <= 0:
        return 0.0
    return attack / (attack + defense)


def resolve_combat(attacker, defender, tile=None, city=None,
                   rng: Optional[random.Random] = None) -> CombatResult:
    """Resolve an attack with one draw from ``rng``.

    The caller applies the consequences (removing the loser, experience,
    occupying the tile); this function only decides the winner.
    """
    if attacker.civilization_id == defender.civilization_id:
        raise CombatError("Units of the same civilization cannot fight",
                          error_code="SAME_OWNER",
                          context={"attacker": attacker.id, "defender": defender.id})
    rng = rng or random.Random()

    attack = get_attack_strength(attacker)
    defense = get_defense_strength(defender, tile, city)
    chance = calculate_win_chance(attack, defense)
    roll = rng.random()
    result = CombatResult(attacker.id, defender.id, attack, defense, chance, roll, roll < chance)

    logging.debug(f"Combat {attacker.id} ({attack:.2f}) vs {defender.id} ({defense:.2f}): "
                  f"chance={chance:.3f} roll={roll:.3f} attacker_won={result.attacker_won}")
    return result
