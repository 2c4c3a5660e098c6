"""Game constants for the Hex Empires engine."""

from .enums import UnitType


# Map Configuration Constants
DEFAULT_MAP_WIDTH = 40
DEFAULT_MAP_HEIGHT = 25
MIN_MAP_SIZE = 5
MAX_MAP_SIZE = 200
MAX_CIVILIZATIONS = 8

# Calendar
STARTING_YEAR = -4000
YEARS_PER_TURN = 20

# Starting conditions
INITIAL_GOLD = 50
STARTING_UNITS = (UnitType.SETTLER, UnitType.MILITIA)
STARTING_TECHNOLOGIES = ("pottery", "ceremonial_burial")
STARTING_RESEARCH = "alphabet"
START_POSITION_MARGIN = 5
MIN_START_DISTANCE = 10

# Terrain generation
NOISE_SCALE = 0.05
NOISE_OCTAVES = 3
TEMPERATURE_OFFSET = 1000
HUMIDITY_OFFSET = 2000
RESOURCE_CHANCE = 0.15
SMOOTHING_MIN_NEIGHBORS = 3

# Movement
ROAD_MOVEMENT_COST = 1 / 3
RAILROAD_MOVEMENT_COST = 0
DEFAULT_SIGHT_RANGE = 1
CITY_SIGHT_RANGE = 2

# Combat
VETERAN_MULTIPLIER = 1.5
FORTIFIED_MULTIPLIER = 1.5
SMALL_CITY_DEFENSE_BONUS = 1.8
LARGE_CITY_DEFENSE_BONUS = 2.7
LARGE_CITY_POPULATION = 8
CITY_WALLS_DEFENSE_BONUS = 2
ATTACKER_EXPERIENCE = 20
DEFENDER_EXPERIENCE = 10
VETERAN_EXPERIENCE = 100

# Cities
MIN_CITY_DISTANCE = 2
CITY_WORK_RADIUS = 2
CITY_CENTER_MIN_FOOD = 2
CITY_CENTER_MIN_PRODUCTION = 1
CITY_CENTER_MIN_TRADE = 1
BASE_MAX_POPULATION = 8
FOOD_PER_CITIZEN = 2
GROWTH_FOOD_PER_CITIZEN = 10
CORRUPTION_DISTANCE_DIVISOR = 20
GOLD_SHARE = 0.5

# Research
TECH_COST_PER_KNOWN = 2

# AI
SETTLER_SEARCH_RADIUS = 10
ENEMY_SEARCH_RADIUS = 5
EXPLORATION_RADIUS = 8
NEIGHBOR_RADIUS = 8
GOOD_SITE_MIN_DISTANCE = 3
GOOD_SITE_MIN_YIELD = 8
WAR_STRENGTH_MARGIN = 0.7
WAR_AGGRESSION_THRESHOLD = 7
MILITARY_NEED_THRESHOLD = 50
EXPANSION_NEED_THRESHOLD = 30
INFRASTRUCTURE_NEED_THRESHOLD = 20

# Civilization templates: name, leader, city names
CIVILIZATION_TEMPLATES = {
    "romans": {
        "name": "Romans",
        "leader": "Caesar",
        "cities": ["Rome", "Caesarea", "Carthage", "Nicopolis", "Byzantium", "Brundisium"],
    },
    "babylonians": {
        "name": "Babylonians",
        "leader": "Hammurabi",
        "cities": ["Babylon", "Lagash", "Nippur", "Ur", "Kish", "Uruk"],
    },
    "germans": {
        "name": "Germans",
        "leader": "Frederick",
        "cities": ["Berlin", "Leipzig", "Hamburg", "Bremen", "Frankfurt", "Bonn"],
    },
    "egyptians": {
        "name": "Egyptians",
        "leader": "Ramesses",
        "cities": ["Thebes", "Memphis", "Oryx", "Heliopolis", "Gaza", "Alexandria"],
    },
    "americans": {
        "name": "Americans",
        "leader": "Lincoln",
        "cities": ["Washington", "New York", "Boston", "Philadelphia", "Atlanta", "Chicago"],
    },
    "greeks": {
        "name": "Greeks",
        "leader": "Alexander",
        "cities": ["Athens", "Sparta", "Corinth", "Delphi", "Eretria", "Pharsalos"],
    },
}
