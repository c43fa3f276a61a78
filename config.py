"""Centralised configuration constants for Service Rush."""
from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
STORE_FILE: Path = Path("service_rush_prefs.json")
RECIPES_FILE: Path = Path("data/recipes.json")
CHAPTERS_FILE: Path = Path("data/chapters.json")

# ---------------------------------------------------------------------------
# Cooking step vocabulary
# ---------------------------------------------------------------------------
CHOP: str = "chop"
BOIL: str = "boil"
FRY: str = "fry"
BAKE: str = "bake"
MIX: str = "mix"
PLATE: str = "plate"
GARNISH: str = "garnish"

STEP_TYPES: list[str] = [CHOP, BOIL, FRY, BAKE, MIX, PLATE, GARNISH]

# ---------------------------------------------------------------------------
# Order ledger tuning
# ---------------------------------------------------------------------------
MAX_ACTIVE_ORDERS: int = 3             # concurrent orders at level 1
ORDER_SPAWN_INTERVAL: float = 15.0     # seconds between order spawns
ORDER_TIMEOUT: float = 60.0            # fallback patience when a recipe has no time limit
SPAWN_INTERVAL_REDUCTION: float = 0.5  # seconds shaved off the interval per completed level
MIN_SPAWN_INTERVAL: float = 5.0        # floor for the spawn interval
PERFECT_RATIO_THRESHOLD: float = 0.5   # patience ratio above which the perfect bonus applies
URGENT_RATIO_THRESHOLD: float = 0.25   # patience ratio below which an order is urgent

# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------
DEFAULT_COOK_DURATION: float = 3.0

# (name, step type, cook duration) for the default kitchen
STATION_LAYOUT: list[tuple[str, str, float]] = [
    ("Cutting Board", CHOP, 2.0),
    ("Stove", FRY, 3.0),
    ("Pot", BOIL, 4.0),
    ("Oven", BAKE, 5.0),
]

# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------
CUSTOMER_SLOT_COUNT: int = 3
HAPPY_DEPARTURE_DELAY: float = 1.5     # seconds a served customer lingers
ANGRY_DEPARTURE_DELAY: float = 1.0     # seconds a timed-out customer lingers
PATIENCE_WARN_RATIO: float = 0.5
PATIENCE_ANGRY_RATIO: float = 0.25

# ---------------------------------------------------------------------------
# Economy
# ---------------------------------------------------------------------------
STARTING_COINS: int = 100
STARTING_GEMS: int = 10

# ---------------------------------------------------------------------------
# Durable store keys
# ---------------------------------------------------------------------------
COINS_KEY: str = "coins"
GEMS_KEY: str = "gems"
UNLOCKED_CHAPTERS_KEY: str = "manga_unlocked"
READ_CHAPTERS_KEY: str = "manga_read"
CHAPTER_ID_SEPARATOR: str = ","

# ---------------------------------------------------------------------------
# Level progression
# ---------------------------------------------------------------------------
STARTING_LEVEL: int = 1
BASE_DIFFICULTY: float = 1.0
DIFFICULTY_INCREMENT: float = 0.15     # difficulty multiplier gained per level

# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
EVENT_LOG_LIMIT: int = 12
