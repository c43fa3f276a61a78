from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

from config import CHOP, FRY, BOIL, BAKE, MIX, PLATE, GARNISH, RECIPES_FILE, STEP_TYPES

logger = logging.getLogger(__name__)

ITEM_ID_RE = re.compile(r"^[a-z][a-z0-9_]*$")
MAX_INGREDIENTS = 8
MAX_DIFFICULTY = 5


@dataclass(frozen=True)
class RecipeDefinition:
    """A dish customers can order.

    ``time_limit`` of ``0`` means the ledger's fallback timeout applies.
    ``min_level`` gates when the recipe starts appearing in orders.
    """

    key: str
    display_name: str
    ingredients: tuple[str, ...]
    steps: tuple[str, ...]
    base_points: int = 100
    perfect_bonus: int = 50
    time_limit: float = 60.0
    min_level: int = 1
    difficulty: int = 1
    coin_reward: int = 25


DEFAULT_RECIPE_DEFINITIONS: Dict[str, RecipeDefinition] = {
    "onigiri": RecipeDefinition(
        key="onigiri",
        display_name="Onigiri",
        ingredients=("rice", "nori"),
        steps=(BOIL, PLATE),
        base_points=80,
        perfect_bonus=40,
        time_limit=45.0,
        min_level=1,
        difficulty=1,
        coin_reward=15,
    ),
    "miso_soup": RecipeDefinition(
        key="miso_soup",
        display_name="Miso Soup",
        ingredients=("tofu", "miso", "scallion"),
        steps=(CHOP, BOIL),
        base_points=100,
        perfect_bonus=50,
        time_limit=50.0,
        min_level=1,
        difficulty=1,
        coin_reward=20,
    ),
    "tempura": RecipeDefinition(
        key="tempura",
        display_name="Shrimp Tempura",
        ingredients=("shrimp", "flour", "egg"),
        steps=(MIX, FRY, PLATE),
        base_points=150,
        perfect_bonus=75,
        time_limit=0.0,
        min_level=2,
        difficulty=3,
        coin_reward=35,
    ),
    "melon_pan": RecipeDefinition(
        key="melon_pan",
        display_name="Melon Pan",
        ingredients=("flour", "sugar", "butter"),
        steps=(MIX, BAKE, GARNISH),
        base_points=180,
        perfect_bonus=90,
        time_limit=70.0,
        min_level=3,
        difficulty=4,
        coin_reward=45,
    ),
}


def _is_valid_item_id(value: str) -> bool:
    return bool(ITEM_ID_RE.fullmatch(value))


def _coerce_str_list(value: Any) -> tuple[str, ...] | None:
    if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
        return None
    return tuple(value)


def _coerce_int(value: Any, *, minimum: int | None = None) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        result = value
    elif isinstance(value, float) and value.is_integer():
        result = int(value)
    else:
        return None

    if minimum is not None and result < minimum:
        return None
    return result


def _is_non_negative_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value >= 0


def _parse_recipe_entry(key: str, entry: Dict[str, Any]) -> RecipeDefinition | None:
    if not _is_valid_item_id(key):
        return None

    display_name = entry.get("display_name")
    base_points = _coerce_int(entry.get("base_points", 100), minimum=0)
    perfect_bonus = _coerce_int(entry.get("perfect_bonus", 0), minimum=0)
    time_limit = entry.get("time_limit", 0.0)
    min_level = _coerce_int(entry.get("min_level", 1), minimum=1)
    difficulty = _coerce_int(entry.get("difficulty", 1), minimum=1)
    coin_reward = _coerce_int(entry.get("coin_reward", 0), minimum=0)

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if base_points is None or perfect_bonus is None or coin_reward is None:
        return None
    if not _is_non_negative_number(time_limit):
        return None
    if min_level is None:
        return None
    if difficulty is None or difficulty > MAX_DIFFICULTY:
        return None

    ingredients = _coerce_str_list(entry.get("ingredients", []))
    steps = _coerce_str_list(entry.get("steps", []))
    if ingredients is None or steps is None:
        return None
    if not ingredients or len(ingredients) > MAX_INGREDIENTS:
        return None
    if not all(_is_valid_item_id(item) for item in ingredients):
        return None
    if not steps or not all(step in STEP_TYPES for step in steps):
        return None

    return RecipeDefinition(
        key=key,
        display_name=display_name.strip(),
        ingredients=ingredients,
        steps=steps,
        base_points=base_points,
        perfect_bonus=perfect_bonus,
        time_limit=float(time_limit),
        min_level=min_level,
        difficulty=difficulty,
        coin_reward=coin_reward,
    )


def _ordered_catalog(recipes: Iterable[RecipeDefinition]) -> Dict[str, RecipeDefinition]:
    ordered = sorted(recipes, key=lambda recipe: (recipe.min_level, recipe.key))
    return {recipe.key: recipe for recipe in ordered}


def load_recipe_catalog(path: Path = RECIPES_FILE) -> Dict[str, RecipeDefinition]:
    defaults = _ordered_catalog(DEFAULT_RECIPE_DEFINITIONS.values())
    if not path.exists():
        return defaults

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Recipe catalog %s unreadable (%s); using defaults", path, exc)
        return defaults

    if not isinstance(raw, dict):
        return defaults

    recipes: Dict[str, RecipeDefinition] = {}
    for key, entry in raw.items():
        if not isinstance(key, str) or not isinstance(entry, dict):
            continue
        recipe = _parse_recipe_entry(key, entry)
        if recipe is None:
            logger.warning("Skipping invalid recipe entry %r", key)
            continue
        recipes[key] = recipe

    if not recipes:
        return defaults

    return _ordered_catalog(recipes.values())
