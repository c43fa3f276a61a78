"""Core dataclasses and state enums for the kitchen session."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from config import URGENT_RATIO_THRESHOLD
from recipe_catalog import RecipeDefinition


class StationState(str, Enum):
    IDLE = "idle"
    COOKING = "cooking"
    READY = "ready"


class CustomerState(str, Enum):
    INACTIVE = "inactive"
    WAITING = "waiting"
    DEPARTING_HAPPY = "departing_happy"
    DEPARTING_ANGRY = "departing_angry"


class GameState(str, Enum):
    MAIN_MENU = "main_menu"
    PLAYING = "playing"
    PAUSED = "paused"
    LEVEL_COMPLETE = "level_complete"
    GAME_OVER = "game_over"


@dataclass(eq=False)
class Order:
    """A customer order waiting to be fulfilled.

    Orders compare by identity: two orders for the same recipe spawned at the
    same moment are still different orders.
    """

    recipe: RecipeDefinition
    time_remaining: float
    total_time: float
    order_id: int = 0

    @property
    def patience_ratio(self) -> float:
        if self.total_time <= 0:
            return 0.0
        return self.time_remaining / self.total_time

    @property
    def is_urgent(self) -> bool:
        return self.patience_ratio < URGENT_RATIO_THRESHOLD


@dataclass(frozen=True)
class Dish:
    """What a station hands back once its cook cycle is done."""

    ingredient: str
    step: str


@dataclass
class SessionStats:
    spawned: int = 0
    completed: int = 0
    failed: int = 0
    perfect: int = 0
    coins_earned: int = 0
    levels: list[int] = field(default_factory=list)
