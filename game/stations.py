"""Cooking stations and their Idle -> Cooking -> Ready cycle."""
from __future__ import annotations

import logging
from typing import Optional

from config import CHOP, DEFAULT_COOK_DURATION
from game.entities import Dish, StationState
from game.events import CookingCancelled, CookingComplete, CookingStarted, DishCollected, EventHub

logger = logging.getLogger(__name__)


class StationController:
    """One physical cooking station.

    The station owns its state outright; nothing else reads or writes it
    except through the methods below.  Calls made in the wrong state return
    a falsy value and leave the station untouched.
    """

    def __init__(
        self,
        name: str,
        hub: EventHub,
        *,
        step: str = CHOP,
        cook_duration: float = DEFAULT_COOK_DURATION,
    ) -> None:
        self.name = name
        self.hub = hub
        self.step = step
        self.cook_duration = cook_duration
        self.state: StationState = StationState.IDLE
        self.cook_elapsed: float = 0.0
        self.ingredient: Optional[str] = None

    def __repr__(self) -> str:
        return f"StationController({self.name!r}, {self.state.value})"

    @property
    def cook_progress(self) -> float:
        if self.state is StationState.READY:
            return 1.0
        if self.state is StationState.COOKING and self.cook_duration > 0:
            return min(1.0, self.cook_elapsed / self.cook_duration)
        return 0.0

    def place_ingredient(self, item: str) -> bool:
        if self.state is not StationState.IDLE:
            logger.warning("%s: cannot place %s while %s", self.name, item, self.state.value)
            return False
        self.ingredient = item
        self.cook_elapsed = 0.0
        self.state = StationState.COOKING
        logger.debug("%s: cooking started (%s %s)", self.name, self.step, item)
        self.hub.publish(CookingStarted(self))
        return True

    def tick(self, dt: float) -> None:
        if self.state is not StationState.COOKING or dt < 0:
            return
        self.cook_elapsed += dt
        if self.cook_elapsed >= self.cook_duration:
            self.state = StationState.READY
            logger.debug("%s: cooking complete", self.name)
            self.hub.publish(CookingComplete(self))

    def collect_dish(self) -> Optional[Dish]:
        if self.state is not StationState.READY or self.ingredient is None:
            logger.warning("%s: nothing to collect while %s", self.name, self.state.value)
            return None
        dish = Dish(ingredient=self.ingredient, step=self.step)
        self._reset()
        self.hub.publish(DishCollected(self))
        return dish

    def cancel(self) -> Optional[str]:
        """Abort an in-progress cook and hand back the raw ingredient."""
        if self.state is not StationState.COOKING:
            return None
        ingredient = self.ingredient
        self._reset()
        logger.debug("%s: cooking cancelled", self.name)
        self.hub.publish(CookingCancelled(self))
        return ingredient

    def _reset(self) -> None:
        self.ingredient = None
        self.cook_elapsed = 0.0
        self.state = StationState.IDLE
