"""OrderLedger: active orders, spawn cadence, timeouts and scoring."""
from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence

from config import (
    MAX_ACTIVE_ORDERS,
    MIN_SPAWN_INTERVAL,
    ORDER_SPAWN_INTERVAL,
    ORDER_TIMEOUT,
    PERFECT_RATIO_THRESHOLD,
    SPAWN_INTERVAL_REDUCTION,
    STARTING_LEVEL,
)
from game.entities import Order
from game.events import EventHub, OrderCompleted, OrderFailed, OrderSpawned
from recipe_catalog import RecipeDefinition

logger = logging.getLogger(__name__)


class OrderLedger:
    """Owns every active :class:`Order`.

    All mutations happen inside :meth:`tick` or the explicit
    complete/fail/spawn calls; none of them raise for state reasons.  Calls
    that do not apply (completing an order that is already gone, spawning
    with nothing eligible) are no-ops.
    """

    def __init__(
        self,
        recipes: Dict[str, RecipeDefinition] | Sequence[RecipeDefinition],
        hub: EventHub,
        *,
        rng: random.Random | None = None,
        max_active_orders: int = MAX_ACTIVE_ORDERS,
        spawn_interval: float = ORDER_SPAWN_INTERVAL,
        fallback_timeout: float = ORDER_TIMEOUT,
        spawn_interval_reduction: float = SPAWN_INTERVAL_REDUCTION,
        min_spawn_interval: float = MIN_SPAWN_INTERVAL,
        current_level: int = STARTING_LEVEL,
    ) -> None:
        pool = recipes.values() if isinstance(recipes, dict) else recipes
        self.recipes: List[RecipeDefinition] = list(pool)
        self.hub = hub
        self.rng = rng or random.Random()
        self.max_active_orders = max_active_orders
        self.spawn_interval = spawn_interval
        self.fallback_timeout = fallback_timeout
        self.spawn_interval_reduction = spawn_interval_reduction
        self.min_spawn_interval = min_spawn_interval
        self.current_level = current_level
        self.spawn_timer: float = 0.0
        self._active: List[Order] = []
        self._next_order_id = 1

    @property
    def active_orders(self) -> tuple[Order, ...]:
        return tuple(self._active)

    def is_active(self, order: Order) -> bool:
        return any(active is order for active in self._active)

    def eligible_recipes(self) -> List[RecipeDefinition]:
        return [recipe for recipe in self.recipes if recipe.min_level <= self.current_level]

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------

    def spawn_order(self) -> Optional[Order]:
        available = self.eligible_recipes()
        if not available:
            logger.warning(
                "No recipes available for level %d (%d in catalog); skipping spawn",
                self.current_level,
                len(self.recipes),
            )
            return None

        recipe = self.rng.choice(available)
        total_time = recipe.time_limit if recipe.time_limit > 0 else self.fallback_timeout
        order = Order(
            recipe=recipe,
            time_remaining=total_time,
            total_time=total_time,
            order_id=self._next_order_id,
        )
        self._next_order_id += 1
        self._active.append(order)
        logger.info("New order #%d: %s (%.1fs)", order.order_id, recipe.display_name, total_time)
        self.hub.publish(OrderSpawned(order))
        return order

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def score_for(self, order: Order) -> int:
        points = order.recipe.base_points
        if order.patience_ratio > PERFECT_RATIO_THRESHOLD:
            points += order.recipe.perfect_bonus
        return points

    def complete_order(self, order: Order) -> Optional[int]:
        if not self.is_active(order):
            return None
        score = self.score_for(order)
        self._remove(order)
        logger.info("Completed order #%d: %s (+%d)", order.order_id, order.recipe.display_name, score)
        self.hub.publish(OrderCompleted(order, score))
        return score

    def fail_order(self, order: Order) -> bool:
        if not self.is_active(order):
            return False
        self._remove(order)
        logger.info("Failed order #%d: %s", order.order_id, order.recipe.display_name)
        self.hub.publish(OrderFailed(order))
        return True

    def _remove(self, order: Order) -> None:
        self._active = [active for active in self._active if active is not order]

    def clear_all_orders(self) -> None:
        self._active = []

    # ------------------------------------------------------------------
    # Difficulty
    # ------------------------------------------------------------------

    def increase_difficulty(self) -> None:
        self.spawn_interval = max(self.spawn_interval - self.spawn_interval_reduction, self.min_spawn_interval)
        self.max_active_orders += 1
        logger.info(
            "Difficulty raised: spawn every %.1fs, up to %d orders",
            self.spawn_interval,
            self.max_active_orders,
        )

    # ------------------------------------------------------------------
    # Main tick
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> None:
        if dt < 0:
            return

        # Patience countdown
        expired: List[Order] = []
        for order in self._active:
            order.time_remaining = max(0.0, order.time_remaining - dt)
            if order.time_remaining <= 0:
                expired.append(order)
        for order in expired:
            self.fail_order(order)

        # Spawn cadence
        self.spawn_timer -= dt
        if self.spawn_timer <= 0 and len(self._active) < self.max_active_orders:
            self.spawn_order()
            self.spawn_timer = max(self.spawn_interval, self.min_spawn_interval)
