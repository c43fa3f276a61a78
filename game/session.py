"""KitchenSession: the one context object that owns a running service.

Create one per process (or per test) and hand it to whatever needs the
components.  It wires the event subscriptions between them and drives the
frame loop.
"""
from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from chapter_catalog import ChapterDefinition, load_chapter_catalog
from config import (
    BASE_DIFFICULTY,
    CHAPTERS_FILE,
    CUSTOMER_SLOT_COUNT,
    DIFFICULTY_INCREMENT,
    EVENT_LOG_LIMIT,
    RECIPES_FILE,
    STARTING_LEVEL,
    STATION_LAYOUT,
)
from game.customers import CustomerSlot, Seating
from game.entities import GameState, Order, SessionStats
from game.events import (
    ChapterFirstRead,
    ChapterUnlocked,
    EventHub,
    GameStateChanged,
    LevelCompleted,
    OrderCompleted,
    OrderFailed,
    OrderSpawned,
    ScoreChanged,
    Subscription,
)
from game.orders import OrderLedger
from game.progression import ProgressionTracker
from game.scheduler import Scheduler
from game.stations import StationController
from game.store import MemoryStore
from game.wallet import Wallet
from recipe_catalog import RecipeDefinition, load_recipe_catalog

logger = logging.getLogger(__name__)


class KitchenSession:
    """Tick-based restaurant service.

    All time-driven state changes happen inside :meth:`tick`, which only
    advances while the game state is ``PLAYING``.  Each frame runs deferred
    callbacks first, then the order ledger, then the stations.
    """

    def __init__(
        self,
        *,
        recipes: Dict[str, RecipeDefinition] | Sequence[RecipeDefinition] | None = None,
        chapters: Iterable[ChapterDefinition] | None = None,
        store: MemoryStore | None = None,
        seed: int | None = 7,
        station_layout: Sequence[tuple[str, str, float]] = STATION_LAYOUT,
        slot_count: int = CUSTOMER_SLOT_COUNT,
        ledger_options: Dict[str, Any] | None = None,
    ) -> None:
        self.hub = EventHub()
        self.scheduler = Scheduler()
        self.store = store if store is not None else MemoryStore()
        self.rng = random.Random(seed)
        self.state: GameState = GameState.MAIN_MENU
        self.current_level: int = STARTING_LEVEL
        self.score: int = 0
        self.time: float = 0.0
        self.stats = SessionStats()
        self.completed_levels: set[int] = set()
        self.event_log: List[str] = []
        self.closed = False

        self.wallet = Wallet(self.store, self.hub)
        self.progression = ProgressionTracker(
            chapters if chapters is not None else load_chapter_catalog(), self.store, self.hub
        )
        self.ledger = OrderLedger(
            recipes if recipes is not None else load_recipe_catalog(),
            self.hub,
            rng=self.rng,
            current_level=self.current_level,
            **(ledger_options or {}),
        )
        self.stations: List[StationController] = [
            StationController(name, self.hub, step=step, cook_duration=duration)
            for name, step, duration in station_layout
        ]
        self.seating = Seating(self.hub, self.scheduler, slot_count=slot_count)

        self._subscriptions: List[Subscription] = [
            self.hub.subscribe(OrderSpawned, self._on_order_spawned),
            self.hub.subscribe(OrderCompleted, self._on_order_completed),
            self.hub.subscribe(OrderFailed, self._on_order_failed),
            self.hub.subscribe(LevelCompleted, self._on_level_completed),
            self.hub.subscribe(ChapterUnlocked, self._on_chapter_unlocked),
            self.hub.subscribe(ChapterFirstRead, self._on_chapter_first_read),
        ]
        self._log_event("Kitchen opened")

    @classmethod
    def from_files(
        cls,
        store: MemoryStore,
        *,
        recipes_file: Path = RECIPES_FILE,
        chapters_file: Path = CHAPTERS_FILE,
        seed: int | None = 7,
    ) -> "KitchenSession":
        return cls(
            recipes=load_recipe_catalog(recipes_file),
            chapters=load_chapter_catalog(chapters_file),
            store=store,
            seed=seed,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def slots(self) -> List[CustomerSlot]:
        return self.seating.slots

    @property
    def current_difficulty(self) -> float:
        return BASE_DIFFICULTY + (self.current_level - 1) * DIFFICULTY_INCREMENT

    def station(self, name: str) -> Optional[StationController]:
        for station in self.stations:
            if station.name == name:
                return station
        return None

    def _log_event(self, message: str) -> None:
        self.event_log.append(message)
        self.event_log = self.event_log[-EVENT_LOG_LIMIT:]

    # ------------------------------------------------------------------
    # Game flow
    # ------------------------------------------------------------------

    def set_state(self, state: GameState) -> None:
        if state is self.state:
            return
        self.state = state
        logger.info("State -> %s", state.value)
        self.hub.publish(GameStateChanged(state))

    def start_level(self, level: int | None = None) -> None:
        if self.closed:
            logger.warning("Session already torn down; not starting level")
            return
        if level is not None:
            self.current_level = level
            self.ledger.current_level = level
        self.score = 0
        self.hub.publish(ScoreChanged(0))
        self.set_state(GameState.PLAYING)
        self._log_event(f"Level {self.current_level} started")

    def pause(self) -> None:
        if self.state is GameState.PLAYING:
            self.set_state(GameState.PAUSED)

    def resume(self) -> None:
        if self.state is GameState.PAUSED:
            self.set_state(GameState.PLAYING)

    def game_over(self) -> None:
        self.set_state(GameState.GAME_OVER)

    def complete_level(self) -> bool:
        """Finish the current level and move on to the next one."""
        level = self.current_level
        self.set_state(GameState.LEVEL_COMPLETE)
        return self.on_level_completed(level)

    def on_level_completed(self, level: int) -> bool:
        if level in self.completed_levels:
            logger.warning("Level %d already completed this session; ignoring", level)
            return False
        self.completed_levels.add(level)
        self.hub.publish(LevelCompleted(level))
        return True

    def add_score(self, points: int) -> None:
        self.score += points
        self.hub.publish(ScoreChanged(self.score))

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def serve(self, slot_index: int) -> Optional[int]:
        """Hand the waiting customer at ``slot_index`` their order."""
        if not 0 <= slot_index < len(self.slots):
            return None
        order = self.slots[slot_index].order
        if order is None:
            logger.warning("Slot %d has no order to serve", slot_index)
            return None
        return self.ledger.complete_order(order)

    def read_chapter(self, chapter_id: str) -> bool:
        return self.progression.mark_read(chapter_id)

    # ------------------------------------------------------------------
    # Main tick
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> None:
        if self.state is not GameState.PLAYING or dt < 0:
            return
        self.time += dt
        self.scheduler.tick(dt)
        self.ledger.tick(dt)
        for station in self.stations:
            station.tick(dt)

    def teardown(self) -> None:
        """Stop the service: cancel timers, clear orders, drop subscriptions."""
        self.set_state(GameState.MAIN_MENU)
        self.closed = True
        self.scheduler.cancel_all()
        self.seating.close()
        for station in self.stations:
            station.cancel()
        self.ledger.clear_all_orders()
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self._log_event("Kitchen closed")

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_order_spawned(self, event: OrderSpawned) -> None:
        self.stats.spawned += 1
        self._log_event(f"New order: {event.order.recipe.display_name}")

    def _on_order_completed(self, event: OrderCompleted) -> None:
        order: Order = event.order
        self.stats.completed += 1
        if event.score > order.recipe.base_points:
            self.stats.perfect += 1
        self.add_score(event.score)
        if order.recipe.coin_reward > 0 and self.wallet.add_coins(order.recipe.coin_reward):
            self.stats.coins_earned += order.recipe.coin_reward
        self._log_event(f"Served {order.recipe.display_name} (+{event.score})")

    def _on_order_failed(self, event: OrderFailed) -> None:
        self.stats.failed += 1
        self._log_event(f"Customer left: {event.order.recipe.display_name}")

    def _on_level_completed(self, event: LevelCompleted) -> None:
        self.stats.levels.append(event.level)
        self.ledger.increase_difficulty()
        self.progression.on_level_completed(event.level)
        self.current_level = max(self.current_level, event.level + 1)
        self.ledger.current_level = self.current_level
        logger.info("Level %d completed; next difficulty %.2f", event.level, self.current_difficulty)
        self._log_event(f"Level {event.level} complete")

    def _on_chapter_unlocked(self, event: ChapterUnlocked) -> None:
        self._log_event(f"Chapter unlocked: {event.chapter.title}")

    def _on_chapter_first_read(self, event: ChapterFirstRead) -> None:
        if event.coin_reward > 0:
            self.wallet.add_coins(event.coin_reward)
        if event.gem_reward > 0:
            self.wallet.add_gems(event.gem_reward)
        self._log_event(f"Read {event.chapter.title} (+{event.coin_reward}c +{event.gem_reward}g)")
