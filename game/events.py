"""Event types and the synchronous publish/subscribe hub.

Every event is a small frozen dataclass.  Handlers subscribe per event type
and are called in subscription order, synchronously, inside ``publish``.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Type, TypeVar

if TYPE_CHECKING:
    from chapter_catalog import ChapterDefinition
    from game.customers import CustomerSlot
    from game.entities import GameState, Order
    from game.stations import StationController

logger = logging.getLogger(__name__)

E = TypeVar("E")
Handler = Callable[[Any], None]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrderSpawned:
    order: "Order"


@dataclass(frozen=True)
class OrderCompleted:
    order: "Order"
    score: int


@dataclass(frozen=True)
class OrderFailed:
    order: "Order"


# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CookingStarted:
    station: "StationController"


@dataclass(frozen=True)
class CookingComplete:
    station: "StationController"


@dataclass(frozen=True)
class CookingCancelled:
    station: "StationController"


@dataclass(frozen=True)
class DishCollected:
    station: "StationController"


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrderAssigned:
    slot: "CustomerSlot"
    order: "Order"


@dataclass(frozen=True)
class CustomerDeparting:
    slot: "CustomerSlot"
    happy: bool


@dataclass(frozen=True)
class CustomerLeft:
    slot: "CustomerSlot"


# ---------------------------------------------------------------------------
# Economy and progression
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WalletChanged:
    coins: int
    gems: int


@dataclass(frozen=True)
class PurchaseCompleted:
    item_id: str
    coin_cost: int
    gem_cost: int


@dataclass(frozen=True)
class ChapterUnlocked:
    chapter: "ChapterDefinition"


@dataclass(frozen=True)
class ChapterFirstRead:
    chapter: "ChapterDefinition"
    coin_reward: int
    gem_reward: int


@dataclass(frozen=True)
class ProgressChanged:
    unlocked: int
    read: int


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LevelCompleted:
    level: int


@dataclass(frozen=True)
class ScoreChanged:
    score: int


@dataclass(frozen=True)
class GameStateChanged:
    state: "GameState"


class Subscription:
    """Handle returned by :meth:`EventHub.subscribe`."""

    def __init__(self, hub: "EventHub", event_type: type, handler: Handler) -> None:
        self._hub = hub
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._hub._remove(self)


class EventHub:
    def __init__(self) -> None:
        self._channels: Dict[type, List[Subscription]] = defaultdict(list)

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Subscription:
        subscription = Subscription(self, event_type, handler)
        self._channels[event_type].append(subscription)
        return subscription

    def publish(self, event: object) -> None:
        # Snapshot so handlers may (un)subscribe while we dispatch.
        for subscription in list(self._channels.get(type(event), ())):
            if subscription.active:
                subscription.handler(event)

    def subscriber_count(self, event_type: type) -> int:
        return len(self._channels.get(event_type, ()))

    def _remove(self, subscription: Subscription) -> None:
        channel = self._channels.get(subscription.event_type)
        if channel and subscription in channel:
            channel.remove(subscription)
            logger.debug("Unsubscribed %r from %s", subscription.handler, subscription.event_type.__name__)
