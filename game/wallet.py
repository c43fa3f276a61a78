"""Persistent coin and gem balance."""
from __future__ import annotations

import logging

from config import COINS_KEY, GEMS_KEY, STARTING_COINS, STARTING_GEMS
from game.events import EventHub, PurchaseCompleted, WalletChanged
from game.store import MemoryStore

logger = logging.getLogger(__name__)


class Wallet:
    """Coins and gems, written through to the store on every change.

    Balances only move through the add/spend/purchase methods, each of which
    runs its check and its update under the store lock.
    """

    def __init__(
        self,
        store: MemoryStore,
        hub: EventHub,
        *,
        starting_coins: int = STARTING_COINS,
        starting_gems: int = STARTING_GEMS,
    ) -> None:
        self.store = store
        self.hub = hub
        self.starting_coins = starting_coins
        self.starting_gems = starting_gems
        self._lock = store.lock
        self._coins = max(0, store.get_int(COINS_KEY, starting_coins))
        self._gems = max(0, store.get_int(GEMS_KEY, starting_gems))
        if not (store.has(COINS_KEY) and store.has(GEMS_KEY)):
            self._commit(self._coins, self._gems)

    @property
    def coins(self) -> int:
        return self._coins

    @property
    def gems(self) -> int:
        return self._gems

    # ------------------------------------------------------------------
    # Coins / gems
    # ------------------------------------------------------------------

    def add_coins(self, amount: int) -> bool:
        return self._add(amount, 0)

    def add_gems(self, amount: int) -> bool:
        return self._add(0, amount)

    def spend_coins(self, amount: int) -> bool:
        return self._spend(amount, 0)

    def spend_gems(self, amount: int) -> bool:
        return self._spend(0, amount)

    def try_purchase(self, item_id: str, coin_cost: int, gem_cost: int = 0) -> bool:
        if not self._spend(coin_cost, gem_cost):
            logger.info("Purchase of %s refused (%dc + %dg)", item_id, coin_cost, gem_cost)
            return False
        logger.info("Purchased %s for %dc + %dg", item_id, coin_cost, gem_cost)
        self.hub.publish(PurchaseCompleted(item_id, coin_cost, gem_cost))
        return True

    def reset_wallet(self) -> bool:
        with self._lock:
            if not self._commit(self.starting_coins, self.starting_gems):
                return False
            self._notify()
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _add(self, coins: int, gems: int) -> bool:
        if coins < 0 or gems < 0:
            logger.warning("Refusing negative credit (%dc, %dg)", coins, gems)
            return False
        with self._lock:
            if not self._commit(self._coins + coins, self._gems + gems):
                return False
            self._notify()
        return True

    def _spend(self, coins: int, gems: int) -> bool:
        if coins < 0 or gems < 0:
            logger.warning("Refusing negative spend (%dc, %dg)", coins, gems)
            return False
        with self._lock:
            if self._coins < coins or self._gems < gems:
                logger.info("Insufficient funds: need %dc + %dg, have %dc + %dg", coins, gems, self._coins, self._gems)
                return False
            if not self._commit(self._coins - coins, self._gems - gems):
                return False
            self._notify()
        return True

    def _commit(self, coins: int, gems: int) -> bool:
        # Balances only change once the store has them on disk.
        if not self.store.commit({COINS_KEY: coins, GEMS_KEY: gems}):
            logger.warning("Wallet unchanged at %dc + %dg", self._coins, self._gems)
            return False
        self._coins = coins
        self._gems = gems
        return True

    def _notify(self) -> None:
        self.hub.publish(WalletChanged(self._coins, self._gems))
