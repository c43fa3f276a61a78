"""Tests for the persistent wallet."""
from __future__ import annotations

import random
import unittest

from config import COINS_KEY, GEMS_KEY, STARTING_COINS, STARTING_GEMS
from game.events import EventHub, PurchaseCompleted, WalletChanged
from game.progression import ProgressionTracker
from game.store import JsonFileStore, MemoryStore
from game.wallet import Wallet


class WalletTestCase(unittest.TestCase):
    def setUp(self):
        self.hub = EventHub()
        self.events = []
        self.hub.subscribe(WalletChanged, self.events.append)
        self.hub.subscribe(PurchaseCompleted, self.events.append)
        self.store = MemoryStore()

    def wallet(self, coins=None, gems=None) -> Wallet:
        if coins is not None:
            self.store.set_int(COINS_KEY, coins)
        if gems is not None:
            self.store.set_int(GEMS_KEY, gems)
        return Wallet(self.store, self.hub)


class TestInitialization(WalletTestCase):
    def test_seeds_starting_balance_when_store_empty(self):
        wallet = self.wallet()
        self.assertEqual(STARTING_COINS, wallet.coins)
        self.assertEqual(STARTING_GEMS, wallet.gems)
        self.assertEqual(STARTING_COINS, self.store.get_int(COINS_KEY, -1))

    def test_loads_existing_balance(self):
        wallet = self.wallet(coins=30, gems=2)
        self.assertEqual(30, wallet.coins)
        self.assertEqual(2, wallet.gems)

    def test_corrupt_balance_falls_back_to_starting_value(self):
        self.store = MemoryStore({COINS_KEY: "many", GEMS_KEY: 3})
        wallet = Wallet(self.store, self.hub)
        self.assertEqual(STARTING_COINS, wallet.coins)
        self.assertEqual(3, wallet.gems)


class TestAddAndSpend(WalletTestCase):
    def test_add_coins_persists_and_notifies(self):
        wallet = self.wallet(coins=0, gems=0)
        self.assertTrue(wallet.add_coins(25))
        self.assertEqual(25, wallet.coins)
        self.assertEqual(25, self.store.get_int(COINS_KEY, 0))
        self.assertEqual([WalletChanged(25, 0)], self.events)

    def test_add_gems(self):
        wallet = self.wallet(coins=0, gems=1)
        wallet.add_gems(4)
        self.assertEqual(5, self.store.get_int(GEMS_KEY, 0))

    def test_negative_credit_is_refused(self):
        wallet = self.wallet(coins=10, gems=0)
        with self.assertLogs("game.wallet", level="WARNING"):
            self.assertFalse(wallet.add_coins(-50))
        self.assertEqual(10, wallet.coins)

    def test_spend_more_than_balance_fails(self):
        wallet = self.wallet(coins=30, gems=0)
        self.assertFalse(wallet.spend_coins(50))
        self.assertEqual(30, wallet.coins)
        self.assertEqual(30, self.store.get_int(COINS_KEY, 0))
        self.assertEqual([], self.events)

    def test_spend_exact_balance(self):
        wallet = self.wallet(coins=30, gems=4)
        self.assertTrue(wallet.spend_coins(30))
        self.assertTrue(wallet.spend_gems(4))
        self.assertEqual((0, 0), (wallet.coins, wallet.gems))
        self.assertEqual(WalletChanged(0, 0), self.events[-1])

    def test_negative_spend_is_refused(self):
        wallet = self.wallet(coins=30, gems=0)
        self.assertFalse(wallet.spend_coins(-5))
        self.assertEqual(30, wallet.coins)


class TestPurchase(WalletTestCase):
    def test_purchase_fails_without_partial_deduction(self):
        wallet = self.wallet(coins=15, gems=10)
        self.assertFalse(wallet.try_purchase("hat", coin_cost=20, gem_cost=5))
        self.assertEqual((15, 10), (wallet.coins, wallet.gems))
        self.assertEqual([], self.events)

    def test_purchase_fails_when_gems_short(self):
        wallet = self.wallet(coins=100, gems=1)
        self.assertFalse(wallet.try_purchase("apron", coin_cost=10, gem_cost=5))
        self.assertEqual((100, 1), (wallet.coins, wallet.gems))

    def test_purchase_deducts_both(self):
        wallet = self.wallet(coins=50, gems=10)
        self.assertTrue(wallet.try_purchase("hat", coin_cost=20, gem_cost=5))
        self.assertEqual((30, 5), (wallet.coins, wallet.gems))
        self.assertEqual([WalletChanged(30, 5), PurchaseCompleted("hat", 20, 5)], self.events)

    def test_reset_wallet(self):
        wallet = self.wallet(coins=3, gems=0)
        wallet.reset_wallet()
        self.assertEqual((STARTING_COINS, STARTING_GEMS), (wallet.coins, wallet.gems))


class TestNeverNegative(WalletTestCase):
    def test_random_operation_sequence_keeps_balances_non_negative(self):
        rng = random.Random(11)
        wallet = self.wallet(coins=20, gems=5)
        for _ in range(500):
            op = rng.choice(["add_c", "add_g", "spend_c", "spend_g", "buy"])
            amount = rng.randint(-10, 40)
            if op == "add_c":
                wallet.add_coins(amount)
            elif op == "add_g":
                wallet.add_gems(amount)
            elif op == "spend_c":
                wallet.spend_coins(amount)
            elif op == "spend_g":
                wallet.spend_gems(amount)
            else:
                wallet.try_purchase("item", amount, rng.randint(0, 10))
            self.assertGreaterEqual(wallet.coins, 0)
            self.assertGreaterEqual(wallet.gems, 0)


def test_wallet_survives_restart(tmp_path):
    path = tmp_path / "prefs.json"
    hub = EventHub()
    wallet = Wallet(JsonFileStore(path), hub)
    wallet.add_coins(40)
    wallet.spend_gems(3)

    reloaded = Wallet(JsonFileStore(path), hub)

    assert reloaded.coins == STARTING_COINS + 40
    assert reloaded.gems == STARTING_GEMS - 3


def test_failed_save_leaves_balance_unchanged(tmp_path):
    path = tmp_path / "prefs.json"
    store = JsonFileStore(path)
    hub = EventHub()
    changes = []
    hub.subscribe(WalletChanged, changes.append)
    wallet = Wallet(store, hub)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store.path = blocker / "prefs.json"

    assert wallet.spend_coins(30) is False
    assert wallet.add_gems(5) is False
    assert wallet.reset_wallet() is False

    assert (wallet.coins, wallet.gems) == (STARTING_COINS, STARTING_GEMS)
    assert store.get_int(COINS_KEY, -1) == STARTING_COINS
    assert JsonFileStore(path).get_int(COINS_KEY, -1) == STARTING_COINS
    assert changes == []


def test_wallet_and_progress_share_the_store_lock():
    store = MemoryStore()
    hub = EventHub()
    wallet = Wallet(store, hub)
    tracker = ProgressionTracker([], store, hub)

    assert wallet._lock is store.lock
    assert tracker._lock is store.lock


if __name__ == "__main__":
    unittest.main()
