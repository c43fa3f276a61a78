"""Service Rush game package.

Public API:
    from game import KitchenSession, OrderLedger, StationController, CustomerSlot, Wallet, ProgressionTracker
"""
from game.customers import CustomerSlot, Seating
from game.entities import CustomerState, Dish, GameState, Order, StationState
from game.events import EventHub
from game.orders import OrderLedger
from game.progression import ProgressionTracker
from game.scheduler import Scheduler
from game.session import KitchenSession
from game.stations import StationController
from game.store import JsonFileStore, MemoryStore
from game.wallet import Wallet

__all__ = [
    "CustomerSlot",
    "CustomerState",
    "Dish",
    "EventHub",
    "GameState",
    "JsonFileStore",
    "KitchenSession",
    "MemoryStore",
    "Order",
    "OrderLedger",
    "ProgressionTracker",
    "Scheduler",
    "Seating",
    "StationController",
    "StationState",
    "Wallet",
]
