"""Tests for customer slots and the seating policy."""
from __future__ import annotations

import random
import unittest

from config import ANGRY_DEPARTURE_DELAY, HAPPY_DEPARTURE_DELAY
from game.customers import CustomerSlot, Seating
from game.entities import CustomerState, Order
from game.events import CustomerDeparting, CustomerLeft, EventHub, OrderAssigned
from game.orders import OrderLedger
from game.scheduler import Scheduler
from recipe_catalog import RecipeDefinition

RECIPE = RecipeDefinition(
    key="onigiri",
    display_name="Onigiri",
    ingredients=("rice",),
    steps=("boil",),
    time_limit=20.0,
)


def make_order(remaining=20.0, total=20.0) -> Order:
    return Order(recipe=RECIPE, time_remaining=remaining, total_time=total)


class SlotTestCase(unittest.TestCase):
    def setUp(self):
        self.hub = EventHub()
        self.scheduler = Scheduler()
        self.events = []
        for event_type in (OrderAssigned, CustomerDeparting, CustomerLeft):
            self.hub.subscribe(event_type, self.events.append)
        self.slot = CustomerSlot(0, self.hub, self.scheduler)


class TestCustomerSlot(SlotTestCase):
    def test_assign_moves_to_waiting(self):
        order = make_order()
        self.assertTrue(self.slot.assign_order(order))
        self.assertIs(CustomerState.WAITING, self.slot.state)
        self.assertIs(order, self.slot.order)
        self.assertEqual([OrderAssigned(self.slot, order)], self.events)

    def test_assign_requires_inactive(self):
        self.slot.assign_order(make_order())
        other = make_order()
        with self.assertLogs("game.customers", level="WARNING"):
            self.assertFalse(self.slot.assign_order(other))
        self.assertIsNot(other, self.slot.order)

    def test_patience_ratio_tracks_order(self):
        self.assertIsNone(self.slot.patience_ratio())
        order = make_order()
        self.slot.assign_order(order)
        self.assertEqual(1.0, self.slot.patience_ratio())
        self.assertEqual("happy", self.slot.mood)
        order.time_remaining = 8.0
        self.assertAlmostEqual(0.4, self.slot.patience_ratio())
        self.assertEqual("warn", self.slot.mood)
        order.time_remaining = 2.0
        self.assertEqual("angry", self.slot.mood)

    def test_deliver_departs_happy_then_goes_inactive(self):
        self.slot.assign_order(make_order())
        self.assertTrue(self.slot.deliver_order())
        self.assertIs(CustomerState.DEPARTING_HAPPY, self.slot.state)
        self.assertIsNone(self.slot.order)
        self.assertIsNone(self.slot.patience_ratio())
        self.scheduler.tick(1.0)
        self.assertIs(CustomerState.DEPARTING_HAPPY, self.slot.state)
        self.scheduler.tick(HAPPY_DEPARTURE_DELAY - 1.0)
        self.assertIs(CustomerState.INACTIVE, self.slot.state)
        self.assertEqual(CustomerLeft(self.slot), self.events[-1])

    def test_deliver_requires_waiting(self):
        self.assertFalse(self.slot.deliver_order())
        self.assertIs(CustomerState.INACTIVE, self.slot.state)

    def test_timeout_requires_expired_order(self):
        order = make_order()
        self.slot.assign_order(order)
        self.assertFalse(self.slot.timeout())
        self.assertIs(CustomerState.WAITING, self.slot.state)
        order.time_remaining = 0.0
        self.assertTrue(self.slot.timeout())
        self.assertIs(CustomerState.DEPARTING_ANGRY, self.slot.state)
        self.assertIsNone(self.slot.order)

    def test_angry_departure_is_shorter(self):
        order = make_order()
        self.slot.assign_order(order)
        order.time_remaining = 0.0
        self.slot.timeout()
        self.scheduler.tick(ANGRY_DEPARTURE_DELAY)
        self.assertIs(CustomerState.INACTIVE, self.slot.state)
        self.assertIn(CustomerDeparting(self.slot, False), self.events)

    def test_second_deliver_while_departing_is_rejected(self):
        self.slot.assign_order(make_order())
        self.slot.deliver_order()
        self.assertFalse(self.slot.deliver_order())
        self.assertFalse(self.slot.timeout())
        self.assertEqual(1, self.scheduler.pending_count)

    def test_reset_cancels_pending_departure(self):
        self.slot.assign_order(make_order())
        self.slot.deliver_order()
        self.slot.reset()
        self.assertIs(CustomerState.INACTIVE, self.slot.state)
        self.assertFalse(self.slot.departure_pending)
        self.slot.assign_order(make_order())
        self.scheduler.tick(10.0)
        self.assertIs(CustomerState.WAITING, self.slot.state)
        self.assertNotIn(CustomerLeft(self.slot), self.events)


class TestSeating(unittest.TestCase):
    def setUp(self):
        self.hub = EventHub()
        self.scheduler = Scheduler()
        self.seating = Seating(self.hub, self.scheduler, slot_count=2)
        self.ledger = OrderLedger([RECIPE], self.hub, rng=random.Random(1), max_active_orders=5)

    def test_spawned_orders_fill_lowest_free_slot(self):
        first = self.ledger.spawn_order()
        second = self.ledger.spawn_order()
        self.assertIs(first, self.seating.slots[0].order)
        self.assertIs(second, self.seating.slots[1].order)

    def test_overflow_orders_queue_until_a_slot_frees(self):
        first = self.ledger.spawn_order()
        self.ledger.spawn_order()
        third = self.ledger.spawn_order()
        self.assertEqual([third], list(self.seating.queue))

        self.ledger.complete_order(first)
        self.assertIs(CustomerState.DEPARTING_HAPPY, self.seating.slots[0].state)
        self.scheduler.tick(HAPPY_DEPARTURE_DELAY)
        self.assertIs(third, self.seating.slots[0].order)
        self.assertEqual(0, len(self.seating.queue))

    def test_timed_out_order_makes_customer_leave_angry(self):
        order = self.ledger.spawn_order()
        self.ledger.spawn_timer = 100.0
        self.ledger.tick(RECIPE.time_limit)
        slot = self.seating.slots[0]
        self.assertIs(CustomerState.DEPARTING_ANGRY, slot.state)
        self.assertFalse(self.ledger.is_active(order))

    def test_explicit_fail_clears_the_seat(self):
        order = self.ledger.spawn_order()
        self.ledger.fail_order(order)
        self.assertIs(CustomerState.INACTIVE, self.seating.slots[0].state)

    def test_explicit_fail_seats_next_without_warning(self):
        first = self.ledger.spawn_order()
        self.ledger.spawn_order()
        queued = self.ledger.spawn_order()
        with self.assertNoLogs("game.customers", level="WARNING"):
            self.ledger.fail_order(first)
        self.assertIs(queued, self.seating.slots[0].order)
        self.assertIs(CustomerState.WAITING, self.seating.slots[0].state)

    def test_queued_order_that_fails_leaves_queue(self):
        self.ledger.spawn_order()
        self.ledger.spawn_order()
        queued = self.ledger.spawn_order()
        self.ledger.fail_order(queued)
        self.assertEqual(0, len(self.seating.queue))

    def test_close_unsubscribes_and_resets(self):
        self.ledger.spawn_order()
        self.seating.close()
        self.assertTrue(all(slot.is_free for slot in self.seating.slots))
        self.ledger.spawn_order()
        self.assertTrue(all(slot.is_free for slot in self.seating.slots))


if __name__ == "__main__":
    unittest.main()
