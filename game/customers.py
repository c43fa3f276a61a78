"""Customer slots and the policy that seats orders in them."""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional

from config import (
    ANGRY_DEPARTURE_DELAY,
    CUSTOMER_SLOT_COUNT,
    HAPPY_DEPARTURE_DELAY,
    PATIENCE_ANGRY_RATIO,
    PATIENCE_WARN_RATIO,
)
from game.entities import CustomerState, Order
from game.events import (
    CustomerDeparting,
    CustomerLeft,
    EventHub,
    OrderAssigned,
    OrderCompleted,
    OrderFailed,
    OrderSpawned,
    Subscription,
)
from game.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class CustomerSlot:
    """A seat at the counter showing one order and its patience.

    The slot never owns its order; it keeps a reference only while
    ``WAITING`` and drops it the moment it starts to depart.
    """

    def __init__(
        self,
        index: int,
        hub: EventHub,
        scheduler: Scheduler,
        *,
        happy_delay: float = HAPPY_DEPARTURE_DELAY,
        angry_delay: float = ANGRY_DEPARTURE_DELAY,
    ) -> None:
        self.index = index
        self.hub = hub
        self.scheduler = scheduler
        self.happy_delay = happy_delay
        self.angry_delay = angry_delay
        self.state: CustomerState = CustomerState.INACTIVE
        self.order: Optional[Order] = None
        self._departure: Optional[ScheduledTask] = None

    def __repr__(self) -> str:
        return f"CustomerSlot({self.index}, {self.state.value})"

    @property
    def is_free(self) -> bool:
        return self.state is CustomerState.INACTIVE

    @property
    def departure_pending(self) -> bool:
        return self._departure is not None and self._departure.pending

    def patience_ratio(self) -> Optional[float]:
        if self.state is not CustomerState.WAITING or self.order is None:
            return None
        return self.order.patience_ratio

    @property
    def mood(self) -> Optional[str]:
        ratio = self.patience_ratio()
        if ratio is None:
            return None
        if ratio > PATIENCE_WARN_RATIO:
            return "happy"
        if ratio > PATIENCE_ANGRY_RATIO:
            return "warn"
        return "angry"

    def assign_order(self, order: Order) -> bool:
        if self.state is not CustomerState.INACTIVE:
            logger.warning("Slot %d: cannot assign order #%d while %s", self.index, order.order_id, self.state.value)
            return False
        self.order = order
        self.state = CustomerState.WAITING
        logger.debug("Slot %d: order #%d assigned (%s)", self.index, order.order_id, order.recipe.display_name)
        self.hub.publish(OrderAssigned(self, order))
        return True

    def deliver_order(self) -> bool:
        if self.state is not CustomerState.WAITING:
            logger.warning("Slot %d: nothing to deliver while %s", self.index, self.state.value)
            return False
        self._depart(CustomerState.DEPARTING_HAPPY, self.happy_delay)
        return True

    def timeout(self) -> bool:
        if self.state is not CustomerState.WAITING or self.order is None:
            logger.warning("Slot %d: cannot time out while %s", self.index, self.state.value)
            return False
        if self.order.time_remaining > 0:
            logger.warning("Slot %d: order #%d still has %.2fs left", self.index, self.order.order_id, self.order.time_remaining)
            return False
        self._depart(CustomerState.DEPARTING_ANGRY, self.angry_delay)
        return True

    def reset(self) -> None:
        """Tear the slot down immediately, cancelling any pending departure."""
        if self._departure is not None:
            self._departure.cancel()
            self._departure = None
        self.order = None
        self.state = CustomerState.INACTIVE

    def _depart(self, state: CustomerState, delay: float) -> None:
        self.order = None
        self.state = state
        happy = state is CustomerState.DEPARTING_HAPPY
        self._departure = self.scheduler.call_later(delay, self._finish_departure)
        self.hub.publish(CustomerDeparting(self, happy))

    def _finish_departure(self) -> None:
        if self.state not in (CustomerState.DEPARTING_HAPPY, CustomerState.DEPARTING_ANGRY):
            return
        self._departure = None
        self.state = CustomerState.INACTIVE
        logger.debug("Slot %d: customer left", self.index)
        self.hub.publish(CustomerLeft(self))


class Seating:
    """Binds spawned orders to customer slots.

    Each new order takes the lowest-index free slot.  When every slot is busy
    the order queues (first in, first out) and is seated as soon as a slot
    frees up.  Completed orders send their customer off happy, failed ones
    angry.  Orders resolved while still queued simply leave the queue.
    """

    def __init__(
        self,
        hub: EventHub,
        scheduler: Scheduler,
        *,
        slot_count: int = CUSTOMER_SLOT_COUNT,
        happy_delay: float = HAPPY_DEPARTURE_DELAY,
        angry_delay: float = ANGRY_DEPARTURE_DELAY,
    ) -> None:
        self.hub = hub
        self.slots: List[CustomerSlot] = [
            CustomerSlot(i, hub, scheduler, happy_delay=happy_delay, angry_delay=angry_delay)
            for i in range(slot_count)
        ]
        self.queue: Deque[Order] = deque()
        self._subscriptions: List[Subscription] = [
            hub.subscribe(OrderSpawned, self._on_order_spawned),
            hub.subscribe(OrderCompleted, self._on_order_completed),
            hub.subscribe(OrderFailed, self._on_order_failed),
            hub.subscribe(CustomerLeft, self._on_customer_left),
        ]

    def slot_for(self, order: Order) -> Optional[CustomerSlot]:
        for slot in self.slots:
            if slot.order is order:
                return slot
        return None

    def free_slot(self) -> Optional[CustomerSlot]:
        for slot in self.slots:
            if slot.is_free:
                return slot
        return None

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        for slot in self.slots:
            slot.reset()
        self.queue.clear()

    def _seat(self, order: Order) -> bool:
        slot = self.free_slot()
        if slot is None:
            return False
        return slot.assign_order(order)

    def _drop_from_queue(self, order: Order) -> bool:
        for queued in self.queue:
            if queued is order:
                self.queue.remove(queued)
                return True
        return False

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_order_spawned(self, event: OrderSpawned) -> None:
        if not self._seat(event.order):
            self.queue.append(event.order)
            logger.debug("Order #%d queued; %d waiting for a seat", event.order.order_id, len(self.queue))

    def _on_order_completed(self, event: OrderCompleted) -> None:
        slot = self.slot_for(event.order)
        if slot is not None:
            slot.deliver_order()
        else:
            self._drop_from_queue(event.order)

    def _on_order_failed(self, event: OrderFailed) -> None:
        slot = self.slot_for(event.order)
        if slot is None:
            self._drop_from_queue(event.order)
            return
        if event.order.time_remaining > 0:
            # Explicit fail with patience left: clear the seat.
            slot.reset()
            self._seat_next()
            return
        slot.timeout()

    def _on_customer_left(self, event: CustomerLeft) -> None:
        self._seat_next()

    def _seat_next(self) -> None:
        while self.queue and self.free_slot() is not None:
            self._seat(self.queue.popleft())
