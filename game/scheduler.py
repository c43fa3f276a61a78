"""Deferred callbacks driven by the frame loop instead of wall-clock time."""
from __future__ import annotations

import itertools
from typing import Callable, List


class ScheduledTask:
    def __init__(self, due: float, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> bool:
        if not self.pending:
            return False
        self.cancelled = True
        return True


class Scheduler:
    """Fires callbacks once enough simulated time has passed.

    A task scheduled while :meth:`tick` is running never fires within that
    same call, so deferred work always lands on a later frame.
    """

    def __init__(self) -> None:
        self.now: float = 0.0
        self._tasks: List[ScheduledTask] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(self.now + max(0.0, delay), next(self._seq), callback)
        self._tasks.append(task)
        return task

    def tick(self, dt: float) -> int:
        self.now += max(0.0, dt)
        due = sorted(
            (task for task in self._tasks if task.pending and task.due <= self.now),
            key=lambda task: (task.due, task.seq),
        )
        self._tasks = [task for task in self._tasks if task.pending and task not in due]
        fired = 0
        for task in due:
            # An earlier callback in this batch may have cancelled it.
            if task.cancelled:
                continue
            task.fired = True
            task.callback()
            fired += 1
        return fired

    def cancel_all(self) -> int:
        cancelled = sum(1 for task in self._tasks if task.cancel())
        self._tasks = []
        return cancelled

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._tasks if task.pending)
