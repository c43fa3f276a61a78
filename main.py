from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict

from config import CHAPTERS_FILE, RECIPES_FILE, STORE_FILE
from game import JsonFileStore, KitchenSession, MemoryStore
from game.entities import CustomerState, Order, StationState
from game.stations import StationController


class AutoChef:
    """Plays a session on its own: cooks each waiting order and serves it."""

    def __init__(self, session: KitchenSession) -> None:
        self.session = session
        self._cooking_for: Dict[str, Order] = {}

    def step(self) -> None:
        for station in self.session.stations:
            if station.state is StationState.READY:
                self._collect_and_serve(station)

        for slot in self.session.slots:
            order = slot.order
            if slot.state is not CustomerState.WAITING or order is None or self._is_cooking(order):
                continue
            station = self._idle_station()
            if station is None:
                return
            if station.place_ingredient(order.recipe.ingredients[0]):
                self._cooking_for[station.name] = order

    def _is_cooking(self, order: Order) -> bool:
        return any(cooking is order for cooking in self._cooking_for.values())

    def _idle_station(self) -> StationController | None:
        for station in self.session.stations:
            if station.state is StationState.IDLE:
                return station
        return None

    def _collect_and_serve(self, station: StationController) -> None:
        order = self._cooking_for.pop(station.name, None)
        if station.collect_dish() is None or order is None:
            return
        slot = self.session.seating.slot_for(order)
        if slot is not None:
            self.session.serve(slot.index)


def run_headless(ticks: int, dt: float, store_path: Path | None, level_seconds: float, seed: int) -> None:
    store = JsonFileStore(store_path) if store_path is not None else MemoryStore()
    session = KitchenSession.from_files(
        store,
        recipes_file=RECIPES_FILE,
        chapters_file=CHAPTERS_FILE,
        seed=seed,
    )
    chef = AutoChef(session)
    session.start_level()

    level_clock = 0.0
    for _ in range(ticks):
        session.tick(dt)
        chef.step()
        level_clock += dt
        if level_seconds > 0 and level_clock >= level_seconds:
            level_clock = 0.0
            session.complete_level()
            for chapter_id in sorted(session.progression.unlocked_ids):
                session.read_chapter(chapter_id)
            session.start_level()

    session.teardown()
    stats = session.stats
    print(
        f"headless_done t={session.time:.1f} level={session.current_level}"
        f" orders[spawned={stats.spawned},served={stats.completed},failed={stats.failed},perfect={stats.perfect}]"
        f" score={session.score}"
        f" wallet[coins={session.wallet.coins},gems={session.wallet.gems}]"
        f" chapters[unlocked={session.progression.unlocked_count}/{session.progression.chapter_count},"
        f"read={len(session.progression.read_ids)}]"
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Service Rush kitchen session runner")
    parser.add_argument("--ticks", type=int, default=1800, help="ticks to run")
    parser.add_argument("--dt", type=float, default=0.1, help="timestep in seconds")
    parser.add_argument("--seed", type=int, default=7, help="random seed for order selection")
    parser.add_argument("--level-seconds", type=float, default=60.0, help="complete a level every N seconds (0 = never)")
    parser.add_argument("--store", type=Path, default=STORE_FILE, help="key/value store file")
    parser.add_argument("--no-save", action="store_true", help="keep wallet and progress in memory only")
    parser.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, ...)")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        run_headless(args.ticks, args.dt, None if args.no_save else args.store, args.level_seconds, args.seed)
    except OSError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
