from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List

from config import CHAPTERS_FILE

logger = logging.getLogger(__name__)


def chapter_id(arc_id: int, chapter_number: int) -> str:
    return f"arc{arc_id}_ch{chapter_number}"


@dataclass(frozen=True)
class ChapterDefinition:
    arc_id: int
    chapter_number: int
    global_index: int
    title: str
    unlock_at_level: int
    coin_reward: int = 50
    gem_reward: int = 5

    @property
    def chapter_id(self) -> str:
        return chapter_id(self.arc_id, self.chapter_number)


DEFAULT_CHAPTERS: List[ChapterDefinition] = [
    ChapterDefinition(1, 1, 1, "The Empty Kitchen", unlock_at_level=1, coin_reward=50, gem_reward=5),
    ChapterDefinition(1, 2, 2, "First Customer", unlock_at_level=2, coin_reward=50, gem_reward=5),
    ChapterDefinition(1, 3, 3, "Burnt Rice", unlock_at_level=3, coin_reward=60, gem_reward=5),
    ChapterDefinition(2, 1, 4, "The Market at Dawn", unlock_at_level=3, coin_reward=60, gem_reward=6),
    ChapterDefinition(2, 2, 5, "A Rival's Stall", unlock_at_level=4, coin_reward=75, gem_reward=8),
    ChapterDefinition(2, 3, 6, "The Master's Smile", unlock_at_level=5, coin_reward=100, gem_reward=10),
]


def _coerce_int(value: Any, *, minimum: int = 0) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < minimum:
        return None
    return value


def _parse_chapter_entry(arc_id: int, entry: Dict[str, Any]) -> ChapterDefinition | None:
    chapter_number = _coerce_int(entry.get("chapter_number"), minimum=1)
    global_index = _coerce_int(entry.get("global_index"), minimum=1)
    unlock_at_level = _coerce_int(entry.get("unlock_at_level"), minimum=1)
    coin_reward = _coerce_int(entry.get("coin_reward", 0))
    gem_reward = _coerce_int(entry.get("gem_reward", 0))
    title = entry.get("title")

    if chapter_number is None or global_index is None or unlock_at_level is None:
        return None
    if coin_reward is None or gem_reward is None:
        return None
    if not isinstance(title, str) or not title.strip():
        return None

    return ChapterDefinition(
        arc_id=arc_id,
        chapter_number=chapter_number,
        global_index=global_index,
        title=title.strip(),
        unlock_at_level=unlock_at_level,
        coin_reward=coin_reward,
        gem_reward=gem_reward,
    )


def _ordered_catalog(chapters: Iterable[ChapterDefinition]) -> List[ChapterDefinition]:
    return sorted(chapters, key=lambda chapter: (chapter.global_index, chapter.arc_id, chapter.chapter_number))


def load_chapter_catalog(path: Path = CHAPTERS_FILE) -> List[ChapterDefinition]:
    """Load chapter definitions from ``{"arcs": [{"arc_id": .., "chapters": [..]}]}``.

    Invalid chapters are skipped; a missing, unreadable, or entirely invalid
    file yields the built-in defaults.  Duplicate chapter ids keep the first
    occurrence.
    """
    defaults = _ordered_catalog(DEFAULT_CHAPTERS)
    if not path.exists():
        return defaults

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Chapter catalog %s unreadable (%s); using defaults", path, exc)
        return defaults

    arcs = raw.get("arcs") if isinstance(raw, dict) else None
    if not isinstance(arcs, list):
        return defaults

    parsed: Dict[str, ChapterDefinition] = {}
    for arc in arcs:
        if not isinstance(arc, dict):
            continue
        arc_id = _coerce_int(arc.get("arc_id"), minimum=1)
        entries = arc.get("chapters")
        if arc_id is None or not isinstance(entries, list):
            logger.warning("Skipping malformed arc entry in %s", path)
            continue
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            chapter = _parse_chapter_entry(arc_id, entry)
            if chapter is None:
                logger.warning("Skipping invalid chapter in arc %d", arc_id)
                continue
            if chapter.chapter_id in parsed:
                logger.warning("Duplicate chapter id %s ignored", chapter.chapter_id)
                continue
            parsed[chapter.chapter_id] = chapter

    if not parsed:
        return defaults

    return _ordered_catalog(parsed.values())
