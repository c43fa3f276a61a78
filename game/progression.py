"""Chapter unlock/read progression persisted through the key/value store."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

from chapter_catalog import ChapterDefinition
from config import CHAPTER_ID_SEPARATOR, READ_CHAPTERS_KEY, UNLOCKED_CHAPTERS_KEY
from game.events import ChapterFirstRead, ChapterUnlocked, EventHub, ProgressChanged
from game.store import MemoryStore

logger = logging.getLogger(__name__)


def _decode_ids(raw: str) -> Set[str]:
    return {chapter.strip() for chapter in raw.split(CHAPTER_ID_SEPARATOR) if chapter.strip()}


def _encode_ids(ids: Iterable[str]) -> str:
    return CHAPTER_ID_SEPARATOR.join(sorted(ids))


class ProgressionTracker:
    """Tracks which chapters are unlocked and which have been read.

    ``read`` is always a subset of ``unlocked``: reading a locked chapter is
    refused, and stale read ids found on load are dropped.
    """

    def __init__(self, chapters: Iterable[ChapterDefinition], store: MemoryStore, hub: EventHub) -> None:
        self.chapters: List[ChapterDefinition] = list(chapters)
        self._by_id: Dict[str, ChapterDefinition] = {chapter.chapter_id: chapter for chapter in self.chapters}
        self.store = store
        self.hub = hub
        self._lock = store.lock
        self._unlocked: Set[str] = set()
        self._read: Set[str] = set()
        self._load()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def unlocked_ids(self) -> frozenset[str]:
        return frozenset(self._unlocked)

    @property
    def read_ids(self) -> frozenset[str]:
        return frozenset(self._read)

    @property
    def unlocked_count(self) -> int:
        return len(self._unlocked)

    @property
    def chapter_count(self) -> int:
        return len(self.chapters)

    def chapter(self, chapter_id: str) -> Optional[ChapterDefinition]:
        return self._by_id.get(chapter_id)

    def is_unlocked(self, chapter_id: str) -> bool:
        return chapter_id in self._unlocked

    def is_read(self, chapter_id: str) -> bool:
        return chapter_id in self._read

    def chapters_for_arc(self, arc_id: int) -> List[ChapterDefinition]:
        return sorted(
            (chapter for chapter in self.chapters if chapter.arc_id == arc_id),
            key=lambda chapter: chapter.chapter_number,
        )

    def next_locked_chapter(self) -> Optional[ChapterDefinition]:
        for chapter in sorted(self.chapters, key=lambda c: c.global_index):
            if not self.is_unlocked(chapter.chapter_id):
                return chapter
        return None

    def arc_progress(self, arc_id: int) -> float:
        arc_chapters = self.chapters_for_arc(arc_id)
        if not arc_chapters:
            return 0.0
        unlocked = sum(1 for chapter in arc_chapters if self.is_unlocked(chapter.chapter_id))
        return unlocked / len(arc_chapters)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def on_level_completed(self, level: int) -> List[ChapterDefinition]:
        with self._lock:
            newly = [
                chapter
                for chapter in self.chapters
                if chapter.unlock_at_level == level and chapter.chapter_id not in self._unlocked
            ]
            if not newly:
                return []
            if not self._commit(self._unlocked | {chapter.chapter_id for chapter in newly}, self._read):
                return []
        for chapter in newly:
            logger.info("Chapter unlocked: %r (arc %d, chapter %d)", chapter.title, chapter.arc_id, chapter.chapter_number)
            self.hub.publish(ChapterUnlocked(chapter))
        self._notify()
        return newly

    def mark_read(self, chapter_id: str) -> bool:
        with self._lock:
            chapter = self._by_id.get(chapter_id)
            if chapter is None:
                logger.warning("Unknown chapter %s", chapter_id)
                return False
            if chapter_id not in self._unlocked:
                logger.warning("Chapter %s is locked; cannot mark it read", chapter_id)
                return False
            if chapter_id in self._read:
                return False
            if not self._commit(self._unlocked, self._read | {chapter_id}):
                return False
        logger.info(
            "Chapter %r read for the first time: %d coins, %d gems",
            chapter.title,
            chapter.coin_reward,
            chapter.gem_reward,
        )
        self.hub.publish(ChapterFirstRead(chapter, chapter.coin_reward, chapter.gem_reward))
        self._notify()
        return True

    def force_unlock(self, chapter_id: str) -> bool:
        with self._lock:
            chapter = self._by_id.get(chapter_id)
            if chapter is None or chapter_id in self._unlocked:
                return False
            if not self._commit(self._unlocked | {chapter_id}, self._read):
                return False
        logger.info("Chapter force-unlocked: %s", chapter_id)
        self.hub.publish(ChapterUnlocked(chapter))
        self._notify()
        return True

    def reset_progress(self) -> bool:
        with self._lock:
            if not self.store.commit({}, deletions=(UNLOCKED_CHAPTERS_KEY, READ_CHAPTERS_KEY)):
                logger.warning("Chapter progress kept; reset could not be saved")
                return False
            self._unlocked = set()
            self._read = set()
        logger.info("All chapter progress reset")
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _commit(self, unlocked: Set[str], read: Set[str]) -> bool:
        updates = {UNLOCKED_CHAPTERS_KEY: _encode_ids(unlocked), READ_CHAPTERS_KEY: _encode_ids(read)}
        if not self.store.commit(updates):
            logger.warning("Chapter progress unchanged: %d unlocked, %d read", len(self._unlocked), len(self._read))
            return False
        self._unlocked = set(unlocked)
        self._read = set(read)
        return True

    def _load(self) -> None:
        self._unlocked = _decode_ids(self.store.get_str(UNLOCKED_CHAPTERS_KEY, ""))
        read = _decode_ids(self.store.get_str(READ_CHAPTERS_KEY, ""))
        stray = read - self._unlocked
        if stray:
            logger.warning("Dropping read marks for locked chapters: %s", ", ".join(sorted(stray)))
        self._read = read & self._unlocked
        logger.info("Loaded progress: %d unlocked, %d read", len(self._unlocked), len(self._read))

    def _notify(self) -> None:
        self.hub.publish(ProgressChanged(len(self._unlocked), len(self._read)))
