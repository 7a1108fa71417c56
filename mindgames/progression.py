"""Persistent per-level progress, unlock gating and aggregate rank.

The ledger keeps its whole state in memory and writes a JSON document to the
key-value store after every recorded round. Storage problems never reach the
caller: an unreadable document loads as default progress and a failed write
leaves the in-memory state intact for the rest of the session.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any, Protocol

from .persistence import KeyValueStore
from .results import RoundResult
from .scoring import rank_for_count, rank_index, stars_for_accuracy

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 1


@dataclass(frozen=True, slots=True)
class UnlockRequirement:
    level_id: int
    min_score: int = 0
    min_accuracy: float = 0.0

    def met_by(self, *, score: float, accuracy: float) -> bool:
        return score >= self.min_score and accuracy >= self.min_accuracy


class LevelLike(Protocol):
    @property
    def id(self) -> int: ...
    @property
    def group(self) -> str: ...
    @property
    def unlock_requirement(self) -> UnlockRequirement | None: ...


@dataclass(frozen=True, slots=True)
class LevelProgress:
    level_id: int
    high_score: int = 0
    best_accuracy: float = 0.0
    best_streak: int = 0
    times_played: int = 0
    times_completed: int = 0
    times_perfect: int = 0
    unlocked: bool = False
    stars: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "high_score": self.high_score,
            "best_accuracy": self.best_accuracy,
            "best_streak": self.best_streak,
            "times_played": self.times_played,
            "times_completed": self.times_completed,
            "times_perfect": self.times_perfect,
            "unlocked": self.unlocked,
            "stars": self.stars,
        }

    @classmethod
    def from_dict(cls, level_id: int, data: object) -> LevelProgress:
        if not isinstance(data, dict):
            return cls(level_id=level_id)
        return cls(
            level_id=level_id,
            high_score=max(0, _as_int(data.get("high_score"), 0)),
            best_accuracy=_clamp(_as_float(data.get("best_accuracy"), 0.0), 0.0, 100.0),
            best_streak=max(0, _as_int(data.get("best_streak"), 0)),
            times_played=max(0, _as_int(data.get("times_played"), 0)),
            times_completed=max(0, _as_int(data.get("times_completed"), 0)),
            times_perfect=max(0, _as_int(data.get("times_perfect"), 0)),
            unlocked=data.get("unlocked") is True,
            stars=int(_clamp(_as_int(data.get("stars"), 0), 0, 3)),
        )


@dataclass(frozen=True, slots=True)
class AggregateStats:
    learned_ids: tuple[str, ...] = ()
    total_answered: int = 0
    total_correct: int = 0
    total_play_time_s: float = 0.0
    longest_streak: int = 0
    perfect_rounds: int = 0
    rank: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "learned_ids": list(self.learned_ids),
            "total_answered": self.total_answered,
            "total_correct": self.total_correct,
            "total_play_time_s": self.total_play_time_s,
            "longest_streak": self.longest_streak,
            "perfect_rounds": self.perfect_rounds,
            "rank": self.rank,
        }

    @classmethod
    def from_dict(cls, data: object, *, default_rank: str) -> AggregateStats:
        if not isinstance(data, dict):
            return cls(rank=default_rank)
        raw_ids = data.get("learned_ids")
        learned: list[str] = []
        if isinstance(raw_ids, list):
            for item in raw_ids:
                text = str(item).strip()
                if text != "" and text not in learned:
                    learned.append(text)
        return cls(
            learned_ids=tuple(learned),
            total_answered=max(0, _as_int(data.get("total_answered"), 0)),
            total_correct=max(0, _as_int(data.get("total_correct"), 0)),
            total_play_time_s=max(0.0, _as_float(data.get("total_play_time_s"), 0.0)),
            longest_streak=max(0, _as_int(data.get("longest_streak"), 0)),
            perfect_rounds=max(0, _as_int(data.get("perfect_rounds"), 0)),
            rank=str(data.get("rank") or default_rank),
        )


def learned_count(stats: AggregateStats) -> int:
    return len(stats.learned_ids)


def correct_count(stats: AggregateStats) -> int:
    return stats.total_correct


class ProgressionLedger:
    def __init__(
        self,
        *,
        store: KeyValueStore,
        storage_key: str,
        levels: Iterable[LevelLike],
        entry_level_ids: Iterable[int],
        rank_brackets: Sequence[tuple[int, str]],
        rank_basis: Callable[[AggregateStats], int] = learned_count,
        completion_threshold: float = 70.0,
        star_thresholds: tuple[float, float, float] = (60.0, 80.0, 95.0),
    ) -> None:
        if not rank_brackets:
            raise ValueError("rank_brackets must not be empty")
        if not (0.0 <= completion_threshold <= 100.0):
            raise ValueError("completion_threshold must be in [0, 100]")

        self._store = store
        self._key = str(storage_key)
        self._levels: dict[int, LevelLike] = {int(lvl.id): lvl for lvl in levels}
        self._entry_ids = frozenset(int(i) for i in entry_level_ids)
        self._brackets = tuple(rank_brackets)
        self._rank_basis = rank_basis
        self._completion_threshold = float(completion_threshold)
        self._star_thresholds = star_thresholds

        self._progress: dict[int, LevelProgress] = {}
        self._stats = AggregateStats(rank=self._brackets[0][1])
        self._loaded = False

    # Accessors

    def progress_of(self, level_id: int) -> LevelProgress:
        self._ensure_loaded()
        stored = self._progress.get(int(level_id))
        if stored is not None:
            return stored
        return LevelProgress(level_id=int(level_id), unlocked=int(level_id) in self._entry_ids)

    def is_unlocked(self, level_id: int) -> bool:
        self._ensure_loaded()
        level_id = int(level_id)
        if level_id in self._entry_ids:
            return True
        stored = self._progress.get(level_id)
        if stored is not None and stored.unlocked:
            return True

        level = self._levels.get(level_id)
        if level is None or level.unlock_requirement is None:
            return False
        req = level.unlock_requirement
        prev = self._progress.get(int(req.level_id))
        if prev is None:
            return False
        return req.met_by(score=prev.high_score, accuracy=prev.best_accuracy)

    def total_stars(self) -> int:
        self._ensure_loaded()
        return sum(p.stars for p in self._progress.values())

    def group_stars(self, group: str) -> int:
        self._ensure_loaded()
        total = 0
        for level_id, progress in self._progress.items():
            level = self._levels.get(level_id)
            if level is not None and level.group == group:
                total += progress.stars
        return total

    def rank(self) -> str:
        self._ensure_loaded()
        return self._stats.rank

    def stats(self) -> AggregateStats:
        self._ensure_loaded()
        return self._stats

    # Update

    def record(self, level_id: int, result: RoundResult) -> None:
        self._ensure_loaded()
        level_id = int(level_id)

        current = self._progress.get(level_id) or LevelProgress(level_id=level_id)
        completed = result.accuracy >= self._completion_threshold
        stars = stars_for_accuracy(result.accuracy, self._star_thresholds)

        self._progress[level_id] = replace(
            current,
            high_score=max(current.high_score, int(result.score)),
            best_accuracy=max(current.best_accuracy, float(result.accuracy)),
            best_streak=max(current.best_streak, int(result.highest_streak)),
            times_played=current.times_played + 1,
            times_completed=current.times_completed + (1 if completed else 0),
            times_perfect=current.times_perfect + (1 if result.perfect_round else 0),
            unlocked=True,
            stars=max(current.stars, stars),
        )

        for other in self._levels.values():
            req = other.unlock_requirement
            if req is None or int(req.level_id) != level_id or int(other.id) == level_id:
                continue
            if not req.met_by(score=result.score, accuracy=result.accuracy):
                continue
            existing = self._progress.get(int(other.id))
            if existing is not None and existing.unlocked:
                continue
            self._progress[int(other.id)] = LevelProgress(level_id=int(other.id), unlocked=True)
            logger.info("level %d unlocked by level %d", other.id, level_id)

        self._stats = self._merge_stats(self._stats, result)
        self._save()

    def _merge_stats(self, stats: AggregateStats, result: RoundResult) -> AggregateStats:
        learned = list(stats.learned_ids)
        for subject_id in result.learned_ids:
            if subject_id not in learned:
                learned.append(subject_id)

        merged = AggregateStats(
            learned_ids=tuple(learned),
            total_answered=stats.total_answered + result.total_items,
            total_correct=stats.total_correct + result.correct,
            total_play_time_s=stats.total_play_time_s + result.total_time_s,
            longest_streak=max(stats.longest_streak, result.highest_streak),
            perfect_rounds=stats.perfect_rounds + (1 if result.perfect_round else 0),
            rank=stats.rank,
        )
        # Rank only moves up, even if a stored document disagrees with the basis.
        names = [name for _, name in self._brackets]
        held = names.index(stats.rank) if stats.rank in names else 0
        earned = rank_index(self._rank_basis(merged), self._brackets)
        return replace(merged, rank=names[max(held, earned)])

    # Storage

    def to_document(self) -> dict[str, Any]:
        return {
            "version": DOCUMENT_VERSION,
            "levels": {str(k): v.to_dict() for k, v in sorted(self._progress.items())},
            "stats": self._stats.to_dict(),
        }

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        try:
            raw = self._store.load(self._key)
        except Exception:
            logger.warning("could not read progress %r; starting fresh", self._key, exc_info=True)
            return
        if raw is None:
            return
        try:
            payload = json.loads(bytes(raw).decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logger.warning("progress %r is not valid JSON; starting fresh", self._key)
            return
        self._apply_document(payload)

    def _apply_document(self, payload: object) -> None:
        default_rank = self._brackets[0][1]
        if not isinstance(payload, dict):
            logger.warning("progress %r has unexpected shape; starting fresh", self._key)
            return

        raw_levels = payload.get("levels")
        if isinstance(raw_levels, dict):
            for raw_id, raw_progress in raw_levels.items():
                try:
                    level_id = int(raw_id)
                except (TypeError, ValueError):
                    continue
                self._progress[level_id] = LevelProgress.from_dict(level_id, raw_progress)

        stats = AggregateStats.from_dict(payload.get("stats"), default_rank=default_rank)
        names = [name for _, name in self._brackets]
        if stats.rank not in names:
            stats = replace(stats, rank=rank_for_count(self._rank_basis(stats), self._brackets))
        self._stats = stats

    def _save(self) -> None:
        data = json.dumps(self.to_document(), sort_keys=True).encode("utf-8")
        try:
            self._store.save(self._key, data)
        except Exception:
            logger.warning("could not save progress %r; keeping it in memory", self._key, exc_info=True)


def _as_int(value: object, fallback: int) -> int:
    if isinstance(value, float) and not math.isfinite(value):
        return fallback
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return fallback


def _as_float(value: object, fallback: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return fallback
    # json.loads accepts NaN and Infinity.
    if not math.isfinite(out):
        return fallback
    return out


def _clamp(value: float, lo: float, hi: float) -> float:
    if value <= lo:
        return lo
    if value >= hi:
        return hi
    return float(value)
