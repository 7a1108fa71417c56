"""Memory Matrix: watch cells light up one by one, then pick them back out."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from .clock import Clock, Scheduler
from .game_core import GameSession, GameState, RandomSource, SessionTiming
from .persistence import KeyValueStore
from .progression import ProgressionLedger, UnlockRequirement, correct_count
from .results import ItemResult, RoundResult, build_round_result
from .scoring import PATTERN_RULES, item_score

logger = logging.getLogger(__name__)

STORAGE_KEY = "memory-matrix-progress"
MAX_WRONG_SELECTIONS = 2
# Recall allowance per pattern cell, on top of its display time.
RECALL_ALLOWANCE_PER_CELL_S = 2.0

RANK_BRACKETS: tuple[tuple[int, str], ...] = (
    (0, "goldfish"),
    (50, "parrot"),
    (150, "dolphin"),
    (400, "elephant"),
    (1000, "memory-legend"),
)


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXTREME = "extreme"


@dataclass(frozen=True, slots=True)
class MemoryLevel:
    id: int
    name: str
    grid_size: int
    pattern_length: int
    display_s: float  # how long each pattern cell stays lit
    difficulty: Difficulty
    description: str
    unlock_requirement: UnlockRequirement | None = None

    def __post_init__(self) -> None:
        if self.grid_size <= 0:
            raise ValueError("grid_size must be > 0")
        if not (0 < self.pattern_length <= self.grid_size * self.grid_size):
            raise ValueError("pattern_length must be in [1, grid_size**2]")
        if self.display_s <= 0:
            raise ValueError("display_s must be > 0")

    @property
    def group(self) -> str:
        return str(self.difficulty)

    @property
    def cell_count(self) -> int:
        return self.grid_size * self.grid_size


def _level(
    id: int,
    name: str,
    grid_size: int,
    pattern_length: int,
    display_ms: int,
    difficulty: Difficulty,
    description: str,
    min_accuracy: float | None = None,
) -> MemoryLevel:
    req = None if min_accuracy is None else UnlockRequirement(level_id=id - 1, min_accuracy=min_accuracy)
    return MemoryLevel(id, name, grid_size, pattern_length, display_ms / 1000.0, difficulty, description, req)


_E = Difficulty.EASY
_M = Difficulty.MEDIUM
_H = Difficulty.HARD
_X = Difficulty.EXTREME

LEVELS: tuple[MemoryLevel, ...] = (
    _level(1, "First Steps", 3, 3, 800, _E, "Remember 3 cells on a tiny grid"),
    _level(2, "Getting Started", 3, 4, 700, _E, "A little more to remember", 70),
    _level(3, "Warming Up", 3, 5, 600, _E, "Five cells, faster pace", 70),
    _level(4, "Grid Expansion", 4, 4, 700, _M, "Bigger grid, new challenge!", 75),
    _level(5, "Memory Builder", 4, 5, 650, _M, "Five cells to track", 75),
    _level(6, "Quick Thinker", 4, 6, 600, _M, "Six cells, faster display", 75),
    _level(7, "Pattern Pro", 4, 7, 550, _M, "Seven cells to master", 80),
    _level(8, "Big League", 5, 6, 600, _H, "Welcome to the 5x5 grid!", 80),
    _level(9, "Memory Master", 5, 8, 550, _H, "Eight cells on the big grid", 80),
    _level(10, "Brain Blitz", 5, 9, 500, _H, "Nine cells, lightning fast", 85),
    _level(11, "Elite Challenge", 5, 10, 450, _H, "Ten cells to remember!", 85),
    _level(12, "Extreme Entry", 6, 8, 550, _X, "The ultimate 6x6 grid", 85),
    _level(13, "Mind Bender", 6, 10, 500, _X, "Ten cells on the mega grid", 90),
    _level(14, "Neural Network", 6, 12, 450, _X, "A dozen cells to track", 90),
    _level(15, "Memory Legend", 6, 14, 400, _X, "The ultimate memory test!", 90),
)

LEVELS_BY_ID: dict[int, MemoryLevel] = {lvl.id: lvl for lvl in LEVELS}


def levels_in(difficulty: Difficulty | str) -> tuple[MemoryLevel, ...]:
    return tuple(lvl for lvl in LEVELS if lvl.difficulty == difficulty)


@dataclass(frozen=True, slots=True)
class Pattern:
    size: int
    cells: tuple[int, ...]  # row-major indices, in reveal order

    def row_col(self, cell: int) -> tuple[int, int]:
        return divmod(int(cell), self.size)

    def contains(self, cell: int) -> bool:
        return int(cell) in self.cells

    def __len__(self) -> int:
        return len(self.cells)


class PatternGenerator:
    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng

    def generate(self, level: MemoryLevel) -> Pattern:
        cells = self._rng.sample(range(level.cell_count), level.pattern_length)
        return Pattern(size=level.grid_size, cells=tuple(int(c) for c in cells))


@dataclass(frozen=True, slots=True)
class MemoryMatrixPayload:
    grid_size: int
    active_cell: int | None  # lit cell during the reveal
    reveal_step: int | None
    selected: tuple[int, ...]
    correct_cells: tuple[int, ...]
    wrong_cells: tuple[int, ...]
    mistakes_left: int


class MemoryMatrixGame(GameSession):
    """Pattern round: countdown, reveal the cells in order, then recall."""

    title = "Memory Matrix"

    def __init__(
        self,
        *,
        clock: Clock,
        scheduler: Scheduler,
        rng: RandomSource,
        ledger: ProgressionLedger | None = None,
        timing: SessionTiming | None = None,
        levels: Sequence[MemoryLevel] = LEVELS,
        generator: PatternGenerator | None = None,
    ) -> None:
        super().__init__(
            clock=clock,
            scheduler=scheduler,
            rng=rng,
            rules=PATTERN_RULES,
            ledger=ledger,
            timing=timing,
        )
        self._levels_by_id = {lvl.id: lvl for lvl in levels}
        self._generator = generator or PatternGenerator(rng)

        self._pattern: Pattern | None = None
        self._reveal_index: int | None = None
        self._selected: list[int] = []

    @property
    def pattern(self) -> Pattern | None:
        return self._pattern

    def active_cell(self) -> int | None:
        if self._pattern is None or self._reveal_index is None:
            return None
        if self.state is not GameState.REVEAL and self._paused_from is not GameState.REVEAL:
            return None
        return self._pattern.cells[self._reveal_index]

    def selected_cells(self) -> tuple[int, ...]:
        return tuple(self._selected)

    def correct_selections(self) -> int:
        return sum(1 for r in self._items if r.is_correct)

    def wrong_selections(self) -> int:
        return sum(1 for r in self._items if not r.is_correct)

    # Intents

    def select_cell(self, cell: int) -> bool:
        if self.state is not GameState.PLAYING or self._pattern is None:
            return False
        try:
            cell = int(cell)
        except (TypeError, ValueError):
            return False
        if not (0 <= cell < self._pattern.size * self._pattern.size):
            return False
        if cell in self._selected:
            return False

        assert self._level is not None
        elapsed = self._item_elapsed_s()
        correct = self._pattern.contains(cell)
        combo = self._evaluate(correct=correct)
        points = item_score(
            correct=correct,
            elapsed_s=elapsed,
            combo=combo,
            tier=self._level.difficulty,
            hint_used=False,
            rules=PATTERN_RULES,
        )
        self._selected.append(cell)
        self._items.append(
            ItemResult(
                index=len(self._items),
                subject_id=f"cell-{cell}",
                selected_id=str(cell),
                is_correct=correct,
                time_spent_s=elapsed,
                points=points,
            )
        )

        if self.correct_selections() >= len(self._pattern):
            self._finish()
        elif self.wrong_selections() > MAX_WRONG_SELECTIONS:
            logger.debug("pattern failed after %d wrong selections", self.wrong_selections())
            self._finish(failed=True)
        else:
            self._present_item()
        return True

    # Reveal

    def _reveal_step(self) -> None:
        assert self._pattern is not None and self._reveal_index is not None
        self._reveal_index += 1
        if self._reveal_index >= len(self._pattern):
            self._reveal_index = None
            # Round time covers recall only, not the reveal.
            self._round_started_at_s = self._active_now()
            self._set_state(GameState.PLAYING)
            self._present_item()
            return
        self._arm(self._level_display_s(), self._reveal_step)

    def _level_display_s(self) -> float:
        assert self._level is not None
        return float(self._level.display_s)

    # GameSession hooks

    def _lookup_level(self, level_id: int) -> MemoryLevel | None:
        try:
            return self._levels_by_id.get(int(level_id))
        except (TypeError, ValueError):
            return None

    def _successor_of(self, level_id: int) -> MemoryLevel | None:
        return self._levels_by_id.get(int(level_id) + 1)

    def _prepare_round(self, level: MemoryLevel) -> bool:
        self._pattern = self._generator.generate(level)
        self._reveal_index = None
        self._selected = []
        return len(self._pattern) > 0

    def _begin_round(self) -> None:
        self._reveal_index = 0
        self._set_state(GameState.REVEAL)
        self._arm(self._level_display_s(), self._reveal_step)

    def _build_result(self, *, failed: bool) -> RoundResult:
        assert self._level is not None and self._pattern is not None
        level = self._level
        elapsed = self._round_elapsed_s()
        budget = len(self._pattern) * (level.display_s + RECALL_ALLOWANCE_PER_CELL_S)
        return build_round_result(
            level_id=level.id,
            group=level.group,
            difficulty=str(level.difficulty),
            items=self._items,
            total_items=len(self._pattern),
            total_time_s=elapsed,
            highest_streak=self._combo.max_reached,
            hints_used=0,
            rules=PATTERN_RULES,
            failed=failed,
            track_learned=False,
            time_remaining_s=0.0 if failed else max(0.0, budget - elapsed),
        )

    def _on_reset(self) -> None:
        self._pattern = None
        self._reveal_index = None
        self._selected = []

    def _item_index(self) -> int:
        return len(self._selected)

    def _item_count(self) -> int:
        return 0 if self._pattern is None else len(self._pattern)

    def _current_challenge(self) -> Pattern | None:
        return self._pattern

    def _payload(self) -> MemoryMatrixPayload | None:
        if self._pattern is None:
            return None
        return MemoryMatrixPayload(
            grid_size=self._pattern.size,
            active_cell=self.active_cell(),
            reveal_step=self._reveal_index,
            selected=tuple(self._selected),
            correct_cells=tuple(c for c in self._selected if self._pattern.contains(c)),
            wrong_cells=tuple(c for c in self._selected if not self._pattern.contains(c)),
            mistakes_left=max(0, MAX_WRONG_SELECTIONS - self.wrong_selections()),
        )


def build_memory_matrix_ledger(store: KeyValueStore) -> ProgressionLedger:
    return ProgressionLedger(
        store=store,
        storage_key=STORAGE_KEY,
        levels=LEVELS,
        entry_level_ids=(1,),
        rank_brackets=RANK_BRACKETS,
        rank_basis=correct_count,
        completion_threshold=70.0,
    )
