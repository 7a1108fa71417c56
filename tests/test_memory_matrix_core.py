from __future__ import annotations

import pytest

from mindgames.game_core import SeededRng
from mindgames.memory_matrix import (
    LEVELS,
    LEVELS_BY_ID,
    Difficulty,
    MemoryLevel,
    Pattern,
    PatternGenerator,
    build_memory_matrix_ledger,
    levels_in,
)
from mindgames.persistence import MemoryStore
from mindgames.results import ItemResult, build_round_result
from mindgames.scoring import PATTERN_RULES


def test_level_table_shape() -> None:
    assert len(LEVELS) == 15
    assert [lvl.id for lvl in LEVELS] == list(range(1, 16))
    assert [len(levels_in(d)) for d in Difficulty] == [3, 4, 4, 4]
    assert LEVELS_BY_ID[1].unlock_requirement is None
    assert LEVELS_BY_ID[1].display_s == pytest.approx(0.8)
    assert LEVELS_BY_ID[15].grid_size == 6
    assert LEVELS_BY_ID[15].pattern_length == 14

    for lvl in LEVELS[1:]:
        req = lvl.unlock_requirement
        assert req is not None
        assert req.level_id == lvl.id - 1
        assert 70 <= req.min_accuracy <= 90
        assert req.min_score == 0


def test_level_rejects_pattern_longer_than_grid() -> None:
    with pytest.raises(ValueError):
        MemoryLevel(99, "Too Many", 2, 5, 0.5, Difficulty.EASY, "4 cells, 5 wanted")
    with pytest.raises(ValueError):
        MemoryLevel(99, "None", 3, 0, 0.5, Difficulty.EASY, "nothing")
    with pytest.raises(ValueError):
        MemoryLevel(99, "Instant", 3, 3, 0.0, Difficulty.EASY, "no display time")
    full = MemoryLevel(99, "Full", 2, 4, 0.5, Difficulty.EASY, "every cell")
    assert full.cell_count == 4


def test_generator_is_deterministic_for_same_seed() -> None:
    level = LEVELS_BY_ID[9]
    p1 = PatternGenerator(SeededRng(77)).generate(level)
    p2 = PatternGenerator(SeededRng(77)).generate(level)
    assert p1 == p2


@pytest.mark.parametrize("level_id", [lvl.id for lvl in LEVELS])
def test_patterns_are_distinct_cells_inside_the_grid(level_id: int) -> None:
    level = LEVELS_BY_ID[level_id]
    pattern = PatternGenerator(SeededRng(level_id)).generate(level)
    assert pattern.size == level.grid_size
    assert len(pattern) == level.pattern_length
    assert len(set(pattern.cells)) == level.pattern_length
    assert all(0 <= c < level.grid_size * level.grid_size for c in pattern.cells)


def test_full_grid_pattern_covers_every_cell() -> None:
    level = MemoryLevel(99, "Full", 3, 9, 0.5, Difficulty.EASY, "all of them")
    pattern = PatternGenerator(SeededRng(1)).generate(level)
    assert sorted(pattern.cells) == list(range(9))


def test_pattern_helpers() -> None:
    pattern = Pattern(size=4, cells=(0, 5, 15))
    assert pattern.row_col(0) == (0, 0)
    assert pattern.row_col(5) == (1, 1)
    assert pattern.row_col(15) == (3, 3)
    assert pattern.contains(5) is True
    assert pattern.contains(6) is False


def test_memory_ledger_unlocks_by_accuracy_and_ranks_by_correct_cells() -> None:
    ledger = build_memory_matrix_ledger(MemoryStore())
    assert ledger.is_unlocked(1) is True
    assert ledger.is_unlocked(2) is False
    assert ledger.rank() == "goldfish"

    items = [
        ItemResult(index=i, subject_id=f"cell-{c}", selected_id=str(c), is_correct=ok, time_spent_s=1.0, points=100 if ok else 0)
        for i, (c, ok) in enumerate([(0, True), (4, True), (7, False), (8, True)])
    ]
    result = build_round_result(
        level_id=1,
        group="easy",
        difficulty="easy",
        items=items,
        total_items=3,
        total_time_s=4.0,
        highest_streak=2,
        hints_used=0,
        rules=PATTERN_RULES,
        track_learned=False,
    )
    assert result.accuracy == pytest.approx(100.0)
    assert result.perfect_round is False  # one wrong selection

    ledger.record(1, result)
    assert ledger.is_unlocked(2) is True
    assert ledger.is_unlocked(3) is False
    assert ledger.stats().total_correct == 3
    assert ledger.stats().learned_ids == ()
    assert ledger.rank() == "goldfish"
