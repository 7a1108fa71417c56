from __future__ import annotations

import pytest

from mindgames.results import ItemResult, build_round_result
from mindgames.scoring import PATTERN_RULES, TRIVIA_RULES


def _item(i: int, subject: str, selected: str | None, correct: bool, t: float, points: int = 0) -> ItemResult:
    return ItemResult(
        index=i,
        subject_id=subject,
        selected_id=selected,
        is_correct=correct,
        time_spent_s=t,
        points=points,
    )


def test_counts_accuracy_and_unanswered_items_as_skipped() -> None:
    items = [
        _item(0, "lion", "lion", True, 2.0, points=140),
        _item(1, "zebra", "horse", False, 4.0),
        _item(2, "tiger", None, False, 6.0),
    ]
    r = build_round_result(
        level_id=1,
        group="mammals",
        difficulty="cub",
        items=items,
        total_items=4,
        total_time_s=12.0,
        highest_streak=1,
        hints_used=0,
        rules=TRIVIA_RULES,
    )

    assert r.total_items == 4
    assert (r.correct, r.wrong, r.skipped) == (1, 1, 2)
    assert r.accuracy == pytest.approx(25.0)
    assert r.average_time_s == pytest.approx(4.0)
    assert r.median_time_s == pytest.approx(4.0)
    assert r.perfect_round is False
    assert r.learned_ids == ("lion",)
    assert items[2].skipped is True
    # 140 item points + streak 15 + no-hints 200; average 4s earns the top speed tier.
    assert r.score == 140 + 15 + 150 + 200


def test_perfect_round_and_learned_ids_keep_first_seen_order() -> None:
    items = [
        _item(0, "kiwi", "kiwi", True, 1.0, points=100),
        _item(1, "owl", "owl", True, 3.0, points=100),
        _item(2, "kiwi", "kiwi", True, 2.0, points=100),
        _item(3, "emu", "emu", True, 4.0, points=100),
    ]
    r = build_round_result(
        level_id=7,
        group="birds",
        difficulty="cub",
        items=items,
        total_items=4,
        total_time_s=10.0,
        highest_streak=4,
        hints_used=0,
        rules=TRIVIA_RULES,
    )
    assert r.perfect_round is True
    assert r.bonus.perfect == 500
    assert r.median_time_s == pytest.approx(2.5)
    assert r.learned_ids == ("kiwi", "owl", "emu")


def test_failed_round_is_never_perfect_and_pattern_rounds_learn_nothing() -> None:
    items = [_item(0, "cell-4", "4", True, 0.5, points=100)]
    r = build_round_result(
        level_id=1,
        group="easy",
        difficulty="easy",
        items=items,
        total_items=1,
        total_time_s=0.5,
        highest_streak=1,
        hints_used=0,
        rules=PATTERN_RULES,
        failed=True,
        track_learned=False,
    )
    assert r.accuracy == pytest.approx(100.0)
    assert r.failed is True
    assert r.perfect_round is False
    assert r.learned_ids == ()


def test_empty_round() -> None:
    r = build_round_result(
        level_id=1,
        group="mammals",
        difficulty="cub",
        items=[],
        total_items=0,
        total_time_s=-1.0,
        highest_streak=0,
        hints_used=0,
        rules=TRIVIA_RULES,
    )
    assert r.total_items == 0
    assert r.accuracy == 0.0
    assert r.median_time_s is None
    assert r.score == 0
    assert r.total_time_s == 0.0
