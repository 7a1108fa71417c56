from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import pytest

from mindgames.persistence import MemoryStore
from mindgames.progression import (
    LevelProgress,
    ProgressionLedger,
    UnlockRequirement,
    correct_count,
)
from mindgames.results import ItemResult, RoundResult, build_round_result
from mindgames.scoring import TRIVIA_RULES


@dataclass(frozen=True)
class FakeLevel:
    id: int
    group: str
    unlock_requirement: UnlockRequirement | None = None


LEVELS = (
    FakeLevel(1, "north"),
    FakeLevel(2, "north", UnlockRequirement(level_id=1, min_score=500)),
    FakeLevel(3, "north", UnlockRequirement(level_id=2, min_accuracy=80.0)),
    FakeLevel(10, "south"),
)

BRACKETS = ((0, "novice"), (2, "adept"), (4, "master"))


def _ledger(store, **kw) -> ProgressionLedger:
    return ProgressionLedger(
        store=store,
        storage_key="test-progress",
        levels=LEVELS,
        entry_level_ids=(1, 10),
        rank_brackets=BRACKETS,
        **kw,
    )


def _result(level_id: int, *, correct: int, total: int, points: int = 100, subjects: tuple[str, ...] = ()) -> RoundResult:
    items = []
    for i in range(total):
        ok = i < correct
        subject = subjects[i] if i < len(subjects) else f"s{i}"
        items.append(
            ItemResult(
                index=i,
                subject_id=subject,
                selected_id=subject if ok else "wrong",
                is_correct=ok,
                time_spent_s=10.0,
                points=points if ok else 0,
            )
        )
    return build_round_result(
        level_id=level_id,
        group="north",
        difficulty="cub",
        items=items,
        total_items=total,
        total_time_s=10.0 * total,
        highest_streak=correct,
        hints_used=1,
        rules=TRIVIA_RULES,
    )


def test_entry_levels_are_unlocked_and_others_locked_on_fresh_store() -> None:
    ledger = _ledger(MemoryStore())
    assert ledger.is_unlocked(1) is True
    assert ledger.is_unlocked(10) is True
    assert ledger.is_unlocked(2) is False
    assert ledger.is_unlocked(99) is False
    assert ledger.progress_of(1).unlocked is True
    assert ledger.progress_of(2) == LevelProgress(level_id=2)
    assert ledger.rank() == "novice"


def test_recording_merges_bests_and_unlocks_successor() -> None:
    store = MemoryStore()
    ledger = _ledger(store)

    strong = _result(1, correct=5, total=5)
    assert strong.score >= 500
    ledger.record(1, strong)

    weak = _result(1, correct=1, total=5)
    ledger.record(1, weak)

    p = ledger.progress_of(1)
    assert p.high_score == strong.score
    assert p.best_accuracy == pytest.approx(100.0)
    assert p.times_played == 2
    assert p.times_completed == 1
    assert p.times_perfect == 1
    assert p.stars == 3
    assert ledger.is_unlocked(2) is True
    assert ledger.is_unlocked(3) is False


def test_requirement_not_met_keeps_level_locked() -> None:
    ledger = _ledger(MemoryStore())
    ledger.record(1, _result(1, correct=1, total=5))
    assert ledger.progress_of(1).high_score < 500
    assert ledger.is_unlocked(2) is False


def test_accuracy_requirement() -> None:
    store = MemoryStore()
    ledger = _ledger(store)
    ledger.record(1, _result(1, correct=5, total=5))
    ledger.record(2, _result(2, correct=3, total=5))
    assert ledger.is_unlocked(3) is False
    ledger.record(2, _result(2, correct=4, total=5))
    assert ledger.is_unlocked(3) is True


def test_progress_survives_a_new_ledger_over_the_same_store() -> None:
    store = MemoryStore()
    first = _ledger(store)
    first.record(1, _result(1, correct=4, total=5, subjects=("a", "b", "c", "d")))

    raw = store.load("test-progress")
    assert raw is not None
    doc = json.loads(raw)
    assert doc["levels"]["1"]["times_played"] == 1

    second = _ledger(store)
    assert second.progress_of(1) == first.progress_of(1)
    assert second.stats().learned_ids == ("a", "b", "c", "d")
    assert second.rank() == "master"
    assert second.total_stars() == 2
    assert second.group_stars("north") == 2
    assert second.group_stars("south") == 0


def test_rank_never_regresses_when_basis_counts_fall() -> None:
    store = MemoryStore(
        {
            "test-progress": json.dumps(
                {"levels": {}, "stats": {"learned_ids": [], "rank": "master"}}
            ).encode("utf-8")
        }
    )
    ledger = _ledger(store)
    ledger.record(1, _result(1, correct=0, total=2))
    assert ledger.rank() == "master"


def test_correct_count_rank_basis() -> None:
    ledger = _ledger(MemoryStore(), rank_basis=correct_count)
    ledger.record(1, _result(1, correct=2, total=2))
    assert ledger.stats().total_correct == 2
    assert ledger.rank() == "adept"


def test_corrupt_document_falls_back_to_defaults(caplog: pytest.LogCaptureFixture) -> None:
    store = MemoryStore({"test-progress": b"\xff not json"})
    with caplog.at_level(logging.WARNING, logger="mindgames.progression"):
        ledger = _ledger(store)
        assert ledger.is_unlocked(2) is False
        assert ledger.total_stars() == 0
    assert any("not valid JSON" in r.getMessage() for r in caplog.records)


def test_malformed_fields_are_read_leniently() -> None:
    doc = {
        "levels": {
            "1": {"high_score": "oops", "best_accuracy": 250, "stars": 9, "unlocked": True},
            "x": {"high_score": 1},
            "2": "nope",
        },
        "stats": {"rank": "unheard-of", "learned_ids": ["a", "a", "", "b", "c", "d"]},
    }
    ledger = _ledger(MemoryStore({"test-progress": json.dumps(doc).encode("utf-8")}))
    p = ledger.progress_of(1)
    assert p.high_score == 0
    assert p.best_accuracy == 100.0
    assert p.stars == 3
    assert ledger.progress_of(2).unlocked is False
    assert ledger.stats().learned_ids == ("a", "b", "c", "d")
    assert ledger.rank() == "master"


class BrokenStore:
    def load(self, key: str) -> bytes | None:
        raise OSError("disk gone")

    def save(self, key: str, data: bytes) -> None:
        raise OSError("disk gone")


def test_store_failures_never_reach_the_caller(caplog: pytest.LogCaptureFixture) -> None:
    ledger = _ledger(BrokenStore())
    with caplog.at_level(logging.WARNING, logger="mindgames.progression"):
        ledger.record(1, _result(1, correct=5, total=5))
    assert ledger.progress_of(1).times_played == 1
    assert ledger.is_unlocked(2) is True
    assert len(caplog.records) >= 2


def test_invalid_configuration_is_rejected() -> None:
    with pytest.raises(ValueError):
        _ledger(MemoryStore(), completion_threshold=120.0)
    with pytest.raises(ValueError):
        ProgressionLedger(
            store=MemoryStore(),
            storage_key="k",
            levels=LEVELS,
            entry_level_ids=(1,),
            rank_brackets=(),
        )


def test_non_finite_numbers_in_stored_progress_fall_back_to_defaults() -> None:
    raw = b'{"levels": {"1": {"high_score": Infinity, "best_accuracy": NaN, "unlocked": true}, "2": {"best_streak": -Infinity}}, "stats": {"total_play_time_s": NaN, "total_correct": Infinity}}'
    ledger = _ledger(MemoryStore({"test-progress": raw}))

    assert ledger.is_unlocked(2) is False
    p = ledger.progress_of(1)
    assert p.high_score == 0
    assert p.best_accuracy == 0.0
    assert p.unlocked is True
    assert ledger.progress_of(2).best_streak == 0
    assert ledger.stats().total_play_time_s == 0.0
    assert ledger.stats().total_correct == 0

    ledger.record(1, _result(1, correct=4, total=5))
    assert ledger.progress_of(1).best_accuracy == pytest.approx(80.0)


def test_only_a_literal_true_marks_a_level_unlocked() -> None:
    doc = {"levels": {"2": {"unlocked": "false"}, "3": {"unlocked": 1}}}
    ledger = _ledger(MemoryStore({"test-progress": json.dumps(doc).encode("utf-8")}))
    assert ledger.progress_of(2).unlocked is False
    assert ledger.progress_of(3).unlocked is False
    assert ledger.is_unlocked(2) is False
