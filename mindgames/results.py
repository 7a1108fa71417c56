from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .scoring import ScoreBreakdown, ScoringRules, aggregate_round


@dataclass(frozen=True, slots=True)
class ItemResult:
    index: int
    subject_id: str
    selected_id: str | None  # None when skipped
    is_correct: bool
    time_spent_s: float
    points: int = 0
    used_hint: bool = False

    @property
    def skipped(self) -> bool:
        return self.selected_id is None


@dataclass(frozen=True, slots=True)
class RoundResult:
    """Terminal aggregate of one round.

    Built once when the round finishes and never mutated. The progression
    ledger consumes it; the session drops it when the next round starts.
    """

    level_id: int
    group: str
    difficulty: str

    total_items: int
    correct: int
    wrong: int
    skipped: int
    accuracy: float  # percent, 0-100
    total_time_s: float
    average_time_s: float
    median_time_s: float | None

    score: int
    highest_streak: int
    hints_used: int
    perfect_round: bool
    failed: bool
    bonus: ScoreBreakdown

    items: tuple[ItemResult, ...]
    learned_ids: tuple[str, ...]


def build_round_result(
    *,
    level_id: int,
    group: str,
    difficulty: str,
    items: Sequence[ItemResult],
    total_items: int,
    total_time_s: float,
    highest_streak: int,
    hints_used: int,
    rules: ScoringRules,
    failed: bool = False,
    track_learned: bool = True,
    time_remaining_s: float = 0.0,
) -> RoundResult:
    """Build a RoundResult from a finished round's item log.

    ``total_items`` is the number of planned items and the accuracy
    denominator. Planned items that never received an input count as skipped.
    """

    total = int(total_items) if total_items > 0 else len(items)
    correct = sum(1 for r in items if r.is_correct)
    wrong = sum(1 for r in items if not r.is_correct and not r.skipped)
    skipped = sum(1 for r in items if r.skipped) + max(0, total - len(items))
    accuracy = 0.0 if total == 0 else (correct / total) * 100.0

    times = sorted(float(r.time_spent_s) for r in items)
    average_time_s = 0.0 if not times else sum(times) / len(times)
    median_time_s: float | None
    if not times:
        median_time_s = None
    else:
        mid = len(times) // 2
        if len(times) % 2 == 1:
            median_time_s = times[mid]
        else:
            median_time_s = (times[mid - 1] + times[mid]) / 2.0

    score, bonus = aggregate_round(
        item_points=[r.points for r in items],
        accuracy=accuracy,
        highest_streak=highest_streak,
        hints_used=hints_used,
        wrong=wrong,
        average_time_s=average_time_s,
        rules=rules,
        tier=difficulty,
        time_remaining_s=time_remaining_s,
    )

    learned: list[str] = []
    if track_learned:
        for r in items:
            if r.is_correct and r.subject_id not in learned:
                learned.append(r.subject_id)

    return RoundResult(
        level_id=int(level_id),
        group=str(group),
        difficulty=str(difficulty),
        total_items=total,
        correct=correct,
        wrong=wrong,
        skipped=skipped,
        accuracy=float(accuracy),
        total_time_s=max(0.0, float(total_time_s)),
        average_time_s=float(average_time_s),
        median_time_s=median_time_s,
        score=int(score),
        highest_streak=int(highest_streak),
        hints_used=int(hints_used),
        perfect_round=bool(total > 0 and accuracy >= 100.0 and wrong == 0 and not failed),
        failed=bool(failed),
        bonus=bonus,
        items=tuple(items),
        learned_ids=tuple(learned),
    )
