"""Scoring engine shared by both games.

Every function here is pure: the caller passes in the rules and the current
combo value and gets a new value back. ``TRIVIA_RULES`` and ``PATTERN_RULES``
hold the constants for Animal Kingdom and Memory Matrix respectively.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ComboState:
    current: int = 0
    multiplier: float = 1.0
    max_reached: int = 0
    is_on_fire: bool = False


EMPTY_COMBO = ComboState()


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    streak: int = 0
    speed: int = 0
    perfect: int = 0
    no_hints: int = 0
    time: int = 0

    @property
    def total(self) -> int:
        return self.streak + self.speed + self.perfect + self.no_hints + self.time


@dataclass(frozen=True, slots=True)
class ScoringRules:
    base_points: int
    time_bonus_max: int
    time_bonus_threshold_s: float
    # (minimum streak, multiplier), ascending by streak.
    combo_steps: tuple[tuple[int, float], ...]
    on_fire_streak: int
    hint_penalty: int
    difficulty_multipliers: dict[str, float] = field(hash=False)
    streak_bonus_per: int
    # (average response time strictly below, bonus), ascending by time.
    speed_tiers: tuple[tuple[float, int], ...]
    perfect_bonus: int
    no_hints_bonus: int
    star_thresholds: tuple[float, float, float] = (60.0, 80.0, 95.0)
    # Points per second left of the round's time budget.
    time_remaining_bonus_per_s: int = 0
    # Scale the whole round total by the tier instead of each item.
    scale_round_by_difficulty: bool = False

    def difficulty_multiplier(self, tier: str) -> float:
        return float(self.difficulty_multipliers.get(str(tier), 1.0))


TRIVIA_RULES = ScoringRules(
    base_points=100,
    time_bonus_max=50,
    time_bonus_threshold_s=5.0,
    combo_steps=((3, 1.5), (5, 2.0), (8, 2.5), (12, 3.0)),
    on_fire_streak=8,
    hint_penalty=25,
    difficulty_multipliers={"cub": 1.0, "tracker": 1.5, "ranger": 2.0, "expert": 3.0},
    streak_bonus_per=15,
    speed_tiers=((5.0, 150), (8.0, 75)),
    perfect_bonus=500,
    no_hints_bonus=200,
)

PATTERN_RULES = ScoringRules(
    base_points=100,
    time_bonus_max=0,
    time_bonus_threshold_s=0.0,
    combo_steps=(),
    on_fire_streak=8,
    hint_penalty=0,
    difficulty_multipliers={"easy": 1.0, "medium": 1.5, "hard": 2.0, "extreme": 3.0},
    streak_bonus_per=25,
    speed_tiers=(),
    perfect_bonus=500,
    no_hints_bonus=0,
    time_remaining_bonus_per_s=50,
    scale_round_by_difficulty=True,
)


def combo_multiplier(streak: int, rules: ScoringRules) -> float:
    multiplier = 1.0
    for min_streak, value in rules.combo_steps:
        if streak >= min_streak:
            multiplier = value
    return multiplier


def advance_combo(combo: ComboState, *, correct: bool, rules: ScoringRules) -> ComboState:
    """Return the combo after one evaluated item."""

    if not correct:
        return ComboState(
            current=0,
            multiplier=EMPTY_COMBO.multiplier,
            max_reached=combo.max_reached,
            is_on_fire=False,
        )
    streak = combo.current + 1
    return ComboState(
        current=streak,
        multiplier=combo_multiplier(streak, rules),
        max_reached=max(combo.max_reached, streak),
        is_on_fire=streak >= rules.on_fire_streak,
    )


def time_bonus(elapsed_s: float, rules: ScoringRules) -> int:
    threshold = rules.time_bonus_threshold_s
    if threshold <= 0.0 or elapsed_s >= threshold:
        return 0
    ratio = 1.0 - max(0.0, float(elapsed_s)) / threshold
    return int(math.floor(rules.time_bonus_max * ratio))


def item_score(
    *,
    correct: bool,
    elapsed_s: float,
    combo: ComboState,
    tier: str,
    hint_used: bool,
    rules: ScoringRules,
) -> int:
    """Points for a single answered item.

    ``combo`` is the combo value after this answer was counted, so the answer
    that reaches a streak threshold already earns the higher multiplier.
    """

    if not correct:
        return 0

    score = rules.base_points + time_bonus(elapsed_s, rules)
    score = math.floor(score * combo.multiplier)
    if not rules.scale_round_by_difficulty:
        score = math.floor(score * rules.difficulty_multiplier(tier))
    if hint_used:
        score = max(0, score - rules.hint_penalty)
    return int(score)


def speed_bonus(average_time_s: float, rules: ScoringRules) -> int:
    for below_s, bonus in rules.speed_tiers:
        if average_time_s < below_s:
            return int(bonus)
    return 0


def time_remaining_bonus(time_remaining_s: float, rules: ScoringRules) -> int:
    if rules.time_remaining_bonus_per_s <= 0 or not time_remaining_s > 0.0:
        return 0
    return int(math.floor(time_remaining_s * rules.time_remaining_bonus_per_s))


def aggregate_round(
    *,
    item_points: Sequence[int],
    accuracy: float,
    highest_streak: int,
    hints_used: int,
    wrong: int,
    average_time_s: float,
    rules: ScoringRules,
    tier: str = "",
    time_remaining_s: float = 0.0,
) -> tuple[int, ScoreBreakdown]:
    """Final round score and its individually reported bonuses.

    The breakdown is always unscaled. With ``scale_round_by_difficulty`` the
    tier multiplier applies to items and bonuses together.
    """

    if not item_points:
        return 0, ScoreBreakdown()

    breakdown = ScoreBreakdown(
        streak=int(max(0, highest_streak) * rules.streak_bonus_per),
        speed=speed_bonus(average_time_s, rules),
        perfect=rules.perfect_bonus if accuracy >= 100.0 and wrong == 0 else 0,
        no_hints=rules.no_hints_bonus if hints_used == 0 else 0,
        time=time_remaining_bonus(time_remaining_s, rules),
    )
    base = sum(max(0, int(p)) for p in item_points)
    total = base + breakdown.total
    if rules.scale_round_by_difficulty:
        total = int(math.floor(total * rules.difficulty_multiplier(tier)))
    return total, breakdown


def stars_for_accuracy(
    accuracy: float, thresholds: tuple[float, float, float] = (60.0, 80.0, 95.0)
) -> int:
    one, two, three = thresholds
    if accuracy >= three:
        return 3
    if accuracy >= two:
        return 2
    if accuracy >= one:
        return 1
    return 0


def rank_index(count: int, brackets: Sequence[tuple[int, str]]) -> int:
    idx = 0
    for i, (minimum, _) in enumerate(brackets):
        if count >= minimum:
            idx = i
    return idx


def rank_for_count(count: int, brackets: Sequence[tuple[int, str]]) -> str:
    return brackets[rank_index(count, brackets)][1]
