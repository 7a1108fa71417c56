"""Shared round lifecycle for both games.

``GameSession`` owns one play session: the state tag, the selected level,
combo and per-round counters, and the single pending timer that drives the
countdown, reveal steps and per-item clocks. Subclasses supply the content
and the in-play intents; the base class handles selection, countdown,
pause/resume, completion and the exits from a finished round.

Time comes only from the injected ``Clock`` and timers only from the injected
``Scheduler``, so a headless test can drive a full round deterministically.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar

from .clock import Clock, Scheduler, TimerHandle
from .progression import ProgressionLedger, UnlockRequirement
from .results import ItemResult, RoundResult
from .scoring import EMPTY_COMBO, ComboState, ScoringRules, advance_combo

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GameState(str, Enum):
    MENU = "menu"
    CATEGORY_SELECT = "category_select"
    LEVEL_SELECT = "level_select"
    COUNTDOWN = "countdown"
    REVEAL = "reveal"
    PLAYING = "playing"
    PAUSED = "paused"
    RESULTS = "results"
    FAILED = "failed"


class RandomSource(Protocol):
    def random(self) -> float: ...
    def randint(self, a: int, b: int) -> int: ...
    def choice(self, seq: Sequence[T]) -> T: ...
    def sample(self, seq: Sequence[T], k: int) -> list[T]: ...
    def shuffled(self, seq: Sequence[T]) -> list[T]: ...


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def sample(self, seq: Sequence[T], k: int) -> list[T]:
        return self._rng.sample(list(seq), k)

    def shuffled(self, seq: Sequence[T]) -> list[T]:
        out = list(seq)
        self._rng.shuffle(out)
        return out


class SessionLevel(Protocol):
    @property
    def id(self) -> int: ...
    @property
    def group(self) -> str: ...
    @property
    def difficulty(self) -> str: ...
    @property
    def unlock_requirement(self) -> UnlockRequirement | None: ...


@dataclass(frozen=True, slots=True)
class SessionTiming:
    countdown_steps: int = 3
    countdown_step_s: float = 0.8
    countdown_go_s: float = 0.5
    tick_s: float = 1.0
    feedback_s: float = 0.5
    finish_s: float = 0.8
    skip_finish_s: float = 0.5

    def __post_init__(self) -> None:
        if self.countdown_steps < 0:
            raise ValueError("countdown_steps must be >= 0")
        for name in ("countdown_step_s", "countdown_go_s", "feedback_s", "finish_s", "skip_finish_s"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.tick_s <= 0:
            raise ValueError("tick_s must be > 0")


@dataclass(frozen=True, slots=True)
class GameSnapshot:
    """View model for the presentation layer (pure data)."""

    state: GameState
    level_id: int | None
    group: str | None
    countdown: int | None
    item_index: int
    item_count: int
    challenge: object | None
    combo: ComboState
    time_remaining_s: float | None
    hints_used: int
    hint_used_on_item: bool
    last_item: ItemResult | None
    result: RoundResult | None
    payload: object | None = None


class GameSession:
    """Base state machine: menu -> level select -> countdown -> play -> results.

    Intent methods return True when the intent was accepted and False when the
    current state does not accept it. Rejected intents change nothing.
    """

    title = ""

    def __init__(
        self,
        *,
        clock: Clock,
        scheduler: Scheduler,
        rng: RandomSource,
        rules: ScoringRules,
        ledger: ProgressionLedger | None = None,
        timing: SessionTiming | None = None,
    ) -> None:
        self._clock = clock
        self._scheduler = scheduler
        self._rng = rng
        self._rules = rules
        self._ledger = ledger
        self._timing = timing or SessionTiming()

        self._state = GameState.MENU
        self._level: SessionLevel | None = None
        self._countdown: int | None = None

        self._timer: TimerHandle | None = None
        self._timer_action: Callable[[], None] | None = None
        self._frozen_remaining_s: float | None = None
        self._paused_from: GameState | None = None
        self._paused_at_s: float | None = None
        self._paused_total_s = 0.0

        self._round_started_at_s: float | None = None
        self._item_presented_at_s: float | None = None
        self._combo = EMPTY_COMBO
        self._items: list[ItemResult] = []
        self._hints_used = 0
        self._result: RoundResult | None = None

    # Read-only state

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def level(self) -> SessionLevel | None:
        return self._level

    @property
    def combo(self) -> ComboState:
        return self._combo

    @property
    def result(self) -> RoundResult | None:
        return self._result

    @property
    def ledger(self) -> ProgressionLedger | None:
        return self._ledger

    def items(self) -> list[ItemResult]:
        return list(self._items)

    def snapshot(self) -> GameSnapshot:
        level = self._level
        return GameSnapshot(
            state=self._state,
            level_id=None if level is None else level.id,
            group=None if level is None else level.group,
            countdown=self._countdown if self._state is GameState.COUNTDOWN else None,
            item_index=self._item_index(),
            item_count=self._item_count(),
            challenge=self._current_challenge(),
            combo=self._combo,
            time_remaining_s=self.time_remaining_s(),
            hints_used=self._hints_used,
            hint_used_on_item=self._hint_used_on_item(),
            last_item=self._items[-1] if self._items else None,
            result=self._result,
            payload=self._payload(),
        )

    def time_remaining_s(self) -> float | None:
        return None

    # Intents shared by both games

    def open_level_select(self) -> bool:
        if self._state is not GameState.MENU:
            return False
        self._set_state(GameState.LEVEL_SELECT)
        return True

    def select_level(self, level_id: int) -> bool:
        if self._state is not GameState.LEVEL_SELECT:
            return False
        return self._start_level(level_id)

    def pause(self) -> bool:
        if self._state not in (GameState.PLAYING, GameState.REVEAL):
            return False
        now = self._clock.now()
        if self._timer is not None:
            self._frozen_remaining_s = self._timer.remaining_s(now)
            self._timer.cancel()
            self._timer = None
        self._paused_from = self._state
        self._paused_at_s = now
        self._set_state(GameState.PAUSED)
        return True

    def resume(self) -> bool:
        if self._state is not GameState.PAUSED:
            return False
        assert self._paused_from is not None
        assert self._paused_at_s is not None
        self._paused_total_s += max(0.0, self._clock.now() - self._paused_at_s)
        self._paused_at_s = None
        self._set_state(self._paused_from)
        self._paused_from = None
        if self._frozen_remaining_s is not None and self._timer_action is not None:
            self._arm(self._frozen_remaining_s, self._timer_action)
        self._frozen_remaining_s = None
        return True

    def retry(self) -> bool:
        if self._state not in (GameState.RESULTS, GameState.FAILED) or self._level is None:
            return False
        return self._start_level(self._level.id)

    def next_level(self) -> bool:
        """Start the successor level if it exists and is unlocked.

        Otherwise return to level select so the player can choose.
        """

        if self._state not in (GameState.RESULTS, GameState.FAILED) or self._level is None:
            return False
        successor = self._successor_of(self._level.id)
        if successor is not None and self._is_unlocked(successor.id):
            return self._start_level(successor.id)
        self._clear_round()
        self._set_state(GameState.LEVEL_SELECT)
        return True

    def reset(self) -> bool:
        self._disarm()
        self._clear_round()
        self._level = None
        self._on_reset()
        self._set_state(GameState.MENU)
        return True

    # Round lifecycle

    def _start_level(self, level_id: int) -> bool:
        level = self._lookup_level(level_id)
        if level is None:
            return False
        if not self._is_unlocked(level.id):
            logger.debug("%s: level %d is locked", self.title, level.id)
            return False

        self._disarm()
        self._clear_round()
        self._level = level
        if not self._prepare_round(level):
            logger.warning("%s: no content generated for level %d", self.title, level.id)
            self._level = None
            self._set_state(GameState.LEVEL_SELECT)
            return False

        self._countdown = self._timing.countdown_steps
        self._set_state(GameState.COUNTDOWN)
        if self._countdown > 0:
            self._arm(self._timing.countdown_step_s, self._countdown_step)
        else:
            self._arm(self._timing.countdown_go_s, self._countdown_done)
        return True

    def _countdown_step(self) -> None:
        assert self._countdown is not None
        self._countdown -= 1
        if self._countdown > 0:
            self._arm(self._timing.countdown_step_s, self._countdown_step)
        else:
            self._arm(self._timing.countdown_go_s, self._countdown_done)

    def _countdown_done(self) -> None:
        self._countdown = None
        self._round_started_at_s = self._active_now()
        self._begin_round()

    def _clear_round(self) -> None:
        self._countdown = None
        self._timer_action = None
        self._frozen_remaining_s = None
        self._paused_from = None
        self._paused_at_s = None
        self._paused_total_s = 0.0
        self._round_started_at_s = None
        self._item_presented_at_s = None
        self._combo = EMPTY_COMBO
        self._items = []
        self._hints_used = 0
        self._result = None

    def _evaluate(self, *, correct: bool) -> ComboState:
        self._combo = advance_combo(self._combo, correct=correct, rules=self._rules)
        return self._combo

    def _present_item(self) -> None:
        self._item_presented_at_s = self._active_now()

    def _item_elapsed_s(self) -> float:
        if self._item_presented_at_s is None:
            return 0.0
        return max(0.0, self._active_now() - self._item_presented_at_s)

    def _round_elapsed_s(self) -> float:
        if self._round_started_at_s is None:
            return 0.0
        return max(0.0, self._active_now() - self._round_started_at_s)

    def _finish(self, *, failed: bool = False) -> None:
        self._disarm()
        self._timer_action = None
        self._result = self._build_result(failed=failed)
        self._set_state(GameState.FAILED if failed else GameState.RESULTS)
        if self._ledger is not None and self._level is not None:
            self._ledger.record(self._level.id, self._result)

    def _is_unlocked(self, level_id: int) -> bool:
        if self._ledger is None:
            return True
        return self._ledger.is_unlocked(level_id)

    # Timers

    def _active_now(self) -> float:
        """Clock time with paused intervals removed."""

        paused = self._paused_total_s
        if self._paused_at_s is not None:
            paused += max(0.0, self._clock.now() - self._paused_at_s)
        return self._clock.now() - paused

    def _arm(self, delay_s: float, action: Callable[[], None]) -> None:
        self._disarm()
        self._timer_action = action

        def fire() -> None:
            self._timer = None
            action()

        self._timer = self._scheduler.after(delay_s, fire)

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_state(self, state: GameState) -> None:
        if state is not self._state:
            logger.debug("%s: %s -> %s", self.title, self._state.value, state.value)
        self._state = state

    # Hooks for the concrete games

    def _lookup_level(self, level_id: int) -> SessionLevel | None:
        raise NotImplementedError

    def _successor_of(self, level_id: int) -> SessionLevel | None:
        raise NotImplementedError

    def _prepare_round(self, level: SessionLevel) -> bool:
        """Generate the round's content. Return False when nothing was generated."""
        raise NotImplementedError

    def _begin_round(self) -> None:
        raise NotImplementedError

    def _build_result(self, *, failed: bool) -> RoundResult:
        raise NotImplementedError

    def _on_reset(self) -> None:
        pass

    def _item_index(self) -> int:
        return 0

    def _item_count(self) -> int:
        return 0

    def _current_challenge(self) -> object | None:
        return None

    def _hint_used_on_item(self) -> bool:
        return False

    def _payload(self) -> object | None:
        return None
