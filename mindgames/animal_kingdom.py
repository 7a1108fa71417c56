from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from .animal_data import (
    ANIMALS,
    CONTRADICTING_HABITAT,
    HABITATS,
    HABITATS_BY_ID,
    Animal,
    AnimalCategory,
    Diet,
    Habitat,
)
from .clock import Clock, Scheduler
from .game_core import GameSession, GameState, RandomSource, SessionTiming
from .persistence import KeyValueStore
from .progression import ProgressionLedger, UnlockRequirement, learned_count
from .results import ItemResult, RoundResult, build_round_result
from .scoring import TRIVIA_RULES, item_score

logger = logging.getLogger(__name__)

STORAGE_KEY = "animal-kingdom-progress"

RANK_BRACKETS: tuple[tuple[int, str], ...] = (
    (0, "observer"),
    (11, "tracker"),
    (26, "naturalist"),
    (51, "biologist"),
    (81, "conservationist"),
    (121, "wildlife-master"),
)

TRUE_FACT_THRESHOLD = 0.4  # rng.random() above this shows a true fact


class QuestionKind(StrEnum):
    IDENTIFY = "identify"
    HABITAT = "habitat"
    CLASSIFICATION = "classification"
    FACT_CHECK = "fact_check"


class Difficulty(StrEnum):
    CUB = "cub"
    TRACKER = "tracker"
    RANGER = "ranger"
    EXPERT = "expert"


OPTION_COUNTS: dict[Difficulty, int] = {
    Difficulty.CUB: 3,
    Difficulty.TRACKER: 4,
    Difficulty.RANGER: 4,
    Difficulty.EXPERT: 5,
}


@dataclass(frozen=True, slots=True)
class AnimalLevel:
    id: int
    name: str
    category: AnimalCategory
    difficulty: Difficulty
    description: str
    question_count: int
    time_limit_s: float  # per question, 0 = untimed
    question_kinds: tuple[QuestionKind, ...]
    unlock_requirement: UnlockRequirement | None = None

    def __post_init__(self) -> None:
        if self.question_count <= 0:
            raise ValueError("question_count must be > 0")
        if self.time_limit_s < 0:
            raise ValueError("time_limit_s must be >= 0")
        if not self.question_kinds:
            raise ValueError("question_kinds must not be empty")

    @property
    def group(self) -> str:
        return str(self.category)


def _level(
    id: int,
    name: str,
    category: AnimalCategory,
    difficulty: Difficulty,
    description: str,
    question_count: int,
    time_limit_s: float,
    kinds: tuple[QuestionKind, ...],
    requires: tuple[int, int] | None = None,
) -> AnimalLevel:
    req = None if requires is None else UnlockRequirement(level_id=requires[0], min_score=requires[1])
    return AnimalLevel(id, name, category, difficulty, description, question_count, time_limit_s, kinds, req)


_ID = (QuestionKind.IDENTIFY,)
_HAB = (QuestionKind.HABITAT, QuestionKind.IDENTIFY)
_FACT = (QuestionKind.FACT_CHECK, QuestionKind.IDENTIFY)
_CLS = (QuestionKind.CLASSIFICATION, QuestionKind.IDENTIFY)
_ALL = (QuestionKind.IDENTIFY, QuestionKind.HABITAT, QuestionKind.FACT_CHECK, QuestionKind.CLASSIFICATION)

_MAM = AnimalCategory.MAMMALS
_BRD = AnimalCategory.BIRDS
_OCN = AnimalCategory.OCEAN_LIFE
_REP = AnimalCategory.REPTILES_AMPHIBIANS

LEVELS: tuple[AnimalLevel, ...] = (
    _level(1, "Baby Steps", _MAM, Difficulty.CUB, "Meet some amazing mammals!", 8, 30, _ID),
    _level(2, "Mammal Homes", _MAM, Difficulty.CUB, "Learn where mammals live", 10, 25, _HAB, (1, 500)),
    _level(3, "Wild Facts", _MAM, Difficulty.TRACKER, "Discover amazing mammal facts", 10, 20, _FACT, (2, 600)),
    _level(4, "Classification", _MAM, Difficulty.TRACKER, "Classify mammals by their traits", 12, 20, _CLS, (3, 700)),
    _level(5, "Mammal Expert", _MAM, Difficulty.RANGER, "Advanced mammal challenges", 15, 15, _ALL, (4, 800)),
    _level(6, "Mammal Master", _MAM, Difficulty.EXPERT, "The ultimate mammal challenge!", 20, 10, _ALL, (5, 1200)),
    _level(7, "Feathered Friends", _BRD, Difficulty.CUB, "Meet colorful birds", 8, 30, _ID),
    _level(8, "Bird Nests", _BRD, Difficulty.CUB, "Learn where birds call home", 10, 25, _HAB, (7, 500)),
    _level(9, "Flight School", _BRD, Difficulty.TRACKER, "Amazing bird facts", 10, 20, _FACT, (8, 600)),
    _level(10, "Beak & Feather", _BRD, Difficulty.TRACKER, "Classify birds by features", 12, 20, _CLS, (9, 650)),
    _level(11, "Bird Watcher", _BRD, Difficulty.RANGER, "Advanced bird challenges", 15, 15, _ALL, (10, 750)),
    _level(12, "Ornithologist", _BRD, Difficulty.EXPERT, "The ultimate bird challenge!", 20, 10, _ALL, (11, 1000)),
    _level(13, "Ocean Explorers", _OCN, Difficulty.CUB, "Dive into ocean life!", 8, 30, _ID),
    _level(14, "Deep Blue", _OCN, Difficulty.CUB, "Ocean habitats and zones", 8, 25, _HAB, (13, 500)),
    _level(15, "Sea Secrets", _OCN, Difficulty.TRACKER, "Fascinating ocean facts", 10, 20, _FACT, (14, 600)),
    _level(16, "Scales & Fins", _OCN, Difficulty.TRACKER, "Classify ocean creatures", 10, 20, _CLS, (15, 650)),
    _level(17, "Marine Biologist", _OCN, Difficulty.RANGER, "Advanced ocean challenges", 12, 15, _ALL, (16, 750)),
    _level(18, "Ocean Master", _OCN, Difficulty.EXPERT, "The ultimate ocean challenge!", 15, 12, _ALL, (17, 900)),
    _level(19, "Cold-Blooded", _REP, Difficulty.CUB, "Meet scaly friends!", 10, 25, _ID),
    _level(20, "Swamp & Sun", _REP, Difficulty.TRACKER, "Reptile and amphibian habitats", 12, 20, _HAB, (19, 600)),
    _level(21, "Scales & Slime", _REP, Difficulty.TRACKER, "Amazing facts about these creatures", 12, 20, _FACT, (20, 700)),
    _level(22, "Venom & Virtue", _REP, Difficulty.RANGER, "Classify these fascinating animals", 15, 18, _CLS, (21, 800)),
    _level(23, "Herpetologist", _REP, Difficulty.RANGER, "Advanced reptile challenges", 18, 15, _ALL, (22, 1000)),
    _level(24, "Reptile Ruler", _REP, Difficulty.EXPERT, "The ultimate reptile challenge!", 25, 12, _ALL, (23, 1500)),
)

LEVELS_BY_ID: dict[int, AnimalLevel] = {lvl.id: lvl for lvl in LEVELS}


def levels_in(category: AnimalCategory | str) -> tuple[AnimalLevel, ...]:
    return tuple(lvl for lvl in LEVELS if lvl.category == category)


def entry_level_ids(levels: Sequence[AnimalLevel] = LEVELS) -> tuple[int, ...]:
    """First level of every category; always playable."""

    seen: dict[str, int] = {}
    for lvl in levels:
        seen.setdefault(lvl.group, lvl.id)
    return tuple(seen.values())


def next_level_after(level_id: int, levels: Sequence[AnimalLevel] = LEVELS) -> AnimalLevel | None:
    ids = [lvl.id for lvl in levels]
    if level_id not in ids:
        return None
    idx = ids.index(level_id)
    if idx >= len(levels) - 1:
        return None
    return levels[idx + 1]


@dataclass(frozen=True, slots=True)
class QuestionOption:
    id: str
    text: str
    is_correct: bool


@dataclass(frozen=True, slots=True)
class Question:
    id: str
    kind: QuestionKind
    prompt: str
    subject_id: str  # animal the question is about
    options: tuple[QuestionOption, ...]
    hint: str
    image_hint: str
    explanation: str

    @property
    def correct_option(self) -> QuestionOption:
        return next(o for o in self.options if o.is_correct)

    def option(self, option_id: str) -> QuestionOption | None:
        for o in self.options:
            if o.id == option_id:
                return o
        return None


@dataclass(frozen=True, slots=True)
class _Classification:
    prompt: str
    choices: tuple[tuple[str, str], ...]  # (option id, text)
    correct_id: str
    explanation: str


class QuestionGenerator:
    """Builds a round of questions for a level from the animal table.

    All randomness goes through the injected source, so a second generator
    seeded the same way yields exactly the same questions.
    """

    def __init__(
        self,
        rng: RandomSource,
        *,
        animals: Sequence[Animal] = ANIMALS,
        habitats: Sequence[Habitat] = HABITATS,
    ) -> None:
        self._rng = rng
        self._animals = tuple(animals)
        self._habitats = tuple(habitats)

    def generate(self, level: AnimalLevel) -> list[Question]:
        pool = [a for a in self._animals if a.category == level.category]
        if not pool:
            logger.warning("no animals for category %s", level.category)
            return []

        option_count = OPTION_COUNTS.get(level.difficulty, 4)
        subjects = self._rng.shuffled(pool)
        questions: list[Question] = []
        for i in range(level.question_count):
            kind = self._rng.choice(level.question_kinds)
            animal = subjects[i % len(subjects)]
            questions.append(self.build(kind, animal, pool=pool, option_count=option_count, index=i))
        return self._rng.shuffled(questions)

    def build(
        self,
        kind: QuestionKind,
        animal: Animal,
        *,
        pool: Sequence[Animal],
        option_count: int,
        index: int,
    ) -> Question:
        if kind is QuestionKind.IDENTIFY:
            return self._identify(animal, pool, option_count, index)
        if kind is QuestionKind.HABITAT:
            return self._habitat(animal, option_count, index)
        if kind is QuestionKind.FACT_CHECK:
            return self._fact_check(animal, index)
        return self._classification(animal, index)

    def _identify(self, animal: Animal, pool: Sequence[Animal], option_count: int, index: int) -> Question:
        others = [a for a in pool if a.id != animal.id]
        wrong = self._rng.sample(others, min(len(others), max(0, option_count - 1)))
        options = self._options(
            QuestionOption(animal.id, animal.name, True),
            [QuestionOption(a.id, a.name, False) for a in wrong],
        )
        return Question(
            id=f"identify-{animal.id}-{index}",
            kind=QuestionKind.IDENTIFY,
            prompt="Which animal is this?",
            subject_id=animal.id,
            options=options,
            hint=animal.description,
            image_hint=animal.emoji,
            explanation=f"This is a {animal.name}! {animal.fun_facts[0]}",
        )

    def _habitat(self, animal: Animal, option_count: int, index: int) -> Question:
        home = HABITATS_BY_ID[animal.habitat]
        others = [h for h in self._habitats if h.id != home.id]
        wrong = self._rng.sample(others, min(len(others), max(0, option_count - 1)))
        options = self._options(
            QuestionOption(home.id, home.name, True),
            [QuestionOption(h.id, h.name, False) for h in wrong],
        )
        return Question(
            id=f"habitat-{animal.id}-{index}",
            kind=QuestionKind.HABITAT,
            prompt=f"Where does the {animal.name} live?",
            subject_id=animal.id,
            options=options,
            hint="Think about the climate this animal needs to survive.",
            image_hint=animal.emoji,
            explanation=f"The {animal.name} lives in the {home.name.lower()}! {home.description}",
        )

    def _fact_check(self, animal: Animal, index: int) -> Question:
        if self._rng.random() > TRUE_FACT_THRESHOLD:
            statement = self._rng.choice(animal.fun_facts)
            is_true = True
            explanation = f"That's true! {statement}"
        else:
            statement = self._rng.choice(false_statements(animal))
            is_true = False
            explanation = f"That's false! Here's a real fact: {animal.fun_facts[0]}"

        return Question(
            id=f"fact-{animal.id}-{index}",
            kind=QuestionKind.FACT_CHECK,
            prompt=f"True or False: {statement}",
            subject_id=animal.id,
            options=(
                QuestionOption("true", "True", is_true),
                QuestionOption("false", "False", not is_true),
            ),
            hint=f"Think about what you know about the {animal.name}.",
            image_hint=animal.emoji,
            explanation=explanation,
        )

    def _classification(self, animal: Animal, index: int) -> Question:
        # Uniform over whichever attributes are known for this animal.
        picked = self._rng.choice(classifications_for(animal))
        options = self._options(
            *_split_correct(picked.choices, picked.correct_id),
        )
        return Question(
            id=f"classification-{animal.id}-{index}",
            kind=QuestionKind.CLASSIFICATION,
            prompt=picked.prompt,
            subject_id=animal.id,
            options=options,
            hint=f"Think about the {animal.name}'s lifestyle and characteristics.",
            image_hint=animal.emoji,
            explanation=picked.explanation,
        )

    def _options(
        self, correct: QuestionOption, wrong: Sequence[QuestionOption]
    ) -> tuple[QuestionOption, ...]:
        by_id: dict[str, QuestionOption] = {correct.id: correct}
        for opt in wrong:
            if opt.id not in by_id:
                by_id[opt.id] = QuestionOption(opt.id, opt.text, False)
        return tuple(self._rng.shuffled(list(by_id.values())))


def _split_correct(
    choices: Sequence[tuple[str, str]], correct_id: str
) -> tuple[QuestionOption, list[QuestionOption]]:
    correct: QuestionOption | None = None
    wrong: list[QuestionOption] = []
    for option_id, text in choices:
        if option_id == correct_id:
            correct = QuestionOption(option_id, text, True)
        else:
            wrong.append(QuestionOption(option_id, text, False))
    assert correct is not None
    return correct, wrong


def false_statements(animal: Animal) -> list[str]:
    """Statements that contradict a known attribute of ``animal``."""

    name = animal.name
    out: list[str] = []

    if animal.diet is Diet.CARNIVORE:
        out.append(f"The {name} is a herbivore that only eats plants.")
    elif animal.diet is Diet.HERBIVORE:
        out.append(f"The {name} is a fierce predator that hunts other animals.")
    else:
        out.append(f"The {name} never eats anything but plants.")

    wrong_home = HABITATS_BY_ID[CONTRADICTING_HABITAT[animal.habitat]]
    out.append(f"The {name} lives mainly in the {wrong_home.name.lower()}.")

    if animal.can_fly is True:
        out.append(f"The {name} cannot fly.")
    elif animal.can_fly is False:
        out.append(f"The {name} can fly.")

    if animal.is_nocturnal is True:
        out.append(f"The {name} is most active during the day.")
    elif animal.is_nocturnal is False:
        out.append(f"The {name} is most active at night.")

    if animal.is_endangered is True:
        out.append(f"The {name} is not endangered.")
    elif animal.is_endangered is False:
        out.append(f"The {name} is an endangered species.")

    return out


def classifications_for(animal: Animal) -> list[_Classification]:
    name = animal.name
    diet_note = {
        Diet.HERBIVORE: "They only eat plants!",
        Diet.CARNIVORE: "They eat other animals!",
        Diet.OMNIVORE: "They eat both plants and animals!",
    }[animal.diet]
    out = [
        _Classification(
            prompt=f"What type of eater is the {name}?",
            choices=(("herbivore", "Herbivore"), ("carnivore", "Carnivore"), ("omnivore", "Omnivore")),
            correct_id=str(animal.diet),
            explanation=f"The {name} is a {animal.diet}. {diet_note}",
        )
    ]

    if animal.is_endangered is not None:
        out.append(
            _Classification(
                prompt=f"Is the {name} endangered?",
                choices=(("endangered", "Yes, endangered"), ("not-endangered", "No, not endangered")),
                correct_id="endangered" if animal.is_endangered else "not-endangered",
                explanation=(
                    f"Sadly, the {name} is endangered. We need to protect it!"
                    if animal.is_endangered
                    else f"Good news! The {name} is not currently endangered."
                ),
            )
        )

    if animal.category is AnimalCategory.BIRDS and animal.can_fly is not None:
        out.append(
            _Classification(
                prompt=f"Can the {name} fly?",
                choices=(("can-fly", "Yes"), ("cannot-fly", "No")),
                correct_id="can-fly" if animal.can_fly else "cannot-fly",
                explanation=(
                    f"Yes! The {name} can fly."
                    if animal.can_fly
                    else f"No, the {name} cannot fly, even though it is a bird!"
                ),
            )
        )

    if animal.is_nocturnal is not None:
        out.append(
            _Classification(
                prompt=f"Is the {name} nocturnal (active at night)?",
                choices=(("nocturnal", "Yes, nocturnal"), ("diurnal", "No, active during the day")),
                correct_id="nocturnal" if animal.is_nocturnal else "diurnal",
                explanation=(
                    f"The {name} is nocturnal, meaning it is most active at night!"
                    if animal.is_nocturnal
                    else f"The {name} is active during the day."
                ),
            )
        )

    return out


@dataclass(frozen=True, slots=True)
class AnimalKingdomPayload:
    category: str | None
    answered: bool
    hint: str | None  # shown once the hint has been used
    explanation: str | None  # shown after the question is answered


class AnimalKingdomGame(GameSession):
    """Trivia round: countdown, then timed multiple-choice questions."""

    title = "Animal Kingdom"

    def __init__(
        self,
        *,
        clock: Clock,
        scheduler: Scheduler,
        rng: RandomSource,
        ledger: ProgressionLedger | None = None,
        timing: SessionTiming | None = None,
        levels: Sequence[AnimalLevel] = LEVELS,
        generator: QuestionGenerator | None = None,
    ) -> None:
        super().__init__(
            clock=clock,
            scheduler=scheduler,
            rng=rng,
            rules=TRIVIA_RULES,
            ledger=ledger,
            timing=timing,
        )
        self._levels = tuple(levels)
        self._levels_by_id = {lvl.id: lvl for lvl in self._levels}
        self._generator = generator or QuestionGenerator(rng)

        self._category: AnimalCategory | None = None
        self._questions: list[Question] = []
        self._index = 0
        self._answered = False
        self._hint_used = False
        self._time_remaining: int | None = None

    @property
    def category(self) -> AnimalCategory | None:
        return self._category

    def questions(self) -> list[Question]:
        return list(self._questions)

    def current_question(self) -> Question | None:
        if self.state not in (GameState.PLAYING, GameState.PAUSED):
            return None
        if self._index >= len(self._questions):
            return None
        return self._questions[self._index]

    def time_remaining_s(self) -> float | None:
        if self.state not in (GameState.PLAYING, GameState.PAUSED) or self._time_remaining is None:
            return None
        return float(self._time_remaining)

    # Intents

    def open_category_select(self) -> bool:
        if self.state not in (GameState.MENU, GameState.LEVEL_SELECT):
            return False
        self._set_state(GameState.CATEGORY_SELECT)
        return True

    def select_category(self, category: AnimalCategory | str) -> bool:
        if self.state not in (GameState.CATEGORY_SELECT, GameState.LEVEL_SELECT):
            return False
        try:
            chosen = AnimalCategory(category)
        except ValueError:
            return False
        self._category = chosen
        self._set_state(GameState.LEVEL_SELECT)
        return True

    def submit_answer(self, option_id: str) -> bool:
        question = self._open_question()
        if question is None:
            return False
        option = question.option(str(option_id))
        if option is None:
            return False

        assert self._level is not None
        elapsed = self._item_elapsed_s()
        correct = option.is_correct
        combo = self._evaluate(correct=correct)
        points = item_score(
            correct=correct,
            elapsed_s=elapsed,
            combo=combo,
            tier=self._level.difficulty,
            hint_used=self._hint_used,
            rules=TRIVIA_RULES,
        )
        self._items.append(
            ItemResult(
                index=self._index,
                subject_id=question.subject_id,
                selected_id=option.id,
                is_correct=correct,
                time_spent_s=elapsed,
                points=points,
                used_hint=self._hint_used,
            )
        )
        self._answered = True
        if self._is_last_question():
            self._arm(self._timing.finish_s, self._finish)
        else:
            self._arm(self._timing.feedback_s, self._advance)
        return True

    def skip(self) -> bool:
        if self._open_question() is None:
            return False
        self._record_skip()
        return True

    def use_hint(self) -> bool:
        if self._open_question() is None or self._hint_used:
            return False
        self._hint_used = True
        self._hints_used += 1
        return True

    # Round flow

    def _open_question(self) -> Question | None:
        if self.state is not GameState.PLAYING or self._answered:
            return None
        if self._index >= len(self._questions):
            return None
        return self._questions[self._index]

    def _is_last_question(self) -> bool:
        return self._index >= len(self._questions) - 1

    def _record_skip(self) -> None:
        question = self._questions[self._index]
        elapsed = self._item_elapsed_s()
        self._evaluate(correct=False)
        self._items.append(
            ItemResult(
                index=self._index,
                subject_id=question.subject_id,
                selected_id=None,
                is_correct=False,
                time_spent_s=elapsed,
                points=0,
                used_hint=self._hint_used,
            )
        )
        if self._is_last_question():
            self._answered = True
            self._arm(self._timing.skip_finish_s, self._finish)
        else:
            self._advance()

    def _advance(self) -> None:
        self._index += 1
        if self._index >= len(self._questions):
            self._finish()
            return
        self._present_question()

    def _present_question(self) -> None:
        assert self._level is not None
        self._answered = False
        self._hint_used = False
        self._present_item()
        if self._level.time_limit_s > 0:
            self._time_remaining = int(round(self._level.time_limit_s))
            self._arm(self._timing.tick_s, self._tick)
        else:
            self._time_remaining = None
            self._disarm()

    def _tick(self) -> None:
        if self.state is not GameState.PLAYING or self._time_remaining is None or self._answered:
            return
        self._time_remaining = max(0, self._time_remaining - 1)
        if self._time_remaining == 0:
            logger.debug("question %d timed out", self._index)
            self._record_skip()
            return
        self._arm(self._timing.tick_s, self._tick)

    # GameSession hooks

    def _lookup_level(self, level_id: int) -> AnimalLevel | None:
        try:
            return self._levels_by_id.get(int(level_id))
        except (TypeError, ValueError):
            return None

    def _successor_of(self, level_id: int) -> AnimalLevel | None:
        return next_level_after(level_id, self._levels)

    def _prepare_round(self, level: AnimalLevel) -> bool:
        self._category = level.category
        self._questions = self._generator.generate(level)
        self._index = 0
        self._answered = False
        self._hint_used = False
        self._time_remaining = None
        return len(self._questions) > 0

    def _begin_round(self) -> None:
        self._set_state(GameState.PLAYING)
        self._present_question()

    def _build_result(self, *, failed: bool) -> RoundResult:
        assert self._level is not None
        level = self._level
        return build_round_result(
            level_id=level.id,
            group=level.group,
            difficulty=str(level.difficulty),
            items=self._items,
            total_items=len(self._questions),
            total_time_s=self._round_elapsed_s(),
            highest_streak=self._combo.max_reached,
            hints_used=self._hints_used,
            rules=TRIVIA_RULES,
            failed=failed,
        )

    def _on_reset(self) -> None:
        self._category = None
        self._questions = []
        self._index = 0
        self._answered = False
        self._hint_used = False
        self._time_remaining = None

    def _item_index(self) -> int:
        return self._index

    def _item_count(self) -> int:
        return len(self._questions)

    def _current_challenge(self) -> object | None:
        return self.current_question()

    def _hint_used_on_item(self) -> bool:
        return self._hint_used

    def _payload(self) -> AnimalKingdomPayload | None:
        question = self.current_question()
        if question is None:
            return None
        return AnimalKingdomPayload(
            category=None if self._category is None else str(self._category),
            answered=self._answered,
            hint=question.hint if self._hint_used else None,
            explanation=question.explanation if self._answered else None,
        )


def build_animal_kingdom_ledger(store: KeyValueStore) -> ProgressionLedger:
    return ProgressionLedger(
        store=store,
        storage_key=STORAGE_KEY,
        levels=LEVELS,
        entry_level_ids=entry_level_ids(LEVELS),
        rank_brackets=RANK_BRACKETS,
        rank_basis=learned_count,
        completion_threshold=70.0,
    )


def category_stars(ledger: ProgressionLedger, category: AnimalCategory | str) -> int:
    return ledger.group_stars(str(AnimalCategory(category)))
