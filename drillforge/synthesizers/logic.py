from __future__ import annotations

from drillforge.data.catalog import LevelDefinition
from drillforge.schemas.exercise import (
    Curriculum,
    Difficulty,
    Exercise,
    ExerciseType,
    Explanation,
    Hint,
    SequencePayload,
    StoryPayload,
)
from drillforge.synthesizers.base import ExerciseSynthesizer

BASE_TIMES = {
    ExerciseType.PATTERN_RECOGNITION: 45,
    ExerciseType.SIMPLE_SEQUENCES: 30,
    ExerciseType.LOGICAL_SEQUENCES: 40,
    ExerciseType.COUNTING_LOGIC: 35,
    ExerciseType.WORD_PROBLEMS: 60,
    ExerciseType.ALGEBRAIC_LOGIC: 50,
}

PATTERN_LENGTHS = {Difficulty.EASY: 4, Difficulty.MEDIUM: 5, Difficulty.HARD: 6}

NAMES = ["Asha", "Ben", "Chen", "Dara", "Eli", "Farah", "Gus", "Hana"]
ITEMS = ["apples", "marbles", "stickers", "pencils", "cookies", "shells"]


def sequence_term(rule: str, start: int, step: int, index: int, second: int | None = None) -> int:
    """The ``index``-th term (0-based) of an arithmetic, geometric or Fibonacci-like sequence."""
    if rule == "arithmetic":
        return start + step * index
    if rule == "geometric":
        return start * step**index
    a, b = start, second if second is not None else start
    for _ in range(index):
        a, b = b, a + b
    return a


def render_terms(terms: list[int | None]) -> str:
    return ", ".join("?" if t is None else str(t) for t in terms)


class LogicSynthesizer(ExerciseSynthesizer):
    curriculum = Curriculum.LOGIC
    weights = {
        ExerciseType.PATTERN_RECOGNITION: 0.3,
        ExerciseType.SIMPLE_SEQUENCES: 0.2,
        ExerciseType.LOGICAL_SEQUENCES: 0.3,
        ExerciseType.COUNTING_LOGIC: 0.2,
        ExerciseType.WORD_PROBLEMS: 0.3,
        ExerciseType.ALGEBRAIC_LOGIC: 0.2,
    }

    def builders(self):
        return {
            ExerciseType.PATTERN_RECOGNITION: self._pattern_recognition,
            ExerciseType.SIMPLE_SEQUENCES: self._simple_sequences,
            ExerciseType.LOGICAL_SEQUENCES: self._logical_sequences,
            ExerciseType.COUNTING_LOGIC: self._counting_logic,
            ExerciseType.WORD_PROBLEMS: self._word_problems,
            ExerciseType.ALGEBRAIC_LOGIC: self._algebraic_logic,
        }

    def _rule_parameters(self, rule: str, difficulty: Difficulty) -> tuple[int, int, int | None]:
        if rule == "arithmetic":
            high = 3 if difficulty == Difficulty.EASY else 7
            return self.randint(1, 10), self.randint(1, high), None
        if rule == "geometric":
            if difficulty == Difficulty.EASY:
                return 1, 2, None
            return self.randint(1, 3), self.randint(2, 4), None
        return self.randint(1, 5), 0, self.randint(1, 5)

    def _sequence(
        self,
        exercise_type: ExerciseType,
        level: LevelDefinition,
        difficulty: Difficulty,
        rule: str,
        length: int,
        blank_index: int,
    ) -> Exercise:
        start, step, second = self._rule_parameters(rule, difficulty)
        full = [sequence_term(rule, start, step, i, second) for i in range(max(length, blank_index + 1))]
        answer = full[blank_index]
        if blank_index >= length:
            terms: list[int | None] = full[:length]
            prompt = f"What comes next? {render_terms(terms)}, ?"
        else:
            terms = [None if i == blank_index else t for i, t in enumerate(full[:length])]
            prompt = f"Find the missing number: {render_terms(terms)}"

        if rule == "arithmetic":
            rule_text = f"add {step} each time"
        elif rule == "geometric":
            rule_text = f"multiply by {step} each time"
        else:
            rule_text = "add the two previous terms"
        return self.build(
            exercise_type,
            level,
            difficulty,
            prompt=prompt,
            payload=SequencePayload(terms=terms, rule=rule, blank_index=blank_index),
            answer=answer,
            base_time=BASE_TIMES[exercise_type],
            hints=[
                Hint(tier=1, text="Compare each number with the one before it.", point_penalty=1),
                Hint(tier=2, text=f"The rule is: {rule_text}.", point_penalty=2),
            ],
            explanation=Explanation(
                summary=f"The sequence follows the rule '{rule_text}', so the answer is {answer}.",
                steps=[f"Term {i + 1}: {t}" for i, t in enumerate(full[: max(length, blank_index + 1)])],
            ),
        )

    def _pattern_recognition(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        rule = self.rng.choice(["arithmetic", "geometric", "fibonacci"])
        length = PATTERN_LENGTHS[difficulty]
        return self._sequence(ExerciseType.PATTERN_RECOGNITION, level, difficulty, rule, length, length)

    def _simple_sequences(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        length = PATTERN_LENGTHS[difficulty]
        return self._sequence(ExerciseType.SIMPLE_SEQUENCES, level, difficulty, "arithmetic", length, length)

    def _logical_sequences(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        rule = self.rng.choice(["arithmetic", "geometric", "fibonacci"])
        length = PATTERN_LENGTHS[difficulty] + 1
        # never the first two terms: the rule must be readable before the gap
        blank = self.randint(2, length - 1)
        return self._sequence(ExerciseType.LOGICAL_SEQUENCES, level, difficulty, rule, length, blank)

    def _story(
        self,
        exercise_type: ExerciseType,
        level: LevelDefinition,
        difficulty: Difficulty,
        *,
        scenario: str,
        prompt: str,
        quantities: dict[str, int],
        answer: int,
        hints: list[Hint],
        steps: list[str],
    ) -> Exercise:
        return self.build(
            exercise_type,
            level,
            difficulty,
            prompt=prompt,
            payload=StoryPayload(scenario=scenario, quantities=quantities),
            answer=answer,
            base_time=BASE_TIMES[exercise_type],
            hints=hints,
            explanation=Explanation(summary=f"The answer is {answer}.", steps=steps),
        )

    def _counting_logic(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        scale = {Difficulty.EASY: 10, Difficulty.MEDIUM: 20, Difficulty.HARD: 30}[difficulty]
        scenario = self.rng.choice(["objects", "groups", "skip", "backwards"])
        if scenario == "objects":
            total = self.randint(3, scale)
            given = total // 3
            item = self.rng.choice(ITEMS)
            return self._story(
                ExerciseType.COUNTING_LOGIC,
                level,
                difficulty,
                scenario=scenario,
                prompt=f"You have {total} {item} and give your friend {given}. How many {item} do you have left?",
                quantities={"total": total, "given_away": given},
                answer=total - given,
                hints=[Hint(tier=1, text="This is a simple subtraction.", point_penalty=1)],
                steps=[f"Start: {total}", f"Given away: {given}", f"{total} - {given} = {total - given}"],
            )
        if scenario == "groups":
            groups = self.randint(2, scale // 5 + 2)
            each = self.randint(2, 5)
            item = self.rng.choice(ITEMS)
            return self._story(
                ExerciseType.COUNTING_LOGIC,
                level,
                difficulty,
                scenario=scenario,
                prompt=f"There are {groups} boxes with {each} {item} in each box. How many {item} are there?",
                quantities={"groups": groups, "per_group": each},
                answer=groups * each,
                hints=[Hint(tier=1, text=f"Count the boxes in steps of {each}.", point_penalty=1)],
                steps=[f"{each} × {groups} = {groups * each}"],
            )
        if scenario == "skip":
            step = self.rng.choice([2, 5, 10] if difficulty == Difficulty.EASY else [2, 3, 4, 5, 10])
            start = step * self.randint(1, scale // 5)
            shown = [start + step * i for i in range(4)]
            return self._story(
                ExerciseType.COUNTING_LOGIC,
                level,
                difficulty,
                scenario=scenario,
                prompt=f"Count by {step}s: {', '.join(str(n) for n in shown)}, ?",
                quantities={"start": start, "step": step},
                answer=start + step * 4,
                hints=[Hint(tier=1, text=f"Add {step} to the last number.", point_penalty=1)],
                steps=[f"{shown[-1]} + {step} = {start + step * 4}"],
            )
        start = self.randint(10, scale * 3)
        back = self.randint(2, 5)
        shown = [start - i for i in range(3)]
        return self._story(
            ExerciseType.COUNTING_LOGIC,
            level,
            difficulty,
            scenario=scenario,
            prompt=f"Counting backwards: {', '.join(str(n) for n in shown)}... What number comes {back} steps after {shown[-1]}?",
            quantities={"start": start, "steps_back": back},
            answer=shown[-1] - back,
            hints=[Hint(tier=1, text="Each step takes one away.", point_penalty=1)],
            steps=[f"{shown[-1]} - {back} = {shown[-1] - back}"],
        )

    def _word_problems(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        scale = {Difficulty.EASY: 10, Difficulty.MEDIUM: 25, Difficulty.HARD: 50}[difficulty]
        name = self.rng.choice(NAMES)
        item = self.rng.choice(ITEMS)
        kind = self.rng.choice(["addition", "subtraction", "multiplication"])
        if kind == "addition":
            have, more = self.randint(1, scale), self.randint(1, scale)
            return self._story(
                ExerciseType.WORD_PROBLEMS,
                level,
                difficulty,
                scenario=kind,
                prompt=f"{name} has {have} {item} and gets {more} more. How many {item} does {name} have now?",
                quantities={"start": have, "added": more},
                answer=have + more,
                hints=[Hint(tier=1, text="Getting more means adding.", point_penalty=1)],
                steps=[f"{have} + {more} = {have + more}"],
            )
        if kind == "subtraction":
            have = self.randint(2, scale + 1)
            gone = self.randint(1, have - 1)
            return self._story(
                ExerciseType.WORD_PROBLEMS,
                level,
                difficulty,
                scenario=kind,
                prompt=f"{name} has {have} {item} and gives away {gone}. How many {item} are left?",
                quantities={"start": have, "removed": gone},
                answer=have - gone,
                hints=[Hint(tier=1, text="Giving away means subtracting.", point_penalty=1)],
                steps=[f"{have} - {gone} = {have - gone}"],
            )
        groups = self.randint(2, max(2, scale // 5))
        each = self.randint(2, max(2, scale // 5))
        return self._story(
            ExerciseType.WORD_PROBLEMS,
            level,
            difficulty,
            scenario=kind,
            prompt=f"{name} has {groups} bags with {each} {item} in each bag. How many {item} are there altogether?",
            quantities={"groups": groups, "per_group": each},
            answer=groups * each,
            hints=[Hint(tier=1, text="Equal groups means multiplying.", point_penalty=1)],
            steps=[f"{groups} × {each} = {groups * each}"],
        )

    def _algebraic_logic(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        scale = {Difficulty.EASY: 5, Difficulty.MEDIUM: 9, Difficulty.HARD: 15}[difficulty]
        a = self.randint(2, scale)
        x = self.randint(1, scale * 2)
        b = self.randint(0, scale * 3)
        c = a * x + b
        prompt = f"Find x: {a}x + {b} = {c}" if b else f"Find x: {a}x = {c}"
        return self._story(
            ExerciseType.ALGEBRAIC_LOGIC,
            level,
            difficulty,
            scenario="linear_equation",
            prompt=prompt,
            quantities={"a": a, "b": b, "c": c},
            answer=x,
            hints=[
                Hint(tier=1, text=f"First take {b} away from both sides.", point_penalty=1),
                Hint(tier=2, text=f"Then divide both sides by {a}.", point_penalty=2),
            ],
            steps=[f"{a}x = {c} - {b} = {c - b}", f"x = {c - b} ÷ {a} = {x}"],
        )
