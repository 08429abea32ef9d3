"""
Soroban (bead arithmetic) synthesizer.

Operands are drawn from [10^(d-1), floor(10^d * multiplier)] where d is the
level's digit count. Friends-of-5/10 exercises fix a complementary pair on the
ones column over a tens-place base, so the written operands still add up
exactly to the stated answer. Subtraction keeps every running total positive.
A1 works a single rod, so its additions never carry.
"""
from __future__ import annotations

from drillforge.data.catalog import LevelDefinition
from drillforge.schemas.exercise import (
    Curriculum,
    Difficulty,
    Exercise,
    ExerciseType,
    Explanation,
    FriendPair,
    Hint,
    OperandsPayload,
)
from drillforge.synthesizers.base import ExerciseSynthesizer, range_multiplier

FRIENDS_OF_5 = [(1, 4), (2, 3), (3, 2), (4, 1)]
FRIENDS_OF_10 = [(1, 9), (2, 8), (3, 7), (4, 6), (5, 5), (6, 4), (7, 3), (8, 2), (9, 1)]


def soroban_base_time(digits: int, operands: int, mixed: bool = False) -> int:
    base = 10 + digits * 3 + operands * 2
    return base + 5 if mixed else base


def operand_count(level: LevelDefinition) -> int:
    return max(2, level.rows)


def single_rod(level: LevelDefinition) -> bool:
    """One-row levels keep every total on the ones rod (no carry)."""
    return level.rows == 1 and level.digits == 1


def evaluate(numbers: list[int], operators: list[str]) -> int:
    total = numbers[0]
    for op, value in zip(operators, numbers[1:]):
        total = total + value if op == "+" else total - value
    return total


def bead_steps(numbers: list[int], operators: list[str]) -> list[dict]:
    steps = [
        {"step": 1, "action": "clear", "description": "Clear the soroban"},
        {"step": 2, "action": "set", "value": numbers[0], "description": f"Set {numbers[0]}"},
    ]
    for i, (op, value) in enumerate(zip(operators, numbers[1:])):
        action = "add" if op == "+" else "subtract"
        steps.append({"step": i + 3, "action": action, "value": value, "description": f"{action.capitalize()} {value}"})
    return steps


def running_steps(numbers: list[int], operators: list[str]) -> list[str]:
    steps = [f"Start with {numbers[0]}"]
    total = numbers[0]
    for op, value in zip(operators, numbers[1:]):
        previous = total
        total = total + value if op == "+" else total - value
        steps.append(f"{previous} {op} {value} = {total}")
    return steps


class SorobanSynthesizer(ExerciseSynthesizer):
    curriculum = Curriculum.SOROBAN
    weights = {
        ExerciseType.SIMPLE_ADDITION: 0.3,
        ExerciseType.SIMPLE_SUBTRACTION: 0.3,
        ExerciseType.FRIENDS_OF_5_ADDITION: 0.2,
        ExerciseType.FRIENDS_OF_5_SUBTRACTION: 0.1,
        ExerciseType.FRIENDS_OF_10_ADDITION: 0.1,
        ExerciseType.FRIENDS_OF_10_SUBTRACTION: 0.1,
        ExerciseType.MIXED_OPERATIONS: 0.1,
    }

    def builders(self):
        return {
            ExerciseType.SIMPLE_ADDITION: self._simple_addition,
            ExerciseType.SIMPLE_SUBTRACTION: self._simple_subtraction,
            ExerciseType.FRIENDS_OF_5_ADDITION: self._friends_of_5_addition,
            ExerciseType.FRIENDS_OF_5_SUBTRACTION: self._friends_of_5_subtraction,
            ExerciseType.FRIENDS_OF_10_ADDITION: self._friends_of_10_addition,
            ExerciseType.FRIENDS_OF_10_SUBTRACTION: self._friends_of_10_subtraction,
            ExerciseType.MIXED_OPERATIONS: self._mixed_operations,
        }

    def _finish(
        self,
        exercise_type: ExerciseType,
        level: LevelDefinition,
        difficulty: Difficulty,
        numbers: list[int],
        operators: list[str],
        hints: list[Hint],
        explanation: Explanation,
        friend_pair: FriendPair | None = None,
        mixed: bool = False,
    ) -> Exercise:
        prompt = str(numbers[0])
        for op, value in zip(operators, numbers[1:]):
            prompt += f" {op} {value}"
        return self.build(
            exercise_type,
            level,
            difficulty,
            prompt=f"{prompt} = ?",
            payload=OperandsPayload(
                numbers=numbers,
                operators=operators,
                digits=level.digits,
                rows=len(numbers),
                friend_pair=friend_pair,
            ),
            answer=evaluate(numbers, operators),
            base_time=soroban_base_time(level.digits, len(numbers), mixed=mixed),
            hints=hints,
            explanation=explanation,
            visual_aid={"type": "soroban_steps", "steps": bead_steps(numbers, operators)},
        )

    def _tens_base(self, digits: int) -> int:
        # Keeps the ones column free for the friend pair.
        if digits <= 1:
            return 0
        return self.number_in_range(digits - 1, 1.0) * 10

    def _trailing_subtractions(self, numbers: list[int], operators: list[str], rows: int) -> None:
        running = evaluate(numbers, operators)
        while len(numbers) < rows and running > 1:
            value = self.randint(1, min(5, running - 1))
            numbers.append(value)
            operators.append("-")
            running -= value

    def _simple_addition(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        multiplier = range_multiplier(difficulty)
        numbers = [self.number_in_range(level.digits, multiplier) for _ in range(operand_count(level))]
        if single_rod(level):
            numbers[0] = min(numbers[0], 8)
            numbers[1] = self.randint(1, min(numbers[1], 9 - numbers[0]))
        operators = ["+"] * (len(numbers) - 1)
        total = sum(numbers)
        return self._finish(
            ExerciseType.SIMPLE_ADDITION,
            level,
            difficulty,
            numbers,
            operators,
            hints=[
                Hint(tier=1, text="This is a simple addition. Start with the first number.", point_penalty=1),
                Hint(tier=2, text=f"Set {numbers[0]} on the soroban and add each row in turn.", point_penalty=2),
            ],
            explanation=Explanation(summary=f"Add the rows one at a time to reach {total}.", steps=running_steps(numbers, operators)),
        )

    def _simple_subtraction(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        multiplier = range_multiplier(difficulty)
        rows = operand_count(level)
        low = 10 ** (level.digits - 1)
        high = min(10**level.digits - 1, int(10**level.digits * multiplier))
        # Inflated start so that rows-1 subtractions of at least 1 stay positive.
        start = max(self.randint(low, max(high, low * 2)), rows)
        numbers = [start]
        running = start
        sub_digits = max(1, level.digits - 1)
        for i in range(1, rows):
            remaining = rows - 1 - i
            cap = min(running - 1 - remaining, self.number_in_range(sub_digits, multiplier))
            value = self.randint(1, cap)
            numbers.append(value)
            running -= value
        operators = ["-"] * (rows - 1)
        return self._finish(
            ExerciseType.SIMPLE_SUBTRACTION,
            level,
            difficulty,
            numbers,
            operators,
            hints=[
                Hint(tier=1, text="This is a simple subtraction. Start with the first number.", point_penalty=1),
                Hint(tier=2, text=f"Set {numbers[0]} on the soroban and take away each row in turn.", point_penalty=2),
            ],
            explanation=Explanation(
                summary=f"Subtract the rows one at a time to reach {running}.",
                steps=running_steps(numbers, operators),
            ),
        )

    def _friends_of_5_addition(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        a, b = self.rng.choice(FRIENDS_OF_5)
        numbers = [self._tens_base(level.digits) + a, b]
        for _ in range(2, operand_count(level)):
            numbers.append(self.number_in_range(1, 0.5))
        operators = ["+"] * (len(numbers) - 1)
        return self._finish(
            ExerciseType.FRIENDS_OF_5_ADDITION,
            level,
            difficulty,
            numbers,
            operators,
            friend_pair=FriendPair(a=a, b=b, target=5),
            hints=[
                Hint(tier=1, text=f"This uses the friends of 5: {a} + {b} = 5.", point_penalty=1),
                Hint(tier=2, text=f"Rule: +{b} = +5 - {5 - b}.", point_penalty=2),
            ],
            explanation=Explanation(
                summary=f"{a} and {b} are friends of 5, so adding {b} is done with the five bead.",
                steps=[f"{a} + {b} = 5", f"Add {b} as +5 then -{5 - b}"] + running_steps(numbers, operators),
            ),
        )

    def _friends_of_5_subtraction(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        a, b = self.rng.choice(FRIENDS_OF_5)
        # Ones digit 5..5+b-1: the lower beads alone cannot give up b.
        ones = 5 + self.randint(0, b - 1)
        numbers = [self._tens_base(level.digits) + ones, b]
        operators = ["-"]
        self._trailing_subtractions(numbers, operators, operand_count(level))
        return self._finish(
            ExerciseType.FRIENDS_OF_5_SUBTRACTION,
            level,
            difficulty,
            numbers,
            operators,
            friend_pair=FriendPair(a=a, b=b, target=5),
            hints=[
                Hint(tier=1, text=f"This uses the friends of 5: {a} + {b} = 5.", point_penalty=1),
                Hint(tier=2, text=f"Rule: -{b} = -5 + {a}.", point_penalty=2),
            ],
            explanation=Explanation(
                summary=f"Take away {b} by lifting the five bead and adding back its friend {a}.",
                steps=[f"{a} + {b} = 5", f"Subtract {b} as -5 then +{a}"] + running_steps(numbers, operators),
            ),
        )

    def _friends_of_10_addition(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        a, b = self.rng.choice(FRIENDS_OF_10)
        numbers = [self._tens_base(level.digits) + a, b]
        for _ in range(2, operand_count(level)):
            numbers.append(self.number_in_range(1, 0.5))
        operators = ["+"] * (len(numbers) - 1)
        return self._finish(
            ExerciseType.FRIENDS_OF_10_ADDITION,
            level,
            difficulty,
            numbers,
            operators,
            friend_pair=FriendPair(a=a, b=b, target=10),
            hints=[
                Hint(tier=1, text=f"This uses the friends of 10: {a} + {b} = 10.", point_penalty=1),
                Hint(tier=2, text=f"Rule: +{b} = +10 - {a}.", point_penalty=2),
            ],
            explanation=Explanation(
                summary=f"{a} and {b} are friends of 10, so adding {b} carries one ten.",
                steps=[f"{a} + {b} = 10", f"Add {b} as +10 then -{a}"] + running_steps(numbers, operators),
            ),
        )

    def _friends_of_10_subtraction(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        # Only pairs with a < b force a borrow from the tens column.
        a, b = self.rng.choice([pair for pair in FRIENDS_OF_10 if pair[0] < pair[1]])
        base = self._tens_base(level.digits) or 10
        numbers = [base + a, b]
        operators = ["-"]
        self._trailing_subtractions(numbers, operators, operand_count(level))
        return self._finish(
            ExerciseType.FRIENDS_OF_10_SUBTRACTION,
            level,
            difficulty,
            numbers,
            operators,
            friend_pair=FriendPair(a=a, b=b, target=10),
            hints=[
                Hint(tier=1, text=f"This uses the friends of 10: {a} + {b} = 10.", point_penalty=1),
                Hint(tier=2, text=f"Rule: -{b} = -10 + {a}.", point_penalty=2),
            ],
            explanation=Explanation(
                summary=f"Take away {b} by borrowing one ten and adding back its friend {a}.",
                steps=[f"{a} + {b} = 10", f"Subtract {b} as -10 then +{a}"] + running_steps(numbers, operators),
            ),
        )

    def _mixed_operations(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        small_digits = max(1, level.digits - 1)
        running = self.number_in_range(level.digits, 1.0)
        numbers = [running]
        operators: list[str] = []
        for _ in range(1, operand_count(level)):
            op = self.rng.choice(["+", "-"]) if running > 1 else "+"
            if op == "+":
                value = self.number_in_range(small_digits, 0.7)
                running += value
            else:
                value = self.randint(1, min(running - 1, self.number_in_range(small_digits, 0.7)))
                running -= value
            numbers.append(value)
            operators.append(op)
        return self._finish(
            ExerciseType.MIXED_OPERATIONS,
            level,
            difficulty,
            numbers,
            operators,
            mixed=True,
            hints=[Hint(tier=1, text="Mixed operations: work left to right, one row at a time.", point_penalty=1)],
            explanation=Explanation(summary=f"Apply each operation in order to reach {running}.", steps=running_steps(numbers, operators)),
        )
