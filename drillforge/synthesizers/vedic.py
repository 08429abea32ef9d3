"""
Vedic mathematics synthesizer.

Every builder computes the answer twice: once directly and once by walking the
sutra's own procedure (neighbour sums, complements, crosswise products,
transposed division, digit bracketing). The procedure's result is stored as
``method_answer`` on the payload and must agree with the direct answer.
"""
from __future__ import annotations

import math

from drillforge.data.catalog import SUTRAS, VEDIC_TECHNIQUE_SUTRA, LevelDefinition
from drillforge.schemas.exercise import (
    Curriculum,
    Difficulty,
    Exercise,
    ExerciseType,
    Explanation,
    Hint,
    VedicPayload,
)
from drillforge.synthesizers.base import ExerciseSynthesizer, range_multiplier

BASE_TIMES = {
    ExerciseType.SQUARES_ENDING_5: 20,
    ExerciseType.MULTIPLICATION_11: 25,
    ExerciseType.SUBTRACTION_COMPLEMENT: 15,
    ExerciseType.MULTIPLICATION_2X2: 35,
    ExerciseType.MULTIPLICATION_3X2: 35,
    ExerciseType.MULTIPLICATION_GENERAL: 35,
    ExerciseType.DIVISION_BASIC: 40,
    ExerciseType.SQUARE_ROOTS: 30,
    ExerciseType.CUBE_ROOTS: 30,
}

PERFECT_SQUARES = [
    16, 25, 36, 49, 64, 81, 121, 144, 169, 196, 225, 256, 289, 324, 361, 400,
    441, 484, 529, 576, 625, 676, 729, 784, 841, 900, 961, 1024, 1089, 1156, 1225,
    1296, 1369, 1444, 1521, 1600, 1681, 1764, 1849, 1936, 2025, 2116, 2209, 2304,
    2401, 2500, 2601, 2704, 2809, 2916, 3025, 3136, 3249, 3364, 3481, 3600, 3721,
    3844, 3969, 4096, 4225, 4356, 4489, 4624, 4761, 4900, 5041, 5184, 5329, 5476,
    5625, 5776, 5929, 6084, 6241, 6400, 6561, 6724, 6889, 7056, 7225, 7396, 7569,
    7744, 7921, 8100, 8281, 8464, 8649, 8836, 9025, 9216, 9409, 9604, 9801,
]

# last digit of a cube -> last digit of its root
CUBE_LAST_DIGIT = {0: 0, 1: 1, 2: 8, 3: 7, 4: 4, 5: 5, 6: 6, 7: 3, 8: 2, 9: 9}


def digits_of(n: int) -> list[int]:
    return [int(c) for c in str(n)]


def times_eleven(n: int) -> tuple[int, list[str]]:
    """Multiply by 11: copy the ends, write neighbour sums between them, carry from the right."""
    ds = digits_of(n)
    columns = [ds[-1]] + [ds[i] + ds[i + 1] for i in range(len(ds) - 2, -1, -1)] + [ds[0]]
    steps = [f"Neighbour sums (right to left): {columns}"]
    out: list[int] = []
    carry = 0
    for column in columns:
        total = column + carry
        out.append(total % 10)
        carry = total // 10
    if carry:
        out.append(carry)
    result = int("".join(str(d) for d in reversed(out)))
    steps.append(f"Carry the tens leftwards: {result}")
    return result, steps


def nikhilam_complement(base: int, subtrahend: int) -> tuple[int, list[str]]:
    """``base - subtrahend``: all from 9 and the last (non-zero) from 10; trailing zeros stay."""
    width = len(str(base)) - 1
    padded = str(subtrahend).zfill(width)
    stripped = padded.rstrip("0")
    zeros = len(padded) - len(stripped)
    out = [str(9 - int(c)) for c in stripped[:-1]] + [str(10 - int(stripped[-1]))] + ["0"] * zeros
    steps = [
        f"Write {subtrahend} as {padded}",
        f"Each digit from 9, the last non-zero digit from 10: {''.join(out)}",
    ]
    return int("".join(out)), steps


def crosswise_multiply(a: int, b: int) -> tuple[int, list[str]]:
    """Urdhva tiryagbhyam: each result column is the sum of crosswise digit products, then carry."""
    da = digits_of(a)[::-1]
    db = digits_of(b)[::-1]
    columns = [0] * (len(da) + len(db) - 1)
    for i, x in enumerate(da):
        for j, y in enumerate(db):
            columns[i + j] += x * y
    steps = [f"Column {k + 1} from the right: {value}" for k, value in enumerate(columns)]
    out: list[int] = []
    carry = 0
    for column in columns:
        total = column + carry
        out.append(total % 10)
        carry = total // 10
    while carry:
        out.append(carry % 10)
        carry //= 10
    result = int("".join(str(d) for d in reversed(out)))
    steps.append(f"Carry from right to left: {result}")
    return result, steps


def transpose_divide(dividend: int, divisor: int) -> tuple[int, list[str]]:
    """Paravartya yojayet for divisors just above a power of ten."""
    base = 10 ** (len(str(divisor)) - 1)
    flags = [-int(c) for c in str(divisor - base).zfill(len(str(base)) - 1)]
    ds = digits_of(dividend)
    width = len(flags)
    columns = ds[:]
    # synthetic division over the quotient columns
    for i in range(len(ds) - width):
        for k, flag in enumerate(flags):
            columns[i + k + 1] += columns[i] * flag
    quotient_digits = columns[: len(ds) - width]
    remainder_digits = columns[len(ds) - width :]
    raw_quotient = 0
    for d in quotient_digits:
        raw_quotient = raw_quotient * 10 + d
    raw_remainder = 0
    for d in remainder_digits:
        raw_remainder = raw_remainder * 10 + d
    # normalise the mixed-sign remainder back into [0, divisor)
    quotient = raw_quotient + raw_remainder // divisor
    remainder = raw_remainder % divisor
    steps = [
        f"Transpose the excess over {base}: {flags}",
        f"Quotient columns {quotient_digits}, remainder columns {remainder_digits}",
        f"Adjust: quotient {quotient}, remainder {remainder}",
    ]
    return quotient, steps


class VedicSynthesizer(ExerciseSynthesizer):
    curriculum = Curriculum.VEDIC
    weights = {
        ExerciseType.SQUARES_ENDING_5: 0.3,
        ExerciseType.MULTIPLICATION_11: 0.3,
        ExerciseType.SUBTRACTION_COMPLEMENT: 0.4,
        ExerciseType.MULTIPLICATION_2X2: 0.5,
        ExerciseType.MULTIPLICATION_3X2: 0.5,
        ExerciseType.MULTIPLICATION_GENERAL: 0.5,
        ExerciseType.DIVISION_BASIC: 0.5,
        ExerciseType.SQUARE_ROOTS: 0.5,
        ExerciseType.CUBE_ROOTS: 0.5,
    }

    def builders(self):
        return {
            ExerciseType.SQUARES_ENDING_5: self._squares_ending_5,
            ExerciseType.MULTIPLICATION_11: self._multiplication_11,
            ExerciseType.SUBTRACTION_COMPLEMENT: self._subtraction_complement,
            ExerciseType.MULTIPLICATION_2X2: self._multiplication_2x2,
            ExerciseType.MULTIPLICATION_3X2: self._multiplication_3x2,
            ExerciseType.MULTIPLICATION_GENERAL: self._multiplication_general,
            ExerciseType.DIVISION_BASIC: self._division_basic,
            ExerciseType.SQUARE_ROOTS: self._square_roots,
            ExerciseType.CUBE_ROOTS: self._cube_roots,
        }

    def _finish(
        self,
        exercise_type: ExerciseType,
        level: LevelDefinition,
        difficulty: Difficulty,
        *,
        prompt: str,
        operation: str,
        operands: list[int],
        answer: int,
        method_answer: int,
        steps: list[str],
        hints: list[Hint],
        base: int | None = None,
    ) -> Exercise:
        if method_answer != answer:
            raise ArithmeticError(f"{exercise_type.value}: method gave {method_answer}, expected {answer}")
        sutra = VEDIC_TECHNIQUE_SUTRA[exercise_type]
        return self.build(
            exercise_type,
            level,
            difficulty,
            prompt=prompt,
            payload=VedicPayload(
                sutra=sutra,
                operation=operation,
                operands=operands,
                method_answer=method_answer,
                base=base,
            ),
            answer=answer,
            base_time=BASE_TIMES[exercise_type],
            hints=hints,
            explanation=Explanation(summary=f"{SUTRAS[sutra]} gives {answer}.", steps=steps),
        )

    def _squares_ending_5(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        tens = self.randint(1, min(9, math.floor(9 * range_multiplier(difficulty))))
        number = tens * 10 + 5
        method = tens * (tens + 1) * 100 + 25
        return self._finish(
            ExerciseType.SQUARES_ENDING_5,
            level,
            difficulty,
            prompt=f"{number}² = ?",
            operation="square",
            operands=[number],
            answer=number * number,
            method_answer=method,
            steps=[
                f"Take the tens digit {tens} and multiply by one more: {tens} × {tens + 1} = {tens * (tens + 1)}",
                f"Append 25: {method}",
            ],
            hints=[
                Hint(tier=1, text="Multiply the first digit by one more than itself.", point_penalty=1),
                Hint(tier=2, text=f"{tens} × {tens + 1} = {tens * (tens + 1)}, then write 25 after it.", point_penalty=2),
            ],
        )

    def _multiplication_11(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        digits = max(2, min(level.digits, math.floor(3 * range_multiplier(difficulty)) + 1))
        number = self.number_in_range(digits, range_multiplier(difficulty))
        method, steps = times_eleven(number)
        return self._finish(
            ExerciseType.MULTIPLICATION_11,
            level,
            difficulty,
            prompt=f"{number} × 11 = ?",
            operation="multiply",
            operands=[number, 11],
            answer=number * 11,
            method_answer=method,
            steps=steps,
            hints=[
                Hint(tier=1, text="Keep the outer digits and add each pair of neighbours in between.", point_penalty=1),
                Hint(tier=2, text="Carry any sum of 10 or more to the left.", point_penalty=2),
            ],
        )

    def _subtraction_complement(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        base = self.rng.choice([100, 1000, 10000])
        subtrahend = self.randint(1, math.floor(base * 0.8 * range_multiplier(difficulty)))
        method, steps = nikhilam_complement(base, subtrahend)
        return self._finish(
            ExerciseType.SUBTRACTION_COMPLEMENT,
            level,
            difficulty,
            prompt=f"{base} - {subtrahend} = ?",
            operation="subtract",
            operands=[base, subtrahend],
            answer=base - subtrahend,
            method_answer=method,
            steps=steps,
            base=base,
            hints=[Hint(tier=1, text="All from 9 and the last from 10.", point_penalty=1)],
        )

    def _crosswise(
        self,
        exercise_type: ExerciseType,
        level: LevelDefinition,
        difficulty: Difficulty,
        a: int,
        b: int,
    ) -> Exercise:
        method, steps = crosswise_multiply(a, b)
        return self._finish(
            exercise_type,
            level,
            difficulty,
            prompt=f"{a} × {b} = ?",
            operation="multiply",
            operands=[a, b],
            answer=a * b,
            method_answer=method,
            steps=steps,
            hints=[
                Hint(tier=1, text="Work column by column: vertically, then crosswise.", point_penalty=1),
                Hint(tier=2, text=f"The rightmost column is {a % 10} × {b % 10}.", point_penalty=2),
            ],
        )

    def _multiplication_2x2(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        high = max(10, math.floor(99 * range_multiplier(difficulty)))
        return self._crosswise(
            ExerciseType.MULTIPLICATION_2X2, level, difficulty, self.randint(10, high), self.randint(10, high)
        )

    def _multiplication_3x2(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        multiplier = range_multiplier(difficulty)
        return self._crosswise(
            ExerciseType.MULTIPLICATION_3X2,
            level,
            difficulty,
            self.number_in_range(3, multiplier),
            self.number_in_range(2, multiplier),
        )

    def _multiplication_general(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        multiplier = range_multiplier(difficulty)
        first = self.randint(2, max(2, min(level.digits, 4)))
        second = self.randint(2, max(2, first))
        return self._crosswise(
            ExerciseType.MULTIPLICATION_GENERAL,
            level,
            difficulty,
            self.number_in_range(first, multiplier),
            self.number_in_range(second, multiplier),
        )

    def _division_basic(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        divisor = self.randint(11, 19)
        quotient = self.number_in_range(2, range_multiplier(difficulty))
        dividend = divisor * quotient
        method, steps = transpose_divide(dividend, divisor)
        return self._finish(
            ExerciseType.DIVISION_BASIC,
            level,
            difficulty,
            prompt=f"{dividend} ÷ {divisor} = ?",
            operation="divide",
            operands=[dividend, divisor],
            answer=quotient,
            method_answer=method,
            steps=steps,
            base=10,
            hints=[
                Hint(tier=1, text=f"Transpose the excess: {divisor} is 10 + {divisor - 10}, so use -{divisor - 10}.", point_penalty=1),
                Hint(tier=2, text="Multiply each quotient digit by the flag and add it to the next column.", point_penalty=2),
            ],
        )

    def _square_roots(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        limit = max(1, math.floor(len(PERFECT_SQUARES) * range_multiplier(difficulty)))
        square = self.rng.choice(PERFECT_SQUARES[:limit])
        root = math.isqrt(square)
        last = square % 10
        candidates = sorted({d for d in range(10) if (d * d) % 10 == last})
        head = square // 100
        tens = math.isqrt(head)
        pivot = (tens * 10 + 5) ** 2
        # candidates pair up either side of 5, so the pivot square picks one
        units = candidates[-1] if square > pivot else candidates[0]
        method = tens * 10 + units
        return self._finish(
            ExerciseType.SQUARE_ROOTS,
            level,
            difficulty,
            prompt=f"√{square} = ?",
            operation="square_root",
            operands=[square],
            answer=root,
            method_answer=method,
            steps=[
                f"Last digit {last} means the root ends in one of {candidates}",
                f"{head} lies between {tens}² and {tens + 1}², so the tens digit is {tens}",
                f"Compare with {tens * 10 + 5}² = {pivot}: root is {method}",
            ],
            hints=[
                Hint(tier=1, text="Look at the last digit to narrow the units digit.", point_penalty=1),
                Hint(tier=2, text="Bracket the leading digits between two squares for the tens digit.", point_penalty=2),
            ],
        )

    def _cube_roots(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        root = self.randint(2, max(3, math.floor(21 * range_multiplier(difficulty))))
        cube = root**3
        units = CUBE_LAST_DIGIT[cube % 10]
        head = cube // 1000
        tens = 0
        while (tens + 1) ** 3 <= head:
            tens += 1
        method = tens * 10 + units
        return self._finish(
            ExerciseType.CUBE_ROOTS,
            level,
            difficulty,
            prompt=f"∛{cube} = ?",
            operation="cube_root",
            operands=[cube],
            answer=root,
            method_answer=method,
            steps=[
                f"Last digit {cube % 10} maps to a units digit of {units}",
                f"Drop the last three digits: {head} lies between {tens}³ and {tens + 1}³",
                f"Root is {method}",
            ],
            hints=[
                Hint(tier=1, text="Each last digit of a cube maps to exactly one units digit.", point_penalty=1),
                Hint(tier=2, text="Strike off the last three digits and bracket what remains.", point_penalty=2),
            ],
        )
