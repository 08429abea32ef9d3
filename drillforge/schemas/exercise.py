from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator


class Curriculum(str, Enum):
    SOROBAN = "soroban"
    VEDIC = "vedic"
    LOGIC = "logic"
    IQ_GAMES = "iq_games"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    # Request-level only: tiers are assigned round-robin across the batch.
    MIXED = "mixed"


TIERS: tuple[Difficulty, ...] = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)


def shift_tier(difficulty: Difficulty, steps: int) -> Difficulty:
    """Move ``steps`` tiers up (positive) or down (negative), clamped to easy..hard."""
    if difficulty not in TIERS:
        return difficulty
    idx = TIERS.index(difficulty) + steps
    return TIERS[max(0, min(len(TIERS) - 1, idx))]


class ExerciseType(str, Enum):
    # soroban
    SIMPLE_ADDITION = "simple_addition"
    SIMPLE_SUBTRACTION = "simple_subtraction"
    FRIENDS_OF_5_ADDITION = "friends_of_5_addition"
    FRIENDS_OF_5_SUBTRACTION = "friends_of_5_subtraction"
    FRIENDS_OF_10_ADDITION = "friends_of_10_addition"
    FRIENDS_OF_10_SUBTRACTION = "friends_of_10_subtraction"
    MIXED_OPERATIONS = "mixed_operations"
    # vedic
    SQUARES_ENDING_5 = "squares_ending_5"
    MULTIPLICATION_11 = "multiplication_11"
    SUBTRACTION_COMPLEMENT = "subtraction_complement"
    MULTIPLICATION_2X2 = "multiplication_2x2"
    MULTIPLICATION_3X2 = "multiplication_3x2"
    MULTIPLICATION_GENERAL = "multiplication_general"
    DIVISION_BASIC = "division_basic"
    SQUARE_ROOTS = "square_roots"
    CUBE_ROOTS = "cube_roots"
    # logic
    PATTERN_RECOGNITION = "pattern_recognition"
    SIMPLE_SEQUENCES = "simple_sequences"
    LOGICAL_SEQUENCES = "logical_sequences"
    COUNTING_LOGIC = "counting_logic"
    WORD_PROBLEMS = "word_problems"
    ALGEBRAIC_LOGIC = "algebraic_logic"
    # iq games
    SHAPE_MATCHING = "shape_matching"
    COLOR_PATTERNS = "color_patterns"
    MEMORY_SEQUENCES = "memory_sequences"
    SUDOKU_4X4 = "sudoku_4x4"
    SUDOKU_6X6 = "sudoku_6x6"
    NUMBER_PUZZLES = "number_puzzles"


class FriendPair(BaseModel):
    a: int
    b: int
    target: Literal[5, 10]


class OperandsPayload(BaseModel):
    kind: Literal["operands"] = "operands"
    numbers: list[int] = Field(min_length=2)
    operators: list[Literal["+", "-"]]
    digits: int = Field(ge=1)
    rows: int = Field(ge=1)
    friend_pair: FriendPair | None = None

    @model_validator(mode="after")
    def _operators_between_numbers(self) -> "OperandsPayload":
        if len(self.operators) != len(self.numbers) - 1:
            raise ValueError("operators must sit between consecutive numbers")
        return self


class VedicPayload(BaseModel):
    kind: Literal["vedic"] = "vedic"
    sutra: str
    operation: str
    operands: list[int] = Field(min_length=1)
    method_answer: int
    base: int | None = None


class SequencePayload(BaseModel):
    """Numeric sequence with one blank; ``blank_index == len(terms)`` asks for the next term."""

    kind: Literal["sequence"] = "sequence"
    terms: list[int | None]
    rule: Literal["arithmetic", "geometric", "fibonacci"]
    blank_index: int = Field(ge=0)


class StoryPayload(BaseModel):
    kind: Literal["story"] = "story"
    scenario: str
    quantities: dict[str, int]


class ShapeSpec(BaseModel):
    shape: str
    color: str


class ShapeChoicePayload(BaseModel):
    kind: Literal["shape_choice"] = "shape_choice"
    target: ShapeSpec
    options: list[ShapeSpec] = Field(min_length=2)


class SymbolSequencePayload(BaseModel):
    kind: Literal["symbol_sequence"] = "symbol_sequence"
    shown: list[str | None]
    mode: Literal["recall", "pattern"]
    options: list[str] = Field(min_length=2)
    period: int | None = None


class GridPayload(BaseModel):
    kind: Literal["grid"] = "grid"
    size: int
    box_rows: int
    box_cols: int
    puzzle: list[list[int]]
    empty_cells: int = Field(ge=0)


class NumberGridPayload(BaseModel):
    kind: Literal["number_grid"] = "number_grid"
    grid: list[list[int | None]]
    rule: Literal["row_sum", "row_product"]
    hidden: tuple[int, int]


Payload = Annotated[
    Union[
        OperandsPayload,
        VedicPayload,
        SequencePayload,
        StoryPayload,
        ShapeChoicePayload,
        SymbolSequencePayload,
        GridPayload,
        NumberGridPayload,
    ],
    Field(discriminator="kind"),
]

AnswerKind = Literal["integer", "choice_index", "symbol", "grid"]

# exercise type -> (payload kind, answer kind)
TYPE_SCHEMAS: dict[ExerciseType, tuple[str, AnswerKind]] = {
    ExerciseType.SIMPLE_ADDITION: ("operands", "integer"),
    ExerciseType.SIMPLE_SUBTRACTION: ("operands", "integer"),
    ExerciseType.FRIENDS_OF_5_ADDITION: ("operands", "integer"),
    ExerciseType.FRIENDS_OF_5_SUBTRACTION: ("operands", "integer"),
    ExerciseType.FRIENDS_OF_10_ADDITION: ("operands", "integer"),
    ExerciseType.FRIENDS_OF_10_SUBTRACTION: ("operands", "integer"),
    ExerciseType.MIXED_OPERATIONS: ("operands", "integer"),
    ExerciseType.SQUARES_ENDING_5: ("vedic", "integer"),
    ExerciseType.MULTIPLICATION_11: ("vedic", "integer"),
    ExerciseType.SUBTRACTION_COMPLEMENT: ("vedic", "integer"),
    ExerciseType.MULTIPLICATION_2X2: ("vedic", "integer"),
    ExerciseType.MULTIPLICATION_3X2: ("vedic", "integer"),
    ExerciseType.MULTIPLICATION_GENERAL: ("vedic", "integer"),
    ExerciseType.DIVISION_BASIC: ("vedic", "integer"),
    ExerciseType.SQUARE_ROOTS: ("vedic", "integer"),
    ExerciseType.CUBE_ROOTS: ("vedic", "integer"),
    ExerciseType.PATTERN_RECOGNITION: ("sequence", "integer"),
    ExerciseType.SIMPLE_SEQUENCES: ("sequence", "integer"),
    ExerciseType.LOGICAL_SEQUENCES: ("sequence", "integer"),
    ExerciseType.COUNTING_LOGIC: ("story", "integer"),
    ExerciseType.WORD_PROBLEMS: ("story", "integer"),
    ExerciseType.ALGEBRAIC_LOGIC: ("story", "integer"),
    ExerciseType.SHAPE_MATCHING: ("shape_choice", "choice_index"),
    ExerciseType.COLOR_PATTERNS: ("symbol_sequence", "symbol"),
    ExerciseType.MEMORY_SEQUENCES: ("symbol_sequence", "symbol"),
    ExerciseType.SUDOKU_4X4: ("grid", "grid"),
    ExerciseType.SUDOKU_6X6: ("grid", "grid"),
    ExerciseType.NUMBER_PUZZLES: ("number_grid", "integer"),
}


class Hint(BaseModel):
    tier: int = Field(ge=1)
    text: str
    point_penalty: int = Field(default=1, ge=0)


class Explanation(BaseModel):
    summary: str
    steps: list[str] = Field(default_factory=list)


def _answer_matches(kind: str, answer, payload) -> bool:
    if kind == "integer":
        return isinstance(answer, int) and not isinstance(answer, bool)
    if kind == "choice_index":
        return (
            isinstance(answer, int)
            and not isinstance(answer, bool)
            and 0 <= answer < len(getattr(payload, "options", []))
        )
    if kind == "symbol":
        return isinstance(answer, str) and answer in getattr(payload, "options", [answer])
    if kind == "grid":
        return isinstance(answer, list) and all(isinstance(row, list) for row in answer)
    return False


class Exercise(BaseModel):
    type: ExerciseType
    prompt: str
    payload: Payload
    answer: int | str | list[list[int]]
    difficulty: Difficulty
    level: str
    time_allowance: int = Field(gt=0, description="Seconds allowed for this exercise")
    hints: list[Hint] = Field(default_factory=list)
    explanation: Explanation
    skills: set[str] = Field(default_factory=set)
    visual_aid: dict | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "Exercise":
        if self.difficulty == Difficulty.MIXED:
            raise ValueError("an exercise must carry a concrete difficulty tier")
        payload_kind, answer_kind = TYPE_SCHEMAS[self.type]
        if self.payload.kind != payload_kind:
            raise ValueError(f"{self.type.value} expects a '{payload_kind}' payload, got '{self.payload.kind}'")
        if not _answer_matches(answer_kind, self.answer, self.payload):
            raise ValueError(f"answer does not match the '{answer_kind}' shape required by {self.type.value}")
        keys = [(h.tier, h.point_penalty) for h in self.hints]
        if keys != sorted(keys):
            raise ValueError("hints must be ordered by non-decreasing (tier, point_penalty)")
        return self


class SessionExercise(Exercise):
    exercise_id: str
    order_index: int = Field(ge=1)
    generated_at: datetime
    curriculum: Curriculum
    age_group: str | None = None
    original_difficulty: Difficulty
