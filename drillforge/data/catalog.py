"""Static curriculum definitions: levels, techniques, sutras, exercise types and age groups."""

from __future__ import annotations

from dataclasses import dataclass, field

from drillforge.core.errors import ConfigurationError
from drillforge.core.logging import DOMAIN_CATALOG, get_domain_logger
from drillforge.schemas.exercise import TYPE_SCHEMAS, Curriculum, ExerciseType

T = ExerciseType

logger = get_domain_logger(__name__, DOMAIN_CATALOG)


@dataclass(frozen=True)
class LevelDefinition:
    curriculum: Curriculum
    code: str
    name: str
    age_range: tuple[int, int]
    # operations / techniques / topics / games permitted at this level, in catalog order
    operations: tuple[str, ...]
    exercise_types: tuple[ExerciseType, ...]
    digits: int = 1
    rows: int = 1
    sutras: tuple[str, ...] = field(default_factory=tuple)

    def permits(self, exercise_type: ExerciseType) -> bool:
        return exercise_type in self.exercise_types


@dataclass(frozen=True)
class ExerciseTypeInfo:
    type: ExerciseType
    curriculum: Curriculum
    description: str
    skills: tuple[str, ...]
    payload_kind: str
    answer_kind: str


SOROBAN_OPERATION_TYPES: dict[str, tuple[ExerciseType, ...]] = {
    "addition": (T.SIMPLE_ADDITION,),
    "subtraction": (T.SIMPLE_SUBTRACTION,),
    "friends_of_5": (T.FRIENDS_OF_5_ADDITION, T.FRIENDS_OF_5_SUBTRACTION),
    "friends_of_10": (T.FRIENDS_OF_10_ADDITION, T.FRIENDS_OF_10_SUBTRACTION),
    "mixed": (T.MIXED_OPERATIONS,),
}

_BASIC = ("addition", "subtraction")
_F5 = _BASIC + ("friends_of_5",)
_F10 = _F5 + ("friends_of_10",)
_MIXED = _F10 + ("mixed",)

SOROBAN_LEVELS = [
    {"code": "A1", "digits": 1, "rows": 1, "operations": _BASIC, "age_range": (5, 10)},
    {"code": "A2", "digits": 1, "rows": 2, "operations": _BASIC, "age_range": (5, 10)},
    {"code": "A3", "digits": 2, "rows": 2, "operations": _BASIC, "age_range": (7, 10)},
    {"code": "B1", "digits": 2, "rows": 3, "operations": _F5, "age_range": (7, 14)},
    {"code": "B2", "digits": 2, "rows": 4, "operations": _F5, "age_range": (7, 14)},
    {"code": "B3", "digits": 3, "rows": 4, "operations": _F5, "age_range": (10, 14)},
    {"code": "C1", "digits": 3, "rows": 5, "operations": _F10, "age_range": (10, 16)},
    {"code": "C2", "digits": 3, "rows": 6, "operations": _F10, "age_range": (10, 16)},
    {"code": "C3", "digits": 4, "rows": 6, "operations": _F10, "age_range": (10, 16)},
    {"code": "D1", "digits": 4, "rows": 7, "operations": _MIXED, "age_range": (10, 18)},
    {"code": "D2", "digits": 4, "rows": 8, "operations": _MIXED, "age_range": (10, 18)},
    {"code": "D3", "digits": 5, "rows": 8, "operations": _MIXED, "age_range": (10, 18)},
]

SUTRAS = {
    "ekadhikina_purvena": "One more than the previous one",
    "nikhilam_navatashcaramam_dashatah": "All from 9 and the last from 10",
    "urdhva_tiryagbhyam": "Vertically and crosswise",
    "paravartya_yojayet": "Transpose and adjust",
    "puranapuranabhyam": "By the completion or non-completion",
}

# technique -> sutra that teaches it
VEDIC_TECHNIQUE_SUTRA: dict[ExerciseType, str] = {
    T.SQUARES_ENDING_5: "ekadhikina_purvena",
    T.MULTIPLICATION_11: "ekadhikina_purvena",
    T.SUBTRACTION_COMPLEMENT: "nikhilam_navatashcaramam_dashatah",
    T.MULTIPLICATION_2X2: "urdhva_tiryagbhyam",
    T.MULTIPLICATION_3X2: "urdhva_tiryagbhyam",
    T.MULTIPLICATION_GENERAL: "urdhva_tiryagbhyam",
    T.DIVISION_BASIC: "paravartya_yojayet",
    T.SQUARE_ROOTS: "puranapuranabhyam",
    T.CUBE_ROOTS: "puranapuranabhyam",
}

VEDIC_LEVELS = [
    {
        "code": "V1",
        "techniques": (T.SQUARES_ENDING_5, T.MULTIPLICATION_11),
        "digits": 2,
        "age_range": (9, 12),
    },
    {
        "code": "V2",
        "techniques": (T.SQUARES_ENDING_5, T.MULTIPLICATION_11, T.SUBTRACTION_COMPLEMENT),
        "digits": 3,
        "age_range": (9, 12),
    },
    {"code": "V3", "techniques": (T.MULTIPLICATION_2X2, T.MULTIPLICATION_3X2), "digits": 3, "age_range": (12, 18)},
    {"code": "V4", "techniques": (T.MULTIPLICATION_GENERAL, T.DIVISION_BASIC), "digits": 4, "age_range": (12, 18)},
    {"code": "V5", "techniques": (T.SQUARE_ROOTS, T.CUBE_ROOTS), "digits": 4, "age_range": (12, 18)},
]

LOGIC_LEVELS = [
    {
        "code": "L1",
        "name": "Grades 1-2",
        "age_range": (6, 8),
        "topics": (T.PATTERN_RECOGNITION, T.SIMPLE_SEQUENCES, T.COUNTING_LOGIC),
    },
    {
        "code": "L2",
        "name": "Grades 3-4",
        "age_range": (8, 10),
        "topics": (T.PATTERN_RECOGNITION, T.SIMPLE_SEQUENCES, T.LOGICAL_SEQUENCES, T.WORD_PROBLEMS),
    },
    {
        "code": "L3",
        "name": "Grades 5-6",
        "age_range": (10, 12),
        "topics": (T.PATTERN_RECOGNITION, T.LOGICAL_SEQUENCES, T.WORD_PROBLEMS, T.ALGEBRAIC_LOGIC),
    },
    {
        "code": "L4",
        "name": "Grades 7-8",
        "age_range": (12, 14),
        "topics": (T.PATTERN_RECOGNITION, T.LOGICAL_SEQUENCES, T.WORD_PROBLEMS, T.ALGEBRAIC_LOGIC),
    },
    {
        "code": "L5",
        "name": "Grades 9-10",
        "age_range": (14, 16),
        "topics": (T.PATTERN_RECOGNITION, T.LOGICAL_SEQUENCES, T.ALGEBRAIC_LOGIC, T.WORD_PROBLEMS),
    },
    {
        "code": "L6",
        "name": "Grades 11-12",
        "age_range": (16, 18),
        "topics": (T.PATTERN_RECOGNITION, T.LOGICAL_SEQUENCES, T.ALGEBRAIC_LOGIC, T.WORD_PROBLEMS),
    },
]

IQ_LEVELS = [
    {
        "code": "IQ1",
        "name": "Grades 1-2",
        "age_range": (6, 8),
        "games": (T.SHAPE_MATCHING, T.COLOR_PATTERNS, T.MEMORY_SEQUENCES),
    },
    {
        "code": "IQ2",
        "name": "Grades 3-4",
        "age_range": (8, 10),
        "games": (T.COLOR_PATTERNS, T.SUDOKU_4X4, T.MEMORY_SEQUENCES),
    },
    {
        "code": "IQ3",
        "name": "Grades 5-6",
        "age_range": (10, 12),
        "games": (T.SUDOKU_4X4, T.MEMORY_SEQUENCES, T.NUMBER_PUZZLES),
    },
    {
        "code": "IQ4",
        "name": "Grades 7-8",
        "age_range": (12, 14),
        "games": (T.SUDOKU_6X6, T.MEMORY_SEQUENCES, T.NUMBER_PUZZLES),
    },
    {
        "code": "IQ5",
        "name": "Grades 9-10",
        "age_range": (14, 16),
        "games": (T.SUDOKU_6X6, T.MEMORY_SEQUENCES, T.NUMBER_PUZZLES),
    },
    {
        "code": "IQ6",
        "name": "Grades 11-12",
        "age_range": (16, 18),
        "games": (T.SUDOKU_6X6, T.NUMBER_PUZZLES, T.MEMORY_SEQUENCES),
    },
]

# Levels suited to each age group; a mismatch is only a warning.
AGE_GROUP_LEVELS: dict[str, dict[Curriculum, tuple[str, ...]]] = {
    "under_7": {
        Curriculum.SOROBAN: ("A1", "A2"),
        Curriculum.LOGIC: ("L1",),
        Curriculum.IQ_GAMES: ("IQ1",),
    },
    "7_to_10": {
        Curriculum.SOROBAN: ("A1", "A2", "A3", "B1", "B2"),
        Curriculum.LOGIC: ("L1", "L2"),
        Curriculum.IQ_GAMES: ("IQ1", "IQ2"),
    },
    "over_10": {
        Curriculum.SOROBAN: ("B1", "B2", "B3", "C1", "C2", "C3", "D1", "D2", "D3"),
        Curriculum.LOGIC: ("L3", "L4", "L5", "L6"),
        Curriculum.IQ_GAMES: ("IQ3", "IQ4", "IQ5", "IQ6"),
    },
    "under_12": {Curriculum.VEDIC: ("V1", "V2")},
    "over_12": {Curriculum.VEDIC: ("V3", "V4", "V5")},
}

_TYPE_INFO: dict[ExerciseType, tuple[Curriculum, str, tuple[str, ...]]] = {
    T.SIMPLE_ADDITION: (Curriculum.SOROBAN, "Add a column of numbers on the soroban", ("addition", "bead_movement")),
    T.SIMPLE_SUBTRACTION: (Curriculum.SOROBAN, "Subtract a column of numbers on the soroban", ("subtraction", "bead_movement")),
    T.FRIENDS_OF_5_ADDITION: (Curriculum.SOROBAN, "Addition using the complements of 5", ("addition", "friends_of_5")),
    T.FRIENDS_OF_5_SUBTRACTION: (Curriculum.SOROBAN, "Subtraction using the complements of 5", ("subtraction", "friends_of_5")),
    T.FRIENDS_OF_10_ADDITION: (Curriculum.SOROBAN, "Addition with a carry using the complements of 10", ("addition", "friends_of_10")),
    T.FRIENDS_OF_10_SUBTRACTION: (Curriculum.SOROBAN, "Subtraction with a borrow using the complements of 10", ("subtraction", "friends_of_10")),
    T.MIXED_OPERATIONS: (Curriculum.SOROBAN, "Chained additions and subtractions", ("addition", "subtraction", "mixed")),
    T.SQUARES_ENDING_5: (Curriculum.VEDIC, "Square a number ending in 5", ("squares", "ekadhikina_purvena")),
    T.MULTIPLICATION_11: (Curriculum.VEDIC, "Multiply by 11 with neighbour sums", ("multiplication", "ekadhikina_purvena")),
    T.SUBTRACTION_COMPLEMENT: (Curriculum.VEDIC, "Subtract from a power of ten", ("subtraction", "nikhilam")),
    T.MULTIPLICATION_2X2: (Curriculum.VEDIC, "Two-digit by two-digit multiplication", ("multiplication", "urdhva_tiryagbhyam")),
    T.MULTIPLICATION_3X2: (Curriculum.VEDIC, "Three-digit by two-digit multiplication", ("multiplication", "urdhva_tiryagbhyam")),
    T.MULTIPLICATION_GENERAL: (Curriculum.VEDIC, "Multi-digit multiplication", ("multiplication", "urdhva_tiryagbhyam")),
    T.DIVISION_BASIC: (Curriculum.VEDIC, "Division by a divisor just above ten", ("division", "paravartya_yojayet")),
    T.SQUARE_ROOTS: (Curriculum.VEDIC, "Square root of a perfect square", ("roots", "puranapuranabhyam")),
    T.CUBE_ROOTS: (Curriculum.VEDIC, "Cube root of a perfect cube", ("roots", "puranapuranabhyam")),
    T.PATTERN_RECOGNITION: (Curriculum.LOGIC, "Find the next term of a numeric pattern", ("pattern_recognition",)),
    T.SIMPLE_SEQUENCES: (Curriculum.LOGIC, "Continue a counting-on sequence", ("sequences",)),
    T.LOGICAL_SEQUENCES: (Curriculum.LOGIC, "Fill the missing term of a sequence", ("sequences", "pattern_recognition")),
    T.COUNTING_LOGIC: (Curriculum.LOGIC, "Counting scenarios", ("counting",)),
    T.WORD_PROBLEMS: (Curriculum.LOGIC, "Short arithmetic stories", ("word_problems", "reasoning")),
    T.ALGEBRAIC_LOGIC: (Curriculum.LOGIC, "Find the unknown in a linear equation", ("algebraic_thinking",)),
    T.SHAPE_MATCHING: (Curriculum.IQ_GAMES, "Pick the matching shape and colour", ("visual_perception", "pattern_recognition")),
    T.COLOR_PATTERNS: (Curriculum.IQ_GAMES, "Continue a repeating colour pattern", ("pattern_recognition", "attention")),
    T.MEMORY_SEQUENCES: (Curriculum.IQ_GAMES, "Recall or continue a sequence of symbols", ("working_memory", "attention")),
    T.SUDOKU_4X4: (Curriculum.IQ_GAMES, "4x4 Sudoku with 2x2 regions", ("logical_thinking", "number_placement")),
    T.SUDOKU_6X6: (Curriculum.IQ_GAMES, "6x6 Sudoku with 2x3 regions", ("logical_thinking", "number_placement")),
    T.NUMBER_PUZZLES: (Curriculum.IQ_GAMES, "Find the hidden number in a rule grid", ("deductive_reasoning", "arithmetic")),
}


def _build_levels() -> dict[Curriculum, dict[str, LevelDefinition]]:
    levels: dict[Curriculum, dict[str, LevelDefinition]] = {c: {} for c in Curriculum}
    for row in SOROBAN_LEVELS:
        levels[Curriculum.SOROBAN][row["code"]] = LevelDefinition(
            curriculum=Curriculum.SOROBAN,
            code=row["code"],
            name=f"Soroban {row['code']}",
            age_range=row["age_range"],
            operations=row["operations"],
            exercise_types=tuple(t for op in row["operations"] for t in SOROBAN_OPERATION_TYPES[op]),
            digits=row["digits"],
            rows=row["rows"],
        )
    for row in VEDIC_LEVELS:
        techniques = row["techniques"]
        sutras = tuple(dict.fromkeys(VEDIC_TECHNIQUE_SUTRA[t] for t in techniques))
        levels[Curriculum.VEDIC][row["code"]] = LevelDefinition(
            curriculum=Curriculum.VEDIC,
            code=row["code"],
            name=f"Vedic {row['code']}",
            age_range=row["age_range"],
            operations=tuple(t.value for t in techniques),
            exercise_types=techniques,
            digits=row["digits"],
            sutras=sutras,
        )
    for curriculum, rows, key in ((Curriculum.LOGIC, LOGIC_LEVELS, "topics"), (Curriculum.IQ_GAMES, IQ_LEVELS, "games")):
        for row in rows:
            levels[curriculum][row["code"]] = LevelDefinition(
                curriculum=curriculum,
                code=row["code"],
                name=row["name"],
                age_range=row["age_range"],
                operations=tuple(t.value for t in row[key]),
                exercise_types=row[key],
            )
    return levels


_LEVELS = _build_levels()


def _coerce_curriculum(curriculum: Curriculum | str) -> Curriculum:
    try:
        return Curriculum(curriculum)
    except ValueError:
        raise ConfigurationError(f"Invalid curriculum: {curriculum}") from None


def ordered_levels(curriculum: Curriculum | str) -> tuple[str, ...]:
    return tuple(_LEVELS[_coerce_curriculum(curriculum)])


def level_definition(curriculum: Curriculum | str, level_code: str) -> LevelDefinition:
    key = _coerce_curriculum(curriculum)
    definition = _LEVELS[key].get(level_code)
    if definition is None:
        logger.warning("Unknown level %s requested for %s", level_code, key.value)
        raise ConfigurationError(
            f"Invalid level {level_code} for curriculum {key.value}",
            details={"valid_levels": list(_LEVELS[key])},
        )
    return definition


def exercise_type_catalog(curriculum: Curriculum | str) -> dict[ExerciseType, ExerciseTypeInfo]:
    key = _coerce_curriculum(curriculum)
    catalog = {}
    for exercise_type, (owner, description, skills) in _TYPE_INFO.items():
        if owner != key:
            continue
        payload_kind, answer_kind = TYPE_SCHEMAS[exercise_type]
        catalog[exercise_type] = ExerciseTypeInfo(
            type=exercise_type,
            curriculum=owner,
            description=description,
            skills=skills,
            payload_kind=payload_kind,
            answer_kind=answer_kind,
        )
    return catalog


def curriculum_of(exercise_type: ExerciseType) -> Curriculum:
    return _TYPE_INFO[exercise_type][0]


def type_skills(exercise_type: ExerciseType) -> set[str]:
    return set(_TYPE_INFO[exercise_type][2])


def levels_for_age_group(age_group: str, curriculum: Curriculum | str) -> tuple[str, ...] | None:
    """Levels recommended for the age group, or None when the group has no opinion on the curriculum."""
    return AGE_GROUP_LEVELS.get(age_group, {}).get(_coerce_curriculum(curriculum))


def area_types(level: LevelDefinition, area: str) -> list[ExerciseType]:
    """Resolve a focus/avoid area (a type tag or an operation name) to the types it covers at ``level``."""
    if level.curriculum == Curriculum.SOROBAN and area in SOROBAN_OPERATION_TYPES:
        if area not in level.operations:
            return []
        return list(SOROBAN_OPERATION_TYPES[area])
    try:
        exercise_type = ExerciseType(area)
    except ValueError:
        return []
    return [exercise_type] if level.permits(exercise_type) else []
