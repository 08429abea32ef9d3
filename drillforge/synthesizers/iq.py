"""
IQ game synthesizer: shape matching, colour patterns, memory sequences, Sudoku
and rule grids.

Sudoku puzzles start from a fixed valid solution and are shuffled with
symbol relabelling plus row and column swaps inside bands and stacks, which
preserves validity. Cells are blanked without a uniqueness check, so graders
should validate the submitted grid against the constraints rather than
compare it to ``answer``.
"""
from __future__ import annotations

from drillforge.data.catalog import LevelDefinition
from drillforge.schemas.exercise import (
    Curriculum,
    Difficulty,
    Exercise,
    ExerciseType,
    Explanation,
    GridPayload,
    Hint,
    NumberGridPayload,
    ShapeChoicePayload,
    ShapeSpec,
    SymbolSequencePayload,
)
from drillforge.synthesizers.base import ExerciseSynthesizer

BASE_TIMES = {
    ExerciseType.SHAPE_MATCHING: 30,
    ExerciseType.COLOR_PATTERNS: 30,
    ExerciseType.MEMORY_SEQUENCES: 45,
    ExerciseType.SUDOKU_4X4: 180,
    ExerciseType.SUDOKU_6X6: 300,
    ExerciseType.NUMBER_PUZZLES: 90,
}

SHAPES = ["circle", "square", "triangle", "star", "heart", "diamond", "hexagon", "oval"]
COLORS = ["red", "blue", "green", "yellow", "purple", "orange", "pink", "brown"]
SYMBOLS = ["🔴", "🔵", "🟢", "🟡", "🟣", "🟠", "⚫", "⚪"]

OPTION_COUNTS = {Difficulty.EASY: 4, Difficulty.MEDIUM: 6, Difficulty.HARD: 8}
MEMORY_LENGTHS = {Difficulty.EASY: 4, Difficulty.MEDIUM: 6, Difficulty.HARD: 8}

SUDOKU_4X4_SOLUTION = [
    [1, 2, 3, 4],
    [3, 4, 1, 2],
    [2, 1, 4, 3],
    [4, 3, 2, 1],
]
SUDOKU_6X6_SOLUTION = [
    [1, 2, 3, 4, 5, 6],
    [4, 5, 6, 1, 2, 3],
    [2, 3, 1, 5, 6, 4],
    [5, 6, 4, 2, 3, 1],
    [3, 1, 2, 6, 4, 5],
    [6, 4, 5, 3, 1, 2],
]
# solved grid, box rows, box cols, cells removed per tier
SUDOKU_SHAPES = {
    ExerciseType.SUDOKU_4X4: (SUDOKU_4X4_SOLUTION, 2, 2, {Difficulty.EASY: 6, Difficulty.MEDIUM: 8, Difficulty.HARD: 10}),
    ExerciseType.SUDOKU_6X6: (SUDOKU_6X6_SOLUTION, 2, 3, {Difficulty.EASY: 14, Difficulty.MEDIUM: 18, Difficulty.HARD: 22}),
}


def is_valid_sudoku(grid: list[list[int]], box_rows: int, box_cols: int) -> bool:
    """Every row, column and box holds 1..n exactly once."""
    n = len(grid)
    expected = set(range(1, n + 1))
    if any(set(row) != expected for row in grid):
        return False
    if any({grid[r][c] for r in range(n)} != expected for c in range(n)):
        return False
    for top in range(0, n, box_rows):
        for left in range(0, n, box_cols):
            box = {grid[r][c] for r in range(top, top + box_rows) for c in range(left, left + box_cols)}
            if box != expected:
                return False
    return True


def grid_text(grid: list[list[int]]) -> str:
    return "/".join("".join(str(v) if v else "." for v in row) for row in grid)


class IQGamesSynthesizer(ExerciseSynthesizer):
    curriculum = Curriculum.IQ_GAMES
    weights = {
        ExerciseType.SHAPE_MATCHING: 0.3,
        ExerciseType.COLOR_PATTERNS: 0.3,
        ExerciseType.MEMORY_SEQUENCES: 0.3,
        ExerciseType.SUDOKU_4X4: 0.2,
        ExerciseType.SUDOKU_6X6: 0.2,
        ExerciseType.NUMBER_PUZZLES: 0.3,
    }

    def builders(self):
        return {
            ExerciseType.SHAPE_MATCHING: self._shape_matching,
            ExerciseType.COLOR_PATTERNS: self._color_patterns,
            ExerciseType.MEMORY_SEQUENCES: self._memory_sequences,
            ExerciseType.SUDOKU_4X4: self._sudoku_4x4,
            ExerciseType.SUDOKU_6X6: self._sudoku_6x6,
            ExerciseType.NUMBER_PUZZLES: self._number_puzzles,
        }

    def _shape_matching(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        target = ShapeSpec(shape=self.rng.choice(SHAPES), color=self.rng.choice(COLORS))
        pool = [
            ShapeSpec(shape=shape, color=color)
            for shape in SHAPES
            for color in COLORS
            if (shape, color) != (target.shape, target.color)
        ]
        # distractors share either the shape or the colour so the match is not trivial
        close = [s for s in pool if s.shape == target.shape or s.color == target.color]
        options = self.rng.sample(close, OPTION_COUNTS[difficulty] - 1)
        answer = self.randint(0, len(options))
        options.insert(answer, target)
        return self.build(
            ExerciseType.SHAPE_MATCHING,
            level,
            difficulty,
            prompt=f"Find the {target.color} {target.shape} among {', '.join(f'{o.color} {o.shape}' for o in options)}",
            payload=ShapeChoicePayload(target=target, options=options),
            answer=answer,
            base_time=BASE_TIMES[ExerciseType.SHAPE_MATCHING],
            hints=[Hint(tier=1, text="Check both the shape and the colour.", point_penalty=1)],
            explanation=Explanation(summary=f"Option {answer + 1} is the {target.color} {target.shape}."),
        )

    def _color_patterns(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        period = {Difficulty.EASY: 2, Difficulty.MEDIUM: 3, Difficulty.HARD: 4}[difficulty]
        unit = self.rng.sample(COLORS, period)
        length = period * 2 + self.randint(1, period)
        shown: list[str | None] = [unit[i % period] for i in range(length)]
        answer = unit[length % period]
        options = sorted(set(unit) | set(self.rng.sample(COLORS, 2)))
        return self.build(
            ExerciseType.COLOR_PATTERNS,
            level,
            difficulty,
            prompt=f"Which colour comes next? {', '.join(shown)}, ?",
            payload=SymbolSequencePayload(shown=shown + [None], mode="pattern", options=options, period=period),
            answer=answer,
            base_time=BASE_TIMES[ExerciseType.COLOR_PATTERNS],
            hints=[
                Hint(tier=1, text="Look for the part that repeats.", point_penalty=1),
                Hint(tier=2, text=f"The pattern repeats every {period} colours.", point_penalty=2),
            ],
            explanation=Explanation(summary=f"The repeating unit is {', '.join(unit)}, so {answer} comes next."),
        )

    def _memory_sequences(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        length = MEMORY_LENGTHS[difficulty]
        palette = SYMBOLS[: OPTION_COUNTS[difficulty]]
        if self.rng.random() < 0.5:
            sequence = [self.rng.choice(palette) for _ in range(length)]
            position = self.randint(0, length - 1)
            answer = sequence[position]
            return self.build(
                ExerciseType.MEMORY_SEQUENCES,
                level,
                difficulty,
                prompt=f"Memorise: {' '.join(sequence)}. Which symbol was at position {position + 1}?",
                payload=SymbolSequencePayload(shown=sequence, mode="recall", options=palette),
                answer=answer,
                base_time=BASE_TIMES[ExerciseType.MEMORY_SEQUENCES],
                hints=[Hint(tier=1, text="Say the symbols to yourself in groups.", point_penalty=1)],
                explanation=Explanation(summary=f"Position {position + 1} held {answer}."),
                visual_aid={"display_seconds": length},
            )
        period = self.randint(2, max(2, len(palette) // 2))
        unit = self.rng.sample(palette, period)
        sequence = [unit[i % period] for i in range(length)]
        answer = unit[length % period]
        return self.build(
            ExerciseType.MEMORY_SEQUENCES,
            level,
            difficulty,
            prompt=f"Memorise: {' '.join(sequence)}. Which symbol comes next?",
            payload=SymbolSequencePayload(shown=sequence + [None], mode="pattern", options=palette, period=period),
            answer=answer,
            base_time=BASE_TIMES[ExerciseType.MEMORY_SEQUENCES],
            hints=[Hint(tier=1, text=f"The symbols repeat every {period}.", point_penalty=1)],
            explanation=Explanation(summary=f"The cycle {' '.join(unit)} continues with {answer}."),
            visual_aid={"display_seconds": length},
        )

    def shuffled_solution(self, solution: list[list[int]], box_rows: int, box_cols: int) -> list[list[int]]:
        n = len(solution)
        relabel = list(range(1, n + 1))
        self.rng.shuffle(relabel)
        grid = [[relabel[v - 1] for v in row] for row in solution]
        # rows within each band
        order: list[int] = []
        bands = list(range(n // box_rows))
        self.rng.shuffle(bands)
        for band in bands:
            rows = list(range(band * box_rows, (band + 1) * box_rows))
            self.rng.shuffle(rows)
            order.extend(rows)
        grid = [grid[r] for r in order]
        # columns within each stack
        order = []
        stacks = list(range(n // box_cols))
        self.rng.shuffle(stacks)
        for stack in stacks:
            cols = list(range(stack * box_cols, (stack + 1) * box_cols))
            self.rng.shuffle(cols)
            order.extend(cols)
        return [[row[c] for c in order] for row in grid]

    def _sudoku_grid(self, exercise_type: ExerciseType, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        base, box_rows, box_cols, removals = SUDOKU_SHAPES[exercise_type]
        n = len(base)
        solution = self.shuffled_solution(base, box_rows, box_cols)
        removed = removals[difficulty]
        cells = self.rng.sample(range(n * n), removed)
        puzzle = [row[:] for row in solution]
        for cell in cells:
            puzzle[cell // n][cell % n] = 0
        return self.build(
            exercise_type,
            level,
            difficulty,
            prompt=f"Sudoku {n}x{n} {grid_text(puzzle)}: fill every row, column and {box_rows}x{box_cols} box with 1-{n}",
            payload=GridPayload(size=n, box_rows=box_rows, box_cols=box_cols, puzzle=puzzle, empty_cells=removed),
            answer=solution,
            base_time=BASE_TIMES[exercise_type],
            hints=[
                Hint(tier=1, text="Start with the row, column or box that has the fewest blanks.", point_penalty=1),
                Hint(tier=2, text="A blank that can hold only one number is already solved.", point_penalty=2),
            ],
            explanation=Explanation(summary="One valid completion of the grid.", steps=[grid_text(solution)]),
        )

    def _sudoku_4x4(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        return self._sudoku_grid(ExerciseType.SUDOKU_4X4, level, difficulty)

    def _sudoku_6x6(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        return self._sudoku_grid(ExerciseType.SUDOKU_6X6, level, difficulty)

    def _number_puzzles(self, level: LevelDefinition, difficulty: Difficulty) -> Exercise:
        rule = "row_sum" if difficulty == Difficulty.EASY or self.rng.random() < 0.5 else "row_product"
        high = {Difficulty.EASY: 9, Difficulty.MEDIUM: 12, Difficulty.HARD: 20}[difficulty]
        grid: list[list[int | None]] = []
        for _ in range(3):
            if rule == "row_sum":
                a, b = self.randint(1, high), self.randint(1, high)
                grid.append([a, b, a + b])
            else:
                a, b = self.randint(2, max(2, high // 2)), self.randint(2, max(2, high // 2))
                grid.append([a, b, a * b])
        row = self.randint(1, 2)
        col = self.randint(0, 2)
        answer = grid[row][col]
        grid[row][col] = None
        combine = "+" if rule == "row_sum" else "×"
        rendered = " / ".join(" ".join("?" if v is None else str(v) for v in r) for r in grid)
        return self.build(
            ExerciseType.NUMBER_PUZZLES,
            level,
            difficulty,
            prompt=f"Find the missing number in {rendered}. Each row follows the same rule.",
            payload=NumberGridPayload(grid=grid, rule=rule, hidden=(row, col)),
            answer=answer,
            base_time=BASE_TIMES[ExerciseType.NUMBER_PUZZLES],
            hints=[
                Hint(tier=1, text="Work out the rule from the complete first row.", point_penalty=1),
                Hint(tier=2, text=f"In each row, first {combine} second = third.", point_penalty=2),
            ],
            explanation=Explanation(
                summary=f"Every row satisfies first {combine} second = third, so the missing number is {answer}.",
                steps=[f"Row {i + 1}: {r}" for i, r in enumerate(grid)],
            ),
        )
