"""
Seeded puzzle generation.

A canonical solved grid is built from the pattern (BOX * (row % BOX) + row // BOX + col) % SIZE,
then scrambled with transformations that keep it a valid Sudoku:
* shuffle the rows inside each band and the bands themselves
* same for columns and stacks
* relabel the digits
Finally `empty_cells` random cells are blanked to get the challenge grid.
Everything draws from one random.Random(seed), so a seed always yields the same pair.
"""

import random
from copy import deepcopy

from src.core.models import Grid
from src.sudoku.engine import BOX, EMPTY, SIZE

DEFAULT_EMPTY_CELLS = 40


def generate(seed: int, empty_cells: int = DEFAULT_EMPTY_CELLS) -> tuple[Grid, Grid]:
    """Return (solution, grid) for the given seed."""
    if not 0 <= empty_cells <= SIZE * SIZE:
        raise ValueError(f"empty_cells must be between 0 and {SIZE * SIZE}: {empty_cells}")

    rng = random.Random(seed)
    rows = _shuffled_lines(rng)
    columns = _shuffled_lines(rng)
    digits = rng.sample(range(1, SIZE + 1), SIZE)

    solution = [[digits[_pattern(row, col)] for col in columns] for row in rows]

    grid = deepcopy(solution)
    for cell in rng.sample(range(SIZE * SIZE), empty_cells):
        grid[cell // SIZE][cell % SIZE] = EMPTY
    return solution, grid


def _pattern(row: int, col: int) -> int:
    return (BOX * (row % BOX) + row // BOX + col) % SIZE


def _shuffled_lines(rng: random.Random) -> list[int]:
    """Permutation of 0..8 that only moves lines within their band and moves whole bands."""
    bands = rng.sample(range(BOX), BOX)
    return [band * BOX + line for band in bands for line in rng.sample(range(BOX), BOX)]
