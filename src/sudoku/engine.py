"""
Pure puzzle rules: judging a placement and checking whether the grid is solved.

Coordinates follow the grid layout: grid[x][y] is row x, column y, both 0-based.
Bounds of x, y and value are checked by the request models, not here.
"""

from src.core.models import Grid
from src.core.shared_types import Placement

SIZE = 9
BOX = 3
EMPTY = 0
ROW_LABELS = "ABCDEFGHI"


def evaluate(grid: Grid, solution: Grid, x: int, y: int, value: int) -> Placement:
    """Judge a placement without touching the grid. The caller fills the cell on CORRECT_FILLED."""
    if value != solution[x][y]:
        return Placement.INCORRECT
    if grid[x][y] == EMPTY:
        return Placement.CORRECT_FILLED
    return Placement.ALREADY_FILLED


def count_empty(grid: Grid) -> int:
    return sum(1 for row in grid for cell in row if cell == EMPTY)


def is_complete(grid: Grid) -> bool:
    return count_empty(grid) == 0


def is_valid_solution(grid: Grid) -> bool:
    """
    Every row, column and 3x3 box holds the digits 1-9 exactly once.
    Not needed while playing (placements are judged against the stored solution); used to check generator output.
    """
    digits = set(range(1, SIZE + 1))
    rows = [set(row) for row in grid]
    columns = [{grid[x][y] for x in range(SIZE)} for y in range(SIZE)]
    boxes = [
        {
            grid[x][y]
            for x in range(bx * BOX, (bx + 1) * BOX)
            for y in range(by * BOX, (by + 1) * BOX)
        }
        for bx in range(BOX)
        for by in range(BOX)
    ]
    return all(group == digits for group in rows + columns + boxes)


def render(grid: Grid) -> str:
    """Plain text version of the grid (used when logging a solved challenge)."""
    separator = "   +" + "---+" * SIZE
    lines = ["     " + "   ".join(ROW_LABELS), separator]
    for label, row in zip(ROW_LABELS, grid):
        cells = "".join(f"| {cell if cell != EMPTY else ' '} " for cell in row)
        lines.append(f" {label} {cells}|")
        lines.append(separator)
    return "\n".join(lines)
