"""
Rectangular minimum-cost assignment.

Used to match predicted motion paths to objects. Solving is delegated to
scipy's linear_sum_assignment; this module validates the matrix, turns
forbidden (inf) pairs into a prohibitive finite cost and rejects solutions
that still need one.

Example:
    pairs = solve_assignment([[10, 2], [4, 8]])
    # [(0, 1), (1, 0)]
"""

import logging
from typing import List, Sequence, Tuple, Union

import numpy as np
from scipy.optimize import linear_sum_assignment

from ..motion_engine.errors import AssignmentInfeasibleError

logger = logging.getLogger(__name__)

CostMatrix = Union[np.ndarray, Sequence[Sequence[float]]]


def _check_coverage(finite: np.ndarray) -> None:
    n_rows, n_cols = finite.shape
    if n_rows <= n_cols:
        empty = np.flatnonzero(~finite.any(axis=1))
        if empty.size:
            raise AssignmentInfeasibleError(f"Row {int(empty[0])} has no finite cost")
    if n_cols <= n_rows:
        empty = np.flatnonzero(~finite.any(axis=0))
        if empty.size:
            raise AssignmentInfeasibleError(f"Column {int(empty[0])} has no finite cost")


def solve_assignment(cost: CostMatrix) -> List[Tuple[int, int]]:
    """
    Find the minimum-cost assignment of rows to columns.

    Args:
        cost: Non-negative n x m matrix; inf marks forbidden pairs

    Returns:
        (row, col) pairs sorted by row, min(n, m) of them

    Raises:
        ValueError: If the matrix is not 2-D or holds negative or NaN costs
        AssignmentInfeasibleError: If no assignment has a finite total cost
    """
    matrix = np.asarray(cost, dtype=float)
    if matrix.ndim != 2:
        raise ValueError(f"Cost matrix must be 2-D, got shape {matrix.shape}")
    n_rows, n_cols = matrix.shape
    if n_rows == 0 or n_cols == 0:
        return []
    if np.isnan(matrix).any():
        raise ValueError("Cost matrix contains NaN")
    if (matrix < 0).any():
        raise ValueError("Cost matrix must be non-negative")

    finite = np.isfinite(matrix)
    _check_coverage(finite)

    # Any finite solution costs less than one forbidden cell
    large = float(matrix[finite].sum()) + 1.0
    rows, cols = linear_sum_assignment(np.where(finite, matrix, large))

    pairs: List[Tuple[int, int]] = []
    for row, col in zip(rows, cols):
        if not finite[row, col]:
            raise AssignmentInfeasibleError(
                f"Every assignment uses a forbidden pair (row {row}, column {col})"
            )
        pairs.append((int(row), int(col)))
    pairs.sort()

    logger.debug(f"Solved {n_rows}x{n_cols} assignment: {pairs}")
    return pairs


def assignment_cost(cost: CostMatrix, pairs: List[Tuple[int, int]]) -> float:
    """Total cost of an assignment."""
    matrix = np.asarray(cost, dtype=float)
    return float(sum(matrix[row, col] for row, col in pairs))
