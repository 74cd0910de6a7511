"""Degree-of-freedom bookkeeping."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from ..constraints import BaseConstraint, constraint_equation_count
from ..logging_utils import apply_debug_logging
from ..sketch import SketchModel
from .model import DOFAnalysis

logger = logging.getLogger(__name__)


def analyze_dof(sketch: SketchModel, constraints: Sequence[BaseConstraint]) -> DOFAnalysis:
    """Structural DOF count: free coordinates minus equations of active constraints.

    The count cannot see redundant-but-balanced constraint sets; the solver
    refines it with the Jacobian rank at the solved state.
    """

    total = sketch.count_base_dof()
    constrained = 0
    for constraint in constraints:
        count = constraint_equation_count(constraint)
        if constraint.active:
            constrained += count
    remaining = total - constrained
    logger.debug("DOF analysis: total=%d constrained=%d remaining=%d", total, constrained, remaining)
    return DOFAnalysis(
        total_dof=total,
        constrained_dof=constrained,
        remaining_dof=remaining,
        is_fully_constrained=remaining == 0,
        is_over_constrained=remaining < 0,
    )


def jacobian_rank(jac: np.ndarray, rank_tolerance: float) -> int:
    """Numerical rank with singular values below ``rank_tolerance * max(1, sigma_max)`` dropped."""

    if jac.size == 0:
        return 0
    singular = np.linalg.svd(jac, compute_uv=False)
    threshold = rank_tolerance * max(1.0, float(singular[0]) if singular.size else 0.0)
    return int(np.sum(singular > threshold))


apply_debug_logging(globals(), logger=logger)


__all__ = ["analyze_dof", "jacobian_rank"]
