"""Core data structures for the sketch solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from ..types import PointId

ResidualFunc = Callable[[np.ndarray], np.ndarray]
JacobianFunc = Callable[[np.ndarray], np.ndarray]


class SolveStatus(str, Enum):
    SUCCESS = "success"
    CONVERGED = "converged"
    UNDER_CONSTRAINED = "under_constrained"
    OVER_CONSTRAINED = "over_constrained"
    FAILED = "failed"


@dataclass
class ResidualBuilderConfig:
    """Numerical knobs of the residual builder."""

    # relative step of the central finite differences
    fd_step: float = 1e-7
    # lines and radii shorter than this make direction-based constraints degenerate
    degenerate_length: float = 1e-9


@dataclass
class SolveOptions:
    """Options accepted by :func:`sketchcore.solver.solve_sketch`.

    ``convergence_tolerance`` applies to the Euclidean norm of the hard
    (non-driven) residual vector.  ``driven_weight`` multiplies the residual
    ``point - target`` of every driven point, so it must stay well below the
    unit weight of hard constraints.
    """

    driven_points: Dict[PointId, Tuple[float, float]] = field(default_factory=dict)
    max_iterations: int = 200
    convergence_tolerance: float = 1e-8
    driven_weight: float = 1e-3
    rank_tolerance: float = 1e-8
    step_tolerance: float = 1e-12
    builder: ResidualBuilderConfig = field(default_factory=ResidualBuilderConfig)


@dataclass
class ResidualSpec:
    """One block of scalar residuals contributed by a constraint or driven point.

    ``func`` evaluates the unweighted residuals on the free-variable vector.
    ``jac`` returns the dense ``(size, n)`` Jacobian block; when it is ``None``
    the block is differentiated numerically over ``columns``.
    """

    key: str
    kind: str
    size: int
    func: ResidualFunc
    columns: np.ndarray
    jac: Optional[JacobianFunc] = None
    weight: float = 1.0
    driven: bool = False


@dataclass
class DOFAnalysis:
    total_dof: int
    constrained_dof: int
    remaining_dof: int
    is_fully_constrained: bool
    is_over_constrained: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_dof": self.total_dof,
            "constrained_dof": self.constrained_dof,
            "remaining_dof": self.remaining_dof,
            "is_fully_constrained": self.is_fully_constrained,
            "is_over_constrained": self.is_over_constrained,
        }


@dataclass
class SolveResult:
    status: SolveStatus
    satisfied: bool
    residual: float
    iterations: int = 0
    remaining_dof: int = 0
    jacobian_rank: Optional[int] = None
    equations: int = 0
    message: str = ""
    skipped: List[str] = field(default_factory=list)
    residual_breakdown: List[Dict[str, object]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is not SolveStatus.FAILED

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status.value,
            "satisfied": self.satisfied,
            "residual": self.residual,
            "iterations": self.iterations,
            "remaining_dof": self.remaining_dof,
            "jacobian_rank": self.jacobian_rank,
            "equations": self.equations,
            "message": self.message,
            "skipped": list(self.skipped),
        }


__all__ = [
    "DOFAnalysis",
    "JacobianFunc",
    "ResidualBuilderConfig",
    "ResidualFunc",
    "ResidualSpec",
    "SolveOptions",
    "SolveResult",
    "SolveStatus",
]
