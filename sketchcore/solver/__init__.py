"""Solver façade: DOF analysis and the nonlinear sketch solve."""

from __future__ import annotations

from .builder import ResidualBuilderError, ResidualSystem, build_residual_system
from .config import get_default_solve_options, get_residual_builder_config
from .dof import analyze_dof, jacobian_rank
from .model import (
    DOFAnalysis,
    ResidualBuilderConfig,
    ResidualSpec,
    SolveOptions,
    SolveResult,
    SolveStatus,
)
from .solver_core import solve_sketch

__all__ = [
    "DOFAnalysis",
    "ResidualBuilderConfig",
    "ResidualBuilderError",
    "ResidualSpec",
    "ResidualSystem",
    "SolveOptions",
    "SolveResult",
    "SolveStatus",
    "analyze_dof",
    "build_residual_system",
    "get_default_solve_options",
    "get_residual_builder_config",
    "jacobian_rank",
    "solve_sketch",
]
