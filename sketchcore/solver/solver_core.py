"""Least-squares solve of a sketch against its constraints."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy.optimize import least_squares

from ..constraints import BaseConstraint
from ..logging_utils import apply_debug_logging
from ..sketch import SketchModel
from .builder import ResidualSystem, build_residual_system, evaluate, jacobian, residual_breakdown
from .config import get_default_solve_options
from .dof import analyze_dof, jacobian_rank
from .model import ResidualSpec, SolveOptions, SolveResult, SolveStatus

logger = logging.getLogger(__name__)

_NUMERICAL_ERRORS = (ValueError, FloatingPointError, np.linalg.LinAlgError)


@dataclass
class _Phase:
    x: np.ndarray
    nfev: int


def _run_least_squares(
    specs: Sequence[ResidualSpec], x0: np.ndarray, n: int, options: SolveOptions
) -> _Phase:
    config = options.builder

    def fun(x: np.ndarray) -> np.ndarray:
        return evaluate(specs, x, weighted=True)

    def jac(x: np.ndarray) -> np.ndarray:
        return jacobian(specs, x, n, config, weighted=True)

    result = least_squares(
        fun,
        x0,
        jac=jac,
        method="trf",
        x_scale=1.0,
        ftol=options.step_tolerance,
        xtol=options.step_tolerance,
        gtol=options.step_tolerance,
        max_nfev=max(1, int(options.max_iterations)),
    )
    logger.debug(
        "least_squares finished: status=%s nfev=%s cost=%.3e message=%s",
        result.status,
        result.nfev,
        float(result.cost),
        result.message,
    )
    return _Phase(x=np.asarray(result.x, dtype=float), nfev=int(result.nfev))


def _norm(values: np.ndarray) -> float:
    if values.size == 0:
        return 0.0
    return float(np.linalg.norm(values))


def _restored_residual(system: ResidualSystem, x0: np.ndarray) -> float:
    """Hard residual norm of the state a failed solve leaves behind."""

    try:
        value = _norm(evaluate(system.hard, x0))
    except _NUMERICAL_ERRORS:
        return math.inf
    return value if math.isfinite(value) else math.inf


def _failed(
    message: str, remaining: int, skipped: Sequence[str], residual: float, iterations: int = 0
) -> SolveResult:
    logger.info("Solve failed: %s", message)
    return SolveResult(
        status=SolveStatus.FAILED,
        satisfied=False,
        residual=residual,
        iterations=iterations,
        remaining_dof=remaining,
        message=message,
        skipped=list(skipped),
    )


def _evaluate_without_free_variables(
    system: ResidualSystem, remaining: int, options: SolveOptions
) -> SolveResult:
    x = np.zeros(0, dtype=float)
    values = evaluate(system.hard, x)
    residual = _norm(values)
    satisfied = residual <= options.convergence_tolerance
    breakdown = residual_breakdown(system.hard, x)
    if system.skipped:
        result = _failed("constraints reference missing geometry", remaining, system.skipped, residual=residual)
        result.residual_breakdown = breakdown
        return result
    status = SolveStatus.SUCCESS if satisfied else SolveStatus.OVER_CONSTRAINED
    return SolveResult(
        status=status,
        satisfied=satisfied,
        residual=residual,
        remaining_dof=remaining,
        jacobian_rank=0,
        equations=int(values.size),
        message="no free variables",
        residual_breakdown=breakdown,
    )


def solve_sketch(
    sketch: SketchModel,
    constraints: Sequence[BaseConstraint],
    options: Optional[SolveOptions] = None,
) -> SolveResult:
    """Move the free points of ``sketch`` so the active constraints hold.

    The sketch is updated in place unless the status is ``failed``, in which
    case point positions are left exactly as they were before the call.
    With driven points the solve runs twice: first hard constraints and the
    weak driven targets together, then the hard constraints alone starting
    from that compromise, so hard constraints end up satisfied while driven
    points stay as close to their targets as the constraints allow.
    """

    options = options if options is not None else get_default_solve_options()
    dof = analyze_dof(sketch, constraints)
    system = build_residual_system(sketch, constraints, options)
    remaining = dof.remaining_dof
    n = system.n
    driven_mode = bool(system.driven)

    logger.info(
        "Solving sketch %s: %d point(s), %d free variable(s), %d constraint(s), %d driven",
        sketch.name,
        len(sketch.points),
        n,
        len(system.hard),
        len(system.driven),
    )

    if n == 0:
        return _evaluate_without_free_variables(system, remaining, options)

    if not system.hard and not system.driven:
        if system.skipped:
            return _failed("constraints reference missing geometry", remaining, system.skipped, residual=0.0)
        return SolveResult(
            status=SolveStatus.UNDER_CONSTRAINED,
            satisfied=True,
            residual=0.0,
            remaining_dof=remaining,
            jacobian_rank=0,
            message="no constraints",
        )

    x0 = np.asarray(sketch.get_state(), dtype=float)
    iterations = 0
    try:
        if driven_mode:
            phase = _run_least_squares(system.hard + system.driven, x0, n, options)
            iterations += phase.nfev
            x = phase.x
            if system.hard:
                phase = _run_least_squares(system.hard, x, n, options)
                iterations += phase.nfev
                x = phase.x
        else:
            phase = _run_least_squares(system.hard, x0, n, options)
            iterations += phase.nfev
            x = phase.x
        values = evaluate(system.hard, x)
        jac_hard = jacobian(system.hard, x, n, options.builder)
    except _NUMERICAL_ERRORS as exc:
        logger.warning("Numerical failure while solving sketch %s: %s", sketch.name, exc)
        return _failed(
            f"numerical failure: {exc}", remaining, system.skipped, _restored_residual(system, x0), iterations
        )

    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(values)) and np.all(np.isfinite(jac_hard))):
        return _failed(
            "solver produced non-finite values", remaining, system.skipped, _restored_residual(system, x0), iterations
        )

    residual = _norm(values)
    satisfied = residual <= options.convergence_tolerance
    rank = jacobian_rank(jac_hard, options.rank_tolerance)
    equations = int(values.size)
    degenerate = system.degenerate(x)
    breakdown = residual_breakdown(system.hard, x)

    logger.debug(
        "Solved state: residual=%.3e rank=%d equations=%d remaining_dof=%d degenerate=%s",
        residual,
        rank,
        equations,
        remaining,
        degenerate,
    )

    if system.skipped:
        status = SolveStatus.FAILED
        message = f"{len(system.skipped)} constraint(s) reference missing geometry"
    elif degenerate:
        status = SolveStatus.FAILED
        message = "degenerate geometry in " + ", ".join(degenerate)
    elif satisfied:
        if driven_mode:
            status = SolveStatus.CONVERGED
            message = "driven solve converged"
        elif remaining > 0:
            status = SolveStatus.UNDER_CONSTRAINED
            message = f"{remaining} degree(s) of freedom remain"
        else:
            status = SolveStatus.SUCCESS
            message = "all constraints satisfied"
    elif remaining < 0 or rank < equations:
        status = SolveStatus.OVER_CONSTRAINED
        message = "constraints are inconsistent"
    else:
        status = SolveStatus.FAILED
        message = "did not converge"

    if status is SolveStatus.FAILED:
        # positions are rolled back, so report the state the sketch keeps
        residual = _restored_residual(system, x0)
        breakdown = residual_breakdown(system.hard, x0)
        satisfied = False

    result = SolveResult(
        status=status,
        satisfied=satisfied,
        residual=residual,
        iterations=iterations,
        remaining_dof=remaining,
        jacobian_rank=rank,
        equations=equations,
        message=message,
        skipped=list(system.skipped),
        residual_breakdown=breakdown,
    )

    if status is not SolveStatus.FAILED:
        sketch.set_state(x.tolist())

    logger.info(
        "Solve finished: status=%s residual=%.3e iterations=%d",
        status.value,
        residual,
        iterations,
    )
    return result


apply_debug_logging(globals(), logger=logger, skip={"_norm"})


__all__ = ["solve_sketch"]
