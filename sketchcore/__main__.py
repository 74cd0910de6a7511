import argparse
import json
import logging
import sys
from typing import Dict, List, Optional, Sequence, Tuple

from sketchcore import (
    SolveOptions,
    SolveStatus,
    analyze_dof,
    document_from_dict,
    solve_sketch,
)
from sketchcore.profile import profile_summary, validate_profile

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_drive(values: Optional[List[str]]) -> Dict[int, Tuple[float, float]]:
    """Parse ``ID:X,Y`` drag targets."""

    driven: Dict[int, Tuple[float, float]] = {}
    for value in values or []:
        try:
            pid_text, coords = value.split(":", 1)
            x_text, y_text = coords.split(",", 1)
            driven[int(pid_text)] = (float(x_text), float(y_text))
        except ValueError:
            raise SystemExit(f"invalid --drive value {value!r}; expected ID:X,Y")
    return driven


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Solve a sketch document and print the result as JSON")
    parser.add_argument("path", help="Path to a JSON document with 'sketch' and 'constraints'")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Iteration budget of each least-squares phase",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Convergence tolerance on the hard residual norm",
    )
    parser.add_argument(
        "--drive",
        action="append",
        metavar="ID:X,Y",
        help="Drag point ID toward (X, Y); may be repeated",
    )
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Also extract and report the closed profile of the solved sketch",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    with open(args.path, encoding="utf-8") as fin:
        document = json.load(fin)

    sketch, constraints = document_from_dict(document)
    logger.info(
        "Loaded sketch %s with %d point(s), %d entit(ies), %d constraint(s)",
        sketch.name,
        len(sketch.points),
        len(sketch.entities),
        len(constraints),
    )

    options = SolveOptions(driven_points=_parse_drive(args.drive))
    if args.max_iterations is not None:
        options.max_iterations = args.max_iterations
    if args.tolerance is not None:
        options.convergence_tolerance = args.tolerance

    result = solve_sketch(sketch, constraints, options)
    if result.skipped:
        for message in result.skipped:
            logger.warning("Skipped constraint %s", message)

    report: Dict[str, object] = {
        "result": result.to_dict(),
        "dof": analyze_dof(sketch, constraints).to_dict(),
        "points": {str(p.id): [p.x, p.y] for p in sketch.get_all_points()},
    }
    if args.profile:
        profile = sketch.to_profile()
        report["profile"] = profile_summary(profile)
        if profile is not None:
            report["profile_errors"] = validate_profile(profile).errors

    print(json.dumps(report, indent=2))
    return 2 if result.status is SolveStatus.FAILED else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
