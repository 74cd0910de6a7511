from .constraints import (
    CONSTRAINT_TYPES,
    Angle,
    ArcArcTangent,
    BaseConstraint,
    Coincident,
    Concentric,
    Constraint,
    Distance,
    EqualLength,
    EqualRadius,
    Fixed,
    HorizontalLine,
    HorizontalPoints,
    Midpoint,
    Parallel,
    Perpendicular,
    PointOnArc,
    PointOnLine,
    PointToLineDistance,
    RadiusDimension,
    Symmetric,
    Tangent,
    VerticalLine,
    VerticalPoints,
    constraint_equation_count,
    describe_constraint,
    get_constraint_entities,
    get_constraint_points,
)
from .graph import analyze_constraint_graph, can_solve, detect_conflicts, partition_for_solving
from .ids import IdAllocator
from .planes import XY_PLANE, YZ_PLANE, ZX_PLANE, DatumPlane, create_datum_plane, create_offset_plane
from .predicates import (
    PlaneClassification,
    classify_point_plane,
    distance_to_plane,
    is_point_on_segment_2d,
    is_point_on_segment_3d,
    orient2d,
    orient3d,
)
from .profile import (
    ArcCurve,
    LineCurve,
    Profile,
    ProfileLoop,
    ProfileValidation,
    curve_length,
    eval_curve,
    validate_profile,
)
from .serialize import document_from_dict, document_to_dict, sketch_from_dict, sketch_to_dict
from .sketch import SketchError, SketchModel
from .solver import (
    DOFAnalysis,
    SolveOptions,
    SolveResult,
    SolveStatus,
    analyze_dof,
    solve_sketch,
)
from .tolerance import (
    DEFAULT_TOLERANCES,
    NumericContext,
    clamp_to_zero,
    create_numeric_context,
    eq,
    eq_angle,
    eq_length,
    gt,
    gte,
    is_zero,
    lt,
    lte,
)
from .types import ArcEntity, CircleEntity, LineEntity, SketchEntity, SketchPoint

__all__ = [
    "Angle",
    "ArcArcTangent",
    "ArcCurve",
    "ArcEntity",
    "BaseConstraint",
    "CONSTRAINT_TYPES",
    "CircleEntity",
    "Coincident",
    "Concentric",
    "Constraint",
    "DEFAULT_TOLERANCES",
    "DOFAnalysis",
    "DatumPlane",
    "Distance",
    "EqualLength",
    "EqualRadius",
    "Fixed",
    "HorizontalLine",
    "HorizontalPoints",
    "IdAllocator",
    "LineCurve",
    "LineEntity",
    "Midpoint",
    "NumericContext",
    "Parallel",
    "Perpendicular",
    "PlaneClassification",
    "PointOnArc",
    "PointOnLine",
    "PointToLineDistance",
    "Profile",
    "ProfileLoop",
    "ProfileValidation",
    "RadiusDimension",
    "SketchEntity",
    "SketchError",
    "SketchModel",
    "SketchPoint",
    "SolveOptions",
    "SolveResult",
    "SolveStatus",
    "Symmetric",
    "Tangent",
    "VerticalLine",
    "VerticalPoints",
    "XY_PLANE",
    "YZ_PLANE",
    "ZX_PLANE",
    "analyze_constraint_graph",
    "analyze_dof",
    "can_solve",
    "clamp_to_zero",
    "classify_point_plane",
    "constraint_equation_count",
    "create_datum_plane",
    "create_numeric_context",
    "create_offset_plane",
    "curve_length",
    "describe_constraint",
    "detect_conflicts",
    "distance_to_plane",
    "document_from_dict",
    "document_to_dict",
    "eq",
    "eq_angle",
    "eq_length",
    "eval_curve",
    "get_constraint_entities",
    "get_constraint_points",
    "gt",
    "gte",
    "is_point_on_segment_2d",
    "is_point_on_segment_3d",
    "is_zero",
    "lt",
    "lte",
    "orient2d",
    "orient3d",
    "partition_for_solving",
    "sketch_from_dict",
    "sketch_to_dict",
    "solve_sketch",
    "validate_profile",
]
