"""Default configuration for solver components."""

from __future__ import annotations

import copy

from .model import ResidualBuilderConfig, SolveOptions

_DEFAULT_SOLVE_OPTIONS = SolveOptions()


def get_default_solve_options() -> SolveOptions:
    return copy.deepcopy(_DEFAULT_SOLVE_OPTIONS)


def get_residual_builder_config() -> ResidualBuilderConfig:
    return copy.deepcopy(_DEFAULT_SOLVE_OPTIONS.builder)
