"""GibbsStep: reaction adjustment step of a multiphase Gibbs free energy minimizer."""

import logging

from gibbstep.adjust import rxn_adjust
from gibbstep.hessian import CurvatureError, hessian_act_coeff_diag, hessian_diag_adj, hessian_ideal_diag
from gibbstep.jacobian import calc_ln_act_coeff_jac
from gibbstep.line_search import LineSearchResult, line_search
from gibbstep.models import (
    AdjustmentOptions,
    AdjustmentStatus,
    EquilibriumState,
    SpeciesStatus,
    build_state,
)
from gibbstep.residual import delta_g_recalc

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AdjustmentOptions",
    "AdjustmentStatus",
    "CurvatureError",
    "EquilibriumState",
    "LineSearchResult",
    "SpeciesStatus",
    "build_state",
    "calc_ln_act_coeff_jac",
    "delta_g_recalc",
    "hessian_act_coeff_diag",
    "hessian_diag_adj",
    "hessian_ideal_diag",
    "line_search",
    "rxn_adjust",
]
