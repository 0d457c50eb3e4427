"""Diagonal Hessian estimates for formation reactions.

The full reaction Hessian is never formed. Each reaction gets a scalar
curvature made of an ideal solution part plus a bounded correction for the
composition dependence of the activity coefficients.
"""

from __future__ import annotations

from gibbstep.constants import HESSIAN_REDUCTION_LIMIT
from gibbstep.models import EquilibriumState


class CurvatureError(ValueError):
    """Raised when a diagonal Hessian estimate is asked to start from a non-positive value."""


def hessian_ideal_diag(state: EquilibriumState, irxn: int) -> float:
    """Ideal solution diagonal curvature of reaction ``irxn``.

        s = 1/n_k + sum_j sc_j^2 / n_j - sum_phases dn_p^2 / N_p

    Single species phases contribute nothing. May return exactly zero when the
    reaction only involves single species phases.
    """
    kspec = state.ir[irxn]
    ss_phase = state.ss_phase
    moles = state.mole_numbers
    sc_irxn = state.stoich[irxn]
    dn_phase_irxn = state.dn_phase[irxn]

    s = 0.0 if ss_phase[kspec] else 1.0 / moles[kspec]
    for j in range(state.n_components):
        if sc_irxn[j] != 0.0 and not ss_phase[j]:
            s += sc_irxn[j] ** 2 / moles[j]
    for iph, phase in enumerate(state.phases):
        if not phase.single_species and state.phase_moles[iph] > 0.0:
            s -= dn_phase_irxn[iph] ** 2 / state.phase_moles[iph]
    return s


def hessian_act_coeff_diag(state: EquilibriumState, irxn: int) -> float:
    """Activity coefficient contribution to the diagonal of the reaction Hessian.

    Uses the Jacobian currently held in ``state.ln_act_coeff_jac``.
    """
    kspec = state.ir[irxn]
    kph = state.phase_id[kspec]
    sc_irxn = state.stoich[irxn]
    jac = state.ln_act_coeff_jac
    phase_id = state.phase_id
    ss_phase = state.ss_phase

    s = jac[kspec, kspec]
    # Only a loop over the components, so this stays cheap.
    for l in range(state.n_components):
        if ss_phase[l]:
            continue
        for k in range(state.n_components):
            if phase_id[k] == phase_id[l]:
                s += sc_irxn[k] * sc_irxn[l] * jac[k, l]
        if kph == phase_id[l]:
            s += sc_irxn[l] * (jac[kspec, l] + jac[l, kspec])
    return float(s)


def hessian_diag_adj(state: EquilibriumState, irxn: int, hessian_diag_ideal: float) -> float:
    """Blend the ideal curvature with the activity coefficient correction.

    The diagonal may grow by any amount, but may shrink to no less than
    1 - HESSIAN_REDUCTION_LIMIT of the ideal value, so the result stays positive.

    Raises:
        CurvatureError: If ``hessian_diag_ideal`` is not strictly positive.
    """
    if hessian_diag_ideal <= 0.0:
        raise CurvatureError(
            f"Ideal Hessian diagonal for reaction {irxn} must be positive, got {hessian_diag_ideal!r}."
        )
    hess_act_coef = hessian_act_coeff_diag(state, irxn)
    diag = hessian_diag_ideal
    if hess_act_coef >= 0.0:
        diag += hess_act_coef
    elif abs(hess_act_coef) < HESSIAN_REDUCTION_LIMIT * hessian_diag_ideal:
        diag += hess_act_coef
    else:
        diag -= HESSIAN_REDUCTION_LIMIT * hessian_diag_ideal
    return diag
