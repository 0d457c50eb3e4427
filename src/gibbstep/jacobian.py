"""Assembly of the global ln(activity coefficient) Jacobian."""

from __future__ import annotations

import numpy as np

from gibbstep.models import EquilibriumState


def calc_ln_act_coeff_jac(state: EquilibriumState, mole_numbers: np.ndarray | None = None) -> np.ndarray:
    """Fill ``state.ln_act_coeff_jac`` with d(ln gamma_i)/d(n_j) at ``mole_numbers``.

    Each multispecies phase computes its own block, which is scattered into the
    global matrix. Single species phases have no composition dependence and are
    skipped, so their rows and columns keep whatever they held before.
    """
    if mole_numbers is None:
        mole_numbers = state.mole_numbers
    for phase in state.phases:
        if phase.single_species:
            continue
        block = phase.ln_act_coeff_jacobian(mole_numbers)
        idx = phase.species_indices
        state.ln_act_coeff_jac[np.ix_(idx, idx)] = block
    return state.ln_act_coeff_jac
