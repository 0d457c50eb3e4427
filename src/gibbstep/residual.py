"""Free energy residual (deltaG) of a single formation reaction."""

from __future__ import annotations

import numpy as np

from gibbstep.models import EquilibriumState


def chem_pot_phase(
    state: EquilibriumState,
    iphase: int,
    mole_numbers: np.ndarray,
    act_coeff: np.ndarray,
    mu: np.ndarray,
) -> None:
    """Write the activity coefficients and mu/RT of one phase into the scratch vectors."""
    phase = state.phases[iphase]
    gamma, mu_phase = phase.chemical_potentials(mole_numbers)
    act_coeff[phase.species_indices] = gamma
    mu[phase.species_indices] = mu_phase


def delta_g_recalc(
    state: EquilibriumState,
    irxn: int,
    mole_numbers: np.ndarray,
    act_coeff: np.ndarray,
    mu: np.ndarray,
) -> float:
    """Recalculate deltaG of reaction ``irxn`` at the composition ``mole_numbers``.

    Only phases taking part in the reaction are evaluated. ``act_coeff`` and
    ``mu`` are scratch vectors of length n_species; nothing else is modified.
    """
    for iphase in np.flatnonzero(state.phase_participation[irxn]):
        chem_pot_phase(state, iphase, mole_numbers, act_coeff, mu)

    kspec = state.ir[irxn]
    sc_irxn = state.stoich[irxn]
    active = np.flatnonzero(sc_irxn)
    return float(mu[kspec] + np.dot(sc_irxn[active], mu[active]))
