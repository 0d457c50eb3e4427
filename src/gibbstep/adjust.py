"""Reaction adjustment pass of the equilibrium iteration.

For every non-component formation reaction a change in the mole number of its
defining species is proposed, using a diagonal (separable) approximation of
the Hessian of the total Gibbs free energy:

    ds_k = -dg_irxn / s_irxn

Reactions whose curvature vanishes act entirely among single species phases.
For those, the species that would run out first is zeroed exactly and the
pass returns immediately so that the caller can recompute the component basis.
"""

from __future__ import annotations

import logging

from gibbstep.constants import RATIO_TEST_BIG
from gibbstep.hessian import hessian_diag_adj, hessian_ideal_diag
from gibbstep.jacobian import calc_ln_act_coeff_jac
from gibbstep.models import AdjustmentStatus, EquilibriumState, SpeciesStatus

_LOGGER = logging.getLogger(__name__)

_TRACE_FORMAT = "   --- %-12.12s  %12.4E %12.4E | %s"


def rxn_adjust(state: EquilibriumState, logger: logging.Logger | None = None) -> AdjustmentStatus:
    """Calculate reaction adjustments into ``state.ds``.

    Args:
        state: Iteration state. ``ds``, ``sp_status`` and ``num_rxn_minor_zeroed``
            are updated; ``mole_numbers`` and ``phase_moles`` are only touched when
            a single species phase species is eliminated.
        logger: Diagnostic sink, defaults to this module's logger.

    Returns:
        NORMAL after a full pass, NONCOMPONENT_DELETED or COMPONENT_DELETED when a
        species was zeroed and the component basis must be recomputed.
    """
    log = logger or _LOGGER
    options = state.options
    moles = state.mole_numbers
    ss_phase = state.ss_phase
    names = state.species_names

    if options.use_act_coeff_jacobian:
        calc_ln_act_coeff_jac(state)

    log.debug("   --- Species         Moles   Rxn_Adjustment | Comment")
    for irxn in range(state.n_rxn):
        kspec = state.ir[irxn]
        dg = state.dg[irxn]
        note = "Normal Calc"

        if moles[kspec] == 0.0 and not ss_phase[kspec]:
            # Multispecies phase with zero moles: does it want to come alive?
            if dg < options.activation_threshold:
                note = f"MultSpec: come alive DG = {dg:11.3E}"
                state.ds[kspec] = options.activation_seed
                state.sp_status[irxn] = SpeciesStatus.MAJOR
                state.num_rxn_minor_zeroed -= 1
            else:
                note = f"MultSpec: still dead DG = {dg:11.3E}"
                state.ds[kspec] = 0.0
            log.debug(_TRACE_FORMAT, names[kspec], moles[kspec], state.ds[kspec], note)
            continue

        if abs(dg) <= options.tolmaj2:
            note = f"Skipped: converged DG = {dg:11.3E}"
            log.debug(_TRACE_FORMAT, names[kspec], moles[kspec], state.ds[kspec], note)
            continue

        # Minor or nonexistent species that are decreasing anyway are left alone.
        if state.sp_status[irxn] <= SpeciesStatus.MINOR and dg >= 0.0:
            note = f"Skipped: IC = {int(state.sp_status[irxn]):3d} and DG >0: {dg:11.3E}"
            log.debug(_TRACE_FORMAT, names[kspec], moles[kspec], state.ds[kspec], note)
            continue

        s = hessian_ideal_diag(state, irxn)
        if options.use_act_coeff_jacobian and s > 0.0:
            s = hessian_diag_adj(state, irxn, s)

        if s != 0.0:
            state.ds[kspec] = -dg / s
        else:
            status = _eliminate_single_species(state, irxn, log)
            if status is not AdjustmentStatus.NORMAL:
                return status
            note = "Single species phases: no limiting species"
        log.debug(_TRACE_FORMAT, names[kspec], moles[kspec], state.ds[kspec], note)

    return AdjustmentStatus.NORMAL


def _eliminate_single_species(state: EquilibriumState, irxn: int, log: logging.Logger) -> AdjustmentStatus:
    """Follow a reaction among single species phases until one species runs out.

    The sign of dg says which way the reaction goes: either the defining
    species or one of the component single species phases disappears.
    """
    kspec = state.ir[irxn]
    sc_irxn = state.stoich[irxn]
    moles = state.mole_numbers
    phase_moles = state.phase_moles
    phase_id = state.phase_id

    k = None
    if state.dg[irxn] > 0.0:
        dss = moles[kspec]
        k = kspec
        for j in range(state.n_components):
            if sc_irxn[j] > 0.0:
                xx = moles[j] / sc_irxn[j]
                if xx < dss:
                    dss = xx
                    k = j
        dss = -dss
    else:
        dss = RATIO_TEST_BIG
        for j in range(state.n_components):
            if sc_irxn[j] < 0.0:
                xx = -moles[j] / sc_irxn[j]
                if xx < dss:
                    dss = xx
                    k = j

    if k is None or dss == 0.0:
        return AdjustmentStatus.NORMAL

    # dss is the extent that zeroes species k; push it through the stoichiometry.
    moles[kspec] += dss
    phase_moles[phase_id[kspec]] += dss
    for j in range(state.n_components):
        moles[j] += dss * sc_irxn[j]
        phase_moles[phase_id[j]] += dss * sc_irxn[j]
    moles[k] = 0.0
    phase_moles[phase_id[k]] = 0.0

    log.info(
        "Reaction %d: deleted single species phase species %s (extent %.4E); basis must be recomputed",
        irxn,
        state.species_names[k],
        dss,
    )
    if k != kspec:
        return AdjustmentStatus.COMPONENT_DELETED
    return AdjustmentStatus.NONCOMPONENT_DELETED
