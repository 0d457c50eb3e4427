"""Rough line search along a single formation reaction.

The step proposed by the adjustment pass comes from a local quadratic model.
This search makes sure the reaction's deltaG does not switch sign prematurely
along that step, shrinking it by secant extrapolation or bisection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from gibbstep.constants import LINE_SEARCH_ACCEPT_FACTOR, LINE_SEARCH_TIGHTEN, RESIDUAL_FLOOR
from gibbstep.models import EquilibriumState
from gibbstep.residual import delta_g_recalc

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineSearchResult:
    step: float
    iterations: int = 0
    exhausted: bool = False
    note: str = ""


def _apply_step(state: EquilibriumState, irxn: int, dx: float) -> np.ndarray:
    """Write base moles moved by extent ``dx`` of reaction ``irxn`` into ``state.trial_moles``."""
    kspec = state.ir[irxn]
    n_comp = state.n_components
    trial = state.trial_moles
    base = state.mole_numbers
    trial[:] = base
    trial[kspec] = base[kspec] + dx
    trial[:n_comp] = base[:n_comp] + state.stoich[irxn] * dx
    return trial


def line_search(
    state: EquilibriumState,
    irxn: int,
    dx_orig: float,
    logger: logging.Logger | None = None,
) -> LineSearchResult:
    """Find a step length for reaction ``irxn`` that does not overshoot deltaG = 0.

    Args:
        state: Iteration state. Only scratch buffers are written.
        irxn: Reaction index.
        dx_orig: Proposed change in the defining species' mole number.
        logger: Diagnostic sink, defaults to this module's logger.

    Returns:
        LineSearchResult with the accepted step. ``exhausted`` is set when the
        bisection ran out of iterations; the last bisected step is returned.
    """
    log = logger or _LOGGER
    max_its = state.options.max_line_search_its
    species = state.species_names[state.ir[irxn]]

    delta_g_orig = delta_g_recalc(state, irxn, state.mole_numbers, state.act_coeff, state.fe_species_old)
    forig = abs(delta_g_orig) + RESIDUAL_FLOOR

    if delta_g_orig > 0.0 and dx_orig > 0.0:
        note = "Rxn reduced to zero step size in line search: dx>0 dg > 0"
        log.debug("   --- %s: %s", species, note)
        return LineSearchResult(0.0, note=note)
    if delta_g_orig < 0.0 and dx_orig < 0.0:
        note = "Rxn reduced to zero step size in line search: dx<0 dg < 0"
        log.debug("   --- %s: %s", species, note)
        return LineSearchResult(0.0, note=note)
    if delta_g_orig == 0.0:
        return LineSearchResult(0.0, note="deltaG is already zero")
    if dx_orig == 0.0:
        return LineSearchResult(0.0)

    trial = _apply_step(state, irxn, dx_orig)
    delta_g1 = delta_g_recalc(state, irxn, trial, state.act_coeff_trial, state.fe_species_new)

    # No sign change over the full step: we are heading the right way.
    if delta_g1 * delta_g_orig > 0.0:
        return LineSearchResult(dx_orig)

    if abs(delta_g1) < LINE_SEARCH_ACCEPT_FACTOR * forig:
        if delta_g1 * delta_g_orig < 0.0:
            slope = (delta_g1 - delta_g_orig) / dx_orig
            dx = -delta_g_orig / slope
        else:
            dx = dx_orig
        return _finish(log, species, dx_orig, dx, 0)

    dx = dx_orig
    for its in range(max_its):
        dx *= 0.5
        trial = _apply_step(state, irxn, dx)
        delta_g = delta_g_recalc(state, irxn, trial, state.act_coeff_trial, state.fe_species_new)
        if delta_g * delta_g_orig > 0.0:
            return _finish(log, species, dx_orig, dx, its + 1)
        if abs(delta_g) / forig < (1.0 - LINE_SEARCH_TIGHTEN * dx / dx_orig):
            if delta_g * delta_g_orig < 0.0:
                slope = (delta_g - delta_g_orig) / dx
                dx = -delta_g_orig / slope
            return _finish(log, species, dx_orig, dx, its + 1)

    note = f"Rxn reduced step size from {dx_orig:g} to {dx:g} (MAXITS)"
    log.warning("Line search for %s hit the iteration cap: %s", species, note)
    return LineSearchResult(dx, iterations=max_its, exhausted=True, note=note)


def _finish(log: logging.Logger, species: str, dx_orig: float, dx: float, iterations: int) -> LineSearchResult:
    note = ""
    if dx != dx_orig:
        note = f"Line Search reduced step size from {dx_orig:g} to {dx:g}"
        log.debug("   --- %s: %s", species, note)
    return LineSearchResult(dx, iterations=iterations, note=note)
