"""Data structures for the equilibrium iteration state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Sequence

import numpy as np

from gibbstep.constants import (
    ACTIVATION_DG_THRESHOLD,
    ACTIVATION_SEED_MOLES,
    LINE_SEARCH_MAX_ITS,
    TOLMAJ2,
)
from gibbstep.thermo import PhaseActivityModel


class SpeciesStatus(IntEnum):
    """Status of the species defining a formation reaction.

    Anything at or below MINOR is treated as minor or nonexistent.
    """

    COMPONENT = 2
    MAJOR = 1
    MINOR = 0
    ZEROED_PHASE = -1
    ZEROED_MS = -2
    ZEROED_SS = -3
    DELETED = -4


class AdjustmentStatus(IntEnum):
    """Outcome of a reaction adjustment pass.

    Any non-zero value means the component basis must be recomputed.
    """

    NORMAL = 0
    NONCOMPONENT_DELETED = 1
    COMPONENT_DELETED = 2


@dataclass(frozen=True)
class AdjustmentOptions:
    tolmaj2: float = TOLMAJ2
    use_act_coeff_jacobian: bool = False
    activation_threshold: float = ACTIVATION_DG_THRESHOLD
    activation_seed: float = ACTIVATION_SEED_MOLES
    max_line_search_its: int = LINE_SEARCH_MAX_ITS


@dataclass
class EquilibriumState:
    """Mutable arrays shared by one equilibrium iteration.

    Attributes:
        mole_numbers: Species mole numbers; components occupy the first
            ``n_components`` slots.
        stoich: Formation reaction coefficients, shape (n_rxn, n_components).
        dg: Driving force (deltaG / RT) of each reaction.
        ir: Reaction -> defining species index table.
        phase_id: Species -> phase index table.
        phases: Phase activity models, indexed by phase id.
        phase_moles: Total moles in each phase.
        dn_phase: Change in each phase's total moles per unit extent of each reaction.
        phase_participation: Phases touched by each reaction.
        sp_status: Status of each reaction's defining species.
        ds: Per-species adjustment vector, written by the adjustment pass.
        num_rxn_minor_zeroed: Count of reactions whose species is minor or zeroed.
    """

    mole_numbers: np.ndarray
    stoich: np.ndarray
    dg: np.ndarray
    ir: np.ndarray
    phase_id: np.ndarray
    phases: list[PhaseActivityModel]
    phase_moles: np.ndarray
    dn_phase: np.ndarray
    phase_participation: np.ndarray
    sp_status: np.ndarray
    ds: np.ndarray
    num_rxn_minor_zeroed: int = 0
    species_names: list[str] = field(default_factory=list)
    options: AdjustmentOptions = field(default_factory=AdjustmentOptions)
    # Scratch space
    ln_act_coeff_jac: np.ndarray = field(init=False)
    act_coeff: np.ndarray = field(init=False)
    act_coeff_trial: np.ndarray = field(init=False)
    fe_species_old: np.ndarray = field(init=False)
    fe_species_new: np.ndarray = field(init=False)
    trial_moles: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        n = self.n_species
        self.ln_act_coeff_jac = np.zeros((n, n))
        self.act_coeff = np.ones(n)
        self.act_coeff_trial = np.ones(n)
        self.fe_species_old = np.zeros(n)
        self.fe_species_new = np.zeros(n)
        self.trial_moles = np.zeros(n)
        if not self.species_names:
            self.species_names = [f"S{k}" for k in range(n)]

    @property
    def n_species(self) -> int:
        return int(self.mole_numbers.size)

    @property
    def n_components(self) -> int:
        return int(self.stoich.shape[1])

    @property
    def n_rxn(self) -> int:
        return int(self.stoich.shape[0])

    @property
    def n_phases(self) -> int:
        return len(self.phases)

    @property
    def ss_phase(self) -> np.ndarray:
        """Per-species flag: True when the species is alone in its phase."""
        flags = np.array([phase.single_species for phase in self.phases], dtype=bool)
        return flags[self.phase_id]

    def update_phase_moles(self) -> None:
        for iph, phase in enumerate(self.phases):
            self.phase_moles[iph] = phase.total_moles(self.mole_numbers)


def build_state(
    phases: Sequence[PhaseActivityModel],
    stoichiometry: Sequence[Sequence[float]],
    mole_numbers: Sequence[float],
    dg: Sequence[float] | None = None,
    ir: Sequence[int] | None = None,
    sp_status: Sequence[int] | None = None,
    species_names: Sequence[str] | None = None,
    options: AdjustmentOptions | None = None,
) -> EquilibriumState:
    """Assemble an EquilibriumState and derive its per-reaction phase tables.

    ``dn_phase`` gets +1 in the defining species' phase and ``sc[irxn, j]`` in
    each component's phase. A phase participates in a reaction when it holds
    the defining species or a component with a non-zero coefficient.
    """
    moles = np.array(mole_numbers, dtype=float)
    if moles.ndim != 1:
        raise ValueError("Mole numbers must be a flat vector.")
    if np.any(moles < 0.0):
        raise ValueError("Mole numbers must be non-negative.")
    n_species = moles.size

    sc = np.array(stoichiometry, dtype=float)
    if sc.ndim != 2:
        raise ValueError("Stoichiometric matrix must be two-dimensional.")
    n_rxn, n_components = sc.shape
    if n_components + n_rxn > n_species:
        raise ValueError(
            f"{n_components} components and {n_rxn} reactions need at least "
            f"{n_components + n_rxn} species, got {n_species}."
        )

    phase_id = np.full(n_species, -1, dtype=int)
    for iph, phase in enumerate(phases):
        for k in phase.species_indices:
            if k < 0 or k >= n_species:
                raise ValueError(f"Phase {phase.name!r} refers to unknown species {k}.")
            if phase_id[k] != -1:
                raise ValueError(f"Species {k} belongs to more than one phase.")
            phase_id[k] = iph
    if np.any(phase_id < 0):
        missing = np.flatnonzero(phase_id < 0).tolist()
        raise ValueError(f"Species {missing} are not assigned to a phase.")

    if ir is None:
        ir_arr = np.arange(n_components, n_components + n_rxn, dtype=int)
    else:
        ir_arr = np.array(ir, dtype=int)
        if ir_arr.shape != (n_rxn,):
            raise ValueError(f"Reaction map has {ir_arr.size} entries for {n_rxn} reactions.")
        if np.any(ir_arr < n_components) or np.any(ir_arr >= n_species):
            raise ValueError("Reaction map must point at non-component species.")
        if np.unique(ir_arr).size != n_rxn:
            raise ValueError("Reaction map must not repeat a species.")

    n_phases = len(phases)
    dn_phase = np.zeros((n_rxn, n_phases))
    participation = np.zeros((n_rxn, n_phases), dtype=bool)
    for irxn in range(n_rxn):
        kspec = ir_arr[irxn]
        dn_phase[irxn, phase_id[kspec]] += 1.0
        participation[irxn, phase_id[kspec]] = True
        for j in range(n_components):
            if sc[irxn, j] != 0.0:
                dn_phase[irxn, phase_id[j]] += sc[irxn, j]
                participation[irxn, phase_id[j]] = True

    if sp_status is None:
        status = np.array(
            [SpeciesStatus.MAJOR if moles[k] > 0.0 else SpeciesStatus.ZEROED_MS for k in ir_arr],
            dtype=int,
        )
    else:
        status = np.array(sp_status, dtype=int)
        if status.shape != (n_rxn,):
            raise ValueError(f"Status vector has {status.size} entries for {n_rxn} reactions.")

    dg_arr = np.zeros(n_rxn) if dg is None else np.array(dg, dtype=float)
    if dg_arr.shape != (n_rxn,):
        raise ValueError(f"Driving force vector has {dg_arr.size} entries for {n_rxn} reactions.")

    names = list(species_names) if species_names is not None else []
    if names and len(names) != n_species:
        raise ValueError(f"{len(names)} species names for {n_species} species.")

    state = EquilibriumState(
        mole_numbers=moles,
        stoich=sc,
        dg=dg_arr,
        ir=ir_arr,
        phase_id=phase_id,
        phases=list(phases),
        phase_moles=np.zeros(n_phases),
        dn_phase=dn_phase,
        phase_participation=participation,
        sp_status=status,
        ds=np.zeros(n_species),
        num_rxn_minor_zeroed=int(np.sum(status <= SpeciesStatus.MINOR)),
        species_names=names,
        options=options or AdjustmentOptions(),
    )
    state.update_phase_moles()
    return state
