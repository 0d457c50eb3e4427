"""Ideal solution and pure (single species) phases."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from gibbstep.constants import MOLE_FRACTION_FLOOR
from gibbstep.thermo.base import PhaseActivityModel


class IdealSolutionPhase(PhaseActivityModel):
    """Ideal mixing: mu_i/RT = g0_i + ln(x_i), gamma_i = 1."""

    def __init__(self, name: str, species_indices: Sequence[int], standard_potentials: Sequence[float]):
        super().__init__(name, species_indices)
        g0 = np.asarray(standard_potentials, dtype=float)
        if g0.shape != self.species_indices.shape:
            raise ValueError(
                f"Phase {name!r}: {g0.size} standard potentials for {self.species_indices.size} species."
            )
        self.standard_potentials = g0

    def ln_act_coeffs(self, mole_numbers: np.ndarray) -> np.ndarray:
        return np.zeros(self.species_indices.size)

    def chemical_potentials(self, mole_numbers: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        x = self.mole_fractions(mole_numbers)
        ln_gamma = self.ln_act_coeffs(mole_numbers)
        mu = self.standard_potentials + np.log(np.maximum(x, MOLE_FRACTION_FLOOR)) + ln_gamma
        return np.exp(ln_gamma), mu

    def ln_act_coeff_jacobian(self, mole_numbers: np.ndarray) -> np.ndarray:
        size = self.species_indices.size
        return np.zeros((size, size))


class SingleSpeciesPhase(PhaseActivityModel):
    """A pure condensed phase. Its chemical potential does not depend on composition."""

    def __init__(self, name: str, species_index: int, standard_potential: float):
        super().__init__(name, [species_index])
        self.standard_potential = float(standard_potential)

    def chemical_potentials(self, mole_numbers: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        return np.ones(1), np.array([self.standard_potential])

    def ln_act_coeff_jacobian(self, mole_numbers: np.ndarray) -> np.ndarray:
        return np.zeros((1, 1))
