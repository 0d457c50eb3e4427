"""Regular (symmetric Margules) solution phase."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from gibbstep.thermo.ideal import IdealSolutionPhase


class RegularSolutionPhase(IdealSolutionPhase):
    """Regular solution with a symmetric interaction matrix W (units of RT).

        ln gamma_i = a_i - Q,   a = W x,   Q = x.W.x / 2

    Differentiating with dx_k/dn_j = (delta_kj - x_k) / N gives

        d ln gamma_i / d n_j = (W_ij - a_i - a_j + 2 Q) / N
    """

    def __init__(
        self,
        name: str,
        species_indices: Sequence[int],
        standard_potentials: Sequence[float],
        interaction: Sequence[Sequence[float]],
    ):
        super().__init__(name, species_indices, standard_potentials)
        w = np.asarray(interaction, dtype=float)
        size = self.species_indices.size
        if w.shape != (size, size):
            raise ValueError(f"Phase {name!r}: interaction matrix must be {size}x{size}, got {w.shape}.")
        if not np.allclose(w, w.T):
            raise ValueError(f"Phase {name!r}: interaction matrix must be symmetric.")
        self.interaction = w

    def ln_act_coeffs(self, mole_numbers: np.ndarray) -> np.ndarray:
        x = self.mole_fractions(mole_numbers)
        a = self.interaction @ x
        return a - 0.5 * x @ a

    def ln_act_coeff_jacobian(self, mole_numbers: np.ndarray) -> np.ndarray:
        size = self.species_indices.size
        total = self.total_moles(mole_numbers)
        if total <= 0.0:
            return np.zeros((size, size))
        x = self.mole_fractions(mole_numbers)
        a = self.interaction @ x
        q2 = x @ a
        return (self.interaction - a[:, None] - a[None, :] + q2) / total
