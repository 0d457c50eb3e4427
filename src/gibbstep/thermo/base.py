"""Base interface for phase activity models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np


class PhaseActivityModel(ABC):
    """Abstract base class for the thermodynamics of a single phase.

    A phase owns a set of global species indices. Mole number vectors passed to
    the methods below are always the full (global) vector; the phase picks out
    its own members.
    """

    def __init__(self, name: str, species_indices: Sequence[int]):
        indices = np.asarray(species_indices, dtype=int)
        if indices.ndim != 1 or indices.size == 0:
            raise ValueError(f"Phase {name!r} needs at least one species.")
        self.name = name
        self.species_indices = indices

    @property
    def single_species(self) -> bool:
        return self.species_indices.size == 1

    def total_moles(self, mole_numbers: np.ndarray) -> float:
        return float(np.sum(mole_numbers[self.species_indices]))

    def mole_fractions(self, mole_numbers: np.ndarray) -> np.ndarray:
        local = np.asarray(mole_numbers, dtype=float)[self.species_indices]
        total = local.sum()
        if total <= 0.0:
            return np.full(local.shape, 1.0 / local.size)
        return local / total

    @abstractmethod
    def chemical_potentials(self, mole_numbers: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Return (activity coefficients, mu/RT) for the species of this phase."""
        pass

    @abstractmethod
    def ln_act_coeff_jacobian(self, mole_numbers: np.ndarray) -> np.ndarray:
        """Return d(ln gamma_i)/d(n_j) over the species of this phase."""
        pass
