from .base import PhaseActivityModel
from .ideal import IdealSolutionPhase, SingleSpeciesPhase
from .regular import RegularSolutionPhase

__all__ = ["PhaseActivityModel", "IdealSolutionPhase", "SingleSpeciesPhase", "RegularSolutionPhase"]
