"""
Abstract base class for resamplers.

ResamplerBase defines the interface: apply(weighted, n_particles, ...) -> State.
Subclasses implement specific resampling strategies (e.g., LowVarianceResampler).
"""

import abc
from fspf.base import State, WeightedParticles, Module


class ResamplerBase(Module, metaclass=abc.ABCMeta):
    """
    Abstract base class for all resamplers.

    Subclasses must implement apply(), which draws the next persistent
    particle set of exactly n_particles members from an augmented,
    weighted set.
    """

    @abc.abstractmethod
    def apply(self, weighted: WeightedParticles, n_particles: int,
              force_space_dimension: int = 0) -> State:
        """
        Resample the augmented set.

        Args:
            weighted: Augmented particles and their non-negative weights.
            n_particles: Size N of the new persistent set.
            force_space_dimension: Declared force-space dimension.

        Returns:
            New State with N particles, the (unnormalized) weight each one
            was selected with, and its ancestor index in the augmented set.
        """
        raise NotImplementedError
