"""
Abstract base class for particle-set augmentation.

Each cycle the persistent particles are extended with new hypotheses before
weighting, so the filter can discover force directions that no surviving
particle is near. Augmented particles carry no weight until the weighting
step scores them.
"""

import abc
import tensorflow as tf
from fspf.base import Module, State, WeightedParticles


class AugmentationBase(Module, metaclass=abc.ABCMeta):
    """
    Abstract augmentation step.

    Subclasses must implement:
        - augment(state, ...) -> WeightedParticles with the persistent particles
          first, followed by the new ones.
    """

    @abc.abstractmethod
    def augment(self, state: State, motion_direction: tf.Tensor,
                force_direction: tf.Tensor, velocity_measured: tf.Tensor,
                force_measured: tf.Tensor,
                force_space_dimension: int = 0) -> WeightedParticles:
        """
        Extend the persistent particle set.

        Args:
            state: Persistent particle set of the previous cycle.
            motion_direction: Normalized motion-control direction (or zero), shape [3].
            force_direction: Normalized force-control direction (or zero), shape [3].
            velocity_measured: Measured velocity, shape [3].
            force_measured: Measured force, shape [3].
            force_space_dimension: Declared force-space dimension.

        Returns:
            WeightedParticles with zero weights and n_persistent = state.n_particles.
        """
        raise NotImplementedError
