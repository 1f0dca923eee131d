"""
Abstract base class for particle propagation.

A transition model moves the candidate force directions between weighting
steps: x_t ~ p(x_t | x_{t-1}). The origin hypothesis is a fixed point of
every transition.
"""

import abc
import tensorflow as tf
from fspf.base import Module


class TransitionModelBase(Module, metaclass=abc.ABCMeta):
    """
    Abstract particle propagation: p(x_t | x_{t-1}).

    Subclasses must implement:
        - sample(particles) -> propagated particles
    """

    @abc.abstractmethod
    def sample(self, particles: tf.Tensor) -> tf.Tensor:
        """
        Propagate every particle.

        Args:
            particles: shape [n, 3].

        Returns:
            Propagated particles, shape [n, 3].
        """
        raise NotImplementedError
