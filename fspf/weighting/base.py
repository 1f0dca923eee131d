"""
Abstract base class for weighting models.

A weighting model scores how well each candidate force direction explains
the measured contact force and velocity. The score is the product of two
terms, each clamped to [0, 1]:
    - force_weight():    high when the measured force pushes along the particle.
    - velocity_weight(): high when there is little motion along the particle.

The origin particle (zero vector) stands for "no dominant force direction"
and is scored by its own branch in both terms.
"""

import abc
import tensorflow as tf
from fspf.base import Module


def clamp01(values: tf.Tensor) -> tf.Tensor:
    return tf.clip_by_value(values, 0.0, 1.0)


class WeightingModelBase(Module, metaclass=abc.ABCMeta):
    """
    Abstract weighting model: w(p | F, v) = w_f(p, F) * w_v(p, v).

    Subclasses must implement:
        - force_weight(particles, force_measured, low, high) -> [n]
        - velocity_weight(particles, velocity_measured, low, high) -> [n]
    """

    @abc.abstractmethod
    def force_weight(self, particles: tf.Tensor, force_measured: tf.Tensor,
                     low: float, high: float) -> tf.Tensor:
        """
        Force term of the weight.

        Args:
            particles: Candidate directions or origin, shape [n, 3].
            force_measured: Measured force, shape [3].
            low, high: Force threshold pair.

        Returns:
            Weights in [0, 1], shape [n].
        """
        raise NotImplementedError

    @abc.abstractmethod
    def velocity_weight(self, particles: tf.Tensor,
                        velocity_measured: tf.Tensor,
                        low: float, high: float) -> tf.Tensor:
        """
        Velocity term of the weight.

        Args:
            particles: Candidate directions or origin, shape [n, 3].
            velocity_measured: Measured velocity, shape [3].
            low, high: Velocity threshold pair.

        Returns:
            Weights in [0, 1], shape [n].
        """
        raise NotImplementedError

    def apply(self, particles: tf.Tensor, force_measured: tf.Tensor,
              velocity_measured: tf.Tensor, force_thresholds,
              velocity_thresholds) -> tf.Tensor:
        """Combined weight w_f * w_v, shape [n]."""
        w_f = self.force_weight(particles, force_measured, *force_thresholds)
        w_v = self.velocity_weight(particles, velocity_measured,
                                   *velocity_thresholds)
        return w_f * w_v
