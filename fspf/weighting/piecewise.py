"""
Piecewise-linear weighting: clamped linear ramps between a (low, high) pair.

Force term:
    origin:     w_f = clamp01(1 - (|F| - F_low) / (F_high - F_low))
    direction:  w_f = clamp01((p . F - F_low) / (F_high - F_low))

Velocity term:
    origin:     w_v = 0.5
    direction:  w_v = clamp01(1 - (p . v - v_low) / (v_high - v_low))

Measured force and velocity enter with their physical magnitude, so the
thresholds are in newtons and metres per second. Zero vectors are valid
inputs: every branch is finite and clamped.
"""

import tensorflow as tf
from fspf.constants import (
    DIRECTION_NORM_THRESHOLD,
    ORIGIN_FORCE_NORM_THRESHOLD,
    ORIGIN_VELOCITY_WEIGHT,
)
from fspf.weighting.base import WeightingModelBase, clamp01


class PiecewiseLinearWeighting(WeightingModelBase):
    """
    Clamped linear weighting model (the default).

    Usage:
        model = PiecewiseLinearWeighting()
        w = model.apply(particles, force, velocity, (0.0, 5.0), (0.005, 0.05))
    """

    def __init__(self, name: str = 'PiecewiseLinearWeighting'):
        super().__init__(name=name)

    def force_weight(self, particles: tf.Tensor, force_measured: tf.Tensor,
                     low: float, high: float) -> tf.Tensor:
        norms = tf.norm(particles, axis=-1)
        # p . F for each particle, shape [n]
        projected = tf.linalg.matvec(particles, force_measured)
        origin_weight = 1.0 - (tf.norm(force_measured) - low) / (high - low)
        direction_weight = (projected - low) / (high - low)
        weight = tf.where(norms < ORIGIN_FORCE_NORM_THRESHOLD,
                          origin_weight * tf.ones_like(norms),
                          direction_weight)
        return clamp01(weight)

    def velocity_weight(self, particles: tf.Tensor,
                        velocity_measured: tf.Tensor,
                        low: float, high: float) -> tf.Tensor:
        norms = tf.norm(particles, axis=-1)
        projected = tf.linalg.matvec(particles, velocity_measured)
        direction_weight = 1.0 - (projected - low) / (high - low)
        weight = tf.where(norms > DIRECTION_NORM_THRESHOLD,
                          direction_weight,
                          ORIGIN_VELOCITY_WEIGHT * tf.ones_like(norms))
        return clamp01(weight)
