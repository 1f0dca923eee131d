"""
Saturating (tanh) weighting, the smooth alternative to the piecewise ramps.

Force term:
    origin:     w_f = 1 - tanh(10 (|F| - F_low) / (F_high - F_low))
    direction:  w_f = tanh(2 (p . F - F_low) / (F_high - F_low))

Velocity term:
    origin:     w_v = 0.5
    direction:  w_v = 1 - |tanh(2 (p . v) / v_high)|

Both terms are clamped to [0, 1]. The velocity term only uses the upper
threshold; v_low is accepted for interface compatibility.
"""

import tensorflow as tf
from fspf.constants import (
    DIRECTION_NORM_THRESHOLD,
    ORIGIN_FORCE_NORM_THRESHOLD,
    ORIGIN_VELOCITY_WEIGHT,
)
from fspf.weighting.base import WeightingModelBase, clamp01


class TanhWeighting(WeightingModelBase):
    """
    tanh-shaped weighting model.

    Args:
        origin_force_gain: Slope of the origin force term. Default: 10.
        force_gain: Slope of the direction force term. Default: 2.
        velocity_gain: Slope of the velocity term. Default: 2.
    """

    def __init__(self, origin_force_gain: float = 10.0,
                 force_gain: float = 2.0, velocity_gain: float = 2.0,
                 name: str = 'TanhWeighting'):
        super().__init__(name=name)
        self.origin_force_gain = origin_force_gain
        self.force_gain = force_gain
        self.velocity_gain = velocity_gain

    def force_weight(self, particles: tf.Tensor, force_measured: tf.Tensor,
                     low: float, high: float) -> tf.Tensor:
        norms = tf.norm(particles, axis=-1)
        projected = tf.linalg.matvec(particles, force_measured)
        origin_weight = 1.0 - tf.math.tanh(
            self.origin_force_gain * (tf.norm(force_measured) - low) / (high - low)
        )
        direction_weight = tf.math.tanh(
            self.force_gain * (projected - low) / (high - low)
        )
        weight = tf.where(norms < ORIGIN_FORCE_NORM_THRESHOLD,
                          origin_weight * tf.ones_like(norms),
                          direction_weight)
        return clamp01(weight)

    def velocity_weight(self, particles: tf.Tensor,
                        velocity_measured: tf.Tensor,
                        low: float, high: float) -> tf.Tensor:
        norms = tf.norm(particles, axis=-1)
        projected = tf.linalg.matvec(particles, velocity_measured)
        direction_weight = 1.0 - tf.abs(
            tf.math.tanh(self.velocity_gain * projected / high)
        )
        weight = tf.where(norms > DIRECTION_NORM_THRESHOLD,
                          direction_weight,
                          ORIGIN_VELOCITY_WEIGHT * tf.ones_like(norms))
        return clamp01(weight)
