"""
Arc injection: informative new particles between the control directions.

Every cycle appends
    - one particle at the origin (contact-loss hypothesis), and
    - k = round(p_add * N) particles on the arc from the motion-control
      direction m to the force-control direction f:

          x_i = normalize((1 - alpha_i) m + alpha_i f),   alpha_i = (i + 0.5) / k

The injection probability p_add scores the motion-control direction itself
as a force direction: it is high when the measured force pushes back along m
while there is no velocity along m, i.e. commanded motion is blocked by
contact. The force thresholds are scaled up once the declared force space is
2D or more, so injection becomes rarer when fewer directions are left to find.
"""

import logging
import math

import tensorflow as tf
from fspf.base import State, WeightedParticles, normalize
from fspf.constants import (
    DEFAULT_FORCE_LOW_ADD,
    DEFAULT_FORCE_HIGH_ADD,
    DEFAULT_VELOCITY_LOW_ADD,
    DEFAULT_VELOCITY_HIGH_ADD,
    DEFAULT_ADD_FORCE_SCALE,
    STATE_DIM,
)
from fspf.augmentation.base import AugmentationBase
from fspf.weighting.base import WeightingModelBase
from fspf.weighting.piecewise import PiecewiseLinearWeighting

logger = logging.getLogger(__name__)


class ArcInjection(AugmentationBase):
    """
    Origin plus data-driven arc injection.

    Attributes:
        force_thresholds: (F_low_add, F_high_add) for the injection force term.
        velocity_thresholds: (v_low_add, v_high_add) for the injection velocity term.
        add_force_scale: Factor on force_thresholds once the dimension is >= 2.
        weighting_model: Model scoring the motion-control direction.
            Default: PiecewiseLinearWeighting.
    """

    def __init__(self,
                 force_thresholds=(DEFAULT_FORCE_LOW_ADD, DEFAULT_FORCE_HIGH_ADD),
                 velocity_thresholds=(DEFAULT_VELOCITY_LOW_ADD,
                                      DEFAULT_VELOCITY_HIGH_ADD),
                 add_force_scale: float = DEFAULT_ADD_FORCE_SCALE,
                 weighting_model: WeightingModelBase = None,
                 name: str = 'ArcInjection'):
        super().__init__(name=name)
        self.force_thresholds = tuple(force_thresholds)
        self.velocity_thresholds = tuple(velocity_thresholds)
        self.add_force_scale = add_force_scale
        if weighting_model is None:
            weighting_model = PiecewiseLinearWeighting()
        self.weighting_model = weighting_model

    def injection_probability(self, motion_direction: tf.Tensor,
                              velocity_measured: tf.Tensor,
                              force_measured: tf.Tensor,
                              force_space_dimension: int = 0) -> tf.Tensor:
        """p_add in [0, 1], scalar tensor."""
        force_thresholds = self.force_thresholds
        if force_space_dimension >= 2:
            force_thresholds = tuple(self.add_force_scale * threshold
                                     for threshold in force_thresholds)
        p_add = self.weighting_model.apply(
            motion_direction[tf.newaxis, :], force_measured, velocity_measured,
            force_thresholds, self.velocity_thresholds,
        )[0]
        return tf.clip_by_value(p_add, 0.0, 1.0)

    @staticmethod
    def arc_particles(motion_direction: tf.Tensor, force_direction: tf.Tensor,
                      n_added: int) -> tf.Tensor:
        """n_added normalized points evenly spaced on the m -> f arc, shape [n_added, 3]."""
        dtype = motion_direction.dtype
        if n_added == 0:
            return tf.zeros([0, STATE_DIM], dtype=dtype)
        alpha = (tf.range(n_added, dtype=dtype) + 0.5) / n_added
        alpha = alpha[:, tf.newaxis]                         # [k, 1]
        arc = (1.0 - alpha) * motion_direction + alpha * force_direction
        return normalize(arc)

    def augment(self, state: State, motion_direction: tf.Tensor,
                force_direction: tf.Tensor, velocity_measured: tf.Tensor,
                force_measured: tf.Tensor,
                force_space_dimension: int = 0) -> WeightedParticles:
        n_particles = state.n_particles
        p_add = self.injection_probability(
            motion_direction, velocity_measured, force_measured,
            force_space_dimension,
        )
        # round half up; p_add <= 1 bounds the injection at N
        n_added = int(math.floor(float(p_add) * n_particles + 0.5))
        logger.debug("injecting %d particles (p_add=%.3f)", n_added, float(p_add))

        origin = tf.zeros([1, STATE_DIM], dtype=state.particles.dtype)
        injected = self.arc_particles(
            tf.cast(motion_direction, state.particles.dtype),
            tf.cast(force_direction, state.particles.dtype),
            n_added,
        )
        particles = tf.concat([state.particles, origin, injected], axis=0)
        return WeightedParticles(
            particles=particles,
            weights=tf.zeros([particles.shape[0]], dtype=particles.dtype),
            n_persistent=n_particles,
            n_injected=n_added,
        )
