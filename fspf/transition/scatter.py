"""
Spherical scatter transition: random walk of directions on the unit sphere.

    x_t = (x_{t-1} + w_t) / |x_{t-1} + w_t|,   w_t ~ N(mean, std^2 I)

applied to every particle longer than DIRECTION_NORM_THRESHOLD. The origin
particle is left where it is.
"""

import tensorflow as tf
from fspf.base import normalize
from fspf.constants import (
    DEFAULT_MEAN_SCATTER,
    DEFAULT_STD_SCATTER,
    DIRECTION_NORM_THRESHOLD,
)
from fspf.sampling import RandomSource
from fspf.transition.base import TransitionModelBase


class SphericalScatterTransition(TransitionModelBase):
    """
    Gaussian jitter followed by renormalization.

    Attributes:
        mean: Mean of the per-axis jitter.
        std: Standard deviation of the per-axis jitter.
        random_source: Shared RandomSource. A private one is created if omitted.
    """

    def __init__(self, mean: float = DEFAULT_MEAN_SCATTER,
                 std: float = DEFAULT_STD_SCATTER,
                 random_source: RandomSource = None,
                 name: str = 'SphericalScatterTransition'):
        super().__init__(name=name)
        self.mean = mean
        self.std = std
        if random_source is None:
            random_source = RandomSource()
        self.random_source = random_source

    def sample(self, particles: tf.Tensor) -> tf.Tensor:
        noise = self.random_source.normal(tf.shape(particles),
                                          mean=self.mean, std=self.std)
        scattered = normalize(particles + tf.cast(noise, particles.dtype))
        # [n, 1] mask broadcast over the 3 axes
        is_direction = tf.norm(particles, axis=-1, keepdims=True) > DIRECTION_NORM_THRESHOLD
        return tf.where(is_direction, scattered, particles)
