"""
Random source shared by all stochastic stages of one filter.

A single tf.random.Generator is created from an explicit seed and reused for
the lifetime of the filter. Each draw splits a fresh stateless seed off that
generator and samples through a tfp distribution, so two sources built from
the same seed produce the same sequence of draws.
"""

import tensorflow as tf
import tensorflow_probability as tfp

from fspf.base import Module
from fspf.constants import DEFAULT_DTYPE, DEFAULT_SEED

tfd = tfp.distributions


class RandomSource(Module):
    """
    Seeded random number source.

    Args:
        seed: Seed of the underlying generator. Default: DEFAULT_SEED.
        dtype: Floating dtype of the samples.

    Usage:
        rng = RandomSource(seed=42)
        noise = rng.normal([n, 3], mean=0.0, std=0.005)
        offset = rng.uniform([], 0.0, 1.0 / n)
    """

    def __init__(self, seed: int = DEFAULT_SEED, dtype=DEFAULT_DTYPE,
                 name: str = 'RandomSource'):
        super().__init__(name=name)
        self._seed = seed
        self._dtype = dtype
        self._generator = tf.random.Generator.from_seed(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self, seed: int = None):
        """Rewind the generator to seed (default: the construction seed)."""
        if seed is not None:
            self._seed = seed
        self._generator.reset_from_seed(self._seed)

    def _next_seed(self) -> tf.Tensor:
        # Stateless seed of shape [2] for tfp samplers
        return self._generator.uniform_full_int([2], dtype=tf.int32)

    def normal(self, shape, mean: float = 0.0, std: float = 1.0) -> tf.Tensor:
        """Draw iid N(mean, std^2) samples with the given shape."""
        dist = tfd.Normal(loc=tf.constant(mean, dtype=self._dtype),
                          scale=tf.constant(std, dtype=self._dtype))
        return dist.sample(sample_shape=shape, seed=self._next_seed())

    def uniform(self, shape, low: float = 0.0, high: float = 1.0) -> tf.Tensor:
        """Draw iid Uniform[low, high) samples with the given shape."""
        if low > high:
            low, high = high, low
        dist = tfd.Uniform(low=tf.constant(low, dtype=self._dtype),
                           high=tf.constant(high, dtype=self._dtype))
        return dist.sample(sample_shape=shape, seed=self._next_seed())
