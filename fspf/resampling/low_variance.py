"""
Low-variance resampling on the combined weights.
"""

import tensorflow as tf
from fspf.base import WeightedParticles
from fspf.resampling.resampling_base import StratifiedResamplerBase
from fspf.sampling import RandomSource


class LowVarianceResampler(StratifiedResamplerBase):
    """
    Low-variance resampler using the weights of the augmented set unchanged.

    Usage:
        resampler = LowVarianceResampler(RandomSource(seed=42))
        state = resampler.apply(weighted, n_particles=100)
    """

    def __init__(self, random_source: RandomSource = None,
                 name: str = 'LowVarianceResampler'):
        super().__init__(random_source=random_source, name=name)

    def _adjust_weights(self, weighted: WeightedParticles,
                        force_space_dimension: int) -> tf.Tensor:
        return weighted.weights
