"""
Low-variance resampling with a proximity penalty.

When the declared force space is 3D, particles that crowd together are
down-weighted before resampling so the cloud keeps covering the sphere:

    penalty^i = min(1, 0.5 + (1/M) sum_j |x^i - x^j|)
    w^i <- penalty^i * w^i

For lower declared dimensions the weights are used unchanged. The penalized
weights are the ones stored with the resampled particles.
"""

import tensorflow as tf
from fspf.base import WeightedParticles
from fspf.constants import PROXIMITY_PENALTY_FLOOR
from fspf.resampling.resampling_base import StratifiedResamplerBase
from fspf.sampling import RandomSource


def proximity_penalty(particles: tf.Tensor,
                      floor: float = PROXIMITY_PENALTY_FLOOR) -> tf.Tensor:
    """Per-particle penalty in [floor, 1], shape [M]."""
    # [M, 1, 3] - [1, M, 3] -> [M, M] pairwise distances
    differences = particles[:, tf.newaxis, :] - particles[tf.newaxis, :, :]
    average_distance = tf.reduce_mean(tf.norm(differences, axis=-1), axis=-1)
    return tf.minimum(floor + average_distance, 1.0)


class ProximityPenaltyResampler(StratifiedResamplerBase):
    """
    Low-variance resampler that penalizes crowded particles in a 3D force space.

    Args:
        min_dimension: Penalty applies when force_space_dimension > min_dimension.
            Default: 2.
        floor: Lowest penalty factor. Default: PROXIMITY_PENALTY_FLOOR.
    """

    def __init__(self, random_source: RandomSource = None,
                 min_dimension: int = 2,
                 floor: float = PROXIMITY_PENALTY_FLOOR,
                 name: str = 'ProximityPenaltyResampler'):
        super().__init__(random_source=random_source, name=name)
        self.min_dimension = min_dimension
        self.floor = floor

    def _adjust_weights(self, weighted: WeightedParticles,
                        force_space_dimension: int) -> tf.Tensor:
        if force_space_dimension > self.min_dimension:
            return weighted.weights * proximity_penalty(weighted.particles,
                                                        self.floor)
        return weighted.weights
