"""
Stratified (low-variance) resampling base class (Template Method pattern).

Extracts the shared systematic-resampling pipeline. Subclasses only need to
implement one hook:

    _adjust_weights(weighted, force_space_dimension) -> tf.Tensor
        Which non-negative weights to resample with.

The template apply() method handles: normalization with a uniform fallback
when every weight is zero, CDF cumsum, a single random offset with evenly
spaced strata, searchsorted and gather.

Low-variance resampling
-----------------------
Given M weighted particles with normalized weights w^1..w^M and cumulative
weights C_k = sum_{j<=k} w^j, draw one offset r ~ Uniform[0, 1/N) and select
for j = 0..N-1:

    a^j = min{ k : C_k >= r + j/N }

Every particle with weight w^k is selected either floor(N w^k) or
ceil(N w^k) times, which keeps smoothly varying weight distributions from
collapsing onto a few particles the way independent draws can.
"""

import abc
import logging

import attr
import tensorflow as tf
from fspf.base import State, WeightedParticles
from fspf.resampling.base import ResamplerBase
from fspf.sampling import RandomSource

logger = logging.getLogger(__name__)


class StratifiedResamplerBase(ResamplerBase, abc.ABC):
    """
    Abstract base class for low-variance resamplers.

    Args:
        random_source: Shared RandomSource. A private one is created if omitted.
        name: Module name.
    """

    def __init__(self, random_source: RandomSource = None,
                 name: str = 'StratifiedResampler'):
        super().__init__(name=name)
        if random_source is None:
            random_source = RandomSource()
        self.random_source = random_source

    @abc.abstractmethod
    def _adjust_weights(self, weighted: WeightedParticles,
                        force_space_dimension: int) -> tf.Tensor:
        """Return the non-negative weights to resample with, shape [M].

        Args:
            weighted: Augmented weighted particles.
            force_space_dimension: Declared force-space dimension.
        """
        raise NotImplementedError

    def selection_probabilities(self, weights: tf.Tensor) -> tf.Tensor:
        """Normalize weights to sum to 1; uniform when they sum to zero."""
        total = tf.reduce_sum(weights)
        if total <= 0.0:
            logger.debug("all %d augmented weights are zero, resampling uniformly",
                         weights.shape[0])
            n_f = tf.cast(tf.shape(weights)[0], weights.dtype)
            return tf.ones_like(weights) / n_f
        return weights / total

    def apply(self, weighted: WeightedParticles, n_particles: int,
              force_space_dimension: int = 0) -> State:
        """
        Resample n_particles particles (Template Method).

        Steps:
            1. Get resampling weights from subclass hook.
            2. Normalize (uniform fallback) and build the CDF.
            3. Draw one offset r in [0, 1/N) and form the strata r + j/N.
            4. Invert the CDF (searchsorted).
            5. Gather particles and weights at those indices.
        """
        # Step 1: Weights (subclass hook)
        weights = self._adjust_weights(weighted, force_space_dimension)

        # Step 2: CDF C_k = sum_{j<=k} w^j, so C_M = 1
        probabilities = self.selection_probabilities(weights)
        cdf = tf.cumsum(probabilities)                        # [M]

        # Step 3: Single offset, evenly spaced strata
        n_inv = 1.0 / n_particles
        r = self.random_source.uniform([], 0.0, n_inv)
        positions = tf.cast(r, cdf.dtype) + n_inv * tf.range(
            n_particles, dtype=cdf.dtype
        )                                                     # [N]

        # Step 4: a^j = min{ k : C_k >= r + j/N }
        indices = tf.searchsorted(cdf[tf.newaxis, :], positions[tf.newaxis, :],
                                  side='left')[0]
        # C_M can fall just short of 1 in floating point; positions past it
        # belong to the last particle with positive probability
        last_positive = tf.reduce_max(tf.where(probabilities > 0.0)[:, 0])
        indices = tf.minimum(indices, tf.cast(last_positive, indices.dtype))

        # Step 5: Gather
        return State(
            particles=tf.gather(weighted.particles, indices),
            weights=tf.gather(weights, indices),
            ancestor_indices=indices,
        )
