"""
Shared pytest fixtures for the force-space particle filter tests.
"""

import numpy as np
import pytest
import tensorflow as tf

# Enable eager execution for coverage testing
tf.config.run_functions_eagerly(True)


@pytest.fixture
def sphere_particles():
    """Factory for n unit directions drawn uniformly on the sphere."""
    def _fn(n, seed=0):
        rng = np.random.default_rng(seed)
        points = rng.standard_normal((n, 3))
        points /= np.linalg.norm(points, axis=1, keepdims=True)
        return tf.constant(points, dtype=tf.float64)
    return _fn
