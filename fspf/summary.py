"""
Principal directions of a particle cloud.

The scatter matrix of the particles is eigen-decomposed; the eigenvalues say
how much of the cloud lies along each principal axis and the number of axes
above a threshold is the force-space dimension (0 to 3).

Force directions are axial: p and -p describe the same constraint axis. By
default the cloud is therefore symmetrized with its antipodes before
mean-centering, which makes the scatter the second moment about the origin:

    S = (1/N) sum_i p_i p_i^T

so a cloud gathered near +e1 and one spread over +/-e1 both report e1 as a
single dominant axis, and an all-origin cloud reports three zero eigenvalues.
"""

import attr
import tensorflow as tf

from fspf.constants import DEFAULT_DIMENSION_THRESHOLD


@attr.s(frozen=True)
class PrincipalDirections:
    """
    Eigen-decomposition of a particle scatter matrix.

    Attributes:
        eigenvalues: Ascending eigenvalues, shape [3].
        eigenvectors: Orthonormal eigenvectors as columns, shape [3, 3];
            column i belongs to eigenvalues[i].
    """
    eigenvalues = attr.ib()
    eigenvectors = attr.ib()

    @property
    def dominant_direction(self) -> tf.Tensor:
        """Eigenvector of the largest eigenvalue, shape [3]. Sign is arbitrary."""
        return self.eigenvectors[:, -1]

    def dimension(self, threshold: float = DEFAULT_DIMENSION_THRESHOLD) -> int:
        return estimate_dimension(self.eigenvalues, threshold)

    def axes(self, threshold: float = DEFAULT_DIMENSION_THRESHOLD) -> tf.Tensor:
        """Eigenvectors whose eigenvalue exceeds threshold, strongest first, shape [3, d]."""
        d = self.dimension(threshold)
        return tf.reverse(self.eigenvectors, axis=[1])[:, :d]


def scatter_matrix(particles: tf.Tensor, symmetric: bool = True) -> tf.Tensor:
    """Mean-centered scatter of the particles, normalized by point count, shape [3, 3].

    Args:
        particles: shape [N, 3].
        symmetric: Include the antipode of every particle before centering.
    """
    points = particles
    if symmetric:
        points = tf.concat([particles, -particles], axis=0)
    centered = points - tf.reduce_mean(points, axis=0, keepdims=True)
    n = tf.cast(tf.shape(points)[0], points.dtype)
    return tf.linalg.matmul(centered, centered, transpose_a=True) / n


def principal_directions(particles: tf.Tensor,
                         symmetric: bool = True) -> PrincipalDirections:
    """Eigen-decomposition of scatter_matrix(particles)."""
    eigenvalues, eigenvectors = tf.linalg.eigh(
        scatter_matrix(particles, symmetric=symmetric)
    )
    return PrincipalDirections(eigenvalues=eigenvalues,
                               eigenvectors=eigenvectors)


def estimate_dimension(eigenvalues: tf.Tensor,
                       threshold: float = DEFAULT_DIMENSION_THRESHOLD) -> int:
    """Number of eigenvalues above threshold (0 to 3)."""
    return int(tf.reduce_sum(tf.cast(eigenvalues > threshold, tf.int32)))
