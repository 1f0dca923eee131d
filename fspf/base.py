"""
Core data structures for the force-space particle filter.

Provides:
- State: Immutable persistent particle set (directions and their weights).
- ControlInputs: The four 3D vectors consumed by one control cycle.
- WeightedParticles: Augmented, weighted set produced before resampling.
- StateSeries: TensorArray-based accumulator for states across cycles.
- Module: Base class extending tf.Module for all framework components.

State, ControlInputs and WeightedParticles are frozen; a cycle produces new
instances through attr.evolve(), and the shape validators run on each one.
"""

import attr
import numpy as np
import tensorflow as tf

from fspf.constants import (
    DEFAULT_DTYPE,
    STATE_DIM,
    MOTION_CONTROL_NORM_THRESHOLD,
    FORCE_CONTROL_NORM_THRESHOLD,
    VELOCITY_NORM_THRESHOLD,
    FORCE_NORM_THRESHOLD,
)


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def _particles_validator(instance, attribute, value):
    """Validate that tensor has shape [n_particles, 3]."""
    if value is not None and (len(value.shape) != 2
                              or value.shape[-1] != STATE_DIM):
        raise ValueError(
            f"{attribute.name} must be 2D [n_particles, {STATE_DIM}], "
            f"got shape {value.shape}"
        )


def _dim_1_validator(instance, attribute, value):
    """Validate that tensor has exactly 1 dimension: [n_particles]."""
    if value is not None and len(value.shape) != 1:
        raise ValueError(
            f"{attribute.name} must be 1D [n_particles], got shape {value.shape}"
        )


def _vector3_validator(instance, attribute, value):
    """Validate that tensor is a single 3-vector."""
    if value.shape != (STATE_DIM,):
        raise ValueError(
            f"{attribute.name} must be a {STATE_DIM}-vector, got shape {value.shape}"
        )


# ---------------------------------------------------------------------------
# Vector helpers
# ---------------------------------------------------------------------------

def as_vector3(value) -> tf.Tensor:
    """Convert a list, array or tensor into a float64 tensor.

    Goes through numpy so Python floats keep double precision.
    """
    return tf.constant(np.asarray(value, dtype=np.float64).reshape(-1),
                       dtype=DEFAULT_DTYPE)


def normalize(vectors: tf.Tensor, threshold: float = 0.0) -> tf.Tensor:
    """Scale vectors to unit length, mapping any vector with norm <= threshold to zero.

    Args:
        vectors: shape [..., 3].
        threshold: Norm at or below which the zero vector is returned.

    Returns:
        Tensor of the same shape as vectors.
    """
    norms = tf.norm(vectors, axis=-1, keepdims=True)
    unit = tf.math.divide_no_nan(vectors, norms)
    return tf.where(norms > threshold, unit, tf.zeros_like(vectors))


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@attr.s(frozen=True)
class State:
    """
    Immutable persistent particle set at a single control cycle.

    Attributes:
        particles: Unit directions or the zero vector (origin hypothesis),
            shape [n_particles, 3].
        weights: Non-negative, unnormalized weight each particle carried when it
            was selected. Blended into the next cycle's weight by the memory
            coefficient. Shape [n_particles].
        ancestor_indices: Index of each particle in the augmented set it was
            resampled from, shape [n_particles].
        t: Number of update cycles applied so far.
    """
    particles = attr.ib(validator=_particles_validator)
    weights = attr.ib(default=None, validator=attr.validators.optional(_dim_1_validator))
    ancestor_indices = attr.ib(default=None)
    t = attr.ib(default=0)

    def __attrs_post_init__(self):
        """Initialize derived fields if not provided."""
        if self.weights is None:
            object.__setattr__(
                self, 'weights',
                tf.ones([self.n_particles], dtype=self.particles.dtype)
            )

    @classmethod
    def initial(cls, n_particles: int, dtype=DEFAULT_DTYPE) -> 'State':
        """All particles at the origin ("no known force direction") with weight 1."""
        return cls(particles=tf.zeros([n_particles, STATE_DIM], dtype=dtype))

    @property
    def n_particles(self) -> int:
        return self.particles.shape[0]

    @property
    def state_dim(self) -> int:
        return self.particles.shape[1]


# ---------------------------------------------------------------------------
# ControlInputs
# ---------------------------------------------------------------------------

@attr.s(frozen=True)
class ControlInputs:
    """
    The four vectors fed to the filter once per control cycle, in robot/world frame.

    Attributes:
        motion_control: Commanded motion direction.
        force_control: Commanded force direction.
        velocity_measured: Measured velocity.
        force_measured: Measured contact force.
    """
    motion_control = attr.ib(converter=as_vector3, validator=_vector3_validator)
    force_control = attr.ib(converter=as_vector3, validator=_vector3_validator)
    velocity_measured = attr.ib(converter=as_vector3, validator=_vector3_validator)
    force_measured = attr.ib(converter=as_vector3, validator=_vector3_validator)

    def control_directions(self):
        """Unit motion- and force-control directions, zero below their noise floor.

        Returns:
            Tuple (motion_direction, force_direction), each shape [3].
        """
        return (normalize(self.motion_control, MOTION_CONTROL_NORM_THRESHOLD),
                normalize(self.force_control, FORCE_CONTROL_NORM_THRESHOLD))

    def normalized(self) -> 'ControlInputs':
        """Unit-norm version of every vector; vectors below their noise floor become zero.

        The filter itself only needs control_directions(); the measured
        vectors keep their magnitude there.
        """
        motion_direction, force_direction = self.control_directions()
        return attr.evolve(
            self,
            motion_control=motion_direction,
            force_control=force_direction,
            velocity_measured=normalize(self.velocity_measured,
                                        VELOCITY_NORM_THRESHOLD),
            force_measured=normalize(self.force_measured,
                                     FORCE_NORM_THRESHOLD),
        )


# ---------------------------------------------------------------------------
# WeightedParticles
# ---------------------------------------------------------------------------

@attr.s(frozen=True)
class WeightedParticles:
    """
    Augmented particle set of one cycle, before resampling.

    Layout along axis 0: the n_persistent particles of the previous State,
    then the origin particle, then n_injected particles.

    Attributes:
        particles: shape [n_augmented, 3].
        weights: Non-negative weights, shape [n_augmented]. Not normalized.
        n_persistent: Number of leading particles carried over from the State.
        n_injected: Number of particles injected on the control arc.
    """
    particles = attr.ib(validator=_particles_validator)
    weights = attr.ib(validator=_dim_1_validator)
    n_persistent = attr.ib(default=0)
    n_injected = attr.ib(default=0)

    @property
    def n_augmented(self) -> int:
        return self.particles.shape[0]


# ---------------------------------------------------------------------------
# StateSeries
# ---------------------------------------------------------------------------

@attr.s(frozen=True)
class StateSeries:
    """
    Immutable accumulator for State objects across control cycles.

    Uses tf.TensorArray internally. write() returns a NEW StateSeries rather
    than mutating self, mirroring tf.TensorArray.write().

    Attributes:
        _particles_ta: TensorArray for particles across cycles.
        _weights_ta: TensorArray for weights across cycles.
    """
    _particles_ta = attr.ib()
    _weights_ta = attr.ib()

    @classmethod
    def create(cls, max_time_steps: int, dtype=DEFAULT_DTYPE) -> 'StateSeries':
        """Create an empty StateSeries with pre-allocated TensorArrays.

        Args:
            max_time_steps: Number of cycles (T).
            dtype: TensorFlow dtype for arrays.

        Returns:
            New empty StateSeries.
        """
        return cls(
            particles_ta=tf.TensorArray(dtype=dtype, size=max_time_steps,
                                        dynamic_size=False),
            weights_ta=tf.TensorArray(dtype=dtype, size=max_time_steps,
                                      dynamic_size=False),
        )

    def write(self, t: int, state: State) -> 'StateSeries':
        """Return a new StateSeries with state recorded at cycle t."""
        return attr.evolve(
            self,
            particles_ta=self._particles_ta.write(t, state.particles),
            weights_ta=self._weights_ta.write(t, state.weights),
        )

    def stack(self):
        """Stack all cycles into tensors.

        Returns:
            Dict with keys 'particles' [T, N, 3] and 'weights' [T, N].
        """
        return {
            'particles': self._particles_ta.stack(),
            'weights': self._weights_ta.stack(),
        }


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------

class Module(tf.Module):
    """
    Common base of the filter stages and the estimator (a named tf.Module).
    """

    def __init__(self, name: str = None):
        super().__init__(name=name)
