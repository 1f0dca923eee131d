"""
Filter configuration.

FilterParameters is frozen: it is fixed at construction. The declared
force-space dimension is the only value a caller changes between cycles,
and it does so through attr.evolve, which re-runs every validator.

Threshold pairs are (low, high) ramps for the clamped weighting functions;
a pair with high <= low has no ramp and is rejected here rather than at
run time.
"""

import attr

from fspf.constants import (
    DEFAULT_SEED,
    DEFAULT_MEAN_SCATTER,
    DEFAULT_STD_SCATTER,
    DEFAULT_MEMORY_COEFFICIENT,
    DEFAULT_FORCE_LOW,
    DEFAULT_FORCE_HIGH,
    DEFAULT_VELOCITY_LOW,
    DEFAULT_VELOCITY_HIGH,
    DEFAULT_FORCE_LOW_ADD,
    DEFAULT_FORCE_HIGH_ADD,
    DEFAULT_VELOCITY_LOW_ADD,
    DEFAULT_VELOCITY_HIGH_ADD,
    DEFAULT_ADD_FORCE_SCALE,
)

WEIGHTING_MODELS = ('piecewise', 'tanh')
RESAMPLING_POLICIES = ('low_variance', 'proximity_penalty')
FORCE_SPACE_DIMENSIONS = (0, 1, 2, 3)


def _positive_int(instance, attribute, value):
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{attribute.name} must be a positive integer, got {value!r}")


def _non_negative(instance, attribute, value):
    if value < 0.0:
        raise ValueError(f"{attribute.name} must be >= 0, got {value}")


def _positive(instance, attribute, value):
    if value <= 0.0:
        raise ValueError(f"{attribute.name} must be > 0, got {value}")


def _unit_interval(instance, attribute, value):
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{attribute.name} must be in [0, 1], got {value}")


def _one_of(options):
    def _validator(instance, attribute, value):
        if value not in options:
            raise ValueError(
                f"{attribute.name} must be one of {options}, got {value!r}"
            )
    return _validator


def _check_ramp(name: str, low: float, high: float):
    if high <= low:
        raise ValueError(f"{name} thresholds need low < high, got ({low}, {high})")


@attr.s(frozen=True)
class FilterParameters:
    """
    Scalar configuration of a ForceSpaceEstimator.

    Attributes:
        n_particles: Size N of the persistent particle set.
        mean_scatter, std_scatter: Gaussian jitter applied per axis to every
            direction particle during propagation.
        memory_coefficient: lambda in [0, 1]; share of the previous cycle's
            weight kept by persistent particles.
        force_low, force_high: Force weight ramp (N).
        velocity_low, velocity_high: Velocity weight ramp (m/s).
        force_low_add, force_high_add: Force ramp for particle injection.
        velocity_low_add, velocity_high_add: Velocity ramp for particle injection.
        add_force_scale: Factor on the injection force ramp once the declared
            force-space dimension is 2 or more.
        force_space_dimension: Declared dimension of the contact constraint.
        weighting: 'piecewise' or 'tanh'.
        resampling: 'low_variance' or 'proximity_penalty'.
        seed: Seed of the filter's random source.
    """
    n_particles = attr.ib(validator=_positive_int)
    mean_scatter = attr.ib(default=DEFAULT_MEAN_SCATTER, converter=float)
    std_scatter = attr.ib(default=DEFAULT_STD_SCATTER, converter=float,
                          validator=_non_negative)
    memory_coefficient = attr.ib(default=DEFAULT_MEMORY_COEFFICIENT,
                                 converter=float, validator=_unit_interval)
    force_low = attr.ib(default=DEFAULT_FORCE_LOW, converter=float)
    force_high = attr.ib(default=DEFAULT_FORCE_HIGH, converter=float)
    velocity_low = attr.ib(default=DEFAULT_VELOCITY_LOW, converter=float)
    velocity_high = attr.ib(default=DEFAULT_VELOCITY_HIGH, converter=float)
    force_low_add = attr.ib(default=DEFAULT_FORCE_LOW_ADD, converter=float)
    force_high_add = attr.ib(default=DEFAULT_FORCE_HIGH_ADD, converter=float)
    velocity_low_add = attr.ib(default=DEFAULT_VELOCITY_LOW_ADD, converter=float)
    velocity_high_add = attr.ib(default=DEFAULT_VELOCITY_HIGH_ADD, converter=float)
    add_force_scale = attr.ib(default=DEFAULT_ADD_FORCE_SCALE, converter=float,
                              validator=_positive)
    force_space_dimension = attr.ib(default=0,
                                    validator=_one_of(FORCE_SPACE_DIMENSIONS))
    weighting = attr.ib(default='piecewise', validator=_one_of(WEIGHTING_MODELS))
    resampling = attr.ib(default='low_variance',
                         validator=_one_of(RESAMPLING_POLICIES))
    seed = attr.ib(default=DEFAULT_SEED,
                   validator=attr.validators.instance_of(int))

    def __attrs_post_init__(self):
        _check_ramp('force', self.force_low, self.force_high)
        _check_ramp('velocity', self.velocity_low, self.velocity_high)
        _check_ramp('force_add', self.force_low_add, self.force_high_add)
        _check_ramp('velocity_add', self.velocity_low_add, self.velocity_high_add)

    @property
    def force_thresholds(self):
        return self.force_low, self.force_high

    @property
    def velocity_thresholds(self):
        return self.velocity_low, self.velocity_high

    @property
    def velocity_add_thresholds(self):
        return self.velocity_low_add, self.velocity_high_add
