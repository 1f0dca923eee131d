"""
Force-space estimator — a sequential Monte Carlo filter over contact force directions.

During physical contact the force space is the set of directions along
which contact force is exerted, as opposed to directions of free motion.
The estimator keeps a belief over those directions as N particles, each a
unit vector or the origin ("no dominant force direction"), and refines it
once per control cycle from the commanded motion/force directions and the
measured velocity/force.

Per-cycle algorithm
───────────────────
 1: Normalize   m, f, v, F  (unit length, or zero below a noise floor)
 2: Augment     X <- X ∪ {0} ∪ {normalize((1 - a_i) m + a_i f)}_{i<k},
                k = round(p_add N),  a_i = (i + 0.5) / k
 3: Propagate   X^i <- normalize(X^i + w),  w ~ N(mean, std^2 I),  X^i != 0
 4: Weight      omega^i = w_f(X^i, F) w_v(X^i, v)
 5: Remember    omega^i <- (1 - lambda) omega^i + lambda omega_prev^i,   i < N
 6: Resample    N particles by low-variance resampling on omega / sum(omega)

On demand, the principal axes of the particle scatter give the direction and
dimension (0 to 3) of the force space.

Implementation maps:
    Step 1   -> ControlInputs.control_directions()
    Step 2   -> augmentation.augment()
    Step 3   -> transition_model.sample()
    Step 4   -> weighting_model.apply()
    Step 5   -> _blend_memory()
    Step 6   -> resampler.apply()

Components are composed via dependency injection and share one RandomSource:
    - weighting_model:  w_f * w_v            — e.g. PiecewiseLinearWeighting
    - augmentation:     new hypotheses       — e.g. ArcInjection
    - transition_model: particle jitter      — e.g. SphericalScatterTransition
    - resampler:        next persistent set  — e.g. LowVarianceResampler
"""

import logging

import attr
import tensorflow as tf

from fspf.base import State, StateSeries, ControlInputs, WeightedParticles, Module
from fspf.constants import DEFAULT_DTYPE, DEFAULT_DIMENSION_THRESHOLD
from fspf.parameters import FilterParameters
from fspf.sampling import RandomSource
from fspf.summary import PrincipalDirections, principal_directions
from fspf.augmentation.base import AugmentationBase
from fspf.augmentation.arc import ArcInjection
from fspf.resampling.base import ResamplerBase
from fspf.resampling.low_variance import LowVarianceResampler
from fspf.resampling.proximity import ProximityPenaltyResampler
from fspf.transition.base import TransitionModelBase
from fspf.transition.scatter import SphericalScatterTransition
from fspf.weighting.base import WeightingModelBase
from fspf.weighting.piecewise import PiecewiseLinearWeighting
from fspf.weighting.tanh import TanhWeighting

logger = logging.getLogger(__name__)

_WEIGHTING_MODELS = {
    'piecewise': PiecewiseLinearWeighting,
    'tanh': TanhWeighting,
}

_RESAMPLERS = {
    'low_variance': LowVarianceResampler,
    'proximity_penalty': ProximityPenaltyResampler,
}


class ForceSpaceEstimator(Module):
    """
    Recursive estimator of the contact force space.

    Usage:
        estimator = ForceSpaceEstimator(n_particles=100)

        # once per control cycle
        estimator.update(motion_control, force_control,
                         velocity_measured, force_measured)

        directions = estimator.estimate_principal_directions()
        dimension = directions.dimension(threshold=0.1)

        # replay a recorded [T, 4, 3] sequence
        final_state, series = estimator(observations, return_series=True)

    Args:
        parameters: FilterParameters. Built from keyword arguments if omitted;
            keyword arguments override fields of a given parameters object.
        weighting_model: Overrides the model named by parameters.weighting.
        augmentation: Overrides the default ArcInjection, which scores
            injection with PiecewiseLinearWeighting whatever the weighting policy.
        transition_model: Overrides the default SphericalScatterTransition.
        resampler: Overrides the policy named by parameters.resampling.
    """

    def __init__(
        self,
        parameters: FilterParameters = None,
        weighting_model: WeightingModelBase = None,
        augmentation: AugmentationBase = None,
        transition_model: TransitionModelBase = None,
        resampler: ResamplerBase = None,
        name: str = 'ForceSpaceEstimator',
        **kwargs,
    ):
        super().__init__(name=name)
        if parameters is None:
            parameters = FilterParameters(**kwargs)
        elif kwargs:
            parameters = attr.evolve(parameters, **kwargs)
        self._parameters = parameters
        self._random_source = RandomSource(seed=parameters.seed)

        if weighting_model is None:
            weighting_model = _WEIGHTING_MODELS[parameters.weighting]()
        if augmentation is None:
            augmentation = ArcInjection(
                force_thresholds=(parameters.force_low_add,
                                  parameters.force_high_add),
                velocity_thresholds=parameters.velocity_add_thresholds,
                add_force_scale=parameters.add_force_scale,
            )
        if transition_model is None:
            transition_model = SphericalScatterTransition(
                mean=parameters.mean_scatter,
                std=parameters.std_scatter,
                random_source=self._random_source,
            )
        if resampler is None:
            resampler = _RESAMPLERS[parameters.resampling](
                random_source=self._random_source
            )

        self._weighting_model = weighting_model
        self._augmentation = augmentation
        self._transition_model = transition_model
        self._resampler = resampler
        self._state = State.initial(parameters.n_particles, dtype=DEFAULT_DTYPE)

        logger.info(
            "force-space estimator: %d particles, %s weighting, %s resampling",
            parameters.n_particles, type(weighting_model).__name__,
            type(resampler).__name__,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def parameters(self) -> FilterParameters:
        return self._parameters

    @property
    def state(self) -> State:
        return self._state

    @property
    def particles(self) -> tf.Tensor:
        """Persistent particles, shape [N, 3]."""
        return self._state.particles

    @property
    def weights(self) -> tf.Tensor:
        """Weights stored with the persistent particles, shape [N]."""
        return self._state.weights

    @property
    def n_particles(self) -> int:
        return self._parameters.n_particles

    @property
    def force_space_dimension(self) -> int:
        return self._parameters.force_space_dimension

    @force_space_dimension.setter
    def force_space_dimension(self, value: int):
        self._parameters = attr.evolve(self._parameters,
                                       force_space_dimension=value)

    def reset(self):
        """Return to the all-origin state and rewind the random source."""
        self._state = State.initial(self.n_particles, dtype=DEFAULT_DTYPE)
        self._random_source.reset()

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def _blend_memory(self, combined: tf.Tensor, n_persistent: int) -> tf.Tensor:
        """omega^i <- (1 - lambda) omega^i + lambda omega_prev^i for i < n_persistent."""
        memory = self._parameters.memory_coefficient
        n_new = combined.shape[0] - n_persistent
        previous = tf.concat(
            [tf.cast(self._state.weights, combined.dtype),
             tf.zeros([n_new], dtype=combined.dtype)], axis=0
        )
        is_persistent = tf.range(combined.shape[0]) < n_persistent
        return tf.where(is_persistent,
                        (1.0 - memory) * combined + memory * previous,
                        combined)

    def motion_update_and_weighting(self, motion_control, force_control,
                                    velocity_measured,
                                    force_measured) -> WeightedParticles:
        """
        Steps 1-5: build the augmented, weighted set for one cycle.

        Does not change the persistent state, but advances the random source.

        Returns:
            WeightedParticles: persistent particles first, then the origin, then
            the injected particles; all propagated and weighted.
        """
        inputs = ControlInputs(motion_control, force_control,
                               velocity_measured, force_measured)
        # Step 1: Only the control directions are normalized; the
        # measurements keep their magnitude for the thresholds.
        motion_direction, force_direction = inputs.control_directions()

        # Step 2: Origin and arc injection
        augmented = self._augmentation.augment(
            self._state,
            motion_direction,
            force_direction,
            inputs.velocity_measured,
            inputs.force_measured,
            self.force_space_dimension,
        )

        # Step 3: Propagate direction particles
        particles = self._transition_model.sample(augmented.particles)

        # Step 4: w_f * w_v
        combined = self._weighting_model.apply(
            particles,
            inputs.force_measured,
            inputs.velocity_measured,
            self._parameters.force_thresholds,
            self._parameters.velocity_thresholds,
        )

        # Step 5: Memory of the previous cycle's weights
        weights = self._blend_memory(combined, augmented.n_persistent)

        return attr.evolve(augmented, particles=particles, weights=weights)

    def update(self, motion_control, force_control, velocity_measured,
               force_measured):
        """
        One control cycle: steps 1-6.

        Args:
            motion_control: Commanded motion direction, shape [3].
            force_control: Commanded force direction, shape [3].
            velocity_measured: Measured velocity, shape [3].
            force_measured: Measured force, shape [3].

        Replaces the persistent particle set; returns nothing.
        """
        weighted = self.motion_update_and_weighting(
            motion_control, force_control, velocity_measured, force_measured
        )
        # Step 6: Resample N particles
        new_state = self._resampler.apply(weighted, self.n_particles,
                                          self.force_space_dimension)
        self._state = attr.evolve(new_state, t=self._state.t + 1)

    def __call__(self, observations, n_steps: int = None,
                 return_series: bool = False):
        """
        Run update() over a recorded input sequence.

        Args:
            observations: Inputs per cycle, shape [T, 4, 3], ordered
                (motion_control, force_control, velocity_measured, force_measured).
            n_steps: Number of cycles. Inferred from observations if None.
                Must not exceed T.
            return_series: If True, also return the per-cycle particles and weights.

        Returns:
            If return_series=True:
                Tuple (final_state, series_dict) where series_dict has keys
                'particles' [T, N, 3] and 'weights' [T, N].
            Otherwise:
                final_state: State after the last cycle.

        Raises:
            ValueError: If n_steps exceeds the number of recorded cycles.
        """
        observations = tf.convert_to_tensor(observations, dtype=DEFAULT_DTYPE)
        if n_steps is None:
            n_steps = observations.shape[0]
        if n_steps > observations.shape[0]:
            raise ValueError(
                f"n_steps={n_steps} exceeds the {observations.shape[0]} recorded cycles"
            )

        series = StateSeries.create(n_steps) if return_series else None

        for t in range(n_steps):
            motion_control, force_control, velocity_measured, force_measured = (
                tf.unstack(observations[t], num=4)
            )
            self.update(motion_control, force_control, velocity_measured,
                        force_measured)
            if series is not None:
                series = series.write(t, self._state)

        if return_series:
            return self._state, series.stack()
        return self._state

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def estimate_principal_directions(self, symmetric: bool = True) -> PrincipalDirections:
        """
        Eigen-decomposition of the particle scatter. Read-only.

        Args:
            symmetric: Treat p and -p as the same axis (see fspf.summary).

        Returns:
            PrincipalDirections with ascending eigenvalues [3] and column
            eigenvectors [3, 3].
        """
        return principal_directions(self._state.particles, symmetric=symmetric)

    def estimate_force_space_dimension(
            self, threshold: float = DEFAULT_DIMENSION_THRESHOLD) -> int:
        """Number of principal axes whose eigenvalue exceeds threshold (0 to 3)."""
        return self.estimate_principal_directions().dimension(threshold)
