"""Tests for fspf/estimator.py: ForceSpaceEstimator.

Each update() runs one control cycle:
    normalize -> augment -> propagate -> weight -> remember -> resample

Test classes:
    TestConstruction
        - Invalid configuration is rejected; keyword arguments override a
          given FilterParameters; policies are selected by name.

    TestInvariants
        - Exactly N persistent particles before and after every update.
        - Every particle has norm 0 or 1; weights are non-negative.
        - Degenerate inputs (all zero, k = 0, all weights zero) do not crash.

    TestMotionUpdateAndWeighting
        - Layout of the augmented set; persistent state untouched.
        - Memory blending: lambda = 1 keeps the previous weights exactly,
          lambda = 0 is the fresh combined weight, in between is the mix.
        - Injection count uses the piecewise ramps under either weighting policy.

    TestScenarios
        - Steady 3 N push along x with no motion: cloud gathers near +x and
          the dominant eigenvector aligns with x.
        - Zero force and velocity: cloud collapses to the origin.

    TestReproducibility
        - Equal seeds give equal particle sets; reset() replays a run.

    TestReplay
        - __call__ over a [T, 4, 3] sequence, with and without series.
        - n_steps beyond the recorded cycles is rejected.
"""

import numpy as np
import pytest
import tensorflow as tf
from fspf.estimator import ForceSpaceEstimator
from fspf.parameters import FilterParameters
from fspf.resampling import LowVarianceResampler, ProximityPenaltyResampler
from fspf.weighting import PiecewiseLinearWeighting, TanhWeighting

N = 100
X = [1.0, 0.0, 0.0]
ZERO = [0.0, 0.0, 0.0]
PUSH_X = [3.0, 0.0, 0.0]


def _make_estimator(n=N, **kwargs):
    return ForceSpaceEstimator(n_particles=n, force_low=0.0, force_high=5.0,
                               velocity_low=0.005, velocity_high=0.05, **kwargs)


def _assert_valid_particles(estimator, n=N):
    particles = estimator.particles.numpy()
    weights = estimator.weights.numpy()
    assert particles.shape == (n, 3)
    assert weights.shape == (n,)
    norms = np.linalg.norm(particles, axis=1)
    assert np.all((norms == 0.0) | np.isclose(norms, 1.0, atol=1e-9))
    assert np.all(np.isfinite(weights))
    assert np.all(weights >= 0.0)


class TestConstruction:
    @pytest.mark.parametrize("n", [0, -1])
    def test_rejects_non_positive_particle_count(self, n):
        with pytest.raises(ValueError, match="n_particles"):
            ForceSpaceEstimator(n_particles=n)

    def test_initial_state(self):
        estimator = _make_estimator(n=10)
        np.testing.assert_array_equal(estimator.particles.numpy(), 0.0)
        np.testing.assert_array_equal(estimator.weights.numpy(), 1.0)
        assert estimator.state.t == 0

    def test_keyword_overrides(self):
        params = FilterParameters(n_particles=10, memory_coefficient=0.2)
        estimator = ForceSpaceEstimator(params, memory_coefficient=0.5)
        assert estimator.parameters.memory_coefficient == 0.5
        assert estimator.n_particles == 10

    def test_policies_by_name(self):
        estimator = _make_estimator(n=10, weighting='tanh',
                                    resampling='proximity_penalty')
        assert isinstance(estimator._weighting_model, TanhWeighting)
        assert isinstance(estimator._resampler, ProximityPenaltyResampler)

    def test_default_policies(self):
        estimator = _make_estimator(n=10)
        assert isinstance(estimator._weighting_model, PiecewiseLinearWeighting)
        assert isinstance(estimator._resampler, LowVarianceResampler)

    def test_dimension_setter(self):
        estimator = _make_estimator(n=10)
        estimator.force_space_dimension = 2
        assert estimator.force_space_dimension == 2
        assert estimator.parameters.force_space_dimension == 2
        with pytest.raises(ValueError):
            estimator.force_space_dimension = 5


class TestInvariants:
    def test_size_and_norms_under_random_inputs(self):
        estimator = _make_estimator(n=40, memory_coefficient=0.3)
        rng = np.random.default_rng(0)
        _assert_valid_particles(estimator, 40)
        for t in range(15):
            motion, force_cmd, velocity, force = rng.standard_normal((4, 3))
            estimator.update(motion, force_cmd, 0.02 * velocity, 5.0 * force)
            _assert_valid_particles(estimator, 40)
            assert estimator.state.t == t + 1

    def test_all_zero_inputs(self):
        estimator = _make_estimator(n=20)
        for _ in range(3):
            estimator.update(ZERO, ZERO, ZERO, ZERO)
        _assert_valid_particles(estimator, 20)

    def test_all_weights_zero_falls_back_to_uniform(self):
        """A large force rules out the origin and nothing is injected."""
        estimator = _make_estimator(n=20)
        weighted = estimator.motion_update_and_weighting(ZERO, ZERO, ZERO,
                                                         [20.0, 0.0, 0.0])
        assert weighted.n_injected == 0
        np.testing.assert_array_equal(weighted.weights.numpy(), 0.0)
        estimator.update(ZERO, ZERO, ZERO, [20.0, 0.0, 0.0])
        _assert_valid_particles(estimator, 20)
        np.testing.assert_array_equal(estimator.particles.numpy(), 0.0)

    def test_proximity_penalty_policy_runs(self):
        estimator = _make_estimator(n=30, resampling='proximity_penalty',
                                    force_space_dimension=3)
        rng = np.random.default_rng(1)
        for _ in range(5):
            motion, force_cmd, force = rng.standard_normal((3, 3))
            estimator.update(motion, force_cmd, ZERO, 4.0 * force)
        _assert_valid_particles(estimator, 30)


class TestMotionUpdateAndWeighting:
    def test_layout_and_state_untouched(self):
        estimator = _make_estimator(n=N)
        weighted = estimator.motion_update_and_weighting(X, X, ZERO, PUSH_X)
        # p_add = (3 - 1)/9 -> k = 22
        assert weighted.n_persistent == N
        assert weighted.n_injected == 22
        assert weighted.n_augmented == N + 1 + 22
        particles = weighted.particles.numpy()
        np.testing.assert_array_equal(particles[: N + 1], 0.0)
        np.testing.assert_allclose(particles[N + 1:, 0], 1.0, atol=1e-3)
        np.testing.assert_array_equal(estimator.particles.numpy(), 0.0)
        assert estimator.state.t == 0

    def test_injection_is_piecewise_for_every_weighting_policy(self):
        piecewise = _make_estimator(n=N)
        tanh = _make_estimator(n=N, weighting='tanh')
        a = piecewise.motion_update_and_weighting(X, X, ZERO, PUSH_X)
        b = tanh.motion_update_and_weighting(X, X, ZERO, PUSH_X)
        assert a.n_injected == b.n_injected == 22
        assert isinstance(tanh._augmentation.weighting_model,
                          PiecewiseLinearWeighting)

    def test_memory_one_keeps_previous_weights(self):
        estimator = _make_estimator(n=30, memory_coefficient=1.0)
        weighted = estimator.motion_update_and_weighting(X, X, ZERO, PUSH_X)
        np.testing.assert_array_equal(weighted.weights.numpy()[:30], 1.0)
        for _ in range(3):
            estimator.update(X, X, ZERO, PUSH_X)
            previous = estimator.weights.numpy()
            weighted = estimator.motion_update_and_weighting(X, X, ZERO, PUSH_X)
            np.testing.assert_array_equal(weighted.weights.numpy()[:30], previous)

    def test_memory_zero_is_fresh_weight(self):
        estimator = _make_estimator(n=30, memory_coefficient=0.0)
        model = PiecewiseLinearWeighting()
        force = tf.constant(PUSH_X, dtype=tf.float64)
        velocity = tf.constant([0.0, 0.01, 0.0], dtype=tf.float64)
        for _ in range(3):
            weighted = estimator.motion_update_and_weighting(X, X, velocity, force)
            expected = model.apply(weighted.particles, force, velocity,
                                   (0.0, 5.0), (0.005, 0.05))
            np.testing.assert_allclose(weighted.weights.numpy(), expected.numpy())
            estimator.update(X, X, velocity, force)

    def test_partial_memory_mixes(self):
        estimator = _make_estimator(n=30, memory_coefficient=0.3)
        model = PiecewiseLinearWeighting()
        force = tf.constant(PUSH_X, dtype=tf.float64)
        velocity = tf.zeros([3], dtype=tf.float64)
        estimator.update(X, X, velocity, force)
        previous = estimator.weights.numpy()
        weighted = estimator.motion_update_and_weighting(X, X, velocity, force)
        fresh = model.apply(weighted.particles, force, velocity,
                            (0.0, 5.0), (0.005, 0.05)).numpy()
        result = weighted.weights.numpy()
        np.testing.assert_allclose(result[:30], 0.7 * fresh[:30] + 0.3 * previous)
        # injected and origin particles have no memory
        np.testing.assert_allclose(result[30:], fresh[30:])


class TestScenarios:
    def test_steady_push_along_x(self):
        estimator = _make_estimator(n=N)
        for _ in range(50):
            estimator.update(X, X, ZERO, PUSH_X)
        _assert_valid_particles(estimator)

        particles = estimator.particles.numpy()
        near_x = np.sum(particles[:, 0] > np.cos(np.deg2rad(10.0)))
        assert near_x >= 0.9 * N

        directions = estimator.estimate_principal_directions()
        dominant = directions.dominant_direction.numpy()
        angle = np.rad2deg(np.arccos(min(1.0, abs(dominant[0]))))
        assert angle < 5.0
        assert estimator.estimate_force_space_dimension() == 1

    def test_no_contact_collapses_to_origin(self):
        estimator = _make_estimator(n=N)
        for _ in range(20):
            estimator.update(X, X, ZERO, PUSH_X)
        assert np.sum(np.linalg.norm(estimator.particles.numpy(), axis=1) > 0.5) > N // 2

        for _ in range(10):
            estimator.update(X, X, ZERO, ZERO)
        np.testing.assert_array_equal(estimator.particles.numpy(), 0.0)
        directions = estimator.estimate_principal_directions()
        np.testing.assert_allclose(directions.eigenvalues.numpy(), 0.0, atol=1e-12)
        assert estimator.estimate_force_space_dimension() == 0

    def test_no_contact_from_start(self):
        estimator = _make_estimator(n=N)
        for _ in range(30):
            estimator.update(ZERO, ZERO, ZERO, ZERO)
        np.testing.assert_array_equal(estimator.particles.numpy(), 0.0)

    def test_free_motion_suppresses_direction(self):
        """Velocity along x rules x out as a force direction."""
        estimator = _make_estimator(n=N)
        for _ in range(20):
            estimator.update(X, X, ZERO, PUSH_X)
        for _ in range(10):
            estimator.update(X, X, [0.1, 0.0, 0.0], PUSH_X)
        particles = estimator.particles.numpy()
        assert np.sum(particles[:, 0] > 0.9) == 0

    def test_tanh_weighting_concentrates(self):
        estimator = _make_estimator(n=N, weighting='tanh')
        for _ in range(30):
            estimator.update(X, X, ZERO, PUSH_X)
        particles = estimator.particles.numpy()
        assert np.sum(particles[:, 0] > 0.95) >= 0.9 * N

    def test_summary_is_read_only(self):
        estimator = _make_estimator(n=N)
        for _ in range(5):
            estimator.update(X, X, ZERO, PUSH_X)
        before = estimator.particles.numpy().copy()
        estimator.estimate_principal_directions()
        estimator.estimate_principal_directions(symmetric=False)
        np.testing.assert_array_equal(estimator.particles.numpy(), before)


class TestReproducibility:
    @staticmethod
    def _run(estimator, cycles=8):
        for _ in range(cycles):
            estimator.update(X, [0.0, 1.0, 0.0], [0.0, 0.002, 0.0], [4.0, 1.0, 0.0])
        return estimator.particles.numpy()

    def test_same_seed(self):
        a = self._run(_make_estimator(n=50, seed=3))
        b = self._run(_make_estimator(n=50, seed=3))
        np.testing.assert_array_equal(a, b)

    def test_different_seed(self):
        a = self._run(_make_estimator(n=50, seed=3))
        b = self._run(_make_estimator(n=50, seed=4))
        assert not np.array_equal(a, b)

    def test_reset_replays(self):
        estimator = _make_estimator(n=50, seed=5)
        first = self._run(estimator)
        estimator.reset()
        assert estimator.state.t == 0
        np.testing.assert_array_equal(estimator.particles.numpy(), 0.0)
        np.testing.assert_array_equal(self._run(estimator), first)


class TestReplay:
    T = 6

    def _observations(self):
        step = np.array([X, X, ZERO, PUSH_X])                 # [4, 3]
        return np.tile(step[np.newaxis], (self.T, 1, 1))      # [T, 4, 3]

    def test_final_state(self):
        estimator = _make_estimator(n=30)
        state = estimator(self._observations())
        assert state.t == self.T
        assert state.particles.shape == (30, 3)
        assert state is estimator.state

    def test_series_shapes(self):
        estimator = _make_estimator(n=30)
        state, series = estimator(self._observations(), return_series=True)
        assert series['particles'].shape == (self.T, 30, 3)
        assert series['weights'].shape == (self.T, 30)
        np.testing.assert_array_equal(series['particles'][-1].numpy(),
                                      state.particles.numpy())

    def test_matches_update_loop(self):
        a = _make_estimator(n=30, seed=2)
        b = _make_estimator(n=30, seed=2)
        a(self._observations())
        for _ in range(self.T):
            b.update(X, X, ZERO, PUSH_X)
        np.testing.assert_array_equal(a.particles.numpy(), b.particles.numpy())

    def test_rejects_n_steps_beyond_observations(self):
        estimator = _make_estimator(n=30)
        with pytest.raises(ValueError, match="n_steps"):
            estimator(self._observations(), n_steps=self.T + 1)
        assert estimator.state.t == 0

    def test_fewer_steps_than_recorded(self):
        estimator = _make_estimator(n=30)
        state = estimator(self._observations(), n_steps=2)
        assert state.t == 2
