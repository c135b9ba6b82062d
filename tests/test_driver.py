"""Tests for the EM convergence driver."""

from unittest.mock import patch

import numpy as np
import pytest

from unimix.core.config import EMConfig
from unimix.exceptions import (
    ConfigurationError,
    DegenerateComponentError,
    InvalidParameterError,
    MonotonicityViolationError,
)
from unimix.mixture import EMTrace, FitState, MixtureParams, advance, run_em
from unimix.mixture.driver import LL_ROUNDING_RTOL, allowed_decrease
from unimix.mixture.em import e_step, m_step

pytestmark = pytest.mark.tier0


def _two_component_start(x: np.ndarray) -> MixtureParams:
    return MixtureParams.from_sequences(
        [float(np.min(x)), float(np.max(x))], [1.0, 1.0], [0.5, 0.5]
    )


class TestAdvance:
    """Tests for the single-step state transition."""

    def test_first_value_keeps_running(self):
        trace = EMTrace()

        state = advance(trace, -100.0, EMConfig(max_iter=5))

        assert state is FitState.RUNNING
        assert trace.values == [-100.0]

    def test_small_change_converges(self):
        trace = EMTrace(values=[-100.0])

        state = advance(trace, -99.995, EMConfig(threshold=0.01))

        assert state is FitState.CONVERGED
        assert trace.n_iter == 2

    def test_change_equal_to_threshold_converges(self):
        trace = EMTrace(values=[-10.0])

        assert advance(trace, -9.5, EMConfig(threshold=0.5)) is FitState.CONVERGED

    def test_budget_exhausted(self):
        trace = EMTrace(values=[-100.0, -90.0])

        state = advance(trace, -80.0, EMConfig(threshold=0.01, max_iter=3))

        assert state is FitState.MAX_ITER_REACHED

    def test_convergence_wins_on_last_iteration(self):
        trace = EMTrace(values=[-100.0, -90.0])

        state = advance(trace, -90.0, EMConfig(threshold=0.01, max_iter=3))

        assert state is FitState.CONVERGED

    def test_max_iter_one_stops_after_first(self):
        trace = EMTrace()

        assert advance(trace, -5.0, EMConfig(max_iter=1)) is FitState.MAX_ITER_REACHED

    def test_decrease_raises_and_marks_diverged(self):
        trace = EMTrace(values=[-100.0, -50.0])

        with pytest.raises(MonotonicityViolationError) as exc_info:
            advance(trace, -50.0 - 1e-6, EMConfig())

        err = exc_info.value
        assert err.previous == -50.0
        assert err.current == -50.0 - 1e-6
        assert err.previous_iteration == 2
        assert err.current_iteration == 3
        assert trace.state is FitState.DIVERGED
        assert trace.values == [-100.0, -50.0]

    def test_tolerance_allows_small_decrease(self):
        trace = EMTrace(values=[-50.0])

        state = advance(trace, -50.0 - 1e-12, EMConfig(ll_tolerance=1e-9))

        assert state is FitState.CONVERGED

    def test_tolerance_does_not_hide_large_decrease(self):
        trace = EMTrace(values=[-50.0])

        with pytest.raises(MonotonicityViolationError):
            advance(trace, -51.0, EMConfig(ll_tolerance=1e-9))

    def test_rounding_sized_decrease_is_accepted(self):
        """A drop of a few ulps near convergence is round-off, not divergence."""
        previous = -63.36965944120
        trace = EMTrace(values=[-70.0, previous])

        state = advance(trace, previous - 2.842e-14, EMConfig(threshold=1e-6))

        assert state is FitState.CONVERGED
        assert trace.values == [-70.0, previous, previous - 2.842e-14]

    def test_decrease_beyond_rounding_slack_raises(self):
        previous = -63.36965944120
        drop = 10 * LL_ROUNDING_RTOL * abs(previous)
        trace = EMTrace(values=[previous])

        with pytest.raises(MonotonicityViolationError):
            advance(trace, previous - drop, EMConfig(threshold=1e-6))
        assert trace.state is FitState.DIVERGED

    def test_allowed_decrease_takes_larger_slack(self):
        assert allowed_decrease(-1e6, EMConfig()) == pytest.approx(1e-6)
        assert allowed_decrease(-1e6, EMConfig(ll_tolerance=1e-3)) == 1e-3
        assert allowed_decrease(0.0, EMConfig()) == 0.0


class TestRunEmEntryChecks:
    """Invalid input is rejected before any E-step executes."""

    def test_weights_summing_to_point_nine_rejected(self, two_cluster_data):
        init = MixtureParams.from_sequences([0.0, 2.5], [1.0, 1.0], [0.45, 0.45])

        with patch("unimix.mixture.driver.em_steps") as mock_steps:
            with pytest.raises(InvalidParameterError) as exc_info:
                run_em(two_cluster_data, init)

        mock_steps.assert_not_called()
        assert exc_info.value.field == "weights"

    def test_non_positive_sd_rejected(self, two_cluster_data):
        init = MixtureParams.from_sequences([0.0, 2.5], [1.0, 0.0], [0.5, 0.5])

        with pytest.raises(InvalidParameterError) as exc_info:
            run_em(two_cluster_data, init)

        assert exc_info.value.field == "sds"

    def test_negative_weight_rejected(self, two_cluster_data):
        init = MixtureParams.from_sequences([0.0, 2.5], [1.0, 1.0], [1.2, -0.2])

        with pytest.raises(InvalidParameterError) as exc_info:
            run_em(two_cluster_data, init)

        assert exc_info.value.field == "weights"

    def test_non_finite_observation_rejected(self):
        init = MixtureParams.from_sequences([0.0], [1.0], [1.0])

        with pytest.raises(InvalidParameterError) as exc_info:
            run_em([0.0, np.nan, 1.0], init)

        assert exc_info.value.field == "data"

    def test_empty_observations_rejected(self):
        init = MixtureParams.from_sequences([0.0], [1.0], [1.0])

        with pytest.raises(InvalidParameterError):
            run_em([], init)

    def test_more_components_than_observations_rejected(self):
        init = MixtureParams.from_sequences([0.0, 1.0, 2.0], [1.0] * 3, [1 / 3] * 3)

        with pytest.raises(InvalidParameterError):
            run_em([0.0, 1.0], init)

    def test_invalid_config_rejected(self, two_cluster_data):
        init = _two_component_start(two_cluster_data)

        with pytest.raises(ConfigurationError):
            run_em(two_cluster_data, init, EMConfig(threshold=0.0))

    def test_unknown_backend_rejected(self, two_cluster_data):
        init = _two_component_start(two_cluster_data)

        with pytest.raises(ConfigurationError):
            run_em(two_cluster_data, init, backend="torch")


class TestRunEm:
    """Tests for the full driver loop."""

    def test_trace_is_non_decreasing(self, two_cluster_data):
        result = run_em(
            two_cluster_data,
            _two_component_start(two_cluster_data),
            EMConfig(threshold=1e-8, max_iter=500),
        )

        trace = np.asarray(result.trace)
        assert np.all(np.diff(trace) >= -LL_ROUNDING_RTOL * np.abs(trace[:-1]))
        assert result.n_iter == len(result.trace)

    def test_defaults_stop_within_ten_iterations(self, two_cluster_data):
        result = run_em(two_cluster_data, _two_component_start(two_cluster_data))

        assert result.n_iter <= 10
        assert result.state in (FitState.CONVERGED, FitState.MAX_ITER_REACHED)

    def test_max_iter_reached_is_a_result(self, two_cluster_data):
        result = run_em(
            two_cluster_data,
            _two_component_start(two_cluster_data),
            EMConfig(threshold=1e-12, max_iter=3),
        )

        assert result.state is FitState.MAX_ITER_REACHED
        assert result.n_iter == 3
        assert not result.converged

    def test_converged_flag(self, two_cluster_data):
        result = run_em(
            two_cluster_data,
            _two_component_start(two_cluster_data),
            EMConfig(threshold=1e-3, max_iter=1000),
        )

        assert result.state is FitState.CONVERGED
        assert result.converged
        assert abs(result.trace[-1] - result.trace[-2]) <= 1e-3

    def test_responsibilities_are_from_last_e_step(self, two_cluster_data):
        """Final responsibilities are the E-step that produced the final params."""
        init = _two_component_start(two_cluster_data)
        config = EMConfig(threshold=1e-12, max_iter=4)

        result = run_em(two_cluster_data, init, config)

        params = init
        for _ in range(3):
            params = m_step(two_cluster_data, e_step(two_cluster_data, params))
        resp = e_step(two_cluster_data, params)
        np.testing.assert_allclose(result.responsibilities, resp, rtol=1e-12)
        np.testing.assert_allclose(
            result.params.means, m_step(two_cluster_data, resp).means, rtol=1e-12
        )

    def test_caller_data_not_modified(self, two_cluster_data):
        original = two_cluster_data.copy()

        run_em(two_cluster_data, _two_component_start(two_cluster_data))

        np.testing.assert_array_equal(two_cluster_data, original)
        assert two_cluster_data.flags.writeable

    def test_verbose_has_no_effect_on_result(self, two_cluster_data):
        init = _two_component_start(two_cluster_data)

        quiet = run_em(two_cluster_data, init, EMConfig(verbose=False))
        loud = run_em(two_cluster_data, init, EMConfig(verbose=True))

        assert quiet.trace == loud.trace
        np.testing.assert_array_equal(quiet.params.means, loud.params.means)

    def test_deadline_stops_after_first_iteration(self, two_cluster_data):
        result = run_em(
            two_cluster_data,
            _two_component_start(two_cluster_data),
            EMConfig(threshold=1e-12, max_iter=1000, deadline_s=1e-9),
        )

        assert result.state is FitState.DEADLINE_REACHED
        assert result.n_iter == 1

    def test_labels_follow_responsibilities(self, two_cluster_data):
        result = run_em(two_cluster_data, _two_component_start(two_cluster_data))

        np.testing.assert_array_equal(
            result.labels, np.argmax(result.responsibilities, axis=1)
        )


class TestSingleComponent:
    """K=1 reduces to single-Normal maximum likelihood."""

    def test_one_iteration_gives_mle(self):
        rng = np.random.default_rng(11)
        x = rng.normal(3.0, 2.0, size=250)
        init = MixtureParams.from_sequences([0.0], [2.0], [1.0])

        result = run_em(x, init, EMConfig(max_iter=1))

        assert result.n_iter == 1
        assert result.params.means[0] == pytest.approx(np.mean(x), rel=1e-12)
        assert result.params.sds[0] == pytest.approx(np.std(x), rel=1e-12)
        assert result.params.weights[0] == 1.0

    def test_converges_with_zero_change(self):
        rng = np.random.default_rng(12)
        x = rng.normal(-1.0, 0.5, size=100)
        init = MixtureParams.from_sequences([0.0], [1.0], [1.0])

        result = run_em(x, init, EMConfig(threshold=1e-3, max_iter=1000))

        assert result.state is FitState.CONVERGED
        assert result.n_iter == 2
        assert result.trace[1] == result.trace[0]


class TestFailureModes:
    """Fatal conditions are reported as distinct error kinds."""

    def test_far_component_collapses(self):
        x = np.random.default_rng(5).normal(0.0, 1.0, size=50)
        init = MixtureParams.from_sequences([0.0, 1000.0], [1.0, 1.0], [0.5, 0.5])

        with pytest.raises(DegenerateComponentError) as exc_info:
            run_em(x, init)

        assert exc_info.value.component == 1
        assert exc_info.value.iteration == 1

    @pytest.mark.parametrize(
        "weights, component",
        [([0.0, 0.3, 0.7], 0), ([0.3, 0.0, 0.7], 1), ([0.3, 0.7, 0.0], 2)],
    )
    def test_zero_weight_component_collapses_in_any_position(self, weights, component):
        rng = np.random.default_rng(11)
        x = np.concatenate([rng.normal(0.0, 1.0, 40), rng.normal(6.0, 1.0, 40)])
        init = MixtureParams.from_sequences([0.0, 6.0, 3.0], [1.0, 1.0, 1.0], weights)

        with pytest.raises(DegenerateComponentError) as exc_info:
            run_em(x, init, EMConfig(threshold=1e-6, max_iter=100))

        assert exc_info.value.component == component
        assert exc_info.value.iteration == 1

    def test_identical_components_never_return_nan(self, two_cluster_data):
        """Symmetric start: either a finite result or a distinct error."""
        m = float(np.mean(two_cluster_data))
        s = float(np.std(two_cluster_data))
        init = MixtureParams.from_sequences([m, m], [s, s], [0.5, 0.5])

        np.testing.assert_array_equal(e_step(two_cluster_data, init), 0.5)

        try:
            result = run_em(two_cluster_data, init, EMConfig(max_iter=50))
        except DegenerateComponentError:
            return
        assert np.all(np.isfinite(result.params.means))
        assert np.all(np.isfinite(result.params.sds))
        assert np.all(np.isfinite(result.params.weights))

    def test_monotonicity_violation_reports_iterations(self, two_cluster_data):
        init = _two_component_start(two_cluster_data)
        resp = np.full((two_cluster_data.shape[0], 2), 0.5)
        fake = iter([(resp, init, -100.0), (resp, init, -90.0), (resp, init, -95.0)])

        with patch("unimix.mixture.driver.em_steps", return_value=fake):
            with pytest.raises(MonotonicityViolationError) as exc_info:
                run_em(two_cluster_data, init, EMConfig(threshold=1e-6, max_iter=10))

        err = exc_info.value
        assert (err.previous, err.current) == (-90.0, -95.0)
        assert (err.previous_iteration, err.current_iteration) == (2, 3)

    def test_monotonicity_violation_leaves_trace_diverged(self, two_cluster_data):
        init = _two_component_start(two_cluster_data)
        resp = np.full((two_cluster_data.shape[0], 2), 0.5)
        fake = iter([(resp, init, -100.0), (resp, init, -90.0), (resp, init, -95.0)])
        traces = []

        def recording_trace():
            trace = EMTrace()
            traces.append(trace)
            return trace

        config = EMConfig(threshold=1e-6, max_iter=10)
        with patch("unimix.mixture.driver.em_steps", return_value=fake):
            with patch("unimix.mixture.driver.EMTrace", side_effect=recording_trace):
                with pytest.raises(MonotonicityViolationError):
                    run_em(two_cluster_data, init, config)

        (trace,) = traces
        assert trace.state is FitState.DIVERGED
        assert trace.values == [-100.0, -90.0]


class TestFixpoint:
    """Parameters stop moving at a maximum-likelihood fixed point."""

    def test_separated_components_are_fixed(self):
        from unimix.simulate import simulate_mixture

        sim = simulate_mixture(k=3, n=300, gap=50.0, seed=3)
        x = sim.observations

        result = run_em(x, sim.truth, EMConfig(threshold=1e-10, max_iter=100))
        again = m_step(x, e_step(x, result.params))

        assert result.params.max_abs_change(again) < 1e-6
