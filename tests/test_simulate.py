"""Tests for the synthetic mixture generator."""

import numpy as np
import pytest

from unimix.exceptions import ConfigurationError
from unimix.simulate import simulate_mixture

pytestmark = pytest.mark.tier0


class TestSimulateMixture:
    def test_shapes_and_truth(self):
        sim = simulate_mixture(k=3, n=300, gap=6.0, seed=1)

        assert sim.observations.shape == (300,)
        assert sim.labels.shape == (300,)
        assert sim.truth.n_components == 3
        np.testing.assert_array_equal(sim.truth.means, [0.0, 6.0, 12.0])
        assert np.all((sim.truth.sds >= 0.5) & (sim.truth.sds <= 1.5))
        sim.truth.validate()

    def test_labels_and_empirical_weights(self):
        sim = simulate_mixture(k=4, n=200, seed=2)

        assert set(np.unique(sim.labels)) <= {0, 1, 2, 3}
        assert sim.empirical_weights.sum() == pytest.approx(1.0)
        np.testing.assert_allclose(
            sim.empirical_weights, np.bincount(sim.labels, minlength=4) / 200
        )

    def test_observations_near_their_component(self):
        sim = simulate_mixture(k=3, n=300, gap=20.0, seed=3)

        dist = np.abs(sim.observations - sim.truth.means[sim.labels])
        assert np.all(dist < 10.0)

    def test_reproducible_with_seed(self):
        a = simulate_mixture(k=2, n=50, seed=9)
        b = simulate_mixture(k=2, n=50, seed=9)

        np.testing.assert_array_equal(a.observations, b.observations)
        np.testing.assert_array_equal(a.labels, b.labels)

    def test_single_component(self):
        sim = simulate_mixture(k=1, n=20, seed=4)

        np.testing.assert_array_equal(sim.truth.weights, [1.0])
        assert np.all(sim.labels == 0)

    def test_custom_sd_range(self):
        sim = simulate_mixture(k=5, n=50, sd_range=(2.0, 2.0), seed=5)

        np.testing.assert_array_equal(sim.truth.sds, 2.0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"k": 0, "n": 10},
            {"k": 3, "n": 2},
            {"k": 2, "n": 10, "gap": 0.0},
            {"k": 2, "n": 10, "sd_range": (0.0, 1.0)},
            {"k": 2, "n": 10, "sd_range": (2.0, 1.0)},
        ],
    )
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ConfigurationError):
            simulate_mixture(**kwargs)
