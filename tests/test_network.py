"""
Tests for PN -> KC connectivity generation.
"""
import numpy as np
import pytest

from conftest import make_small_params
from olfsim.circuit import RunVars
from olfsim.population.network import (
    sample_claws, build_wpnkc, connection_weights, connectivity_stats)


class TestSampleClaws:

    def test_row_sums_equal_claws(self):
        rng = np.random.default_rng(0)
        w = sample_claws(np.ones(10), N=200, nclaws=6, rng=rng)
        assert w.shape == (200, 10)
        np.testing.assert_array_equal(w.sum(axis=1), 6.0)

    def test_zero_weight_never_chosen(self):
        rng = np.random.default_rng(1)
        weights = np.array([0.0, 3.0, 0.0, 1.0])
        w = sample_claws(weights, N=500, nclaws=4, rng=rng)
        assert w[:, 0].sum() == 0
        assert w[:, 2].sum() == 0

    def test_frequencies_follow_weights(self):
        rng = np.random.default_rng(2)
        weights = np.array([1.0, 3.0])
        w = sample_claws(weights, N=4000, nclaws=5, rng=rng)
        frac = w[:, 1].sum() / w.sum()
        assert frac == pytest.approx(0.75, abs=0.02)

    def test_repeated_claws_allowed(self):
        rng = np.random.default_rng(3)
        w = sample_claws(np.array([1.0, 0.0]), N=5, nclaws=3, rng=rng)
        np.testing.assert_array_equal(w[:, 0], 3.0)

    def test_same_seed_same_matrix(self):
        a = sample_claws(np.ones(7), 50, 6, np.random.default_rng(9))
        b = sample_claws(np.ones(7), 50, 6, np.random.default_rng(9))
        np.testing.assert_array_equal(a, b)

    def test_all_zero_weights_rejected(self):
        with pytest.raises(ValueError, match="positive"):
            sample_claws(np.zeros(4), 10, 2, np.random.default_rng(0))

    def test_negative_weights_rejected(self):
        with pytest.raises(ValueError):
            sample_claws(np.array([1.0, -1.0]), 10, 2,
                         np.random.default_rng(0))


class TestBuildWPNKC:

    def test_uniform_mode(self, small_params):
        rv = RunVars(small_params)
        w = build_wpnkc(small_params, rv)
        assert w.shape == (60, 4)
        assert rv.wpnkc is w
        np.testing.assert_array_equal(w.sum(axis=1), 3.0)

    def test_uniform_respects_active_mask(self, small_params):
        small_params.orn.active_gloms = np.array([True, True, False, True])
        np.testing.assert_array_equal(connection_weights(small_params),
                                      [1.0, 1.0, 0.0, 1.0])

    def test_weighted_requires_distribution(self):
        p = make_small_params(uniform_pns=False)
        rv = RunVars(p)
        before = rv.wpnkc.copy()
        with pytest.raises(ValueError, match="cxn_distrib"):
            build_wpnkc(p, rv)
        np.testing.assert_array_equal(rv.wpnkc, before)

    def test_weighted_length_checked(self):
        p = make_small_params(uniform_pns=False,
                              cxn_distrib=np.array([1.0, 2.0]))
        with pytest.raises(ValueError, match="one per glomerulus"):
            build_wpnkc(p, RunVars(p))

    def test_weighted_all_zero_rejected(self):
        p = make_small_params(uniform_pns=False, cxn_distrib=np.zeros(4))
        with pytest.raises(ValueError):
            build_wpnkc(p, RunVars(p))

    def test_weighted_mode(self):
        p = make_small_params(uniform_pns=False,
                              cxn_distrib=np.array([0.0, 1.0, 0.0, 1.0]))
        rv = RunVars(p)
        w = build_wpnkc(p, rv)
        assert w[:, [0, 2]].sum() == 0

    def test_regeneration_replaces_matrix(self, small_params):
        rv = RunVars(small_params)
        first = build_wpnkc(small_params, rv).copy()
        second = build_wpnkc(small_params, rv)
        assert not np.array_equal(first, second)
        np.testing.assert_array_equal(second.sum(axis=1), 3.0)

    def test_seeded_runs_match(self, small_params):
        a = build_wpnkc(small_params, RunVars(small_params))
        b = build_wpnkc(small_params, RunVars(small_params))
        np.testing.assert_array_equal(a, b)

    def test_stats(self, small_params):
        rv = RunVars(small_params)
        stats = connectivity_stats(build_wpnkc(small_params, rv))
        assert stats['total_claws'] == 180
        assert 1.0 <= stats['mean_distinct_gloms_per_kc'] <= 3.0
