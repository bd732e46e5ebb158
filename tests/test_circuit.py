"""
End-to-end tests for the staged circuit run.
"""
import numpy as np
import pytest

from conftest import make_small_params
from olfsim.config import set_param, start_step, steps, steps_all
from olfsim.circuit import (
    OlfactoryCircuit, RunVars, get_var, set_var, RUN_VAR_NAMES,
    run_orn_ln_sims, run_pn_sims, run_kc_sims, remove_before,
    remove_all_pretime,
)


@pytest.fixture
def finished():
    p = make_small_params()
    circuit = OlfactoryCircuit(p)
    circuit.run()
    return p, circuit


class TestFullRun:

    def test_shapes(self, finished):
        p, circuit = finished
        rv = circuit.rv
        assert len(rv.orn_sims) == 6
        assert rv.orn_sims[0].shape == (4, 512)
        assert rv.inha_sims[0].shape == (512,)
        assert rv.pn_sims[5].shape == (4, 512)
        assert rv.wpnkc.shape == (60, 4)
        assert rv.thr.shape == (60, 1)
        assert rv.responses.shape == (60, 6)
        assert rv.spike_counts.shape == (60, 6)

    def test_responses_binarize_counts(self, finished):
        _, circuit = finished
        rv = circuit.rv
        assert set(np.unique(rv.responses)) <= {0.0, 1.0}
        np.testing.assert_array_equal(rv.responses,
                                      (rv.spike_counts > 0).astype(float))
        assert np.all(rv.spike_counts >= 0)

    def test_results_dict(self, finished):
        _, circuit = finished
        res = circuit.results()
        assert res['responses'] is circuit.rv.responses
        assert 1 <= res['tuning_iters'] <= 4
        assert res['response_sparsity'] == pytest.approx(
            circuit.rv.responses.mean())
        assert np.all(res['wAPLKC'] >= 0)

    def test_seeded_runs_identical_across_worker_counts(self):
        results = []
        for n_workers in (1, 3):
            p = make_small_params()
            p.pn.noise_sd = 4.0
            p.n_workers = n_workers
            circuit = OlfactoryCircuit(p)
            circuit.run()
            results.append(circuit.rv)
        a, b = results
        for i in range(6):
            np.testing.assert_array_equal(a.pn_sims[i], b.pn_sims[i])
        np.testing.assert_array_equal(a.wpnkc, b.wpnkc)
        np.testing.assert_allclose(a.thr, b.thr)
        np.testing.assert_array_equal(a.spike_counts, b.spike_counts)

    def test_different_seeds_differ(self):
        wirings = []
        for seed in (1, 2):
            p = make_small_params()
            p.seed = seed
            rv = RunVars(p)
            run_orn_ln_sims(p, rv)
            run_pn_sims(p, rv)
            run_kc_sims(p, rv)
            wirings.append(rv.wpnkc)
        assert not np.array_equal(*wirings)

    def test_rerun_without_regen_is_stable(self, finished):
        p, circuit = finished
        rv = circuit.rv
        wpnkc = rv.wpnkc.copy()
        thr = rv.thr.copy()
        counts = rv.spike_counts.copy()
        run_kc_sims(p, rv, regen=False)
        np.testing.assert_array_equal(rv.wpnkc, wpnkc)
        np.testing.assert_array_equal(rv.thr, thr)
        np.testing.assert_array_equal(rv.spike_counts, counts)


class TestStageOrder:

    def test_pn_before_orn_rejected(self, small_params):
        rv = RunVars(small_params)
        with pytest.raises(RuntimeError, match="orn_ln"):
            run_pn_sims(small_params, rv)

    def test_kc_before_pn_rejected(self, small_params):
        rv = RunVars(small_params)
        run_orn_ln_sims(small_params, rv)
        with pytest.raises(RuntimeError, match="pn"):
            run_kc_sims(small_params, rv)

    def test_kc_after_trim_rejected(self, finished):
        p, circuit = finished
        remove_all_pretime(p, circuit.rv)
        with pytest.raises(RuntimeError):
            run_kc_sims(p, circuit.rv)


class TestTrim:

    def test_remove_before(self):
        tc = np.arange(12.0).reshape(2, 6)
        out = remove_before(4, tc)
        np.testing.assert_array_equal(out, [[4.0, 5.0], [10.0, 11.0]])
        out[0, 0] = -1.0
        assert tc[0, 4] == 4.0

    def test_remove_all_pretime(self, finished):
        p, circuit = finished
        rv = circuit.rv
        orn_before = [x.copy() for x in rv.orn_sims]
        pn_before = [x.copy() for x in rv.pn_sims]
        inha_before = [x.copy() for x in rv.inha_sims]

        remove_all_pretime(p, rv)
        n = steps(p.time)
        for i in range(6):
            assert rv.orn_sims[i].shape == (4, n)
            assert rv.inhb_sims[i].shape == (n,)
            np.testing.assert_array_equal(rv.orn_sims[i],
                                          orn_before[i][:, -n:])
            np.testing.assert_array_equal(rv.pn_sims[i], pn_before[i][:, -n:])
            np.testing.assert_array_equal(rv.inha_sims[i],
                                          inha_before[i][-n:])

    def test_trim_from_run(self):
        p = make_small_params(enable_apl=False)
        circuit = OlfactoryCircuit(p)
        circuit.run(trim=True)
        assert circuit.rv.pn_sims[0].shape == (4, steps(p.time))
        assert steps(p.time) < steps_all(p.time)


class TestRunVarAccess:

    def test_get_known_names(self, finished):
        _, circuit = finished
        rv = circuit.rv
        assert get_var(rv, 'kc.wPNKC') is rv.wpnkc
        assert get_var(rv, 'pn.sims') is rv.pn_sims
        for name in RUN_VAR_NAMES:
            get_var(rv, name)

    def test_unknown_name(self, small_params):
        rv = RunVars(small_params)
        with pytest.raises(KeyError, match="invalid run variable"):
            get_var(rv, 'kc.bogus')
        with pytest.raises(KeyError):
            set_var(rv, 'pn.bogus', 1.0)

    def test_set_matrix_shape_checked(self, small_params):
        rv = RunVars(small_params)
        set_var(rv, 'kc.thr', np.full(60, 3.0))
        assert rv.thr.shape == (60, 1)
        with pytest.raises(ValueError, match="shape"):
            set_var(rv, 'kc.wPNKC', np.ones((60, 5)))

    def test_set_timecourses_shape_checked(self, small_params):
        rv = RunVars(small_params)
        with pytest.raises(ValueError):
            set_var(rv, 'pn.sims', [np.zeros((4, 512))] * 5)
        set_var(rv, 'pn.sims', [np.ones((4, 512))] * 6)
        assert rv.pn_sims[3][0, 0] == 1.0

    def test_set_scalars(self, small_params):
        rv = RunVars(small_params)
        set_var(rv, 'kc.tuning_iters', 3.0)
        assert rv.tuning_iters == 3 and isinstance(rv.tuning_iters, int)

    def test_user_wiring_used_without_regen(self, small_params):
        rv = RunVars(small_params)
        run_orn_ln_sims(small_params, rv)
        run_pn_sims(small_params, rv)
        set_var(rv, 'kc.wPNKC', np.zeros((60, 4)))
        set_var(rv, 'kc.thr', np.full((60, 1), 1.0))
        run_kc_sims(small_params, rv, regen=False)
        # No input reaches any KC
        assert rv.spike_counts.sum() == 0


class TestUnevenGrid:
    """dt = 0.3 s does not divide the spans: steps_all 3, start_step 1,
    steps 1."""

    def _params(self):
        p = make_small_params()
        p.time.pre_start = 0.0
        p.time.start = 0.5
        p.time.stim_start = 0.5
        p.time.stim_end = 1.0
        p.time.end = 1.0
        p.time.dt = 0.3
        return p

    def test_step_counts(self):
        time = self._params().time
        assert steps_all(time) == 3
        assert start_step(time) == 1
        assert steps(time) == 1

    def test_trim_keeps_last_steps_columns(self):
        p = self._params()
        rv = RunVars(p)
        run_orn_ln_sims(p, rv)
        run_pn_sims(p, rv)
        pn_before = [x.copy() for x in rv.pn_sims]
        inhb_before = [x.copy() for x in rv.inhb_sims]

        remove_all_pretime(p, rv)
        for i in range(6):
            assert rv.pn_sims[i].shape == (4, 1)
            assert rv.orn_sims[i].shape == (4, 1)
            np.testing.assert_array_equal(rv.pn_sims[i], pn_before[i][:, -1:])
            np.testing.assert_array_equal(rv.inhb_sims[i],
                                          inhb_before[i][-1:])


class TestLateConfigChanges:

    def test_tune_from_checked_before_regen(self, small_params):
        rv = RunVars(small_params)
        run_orn_ln_sims(small_params, rv)
        run_pn_sims(small_params, rv)
        wpnkc = rv.wpnkc.copy()
        set_param(small_params, 'kc.tune_from', '0,9')
        with pytest.raises(ValueError, match="tune_from"):
            run_kc_sims(small_params, rv)
        np.testing.assert_array_equal(rv.wpnkc, wpnkc)

    def test_empty_mask_checked_before_orn_ln(self, small_params):
        rv = RunVars(small_params)
        small_params.orn.active_gloms = np.zeros(4, dtype=bool)
        with pytest.raises(ValueError, match="active_gloms"):
            run_orn_ln_sims(small_params, rv)
