"""
KC threshold selection and APL weight tuning.

fit_sparseness() calibrates the KC layer so that the fraction of
(KC, odor) pairs with at least one spike matches kc.sp_target:

  1. Thresholds. With spikes suppressed (threshold 1e5, no APL), every
     tuning odor is run once and each KC's peak voltage above twice its
     spontaneous input is recorded. Thresholds are picked so that about
     2 * sp_target of the peaks would cross them, either over the whole
     population (one constant) or per KC ("homeostatic").
  2. APL weights. Starting from 2 * ceil(-ln sp_target), wAPLKC and
     wKCAPL are nudged toward the target with a step size that decays as
     sp_lr_coeff / sqrt(iteration). Each iteration measures sparsity on
     every third tuning odor. The loop ends once sparsity is within
     sp_acc * sp_target of the target or after kc.max_iters iterations;
     running out of iterations is not an error.

Step 2 runs on a team of threads sharing one barrier. Worker 0 is the
leader: it alone updates the weights and reduces the spike counts, and
the barrier keeps the other workers from reading weights mid-update or
the leader from reducing before every odor is evaluated.
"""

import logging
import math

import numpy as np

from olfsim.config.model_params import (
    span_steps, start_step, validate_tune_from)
from olfsim.models.kc_layer import sim_kc_layer
from olfsim.population.parallel import parallel_for, run_team, worker_count

logger = logging.getLogger(__name__)

# Threshold used while measuring peak voltages; never reached.
THR_SENTINEL = 1e5

# Starting sparsity estimate for the first weight update. With the
# default model parameters this lets tuning finish in one iteration.
INITIAL_SPARSITY = 0.0789

# Every SAMPLE_STRIDE-th tuning odor is used inside the tuning loop.
SAMPLE_STRIDE = 3


def tuning_odors(params):
    """Odor ids used for tuning: kc.tune_from, or every odor."""
    if params.kc.tune_from:
        return [int(i) for i in params.kc.tune_from]
    return list(range(params.n_odors))


def sample_pn_spont(params, rv):
    """Mean spontaneous PN activity, sampled from odor 0.

    Averages the PN timecourse from halfway between the KC start and the
    stimulus onset up to the onset.

    Returns
    -------
    spont : ndarray (n_gloms, 1)
    """
    time = params.time
    t0 = start_step(time)
    t1 = t0 + span_steps((time.stim_start - time.start) / 2.0, time.dt)
    t2 = t0 + span_steps(time.stim_start - time.start, time.dt)
    # Stimulus at the KC start: fall back to the single start column
    t2 = max(t2, t1 + 1)
    return rv.pn_sims[0][:, t1:t2].mean(axis=1, keepdims=True)


def choose_kc_thresh(params, kc_pks, spont_in):
    """Pick KC thresholds from peak voltages.

    Parameters
    ----------
    params : ModelParams
    kc_pks : ndarray (N, n_odors)
        Peak voltage minus twice the spontaneous input, per KC and odor.
    spont_in : ndarray (N, 1)
        Spontaneous PN input to each KC.

    Returns
    -------
    thr : ndarray (N, 1)
    """
    kc = params.kc
    N, n_odors = kc_pks.shape
    if kc.use_homeostatic_thrs:
        rank = min(int(kc.sp_target * 2.0 * n_odors), n_odors - 1)
        ordered = -np.sort(-kc_pks, axis=1)
        thr_const = ordered[:, rank:rank + 1]
    else:
        rank = min(int(kc.sp_target * 2.0 * (N * n_odors)), N * n_odors - 1)
        ordered = -np.sort(-kc_pks.ravel())
        thr_const = ordered[rank]
    return thr_const + spont_in * 2.0


def _measure_peaks(params, rv, odors, spont_in):
    kc_pks = np.zeros((params.kc.N, len(odors)))

    def peak(j):
        Vm, _ = sim_kc_layer(params, rv, rv.pn_sims[odors[j]])
        return Vm.max(axis=1) - spont_in[:, 0] * 2.0

    def store(j, col):
        kc_pks[:, j] = col

    parallel_for(peak, range(len(odors)), params.n_workers, store=store)
    return kc_pks


def _tune_apl(params, rv, odors):
    """Iteratively adjust APL<->KC weights. Returns (iterations, sparsity)."""
    kc = params.kc
    N = kc.N
    target = kc.sp_target
    sample = odors[::SAMPLE_STRIDE]
    counts = np.zeros((N, len(sample)))

    w0 = 2.0 * np.ceil(-np.log(target))
    rv.waplkc[:] = w0
    rv.wkcapl[:] = w0 / N

    state = {'sp': INITIAL_SPARSITY, 'count': 1.0, 'done': False}
    n_team = worker_count(params.n_workers, len(sample))

    def worker(worker_id, barrier):
        leader = worker_id == 0
        while True:
            if leader:
                lr = kc.sp_lr_coeff / math.sqrt(state['count'])
                delta = (state['sp'] - target) * lr / target
                rv.waplkc += delta
                rv.wkcapl += delta / N
                if delta < 0:
                    np.maximum(rv.waplkc, 0.0, out=rv.waplkc)
                    np.maximum(rv.wkcapl, 0.0, out=rv.wkcapl)
                state['count'] += 1.0
            barrier.wait()

            for j in range(worker_id, len(sample), n_team):
                _, spikes = sim_kc_layer(params, rv, rv.pn_sims[sample[j]])
                counts[:, j] = spikes.sum(axis=1)
            barrier.wait()

            if leader:
                state['sp'] = float((counts > 0.0).mean())
                iteration = int(state['count']) - 1
                rv.log(f"APL tuning iteration {iteration}: "
                       f"sparsity={state['sp']:.4f} "
                       f"wAPLKC={rv.waplkc[0, 0]:.4f}")
                state['done'] = not (
                    abs(state['sp'] - target) > kc.sp_acc * target
                    and state['count'] <= kc.max_iters)
            barrier.wait()

            if state['done']:
                break

    run_team(worker, n_team)
    return int(state['count']) - 1, state['sp']


def fit_sparseness(params, rv):
    """Set KC thresholds and tune APL<->KC weights toward kc.sp_target.

    Requires PN timecourses (run_pn_sims) and wPNKC (build_wpnkc).
    Results are written to rv.thr, rv.waplkc, rv.wkcapl,
    rv.tuning_iters and rv.sparsity.
    """
    validate_tune_from(params)
    kc = params.kc
    N = kc.N
    odors = tuning_odors(params)

    rv.waplkc = np.zeros((N, 1))
    rv.wkcapl = np.full((1, N), 1.0 / N)
    rv.tuning_iters = 0
    rv.sparsity = float('nan')

    if kc.fixed_thr is not None:
        rv.thr = np.full((N, 1), float(kc.fixed_thr))
        rv.log(f"using fixed KC threshold {kc.fixed_thr}")
        return rv.thr

    rv.thr = np.full((N, 1), THR_SENTINEL)
    spont_in = rv.wpnkc @ sample_pn_spont(params, rv)

    kc_pks = _measure_peaks(params, rv, odors, spont_in)
    rv.thr = choose_kc_thresh(params, kc_pks, spont_in)
    rv.log(f"chose {'homeostatic' if kc.use_homeostatic_thrs else 'uniform'}"
           f" KC thresholds from {len(odors)} odors: "
           f"mean={rv.thr.mean():.4f}")

    if not kc.enable_apl:
        return rv.thr

    iters, sp = _tune_apl(params, rv, odors)
    rv.tuning_iters = iters
    rv.sparsity = sp

    if abs(sp - kc.sp_target) > kc.sp_acc * kc.sp_target:
        logger.warning(f"APL tuning stopped after {iters} iterations at "
                       f"sparsity {sp:.4f} (target {kc.sp_target})")
        rv.log(f"APL tuning did not converge after {iters} iterations")
    else:
        logger.info(f"APL tuning converged in {iters} iterations, "
                    f"sparsity={sp:.4f}")
    return rv.thr
