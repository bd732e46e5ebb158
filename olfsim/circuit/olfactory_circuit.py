"""
Full ORN -> LN -> PN -> KC circuit assembly.

Architecture:
  ORN --> LN (pooled) --GABA inhA/inhB--+
   |                                    v
   +------------------------------->   PN --claws--> KC <--APL--+
                                                      |         |
                                                      +---------+

Each stage runs every odor independently on a thread pool; a stage's
output for odor i lands in slot i of the RunVars lists. Stages must run
in order: run_orn_ln_sims -> run_pn_sims -> run_kc_sims.
"""

import logging

import numpy as np

from olfsim.config.model_params import (
    steps, steps_all, validate_data, validate_params, validate_tune_from)
from olfsim.circuit.run_vars import RunVars
from olfsim.models.orn_layer import sim_orn_layer
from olfsim.models.ln_layer import sim_ln_layer
from olfsim.models.pn_layer import sim_pn_layer
from olfsim.models.kc_layer import sim_kc_layer
from olfsim.population.network import build_wpnkc
from olfsim.population.parallel import parallel_for
from olfsim.population.sparsity_tuning import fit_sparseness

logger = logging.getLogger(__name__)

ORN_LN = 'orn_ln'
PN = 'pn'
KC = 'kc'


def run_orn_ln_sims(params, rv):
    """Run ORN and LN sims for all odors."""
    validate_data(params)

    def sim(i):
        orn_t = sim_orn_layer(params, i)
        inhA, inhB = sim_ln_layer(params, orn_t)
        return orn_t, inhA, inhB

    def store(i, result):
        rv.orn_sims[i], rv.inha_sims[i], rv.inhb_sims[i] = result

    parallel_for(sim, range(params.n_odors), params.n_workers, store=store)
    rv.completed.add(ORN_LN)
    rv.log(f"ran ORN/LN sims for {params.n_odors} odors")


def run_pn_sims(params, rv):
    """Run PN sims for all odors. Needs run_orn_ln_sims first."""
    rv.require(ORN_LN, 'run_pn_sims')
    rngs = rv.noise_rngs(params.n_odors)

    def sim(i):
        return sim_pn_layer(params, rv.orn_sims[i], rv.inha_sims[i],
                            rv.inhb_sims[i], rngs[i])

    def store(i, pn_t):
        rv.pn_sims[i] = pn_t

    parallel_for(sim, range(params.n_odors), params.n_workers, store=store)
    rv.completed.add(PN)
    rv.log(f"ran PN sims for {params.n_odors} odors")


def run_kc_sims(params, rv, regen=True):
    """Run KC sims for all odors.

    With regen, PN->KC connectivity is regenerated and thresholds and
    APL weights re-tuned first; otherwise the stored ones are reused.
    """
    rv.require(PN, 'run_kc_sims')
    if regen:
        validate_tune_from(params)
        build_wpnkc(params, rv)
        fit_sparseness(params, rv)

    def sim(i):
        _, spikes = sim_kc_layer(params, rv, rv.pn_sims[i])
        return spikes.sum(axis=1)

    def store(i, counts):
        rv.spike_counts[:, i] = counts
        rv.responses[:, i] = (counts > 0.0).astype(np.float64)

    parallel_for(sim, range(params.n_odors), params.n_workers, store=store)
    rv.completed.add(KC)
    rv.log(f"ran KC sims for {params.n_odors} odors: "
           f"response rate={rv.responses.mean():.4f}")


def remove_before(step, timecourse):
    """Return timecourse without its columns < step (last axis)."""
    return timecourse[..., step:].copy()


def remove_all_pretime(params, rv):
    """Drop the settling columns from every ORN, LN and PN timecourse.

    Afterwards each series holds its last steps(params.time) columns.
    KC stages cannot run on trimmed timecourses.
    """
    # steps_all - start_step may exceed steps by one when dt does not
    # divide the spans evenly
    cut = steps_all(params.time) - steps(params.time)
    for sims in (rv.orn_sims, rv.inha_sims, rv.inhb_sims, rv.pn_sims):
        for i in range(len(sims)):
            sims[i] = remove_before(cut, sims[i])
    rv.completed.discard(PN)
    rv.completed.discard(ORN_LN)
    rv.log(f"removed {cut} pretime columns")


class OlfactoryCircuit:
    """Parameters plus run state, with the stages wired in order."""

    def __init__(self, params):
        validate_params(params)
        self.params = params
        self.rv = RunVars(params)

    def run(self, regen=True, trim=False):
        """Run every stage; optionally trim the pretime columns."""
        logger.info(f"Running circuit: {self.params.n_gloms} gloms, "
                    f"{self.params.n_odors} odors, {self.params.kc.N} KCs")
        run_orn_ln_sims(self.params, self.rv)
        run_pn_sims(self.params, self.rv)
        run_kc_sims(self.params, self.rv, regen=regen)
        if trim:
            remove_all_pretime(self.params, self.rv)
        return self.results()

    def results(self):
        rv = self.rv
        return {
            'responses': rv.responses,
            'spike_counts': rv.spike_counts,
            'thr': rv.thr,
            'wAPLKC': rv.waplkc,
            'wKCAPL': rv.wkcapl,
            'tuning_iters': rv.tuning_iters,
            'tuning_sparsity': rv.sparsity,
            'response_sparsity': float(rv.responses.mean()),
        }
