"""
LN (local interneuron) layer.

A single pooled LN population driven by the mean ORN rate. Its
rectified response feeds two GABA accumulators with different time
constants (inhA: tauGA, inhB: tauGB). inhA also sets the LN's own
inhibition gain, inhsc / (inhadd + inhA).

Initial conditions: potential 300, response 1, inhA = inhB = 50.
"""

import numpy as np

from olfsim.config.model_params import n_model_gloms

V0 = 300.0
RESPONSE0 = 1.0
INH0 = 50.0


def sim_ln_layer(params, orn_t):
    """Model the LN response to one odor.

    Parameters
    ----------
    params : ModelParams
    orn_t : ndarray (n_gloms, n_steps)
        ORN timecourse from sim_orn_layer.

    Returns
    -------
    inhA, inhB : ndarray (n_steps,)
        GABA accumulator timecourses.
    """
    ln = params.ln
    dt = params.time.dt
    n_steps = orn_t.shape[1]

    # Rescale by the physical/model glomerulus ratio; the halving is part
    # of the published drive term.
    scale = params.orn.n_physical_gloms / n_model_gloms(params.orn) / 2.0
    drive = orn_t.mean(axis=0) ** 3 * scale

    inhA = np.full(n_steps, INH0)
    inhB = np.full(n_steps, INH0)
    potential = V0
    response = RESPONSE0
    inh_ln = 0.0

    kA = dt / ln.tauGA
    kB = dt / ln.tauGB
    km = dt / ln.taum
    for t in range(1, n_steps):
        dinhA = -inhA[t - 1] + response
        dinhB = -inhB[t - 1] + response
        dV = -potential + drive[t - 1] * inh_ln

        inhA[t] = inhA[t - 1] + dinhA * kA
        inhB[t] = inhB[t - 1] + dinhB * kB
        inh_ln = ln.inhsc / (ln.inhadd + inhA[t])
        potential = potential + dV * km
        response = potential - ln.thr if potential > ln.thr else 0.0

    return inhA, inhB
