"""
PN (projection neuron) layer.

Each glomerulus' PN relaxes toward a spontaneous target plus a
saturating (tanh) function of the ORN deviation from baseline. The tanh
gain is divisive LN inhibition, blended 25% inhA / 75% inhB and applied
one step late. Gaussian noise is added to every (glomerulus, step)
derivative. PN rates are rectified at zero.

Glomeruli outside orn.active_gloms carry no data and are zeroed.
"""

import numpy as np

# Output range of the tanh nonlinearity (Hz).
TANH_RANGE = 200.0


def sim_pn_layer(params, orn_t, inhA, inhB, rng):
    """Model the PN response to one odor.

    Parameters
    ----------
    params : ModelParams
    orn_t : ndarray (n_gloms, n_steps)
        ORN timecourse.
    inhA, inhB : ndarray (n_steps,)
        LN inhibition channels.
    rng : np.random.Generator
        Noise stream for this odor.

    Returns
    -------
    pn_t : ndarray (n_gloms, n_steps)
    """
    pn = params.pn
    spont = np.asarray(params.orn.spont, dtype=np.float64).reshape(-1, 1)
    n_gloms, n_steps = orn_t.shape

    target = spont * pn.inhsc / (spont.sum() + pn.inhadd)

    # Gain used at step t was computed from the inhibition at step t-1
    gain = np.zeros(n_steps)
    gain[2:] = pn.inhsc / (pn.inhadd + 0.25 * inhA[1:-1] + 0.75 * inhB[1:-1])

    orn_delta = orn_t[:, :-1] - spont
    noise = rng.normal(pn.noise_mean, pn.noise_sd, size=(n_gloms, n_steps - 1))
    drive = target + TANH_RANGE * np.tanh(
        (orn_delta + pn.offset) * pn.tanhsc / TANH_RANGE * gain[1:]) + noise

    pn_t = np.empty((n_gloms, n_steps))
    pn_t[:, 0] = spont[:, 0]
    k = params.time.dt / pn.taum
    for t in range(1, n_steps):
        step = pn_t[:, t - 1] + (drive[:, t - 1] - pn_t[:, t - 1]) * k
        pn_t[:, t] = np.maximum(step, 0.0)

    if params.orn.active_gloms is not None:
        pn_t[~np.asarray(params.orn.active_gloms, dtype=bool)] = 0.0
    return pn_t
