"""
ORN (olfactory receptor neuron) layer.

Input is a firing-rate description per glomerulus: a spontaneous rate
and an odor-evoked rate change. The odor time course (spont ... spont +
delta ... spont) is exponentially smoothed, then the ORN rate relaxes
toward it with membrane time constant orn.taum (forward Euler).

No clipping is applied; negative or very large rates are shaped by the
downstream layers.
"""

import numpy as np
from scipy import signal

from olfsim.config.model_params import steps_all, stim_row

# Smoothing window for the odor time course, in seconds. Empirical value
# carried over from the Kennedy model; keep as is.
SMOOTH_WINDOW_S = 0.02


def smoothts_exp(x, wsize):
    """Exponential moving average along time (axis 1).

    Parameters
    ----------
    x : ndarray (n_rows, n_steps)
        Input time series.
    wsize : float
        Window size in timesteps. Values > 1 are converted to the
        smoothing factor 2 / (wsize + 1); otherwise wsize is used as
        the factor directly.

    Returns
    -------
    y : ndarray (n_rows, n_steps)
        y[:, 0] = x[:, 0]; y[:, t] = a x[:, t] + (1 - a) y[:, t-1].
    """
    x = np.atleast_2d(np.asarray(x, dtype=np.float64))
    alpha = 2.0 / (wsize + 1.0) if wsize > 1.0 else wsize
    if x.shape[1] < 2:
        return x.copy()
    # zi makes the first output sample equal to the first input sample
    zi = (1.0 - alpha) * x[:, :1]
    y, _ = signal.lfilter([alpha], [1.0, -(1.0 - alpha)], x, axis=1, zi=zi)
    return y


def relax_euler(x0, target, mul):
    """Forward-Euler leaky relaxation toward target.

    out[:, 0] = x0; out[:, t] = out[:, t-1] (1 - mul) + target[:, t] mul.
    """
    target = np.atleast_2d(target)
    x0 = np.asarray(x0, dtype=np.float64).reshape(-1, 1)
    out = np.empty_like(target, dtype=np.float64)
    out[:, :1] = x0
    if target.shape[1] > 1:
        zi = (1.0 - mul) * x0
        out[:, 1:], _ = signal.lfilter(
            [mul], [1.0, -(1.0 - mul)], target[:, 1:], axis=1, zi=zi)
    return out


def sim_orn_layer(params, odorid):
    """Model the ORN response to one odor.

    Parameters
    ----------
    params : ModelParams
    odorid : int
        Column of orn.delta to present.

    Returns
    -------
    orn_t : ndarray (n_gloms, steps_all)
    """
    time = params.time
    spont = np.asarray(params.orn.spont, dtype=np.float64).reshape(-1, 1)
    delta = np.asarray(params.orn.delta, dtype=np.float64)[:, odorid:odorid + 1]

    baseline = spont * np.ones((1, steps_all(time)))
    odor = baseline + delta * stim_row(time)[np.newaxis, :]
    odor = smoothts_exp(odor, SMOOTH_WINDOW_S / time.dt)

    return relax_euler(spont, odor, time.dt / params.orn.taum)
