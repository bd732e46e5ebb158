"""
KC (Kenyon cell) layer with APL feedback inhibition.

KCs are leaky integrators of their summed PN claw input. A single APL
neuron pools KC spikes through wKCAPL into a synaptic trace Is, which
drives the APL inhibition signal inh; inh feeds back onto every KC
through wAPLKC. Both APL variables use the previous step's spikes.

A KC spikes when its voltage exceeds its threshold; its voltage is then
reset to zero for that step. KC integration starts at the KC start step;
earlier columns stay at zero.
"""

import numpy as np

from olfsim.config.model_params import start_step

# Gain from pooled KC spikes onto the APL synaptic trace.
KC_APL_GAIN = 1e4


def sim_kc_layer(params, rv, pn_t, thr=None, waplkc=None, wkcapl=None):
    """Model the KC response to one odor.

    Parameters
    ----------
    params : ModelParams
    rv : RunVars
        Source of wpnkc and, unless overridden, thr / waplkc / wkcapl.
    pn_t : ndarray (n_gloms, n_steps)
        PN timecourse.
    thr, waplkc, wkcapl : ndarray, optional
        Overrides for the thresholds (N, 1), APL->KC weights (N, 1) and
        KC->APL weights (1, N).

    Returns
    -------
    Vm : ndarray (N, n_steps)
        Membrane voltages.
    spikes : ndarray (N, n_steps)
        1.0 where a KC spiked, else 0.0.
    """
    kc = params.kc
    dt = params.time.dt
    thr = (rv.thr if thr is None else thr).ravel()
    waplkc = (rv.waplkc if waplkc is None else waplkc).ravel()
    wkcapl = (rv.wkcapl if wkcapl is None else wkcapl).ravel()

    N = rv.wpnkc.shape[0]
    n_steps = pn_t.shape[1]
    t0 = start_step(params.time)

    Vm = np.zeros((N, n_steps))
    spikes = np.zeros((N, n_steps))
    if t0 + 1 >= n_steps:
        return Vm, spikes

    # Claw input for every step KC integration touches
    pn_in = rv.wpnkc @ pn_t[:, t0 + 1:]

    k_vm = dt / kc.taum
    k_inh = dt / kc.apl_taum
    k_is = dt / kc.tau_apl2kc
    inh = 0.0
    Is = 0.0
    for t in range(t0 + 1, n_steps):
        dIs = -Is + float(wkcapl @ spikes[:, t - 1]) * KC_APL_GAIN
        dinh = -inh + Is

        v = Vm[:, t - 1] + (-Vm[:, t - 1] + pn_in[:, t - t0 - 1]
                            - waplkc * inh) * k_vm
        inh = inh + dinh * k_inh
        Is = Is + dIs * k_is

        fired = v > thr
        spikes[fired, t] = 1.0
        v[fired] = 0.0
        Vm[:, t] = v

    return Vm, spikes
