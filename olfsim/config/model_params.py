"""
Model parameters for the ORN -> LN -> PN -> KC olfactory circuit.

Parameters never contain data generated during modelling; everything
produced by a run lives in RunVars (olfsim.circuit.run_vars).

Timeline (seconds, all relative to stimulus onset at t = 0):
  pre_start : ORN/LN/PN layers start integrating (settling period)
  start     : KC layer starts integrating
  stim      : odor presentation window [stim_start, stim_end)
  end       : end of the simulation

Default values follow Kennedy (2019) as used by the olfsysm model.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np


# Step counts are truncated like an integer cast; the tolerance absorbs
# binary rounding of dt (e.g. 0.75 / 0.5e-3 landing on 1499.9999...).
_STEP_EPS = 1e-6


@dataclass
class TimeParams:
    pre_start: float = -2.0
    start: float = -0.5
    end: float = 0.75
    stim_start: float = 0.0
    stim_end: float = 0.5
    dt: float = 0.5e-3


@dataclass
class ORNParams:
    taum: float = 0.01
    # Number of glomeruli in the physical system; scales LN input.
    n_physical_gloms: int = 51
    # Calibration data (not set by default_params()):
    #   spont : (n_gloms, 1) spontaneous firing rates
    #   delta : (n_gloms, n_odors) odor-evoked rate changes
    spont: Optional[np.ndarray] = None
    delta: Optional[np.ndarray] = None
    # Glomeruli carrying real data; None means all of them.
    active_gloms: Optional[np.ndarray] = None


@dataclass
class LNParams:
    taum: float = 0.01
    tauGA: float = 0.1
    tauGB: float = 0.4
    thr: float = 1.0
    inhsc: float = 500.0
    inhadd: float = 200.0


@dataclass
class PNParams:
    taum: float = 0.01
    offset: float = 2.9410
    tanhsc: float = 5.3395
    inhsc: float = 368.6631
    inhadd: float = 31.4088
    noise_mean: float = 0.0
    noise_sd: float = 0.0


@dataclass
class KCParams:
    N: int = 2000
    nclaws: int = 6
    # Uniform PN choice, or weighted by cxn_distrib (length n_gloms).
    uniform_pns: bool = False
    cxn_distrib: Optional[np.ndarray] = None
    enable_apl: bool = True
    # A fixed threshold overrides threshold selection and APL tuning.
    fixed_thr: Optional[float] = None
    use_homeostatic_thrs: bool = False
    sp_target: float = 0.1
    sp_acc: float = 0.1
    sp_lr_coeff: float = 10.0
    max_iters: int = 10
    # 0-based odor ids used for tuning; empty means all odors.
    tune_from: List[int] = field(default_factory=list)
    taum: float = 0.01
    apl_taum: float = 0.05
    tau_apl2kc: float = 0.01


@dataclass
class ModelParams:
    time: TimeParams = field(default_factory=TimeParams)
    orn: ORNParams = field(default_factory=ORNParams)
    ln: LNParams = field(default_factory=LNParams)
    pn: PNParams = field(default_factory=PNParams)
    kc: KCParams = field(default_factory=KCParams)
    # Root seed for every random stream of a run; None draws OS entropy.
    seed: Optional[int] = None
    # Thread count for per-odor loops; None uses every CPU.
    n_workers: Optional[int] = None

    @property
    def n_gloms(self):
        return 0 if self.orn.delta is None else self.orn.delta.shape[0]

    @property
    def n_odors(self):
        return 0 if self.orn.delta is None else self.orn.delta.shape[1]


def n_model_gloms(orn):
    """Number of glomeruli carrying data (all of them if no mask is set)."""
    if orn.active_gloms is None:
        return np.asarray(orn.delta).shape[0]
    return int(np.count_nonzero(orn.active_gloms))


def default_params():
    """Return a fresh ModelParams with default values and no data."""
    return ModelParams()


# -----------------------------------------------------------------------
# Derived timeline quantities
# -----------------------------------------------------------------------

def span_steps(span, dt):
    """Whole timesteps in a span of seconds."""
    return int(np.floor(span / dt + _STEP_EPS))


def start_step(time):
    """Pretime-relative step at which KC integration starts."""
    return span_steps(time.start - time.pre_start, time.dt)


def steps_all(time):
    """Total number of timesteps, pre_start to end."""
    return span_steps(time.end - time.pre_start, time.dt)


def steps(time):
    """Number of "real" timesteps, start to end."""
    return span_steps(time.end - time.start, time.dt)


def stim_start_step(time):
    return span_steps(time.stim_start - time.pre_start, time.dt)


def stim_end_step(time):
    return span_steps(time.stim_end - time.pre_start, time.dt)


def stim_row(time):
    """Row of length steps_all() with ones while the stimulus is on."""
    row = np.zeros(steps_all(time))
    row[stim_start_step(time):stim_end_step(time)] = 1.0
    return row


# -----------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------

def validate_time(time):
    if not time.dt > 0:
        raise ValueError(f"time.dt must be positive, got {time.dt}")
    if not (time.pre_start < time.start <= time.stim_start
            < time.stim_end <= time.end):
        raise ValueError(
            "time grid must satisfy pre_start < start <= stim_start "
            f"< stim_end <= end, got pre_start={time.pre_start}, "
            f"start={time.start}, stim=[{time.stim_start}, "
            f"{time.stim_end}), end={time.end}")


def validate_data(params):
    """Check calibration data shapes. Raises ValueError."""
    orn = params.orn
    if orn.spont is None or orn.delta is None:
        raise ValueError(
            "ORN calibration data missing: set orn.spont and orn.delta "
            "(see olfsim.data.hc_data.load_hc_data)")
    delta = np.asarray(orn.delta)
    if delta.ndim != 2:
        raise ValueError(
            f"orn.delta must be (n_gloms, n_odors), got shape {delta.shape}")
    if delta.shape[1] < 1:
        raise ValueError("orn.delta must hold at least one odor column")
    if np.asarray(orn.spont).size != delta.shape[0]:
        raise ValueError(
            f"orn.spont has {np.asarray(orn.spont).size} entries, "
            f"expected {delta.shape[0]} (one per glomerulus)")
    if orn.active_gloms is not None \
            and np.asarray(orn.active_gloms).size != delta.shape[0]:
        raise ValueError(
            f"orn.active_gloms has {np.asarray(orn.active_gloms).size} "
            f"entries, expected {delta.shape[0]}")
    if orn.active_gloms is not None and not np.any(orn.active_gloms):
        raise ValueError("orn.active_gloms must mark at least one glomerulus")


def validate_params(params):
    """Check the timeline and calibration data of a ModelParams."""
    validate_time(params.time)
    validate_data(params)
    if params.kc.N < 1:
        raise ValueError(f"kc.N must be >= 1, got {params.kc.N}")
    if params.kc.max_iters < 1:
        raise ValueError(
            f"kc.max_iters must be >= 1, got {params.kc.max_iters}")
    validate_tune_from(params)


def validate_tune_from(params):
    """Check that every kc.tune_from id names a loaded odor."""
    for odor in params.kc.tune_from:
        if not 0 <= odor < params.n_odors:
            raise ValueError(
                f"kc.tune_from contains odor {odor}, "
                f"but only {params.n_odors} odors are loaded")
