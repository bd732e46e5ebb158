"""
Per-run storage for the olfactory circuit.

RunVars holds everything a run produces: ORN/LN/PN timecourses (one
array per odor), the PN->KC wiring, the APL<->KC weights, KC thresholds
and the KC response matrices. All arrays are allocated up front from a
ModelParams snapshot; their shapes never change afterwards except when
remove_all_pretime() drops the settling columns.
"""

import numpy as np

from olfsim.config.model_params import steps_all, validate_params
from olfsim.utils.run_logger import RunLogger


class RunVars:
    """Simulation state for one run of the circuit."""

    def __init__(self, params):
        validate_params(params)
        n_gloms = params.n_gloms
        n_odors = params.n_odors
        n_steps = steps_all(params.time)
        N = params.kc.N

        self.n_gloms = n_gloms
        self.n_odors = n_odors
        self.N = N

        # ORN / LN / PN timecourses
        self.orn_sims = [np.zeros((n_gloms, n_steps)) for _ in range(n_odors)]
        self.inha_sims = [np.zeros(n_steps) for _ in range(n_odors)]
        self.inhb_sims = [np.zeros(n_steps) for _ in range(n_odors)]
        self.pn_sims = [np.zeros((n_gloms, n_steps)) for _ in range(n_odors)]

        # KC wiring, weights and thresholds
        self.wpnkc = np.zeros((N, n_gloms))
        self.waplkc = np.zeros((N, 1))
        self.wkcapl = np.zeros((1, N))
        self.thr = np.zeros((N, 1))

        # KC output
        self.responses = np.zeros((N, n_odors))
        self.spike_counts = np.zeros((N, n_odors))
        self.tuning_iters = 0
        self.sparsity = float('nan')

        # Stages that have been run, in order
        self.completed = set()

        self.log = RunLogger()

        # Independent random streams: PN->KC wiring and PN noise
        self._seed_seq = np.random.SeedSequence(params.seed)
        self._cxn_seq, self._noise_seq = self._seed_seq.spawn(2)

    def cxn_rng(self):
        """Fresh generator for one PN->KC wiring draw."""
        return np.random.default_rng(self._cxn_seq.spawn(1)[0])

    def noise_rngs(self, n):
        """n independent generators for PN noise, one per odor."""
        return [np.random.default_rng(s) for s in self._noise_seq.spawn(n)]

    def require(self, stage, needed_by):
        if stage not in self.completed:
            raise RuntimeError(
                f"{needed_by} needs the output of {stage}, "
                f"which has not been run yet")


# name -> attribute
RUN_VAR_NAMES = {
    'orn.sims':        'orn_sims',
    'ln.inhA.sims':    'inha_sims',
    'ln.inhB.sims':    'inhb_sims',
    'pn.sims':         'pn_sims',
    'kc.wPNKC':        'wpnkc',
    'kc.wAPLKC':       'waplkc',
    'kc.wKCAPL':       'wkcapl',
    'kc.thr':          'thr',
    'kc.responses':    'responses',
    'kc.spike_counts': 'spike_counts',
    'kc.tuning_iters': 'tuning_iters',
    'kc.sparsity':     'sparsity',
}


def _lookup(name):
    try:
        return RUN_VAR_NAMES[name]
    except KeyError:
        raise KeyError(f"invalid run variable: {name}") from None


def get_var(rv, name):
    """Return the run variable called `name`."""
    return getattr(rv, _lookup(name))


def set_var(rv, name, value):
    """Replace the run variable called `name`, keeping its shape."""
    attr = _lookup(name)
    current = getattr(rv, attr)

    if isinstance(current, list):
        value = [np.asarray(v, dtype=np.float64) for v in value]
        if len(value) != len(current) or any(
                v.shape != c.shape for v, c in zip(value, current)):
            raise ValueError(f"{name}: shape mismatch with stored timecourses")
    elif isinstance(current, np.ndarray):
        value = np.asarray(value, dtype=np.float64)
        if value.size == current.size:
            value = value.reshape(current.shape)
        else:
            raise ValueError(
                f"{name}: expected shape {current.shape}, got {value.shape}")
    elif attr == 'tuning_iters':
        value = int(value)
    else:
        value = float(value)

    setattr(rv, attr, value)
    return value
