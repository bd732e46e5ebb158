"""
Shared fixtures: a small circuit that runs in well under a second.

The timeline uses dt = 2**-10 s so every step count is exact:
  steps_all = 512, start_step = 128, steps = 384,
  stimulus on steps [256, 384).
"""
import sys
import os

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from olfsim.config import default_params


SMALL_SPONT = np.array([10.0, 20.0, 5.0, 15.0])
SMALL_DELTA = np.array([
    [80.0, 0.0, 40.0, 150.0, -5.0, 20.0],
    [0.0, 120.0, 30.0, 10.0, 60.0, -10.0],
    [50.0, 50.0, 0.0, 90.0, 5.0, 200.0],
    [10.0, -8.0, 100.0, 0.0, 70.0, 30.0],
])


def make_small_params(**kc_overrides):
    p = default_params()
    p.time.pre_start = -0.25
    p.time.start = -0.125
    p.time.stim_start = 0.0
    p.time.stim_end = 0.125
    p.time.end = 0.25
    p.time.dt = 2.0 ** -10

    p.orn.spont = SMALL_SPONT.reshape(-1, 1).copy()
    p.orn.delta = SMALL_DELTA.copy()
    p.orn.n_physical_gloms = 8

    p.kc.N = 60
    p.kc.nclaws = 3
    p.kc.uniform_pns = True
    p.kc.max_iters = 4
    p.seed = 1234
    p.n_workers = 2
    for name, value in kc_overrides.items():
        setattr(p.kc, name, value)
    return p


@pytest.fixture
def small_params():
    return make_small_params()
