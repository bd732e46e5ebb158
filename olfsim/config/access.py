"""
Named access to model parameters.

Host code (the CLI, notebooks, other languages through a thin wrapper)
addresses parameters by dotted name, e.g. "time.stim.start" or
"kc.sp_target". Unknown names raise KeyError.
"""

import numpy as np


# name -> (section, attribute, kind)
PARAM_NAMES = {
    'time.pre_start':      ('time', 'pre_start', float),
    'time.start':          ('time', 'start', float),
    'time.end':            ('time', 'end', float),
    'time.stim.start':     ('time', 'stim_start', float),
    'time.stim.end':       ('time', 'stim_end', float),
    'time.dt':             ('time', 'dt', float),
    'orn.taum':            ('orn', 'taum', float),
    'orn.n_physical_gloms': ('orn', 'n_physical_gloms', int),
    'orn.data.spont':      ('orn', 'spont', 'column'),
    'orn.data.delta':      ('orn', 'delta', 'matrix'),
    'orn.active_gloms':    ('orn', 'active_gloms', 'mask'),
    'ln.taum':             ('ln', 'taum', float),
    'ln.tauGA':            ('ln', 'tauGA', float),
    'ln.tauGB':            ('ln', 'tauGB', float),
    'ln.thr':              ('ln', 'thr', float),
    'ln.inhsc':            ('ln', 'inhsc', float),
    'ln.inhadd':           ('ln', 'inhadd', float),
    'pn.taum':             ('pn', 'taum', float),
    'pn.offset':           ('pn', 'offset', float),
    'pn.tanhsc':           ('pn', 'tanhsc', float),
    'pn.inhsc':            ('pn', 'inhsc', float),
    'pn.inhadd':           ('pn', 'inhadd', float),
    'pn.noise.mean':       ('pn', 'noise_mean', float),
    'pn.noise.sd':         ('pn', 'noise_sd', float),
    'kc.N':                ('kc', 'N', int),
    'kc.nclaws':           ('kc', 'nclaws', int),
    'kc.uniform_pns':      ('kc', 'uniform_pns', bool),
    'kc.cxn_distrib':      ('kc', 'cxn_distrib', 'row'),
    'kc.enable_apl':       ('kc', 'enable_apl', bool),
    'kc.fixed_thr':        ('kc', 'fixed_thr', 'optional_float'),
    'kc.use_homeostatic_thrs': ('kc', 'use_homeostatic_thrs', bool),
    'kc.sp_target':        ('kc', 'sp_target', float),
    'kc.sp_acc':           ('kc', 'sp_acc', float),
    'kc.sp_lr_coeff':      ('kc', 'sp_lr_coeff', float),
    'kc.max_iters':        ('kc', 'max_iters', int),
    'kc.tune_from':        ('kc', 'tune_from', 'index_list'),
    'kc.taum':             ('kc', 'taum', float),
    'kc.apl_taum':         ('kc', 'apl_taum', float),
    'kc.tau_apl2kc':       ('kc', 'tau_apl2kc', float),
    'seed':                (None, 'seed', 'optional_int'),
    'n_workers':           (None, 'n_workers', 'optional_int'),
}


def _parse_bool(value):
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
        raise ValueError(f"Cannot interpret {value!r} as a boolean")
    return bool(value)


def _is_none(value):
    return value is None or (isinstance(value, str)
                             and value.strip().lower() in ('', 'none', 'null'))


def _coerce(kind, value):
    if kind is bool:
        return _parse_bool(value)
    if kind in (int, float):
        return kind(value)
    if kind == 'optional_float':
        return None if _is_none(value) else float(value)
    if kind == 'optional_int':
        return None if _is_none(value) else int(value)
    if kind == 'index_list':
        if isinstance(value, str):
            value = [v for v in value.split(',') if v.strip()]
        return [int(v) for v in value]
    if kind == 'mask':
        return None if value is None else np.asarray(value, dtype=bool).ravel()

    arr = np.asarray(value, dtype=np.float64)
    if kind == 'column':
        return arr.reshape(-1, 1)
    if kind == 'row':
        return arr.ravel()
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    return arr


def _lookup(name):
    try:
        return PARAM_NAMES[name]
    except KeyError:
        raise KeyError(f"invalid model parameter: {name}") from None


def get_param(params, name):
    """Return the value of the parameter called `name`."""
    section, attr, _ = _lookup(name)
    owner = params if section is None else getattr(params, section)
    return getattr(owner, attr)


def set_param(params, name, value):
    """Set the parameter called `name`, coercing `value` to its type.

    Returns the stored value.
    """
    section, attr, kind = _lookup(name)
    coerced = _coerce(kind, value)
    owner = params if section is None else getattr(params, section)
    setattr(owner, attr, coerced)
    return coerced


def apply_overrides(params, overrides):
    """Apply a mapping or iterable of (name, value) pairs to params.

    All names and values are checked before anything is written, so an
    unknown name or a bad value leaves params untouched.
    """
    items = list(overrides.items() if hasattr(overrides, 'items')
                 else overrides)
    resolved = []
    for name, value in items:
        section, attr, kind = _lookup(name)
        resolved.append((section, attr, _coerce(kind, value)))
    for section, attr, value in resolved:
        owner = params if section is None else getattr(params, section)
        setattr(owner, attr, value)
    return params
