"""Model parameters, defaults and named access."""

from .model_params import (
    TimeParams, ORNParams, LNParams, PNParams, KCParams, ModelParams,
    default_params, n_model_gloms,
    span_steps, start_step, steps_all, steps,
    stim_start_step, stim_end_step, stim_row,
    validate_time, validate_data, validate_params, validate_tune_from,
)
from .access import PARAM_NAMES, get_param, set_param, apply_overrides
