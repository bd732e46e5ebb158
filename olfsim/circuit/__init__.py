from .run_vars import RunVars, get_var, set_var, RUN_VAR_NAMES
from .olfactory_circuit import (
    OlfactoryCircuit, run_orn_ln_sims, run_pn_sims, run_kc_sims,
    remove_before, remove_all_pretime,
)
