"""olfsim: ORN -> LN -> PN -> KC olfactory circuit model.

Simulates the Drosophila olfactory pathway from receptor neurons to
Kenyon cells and tunes KC thresholds and APL feedback inhibition to a
target KC response sparsity.
"""

from olfsim.config import ModelParams, default_params, get_param, set_param
from olfsim.circuit import (
    RunVars, OlfactoryCircuit, run_orn_ln_sims, run_pn_sims, run_kc_sims,
    remove_all_pretime, get_var, set_var,
)
from olfsim.population import build_wpnkc, fit_sparseness

__version__ = "0.1.0"
