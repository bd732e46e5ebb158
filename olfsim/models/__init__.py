"""Layer integrators: ORN, LN, PN and KC."""

from .orn_layer import sim_orn_layer, smoothts_exp
from .ln_layer import sim_ln_layer
from .pn_layer import sim_pn_layer
from .kc_layer import sim_kc_layer
