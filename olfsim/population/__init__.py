"""KC population: PN->KC wiring, sparsity tuning and thread helpers."""

from .network import build_wpnkc, sample_claws, connection_weights
from .sparsity_tuning import fit_sparseness, choose_kc_thresh, sample_pn_spont
from .parallel import parallel_for, run_team, worker_count
