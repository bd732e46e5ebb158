from .hc_data import (
    load_hc_data, read_hc_table, hc_active_gloms, hc_cxn_distrib,
    HC_GLOMNUMS, HC_CXN_WEIGHTS, N_GLOMS_ALL, N_HC_ODORS,
)
