"""
Hallem & Carlson (2006) ORN calibration data.

File layout (comma separated, no quoting):
  2 header lines
  one line per odor: 2 id columns, then 24 glomerulus columns holding
    the odor-evoked firing-rate change (Hz)
  a last line with the spontaneous rates in the same 24 columns

The 24 columns map onto glomerulus ids in the 51-glomerulus physical
space (HC_GLOMNUMS). The 8th column is unusable and skipped, leaving
23 glomeruli with data; the others stay at zero and are masked out.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

N_GLOMS_ALL = 51
N_HC_ODORS = 110

# Glomerulus id of each HC data column, in file order.
HC_GLOMNUMS = np.array([
    6, 16, 45, 11, 7, 19, 4,
    -1,  # 8th column: skipped
    38, 5, 44, 20, 28, 32, 21,
    14, 23, 39, 33, 22, 47, 15,
    27, 48,
])
BAD_COLUMN = 7
N_HC_COLUMNS = len(HC_GLOMNUMS)

# Observed frequency with which KC claws land on each HC glomerulus,
# in HC column order.
HC_CXN_WEIGHTS = np.array([
    2.0, 24.0, 4.0, 30.0, 33.0, 8.0, 0.0,
    0.0,  # 8th column: skipped
    29.0, 6.0, 2.0, 4.0, 21.0, 18.0, 4.0,
    12.0, 21.0, 10.0, 27.0, 4.0, 26.0, 7.0,
    26.0, 24.0,
])

_GOOD_COLUMNS = np.array([i for i in range(N_HC_COLUMNS) if i != BAD_COLUMN])


def _to_glom_space(values):
    """Scatter HC-column-ordered rows into the 51-glomerulus space."""
    values = np.atleast_2d(values)
    out = np.zeros((N_GLOMS_ALL, values.shape[0]))
    out[HC_GLOMNUMS[_GOOD_COLUMNS], :] = values[:, _GOOD_COLUMNS].T
    return out


def hc_active_gloms():
    mask = np.zeros(N_GLOMS_ALL, dtype=bool)
    mask[HC_GLOMNUMS[_GOOD_COLUMNS]] = True
    return mask


def hc_cxn_distrib():
    """HC claw weights in the 51-glomerulus space."""
    return _to_glom_space(HC_CXN_WEIGHTS)[:, 0]


def read_hc_table(path):
    """Read the raw HC table.

    Returns
    -------
    delta : ndarray (n_odors_in_file, 24)
    spont : ndarray (24,)
    """
    table = np.loadtxt(path, delimiter=',', skiprows=2,
                       usecols=range(2, 2 + N_HC_COLUMNS), ndmin=2)
    if table.shape[0] < 2:
        raise ValueError(
            f"{path}: expected odor rows followed by a spontaneous-rate row")
    return table[:-1], table[-1]


def load_hc_data(params, path, n_odors=N_HC_ODORS):
    """Fill params.orn and params.kc.cxn_distrib from an HC data file.

    Parameters
    ----------
    params : ModelParams
        Modified in place: orn.spont (51, 1), orn.delta (51, n_odors),
        orn.active_gloms and kc.cxn_distrib.
    path : str
    n_odors : int
        Only the first n_odors odor rows are used.

    Returns
    -------
    params : ModelParams
    """
    delta_rows, spont_row = read_hc_table(path)
    delta_rows = delta_rows[:n_odors]

    params.orn.delta = _to_glom_space(delta_rows)
    params.orn.spont = _to_glom_space(spont_row)
    params.orn.active_gloms = hc_active_gloms()
    params.kc.cxn_distrib = hc_cxn_distrib()

    logger.info(f"Loaded HC data from {path}: {delta_rows.shape[0]} odors, "
                f"{len(_GOOD_COLUMNS)} glomeruli")
    return params
