"""
PN -> KC connectivity builder.

Each KC receives a fixed number of claws. Every claw picks one
glomerulus (PN) at random, with probability proportional to that
glomerulus' connection weight; draws are independent, so a KC may
receive several claws from the same glomerulus. wPNKC[k, g] counts the
claws KC k receives from glomerulus g.

Weights come from observed PN->KC connection frequencies (see
olfsim.data.hc_data.hc_cxn_distrib) or, with kc.uniform_pns, an all-ones
row over the glomeruli.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def connection_weights(params):
    """Return the per-glomerulus claw weights for params.

    Raises
    ------
    ValueError
        If weighted wiring is requested without a usable cxn_distrib.
    """
    n_gloms = params.n_gloms
    if params.kc.uniform_pns:
        weights = np.ones(n_gloms)
        if params.orn.active_gloms is not None:
            weights = weights * np.asarray(params.orn.active_gloms, dtype=bool)
        return weights

    if params.kc.cxn_distrib is None:
        raise ValueError(
            "kc.cxn_distrib must be set when kc.uniform_pns is False")
    weights = np.asarray(params.kc.cxn_distrib, dtype=np.float64).ravel()
    if weights.size != n_gloms:
        raise ValueError(
            f"kc.cxn_distrib has {weights.size} entries, "
            f"expected {n_gloms} (one per glomerulus)")
    return weights


def sample_claws(weights, N, nclaws, rng):
    """Draw an (N, len(weights)) claw-count matrix.

    Parameters
    ----------
    weights : array_like (n_gloms,)
        Non-negative weights; at least one must be positive.
    N : int
        Number of KCs.
    nclaws : int
        Claws per KC.
    rng : np.random.Generator
        Random stream owned by the caller.

    Returns
    -------
    wpnkc : ndarray (N, n_gloms)
        wpnkc[k, g] is the number of claws KC k has on glomerulus g.
    """
    weights = np.asarray(weights, dtype=np.float64)
    if np.any(weights < 0) or not np.all(np.isfinite(weights)):
        raise ValueError("connection weights must be finite and >= 0")
    total = weights.sum()
    if total <= 0:
        raise ValueError("connection weights must contain a positive entry")

    n_gloms = weights.size
    choices = rng.choice(n_gloms, size=(N, nclaws), p=weights / total)

    wpnkc = np.zeros((N, n_gloms))
    rows = np.repeat(np.arange(N), nclaws)
    np.add.at(wpnkc, (rows, choices.ravel()), 1.0)
    return wpnkc


def build_wpnkc(params, rv, rng=None):
    """Regenerate rv.wpnkc. rng defaults to a fresh stream from rv."""
    weights = connection_weights(params)
    if rng is None:
        rng = rv.cxn_rng()
    rv.wpnkc = sample_claws(weights, params.kc.N, params.kc.nclaws, rng)
    rv.log(f"built wPNKC: {params.kc.N} KCs x {params.kc.nclaws} claws "
           f"({'uniform' if params.kc.uniform_pns else 'weighted'})")
    return rv.wpnkc


def connectivity_stats(wpnkc):
    """Summary statistics of a claw-count matrix, for logging/reports."""
    N, n_gloms = wpnkc.shape
    per_glom = wpnkc.sum(axis=0)
    distinct = (wpnkc > 0).sum(axis=1)
    stats = {
        'n_kcs': int(N),
        'n_gloms': int(n_gloms),
        'total_claws': int(wpnkc.sum()),
        'claws_per_glom': per_glom,
        'mean_distinct_gloms_per_kc': float(distinct.mean()) if N else 0.0,
    }
    logger.info(f"wPNKC: {N} KCs, {stats['total_claws']} claws, "
                f"mean distinct gloms/KC={stats['mean_distinct_gloms_per_kc']:.2f}")
    return stats
