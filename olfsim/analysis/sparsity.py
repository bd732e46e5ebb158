"""
KC response statistics.

Sparsity here is the fraction of (KC, odor) pairs in which the KC fired
at least once.
"""

import numpy as np


def binarize(spike_counts):
    """1.0 where a KC fired at least once, else 0.0."""
    return (np.asarray(spike_counts) > 0.0).astype(np.float64)


def response_sparsity(responses, odors=None):
    """Population sparsity over all KCs and the given odor columns."""
    responses = binarize(responses)
    if odors is not None:
        responses = responses[:, list(odors)]
    if responses.size == 0:
        return float('nan')
    return float(responses.mean())


def odor_sparsity(responses):
    """Fraction of KCs responding to each odor, shape (n_odors,)."""
    return binarize(responses).mean(axis=0)


def kc_reliability(responses):
    """Fraction of odors each KC responds to, shape (N,)."""
    return binarize(responses).mean(axis=1)


def silent_fraction(responses):
    """Fraction of KCs that respond to no odor at all."""
    return float((binarize(responses).sum(axis=1) == 0).mean())


def summarize_responses(responses, spike_counts=None):
    """Dict of summary statistics for reports."""
    per_odor = odor_sparsity(responses)
    summary = {
        'sparsity': response_sparsity(responses),
        'odor_sparsity_min': float(per_odor.min()),
        'odor_sparsity_max': float(per_odor.max()),
        'odor_sparsity_std': float(per_odor.std()),
        'silent_kc_fraction': silent_fraction(responses),
    }
    if spike_counts is not None:
        active = np.asarray(spike_counts)[np.asarray(spike_counts) > 0]
        summary['mean_spikes_when_active'] = (
            float(active.mean()) if active.size else 0.0)
    return summary
