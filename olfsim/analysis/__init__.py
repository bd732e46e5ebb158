from .sparsity import (
    binarize, response_sparsity, odor_sparsity, kc_reliability,
    silent_fraction, summarize_responses,
)
