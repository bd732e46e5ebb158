"""
Plotting utilities for olfactory circuit runs.
"""

import os

import numpy as np
import matplotlib.pyplot as plt

from olfsim.config.model_params import steps_all


FIGURES_DIR = os.path.join(os.path.dirname(os.path.dirname(
    os.path.dirname(os.path.abspath(__file__)))), 'figures')


def ensure_figures_dir(figures_dir=None):
    figures_dir = figures_dir or FIGURES_DIR
    os.makedirs(figures_dir, exist_ok=True)
    return figures_dir


def _save(fig, save_name, figures_dir):
    if save_name:
        figures_dir = ensure_figures_dir(figures_dir)
        fig.savefig(os.path.join(figures_dir, save_name), dpi=150,
                    bbox_inches='tight')
    plt.close(fig)


def plot_layer_timecourses(params, rv, odorid=0, title='', save_name=None,
                           figures_dir=None):
    """Plot ORN, LN inhibition and PN timecourses for one odor.

    Parameters
    ----------
    params : ModelParams
    rv : RunVars
        After run_orn_ln_sims / run_pn_sims.
    odorid : int
    """
    time = params.time
    n_steps = rv.orn_sims[odorid].shape[1]
    # Trimmed timecourses keep only their last n_steps columns
    t_first = time.pre_start + (steps_all(time) - n_steps) * time.dt
    t = t_first + np.arange(n_steps) * time.dt

    fig, axes = plt.subplots(3, 1, figsize=(12, 9), sharex=True)

    axes[0].plot(t, rv.orn_sims[odorid].T, linewidth=0.6)
    axes[0].set_ylabel('ORN rate (Hz)')
    axes[0].set_title(title if title else f'Odor {odorid}')

    axes[1].plot(t, rv.inha_sims[odorid], 'r-', linewidth=1.0, label='inhA')
    axes[1].plot(t, rv.inhb_sims[odorid], 'b-', linewidth=1.0, label='inhB')
    axes[1].set_ylabel('LN inhibition')
    axes[1].legend()

    axes[2].plot(t, rv.pn_sims[odorid].T, linewidth=0.6)
    axes[2].set_ylabel('PN rate (Hz)')
    axes[2].set_xlabel('Time (s)')

    for ax in axes:
        ax.axvspan(time.stim_start, time.stim_end, color='gray', alpha=0.15)
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    _save(fig, save_name, figures_dir)
    return fig


def plot_kc_responses(responses, spike_counts=None, title='', save_name=None,
                      figures_dir=None):
    """Plot the binary KC x odor response matrix and per-odor sparsity."""
    responses = np.asarray(responses)
    n_panels = 3 if spike_counts is not None else 2
    fig, axes = plt.subplots(n_panels, 1, figsize=(12, 3.5 * n_panels))

    axes[0].imshow(responses, aspect='auto', interpolation='nearest',
                   cmap='Greys')
    axes[0].set_ylabel('KC')
    axes[0].set_xlabel('Odor')
    axes[0].set_title(title if title else
                      f'KC responses (sparsity {responses.mean():.3f})')

    axes[1].bar(np.arange(responses.shape[1]), (responses > 0).mean(axis=0),
                color='steelblue')
    axes[1].set_xlabel('Odor')
    axes[1].set_ylabel('Fraction responding')
    axes[1].grid(True, alpha=0.3)

    if spike_counts is not None:
        counts = np.asarray(spike_counts)
        active = counts[counts > 0]
        if active.size:
            axes[2].hist(active, bins=min(30, int(active.max())),
                         color='gray', edgecolor='black', linewidth=0.3)
        axes[2].set_xlabel('Spikes per responding (KC, odor)')
        axes[2].set_ylabel('Count')

    plt.tight_layout()
    _save(fig, save_name, figures_dir)
    return fig
