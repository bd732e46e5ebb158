"""
Command-line runner for the olfactory circuit model.

Loads Hallem-Carlson ORN data, applies parameter overrides, runs
ORN/LN -> PN -> KC (with connectivity regeneration and sparsity tuning)
and writes a JSON summary.

Usage:
  python run_model.py hc_data.csv
  python run_model.py hc_data.csv --set kc.sp_target=0.05 --set kc.N=1000
  python run_model.py hc_data.csv --seed 1 --workers 8 --figures
  python run_model.py hc_data.csv --log run.log --output results.json
"""

import argparse
import json
import logging
import os
import time

import numpy as np

from olfsim.config import default_params, apply_overrides, get_param
from olfsim.circuit import OlfactoryCircuit
from olfsim.data import load_hc_data, N_HC_ODORS
from olfsim.analysis import summarize_responses

logger = logging.getLogger(__name__)


def parse_override(text):
    """Split 'name=value' into (name, value)."""
    name, sep, value = text.partition('=')
    if not sep or not name:
        raise argparse.ArgumentTypeError(
            f"expected name=value, got {text!r}")
    return name.strip(), value.strip()


def build_params(args):
    params = default_params()
    load_hc_data(params, args.data, n_odors=args.n_odors)
    overrides = list(args.set)
    if args.seed is not None:
        overrides.append(('seed', args.seed))
    if args.workers is not None:
        overrides.append(('n_workers', args.workers))
    apply_overrides(params, overrides)
    return params


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='ORN -> LN -> PN -> KC olfactory circuit model')
    parser.add_argument('data', help='Hallem-Carlson ORN data file (CSV)')
    parser.add_argument('--set', type=parse_override, action='append',
                        default=[], metavar='NAME=VALUE',
                        help='Override a model parameter, e.g. kc.N=1000')
    parser.add_argument('--n-odors', type=int, default=N_HC_ODORS,
                        help='Number of odors to load from the data file')
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker threads (default: all cores)')
    parser.add_argument('--trim', action='store_true',
                        help='Drop settling columns after the run')
    parser.add_argument('--log', type=str, default=None,
                        help='Append the run log to this file')
    parser.add_argument('--output', type=str, default='results.json',
                        help='Output JSON file')
    parser.add_argument('--figures', action='store_true',
                        help='Save figures to figures/')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    params = build_params(args)
    circuit = OlfactoryCircuit(params)
    if args.log:
        circuit.rv.log.redirect(args.log)

    print("=" * 60)
    print("Olfactory circuit model")
    print("=" * 60)
    print(f"Glomeruli:     {params.n_gloms}")
    print(f"Odors:         {params.n_odors}")
    print(f"KCs:           {params.kc.N} x {params.kc.nclaws} claws")
    print(f"Target sp.:    {params.kc.sp_target} +/- "
          f"{params.kc.sp_acc * 100:.0f}%")
    print(f"APL:           {'on' if params.kc.enable_apl else 'off'}")
    print("=" * 60)

    t0 = time.time()
    results = circuit.run(regen=True, trim=args.trim)
    elapsed = time.time() - t0

    summary = summarize_responses(results['responses'],
                                  results['spike_counts'])
    print(f"\nCompleted in {elapsed:.1f}s")
    print(f"Tuning iterations: {results['tuning_iters']}")
    print(f"Response sparsity: {summary['sparsity']:.4f}")
    print(f"Silent KCs:        {summary['silent_kc_fraction']:.3f}")

    output = {
        'metadata': {
            'data': args.data,
            'overrides': {name: value for name, value in args.set},
            'seed': get_param(params, 'seed'),
            'n_workers': get_param(params, 'n_workers'),
            'elapsed_s': elapsed,
        },
        'tuning_iters': int(results['tuning_iters']),
        'tuning_sparsity': (None if np.isnan(results['tuning_sparsity'])
                            else float(results['tuning_sparsity'])),
        'summary': summary,
        'thr_mean': float(np.mean(results['thr'])),
        'wAPLKC_mean': float(np.mean(results['wAPLKC'])),
    }
    with open(args.output, 'w') as f:
        json.dump(output, f, indent=2)
    print(f"\nResults saved to {os.path.abspath(args.output)}")

    if args.figures:
        try:
            _generate_figures(params, circuit.rv)
            print("Figures saved to figures/")
        except Exception as e:
            print(f"Figure generation failed (non-critical): {e}")

    circuit.rv.log.disable()
    return output


def _generate_figures(params, rv):
    import matplotlib
    matplotlib.use('Agg')
    from olfsim.analysis.plotting import (
        plot_layer_timecourses, plot_kc_responses)

    plot_layer_timecourses(params, rv, odorid=0,
                           save_name='layer_timecourses_odor0.png')
    plot_kc_responses(rv.responses, rv.spike_counts,
                      save_name='kc_responses.png')


if __name__ == '__main__':
    main()
