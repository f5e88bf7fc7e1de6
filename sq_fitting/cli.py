#!/usr/bin/env python3
"""
Fit a superquadric to a point cloud.

Usage:
    sq-fit cloud.pcd --init 0.3 0.2 0.1 1 1 0 0 0 0 0 0
    sq-fit --synthetic 100 --seed 0 --perturb 0.005
"""

import argparse
import numpy as np

from .derivatives import SuperquadricDerivatives
from .logging_config import setup_logging
from .minimizer import Minimizer, MinimizerConfig
from .params import PARAM_NAMES, SQParams, params_to_vector
from .sampling import sample_superquadric, random_initial_guess, perturb

# Shape used for --synthetic runs
DEMO_PARAMS = SQParams(0.3, 0.2, 0.1, 1.0, 1.0, 0.05, -0.02, 0.1, 0.1, -0.05, 0.2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Fit a superquadric to 3D points')
    parser.add_argument('points', type=str, nargs='?', default=None,
                        help='Point file (.pcd, .ply, .xyz, .stl, .obj, ...)')
    parser.add_argument('--synthetic', type=int, default=None, metavar='N',
                        help='Fit N points sampled from a built-in superquadric')
    parser.add_argument('--init', type=float, nargs=len(PARAM_NAMES), default=None,
                        metavar='V', help='Initial guess: ' + ' '.join(PARAM_NAMES))
    parser.add_argument('--random-init', action='store_true',
                        help='Draw the initial guess at random')
    parser.add_argument('--perturb', type=float, default=0.005,
                        help='Synthetic runs: perturbation of the true parameters')
    parser.add_argument('--damping', type=float, default=0.1,
                        help='Damping coefficient')
    parser.add_argument('--max-iter', type=int, default=1000,
                        help='Maximum number of iterations')
    parser.add_argument('--threshold', type=float, default=0.005,
                        help='Convergence threshold on the step norm')
    parser.add_argument('--no-fail-on-singular', action='store_true',
                        help='Keep iterating through singular Newton systems')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--log-file', type=str, default=None)
    parser.add_argument('--no-diagnostics', action='store_true',
                        help='Hide the skipped non-finite entry warnings')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.points is None) == (args.synthetic is None):
        parser.error('give either a point file or --synthetic N')
    if args.points is not None and args.init is None and not args.random_init:
        parser.error('a point file needs --init or --random-init')

    setup_logging(args.log_level, args.log_file, show_diagnostics=not args.no_diagnostics)
    rng = np.random.default_rng(args.seed)

    config = MinimizerConfig(
        damping_coefficient=args.damping,
        max_iterations=args.max_iter,
        convergence_threshold=args.threshold,
        fail_on_singular=not args.no_fail_on_singular,
    )
    minimizer = Minimizer(SuperquadricDerivatives(), config)

    if args.synthetic is not None:
        minimizer.load_points(sample_superquadric(DEMO_PARAMS, args.synthetic, rng))
    else:
        minimizer.load_points(args.points)

    if args.init is not None:
        initial = SQParams.from_sequence(args.init)
    elif args.random_init:
        initial = random_initial_guess(rng)
    else:
        initial = perturb(DEMO_PARAMS, args.perturb, rng)

    result = minimizer.minimize(initial)

    print("=" * 60)
    print(f"Status: {result.status.value} after {result.iterations} iterations")
    print(f"Last step norm: {result.error:.6g}")
    if result.num_skipped:
        print(f"Skipped non-finite entries: {result.num_skipped}")
    for name, value in result.fitted.to_dict().items():
        print(f"  {name:>2s} = {value: .6f}")
    total = SuperquadricDerivatives.total_error(params_to_vector(result.fitted), minimizer.points)
    print(f"Total error: {total:.6g}")
    print("=" * 60)

    return 0 if result.converged else 1


if __name__ == '__main__':
    raise SystemExit(main())
