"""
Quickstart example for the proxcomplete package.

Builds a synthetic rank-2 completion problem and evaluates the log density
and gradient at the usual starting point.  Run with:

    python examples/quickstart.py
"""

from __future__ import annotations

import logging

import numpy as np

from proxcomplete import DensityOracle, check_gradient, make_low_rank_problem, max_relative_error


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    problem, _ = make_low_rank_problem(
        rows=100, cols=100, rank=2, observed_fraction=0.5, noise_std=0.5, lam=0.01, seed=0,
    )
    oracle = DensityOracle(problem)

    theta = problem.initial_theta()
    logp, grad = oracle.evaluate(theta)
    print(f"dim={oracle.dim} log density={logp:.6g} |grad|={np.linalg.norm(grad):.6g}")

    table = check_gradient(oracle, theta, indices=[0, 1, 2, oracle.dim - 2, oracle.dim - 1])
    print(table.to_string(index=False))
    print("max relative error:", max_relative_error(table))


if __name__ == "__main__":
    main()
