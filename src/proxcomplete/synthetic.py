"""Synthetic low-rank completion problems for experiments and tests."""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .problem import InverseGammaPrior, MatrixCompletionProblem

__all__ = ["make_low_rank_matrix", "make_low_rank_problem"]


def make_low_rank_matrix(
    rows: int,
    cols: int,
    rank: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Random rank-``rank`` matrix U diag(S) V^T with orthonormal factors.

    Singular values are drawn uniformly from [1, 2) and scaled by
    ``sqrt(rows * cols)`` so entries are of order one.
    """
    if not 1 <= rank <= min(rows, cols):
        raise ValueError(f"rank must lie in [1, {min(rows, cols)}], got {rank}.")
    U, _ = np.linalg.qr(rng.standard_normal((rows, rank)))
    V, _ = np.linalg.qr(rng.standard_normal((cols, rank)))
    S = np.sort(rng.uniform(1.0, 2.0, size=rank))[::-1] * np.sqrt(rows * cols) / rank
    return (U * S) @ V.T


def make_low_rank_problem(
    rows: int = 100,
    cols: int = 100,
    rank: int = 2,
    observed_fraction: float = 0.5,
    noise_std: float = 0.5,
    lam: float = 0.01,
    seed: Optional[int] = 0,
    sigma2_prior: InverseGammaPrior | Tuple[float, float] = (1.0, 1.0),
    alpha_prior: InverseGammaPrior | Tuple[float, float] = (1.0, 1.0),
) -> Tuple[MatrixCompletionProblem, np.ndarray]:
    """
    Noisy, uniformly masked observation of a random low-rank matrix.

    Returns
    -------
    problem :
        The completion problem; ``problem.Y`` holds the full noisy grid.
    truth :
        The noiseless low-rank matrix.
    """
    if not 0.0 < observed_fraction <= 1.0:
        raise ValueError("observed_fraction must lie in (0, 1].")
    if noise_std < 0:
        raise ValueError("noise_std must be non-negative.")

    rng = np.random.default_rng(seed)
    truth = make_low_rank_matrix(rows, cols, rank, rng)
    Y = truth + noise_std * rng.standard_normal((rows, cols))
    mask = rng.uniform(size=(rows, cols)) < observed_fraction
    if not mask.any():
        mask.flat[rng.integers(mask.size)] = True

    problem = MatrixCompletionProblem.from_mask(
        Y, mask, lam, sigma2_prior=sigma2_prior, alpha_prior=alpha_prior,
    )
    return problem, truth
