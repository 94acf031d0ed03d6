"""
Finite-difference checks of the analytic gradient.

Used by the test-suite and handy when wiring the oracle into a new sampler.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np
import pandas as pd

from .oracle import DensityOracle

__all__ = ["check_gradient", "max_relative_error"]


def check_gradient(
    oracle: DensityOracle,
    theta: np.ndarray,
    eps: float = 1e-6,
    indices: Optional[Iterable[int]] = None,
) -> pd.DataFrame:
    """
    Compare the analytic gradient against centred finite differences.

    Parameters
    ----------
    oracle :
        Oracle under test.
    theta :
        Evaluation point.
    eps :
        Finite-difference step.
    indices :
        Coordinates to check; defaults to all of them.

    Returns
    -------
    DataFrame with columns ``index, analytic, numeric, abs_err, rel_err``.
    ``rel_err`` is ``abs_err / max(1, |analytic|)``.
    """
    theta = np.array(theta, dtype=np.float64, copy=True)
    _, analytic = oracle.evaluate(theta)
    idx = np.arange(theta.size) if indices is None else np.asarray(list(indices), dtype=int)

    numeric = np.empty(idx.size, dtype=np.float64)
    for t, i in enumerate(idx):
        orig = theta[i]
        theta[i] = orig + eps
        f_plus = oracle.log_density(theta)
        theta[i] = orig - eps
        f_minus = oracle.log_density(theta)
        theta[i] = orig
        numeric[t] = (f_plus - f_minus) / (2.0 * eps)

    a = analytic[idx]
    abs_err = np.abs(a - numeric)
    return pd.DataFrame(
        {
            "index": idx,
            "analytic": a,
            "numeric": numeric,
            "abs_err": abs_err,
            "rel_err": abs_err / np.maximum(1.0, np.abs(a)),
        }
    )


def max_relative_error(frame: pd.DataFrame) -> float:
    """Largest ``rel_err`` in a :func:`check_gradient` table."""
    return float(frame["rel_err"].max())
