"""
Scalar and vector kernels shared by the projector and the density oracle.

Soft thresholding, the L1 epigraph root function and overflow-tolerant
exponentials live here so the higher level modules stay free of numerical
bookkeeping.
"""

from __future__ import annotations

import numpy as np

__all__ = [
    "_soft_threshold",
    "_l1_excess",
    "_exp_unchecked",
    "_projection_residual",
]


def _soft_threshold(w: np.ndarray, thresh: float, out: np.ndarray | None = None) -> np.ndarray:
    """Proximal operator for the L1 norm."""
    mag = np.maximum(np.abs(w) - thresh, 0.0)
    if out is None:
        return np.sign(w) * mag
    np.multiply(np.sign(w), mag, out=out)
    return out


def _l1_excess(abs_x: np.ndarray, lam: float, s: float) -> float:
    """
    Root function of the L1 epigraph projection.

    phi(lam) = sum_i max(|x_i| - lam, 0) - lam - s

    Parameters
    ----------
    abs_x :
        Absolute values of the vector part.
    lam :
        Candidate threshold.
    s :
        Scale bound (last coordinate of the projected point).
    """
    return float(np.sum(np.maximum(abs_x - lam, 0.0)) - lam - s)


def _exp_unchecked(z: float) -> np.float64:
    """
    exp without overflow warnings; inf/0 are returned as-is.

    The result stays a numpy scalar so later divisions by an underflowed
    value give inf/nan under ``np.errstate`` instead of raising.
    """
    with np.errstate(over="ignore", under="ignore"):
        return np.exp(np.float64(z))


def _projection_residual(v: np.ndarray, projected: np.ndarray) -> np.ndarray:
    """v - P(v), with coordinates the projection left untouched set to zero."""
    with np.errstate(invalid="ignore"):
        return np.where(projected == v, 0.0, v - projected)
