"""
Euclidean projection onto the epigraph of the L1 norm.

The projection of ``v = (x, s)`` onto ``{(y, t) : ||y||_1 <= t}`` is a soft
threshold of ``x`` with a level ``lam*`` that also lifts the bound to
``s + lam*``.  The level is the unique root of a monotone scalar function and
is located by bisection, then polished on the identified active set.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from ._math import _l1_excess, _projection_residual, _soft_threshold

__all__ = ["L1EpigraphProjector"]

logger = logging.getLogger(__name__)


class L1EpigraphProjector:
    """
    Projector onto ``{(y, t) : ||y||_1 <= t}``.

    Parameters
    ----------
    tol :
        Bisection stops once the bracket is narrower than
        ``tol * (1 + max|x_i|)``.
    max_iter :
        Hard cap on bisection steps.
    """

    def __init__(self, tol: float = 1e-12, max_iter: int = 200) -> None:
        if not tol > 0:
            raise ValueError("tol must be positive.")
        if int(max_iter) < 1:
            raise ValueError("max_iter must be at least 1.")
        self.tol = float(tol)
        self.max_iter = int(max_iter)
        self.n_iter_: int = 0

    # ------------------------------------------------------------------ #
    # Root finding
    # ------------------------------------------------------------------ #

    @staticmethod
    def is_feasible(x: np.ndarray, s: float) -> bool:
        """
        True when ``(x, s)`` already lies in the epigraph.

        A negative bound is only admitted for an exactly zero ``x``.
        """
        if s == np.inf:
            return True
        return float(np.sum(np.abs(x))) <= max(s, 0.0)

    def threshold(self, x: np.ndarray, s: float) -> float:
        """
        Return the root ``lam*`` of ``sum(max(|x| - lam, 0)) - lam - s``.

        Only meaningful for infeasible points; raises ``RuntimeError`` when
        the root is not bracketed by ``[0, max|x_i|]``.
        """
        abs_x = np.abs(np.asarray(x, dtype=np.float64))
        s = float(s)
        if np.isnan(s) or np.any(np.isnan(abs_x)):
            raise ValueError("Cannot project a point containing NaN.")

        lo = 0.0
        hi = float(np.max(abs_x)) if abs_x.size else 0.0
        f_lo = _l1_excess(abs_x, lo, s)
        f_hi = _l1_excess(abs_x, hi, s)
        if f_lo < 0.0 or f_hi > 0.0:
            raise RuntimeError(
                f"L1 epigraph root is not bracketed: phi(0)={f_lo:.6g}, "
                f"phi({hi:.6g})={f_hi:.6g} (s={s:.6g})."
            )

        width_tol = self.tol * (1.0 + hi)
        self.n_iter_ = 0
        for it in range(1, self.max_iter + 1):
            mid = 0.5 * (lo + hi)
            if _l1_excess(abs_x, mid, s) > 0.0:
                lo = mid
            else:
                hi = mid
            self.n_iter_ = it
            if hi - lo <= width_tol:
                break
        else:
            logger.warning(
                "Bisection stopped after %d iterations with bracket width %.3e.",
                self.max_iter, hi - lo,
            )

        lam = 0.5 * (lo + hi)

        # phi is affine between consecutive |x_i|; solve exactly on the
        # active set found by bisection.
        active = abs_x > lam
        polished = (float(np.sum(abs_x[active])) - s) / (int(np.count_nonzero(active)) + 1)
        if lo <= polished <= hi or abs(_l1_excess(abs_x, polished, s)) < abs(_l1_excess(abs_x, lam, s)):
            lam = max(polished, 0.0)
        return lam

    # ------------------------------------------------------------------ #
    # Projection API
    # ------------------------------------------------------------------ #

    def project(self, v: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Project ``v = (x, s)`` onto the L1 epigraph.

        Parameters
        ----------
        v :
            1D array of length ``k + 1``; the last entry is the bound ``s``.
        out :
            Optional output buffer of the same length as ``v``.
        """
        v = np.asarray(v, dtype=np.float64)
        if v.ndim != 1 or v.size < 1:
            raise ValueError("v must be a non-empty 1D array.")
        if out is None:
            out = np.empty_like(v)
        elif out.shape != v.shape:
            raise ValueError(f"out has shape {out.shape}, expected {v.shape}.")

        x = v[:-1]
        s = float(v[-1])
        if self.is_feasible(x, s):
            logger.debug("L1 epigraph point already feasible (s=%.6g).", s)
            out[:] = v
            return out

        lam = self.threshold(x, s)
        logger.debug("L1 epigraph threshold %.6g after %d bisection steps.", lam, self.n_iter_)
        _soft_threshold(x, lam, out=out[:-1])
        out[-1] = s + lam
        return out

    def moreau_envelope(
        self,
        v: np.ndarray,
        lam: float,
        out: Optional[np.ndarray] = None,
    ) -> Tuple[float, np.ndarray]:
        """
        Moreau-Yosida envelope of the epigraph indicator at ``v``.

        Returns ``(||v - P(v)||^2 / (2 lam), P(v))``; the value is exactly zero
        when ``v`` is already feasible.
        """
        projected = self.project(v, out=out)
        delta = _projection_residual(np.asarray(v, dtype=np.float64), projected)
        return float(delta @ delta) / (2.0 * float(lam)), projected
