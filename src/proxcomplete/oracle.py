"""
Log-posterior density and gradient for proximal matrix completion.

The target is

    log p(X, alpha, sigma2 | Y)  =  -||Y_O - X_O||^2 / (2 sigma2)
                                    - IG terms for sigma2 and alpha
                                    - dist((S(X), alpha), epi ||.||_1)^2 / (2 lam)

expressed in the unconstrained coordinates ``(X, log alpha, log sigma2)``.
The last term is the Moreau-Yosida envelope of the L1 epigraph indicator
applied to the singular values of ``X``; its gradient is pulled back through
the SVD.
"""

from __future__ import annotations

import copy
import logging
from typing import Optional, Tuple

import numpy as np

from ._math import _exp_unchecked, _projection_residual
from .problem import MatrixCompletionProblem
from .projection import L1EpigraphProjector

__all__ = ["DensityOracle", "Workspace"]

logger = logging.getLogger(__name__)


class Workspace:
    """
    Scratch buffers reused by one oracle across evaluations.

    A workspace must never be shared between concurrently running chains.
    """

    def __init__(self, problem: MatrixCompletionProblem) -> None:
        k = problem.rank_dim
        self.residual = np.empty(problem.n_obs, dtype=np.float64)
        self.singular = np.empty(k + 1, dtype=np.float64)
        self.projected = np.empty(k + 1, dtype=np.float64)


class DensityOracle:
    """
    Evaluate the unnormalised log posterior and its gradient.

    Parameters
    ----------
    problem :
        Read-only problem data; may be shared between oracles.
    projector :
        L1 epigraph projector; a default instance is created when omitted.

    One oracle corresponds to one chain.  Use :meth:`spawn` to obtain an
    independent oracle for another chain.
    """

    def __init__(
        self,
        problem: MatrixCompletionProblem,
        projector: Optional[L1EpigraphProjector] = None,
    ) -> None:
        self.problem = problem
        self.projector = projector if projector is not None else L1EpigraphProjector()
        self.workspace = Workspace(problem)
        logger.debug("Density oracle ready: dim=%d", problem.dim)

    def spawn(self) -> "DensityOracle":
        """New oracle over the same problem with its own scratch buffers."""
        return DensityOracle(self.problem, copy.copy(self.projector))

    @property
    def dim(self) -> int:
        return self.problem.dim

    def evaluate(self, theta: np.ndarray) -> Tuple[float, np.ndarray]:
        """
        Return ``(log_density, gradient)`` at ``theta``.

        ``theta`` holds the column-major flattened matrix followed by
        ``log alpha`` and ``log sigma2``.  The returned gradient is a new
        array of the same length.
        """
        prob = self.problem
        ws = self.workspace
        X, log_alpha, log_sigma2 = prob.unpack(theta)
        n = X.size
        k = prob.rank_dim
        # shape enters the 1/x terms, scale the log-coordinate coefficients
        r_sig, s_sig = prob.sigma2_prior.shape, prob.sigma2_prior.scale
        r_alp, s_alp = prob.alpha_prior.shape, prob.alpha_prior.scale

        alpha = _exp_unchecked(log_alpha)
        sigma2 = _exp_unchecked(log_sigma2)

        grad = np.zeros(prob.dim, dtype=np.float64)
        if np.isnan(alpha):
            grad.fill(np.nan)
            return float("nan"), grad

        x_flat = np.asarray(theta, dtype=np.float64)[:n]

        with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
            # Gaussian data fit with the sigma2 prior folded in
            res = np.subtract(prob.y_obs, x_flat[prob.omega], out=ws.residual)
            qf = (float(res @ res) + 2.0 * r_sig) / (2.0 * sigma2)
            sig_coef = 0.5 * prob.n_obs + s_sig
            logp = -qf - sig_coef * log_sigma2 - r_alp / alpha - s_alp * log_alpha

            grad[prob.omega] = res / sigma2
            grad[n] = r_alp / alpha - s_alp
            grad[n + 1] = qf - sig_coef

        # Singular value penalty; LinAlgError propagates to the caller.
        U, S, Vt = np.linalg.svd(X, full_matrices=False)
        v = ws.singular
        v[:k] = S
        v[k] = alpha
        p = self.projector.project(v, out=ws.projected)

        with np.errstate(over="ignore", invalid="ignore"):
            delta = _projection_residual(v, p)
            lam = prob.lam
            logp -= float(delta @ delta) / (2.0 * lam)

            if np.any(delta[:k]):
                G = (U * delta[:k]) @ Vt
                grad[:n] -= G.ravel(order="F") / lam
            if delta[k] != 0.0:
                grad[n] -= alpha * delta[k] / lam

        return float(logp), grad

    __call__ = evaluate

    def log_density(self, theta: np.ndarray) -> float:
        return self.evaluate(theta)[0]

    def gradient(self, theta: np.ndarray) -> np.ndarray:
        return self.evaluate(theta)[1]
