"""
Problem data for Moreau-Yosida smoothed Bayesian matrix completion.

All matrices are flattened in column-major (Fortran) order; observation
indices and the parameter vector follow the same convention.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

__all__ = [
    "InverseGammaPrior",
    "MatrixCompletionProblem",
    "observed_indices",
]

logger = logging.getLogger(__name__)


def _check_positive(name: str, value: float) -> float:
    value = float(value)
    if not (np.isfinite(value) and value > 0.0):
        raise ValueError(f"{name} must be positive and finite, got {value!r}.")
    return value


@dataclass(frozen=True)
class InverseGammaPrior:
    """
    Inverse-gamma hyperparameter pair.

    In the log posterior ``shape`` multiplies the ``1/x`` term and ``scale``
    the ``log x`` term of the log-transformed variable.
    """

    shape: float = 1.0
    scale: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", _check_positive("shape", self.shape))
        object.__setattr__(self, "scale", _check_positive("scale", self.scale))

    @classmethod
    def coerce(cls, value, name: str = "prior") -> "InverseGammaPrior":
        """Accept an existing prior or a ``(shape, scale)`` pair."""
        if isinstance(value, cls):
            return value
        try:
            pair = tuple(value)
        except TypeError:
            raise ValueError(f"{name} must be an InverseGammaPrior or a (shape, scale) pair, got {value!r}.") from None
        if len(pair) != 2:
            raise ValueError(f"{name} must be a (shape, scale) pair, got {len(pair)} values.")
        return cls(pair[0], pair[1])


def observed_indices(mask: np.ndarray) -> np.ndarray:
    """Column-major linear indices of the True entries of a 2D mask."""
    mask = np.asarray(mask, dtype=bool)
    if mask.ndim != 2:
        raise ValueError("mask must be a 2D array.")
    return np.flatnonzero(mask.ravel(order="F"))


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


@dataclass(frozen=True, eq=False)
class MatrixCompletionProblem:
    """
    Fixed data of a matrix completion posterior.

    Parameters
    ----------
    Y :
        Dense (rows, cols) matrix of noisy observations.  Entries outside
        ``omega`` are placeholders and never read.
    omega :
        Unique column-major linear indices of the observed entries.
    lam :
        Moreau-Yosida smoothing scale.
    sigma2_prior, alpha_prior :
        Inverse-gamma priors on the noise variance and on the singular value
        bound ``alpha``.  ``(shape, scale)`` tuples are accepted.

    The instance is immutable and its arrays are read-only, so one problem
    may back any number of concurrently sampled chains.
    """

    Y: np.ndarray = field(repr=False)
    omega: np.ndarray = field(repr=False)
    lam: float
    sigma2_prior: InverseGammaPrior = field(default_factory=InverseGammaPrior)
    alpha_prior: InverseGammaPrior = field(default_factory=InverseGammaPrior)
    y_obs: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        Y = np.array(self.Y, dtype=np.float64, order="F", copy=True)
        if Y.ndim != 2 or 0 in Y.shape:
            raise ValueError(f"Y must be a non-empty 2D array, got shape {Y.shape}.")

        omega = np.asarray(self.omega)
        if omega.dtype == bool:
            raise ValueError("omega must hold linear indices; use from_mask() for boolean masks.")
        omega = np.array(omega, dtype=np.intp, copy=True).ravel()
        if omega.size == 0:
            raise ValueError("omega must contain at least one observed entry.")
        if omega.min() < 0 or omega.max() >= Y.size:
            raise ValueError(f"omega indices must lie in [0, {Y.size}).")
        if np.unique(omega).size != omega.size:
            raise ValueError("omega indices must be unique.")

        y_obs = Y.ravel(order="F")[omega]
        if not np.all(np.isfinite(y_obs)):
            raise ValueError("Observed entries of Y must be finite.")

        object.__setattr__(self, "Y", _readonly(Y))
        object.__setattr__(self, "omega", _readonly(omega))
        object.__setattr__(self, "lam", _check_positive("lam", self.lam))
        object.__setattr__(self, "sigma2_prior", InverseGammaPrior.coerce(self.sigma2_prior, "sigma2_prior"))
        object.__setattr__(self, "alpha_prior", InverseGammaPrior.coerce(self.alpha_prior, "alpha_prior"))
        object.__setattr__(self, "y_obs", _readonly(np.array(y_obs)))

        logger.debug(
            "Matrix completion problem: shape=%s, observed=%d, lam=%.4g",
            Y.shape, omega.size, self.lam,
        )

    @classmethod
    def from_mask(
        cls,
        Y: np.ndarray,
        mask: np.ndarray,
        lam: float,
        sigma2_prior=None,
        alpha_prior=None,
    ) -> "MatrixCompletionProblem":
        """Build a problem from a boolean observation mask."""
        Y = np.asarray(Y)
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != Y.shape:
            raise ValueError(f"mask shape {mask.shape} does not match Y shape {Y.shape}.")
        return cls(
            Y,
            observed_indices(mask),
            lam,
            sigma2_prior if sigma2_prior is not None else InverseGammaPrior(),
            alpha_prior if alpha_prior is not None else InverseGammaPrior(),
        )

    # ------------------------------------------------------------------ #
    # Derived sizes
    # ------------------------------------------------------------------ #

    @property
    def shape(self) -> Tuple[int, int]:
        return self.Y.shape

    @property
    def n_obs(self) -> int:
        return int(self.omega.size)

    @property
    def rank_dim(self) -> int:
        """Number of singular values of a (rows, cols) matrix."""
        return min(self.Y.shape)

    @property
    def dim(self) -> int:
        """Length of the parameter vector."""
        return self.Y.size + 2

    @property
    def mask(self) -> np.ndarray:
        m = np.zeros(self.Y.size, dtype=bool)
        m[self.omega] = True
        return m.reshape(self.Y.shape, order="F")

    # ------------------------------------------------------------------ #
    # Parameter vector layout
    # ------------------------------------------------------------------ #

    def unpack(self, theta: np.ndarray) -> Tuple[np.ndarray, float, float]:
        """Split ``theta`` into ``(X, log_alpha, log_sigma2)``; X is a view."""
        theta = np.asarray(theta, dtype=np.float64)
        if theta.ndim != 1 or theta.size != self.dim:
            raise ValueError(
                f"theta must be a 1D array of length {self.dim}, got shape {theta.shape}."
            )
        n = self.Y.size
        X = theta[:n].reshape(self.Y.shape, order="F")
        return X, float(theta[n]), float(theta[n + 1])

    def pack(self, X: np.ndarray, log_alpha: float, log_sigma2: float) -> np.ndarray:
        X = np.asarray(X, dtype=np.float64)
        if X.shape != self.Y.shape:
            raise ValueError(f"X has shape {X.shape}, expected {self.Y.shape}.")
        return np.concatenate([X.ravel(order="F"), [float(log_alpha), float(log_sigma2)]])

    def zero_filled(self) -> np.ndarray:
        """Y with every unobserved entry replaced by zero."""
        flat = np.zeros(self.Y.size, dtype=np.float64)
        flat[self.omega] = self.y_obs
        return flat.reshape(self.Y.shape, order="F")

    def initial_theta(
        self,
        alpha: Optional[float] = None,
        sigma2: float = 1.0,
    ) -> np.ndarray:
        """
        Starting point for a sampler.

        The matrix block is the zero-filled observation; ``alpha`` defaults to
        the nuclear norm of that matrix and ``sigma2`` to one.
        """
        X0 = self.zero_filled()
        if alpha is None:
            alpha = float(np.sum(np.linalg.svd(X0, compute_uv=False)))
        return self.pack(X0, math.log(alpha), math.log(sigma2))
