"""
proxcomplete package
--------------------

Log-density and gradient oracle for Bayesian matrix completion with a
Moreau-Yosida smoothed low-rank penalty, for use as the target of an external
gradient-based MCMC sampler.
"""

from __future__ import annotations

from ._version import __version__
from .diagnostics import check_gradient, max_relative_error
from .oracle import DensityOracle, Workspace
from .problem import InverseGammaPrior, MatrixCompletionProblem, observed_indices
from .projection import L1EpigraphProjector
from .synthetic import make_low_rank_matrix, make_low_rank_problem

__all__ = [
    "__version__",
    "DensityOracle",
    "InverseGammaPrior",
    "L1EpigraphProjector",
    "MatrixCompletionProblem",
    "Workspace",
    "check_gradient",
    "make_low_rank_matrix",
    "make_low_rank_problem",
    "max_relative_error",
    "observed_indices",
]
