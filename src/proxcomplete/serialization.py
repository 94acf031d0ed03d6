"""Persistence helpers for proxcomplete problems."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping

import numpy as np

from .problem import InverseGammaPrior, MatrixCompletionProblem

__all__ = [
    "save_priors_json",
    "load_priors_json",
    "save_problem_npz",
    "load_problem_npz",
]


def save_priors_json(priors: Mapping[str, InverseGammaPrior], path: str | Path) -> None:
    """Persist named inverse-gamma priors to a JSON file."""
    payload = {
        name: {"shape": prior.shape, "scale": prior.scale}
        for name, prior in priors.items()
    }
    Path(path).write_text(json.dumps(payload, indent=2))


def load_priors_json(path: str | Path) -> Dict[str, InverseGammaPrior]:
    """Load priors stored by :func:`save_priors_json`."""
    raw = json.loads(Path(path).read_text())
    return {
        name: InverseGammaPrior(float(spec["shape"]), float(spec["scale"]))
        for name, spec in raw.items()
    }


def save_problem_npz(problem: MatrixCompletionProblem, path: str | Path) -> None:
    """
    Persist a problem to a compressed npz file.

    Unobserved entries of ``Y`` are stored as NaN; they are never read.
    """
    Y = np.full(problem.Y.size, np.nan, dtype=np.float64)
    Y[problem.omega] = problem.y_obs
    state = {
        "Y": Y.reshape(problem.shape, order="F"),
        "omega": problem.omega.astype(np.int64),
        "lam": np.array([problem.lam], dtype=np.float64),
        "sigma2_prior": np.array(
            [problem.sigma2_prior.shape, problem.sigma2_prior.scale], dtype=np.float64
        ),
        "alpha_prior": np.array(
            [problem.alpha_prior.shape, problem.alpha_prior.scale], dtype=np.float64
        ),
    }
    np.savez_compressed(path, **state)


def load_problem_npz(path: str | Path) -> MatrixCompletionProblem:
    """Load a problem stored by :func:`save_problem_npz`."""
    with np.load(path) as blob:
        sig = blob["sigma2_prior"].astype(np.float64)
        alp = blob["alpha_prior"].astype(np.float64)
        return MatrixCompletionProblem(
            Y=blob["Y"].astype(np.float64),
            omega=blob["omega"].astype(np.intp),
            lam=float(blob["lam"][0]),
            sigma2_prior=InverseGammaPrior(float(sig[0]), float(sig[1])),
            alpha_prior=InverseGammaPrior(float(alp[0]), float(alp[1])),
        )
