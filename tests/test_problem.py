import dataclasses

import numpy as np
import pytest

from proxcomplete import InverseGammaPrior, MatrixCompletionProblem, observed_indices


def _small_problem():
    Y = np.arange(6, dtype=float).reshape(2, 3)
    mask = np.array([[True, False, True], [False, True, True]])
    return MatrixCompletionProblem.from_mask(Y, mask, lam=0.5)


# Test 1
def test_observed_indices_are_column_major():
    mask = np.array([[True, False, True], [False, True, True]])
    assert observed_indices(mask).tolist() == [0, 3, 4, 5]


# Test 2
def test_problem_sizes():
    prob = _small_problem()
    assert prob.shape == (2, 3)
    assert prob.n_obs == 4
    assert prob.rank_dim == 2
    assert prob.dim == 8
    assert prob.y_obs.tolist() == [0.0, 4.0, 2.0, 5.0]
    assert np.array_equal(prob.mask, [[True, False, True], [False, True, True]])


# Test 3
def test_pack_and_unpack_layout():
    prob = _small_problem()
    X = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    theta = prob.pack(X, 0.25, -1.0)
    assert theta[:6].tolist() == [1.0, 4.0, 2.0, 5.0, 3.0, 6.0]
    X2, log_alpha, log_sigma2 = prob.unpack(theta)
    assert np.array_equal(X2, X)
    assert (log_alpha, log_sigma2) == (0.25, -1.0)
    with pytest.raises(ValueError):
        prob.unpack(theta[:-1])


# Test 4
def test_initial_theta_zero_fills_unobserved_entries():
    prob = _small_problem()
    theta = prob.initial_theta()
    X0, log_alpha, log_sigma2 = prob.unpack(theta)
    assert np.array_equal(X0, [[0.0, 0.0, 2.0], [0.0, 4.0, 5.0]])
    nuc = np.sum(np.linalg.svd(X0, compute_uv=False))
    assert log_alpha == pytest.approx(np.log(nuc))
    assert log_sigma2 == 0.0
    theta = prob.initial_theta(alpha=2.0, sigma2=3.0)
    assert theta[-2:] == pytest.approx([np.log(2.0), np.log(3.0)])


# Test 5
def test_problem_is_read_only():
    prob = _small_problem()
    with pytest.raises(ValueError):
        prob.Y[0, 0] = 1.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        prob.lam = 1.0


# Test 6
def test_unobserved_placeholders_may_be_non_finite():
    Y = np.array([[1.0, np.nan], [np.inf, 2.0]])
    prob = MatrixCompletionProblem(Y, [0, 3], lam=1.0)
    assert prob.y_obs.tolist() == [1.0, 2.0]


# Test 7
@pytest.mark.parametrize(
    "omega, lam, message",
    [
        ([], 1.0, "at least one"),
        ([0, 0], 1.0, "unique"),
        ([0, 6], 1.0, "lie in"),
        ([0, -1], 1.0, "lie in"),
        ([0, 1], 0.0, "lam"),
        ([0, 1], np.inf, "lam"),
    ],
)
def test_configuration_errors(omega, lam, message):
    with pytest.raises(ValueError, match=message):
        MatrixCompletionProblem(np.zeros((2, 3)), omega, lam=lam)


# Test 8
def test_prior_validation():
    assert InverseGammaPrior.coerce((2.0, 3.0)) == InverseGammaPrior(2.0, 3.0)
    with pytest.raises(ValueError):
        InverseGammaPrior(0.0, 1.0)
    with pytest.raises(ValueError):
        InverseGammaPrior(1.0, -1.0)
    with pytest.raises(ValueError):
        MatrixCompletionProblem(np.zeros((2, 2)), [0], 1.0, sigma2_prior=(1.0, 0.0))


# Test 9
def test_mask_shape_and_type_errors():
    with pytest.raises(ValueError):
        MatrixCompletionProblem.from_mask(np.zeros((2, 3)), np.ones((3, 2), dtype=bool), lam=1.0)
    with pytest.raises(ValueError):
        MatrixCompletionProblem(np.zeros((2, 2)), np.array([True, False, True, False]), lam=1.0)
    with pytest.raises(ValueError):
        MatrixCompletionProblem(np.zeros(4), [0], lam=1.0)
    with pytest.raises(ValueError):
        MatrixCompletionProblem(np.array([[np.nan, 1.0]]), [0], lam=1.0)


# Test 10
@pytest.mark.parametrize("value", [(1.0,), (1.0, 2.0, 3.0), 5.0])
def test_malformed_prior_pair_is_named(value):
    with pytest.raises(ValueError, match="alpha_prior"):
        MatrixCompletionProblem(np.zeros((2, 2)), [0], 1.0, alpha_prior=value)
