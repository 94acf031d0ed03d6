import numpy as np
import pytest

from proxcomplete import L1EpigraphProjector
from proxcomplete._math import _l1_excess


def _random_infeasible(rng, k=6):
    x = rng.normal(scale=2.0, size=k)
    s = 0.3 * np.sum(np.abs(x)) * rng.uniform()
    return np.append(x, s)


# Test 1
def test_feasible_point_is_unchanged():
    proj = L1EpigraphProjector()
    v = np.array([0.2, -0.3, 0.1, 1.0])
    out = proj.project(v)
    assert np.array_equal(out, v)
    value, p = proj.moreau_envelope(v, lam=0.1)
    assert value == 0.0
    assert np.array_equal(p, v)


# Test 2
def test_known_projection():
    proj = L1EpigraphProjector()
    out = proj.project(np.array([2.0, 0.0, 0.0]))
    assert np.allclose(out, [1.0, 0.0, 1.0], atol=1e-12)
    assert proj.threshold(np.array([2.0, 0.0]), 0.0) == pytest.approx(1.0, abs=1e-12)


# Test 3
def test_infeasible_projection_lands_on_boundary():
    rng = np.random.default_rng(0)
    proj = L1EpigraphProjector()
    for _ in range(50):
        v = _random_infeasible(rng)
        y, t = proj.project(v)[:-1], proj.project(v)[-1]
        assert np.sum(np.abs(y)) == pytest.approx(t, rel=1e-10, abs=1e-10)
        assert t >= v[-1]


# Test 4
def test_projection_optimality_conditions():
    rng = np.random.default_rng(1)
    proj = L1EpigraphProjector()
    for _ in range(20):
        v = _random_infeasible(rng)
        p = proj.project(v)
        x, y = v[:-1], p[:-1]
        lam = p[-1] - v[-1]
        assert lam >= 0.0
        nz = y != 0.0
        assert np.allclose((x - y)[nz], lam * np.sign(y[nz]), atol=1e-10)
        assert np.all(np.abs(x[~nz]) <= lam + 1e-10)


# Test 5
def test_projection_is_idempotent():
    rng = np.random.default_rng(2)
    proj = L1EpigraphProjector()
    feasible = np.array([0.5, -0.25, 1.0])
    once = proj.project(feasible)
    assert np.array_equal(proj.project(once), once)

    v = _random_infeasible(rng)
    once = proj.project(v)
    twice = proj.project(once)
    assert np.allclose(twice, once, atol=1e-12)


# Test 6
def test_root_function_is_monotone_and_root_is_accurate():
    rng = np.random.default_rng(3)
    proj = L1EpigraphProjector()
    v = _random_infeasible(rng, k=10)
    x, s = v[:-1], v[-1]
    abs_x = np.abs(x)
    grid = np.linspace(0.0, abs_x.max(), 200)
    phi = np.array([_l1_excess(abs_x, g, s) for g in grid])
    assert np.all(np.diff(phi) <= 1e-12)
    lam = proj.threshold(x, s)
    assert 0.0 <= lam <= abs_x.max()
    assert abs(_l1_excess(abs_x, lam, s)) < 1e-9


# Test 7
def test_zero_vector_with_zero_bound_is_feasible():
    proj = L1EpigraphProjector()
    v = np.zeros(5)
    assert np.array_equal(proj.project(v), v)


# Test 8
def test_infinite_bound_short_circuits():
    proj = L1EpigraphProjector()
    v = np.array([1e300, -5.0, 3.0, np.inf])
    out = proj.project(v)
    assert np.array_equal(out, v)
    value, _ = proj.moreau_envelope(np.array([4.0, np.inf]), lam=1.0)
    assert value == 0.0


# Test 9
def test_negative_bound_with_nonzero_vector_is_projected():
    proj = L1EpigraphProjector()
    v = np.array([3.0, -1.0, -0.5])
    out = proj.project(v)
    assert np.allclose(out, [1.25, 0.0, 1.25], atol=1e-12)
    assert not np.array_equal(out, v)


# Test 10
def test_negative_bound_with_zero_vector_is_admitted():
    proj = L1EpigraphProjector()
    v = np.array([0.0, 0.0, -2.0])
    assert np.array_equal(proj.project(v), v)


# Test 11
def test_unbracketed_root_fails_loudly():
    proj = L1EpigraphProjector()
    with pytest.raises(RuntimeError):
        proj.project(np.array([1.0, -0.5, -3.0]))
    with pytest.raises(ValueError):
        proj.project(np.array([np.nan, 1.0, 0.5]))


# Test 12
def test_output_buffer_is_filled_in_place():
    proj = L1EpigraphProjector()
    v = np.array([2.0, 0.0, 0.0])
    buf = np.empty(3)
    out = proj.project(v, out=buf)
    assert out is buf
    assert np.allclose(buf, [1.0, 0.0, 1.0])
    with pytest.raises(ValueError):
        proj.project(v, out=np.empty(2))
