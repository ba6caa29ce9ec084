import numpy as np
import pytest
from scipy.linalg import expm

from chinium.manifold import Orthogonal
from chinium.ox import ox

A = np.diag([1.0, 2.0, 4.0])
N = np.diag([3.0, 2.0, 1.0])
K = np.array([[0.0, 0.3, -0.2], [-0.3, 0.0, 0.5], [0.2, -0.5, 0.0]])
TOL = (1e-8, 1e-5, 1e-7)


def brockett(u):
    value = float(np.diagonal(u.T @ A @ u @ N).sum())
    ge = 2 * A @ u @ N
    return value, ge, lambda v: 2 * A @ v @ N


def _minimum():
    return float(np.dot(np.sort(np.diag(A)), np.sort(np.diag(N))[::-1]))


def test_converges_to_minimum_on_orthogonal_group():
    m = Orthogonal(expm(K))
    result = ox(brockett, TOL, 500, m, 0)
    assert result.converged
    assert result.value == pytest.approx(_minimum(), abs=1e-6)
    assert np.allclose(m.p.T @ m.p, np.eye(3), atol=1e-10)
    assert np.allclose(result.point, m.p)


def test_value_never_increases_from_start():
    u0 = expm(K)
    start_value = brockett(u0)[0]
    result = ox(brockett, TOL, 500, Orthogonal(u0), 0)
    assert result.value <= start_value


def test_stationary_start_converges_in_first_iteration():
    m = Orthogonal(np.eye(3))
    result = ox(brockett, TOL, 10, m, 0)
    assert result.converged
    assert result.iterations == 1
    assert np.allclose(result.point, np.eye(3))


def test_zero_iterations_reports_initial_value():
    u0 = expm(K)
    result = ox(brockett, TOL, 0, Orthogonal(u0), 0)
    assert not result.converged
    assert result.value == pytest.approx(brockett(u0)[0])
    assert np.allclose(result.point, u0)


def test_output_reports_manifold_and_rejection(capsys):
    ox(brockett, TOL, 10, Orthogonal(np.eye(3)), 1)
    out = capsys.readouterr().out
    assert "Using Ox optimizer on Orthogonal manifold" in out
    assert "Reject" in out