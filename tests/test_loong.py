import numpy as np
import pytest

from chinium.grassmann import GrassmannQLocal
from chinium.loong import loong
from chinium.manifold import ManifoldError

GRAD = np.array([[0.3, -0.1], [0.2, 0.05], [-0.4, 0.1]])
TIGHT = (1e-12, 1e-12, 1e-12)


def _manifold(gradient, curvature):
    m = GrassmannQLocal(np.eye(5)[:, :2])
    m.gr = np.asarray(gradient, dtype=float)
    m.hr = lambda v: curvature * np.asarray(v, dtype=float)
    return m


def test_newton_step_inside_trust_region():
    m = _manifold(GRAD, 2.0)
    v = loong(m, 10.0, TIGHT, 0)
    assert np.allclose(v, -GRAD / 2.0)


def test_step_is_cut_at_trust_radius():
    m = _manifold(GRAD, 2.0)
    v = loong(m, 0.1, TIGHT, 0)
    assert np.linalg.norm(v) == pytest.approx(0.1)
    assert np.allclose(v, -GRAD * 0.1 / np.linalg.norm(GRAD))


def test_negative_curvature_goes_to_boundary():
    m = _manifold(GRAD, -1.0)
    v = loong(m, 0.5, TIGHT, 0)
    assert np.linalg.norm(v) == pytest.approx(0.5)
    assert np.allclose(v, -GRAD * 0.5 / np.linalg.norm(GRAD))


def test_zero_gradient_gives_zero_step():
    m = _manifold(np.zeros((3, 2)), 2.0)
    v = loong(m, 1.0, TIGHT, 0)
    assert np.array_equal(v, np.zeros((3, 2)))


def test_missing_hessian_raises():
    m = GrassmannQLocal(np.eye(5)[:, :2])
    m.gr = GRAD.copy()
    with pytest.raises(ManifoldError):
        loong(m, 1.0, TIGHT, 0)


def test_output_prints_header(capsys):
    m = _manifold(GRAD, 2.0)
    loong(m, 10.0, TIGHT, 1)
    out = capsys.readouterr().out
    assert "Using Loong optimizer on the tangent space of" in out