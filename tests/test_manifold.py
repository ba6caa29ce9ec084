import numpy as np
import pytest
from scipy.linalg import expm

from chinium.manifold import ManifoldError, Orthogonal, Simplex


def _random_orthogonal(n, seed=0):
    rng = np.random.default_rng(seed)
    q, _ = np.linalg.qr(rng.normal(size=(n, n)))
    return q


def _small_skew(n, seed=1, scale=0.1):
    rng = np.random.default_rng(seed)
    k = rng.normal(size=(n, n)) * scale
    return k - k.T


def test_orthogonal_dimension():
    assert Orthogonal(np.eye(4)).dimension() == 6


def test_orthogonal_inner_is_half_frobenius():
    m = Orthogonal(np.eye(3))
    x = np.arange(9.0).reshape(3, 3)
    assert m.inner(x, x) == pytest.approx(0.5 * np.linalg.norm(x) ** 2)
    assert m.inner_function()(x, x) == pytest.approx(m.inner(x, x))


def test_orthogonal_exponential_logarithm_round_trip():
    p = _random_orthogonal(4)
    m = Orthogonal(p)
    k = _small_skew(4)
    q = m.exponential(p @ k)
    np.testing.assert_allclose(q.T @ q, np.eye(4), atol=1e-10)
    np.testing.assert_allclose(m.logarithm(q), k, atol=1e-10)


def test_orthogonal_logarithm_of_known_point():
    p = _random_orthogonal(3, seed=5)
    m = Orthogonal(p)
    k = _small_skew(3, seed=7)
    np.testing.assert_allclose(m.logarithm(p @ expm(k)), k, atol=1e-10)


def test_orthogonal_projection_idempotent():
    m = Orthogonal(_random_orthogonal(4))
    a = np.random.default_rng(3).normal(size=(4, 4))
    once = m.tangent_projection(a)
    np.testing.assert_allclose(m.tangent_projection(once), once, atol=1e-12)


def test_orthogonal_purification_gives_skew_direction():
    p = _random_orthogonal(4)
    m = Orthogonal(p)
    a = np.random.default_rng(4).normal(size=(4, 4))
    z = p.T @ m.tangent_purification(a)
    np.testing.assert_allclose(z, -z.T, atol=1e-12)


def test_orthogonal_update_purifies():
    m = Orthogonal(np.eye(3))
    noisy = _random_orthogonal(3) + 0.01 * np.random.default_rng(2).normal(size=(3, 3))
    m.update(noisy, True)
    np.testing.assert_allclose(m.p.T @ m.p, np.eye(3), atol=1e-12)


def test_orthogonal_unsupported_operations():
    m = Orthogonal(np.eye(2))
    with pytest.raises(ManifoldError):
        m.distance(np.eye(2))
    with pytest.raises(ManifoldError):
        m.transport_tangent(np.eye(2), np.eye(2))
    with pytest.raises(ManifoldError):
        m.transport_manifold(np.eye(2), np.eye(2))


def test_orthogonal_hessian_requires_euclidean_hessian():
    m = Orthogonal(np.eye(2))
    with pytest.raises(ManifoldError):
        m.compute_hessian()


def test_orthogonal_hessian_with_zero_gradient_is_projection():
    m = Orthogonal(_random_orthogonal(3))
    m.ge = np.zeros((3, 3))
    m.he = lambda v: v
    m.compute_gradient()
    m.compute_hessian()
    v = np.random.default_rng(6).normal(size=(3, 3))
    np.testing.assert_allclose(m.hr(v), m.tangent_projection(v), atol=1e-12)


def _simplex_point():
    return np.array([[0.1], [0.2], [0.3], [0.4]])


def test_simplex_dimension():
    assert Simplex(_simplex_point()).dimension() == 3


def test_simplex_inner_of_point_with_itself():
    m = Simplex(_simplex_point())
    p = _simplex_point()
    assert m.inner(p, p) == pytest.approx(1.0)
    assert m.inner_function()(p, p) == pytest.approx(1.0)


def test_simplex_exponential_stays_on_simplex():
    m = Simplex(_simplex_point())
    x = np.array([[0.05], [-0.02], [0.01], [-0.04]])
    q = m.exponential(x)
    assert q.sum() == pytest.approx(1.0)
    assert np.all(q >= 0)


def test_simplex_exponential_of_zero_is_point():
    m = Simplex(_simplex_point())
    np.testing.assert_allclose(m.exponential(np.zeros((4, 1))), _simplex_point())


def test_simplex_distance_properties():
    p = _simplex_point()
    q = np.array([[0.25], [0.25], [0.25], [0.25]])
    assert Simplex(p).distance(p) == pytest.approx(0.0, abs=1e-6)
    assert Simplex(p).distance(q) == pytest.approx(Simplex(q).distance(p))
    assert Simplex(p).distance(q) > 0


def test_simplex_logarithm_is_tangent():
    m = Simplex(_simplex_point())
    q = np.array([[0.25], [0.25], [0.25], [0.25]])
    assert m.logarithm(q).sum() == pytest.approx(0.0, abs=1e-12)


def test_simplex_projection_and_purification_are_tangent():
    m = Simplex(_simplex_point())
    a = np.array([[1.0], [2.0], [-3.0], [0.5]])
    assert m.tangent_projection(a).sum() == pytest.approx(0.0, abs=1e-12)
    assert m.tangent_purification(a).sum() == pytest.approx(0.0, abs=1e-12)


def test_simplex_update_normalizes():
    m = Simplex(_simplex_point())
    m.update(np.array([[1.0], [3.0], [4.0], [2.0]]), True)
    assert np.abs(m.p).sum() == pytest.approx(1.0)


def test_simplex_gradient_is_tangent():
    m = Simplex(_simplex_point())
    m.ge = np.array([[1.0], [-2.0], [0.5], [3.0]])
    m.compute_gradient()
    assert m.gr.sum() == pytest.approx(0.0, abs=1e-12)


def test_simplex_hessian_output_is_tangent():
    m = Simplex(_simplex_point())
    m.ge = np.array([[1.0], [-2.0], [0.5], [3.0]])
    m.he = lambda v: 2.0 * v
    m.compute_gradient()
    m.compute_hessian()
    v = np.array([[0.1], [-0.1], [0.2], [-0.2]])
    assert m.hr(v).sum() == pytest.approx(0.0, abs=1e-12)


def test_simplex_transport_unsupported():
    m = Simplex(_simplex_point())
    with pytest.raises(ManifoldError):
        m.transport_tangent(_simplex_point(), _simplex_point())