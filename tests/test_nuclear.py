import numpy as np
import pytest

from chinium.nuclear import (
    nuclear_repulsion_energy,
    nuclear_repulsion_gradient,
    nuclear_repulsion_hessian,
)

CHARGES = [8.0, 1.0, 1.0]
COORDS = np.array([[0.0, 0.0, 0.2], [0.0, 1.4, -0.9], [0.1, -1.5, -0.8]])


def test_two_unit_charges():
    assert nuclear_repulsion_energy([1.0, 1.0], [[0, 0, 0], [0, 0, 2.0]]) == pytest.approx(0.5)


def test_single_atom_has_no_repulsion():
    assert nuclear_repulsion_energy([6.0], [[1.0, 2.0, 3.0]]) == 0.0
    assert np.allclose(nuclear_repulsion_gradient([6.0], [[1.0, 2.0, 3.0]]), 0.0)


def test_gradient_matches_finite_difference():
    grad = nuclear_repulsion_gradient(CHARGES, COORDS)
    h = 1e-6
    numeric = np.zeros_like(COORDS)
    for i in range(3):
        for k in range(3):
            plus, minus = COORDS.copy(), COORDS.copy()
            plus[i, k] += h
            minus[i, k] -= h
            numeric[i, k] = (
                nuclear_repulsion_energy(CHARGES, plus) - nuclear_repulsion_energy(CHARGES, minus)
            ) / (2 * h)
    assert np.allclose(grad, numeric, atol=1e-6)


def test_hessian_matches_finite_difference_of_gradient():
    hess = nuclear_repulsion_hessian(CHARGES, COORDS)
    h = 1e-6
    numeric = np.zeros((9, 9))
    for i in range(3):
        for k in range(3):
            plus, minus = COORDS.copy(), COORDS.copy()
            plus[i, k] += h
            minus[i, k] -= h
            numeric[:, 3 * i + k] = (
                nuclear_repulsion_gradient(CHARGES, plus) - nuclear_repulsion_gradient(CHARGES, minus)
            ).ravel() / (2 * h)
    assert np.allclose(hess, numeric, atol=1e-5)


def test_hessian_symmetric():
    hess = nuclear_repulsion_hessian(CHARGES, COORDS)
    assert np.allclose(hess, hess.T)


def test_translation_invariance():
    grad = nuclear_repulsion_gradient(CHARGES, COORDS)
    assert np.allclose(grad.sum(axis=0), 0.0)
    hess = nuclear_repulsion_hessian(CHARGES, COORDS)
    for k in range(3):
        assert np.allclose(hess[:, k::3].sum(axis=1), 0.0)
    shifted = COORDS + np.array([1.0, -2.0, 0.5])
    assert nuclear_repulsion_energy(CHARGES, shifted) == pytest.approx(
        nuclear_repulsion_energy(CHARGES, COORDS)
    )


def test_shape_mismatch_raises():
    with pytest.raises(ValueError):
        nuclear_repulsion_energy([1.0, 1.0], [[0.0, 0.0, 0.0]])


def test_coincident_nuclei_raise():
    with pytest.raises(ValueError):
        nuclear_repulsion_gradient([1.0, 1.0], [[0.0, 0.0, 0.0], [0.0, 0.0, 0.0]])