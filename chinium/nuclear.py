"""Nuclear repulsion energy and its first and second nuclear derivatives."""

from __future__ import annotations

import numpy as np


def _prepare(charges, coordinates):
    z = np.asarray(charges, dtype=float).ravel()
    r = np.asarray(coordinates, dtype=float)
    if r.ndim != 2 or r.shape[1] != 3 or r.shape[0] != z.size:
        raise ValueError("Coordinates must have shape (len(charges), 3)")
    diff = r[:, None, :] - r[None, :, :]
    dist = np.linalg.norm(diff, axis=2)
    off = ~np.eye(z.size, dtype=bool)
    if np.any(dist[off] == 0.0):
        raise ValueError("Two nuclei occupy the same position")
    zz = np.outer(z, z)
    return z.size, diff, dist, zz, off


def nuclear_repulsion_energy(charges, coordinates) -> float:
    """Coulomb repulsion energy between point nuclei (atomic units)."""
    n, _, dist, zz, off = _prepare(charges, coordinates)
    if n < 2:
        return 0.0
    iu = np.triu_indices(n, k=1)
    return float(np.sum(zz[iu] / dist[iu]))


def nuclear_repulsion_gradient(charges, coordinates) -> np.ndarray:
    """Derivative of the repulsion energy with respect to nuclear positions, shape (n, 3)."""
    n, diff, dist, zz, off = _prepare(charges, coordinates)
    with np.errstate(divide="ignore", invalid="ignore"):
        factor = np.where(off, zz / dist ** 3, 0.0)
    return -np.einsum("ij,ijk->ik", factor, diff)


def nuclear_repulsion_hessian(charges, coordinates) -> np.ndarray:
    """Second derivatives of the repulsion energy, shape (3n, 3n)."""
    n, diff, dist, zz, off = _prepare(charges, coordinates)
    hessian = np.zeros((3 * n, 3 * n))
    eye = np.eye(3)
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            d = dist[i, j]
            rij = diff[i, j]
            block = zz[i, j] * (eye / d ** 3 - 3.0 * np.outer(rij, rij) / d ** 5)
            hessian[3 * i:3 * i + 3, 3 * j:3 * j + 3] = block
            hessian[3 * i:3 * i + 3, 3 * i:3 * i + 3] -= block
    return hessian