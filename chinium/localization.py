"""Orbital localization by Fock-variance, Foster-Boys and Pipek-Mezey schemes."""

from __future__ import annotations

import numpy as np
from scipy.linalg import expm

from .manifold import Orthogonal
from .ox import ox

_TOLERANCE = (1.0e-6, 1.0e-4, 1.0e-7)
_MAX_ITER = 100


class LocalizationError(Exception):
    """Raised when localization is impossible or fails to converge."""


def _diag(x: np.ndarray) -> np.ndarray:
    return np.diag(np.diag(x))


def _diagonal_sum(x: np.ndarray) -> float:
    return float(np.diagonal(x).sum())


def _random_rotation(n: int, scale: float) -> np.ndarray:
    kappa = np.random.default_rng().uniform(-1.0, 1.0, (n, n)) * scale
    return expm(kappa - kappa.T)


def _optimize(objective, n: int, scale: float, output: int) -> np.ndarray:
    if n < 2:
        return np.eye(n)
    manifold = Orthogonal(_random_rotation(n, scale))
    result = ox(objective, _TOLERANCE, _MAX_ITER, manifold, output)
    if not result.converged:
        raise LocalizationError("Convergence failed!")
    return manifold.p.copy()


def _square(matrix, name: str) -> np.ndarray:
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"{name} must be a square matrix")
    return matrix


def fock_localize(fref, f2ref, output: int = 0) -> np.ndarray:
    """Rotation minimizing the summed orbital energy variance.

    ``fref`` and ``f2ref`` are the Fock matrix and the Fock matrix built from
    squared orbital energies, both in the reference orbital basis.
    """
    fref = _square(fref, "Fock matrix")
    f2ref = _square(f2ref, "Squared Fock matrix")
    if fref.shape != f2ref.shape:
        raise ValueError("Fock matrices differ in shape")

    def objective(u):
        f = u.T @ fref @ u
        f2 = u.T @ f2ref @ u
        value = _diagonal_sum(f2) - float(np.sum(np.diag(f) ** 2))
        fdiag = _diag(f)
        ge = 2 * f2ref @ u - 4 * fref @ u @ fdiag
        two_f2 = 2 * f2ref
        four_f = 4 * fref
        eight_fu = 8 * fref @ u
        ut_f = u.T @ fref

        def he(v):
            return two_f2 @ v - four_f @ v @ fdiag - eight_fu @ _diag(ut_f @ v)

        return value, ge, he

    return _optimize(objective, fref.shape[0], 0.1, output)


def foster_boys(cref, wxao, wyao, wzao, w2ao_sum, output: int = 0) -> np.ndarray:
    """Rotation of the columns of ``cref`` minimizing the summed orbital spread.

    ``wxao``, ``wyao`` and ``wzao`` are dipole integrals and ``w2ao_sum`` is the
    sum of the diagonal quadrupole integrals, all in the atomic-orbital basis.
    """
    cref = np.asarray(cref, dtype=float)
    if cref.ndim != 2:
        raise ValueError("Orbital coefficients must be a matrix")
    dipoles = [cref.T @ np.asarray(w, dtype=float) @ cref for w in (wxao, wyao, wzao)]
    w2ref = cref.T @ np.asarray(w2ao_sum, dtype=float) @ cref

    def objective(u):
        diags = [_diag(u.T @ w @ u) for w in dipoles]
        value = _diagonal_sum(u.T @ w2ref @ u) - float(sum(np.sum(d ** 2) for d in diags))
        ge = 2 * w2ref @ u - 4 * sum(w @ u @ d for w, d in zip(dipoles, diags))
        two_w2 = 2 * w2ref
        terms = [(4 * w, d, 8 * w @ u, u.T @ w) for w, d in zip(dipoles, diags)]

        def he(v):
            result = two_w2 @ v
            for four_w, d, eight_wu, ut_w in terms:
                result = result - four_w @ v @ d - eight_wu @ _diag(ut_w @ v)
            return result

        return value, ge, he

    return _optimize(objective, cref.shape[1], 0.1, output)


def pipek_mezey(qrefs, output: int = 0) -> np.ndarray:
    """Rotation maximizing the summed squared atomic populations.

    ``qrefs`` holds one population matrix per atom in the reference orbital basis.
    """
    qrefs = [_square(q, "Population matrix") for q in qrefs]
    if not qrefs:
        raise ValueError("At least one population matrix is needed")

    def objective(u):
        diags = [_diag(u.T @ q @ u) for q in qrefs]
        value = -float(sum(np.sum(d ** 2) for d in diags))
        ge = -4 * sum(q @ u @ d for q, d in zip(qrefs, diags))
        qus = [q @ u for q in qrefs]

        def he(v):
            hess1 = sum(q @ v @ d for q, d in zip(qrefs, diags))
            hess2 = sum(qu @ _diag(qu.T @ v) for qu in qus)
            return -4 * hess1 - 8 * hess2

        return value, ge, he

    return _optimize(objective, qrefs[0].shape[1], 1.0e-8, output)


def _fock_pair(wavefunction):
    fao = wavefunction.fock()
    energies = wavefunction.energies()
    wavefunction.set_energies(energies * energies)
    try:
        f2ao = wavefunction.fock()
    finally:
        wavefunction.set_energies(energies)
    return fao, f2ao


def _require(matrix, name: str) -> np.ndarray:
    if matrix is None:
        raise LocalizationError(f"{name} integrals are not available")
    return np.asarray(matrix, dtype=float)


def localize(wavefunction, scheme: str, orbital_range: str, output: int = 0) -> None:
    """Localize the orbitals of ``wavefunction`` in place.

    ``scheme`` is FOCK, FOSTER or PIPEK; ``orbital_range`` is OCC, VIR, ALL or
    BOTH (occupied and virtual separately). Both are case-insensitive.
    """
    scheme = scheme.upper()
    orbital_range = orbital_range.upper()
    if scheme not in ("FOCK", "FOSTER", "PIPEK"):
        raise LocalizationError(f"Unknown localization scheme {scheme!r}")

    nocc = int(wavefunction.num_electrons(0)) // 2
    nvir = wavefunction.num_ind_basis() - nocc
    call = wavefunction.coefficient_matrix()
    ncols = call.shape[1]
    slices = {
        "OCC": [slice(0, nocc)],
        "VIR": [slice(ncols - nvir, ncols)],
        "ALL": [slice(0, ncols)],
        "BOTH": [slice(0, nocc), slice(ncols - nvir, ncols)],
    }
    if orbital_range not in slices:
        raise LocalizationError(f"Unknown orbital range {orbital_range!r}")
    blocks = slices[orbital_range]
    crefs = [call[:, block].copy() for block in blocks]

    rotations = []
    if scheme == "FOCK":
        if output > 0:
            print("Fock localization:")
        fao, f2ao = _fock_pair(wavefunction)
        for cref in crefs:
            rotations.append(
                fock_localize(cref.T @ fao @ cref, cref.T @ f2ao @ cref, output - 1)
            )
    elif scheme == "FOSTER":
        if output > 0:
            print("Foster-Boys localization:")
        wx = _require(wavefunction.dipole_x, "Dipole X")
        wy = _require(wavefunction.dipole_y, "Dipole Y")
        wz = _require(wavefunction.dipole_z, "Dipole Z")
        w2 = (
            _require(wavefunction.quadrupole_xx, "Quadrupole XX")
            + _require(wavefunction.quadrupole_yy, "Quadrupole YY")
            + _require(wavefunction.quadrupole_zz, "Quadrupole ZZ")
        )
        for cref in crefs:
            rotations.append(foster_boys(cref, wx, wy, wz, w2, output - 1))
    else:
        if output > 0:
            print("Pipek-Mezey localization:")
        overlap = _require(wavefunction.overlap, "Overlap")
        values, vectors = np.linalg.eigh(overlap)
        s12 = vectors @ np.diag(np.sqrt(values)) @ vectors.T
        for cref in crefs:
            s12cref = s12 @ cref
            qrefs = []
            start = 0
            for center in wavefunction.centers:
                n = center.num_basis()
                rows = s12cref[start:start + n]
                qrefs.append(rows.T @ rows)
                start += n
            rotations.append(pipek_mezey(qrefs, output - 1))

    for block, cref, u in zip(blocks, crefs, rotations):
        call[:, block] = cref @ u
    wavefunction.set_coefficient_matrix(call)