"""Commutator and augmented DIIS extrapolation."""

from __future__ import annotations

import numpy as np

from .manifold import Simplex
from .ox import ox


def _combine(weights, focks) -> np.ndarray:
    return sum(float(w) * f for w, f in zip(weights, focks))


def cdiis(gradients, focks) -> np.ndarray:
    """Extrapolate Fock matrices by minimizing the combined gradient norm."""
    gradients = [np.asarray(g, dtype=float) for g in gradients]
    focks = [np.asarray(f, dtype=float) for f in focks]
    size = len(focks)
    if size == 0 or len(gradients) != size:
        raise ValueError("CDIIS needs as many gradients as Fock matrices, at least one")
    flat = np.array([g.ravel() for g in gradients])
    b = np.zeros((size + 1, size + 1))
    b[:size, :size] = flat @ flat.T
    b[:size, size] = -1.0
    b[size, :size] = -1.0
    rhs = np.zeros(size + 1)
    rhs[size] = -1.0
    x = np.linalg.lstsq(b, rhs, rcond=None)[0]
    return _combine(x[:size], focks)


def adiis(a, b, focks, output: int = 0) -> np.ndarray:
    """Augmented DIIS: minimize a quadratic energy model over convex weights."""
    if output > 0:
        print("Augmented DIIS")
    a = np.asarray(a, dtype=float).reshape(-1, 1)
    b = np.asarray(b, dtype=float)
    focks = [np.asarray(f, dtype=float) for f in focks]
    n = a.shape[0]
    if n < 2:
        raise ValueError("ADIIS needs at least two Fock matrices")
    if b.shape != (n, n) or len(focks) != n:
        raise ValueError("ADIIS inputs have inconsistent sizes")

    p = np.full((n, 1), (1.0 - 0.9) / (n - 1))
    p[n - 1, 0] = 0.9
    simplex = Simplex(p)

    def objective(x):
        value = float(np.diagonal(x.T @ (a + 0.5 * b @ x)).sum())
        return value, a + b @ x, lambda v: b @ v

    ox(objective, (1.0e2, 1.0e-6, 1.0e-2), 100000, simplex, output - 1)
    if output > 0:
        print("Converged!")
    return _combine(simplex.p.ravel(), focks)