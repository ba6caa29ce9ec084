"""Grassmann manifolds in projector and local-coordinate representations."""

from __future__ import annotations

import numpy as np
from scipy.linalg import expm, logm

from .constants import frobenius_dot
from .manifold import InnerProduct, Manifold


def lowdin_orthogonalization(p) -> np.ndarray:
    """Symmetrically orthonormalize the columns of ``p``."""
    p = np.asarray(p, dtype=float)
    values, vectors = np.linalg.eigh(p.T @ p)
    x = vectors @ np.diag(1.0 / np.sqrt(values)) @ vectors.T
    return p @ x


def orthogonal_complement(p) -> np.ndarray:
    """Orthonormal basis of the complement of the column space of ``p``."""
    p = np.asarray(p, dtype=float)
    _, vectors = np.linalg.eigh(p @ p.T)
    return vectors[:, : p.shape[0] - p.shape[1]]


class Grassmann(Manifold):
    """Grassmann manifold represented by orthogonal projectors."""

    name = "Grassmann"

    def __init__(self, p) -> None:
        super().__init__(p)
        values, vectors = np.linalg.eigh(self.p)
        rank = int(np.count_nonzero(values > 0.5))
        n = self.p.shape[0]
        self.aux = vectors[:, n - rank:]

    def dimension(self) -> int:
        rank = self.aux.shape[1]
        return rank * (self.p.shape[0] - rank)

    def inner(self, x, y) -> float:
        return frobenius_dot(x, y)

    def inner_function(self) -> InnerProduct:
        return frobenius_dot

    def exponential(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        xp = x @ self.p - self.p @ x
        return expm(xp) @ self.p @ expm(-xp)

    def logarithm(self, q) -> np.ndarray:
        q = np.asarray(q, dtype=float)
        eye = np.eye(q.shape[0])
        omega = 0.5 * np.real(logm((eye - 2 * q) @ (eye - 2 * self.p)))
        return omega @ self.p - self.p @ omega

    def tangent_projection(self, a) -> np.ndarray:
        a = np.asarray(a, dtype=float)
        ad = self.p @ a - a @ self.p
        return self.p @ ad - ad @ self.p

    def tangent_purification(self, a) -> np.ndarray:
        a = np.asarray(a, dtype=float)
        sym = 0.5 * (a + a.T)
        pure = sym - self.p @ sym @ self.p
        return 0.5 * (pure + pure.T)

    def transport_tangent(self, x, y) -> np.ndarray:
        y = np.asarray(y, dtype=float)
        dp = y @ self.p - self.p @ y
        return expm(dp) @ np.asarray(x, dtype=float) @ expm(-dp)

    def transport_manifold(self, x, q) -> np.ndarray:
        return self.transport_tangent(x, self.logarithm(q))

    def update(self, p, purify) -> None:
        self.p = np.array(p, dtype=float)
        _, vectors = np.linalg.eigh(self.p)
        ncols = self.aux.shape[1]
        self.aux = vectors[:, vectors.shape[1] - ncols:]
        if purify:
            self.p = self.aux @ self.aux.T

    def compute_gradient(self) -> None:
        self.gr = self.tangent_projection(self.ge)

    def compute_hessian(self) -> None:
        he = self._euclidean_hessian()
        p = self.p.copy()
        ge = self.ge.copy()

        def hr(v):
            v = np.asarray(v, dtype=float)
            hev = he(v)
            total = (p @ hev - hev @ p) - (ge @ v - v @ ge)
            return p @ total - total @ p

        self.hr = hr


class GrassmannQLocal(Manifold):
    """Grassmann quotient manifold with tangents in complement coordinates."""

    name = "Grassmann (Quotient) manifold with complement mapping"

    def __init__(self, p) -> None:
        super().__init__(p)
        n, r = self.p.shape
        self.gr = np.zeros((n - r, r))
        self.p = lowdin_orthogonalization(self.p)
        self.aux = orthogonal_complement(self.p)

    def dimension(self) -> int:
        return self.gr.size

    def inner(self, x, y) -> float:
        return frobenius_dot(x, y)

    def inner_function(self) -> InnerProduct:
        return frobenius_dot

    def exponential(self, x) -> np.ndarray:
        u, s, vh = np.linalg.svd(self.aux @ np.asarray(x, dtype=float), full_matrices=False)
        v = vh.T
        z = (self.p @ v @ np.diag(np.cos(s)) + u @ np.diag(np.sin(s))) @ vh
        q, _ = np.linalg.qr(z)
        return q

    def tangent_projection(self, a) -> np.ndarray:
        return self.aux.T @ np.asarray(a, dtype=float)

    def tangent_purification(self, a) -> np.ndarray:
        return np.asarray(a, dtype=float)

    def transport_manifold(self, x, q) -> np.ndarray:
        return np.asarray(x, dtype=float)

    def update(self, p, purify) -> None:
        p = np.array(p, dtype=float)
        self.p = lowdin_orthogonalization(p) if purify else p
        self.aux = orthogonal_complement(self.p)

    def compute_gradient(self) -> None:
        self.gr = self.tangent_projection(self.ge)

    def compute_hessian(self) -> None:
        he = self._euclidean_hessian()
        p = self.p.copy()
        aux = self.aux.copy()
        com = np.eye(p.shape[0]) - p @ p.T
        pt_ge = p.T @ self.ge

        def hr(v):
            v = np.asarray(v, dtype=float)
            return aux.T @ (com @ (he(v) - v @ pt_ge))

        self.hr = hr