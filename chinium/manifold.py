"""Riemannian manifolds used by the trust-region optimizers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Callable

import numpy as np
from scipy.linalg import expm, logm

from .constants import frobenius_dot

MatrixMap = Callable[[np.ndarray], np.ndarray]
InnerProduct = Callable[[np.ndarray, np.ndarray], float]


class ManifoldError(Exception):
    """Raised for operations a manifold does not support or cannot perform."""


class Manifold(ABC):
    """A point on a manifold together with gradient and Hessian data.

    ``ge`` and ``he`` are the Euclidean gradient and Hessian-vector product of
    the objective; ``gr`` and ``hr`` are their Riemannian counterparts.
    """

    name: str = "Abstract"

    def __init__(self, p) -> None:
        p = np.array(p, dtype=float)
        self.p: np.ndarray = p
        self.aux: np.ndarray = np.zeros((0, 0))
        self.ge: np.ndarray = np.zeros_like(p)
        self.gr: np.ndarray = np.zeros_like(p)
        self.he: MatrixMap | None = None
        self.hr: MatrixMap | None = None

    @abstractmethod
    def dimension(self) -> int:
        """Intrinsic dimension of the manifold."""

    @abstractmethod
    def inner(self, x, y) -> float:
        """Riemannian metric at the current point."""

    @abstractmethod
    def inner_function(self) -> InnerProduct:
        """The metric at the current point, frozen as a callable."""

    def distance(self, q) -> float:
        raise ManifoldError(f"Geodesic length on {self.name} manifold is not implemented")

    @abstractmethod
    def exponential(self, x) -> np.ndarray:
        """Move from the current point along tangent vector ``x``."""

    def logarithm(self, q) -> np.ndarray:
        raise ManifoldError(f"Logarithm on {self.name} manifold is not implemented")

    @abstractmethod
    def tangent_projection(self, a) -> np.ndarray:
        """Project an ambient vector onto the tangent space."""

    @abstractmethod
    def tangent_purification(self, a) -> np.ndarray:
        """Remove numerical drift out of the tangent space."""

    def transport_tangent(self, x, y) -> np.ndarray:
        raise ManifoldError(f"Parallel transport on {self.name} manifold is not implemented")

    def transport_manifold(self, x, q) -> np.ndarray:
        raise ManifoldError(f"Parallel transport on {self.name} manifold is not implemented")

    @abstractmethod
    def update(self, p, purify) -> None:
        """Move the manifold to point ``p``, optionally purifying it."""

    @abstractmethod
    def compute_gradient(self) -> None:
        """Set ``gr`` from ``ge``."""

    @abstractmethod
    def compute_hessian(self) -> None:
        """Set ``hr`` from ``he`` and the gradients."""

    def _euclidean_hessian(self) -> MatrixMap:
        if self.he is None:
            raise ManifoldError("Euclidean Hessian is not set")
        return self.he


class Orthogonal(Manifold):
    """The orthogonal group O(n)."""

    name = "Orthogonal"

    def __init__(self, p) -> None:
        super().__init__(p)

    def dimension(self) -> int:
        n = self.p.shape[1]
        return n * (n - 1) // 2

    def inner(self, x, y) -> float:
        return 0.5 * frobenius_dot(x, y)

    def inner_function(self) -> InnerProduct:
        return lambda x, y: 0.5 * frobenius_dot(x, y)

    def exponential(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        return expm(x @ self.p.T) @ self.p

    def logarithm(self, q) -> np.ndarray:
        return np.real(logm(self.p.T @ np.asarray(q, dtype=float)))

    def tangent_projection(self, a) -> np.ndarray:
        a = np.asarray(a, dtype=float)
        return 0.5 * (a - self.p @ a.T @ self.p)

    def tangent_purification(self, a) -> np.ndarray:
        z = self.p.T @ np.asarray(a, dtype=float)
        return self.p @ (0.5 * (z - z.T))

    def update(self, p, purify) -> None:
        self.p = np.array(p, dtype=float)
        if purify:
            u, _, vh = np.linalg.svd(self.p)
            self.p = u @ vh

    def compute_gradient(self) -> None:
        self.gr = self.tangent_purification(self.tangent_projection(self.ge))

    def compute_hessian(self) -> None:
        he = self._euclidean_hessian()
        p = self.p.copy()
        grp = self.ge - self.gr
        p_grp_t = p @ grp.T

        def hr(v):
            v = np.asarray(v, dtype=float)
            hev = he(v)
            tproj = 0.5 * (hev - p @ hev.T @ p)
            return tproj - 0.5 * (p_grp_t @ v - p @ v.T @ grp)

        self.hr = hr


class Simplex(Manifold):
    """The open probability simplex with the Fisher-Rao metric."""

    name = "Simplex"

    def __init__(self, p) -> None:
        super().__init__(p)

    def dimension(self) -> int:
        return self.p.size - 1

    def inner(self, x, y) -> float:
        return float(np.sum(np.asarray(x) * np.asarray(y) / self.p))

    def inner_function(self) -> InnerProduct:
        p = self.p.copy()
        return lambda x, y: float(np.sum(np.asarray(x) * np.asarray(y) / p))

    def distance(self, q) -> float:
        overlap = float(np.sum(np.sqrt(self.p * np.asarray(q, dtype=float))))
        return 2.0 * math.acos(min(1.0, max(-1.0, overlap)))

    def exponential(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        xp = x / np.sqrt(self.p)
        norm = float(np.linalg.norm(xp))
        if norm == 0.0:
            return self.p.copy()
        xpn = xp / norm
        part1 = 0.5 * (self.p + xpn * xpn)
        part2 = 0.5 * (self.p - xpn * xpn) * math.cos(norm)
        part3 = xpn * np.sqrt(self.p) * math.sin(norm)
        return part1 + part2 + part3

    def logarithm(self, q) -> np.ndarray:
        q = np.asarray(q, dtype=float)
        dot = frobenius_dot(np.sqrt(self.p), np.sqrt(q))
        return self.distance(q) / (1.0 - dot) * (np.sqrt(self.p * q) - dot * self.p)

    def tangent_projection(self, a) -> np.ndarray:
        n = self.p.size
        column = self.p.reshape(n, 1)
        return (np.eye(n) - column @ np.ones((1, n))) @ np.asarray(a, dtype=float)

    def tangent_purification(self, a) -> np.ndarray:
        a = np.asarray(a, dtype=float)
        return a - a.mean()

    def update(self, p, purify) -> None:
        self.p = np.array(p, dtype=float)
        if purify:
            self.p = self.p / np.sum(np.abs(self.p))

    def compute_gradient(self) -> None:
        self.gr = self.tangent_projection(self.p * self.ge)

    def compute_hessian(self) -> None:
        he = self._euclidean_hessian()
        n = self.p.size
        ones = np.ones((n, n))
        proj = self.tangent_projection(np.eye(n))
        m = proj @ np.diag(self.p.ravel())
        shift = self.ge - ones @ (self.ge * self.p) - 0.5 * self.gr / self.p
        nmat = proj @ np.diag(shift.ravel())

        def hr(v):
            v = np.asarray(v, dtype=float)
            return m @ he(v) + nmat @ v

        self.hr = hr