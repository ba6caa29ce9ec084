"""Riemannian trust-region Newton optimizer."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass

import numpy as np

from .loong import loong
from .manifold import Manifold


@dataclass
class OptimizationResult:
    """Outcome of a manifold optimization; the manifold holds the final point."""

    converged: bool
    value: float
    iterations: int
    point: np.ndarray


def _divide(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


def ox(func, tol, max_iter: int, manifold: Manifold, output: int = 0) -> OptimizationResult:
    """Minimize ``func`` on ``manifold`` with a trust-region Newton method.

    ``func(p)`` returns the value, the Euclidean gradient and a callable
    Euclidean Hessian-vector product at ``p``.
    """
    m = manifold
    dim = m.dimension()
    tol0 = tol[0] * dim
    tol1 = tol[1] * m.p.size
    tol2 = tol[2] * m.p.size
    if output > 0:
        print(f"Using Ox optimizer on {m.name} manifold")
        print("Convergence threshold:")
        print(f"| Target change (T. C.)               : {tol0:E}")
        print(f"| Gradient norm (Grad.)               : {tol1:E}")
        print(f"| Independent variable update (V. U.) : {tol2:E}")
        print("| Itn. |       Target        |   T. C.  |  Grad.  | Update |  V. U.  |  Time  |")

    start = time.perf_counter()
    max_radius = 3.0
    rho_threshold = 0.1
    value, ge, he = func(m.p)
    value = float(value)
    m.ge = np.asarray(ge, dtype=float)
    m.he = he
    delta = value
    radius = max_radius

    for iiter in range(max_iter):
        m.compute_gradient()
        grad_norm = float(np.linalg.norm(m.gr))
        if output > 0:
            print(f"| {iiter:4d} |  {value:17.10f}  | {delta: 5.1E} | {grad_norm:5.1E} |", end="")
        m.compute_hessian()

        gr2 = m.inner(m.gr, m.gr)
        loong_tol = (
            tol0 / dim,
            0.1 * min(gr2, math.sqrt(gr2)) / dim,
            0.1 * tol2 / dim,
        )
        step = loong(m, radius, loong_tol, output - 1)

        s2 = m.inner(step, step)
        p_new = m.exponential(step)
        new_value, ge_new, he_new = func(p_new)
        new_value = float(new_value)
        top = new_value - value
        bottom = m.inner(m.gr + 0.5 * m.hr(step), step)
        rho = _divide(top, bottom)

        if rho > rho_threshold:
            delta = new_value - value
            value = new_value
            m.update(p_new, True)
            m.ge = np.asarray(ge_new, dtype=float)
            m.he = he_new
            if output > 0:
                print(" Accept |", end="")
        elif output > 0:
            print(" Reject |", end="")
        if output > 0:
            print(f" {math.sqrt(s2):5.1E} | {time.perf_counter() - start:6.3f} |")

        if rho < 0.25:
            radius *= 0.25
        elif rho > 0.75 or abs(s2 - radius * radius) < 1e-10:
            radius = min(2 * radius, max_radius)

        if grad_norm < tol1:
            if iiter == 0:
                if math.sqrt(s2) < tol2:
                    return OptimizationResult(True, value, iiter + 1, m.p.copy())
            elif abs(delta) < tol0 and math.sqrt(s2) < tol2:
                return OptimizationResult(True, value, iiter + 1, m.p.copy())

    return OptimizationResult(False, value, max_iter, m.p.copy())