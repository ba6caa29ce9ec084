"""Riemannian trust-region optimizer with BFGS Hessian updates."""

from __future__ import annotations

import math
import time

import numpy as np

from .loong import loong
from .manifold import Manifold
from .ox import OptimizationResult


def _divide(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


def _bfgs_hessian(inner, hr_last, s, y, ys):
    hr_last_s = hr_last(s)
    s_h_s = inner(s, hr_last_s)
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled_y = y / np.float64(ys)

    def hr(v):
        hr_last_v = hr_last(v)
        return (
            hr_last_v
            - _divide(inner(s, hr_last_v), s_h_s) * hr_last_s
            + inner(y, v) * scaled_y
        )

    return hr


def tiger(func, tol, max_iter: int, manifold: Manifold, output: int = 0) -> OptimizationResult:
    """Minimize ``func`` on ``manifold`` with a trust-region quasi-Newton method.

    The exact Riemannian Hessian is used until the first accepted step; after
    that it is replaced by BFGS updates, which needs vector transport.
    """
    m = manifold
    dim = m.dimension()
    tol0 = tol[0] * dim
    tol1 = tol[1] * m.p.size
    tol2 = tol[2] * m.p.size
    if output > 0:
        print(f"Using Tiger optimizer on {m.name}")
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
    s_bfgs = np.zeros_like(m.gr)
    y_bfgs = np.zeros_like(m.gr)
    started = False
    hr_last = None

    for iiter in range(max_iter):
        m.compute_gradient()
        y_bfgs = y_bfgs + m.gr
        grad_norm = float(np.linalg.norm(m.gr))
        if output > 0:
            print(f"| {iiter:4d} |  {value:17.10f}  | {delta: 5.1E} | {grad_norm:5.1E} |", end="")
        if not started:
            m.compute_hessian()
        else:
            m.hr = _bfgs_hessian(
                m.inner_function(), hr_last, s_bfgs, y_bfgs, m.inner(y_bfgs, s_bfgs)
            )

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
            started = True
            hr_last = m.hr
            delta = new_value - value
            value = new_value
            s_bfgs = m.transport_manifold(step, p_new)
            y_bfgs = -m.transport_manifold(m.gr, p_new)
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