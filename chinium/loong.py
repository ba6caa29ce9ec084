"""Truncated conjugate-gradient solver for the trust-region subproblem."""

from __future__ import annotations

import math
import time

import numpy as np

from .manifold import Manifold, ManifoldError


def _divide(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


def _print_header(title: str, tol0: float, tol1: float, tol2: float, columns: str) -> None:
    print(title)
    print("Convergence threshold:")
    print(f"| Target change (T. C.)               : {tol0:E}")
    print(f"| Gradient norm (Grad.)               : {tol1:E}")
    print(f"| Independent variable update (V. U.) : {tol2:E}")
    print(columns)


def loong(manifold: Manifold, radius: float, tol, output: int = 0) -> np.ndarray:
    """Approximately minimize the quadratic model within a trust region.

    The model is ``inner(gr, v) + 0.5 * inner(hr(v), v)`` on the tangent space
    of ``manifold``; ``tol`` holds the per-dimension thresholds on the model
    change, the residual norm and the step length.
    """
    m = manifold
    if m.hr is None:
        raise ManifoldError("Riemannian Hessian is not set")
    dim = m.dimension()
    tol0 = tol[0] * dim
    tol1 = tol[1] * m.p.size
    tol2 = tol[2] * m.p.size
    if output > 0:
        _print_header(
            f"Using Loong optimizer on the tangent space of {m.name} manifold",
            tol0, tol1, tol2,
            "| Itn. |       Target        |   T. C.  |  Grad.  |  V. U.  |  Time  |",
        )

    gr = np.asarray(m.gr, dtype=float)
    v = np.zeros_like(gr)
    r = -gr
    p = -gr
    r2 = m.inner(gr, gr)
    value = 0.0
    start = time.perf_counter()

    for iiter in range(dim):
        hp = m.tangent_purification(m.hr(p))
        php = m.inner(p, hp)
        last = value
        value = 0.5 * m.inner(m.hr(v), v) + m.inner(gr, v)
        delta = value - last

        alpha = _divide(r2, php)
        with np.errstate(invalid="ignore", over="ignore"):
            vplus = m.tangent_purification(v + alpha * p)
        step = abs(alpha) * math.sqrt(m.inner(p, p))
        if output > 0:
            print(
                f"| {iiter:4d} |  {value:17.10f}  | {delta: 5.1E} | {math.sqrt(r2):5.1E} |"
                f" {step:5.1E} | {time.perf_counter() - start:6.3f} |"
            )

        if iiter > 0 and (
            (abs(delta) < tol0 and r2 < tol1 ** 2 and step < tol2)
            or abs(delta) < tol0 * tol0 / 1000
        ):
            if output > 0:
                print("Tolerance met!")
            return v

        outside = m.inner(vplus, vplus) >= radius * radius
        if php <= 0 or outside:
            if output > 0 and php <= 0:
                print("Non-positive curvature!")
            if output > 0 and outside:
                print("Out of trust region!")
            a = m.inner(p, p)
            if a == 0:
                return v
            b = 2.0 * m.inner(v, p)
            c = m.inner(v, v) - radius * radius
            t = (math.sqrt(max(b * b - 4.0 * a * c, 0.0)) - b) / 2.0 / a
            return v + t * p

        v = vplus
        r2_old = r2
        r = m.tangent_purification(r - alpha * hp)
        r2 = m.inner(r, r)
        beta = _divide(r2, r2_old)
        p = m.tangent_purification(r + beta * p)

    if output > 0:
        print("Dimension completed!")
    return v