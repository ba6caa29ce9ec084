"""Self-consistent-field driver mixing naive, ADIIS and CDIIS steps."""

from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass

import numpy as np

from .constants import frobenius_dot
from .diis import adiis, cdiis


@dataclass
class MouseResult:
    """Outcome of a Mouse run."""

    converged: bool
    energy: float
    fock: np.ndarray
    iterations: int


def mouse(func, adtol, tol, diis_space: int, max_iter: int, fock, output: int = 0) -> MouseResult:
    """Iterate ``func`` on a Fock matrix with DIIS extrapolation.

    ``func(F)`` returns the energy, the new Fock matrix, the gradient and the
    density. At most ``diis_space - 1`` previous iterates are kept.
    """
    if diis_space == 1:
        raise ValueError("DIIS space must hold at least two entries")
    if output > 0:
        print("Using Mouse optimizer")
        print("Convergence threshold:")
        print(f"| Target change (T. C.)               : {tol[0]:E}")
        print(f"| Gradient norm (Grad.)               : {tol[1]:E}")
        print(f"| Independent variable update (V. U.) : {tol[2]:E}")
        print("| Itn. |       Target        |   T. C.  |  Grad.  | Update |  V. U.  |  Time  |")

    maxlen = diis_space - 1 if diis_space > 1 else None
    energies: deque[float] = deque(maxlen=maxlen)
    focks: deque[np.ndarray] = deque(maxlen=maxlen)
    gradients: deque[np.ndarray] = deque(maxlen=maxlen)
    densities: deque[np.ndarray] = deque(maxlen=maxlen)
    f = np.array(fock, dtype=float)
    energy = math.nan
    start = time.perf_counter()

    for iiter in range(max_iter):
        if output > 0:
            print(f"| {iiter:4d} |", end="")
        energy, f, g, d = func(f)
        energy = float(energy)
        f = np.asarray(f, dtype=float)
        g = np.asarray(g, dtype=float)
        d = np.asarray(d, dtype=float)
        delta_e = energy if iiter == 0 else energy - energies[-1]
        grad_norm = float(np.linalg.norm(g))
        if output > 0:
            print(f"  {energy:17.10f}  | {delta_e: 5.1E} | {grad_norm:5.1E} |", end="")

        energies.append(energy)
        focks.append(f)
        gradients.append(g)
        densities.append(d)

        if len(energies) < 2:
            if output > 0:
                print("  Naive |", end="")
        elif grad_norm > adtol[1] or iiter < 3:
            if output > 0:
                print("  ADIIS |", end="")
            diffs = [di - d for di in densities]
            a = np.array([frobenius_dot(di, f) for di in diffs])
            b = np.array([[frobenius_dot(di, fj - f) for fj in focks] for di in diffs])
            f = adiis(a, b, list(focks), output - 1)
        else:
            if output > 0:
                print("  CDIIS |", end="")
            f = cdiis(list(gradients), list(focks))

        delta_f = float(np.linalg.norm(f - focks[-1]))
        if output > 0:
            print(f" {delta_f:5.1E} | {time.perf_counter() - start:6.3f} |")

        if grad_norm < tol[2]:
            if iiter == 0 or (abs(delta_e) < tol[0] and delta_f < tol[1]):
                return MouseResult(True, energy, f, iiter + 1)

    return MouseResult(False, energy, f, max_iter)