"""Gaussian basis-set shells, atomic centers and basis-file parsing."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from .constants import atomic_number, element_symbol

_FORTRAN_EXPONENT = re.compile("[Dd]")

# Basis-file shell labels and the shell type each one gives; SP is special.
_SHELL_TYPES: dict[str, int] = {
    "S": 0,
    "P": 1,
    "D": -2,
    "F": -3,
    "G": -4,
    "H": -5,
    "I": -6,
}


class BasisSetError(Exception):
    """Raised when a basis-set file is missing or malformed."""


def _double_factorial_odd(l: int) -> int:
    """(2l - 1)!!, with (-1)!! = 1."""
    return math.prod(range(2 * l - 1, 0, -2))


@dataclass
class Shell:
    """A contracted Gaussian shell.

    ``type`` follows the Multiwfn convention: non-negative values are
    Cartesian shells of that angular momentum, negative values are pure
    (spherical) shells of angular momentum ``-type``.
    """

    type: int = 0
    exponents: list[float] = field(default_factory=list)
    coefficients: list[float] = field(default_factory=list)
    normalized_coefficients: list[float] = field(default_factory=list)

    def size(self) -> int:
        """Number of basis functions in the shell."""
        if self.type >= 0:
            return (self.type + 1) * (self.type + 2) // 2
        return -2 * self.type + 1

    def num_prims(self) -> int:
        """Number of primitive Gaussians in the contraction."""
        return len(self.exponents)

    def normalize(self) -> list[float]:
        """Compute coefficients with primitive and contraction normalization.

        The result is stored in ``normalized_coefficients`` and returned.
        """
        l = abs(self.type)
        dfact = _double_factorial_odd(l)
        sqrt_pi_cubed = math.pi ** 1.5
        coeffs = []
        for alpha, c in zip(self.exponents, self.coefficients):
            two_alpha = 2.0 * alpha
            factor = math.sqrt(
                2.0 ** l * two_alpha ** (l + 1.5) / (sqrt_pi_cubed * dfact)
            )
            coeffs.append(c * factor)

        norm = 0.0
        for p, (ap, cp) in enumerate(zip(self.exponents, coeffs)):
            for q in range(p + 1):
                gamma = ap + self.exponents[q]
                weight = 1.0 if p == q else 2.0
                norm += (
                    weight * dfact * sqrt_pi_cubed * cp * coeffs[q]
                    / (2.0 ** l * gamma ** (l + 1.5))
                )
        if norm > 0.0:
            scale = 1.0 / math.sqrt(norm)
            coeffs = [c * scale for c in coeffs]
        self.normalized_coefficients = coeffs
        return coeffs

    def describe(self) -> str:
        """Human-readable summary of the shell."""
        lines = [f"Type: {self.type}", "Exponents and Coefficients:"]
        lines.extend(
            f"{e:f} {c:f}" for e, c in zip(self.exponents, self.coefficients)
        )
        return "\n".join(lines) + "\n"


@dataclass
class Center:
    """An atomic center: element, nuclear charge, position (Bohr) and shells."""

    index: int = 0
    nuclear_charge: float = 0.0
    coordinates: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    shells: list[Shell] = field(default_factory=list)

    def num_shells(self) -> int:
        return len(self.shells)

    def num_basis(self) -> int:
        return sum(shell.size() for shell in self.shells)

    def symbol(self) -> str:
        return element_symbol(self.index)

    def describe(self) -> str:
        """Human-readable summary of the center and its shells."""
        x, y, z = self.coordinates
        text = (
            f"Symbol: {self.symbol()}\n"
            f"Index: {self.index}\n"
            f"Nuclear charge: {self.nuclear_charge:f}\n"
            f"Coordinates (a.u.): {x:f} {y:f} {z:f}\n"
            "Shells:\n"
        )
        return text + "".join(shell.describe() for shell in self.shells)


def _to_float(token: str) -> float:
    try:
        return float(_FORTRAN_EXPONENT.sub("E", token))
    except ValueError:
        raise BasisSetError(f"Invalid number {token!r} in basis set") from None


def _element_index(name: str) -> int:
    try:
        return atomic_number(name)
    except ValueError:
        return 0


def _read_primitives(lines: Iterator[str], count: int, columns: int) -> list[list[float]]:
    rows = []
    for _ in range(count):
        try:
            line = next(lines)
        except StopIteration:
            raise BasisSetError("Basis set ended inside a shell") from None
        tokens = line.split()
        if len(tokens) < columns:
            raise BasisSetError(f"Too few columns in primitive line {line!r}")
        rows.append([_to_float(tok) for tok in tokens[:columns]])
    return rows


def parse_basis(text: str) -> list[Center]:
    """Parse a basis set in Gaussian (.gbs) format.

    Each element block starts with ``-Symbol`` and ends with ``****``.
    Elements outside the known table get index 0.
    """
    centers: list[Center] = []
    current = Center()
    lines = iter(text.splitlines())
    for line in lines:
        tokens = line.split()
        if not tokens:
            continue
        word = tokens[0]
        if word.startswith("-"):
            current.index = _element_index(word[1:])
        elif word == "SP" or word in _SHELL_TYPES:
            if len(tokens) < 2:
                raise BasisSetError(f"Missing primitive count in {line!r}")
            try:
                count = int(tokens[1])
            except ValueError:
                raise BasisSetError(f"Invalid primitive count in {line!r}") from None
            if word == "SP":
                rows = _read_primitives(lines, count, 3)
                exponents = [row[0] for row in rows]
                current.shells.append(Shell(0, exponents, [row[1] for row in rows]))
                current.shells.append(Shell(1, list(exponents), [row[2] for row in rows]))
            else:
                rows = _read_primitives(lines, count, 2)
                current.shells.append(
                    Shell(_SHELL_TYPES[word], [row[0] for row in rows], [row[1] for row in rows])
                )
        elif word == "****":
            centers.append(current)
            current = Center(index=current.index)
    for center in centers:
        for shell in center.shells:
            shell.normalized_coefficients = [0.0] * shell.num_prims()
    return centers


def read_basis(path) -> list[Center]:
    """Read and parse a Gaussian-format basis-set file."""
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise BasisSetError(f"Cannot read basis set file {path}: {exc}") from exc
    return parse_basis(text)