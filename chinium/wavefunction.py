"""Wavefunctions in the Multiwfn (.mwfn) format: data, file I/O and derived matrices."""

from __future__ import annotations

import copy
import math
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

import numpy as np

from .basis import BasisSetError, Center, Shell, read_basis
from .constants import ANGSTROM_TO_BOHR, HARTREE_TO_EV
from .nuclear import (
    nuclear_repulsion_energy,
    nuclear_repulsion_gradient,
    nuclear_repulsion_hessian,
)

_MAX_ANGULAR_MOMENTUM = 6


class MwfnFormatError(Exception):
    """Raised when a Multiwfn file is missing or malformed."""


@dataclass
class Orbital:
    """A molecular orbital: type, energy (Hartree), occupation, symmetry and coefficients."""

    type: int = 0
    energy: float = 0.0
    occ: float = 0.0
    sym: str = "A"
    coeff: np.ndarray = field(default_factory=lambda: np.zeros(0))


def _safe_float(token: str) -> float:
    """Parse a number; values outside the double range count as zero."""
    try:
        value = float(token)
    except ValueError:
        raise MwfnFormatError(f"Invalid number {token!r}") from None
    if math.isinf(value) and token.strip().lstrip("+-").lower() not in ("inf", "infinity"):
        return 0.0
    return value


def _int(token: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise MwfnFormatError(f"Invalid integer {token!r}") from None


def _argument(tokens: list[str]) -> str:
    if len(tokens) < 2:
        raise MwfnFormatError(f"Missing value after {tokens[0]!r}")
    return tokens[1]


def _read_tokens(lines: Iterator[str], total: int) -> list[str]:
    """Collect ``total`` whitespace-separated tokens from the following lines.

    Reading stops early at an empty line.
    """
    values: list[str] = []
    for line in lines:
        if not line:
            break
        for token in line.split():
            if len(values) >= total:
                break
            values.append(token)
        if len(values) >= total:
            break
    if len(values) < total:
        raise MwfnFormatError(f"Expected {total} values, found {len(values)}")
    return values


def _shell_transform(shell_type: int) -> np.ndarray:
    """Map from internal to .mwfn function order within one shell.

    Pure shells are stored internally as m = -l..l and in .mwfn as
    0, +1, -1, +2, -2, ...
    """
    l = abs(shell_type)
    if l > _MAX_ANGULAR_MOMENTUM:
        raise ValueError(f"Unsupported shell type {shell_type}")
    if shell_type >= 0:
        return np.eye((l + 1) * (l + 2) // 2)
    size = 2 * l + 1
    order = [l]
    for k in range(1, l + 1):
        order.extend((l + k, l - k))
    transform = np.zeros((size, size))
    for row, col in enumerate(order):
        transform[row, col] = 1.0
    return transform


@dataclass
class Wavefunction:
    """Centers, basis set and orbitals of a molecule, plus integral matrices."""

    wfntype: int = 0
    e_tot: float | None = None
    vt_ratio: float | None = None
    temperature: float = 0.0
    chemical_potential: float = 0.0
    centers: list[Center] = field(default_factory=list)
    orbitals: list[Orbital] = field(default_factory=list)
    gradient: np.ndarray | None = None
    hessian: np.ndarray | None = None

    overlap: np.ndarray | None = None
    kinetic: np.ndarray | None = None
    nuclear: np.ndarray | None = None
    dipole_x: np.ndarray | None = None
    dipole_y: np.ndarray | None = None
    dipole_z: np.ndarray | None = None
    quadrupole_xx: np.ndarray | None = None
    quadrupole_xy: np.ndarray | None = None
    quadrupole_xz: np.ndarray | None = None
    quadrupole_yy: np.ndarray | None = None
    quadrupole_yz: np.ndarray | None = None
    quadrupole_zz: np.ndarray | None = None

    # ---- reading and writing -------------------------------------------------

    @classmethod
    def read(cls, path, output: bool = False) -> "Wavefunction":
        """Load a wavefunction from a .mwfn file."""
        try:
            text = Path(path).read_text()
        except OSError as exc:
            raise MwfnFormatError(f"Multiwfn file {path} cannot be read: {exc}") from exc
        if output:
            print(f"Reading existent Multiwfn file {path} ...")

        wfn = cls()
        lines = iter(text.splitlines())
        nbasis: int | None = None
        nindbasis: int | None = None
        shells: list[Shell] = []
        shell_centers: list[int] = []
        shells_assigned = False
        transform: np.ndarray | None = None
        coefficients: np.ndarray | None = None
        current: int | None = None

        def build_orbitals() -> np.ndarray:
            wfn.orbitals = [Orbital(coeff=np.zeros(nbasis)) for _ in range(nindbasis)]
            return np.zeros((nbasis, nindbasis))

        def assign_shells() -> None:
            for shell, center_number in zip(shells, shell_centers):
                if not 1 <= center_number <= len(wfn.centers):
                    raise MwfnFormatError(f"Shell refers to unknown center {center_number}")
                wfn.centers[center_number - 1].shells.append(shell)

        def orbital() -> Orbital:
            if current is None or not 0 <= current < len(wfn.orbitals):
                raise MwfnFormatError("Orbital field outside of a valid orbital")
            return wfn.orbitals[current]

        for line in lines:
            tokens = line.split()
            if not tokens:
                continue
            key = tokens[0]
            if key == "Wfntype=":
                wfn.wfntype = _int(_argument(tokens))
            elif key == "E_tot=":
                wfn.e_tot = _safe_float(_argument(tokens))
            elif key == "VT_ratio=":
                wfn.vt_ratio = _safe_float(_argument(tokens))
            elif key == "Ncenter=":
                wfn.centers = [Center() for _ in range(_int(_argument(tokens)))]
            elif key == "$Centers":
                for center in wfn.centers:
                    fields = next(lines, "").split()
                    if len(fields) < 7:
                        raise MwfnFormatError("Incomplete center line")
                    center.index = _int(fields[2])
                    center.nuclear_charge = _safe_float(fields[3])
                    center.coordinates = [
                        _safe_float(value) * ANGSTROM_TO_BOHR for value in fields[4:7]
                    ]
            elif key == "Nbasis=":
                nbasis = _int(_argument(tokens))
                if nindbasis is not None:
                    coefficients = build_orbitals()
            elif key == "Nindbasis=":
                nindbasis = _int(_argument(tokens))
                if nbasis is not None:
                    coefficients = build_orbitals()
            elif key == "Nshell=":
                count = _int(_argument(tokens))
                shells = [Shell() for _ in range(count)]
                shell_centers = [0] * count
            elif key == "$Shell":
                kind = _argument(tokens)
                if kind == "types":
                    for shell, token in zip(shells, _read_tokens(lines, len(shells))):
                        shell.type = _int(token)
                elif kind == "centers":
                    shell_centers = [_int(t) for t in _read_tokens(lines, len(shells))]
                elif kind == "contraction":
                    for shell, token in zip(shells, _read_tokens(lines, len(shells))):
                        n = _int(token)
                        shell.exponents = [0.0] * n
                        shell.coefficients = [0.0] * n
                        shell.normalized_coefficients = [0.0] * n
            elif key in ("$Primitive", "$Contraction"):
                values = iter(
                    _safe_float(t)
                    for t in _read_tokens(lines, sum(s.num_prims() for s in shells))
                )
                for shell in shells:
                    filled = [next(values) for _ in range(shell.num_prims())]
                    if key == "$Primitive":
                        shell.exponents = filled
                    else:
                        shell.coefficients = filled
            elif key == "Index=":
                if transform is None:
                    assign_shells()
                    shells_assigned = True
                    transform = wfn.matrix_transform()
                current = _int(_argument(tokens)) - 1
            elif key == "Type=":
                orbital().type = _int(_argument(tokens))
            elif key == "Energy=":
                orbital().energy = _safe_float(_argument(tokens))
            elif key == "Occ=":
                orbital().occ = _safe_float(_argument(tokens))
            elif key == "Sym=":
                orbital().sym = _argument(tokens)
            elif key == "$Coeff":
                target = orbital()
                values = _read_tokens(lines, target.coeff.size)
                coefficients[:, current] = [_safe_float(t) for t in values]

        if not shells_assigned:
            assign_shells()
            transform = wfn.matrix_transform()
        if coefficients is not None:
            if transform.shape[1] != coefficients.shape[0]:
                raise MwfnFormatError(
                    f"Nbasis= {coefficients.shape[0]} does not match the "
                    f"{transform.shape[1]} basis functions of the shells"
                )
            wfn.set_coefficient_matrix(transform.T @ coefficients)
        wfn.normalize()
        return wfn

    def export(self, path, output: bool = False) -> None:
        """Write the wavefunction to a .mwfn file."""
        if output:
            print(f"Exporting wavefunction information to {path} ...")
        out: list[str] = ["# Generated by Chinium\n"]

        out.append("\n\n# Overview\n")
        out.append("Wfntype= 0\n")
        out.append(f"Charge= {self.charge():f}\n")
        out.append(f"Naelec= {self.num_electrons(1):f}\n")
        out.append(f"Nbelec= {self.num_electrons(2):f}\n")
        if self.e_tot is not None:
            out.append(f"E_tot= {self.e_tot:f}\n")
        if self.vt_ratio is not None:
            out.append(f"VT_ratio= {self.vt_ratio:f}\n")

        out.append("\n\n# Atoms\n")
        out.append(f"Ncenter= {self.num_centers()}\n")
        out.append("$Centers\n")
        for number, center in enumerate(self.centers, start=1):
            x, y, z = (c / ANGSTROM_TO_BOHR for c in center.coordinates)
            out.append(
                f"{number} {center.symbol()} {center.index} "
                f"{center.nuclear_charge:f} {x:f} {y:f} {z:f}\n"
            )

        out.append("\n\n# Basis set\n")
        out.append(f"Nbasis= {self.num_basis()}\n")
        out.append(f"Nindbasis= {self.num_ind_basis()}\n")
        out.append(f"Nprims= {self.num_prims()}\n")
        out.append(f"Nshell= {self.num_shells()}\n")
        out.append(f"Nprimshell= {self.num_prim_shells()}\n")
        out.append("$Shell types\n")
        for center in self.centers:
            out.append("".join(f" {s.type}" for s in center.shells) + "\n")
        out.append("$Shell centers\n")
        for number, center in enumerate(self.centers, start=1):
            out.append(f" {number}" * len(center.shells) + "\n")
        out.append("$Shell contraction degrees\n")
        for center in self.centers:
            out.append("".join(f" {s.num_prims()}" for s in center.shells) + "\n")
        out.append("$Primitive exponents\n")
        for center in self.centers:
            out.append("".join(f" {e:E}" for s in center.shells for e in s.exponents) + "\n")
        out.append("$Contraction coefficients\n")
        for center in self.centers:
            out.append(
                "".join(f" {c:E}" for s in center.shells for c in s.coefficients) + "\n"
            )

        out.append("\n\n# Orbitals\n")
        coefficients = self.matrix_transform() @ self.coefficient_matrix()
        for number, orb in enumerate(self.orbitals):
            out.append(f"Index= {number + 1:9d}\n")
            out.append(f"Type= {orb.type}\n")
            out.append(f"Energy= {orb.energy:E}\n")
            out.append(f"Occ= {orb.occ:E}\n")
            out.append(f"Sym= {orb.sym}\n")
            out.append("$Coeff\n")
            out.append("".join(f" {c:E}" for c in coefficients[:, number]) + "\n\n")

        Path(path).write_text("".join(out))

    # ---- counts ---------------------------------------------------------------

    def _shells(self) -> Iterator[Shell]:
        for center in self.centers:
            yield from center.shells

    def num_electrons(self, spin: int = 0) -> float:
        """Total electron count, or half of it for one spin channel when ``spin`` is nonzero."""
        total = sum(orb.occ for orb in self.orbitals)
        return total / 2 if spin != 0 else total

    def charge(self) -> float:
        return sum(c.nuclear_charge for c in self.centers) - self.num_electrons(0)

    def num_centers(self) -> int:
        return len(self.centers)

    def num_basis(self) -> int:
        return sum(shell.size() for shell in self._shells())

    def num_ind_basis(self) -> int:
        return len(self.orbitals)

    def num_prims(self) -> int:
        """Number of primitive Gaussians, counting every shell as Cartesian."""
        total = 0
        for shell in self._shells():
            l = abs(shell.type)
            total += (l + 1) * (l + 2) // 2 * shell.num_prims()
        return total

    def num_shells(self) -> int:
        return sum(len(c.shells) for c in self.centers)

    def num_prim_shells(self) -> int:
        return sum(shell.num_prims() for shell in self._shells())

    # ---- matrices -------------------------------------------------------------

    def matrix_transform(self) -> np.ndarray:
        """Permutation taking internal basis-function order to .mwfn order."""
        blocks = [_shell_transform(shell.type) for shell in self._shells()]
        size = sum(b.shape[0] for b in blocks)
        transform = np.zeros((size, size))
        start = 0
        for block in blocks:
            n = block.shape[0]
            transform[start:start + n, start:start + n] = block
            start += n
        return transform

    def coefficient_matrix(self) -> np.ndarray:
        matrix = np.zeros((self.num_basis(), self.num_ind_basis()))
        for j, orb in enumerate(self.orbitals):
            matrix[:, j] = orb.coeff
        return matrix

    def set_coefficient_matrix(self, matrix) -> None:
        """Set orbital coefficients column by column, resizing the orbital list."""
        matrix = np.asarray(matrix, dtype=float)
        if matrix.ndim != 2:
            raise ValueError("Coefficient matrix must be two-dimensional")
        ncols = matrix.shape[1]
        del self.orbitals[ncols:]
        self.orbitals.extend(Orbital() for _ in range(ncols - len(self.orbitals)))
        for j, orb in enumerate(self.orbitals):
            orb.coeff = matrix[:, j].copy()

    def energies(self) -> np.ndarray:
        return np.array([orb.energy for orb in self.orbitals], dtype=float)

    def set_energies(self, energies) -> None:
        values = np.asarray(energies, dtype=float).ravel()
        if values.size < len(self.orbitals):
            raise ValueError("Fewer energies than orbitals")
        for orb, value in zip(self.orbitals, values):
            orb.energy = float(value)

    def occupations(self) -> np.ndarray:
        return np.array([orb.occ for orb in self.orbitals], dtype=float)

    def set_occupations(self, occupations) -> None:
        """Set occupations of the leading orbitals; extra values are ignored."""
        for orb, value in zip(self.orbitals, np.asarray(occupations, dtype=float).ravel()):
            orb.occ = float(value)

    def fock(self) -> np.ndarray:
        """Fock matrix S C E C^T S rebuilt from orbital energies."""
        if self.overlap is None:
            raise ValueError("Overlap matrix is not available")
        c = self.coefficient_matrix()
        return self.overlap @ c @ np.diag(self.energies()) @ c.T @ self.overlap

    def density(self) -> np.ndarray:
        c = self.coefficient_matrix()
        return c @ np.diag(self.occupations()) @ c.T

    def energy_density(self) -> np.ndarray:
        c = self.coefficient_matrix()
        return c @ np.diag(self.occupations() * self.energies()) @ c.T

    # ---- setup ----------------------------------------------------------------

    def set_basis(self, basis_name: str, output: bool = False) -> None:
        """Assign shells from ``$CHINIUM_PATH/BasisSets/<basis_name>.gbs``."""
        root = os.environ.get("CHINIUM_PATH")
        if root is None:
            raise BasisSetError("CHINIUM_PATH is not set")
        path = Path(root) / "BasisSets" / f"{basis_name}.gbs"
        if output:
            print(f"Reading basis set file {path} ...")
        library = read_basis(path)
        for center in self.centers:
            match = next((bare for bare in library if bare.index == center.index), None)
            if match is None:
                raise BasisSetError(
                    f"Basis set file does not include element with index {center.index}"
                )
            center.shells = copy.deepcopy(match.shells)
        self.normalize()

    def set_centers(self, atoms: Iterable, output: bool = False) -> None:
        """Replace the centers by rows of (index, charge, x, y, z) in Bohr."""
        if output:
            print("Reading atomic coordinates from input file ...")
        self.centers = []
        for atom in atoms:
            index, charge, x, y, z = (float(v) for v in atom)
            self.centers.append(
                Center(index=round(index), nuclear_charge=charge, coordinates=[x, y, z])
            )

    def normalize(self) -> None:
        """Compute normalized contraction coefficients for every shell."""
        for shell in self._shells():
            shell.normalize()

    def add_nuclear_repulsion(self, orders: Iterable[int], output: bool = False) -> None:
        """Add nuclear repulsion energy (0), gradient (1) and Hessian (2) contributions."""
        orders = set(orders)
        charges = [c.nuclear_charge for c in self.centers]
        coordinates = np.array([c.coordinates for c in self.centers], dtype=float).reshape(-1, 3)
        n = self.num_centers()
        if 0 in orders:
            if output:
                print("Calculating nuclear repulsion energy ... ", end="")
            start = time.perf_counter()
            self.e_tot = (self.e_tot or 0.0) + nuclear_repulsion_energy(charges, coordinates)
            if output:
                print(f"Done in {time.perf_counter() - start:f} s")
        if 1 in orders:
            start = time.perf_counter()
            if output:
                print("Calculating nuclear repulsion gradient ... ", end="")
            if self.gradient is None or self.gradient.shape != (n, 3):
                raise ValueError("Nuclear gradient is not allocated")
            self.gradient = self.gradient + nuclear_repulsion_gradient(charges, coordinates)
            if output:
                print(f"Done in {time.perf_counter() - start:f} s")
        if 2 in orders:
            start = time.perf_counter()
            if output:
                print("Calculating nuclear repulsion hessian ... ", end="")
            if self.hessian is None or self.hessian.shape != (3 * n, 3 * n):
                raise ValueError("Nuclear hessian is not allocated")
            self.hessian = self.hessian + nuclear_repulsion_hessian(charges, coordinates)
            if output:
                print(f"Done in {time.perf_counter() - start:f} s")

    # ---- reports --------------------------------------------------------------

    def format_centers(self) -> str:
        """Table of atoms with coordinates in Bohr."""
        lines = [
            "Atoms:",
            "| Number | Symbol | Index | Charge |  X (Bohr)  |  Y (Bohr)  |  Z (Bohr)  |",
        ]
        for number, center in enumerate(self.centers):
            x, y, z = center.coordinates
            lines.append(
                f"| {number:6d} | {center.symbol():>6s} | {center.index:5d} | "
                f"{center.nuclear_charge:6.2f} | {x: 10.5f} | {y: 10.5f} | {z: 10.5f} |"
            )
        return "\n".join(lines) + "\n"

    def format_orbitals(self) -> str:
        """Table of orbital energies (eV) and occupations."""
        lines = ["Orbitals:"]
        if self.wfntype == 0:
            lines.append("| Number | Energy (eV) | Occupation |")
            for number, orb in enumerate(self.orbitals):
                lines.append(
                    f"| {number:6d} | {orb.energy * HARTREE_TO_EV: 11.4f} | {orb.occ:10.8f} |"
                )
        return "\n".join(lines) + "\n"