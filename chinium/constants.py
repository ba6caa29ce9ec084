"""Physical constants, element tables and small matrix helpers."""

from __future__ import annotations

import numpy as np

ANGSTROM_TO_BOHR = 1.8897259886
HARTREE_TO_EV = 27.21139664130791

ELEMENT_SYMBOLS: tuple[str, ...] = (
    "H", "He", "Li", "Be", "B", "C", "N", "O", "F", "Ne",
    "Na", "Mg", "Al", "Si", "P", "S", "Cl", "Ar", "K", "Ca",
)

_SYMBOL_TO_Z: dict[str, int] = {
    symbol.upper(): z for z, symbol in enumerate(ELEMENT_SYMBOLS, start=1)
}


def element_symbol(z: int) -> str:
    """Return the element symbol for atomic number ``z``."""
    if not 1 <= z <= len(ELEMENT_SYMBOLS):
        raise ValueError(f"No element symbol known for atomic number {z}")
    return ELEMENT_SYMBOLS[z - 1]


def atomic_number(symbol: str) -> int:
    """Return the atomic number of an element symbol, case-insensitively."""
    try:
        return _SYMBOL_TO_Z[symbol.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown element symbol {symbol!r}") from None


def frobenius_dot(x, y) -> float:
    """Frobenius inner product, trace(x^T y)."""
    return float(np.sum(np.asarray(x, dtype=float) * np.asarray(y, dtype=float)))