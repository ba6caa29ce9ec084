"""Quantum chemistry toolkit: manifold optimizers, DIIS, basis sets, Multiwfn files, nuclear repulsion and orbital localization."""

__version__ = "0.1.0"