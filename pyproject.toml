[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chinium"
version = "0.1.0"
description = "Quantum chemistry toolkit: Riemannian trust-region optimizers, DIIS, Multiwfn wavefunction files, nuclear repulsion and orbital localization"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "scipy",
]
keywords = [
    "quantum chemistry",
    "orbital localization",
    "riemannian optimization",
    "trust region",
    "diis",
    "multiwfn",
    "basis set",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Chemistry",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["chinium"]

[tool.hatch.build.targets.sdist]
include = [
    "chinium",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
