# chinium

A small quantum chemistry toolkit built on NumPy and SciPy. It provides:

- **Manifolds** for Riemannian optimization: `Orthogonal` and `Simplex`
  (`chinium.manifold`), `Grassmann` and `GrassmannQLocal` (`chinium.grassmann`).
  Operations a manifold does not support (for example geodesic distance or
  parallel transport on `Orthogonal`) raise `ManifoldError`.
- **Optimizers**: a truncated conjugate-gradient trust-region subproblem
  solver (`chinium.loong.loong`), a Riemannian trust-region Newton method
  (`chinium.ox.ox`), a quasi-Newton variant with BFGS Hessian updates
  (`chinium.tiger.tiger`), and a DIIS-accelerated self-consistent-field
  driver (`chinium.mouse.mouse`), with `cdiis` and `adiis` extrapolation in
  `chinium.diis`.
- **Basis sets and wavefunctions**: Gaussian `.gbs` basis set parsing
  (`chinium.basis`), reading and writing Multiwfn `.mwfn` files
  (`chinium.wavefunction`), and nuclear repulsion energy, gradient and
  Hessian (`chinium.nuclear`).
- **Orbital localization**: Fock, Foster–Boys and Pipek–Mezey schemes
  (`chinium.localization`).

Atomic units (bohr, hartree) are used throughout; `.mwfn` coordinates are
stored in ångström and converted on reading and writing.

## Element symbols

```python
from chinium.constants import atomic_number, element_symbol

atomic_number("O")   # 8
element_symbol(8)    # "O"
```

Only elements H through Ca are known.

## Nuclear repulsion

```python
import numpy as np
from chinium.nuclear import (
    nuclear_repulsion_energy,
    nuclear_repulsion_gradient,
    nuclear_repulsion_hessian,
)

charges = np.array([1.0, 1.0])
coordinates = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 1.4]])

energy = nuclear_repulsion_energy(charges, coordinates)      # 1 / 1.4
gradient = nuclear_repulsion_gradient(charges, coordinates)  # shape (2, 3)
hessian = nuclear_repulsion_hessian(charges, coordinates)    # shape (6, 6)
```

`Wavefunction.add_nuclear_repulsion(orders)` adds these terms to a
wavefunction's `e_tot`, `gradient` and `hessian` (orders 0, 1 and 2); the
gradient and Hessian arrays must already be allocated with the right shape.

## Reading a basis set

```python
from chinium.basis import read_basis

centers = read_basis("cc-pvdz.gbs")
for center in centers:
    print(center.symbol(), center.num_shells(), center.num_basis())
```

`parse_basis(text)` does the same for a string. Malformed input raises
`BasisSetError`. `Wavefunction.set_basis(name)` looks the file up as
`$CHINIUM_PATH/BasisSets/<name>.gbs`.

## Wavefunction files and localization

```python
from chinium.wavefunction import Wavefunction
from chinium.localization import localize

wfn = Wavefunction.read("water.mwfn", True)
print(wfn.format_centers())
print(wfn.format_orbitals())

localize(wfn, "FOCK", "BOTH", 1)
wfn.export("water_localized.mwfn", True)
```

The localization scheme is one of `FOCK`, `FOSTER` or `PIPEK`; the orbital
range is one of `OCC`, `VIR`, `ALL` or `BOTH` (case-insensitive). The Fock
scheme and Pipek–Mezey need `wfn.overlap`, and Foster–Boys needs the
`dipole_*` and `quadrupole_xx/yy/zz` matrices, to be set on the wavefunction
beforehand. A failed optimization raises `LocalizationError`; a malformed
`.mwfn` file raises `MwfnFormatError`.

## Optimizing on a manifold

`ox` minimises a function over a manifold. The function takes a point and
returns the value, the Euclidean gradient and a callable giving the Euclidean
Hessian applied to a direction. The result is an `OptimizationResult` with
`converged`, `value`, `iterations` and `point`:

```python
import numpy as np
from scipy.linalg import expm
from chinium.manifold import Orthogonal
from chinium.ox import ox

a = np.diag([1.0, 2.0, 3.0])
n = np.diag([3.0, 2.0, 1.0])

def func(u):
    value = -np.trace(u.T @ a @ u @ n)
    gradient = -2.0 * a @ u @ n
    return value, gradient, lambda v: -2.0 * a @ v @ n

k = np.array([[0.0, 0.1, 0.2], [-0.1, 0.0, 0.3], [-0.2, -0.3, 0.0]])
result = ox(func, (1e-6, 1e-4, 1e-7), 100, Orthogonal(expm(k)), 0)
print(result.converged, result.value)
```

`tiger` takes the same arguments. A positive `output` prints an iteration
table.

## What this package does not do

It does not compute one- or two-electron integrals (overlap, kinetic,
nuclear attraction, multipole or repulsion integrals), build initial guesses,
evaluate exchange-correlation functionals or run a complete SCF calculation
from an input file, and it has no command-line program. Integral matrices
must be supplied by the caller.

## Tests

The test suite uses pytest and is installed with the `test` extra.