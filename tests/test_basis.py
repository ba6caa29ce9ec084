import math

import pytest

from chinium.basis import BasisSetError, Center, Shell, parse_basis, read_basis
from chinium.constants import atomic_number

GBS = """! test basis
-H     0
S   2   1.00
      3.42525091D+00     1.54328967D-01
      6.23913730D-01     5.35328142D-01
****
-C     0
S   1   1.00
      7.16168370D+01     1.54328967D-01
SP   2   1.00
      2.94124940D+00    -9.99672292D-02     1.55916275D-01
      6.83483100D-01     3.99512826D-01     6.07683719D-01
D   1   1.00
      8.00000000D-01     1.00000000D+00
****
"""


def _s_overlap(shell):
    c, a = shell.normalized_coefficients, shell.exponents
    return sum(
        ci * cj * (math.pi / (ai + aj)) ** 1.5
        for ci, ai in zip(c, a)
        for cj, aj in zip(c, a)
    )


def _p_overlap(shell):
    c, a = shell.normalized_coefficients, shell.exponents
    return sum(
        ci * cj * 0.5 / (ai + aj) * (math.pi / (ai + aj)) ** 1.5
        for ci, ai in zip(c, a)
        for cj, aj in zip(c, a)
    )


def test_parse_centers_and_indices():
    centers = parse_basis(GBS)
    assert [c.index for c in centers] == [atomic_number("H"), atomic_number("C")]
    assert [c.num_shells() for c in centers] == [1, 4]


def test_shell_types_follow_labels():
    carbon = parse_basis(GBS)[1]
    assert [s.type for s in carbon.shells] == [0, 0, 1, -2]
    assert [s.size() for s in carbon.shells[1:]] == [1, 3, 5]


def test_fortran_exponents_parsed():
    hydrogen = parse_basis(GBS)[0]
    assert hydrogen.shells[0].exponents == pytest.approx([3.42525091, 0.62391373])
    assert hydrogen.shells[0].coefficients == pytest.approx([0.154328967, 0.535328142])


def test_sp_shell_splits_coefficients():
    carbon = parse_basis(GBS)[1]
    s, p = carbon.shells[1], carbon.shells[2]
    assert s.exponents == p.exponents
    assert s.coefficients == pytest.approx([-0.0999672292, 0.399512826])
    assert p.coefficients == pytest.approx([0.155916275, 0.607683719])


def test_num_basis_is_sum_of_sizes():
    for center in parse_basis(GBS):
        assert center.num_basis() == sum(s.size() for s in center.shells)


def test_normalized_s_shell_has_unit_norm():
    shell = parse_basis(GBS)[0].shells[0]
    shell.normalize()
    assert _s_overlap(shell) == pytest.approx(1.0)


def test_normalized_p_shell_has_unit_norm():
    shell = parse_basis(GBS)[1].shells[2]
    shell.normalize()
    assert _p_overlap(shell) == pytest.approx(1.0)


def test_normalize_independent_of_coefficient_scale():
    a = Shell(0, [1.3, 0.4], [0.2, 0.7])
    b = Shell(0, [1.3, 0.4], [0.6, 2.1])
    assert a.normalize() == pytest.approx(b.normalize())


def test_num_prims_and_describe():
    shell = Shell(1, [2.0, 0.5], [0.3, 0.7])
    assert shell.num_prims() == 2
    text = shell.describe()
    assert text.startswith("Type: 1\n")
    assert "2.000000 0.300000" in text


def test_center_symbol_and_describe():
    center = Center(index=atomic_number("C"), nuclear_charge=6.0, shells=[Shell(0, [1.0], [1.0])])
    assert center.symbol() == "C"
    assert "Symbol: C" in center.describe()
    assert "Type: 0" in center.describe()


def test_truncated_shell_raises():
    with pytest.raises(BasisSetError):
        parse_basis("-H 0\nS 3 1.00\n 1.0 1.0\n")


def test_bad_number_raises():
    with pytest.raises(BasisSetError):
        parse_basis("-H 0\nS 1 1.00\n abc 1.0\n****\n")


def test_read_basis_from_file(tmp_path):
    path = tmp_path / "mini.gbs"
    path.write_text(GBS)
    centers = read_basis(path)
    assert len(centers) == len(parse_basis(GBS))
    assert centers[1].shells[3].exponents == pytest.approx([0.8])


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(BasisSetError):
        read_basis(tmp_path / "absent.gbs")