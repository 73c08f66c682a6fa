import numpy as np
import numpy.testing as npt
import pytest

from kikuchi.identification import (
    check_kb_sum_rules,
    compute_kb_coefficients,
    containment_order,
    kb_sum_rules,
)
from kikuchi.utils.exceptions import GeometryError

# BCC tetrahedron approximation: tetrahedron, triangle, nn pair, nnn pair, point
TETRA_MULTIPLICITIES = [6, 12, 4, 3, 1]
TETRA_NIJ = [
    [1, 4, 4, 2, 4],
    [0, 1, 2, 1, 3],
    [0, 0, 1, 0, 2],
    [0, 0, 0, 1, 2],
    [0, 0, 0, 0, 1],
]


def test_tetrahedron_coefficients():
    kb = compute_kb_coefficients(TETRA_MULTIPLICITIES, TETRA_NIJ)
    npt.assert_allclose(kb, [1, -1, 1, 1, -1], atol=1e-12)
    total, weighted = kb_sum_rules(kb, TETRA_MULTIPLICITIES)
    assert total == pytest.approx(1.0)
    assert weighted == pytest.approx(0.0, abs=1e-12)
    check_kb_sum_rules(kb, TETRA_MULTIPLICITIES)


def test_pair_approximation():
    # bcc pair approximation, z = 8
    kb = compute_kb_coefficients([4, 1], [[1, 2], [0, 1]])
    npt.assert_allclose(kb, [1, -7])
    # the weighted sum rule does not hold for every approximation
    with pytest.raises(GeometryError):
        check_kb_sum_rules(kb, [4, 1])


def test_identification_coefficients(a2_identification):
    npt.assert_allclose(a2_identification.kb_coefficients, [1, -1, 1, 1, -1])
    total, weighted = a2_identification.kb_sums
    assert total == pytest.approx(1.0)
    assert weighted == pytest.approx(0.0, abs=1e-10)


def test_containment_order():
    assert containment_order(TETRA_NIJ) == [0, 1, 2, 3, 4]
    # containers come first regardless of index order
    nij = [[1, 0, 0], [2, 1, 0], [1, 0, 1]]
    assert containment_order(nij) == [1, 2, 0]
    # ties are broken by the smallest index
    nij = [[1, 0, 0], [0, 1, 0], [2, 3, 1]]
    assert containment_order(nij) == [2, 0, 1]


def test_order_independent_of_type_order(rng):
    perm = rng.permutation(5)
    nij = np.array(TETRA_NIJ)[np.ix_(perm, perm)]
    mults = np.array(TETRA_MULTIPLICITIES)[perm]
    kb = compute_kb_coefficients(mults, nij)
    npt.assert_allclose(kb, np.array([1, -1, 1, 1, -1])[perm], atol=1e-12)


def test_cycle():
    nij = [[1, 1, 0], [1, 1, 0], [1, 1, 1]]
    with pytest.raises(GeometryError):
        containment_order(nij)
    with pytest.raises(GeometryError):
        compute_kb_coefficients([1, 1, 1], nij)


def test_bad_inputs():
    nij = np.array(TETRA_NIJ)
    nij[2, 2] = 2
    with pytest.raises(GeometryError):
        compute_kb_coefficients(TETRA_MULTIPLICITIES, nij)
    with pytest.raises(GeometryError):
        compute_kb_coefficients(TETRA_MULTIPLICITIES[:-1], TETRA_NIJ)
    with pytest.raises(GeometryError):
        compute_kb_coefficients([6, 12, 4, 0, 1], TETRA_NIJ)
