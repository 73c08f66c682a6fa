from itertools import permutations, product

import numpy as np
import pytest

from kikuchi.identification import identify_cfs, identify_clusters
from kikuchi.space import Cluster, SpaceGroup, SymmetryOperation

SEED = None

# the 48 signed permutation matrices of the cubic point group
CUBIC_ROTATIONS = [
    np.array([[sign[i] * (perm[i] == j) for j in range(3)] for i in range(3)])
    for perm in permutations(range(3))
    for sign in product([1, -1], repeat=3)
]
BCC_TRANSLATIONS = [np.zeros(3), np.full(3, 0.5)]

A2_TETRAHEDRON = [[(0, 0, 0), (1, 0, 0), (0.5, 0.5, 0.5), (0.5, -0.5, 0.5)]]
B2_TETRAHEDRON = [[(0, 0, 0), (1, 0, 0)], [(0.5, 0.5, 0.5), (0.5, -0.5, 0.5)]]


@pytest.fixture(scope="module")
def rng():
    """Seed and return an RNG for test reproducibility"""
    return np.random.default_rng(SEED)


@pytest.fixture(scope="package")
def a2_operations():
    # Im-3m in the conventional cubic cell
    return [
        SymmetryOperation(rotation, translation)
        for translation, rotation in product(BCC_TRANSLATIONS, CUBIC_ROTATIONS)
    ]


@pytest.fixture(scope="package")
def b2_operations():
    # Pm-3m, no centering translation
    return [SymmetryOperation(rotation) for rotation in CUBIC_ROTATIONS]


@pytest.fixture(scope="package")
def a2_space_group(a2_operations):
    return SpaceGroup("A2-SG", a2_operations)


@pytest.fixture(scope="package")
def b2_space_group(b2_operations):
    return SpaceGroup("B2-SG", b2_operations)


@pytest.fixture(scope="package")
def a2_tetrahedron():
    return Cluster.from_coords(A2_TETRAHEDRON)


@pytest.fixture(scope="package")
def b2_tetrahedron():
    return Cluster.from_coords(B2_TETRAHEDRON)


@pytest.fixture(scope="package")
def a2_identification(a2_tetrahedron, a2_operations):
    # the disordered phase classified against itself
    return identify_clusters(
        [a2_tetrahedron], a2_operations, [a2_tetrahedron], a2_operations
    )


@pytest.fixture(scope="package")
def b2_identification(a2_tetrahedron, a2_operations, b2_tetrahedron, b2_operations):
    return identify_clusters(
        [a2_tetrahedron], a2_operations, [b2_tetrahedron], b2_operations
    )


@pytest.fixture(scope="package")
def a2_cf_identification(a2_identification, a2_tetrahedron, a2_operations):
    return identify_cfs(
        a2_identification,
        [a2_tetrahedron],
        a2_operations,
        [a2_tetrahedron],
        a2_operations,
        num_components=2,
    )


@pytest.fixture(scope="package")
def b2_cf_identification(
    b2_identification, a2_tetrahedron, a2_operations, b2_tetrahedron, b2_operations
):
    return identify_cfs(
        b2_identification,
        [a2_tetrahedron],
        a2_operations,
        [b2_tetrahedron],
        b2_operations,
        num_components=2,
    )
