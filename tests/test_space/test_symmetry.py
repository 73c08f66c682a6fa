import numpy as np
import numpy.testing as npt
import pytest
from pymatgen.core.operations import SymmOp

from kikuchi.space import (
    AffineTransform,
    Cluster,
    Site,
    SpaceGroup,
    SymmetryOperation,
    Vector3D,
)
from kikuchi.utils.exceptions import ConfigurationError
from tests.utils import assert_msonable, assert_pickles


@pytest.fixture
def rotation():
    # 4-fold rotation about z
    return np.array([[0, -1, 0], [1, 0, 0], [0, 0, 1]])


def test_constructor():
    identity = AffineTransform()
    assert identity.is_identity
    assert identity.is_pure_rotation
    with pytest.raises(ConfigurationError):
        AffineTransform(np.eye(2))
    with pytest.raises(ConfigurationError):
        AffineTransform(np.eye(3), [0, 0])
    with pytest.raises(ConfigurationError):
        AffineTransform.from_flat(range(9))


def test_from_flat(rotation):
    values = np.hstack([rotation, [[0.5], [0], [0.25]]]).flatten()
    transform = AffineTransform.from_flat(values)
    npt.assert_array_equal(transform.rotation_matrix, rotation)
    npt.assert_array_equal(transform.translation_vector, [0.5, 0, 0.25])
    assert not transform.is_pure_rotation
    assert transform == AffineTransform(rotation, [0.5, 0, 0.25])
    symmop = SymmOp.from_rotation_and_translation(rotation, [0.5, 0, 0.25])
    assert AffineTransform.from_symmop(symmop) == transform


def test_operate(rotation):
    transform = AffineTransform(rotation, [0, 0, 1])
    npt.assert_allclose(transform.operate([1, 0, 0]), [0, 1, 1])
    npt.assert_allclose(
        transform.operate([[1, 0, 0], [0, 1, 0]]), [[0, 1, 1], [-1, 0, 1]]
    )


def test_transform_keeps_partition_and_order(b2_tetrahedron, rotation):
    transform = AffineTransform(rotation)
    image = transform.apply_to_cluster(b2_tetrahedron)
    assert image.sublattice_sizes == b2_tetrahedron.sublattice_sizes
    assert image.sites[1].position == Vector3D(0, 1, 0)
    images = transform.transform_clusters([b2_tetrahedron, b2_tetrahedron])
    assert len(images) == 2 and images[0] == image


def test_symmetry_operation_wraps_sites(rotation):
    operation = SymmetryOperation(rotation, [0.5, 0.5, 0.5])
    image = operation.apply_to_site(Site((1, 0, 0), "s1"))
    assert image == Site((0.5, 0.5, 0.5), "s1")


def test_symmetry_operation_is_rigid(a2_tetrahedron, rotation):
    operation = SymmetryOperation(rotation, [0.5, 0.5, 0.5])
    image = operation.apply_to_cluster(a2_tetrahedron)
    # sites are sorted but not wrapped, so distances are preserved
    assert image == image.sorted()
    coords = a2_tetrahedron.frac_coords
    image_coords = image.frac_coords
    dists = sorted(
        np.linalg.norm(c1 - c2) for i, c1 in enumerate(coords) for c2 in coords[:i]
    )
    image_dists = sorted(
        np.linalg.norm(c1 - c2)
        for i, c1 in enumerate(image_coords)
        for c2 in image_coords[:i]
    )
    npt.assert_allclose(dists, image_dists)


def test_operation_msonable(rotation):
    operation = SymmetryOperation(rotation, [0.5, 0, 0])
    assert_msonable(operation)
    assert_pickles(operation)


def test_space_group(a2_space_group):
    assert a2_space_group.order == len(a2_space_group) == 96
    assert all(isinstance(op, SymmetryOperation) for op in a2_space_group)
    assert a2_space_group[0].is_identity
    npt.assert_array_equal(a2_space_group.rotate_matrix, np.eye(3))
    npt.assert_array_equal(a2_space_group.translate_vector, np.zeros(3))
    assert_msonable(a2_space_group)

    symmops = [op.symmop for op in a2_space_group.operations[:5]]
    group = SpaceGroup.from_symmops("part", symmops)
    assert group.operations == a2_space_group.operations[:5]


def test_group_closure(a2_operations):
    # the product of two operations is again an operation, modulo lattice
    def affine_key(matrix):
        rot = np.round(matrix[:3, :3]).astype(int)
        trans = np.round(matrix[:3, 3] % 1 * 2).astype(int) % 2
        return rot.tobytes() + trans.tobytes()

    keys = {affine_key(op.symmop.affine_matrix) for op in a2_operations}
    assert len(keys) == 96
    for op1 in a2_operations[::7]:
        for op2 in a2_operations[::11]:
            product = op1.symmop.affine_matrix @ op2.symmop.affine_matrix
            assert affine_key(product) in keys


def test_cluster_from_transformed_coords(b2_tetrahedron):
    transform = AffineTransform(2 * np.eye(3))
    image = transform.apply_to_cluster(b2_tetrahedron)
    assert image == Cluster.from_coords(
        [[(0, 0, 0), (2, 0, 0)], [(1, 1, 1), (1, -1, 1)]]
    )
