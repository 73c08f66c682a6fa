import numpy.testing as npt
import pytest

from kikuchi.identification import compute_nij, generate_clus_coord_list
from kikuchi.identification.cluslist import point_multiplicity
from kikuchi.space import Cluster
from kikuchi.utils.exceptions import GeometryError
from tests.utils import assert_msonable, assert_pickles


@pytest.fixture(scope="module")
def a2_data(a2_tetrahedron, a2_operations):
    return generate_clus_coord_list([a2_tetrahedron], a2_operations)


@pytest.fixture(scope="module")
def b2_data(b2_tetrahedron, b2_operations):
    return generate_clus_coord_list([b2_tetrahedron], b2_operations)


def test_a2_types(a2_data):
    assert a2_data.tc == 5
    assert a2_data.sizes == [4, 3, 2, 2, 1]
    assert a2_data.orbit_sizes == [12, 24, 8, 6, 2]
    npt.assert_allclose(a2_data.multiplicities, [6, 12, 4, 3, 1])
    assert a2_data.rc == [[4], [3], [2], [2], [1]]
    assert a2_data.max_size == 4
    assert a2_data.nxc == 1
    assert a2_data.num_point_types == 1
    # nearest neighbor pair before next nearest neighbor pair
    nn, nnn = a2_data.clusters[2], a2_data.clusters[3]
    dist = lambda c: sum((c.frac_coords[0] - c.frac_coords[1]) ** 2)  # noqa: E731
    assert dist(nn) == pytest.approx(0.75)
    assert dist(nnn) == pytest.approx(1.0)


def test_a2_nij(a2_data):
    assert a2_data.nij[0] == [1, 4, 4, 2, 4]
    assert a2_data.nij[1] == [0, 1, 2, 1, 3]
    assert a2_data.nij[2] == [0, 0, 1, 0, 2]
    assert a2_data.nij[3] == [0, 0, 0, 1, 2]
    assert a2_data.nij[4] == [0, 0, 0, 0, 1]


def test_b2_types(b2_data):
    assert b2_data.tc == 8
    assert b2_data.sizes == [4, 3, 3, 2, 2, 2, 1, 1]
    assert b2_data.num_point_types == 2
    assert sum(b2_data.multiplicities[i] for i in (6, 7)) == pytest.approx(1.0)
    assert all(rc in ([1, 0], [0, 1]) for rc in b2_data.rc[6:])
    for i, row in enumerate(b2_data.nij):
        assert row[i] == 1
        # every type contains as many points as it has sites
        assert sum(row[6:]) == b2_data.sizes[i]


def test_point_multiplicity(a2_data, b2_data):
    assert point_multiplicity(a2_data.cluster_types) == 2
    assert point_multiplicity(b2_data.cluster_types) == 2


def test_compute_nij_with_registry(a2_data):
    nij = compute_nij(a2_data.cluster_types, a2_data.registry())
    assert nij == a2_data.nij


def test_discovery_is_independent_of_site_order(
    a2_tetrahedron, a2_operations, a2_data
):
    shuffled = Cluster(
        [[a2_tetrahedron.sites[i] for i in (3, 1, 0, 2)]]
    ).translate((1, 2, -1))
    data = generate_clus_coord_list([shuffled], a2_operations)
    assert data.sizes == a2_data.sizes
    npt.assert_allclose(data.multiplicities, a2_data.multiplicities)
    assert data.nij == a2_data.nij


def test_pair_approximation(a2_operations):
    pair = Cluster.from_coords([[(0, 0, 0), (0.5, 0.5, 0.5)]])
    data = generate_clus_coord_list([pair], a2_operations)
    assert data.sizes == [2, 1]
    npt.assert_allclose(data.multiplicities, [4, 1])
    assert data.nij == [[1, 2], [0, 1]]


def test_decorated_types(a2_tetrahedron, a2_operations):
    data = generate_clus_coord_list([a2_tetrahedron], a2_operations, ["s1"])
    # binary correlation functions match the geometric cluster types
    assert data.tc == 5
    assert all(cluster.is_decorated for cluster in data.clusters)
    data = generate_clus_coord_list([a2_tetrahedron], a2_operations, ["s1", "s2"])
    assert data.num_point_types == 2
    assert point_multiplicity(data.cluster_types) == 2
    npt.assert_allclose(data.multiplicities[-2:], [1, 1])


def test_no_points():
    with pytest.raises(GeometryError):
        generate_clus_coord_list([Cluster([[]])], [])


def test_msonable(b2_data):
    assert_msonable(b2_data)
    assert_pickles(b2_data)
