import pytest

from kikuchi.space import Cluster, ClusterType, OrbitRegistry, generate_orbit
from kikuchi.space.orbit import cluster_signature
from tests.utils import assert_msonable, assert_pickles

NN_PAIR = [[(0, 0, 0), (0.5, 0.5, 0.5)]]
NNN_PAIR = [[(0, 0, 0), (1, 0, 0)]]


@pytest.mark.parametrize(
    "coords, a2_size, b2_size",
    [
        ([[(0, 0, 0)]], 2, 1),
        (NN_PAIR, 8, 8),
        (NNN_PAIR, 6, 3),
        ([[(0, 0, 0), (1, 0, 0), (0.5, 0.5, 0.5)]], 24, 12),
        ([[(0, 0, 0), (1, 0, 0), (0.5, 0.5, 0.5), (0.5, -0.5, 0.5)]], 12, 12),
    ],
)
def test_orbit_sizes(coords, a2_size, b2_size, a2_operations, b2_operations):
    cluster = Cluster.from_coords(coords)
    assert len(generate_orbit(cluster, a2_operations)) == a2_size
    assert len(generate_orbit(cluster, b2_operations)) == b2_size


def test_orbit_members_are_canonical(a2_tetrahedron, a2_operations):
    orbit = generate_orbit(a2_tetrahedron, a2_operations)
    assert all(member == member.canonical() for member in orbit)
    # first operation is the identity
    assert orbit[0] == a2_tetrahedron.canonical()


def test_closure(a2_tetrahedron, a2_operations, b2_tetrahedron, b2_operations):
    a2_type = ClusterType.from_cluster(a2_tetrahedron, a2_operations)
    assert a2_type.is_closed_under(a2_operations)
    b2_type = ClusterType.from_cluster(b2_tetrahedron, b2_operations)
    assert b2_type.is_closed_under(b2_operations)
    # centering translations swap the two sublattices
    assert not b2_type.is_closed_under(a2_operations)


def test_contains(b2_tetrahedron, b2_operations):
    cluster_type = ClusterType.from_cluster(b2_tetrahedron, b2_operations)
    assert b2_tetrahedron in cluster_type
    assert b2_tetrahedron.translate((3, -1, 2)) in cluster_type
    assert b2_tetrahedron.translate((0.5, 0.5, 0.5)) not in cluster_type
    # swapping sublattices changes the cluster unless the partition is ignored
    swapped = Cluster(reversed(b2_tetrahedron.sublattices))
    assert swapped not in cluster_type
    swapped_image = Cluster(
        reversed(b2_tetrahedron.translate((0.5, 0.5, 0.5)).sublattices)
    )
    assert cluster_type.contains(swapped_image.flattened(), flatten=True)
    assert not cluster_type.contains(b2_tetrahedron.decorate("s1"))


def test_cluster_type(a2_tetrahedron, a2_operations):
    cluster_type = ClusterType.from_cluster(a2_tetrahedron, a2_operations)
    assert cluster_type.multiplicity == 12
    assert cluster_type.num_sites == 4
    assert cluster_type.sublattice_sizes == (4,)
    assert "Multiplicity : 12" in str(cluster_type)
    assert_msonable(cluster_type)
    assert_pickles(cluster_type)


def test_signature(b2_tetrahedron):
    decorated = Cluster(
        [
            [site.with_symbol(s) for site, s in zip(sub, ("s2", "s1"))]
            for sub in b2_tetrahedron.sublattices
        ]
    )
    assert cluster_signature(decorated) == (
        (2, ("s1", "s2")),
        (2, ("s1", "s2")),
    )
    assert cluster_signature(b2_tetrahedron, flatten=True) == (
        (4, (None, None, None, None)),
    )


def test_registry(a2_operations):
    nn_type = ClusterType.from_cluster(Cluster.from_coords(NN_PAIR), a2_operations)
    nnn_type = ClusterType.from_cluster(Cluster.from_coords(NNN_PAIR), a2_operations)
    registry = OrbitRegistry([nn_type])
    assert registry.add(nnn_type) == 1
    assert len(registry) == 2
    assert registry[1] is nnn_type
    assert list(registry) == [nn_type, nnn_type]

    assert registry.find(Cluster.from_coords([[(2, 2, 2), (1.5, 2.5, 1.5)]])) == 0
    assert registry.find(Cluster.from_coords([[(0, 0, 0), (0, 0, -1)]])) == 1
    assert registry.find(Cluster.from_coords([[(0, 0, 0), (1, 1, 0)]])) is None
    assert registry.find(Cluster.from_coords([[(0, 0, 0)]])) is None

    # a two sublattice pair is only found with a flattened registry
    split_pair = Cluster.from_coords([[(0, 0, 0)], [(0.5, 0.5, 0.5)]])
    assert registry.find(split_pair) is None
    flat_registry = OrbitRegistry([nn_type, nnn_type], flatten=True)
    assert flat_registry.find(split_pair) == 0
