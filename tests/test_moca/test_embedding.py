import numpy as np
import numpy.testing as npt
import pytest

from kikuchi.identification import generate_clus_coord_list
from kikuchi.moca import (
    Embedding,
    EmbeddingData,
    build_supercell_positions,
    generate_embeddings,
)
from kikuchi.moca.embedding import grid_scale
from kikuchi.space import Cluster
from kikuchi.utils.exceptions import GeometryError
from tests.utils import brute_force_embeddings

BCC_BASIS = [(0, 0, 0), (0.5, 0.5, 0.5)]


@pytest.fixture(scope="module")
def a2_embeddings(a2_identification):
    positions = build_supercell_positions(BCC_BASIS, 2)
    return positions, generate_embeddings(positions, a2_identification.ordered_data, 2)


def test_supercell_positions():
    positions = build_supercell_positions(BCC_BASIS, 2)
    assert positions.shape == (16, 3)
    npt.assert_array_equal(positions[0], [0, 0, 0])
    npt.assert_array_equal(positions[1], [0.5, 0.5, 0.5])
    npt.assert_array_equal(positions[2], [0, 0, 1])
    npt.assert_array_equal(positions[-1], [1.5, 1.5, 1.5])


def test_grid_scale():
    assert grid_scale([[0, 0, 0], [1, 2, 3]]) == 1
    assert grid_scale([[0.5, 0.25, 0]]) == 4
    assert grid_scale([[1 / 3, 0, 0.5]]) == 6
    with pytest.raises(GeometryError):
        grid_scale([[np.pi, 0, 0]])


def test_counts(a2_embeddings, a2_identification):
    _, data = a2_embeddings
    assert data.num_sites == 16
    # tetrahedra, triangles, nn pairs, nnn pairs, points
    counts = data.count_by_type(a2_identification.ordered_data.tc)
    assert counts[2] == 16 * 4
    assert counts[3] == 16 * 3 // 2
    assert counts[4] == 16
    assert sum(counts) == len(data)


def test_brute_force(a2_embeddings, a2_identification):
    positions, data = a2_embeddings
    for t, cluster_type in enumerate(a2_identification.ordered_data.cluster_types):
        expected = brute_force_embeddings(positions, cluster_type, 2)
        found = {e.site_set for e in data if e.cluster_type == t}
        assert found == expected


def test_unique_and_lookups(a2_embeddings):
    _, data = a2_embeddings
    keys = [e.site_set for e in data]
    assert len(keys) == len(set(keys))
    for site in range(data.num_sites):
        for embedding in data.by_site(site):
            assert site in embedding.site_indices
        assert set(data.by_type_and_site(4, site)) == {
            e for e in data.by_site(site) if e.cluster_type == 4
        }
    assert data.by_type_and_site(99, 0) == ()
    assert all(isinstance(e, Embedding) for e in data)
    assert all(e.alpha_indices == (1,) * len(e) for e in data)


def test_decorated_embeddings(a2_cf_identification):
    positions = build_supercell_positions(BCC_BASIS, 2)
    data = generate_embeddings(positions, a2_cf_identification.ordered_cf_data, 2)
    assert all(set(e.alpha_indices) == {1} for e in data)
    plain = generate_embeddings(
        positions, a2_cf_identification.disordered_cf_data, 2, progress=False
    )
    assert len(data) == len(plain)


def test_self_overlap_warning(a2_operations):
    cluster_data = generate_clus_coord_list(
        [Cluster.from_coords([[(0, 0, 0), (1, 0, 0)]])], a2_operations
    )
    positions = build_supercell_positions(BCC_BASIS, 1)
    with pytest.warns(RuntimeWarning):
        data = generate_embeddings(positions, cluster_data, 1)
    assert all(len(e) == 1 for e in data)


def test_bad_positions(a2_identification):
    positions = np.array([[0, 0, 0], [1, 0, 0]])
    with pytest.raises(GeometryError):
        generate_embeddings(positions, a2_identification.ordered_data, 1)


def test_num_types(a2_embeddings, a2_identification):
    _, data = a2_embeddings
    assert data.num_types == a2_identification.ordered_data.tc
    assert len(data.count_by_type()) == data.num_types
    assert EmbeddingData(data.embeddings, data.num_sites).num_types == 5
    with pytest.raises(GeometryError):
        EmbeddingData(data.embeddings, data.num_sites, 3)
