from itertools import product

import numpy as np
import numpy.testing as npt
import pytest

from kikuchi.cvm import (
    build_cmatrix,
    collect_site_list,
    point_correlations,
    r_matrix,
    site_values,
)
from kikuchi.identification import identify_cfs
from kikuchi.utils.exceptions import ConfigurationError
from tests.utils import assert_msonable


@pytest.fixture(scope="module")
def a2_cmatrix(a2_identification, a2_cf_identification, a2_tetrahedron):
    return build_cmatrix(a2_identification, a2_cf_identification, [a2_tetrahedron])


@pytest.fixture(scope="module")
def b2_cmatrix(b2_identification, b2_cf_identification, b2_tetrahedron):
    return build_cmatrix(b2_identification, b2_cf_identification, [b2_tetrahedron])


@pytest.fixture(scope="module")
def a2_ternary_cmatrix(a2_identification, a2_tetrahedron, a2_operations):
    cf_result = identify_cfs(
        a2_identification,
        [a2_tetrahedron],
        a2_operations,
        [a2_tetrahedron],
        a2_operations,
        num_components=3,
    )
    return build_cmatrix(a2_identification, cf_result, [a2_tetrahedron])


def assert_random_state(cmat_result, cluster_result, composition):
    """Cluster variables of the random state are products of concentrations."""
    cvs = cmat_result.evaluate(cmat_result.random_cf_values(composition))
    sizes = cluster_result.disordered_data.sizes
    num_components = cmat_result.num_components
    for t, row in enumerate(cvs):
        expected = {
            np.prod([composition[e] for e in config])
            for config in product(range(num_components), repeat=sizes[t])
        }
        for j, values in enumerate(row):
            assert np.dot(cmat_result.wcv[t][j], values) == pytest.approx(1.0)
            for value in values:
                assert any(abs(value - e) < 1e-8 for e in expected)


@pytest.mark.parametrize(
    "num_components, values",
    [(2, [-1, 1]), (3, [-1, 0, 1]), (4, [-2, -1, 1, 2]), (5, [-2, -1, 0, 1, 2])],
)
def test_site_values(num_components, values):
    npt.assert_array_equal(site_values(num_components), values)
    rmat = r_matrix(num_components)
    vandermonde = np.vander(site_values(num_components), increasing=True).T
    npt.assert_allclose(rmat @ vandermonde, np.eye(num_components), atol=1e-10)


def test_point_correlations():
    npt.assert_allclose(point_correlations([0.25, 0.75], 2), [0.5])
    npt.assert_allclose(point_correlations([0.2, 0.3, 0.5], 3), [0.3, 0.7])
    with pytest.raises(ConfigurationError):
        point_correlations([0.5, 0.5], 3)
    with pytest.raises(ConfigurationError):
        point_correlations([1.25, -0.25], 2)
    with pytest.raises(ConfigurationError):
        point_correlations([0.3, 0.3], 2)


def test_binary_a2(a2_cmatrix, a2_identification):
    result = a2_cmatrix
    assert result.tcf == 5
    assert result.lcv == [[6], [6], [3], [3], [2]]
    sizes = a2_identification.disordered_data.sizes
    for t, row in enumerate(result.wcv):
        for wcv in row:
            assert sum(wcv) == 2 ** sizes[t]
    assert result.matrix(0, 0).shape == (6, 6)
    assert result.wcv[4][0] == [1, 1]
    assert result.wcv[2][0] == [1, 2, 1]
    # point variables: (1 - sigma) / 2 and (1 + sigma) / 2
    npt.assert_allclose(
        result.matrix(4, 0), [[0, 0, 0, 0, -0.5, 0.5], [0, 0, 0, 0, 0.5, 0.5]]
    )
    assert len(result.site_list) == 4


def test_binary_b2(b2_cmatrix, b2_identification):
    result = b2_cmatrix
    assert result.tcf == 8
    assert [len(row) for row in result.lcv] == b2_identification.lc
    assert result.lcv[4] == [2, 2]
    sizes = b2_identification.disordered_data.sizes
    for t, row in enumerate(result.wcv):
        for wcv in row:
            assert sum(wcv) == 2 ** sizes[t]
    assert_random_state(result, b2_identification, [0.3, 0.7])


def test_random_state(a2_cmatrix, a2_identification, rng):
    composition = rng.dirichlet(np.ones(2))
    assert_random_state(a2_cmatrix, a2_identification, composition)


def test_ternary(a2_ternary_cmatrix, a2_identification, rng):
    result = a2_ternary_cmatrix
    sizes = a2_identification.disordered_data.sizes
    for t, row in enumerate(result.wcv):
        for wcv in row:
            assert sum(wcv) == 3 ** sizes[t]
    assert result.lcv[4] == [3]
    assert result.lcv[2] == [6]
    assert all(max(indices) <= 2 for indices in result.cf_basis_indices)
    assert_random_state(result, a2_identification, rng.dirichlet(np.ones(3)))


def test_bad_inputs(a2_cmatrix, a2_identification, a2_cf_identification):
    with pytest.raises(ConfigurationError):
        a2_cmatrix.evaluate(np.zeros(4))
    with pytest.raises(ConfigurationError):
        build_cmatrix(a2_identification, a2_cf_identification, [], num_components=3)


def test_collect_site_list(a2_tetrahedron, b2_tetrahedron):
    sites = collect_site_list([a2_tetrahedron, b2_tetrahedron.decorate("s1")])
    assert len(sites) == 4
    assert not any(site.is_decorated for site in sites)


def test_msonable(b2_cmatrix):
    assert_msonable(b2_cmatrix)
