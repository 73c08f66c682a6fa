"""Construction of the C-matrix relating correlation functions to cluster variables.

Each species configuration of a cluster has a probability (a cluster
variable) that is a linear function of the correlation functions. With site
values v_0 < ... < v_{K-1}, the occupation indicator of species e on a site
is the polynomial p_e(sigma) = sum_a R[e, a] sigma^a where R is the inverse of
the Vandermonde matrix M[a, e] = v_e^a. Expanding the product of the
indicators of a configuration gives monomials, each one a decorated
sub-cluster with basis index a on its sites, whose average is a correlation
function.
"""

import logging
from dataclasses import dataclass
from itertools import product

import numpy as np
from monty.json import MSONable

from kikuchi.constants import COMPOSITION_TOL, ROW_DECIMALS
from kikuchi.identification.subclusters import (
    basis_index,
    basis_symbol,
    validate_num_components,
)
from kikuchi.space.geometry import Cluster, Sublattice
from kikuchi.utils.exceptions import ConfigurationError, GeometryError

# coefficients smaller than this are dropped when expanding products
COEFFICIENT_TOL = 1e-12


def site_values(num_components):
    """Get the site values of the occupation variable.

    Even K gives +-1, ..., +-K/2 (no zero), odd K gives the integers from
    -(K-1)/2 to (K-1)/2, both in ascending order.
    """
    validate_num_components(num_components)
    half = num_components // 2
    if num_components % 2 == 0:
        values = list(range(-half, 0)) + list(range(1, half + 1))
    else:
        values = list(range(-half, half + 1))
    return np.array(values, dtype=float)


def r_matrix(num_components):
    """Get the coefficients of the species indicator polynomials.

    Returns:
        ndarray: R[e, a] is the coefficient of sigma^a in the indicator of
        species e
    """
    values = site_values(num_components)
    vandermonde = np.vander(values, increasing=True).T
    return np.linalg.inv(vandermonde)


def validate_composition(composition, num_components):
    """Check that a composition holds one non-negative fraction per species.

    Returns:
        ndarray: the composition as a float array

    Raises:
        ConfigurationError: if the shape is wrong, a fraction is negative or
            the fractions do not sum to one.
    """
    composition = np.asarray(composition, dtype=float)
    if composition.shape != (num_components,):
        raise ConfigurationError(
            f"Composition must have {num_components} entries, got "
            f"{composition.shape}."
        )
    if np.any(composition < 0):
        raise ConfigurationError(f"Composition {composition} has negative entries.")
    if abs(composition.sum() - 1) > COMPOSITION_TOL:
        raise ConfigurationError(
            f"Composition {composition} sums to {composition.sum()}, not 1."
        )
    return composition


def point_correlations(composition, num_components):
    """Get the point correlation functions of a composition.

    Returns:
        ndarray: <sigma^a> for a = 1, ..., K - 1
    """
    composition = validate_composition(composition, num_components)
    values = site_values(num_components)
    return np.array(
        [np.dot(composition, values**a) for a in range(1, num_components)]
    )


def collect_site_list(max_clusters):
    """Get the distinct sites of a list of clusters, undecorated.

    Returns:
        list of Site: sites in order of first appearance
    """
    sites = []
    for cluster in max_clusters:
        for site in cluster.sites:
            if not any(site.position == other.position for other in sites):
                sites.append(site.with_symbol(None))
    return sites


@dataclass
class CMatrixResult(MSONable):
    """C-matrices of the classified ordered cluster types.

    Attributes:
        cmat (list):
            cmat[t][j] is a (lcv[t][j], tcf + 1) matrix; row v holds the
            coefficients of cluster variable v on the correlation functions,
            the last column being the constant term.
        lcv (list of list of int):
            number of distinct cluster variables of each (t, j).
        wcv (list of list of list of int):
            number of species configurations sharing each cluster variable.
        cf_basis_indices (list of list of int):
            sorted site basis indices of each correlation function column.
        num_components (int):
            number of chemical components.
        site_list (list of Site):
            distinct sites of the ordered maximal clusters.
    """

    cmat: list
    lcv: list
    wcv: list
    cf_basis_indices: list
    num_components: int
    site_list: list

    @property
    def tcf(self):
        """Get the number of correlation function columns."""
        return len(self.cf_basis_indices)

    def matrix(self, t, j):
        """Get the C-matrix of cluster (t, j) as an array."""
        return np.array(self.cmat[t][j]).reshape(-1, self.tcf + 1)

    def evaluate(self, cf_values):
        """Compute the cluster variables from correlation function values.

        Args:
            cf_values (ArrayLike):
                value of each correlation function column.

        Returns:
            list of list of ndarray: cluster variables of each (t, j)
        """
        cf_values = np.asarray(cf_values, dtype=float)
        if cf_values.shape != (self.tcf,):
            raise ConfigurationError(
                f"Expected {self.tcf} correlation function values, got shape "
                f"{cf_values.shape}."
            )
        values = np.append(cf_values, 1.0)
        return [
            [self.matrix(t, j) @ values for j in range(len(row))]
            for t, row in enumerate(self.cmat)
        ]

    def random_cf_values(self, composition):
        """Get correlation function values of the random state.

        In the random state the average of a product of site functions is the
        product of the point averages.
        """
        points = point_correlations(composition, self.num_components)
        return np.array(
            [
                np.prod([points[a - 1] for a in indices])
                for indices in self.cf_basis_indices
            ]
        )


def _monomial_cluster(sites, monomial, num_sublattices):
    """Build the decorated cluster of a monomial ((slot, basis index), ...)."""
    sublattices = [[] for _ in range(num_sublattices)]
    for slot, a in monomial:
        site, sub = sites[slot]
        sublattices[sub].append(site.with_symbol(basis_symbol(a)))
    return Cluster(Sublattice(s) for s in sublattices)


def _expand_configuration(configuration, rmat):
    """Expand the product of species indicators into monomials.

    Returns:
        dict: monomial (tuple of (slot, basis index)) to coefficient
    """
    terms = {(): 1.0}
    for slot, species in enumerate(configuration):
        expanded = {}
        for monomial, coefficient in terms.items():
            for a, r in enumerate(rmat[species]):
                if abs(r) < COEFFICIENT_TOL:
                    continue
                key = monomial + ((slot, a),) if a > 0 else monomial
                expanded[key] = expanded.get(key, 0.0) + coefficient * r
        terms = expanded
    return terms


def build_cmatrix(
    cluster_result, cf_result, ordered_max_clusters, num_components=None
):
    """Build the C-matrices of every classified ordered cluster type.

    Args:
        cluster_result (ClusterIdentificationResult):
            cluster identification result.
        cf_result (CFIdentificationResult):
            correlation function identification result for the same phases.
        ordered_max_clusters (Sequence of Cluster):
            maximal clusters of the ordered phase, their distinct sites make
            up the site list of the result.
        num_components (int): optional
            number of components, must match the one used for cf_result.

    Returns:
        CMatrixResult
    """
    if num_components is None:
        num_components = cf_result.num_components
    validate_num_components(num_components)
    if num_components != cf_result.num_components:
        raise ConfigurationError(
            f"Correlation functions were identified for {cf_result.num_components} "
            f"components, got {num_components}."
        )

    rmat = r_matrix(num_components)
    grouped = cf_result.grouped_cf_data
    columns = {c: col for col, c in enumerate(grouped.column_indices)}
    registry = grouped.cf_data.registry()
    cf_clusters = grouped.cf_data.clusters
    cf_basis_indices = [
        sorted(basis_index(site.symbol) for site in cf_clusters[c].sites)
        for c in grouped.column_indices
    ]
    tcf = len(columns)

    ordered_clusters = cluster_result.ordered_data.clusters
    cmat, lcv, wcv = [], [], []
    for t, indices in enumerate(cluster_result.classified_data.type_indices):
        cmat_row, lcv_row, wcv_row = [], [], []
        for j, index in enumerate(indices):
            cluster = ordered_clusters[index]
            sites = [
                (site, sub)
                for sub, sublattice in enumerate(cluster.sublattices)
                for site in sublattice
            ]
            monomial_columns = {}
            rows = {}
            for configuration in product(range(num_components), repeat=len(sites)):
                row = np.zeros(tcf + 1)
                for monomial, coefficient in _expand_configuration(
                    configuration, rmat
                ).items():
                    if not monomial:
                        row[-1] += coefficient
                        continue
                    if monomial not in monomial_columns:
                        c = registry.find(
                            _monomial_cluster(
                                sites, monomial, len(cluster.sublattices)
                            )
                        )
                        if c is None or c not in columns:
                            raise GeometryError(
                                f"A correlation function of cluster ({t}, {j}) "
                                "is not among the grouped correlation functions."
                            )
                        monomial_columns[monomial] = columns[c]
                    row[monomial_columns[monomial]] += coefficient
                key = tuple(np.round(row, ROW_DECIMALS) + 0.0)
                if key in rows:
                    rows[key][1] += 1
                else:
                    rows[key] = [row, 1]
            cmat_row.append([r.tolist() for r, _ in rows.values()])
            wcv_row.append([count for _, count in rows.values()])
            lcv_row.append(len(rows))
        cmat.append(cmat_row)
        lcv.append(lcv_row)
        wcv.append(wcv_row)

    logging.info(f"Built C-matrices for {sum(map(len, lcv))} ordered cluster types.")
    site_list = collect_site_list(ordered_max_clusters)
    return CMatrixResult(cmat, lcv, wcv, cf_basis_indices, num_components, site_list)
