"""Enumeration of the distinct cluster types of a set of maximal clusters.

The enumeration discovers cluster types from the smallest candidate
sub-clusters upward, so that the numbering of the types is reproducible,
and builds the containment (Nij) table between the types found.
"""

import logging
from dataclasses import dataclass

import numpy as np
from monty.json import MSONable

from kikuchi.identification.subclusters import (
    generate_decorated_sub_clusters,
    generate_sub_clusters,
)
from kikuchi.space.orbit import ClusterType, OrbitRegistry
from kikuchi.utils.exceptions import GeometryError


@dataclass
class ClusCoordListResult(MSONable):
    """Cluster types found from a list of maximal clusters.

    Types are ordered by decreasing number of sites; types with the same
    number of sites keep their discovery order.

    Attributes:
        cluster_types (list of ClusterType):
            the distinct cluster types.
        multiplicities (list of float):
            orbit sizes normalized per lattice point.
        nij (list of list of int):
            containment table, nij[i][j] is the number of sub-clusters of
            the representative of type i that belong to type j.
    """

    cluster_types: list
    multiplicities: list
    nij: list

    @property
    def tc(self):
        """Get the number of cluster types."""
        return len(self.cluster_types)

    @property
    def clusters(self):
        """Get the representative cluster of each type."""
        return [cluster_type.base_cluster for cluster_type in self.cluster_types]

    @property
    def orbits(self):
        """Get the orbit members of each type."""
        return [list(cluster_type.orbit) for cluster_type in self.cluster_types]

    @property
    def orbit_sizes(self):
        """Get the raw orbit size of each type."""
        return [cluster_type.multiplicity for cluster_type in self.cluster_types]

    @property
    def rc(self):
        """Get the number of sites in each sublattice of each representative."""
        return [list(ctype.sublattice_sizes) for ctype in self.cluster_types]

    @property
    def sizes(self):
        """Get the number of sites of each type."""
        return [cluster_type.num_sites for cluster_type in self.cluster_types]

    @property
    def max_size(self):
        """Get the largest number of sites of any type."""
        return max(self.sizes, default=0)

    @property
    def nxc(self):
        """Get the number of types as large as the largest maximal cluster."""
        max_size = self.max_size
        return sum(size == max_size for size in self.sizes)

    @property
    def num_point_types(self):
        """Get the number of single site types."""
        return sum(size == 1 for size in self.sizes)

    def registry(self, flatten=False):
        """Get an OrbitRegistry over the cluster types of this result."""
        return OrbitRegistry(self.cluster_types, flatten=flatten)


def point_multiplicity(cluster_types):
    """Get the number of lattice points per cell.

    Sum of the orbit sizes of the point types with distinct positions.
    Decorated point types sitting on the same position are counted once.
    """
    seen = []
    total = 0
    for cluster_type in cluster_types:
        if cluster_type.num_sites != 1:
            continue
        orbit = [member.undecorated().flattened() for member in cluster_type.orbit]
        if any(orbit[0] == member for member in seen):
            continue
        seen.extend(orbit)
        total += len(orbit)
    return total


def compute_nij(cluster_types, registry=None):
    """Compute the containment table between cluster types.

    Args:
        cluster_types (Sequence of ClusterType):
            cluster types, indexed in the given order.
        registry (OrbitRegistry): optional
            registry over the same types, built if not given.

    Returns:
        list of list of int: the nij table
    """
    registry = OrbitRegistry(cluster_types) if registry is None else registry
    num_types = len(cluster_types)
    nij = np.zeros((num_types, num_types), dtype=int)
    for i, cluster_type in enumerate(cluster_types):
        for sub_cluster in generate_sub_clusters(cluster_type.base_cluster):
            j = registry.find(sub_cluster)
            if j is not None:
                nij[i, j] += 1
    return nij.tolist()


def generate_clus_coord_list(max_clusters, operations, basis_symbols=None):
    """Find the distinct cluster types of a list of maximal clusters.

    Args:
        max_clusters (Sequence of Cluster):
            maximal clusters of the approximation.
        operations (Sequence of SymmetryOperation):
            symmetry operations of the phase.
        basis_symbols (Sequence of str): optional
            if given, candidates are the decorated sub-clusters (correlation
            functions) instead of the geometric ones.

    Returns:
        ClusCoordListResult
    """
    registry = OrbitRegistry()
    for max_cluster in max_clusters:
        if basis_symbols is None:
            candidates = generate_sub_clusters(max_cluster)
        else:
            candidates = [
                candidate
                for candidate in generate_decorated_sub_clusters(
                    max_cluster, basis_symbols
                )
                if candidate.num_sites > 0
            ]
        candidates = sorted(candidates, key=lambda c: c.num_sites, reverse=True)
        for candidate in reversed(candidates):
            if registry.find(candidate) is None:
                registry.add(ClusterType.from_cluster(candidate, operations))

    cluster_types = sorted(
        registry.cluster_types, key=lambda t: t.num_sites, reverse=True
    )
    num_points = point_multiplicity(cluster_types)
    if num_points == 0:
        raise GeometryError("No point cluster types were found.")

    multiplicities = [t.multiplicity / num_points for t in cluster_types]
    nij = compute_nij(cluster_types)
    logging.debug(
        f"Found {len(cluster_types)} cluster types from {len(max_clusters)} "
        f"maximal clusters and {len(operations)} symmetry operations."
    )
    return ClusCoordListResult(cluster_types, multiplicities, nij)
