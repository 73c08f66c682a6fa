"""Correlation function identification stage.

Correlation functions are decorated sub-clusters, one basis symbol per
occupied site. They are enumerated for both phases, the ordered ones are
classified against the disordered ones and grouped by the ordered cluster
type they decorate.
"""

import logging
from dataclasses import dataclass

from monty.json import MSONable

from kikuchi.identification.classify import (
    ClassifiedClusterResult,
    GroupedCFResult,
    classify_ordered_clusters,
    group_cf_data,
)
from kikuchi.identification.cluslist import (
    ClusCoordListResult,
    generate_clus_coord_list,
)
from kikuchi.identification.subclusters import generate_basis_symbols
from kikuchi.space.symmetry import AffineTransform


@dataclass
class CFIdentificationResult(MSONable):
    """Result of the correlation function identification stage.

    Attributes:
        disordered_cf_data (ClusCoordListResult):
            correlation function types of the disordered phase.
        classified_cf_data (ClassifiedClusterResult):
            ordered correlation function types bucketed by disordered ones.
        grouped_cf_data (GroupedCFResult):
            ordered correlation functions grouped by ordered cluster type.
        num_components (int):
            number of chemical components.
    """

    disordered_cf_data: ClusCoordListResult
    classified_cf_data: ClassifiedClusterResult
    grouped_cf_data: GroupedCFResult
    num_components: int

    @property
    def ordered_cf_data(self):
        """Get the correlation function types of the ordered phase."""
        return self.grouped_cf_data.cf_data

    @property
    def tcfdis(self):
        """Get the number of disordered correlation functions."""
        return self.disordered_cf_data.tc

    @property
    def lcf(self):
        """Get the number of correlation functions per ordered cluster."""
        return self.grouped_cf_data.lcf

    @property
    def tcf(self):
        """Get the total number of grouped correlation functions."""
        return self.grouped_cf_data.tcf

    @property
    def nxcf(self):
        """Get the number of point correlation functions."""
        sizes = self.ordered_cf_data.sizes
        return sum(sizes[i] == 1 for i in self.grouped_cf_data.column_indices)

    @property
    def ncf(self):
        """Get the number of non-point correlation functions."""
        return self.tcf - self.nxcf

    @property
    def basis_symbols(self):
        """Get the site basis symbols used for decoration."""
        return generate_basis_symbols(self.num_components)


def identify_cfs(
    cluster_result,
    disordered_max_clusters,
    disordered_operations,
    ordered_max_clusters,
    ordered_operations,
    transform=None,
    num_components=2,
    strict=True,
):
    """Run the correlation function identification stage.

    Args:
        cluster_result (ClusterIdentificationResult):
            result of the cluster identification stage for the same phases.
        disordered_max_clusters (Sequence of Cluster):
            maximal clusters of the disordered phase.
        disordered_operations (Sequence of SymmetryOperation):
            symmetry operations of the disordered phase.
        ordered_max_clusters (Sequence of Cluster):
            maximal clusters of the ordered phase.
        ordered_operations (Sequence of SymmetryOperation):
            symmetry operations of the ordered phase.
        transform (AffineTransform): optional
            maps ordered clusters into the disordered frame.
        num_components (int): optional
            number of chemical components, at least 2.
        strict (bool): optional
            raise on ordered correlation functions that can not be classified.

    Returns:
        CFIdentificationResult
    """
    basis_symbols = generate_basis_symbols(num_components)
    transform = AffineTransform() if transform is None else transform

    logging.info(
        f"Identifying correlation functions for {num_components} components."
    )
    disordered_cf_data = generate_clus_coord_list(
        disordered_max_clusters, disordered_operations, basis_symbols
    )
    ordered_cf_data = generate_clus_coord_list(
        ordered_max_clusters, ordered_operations, basis_symbols
    )
    transformed = transform.transform_clusters(ordered_cf_data.clusters)
    classified_cf_data = classify_ordered_clusters(
        disordered_cf_data, ordered_cf_data, transformed, strict=strict
    )
    grouped_cf_data = group_cf_data(
        cluster_result.ordered_data,
        cluster_result.classified_data,
        ordered_cf_data,
        strict=strict,
    )
    logging.info(
        f"Found {disordered_cf_data.tc} disordered and {grouped_cf_data.tcf} "
        "grouped ordered correlation functions."
    )
    return CFIdentificationResult(
        disordered_cf_data, classified_cf_data, grouped_cf_data, num_components
    )
