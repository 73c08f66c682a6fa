"""Cluster identification stage.

Finds the cluster types of the disordered phase with their Kikuchi-Baker
coefficients, and classifies the cluster types of an ordered phase against
them.
"""

import logging
from dataclasses import dataclass

from monty.json import MSONable

from kikuchi.identification.classify import (
    ClassifiedClusterResult,
    classify_ordered_clusters,
)
from kikuchi.identification.cluslist import (
    ClusCoordListResult,
    generate_clus_coord_list,
)
from kikuchi.identification.kikuchibaker import compute_kb_coefficients, kb_sum_rules
from kikuchi.space.symmetry import AffineTransform


@dataclass
class ClusterIdentificationResult(MSONable):
    """Result of the cluster identification stage.

    Attributes:
        disordered_data (ClusCoordListResult):
            cluster types of the disordered phase.
        kb_coefficients (list of float):
            Kikuchi-Baker coefficient of each disordered type.
        classified_data (ClassifiedClusterResult):
            ordered cluster types bucketed by disordered type.
    """

    disordered_data: ClusCoordListResult
    kb_coefficients: list
    classified_data: ClassifiedClusterResult

    @property
    def ordered_data(self):
        """Get the cluster types of the ordered phase."""
        return self.classified_data.ordered_data

    @property
    def tcdis(self):
        """Get the number of disordered cluster types."""
        return self.disordered_data.tc

    @property
    def nxcdis(self):
        """Get the number of maximal-size disordered cluster types."""
        return self.disordered_data.nxc

    @property
    def nij(self):
        """Get the disordered containment table."""
        return self.disordered_data.nij

    @property
    def mhdis(self):
        """Get the disordered multiplicities."""
        return self.disordered_data.multiplicities

    @property
    def tc(self):
        """Get the number of classified ordered cluster types."""
        return self.classified_data.tc

    @property
    def nxc(self):
        """Get the number of maximal-size ordered cluster types."""
        return self.ordered_data.nxc

    @property
    def lc(self):
        """Get the number of ordered types under each disordered type."""
        return self.classified_data.lc

    @property
    def mh(self):
        """Get ordered multiplicities relative to the disordered ones.

        mh[t][j] is the multiplicity of ordered cluster j of disordered type t
        divided by the multiplicity of disordered type t.
        """
        return [
            [m / mdis for m in row]
            for row, mdis in zip(
                self.classified_data.multiplicity_list, self.mhdis
            )
        ]

    @property
    def kb_sums(self):
        """Get the Kikuchi-Baker sum rules (sum kb, sum kb * m)."""
        return kb_sum_rules(self.kb_coefficients, self.mhdis)


def identify_clusters(
    disordered_max_clusters,
    disordered_operations,
    ordered_max_clusters,
    ordered_operations,
    transform=None,
    strict=True,
):
    """Run the cluster identification stage.

    Args:
        disordered_max_clusters (Sequence of Cluster):
            maximal clusters of the disordered phase.
        disordered_operations (Sequence of SymmetryOperation):
            symmetry operations of the disordered phase.
        ordered_max_clusters (Sequence of Cluster):
            maximal clusters of the ordered phase.
        ordered_operations (Sequence of SymmetryOperation):
            symmetry operations of the ordered phase.
        transform (AffineTransform): optional
            maps ordered clusters into the disordered frame, identity if not
            given.
        strict (bool): optional
            raise on ordered clusters matching no disordered type.

    Returns:
        ClusterIdentificationResult
    """
    transform = AffineTransform() if transform is None else transform

    logging.info("Identifying disordered cluster types.")
    disordered_data = generate_clus_coord_list(
        disordered_max_clusters, disordered_operations
    )
    kb = compute_kb_coefficients(disordered_data.multiplicities, disordered_data.nij)

    logging.info("Identifying ordered cluster types.")
    ordered_data = generate_clus_coord_list(ordered_max_clusters, ordered_operations)
    transformed = transform.transform_clusters(ordered_data.clusters)
    classified_data = classify_ordered_clusters(
        disordered_data, ordered_data, transformed, strict=strict
    )
    logging.info(
        f"Found {disordered_data.tc} disordered and {classified_data.tc} "
        "classified ordered cluster types."
    )
    return ClusterIdentificationResult(disordered_data, kb.tolist(), classified_data)
