"""Classification of ordered-phase clusters against a disordered parent.

Ordered-phase cluster types are bucketed under the disordered cluster type
whose orbit contains them once mapped into the disordered frame. The
correlation functions of the ordered phase are grouped the same way, under
the ordered cluster type they decorate.
"""

import warnings
from dataclasses import dataclass

from monty.json import MSONable

from kikuchi.identification.cluslist import ClusCoordListResult
from kikuchi.utils.exceptions import CLASSIFICATION_ERROR_MESSAGE, GeometryError


@dataclass
class ClassifiedClusterResult(MSONable):
    """Ordered cluster types bucketed by disordered cluster type.

    Attributes:
        ordered_data (ClusCoordListResult):
            the classified ordered-phase cluster types.
        type_indices (list of list of int):
            type_indices[t] holds the indices (into ordered_data) of the
            ordered types that belong to disordered type t, in ascending
            order.
        unmatched (list of int):
            indices of ordered types that matched no disordered type.
    """

    ordered_data: ClusCoordListResult
    type_indices: list
    unmatched: list

    @property
    def lc(self):
        """Get the number of ordered types in each bucket."""
        return [len(indices) for indices in self.type_indices]

    @property
    def tc(self):
        """Get the total number of classified ordered types."""
        return sum(self.lc)

    @property
    def coord_list(self):
        """Get representative clusters grouped by disordered type."""
        clusters = self.ordered_data.clusters
        return [[clusters[i] for i in indices] for indices in self.type_indices]

    @property
    def multiplicity_list(self):
        """Get multiplicities grouped by disordered type."""
        mults = self.ordered_data.multiplicities
        return [[mults[i] for i in indices] for indices in self.type_indices]

    @property
    def orbit_list(self):
        """Get orbits grouped by disordered type."""
        orbits = self.ordered_data.orbits
        return [[orbits[i] for i in indices] for indices in self.type_indices]

    @property
    def rc_list(self):
        """Get rc counts grouped by disordered type."""
        rc = self.ordered_data.rc
        return [[rc[i] for i in indices] for indices in self.type_indices]

    @property
    def nij_list(self):
        """Get nij rows grouped by disordered type."""
        nij = self.ordered_data.nij
        return [[nij[i] for i in indices] for indices in self.type_indices]

    def position(self, index):
        """Get the (t, j) bucket position of an ordered type index.

        Returns:
            tuple: (t, j), or None if the type was not classified
        """
        for t, indices in enumerate(self.type_indices):
            if index in indices:
                return t, indices.index(index)
        return None


def classify_ordered_clusters(
    disordered_data, ordered_data, transformed_clusters, strict=True
):
    """Bucket ordered cluster types under the disordered types containing them.

    Args:
        disordered_data (ClusCoordListResult):
            reference cluster types of the disordered phase.
        ordered_data (ClusCoordListResult):
            cluster types of the ordered phase.
        transformed_clusters (Sequence of Cluster):
            representatives of ordered_data mapped into the disordered frame.
        strict (bool): optional
            if True an ordered cluster that matches no disordered type raises
            a GeometryError, otherwise it is dropped with a warning.

    Returns:
        ClassifiedClusterResult
    """
    if len(transformed_clusters) != ordered_data.tc:
        raise GeometryError(
            f"Got {len(transformed_clusters)} transformed clusters for "
            f"{ordered_data.tc} ordered cluster types."
        )

    registry = disordered_data.registry(flatten=True)
    type_indices = [[] for _ in range(disordered_data.tc)]
    unmatched = []
    for i, cluster in enumerate(transformed_clusters):
        t = registry.find(cluster.flattened())
        if t is None:
            if strict:
                raise GeometryError(CLASSIFICATION_ERROR_MESSAGE.format(index=i))
            warnings.warn(
                CLASSIFICATION_ERROR_MESSAGE.format(index=i)
                + " The cluster is dropped.",
                RuntimeWarning,
            )
            unmatched.append(i)
            continue
        type_indices[t].append(i)
    return ClassifiedClusterResult(ordered_data, type_indices, unmatched)


@dataclass
class GroupedCFResult(MSONable):
    """Ordered correlation functions grouped by classified ordered cluster.

    Attributes:
        cf_data (ClusCoordListResult):
            correlation function types of the ordered phase.
        cf_indices (list of list of list of int):
            cf_indices[t][j] holds the indices (into cf_data) of the
            correlation functions decorating ordered cluster j of disordered
            type t.
    """

    cf_data: ClusCoordListResult
    cf_indices: list

    @property
    def lcf(self):
        """Get the number of correlation functions in each group."""
        return [[len(group) for group in row] for row in self.cf_indices]

    @property
    def tcf(self):
        """Get the total number of grouped correlation functions."""
        return sum(sum(row) for row in self.lcf)

    @property
    def column_indices(self):
        """Get the flat (t, j, k) ordered list of correlation function indices."""
        return [i for row in self.cf_indices for group in row for i in group]

    @property
    def coord_list(self):
        """Get correlation function representatives grouped by (t, j)."""
        clusters = self.cf_data.clusters
        return [
            [[clusters[i] for i in group] for group in row] for row in self.cf_indices
        ]

    @property
    def multiplicity_list(self):
        """Get correlation function multiplicities grouped by (t, j)."""
        mults = self.cf_data.multiplicities
        return [
            [[mults[i] for i in group] for group in row] for row in self.cf_indices
        ]


def group_cf_data(ordered_data, classified_data, ordered_cf_data, strict=True):
    """Group ordered correlation functions by the cluster type they decorate.

    Each correlation function is stripped of its decoration and matched to
    the ordered cluster type whose orbit contains it. The (t, j) position of
    that cluster type in the classification decides the group.

    Args:
        ordered_data (ClusCoordListResult):
            geometric cluster types of the ordered phase.
        classified_data (ClassifiedClusterResult):
            classification of ordered_data against the disordered phase.
        ordered_cf_data (ClusCoordListResult):
            correlation function types of the ordered phase.
        strict (bool): optional
            if False, correlation functions on unclassified clusters are
            dropped with a warning instead of raising a GeometryError.

    Returns:
        GroupedCFResult
    """
    positions = {}
    for t, indices in enumerate(classified_data.type_indices):
        for j, index in enumerate(indices):
            positions[index] = (t, j)

    registry = ordered_data.registry()
    cf_indices = [[[] for _ in indices] for indices in classified_data.type_indices]
    for c, cf_type in enumerate(ordered_cf_data.cluster_types):
        index = registry.find(cf_type.base_cluster.undecorated())
        if index is None or index not in positions:
            message = (
                f"Correlation function {c} does not decorate any classified "
                "ordered cluster type."
            )
            if strict:
                raise GeometryError(message)
            warnings.warn(message + " It is dropped.", RuntimeWarning)
            continue
        t, j = positions[index]
        cf_indices[t][j].append(c)
    return GroupedCFResult(ordered_cf_data, cf_indices)
