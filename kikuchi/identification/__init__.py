"""Identification of cluster types and correlation functions."""

from .cfs import CFIdentificationResult, identify_cfs
from .classify import (
    ClassifiedClusterResult,
    GroupedCFResult,
    classify_ordered_clusters,
    group_cf_data,
)
from .cluslist import ClusCoordListResult, compute_nij, generate_clus_coord_list
from .clusters import ClusterIdentificationResult, identify_clusters
from .kikuchibaker import (
    check_kb_sum_rules,
    compute_kb_coefficients,
    containment_order,
    kb_sum_rules,
)
from .subclusters import (
    generate_basis_symbols,
    generate_decorated_sub_clusters,
    generate_sub_clusters,
)

__all__ = [
    "ClusCoordListResult",
    "ClassifiedClusterResult",
    "GroupedCFResult",
    "ClusterIdentificationResult",
    "CFIdentificationResult",
    "generate_sub_clusters",
    "generate_decorated_sub_clusters",
    "generate_basis_symbols",
    "generate_clus_coord_list",
    "compute_nij",
    "compute_kb_coefficients",
    "containment_order",
    "kb_sum_rules",
    "check_kb_sum_rules",
    "classify_ordered_clusters",
    "group_cf_data",
    "identify_clusters",
    "identify_cfs",
]
