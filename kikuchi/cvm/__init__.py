"""Cluster Variation Method quantities built from identified clusters."""

from .cmatrix import (
    CMatrixResult,
    build_cmatrix,
    collect_site_list,
    point_correlations,
    r_matrix,
    site_values,
    validate_composition,
)
from .freeenergy import (
    CVMFreeEnergy,
    CVMSolverResult,
    FreeEnergyEvaluation,
    entropy_terms,
    minimize_free_energy,
)

__all__ = [
    "CMatrixResult",
    "build_cmatrix",
    "collect_site_list",
    "point_correlations",
    "r_matrix",
    "site_values",
    "validate_composition",
    "CVMFreeEnergy",
    "CVMSolverResult",
    "FreeEnergyEvaluation",
    "entropy_terms",
    "minimize_free_energy",
]
