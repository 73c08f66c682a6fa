"""Geometry, symmetry and orbit primitives."""

from .geometry import (
    Cluster,
    Site,
    Sublattice,
    Vector3D,
    compare_sites,
    wrap_coords,
)
from .orbit import ClusterType, OrbitRegistry, generate_orbit
from .symmetry import AffineTransform, SpaceGroup, SymmetryOperation

__all__ = [
    "Vector3D",
    "Site",
    "Sublattice",
    "Cluster",
    "ClusterType",
    "OrbitRegistry",
    "AffineTransform",
    "SymmetryOperation",
    "SpaceGroup",
    "compare_sites",
    "wrap_coords",
    "generate_orbit",
]
