"""Supercell embeddings and energy primitives for Monte Carlo sampling."""

from .basis import SiteOperatorBasis
from .embedding import (
    Embedding,
    EmbeddingData,
    build_supercell_positions,
    generate_embeddings,
)
from .energy import EmbeddingProcessor, LatticeConfiguration

__all__ = [
    "Embedding",
    "EmbeddingData",
    "EmbeddingProcessor",
    "LatticeConfiguration",
    "SiteOperatorBasis",
    "build_supercell_positions",
    "generate_embeddings",
]
