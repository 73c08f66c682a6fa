"""Tiling of cluster orbit members over a periodic supercell.

An embedding is one concrete placement of an orbit member onto sites of a
supercell. Positions are mapped onto an integer grid, every orbit member is
turned into integer displacement templates (one per anchor site) and each
template is applied at every compatible supercell site with periodic
wraparound. Placements are deduplicated by their set of site indices (each
site paired with its basis function index for decorated clusters).
"""

import logging
import warnings
from dataclasses import dataclass
from itertools import product

import numpy as np

from kikuchi.constants import MAX_GRID_DENOMINATOR, SITE_TOL
from kikuchi.identification.subclusters import basis_index
from kikuchi.utils.exceptions import GeometryError
from kikuchi.utils.progressbar import progress_bar


@dataclass(frozen=True)
class Embedding:
    """A cluster instance on supercell sites.

    Attributes:
        cluster_type (int):
            index of the cluster type.
        orbit_member (int):
            index of the orbit member that was placed.
        site_indices (tuple of int):
            supercell site indices, in the site order of the orbit member.
        alpha_indices (tuple of int):
            site basis function index for each site.
    """

    cluster_type: int
    orbit_member: int
    site_indices: tuple
    alpha_indices: tuple

    @property
    def site_set(self):
        """Get the order independent set of site indices."""
        return frozenset(self.site_indices)

    def __len__(self):
        return len(self.site_indices)


def build_supercell_positions(basis, size):
    """Tile basis positions over a size x size x size supercell.

    Args:
        basis (ArrayLike):
            fractional positions of the sites in the unit cell, shape (B, 3).
        size (int):
            number of unit cells along each axis.

    Returns:
        ndarray: positions of shape (size^3 * B, 3), cells outer, basis inner
    """
    basis = np.asarray(basis, dtype=float).reshape(-1, 3)
    cells = np.array(list(product(range(size), repeat=3)), dtype=float)
    return (cells[:, None, :] + basis[None, :, :]).reshape(-1, 3)


def grid_scale(coords, max_denominator=MAX_GRID_DENOMINATOR, tol=SITE_TOL):
    """Get the smallest integer that maps all coordinates onto integers.

    Raises:
        GeometryError: if no scale up to max_denominator works.
    """
    coords = np.asarray(coords, dtype=float)
    for scale in range(1, max_denominator + 1):
        scaled = coords * scale
        if np.all(abs(scaled - np.round(scaled)) < tol * scale):
            return scale
    raise GeometryError(
        "Positions can not be mapped onto an integer grid with a denominator "
        f"of at most {max_denominator}."
    )


def _alpha(symbol):
    return 1 if symbol is None else basis_index(symbol)


class EmbeddingData:
    """Embeddings of a supercell with lookups by site and by cluster type.

    Attributes:
        embeddings (tuple of Embedding):
            all embeddings in generation order.
        num_sites (int):
            number of supercell sites.
        num_types (int):
            number of cluster types the embeddings were generated from.
    """

    def __init__(self, embeddings, num_sites, num_types=None):
        """Initialize EmbeddingData.

        Args:
            embeddings (Sequence of Embedding):
                deduplicated embeddings.
            num_sites (int):
                number of supercell sites.
            num_types (int): optional
                number of cluster types, inferred from the embeddings if not
                given.
        """
        self.embeddings = tuple(embeddings)
        self.num_sites = num_sites
        inferred = max((e.cluster_type for e in self.embeddings), default=-1) + 1
        if num_types is None:
            num_types = inferred
        elif num_types < inferred:
            raise GeometryError(
                f"Embeddings span {inferred} cluster types, got num_types={num_types}."
            )
        self.num_types = num_types
        site_embeddings = [[] for _ in range(num_sites)]
        type_site_embeddings = {}
        for embedding in self.embeddings:
            for i in embedding.site_set:
                site_embeddings[i].append(embedding)
                type_site_embeddings.setdefault(
                    (embedding.cluster_type, i), []
                ).append(embedding)
        self._site_embeddings = tuple(tuple(embs) for embs in site_embeddings)
        self._type_site_embeddings = {
            key: tuple(embs) for key, embs in type_site_embeddings.items()
        }

    @property
    def site_embeddings(self):
        """Get the embeddings touching each site."""
        return self._site_embeddings

    def by_site(self, site_index):
        """Get the embeddings that include a site."""
        return self._site_embeddings[site_index]

    def by_type_and_site(self, cluster_type, site_index):
        """Get the embeddings of a cluster type that include a site."""
        return self._type_site_embeddings.get((cluster_type, site_index), ())

    def count_by_type(self, num_types=None):
        """Get the number of embeddings of each cluster type."""
        num_types = self.num_types if num_types is None else num_types
        counts = np.zeros(num_types, dtype=int)
        for embedding in self.embeddings:
            counts[embedding.cluster_type] += 1
        return counts

    def __len__(self):
        return len(self.embeddings)

    def __iter__(self):
        return iter(self.embeddings)


def generate_embeddings(positions, cluster_data, size, progress=False):
    """Generate all embeddings of the cluster types of a supercell.

    Args:
        positions (ArrayLike):
            fractional positions of the supercell sites (in unit-cell
            units), shape (N, 3). Usually from build_supercell_positions.
        cluster_data (ClusCoordListResult):
            cluster types to embed. Decorated types carry their basis
            function indices into the embeddings, undecorated sites get
            basis function 1.
        size (int):
            number of unit cells along each axis of the supercell.
        progress (bool): optional
            if True show a progress bar.

    Returns:
        EmbeddingData
    """
    positions = np.asarray(positions, dtype=float).reshape(-1, 3)
    num_sites = len(positions)
    members = [
        (t, o, member)
        for t, cluster_type in enumerate(cluster_data.cluster_types)
        for o, member in enumerate(cluster_type.orbit)
    ]
    all_coords = [positions] + [member.frac_coords for _, _, member in members]
    scale = grid_scale(np.concatenate(all_coords))
    period = scale * size

    grid = np.round(positions * scale).astype(int)
    site_lookup = {}
    for i, point in enumerate(grid % period):
        key = tuple(point)
        if key in site_lookup:
            raise GeometryError(
                f"Supercell sites {site_lookup[key]} and {i} occupy the same "
                "position."
            )
        site_lookup[key] = i

    # templates keyed by the position of their anchor inside the unit cell
    templates = {}
    for t, o, member in members:
        member_grid = np.round(member.frac_coords * scale).astype(int)
        alphas = tuple(_alpha(site.symbol) for site in member.sites)
        for anchor in member_grid:
            residue = tuple(anchor % scale)
            templates.setdefault(residue, []).append(
                (t, o, member_grid - anchor, alphas)
            )

    embeddings, seen = [], set()
    num_overlapping = 0
    with progress_bar(progress, num_sites, "Generating embeddings") as bar:
        for i, point in enumerate(grid):
            for t, o, offsets, alphas in templates.get(tuple(point % scale), ()):
                indices = tuple(
                    site_lookup.get(tuple(p)) for p in (point + offsets) % period
                )
                if None in indices:
                    continue
                if len(set(indices)) < len(indices):
                    num_overlapping += 1
                    continue
                key = frozenset(zip(indices, alphas))
                if key in seen:
                    continue
                seen.add(key)
                embeddings.append(Embedding(t, o, indices, alphas))
            bar.update()

    if num_overlapping > 0:
        warnings.warn(
            f"{num_overlapping} cluster placements overlap with their own "
            f"periodic images in a supercell of size {size} and were skipped.",
            RuntimeWarning,
        )
    logging.info(f"Generated {len(embeddings)} embeddings on {num_sites} sites.")
    return EmbeddingData(embeddings, num_sites, cluster_data.tc)
