"""Cluster expansion energies evaluated over supercell embeddings.

The energy of a configuration is

    H = sum over embeddings e of eci[type(e)] * Phi(e),

where the cluster product Phi(e) is the product of the site functions of
the embedding evaluated on the species at its sites. Since embeddings are
unique placements, every physical cluster is counted once. The change in
energy from a set of flips only involves the embeddings touching the
flipped sites.
"""

import numpy as np
from monty.json import MSONable

from kikuchi.cvm.cmatrix import validate_composition
from kikuchi.identification.subclusters import validate_num_components
from kikuchi.moca.basis import SiteOperatorBasis
from kikuchi.utils.exceptions import ConfigurationError


class LatticeConfiguration(MSONable):
    """Occupancy of a supercell, one species code per site."""

    def __init__(self, occupancy, num_components):
        """Initialize a LatticeConfiguration.

        Args:
            occupancy (ArrayLike of int):
                species code of each site, in [0, num_components).
            num_components (int):
                number of species.
        """
        validate_num_components(num_components)
        occupancy = np.array(occupancy, dtype=int)
        if occupancy.ndim != 1 or len(occupancy) < 1:
            raise ConfigurationError("Occupancy must be a non-empty 1D array.")
        if np.any(occupancy < 0) or np.any(occupancy >= num_components):
            raise ConfigurationError(
                f"Species codes must be in [0, {num_components - 1}]."
            )
        self.occupancy = occupancy
        self.num_components = num_components

    @classmethod
    def from_composition(cls, num_sites, composition, rng=None):
        """Create a random configuration with a target composition.

        Args:
            num_sites (int):
                number of sites.
            composition (Sequence of float):
                target fraction of each species.
            rng (int or np.random.Generator): optional
                seed or random number generator.
        """
        configuration = cls(np.zeros(num_sites, dtype=int), len(composition))
        configuration.randomize(composition, rng)
        return configuration

    def randomize(self, composition, rng=None):
        """Randomly reassign species in place to match a target composition.

        Species 1, ..., K - 1 are placed on round(x_c * N) randomly chosen
        sites, species 0 fills the remaining sites.

        Args:
            composition (Sequence of float):
                target fraction of each species.
            rng (int or np.random.Generator): optional
                seed or random number generator.
        """
        composition = validate_composition(composition, self.num_components)
        rng = np.random.default_rng(rng)
        num_sites = self.num_sites
        occupancy = np.zeros(num_sites, dtype=int)
        order = rng.permutation(num_sites)
        placed = 0
        for code in range(1, self.num_components):
            count = min(int(round(composition[code] * num_sites)), num_sites - placed)
            occupancy[order[placed : placed + count]] = code
            placed += count
        self.occupancy = occupancy

    @property
    def num_sites(self):
        """Get the number of sites."""
        return len(self.occupancy)

    def composition(self):
        """Get the fraction of each species."""
        counts = np.bincount(self.occupancy, minlength=self.num_components)
        return counts / self.num_sites

    def apply_flips(self, flips):
        """Set species codes in place from (site, new code) pairs."""
        for site, code in flips:
            if not 0 <= code < self.num_components:
                raise ConfigurationError(
                    f"Species code must be in [0, {self.num_components - 1}], "
                    f"got {code}."
                )
            self.occupancy[site] = code

    def copy(self):
        """Get an independent copy of the configuration."""
        return LatticeConfiguration(self.occupancy.copy(), self.num_components)

    def as_dict(self):
        """Get MSONable dict representation."""
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "occupancy": self.occupancy.tolist(),
            "num_components": self.num_components,
        }

    @classmethod
    def from_dict(cls, d):
        """Create a LatticeConfiguration from an MSONable dict."""
        return cls(d["occupancy"], d["num_components"])


class EmbeddingProcessor:
    """Fast evaluation of energies and energy changes over embeddings.

    Attributes:
        embedding_data (EmbeddingData):
            embeddings of the supercell.
        coefs (ndarray):
            effective cluster interaction of each cluster type.
        basis (SiteOperatorBasis):
            site basis used for cluster products.
    """

    def __init__(self, embedding_data, coefficients, num_components, basis=None):
        """Initialize an EmbeddingProcessor.

        Args:
            embedding_data (EmbeddingData):
                embeddings of the supercell.
            coefficients (ArrayLike):
                effective cluster interaction of each cluster type, indexed
                like the cluster types the embeddings were generated from.
            num_components (int):
                number of species.
            basis (SiteOperatorBasis): optional
                site basis, the orthonormal polynomial basis if not given.
        """
        self.embedding_data = embedding_data
        self.coefs = np.array(coefficients, dtype=float)
        # if scalar force array to have 1 dimension (1,)
        if len(self.coefs.shape) == 0:
            self.coefs = self.coefs[np.newaxis]

        if len(self.coefs) != embedding_data.num_types:
            raise ConfigurationError(
                f"Got {len(self.coefs)} coefficients but the embeddings were "
                f"generated for {embedding_data.num_types} cluster types."
            )
        self.basis = SiteOperatorBasis(num_components) if basis is None else basis
        if self.basis.num_components != num_components:
            raise ConfigurationError(
                f"Basis is defined for {self.basis.num_components} components, "
                f"got {num_components}."
            )
        self.num_components = num_components

    @classmethod
    def from_cluster_data(
        cls, embedding_data, cluster_data, coefficients, num_components, basis=None
    ):
        """Create a processor checking coefficients against cluster types.

        Raises:
            ConfigurationError: if the number of coefficients differs from the
                number of cluster types.
        """
        if len(coefficients) != cluster_data.tc:
            raise ConfigurationError(
                f"Got {len(coefficients)} coefficients for {cluster_data.tc} "
                "cluster types."
            )
        return cls(embedding_data, coefficients, num_components, basis=basis)

    @property
    def num_sites(self):
        """Get the number of supercell sites."""
        return self.embedding_data.num_sites

    def cluster_product(self, embedding, occupancy):
        """Compute the product of site functions of an embedding."""
        prod = 1.0
        for i, alpha in zip(embedding.site_indices, embedding.alpha_indices):
            prod *= self.basis.evaluate(alpha, occupancy[i])
        return prod

    def compute_feature_vector(self, occupancy):
        """Compute the summed cluster products of each cluster type.

        Args:
            occupancy (ndarray):
                species code of each site.

        Returns:
            ndarray: sum of cluster products per cluster type
        """
        feature_vector = np.zeros(len(self.coefs))
        for embedding in self.embedding_data:
            feature_vector[embedding.cluster_type] += self.cluster_product(
                embedding, occupancy
            )
        return feature_vector

    def compute_feature_vector_change(self, occupancy, flips):
        """Compute the change in the feature vector from a list of flips.

        Args:
            occupancy (ndarray):
                species code of each site, left unchanged.
            flips (list of tuple):
                list of (site index, new species code) tuples.

        Returns:
            ndarray: change in the feature vector
        """
        new_occupancy = np.array(occupancy, copy=True)
        touched = {}
        for site, code in flips:
            new_occupancy[site] = code
            for embedding in self.embedding_data.by_site(site):
                touched[id(embedding)] = embedding

        delta = np.zeros(len(self.coefs))
        for embedding in touched.values():
            delta[embedding.cluster_type] += self.cluster_product(
                embedding, new_occupancy
            ) - self.cluster_product(embedding, occupancy)
        return delta

    def compute_property(self, occupancy):
        """Compute the total energy of an occupancy."""
        return np.dot(self.coefs, self.compute_feature_vector(occupancy))

    def compute_property_change(self, occupancy, flips):
        """Compute the energy change from a list of flips.

        Args:
            occupancy (ndarray):
                species code of each site, left unchanged.
            flips (list):
                list of (index of site, species code to set) tuples

        Returns:
            float: energy difference between final and initial states
        """
        return np.dot(self.coefs, self.compute_feature_vector_change(occupancy, flips))

    def energy_per_site(self, occupancy):
        """Compute the total energy divided by the number of sites."""
        return self.compute_property(occupancy) / self.num_sites

    def local_energy(self, occupancy, site):
        """Compute the energy of the embeddings touching a site."""
        return sum(
            self.coefs[e.cluster_type] * self.cluster_product(e, occupancy)
            for e in self.embedding_data.by_site(site)
        )

    def flip_energy_change(self, occupancy, site, code):
        """Compute the energy change of setting one site to a new species."""
        if occupancy[site] == code:
            return 0.0
        return self.compute_property_change(occupancy, [(site, code)])

    def exchange_energy_change(self, occupancy, site1, site2):
        """Compute the energy change of swapping the species of two sites."""
        if occupancy[site1] == occupancy[site2]:
            return 0.0
        flips = [(site1, occupancy[site2]), (site2, occupancy[site1])]
        return self.compute_property_change(occupancy, flips)
