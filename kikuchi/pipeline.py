"""Configuration and driver of the full identification pipeline.

A CVMConfiguration names the cluster files and symmetry groups of a
disordered phase and of one of its ordered superstructures. The CVMPipeline
loads those resources from a data directory and runs the identification
stages, the C-matrix construction, the free energy minimization and the
embedding generation.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import numpy as np
from monty.json import MSONable

from kikuchi.cvm.cmatrix import CMatrixResult, build_cmatrix
from kikuchi.cvm.freeenergy import CVMSolverResult, minimize_free_energy
from kikuchi.identification.cfs import CFIdentificationResult, identify_cfs
from kikuchi.identification.clusters import (
    ClusterIdentificationResult,
    identify_clusters,
)
from kikuchi.identification.subclusters import validate_num_components
from kikuchi.io import load_clusters, load_space_group
from kikuchi.moca.embedding import build_supercell_positions, generate_embeddings
from kikuchi.space.symmetry import AffineTransform
from kikuchi.utils.exceptions import ConfigurationError


@dataclass(frozen=True)
class PhaseDefinition(MSONable):
    """Resources describing one phase.

    Attributes:
        cluster_file (str):
            path of the maximal cluster file, relative to the data directory.
        symmetry_group (str):
            name of the symmetry group.
    """

    cluster_file: str
    symmetry_group: str


class PhaseLibrary(Mapping):
    """An immutable mapping from phase names to PhaseDefinitions."""

    def __init__(self, phases=None):
        """Initialize a PhaseLibrary.

        Args:
            phases (dict): optional
                phase name to PhaseDefinition, or to a (cluster file,
                symmetry group) pair.
        """
        phases = {} if phases is None else phases
        self._phases = MappingProxyType(
            {
                name: phase
                if isinstance(phase, PhaseDefinition)
                else PhaseDefinition(*phase)
                for name, phase in phases.items()
            }
        )

    def __getitem__(self, name):
        try:
            return self._phases[name]
        except KeyError as key_error:
            raise ConfigurationError(
                f"Unknown phase {name!r}, available phases are {list(self._phases)}."
            ) from key_error

    def __iter__(self):
        return iter(self._phases)

    def __len__(self):
        return len(self._phases)


@dataclass
class CVMConfiguration(MSONable):
    """Input of the identification pipeline.

    Attributes:
        disordered_cluster_file (str):
            maximal cluster file of the disordered phase.
        ordered_cluster_file (str):
            maximal cluster file of the ordered phase.
        disordered_symmetry_group (str):
            symmetry group name of the disordered phase.
        ordered_symmetry_group (str):
            symmetry group name of the ordered phase.
        transformation_matrix (list):
            3x3 matrix mapping ordered into disordered coordinates.
        translation_vector (list):
            translation applied after the transformation matrix.
        num_components (int):
            number of chemical components, at least 2.
    """

    disordered_cluster_file: str
    ordered_cluster_file: str
    disordered_symmetry_group: str
    ordered_symmetry_group: str
    transformation_matrix: list = field(
        default_factory=lambda: np.eye(3).tolist()
    )
    translation_vector: list = field(default_factory=lambda: [0.0, 0.0, 0.0])
    num_components: int = 2

    def __post_init__(self):
        validate_num_components(self.num_components)
        self.transformation_matrix = np.array(
            self.transformation_matrix, dtype=float
        ).tolist()
        self.translation_vector = np.array(
            self.translation_vector, dtype=float
        ).tolist()
        # validates dimensions
        self.transform  # pylint: disable=pointless-statement

    @classmethod
    def from_phases(cls, phases, disordered, ordered, **kwargs):
        """Create a configuration from phase names.

        Args:
            phases (PhaseLibrary or dict):
                phase definitions.
            disordered (str):
                name of the disordered phase.
            ordered (str):
                name of the ordered phase.
            **kwargs:
                remaining configuration fields.
        """
        phases = phases if isinstance(phases, PhaseLibrary) else PhaseLibrary(phases)
        disordered_phase, ordered_phase = phases[disordered], phases[ordered]
        return cls(
            disordered_cluster_file=disordered_phase.cluster_file,
            ordered_cluster_file=ordered_phase.cluster_file,
            disordered_symmetry_group=disordered_phase.symmetry_group,
            ordered_symmetry_group=ordered_phase.symmetry_group,
            **kwargs,
        )

    @property
    def transform(self):
        """Get the ordered to disordered frame transform."""
        return AffineTransform(self.transformation_matrix, self.translation_vector)


@dataclass
class CVMResult(MSONable):
    """Output of the identification stages.

    Attributes:
        cluster_identification (ClusterIdentificationResult):
            cluster types, nij and Kikuchi-Baker coefficients.
        cf_identification (CFIdentificationResult):
            correlation functions.
    """

    cluster_identification: ClusterIdentificationResult
    cf_identification: CFIdentificationResult


class CVMPipeline:
    """Run the identification pipeline for a configuration.

    Resources are loaded once from the data directory when first needed.
    """

    def __init__(self, config, data_dir, strict=True):
        """Initialize a CVMPipeline.

        Args:
            config (CVMConfiguration):
                the pipeline configuration.
            data_dir (str):
                root directory holding cluster files and the symmetry
                directory.
            strict (bool): optional
                raise if an ordered cluster matches no disordered type.
        """
        if config is None:
            raise ConfigurationError("A configuration is required.")
        self.config = config
        self.data_dir = data_dir
        self.strict = strict
        self._resources = None

    @property
    def resources(self):
        """Get the loaded maximal clusters and space groups."""
        if self._resources is None:
            config = self.config
            logging.info(f"Loading pipeline resources from {self.data_dir}.")
            self._resources = {
                "disordered_clusters": load_clusters(
                    f"{self.data_dir}/{config.disordered_cluster_file}"
                ),
                "ordered_clusters": load_clusters(
                    f"{self.data_dir}/{config.ordered_cluster_file}"
                ),
                "disordered_group": load_space_group(
                    self.data_dir, config.disordered_symmetry_group
                ),
                "ordered_group": load_space_group(
                    self.data_dir, config.ordered_symmetry_group
                ),
            }
        return self._resources

    def identify(self):
        """Run the cluster and correlation function identification stages.

        Returns:
            CVMResult
        """
        res = self.resources
        transform = self.config.transform
        cluster_result = identify_clusters(
            res["disordered_clusters"],
            res["disordered_group"].operations,
            res["ordered_clusters"],
            res["ordered_group"].operations,
            transform,
            strict=self.strict,
        )
        cf_result = identify_cfs(
            cluster_result,
            res["disordered_clusters"],
            res["disordered_group"].operations,
            res["ordered_clusters"],
            res["ordered_group"].operations,
            transform,
            self.config.num_components,
            strict=self.strict,
        )
        return CVMResult(cluster_result, cf_result)

    def build_cmatrix(self, result=None):
        """Build the C-matrices, running the identification if needed.

        Returns:
            CMatrixResult
        """
        result = self.identify() if result is None else result
        return build_cmatrix(
            result.cluster_identification,
            result.cf_identification,
            self.resources["ordered_clusters"],
            self.config.num_components,
        )

    def minimize_free_energy(
        self, composition, temperature, eci, result=None, cmat_result=None, **kwargs
    ):
        """Minimize the CVM free energy of the ordered phase.

        Args:
            composition (ArrayLike):
                fraction of each species.
            temperature (float):
                temperature, in the units of the ECIs.
            eci (ArrayLike):
                effective cluster interaction of each non-point correlation
                function.
            result (CVMResult): optional
                identification result, computed if not given.
            cmat_result (CMatrixResult): optional
                C-matrices, built if not given.
            **kwargs:
                keyword arguments passed to CVMFreeEnergy.minimize.

        Returns:
            CVMSolverResult
        """
        result = self.identify() if result is None else result
        cmat_result = self.build_cmatrix(result) if cmat_result is None else cmat_result
        return minimize_free_energy(
            result.cluster_identification,
            result.cf_identification,
            cmat_result,
            composition,
            temperature,
            eci,
            **kwargs,
        )

    def generate_embeddings(self, basis, size, result=None, progress=False):
        """Generate embeddings of the ordered cluster types in a supercell.

        Args:
            basis (ArrayLike):
                fractional positions of the sites in the unit cell.
            size (int):
                number of unit cells along each axis.
            result (CVMResult): optional
                identification result, computed if not given.
            progress (bool): optional
                if True show a progress bar.

        Returns:
            EmbeddingData
        """
        result = self.identify() if result is None else result
        positions = build_supercell_positions(basis, size)
        return generate_embeddings(
            positions,
            result.cluster_identification.ordered_data,
            size,
            progress=progress,
        )


def run_pipeline(config, data_dir, strict=True):
    """Run identification and C-matrix construction for a configuration.

    Returns:
        tuple: (CVMResult, CMatrixResult)
    """
    pipeline = CVMPipeline(config, data_dir, strict=strict)
    result = pipeline.identify()
    return result, pipeline.build_cmatrix(result)


__all__ = [
    "PhaseDefinition",
    "PhaseLibrary",
    "CVMConfiguration",
    "CVMResult",
    "CVMPipeline",
    "CMatrixResult",
    "CVMSolverResult",
    "run_pipeline",
]
