"""Symmetry operations, space groups and affine frame transformations.

Operations are thin wrappers around pymatgen SymmOp acting on fractional
coordinates. A SymmetryOperation wraps single sites back into the unit cell,
while clusters are always moved rigidly so that the relative positions of
their sites are preserved.
"""

import numpy as np
from monty.json import MSONable
from pymatgen.core.operations import SymmOp

from kikuchi.constants import SITE_TOL
from kikuchi.space.geometry import Cluster, Site, Sublattice, Vector3D, wrap_coords
from kikuchi.utils.exceptions import ConfigurationError


class AffineTransform(MSONable):
    """A rotation followed by a translation, without periodic wrap.

    Used directly to map clusters from the frame of an ordered phase into the
    frame of its parent disordered phase.
    """

    def __init__(self, rotation=None, translation=None):
        """Initialize an AffineTransform.

        Args:
            rotation (ArrayLike): optional
                3x3 rotation (or general linear) matrix. Defaults to identity.
            translation (ArrayLike): optional
                translation vector of length 3. Defaults to zero.
        """
        rotation = np.eye(3) if rotation is None else np.array(rotation, dtype=float)
        translation = (
            np.zeros(3) if translation is None else np.array(translation, dtype=float)
        )
        if rotation.shape != (3, 3):
            raise ConfigurationError(
                f"Transformation matrix must be 3x3, got shape {rotation.shape}."
            )
        if translation.shape != (3,):
            raise ConfigurationError(
                f"Translation vector must have 3 components, got shape "
                f"{translation.shape}."
            )
        self._symmop = SymmOp.from_rotation_and_translation(
            rotation, translation, tol=SITE_TOL
        )

    @classmethod
    def from_symmop(cls, symmop):
        """Create a transform from a pymatgen SymmOp."""
        return cls(symmop.rotation_matrix, symmop.translation_vector)

    @classmethod
    def from_flat(cls, values):
        """Create a transform from a flat 3x4 row-major sequence of 12 values.

        Each row holds three rotation entries followed by the translation
        component of that row.
        """
        values = np.array(values, dtype=float)
        if values.shape != (12,):
            raise ConfigurationError(
                f"A flat affine transform needs 12 values, got {values.size}."
            )
        matrix = values.reshape(3, 4)
        return cls(matrix[:, :3], matrix[:, 3])

    @property
    def symmop(self):
        """Get the underlying pymatgen SymmOp."""
        return self._symmop

    @property
    def rotation_matrix(self):
        """Get a copy of the rotation matrix."""
        return self._symmop.rotation_matrix.copy()

    @property
    def translation_vector(self):
        """Get a copy of the translation vector."""
        return self._symmop.translation_vector.copy()

    @property
    def is_pure_rotation(self):
        """Check if the translation vanishes within SITE_TOL."""
        return bool(np.all(abs(self._symmop.translation_vector) < SITE_TOL))

    @property
    def is_identity(self):
        """Check if the transform leaves every point unchanged."""
        return self.is_pure_rotation and np.allclose(
            self._symmop.rotation_matrix, np.eye(3), atol=SITE_TOL
        )

    def operate(self, coords):
        """Apply the transform to one point or an array of points.

        Args:
            coords (ArrayLike):
                a single point (shape (3,)) or points with shape (N, 3).

        Returns:
            ndarray: transformed coordinates, same shape as the input
        """
        coords = np.asarray(coords, dtype=float)
        if coords.ndim == 1:
            return self._symmop.operate(coords)
        return self._symmop.operate_multi(coords)

    def apply_to_site(self, site):
        """Get the image of a site, keeping its symbol."""
        return Site(Vector3D(*self.operate(site.position.to_array())), site.symbol)

    def apply_to_cluster(self, cluster):
        """Get the rigid image of a cluster, keeping its sublattice partition.

        The order of the sites within each sublattice is preserved.
        """
        return Cluster(
            Sublattice(self.apply_to_site(site) for site in sub)
            for sub in cluster.sublattices
        )

    def transform_clusters(self, clusters):
        """Apply the transform to every cluster of a list."""
        return [self.apply_to_cluster(cluster) for cluster in clusters]

    def __eq__(self, other):
        if not isinstance(other, AffineTransform):
            return NotImplemented
        return np.allclose(
            self._symmop.affine_matrix, other._symmop.affine_matrix, atol=SITE_TOL
        )

    __hash__ = None

    def __str__(self):
        rows = [
            " ".join(f"{v: .4f}" for v in row) + f" | {t: .4f}"
            for row, t in zip(
                self._symmop.rotation_matrix, self._symmop.translation_vector
            )
        ]
        return "\n".join(rows)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}("
            f"{self._symmop.rotation_matrix.tolist()}, "
            f"{self._symmop.translation_vector.tolist()})"
        )

    def as_dict(self):
        """Get json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "rotation": self._symmop.rotation_matrix.tolist(),
            "translation": self._symmop.translation_vector.tolist(),
        }

    @classmethod
    def from_dict(cls, d):
        """Create a transform from an MSONable dict representation."""
        return cls(d["rotation"], d["translation"])


class SymmetryOperation(AffineTransform):
    """A space-group operation acting on fractional coordinates.

    Single sites are wrapped back into [0, 1) after the operation, while
    clusters are moved rigidly and their sublattices re-sorted, so that the
    periodic image of an orbit member is resolved by canonical forms
    rather than by per-site wrapping.
    """

    def apply_to_site(self, site):
        """Get the image of a site wrapped into the unit cell."""
        coords = wrap_coords(self.operate(site.position.to_array()))
        return Site(Vector3D(*coords), site.symbol)

    def apply_to_cluster(self, cluster):
        """Get the rigid image of a cluster with every sublattice sorted."""
        return Cluster(
            Sublattice(
                Site(Vector3D(*coords), site.symbol)
                for site, coords in zip(sub, self._operate_sublattice(sub))
            ).sorted()
            for sub in cluster.sublattices
        )

    def _operate_sublattice(self, sublattice):
        if len(sublattice) == 0:
            return []
        coords = np.array([site.position.to_array() for site in sublattice])
        return self.operate(coords)


class SpaceGroup(MSONable):
    """An ordered list of symmetry operations with a frame transform.

    The frame transform (rotate and translate matrices) is only used to map
    clusters of an ordered phase described with this group into the frame of
    the parent disordered phase.

    Attributes:
        name (str): name of the group.
        operations (tuple of SymmetryOperation): the group operations.
        frame_transform (AffineTransform): ordered to disordered transform.
    """

    def __init__(self, name, operations, frame_transform=None):
        """Initialize a SpaceGroup.

        Args:
            name (str):
                name of the group, for example "A2-SG".
            operations (Sequence of SymmetryOperation):
                the symmetry operations, order is kept.
            frame_transform (AffineTransform): optional
                frame transform, identity if not given.
        """
        self.name = name
        self.operations = tuple(operations)
        self.frame_transform = (
            AffineTransform() if frame_transform is None else frame_transform
        )

    @classmethod
    def from_symmops(cls, name, symmops, frame_transform=None):
        """Create a space group from pymatgen SymmOps."""
        return cls(
            name, [SymmetryOperation.from_symmop(op) for op in symmops], frame_transform
        )

    @property
    def order(self):
        """Get the number of operations."""
        return len(self.operations)

    @property
    def rotate_matrix(self):
        """Get the rotation part of the frame transform."""
        return self.frame_transform.rotation_matrix

    @property
    def translate_vector(self):
        """Get the translation part of the frame transform."""
        return self.frame_transform.translation_vector

    def __len__(self):
        return len(self.operations)

    def __iter__(self):
        return iter(self.operations)

    def __getitem__(self, i):
        return self.operations[i]

    def __str__(self):
        return f"SpaceGroup {self.name} with {self.order} operations"

    def as_dict(self):
        """Get json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "name": self.name,
            "operations": [op.as_dict() for op in self.operations],
            "frame_transform": self.frame_transform.as_dict(),
        }

    @classmethod
    def from_dict(cls, d):
        """Create a SpaceGroup from an MSONable dict representation."""
        return cls(
            d["name"],
            [SymmetryOperation.from_dict(op_d) for op_d in d["operations"]],
            AffineTransform.from_dict(d["frame_transform"]),
        )
