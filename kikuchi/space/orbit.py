"""Implementation of cluster types (orbits) and an orbit lookup registry.

A cluster type is a set of symmetrically equivalent clusters. Orbit members
are stored in canonical form, so that membership of any periodic image of a
cluster can be decided by a tolerant comparison of canonical forms.
"""

from monty.json import MSONable

from kikuchi.space.geometry import Cluster


def generate_orbit(cluster, operations):
    """Generate the orbit of a cluster under a list of symmetry operations.

    Each image is canonicalized and kept only if no equal image was found
    before, so the orbit order follows the order of the operations.

    Args:
        cluster (Cluster):
            the cluster to act on.
        operations (Sequence of SymmetryOperation):
            symmetry operations.

    Returns:
        list of Cluster: canonical orbit members
    """
    orbit = []
    for operation in operations:
        image = operation.apply_to_cluster(cluster).canonical()
        if not any(image == member for member in orbit):
            orbit.append(image)
    return orbit


def cluster_signature(cluster, flatten=False):
    """Get a hashable signature of a cluster.

    Clusters in the same orbit always share a signature: the number of sites
    in each sublattice and the multiset of symbols in each sublattice.
    """
    if flatten:
        cluster = cluster.flattened()
    return tuple(
        (len(sub), tuple(sorted(sub.symbols, key=lambda s: "" if s is None else s)))
        for sub in cluster.sublattices
    )


class ClusterType(MSONable):
    """An orbit of symmetrically equivalent clusters.

    Attributes:
        base_cluster (Cluster): representative cluster of the orbit.
        orbit (tuple of Cluster): canonical forms of all orbit members.
    """

    def __init__(self, base_cluster, orbit):
        """Initialize a ClusterType.

        You usually want to use ClusterType.from_cluster instead.

        Args:
            base_cluster (Cluster):
                representative cluster.
            orbit (Sequence of Cluster):
                all symmetry images of the representative in canonical form.
        """
        self.base_cluster = base_cluster
        self.orbit = tuple(orbit)

    @classmethod
    def from_cluster(cls, cluster, operations):
        """Create a cluster type by generating the orbit of a cluster."""
        return cls(cluster, generate_orbit(cluster, operations))

    @property
    def multiplicity(self):
        """Get the orbit size."""
        return len(self.orbit)

    @property
    def num_sites(self):
        """Get the number of sites of clusters in the orbit."""
        return self.base_cluster.num_sites

    @property
    def sublattice_sizes(self):
        """Get the rc counts of the representative."""
        return self.base_cluster.sublattice_sizes

    def contains(self, cluster, flatten=False):
        """Check if a cluster, or a periodic image of it, is in the orbit.

        Args:
            cluster (Cluster):
                cluster to look up.
            flatten (bool): optional
                if True the sublattice partition is ignored in the comparison.
        """
        if flatten:
            target = cluster.flattened().canonical()
            return any(
                target == member.flattened().canonical() for member in self.orbit
            )
        target = cluster.canonical()
        return any(target == member for member in self.orbit)

    def is_closed_under(self, operations):
        """Check that applying any operation to any member gives a member."""
        return all(
            self.contains(operation.apply_to_cluster(member))
            for member in self.orbit
            for operation in operations
        )

    def __len__(self):
        return len(self.orbit)

    def __contains__(self, cluster):
        return self.contains(cluster)

    def __eq__(self, other):
        if not isinstance(other, ClusterType):
            return NotImplemented
        return (
            self.base_cluster == other.base_cluster
            and len(self.orbit) == len(other.orbit)
            and all(c1 == c2 for c1, c2 in zip(self.orbit, other.orbit))
        )

    __hash__ = None

    def __str__(self):
        outs = [
            "ClusterType",
            f"    Multiplicity : {self.multiplicity:<4}",
            f"     No. sites : {self.num_sites:<4}",
            "Base Cluster : ",
            "  | " + "\n  | ".join(str(self.base_cluster).split("\n")),
        ]
        return "\n".join(outs)

    def __repr__(self):
        return (
            f"ClusterType(size={self.num_sites}, multiplicity={self.multiplicity})"
        )

    def as_dict(self):
        """Get json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "base_cluster": self.base_cluster.as_dict(),
            "orbit": [member.as_dict() for member in self.orbit],
        }

    @classmethod
    def from_dict(cls, d):
        """Create a ClusterType from an MSONable dict representation."""
        return cls(
            Cluster.from_dict(d["base_cluster"]),
            [Cluster.from_dict(member) for member in d["orbit"]],
        )


class OrbitRegistry:
    """An insertion ordered collection of cluster types with fast lookup.

    Cluster types are bucketed by their signature, so looking up a cluster
    only compares it against orbits that could possibly contain it. Type
    indices follow insertion order.
    """

    def __init__(self, cluster_types=(), flatten=False):
        """Initialize an OrbitRegistry.

        Args:
            cluster_types (Sequence of ClusterType): optional
                initial cluster types, indexed in the given order.
            flatten (bool): optional
                if True lookups ignore the sublattice partition of clusters.
        """
        self._flatten = flatten
        self._types = []
        self._buckets = {}
        for cluster_type in cluster_types:
            self.add(cluster_type)

    @property
    def cluster_types(self):
        """Get the registered cluster types in insertion order."""
        return list(self._types)

    def add(self, cluster_type):
        """Register a cluster type.

        Returns:
            int: index of the new type
        """
        index = len(self._types)
        self._types.append(cluster_type)
        bucket = self._buckets.setdefault(self._key(cluster_type.base_cluster), [])
        members = [
            member.flattened().canonical() if self._flatten else member
            for member in cluster_type.orbit
        ]
        bucket.append((index, members))
        return index

    def find(self, cluster):
        """Find the index of the type whose orbit contains the cluster.

        Returns:
            int: type index, or None if no registered orbit contains it
        """
        bucket = self._buckets.get(self._key(cluster))
        if bucket is None:
            return None
        target = (
            cluster.flattened().canonical() if self._flatten else cluster.canonical()
        )
        for index, members in bucket:
            if any(target == member for member in members):
                return index
        return None

    def _key(self, cluster):
        return cluster_signature(cluster, flatten=self._flatten)

    def __len__(self):
        return len(self._types)

    def __getitem__(self, i):
        return self._types[i]

    def __iter__(self):
        return iter(self._types)
