"""Implementation of the geometry model: vectors, sites, sublattices and clusters.

All coordinates are fractional. Equality between coordinates is decided with
the global SITE_TOL tolerance, and every ordering used to build canonical
forms of clusters goes through compare_sites.

Every class here is immutable, methods that "modify" an object return a new
one.
"""

from functools import cmp_to_key

import numpy as np
from monty.json import MSONable

from kikuchi.constants import SITE_TOL


def wrap_coords(coords, tol=SITE_TOL):
    """Wrap fractional coordinates into the unit interval [0, 1).

    Values within tol of 1 (or of 0) are snapped to exactly 0, so that sites
    lying on a cell boundary always wrap to the same image.

    Args:
        coords (ArrayLike):
            fractional coordinates, any shape.
        tol (float): optional
            tolerance used to snap boundary values.

    Returns:
        ndarray: wrapped coordinates
    """
    coords = np.asarray(coords, dtype=float)
    wrapped = coords - np.floor(coords)
    wrapped[abs(wrapped - 1.0) < tol] = 0.0
    wrapped[abs(wrapped) < tol] = 0.0
    return wrapped


class Vector3D(MSONable):
    """A fractional coordinate vector with tolerant equality."""

    def __init__(self, x, y, z):
        """Initialize a Vector3D.

        Args:
            x (float): first fractional coordinate
            y (float): second fractional coordinate
            z (float): third fractional coordinate
        """
        self._coords = (float(x), float(y), float(z))

    @classmethod
    def from_array(cls, array):
        """Create a vector from any length 3 sequence."""
        if len(array) != 3:
            raise ValueError(f"A Vector3D needs 3 components, got {len(array)}.")
        return cls(*array)

    @property
    def x(self):
        """Get the first coordinate."""
        return self._coords[0]

    @property
    def y(self):
        """Get the second coordinate."""
        return self._coords[1]

    @property
    def z(self):
        """Get the third coordinate."""
        return self._coords[2]

    def to_array(self):
        """Get the vector as a numpy array."""
        return np.array(self._coords)

    def wrapped(self, tol=SITE_TOL):
        """Get the periodic image of this vector inside [0, 1)^3."""
        return Vector3D(*wrap_coords(self._coords, tol=tol))

    def is_close(self, other, tol=SITE_TOL):
        """Check if all components agree within the given tolerance."""
        return all(abs(a - b) < tol for a, b in zip(self._coords, other))

    def __iter__(self):
        return iter(self._coords)

    def __len__(self):
        return 3

    def __getitem__(self, i):
        return self._coords[i]

    def __add__(self, other):
        return Vector3D(*(a + b for a, b in zip(self._coords, other)))

    def __sub__(self, other):
        return Vector3D(*(a - b for a, b in zip(self._coords, other)))

    def __mul__(self, factor):
        return Vector3D(*(factor * a for a in self._coords))

    __rmul__ = __mul__

    def __neg__(self):
        return Vector3D(*(-a for a in self._coords))

    def __eq__(self, other):
        """Check equality within SITE_TOL."""
        if not isinstance(other, Vector3D):
            return NotImplemented
        return self.is_close(other)

    __hash__ = None

    def __str__(self):
        return "({:.6f}, {:.6f}, {:.6f})".format(*self._coords)

    def __repr__(self):
        return "Vector3D({}, {}, {})".format(*self._coords)

    def as_dict(self):
        """Get json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "coords": list(self._coords),
        }

    @classmethod
    def from_dict(cls, d):
        """Create a Vector3D from an MSONable dict representation."""
        return cls(*d["coords"])


def compare_coords(coords1, coords2, tol=SITE_TOL):
    """Compare two coordinate triples lexicographically with a tolerance.

    Components that agree within tol are treated as equal and the next
    component decides.

    Returns:
        int: -1, 0 or 1
    """
    for a, b in zip(coords1, coords2):
        if abs(a - b) < tol:
            continue
        return -1 if a < b else 1
    return 0


def compare_sites(site1, site2):
    """Order two sites lexicographically by x, y, z within SITE_TOL.

    Symbols are not part of the ordering, sites of a single cluster never
    share a position.
    """
    return compare_coords(site1.position, site2.position)


site_sort_key = cmp_to_key(compare_sites)


class Site(MSONable):
    """A position with an optional species (basis function) symbol.

    A symbol of None represents an undecorated site, or equivalently the
    constant (empty) site function.
    """

    def __init__(self, position, symbol=None):
        """Initialize a Site.

        Args:
            position (Vector3D or Sequence):
                fractional coordinates of the site.
            symbol (str): optional
                decoration symbol, for example "s1".
        """
        if not isinstance(position, Vector3D):
            position = Vector3D.from_array(position)
        self._position = position
        self._symbol = symbol

    @property
    def position(self):
        """Get the site position."""
        return self._position

    @property
    def symbol(self):
        """Get the site symbol, None if undecorated."""
        return self._symbol

    @property
    def is_decorated(self):
        """Check if the site has a symbol."""
        return self._symbol is not None

    def translate(self, vector):
        """Get a copy of the site translated by the given vector."""
        return Site(self._position + vector, self._symbol)

    def with_symbol(self, symbol):
        """Get a copy of the site with a different symbol."""
        return Site(self._position, symbol)

    def __eq__(self, other):
        if not isinstance(other, Site):
            return NotImplemented
        return self._symbol == other._symbol and self._position == other._position

    __hash__ = None

    def __str__(self):
        return f"{self._position} {self._symbol or '-'}"

    def __repr__(self):
        return f"Site({self._position!r}, symbol={self._symbol!r})"

    def as_dict(self):
        """Get json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "position": list(self._position),
            "symbol": self._symbol,
        }

    @classmethod
    def from_dict(cls, d):
        """Create a Site from an MSONable dict representation."""
        return cls(d["position"], d.get("symbol"))


class Sublattice(MSONable):
    """An ordered collection of sites sharing a Wyckoff position class."""

    def __init__(self, sites):
        """Initialize a Sublattice.

        Args:
            sites (Sequence of Site):
                sites in the sublattice, the order is kept as given.
        """
        self._sites = tuple(sites)

    @property
    def sites(self):
        """Get the sites as an immutable tuple."""
        return self._sites

    @property
    def symbols(self):
        """Get the symbols of all sites."""
        return tuple(site.symbol for site in self._sites)

    def sorted(self):
        """Get a canonically ordered copy of the sublattice."""
        return Sublattice(sorted(self._sites, key=site_sort_key))

    def translate(self, vector):
        """Get a translated copy of the sublattice."""
        return Sublattice(site.translate(vector) for site in self._sites)

    def contains_position(self, position):
        """Check if any site of the sublattice sits at the given position."""
        return any(site.position == position for site in self._sites)

    def __len__(self):
        return len(self._sites)

    def __iter__(self):
        return iter(self._sites)

    def __getitem__(self, i):
        return self._sites[i]

    def __eq__(self, other):
        if not isinstance(other, Sublattice):
            return NotImplemented
        return len(self) == len(other) and all(
            s1 == s2 for s1, s2 in zip(self._sites, other._sites)
        )

    __hash__ = None

    def __repr__(self):
        return f"Sublattice({list(self._sites)!r})"

    def as_dict(self):
        """Get json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "sites": [site.as_dict() for site in self._sites],
        }

    @classmethod
    def from_dict(cls, d):
        """Create a Sublattice from an MSONable dict representation."""
        return cls(Site.from_dict(site_d) for site_d in d["sites"])


class Cluster(MSONable):
    """A group of sites partitioned into sublattices.

    The sublattice partition is part of the identity of a cluster: two
    clusters are equal only if every sublattice holds the same sites (in the
    same order, within SITE_TOL) with the same symbols. Use sorted or
    canonical to compare clusters independently of site order or of a
    periodic translation, and flattened to drop the partition.

    Attributes:
        sublattices (tuple of Sublattice): the sublattices of the cluster.
    """

    def __init__(self, sublattices):
        """Initialize a Cluster.

        Args:
            sublattices (Sequence of Sublattice or Sequence of Site):
                sublattices of the cluster. Plain sequences of sites are
                converted to Sublattice objects.
        """
        self._sublattices = tuple(
            sub if isinstance(sub, Sublattice) else Sublattice(sub)
            for sub in sublattices
        )

    @classmethod
    def from_coords(cls, coords, symbols=None):
        """Create a cluster from nested lists of coordinates.

        Args:
            coords (list of list of Sequence):
                coordinates of each site in each sublattice.
            symbols (list of list of str): optional
                symbols for each site in each sublattice.
        """
        if symbols is None:
            symbols = [[None] * len(sub) for sub in coords]
        return cls(
            [Site(c, s) for c, s in zip(sub_coords, sub_symbols)]
            for sub_coords, sub_symbols in zip(coords, symbols)
        )

    @property
    def sublattices(self):
        """Get the sublattices as an immutable tuple."""
        return self._sublattices

    @property
    def sites(self):
        """Get all sites in sublattice order."""
        return tuple(site for sub in self._sublattices for site in sub)

    @property
    def num_sites(self):
        """Get the total number of sites."""
        return sum(len(sub) for sub in self._sublattices)

    @property
    def sublattice_sizes(self):
        """Get the number of sites in each sublattice (the rc counts)."""
        return tuple(len(sub) for sub in self._sublattices)

    @property
    def symbols(self):
        """Get the site symbols grouped by sublattice."""
        return tuple(sub.symbols for sub in self._sublattices)

    @property
    def frac_coords(self):
        """Get fractional coordinates of all sites in sublattice order."""
        return np.array([site.position.to_array() for site in self.sites]).reshape(
            -1, 3
        )

    @property
    def is_decorated(self):
        """Check if any site carries a symbol."""
        return any(site.is_decorated for site in self.sites)

    def sorted(self):
        """Get a copy of the cluster with every sublattice sorted."""
        return Cluster(sub.sorted() for sub in self._sublattices)

    def flattened(self):
        """Get a single-sublattice, sorted copy of the cluster."""
        return Cluster([Sublattice(self.sites).sorted()])

    def translate(self, vector):
        """Get a copy of the cluster rigidly translated by vector."""
        return Cluster(sub.translate(vector) for sub in self._sublattices)

    def canonical(self):
        """Get the canonical periodic image of the cluster.

        The cluster is sorted and rigidly shifted by an integer lattice
        vector so that the first site of the first non-empty sublattice lies
        inside [0, 1)^3. Two clusters are translations of one another iff
        their canonical forms are equal.
        """
        cluster = self.sorted()
        sites = cluster.sites
        if not sites:
            return cluster
        anchor = sites[0].position
        shift = np.round(anchor.wrapped().to_array() - anchor.to_array())
        if not shift.any():
            return cluster
        return cluster.translate(shift)

    def undecorated(self):
        """Get a copy of the cluster with all symbols removed."""
        return self.decorate(None)

    def decorate(self, symbol):
        """Get a copy of the cluster with the same symbol on every site."""
        return Cluster(
            Sublattice(site.with_symbol(symbol) for site in sub)
            for sub in self._sublattices
        )

    def sublattice_index(self, position):
        """Get the index of the first sublattice containing a position.

        Returns:
            int: sublattice index, or None if the position is not in the cluster
        """
        for i, sub in enumerate(self._sublattices):
            if sub.contains_position(position):
                return i
        return None

    def __len__(self):
        return self.num_sites

    def __eq__(self, other):
        """Check structural equality: same partition, sites and symbols."""
        if not isinstance(other, Cluster):
            return NotImplemented
        return len(self._sublattices) == len(other._sublattices) and all(
            s1 == s2 for s1, s2 in zip(self._sublattices, other._sublattices)
        )

    __hash__ = None

    def __str__(self):
        lines = [f"Cluster with {self.num_sites} sites"]
        for i, sub in enumerate(self._sublattices):
            lines.append(f"  sublattice {i}:")
            lines.extend(f"    {site}" for site in sub)
        return "\n".join(lines)

    def __repr__(self):
        return f"Cluster({[list(sub) for sub in self._sublattices]!r})"

    def as_dict(self):
        """Get json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "sublattices": [sub.as_dict() for sub in self._sublattices],
        }

    @classmethod
    def from_dict(cls, d):
        """Create a Cluster from an MSONable dict representation."""
        return cls(Sublattice.from_dict(sub_d) for sub_d in d["sublattices"])
