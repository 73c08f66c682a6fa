"""Generation of sub-clusters and decorated sub-clusters of a cluster.

Both generators walk the sites of a cluster in canonical (sorted) order and
rebuild every candidate with the sublattice partition of the parent cluster,
so the order of the candidates is fully reproducible.
"""

from itertools import product

from kikuchi.space.geometry import Cluster, Sublattice, site_sort_key
from kikuchi.utils.exceptions import ConfigurationError

BASIS_SYMBOL_PREFIX = "s"


def generate_basis_symbols(num_components):
    """Get the symbols of the non-constant site basis functions.

    Args:
        num_components (int):
            number of chemical components, at least 2.

    Returns:
        list of str: ["s1", ..., "s{num_components - 1}"]
    """
    validate_num_components(num_components)
    return [basis_symbol(i) for i in range(1, num_components)]


def basis_symbol(index):
    """Get the symbol of the site basis function with the given index."""
    return f"{BASIS_SYMBOL_PREFIX}{index}"


def basis_index(symbol):
    """Get the site basis function index from a symbol such as "s2"."""
    if symbol is None or not symbol.startswith(BASIS_SYMBOL_PREFIX):
        raise ValueError(
            f"Site symbol must start with {BASIS_SYMBOL_PREFIX!r}, got {symbol!r}."
        )
    return int(symbol[len(BASIS_SYMBOL_PREFIX) :])


def validate_num_components(num_components):
    """Raise a ConfigurationError unless num_components is an integer >= 2."""
    if isinstance(num_components, bool) or not isinstance(num_components, int):
        raise ConfigurationError(
            f"Number of components must be an integer, got {num_components!r}."
        )
    if num_components < 2:
        raise ConfigurationError(
            f"Number of components must be at least 2, got {num_components}."
        )


def _labeled_sites(cluster):
    """Get (site, sublattice index) pairs in canonical site order."""
    labeled = [
        (site, i) for i, sub in enumerate(cluster.sublattices) for site in sub
    ]
    return sorted(labeled, key=lambda pair: site_sort_key(pair[0]))


def _partition(selection, num_sublattices):
    """Rebuild a cluster from (site, sublattice index) pairs."""
    sublattices = [[] for _ in range(num_sublattices)]
    for site, i in selection:
        sublattices[i].append(site)
    return Cluster(Sublattice(sites) for sites in sublattices)


def generate_sub_clusters(cluster, include_empty=False):
    """Enumerate every sub-selection of the sites of a cluster.

    Sites are sorted and the sub-selections follow the binary counting order
    of a bit mask over the sorted sites (bit i selects site i). Each
    sub-selection keeps the sublattice partition of the parent cluster.

    Args:
        cluster (Cluster):
            parent cluster.
        include_empty (bool): optional
            if True include the empty selection first.

    Returns:
        list of Cluster: 2^n (or 2^n - 1) sub-clusters
    """
    labeled = _labeled_sites(cluster)
    num_subs = len(cluster.sublattices)
    start = 0 if include_empty else 1
    return [
        _partition(
            [pair for i, pair in enumerate(labeled) if mask >> i & 1], num_subs
        )
        for mask in range(start, 2 ** len(labeled))
    ]


def generate_decorated_sub_clusters(cluster, basis_symbols):
    """Enumerate every decoration of every sub-selection of a cluster.

    Each sorted site is either left out (the constant site function) or
    decorated with one of the basis symbols. The full Cartesian product is
    taken in itertools.product order, so for K - 1 basis symbols an n site
    cluster gives exactly K^n candidates, the first one being empty.

    Args:
        cluster (Cluster):
            parent cluster, its own symbols are ignored.
        basis_symbols (Sequence of str):
            symbols of the non-constant site basis functions.

    Returns:
        list of Cluster: decorated candidates
    """
    labeled = _labeled_sites(cluster)
    num_subs = len(cluster.sublattices)
    options = [
        [None] + [(site.with_symbol(symbol), i) for symbol in basis_symbols]
        for site, i in labeled
    ]
    return [
        _partition([pair for pair in choice if pair is not None], num_subs)
        for choice in product(*options)
    ]
