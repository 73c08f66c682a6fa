"""Kikuchi-Baker coefficients of the CVM entropy expansion.

The coefficient of a cluster type follows from the coefficients of every
type that contains it,

    kb[j] = (m[j] - sum_{i contains j} m[i] * nij[i][j] * kb[i]) / m[j],

so the types are solved in a topological order of the containment relation
given by the nij table, containers first. The largest clusters therefore get
kb = 1.
"""

import heapq

import numpy as np

from kikuchi.constants import KB_TOL
from kikuchi.utils.exceptions import GeometryError


def containment_order(nij):
    """Get a topological order of cluster types, containers first.

    Type i contains type j when nij[i][j] > 0 and i != j. Ties are broken by
    taking the smallest available type index first, so the order is
    deterministic.

    Args:
        nij (ArrayLike):
            square containment table.

    Returns:
        list of int: type indices

    Raises:
        GeometryError: if the containment relation has a cycle.
    """
    nij = np.asarray(nij)
    num_types = len(nij)
    contains = (nij > 0) & ~np.eye(num_types, dtype=bool)
    in_degree = contains.sum(axis=0)
    available = [j for j in range(num_types) if in_degree[j] == 0]
    heapq.heapify(available)
    order = []
    while available:
        i = heapq.heappop(available)
        order.append(i)
        for j in np.flatnonzero(contains[i]):
            in_degree[j] -= 1
            if in_degree[j] == 0:
                heapq.heappush(available, int(j))

    if len(order) != num_types:
        cyclic = sorted(set(range(num_types)) - set(order))
        raise GeometryError(
            f"The containment relation is not a partial order, cluster types "
            f"{cyclic} are part of a containment cycle."
        )
    return order


def compute_kb_coefficients(multiplicities, nij):
    """Solve for the Kikuchi-Baker coefficients.

    Args:
        multiplicities (ArrayLike):
            multiplicity of each cluster type.
        nij (ArrayLike):
            containment table between the same cluster types.

    Returns:
        ndarray: one coefficient per cluster type

    Raises:
        GeometryError: if the nij table is malformed.
    """
    mults = np.asarray(multiplicities, dtype=float)
    nij = np.asarray(nij)
    num_types = len(mults)
    if nij.shape != (num_types, num_types):
        raise GeometryError(
            f"The nij table has shape {nij.shape} but there are {num_types} "
            "cluster types."
        )
    bad_diagonal = np.flatnonzero(np.diag(nij) != 1)
    if len(bad_diagonal) > 0:
        raise GeometryError(
            f"Diagonal nij entries must be 1, check cluster types "
            f"{bad_diagonal.tolist()}."
        )
    if np.any(mults <= 0):
        raise GeometryError("All cluster type multiplicities must be positive.")

    kb = np.zeros(num_types)
    for j in containment_order(nij):
        containers = [i for i in range(num_types) if i != j and nij[i, j] > 0]
        total = sum(mults[i] * nij[i, j] * kb[i] for i in containers)
        kb[j] = (mults[j] - total) / mults[j]
    return kb


def kb_sum_rules(kb, multiplicities):
    """Get the two Kikuchi-Baker sum rules.

    Returns:
        tuple: (sum of kb, sum of kb weighted by multiplicity)
    """
    kb = np.asarray(kb, dtype=float)
    return float(kb.sum()), float(np.dot(kb, multiplicities))


def check_kb_sum_rules(kb, multiplicities, tol=KB_TOL):
    """Check that sum kb = 1 and sum kb * m = 0 within the given tolerance.

    These hold for the usual CVM approximations (for example the BCC
    tetrahedron), but not for every choice of maximal clusters.

    Raises:
        GeometryError: if either rule is violated.
    """
    total, weighted = kb_sum_rules(kb, multiplicities)
    if abs(total - 1.0) > tol or abs(weighted) > tol:
        raise GeometryError(
            f"Kikuchi-Baker sum rules violated: sum(kb) = {total}, "
            f"sum(kb * m) = {weighted}."
        )
