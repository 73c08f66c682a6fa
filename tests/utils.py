"""
A few testing utilities that may be useful to just import and run.
Some of these are borrowed from pymatgen test scripts.
"""

import json
import pickle
from itertools import product

from monty.json import MontyDecoder, MSONable


def assert_msonable(obj, skip_keys=None, test_if_subclass=True):
    """
    Tests if obj is MSONable and tries to verify whether the contract is
    fulfilled.
    By default, the method tests whether obj is an instance of MSONable.
    This check can be deactivated by setting test_if_subclass to False.
    """
    if test_if_subclass:
        assert isinstance(obj, MSONable)

    skip_keys = [] if skip_keys is None else skip_keys
    d1 = obj.as_dict()
    d2 = obj.__class__.from_dict(obj.as_dict()).as_dict()
    for key in d1.keys():
        if key in skip_keys:
            continue
        assert d1[key] == d2[key]

    try:
        _ = json.loads(obj.to_json(), cls=MontyDecoder)
    except Exception as e:
        raise AssertionError(e)


def assert_pickles(obj):
    """Test if obj is picklable."""
    try:
        p = pickle.dumps(obj)
        obj_copy = pickle.loads(p)
    except Exception as e:
        raise AssertionError(e)

    assert isinstance(obj_copy, obj.__class__)

    if isinstance(obj, MSONable):
        d1 = obj.as_dict()
        d2 = obj_copy.as_dict()
        for key in d1.keys():
            assert d1[key] == d2[key]
    else:
        # fallback for objects that are not MSONable
        # not a complete test, since we are only checking that attribute names match
        d1 = obj.__dict__
        d2 = obj_copy.__dict__
        assert d1.keys() == d2.keys()


def brute_force_embeddings(positions, cluster_type, size, scale=2):
    """Find the site index sets of every placement of a cluster type.

    Each orbit member is translated by every cell vector of the supercell and
    wrapped, placements that fold onto a repeated site are dropped.
    """
    lookup = {
        tuple(int(v) for v in (round(c * scale) % (size * scale) for c in pos)): i
        for i, pos in enumerate(positions)
    }
    found = set()
    for member in cluster_type.orbit:
        for cell in product(range(size), repeat=3):
            indices = [
                lookup[
                    tuple(
                        int(v)
                        for v in (
                            round((c + t) * scale) % (size * scale)
                            for c, t in zip(coords, cell)
                        )
                    )
                ]
                for coords in member.frac_coords
            ]
            if len(set(indices)) == len(indices):
                found.add(frozenset(indices))
    return found
