"""Input and output functions.

Parsers and writers for the brace-delimited cluster and symmetry resources,
and convenience functions to save and load identification results in a
"standard" json way.

Resource layout under a data directory:

    <data_dir>/<cluster file>           maximal clusters, for example cluster/A2-T.txt
    <data_dir>/symmetry/<name>.txt      flattened 3x4 symmetry operations
    <data_dir>/symmetry/<name>_mat.txt  flattened frame transform
"""

import json
import os
import re
from fractions import Fraction

from monty.io import zopen
from monty.json import MontyDecoder, MontyEncoder, MSONable

from kikuchi.space.geometry import Cluster, Site, Sublattice
from kikuchi.space.symmetry import AffineTransform, SpaceGroup, SymmetryOperation
from kikuchi.utils.exceptions import InputFormatError

SYMMETRY_DIR = "symmetry"
OP_SIZE = 12
_TOKEN_RE = re.compile(r"[{},]|[^{},\s]+")


def _parse_number(token):
    try:
        return float(Fraction(token))
    except (ValueError, ZeroDivisionError) as error:
        raise InputFormatError(f"Invalid numeric token {token!r}.") from error


def _parse_braces(text):
    """Parse nested braces into nested lists of string tokens."""
    stack = [[]]
    for token in _TOKEN_RE.findall(text):
        if token == "{":
            stack.append([])
        elif token == "}":
            if len(stack) == 1:
                raise InputFormatError("Unbalanced braces: unexpected '}'.")
            block = stack.pop()
            stack[-1].append(block)
        elif token != ",":
            stack[-1].append(token)
    if len(stack) != 1:
        raise InputFormatError(f"Unbalanced braces: {len(stack) - 1} left open.")
    return stack[0]


def _flat_numbers(text):
    """Get all numeric tokens of a text, ignoring braces."""
    tokens = [t for t in _TOKEN_RE.findall(text) if t not in ("{", "}", ",")]
    return [_parse_number(t) for t in tokens]


def parse_clusters(text):
    """Parse maximal clusters from a brace-delimited string.

    The expected nesting is {cluster, ...}, each cluster {sublattice, ...},
    each sublattice {site, ...} and each site {x, y, z}.

    Args:
        text (str):
            content of a cluster file.

    Returns:
        list of Cluster: undecorated maximal clusters
    """
    blocks = _parse_braces(text)
    if len(blocks) != 1 or not isinstance(blocks[0], list):
        raise InputFormatError("A cluster file must hold a single outer block.")

    clusters = []
    for cluster_block in blocks[0]:
        if not isinstance(cluster_block, list):
            raise InputFormatError(f"Expected a cluster block, got {cluster_block!r}.")
        sublattices = []
        for sub_block in cluster_block:
            if not isinstance(sub_block, list):
                raise InputFormatError(
                    f"Expected a sublattice block, got {sub_block!r}."
                )
            sites = []
            for site_block in sub_block:
                if not isinstance(site_block, list) or len(site_block) != 3:
                    raise InputFormatError(
                        f"A site needs exactly 3 coordinates, got {site_block!r}."
                    )
                if any(isinstance(token, list) for token in site_block):
                    raise InputFormatError(f"Site {site_block!r} is nested too deep.")
                sites.append(Site([_parse_number(token) for token in site_block]))
            sublattices.append(Sublattice(sites))
        clusters.append(Cluster(sublattices))
    return clusters


def parse_symmetry_operations(text):
    """Parse flattened 3x4 symmetry operations.

    Every 12 numbers make one operation: for row r the rotation entries are
    at positions 4r, 4r + 1, 4r + 2 and the translation at 4r + 3.

    Returns:
        list of SymmetryOperation
    """
    numbers = _flat_numbers(text)
    if not numbers or len(numbers) % OP_SIZE != 0:
        raise InputFormatError(
            f"Symmetry operations need a multiple of {OP_SIZE} values, got "
            f"{len(numbers)}."
        )
    return [
        SymmetryOperation.from_flat(numbers[i : i + OP_SIZE])
        for i in range(0, len(numbers), OP_SIZE)
    ]


def parse_frame_transform(text):
    """Parse a frame transform of 9 rotation and 3 translation values.

    Returns:
        AffineTransform
    """
    numbers = _flat_numbers(text)
    if len(numbers) != 12:
        raise InputFormatError(
            f"A frame transform needs 9 rotation and 3 translation values, got "
            f"{len(numbers)} values."
        )
    rotation = [numbers[0:3], numbers[3:6], numbers[6:9]]
    return AffineTransform(rotation, numbers[9:12])


def _read(path):
    with zopen(path, mode="rt", encoding="utf-8") as fpath:
        return fpath.read()


def load_clusters(file_path):
    """Load maximal clusters from a cluster file."""
    return parse_clusters(_read(file_path))


def load_space_group(data_dir, name):
    """Load a space group and its frame transform from a data directory.

    Args:
        data_dir (str):
            root directory of the resources.
        name (str):
            name of the group, for example "A2-SG".

    Returns:
        SpaceGroup
    """
    sym_dir = os.path.join(data_dir, SYMMETRY_DIR)
    operations = parse_symmetry_operations(_read(os.path.join(sym_dir, f"{name}.txt")))
    transform = parse_frame_transform(_read(os.path.join(sym_dir, f"{name}_mat.txt")))
    return SpaceGroup(name, operations, transform)


def _format_number(value):
    return repr(float(value))


def clusters_to_str(clusters):
    """Write maximal clusters in the brace-delimited cluster format."""
    cluster_strs = []
    for cluster in clusters:
        sub_strs = []
        for sub in cluster.sublattices:
            site_strs = [
                "{" + ",".join(_format_number(v) for v in site.position) + "}"
                for site in sub
            ]
            sub_strs.append("{" + ",".join(site_strs) + "}")
        cluster_strs.append("{" + ",".join(sub_strs) + "}")
    return "{" + ",\n".join(cluster_strs) + "}\n"


def symmetry_operations_to_str(operations):
    """Write symmetry operations as flattened 3x4 blocks, one per line."""
    lines = []
    for operation in operations:
        rows = [
            list(rot) + [trans]
            for rot, trans in zip(
                operation.rotation_matrix, operation.translation_vector
            )
        ]
        lines.append(
            "{" + ",".join(_format_number(v) for row in rows for v in row) + "}"
        )
    return "{" + ",\n".join(lines) + "}\n"


def frame_transform_to_str(transform):
    """Write a frame transform as 9 rotation and 3 translation values."""
    values = list(transform.rotation_matrix.flatten()) + list(
        transform.translation_vector
    )
    return "{" + ",".join(_format_number(v) for v in values) + "}\n"


def write_space_group(data_dir, space_group):
    """Write the operation and frame transform files of a space group."""
    sym_dir = os.path.join(data_dir, SYMMETRY_DIR)
    os.makedirs(sym_dir, exist_ok=True)
    with open(
        os.path.join(sym_dir, f"{space_group.name}.txt"), "w", encoding="utf-8"
    ) as fpath:
        fpath.write(symmetry_operations_to_str(space_group.operations))
    with open(
        os.path.join(sym_dir, f"{space_group.name}_mat.txt"), "w", encoding="utf-8"
    ) as fpath:
        fpath.write(frame_transform_to_str(space_group.frame_transform))


def write_clusters(file_path, clusters):
    """Write maximal clusters to a cluster file."""
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as fpath:
        fpath.write(clusters_to_str(clusters))


def save_work(file_path, *msonables):
    """Save MSONable results of an identification workflow.

    Save a set of unique MSONable objects as a json dictionary keyed by
    class name. Only one of each class type can be saved per file.

    Args:
        file_path (str):
            file path
        *msonables (monty.MSONable):
            MSONable child classes.
    """
    work_d = {}
    for msonable in msonables:
        if not isinstance(msonable, MSONable):
            raise AttributeError(
                "Attempting to save an object which is not " f"MSONable: {msonable}"
            )
        work_d[msonable.__class__.__name__] = msonable

    with open(file_path, "w", encoding="utf-8") as fpath:
        json.dump(work_d, fpath, cls=MontyEncoder)


def load_work(file_path):
    """Load a dictionary and instantiate the MSONable objects.

    Args:
        file_path (str):

    Returns: Dictionary with kikuchi objects
        dict
    """
    with open(file_path, encoding="utf-8") as fpath:
        work_d = json.load(fpath, cls=MontyDecoder)

    return work_d
