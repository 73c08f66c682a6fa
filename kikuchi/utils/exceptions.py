"""Definitions of specific exceptions raised elsewhere."""


CLASSIFICATION_ERROR_MESSAGE = (
    "Ordered cluster {index} does not belong to any orbit of the disordered "
    "phase. Check the transformation matrix and translation vector relating "
    "the ordered and disordered frames."
)


class InputFormatError(ValueError):
    """Exception for malformed cluster or symmetry resources.

    Raised on unbalanced braces and on token counts that do not fit the
    expected record size.
    """


class GeometryError(RuntimeError):
    """Exception for cluster data that violates a geometric invariant.

    Raised for inconsistent containment (Nij) tables, cycles in the
    containment relation, clusters that can not be classified and lattices
    that can not be mapped onto an integer grid.
    """


class ConfigurationError(ValueError):
    """Exception for invalid configurations or externally supplied inputs."""
