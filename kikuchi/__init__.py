"""Cluster identification and embedding for the Cluster Variation Method."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kikuchi")
except PackageNotFoundError:
    # package is not installed
    pass
