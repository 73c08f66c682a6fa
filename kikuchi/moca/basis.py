"""Site operator basis sets used to evaluate cluster products.

A site basis for K components is a set of functions phi_0 = 1, phi_1, ...,
phi_{K-1} over the species codes 0, ..., K-1, orthonormal with respect to the
uniform measure. The non-constant functions are generated by a basis
iterator and orthonormalized with a QR factorization.
"""
# pylint: disable=invalid-name, too-few-public-methods

import inspect
from abc import ABCMeta, abstractmethod
from collections.abc import Iterator
from functools import partial

import numpy as np
from monty.json import MSONable
from numpy.polynomial.chebyshev import chebval
from numpy.polynomial.legendre import legval
from numpy.polynomial.polynomial import polyval

from kikuchi.identification.subclusters import validate_num_components

EPS_MULT = 10  # eps precision multiplier


class SiteOperatorBasis(MSONable):
    """Orthonormal site basis over the species codes of a lattice site.

    Functions are stored as rows of a function array, the first row being
    the constant phi_0 = 1. Signs are fixed so that every non-constant
    function is positive on the last species, which makes the basis
    independent of the flavor for polynomial families.
    """

    def __init__(self, num_components, flavor="polynomial"):
        """Initialize a SiteOperatorBasis.

        Args:
            num_components (int):
                number of species a site can hold, at least 2.
            flavor (str): optional
                name of the basis iterator used to generate the functions,
                one of "polynomial", "chebyshev", "legendre" or "sinusoid".
        """
        validate_num_components(num_components)
        self.num_components = num_components
        self.flavor = flavor
        iterator = basis_iterator_factory(flavor, num_components)
        self._f_array = self._construct_function_array(iterator)
        self.orthonormalize()

    def _construct_function_array(self, basis_functions):
        """Construct function array with basis functions as rows."""
        # the last function is dropped, the constant phi_0 takes its place
        nconst_functions = list(basis_functions)[:-1]
        codes = range(self.num_components)
        func_arr = np.array(
            [[function(code) for code in codes] for function in nconst_functions]
        )
        return np.vstack((np.ones(self.num_components), func_arr))

    @property
    def function_array(self):
        """Get array with the non-constant site functions as rows."""
        return self._f_array[1:]

    @property
    def measure_vector(self):
        """Get the uniform measure over species codes."""
        return np.full(self.num_components, 1.0 / self.num_components)

    @property
    def is_orthonormal(self):
        """Test if the basis (including phi_0) is orthonormal."""
        prods = (self.measure_vector * self._f_array) @ self._f_array.T
        return np.allclose(prods, np.eye(*prods.shape))

    def orthonormalize(self):
        """Orthonormalize the basis functions with respect to the measure.

        Modified GS-QR factorization of the function array, with rows as
        functions.
        """
        q_mat, _ = np.linalg.qr(
            (np.sqrt(self.measure_vector) * self._f_array).T, mode="complete"
        )
        # make zeros actually zeros
        q_mat[abs(q_mat) < EPS_MULT * np.finfo(np.float64).eps] = 0.0
        f_array = q_mat.T / q_mat[:, 0]  # make first row constant = 1
        signs = np.where(f_array[:, -1] < 0, -1.0, 1.0)
        self._f_array = signs[:, None] * f_array

    def evaluate(self, alpha, sigma):
        """Evaluate site function alpha on species code sigma.

        Args:
            alpha (int):
                index of the non-constant site function, 1 to K - 1.
            sigma (int):
                species code, 0 to K - 1.
        """
        if not 1 <= alpha < self.num_components:
            raise ValueError(
                f"alpha must be in [1, {self.num_components - 1}], got {alpha}."
            )
        if not 0 <= sigma < self.num_components:
            raise ValueError(
                f"sigma must be in [0, {self.num_components - 1}], got {sigma}."
            )
        return self._f_array[alpha, sigma]

    def as_dict(self):
        """Get MSONable dict representation of a SiteOperatorBasis."""
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "num_components": self.num_components,
            "flavor": self.flavor,
        }

    @classmethod
    def from_dict(cls, d):
        """Create a SiteOperatorBasis from its MSONable dict representation."""
        return cls(d["num_components"], d.get("flavor", "polynomial"))


class BasisIterator(Iterator, metaclass=ABCMeta):
    r"""Abstract basis iterator class.

    Iterates through one function per species code, the last one is
    discarded in favor of the constant :math:`\phi_0 = 1`.

    Attributes:
        flavor (str):
            Name specifying the type of basis that is generated.
    """

    flavor = "abstract"

    def __init__(self, num_components):
        """Initialize a BasisIterator.

        Args:
            num_components (int):
                number of species codes.
        """
        self.num_components = num_components
        self._index_iter = iter(range(1, num_components + 1))

    def __len__(self):
        """Get length of sequence."""
        return self.num_components


class SinusoidIterator(BasisIterator):
    """Iterator for sinusoid (trig basis) as proposed by A. van de Walle.

    A. van de Walle, Calphad. 33, 266-278 (2009).
    """

    flavor = "sinusoid"

    def __next__(self):
        """Generate the next basis function."""
        return sinusoid_factory(next(self._index_iter), self.num_components)


class NumpyPolyIterator(BasisIterator, metaclass=ABCMeta):
    """Class to quickly implement polynomial basis sets included in numpy.

    Species codes are encoded evenly over the interval [low, high].
    """

    flavor = "numpy-poly"

    def __init__(self, num_components, low=-1, high=1):
        """Initialize a NumpyPolyIterator.

        Args:
            num_components (int):
                number of species codes.
            low (float): optional
                lower limit of interval for encoding
            high (float): optional
                higher limit of interval for encoding
        """
        super().__init__(num_components)
        self.encoding = np.linspace(low, high, num_components)

    @property
    @abstractmethod
    def polyval(self):
        """Return a numpy polyval function."""
        return

    def __next__(self):
        """Generate the next basis function."""
        coeffs = next(self._index_iter) * [0] + [1]
        return partial(encoded_poly, polyval=self.polyval, c=coeffs, enc=self.encoding)


class PolynomialIterator(NumpyPolyIterator):
    """A standard polynomial basis set iterator."""

    flavor = "polynomial"

    @property
    def polyval(self):
        """Return numpy polynomial eval."""
        return polyval


class ChebyshevIterator(NumpyPolyIterator):
    """Chebyshev polynomial basis set iterator."""

    flavor = "chebyshev"

    @property
    def polyval(self):
        """Return numpy Chebyshev polynomial eval."""
        return chebval


class LegendreIterator(NumpyPolyIterator):
    """Legendre polynomial basis set iterator."""

    flavor = "legendre"

    @property
    def polyval(self):
        """Return numpy Legendre polynomial eval."""
        return legval


# Basis functions are defined at module level to keep them picklable.


def encoded_poly(s, polyval, c, enc):
    """Evaluate a numpy polynomial on the encoded value of species code s."""
    return polyval(enc[s], c)


def sinusoid_factory(n, m):
    """Sine or cosine based on AVdW sinusoid site basis."""
    a = -(-n // 2)  # ceiling division
    return partial(sin_f, a=a, m=m) if n % 2 == 0 else partial(cos_f, a=a, m=m)


def sin_f(s, a, m):
    """Return basis function for even indices."""
    return -np.sin(2 * np.pi * a * s / m)


def cos_f(s, a, m):
    """Return basis function for odd indices."""
    return -np.cos(2 * np.pi * a * s / m)


def basis_iterator_factory(flavor, num_components):
    """Create a basis iterator from its flavor name.

    Args:
        flavor (str):
            name of the basis flavor, for example "polynomial".
        num_components (int):
            number of species codes.

    Returns:
        BasisIterator
    """
    try:
        iterator_class = available_flavors()[flavor.lower()]
    except KeyError as key_error:
        raise NotImplementedError(f"{flavor} basis is not implemented.") from key_error
    return iterator_class(num_components)


def available_flavors(base_class=BasisIterator):
    """Get the concrete basis iterators keyed by their flavor."""
    flavors = {}
    for sub_class in base_class.__subclasses__():
        flavors.update(available_flavors(sub_class))
        if not inspect.isabstract(sub_class):
            flavors[sub_class.flavor] = sub_class
    return flavors
