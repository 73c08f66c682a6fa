"""CVM free energy functional and its minimization.

The Gibbs energy of mixing G = H - T * S is a function of the non-point
correlation functions u, the point correlation functions being fixed by the
composition. With the cluster variables cv = C @ [u, u_point, 1] of every
classified cluster (t, j),

    H = sum_l mhdis[t(l)] * eci[l] * u[l]
    S = -sum_t kb[t] * mhdis[t] * sum_j mh[t][j] * sum_v wcv[t][j][v] * cv * ln(cv)

where t(l) is the disordered type of correlation function l. The entropy is
in units of the gas constant, so ECIs and temperature must be given in
consistent units (e.g. eci / k_B in Kelvin).
"""

import logging
import warnings
from dataclasses import dataclass

import numpy as np
from monty.json import MSONable

from kikuchi.constants import ENTROPY_EPS
from kikuchi.cvm.cmatrix import point_correlations
from kikuchi.utils.exceptions import ConfigurationError

# a Newton step keeps positive cluster variables at least this far above zero
CV_MIN = 1e-12
# smallest fraction of a Newton step that is taken
STEP_FLOOR = 1e-6


def entropy_terms(cluster_variables, eps=ENTROPY_EPS):
    """Compute cv * ln(cv) and its first two derivatives.

    At and below eps the function is continued by its second order expansion
    around eps, so that vanishing or negative cluster variables give finite
    values that push the minimization back towards positive ones.

    Args:
        cluster_variables (ArrayLike):
            cluster variable values.
        eps (float): optional
            threshold of the quadratic continuation.

    Returns:
        tuple of ndarray: values, first and second derivatives
    """
    cv = np.asarray(cluster_variables, dtype=float)
    exact = cv > eps
    safe = np.where(exact, cv, eps)
    log = np.log(safe)
    delta = cv - eps
    log_eps = np.log(eps)
    values = np.where(
        exact,
        safe * log,
        eps * log_eps + (1 + log_eps) * delta + 0.5 * delta**2 / eps,
    )
    first = np.where(exact, 1 + log, 1 + log_eps + delta / eps)
    second = 1 / safe
    return values, first, second


@dataclass
class FreeEnergyEvaluation(MSONable):
    """Free energy, enthalpy and entropy with derivatives of G.

    Attributes:
        gibbs_energy (float):
            G = H - T * S.
        enthalpy (float):
            enthalpy of mixing.
        entropy (float):
            entropy of mixing, in units of the gas constant.
        gradient (list of float):
            dG/du over the non-point correlation functions.
        hessian (list of list of float):
            d2G/du2 over the non-point correlation functions.
    """

    gibbs_energy: float
    enthalpy: float
    entropy: float
    gradient: list
    hessian: list


@dataclass
class CVMSolverResult(MSONable):
    """Outcome of a free energy minimization.

    Attributes:
        cf_values (list of float):
            non-point correlation functions at the last iterate.
        gibbs_energy (float):
            G at the last iterate.
        enthalpy (float):
            H at the last iterate.
        entropy (float):
            S at the last iterate.
        iterations (int):
            number of Newton iterations performed.
        gradient_norm (float):
            norm of dG/du at the last iterate.
        converged (bool):
            True if the gradient norm fell below the tolerance.
    """

    cf_values: list
    gibbs_energy: float
    enthalpy: float
    entropy: float
    iterations: int
    gradient_norm: float
    converged: bool


class CVMFreeEnergy:
    """Free energy functional of an identified ordered phase.

    The C-matrices of all classified clusters are stacked into a single
    matrix, with every row weighted by kb[t] * mhdis[t] * mh[t][j] * wcv, so
    that the entropy and its derivatives are plain matrix products.
    """

    def __init__(self, cluster_result, cf_result, cmat_result):
        """Initialize a CVMFreeEnergy.

        Args:
            cluster_result (ClusterIdentificationResult):
                cluster identification result.
            cf_result (CFIdentificationResult):
                correlation function identification result.
            cmat_result (CMatrixResult):
                C-matrices built from the two results above.
        """
        if cmat_result.tcf != cf_result.tcf:
            raise ConfigurationError(
                f"C-matrices have {cmat_result.tcf} correlation function "
                f"columns but {cf_result.tcf} correlation functions were "
                "identified."
            )
        self.num_components = cmat_result.num_components
        self.tcf = cmat_result.tcf
        self.ncf = cf_result.ncf
        self.cf_basis_indices = cmat_result.cf_basis_indices

        kb = cluster_result.kb_coefficients
        mhdis = cluster_result.mhdis
        mh = cluster_result.mh
        matrices, weights = [], []
        for t, row in enumerate(cmat_result.cmat):
            for j in range(len(row)):
                matrices.append(cmat_result.matrix(t, j))
                weights.append(
                    kb[t] * mhdis[t] * mh[t][j] * np.array(cmat_result.wcv[t][j])
                )
        self._cmat = np.vstack(matrices)
        self._weights = np.concatenate(weights).astype(float)

        # correlation function columns are ordered by disordered type
        column_types = [
            t for t, row in enumerate(cf_result.lcf) for _ in range(sum(row))
        ]
        self._enthalpy_weights = np.array(
            [mhdis[t] for t in column_types[: self.ncf]], dtype=float
        )

    @property
    def nxcf(self):
        """Get the number of point correlation functions."""
        return self.tcf - self.ncf

    def _check_cf_values(self, cf_values):
        cf_values = np.asarray(cf_values, dtype=float)
        if cf_values.shape != (self.ncf,):
            raise ConfigurationError(
                f"Expected {self.ncf} non-point correlation functions, got shape "
                f"{cf_values.shape}."
            )
        return cf_values

    def _check_eci(self, eci):
        eci = np.asarray(eci, dtype=float)
        if eci.shape != (self.ncf,):
            raise ConfigurationError(
                f"Expected {self.ncf} ECIs, one per non-point correlation "
                f"function, got shape {eci.shape}."
            )
        return eci

    def full_cf_vector(self, cf_values, composition):
        """Append the point correlation functions of a composition.

        Returns:
            ndarray: all tcf correlation function values
        """
        cf_values = self._check_cf_values(cf_values)
        points = point_correlations(composition, self.num_components)
        fixed = [
            points[indices[0] - 1] for indices in self.cf_basis_indices[self.ncf :]
        ]
        return np.concatenate([cf_values, fixed])

    def random_cf_values(self, composition):
        """Get the non-point correlation functions of the random state."""
        points = point_correlations(composition, self.num_components)
        return np.array(
            [
                np.prod([points[a - 1] for a in indices])
                for indices in self.cf_basis_indices[: self.ncf]
            ]
        )

    def cluster_variables(self, cf_values, composition):
        """Compute the stacked cluster variables of all classified clusters."""
        return self._cmat @ np.append(self.full_cf_vector(cf_values, composition), 1.0)

    def evaluate(self, cf_values, composition, temperature, eci):
        """Evaluate the free energy, its gradient and Hessian.

        Args:
            cf_values (ArrayLike):
                non-point correlation function values.
            composition (ArrayLike):
                fraction of each species.
            temperature (float):
                temperature, in the units of the ECIs.
            eci (ArrayLike):
                effective cluster interaction of each non-point correlation
                function.

        Returns:
            FreeEnergyEvaluation
        """
        cf_values = self._check_cf_values(cf_values)
        eci = self._check_eci(eci)
        values, first, second = entropy_terms(
            self.cluster_variables(cf_values, composition)
        )
        cmat = self._cmat[:, : self.ncf]
        entropy = -np.dot(self._weights, values)
        entropy_gradient = -cmat.T @ (self._weights * first)
        entropy_hessian = -(cmat.T * (self._weights * second)) @ cmat

        enthalpy_gradient = self._enthalpy_weights * eci
        enthalpy = np.dot(enthalpy_gradient, cf_values)
        return FreeEnergyEvaluation(
            gibbs_energy=float(enthalpy - temperature * entropy),
            enthalpy=float(enthalpy),
            entropy=float(entropy),
            gradient=(enthalpy_gradient - temperature * entropy_gradient).tolist(),
            hessian=(-temperature * entropy_hessian).tolist(),
        )

    def _max_step(self, cf_values, delta, composition, step):
        """Get the largest step fraction keeping positive cluster variables so."""
        cv = self.cluster_variables(cf_values, composition)
        dcv = self._cmat[:, : self.ncf] @ delta
        shrinking = (cv > CV_MIN) & (dcv < 0)
        if not np.any(shrinking):
            return step
        limit = np.min((cv[shrinking] - CV_MIN) / -dcv[shrinking])
        return max(min(step, limit), STEP_FLOOR)

    def minimize(
        self,
        composition,
        temperature,
        eci,
        initial_cf_values=None,
        max_iter=200,
        tol=1e-10,
        step=0.99,
    ):
        """Minimize the free energy with damped Newton-Raphson iterations.

        Args:
            composition (ArrayLike):
                fraction of each species.
            temperature (float):
                temperature, in the units of the ECIs.
            eci (ArrayLike):
                effective cluster interaction of each non-point correlation
                function.
            initial_cf_values (ArrayLike): optional
                starting point, the random state if not given.
            max_iter (int): optional
                maximum number of iterations.
            tol (float): optional
                convergence tolerance on the gradient norm.
            step (float): optional
                damping factor of the Newton step, in (0, 1].

        Returns:
            CVMSolverResult
        """
        if temperature <= 0:
            raise ConfigurationError(
                f"Temperature must be positive, got {temperature}."
            )
        if not 0 < step <= 1:
            raise ConfigurationError(f"Step must be in (0, 1], got {step}.")

        cf_values = (
            self.random_cf_values(composition)
            if initial_cf_values is None
            else self._check_cf_values(initial_cf_values).copy()
        )
        iteration = 0
        while True:
            evaluation = self.evaluate(cf_values, composition, temperature, eci)
            gradient = np.array(evaluation.gradient)
            gradient_norm = float(np.linalg.norm(gradient))
            logging.debug(
                f"Iteration {iteration}: G={evaluation.gibbs_energy:.10g}, "
                f"|dG/du|={gradient_norm:.3e}"
            )
            if gradient_norm < tol:
                logging.info(f"Free energy minimized in {iteration} iterations.")
                return self._result(
                    cf_values, evaluation, iteration, gradient_norm, True
                )
            if iteration == max_iter:
                warnings.warn(
                    f"Free energy minimization did not converge in {max_iter} "
                    f"iterations, gradient norm is {gradient_norm:.3e}.",
                    RuntimeWarning,
                )
                return self._result(
                    cf_values, evaluation, iteration, gradient_norm, False
                )
            try:
                delta = np.linalg.solve(np.array(evaluation.hessian), -gradient)
            except np.linalg.LinAlgError:
                warnings.warn(
                    f"Singular free energy Hessian at iteration {iteration}.",
                    RuntimeWarning,
                )
                return self._result(
                    cf_values, evaluation, iteration, gradient_norm, False
                )
            alpha = self._max_step(cf_values, delta, composition, step)
            cf_values = cf_values + alpha * delta
            iteration += 1

    @staticmethod
    def _result(cf_values, evaluation, iterations, gradient_norm, converged):
        return CVMSolverResult(
            cf_values=cf_values.tolist(),
            gibbs_energy=evaluation.gibbs_energy,
            enthalpy=evaluation.enthalpy,
            entropy=evaluation.entropy,
            iterations=iterations,
            gradient_norm=gradient_norm,
            converged=converged,
        )


def minimize_free_energy(
    cluster_result, cf_result, cmat_result, composition, temperature, eci, **kwargs
):
    """Minimize the CVM free energy of an identified phase.

    Args:
        cluster_result (ClusterIdentificationResult):
            cluster identification result.
        cf_result (CFIdentificationResult):
            correlation function identification result.
        cmat_result (CMatrixResult):
            C-matrices of the identified phase.
        composition (ArrayLike):
            fraction of each species.
        temperature (float):
            temperature, in the units of the ECIs.
        eci (ArrayLike):
            effective cluster interaction of each non-point correlation
            function.
        **kwargs:
            keyword arguments passed to CVMFreeEnergy.minimize.

    Returns:
        CVMSolverResult
    """
    free_energy = CVMFreeEnergy(cluster_result, cf_result, cmat_result)
    return free_energy.minimize(composition, temperature, eci, **kwargs)
