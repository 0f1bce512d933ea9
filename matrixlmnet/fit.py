"""
Fit orchestration for L1-penalized bilinear regression.

:func:`mlmnet` reconciles intercepts, builds the regularization mask,
standardizes the designs, calibrates a step size for fixed-step gradient
solvers, runs the warm-started path and maps the coefficients back to the
scale of the original predictors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from scipy.linalg import eigvalsh

from ._validation import _validate_reg_flags
from .data import RawData
from .ops import coef_norms
from .path import mlmnet_pathwise
from .solvers import Solver, SolverKind, resolve_solver
from .standardize import backtransform, standardize as standardize_columns

logger = logging.getLogger(__name__)


@dataclass
class Mlmnet:
    """
    Result of a penalty path fit.

    Attributes
    ----------
    B : (L × p × q) array
        Read-only coefficient tensor on the scale of the original predictors.
        ``B[i]`` belongs to ``lambdas[i]``.
    lambdas : (L,) array
        De-duplicated penalties in descending order.
    data : RawData
        The data the path was fit on, with intercept columns reconciled to
        the fitted model.
    reg : (p × q) bool array
        Mask of penalized coefficients.
    """

    B: np.ndarray
    lambdas: np.ndarray
    data: RawData
    reg: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        self._freeze()

    def __setstate__(self, state: dict[str, Any]) -> None:
        # Unpickled arrays come back writeable.
        self.__dict__.update(state)
        self._freeze()

    def _freeze(self) -> None:
        self.B.flags.writeable = False
        self.lambdas.flags.writeable = False
        self.reg.flags.writeable = False

    @property
    def x_intercept(self) -> bool:
        return self.data.predictors.x_intercept

    @property
    def z_intercept(self) -> bool:
        return self.data.predictors.z_intercept


def reg_mask(x_reg: Any, z_reg: Any) -> np.ndarray:
    """Outer product of per-column regularization flags (p × q bool)."""
    x_reg = np.asarray(x_reg, dtype=bool).ravel()
    z_reg = np.asarray(z_reg, dtype=bool).ravel()
    return np.outer(x_reg, z_reg)


def _extreme_eigs(A: np.ndarray) -> tuple[float, float]:
    k = A.shape[0]
    lo = eigvalsh(A, subset_by_index=[0, 0])[0]
    hi = eigvalsh(A, subset_by_index=[k - 1, k - 1])[0]
    return float(lo), float(hi)


def calc_stepsize(
    X: np.ndarray,
    Z: np.ndarray,
    *,
    standardized: bool = False,
    rng: np.random.Generator | int | None = None,
) -> float:
    """
    Fixed step size for proximal gradient solvers.

    The reciprocal of ``max(λmax(XᵗX) λmax(ZᵗZ), λmin(XᵗX) λmin(ZᵗZ))``,
    comparing the two products by magnitude. On standardized designs each
    Gram matrix gets ``diag(1 + ε)`` added before each eigenvalue extraction,
    with ``ε ~ N(0, 1e-6)`` drawn from ``rng``, to move it away from the
    singular case that standardization can produce.

    The choice between the two eigenvalue products is a heuristic and is not
    proven safe for indefinite spectra.
    """
    XtX = X.T @ X
    ZtZ = Z.T @ Z

    if standardized:
        rng = np.random.default_rng(rng)

        def jitter(A: np.ndarray) -> np.ndarray:
            return A + np.diag(1.0 + rng.standard_normal(A.shape[0]) / 1000)

        x_max = _extreme_eigs(jitter(XtX))[1]
        z_max = _extreme_eigs(jitter(ZtZ))[1]
        x_min = _extreme_eigs(jitter(XtX))[0]
        z_min = _extreme_eigs(jitter(ZtZ))[0]
    else:
        x_min, x_max = _extreme_eigs(XtX)
        z_min, z_max = _extreme_eigs(ZtZ)

    top = x_max * z_max
    bottom = x_min * z_min
    return 1.0 / (top if abs(top) >= abs(bottom) else bottom)


def _reconcile_intercept(
    data: RawData, axis: str, include: bool, flags: np.ndarray, intercept_reg: bool
) -> np.ndarray:
    predictors = data.predictors
    present = predictors.x_intercept if axis == "x" else predictors.z_intercept
    setter = predictors.set_x_intercept if axis == "x" else predictors.set_z_intercept

    if include and not present:
        setter(True)
        return np.concatenate([[intercept_reg], flags])
    if not include and present:
        setter(False)
        return flags[1:]
    if include and present:
        flags[0] = intercept_reg
    return flags


def mlmnet(
    solver: Solver | SolverKind | str,
    data: RawData,
    lambdas: Any,
    *,
    x_intercept: bool = True,
    z_intercept: bool = True,
    x_reg: Any = None,
    z_reg: Any = None,
    x_intercept_reg: bool = False,
    z_intercept_reg: bool = False,
    standardize: bool = True,
    verbose: bool = True,
    set_stepsize: bool = True,
    rng: np.random.Generator | int | None = None,
) -> Mlmnet:
    """
    Fit an L1-penalized bilinear model ``Y ≈ X B Zᵗ`` along a lambda path.

    Parameters
    ----------
    solver : Solver, SolverKind or str
        Penalty solver; names such as ``"cd"`` or ``"admm"`` build the
        default configuration.
    data : RawData
        Response and predictors. The intercept columns of
        ``data.predictors`` are added or removed in place to match
        ``x_intercept`` / ``z_intercept``.
    lambdas : sequence of float
        Non-negative penalties. Duplicates are dropped and the rest sorted
        into descending order.
    x_intercept, z_intercept : bool
        Whether the model includes an intercept column in X / Z.
    x_reg, z_reg : sequence of bool, optional
        One flag per column of the current X / Z (before intercept
        reconciliation) saying whether its coefficients are penalized.
        Default: all penalized.
    x_intercept_reg, z_intercept_reg : bool
        Whether the intercept row / column of ``B`` is penalized.
    standardize : bool
        Center and scale the non-intercept columns of private copies of X and
        Z before fitting; coefficients are backtransformed afterwards.
    verbose : bool
        Emit informational notices through the ``matrixlmnet`` logger.
    set_stepsize : bool
        For ISTA/FISTA, replace the configured step size by one computed from
        the spectra of XᵗX and ZᵗZ.
    rng : Generator, int or None
        Source of the diagonal perturbation used in the step-size calculation
        on standardized designs.

    Returns
    -------
    Mlmnet
        Coefficient tensor, lambdas and the (reconciled) data.

    Raises
    ------
    ConfigurationError
        If ``x_reg`` or ``z_reg`` do not have one flag per column.
    """
    solver = resolve_solver(solver)

    x_flags = _validate_reg_flags(x_reg, data.p, name="x_reg")
    z_flags = _validate_reg_flags(z_reg, data.q, name="z_reg")

    x_flags = _reconcile_intercept(data, "x", x_intercept, x_flags, x_intercept_reg)
    z_flags = _reconcile_intercept(data, "z", z_intercept, z_flags, z_intercept_reg)

    reg = reg_mask(x_flags, z_flags)
    reg_x_idx = np.flatnonzero(x_flags)
    reg_z_idx = np.flatnonzero(z_flags)

    if standardize:
        X = data.X.copy()
        Z = data.Z.copy()
        means_x, scales_x = standardize_columns(X, x_intercept, verbose=verbose)
        means_z, scales_z = standardize_columns(Z, z_intercept, verbose=verbose)
        norms = None
    else:
        X = data.X
        Z = data.Z
        norms = coef_norms(X, Z)

    if solver.kind.fixed_stepsize and set_stepsize:
        stepsize = calc_stepsize(X, Z, standardized=standardize, rng=rng)
        solver = solver.with_config(stepsize=stepsize)
        if verbose:
            logger.info("Fixed step size set to %g", stepsize)

    coeffs, lambdas = mlmnet_pathwise(
        solver, X, data.Y, Z, lambdas, reg_x_idx, reg_z_idx, reg, norms,
        verbose=verbose,
    )

    if standardize:
        backtransform(
            coeffs, means_x, means_z, scales_x, scales_z,
            x_intercept=x_intercept, z_intercept=z_intercept,
        )

    return Mlmnet(B=coeffs, lambdas=lambdas, data=data, reg=reg)
