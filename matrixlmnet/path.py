"""Warm-started penalty path driver.

:func:`mlmnet_pathwise` runs one solver across a descending lambda sequence,
starting each lambda from the previous solution. It assumes that intercepts
have been added and any standardization performed; :func:`matrixlmnet.fit.mlmnet`
takes care of both and backtransforms the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
from scipy.linalg import eigh

from ._validation import _validate_lambdas

if TYPE_CHECKING:  # pragma: no cover
    from .solvers import Solver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpectralDecomposition:
    """Eigen-factorizations shared by every lambda of an ADMM path.

    Attributes
    ----------
    Qx : (p × p) array
        Eigenvectors of ``XᵗX``.
    Qz : (q × q) array
        Eigenvectors of ``ZᵗZ``.
    U : (p × q) array
        Doubly rotated response ``(X Qx)ᵗ Y (Z Qz)``.
    L : (p × q) array
        Kronecker-combined eigenvalues, ``L[j, k] = Lx[j] * Lz[k]``.
    """

    Qx: np.ndarray
    Qz: np.ndarray
    U: np.ndarray
    L: np.ndarray


def spectral_decomposition(
    X: np.ndarray, Y: np.ndarray, Z: np.ndarray
) -> SpectralDecomposition:
    """Eigendecompose ``XᵗX`` and ``ZᵗZ`` and rotate ``Y`` into their bases."""
    Lx, Qx = eigh(X.T @ X)
    Lz, Qz = eigh(Z.T @ Z)
    U = (X @ Qx).T @ Y @ (Z @ Qz)
    return SpectralDecomposition(Qx=Qx, Qz=Qz, U=U, L=np.outer(Lx, Lz))


def prepare_lambdas(lambdas: Any, *, verbose: bool = True) -> np.ndarray:
    """
    Validate, de-duplicate and sort a lambda sequence into descending order.

    Both corrections are non-fatal and reported as notices when ``verbose``.
    An already unique, descending sequence is returned unchanged (as floats).
    """
    lam = _validate_lambdas(lambdas)
    out = np.ascontiguousarray(np.unique(lam)[::-1])

    if verbose:
        if out.size != lam.size:
            logger.info("Dropping non-unique lambdas.")
        if np.any(lam[:-1] < lam[1:]):
            logger.info("Sorting lambdas into descending order.")
    return out


def mlmnet_pathwise(
    solver: Solver,
    X: np.ndarray,
    Y: np.ndarray,
    Z: np.ndarray,
    lambdas: Any,
    reg_x_idx: np.ndarray,
    reg_z_idx: np.ndarray,
    reg: np.ndarray,
    norms: np.ndarray | None,
    *,
    verbose: bool = True,
    B_init: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Run ``solver`` on a descending list of lambdas using warm starts.

    Parameters
    ----------
    solver : Solver
        Penalty solver strategy (see :mod:`matrixlmnet.solvers`).
    X : (n × p) array
        Row covariates, intercept included if one is used.
    Y : (n × m) array
        Response.
    Z : (m × q) array
        Column covariates, intercept included if one is used.
    lambdas : sequence of float
        Penalties. Duplicates are dropped and the rest sorted descending.
    reg_x_idx, reg_z_idx : int arrays
        Indices of penalized X and Z covariates.
    reg : (p × q) bool array
        Which coefficients to penalize.
    norms : (p × q) array or None
        Per-coefficient norms, or ``None`` when X and Z were standardized.
    verbose : bool
        Emit informational notices.
    B_init : (p × q) array, optional
        Starting coefficients for the first lambda. Defaults to zeros, the
        solution at an infinitely large penalty.

    Returns
    -------
    coeffs : (L × p × q) array
        ``coeffs[i]`` is the estimate for ``lambdas[i]``.
    lambdas : (L,) array
        The de-duplicated, descending lambdas actually used.
    """
    lambdas = prepare_lambdas(lambdas, verbose=verbose)
    p, q = X.shape[1], Z.shape[1]

    coeffs = np.empty((lambdas.size, p, q))
    if B_init is None:
        B = np.zeros((p, q))
    else:
        B = np.array(B_init, dtype=np.float64)
        if B.shape != (p, q):
            raise ValueError(f"B_init must have shape ({p}, {q}), got {B.shape}.")

    spectral = None
    if solver.kind.requires_spectral:
        spectral = spectral_decomposition(X, Y, Z)

    for i, lam in enumerate(lambdas):
        B = solver(
            X, Y, Z, float(lam), B, reg_x_idx, reg_z_idx, reg, norms,
            spectral=spectral, verbose=verbose,
        )
        coeffs[i] = B

    return coeffs, lambdas
