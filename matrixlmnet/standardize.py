"""Column standardization of the design matrices and its inverse on coefficients.

Penalizing ``|B[j, k]|`` only makes sense when the columns of ``X`` and ``Z``
live on comparable scales. The fit therefore standardizes private copies of
both matrices, runs the path on the standardized problem, and maps the
coefficient tensor back to the scale of the original predictors.
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

# Columns whose standard deviation falls below this (relative to the column
# mean) are centered but left unscaled.
_SCALE_FLOOR = 1e-12


def _degenerate(means: np.ndarray, scales: np.ndarray) -> np.ndarray:
    return ~(scales > _SCALE_FLOOR * np.maximum(1.0, np.abs(means)))


def _safe_scales(means: np.ndarray, scales: np.ndarray) -> np.ndarray:
    """Scales actually applied to the columns (1 for degenerate columns)."""
    return np.where(_degenerate(means, scales), 1.0, scales)


def standardize(
    A: np.ndarray, intercept: bool, *, verbose: bool = False
) -> tuple[np.ndarray, np.ndarray]:
    """
    Center and scale the non-intercept columns of ``A`` in place.

    Each column other than the intercept is shifted to mean 0 and divided by
    its sample standard deviation (``ddof=1``).

    Parameters
    ----------
    A : (n × p) float array
        Matrix to standardize; modified in place.
    intercept : bool
        Whether column 0 is an intercept. It is left untouched and reported
        with mean 0 and scale 1.
    verbose : bool
        Log a notice for zero-variance columns.

    Returns
    -------
    means, scales : (p,) arrays
        Original column means and standard deviations. A zero-variance column
        is centered but not divided; its scale is still reported as computed
        so callers can detect it.
    """
    p = A.shape[1]
    means = np.zeros(p)
    scales = np.ones(p)
    cols = slice(1, None) if intercept else slice(None)

    if A.shape[0] > 1:
        means[cols] = np.mean(A[:, cols], axis=0)
        scales[cols] = np.std(A[:, cols], axis=0, ddof=1)
    else:
        means[cols] = A[0, cols]
        scales[cols] = 0.0

    bad = _degenerate(means, scales)
    if intercept:
        bad[0] = False
    if verbose and np.any(bad):
        logger.info(
            "Columns %s have zero variance; centering them without scaling.",
            np.flatnonzero(bad).tolist(),
        )

    A[:, cols] = (A[:, cols] - means[cols]) / _safe_scales(means, scales)[cols]
    return means, scales


def backtransform(
    coeffs: np.ndarray,
    means_x: np.ndarray,
    means_z: np.ndarray,
    scales_x: np.ndarray,
    scales_z: np.ndarray,
    *,
    x_intercept: bool,
    z_intercept: bool,
) -> np.ndarray:
    """
    Map a coefficient tensor fit on standardized predictors back to raw scale.

    With both intercepts present the standardized designs satisfy
    ``X_s = X A_x`` and ``Z_s = Z A_z`` where ``A = diag(1/s) - e_0 (mean/s)ᵗ``,
    so ``X_s B_s Z_sᵗ = X (A_x B_s A_zᵗ) Zᵗ`` and the raw coefficients are
    ``A_x B_s A_zᵗ``: the interactions are rescaled and the intercept row and
    column absorb the centering.

    Without both intercepts the centering cannot be absorbed; coefficients are
    only divided by the column scales.

    Parameters
    ----------
    coeffs : (L × p × q) array
        Coefficients for each lambda; modified in place.
    means_x, scales_x : (p,) arrays
        Output of :func:`standardize` for ``X``.
    means_z, scales_z : (q,) arrays
        Output of :func:`standardize` for ``Z``.
    x_intercept, z_intercept : bool
        Whether column 0 of ``X`` / ``Z`` is an intercept.

    Returns
    -------
    np.ndarray
        ``coeffs``, transformed.
    """
    sx = _safe_scales(means_x, scales_x)
    sz = _safe_scales(means_z, scales_z)

    if x_intercept and z_intercept:
        Ax = np.diag(1.0 / sx)
        Ax[0, :] -= means_x / sx
        Az = np.diag(1.0 / sz)
        Az[0, :] -= means_z / sz
        coeffs[...] = Ax @ coeffs @ Az.T
    else:
        coeffs /= np.outer(sx, sz)[None, :, :]
    return coeffs
