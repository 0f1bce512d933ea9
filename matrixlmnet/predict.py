"""Accessors on a fitted :class:`~matrixlmnet.fit.Mlmnet` path."""

from __future__ import annotations

import logging

import numpy as np

from .data import Predictors, RawData
from .fit import Mlmnet
from .ops import calc_preds, calc_resid

logger = logging.getLogger(__name__)

_LAMBDA_RTOL = float(np.sqrt(np.finfo(float).eps))


def coef(fit: Mlmnet, lam: float | None = None) -> np.ndarray:
    """
    Coefficients of a fitted path.

    Parameters
    ----------
    fit : Mlmnet
        Fitted path.
    lam : float, optional
        Penalty to extract. Matched against ``fit.lambdas`` with
        a relative tolerance of sqrt(machine epsilon) and no absolute
        tolerance, so tiny and zero penalties stay distinct; the first match
        wins.

    Returns
    -------
    np.ndarray
        The (L × p × q) tensor when ``lam`` is None, else the (p × q) slice.

    Raises
    ------
    ValueError
        If ``lam`` was not part of the fitted path.
    """
    if lam is None:
        return fit.B
    idx = np.flatnonzero(np.isclose(fit.lambdas, lam, rtol=_LAMBDA_RTOL, atol=0.0))
    if idx.size == 0:
        raise ValueError(
            f"lambda={lam!r} was not used in this fit. "
            f"Available lambdas: {fit.lambdas.tolist()}"
        )
    return fit.B[idx[0]]


def coef_2d(fit: Mlmnet) -> np.ndarray:
    """(p·q × L) matrix whose column i is ``coef(fit)[i]`` flattened row-major."""
    return fit.B.reshape(fit.B.shape[0], -1).T.copy()


def _reconcile(fit: Mlmnet, predictors: Predictors, label: str, verbose: bool) -> None:
    want_x, want_z = fit.x_intercept, fit.z_intercept
    if predictors.set_x_intercept(want_x) and verbose:
        verb = "Adding X intercept to" if want_x else "Removing X intercept from"
        logger.info("%s %s.", verb, label)
    if predictors.set_z_intercept(want_z) and verbose:
        verb = "Adding Z intercept to" if want_z else "Removing Z intercept from"
        logger.info("%s %s.", verb, label)


def predict(
    fit: Mlmnet,
    lam: float | None = None,
    new_predictors: Predictors | None = None,
    *,
    verbose: bool = True,
) -> np.ndarray:
    """
    Predictions ``X B Zᵗ`` for new (or the fitted) predictors.

    The intercept columns of ``new_predictors`` are added or removed in place
    to match the fitted model.

    Returns
    -------
    np.ndarray
        (n × m) for a single ``lam``; (L × n × m) over the whole path when
        ``lam`` is None.
    """
    if new_predictors is None:
        new_predictors = fit.data.predictors
    _reconcile(fit, new_predictors, "new_predictors", verbose)

    X, Z = new_predictors.X, new_predictors.Z
    if lam is not None:
        return calc_preds(X, Z, coef(fit, lam))
    return np.stack([calc_preds(X, Z, B) for B in fit.B])


def fitted(fit: Mlmnet, lam: float | None = None) -> np.ndarray:
    """Fitted values on the data the path was fit on."""
    return predict(fit, lam)


def resid(
    fit: Mlmnet,
    lam: float | None = None,
    new_data: RawData | None = None,
    *,
    verbose: bool = True,
) -> np.ndarray:
    """Residuals ``Y - X B Zᵗ``; (L × n × m) when ``lam`` is None."""
    if new_data is None:
        new_data = fit.data
    _reconcile(fit, new_data.predictors, "new_data", verbose)

    X, Y, Z = new_data.X, new_data.Y, new_data.Z
    if lam is not None:
        return calc_resid(X, Y, Z, coef(fit, lam))
    return np.stack([calc_resid(X, Y, Z, B) for B in fit.B])
