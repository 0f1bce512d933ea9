"""
Cross-validation over paired row and column folds.

Fold i of a cross-validation is described by two index sets: the rows and the
columns of ``Y`` it is trained on. The fit for fold i sees only
``Y[rows_i, cols_i]`` with the matching rows of X and Z; it is evaluated on
the held-out block ``Y[~rows_i, ~cols_i]``. When a fold trains on every index
along a dimension, evaluation uses every index along that dimension too.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from joblib import Parallel, delayed

from ._validation import (
    _validate_dig,
    _validate_fold_indices,
    _validate_fold_pairing,
)
from .data import RawData
from .fit import Mlmnet, mlmnet
from .folds import make_folds
from .metrics import mse as _mse, prop_zero as _prop_zero
from .predict import resid
from .solvers import Solver, SolverKind, resolve_solver

logger = logging.getLogger(__name__)


def _held_out(train: np.ndarray, size: int) -> np.ndarray:
    out = np.setdiff1d(np.arange(size), train)
    return out if out.size else np.arange(size)


def calc_mse(
    fits: Sequence[Mlmnet],
    data: RawData,
    row_folds: Sequence[np.ndarray],
    col_folds: Sequence[np.ndarray],
) -> np.ndarray:
    """
    Held-out mean squared error of every fold at every lambda.

    Returns
    -------
    np.ndarray
        (L × n_folds) matrix; entry ``[l, i]`` is the MSE of fold i's fit at
        its l-th lambda on fold i's held-out block.
    """
    n_lambdas = fits[0].lambdas.size
    out = np.empty((n_lambdas, len(fits)))
    for i, fit in enumerate(fits):
        rows = _held_out(row_folds[i], data.n)
        cols = _held_out(col_folds[i], data.m)
        test = data.subset(rows, cols)
        R = resid(fit, None, test, verbose=False)
        for l in range(n_lambdas):
            out[l, i] = _mse(R[l], 0.0)
    return out


def calc_prop_zero(fits: Sequence[Mlmnet], dig: int = 12) -> np.ndarray:
    """(L × n_folds) proportion of penalized coefficients equal to 0 at ``dig`` decimals."""
    dig = _validate_dig(dig)
    n_lambdas = fits[0].lambdas.size
    out = np.empty((n_lambdas, len(fits)))
    for i, fit in enumerate(fits):
        for l in range(n_lambdas):
            out[l, i] = _prop_zero(fit.B[l], fit.reg, dig)
    return out


@dataclass
class MlmnetCV:
    """
    Cross-validation results.

    Attributes
    ----------
    fits : list of Mlmnet
        One fitted path per fold.
    lambdas : (L,) array
        Penalties shared by every fold, in descending order.
    data : RawData
        The full data set.
    row_folds, col_folds : list of np.ndarray
        Training rows / columns of each fold.
    mse : (L × n_folds) array
        Held-out mean squared error.
    prop_zero : (L × n_folds) array
        Proportion of penalized coefficients that are zero.
    """

    fits: list[Mlmnet]
    lambdas: np.ndarray
    data: RawData
    row_folds: list[np.ndarray]
    col_folds: list[np.ndarray]
    dig: int = 12
    mse: np.ndarray = field(init=False)
    prop_zero: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        for fit in self.fits:
            fit._freeze()
        self.mse = calc_mse(self.fits, self.data, self.row_folds, self.col_folds)
        self.prop_zero = calc_prop_zero(self.fits, self.dig)
        self.mse.flags.writeable = False
        self.prop_zero.flags.writeable = False

    @property
    def n_folds(self) -> int:
        return len(self.fits)

    def summary(self) -> dict[str, np.ndarray]:
        """Per-lambda mean and standard deviation of the fold MSEs and mean sparsity."""
        ddof = 1 if self.n_folds > 1 else 0
        return {
            "lambda": np.array(self.lambdas),
            "mse_mean": self.mse.mean(axis=1),
            "mse_std": self.mse.std(axis=1, ddof=ddof),
            "prop_zero_mean": self.prop_zero.mean(axis=1),
        }


def _resolve_folds(
    data: RawData,
    row_folds: int | Sequence[Any],
    col_folds: int | Sequence[Any],
    rng: np.random.Generator,
) -> tuple[list[np.ndarray], list[np.ndarray]]:
    row_count = isinstance(row_folds, (int, np.integer))
    col_count = isinstance(col_folds, (int, np.integer))

    if row_count and col_count:
        target = max(row_folds, col_folds)
        row_folds = make_folds(data.n, row_folds, target, rng)
        col_folds = make_folds(data.m, col_folds, target, rng)
    elif row_count:
        row_folds = make_folds(data.n, row_folds, len(col_folds), rng)
    elif col_count:
        col_folds = make_folds(data.m, col_folds, len(row_folds), rng)

    _validate_fold_pairing(row_folds, col_folds)
    return (
        _validate_fold_indices(row_folds, data.n, name="row_folds"),
        _validate_fold_indices(col_folds, data.m, name="col_folds"),
    )


def mlmnet_cv(
    solver: Solver | SolverKind | str,
    data: RawData,
    lambdas: Any,
    row_folds: int | Sequence[Any] = 10,
    col_folds: int | Sequence[Any] = 10,
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
    dig: int = 12,
    n_jobs: int | None = None,
    rng: np.random.Generator | int | None = None,
) -> MlmnetCV:
    """
    Cross-validate :func:`~matrixlmnet.fit.mlmnet` over paired folds.

    Parameters
    ----------
    solver, data, lambdas
        As for :func:`~matrixlmnet.fit.mlmnet`.
    row_folds, col_folds : int or sequence of index arrays
        Training rows / columns of each fold, or a fold count to generate
        them with :func:`~matrixlmnet.folds.make_folds`. A count of 1 trains
        every fold on every index along that dimension. Explicit sequences
        must have the same length.
    dig : int
        Decimal precision used when counting zero coefficients.
    n_jobs : int, optional
        Number of joblib workers for the per-fold fits. ``None`` runs them
        sequentially unless a joblib parallel context says otherwise.
    rng : Generator, int or None
        Drives fold generation; every fold fit gets an independent child
        generator spawned from it.

    The remaining keyword arguments are passed to every fold's fit.

    Raises
    ------
    ConfigurationError
        If the row and column folds cannot be paired.
    """
    solver = resolve_solver(solver)
    dig = _validate_dig(dig)
    rng = np.random.default_rng(rng)

    row_folds, col_folds = _resolve_folds(data, row_folds, col_folds, rng)
    n_folds = len(row_folds)
    if verbose:
        logger.info("Performing %d-fold cross validation.", n_folds)

    fold_data = [data.subset(r, c) for r, c in zip(row_folds, col_folds)]
    fold_rngs = rng.spawn(n_folds)
    options = dict(
        x_intercept=x_intercept,
        z_intercept=z_intercept,
        x_reg=x_reg,
        z_reg=z_reg,
        x_intercept_reg=x_intercept_reg,
        z_intercept_reg=z_intercept_reg,
        standardize=standardize,
        verbose=verbose,
        set_stepsize=set_stepsize,
    )

    fits = Parallel(n_jobs=n_jobs)(
        delayed(mlmnet)(solver, d, lambdas, rng=r, **options)
        for d, r in zip(fold_data, fold_rngs)
    )

    return MlmnetCV(
        fits=list(fits),
        lambdas=fits[0].lambdas,
        data=data,
        row_folds=row_folds,
        col_folds=col_folds,
        dig=dig,
    )
