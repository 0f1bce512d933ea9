"""Input validation and sanitization helpers for matrixlmnet.

This module provides standardized validation functions so that the fit,
path and cross-validation entry points report problems consistently and
before any computation begins.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np


class ConfigurationError(ValueError):
    """Raised when caller-supplied options are mutually inconsistent."""


def _as_2d_float(A: Any, *, name: str = "A") -> np.ndarray:
    """Validate and convert an array-like to a 2D float64 ``numpy.ndarray``.

    Parameters
    ----------
    A : array-like
        Matrix, ``pandas`` object, or 1D vector (treated as a single column).
    name : str, optional
        Variable name for error messages.

    Returns
    -------
    np.ndarray
        A new 2D float64 array.

    Raises
    ------
    ValueError
        If ``A`` is not numeric or has more than two dimensions.
    """
    if hasattr(A, "to_numpy"):
        A = A.to_numpy()
    try:
        arr = np.array(A, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} cannot be converted to numeric array: {e}") from e

    if arr.ndim == 1:
        arr = arr[:, None]
    elif arr.ndim != 2:
        raise ValueError(
            f"{name} must be 1D or 2D, got {arr.ndim}D with shape {arr.shape}. "
            f"Try {name}.reshape({arr.shape[0]}, -1) to flatten to 2D."
        )
    return arr


def _validate_reg_flags(flags: Any, width: int, *, name: str) -> np.ndarray:
    """Validate a per-column regularization flag vector.

    Parameters
    ----------
    flags : array-like of bool or None
        One flag per covariate column. ``None`` means "regularize all".
    width : int
        Number of covariate columns the flags must describe.
    name : str
        Parameter name for error messages.

    Returns
    -------
    np.ndarray
        Boolean vector of length ``width`` (always a fresh copy).

    Raises
    ------
    ConfigurationError
        If the number of flags differs from ``width``.
    """
    if flags is None:
        return np.ones(width, dtype=bool)

    arr = np.array(flags, dtype=bool).ravel()
    if arr.size != width:
        raise ConfigurationError(
            f"{name} has {arr.size} flags but the covariate matrix has {width} columns. "
            f"Provide one flag per column of the current design."
        )
    return arr


def _validate_lambdas(lambdas: Any) -> np.ndarray:
    """Validate a lambda sequence without reordering it.

    Raises
    ------
    ValueError
        If the sequence is empty, not 1D, or holds negative or non-finite values.
    """
    try:
        lam = np.array(lambdas, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValueError(f"lambdas cannot be converted to numeric array: {e}") from e

    lam = np.atleast_1d(lam)
    if lam.ndim != 1 or lam.size == 0:
        raise ValueError(
            f"lambdas must be a non-empty 1D sequence, got shape {lam.shape}."
        )
    if not np.all(np.isfinite(lam)):
        raise ValueError("lambdas must be finite.")
    if np.any(lam < 0):
        raise ValueError(
            f"lambdas must be non-negative, got min {lam.min()}. "
            f"Try np.logspace(-3, 1, 20) for a typical path."
        )
    return lam


def _validate_fold_pairing(
    row_folds: Sequence[Any], col_folds: Sequence[Any]
) -> int:
    """Check that row and column folds are paired and return the fold count."""
    n_folds = len(row_folds)
    if n_folds != len(col_folds):
        raise ConfigurationError(
            f"Number of row folds ({n_folds}) must equal number of column folds "
            f"({len(col_folds)}). Folds are paired, not crossed."
        )
    if n_folds == 0:
        raise ConfigurationError("At least one fold is required.")
    return n_folds


def _validate_fold_indices(folds: Sequence[Any], size: int, *, name: str) -> list[np.ndarray]:
    """Convert folds to integer index arrays and check their bounds."""
    validated = []
    for i, fold in enumerate(folds):
        idx = np.asarray(fold, dtype=np.int64).ravel()
        if idx.size == 0:
            raise ValueError(f"{name}[{i}] is empty.")
        if idx.min() < 0 or idx.max() >= size:
            raise ValueError(
                f"{name}[{i}] holds indices outside [0, {size}). "
                f"Fold indices are zero-based."
            )
        validated.append(idx)
    return validated


def _validate_dig(dig: Any) -> int:
    if not isinstance(dig, (int, np.integer)) or dig < 0:
        raise ValueError(f"dig must be a non-negative integer, got {dig!r}.")
    return int(dig)
