"""Containers for the response and the row/column design matrices."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from ._validation import _as_2d_float


def add_intercept(A: np.ndarray) -> np.ndarray:
    """Return ``A`` with a leading column of ones."""
    A = np.asarray(A, dtype=np.float64)
    return np.hstack([np.ones((A.shape[0], 1)), A])


def remove_intercept(A: np.ndarray) -> np.ndarray:
    """Return ``A`` without its leading (intercept) column."""
    return np.array(A[:, 1:], dtype=np.float64)


def _has_ones_column(A: np.ndarray) -> bool:
    return A.shape[1] > 0 and bool(np.all(A[:, 0] == 1.0))


@dataclass
class Response:
    """Multivariate response ``Y`` (n×m)."""

    Y: Any

    def __post_init__(self) -> None:
        self.Y = _as_2d_float(self.Y, name="Y")


@dataclass
class Predictors:
    """Row covariates ``X`` (n×p) and column covariates ``Z`` (m×q).

    The intercept flags record whether the first column of ``X``/``Z`` is a
    column of ones. They are mutable: fitting and prediction add or drop the
    intercept column in place to match the requested model.
    """

    X: Any
    Z: Any
    x_intercept: bool = False
    z_intercept: bool = False

    def __post_init__(self) -> None:
        self.X = _as_2d_float(self.X, name="X")
        self.Z = _as_2d_float(self.Z, name="Z")
        self.x_intercept = bool(self.x_intercept)
        self.z_intercept = bool(self.z_intercept)
        if self.x_intercept and not _has_ones_column(self.X):
            raise ValueError(
                "x_intercept is set but the first column of X is not all ones. "
                "Pass x_intercept=False and let the fit add the intercept."
            )
        if self.z_intercept and not _has_ones_column(self.Z):
            raise ValueError(
                "z_intercept is set but the first column of Z is not all ones. "
                "Pass z_intercept=False and let the fit add the intercept."
            )

    def set_x_intercept(self, include: bool) -> bool:
        """Add or drop the X intercept column. Returns ``True`` if X changed."""
        if include and not self.x_intercept:
            self.X = add_intercept(self.X)
        elif not include and self.x_intercept:
            self.X = remove_intercept(self.X)
        else:
            return False
        self.x_intercept = bool(include)
        return True

    def set_z_intercept(self, include: bool) -> bool:
        """Add or drop the Z intercept column. Returns ``True`` if Z changed."""
        if include and not self.z_intercept:
            self.Z = add_intercept(self.Z)
        elif not include and self.z_intercept:
            self.Z = remove_intercept(self.Z)
        else:
            return False
        self.z_intercept = bool(include)
        return True


class RawData:
    """Response and predictors for a bilinear model ``Y ≈ X B Zᵗ``."""

    def __init__(self, response: Response, predictors: Predictors) -> None:
        if not isinstance(response, Response):
            response = Response(response)
        n, m = response.Y.shape
        if predictors.X.shape[0] != n:
            raise ValueError(
                f"X has {predictors.X.shape[0]} rows but Y has {n}. "
                f"X must have one row per row of Y."
            )
        if predictors.Z.shape[0] != m:
            raise ValueError(
                f"Z has {predictors.Z.shape[0]} rows but Y has {m} columns. "
                f"Z must have one row per column of Y."
            )
        self.response = response
        self.predictors = predictors

    @property
    def n(self) -> int:
        return self.response.Y.shape[0]

    @property
    def m(self) -> int:
        return self.response.Y.shape[1]

    @property
    def p(self) -> int:
        return self.predictors.X.shape[1]

    @property
    def q(self) -> int:
        return self.predictors.Z.shape[1]

    @property
    def X(self) -> np.ndarray:
        return self.predictors.X

    @property
    def Y(self) -> np.ndarray:
        return self.response.Y

    @property
    def Z(self) -> np.ndarray:
        return self.predictors.Z

    def subset(self, rows: Any, cols: Any) -> RawData:
        """Independent copy restricted to ``rows`` of Y/X and ``cols`` of Y/Z."""
        rows = np.asarray(rows, dtype=np.int64)
        cols = np.asarray(cols, dtype=np.int64)
        return RawData(
            Response(self.Y[np.ix_(rows, cols)]),
            Predictors(
                self.X[rows, :],
                self.Z[cols, :],
                self.predictors.x_intercept,
                self.predictors.z_intercept,
            ),
        )

    def copy(self) -> RawData:
        return self.subset(np.arange(self.n), np.arange(self.m))

    def __repr__(self) -> str:
        return (
            f"RawData(n={self.n}, m={self.m}, p={self.p}, q={self.q}, "
            f"x_intercept={self.predictors.x_intercept}, "
            f"z_intercept={self.predictors.z_intercept})"
        )
