"""Scikit-learn style estimator for L1-penalized bilinear regression."""

from __future__ import annotations

from typing import Any

import numpy as np

from ._validation import _as_2d_float
from .data import Predictors, RawData, Response
from .fit import mlmnet
from .metrics import mse
from .predict import coef, predict as _predict_path


class MLMNet:
    """
    Estimator wrapping :func:`~matrixlmnet.fit.mlmnet`.

    ``fit(X, Y, Z)`` fits the whole lambda path; ``predict`` and ``score``
    use the smallest lambda unless another one is requested.
    """

    def __init__(
        self,
        *,
        solver: Any = "cd",
        lambdas: Any = (1.0, 0.1, 0.01),
        x_intercept: bool = True,
        z_intercept: bool = True,
        x_reg: Any = None,
        z_reg: Any = None,
        x_intercept_reg: bool = False,
        z_intercept_reg: bool = False,
        standardize: bool = True,
        set_stepsize: bool = True,
        verbose: bool = False,
        random_state: int | None = None,
    ) -> None:
        self.solver = solver
        self.lambdas = lambdas
        self.x_intercept = x_intercept
        self.z_intercept = z_intercept
        self.x_reg = x_reg
        self.z_reg = z_reg
        self.x_intercept_reg = x_intercept_reg
        self.z_intercept_reg = z_intercept_reg
        self.standardize = standardize
        self.set_stepsize = set_stepsize
        self.verbose = verbose
        self.random_state = random_state

    # ------------------------------------------------------------------
    # Scikit-learn estimator protocol
    # ------------------------------------------------------------------
    def get_params(self, deep: bool = True) -> dict[str, Any]:  # noqa: D401 - sklearn API
        return {
            "solver": self.solver,
            "lambdas": self.lambdas,
            "x_intercept": self.x_intercept,
            "z_intercept": self.z_intercept,
            "x_reg": self.x_reg,
            "z_reg": self.z_reg,
            "x_intercept_reg": self.x_intercept_reg,
            "z_intercept_reg": self.z_intercept_reg,
            "standardize": self.standardize,
            "set_stepsize": self.set_stepsize,
            "verbose": self.verbose,
            "random_state": self.random_state,
        }

    def set_params(self, **params: Any) -> MLMNet:  # noqa: D401 - sklearn API
        valid = self.get_params()
        for key, value in params.items():
            if key not in valid:
                raise ValueError(f"Unknown parameter {key!r}")
            setattr(self, key, value)
        return self

    # ------------------------------------------------------------------
    # Fitting / inference
    # ------------------------------------------------------------------
    def fit(self, X: Any, Y: Any, Z: Any = None) -> MLMNet:
        Y_arr = _as_2d_float(Y, name="Y")
        X_arr = _as_2d_float(X, name="X")
        # Without column covariates every column of Y gets its own coefficient.
        Z_arr = np.eye(Y_arr.shape[1]) if Z is None else _as_2d_float(Z, name="Z")

        data = RawData(Response(Y_arr), Predictors(X_arr, Z_arr))
        result = mlmnet(
            self.solver,
            data,
            self.lambdas,
            x_intercept=self.x_intercept,
            z_intercept=self.z_intercept,
            x_reg=self.x_reg,
            z_reg=self.z_reg,
            x_intercept_reg=self.x_intercept_reg,
            z_intercept_reg=self.z_intercept_reg,
            standardize=self.standardize,
            verbose=self.verbose,
            set_stepsize=self.set_stepsize,
            rng=self.random_state,
        )

        self.result_ = result
        self.coef_ = result.B
        self.lambdas_ = result.lambdas
        self.n_features_in_ = (X_arr.shape[1], Z_arr.shape[1])
        self.n_targets_ = Y_arr.shape[1]
        self._Z_fit = Z_arr
        self.is_fitted_ = True
        return self

    def _ensure_fitted(self) -> None:
        if not getattr(self, "is_fitted_", False):
            raise RuntimeError("The estimator has not been fitted yet")

    def _default_lambda(self, lam: float | None) -> float:
        return float(self.lambdas_[-1]) if lam is None else lam

    def coef(self, lam: float | None = None) -> np.ndarray:
        """Coefficient matrix at ``lam`` (default: the smallest fitted lambda)."""
        self._ensure_fitted()
        return coef(self.result_, self._default_lambda(lam))

    def predict(self, X: Any, Z: Any = None, lam: float | None = None) -> np.ndarray:
        self._ensure_fitted()
        X_arr = _as_2d_float(X, name="X")
        Z_arr = self._Z_fit if Z is None else _as_2d_float(Z, name="Z")
        p, q = self.n_features_in_
        if X_arr.shape[1] != p:
            raise ValueError(f"X has {X_arr.shape[1]} columns but expected {p}")
        if Z_arr.shape[1] != q:
            raise ValueError(f"Z has {Z_arr.shape[1]} columns but expected {q}")
        return _predict_path(
            self.result_,
            self._default_lambda(lam),
            Predictors(X_arr, Z_arr.copy()),
            verbose=False,
        )

    def score(self, X: Any, Y: Any, Z: Any = None, lam: float | None = None) -> float:
        """Negative mean squared error of the predictions (higher is better)."""
        self._ensure_fitted()
        Y_arr = _as_2d_float(Y, name="Y")
        preds = self.predict(X, Z, lam)
        if preds.shape != Y_arr.shape:
            raise ValueError("Predictions and Y have incompatible shapes")
        return -mse(Y_arr, preds)
