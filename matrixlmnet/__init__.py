import logging

from ._validation import ConfigurationError
from .api import MLMNet
from .cv import MlmnetCV, calc_mse, calc_prop_zero, mlmnet_cv
from .data import Predictors, RawData, Response, add_intercept, remove_intercept
from .fit import Mlmnet, calc_stepsize, mlmnet, reg_mask
from .folds import make_folds
from .metrics import mse, prop_zero
from .ops import calc_preds, calc_resid, soft_threshold
from .path import mlmnet_pathwise, prepare_lambdas, spectral_decomposition
from .predict import coef, coef_2d, fitted, predict, resid
from .sim import simulate_bilinear
from .solvers import (
    ADMMConfig,
    CDConfig,
    FISTABacktrackingConfig,
    FISTAConfig,
    ISTAConfig,
    Solver,
    SolverKind,
    get_solver,
)
from .standardize import backtransform, standardize

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ADMMConfig",
    "CDConfig",
    "ConfigurationError",
    "FISTABacktrackingConfig",
    "FISTAConfig",
    "ISTAConfig",
    "MLMNet",
    "Mlmnet",
    "MlmnetCV",
    "Predictors",
    "RawData",
    "Response",
    "Solver",
    "SolverKind",
    "add_intercept",
    "backtransform",
    "calc_mse",
    "calc_preds",
    "calc_prop_zero",
    "calc_resid",
    "calc_stepsize",
    "coef",
    "coef_2d",
    "fitted",
    "get_solver",
    "make_folds",
    "mlmnet",
    "mlmnet_cv",
    "mlmnet_pathwise",
    "mse",
    "predict",
    "prepare_lambdas",
    "prop_zero",
    "reg_mask",
    "remove_intercept",
    "resid",
    "simulate_bilinear",
    "soft_threshold",
    "spectral_decomposition",
    "standardize",
]
