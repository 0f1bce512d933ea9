"""
L1-penalized solvers for the bilinear model ``Y ≈ X B Zᵗ``.

Every built-in minimizes, for a single lambda,

    0.5 * ||Y - X B Zᵗ||_F²  +  lambda * sum_{(j, k) in reg} |B[j, k]|

starting from the coefficients it is handed (the warm start). A solver is
wrapped in a :class:`Solver`, which carries its :class:`SolverKind` and a
typed configuration. The kind, not the function name, tells the path driver
whether spectral precomputations are needed (ADMM) and the fit whether a fixed
step size can be calibrated (ISTA, FISTA).

Update functions share the signature

    update(X, Y, Z, lam, B, reg_x_idx, reg_z_idx, reg, norms, *,
           config, verbose, [spectral]) -> B_new

and return the new coefficients. They may reuse the storage of ``B``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

import numpy as np

from .ops import calc_resid, coef_norms, criterion, soft_threshold
from .path import SpectralDecomposition, spectral_decomposition

logger = logging.getLogger(__name__)

SolverUpdate = Callable[..., np.ndarray]


class SolverKind(str, Enum):
    CD = "cd"
    ISTA = "ista"
    FISTA = "fista"
    FISTA_BT = "fista_bt"
    ADMM = "admm"
    CUSTOM = "custom"

    @property
    def requires_spectral(self) -> bool:
        """Whether the solver consumes the eigendecompositions of XᵗX and ZᵗZ."""
        return self is SolverKind.ADMM

    @property
    def fixed_stepsize(self) -> bool:
        """Whether the solver takes a fixed gradient step size."""
        return self in (SolverKind.ISTA, SolverKind.FISTA)


# ----------------------------------------------------------------------
# Configurations
# ----------------------------------------------------------------------
def _check_iteration_params(max_iter: Any, tol: Any) -> None:
    if not isinstance(max_iter, (int, np.integer)) or max_iter < 1:
        raise ValueError(
            f"max_iter must be a positive integer, got {max_iter!r}. "
            f"Try max_iter=10_000."
        )
    if not isinstance(tol, (int, float)) or tol < 0:
        raise ValueError(
            f"tol must be non-negative, got {tol!r}. Try tol=1e-7."
        )


def _check_positive(value: Any, name: str, hint: str) -> None:
    if not isinstance(value, (int, float)) or not value > 0:
        raise ValueError(f"{name} must be positive, got {value!r}. {hint}")


@dataclass(frozen=True)
class CDConfig:
    """Coordinate descent settings.

    ``random`` visits the coordinates in a fresh random order every sweep,
    drawn from a generator seeded with ``seed``.
    """

    max_iter: int = 10_000
    tol: float = 1e-7
    random: bool = False
    seed: int | None = None

    def __post_init__(self) -> None:
        _check_iteration_params(self.max_iter, self.tol)


@dataclass(frozen=True)
class ISTAConfig:
    stepsize: float = 0.01
    max_iter: int = 10_000
    tol: float = 1e-7

    def __post_init__(self) -> None:
        _check_positive(self.stepsize, "stepsize", "Try stepsize=0.01.")
        _check_iteration_params(self.max_iter, self.tol)


@dataclass(frozen=True)
class FISTAConfig(ISTAConfig):
    pass


@dataclass(frozen=True)
class FISTABacktrackingConfig:
    """FISTA with backtracking: the step starts at ``stepsize`` and is
    multiplied by ``gamma`` until the quadratic upper bound holds."""

    stepsize: float = 0.01
    gamma: float = 0.5
    max_iter: int = 10_000
    tol: float = 1e-7

    def __post_init__(self) -> None:
        _check_positive(self.stepsize, "stepsize", "Try stepsize=0.01.")
        if not isinstance(self.gamma, (int, float)) or not 0 < self.gamma < 1:
            raise ValueError(
                f"gamma must lie in (0, 1), got {self.gamma!r}. Try gamma=0.5."
            )
        _check_iteration_params(self.max_iter, self.tol)


@dataclass(frozen=True)
class ADMMConfig:
    """ADMM settings.

    With ``set_rho`` the penalty parameter is rebalanced every iteration:
    multiplied by ``tau_incr`` when the primal residual exceeds ``mu`` times
    the dual residual, divided by ``tau_decr`` in the opposite case.
    """

    rho: float = 1.0
    set_rho: bool = True
    tau_incr: float = 2.0
    tau_decr: float = 2.0
    mu: float = 10.0
    max_iter: int = 10_000
    tol: float = 1e-7

    def __post_init__(self) -> None:
        _check_positive(self.rho, "rho", "Try rho=1.0.")
        for name in ("tau_incr", "tau_decr", "mu"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not value > 1:
                raise ValueError(f"{name} must be greater than 1, got {value!r}.")
        _check_iteration_params(self.max_iter, self.tol)


# ----------------------------------------------------------------------
# Shared numerics
# ----------------------------------------------------------------------
def _converged(old: float, new: float, tol: float) -> bool:
    return abs(old - new) <= tol * abs(old)


def _prox(A: np.ndarray, thresh: float, reg_x_idx: np.ndarray, reg_z_idx: np.ndarray) -> np.ndarray:
    """Soft-threshold the penalized block of ``A`` in place."""
    block = np.ix_(reg_x_idx, reg_z_idx)
    A[block] = soft_threshold(A[block], thresh)
    return A


class _Quadratic:
    """Loss ``0.5 * ||Y - X B Zᵗ||²`` and its gradient ``XᵗX B ZᵗZ - XᵗYZ``."""

    def __init__(self, X: np.ndarray, Y: np.ndarray, Z: np.ndarray) -> None:
        self.X, self.Y, self.Z = X, Y, Z
        self.XtX = X.T @ X
        self.ZtZ = Z.T @ Z
        self.XtYZ = X.T @ Y @ Z

    def loss(self, B: np.ndarray) -> float:
        R = calc_resid(self.X, self.Y, self.Z, B)
        return float(0.5 * np.sum(R * R))

    def grad(self, B: np.ndarray) -> np.ndarray:
        return self.XtX @ B @ self.ZtZ - self.XtYZ


def _penalized(f: _Quadratic, B: np.ndarray, lam: float, reg: np.ndarray) -> float:
    return f.loss(B) + lam * float(np.sum(np.abs(B[reg])))


def _report_cap(name: str, max_iter: int, lam: float, verbose: bool) -> None:
    if verbose:
        logger.info(
            "%s reached max_iter=%d at lambda=%g without converging.", name, max_iter, lam
        )


# ----------------------------------------------------------------------
# Coordinate descent
# ----------------------------------------------------------------------
def cd(
    X: np.ndarray,
    Y: np.ndarray,
    Z: np.ndarray,
    lam: float,
    B: np.ndarray,
    reg_x_idx: np.ndarray,
    reg_z_idx: np.ndarray,
    reg: np.ndarray,
    norms: np.ndarray | None,
    *,
    config: CDConfig | None = None,
    verbose: bool = False,
) -> np.ndarray:
    """
    Cyclic coordinate descent with an active-set strategy.

    After each full sweep over all coefficients, the solver iterates over the
    active set (nonzero or unpenalized coefficients) until the objective
    settles, then returns to a full sweep. It stops when a full sweep no
    longer changes the objective by more than ``tol`` (relative).

    When ``norms`` is ``None`` (standardized inputs), per-coefficient norms
    are taken from the supplied design. Coefficients with zero norm are held
    at zero.
    """
    config = config or CDConfig()
    if norms is None:
        norms = coef_norms(X, Z)
    p, q = B.shape
    rng = np.random.default_rng(config.seed) if config.random else None

    R = calc_resid(X, Y, Z, B)
    crit = criterion(B, R, lam, reg)
    all_coords = np.arange(p * q)

    def sweep(coords: np.ndarray) -> None:
        if rng is not None:
            coords = rng.permutation(coords)
        for c in coords:
            j, k = divmod(int(c), q)
            b_old = B[j, k]
            nrm = norms[j, k]
            if nrm <= 0:
                b_new = 0.0
            else:
                g = X[:, j] @ R @ Z[:, k]
                b = b_old * nrm + g
                b_new = soft_threshold(b, lam) / nrm if reg[j, k] else b / nrm
            if b_new != b_old:
                R[...] -= (b_new - b_old) * np.outer(X[:, j], Z[:, k])
                B[j, k] = b_new

    n_iter = 0
    while n_iter < config.max_iter:
        n_iter += 1
        sweep(all_coords)
        new_crit = criterion(B, R, lam, reg)
        if _converged(crit, new_crit, config.tol):
            break
        crit = new_crit

        active = np.flatnonzero((B != 0) | ~reg)
        while n_iter < config.max_iter and active.size:
            n_iter += 1
            sweep(active)
            new_crit = criterion(B, R, lam, reg)
            done = _converged(crit, new_crit, config.tol)
            crit = new_crit
            if done:
                break
    else:
        _report_cap("cd", config.max_iter, lam, verbose)

    logger.debug("cd: lambda=%g, %d sweeps, criterion=%.6g", lam, n_iter, crit)
    return B


# ----------------------------------------------------------------------
# Proximal gradient
# ----------------------------------------------------------------------
def ista(
    X: np.ndarray,
    Y: np.ndarray,
    Z: np.ndarray,
    lam: float,
    B: np.ndarray,
    reg_x_idx: np.ndarray,
    reg_z_idx: np.ndarray,
    reg: np.ndarray,
    norms: np.ndarray | None,
    *,
    config: ISTAConfig | None = None,
    verbose: bool = False,
) -> np.ndarray:
    """Proximal gradient descent with a fixed step size."""
    config = config or ISTAConfig()
    f = _Quadratic(X, Y, Z)
    step = config.stepsize
    crit = _penalized(f, B, lam, reg)

    for it in range(1, config.max_iter + 1):
        B = _prox(B - step * f.grad(B), step * lam, reg_x_idx, reg_z_idx)
        new_crit = _penalized(f, B, lam, reg)
        done = _converged(crit, new_crit, config.tol)
        crit = new_crit
        if done:
            break
    else:
        _report_cap("ista", config.max_iter, lam, verbose)

    logger.debug("ista: lambda=%g, %d iterations, criterion=%.6g", lam, it, crit)
    return B


def fista(
    X: np.ndarray,
    Y: np.ndarray,
    Z: np.ndarray,
    lam: float,
    B: np.ndarray,
    reg_x_idx: np.ndarray,
    reg_z_idx: np.ndarray,
    reg: np.ndarray,
    norms: np.ndarray | None,
    *,
    config: FISTAConfig | None = None,
    verbose: bool = False,
) -> np.ndarray:
    """Accelerated proximal gradient (FISTA) with a fixed step size."""
    config = config or FISTAConfig()
    f = _Quadratic(X, Y, Z)
    step = config.stepsize
    crit = _penalized(f, B, lam, reg)

    A = B.copy()
    t = 1.0
    for it in range(1, config.max_iter + 1):
        B_new = _prox(A - step * f.grad(A), step * lam, reg_x_idx, reg_z_idx)
        t_new = 0.5 * (1.0 + np.sqrt(1.0 + 4.0 * t * t))
        A = B_new + ((t - 1.0) / t_new) * (B_new - B)
        B, t = B_new, t_new

        new_crit = _penalized(f, B, lam, reg)
        done = _converged(crit, new_crit, config.tol)
        crit = new_crit
        if done:
            break
    else:
        _report_cap("fista", config.max_iter, lam, verbose)

    logger.debug("fista: lambda=%g, %d iterations, criterion=%.6g", lam, it, crit)
    return B


def fista_bt(
    X: np.ndarray,
    Y: np.ndarray,
    Z: np.ndarray,
    lam: float,
    B: np.ndarray,
    reg_x_idx: np.ndarray,
    reg_z_idx: np.ndarray,
    reg: np.ndarray,
    norms: np.ndarray | None,
    *,
    config: FISTABacktrackingConfig | None = None,
    verbose: bool = False,
) -> np.ndarray:
    """FISTA whose step size shrinks by ``gamma`` until sufficient decrease."""
    config = config or FISTABacktrackingConfig()
    f = _Quadratic(X, Y, Z)
    step = config.stepsize
    crit = _penalized(f, B, lam, reg)

    A = B.copy()
    t = 1.0
    for it in range(1, config.max_iter + 1):
        g = f.grad(A)
        fA = f.loss(A)
        # Quadratic upper bound; at most ~1000 halvings before step underflows.
        for _ in range(1000):
            B_new = _prox(A - step * g, step * lam, reg_x_idx, reg_z_idx)
            D = B_new - A
            bound = fA + float(np.sum(g * D)) + float(np.sum(D * D)) / (2.0 * step)
            if f.loss(B_new) <= bound:
                break
            step *= config.gamma

        t_new = 0.5 * (1.0 + np.sqrt(1.0 + 4.0 * t * t))
        A = B_new + ((t - 1.0) / t_new) * (B_new - B)
        B, t = B_new, t_new

        new_crit = _penalized(f, B, lam, reg)
        done = _converged(crit, new_crit, config.tol)
        crit = new_crit
        if done:
            break
    else:
        _report_cap("fista_bt", config.max_iter, lam, verbose)

    logger.debug(
        "fista_bt: lambda=%g, %d iterations, stepsize=%.3g, criterion=%.6g",
        lam, it, step, crit,
    )
    return B


# ----------------------------------------------------------------------
# ADMM
# ----------------------------------------------------------------------
def admm(
    X: np.ndarray,
    Y: np.ndarray,
    Z: np.ndarray,
    lam: float,
    B: np.ndarray,
    reg_x_idx: np.ndarray,
    reg_z_idx: np.ndarray,
    reg: np.ndarray,
    norms: np.ndarray | None,
    *,
    config: ADMMConfig | None = None,
    verbose: bool = False,
    spectral: SpectralDecomposition | None = None,
) -> np.ndarray:
    """
    Scaled-dual ADMM on the splitting ``B = C`` with the L1 penalty on ``C``.

    The B-step solves ``XᵗX B ZᵗZ + rho B = XᵗYZ + rho (C - W)`` in the
    eigenbases of ``XᵗX`` and ``ZᵗZ``:

        B = Qx [(U + rho Qxᵗ (C - W) Qz) / (L + rho)] Qzᵗ

    so each iteration costs a few small matrix products once ``spectral`` is
    known. The returned coefficients are ``C``, which carries exact zeros.
    """
    config = config or ADMMConfig()
    if spectral is None:
        spectral = spectral_decomposition(X, Y, Z)
    Qx, Qz, U, L = spectral.Qx, spectral.Qz, spectral.U, spectral.L

    rho = config.rho
    C = np.array(B, dtype=np.float64)
    W = np.zeros_like(C)
    crit = criterion(C, calc_resid(X, Y, Z, C), lam, reg)

    for it in range(1, config.max_iter + 1):
        B_t = Qx @ ((U + rho * (Qx.T @ (C - W) @ Qz)) / (L + rho)) @ Qz.T

        C_old = C
        C = _prox(B_t + W, lam / rho, reg_x_idx, reg_z_idx)
        W = W + B_t - C

        r_norm = float(np.linalg.norm(B_t - C))
        s_norm = float(rho * np.linalg.norm(C - C_old))

        new_crit = criterion(C, calc_resid(X, Y, Z, C), lam, reg)
        eps = np.sqrt(config.tol)
        residuals_ok = (
            r_norm <= eps * max(1.0, float(np.linalg.norm(C)))
            and s_norm <= eps * max(1.0, rho * float(np.linalg.norm(W)))
        )
        done = _converged(crit, new_crit, config.tol) and residuals_ok
        crit = new_crit
        if done:
            break

        if config.set_rho:
            if r_norm > config.mu * s_norm:
                rho *= config.tau_incr
                W /= config.tau_incr
            elif s_norm > config.mu * r_norm:
                rho /= config.tau_decr
                W *= config.tau_decr
    else:
        _report_cap("admm", config.max_iter, lam, verbose)

    logger.debug(
        "admm: lambda=%g, %d iterations, rho=%.3g, criterion=%.6g", lam, it, rho, crit
    )
    B[...] = C
    return B


# ----------------------------------------------------------------------
# Strategy wrapper
# ----------------------------------------------------------------------
_BUILTINS: dict[SolverKind, tuple[SolverUpdate, type]] = {
    SolverKind.CD: (cd, CDConfig),
    SolverKind.ISTA: (ista, ISTAConfig),
    SolverKind.FISTA: (fista, FISTAConfig),
    SolverKind.FISTA_BT: (fista_bt, FISTABacktrackingConfig),
    SolverKind.ADMM: (admm, ADMMConfig),
}


@dataclass(frozen=True)
class Solver:
    """A penalty solver: its kind, update function and configuration.

    Custom strategies use ``SolverKind.CUSTOM`` (or a built-in kind to opt
    into its capabilities) with any update function following the module
    signature. Extra keyword arguments ``config`` and ``verbose`` are always
    passed; ``spectral`` only for kinds that require it.
    """

    kind: SolverKind
    update: SolverUpdate
    config: Any = None

    @property
    def name(self) -> str:
        if self.kind is SolverKind.CUSTOM:
            return getattr(self.update, "__name__", "custom")
        return self.kind.value

    def with_config(self, **changes: Any) -> Solver:
        """Return a copy whose configuration has ``changes`` applied."""
        if self.config is None:
            raise ValueError(f"Solver {self.name!r} has no configuration to update.")
        return replace(self, config=replace(self.config, **changes))

    def __call__(
        self,
        X: np.ndarray,
        Y: np.ndarray,
        Z: np.ndarray,
        lam: float,
        B: np.ndarray,
        reg_x_idx: np.ndarray,
        reg_z_idx: np.ndarray,
        reg: np.ndarray,
        norms: np.ndarray | None,
        *,
        spectral: SpectralDecomposition | None = None,
        verbose: bool = False,
    ) -> np.ndarray:
        kwargs: dict[str, Any] = {"config": self.config, "verbose": verbose}
        if self.kind.requires_spectral:
            kwargs["spectral"] = spectral
        out = self.update(X, Y, Z, lam, B, reg_x_idx, reg_z_idx, reg, norms, **kwargs)
        if out is None:
            raise TypeError(
                f"Solver {self.name!r} returned None; update functions must "
                f"return the new coefficient matrix."
            )
        return out


def get_solver(kind: SolverKind | str, config: Any = None) -> Solver:
    """
    Build one of the built-in solvers.

    Parameters
    ----------
    kind : SolverKind or str
        ``"cd"``, ``"ista"``, ``"fista"``, ``"fista_bt"`` or ``"admm"``.
    config : optional
        Matching configuration dataclass; defaults are used when omitted.
    """
    try:
        kind = SolverKind(kind)
    except ValueError as e:
        names = [k.value for k in _BUILTINS]
        raise ValueError(f"Unknown solver {kind!r}. Choose from: {names}") from e
    if kind not in _BUILTINS:
        raise ValueError(
            "Custom solvers have no default update; construct "
            "Solver(SolverKind.CUSTOM, update_fn) directly."
        )

    update, config_cls = _BUILTINS[kind]
    if config is None:
        config = config_cls()
    elif type(config) is not config_cls:
        raise ValueError(
            f"Solver {kind.value!r} expects a {config_cls.__name__}, "
            f"got {type(config).__name__}."
        )
    return Solver(kind, update, config)


def resolve_solver(solver: Solver | SolverKind | str) -> Solver:
    """Accept a :class:`Solver`, a kind, or a kind name."""
    if isinstance(solver, Solver):
        return solver
    return get_solver(solver)


__all__ = [
    "ADMMConfig",
    "CDConfig",
    "FISTABacktrackingConfig",
    "FISTAConfig",
    "ISTAConfig",
    "Solver",
    "SolverKind",
    "admm",
    "cd",
    "fista",
    "fista_bt",
    "get_solver",
    "ista",
    "resolve_solver",
]
