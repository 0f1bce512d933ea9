import logging

import numpy as np
import pytest

import matrixlmnet.path as path_mod
from matrixlmnet import Solver, SolverKind, get_solver
from matrixlmnet.ops import coef_norms
from matrixlmnet.path import mlmnet_pathwise, prepare_lambdas


def _problem(seed=0, n=25, m=18, p=4, q=3):
    rng = np.random.default_rng(seed)
    X = rng.standard_normal((n, p))
    Z = rng.standard_normal((m, q))
    B = rng.standard_normal((p, q)) * (rng.random((p, q)) < 0.5)
    Y = X @ B @ Z.T + 0.5 * rng.standard_normal((n, m))
    reg = np.ones((p, q), dtype=bool)
    return X, Y, Z, np.arange(p), np.arange(q), reg, coef_norms(X, Z)


def test_prepare_lambdas_dedupes_and_sorts(caplog):
    caplog.set_level(logging.INFO, logger="matrixlmnet")
    out = prepare_lambdas([0.1, 1.0, 0.5, 1.0])
    assert np.array_equal(out, [1.0, 0.5, 0.1])
    assert "Dropping non-unique lambdas" in caplog.text
    assert "Sorting lambdas into descending order" in caplog.text


def test_prepare_lambdas_leaves_sorted_unique_input_alone(caplog):
    caplog.set_level(logging.INFO, logger="matrixlmnet")
    lam = [5.0, 3.0, 1.0, 0.0]
    assert np.array_equal(prepare_lambdas(lam), lam)
    assert caplog.text == ""


def test_prepare_lambdas_is_quiet_when_not_verbose(caplog):
    caplog.set_level(logging.INFO, logger="matrixlmnet")
    prepare_lambdas([1.0, 2.0, 2.0], verbose=False)
    assert caplog.text == ""


@pytest.mark.parametrize("bad", [[], [-1.0, 1.0], [np.inf], [[1.0, 2.0]]])
def test_prepare_lambdas_rejects_invalid(bad):
    with pytest.raises(ValueError):
        prepare_lambdas(bad)


def test_path_output_follows_sorted_lambdas():
    X, Y, Z, rx, rz, reg, norms = _problem()
    coeffs, lambdas = mlmnet_pathwise(
        get_solver("cd"), X, Y, Z, [1.0, 50.0, 10.0, 10.0], rx, rz, reg, norms, verbose=False
    )
    assert np.array_equal(lambdas, [50.0, 10.0, 1.0])
    assert coeffs.shape == (3, 4, 3)
    assert np.count_nonzero(coeffs[0]) <= np.count_nonzero(coeffs[2])


def test_warm_start_matches_resumed_path_exactly():
    X, Y, Z, rx, rz, reg, norms = _problem(seed=1)
    solver = get_solver("cd")

    full, _ = mlmnet_pathwise(solver, X, Y, Z, [5.0, 3.0, 1.0], rx, rz, reg, norms, verbose=False)
    head, _ = mlmnet_pathwise(solver, X, Y, Z, [5.0, 3.0], rx, rz, reg, norms, verbose=False)
    tail, _ = mlmnet_pathwise(
        solver, X, Y, Z, [1.0], rx, rz, reg, norms, verbose=False, B_init=head[-1]
    )

    assert np.array_equal(full[:2], head)
    assert np.array_equal(full[2], tail[0])


def test_b_init_shape_is_checked():
    X, Y, Z, rx, rz, reg, norms = _problem()
    with pytest.raises(ValueError, match="B_init"):
        mlmnet_pathwise(
            get_solver("cd"), X, Y, Z, [1.0], rx, rz, reg, norms, B_init=np.zeros((2, 2))
        )


def test_spectral_decomposition_computed_once_for_admm(monkeypatch):
    calls = []
    original = path_mod.spectral_decomposition

    def counting(X, Y, Z):
        calls.append(1)
        return original(X, Y, Z)

    monkeypatch.setattr(path_mod, "spectral_decomposition", counting)
    X, Y, Z, rx, rz, reg, _ = _problem(seed=2)

    mlmnet_pathwise(get_solver("admm"), X, Y, Z, [3.0, 2.0, 1.0], rx, rz, reg, None, verbose=False)
    assert len(calls) == 1

    mlmnet_pathwise(get_solver("cd"), X, Y, Z, [3.0, 2.0, 1.0], rx, rz, reg, None, verbose=False)
    assert len(calls) == 1


def test_engine_stores_matrix_returned_by_solver():
    seen = []

    def shifting(X, Y, Z, lam, B, reg_x_idx, reg_z_idx, reg, norms, *, config=None, verbose=False):
        seen.append(B.copy())
        return B + lam

    X, Y, Z, rx, rz, reg, norms = _problem()
    coeffs, _ = mlmnet_pathwise(
        Solver(SolverKind.CUSTOM, shifting), X, Y, Z, [2.0, 1.0], rx, rz, reg, norms, verbose=False
    )

    assert np.all(seen[0] == 0.0)
    assert np.all(seen[1] == 2.0)
    assert np.all(coeffs[0] == 2.0) and np.all(coeffs[1] == 3.0)


def test_solver_returning_none_is_an_error():
    def broken(X, Y, Z, lam, B, *args, **kwargs):
        B[...] = 0.0

    X, Y, Z, rx, rz, reg, norms = _problem()
    with pytest.raises(TypeError, match="returned None"):
        mlmnet_pathwise(
            Solver(SolverKind.CUSTOM, broken), X, Y, Z, [1.0], rx, rz, reg, norms, verbose=False
        )
