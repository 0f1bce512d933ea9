import numpy as np
import pytest

from conftest import make_data
from matrixlmnet import MLMNet, mlmnet


def test_estimator_matches_function():
    data = make_data(seed=20)
    X, Y, Z = data.X.copy(), data.Y.copy(), data.Z.copy()

    direct = mlmnet("cd", data, [1.0, 0.1], verbose=False)
    model = MLMNet(lambdas=[1.0, 0.1])
    fitted = model.fit(X, Y, Z)

    assert fitted is model
    assert np.allclose(model.coef_, direct.B)
    assert np.array_equal(model.lambdas_, [1.0, 0.1])
    assert model.n_features_in_ == (3, 2)

    preds = model.predict(X, Z)
    assert preds.shape == Y.shape
    assert np.allclose(model.coef(0.1), direct.B[1])
    assert np.isclose(model.score(X, Y, Z), -np.mean((Y - preds) ** 2))
    # the caller's arrays are not modified
    assert X.shape == (20, 3)


def test_estimator_without_column_covariates():
    rng = np.random.default_rng(21)
    X = rng.standard_normal((30, 2))
    Y = X @ rng.standard_normal((2, 4)) + 0.1 * rng.standard_normal((30, 4))

    model = MLMNet(lambdas=[0.01]).fit(X, Y)

    assert model.coef_.shape == (1, 3, 5)
    assert model.score(X, Y) > -0.1


def test_params_roundtrip():
    model = MLMNet()
    params = model.get_params()
    assert params["solver"] == "cd"
    assert model.set_params(solver="admm", standardize=False) is model
    assert model.get_params()["solver"] == "admm"
    with pytest.raises(ValueError, match="Unknown parameter"):
        model.set_params(alpha=1.0)


def test_unfitted_estimator_raises():
    model = MLMNet()
    with pytest.raises(RuntimeError):
        model.predict(np.ones((2, 2)))
    with pytest.raises(RuntimeError):
        model.coef()


def test_predict_checks_feature_counts():
    data = make_data(seed=22)
    model = MLMNet(lambdas=[0.1]).fit(data.X, data.Y, data.Z)
    with pytest.raises(ValueError, match="columns"):
        model.predict(np.ones((3, 5)), data.Z)
