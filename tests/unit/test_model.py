import numpy as np
import pytest

from predator.training.losses import REGISTRY
from predator.training.model import DenseLayerSpec, SequentialModel, create_model
from predator.training.optimizers import create_optimizer


def _linear_data(n=32):
    x = np.linspace(0.0, 1.0, n).reshape(n, 1)
    return x, 0.5 * x + 0.2


def test_fit_reduces_loss_on_linear_data():
    x, y = _linear_data()
    model = create_model([{"units": 1, "input_shape": [1]}], "sgd", "mse", learning_rate=0.5)
    history = model.fit(x, y, 40, batch_size=8)
    assert len(history.loss) == 40
    assert history.loss[-1] < history.loss[0]


def test_callbacks_receive_epoch_losses():
    x, y = _linear_data(8)
    seen = []
    model = create_model([{"units": 1, "input_shape": [1]}], "adam", "mae")
    model.fit(x, y, 3, callbacks=[lambda epoch, metrics: seen.append((epoch, metrics["loss"]))])
    assert [epoch for epoch, _ in seen] == [1, 2, 3]


def test_artifact_round_trip_preserves_predictions():
    layers = [
        {"units": 4, "input_shape": [2]},
        {"units": 1, "activation": "sigmoid", "input_shape": [4]},
    ]
    model = create_model(layers, "adam", "mse", seed=7)
    model.name = "m"
    restored = SequentialModel.from_json(model.to_json())
    inputs = np.array([[0.1, 0.9], [0.5, 0.5]])
    assert restored.name == "m"
    assert restored.layers == model.layers
    assert np.allclose(restored.predict(inputs), model.predict(inputs))


def test_layers_act_on_last_axis():
    model = create_model(
        [{"units": 5, "input_shape": [3, 2]}, {"units": 1, "input_shape": [3, 5]}], "sgd", "mse"
    )
    assert model.output_shape == (3, 1)
    assert model.predict(np.zeros((4, 3, 2))).shape == (4, 3, 1)
    assert model.params["W0"].shape == (2, 5)
    assert model.params["W1"].shape == (5, 1)


def test_predict_rejects_wrong_input_shape():
    model = create_model([{"units": 1, "input_shape": [2]}], "sgd", "mse")
    with pytest.raises(ValueError):
        model.predict(np.zeros((1, 3)))


def test_fit_rejects_mismatched_labels():
    model = create_model([{"units": 1, "input_shape": [1]}], "sgd", "mse")
    with pytest.raises(ValueError):
        model.fit(np.zeros((4, 1)), np.zeros((3, 1)), 1)


def test_unknown_components_raise_key_error():
    with pytest.raises(KeyError):
        create_optimizer("rmsprop")
    with pytest.raises(KeyError):
        REGISTRY.resolve("crossEntropy")
    with pytest.raises(KeyError):
        SequentialModel([DenseLayerSpec(units=1, activation="softplus", input_shape=(1,))])


def test_loss_aliases_share_implementation():
    pred, target = np.array([[0.2], [0.8]]), np.array([[0.0], [1.0]])
    assert REGISTRY.resolve("meanSquaredError")(pred, target)[0] == pytest.approx(
        REGISTRY.resolve("mse")(pred, target)[0]
    )
