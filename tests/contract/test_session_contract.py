import json

import numpy as np
import pytest

from predator import ByHandle, ByName, Predator
from predator.core.errors import (
    BadInput,
    ConfigLookupFailure,
    DNNGeneratorException,
    IncorrectInputType,
    InstanceNotTrainedYet,
    NoAggregationModel,
    NoModelAvailable,
    NoPredictionModel,
)
from predator.core.shapes import max_of
from predator.core.types import flatten_values
from predator.reporting.plots import PlotAdapter
from predator.storage.snapshots import bigdata_key, config_key, model_key


def _trained(make_config, store, name="m", **kwargs):
    session = Predator(make_config(**kwargs), store)
    session.train(name)
    return session


def test_default_shapes_resolve_to_record_count(make_config, store):
    session = Predator(make_config(), store)
    assert session.config["neural"]["layers"]["tensor_shapes"] == [[max_of(1), 2], [max_of(1), 1]]

    session.train()

    assert len(session.points) == 20
    assert session.config["neural"]["layers"]["tensor_shapes"] == [[20, 2], [20, 1]]
    assert session.config["generated"]["adjusted"] == [
        {"with": "max", "using": 1},
        {"with": "max", "using": 1},
    ]
    features = flatten_values([p.x for p in session.points])
    assert len(session.tensor_cache) == 2
    assert session.tensor_cache.features.min == min(features)
    assert session.tensor_cache.features.max == max(features)
    assert session.active_model.name == "Anonymous"


def test_training_records_generated_metadata(make_config, store):
    session = _trained(make_config, store)
    generated = session.config["generated"]
    assert set(generated["loss"]) == {"train", "test"}
    assert generated["performance"].endswith("s")
    assert generated["normalized"]["was"] is True
    assert len(generated["normalized"]["stats"]) == 2
    assert len(generated["layers"]) == 3
    assert generated["layers"][-1]["units"] == 1


def test_named_training_saves_snapshot_without_transient_keys(make_config, store):
    session = _trained(make_config, store)
    assert {config_key("m"), bigdata_key("m"), model_key("m")} <= set(store.list_keys())
    assert session.saved_models() == ["m"]
    persisted = store.get(config_key("m"))
    assert "latest_model" not in persisted
    assert '"loss": {' not in persisted


def test_anonymous_training_saves_nothing(make_config, store):
    Predator(make_config(), store).train()
    assert store.list_keys() == []


def test_failed_training_leaves_session_untouched(make_config, store):
    config = make_config()
    config["neural"]["layers"] = {"tensor_shapes": [[max_of(1), 2], [max_of(1), 1, 1]]}
    session = Predator(config, store)
    before = session.config
    with pytest.raises(DNNGeneratorException):
        session.train("broken")
    assert session.config is before
    assert session.points == []
    assert session.active_model is None
    assert store.list_keys() == []


def test_predict_with_own_model(make_config, store):
    session = _trained(make_config, store, name=None)
    prediction = session.predict([1.0, 2.0])
    assert len(prediction) == 1
    assert np.isfinite(prediction[0])
    assert session.predict([1.0, 2.0], ByHandle(session.active_model)) == prediction


def test_input_type_is_checked_before_resolution(store):
    session = Predator({"system": {"params": [["a", "b"], ["c"]], "csv_path": None}}, store)
    for values in ([float("nan"), 1.0], [1.0, "2"], [True, 1.0], "12"):
        with pytest.raises(IncorrectInputType):
            session.predict(values, "m")
    assert store.reads == []


def test_unknown_model_is_unavailable(make_config, store):
    session = Predator(make_config(), store)
    with pytest.raises(NoModelAvailable):
        session.predict([1.0, 2.0], "missing")
    with pytest.raises(NoModelAvailable):
        session.predict([1.0, 2.0])


def test_arity_mismatch_is_bad_input(make_config, store):
    _trained(make_config, store)
    other = Predator(make_config(name="other.csv"), store)
    with pytest.raises(BadInput) as info:
        other.predict([1.0, 2.0, 3.0], "m")
    assert info.value.expected == 2
    assert info.value.actual == 3
    assert info.value.code == "pred::BadInput"


def test_foreign_model_uses_its_own_normalization(make_config, store):
    owner = _trained(make_config, store)
    expected = owner.predict([3.0, 6.0])

    other = Predator(make_config(name="shifted.csv", offset=100.0), store)
    other.train()
    assert other.tensor_cache.features != owner.tensor_cache.features

    prediction = other.predict([3.0, 6.0], "m")
    assert np.allclose(prediction, expected)
    assert other.tensor_cache.as_list() == owner.tensor_cache.as_list()
    assert other.active_model.name == "m"


def test_unnamed_foreign_handle_cannot_be_aggregated(make_config, store):
    first = Predator(make_config(), store)
    first.train()
    foreign = first.active_model
    foreign.name = None
    second = _trained(make_config, store, name="n")
    with pytest.raises(NoAggregationModel):
        second.predict([1.0, 2.0], foreign)


def test_restore_is_idempotent_without_store_reads(make_config, store):
    _trained(make_config, store)
    session = Predator(make_config(name="other.csv"), store)
    assert session.restore_snapshot("m", True) is True
    assert session.active_model.name == "m"
    assert session.config["neural"]["layers"]["tensor_shapes"] == [[20, 2], [20, 1]]

    store.reads.clear()
    assert session.restore_snapshot("m", True) is False
    assert store.reads == []


def test_fast_and_slow_restore_rebuild_the_same_cache(make_config, store):
    owner = _trained(make_config, store)

    fast = Predator(make_config(name="other.csv"), store)
    fast.restore_snapshot("m", True)
    assert fast.points == owner.points
    assert fast.tensor_cache.as_list() == owner.tensor_cache.as_list()

    slow = Predator(make_config(name="other.csv"), store)
    slow.restore_snapshot("m")
    assert slow.points == owner.points
    assert slow.tensor_cache.as_list() == owner.tensor_cache.as_list()


def test_fast_path_without_cached_points_reingests(make_config, store):
    owner = _trained(make_config, store)
    store.delete(bigdata_key("m"))
    session = Predator(make_config(name="other.csv"), store)
    assert session.restore_snapshot("m", True) is True
    assert session.points == owner.points


def test_restore_without_fallback_fails_and_keeps_state(make_config, store):
    session = Predator(make_config(), store)
    before = session.config
    with pytest.raises(ConfigLookupFailure):
        session.restore_snapshot("ghost", True, allow_fallback=False)
    assert session.config is before
    assert session.points == []
    assert len(session.tensor_cache) == 0


def test_restore_of_unknown_model_with_fallback_has_no_model(make_config, store):
    session = Predator(make_config(), store)
    with pytest.raises(NoModelAvailable):
        session.restore_snapshot("ghost")
    assert session.active_model is None


def test_merge_plot_requires_training(make_config, store):
    session = Predator(make_config(), store)
    with pytest.raises(InstanceNotTrainedYet):
        session.merge_plot()


def test_merge_plot_is_skipped_when_not_visual(make_config, store):
    session = _trained(make_config, store, name=None)
    assert session.merge_plot() is False


def test_visual_training_renders_plots(make_config, store, tmp_path):
    plotter = PlotAdapter(tmp_path / "plots", enable_plots=True)
    session = Predator(make_config(visual=True), store, plotter=plotter)
    session.train("m")
    names = {path.name for path in plotter.rendered}
    assert "a-b-and-c-correlation-m.png" in names
    assert "test-vs-train.png" in names
    assert "training-performance.png" in names


def test_visual_merge_plot_reference_errors(make_config, store, tmp_path):
    plotter = PlotAdapter(tmp_path / "plots", enable_plots=True)
    session = Predator(make_config(visual=True), store, plotter=plotter)
    session.train()
    with pytest.raises(NoPredictionModel):
        session.merge_plot(False, True, ByName("missing"))
    with pytest.raises(NoAggregationModel):
        session.merge_plot(True, False, ByName("missing"))


def test_prediction_points_sweep_input_range(make_config, store):
    session = _trained(make_config, store, name=None, params=["a", ["c"]])
    points = session.generate_prediction_points()
    assert len(points) == 100
    xs = [p["x"] for p in points]
    assert xs[0] == pytest.approx(session.tensor_cache.features.min)
    assert xs[-1] == pytest.approx(session.tensor_cache.features.max)

    wide = _trained(make_config, store, name=None)
    assert len(wide.generate_prediction_points()) == 100
    assert Predator(make_config(), store).generate_prediction_points() == []


def test_fresh_session_sweeps_named_model_with_its_statistics(make_config, store):
    owner = _trained(make_config, store)
    session = Predator(make_config(name="shifted.csv", offset=100.0), store)
    points = session.generate_prediction_points("m")
    assert len(points) == 100
    assert points[0]["x"] == pytest.approx(owner.tensor_cache.features.min)
    assert points[-1]["x"] == pytest.approx(owner.tensor_cache.features.max)
    assert session.active_model.name == "m"
    assert session.tensor_cache.as_list() == owner.tensor_cache.as_list()


def test_fresh_session_plots_named_prediction_line(make_config, store, tmp_path):
    _trained(make_config, store)
    plotter = PlotAdapter(tmp_path / "plots", enable_plots=True)
    session = Predator(make_config(name="other.csv", visual=True), store, plotter=plotter)
    assert session.merge_plot(False, True, "m") is True
    assert "a-b-and-c-correlation-m.png" in {path.name for path in plotter.rendered}


def test_unnamed_foreign_model_has_no_prediction_line(make_config, store):
    first = Predator(make_config(), store)
    first.train()
    foreign = first.active_model
    foreign.name = None
    with pytest.raises(NoPredictionModel):
        Predator(make_config(name="other.csv"), store).generate_prediction_points(foreign)


def test_restore_migrates_legacy_single_shape(make_config, store):
    _trained(make_config, store)
    persisted = json.loads(store.get(config_key("m")))
    persisted["neural"]["layers"]["tensor_shapes"] = [20, 1]
    store.set(config_key("m"), json.dumps(persisted))

    session = Predator(make_config(name="other.csv"), store)
    assert session.restore_snapshot("m", True) is True
    assert session.config["neural"]["layers"]["tensor_shapes"] == [[20, 1], [20, 1]]
    assert len(session.tensor_cache) == 2
