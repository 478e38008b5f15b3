import json
import logging

import pytest

from cli.main import main


@pytest.fixture(autouse=True)
def _reset_predator_logger():
    yield
    logging.getLogger("predator").handlers.clear()


def _last_json(capsys):
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    return json.loads(lines[-1])


def test_cli_train_then_predict(tmp_path, write_csv, capsys):
    csv_path = write_csv()
    store_dir = tmp_path / "store"
    main(
        [
            "--csv-path", str(csv_path),
            "--features", "a,b",
            "--labels", "c",
            "--epochs", "2",
            "--seed", "0",
            "--store-dir", str(store_dir),
            "--train", "m",
        ]
    )
    trained = _last_json(capsys)
    assert trained["model"] == "m"
    assert trained["tensor_shapes"] == [[20, 2], [20, 1]]

    main(["--store-dir", str(store_dir), "--predict", "1,2", "--model", "m"])
    predicted = _last_json(capsys)
    assert predicted["model"] == "m"
    assert len(predicted["prediction"]) == 1

    with pytest.raises(SystemExit) as info:
        main(["--store-dir", str(store_dir), "--list-models"])
    assert info.value.code == 0
    assert capsys.readouterr().out.split() == ["m"]


def test_cli_reports_error_codes(tmp_path):
    with pytest.raises(SystemExit) as info:
        main(["--store-dir", str(tmp_path), "--predict", "1,2", "--model", "ghost"])
    assert str(info.value.code).startswith("pred::NoModelAvailable")


def test_cli_needs_an_action(tmp_path):
    with pytest.raises(SystemExit):
        main(["--store-dir", str(tmp_path)])
