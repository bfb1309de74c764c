import json
import logging

from config import InspectorOptions, configure_logging, load_options, save_options


def test_missing_file_gives_defaults(tmp_path):
    assert load_options(str(tmp_path / "nope.json")) == InspectorOptions()


def test_round_trip_and_unknown_keys(tmp_path):
    path = str(tmp_path / "settings.json")
    save_options(InspectorOptions(auto_hide=False, export_indent=2), path)
    data = json.loads(open(path).read())
    data["something_else"] = 1
    with open(path, "w") as f:
        json.dump(data, f)
    opts = load_options(path)
    assert opts.auto_hide is False
    assert opts.export_indent == 2


def test_broken_file_gives_defaults(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{oops")
    with caplog.at_level(logging.WARNING):
        assert load_options(str(path)) == InspectorOptions()
    assert "Ignoring settings file" in caplog.text


def test_log_level_from_env(monkeypatch):
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    try:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        configure_logging()
        assert root.level == logging.DEBUG
        monkeypatch.setenv("LOG_LEVEL", "bogus")
        configure_logging()
        assert root.level == logging.INFO
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])
