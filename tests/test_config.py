import logging

import pytest
from click.testing import CliRunner

import main
from okr.config_manager import get_config
from okr.exceptions import ConfigError
from okr.logger import get_logger, setup_logging


def test_defaults_when_runtime_file_missing(tmp_path):
    cfg = get_config(tmp_path / "runtime.yaml")
    assert cfg.HISTORY_LIMIT == 1000
    assert cfg.DUE_SOON_DAYS == 7
    assert cfg.CHECKIN_OVERDUE_DAYS == 8
    assert cfg.OUTLINE_PROGRESS_THRESHOLD == 70


def test_runtime_yaml_overrides_known_keys(tmp_path):
    path = tmp_path / "runtime.yaml"
    path.write_text("HISTORY_LIMIT: 50\nDUE_SOON_DAYS: 3\nUNRELATED: 1\n", encoding="utf-8")

    cfg = get_config(path)

    assert cfg.HISTORY_LIMIT == 50
    assert cfg.DUE_SOON_DAYS == 3
    assert not hasattr(cfg, "UNRELATED")


def test_unparsable_runtime_yaml_is_ignored(tmp_path):
    path = tmp_path / "runtime.yaml"
    path.write_text("HISTORY_LIMIT: [unclosed\n", encoding="utf-8")

    assert get_config(path).HISTORY_LIMIT == 1000


def test_ill_typed_override_raises_config_error(tmp_path):
    path = tmp_path / "runtime.yaml"
    path.write_text("HISTORY_LIMIT: lots\n", encoding="utf-8")

    with pytest.raises(ConfigError) as exc:
        get_config(path)
    assert exc.value.config_path == str(path)
    assert "HISTORY_LIMIT" in exc.value.get_user_message()


def test_setup_logging_writes_system_log(tmp_path):
    root = setup_logging(logs_dir=tmp_path)
    try:
        get_logger("test").info("hello from tests")
        for handler in root.handlers:
            handler.flush()
        assert "hello from tests" in (tmp_path / "system.log").read_text(encoding="utf-8")
        assert (tmp_path / "error.log").exists()
    finally:
        for handler in list(root.handlers):
            handler.close()
        root.handlers.clear()
        root.setLevel(logging.NOTSET)


def test_setup_logging_accepts_level_names(tmp_path):
    root = setup_logging(log_level="debug", console_level="ERROR", logs_dir=tmp_path)
    try:
        levels = sorted(h.level for h in root.handlers)
        assert levels == [logging.DEBUG, logging.ERROR, logging.ERROR]
    finally:
        for handler in list(root.handlers):
            handler.close()
        root.handlers.clear()
        root.setLevel(logging.NOTSET)


def test_server_entry_reads_options_and_env(monkeypatch):
    calls = {}
    monkeypatch.setattr(main, "setup_logging", lambda log_level=None: calls.setdefault("log_level", log_level))
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.update(app=app, **kwargs))
    monkeypatch.setenv("OKR_TRACKER_PORT", "9100")

    result = CliRunner().invoke(main.main, ["--reload", "--log-level", "DEBUG"])

    assert result.exit_code == 0
    assert calls["app"] == "web.backend.app:app"
    assert calls["port"] == 9100
    assert calls["reload"] is True
    assert calls["reload_dirs"] == ["web", "okr"]
    assert calls["log_level"] == "DEBUG"
