import logging

import pytest

from guff import logging_config


@pytest.fixture
def fresh_root(monkeypatch, tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    logs = tmp_path / "logs"
    monkeypatch.setattr(logging_config, "LOGS", str(logs))
    monkeypatch.setattr(logging_config, "LOG_FILE", str(logs / "guff.log"))
    monkeypatch.setattr(logging_config.configure_logging, "_configured", False, raising=False)
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


def test_configure_logging_installs_stream_and_file_handlers(fresh_root, tmp_path):
    log_file = logging_config.configure_logging(debug=True)

    assert log_file == str(tmp_path / "logs" / "guff.log")
    assert fresh_root.level == logging.DEBUG
    kinds = {type(h).__name__ for h in fresh_root.handlers}
    assert {"StreamHandler", "RotatingFileHandler"} <= kinds

    logging.getLogger("guff.test").info("hello file")
    for handler in fresh_root.handlers:
        handler.flush()
    assert "hello file" in (tmp_path / "logs" / "guff.log").read_text()


def test_configure_logging_is_idempotent(fresh_root):
    logging_config.configure_logging()
    count = len(fresh_root.handlers)

    logging_config.configure_logging(level="WARNING")

    assert len(fresh_root.handlers) == count
    assert fresh_root.level == logging.WARNING
