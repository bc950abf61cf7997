import logging

from app.core.logging_config import setup_logging


def test_setup_logging_writes_to_log_file(tmp_path, monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    log_file = tmp_path / "api.log"

    setup_logging("debug", str(log_file))
    logging.getLogger("app.test").debug("written to file")
    for handler in root.handlers:
        handler.flush()

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert "[DEBUG] app.test: written to file" in log_file.read_text(encoding="utf-8")

    for handler in root.handlers:
        handler.close()


def test_setup_logging_is_idempotent(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)

    setup_logging("info")
    setup_logging("info", "ignored.log")

    assert len(root.handlers) == 1
