import json
import logging
import tempfile
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler

import pytest
from starlette.testclient import TestClient

from leadqueue.app_logging import APP_LOGGER_NAME, init_logging


def _clear_handlers(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.handlers.clear()
    return logger


@pytest.fixture
def log_dir(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("LOG_DIR", tmpdir)
        yield Path(tmpdir)


def test_timed_rotating_handler_configuration(log_dir, monkeypatch):
    monkeypatch.setenv("LOG_RETENTION_DAYS", "5")
    monkeypatch.setenv("LOG_ROTATE_UTC", "true")
    app_logger = _clear_handlers(APP_LOGGER_NAME)
    access_logger = _clear_handlers("uvicorn.access")

    init_logging()

    app_handler = next(
        h for h in app_logger.handlers if isinstance(h, TimedRotatingFileHandler)
    )
    assert app_handler.when == "MIDNIGHT"
    assert app_handler.backupCount == 5
    assert app_handler.utc is True
    assert Path(app_handler.baseFilename).name == "leadqueue.log"

    access_handler = next(
        h for h in access_logger.handlers if isinstance(h, TimedRotatingFileHandler)
    )
    assert access_handler.when == "MIDNIGHT"
    assert access_handler.backupCount == 5

    app_logger.handlers.clear()
    access_logger.handlers.clear()


def test_log_files_and_redaction(log_dir, app_factory):
    _clear_handlers(APP_LOGGER_NAME)
    _clear_handlers("uvicorn.access")
    app = app_factory(log_dir, log_request_bodies=True)

    pipeline_logger = logging.getLogger("leadqueue.leads.service")
    pipeline_logger.info("Sync complete. Added: 1, Skipped: 0")

    with TestClient(app) as client:
        resp = client.post(
            "/echo",
            json={"apikey": "zoko-secret", "customer": {"token": "secret"}, "value": 1},
            headers={
                "Authorization": "Bearer secret",
                "X-Shopify-Access-Token": "shpat_secret",
            },
        )
        assert resp.status_code == 200

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    for logger in (app_logger, logging.getLogger("uvicorn.access")):
        for handler in logger.handlers:
            handler.flush()

    app_log = log_dir / "leadqueue.log"
    access_log = log_dir / "access.log"

    assert app_log.exists() and app_log.read_text().strip()
    assert "Sync complete" in app_log.read_text()

    assert access_log.exists() and access_log.read_text().strip()
    access_line = access_log.read_text().splitlines()[-1]
    payload = access_line.split(": ", 1)[1]
    data = json.loads(payload)
    assert data["headers"]["authorization"] == "***"
    assert data["headers"]["x-shopify-access-token"] == "***"
    assert data["body"]["apikey"] == "***"
    assert data["body"]["customer"]["token"] == "***"
    assert data["body"]["value"] == 1
    assert "zoko-secret" not in access_log.read_text()

    app_logger.handlers.clear()
    logging.getLogger("uvicorn.access").handlers.clear()


def test_json_formatter(log_dir, monkeypatch):
    monkeypatch.setenv("LOG_JSON", "true")
    app_logger = _clear_handlers(APP_LOGGER_NAME)

    init_logging()
    logging.getLogger("leadqueue.zoko.phone_index").warning("index %s", "stale")
    for handler in app_logger.handlers:
        handler.flush()

    line = (log_dir / "leadqueue.log").read_text().splitlines()[-1]
    record = json.loads(line)
    assert record["level"] == "WARNING"
    assert record["logger"] == "leadqueue.zoko.phone_index"
    assert record["message"] == "index stale"

    app_logger.handlers.clear()
    logging.getLogger("uvicorn.access").handlers.clear()
