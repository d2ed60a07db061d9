import json
import logging
from pathlib import Path

import pytest

from indexbridge.app import AppState, bootstrap
from indexbridge.config import (
    DatabaseConfig,
    ImporterConfig,
    SearchConfig,
    Settings,
    load_settings,
)
from indexbridge.exceptions import ConfigurationError
from indexbridge.logging_config import JsonFormatter, setup_logging


def test_defaults() -> None:
    settings = Settings()
    assert settings.importer.batch_size == 1000
    assert settings.importer.resync_minutes == 15
    assert settings.search.index_path is None
    assert settings.database.url.startswith("sqlite")


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INDEXBRIDGE_IMPORTER__BATCH_SIZE", "250")
    monkeypatch.setenv("INDEXBRIDGE_APP__LOG_LEVEL", "DEBUG")
    settings = load_settings()
    assert settings.importer.batch_size == 250
    assert settings.app.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["0", "-5", "many"])
def test_invalid_batch_size_raises_configuration_error(
    monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    monkeypatch.setenv("INDEXBRIDGE_IMPORTER__BATCH_SIZE", value)
    with pytest.raises(ConfigurationError):
        load_settings()


def test_setup_logging_json_format() -> None:
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging("debug", "json")
        handler = root.handlers[-1]
        assert root.level == logging.DEBUG
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
        payload = json.loads(handler.formatter.format(record))
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
    finally:
        for h in root.handlers[len(before):]:
            root.removeHandler(h)
        root.setLevel(level)


def test_json_formatter_escapes_quotes_and_newlines() -> None:
    record = logging.LogRecord(
        "x", logging.WARNING, __file__, 1, 'said "hi"\nthen %s', ("left",), None
    )
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == 'said "hi"\nthen left'
    assert payload["logger"] == "x"


def test_setup_logging_twice_keeps_one_handler() -> None:
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging("info", "json")
        setup_logging("warning", "text")
        own = [h for h in root.handlers if getattr(h, "_indexbridge", False)]
        assert len(own) == 1
        assert not isinstance(own[0].formatter, JsonFormatter)
        assert root.level == logging.WARNING
    finally:
        for h in [h for h in root.handlers if h not in before]:
            root.removeHandler(h)
        for h in before:
            root.addHandler(h)
        root.setLevel(level)


def test_bootstrap_builds_document_indexer(tmp_path: Path) -> None:
    settings = Settings(
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'app.db'}"),
        search=SearchConfig(index_path=str(tmp_path / "index")),
        importer=ImporterConfig(batch_size=10),
    )

    state = bootstrap(settings, configure_logging=False)
    assert isinstance(state, AppState)
    assert state.documents is not None
    assert state.documents.name == "document"
    assert state.documents.adapter.config.batch_size == 10
    assert state.documents.import_() is True
    assert (tmp_path / "index").is_dir()


def test_start_resync_schedules_job(tmp_path: Path) -> None:
    settings = Settings(database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'app.db'}"))
    state = AppState(settings)
    state.start_resync()
    try:
        assert state.scheduler.job_ids() == ["resync:document"]
    finally:
        state.scheduler.shutdown(wait=False)
