import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from tsdocref.cli import load_settings, main

SAMPLE_SPEC = Path(__file__).parent / "samples" / "combined.json"


@pytest.fixture
def restore_log_level():
    std_logger = logging.getLogger("tsdocref")
    level = std_logger.level
    yield std_logger
    std_logger.setLevel(level)


def test_cli_prints_all_modules():
    result = CliRunner().invoke(main, [str(SAMPLE_SPEC)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [m["name"] for m in payload] == ["storage-js", "realtime-js"]
    assert "storage-js.StorageClient.constructor" in payload[0]["methods"]
    assert payload[0]["types"] == {}


def test_cli_single_module():
    result = CliRunner().invoke(main, [str(SAMPLE_SPEC), "--module", "realtime-js"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [m["name"] for m in payload] == ["realtime-js"]


def test_cli_single_reference():
    result = CliRunner().invoke(
        main, [str(SAMPLE_SPEC), "--ref", "storage-js.StorageClient.constructor"]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["name"] == "storage-js.StorageClient.constructor"
    assert [p["name"] for p in payload["params"]] == [
        "url",
        "headers",
        "fetch",
        "region",
        "options",
        "mode",
    ]


def test_cli_unknown_reference_fails():
    result = CliRunner().invoke(main, [str(SAMPLE_SPEC), "--ref", "missing.constructor"])

    assert result.exit_code == 1
    assert result.stdout == ""


def test_cli_duckdb_cache(tmp_path):
    db_path = tmp_path / "types.duckdb"
    result = CliRunner().invoke(
        main,
        [
            str(SAMPLE_SPEC),
            "--cache-backend",
            "duckdb",
            "--cache-path",
            str(db_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert db_path.exists()


def test_cli_rejects_missing_file(tmp_path):
    result = CliRunner().invoke(main, [str(tmp_path / "missing.json")])
    assert result.exit_code == 2


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("TSDOCREF_SPEC_PATH", "/tmp/combined.json")
    monkeypatch.setenv("TSDOCREF_CACHE__BACKEND", "sqlite")

    settings = load_settings()

    assert settings.spec_path == "/tmp/combined.json"
    assert settings.cache.backend == "sqlite"


def test_load_settings_kwargs_override_environment(monkeypatch):
    monkeypatch.setenv("DOCS_SPEC_PATH", "/tmp/from-env.json")

    settings = load_settings(env_prefix="DOCS_", spec_path="/tmp/explicit.json")

    assert settings.spec_path == "/tmp/explicit.json"
    assert settings.cache.backend == "memory"


def test_cli_debug_logs_to_tsdocref_logger(restore_log_level, caplog):
    result = CliRunner().invoke(main, [str(SAMPLE_SPEC), "--debug"])

    assert result.exit_code == 0, result.output
    assert restore_log_level.level == logging.DEBUG
    assert json.loads(result.stdout)[0]["name"] == "storage-js"
    assert any(
        r.name == "tsdocref" and r.levelno == logging.DEBUG for r in caplog.records
    )


def test_cli_default_log_level_is_info(restore_log_level):
    result = CliRunner().invoke(main, [str(SAMPLE_SPEC), "--no-debug"])

    assert result.exit_code == 0, result.output
    assert restore_log_level.level == logging.INFO
