"""Tests for the meshgraph command line."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from meshgraph import cli
from meshgraph.config import Settings, get_settings
from meshgraph.core.errors import ConfigurationError, ExitCode, StorageError
from meshgraph.snapshots.memory import InMemorySnapshotStore


@pytest.fixture
def stored_mesh(mesh_store, clock):
    store = InMemorySnapshotStore(clock=clock)
    asyncio.run(store.persist_model(mesh_store.snapshot()))
    return store


@pytest.fixture
def patched_db():
    """Replace engine setup so commands run against an injected store."""
    with (
        patch.object(cli, "load_settings", return_value=Settings(_env_file=None)),
        patch.object(cli, "configure_logging"),
        patch.object(cli, "init_engine") as init_engine,
        patch.object(cli, "dispose_engine", new_callable=AsyncMock) as dispose_engine,
        patch.object(cli, "get_session_factory", return_value=MagicMock()),
    ):
        yield init_engine, dispose_engine


@pytest.fixture
def clean_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def run_main(argv):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


class TestDepsCommand:
    def test_prints_transitive_dependencies(self, patched_db, stored_mesh, capsys):
        with patch.object(cli, "SqlSnapshotStore", return_value=stored_mesh):
            code = run_main(["deps", "frontend"])

        assert code == ExitCode.SUCCESS
        output = json.loads(capsys.readouterr().out)
        assert {n["id"] for n in output["nodes"]} == {
            "frontend",
            "orders",
            "payments",
            "inventory",
        }
        assert "orders$$payments$$order-api->pay-api" in output["edges"]

    def test_prints_service_dependencies(self, patched_db, stored_mesh, capsys):
        with patch.object(cli, "SqlSnapshotStore", return_value=stored_mesh):
            code = run_main(["deps", "frontend", "--service", "web"])

        assert code == ExitCode.SUCCESS
        output = json.loads(capsys.readouterr().out)
        assert {n["id"] for n in output["nodes"]} == {
            "frontend.web",
            "frontend.bff",
            "orders.order-api",
            "payments.pay-api",
            "inventory.stock-api",
        }

    def test_storage_error_maps_to_exit_code(self, patched_db, capsys):
        _, dispose_engine = patched_db
        failing = MagicMock()
        failing.load_last_model = AsyncMock(
            side_effect=StorageError("Unable to load", details={"error": "refused"})
        )

        with patch.object(cli, "SqlSnapshotStore", return_value=failing):
            code = run_main(["deps", "frontend"])

        assert code == ExitCode.STORAGE_ERROR
        assert "Unable to load (error=refused)" in capsys.readouterr().err
        dispose_engine.assert_awaited_once()


class TestInitDbCommand:
    def test_creates_schema(self, patched_db, capsys):
        init_engine, dispose_engine = patched_db
        with patch.object(cli, "create_schema", new_callable=AsyncMock) as create_schema:
            code = run_main(["init-db"])

        assert code == ExitCode.SUCCESS
        init_engine.assert_called_once()
        create_schema.assert_awaited_once()
        dispose_engine.assert_awaited_once()
        assert "Snapshot tables ready" in capsys.readouterr().out


class TestSettingsErrors:
    def test_load_settings_wraps_validation_error(self, monkeypatch, clean_settings_cache):
        monkeypatch.setenv("MESHGRAPH_RECONCILE_INTERVAL_SECONDS", "0")

        with pytest.raises(ConfigurationError) as exc_info:
            cli.load_settings()

        assert exc_info.value.details["fields"] == "reconcile_interval_seconds"

    def test_invalid_settings_exit_code(self, monkeypatch, clean_settings_cache, capsys):
        monkeypatch.setenv("MESHGRAPH_SNAPSHOT_HISTORY_LIMIT", "0")

        code = run_main(["deps", "frontend"])

        assert code == ExitCode.CONFIG_ERROR
        assert "Invalid meshgraph settings" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert run_main([]) == ExitCode.CONFIG_ERROR
    assert "usage: meshgraph" in capsys.readouterr().out
