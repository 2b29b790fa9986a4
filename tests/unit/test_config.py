"""Tests for configuration loading."""

import pytest

import procureflow.persistence as persistence
from procureflow.config import ProcureflowConfig, load_config
from procureflow.persistence import (
    InMemoryWorkflowRepository,
    SQLiteWorkflowRepository,
    get_repository,
)
from procureflow.service import WorkflowService


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "procureflow.yaml"
    config_path.write_text(
        """
currency: EUR
log_level: DEBUG
last_writer_wins: true
"""
    )
    monkeypatch.setenv("PROCUREFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("PROCUREFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    config = load_config()
    assert config.currency == "EUR"
    assert config.log_level == "DEBUG"
    assert config.last_writer_wins is True
    assert config.database_url is None


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.setenv("PROCUREFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("PROCUREFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    config = load_config()
    assert config.currency == "USD"
    assert config.last_writer_wins is False


def test_env_database_url_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "procureflow.yaml"
    config_path.write_text("database_url: sqlite://from-file.db\n")
    monkeypatch.setenv("PROCUREFLOW_CONFIG", str(config_path))
    monkeypatch.setenv("PROCUREFLOW_DATABASE_URL", f"sqlite://{tmp_path / 'env.db'}")

    assert load_config().database_url == f"sqlite://{tmp_path / 'env.db'}"


def test_get_repository_uses_config(tmp_path, monkeypatch):
    config_path = tmp_path / "procureflow.yaml"
    config_path.write_text(f"database_url: sqlite://{tmp_path / 'items.db'}\n")
    monkeypatch.setenv("PROCUREFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("PROCUREFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(persistence, "_repository_instance", None)

    repo = get_repository(config=load_config())
    assert isinstance(repo, SQLiteWorkflowRepository)
    assert repo.db_path == str(tmp_path / "items.db")


def test_get_repository_defaults_to_memory(tmp_path, monkeypatch):
    monkeypatch.setenv("PROCUREFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("PROCUREFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(persistence, "_repository_instance", None)

    repo = get_repository()
    assert isinstance(repo, InMemoryWorkflowRepository)
    assert get_repository() is repo


def test_service_opens_repository_from_its_config(tmp_path, monkeypatch):
    monkeypatch.setattr(persistence, "_repository_instance", None)
    config = ProcureflowConfig(database_url=f"sqlite://{tmp_path / 'service.db'}")

    service = WorkflowService(config=config)
    assert isinstance(service.repository, SQLiteWorkflowRepository)
    assert service.repository.db_path == str(tmp_path / "service.db")
    assert get_repository() is service.repository


def test_get_repository_rejects_unknown_scheme(monkeypatch):
    monkeypatch.setattr(persistence, "_repository_instance", None)
    with pytest.raises(ValueError):
        get_repository("mysql://localhost/items")
