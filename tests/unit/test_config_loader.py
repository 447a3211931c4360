"""Tests for AccessConfig and ConfigLoader."""
from __future__ import annotations

import logging
import textwrap
from pathlib import Path

import pytest
import yaml

from aumos_asset_access.config import AccessConfig, ConfigLoader, ExportConfig
from aumos_asset_access.policy.defaults import default_matrix, default_matrix_dict
from aumos_asset_access.policy.loader import PolicyConfigError
from aumos_asset_access.policy.matrix import PolicyMatrix
from aumos_asset_access.policy.store import MatrixStore


class TestConfigLoaderDefaults:
    def test_defaults_returns_access_config(self) -> None:
        assert isinstance(ConfigLoader().defaults(), AccessConfig)

    def test_default_values(self) -> None:
        config = ConfigLoader().defaults()
        assert config.policy_file is None
        assert config.strict is False
        assert config.log_level == "INFO"
        assert config.export == ExportConfig()

    def test_default_matrix_selected(self) -> None:
        assert ConfigLoader().defaults().build_matrix() is default_matrix()


class TestConfigLoaderParsing:
    def test_load_string(self) -> None:
        config = ConfigLoader().load_string(
            textwrap.dedent(
                """
                version: "1"
                strict: true
                log_level: debug
                export:
                  max_rows: 500
                """
            )
        )
        assert config.strict is True
        assert config.log_level == "DEBUG"
        assert config.export.max_rows == 500
        assert config.export.client_column == "client_id"

    def test_empty_string(self) -> None:
        assert ConfigLoader().load_string("") == AccessConfig()

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError):
            ConfigLoader().load_string("log_level: chatty")

    def test_invalid_max_rows(self) -> None:
        with pytest.raises(ValueError):
            ConfigLoader().load_string("export:\n  max_rows: 0")

    def test_unknown_keys_allowed(self) -> None:
        config = ConfigLoader().load_string("future_option: 3")
        assert config.model_extra == {"future_option": 3}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load(tmp_path / "access.yaml")


class TestBuildMatrix:
    def test_relative_policy_file(self, tmp_path: Path) -> None:
        (tmp_path / "policy.yaml").write_text(yaml.safe_dump(default_matrix_dict()), encoding="utf-8")
        (tmp_path / "access.yaml").write_text("policy_file: policy.yaml\n", encoding="utf-8")
        config = ConfigLoader().load(tmp_path / "access.yaml")
        assert config.build_matrix(base_dir=tmp_path) == default_matrix()

    def test_strict_applies_to_policy(self, tmp_path: Path) -> None:
        data = default_matrix_dict()
        data["owner"] = "it-team"
        policy = tmp_path / "policy.yaml"
        policy.write_text(yaml.safe_dump(data), encoding="utf-8")
        config = AccessConfig(policy_file=policy, strict=True)
        with pytest.raises(PolicyConfigError):
            config.build_matrix()
        assert AccessConfig(policy_file=policy).build_matrix() == default_matrix()

    def test_configure_logging(self) -> None:
        AccessConfig(log_level="WARNING").configure_logging()
        assert logging.getLogger("aumos_asset_access").level == logging.WARNING
        logging.getLogger("aumos_asset_access").setLevel(logging.NOTSET)


class TestActivate:
    def test_installs_configured_matrix(self, tmp_path: Path) -> None:
        data = default_matrix_dict()
        for rule in data["rules"]:  # type: ignore[attr-defined]
            if rule["role"] == "technician":
                rule["actions"] = []
        (tmp_path / "policy.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")
        store = MatrixStore()
        config = AccessConfig(policy_file=Path("policy.yaml"), log_level="ERROR")

        installed = config.activate(base_dir=tmp_path, store=store)

        assert isinstance(installed, PolicyMatrix)
        assert store.current() is installed
        assert store.generation == 1
        assert logging.getLogger("aumos_asset_access").level == logging.ERROR
        logging.getLogger("aumos_asset_access").setLevel(logging.NOTSET)

    def test_failed_load_keeps_active_matrix(self, tmp_path: Path) -> None:
        store = MatrixStore()
        before = store.current()
        config = AccessConfig(policy_file=tmp_path / "missing.yaml")
        with pytest.raises(FileNotFoundError):
            config.activate(store=store)
        assert store.current() is before
        assert store.generation == 0
