"""Tests for the asset-access command-line interface."""
from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from aumos_asset_access.cli.main import cli
from aumos_asset_access.policy.defaults import default_matrix_dict


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


class TestCLIVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "aumos-asset-access" in result.output


class TestCLICheck:
    def test_allowed_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check", "-r", "admin", "-a", "delete", "-R", "clients"])
        assert result.exit_code == 0
        assert "ALLOWED" in result.output

    def test_denied_exits_one(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check", "-r", "technician", "-a", "create", "-R", "clients"])
        assert result.exit_code == 1
        assert "DENIED" in result.output

    def test_instance_level(self, runner: CliRunner) -> None:
        base = ["check", "-r", "client", "--client-id", "C1", "-a", "read", "-R", "licenses"]
        assert runner.invoke(cli, base + ["--record-client-id", "C1"]).exit_code == 0
        assert runner.invoke(cli, base + ["--record-client-id", "C2"]).exit_code == 1

    def test_unknown_resource_rejected(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["check", "-r", "admin", "-a", "read", "-R", "licences"])
        assert result.exit_code == 2


class TestCLIScope:
    def test_unrestricted(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["scope", "-r", "technician", "-R", "equipment"])
        assert result.exit_code == 0
        assert "UNRESTRICTED" in result.output

    def test_restricted(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["scope", "-r", "client", "--client-id", "C1", "-R", "equipment"])
        assert result.exit_code == 0
        assert "RESTRICTED" in result.output
        assert "C1" in result.output

    def test_denied_without_client(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["scope", "-r", "client", "-R", "equipment"])
        assert result.exit_code == 1
        assert "DENIED" in result.output


class TestCLISummary:
    def test_client_summary(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["summary", "-r", "client", "--client-id", "C7"])
        assert result.exit_code == 0
        assert "client_access" in result.output
        assert "C7" in result.output


class TestCLIMatrix:
    def test_show(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["matrix", "show", "--role", "client"])
        assert result.exit_code == 0
        assert "own_client" in result.output

    def test_init_then_validate(self, runner: CliRunner, tmp_path: Path) -> None:
        output = tmp_path / "policy.yaml"
        init = runner.invoke(cli, ["matrix", "init", "--output", str(output)])
        assert init.exit_code == 0
        assert output.exists()
        result = runner.invoke(cli, ["matrix", "validate", "--file", str(output)])
        assert result.exit_code == 0
        assert "VALID" in result.output

    def test_validate_incomplete(self, runner: CliRunner, tmp_path: Path) -> None:
        data = default_matrix_dict()
        data["rules"] = data["rules"][1:]  # type: ignore[index]
        path = tmp_path / "policy.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        result = runner.invoke(cli, ["matrix", "validate", "--file", str(path)])
        assert result.exit_code == 1
        assert "INVALID" in result.output

    def test_check_with_invalid_policy_file(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "policy.yaml"
        path.write_text("rules: []\n", encoding="utf-8")
        result = runner.invoke(
            cli, ["check", "-r", "admin", "-a", "read", "-R", "users", "--policy", str(path)]
        )
        assert result.exit_code == 2


class TestCLIConfig:
    @staticmethod
    def _write_policy(path: Path) -> None:
        data = default_matrix_dict()
        for rule in data["rules"]:  # type: ignore[attr-defined]
            if rule["role"] == "technician" and rule["resource"] == "licenses":
                rule["actions"] = []
        path.write_text(yaml.safe_dump(data), encoding="utf-8")

    def test_config_selects_policy_file(self, runner: CliRunner, tmp_path: Path) -> None:
        self._write_policy(tmp_path / "policy.yaml")
        config = tmp_path / "access.yaml"
        config.write_text("policy_file: policy.yaml\n", encoding="utf-8")
        args = ["check", "-r", "technician", "-a", "read", "-R", "licenses"]
        assert runner.invoke(cli, args).exit_code == 0
        result = runner.invoke(cli, args + ["--config", str(config)])
        assert result.exit_code == 1
        assert "DENIED" in result.output

    def test_missing_config_uses_defaults(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["scope", "-r", "admin", "-R", "users", "-c", str(tmp_path / "absent.yaml")]
        )
        assert result.exit_code == 0
        assert "UNRESTRICTED" in result.output

    def test_config_with_missing_policy_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "access.yaml"
        config.write_text("policy_file: nowhere.yaml\n", encoding="utf-8")
        result = runner.invoke(cli, ["matrix", "show", "-c", str(config)])
        assert result.exit_code == 2

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "access.yaml"
        config.write_text("log_level: chatty\n", encoding="utf-8")
        result = runner.invoke(cli, ["summary", "-r", "admin", "-c", str(config)])
        assert result.exit_code == 2

    def test_strict_config_applies_to_policy_option(self, runner: CliRunner, tmp_path: Path) -> None:
        data = default_matrix_dict()
        data["owner"] = "it-team"
        policy = tmp_path / "policy.yaml"
        policy.write_text(yaml.safe_dump(data), encoding="utf-8")
        config = tmp_path / "access.yaml"
        config.write_text("strict: true\n", encoding="utf-8")
        args = ["check", "-r", "admin", "-a", "read", "-R", "users", "-p", str(policy)]
        assert runner.invoke(cli, args).exit_code == 0
        assert runner.invoke(cli, args + ["-c", str(config)]).exit_code == 2
