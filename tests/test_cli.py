import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from deploy_config.cli import cli
from helpers import custom_service, postgres_service

FIXTURES = Path(__file__).parent / "fixtures"
DEPLOY_DATA = FIXTURES / "deploy_data.json"
VALID_CONFIG = FIXTURES / "configs" / "valid_config.yaml"


def _write_config(path: Path, services: dict, name: str = "shop") -> Path:
    path.write_text(
        yaml.safe_dump({"name": name, "services": services}, sort_keys=False),
        encoding="utf-8",
    )
    return path


def test_cli_help():
    """The root command lists every subcommand."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("check", "volumes", "cost", "git"):
        assert command in result.output


def test_check_help():
    runner = CliRunner()
    result = runner.invoke(cli, ["check", "--help"])
    assert result.exit_code == 0
    assert "--config" in result.output
    assert "--deploy-data" in result.output
    assert "--server" in result.output


class TestCheckCommand:
    def test_valid_config(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "-c", str(VALID_CONFIG), "-d", str(DEPLOY_DATA)])
        assert result.exit_code == 0, result.output
        assert "Config is valid." in result.output

    def test_alias(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["c", "-c", str(VALID_CONFIG), "-d", str(DEPLOY_DATA)])
        assert result.exit_code == 0, result.output

    def test_fatal_finding(self, tmp_path):
        config = _write_config(tmp_path / "deploy.yaml", {"app": custom_service(size="huge")})
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "-c", str(config), "-d", str(DEPLOY_DATA)])
        assert result.exit_code == 1
        assert "ERROR: Size 'huge' doesn't allowed" in result.output
        assert "Config is not valid" in result.output

    def test_advisory_only(self, tmp_path):
        config = _write_config(tmp_path / "deploy.yaml", {"app": custom_service(version="14")})
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "-c", str(config), "-d", str(DEPLOY_DATA)])
        assert result.exit_code == 0, result.output
        assert "WARNING: Version \"14\"" in result.output
        assert "Config is valid." in result.output

    def test_server_context_skips_local_files(self, tmp_path):
        service = custom_service(volumes=["./missing.conf:/etc/missing.conf"])
        config = _write_config(tmp_path / "deploy.yaml", {"app": service})
        runner = CliRunner()

        client = runner.invoke(cli, ["check", "-c", str(config), "-d", str(DEPLOY_DATA)])
        server = runner.invoke(cli, ["check", "-c", str(config), "-d", str(DEPLOY_DATA), "--server"])

        assert client.exit_code == 1
        assert "Local path is not exists" in client.output
        assert server.exit_code == 0, server.output

    def test_default_config_file(self, tmp_path, monkeypatch):
        _write_config(tmp_path / "deploy.yml", {"app": custom_service()})
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "-d", str(DEPLOY_DATA)])
        assert result.exit_code == 0, result.output

    def test_no_config_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "-d", str(DEPLOY_DATA)])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_wrong_field_types(self):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "check", "-c", str(FIXTURES / "configs" / "wrong_types.yaml"), "-d", str(DEPLOY_DATA),
        ])
        assert result.exit_code == 1
        assert "has wrong field types" in result.output

    def test_not_a_mapping(self):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "check", "-c", str(FIXTURES / "configs" / "not_mapping.yaml"), "-d", str(DEPLOY_DATA),
        ])
        assert result.exit_code == 1
        assert "must contain a mapping" in result.output

    def test_invalid_yaml(self, tmp_path):
        config = tmp_path / "deploy.yaml"
        config.write_text("name: [unclosed", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "-c", str(config), "-d", str(DEPLOY_DATA)])
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output

    def test_unreadable_deploy_data(self, tmp_path):
        deploy_data = tmp_path / "deploy_data.json"
        deploy_data.write_text("{broken", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "-c", str(VALID_CONFIG), "-d", str(deploy_data)])
        assert result.exit_code == 1
        assert "Deploy data didn't receive from server" in result.output


class TestVolumesCommand:
    def test_local_volumes(self, tmp_path):
        services = {
            "app": custom_service(volumes=["./a.conf:/etc/a.conf"]),
            "db": postgres_service(),
        }
        config = _write_config(tmp_path / "deploy.yaml", services)
        out = tmp_path / "out" / "deploy.yaml"
        map_out = tmp_path / "out" / "volumes.json"

        runner = CliRunner()
        result = runner.invoke(cli, [
            "volumes", "-c", str(config), "-u", "u1", "-o", str(out), "-m", str(map_out),
        ])

        assert result.exit_code == 0, result.output
        written = yaml.safe_load(out.read_text(encoding="utf-8"))
        assert written["services"]["app"]["volumes"] == ["./a.conf:/etc/a.conf"]
        assert "volumes" not in written["services"]["db"]
        assert json.loads(map_out.read_text(encoding="utf-8")) == {"app": []}

    def test_replay(self, tmp_path):
        remote = "https://example.com/conf/a.conf:/etc/a.conf"
        service = custom_service(volumes=["/tmp/u1_shop_app_a.conf:/etc/a.conf"])
        config = _write_config(tmp_path / "deploy.yaml", {"app": service})
        volume_map = tmp_path / "volumes.json"
        volume_map.write_text(json.dumps({"app": [remote]}), encoding="utf-8")
        out = tmp_path / "restored.yaml"

        runner = CliRunner()
        result = runner.invoke(cli, [
            "v", "-c", str(config), "-r", str(volume_map), "-o", str(out),
        ])

        assert result.exit_code == 0, result.output
        written = yaml.safe_load(out.read_text(encoding="utf-8"))
        assert written["services"]["app"]["volumes"] == [remote]

    def test_missing_user_id(self, tmp_path):
        config = _write_config(tmp_path / "deploy.yaml", {"app": custom_service()})
        runner = CliRunner()
        result = runner.invoke(cli, ["volumes", "-c", str(config), "-o", str(tmp_path / "o.yaml")])
        assert result.exit_code == 1
        assert "User id is missing" in result.output

    def test_invalid_replay_map(self, tmp_path):
        config = _write_config(tmp_path / "deploy.yaml", {"app": custom_service()})
        volume_map = tmp_path / "volumes.json"
        volume_map.write_text("{broken", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, [
            "volumes", "-c", str(config), "-r", str(volume_map), "-o", str(tmp_path / "o.yaml"),
        ])
        assert result.exit_code == 1
        assert "Invalid JSON in volume map" in result.output

    def test_replay_map_not_an_object(self, tmp_path):
        config = _write_config(tmp_path / "deploy.yaml", {"app": custom_service()})
        volume_map = tmp_path / "volumes.json"
        volume_map.write_text(json.dumps(["./a.conf:/etc/a.conf"]), encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, [
            "volumes", "-c", str(config), "-r", str(volume_map), "-o", str(tmp_path / "o.yaml"),
        ])
        assert result.exit_code == 1
        assert "must be an object" in result.output
        assert not (tmp_path / "o.yaml").exists()


class TestCostCommand:
    def test_known_size(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["cost", "-d", str(DEPLOY_DATA), "micro"])
        assert result.exit_code == 0, result.output
        assert "month: 42" in result.output
        assert f"hour: {42 / 720:.4f}" in result.output

    def test_half_month_rounds_up(self):
        """pico: 128 / (1024 / 100) = 12.5"""
        runner = CliRunner()
        result = runner.invoke(cli, ["cost", "-d", str(DEPLOY_DATA), "pico"])
        assert result.exit_code == 0, result.output
        assert "month: 13" in result.output

    def test_unknown_size(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["cost", "-d", str(DEPLOY_DATA), "mega"])
        assert result.exit_code == 1
        assert "Allowed sizes: pico|nano|micro" in result.output


class TestGitCommand:
    def test_github_url(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["git", "https://github.com/acme/app.git"])
        assert result.exit_code == 0, result.output
        assert "host: github" in result.output
        assert "user: acme" in result.output
        assert "project: app" in result.output

    def test_unsupported_host(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["git", "https://bitbucket.org/x/y"])
        assert result.exit_code == 1
        assert "Unsupported git host" in result.output

    def test_url_without_project(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["git", "https://github.com"])
        assert result.exit_code == 1
        assert "Could not find user and project" in result.output
