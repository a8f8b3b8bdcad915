import json
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from deploy_config.errors import ConfigLoadError
from deploy_config.models.config import ConfigFile
from deploy_config.models.findings import has_fatal
from deploy_config.services.config_loader import (
    find_config_file,
    load_config_document,
    load_deploy_data,
)
from deploy_config.services.config_validator import ValidationContext, validate_config
from deploy_config.services.cost import compute_cost_service
from deploy_config.services.git import classify_git_url, parse_git_url
from deploy_config.services.schema_validator import validate_config_document
from deploy_config.services.volumes import resolve_volumes
from deploy_config.utils.logging import configure_logging


class AliasedGroup(click.Group):
    _aliases = {"c": "check", "v": "volumes"}

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, self._aliases.get(cmd_name, cmd_name))


@click.group(cls=AliasedGroup)
def cli():
    """Deploy config validator and volume resolver."""
    configure_logging()


@cli.command("check")
@click.option("--config", "-c", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="Path to deploy config (default: ./deploy.yaml or ./deploy.yml)")
@click.option("--deploy-data", "-d", "deploy_data_path", required=True, type=click.Path(exists=True, path_type=Path), help="Server catalog JSON file")
@click.option("--server", "is_server", is_flag=True, default=False, help="Validate in server context (skip local volume checks)")
def check(config_path, deploy_data_path, is_server):
    """Validate a deploy config against the server catalog."""
    config = _load_config(config_path or find_config_file(Path.cwd()))
    deploy_data = load_deploy_data(deploy_data_path)
    context = ValidationContext.SERVER if is_server else ValidationContext.CLIENT

    results = validate_config(config, deploy_data, context=context)

    for result in results:
        level = "ERROR" if result.exit else "WARNING"
        click.echo(f"{level}: {result.msg} {result.data}".rstrip(), err=True)

    if has_fatal(results):
        raise click.ClickException("Config is not valid")
    click.echo("Config is valid.")


@cli.command("volumes")
@click.option("--config", "-c", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="Path to deploy config")
@click.option("--user", "-u", "user_id", default=None, help="User id used to namespace materialized files")
@click.option("--out", "-o", required=True, type=click.Path(path_type=Path), help="Output YAML file for the rewritten config")
@click.option("--map", "-m", "map_out", default=None, type=click.Path(path_type=Path), help="Output JSON file for the original remote volumes")
@click.option("--replay", "-r", "replay_path", default=None, type=click.Path(exists=True, path_type=Path), help="Re-apply a volume map instead of downloading")
def volumes(config_path, user_id, out, map_out, replay_path):
    """Materialize remotely hosted volumes of a deploy config."""
    config = _load_config(config_path or find_config_file(Path.cwd()))

    replay = None
    if replay_path:
        try:
            replay = json.loads(Path(replay_path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON in volume map {replay_path}: {e}")
        if not isinstance(replay, dict):
            raise click.ClickException(
                f"Volume map {replay_path} must be an object of service name → volume list"
            )

    resolution = resolve_volumes(config, user_id, replay)
    if resolution.error:
        raise click.ClickException(resolution.error)

    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        yaml.safe_dump(resolution.config.to_document(), f, sort_keys=False, allow_unicode=True)
    click.echo(f"Config written to {out}")

    if map_out:
        map_out.parent.mkdir(parents=True, exist_ok=True)
        with open(map_out, "w", encoding="utf-8") as f:
            json.dump(resolution.volumes or {}, f, indent=2, ensure_ascii=False)
        click.echo(f"Volume map written to {map_out}")


@cli.command("cost")
@click.option("--deploy-data", "-d", "deploy_data_path", required=True, type=click.Path(exists=True, path_type=Path), help="Server catalog JSON file")
@click.argument("size")
def cost(deploy_data_path, size):
    """Print the price of a service size."""
    deploy_data = load_deploy_data(deploy_data_path)
    if deploy_data is None:
        raise click.ClickException(f"Could not read deploy data from {deploy_data_path}")

    price = compute_cost_service(size, deploy_data)
    if price is None:
        raise click.ClickException(
            f"Unknown size '{size}'. Allowed sizes: {'|'.join(deploy_data.size_names())}"
        )
    click.echo(f"month: {price.month}")
    click.echo(f"hour: {price.hour:.4f}")
    click.echo(f"minute: {price.minute:.6f}")


@cli.command("git")
@click.argument("url")
def git(url):
    """Show the host, user and project of a git repository URL."""
    host = classify_git_url(url)
    if host is None:
        raise click.ClickException(f"Unsupported git host in '{url}'")
    repo = parse_git_url(url)
    if repo is None:
        raise click.ClickException(f"Could not find user and project in '{url}'")
    click.echo(f"host: {host.value}")
    click.echo(f"user: {repo.user}")
    click.echo(f"project: {repo.project}")


def _load_config(config_path: Path) -> ConfigFile:
    if not config_path.exists():
        raise click.ClickException(f"Config file not found: {config_path}")
    try:
        document = load_config_document(config_path)
    except yaml.YAMLError as e:
        raise click.ClickException(f"Invalid YAML in config file {config_path}: {e}")
    except ConfigLoadError as e:
        raise click.ClickException(e.message)

    errors = validate_config_document(document)
    if errors:
        for error in errors:
            click.echo(f"  - {error}", err=True)
        raise click.ClickException(f"Config file {config_path} has wrong field types")

    try:
        return ConfigFile.model_validate(document)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise click.ClickException(f"Config validation error in {config_path}: {errors}")
