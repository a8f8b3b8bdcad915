import json
from pathlib import Path

import yaml
from pydantic import ValidationError

from deploy_config.constants import PACKAGE_NAME
from deploy_config.errors import ConfigLoadError
from deploy_config.models.config import ConfigFile
from deploy_config.models.deploy_data import DeployData
from deploy_config.utils.logging import get_logger

logger = get_logger(__name__)


def find_config_file(cwd: Path) -> Path:
    """deploy.yaml in cwd, or deploy.yml when the former does not exist."""
    path = cwd / f"{PACKAGE_NAME}.yaml"
    if not path.exists():
        path = path.with_suffix(".yml")
    return path


def load_config_document(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"Config file {path} must contain a mapping", {"path": str(path)})
    return raw


def load_config_file(path: Path) -> ConfigFile:
    return ConfigFile.model_validate(load_config_document(path))


def load_deploy_data(path: Path) -> DeployData | None:
    """Read the server catalog.

    An unreadable or malformed catalog is logged and treated as missing,
    so the validator reports that deploy data was not received.
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        return DeployData.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("deploy_data_load_failed", path=str(path), error=str(e))
        return None
