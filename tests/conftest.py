import json
from pathlib import Path

import pytest

from deploy_config.models.deploy_data import DeployData
from helpers import FakeFileSystem

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def deploy_data() -> DeployData:
    raw = json.loads((FIXTURES / "deploy_data.json").read_text(encoding="utf-8"))
    return DeployData.model_validate(raw)


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    return FakeFileSystem()
