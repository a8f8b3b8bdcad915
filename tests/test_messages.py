"""Tests for protocol envelopes."""

import json

import pytest

from deploy_config.constants import (
    REGEXP_IS_DOMAIN,
    UPLOAD_CHUNK_DELIMITER,
    UPLOADED_FILE_MESSAGE,
)
from deploy_config.models.config import CommonServiceType
from deploy_config.models.messages import (
    MESSAGE_TYPES,
    AcceptDeleteCliMessage,
    AnyMessage,
    DeployDataMessage,
    IpCliData,
    MessageMessage,
    PrepareDeployServerMessage,
    Status,
)
from deploy_config.services.protocol import make_message, parse_message


def _envelope(kind: str, data) -> str:
    return json.dumps({
        "status": "info",
        "type": kind,
        "packageName": "deploy",
        "message": "",
        "userId": "u1",
        "data": data,
        "token": None,
        "connId": "c1",
    })


class TestMessageTypes:
    def test_every_kind_is_registered(self):
        assert len(MESSAGE_TYPES) == 26
        assert MESSAGE_TYPES["deployData"] is DeployDataMessage
        assert MESSAGE_TYPES["any"] is AnyMessage

    def test_registered_kind_matches_class(self):
        for kind, cls in MESSAGE_TYPES.items():
            assert cls.model_fields["type"].default == kind


class TestMakeMessage:
    def test_from_payload_model(self):
        envelope = make_message("ipCli", IpCliData(ip="10.0.0.1"), user_id="u1", conn_id="c1")
        assert envelope.type == "ipCli"
        assert envelope.data.ip == "10.0.0.1"
        assert envelope.user_id == "u1"
        assert envelope.status == Status.INFO

    def test_from_dict(self):
        envelope = make_message(
            "message", {"msg": "Deploying", "end": False}, status=Status.WARN
        )
        assert isinstance(envelope, MessageMessage)
        assert envelope.data.msg == "Deploying"
        assert envelope.status == Status.WARN

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown message type"):
            make_message("uploadEverything", {})

    def test_wrong_payload_shape(self):
        with pytest.raises(ValueError):
            make_message("ipCli", {"address": "10.0.0.1"})

    def test_to_json_uses_wire_names(self):
        envelope = make_message("ipCli", {"ip": "10.0.0.1"}, package_name="shop", conn_id="c1")
        raw = json.loads(envelope.to_json())
        assert raw["type"] == "ipCli"
        assert raw["packageName"] == "shop"
        assert raw["connId"] == "c1"
        assert raw["data"] == {"ip": "10.0.0.1"}


class TestParseMessage:
    def test_round_trip(self):
        envelope = make_message(
            "acceptDeleteCli",
            {"containerName": "c", "serviceName": "db", "serviceType": "postgres"},
        )
        parsed = parse_message(envelope.to_json())
        assert isinstance(parsed, AcceptDeleteCliMessage)
        assert parsed.data.service_type == CommonServiceType.POSTGRES

    def test_deploy_data(self):
        data = {
            "services": [{"type": "node", "tags": ["20"]}],
            "sizes": [{"name": "pico", "memory": {"value": 128}, "ports": 1}],
            "baseValue": 1024,
            "baseCost": 1,
        }
        parsed = parse_message(_envelope("deployData", data))
        assert isinstance(parsed, DeployDataMessage)
        assert parsed.data.base_value == 1024
        assert parsed.data.size("pico").ports == 1

    def test_any_message_keeps_data(self):
        parsed = parse_message(_envelope("any", {"whatever": [1, 2]}))
        assert isinstance(parsed, AnyMessage)
        assert parsed.data == {"whatever": [1, 2]}

    def test_bytes_input(self):
        parsed = parse_message(_envelope("ipCli", {"ip": "1.1.1.1"}).encode("utf-8"))
        assert parsed.data.ip == "1.1.1.1"

    def test_invalid_json(self):
        assert parse_message("{not json") is None

    def test_unknown_kind(self):
        assert parse_message(_envelope("teleport", {})) is None

    def test_not_an_object(self):
        assert parse_message("[1, 2, 3]") is None

    def test_data_does_not_match_kind(self):
        assert parse_message(_envelope("logs", {"text": "x"})) is None

    def test_interactive_old_spelling(self):
        """Older clients send "interractive"; both spellings are read."""
        data = {
            "projectDeleted": False,
            "config": {"name": "shop", "services": {}},
            "volumes": {},
            "interractive": True,
        }
        parsed = parse_message(_envelope("prepareDeployServer", data))
        assert isinstance(parsed, PrepareDeployServerMessage)
        assert parsed.data.interactive is True

    def test_interactive_current_spelling(self):
        data = {
            "projectDeleted": True,
            "config": {"name": "shop"},
            "interactive": False,
        }
        parsed = parse_message(_envelope("prepareDeployServer", data))
        assert parsed.data.interactive is False
        assert parsed.data.project_deleted is True


class TestProtocolConstants:
    def test_uploaded_marker_starts_with_delimiter(self):
        assert UPLOADED_FILE_MESSAGE.startswith(UPLOAD_CHUNK_DELIMITER)

    def test_domain_pattern(self):
        assert REGEXP_IS_DOMAIN.search("shop.example.com")
        assert not REGEXP_IS_DOMAIN.search("localhost")
