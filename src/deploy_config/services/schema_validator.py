"""Structural check of a raw deploy config document by JSON Schema."""

import json
from functools import lru_cache
from pathlib import Path

import jsonschema

_SCHEMA_PATH = Path(__file__).parent.parent / "schemas" / "config.schema.json"


@lru_cache
def _load_schema() -> dict:
    return json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))


def validate_config_document(document: dict) -> list[str]:
    """Validate field types of a raw config document.

    Returns a list of errors (empty if the document is well-formed).
    Required fields are not enforced here; the config validator reports
    them as findings.
    """
    validator = jsonschema.Draft7Validator(_load_schema())
    errors = sorted(validator.iter_errors(document), key=lambda e: list(map(str, e.path)))
    return [_format_error(e) for e in errors]


def _format_error(error: jsonschema.ValidationError) -> str:
    path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
    return f"{path}: {error.message}"
