"""Codec for environment entries written as NAME=value."""

from deploy_config.constants import ENVIRONMENT_NAME_REGEX, ENVIRONMENT_REQUIRED_COMMON


def environment_name(entry: str) -> str | None:
    """NAME part of "NAME=value", or None if the entry is malformed."""
    match = ENVIRONMENT_NAME_REGEX.match(entry)
    return match.group(1) if match else None


def environment_value(entry: str) -> str | None:
    """value part of "NAME=value", or None if the entry is malformed.

    Only the first "=" separates; the value may contain more of them.
    """
    match = ENVIRONMENT_NAME_REGEX.match(entry)
    return entry[match.end():] if match else None


def parse_environment_variable(entry: str) -> tuple[str, str] | None:
    """Split an entry into (name, value).

    An empty value counts as malformed, same as a missing name:
        "A=1"   → ("A", "1")
        "A="    → None
        "A-B=1" → None
    """
    name = environment_name(entry)
    value = environment_value(entry)
    if not name or not value:
        return None
    return name, value


def format_environment_variable(name: str, value: str) -> str:
    if not ENVIRONMENT_NAME_REGEX.match(f"{name}="):
        raise ValueError(f"Invalid environment variable name: '{name}'")
    return f"{name}={value}"


def find_environment_value(environment: list[str], name: str) -> str | None:
    """Value of the last entry named name, like a shell would see it."""
    result = None
    for entry in environment:
        if environment_name(entry) == name:
            result = environment_value(entry)
    return result


def is_required_environment(name: str) -> bool:
    """Is name required by any common service type."""
    return any(name in required for required in ENVIRONMENT_REQUIRED_COMMON.values())
