"""Models for the YAML deploy config.

This file describes the structure of the config file a user keeps next to
the project (deploy.yaml). Fields are intentionally permissive: type and
value problems are reported by the config validator as findings, so the
models only have to hold what was written.

Example:
    name: my-project
    services:
      app:
        active: true
        type: node
        size: mili
        version: "20"
        pwd: ./
        command: npm start
        ports:
          - port: 3000
            type: http
        depends_on:
          - db
        environment:
          - POSTGRES_PASSWORD=secret
      db:
        active: true
        type: postgres
        size: mili
        version: "16"
        environment:
          - POSTGRES_PASSWORD=secret
          - POSTGRES_USER=user
          - POSTGRES_DB=app
"""

from enum import Enum

from pydantic import BaseModel


class CustomServiceType(str, Enum):
    """Services built from user code."""

    NODE = "node"
    RUST = "rust"
    PYTHON = "python"
    GOLANG = "golang"
    PHP = "php"


class CommonServiceType(str, Enum):
    """Pre-built infrastructure services selected by type."""

    REDIS = "redis"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    MARIADB = "mariadb"
    MONGO = "mongo"
    RABBITMQ = "rabbitmq"
    ADMINER = "adminer"
    PHPMYADMIN = "phpmyadmin"
    PGADMIN = "pgadmin"
    MONGO_EXPRESS = "mongo_express"


ServiceType = CustomServiceType | CommonServiceType

# Common services that may expose public ports
COMMON_PUBLIC_TYPES = frozenset({
    CommonServiceType.ADMINER,
    CommonServiceType.PHPMYADMIN,
    CommonServiceType.PGADMIN,
    CommonServiceType.MONGO_EXPRESS,
})

SERVICE_TYPES: tuple[str, ...] = tuple(
    t.value for t in (*CommonServiceType, *CustomServiceType)
)


def parse_service_type(value: str | None) -> ServiceType | None:
    """Narrow a raw type string to exactly one of the two service kinds.

    parse_service_type("node")     → CustomServiceType.NODE
    parse_service_type("postgres") → CommonServiceType.POSTGRES
    parse_service_type("java")     → None
    """
    if value is None:
        return None
    for enum in (CustomServiceType, CommonServiceType):
        try:
            return enum(value)
        except ValueError:
            continue
    return None


def is_custom_service(value: str | None) -> CustomServiceType | None:
    service_type = parse_service_type(value)
    return service_type if isinstance(service_type, CustomServiceType) else None


def is_common_service(value: str | None) -> CommonServiceType | None:
    service_type = parse_service_type(value)
    return service_type if isinstance(service_type, CommonServiceType) else None


def is_common_service_public(value: str | None) -> CommonServiceType | None:
    service_type = is_common_service(value)
    return service_type if service_type in COMMON_PUBLIC_TYPES else None


class PortType(str, Enum):
    HTTP = "http"
    WS = "ws"
    CHUNKED = "chunked"
    PHP = "php"


class GitUntrackedPolicy(str, Enum):
    """What to do with untracked files when deploying from git."""

    CHECKOUT = "checkout"
    PUSH = "push"
    MERGE = "merge"


class GitHost(str, Enum):
    GITHUB = "github"
    GITLAB = "gitlab"


_MODEL_CONFIG = {"populate_by_name": True, "coerce_numbers_to_str": True}


class StaticConfig(BaseModel):
    """Static files served directly from a port.

    Example:
        static:
          - location: /static
            path: ./public
            index: index.html
    """

    location: str | None = None
    path: str | None = None
    index: str | None = None

    model_config = _MODEL_CONFIG


class PortConfig(BaseModel):
    """One exposed port of a custom service.

    port is kept as written (int or str) so that a non-integer value
    becomes a finding instead of a parse failure.
    """

    port: int | str
    type: str = PortType.HTTP.value
    location: str | None = None
    timeout: str | None = None
    buffer_size: str | None = None
    proxy_path: str | None = None
    static: list[StaticConfig] | None = None

    model_config = _MODEL_CONFIG


class GitConfig(BaseModel):
    """Deploy a custom service from a git repository instead of a tarball."""

    url: str | None = None
    branch: str | None = None
    untracked: str | None = None

    model_config = _MODEL_CONFIG


class ServerConfig(BaseModel):
    """Dedicated node to deploy onto."""

    node_name: str | None = None
    api_key: str | None = None

    model_config = _MODEL_CONFIG


class ServiceConfig(BaseModel):
    """One service in the config."""

    active: bool = False
    type: str | None = None
    size: str | None = None
    version: str | None = None
    no_restart: bool | None = None
    pwd: str | None = None
    git: GitConfig | None = None
    exclude: list[str] | None = None
    command: str | None = None
    ports: list[PortConfig] | None = None
    volumes: list[str] | None = None
    depends_on: list[str] | None = None
    domains: dict[str, str] | None = None
    environment: list[str] | None = None

    model_config = _MODEL_CONFIG

    @property
    def service_type(self) -> ServiceType | None:
        return parse_service_type(self.type)

    @property
    def is_public(self) -> bool:
        return bool(self.ports)


class ConfigFile(BaseModel):
    """Root model of the deploy config.

    name and services are required by the validator, not by the model,
    so a document missing them still loads and yields a structural finding.
    """

    name: str | None = None
    server: ServerConfig | None = None
    services: dict[str, ServiceConfig] | None = None

    model_config = _MODEL_CONFIG

    def to_document(self) -> dict:
        """Dump back to the plain form written in deploy.yaml."""
        return self.model_dump(mode="json", exclude_none=True)

