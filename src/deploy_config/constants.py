"""Fixed limits, patterns and tables shared by the validator and resolver."""

import re

PACKAGE_NAME = "deploy"

# ─── Limits ──────────────────────────────────────────────

BUFFER_SIZE_MAX = 512
COUNT_OF_VOLUMES_MAX = 10
DOMAIN_MAX_LENGTH = 77
PORT_MIN = 1
PORT_MAX = 65535
VOLUME_UPLOAD_MAX_SIZE = 100000

PWD_DEFAULT = "./"
DEFAULT_LOCATION = "/"
VERSION_LATEST = "latest"

# ─── Volumes ─────────────────────────────────────────────

# "[http(s)://]local/path:/remote/path"
VOLUME_HTTP_PREFIX_REGEX = re.compile(r"^https?://")
VOLUME_LOCAL_REGEX = re.compile(r"^[/a-zA-Z0-9.\-_]+:")
VOLUME_REMOTE_REGEX = re.compile(r":[/a-zA-Z0-9.\-_]+$")
VOLUME_FILENAME_REGEX = re.compile(r"/?[a-zA-Z_0-9\-.]+$")

# ─── Ports ───────────────────────────────────────────────

PORT_TIMEOUT_REGEX = re.compile(r"^[0-9]+[a-zA-Z]{1,2}$")
PORT_TIMEOUT_POSTFIXES = ("ms", "s", "m", "h", "d", "w", "M", "y")
PORT_BUFFER_SIZE_REGEX = re.compile(r"^([0-9]+)k$")

LOCATION_ALLOWED_REGEX = re.compile(r"^[/0-9A-Za-z\-_]+$")
LOCATION_START_REGEX = re.compile(r"^/")
LOCATION_DOUBLE_SLASH_REGEX = re.compile(r"/{2,}")
STATIC_INDEX_REGEX = re.compile(r"[a-zA-Z0-9.\-_]")

PWD_NAME_REGEX = re.compile(r"[a-zA-Z0-9_-]+")

# ─── Environment ─────────────────────────────────────────

ENVIRONMENT_NAME_REGEX = re.compile(r"^([A-Za-z0-9_]+)=")

REDIS_PASSWORD = "REDIS_PASSWORD"
MYSQL_ROOT_PASSWORD = "MYSQL_ROOT_PASSWORD"
MARIADB_ROOT_PASSWORD = "MARIADB_ROOT_PASSWORD"

# Variables a common service must declare when it is active.
# Keys are CommonServiceType values.
ENVIRONMENT_REQUIRED_COMMON: dict[str, tuple[str, ...]] = {
    "redis": (REDIS_PASSWORD,),
    "postgres": ("POSTGRES_PASSWORD", "POSTGRES_USER", "POSTGRES_DB"),
    "adminer": (),
    "mysql": (MYSQL_ROOT_PASSWORD, "MYSQL_USER", "MYSQL_PASSWORD", "MYSQL_DATABASE"),
    "mariadb": (
        MARIADB_ROOT_PASSWORD,
        "MARIADB_USER",
        "MARIADB_PASSWORD",
        "MARIADB_DATABASE",
    ),
    "mongo": ("MONGO_INITDB_ROOT_USERNAME", "MONGO_INITDB_ROOT_PASSWORD"),
    "rabbitmq": ("RABBITMQ_DEFAULT_PASS", "RABBITMQ_DEFAULT_USER"),
    "phpmyadmin": (),
    "pgadmin": ("PGADMIN_DEFAULT_PASSWORD", "PGADMIN_DEFAULT_EMAIL"),
    "mongo_express": (
        "ME_CONFIG_BASICAUTH_USERNAME",
        "ME_CONFIG_BASICAUTH_PASSWORD",
        "ME_CONFIG_MONGODB_AUTH_USERNAME",
        "ME_CONFIG_MONGODB_AUTH_PASSWORD",
    ),
}

# Dependent custom services are not expected to repeat these.
ENVIRONMENT_MIRROR_EXEMPT = frozenset({MYSQL_ROOT_PASSWORD})

# ─── Git ─────────────────────────────────────────────────

GIT_HOSTS = {
    "github": "https://github.com",
    "gitlab": "https://gitlab.com",
}

# ─── Protocol ────────────────────────────────────────────

DEFAULT_WEBSOCKET_ADDRESS = "wss://ws.conhos.ru"
PROTOCOL_CLI = "cli"
HEADER_CONN_ID = "conn-id"
HEADER_TARBALL = "tar"
UPLOAD_CHUNK_DELIMITER = "<[rn]>"
UPLOADED_FILE_MESSAGE = f"{UPLOAD_CHUNK_DELIMITER}Uploaded"
LOG_END_MESSAGE = ""
# milliseconds
UPLOAD_REQUEST_TIMEOUT = 1000 * 60 * 20 * 100
LOGS_REQUEST_TIMEOUT = 1000 * 60 * 20 * 100
REGEXP_IS_DOMAIN = re.compile(r"[a-zA-Z0-9\-]+\.[a-zA-Z0-9]+$")

# ─── Pricing ─────────────────────────────────────────────

# Each step down the size list lowers the unit price by 1/13
PRICE_SHIFT_DIVISOR = 13
HOURS_IN_MONTH = 30 * 24
