"""Cross-service validation of a deploy config against the server catalog.

validate_config never raises for problems in the config; every problem
becomes a CheckConfigResult. Fatal findings (exit=True) block the deploy,
advisory ones are printed as warnings.

Services are checked one by one in the order they are written. Within a
service all checks run, except that a missing required field (version,
pwd, git.url, ...) ends the checks of that service.

The same rules run on the user machine (ValidationContext.CLIENT) and in
the deploy server (ValidationContext.SERVER). The server has no access to
the user's files, so local volume checks only run on the client.
"""

from enum import Enum
from pathlib import PurePosixPath

from deploy_config.constants import (
    BUFFER_SIZE_MAX,
    COUNT_OF_VOLUMES_MAX,
    DEFAULT_LOCATION,
    DOMAIN_MAX_LENGTH,
    ENVIRONMENT_MIRROR_EXEMPT,
    ENVIRONMENT_REQUIRED_COMMON,
    LOCATION_ALLOWED_REGEX,
    LOCATION_DOUBLE_SLASH_REGEX,
    LOCATION_START_REGEX,
    PORT_BUFFER_SIZE_REGEX,
    PORT_MAX,
    PORT_MIN,
    PORT_TIMEOUT_POSTFIXES,
    PORT_TIMEOUT_REGEX,
    PWD_DEFAULT,
    PWD_NAME_REGEX,
    STATIC_INDEX_REGEX,
    VERSION_LATEST,
    VOLUME_LOCAL_REGEX,
    VOLUME_REMOTE_REGEX,
    VOLUME_UPLOAD_MAX_SIZE,
)
from deploy_config.models.config import (
    COMMON_PUBLIC_TYPES,
    SERVICE_TYPES,
    CommonServiceType,
    ConfigFile,
    CustomServiceType,
    GitUntrackedPolicy,
    PortConfig,
    PortType,
    ServiceConfig,
    is_common_service_public,
    is_custom_service,
)
from deploy_config.models.deploy_data import DeployData, check_version
from deploy_config.models.findings import CheckConfigResult, partition_findings
from deploy_config.services.environment import (
    environment_name,
    find_environment_value,
    parse_environment_variable,
)
from deploy_config.services.filesystem import FileSystem, get_filesystem
from deploy_config.services.git import classify_git_url, parse_git_url
from deploy_config.services.volumes import is_absolute_remote, parse_volume
from deploy_config.utils.logging import get_logger

logger = get_logger(__name__)

Services = dict[str, ServiceConfig]

_CUSTOM_TYPES = "|".join(t.value for t in CustomServiceType)
_PUBLIC_CAPABLE_TYPES = "|".join(
    [t.value for t in CustomServiceType]
    + [t.value for t in CommonServiceType if t in COMMON_PUBLIC_TYPES]
)


class ValidationContext(str, Enum):
    """Where the validation runs."""

    CLIENT = "client"
    SERVER = "server"


def _fatal(msg: str, data: str = "") -> CheckConfigResult:
    return CheckConfigResult(msg=msg, data=data, exit=True)


def _advice(msg: str, data: str = "") -> CheckConfigResult:
    return CheckConfigResult(msg=msg, data=data, exit=False)


def validate_config(
    config: ConfigFile,
    deploy_data: DeployData | None,
    *,
    context: ValidationContext = ValidationContext.CLIENT,
    filesystem: FileSystem | None = None,
) -> list[CheckConfigResult]:
    """Check config and return findings, advisories first.

    A missing catalog, a server section without node_name, or missing or
    empty services produce a single fatal finding and nothing else.
    """
    if deploy_data is None:
        return [_fatal("Something went wrong", "Deploy data didn't receive from server")]

    if config.server is not None and not config.server.node_name:
        return [_fatal('Property is required for parameter "server"', "node_name")]

    if config.services is None:
        return [_fatal("Required field is missing", "services")]

    if not config.services:
        return [_fatal("Services list can not be empty", "Add at least one service")]

    if not config.name:
        return [_fatal("Required field is missing", "name")]

    fs = filesystem or get_filesystem()

    results: list[CheckConfigResult] = []
    for name, service in config.services.items():
        results.extend(
            _check_service(name, service, config.services, deploy_data, context, fs)
        )
    return partition_findings(results)


def _check_service(
    name: str,
    service: ServiceConfig,
    services: Services,
    deploy_data: DeployData,
    context: ValidationContext,
    fs: FileSystem,
) -> list[CheckConfigResult]:
    res: list[CheckConfigResult] = []

    res.extend(_check_name(name))
    res.extend(_check_type(name, service))
    res.extend(_check_public_ports(name, service))
    res.extend(_check_volumes(name, service, context, fs))

    if not service.version:
        res.append(_fatal(
            f"Version doesn't exists in service \"{name}\"",
            "Try to add the field version to the config file",
        ))
        return res

    res.extend(_check_size(name, service, deploy_data))
    res.extend(_check_version(name, service, deploy_data))

    service_type = service.service_type
    if isinstance(service_type, CustomServiceType):
        res.extend(_check_custom_service(name, service, services, deploy_data))
    elif isinstance(service_type, CommonServiceType):
        res.extend(_check_common_service(name, service, service_type, services))

    return res


# ─── Checks shared by all services ───────────────────────


def _check_name(name: str) -> list[CheckConfigResult]:
    if "%" in name:
        return [_fatal("Service name contains the not allowed symbol: '%'", f'"{name}"')]
    return []


def _check_type(name: str, service: ServiceConfig) -> list[CheckConfigResult]:
    if service.service_type is None:
        return [_fatal(
            f'Service type "{service.type}" is not allowed',
            f"Allowed service types: [{'|'.join(SERVICE_TYPES)}]",
        )]
    return []


def _check_public_ports(name: str, service: ServiceConfig) -> list[CheckConfigResult]:
    service_type = service.service_type
    if (
        service.is_public
        and isinstance(service_type, CommonServiceType)
        and not is_common_service_public(service_type)
    ):
        return [_fatal(
            f'Service "{name}" can not have public ports',
            f"Only services can have public ports: [{_PUBLIC_CAPABLE_TYPES}]",
        )]
    return []


def _check_size(name: str, service: ServiceConfig, deploy_data: DeployData) -> list[CheckConfigResult]:
    if deploy_data.size(service.size) is None:
        return [_fatal(
            f"Size '{service.size}' doesn't allowed in service \"{name}\"",
            f"Allowed sizes: {'|'.join(deploy_data.size_names())}",
        )]
    return []


def _check_version(name: str, service: ServiceConfig, deploy_data: DeployData) -> list[CheckConfigResult]:
    version = service.version
    if version == VERSION_LATEST or check_version(deploy_data, service.type, version):
        return []
    catalog_service = deploy_data.service(service.type)
    hub = catalog_service.hub if catalog_service and catalog_service.hub else ""
    return [_advice(
        f'Version "{version}" of service "{name}" is no longer supported',
        f"See allowed versions: {hub}tags",
    )]


def _check_volumes(
    name: str,
    service: ServiceConfig,
    context: ValidationContext,
    fs: FileSystem,
) -> list[CheckConfigResult]:
    volumes = service.volumes
    if not volumes:
        return []

    res: list[CheckConfigResult] = []
    if len(volumes) > COUNT_OF_VOLUMES_MAX:
        res.append(_fatal(
            f'Service "{name}" has too much volumes: "{len(volumes)}"',
            f"Maximum count of volumes is {COUNT_OF_VOLUMES_MAX}",
        ))

    check_local = context == ValidationContext.CLIENT
    if check_local and not fs.available:
        logger.error("filesystem_unavailable", operation="validate_config", service=name)
        check_local = False

    filenames: set[str] = set()
    for volume in volumes:
        token = parse_volume(volume)
        if token.local is None:
            res.append(_fatal(
                f'Service "{name}" has wrong volume "{volume}". '
                "Local part of volume must satisfy regex:",
                VOLUME_LOCAL_REGEX.pattern,
            ))
            continue

        # Remote-hosted sources are size-checked while they are downloaded
        if check_local and not token.is_remote_hosted:
            res.extend(_check_local_volume(name, volume, token.local, fs))

        filename = PurePosixPath(token.local).name
        if filename in filenames:
            res.append(_fatal(
                f'Service "{name}" has two or more volumes with the same file name.',
                filename,
            ))
        else:
            filenames.add(filename)

        if token.remote is None:
            res.append(_fatal(
                f'Service "{name}" has wrong volume "{volume}". '
                "Remote part of volume must satisfy regex:",
                VOLUME_REMOTE_REGEX.pattern,
            ))
            continue
        if not is_absolute_remote(token.remote):
            res.append(_fatal(
                f'Service "{name}" has wrong volume "{volume}". '
                "Remote part of volume is not absolute",
                token.remote,
            ))
    return res


def _check_local_volume(name: str, volume: str, local: str, fs: FileSystem) -> list[CheckConfigResult]:
    if not fs.exists(local):
        return [_fatal(
            f'Service "{name}" has wrong volume "{volume}". Local path is not exists:',
            local,
        )]

    res: list[CheckConfigResult] = []
    stat = fs.stat(local)
    if stat.is_directory:
        res.append(_fatal(
            f'Service "{name}" has wrong volume "{volume}".',
            "Directory can't be a volume, only files",
        ))
    if stat.size > VOLUME_UPLOAD_MAX_SIZE:
        res.append(_fatal(
            f"Volume file '{local}' of service \"{name}\" is too big.",
            f"Maximum size of volume file is: {VOLUME_UPLOAD_MAX_SIZE // 1000}kb",
        ))
    return res


# ─── Custom services ─────────────────────────────────────


def _check_custom_service(
    name: str,
    service: ServiceConfig,
    services: Services,
    deploy_data: DeployData,
) -> list[CheckConfigResult]:
    res: list[CheckConfigResult] = []

    pwd = service.pwd
    if not pwd:
        return [_fatal(f"Required parameter 'pwd' is missing in service \"{name}\"", f'"{name}"')]
    if PurePosixPath(pwd).is_absolute():
        return [_fatal(f"Parameter 'pwd' must be relative in service \"{name}\"", pwd)]
    if not PWD_NAME_REGEX.search(pwd) and pwd != PWD_DEFAULT:
        res.append(_fatal(f"Default parameter 'pwd' must be '{PWD_DEFAULT}' in service \"{name}\"", pwd))

    if service.git is not None:
        git_results, git_ok = _check_git(name, service)
        res.extend(git_results)
        if not git_ok:
            return res

    ports = service.ports or []
    size = deploy_data.size(service.size)
    if size is not None and len(ports) > size.ports:
        res.append(_fatal(
            f'Maximum port length for service "{name}" with size "{service.size}" is {size.ports}',
            f'Decrease count of ports at least to "{size.ports}" or set up a bigger service size',
        ))

    for port in ports:
        res.extend(_check_port(name, port))

    for domain in (service.domains or {}).values():
        if len(domain) > DOMAIN_MAX_LENGTH:
            res.append(_fatal(
                f"Maximum allowed domain length is {DOMAIN_MAX_LENGTH}. "
                f"Passed domain is too long: {len(domain)}",
                domain,
            ))

    for entry in service.environment or []:
        if parse_environment_variable(entry) is None:
            res.append(_fatal(
                f"Environment variable {entry} has wrong format",
                f"Try use NAME=value instead of {entry}",
            ))

    if service.active:
        for dependency in service.depends_on or []:
            target = services.get(dependency)
            if target is None or not target.active:
                res.append(_fatal(
                    f'Service "{name}" depends on of missing service "{dependency}"',
                    f"Try remove 'depends_on' item \"{dependency}\" from service \"{name}\", "
                    f'or set service "{dependency}" active',
                ))

    return res


def _check_git(name: str, service: ServiceConfig) -> tuple[list[CheckConfigResult], bool]:
    """Returns (findings, whether the remaining service checks should run)."""
    git = service.git
    if not git.url:
        return [_fatal(f"Missing required parameter 'git.url' in service \"{name}\"", "")], False
    if not git.branch:
        return [_fatal(f"Missing required parameter 'git.branch' in service \"{name}\"", git.url)], False
    if classify_git_url(git.url) is None:
        return [_fatal(
            f"Wrong parameter 'git.url' in service \"{name}\"",
            "Only urls which related to github|gitlab are supported",
        )], False

    res: list[CheckConfigResult] = []
    if parse_git_url(git.url) is None:
        res.append(_fatal(
            f"Failed to parse parameter 'git.url' in service \"{name}\"",
            "Url must contain user and repository for example: "
            "https://github.com/user/repository.git",
        ))
    if git.untracked:
        allowed = [p.value for p in GitUntrackedPolicy]
        if git.untracked not in allowed:
            res.append(_fatal(
                f"Failed parameter 'git.untracked' in service \"{name}\"",
                f"Allowed values [{'|'.join(allowed)}]",
            ))
    return res, True


def _check_port(name: str, port: PortConfig) -> list[CheckConfigResult]:
    res: list[CheckConfigResult] = []
    number = port.port
    port_type = port.type

    if port.timeout:
        res.extend(_check_port_timeout(name, number, port_type, port.timeout))
    if port.buffer_size:
        res.extend(_check_port_buffer_size(name, number, port_type, port.buffer_size))

    port_number = _port_number(number)
    if port_number is None:
        res.append(_fatal(f'Port "{number}" of service "{name}" must be an integer', ""))
    elif not PORT_MIN <= port_number <= PORT_MAX:
        res.append(_fatal(
            f'Port "{number}" of service "{name}" is out of range',
            f"Allowed range is {PORT_MIN}-{PORT_MAX}",
        ))

    if port.location:
        res.extend(_check_location(port.location, name))

    if port.proxy_path:
        res.extend(_check_location(port.proxy_path, name, "Proxy path"))
        if port_type == PortType.PHP.value:
            res.append(_advice(
                'Property "proxy_path" doesn\'t have any effect for port type "php"',
                name,
            ))

    allowed_types = [t.value for t in PortType]
    if port_type not in allowed_types:
        res.append(_fatal(
            f'Port type "{port_type}" of service "{name}" is not allowed',
            f"Allowed port types: [{'|'.join(allowed_types)}]",
        ))

    for static in port.static or []:
        if not static.location:
            res.append(_fatal(f'Field "static.location" is required for port {number}', name))
        if not static.path:
            res.append(_fatal(f'Field "static.path" is required for port {number}', name))
        if static.index and not STATIC_INDEX_REGEX.search(static.index):
            res.append(_fatal(
                f'Field "static.index" for port {number} in service "{name}" '
                "contains not allowed symbols",
                f"Allowed regexp {STATIC_INDEX_REGEX.pattern}",
            ))
        if (port.location or DEFAULT_LOCATION) == static.location:
            res.append(_fatal(
                'Fields "location" and "static.location" can not be the same',
                f'Check port "{number}" of service "{name}"',
            ))
        if static.location:
            res.extend(_check_location(static.location, name, "Static location"))

    return res


def _port_number(value: int | str) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if value.isdigit():
        return int(value)
    return None


def _check_port_timeout(name: str, port: int | str, port_type: str, timeout: str) -> list[CheckConfigResult]:
    if port_type not in (PortType.CHUNKED.value, PortType.WS.value):
        return [_advice(
            f'Timeout for port "{port}" of service "{name}" doesn\'t have any effect',
            f'Timeout property doesn\'t allow for port type "{port_type}"',
        )]
    if not PORT_TIMEOUT_REGEX.match(timeout):
        return [_fatal(
            f'Timeout for port "{port}" of service "{name}" must be a string',
            f'For example "30s", received "{timeout}"',
        )]
    postfix = timeout.lstrip("0123456789")
    if postfix not in PORT_TIMEOUT_POSTFIXES:
        return [_fatal(
            f'Timeout for port "{port}" of service "{name}" has wrong postfix',
            f"Allowed postfixes {'|'.join(PORT_TIMEOUT_POSTFIXES)}, received \"{postfix}\"",
        )]
    return []


def _check_port_buffer_size(
    name: str, port: int | str, port_type: str, buffer_size: str
) -> list[CheckConfigResult]:
    if port_type != PortType.CHUNKED.value:
        return [_advice(
            f'Buffer size for port "{port}" of service "{name}" doesn\'t have any effect',
            f'Buffer size property doesn\'t allow for port type "{port_type}"',
        )]
    match = PORT_BUFFER_SIZE_REGEX.match(buffer_size)
    if not match:
        return [_fatal(
            f'Buffer size for port "{port}" of service "{name}" must be a string',
            f'For example "10k", received "{buffer_size}"',
        )]
    size = int(match.group(1))
    if size > BUFFER_SIZE_MAX:
        return [_fatal(
            f'Buffer size for port "{port}" of service "{name}" is not allowed',
            f'Maximum allowed buffer size is "{BUFFER_SIZE_MAX}k", received "{size}k"',
        )]
    return []


def _check_location(location: str, name: str, label: str = "Location") -> list[CheckConfigResult]:
    res: list[CheckConfigResult] = []
    if not LOCATION_ALLOWED_REGEX.match(location):
        res.append(_fatal(
            f'{label} "{location}" of service "{name}" has unallowed symbols',
            f"Allowed regexp {LOCATION_ALLOWED_REGEX.pattern}",
        ))
    if not LOCATION_START_REGEX.match(location):
        res.append(_fatal(
            f'{label} "{location}" of service "{name}" have wrong start',
            'It must starts with "/"',
        ))
    if LOCATION_DOUBLE_SLASH_REGEX.search(location):
        res.append(_fatal(
            f'{label} "{location}" of service "{name}" have two or more slashes together',
            "Do not use two and more slashes together in location",
        ))
    return res


# ─── Common services ─────────────────────────────────────


def _check_common_service(
    name: str,
    service: ServiceConfig,
    service_type: CommonServiceType,
    services: Services,
) -> list[CheckConfigResult]:
    res: list[CheckConfigResult] = []

    if service.ports is not None:
        res.append(_fatal(
            f'Field "ports" is not allowed for service "{name}"',
            f"Ports is only allowed for services [{_CUSTOM_TYPES}]",
        ))
    if service.command:
        res.append(_fatal(
            f'Field "command" is not allowed for service "{name}"',
            f"Command is only allowed for services [{_CUSTOM_TYPES}]",
        ))

    if not service.active:
        return res

    dependents = _active_custom_dependents(name, services)

    if not dependents and not service.is_public and service_type not in COMMON_PUBLIC_TYPES:
        res.append(_advice(
            f'You have {service_type.value} service with name "{name}", '
            "but none custom service depends on it",
            f'Add "depends_on" field with item "{name}" to any custom service',
        ))

    required = ENVIRONMENT_REQUIRED_COMMON[service_type.value]
    environment = service.environment or []
    declared = {environment_name(entry) for entry in environment}
    for variable in required:
        if variable not in declared:
            res.append(_fatal(
                f'Required environment variable for service "{name}" is missing:',
                variable,
            ))

    for entry in environment:
        variable = parse_environment_variable(entry)
        if variable is None:
            continue
        var_name, value = variable
        if var_name not in required:
            continue
        for dependent_name, dependent in dependents.items():
            res.extend(_check_mirrored_variable(name, dependent_name, dependent, var_name, value))

    return res


def _active_custom_dependents(name: str, services: Services) -> Services:
    return {
        other_name: other
        for other_name, other in services.items()
        if other.active
        and is_custom_service(other.type)
        and name in (other.depends_on or [])
    }


def _check_mirrored_variable(
    name: str,
    dependent_name: str,
    dependent: ServiceConfig,
    var_name: str,
    value: str,
) -> list[CheckConfigResult]:
    """A dependent custom service must see the same value the common one sets."""
    if dependent.environment is None:
        return []

    declared = any(environment_name(entry) == var_name for entry in dependent.environment)
    if not declared:
        if var_name in ENVIRONMENT_MIRROR_EXEMPT:
            return []
        return [_advice(
            f'Service "{name}" provided {var_name}, but in a service {dependent_name} '
            "dependent on it is not provided",
            f"Try to add environment variable {var_name} to the service {dependent_name}",
        )]

    if find_environment_value(dependent.environment, var_name) != value:
        return [_advice(
            f'Service "{name}" provided {var_name}, but in a service {dependent_name} '
            "dependent on it this variable value is not the same",
            f"Your service {dependent_name} will not be able to connect to service {name}",
        )]
    return []
