"""Volume declarations and materialization of remotely hosted volumes.

A volume is written as "[http(s)://host/]local/path:/remote/path".

Volumes with an http(s) prefix are downloaded (at most
VOLUME_UPLOAD_MAX_SIZE bytes, streamed and aborted as soon as the limit is
crossed), written to a temp file and the config entry is rewritten to
"<temp file>:/remote/path". The original entry is kept in a separate
service → [volume] map so a later pass can put it back.
"""

import tempfile
from pathlib import Path, PurePosixPath
from typing import NamedTuple

import httpx

from deploy_config.config import get_settings
from deploy_config.constants import (
    VOLUME_FILENAME_REGEX,
    VOLUME_HTTP_PREFIX_REGEX,
    VOLUME_LOCAL_REGEX,
    VOLUME_REMOTE_REGEX,
    VOLUME_UPLOAD_MAX_SIZE,
)
from deploy_config.errors import (
    VolumeFetchError,
    VolumeResolutionError,
    VolumeSizeExceededError,
)
from deploy_config.models.config import ConfigFile
from deploy_config.services.filesystem import FileSystem, get_filesystem
from deploy_config.utils.logging import get_logger

logger = get_logger(__name__)

Volumes = dict[str, list[str]]


class VolumeToken(NamedTuple):
    """Parts of one volume string. local/remote are None when malformed."""

    http: str | None
    local: str | None
    remote: str | None

    @property
    def is_remote_hosted(self) -> bool:
        return self.http is not None

    @property
    def url(self) -> str | None:
        if self.http is None or self.local is None:
            return None
        return f"{self.http}{self.local}"


class VolumeResolution(NamedTuple):
    config: ConfigFile
    volumes: Volumes | None
    error: str | None


def parse_volume(volume: str) -> VolumeToken:
    """Split a volume string.

    parse_volume("./a.conf:/etc/a.conf")
        → VolumeToken(http=None, local="./a.conf", remote="/etc/a.conf")
    parse_volume("https://host/a.conf:/etc/a.conf")
        → VolumeToken(http="https://", local="host/a.conf", remote="/etc/a.conf")
    """
    http = None
    rest = volume
    http_match = VOLUME_HTTP_PREFIX_REGEX.match(volume)
    if http_match:
        http = http_match.group(0)
        rest = volume[http_match.end():]

    local_match = VOLUME_LOCAL_REGEX.match(rest)
    local = local_match.group(0)[:-1] if local_match else None

    remote_match = VOLUME_REMOTE_REGEX.search(rest)
    remote = remote_match.group(0)[1:] if remote_match else None

    return VolumeToken(http=http, local=local, remote=remote)


def volume_filename(local: str) -> str | None:
    match = VOLUME_FILENAME_REGEX.search(local)
    if not match:
        return None
    return match.group(0).lstrip("/")


def is_absolute_remote(remote: str) -> bool:
    return PurePosixPath(remote).is_absolute()


def fetch_volume(
    client: httpx.Client,
    url: str,
    max_size: int = VOLUME_UPLOAD_MAX_SIZE,
) -> bytes:
    """Download url, giving up once more than max_size bytes arrive."""
    with client.stream("GET", url) as response:
        if not response.is_success:
            raise VolumeFetchError(url, f"HTTP error! status: {response.status_code}")

        total = 0
        chunks: list[bytes] = []
        for chunk in response.iter_bytes():
            total += len(chunk)
            if total > max_size:
                raise VolumeSizeExceededError(url, max_size)
            chunks.append(chunk)

    return b"".join(chunks)


def resolve_volumes(
    config: ConfigFile,
    user_id: str | None,
    volumes: Volumes | None = None,
    *,
    filesystem: FileSystem | None = None,
    client: httpx.Client | None = None,
    tmp_dir: Path | str | None = None,
) -> VolumeResolution:
    """Rewrite the volumes of every service on a copy of config.

    Without volumes (materialize): remote volumes are downloaded and
    replaced by temp file paths; the returned map holds the original
    entries per service.

    With volumes (replay): each service listed in the map gets that list as
    its volumes, unchanged.

    config itself is never modified. On error the returned config holds
    what was rewritten so far plus the untouched rest.
    """
    resolved = config.model_copy(deep=True)

    if not config.name:
        return VolumeResolution(resolved, volumes, "Project name is missing in config")

    if config.services is None:
        return VolumeResolution(resolved, volumes, "Field services is missing in config")

    if volumes is not None:
        for service_name, service in resolved.services.items():
            if service_name in volumes:
                service.volumes = list(volumes[service_name])
        return VolumeResolution(resolved, volumes, None)

    if not user_id:
        return VolumeResolution(resolved, volumes, "User id is missing")

    settings = get_settings()
    fs = filesystem or get_filesystem()
    tmp_root = Path(tmp_dir or settings.volume_tmp_dir or tempfile.gettempdir())

    own_client = client is None
    http_client = client or httpx.Client(
        timeout=settings.fetch_timeout,
        follow_redirects=True,
    )

    originals: Volumes = {}
    try:
        for service_name, service in config.services.items():
            if service.volumes is None:
                continue

            rewritten: list[str] = []
            originals[service_name] = []
            for i, volume in enumerate(service.volumes):
                try:
                    entry = _materialize_volume(
                        volume,
                        service_name=service_name,
                        project_name=config.name,
                        user_id=user_id,
                        client=http_client,
                        fs=fs,
                        tmp_root=tmp_root,
                    )
                except (VolumeResolutionError, httpx.HTTPError) as e:
                    resolved.services[service_name].volumes = rewritten + service.volumes[i:]
                    logger.error(
                        "volume_resolution_failed",
                        service=service_name,
                        volume=volume,
                        error=str(e),
                    )
                    return VolumeResolution(resolved, originals, str(e))

                rewritten.append(entry)
                if VOLUME_HTTP_PREFIX_REGEX.match(volume):
                    originals[service_name].append(volume)

            resolved.services[service_name].volumes = rewritten
    finally:
        if own_client:
            http_client.close()

    return VolumeResolution(resolved, originals, None)


def _materialize_volume(
    volume: str,
    *,
    service_name: str,
    project_name: str,
    user_id: str,
    client: httpx.Client,
    fs: FileSystem,
    tmp_root: Path,
) -> str:
    """Return the entry to put in the config for one volume."""
    token = parse_volume(volume)
    if not token.is_remote_hosted:
        return volume

    stripped = volume[len(token.http):]
    if token.local is None:
        raise VolumeResolutionError(
            f"Volume local in service \"{service_name}\" has wrong value '{stripped}'",
            service_name,
        )
    filename = volume_filename(token.local)
    if filename is None:
        raise VolumeResolutionError(
            f"Local value of volume '{stripped}' has wrong filename "
            f"in service \"{service_name}\"",
            service_name,
        )
    if token.remote is None:
        raise VolumeResolutionError(
            f"Volume remote in service \"{service_name}\" has wrong value '{stripped}'",
            service_name,
        )

    content = fetch_volume(client, token.url)
    logger.info("volume_fetched", service=service_name, url=token.url, size=len(content))

    tmp_path = tmp_root / f"{user_id}_{project_name}_{service_name}_{filename}"
    if fs.available:
        fs.write(str(tmp_path), content)
    else:
        logger.warning("filesystem_unavailable", operation="resolve_volumes", path=str(tmp_path))

    return f"{tmp_path}:{token.remote}"
