"""Git repository references for services deployed from git.

Examples:
    classify_git_url("https://github.com/acme/app.git") → GitHost.GITHUB
    parse_git_url("https://github.com/acme/app.git")    → GitRepo(user="acme", project="app")
    classify_git_url("https://bitbucket.org/x/y")       → None
"""

import re
from typing import NamedTuple

from deploy_config.constants import GIT_HOSTS
from deploy_config.models.config import GitHost

_LAST_PATH_SEGMENT = re.compile(r"/([a-zA-Z0-9_-]+)$")


class GitRepo(NamedTuple):
    user: str
    project: str


def classify_git_url(url: str) -> GitHost | None:
    """Detect the repository host of url."""
    result = None
    for host, prefix in GIT_HOSTS.items():
        if prefix in url:
            result = GitHost(host)
    return result


def clean_git_postfix(url: str) -> str:
    return url.removesuffix(".git")


def parse_git_url(url: str) -> GitRepo | None:
    """Take the last two path segments as (user, project).

    Returns None when either segment is missing, e.g. for a bare host.
    """
    rest = clean_git_postfix(url)

    project = _LAST_PATH_SEGMENT.search(rest)
    if not project:
        return None
    rest = rest[:project.start()]

    user = _LAST_PATH_SEGMENT.search(rest)
    if not user:
        return None

    return GitRepo(user=user.group(1), project=project.group(1))


def clear_rel_path(path: str) -> str:
    """Strip a leading "./"."""
    return path.removeprefix("./")
