"""
Target planning — turn a Site into the files confsync manages.

System scope (replaced only with --replace --system):
    <conf_dir>/apache.conf
    <conf_dir>/apache_ssl.conf

Per repository (replaced with --replace):
    <conf_dir>/apache/<id>.conf
    <conf_dir>/apache_ssl/<id>.conf     only when securehost is set
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

from confsync.adapters.filesystem import Filesystem
from confsync.core.models.site import Repository, Site
from confsync.core.models.target import ReplacePolicy, Target
from confsync.core.services.generators import apache

SYSTEM_ID = "system"


def system_conf_path(site: Site) -> Path:
    return site.conf_dir / "apache.conf"


def system_ssl_conf_path(site: Site) -> Path:
    return site.conf_dir / "apache_ssl.conf"


def repository_conf_path(site: Site, repo_id: str) -> Path:
    return site.conf_dir / "apache" / f"{repo_id}.conf"


def repository_ssl_conf_path(site: Site, repo_id: str) -> Path:
    return site.conf_dir / "apache_ssl" / f"{repo_id}.conf"


def legacy_conf_path(repo: Repository) -> Path:
    """Where older installations kept a hand-maintained per-repository config."""
    return repo.cfg_dir / "apache.conf"


def vhost_include_path(repo: Repository) -> Path:
    """Optional hand-written directives for the repository's VirtualHost."""
    return repo.cfg_dir / "apachevhost.conf"


def system_targets(site: Site) -> list[Target]:
    """Shared files, top-level first."""
    return [
        Target(
            id=SYSTEM_ID,
            path=system_conf_path(site),
            content_generator=partial(apache.system_conf, site),
            replace_policy=ReplacePolicy.REPLACE_IF_SYSTEM_AND_REQUESTED,
            description="main Apache config",
        ),
        Target(
            id=SYSTEM_ID,
            path=system_ssl_conf_path(site),
            content_generator=partial(apache.system_ssl_conf, site),
            replace_policy=ReplacePolicy.REPLACE_IF_SYSTEM_AND_REQUESTED,
            description="main Apache SSL config",
        ),
    ]


def repository_target(site: Site, repo: Repository, fs: Filesystem | None = None) -> Target:
    """The per-repository target, with its secure variant as secondary.

    ``fs`` is checked for the repository's vhost include file.
    """
    fs = fs or Filesystem()
    vhost_include = vhost_include_path(repo)
    if not fs.exists(vhost_include):
        vhost_include = None

    secure = Target(
        id=repo.id,
        path=repository_ssl_conf_path(site, repo.id),
        content_generator=partial(apache.repository_ssl_conf, site, repo),
        replace_policy=ReplacePolicy.REPLACE_IF_REQUESTED,
        precondition=repo.has_secure_host,
        description=f"SSL config for {repo.id}",
    )
    return Target(
        id=repo.id,
        path=repository_conf_path(site, repo.id),
        content_generator=partial(apache.repository_conf, site, repo, vhost_include),
        replace_policy=ReplacePolicy.REPLACE_IF_REQUESTED,
        secondary_target=secure,
        legacy_path=legacy_conf_path(repo),
        description=f"config for {repo.id}",
    )


def entity_targets(site: Site, fs: Filesystem | None = None) -> list[Target]:
    fs = fs or Filesystem()
    return [repository_target(site, repo, fs) for repo in site.repositories]
