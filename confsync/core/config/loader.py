"""
Configuration loader — reads site.yml and each repository.yml.

Layout:

    <root>/site.yml
    <root>/<archives_dir>/<id>/cfg/repository.yml

Repositories are discovered by listing ``archives_dir``.  Every
repository is loaded up front, so a broken one stops the run before
any file is touched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from confsync.core.models.site import Repository, Site

logger = logging.getLogger(__name__)

SITE_CONFIG_FILE = "site.yml"
REPOSITORY_CONFIG_FILE = "repository.yml"


class ConfigError(Exception):
    """Raised when site configuration is invalid or missing."""


class EntityLoadError(ConfigError):
    """Raised when a repository's configuration cannot be loaded."""

    def __init__(self, repo_id: str, reason: str):
        self.repo_id = repo_id
        super().__init__(f"Failed to load repository '{repo_id}': {reason}")


def find_site_file(start_dir: Path | None = None) -> Path | None:
    """Search for site.yml starting from ``start_dir`` (default cwd), walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):
        candidate = current / SITE_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _read_mapping(path: Path, error: type[Exception], *args: str) -> dict[str, Any]:
    """Read a YAML file that must hold a mapping (empty file → {})."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise error(*args, f"cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise error(*args, f"invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise error(*args, f"expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def _config_error(reason: str) -> ConfigError:
    return ConfigError(reason[0].upper() + reason[1:])


def list_repository_ids(archives: Path) -> list[str]:
    """Repository ids under the archives directory, sorted."""
    if not archives.is_dir():
        return []
    return sorted(
        p.name for p in archives.iterdir()
        if p.is_dir() and not p.name.startswith(".")
    )


def load_repository(archives: Path, repo_id: str) -> Repository:
    """Load and validate one repository.yml.

    Raises:
        EntityLoadError: If the file is missing, unreadable or invalid.
    """
    archive_root = archives / repo_id
    path = archive_root / "cfg" / REPOSITORY_CONFIG_FILE
    if not path.is_file():
        raise EntityLoadError(repo_id, f"{path} not found")

    data = _read_mapping(path, EntityLoadError, repo_id)
    data["id"] = repo_id
    data.setdefault("archive_root", str(archive_root))

    try:
        repo = Repository.model_validate(data)
    except ValidationError as e:
        raise EntityLoadError(repo_id, f"invalid configuration in {path}: {e}") from e

    logger.debug("Loaded repository '%s' from %s", repo_id, path)
    return repo


def load_site(path: Path | None = None) -> Site:
    """Load site.yml and every repository it manages.

    All repositories are loaded even when only one will be reconciled:
    the system-level files are generated from the whole set.

    Args:
        path: Explicit path to site.yml. If None, searches upward from cwd.

    Raises:
        ConfigError: If site.yml is missing or invalid.
        EntityLoadError: If a repository cannot be loaded.
    """
    if path is None:
        path = find_site_file()

    if path is None:
        raise ConfigError(
            f"No {SITE_CONFIG_FILE} found. Create one in the installation "
            "root, or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading site config from %s", path)
    data = _read_mapping(path, _config_error)
    data.setdefault("root", str(path.parent.resolve()))

    try:
        site = Site.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid site configuration in {path}: {e}") from e

    archives = site.archives_path
    repositories = [load_repository(archives, repo_id) for repo_id in list_repository_ids(archives)]
    site.repositories = repositories

    logger.info("Loaded site %s with %d repositories", site.root, len(repositories))
    return site
