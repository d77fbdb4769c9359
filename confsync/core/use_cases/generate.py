"""
Generate use case — load the site, plan targets, reconcile them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from confsync.adapters.filesystem import Filesystem, FilesystemError
from confsync.core.config.loader import ConfigError, load_site
from confsync.core.models.site import Site
from confsync.core.models.target import RunSummary
from confsync.core.services import targets
from confsync.core.services.reconciler import OutcomeCallback, reconcile_fleet


@dataclass
class GenerateResult:
    """Result of one generate run."""

    site: Site | None = None
    summary: RunSummary | None = None
    error: str | None = None
    hints: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        data: dict = {"ok": self.ok}
        if self.error:
            data["error"] = self.error
        if self.site is not None:
            data["root"] = str(self.site.root)
            data["repositories"] = [r.id for r in self.site.repositories]
        if self.summary is not None:
            data.update(self.summary.to_dict())
        data["hints"] = self.hints
        data["instructions"] = self.instructions
        return data


def run_generate(
    config_path: Path | None = None,
    repository_id: str | None = None,
    replace: bool = False,
    system: bool = False,
    on_outcome: OutcomeCallback | None = None,
    fs: Filesystem | None = None,
) -> GenerateResult:
    """Write any missing Apache config files (or replace them, if asked).

    Args:
        config_path: Explicit site.yml (default: search upward from cwd).
        repository_id: Only reconcile this repository's files.
        replace: Replace existing per-repository files.
        system: With ``replace``, also replace the system-level files.
        on_outcome: Progress callback, called after each file.
        fs: Filesystem to act on.

    Returns:
        GenerateResult. Failures are captured in ``error``; nothing is
        reconciled after the first one.
    """
    result = GenerateResult()

    try:
        site = load_site(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.site = site

    fs = fs or Filesystem()
    try:
        result.summary = reconcile_fleet(
            targets.system_targets(site),
            targets.entity_targets(site, fs),
            force_replace=replace,
            system=system,
            entity_filter=repository_id,
            fs=fs,
            on_outcome=on_outcome,
        )
    except FilesystemError as e:
        result.error = str(e)
        return result

    result.hints = _hints(site, repository_id)
    if result.summary.first_run:
        result.instructions = _first_run_instructions(site)
    return result


def _hints(site: Site, repository_id: str | None) -> list[str]:
    hints = []
    for repo in site.repositories:
        if repository_id is not None and repo.id != repository_id:
            continue
        if repo.has_secure_host:
            hints.append(
                f"Repository '{repo.id}' has securehost {repo.securehost}: its SSL "
                f"config is {targets.repository_ssl_conf_path(site, repo.id)}. "
                "Customise it there, or regenerate it with --replace."
            )
    return hints


def _first_run_instructions(site: Site) -> list[str]:
    return [
        "Add the following line to your main Apache configuration:\n"
        f'  Include "{targets.system_conf_path(site)}"',
        "Add the following line inside your SSL <VirtualHost>:\n"
        f'  Include "{targets.system_ssl_conf_path(site)}"',
    ]
