"""
Site and repository models — loaded from site.yml and repository.yml.

The site describes the installation (where it lives, which Apache it
feeds).  Each repository describes one managed entity: the hosts it
answers on and, optionally, its secure host.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ApacheSettings(BaseModel):
    """Which Apache the generated files target, and where they live."""

    version: Literal["2.2", "2.4"] = "2.4"
    conf_dir: str = "cfg"

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: object) -> object:
        # YAML reads an unquoted 2.4 as a float
        if isinstance(value, float):
            return f"{value:.1f}"
        return value


class HostAlias(BaseModel):
    """An extra hostname; redirect aliases get their own VirtualHost."""

    name: str
    redirect: bool = False


class Repository(BaseModel):
    """A managed repository — one per-entity target set."""

    id: str
    hostname: str
    port: int = 80
    aliases: list[HostAlias] = Field(default_factory=list)
    admin_email: str = ""
    http_root: str = ""

    securehost: str | None = None
    secureport: int = 443
    https_root: str = "/secure"

    archive_root: Path = Path(".")

    @property
    def has_secure_host(self) -> bool:
        return bool(self.securehost)

    @property
    def server_aliases(self) -> list[str]:
        """Aliases served directly (not redirected)."""
        return [a.name for a in self.aliases if not a.redirect]

    @property
    def redirect_aliases(self) -> list[str]:
        return [a.name for a in self.aliases if a.redirect]

    @property
    def cfg_dir(self) -> Path:
        return self.archive_root / "cfg"

    @property
    def base_url(self) -> str:
        port = "" if self.port == 80 else f":{self.port}"
        return f"http://{self.hostname}{port}{self.http_root}"


class Site(BaseModel):
    """Root installation settings — loaded from site.yml."""

    root: Path
    perl_lib: str = "perl_lib"
    archives_dir: str = "archives"
    apache: ApacheSettings = Field(default_factory=ApacheSettings)
    repositories: list[Repository] = Field(default_factory=list)

    def resolve(self, rel: str) -> Path:
        """Resolve a possibly-relative setting against ``root``."""
        path = Path(rel)
        return path if path.is_absolute() else self.root / path

    @property
    def conf_dir(self) -> Path:
        return self.resolve(self.apache.conf_dir)

    @property
    def archives_path(self) -> Path:
        return self.resolve(self.archives_dir)

    @property
    def perl_lib_path(self) -> Path:
        return self.resolve(self.perl_lib)

    def get_repository(self, repo_id: str) -> Repository | None:
        """Look up a repository by id."""
        for repo in self.repositories:
            if repo.id == repo_id:
                return repo
        return None
