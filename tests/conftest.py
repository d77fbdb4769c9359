"""
Shared test fixtures — a throwaway installation under tmp_path.
"""

import textwrap
from pathlib import Path

import pytest


def _write_repository(root: Path, repo_id: str, content: str | None = None) -> Path:
    """Create <root>/archives/<id>/cfg/repository.yml and return its path."""
    if content is None:
        content = textwrap.dedent(f"""\
            hostname: {repo_id}.example.org
            port: 80
            admin_email: admin@{repo_id}.example.org
        """)
    cfg = root / "archives" / repo_id / "cfg"
    cfg.mkdir(parents=True, exist_ok=True)
    path = cfg / "repository.yml"
    path.write_text(content)
    return path


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """An installation with site.yml and two plain repositories."""
    root = tmp_path / "eprints"
    root.mkdir()
    (root / "site.yml").write_text(textwrap.dedent("""\
        perl_lib: perl_lib
        apache:
          version: "2.4"
          conf_dir: cfg
    """))
    _write_repository(root, "alpha")
    _write_repository(root, "beta")
    return root


@pytest.fixture
def site_yml(site_root: Path) -> Path:
    return site_root / "site.yml"


@pytest.fixture
def secure_site_root(site_root: Path) -> Path:
    """Same installation, plus a repository with a securehost."""
    _write_repository(site_root, "gamma", textwrap.dedent("""\
        hostname: gamma.example.org
        securehost: secure.gamma.example.org
        https_root: /secure
    """))
    return site_root


@pytest.fixture
def make_repository():
    """Return a helper that writes a repository.yml under a site root."""
    return _write_repository
