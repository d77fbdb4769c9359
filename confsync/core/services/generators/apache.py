"""
Apache config generator — system and per-repository files.

Four kinds of file, plus the legacy redirect:

    apache.conf             system scope, loads mod_perl + includes apache/*.conf
    apache_ssl.conf         system scope, included inside the SSL VirtualHost
    apache/<id>.conf        one VirtualHost per repository
    apache_ssl/<id>.conf    secure Location for repositories with a securehost
"""

from __future__ import annotations

from pathlib import Path

from confsync.core.models.site import Repository, Site

_HEADER = """\
#
# {title}
#
# Generated by confsync. Local edits are kept until you run
# `confsync --replace{system_flag}`, which saves this file to a
# timestamped backup and writes a fresh copy.
#
"""


def _header(title: str, system: bool = False) -> str:
    return _HEADER.format(title=title, system_flag=" --system" if system else "")


def _grant_all(site: Site) -> list[str]:
    if site.apache.version == "2.2":
        return ["    Order allow,deny", "    Allow from all"]
    return ["    Require all granted"]


def _include_glob(site: Site, directory: Path) -> str:
    # 2.4 refuses a wildcard Include that matches nothing
    if site.apache.version == "2.2":
        return f'Include "{directory}/*.conf"'
    return f'IncludeOptional "{directory}/*.conf"'


def system_conf(site: Site) -> str:
    """The top-level file the main Apache config must Include."""
    lines = [_header("System-wide Apache configuration", system=True)]
    lines.append(f'PerlSwitches -I"{site.perl_lib_path}"')
    lines.append("PerlModule EPrints")
    lines.append("PerlPostConfigHandler +EPrints::post_config_handler")
    lines.append("")

    if site.apache.version == "2.2":
        for port in sorted({repo.port for repo in site.repositories}):
            lines.append(f"NameVirtualHost *:{port}")
        if site.repositories:
            lines.append("")

    lines.append(f'<Directory "{site.root / "cgi"}">')
    lines.append("    Options +ExecCGI")
    lines.extend(_grant_all(site))
    lines.append("</Directory>")
    lines.append("")
    lines.append(_include_glob(site, site.conf_dir / "apache"))
    return "\n".join(lines) + "\n"


def system_ssl_conf(site: Site) -> str:
    """Aggregates per-repository secure config; goes inside the SSL VirtualHost."""
    lines = [_header("System-wide Apache SSL configuration", system=True)]
    lines.append("# Include this file from within your SSL <VirtualHost>, e.g.")
    lines.append("#")
    lines.append("#   <VirtualHost *:443>")
    lines.append("#       SSLEngine on")
    lines.append(f'#       Include "{site.conf_dir / "apache_ssl.conf"}"')
    lines.append("#   </VirtualHost>")
    lines.append("")
    lines.append(_include_glob(site, site.conf_dir / "apache_ssl"))
    return "\n".join(lines) + "\n"


def repository_conf(site: Site, repo: Repository, vhost_include: Path | None = None) -> str:
    """VirtualHost for one repository, plus one per redirect alias.

    ``vhost_include`` is a file of repository-specific directives to
    pull into the main VirtualHost.
    """
    lines = [_header(f"Apache configuration for repository '{repo.id}'")]
    lines.append(f"<VirtualHost *:{repo.port}>")
    lines.append(f"    ServerName {repo.hostname}")
    if repo.server_aliases:
        lines.append(f"    ServerAlias {' '.join(repo.server_aliases)}")
    if repo.admin_email:
        lines.append(f"    ServerAdmin {repo.admin_email}")
    lines.append("")
    lines.append(f"    PerlSetVar EPrints_ArchiveID {repo.id}")
    lines.append("    Options +ExecCGI")
    lines.append("    PerlTransHandler +EPrints::Apache::Rewrite")

    if vhost_include is not None:
        lines.append("")
        lines.append("    # Repository-specific directives")
        lines.append(f'    Include "{vhost_include}"')

    lines.append("</VirtualHost>")

    for alias in repo.redirect_aliases:
        lines.append("")
        lines.append(f"<VirtualHost *:{repo.port}>")
        lines.append(f"    ServerName {alias}")
        lines.append(f"    Redirect / {repo.base_url}/")
        lines.append("</VirtualHost>")

    return "\n".join(lines) + "\n"


def repository_ssl_conf(site: Site, repo: Repository) -> str:
    """Secure Location for a repository served on its securehost."""
    if not repo.has_secure_host:
        raise ValueError(f"Repository '{repo.id}' has no securehost")

    root = repo.https_root or "/"
    lines = [_header(f"Apache SSL configuration for repository '{repo.id}'")]
    lines.append(f"# Served at https://{repo.securehost}:{repo.secureport}{repo.https_root}")
    lines.append("")
    lines.append(f'<Location "{root}">')
    lines.append(f"    PerlSetVar EPrints_ArchiveID {repo.id}")
    lines.append("    PerlSetVar EPrints_Secure yes")
    lines.append("    Options +ExecCGI")
    lines.append("    PerlTransHandler +EPrints::Apache::Rewrite")
    lines.append("</Location>")
    return "\n".join(lines) + "\n"


def legacy_redirect(legacy_path: Path) -> str:
    """Minimal file that defers to an existing legacy config."""
    lines = [_header("Legacy configuration redirect")]
    lines.append("# A configuration file was found at the old location; it is")
    lines.append("# included as-is. Move its contents here and delete it to")
    lines.append("# switch to generated configuration.")
    lines.append("")
    lines.append(f'Include "{legacy_path}"')
    return "\n".join(lines) + "\n"
