"""
Domain models for confsync.

    from confsync.core.models import Site, Repository, Target, RunSummary
"""

from confsync.core.models.site import ApacheSettings, HostAlias, Repository, Site
from confsync.core.models.target import (
    Outcome,
    OutcomeAction,
    ReplacePolicy,
    RunSummary,
    Target,
)

__all__ = [
    # site.py
    "ApacheSettings",
    "HostAlias",
    "Repository",
    "Site",
    # target.py
    "Outcome",
    "OutcomeAction",
    "ReplacePolicy",
    "RunSummary",
    "Target",
]
