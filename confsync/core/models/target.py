"""
Target, Outcome and RunSummary — the reconciler's vocabulary.

A Target is one file the tool is responsible for.  An Outcome records
what happened to it in one run.  A RunSummary folds all outcomes of a
run into the "restart required" verdict.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any


class ReplacePolicy(StrEnum):
    """When an existing destination file may be overwritten."""

    ALWAYS_IF_MISSING = "always_if_missing"
    REPLACE_IF_REQUESTED = "replace_if_requested"
    REPLACE_IF_SYSTEM_AND_REQUESTED = "replace_if_system_and_requested"

    def permits(self, force_replace: bool, is_system_scope: bool) -> bool:
        """Whether overwrite is allowed for this flag combination."""
        if self is ReplacePolicy.REPLACE_IF_REQUESTED:
            return force_replace
        if self is ReplacePolicy.REPLACE_IF_SYSTEM_AND_REQUESTED:
            return force_replace and is_system_scope
        return False


class OutcomeAction(StrEnum):
    """What the reconciler did to a target."""

    CREATED = "created"
    REPLACED = "replaced"
    SKIPPED = "skipped"


@dataclass
class Target:
    """A unit of generated configuration.

    Attributes:
        id:                Repository id, or "system".
        path:              Absolute destination path.
        content_generator: Zero-argument callable returning the content.
        replace_policy:    Governs overwriting an existing file.
        secondary_target:  Dependent target, reconciled after this one.
        precondition:      For a secondary, whether it applies at all.
        legacy_path:       Old-style config that, if present while the
                           destination is missing, is included instead
                           of generating fresh content.
        description:       Human label for output.
    """

    id: str
    path: Path
    content_generator: Callable[[], str]
    replace_policy: ReplacePolicy = ReplacePolicy.REPLACE_IF_REQUESTED
    secondary_target: Target | None = None
    precondition: bool = True
    legacy_path: Path | None = None
    description: str = ""


@dataclass
class Outcome:
    """Result of reconciling one target."""

    target_id: str
    path: Path
    action: OutcomeAction
    backup_path: Path | None = None
    via_legacy: bool = False
    description: str = ""

    @property
    def changed(self) -> bool:
        return self.action is not OutcomeAction.SKIPPED

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target_id,
            "path": str(self.path),
            "action": self.action.value,
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "via_legacy": self.via_legacy,
        }


@dataclass
class RunSummary:
    """Aggregate of one reconciliation run."""

    first_run: bool = False
    outcomes: list[Outcome] = field(default_factory=list)

    @property
    def restart_required(self) -> bool:
        return any(o.changed for o in self.outcomes)

    @property
    def changed(self) -> list[Outcome]:
        return [o for o in self.outcomes if o.changed]

    def for_target(self, target_id: str) -> list[Outcome]:
        """All outcomes produced for a given target id."""
        return [o for o in self.outcomes if o.target_id == target_id]

    def to_dict(self) -> dict[str, Any]:
        return {
            "first_run": self.first_run,
            "restart_required": self.restart_required,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
