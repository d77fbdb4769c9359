"""
Config reconciler — bring managed files to their desired state.

Per target, first match wins:

    1. legacy config present, destination missing → write an Include
       redirect to the legacy file                  → CREATED
    2. destination missing → generate and write     → CREATED
    3. policy permits overwrite → back up, write    → REPLACED
    4. otherwise                                    → SKIPPED

A file is never overwritten before its previous content is durably
copied to a backup.  Any ``FilesystemError`` propagates and ends the
run; there is no partial-success continuation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from confsync.adapters.filesystem import Filesystem
from confsync.core.models.target import Outcome, OutcomeAction, RunSummary, Target
from confsync.core.services.generators.apache import legacy_redirect

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[Outcome], None]


def reconcile(
    target: Target,
    force_replace: bool,
    is_system_scope: bool,
    fs: Filesystem | None = None,
) -> Outcome:
    """Reconcile a single target and report what was done.

    Args:
        target: The file to reconcile.
        force_replace: The operator asked for existing files to be replaced.
        is_system_scope: Replacement of system-level files was also asked for.
        fs: Filesystem to act on (default: the local one).

    Raises:
        FilesystemError: On any directory, read or write failure.
    """
    fs = fs or Filesystem()
    path = target.path

    if target.legacy_path is not None and not fs.exists(path) and fs.exists(target.legacy_path):
        fs.write_atomic(path, legacy_redirect(target.legacy_path).encode("utf-8"))
        logger.info("Redirected %s to legacy config %s", path, target.legacy_path)
        return _outcome(target, OutcomeAction.CREATED, via_legacy=True)

    if not fs.exists(path):
        fs.write_atomic(path, target.content_generator().encode("utf-8"))
        logger.info("Created %s", path)
        return _outcome(target, OutcomeAction.CREATED)

    if target.replace_policy.permits(force_replace, is_system_scope):
        backup = fs.backup(path)
        fs.write_atomic(path, target.content_generator().encode("utf-8"))
        logger.info("Replaced %s (previous saved to %s)", path, backup)
        return _outcome(target, OutcomeAction.REPLACED, backup_path=backup)

    logger.debug("Skipped %s (exists, policy %s)", path, target.replace_policy.value)
    return _outcome(target, OutcomeAction.SKIPPED)


def reconcile_fleet(
    system_targets: list[Target],
    entity_targets: Iterable[Target],
    force_replace: bool,
    system: bool = False,
    entity_filter: str | None = None,
    fs: Filesystem | None = None,
    on_outcome: OutcomeCallback | None = None,
) -> RunSummary:
    """Reconcile system targets, then per-entity targets.

    Args:
        system_targets: Shared files; the first is the top-level one
            whose prior absence marks a first run.
        entity_targets: One primary target per entity, possibly with a
            secondary target.
        force_replace: Replace existing files where policy allows.
        system: Also allow replacing system-scope files.
        entity_filter: Only reconcile entity targets with this id.
        fs: Filesystem to act on.
        on_outcome: Called after every outcome, in order.

    Returns:
        RunSummary of every outcome produced.
    """
    fs = fs or Filesystem()
    summary = RunSummary(
        first_run=bool(system_targets) and not fs.exists(system_targets[0].path),
    )

    def record(outcome: Outcome) -> None:
        summary.outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    for target in system_targets:
        record(reconcile(target, force_replace, system, fs))

    for target in entity_targets:
        if entity_filter is not None and target.id != entity_filter:
            continue
        record(reconcile(target, force_replace, False, fs))

        secondary = target.secondary_target
        if secondary is None:
            continue
        if not secondary.precondition:
            logger.debug("Secondary target %s not applicable", secondary.path)
            continue
        record(reconcile(secondary, force_replace, False, fs))

    logger.info(
        "Reconciled %d target(s), %d changed",
        len(summary.outcomes), len(summary.changed),
    )
    return summary


def _outcome(target: Target, action: OutcomeAction, **kwargs) -> Outcome:
    return Outcome(
        target_id=target.id,
        path=target.path,
        action=action,
        description=target.description,
        **kwargs,
    )
