"""
Tests for the config reconciler — per-target decisions and fleet runs.
"""

from pathlib import Path

import pytest

from confsync.adapters.filesystem import Filesystem, FilesystemError
from confsync.core.models.target import OutcomeAction, ReplacePolicy, Target
from confsync.core.services.reconciler import reconcile, reconcile_fleet


def _target(
    path: Path,
    content: str = "new\n",
    policy: ReplacePolicy = ReplacePolicy.REPLACE_IF_REQUESTED,
    target_id: str = "repo",
    **kwargs,
) -> Target:
    return Target(
        id=target_id,
        path=path,
        content_generator=lambda: content,
        replace_policy=policy,
        **kwargs,
    )


class RecordingFilesystem(Filesystem):
    """Filesystem that logs the order of mutating calls."""

    def __init__(self):
        super().__init__(clock=lambda: "20260101T000000")
        self.calls: list[tuple[str, str]] = []

    def backup(self, path):
        self.calls.append(("backup", Path(path).name))
        return super().backup(path)

    def write_atomic(self, path, data):
        self.calls.append(("write", Path(path).name))
        super().write_atomic(path, data)


class FailingFilesystem(Filesystem):
    """Filesystem whose writes to one path fail."""

    def __init__(self, fail_on: Path):
        super().__init__()
        self.fail_on = fail_on

    def write_atomic(self, path, data):
        if Path(path) == self.fail_on:
            raise FilesystemError("write", path, "Permission denied")
        super().write_atomic(path, data)


# ── Single target ────────────────────────────────────────────────────


class TestReconcile:
    def test_missing_file_created(self, tmp_path: Path):
        path = tmp_path / "cfg" / "apache.conf"
        outcome = reconcile(_target(path), force_replace=False, is_system_scope=False)
        assert outcome.action is OutcomeAction.CREATED
        assert outcome.backup_path is None
        assert path.read_text() == "new\n"

    def test_existing_file_skipped_without_replace(self, tmp_path: Path):
        path = tmp_path / "apache.conf"
        path.write_text("old\n")
        outcome = reconcile(_target(path), force_replace=False, is_system_scope=False)
        assert outcome.action is OutcomeAction.SKIPPED
        assert not outcome.changed
        assert path.read_text() == "old\n"

    def test_replace_backs_up_previous_content(self, tmp_path: Path):
        path = tmp_path / "apache.conf"
        path.write_text("hand edited\n")
        outcome = reconcile(_target(path), force_replace=True, is_system_scope=False)
        assert outcome.action is OutcomeAction.REPLACED
        assert outcome.backup_path is not None
        assert outcome.backup_path != path
        assert outcome.backup_path.parent == path.parent
        assert outcome.backup_path.name.startswith("apache.conf.backup.")
        assert outcome.backup_path.read_text() == "hand edited\n"
        assert path.read_text() == "new\n"

    def test_backup_happens_before_write(self, tmp_path: Path):
        path = tmp_path / "apache.conf"
        path.write_text("old\n")
        fs = RecordingFilesystem()
        reconcile(_target(path), force_replace=True, is_system_scope=False, fs=fs)
        # backup() writes the copy itself before the destination is touched
        assert fs.calls[0] == ("backup", "apache.conf")
        assert fs.calls[-1] == ("write", "apache.conf")

    def test_generator_not_called_when_skipped(self, tmp_path: Path):
        path = tmp_path / "apache.conf"
        path.write_text("old\n")

        def boom() -> str:
            raise AssertionError("should not generate")

        target = Target(id="repo", path=path, content_generator=boom)
        outcome = reconcile(target, force_replace=False, is_system_scope=False)
        assert outcome.action is OutcomeAction.SKIPPED

    def test_always_if_missing_never_replaces(self, tmp_path: Path):
        path = tmp_path / "apache.conf"
        path.write_text("old\n")
        target = _target(path, policy=ReplacePolicy.ALWAYS_IF_MISSING)
        outcome = reconcile(target, force_replace=True, is_system_scope=True)
        assert outcome.action is OutcomeAction.SKIPPED
        assert path.read_text() == "old\n"

    @pytest.mark.parametrize("is_system_scope", [False, True])
    def test_replace_if_requested_ignores_scope(self, tmp_path: Path, is_system_scope: bool):
        path = tmp_path / "apache.conf"
        path.write_text("old\n")
        outcome = reconcile(_target(path), force_replace=True, is_system_scope=is_system_scope)
        assert outcome.action is OutcomeAction.REPLACED

    @pytest.mark.parametrize(
        ("force_replace", "is_system_scope", "expected"),
        [
            (False, False, OutcomeAction.SKIPPED),
            (True, False, OutcomeAction.SKIPPED),
            (False, True, OutcomeAction.SKIPPED),
            (True, True, OutcomeAction.REPLACED),
        ],
    )
    def test_system_policy_gating(
        self, tmp_path: Path, force_replace: bool, is_system_scope: bool, expected
    ):
        path = tmp_path / "apache.conf"
        path.write_text("old\n")
        target = _target(path, policy=ReplacePolicy.REPLACE_IF_SYSTEM_AND_REQUESTED)
        outcome = reconcile(target, force_replace, is_system_scope)
        assert outcome.action is expected
        if expected is OutcomeAction.SKIPPED:
            assert path.read_text() == "old\n"

    def test_repeated_replace_never_reuses_backup_name(self, tmp_path: Path):
        path = tmp_path / "apache.conf"
        path.write_text("v1\n")
        fs = Filesystem(clock=lambda: "20260101T000000")

        first = reconcile(_target(path, "v2\n"), True, False, fs)
        second = reconcile(_target(path, "v3\n"), True, False, fs)

        assert first.backup_path != second.backup_path
        assert first.backup_path.read_text() == "v1\n"
        assert second.backup_path.read_text() == "v2\n"
        assert second.backup_path.name.endswith(".1")


class TestLegacyRedirect:
    def test_legacy_file_included_instead_of_generated(self, tmp_path: Path):
        legacy = tmp_path / "archives" / "repo" / "cfg" / "apache.conf"
        legacy.parent.mkdir(parents=True)
        legacy.write_text("# old hand-made config\n")
        path = tmp_path / "cfg" / "apache" / "repo.conf"

        def boom() -> str:
            raise AssertionError("should not generate")

        target = Target(id="repo", path=path, content_generator=boom, legacy_path=legacy)
        outcome = reconcile(target, force_replace=False, is_system_scope=False)

        assert outcome.action is OutcomeAction.CREATED
        assert outcome.via_legacy is True
        assert f'Include "{legacy}"' in path.read_text()

    def test_legacy_ignored_when_destination_exists(self, tmp_path: Path):
        legacy = tmp_path / "legacy.conf"
        legacy.write_text("# old\n")
        path = tmp_path / "repo.conf"
        path.write_text("current\n")
        target = _target(path, legacy_path=legacy)

        outcome = reconcile(target, force_replace=True, is_system_scope=False)
        assert outcome.action is OutcomeAction.REPLACED
        assert outcome.via_legacy is False
        assert path.read_text() == "new\n"

    def test_missing_legacy_generates_normally(self, tmp_path: Path):
        path = tmp_path / "repo.conf"
        target = _target(path, legacy_path=tmp_path / "nope.conf")
        outcome = reconcile(target, force_replace=False, is_system_scope=False)
        assert outcome.action is OutcomeAction.CREATED
        assert outcome.via_legacy is False
        assert path.read_text() == "new\n"


# ── Fleet ────────────────────────────────────────────────────────────


def _fleet(tmp_path: Path, n_entities: int = 3, secure: dict[str, bool] | None = None):
    secure = secure or {}
    system = [
        _target(
            tmp_path / "apache.conf",
            "system\n",
            ReplacePolicy.REPLACE_IF_SYSTEM_AND_REQUESTED,
            target_id="system",
        )
    ]
    entities = []
    for i in range(n_entities):
        repo_id = f"repo{i}"
        secondary = _target(
            tmp_path / "apache_ssl" / f"{repo_id}.conf",
            f"ssl {repo_id}\n",
            target_id=repo_id,
            precondition=secure.get(repo_id, False),
        )
        entities.append(
            _target(
                tmp_path / "apache" / f"{repo_id}.conf",
                f"{repo_id}\n",
                target_id=repo_id,
                secondary_target=secondary,
            )
        )
    return system, entities


class TestReconcileFleet:
    def test_fresh_install(self, tmp_path: Path):
        system, entities = _fleet(tmp_path)
        summary = reconcile_fleet(system, entities, force_replace=False)

        assert summary.first_run is True
        assert summary.restart_required is True
        assert len(summary.outcomes) == 4
        assert all(o.action is OutcomeAction.CREATED for o in summary.outcomes)
        assert not (tmp_path / "apache_ssl").exists()

    def test_second_run_is_idempotent(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, secure={"repo1": True})
        reconcile_fleet(system, entities, force_replace=False)
        before = {p: p.read_bytes() for p in tmp_path.rglob("*") if p.is_file()}

        summary = reconcile_fleet(system, entities, force_replace=False)

        after = {p: p.read_bytes() for p in tmp_path.rglob("*") if p.is_file()}
        assert after == before
        assert summary.first_run is False
        assert summary.restart_required is False
        assert all(o.action is OutcomeAction.SKIPPED for o in summary.outcomes)

    def test_replace_entities_but_not_system(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, n_entities=1)
        reconcile_fleet(system, entities, force_replace=False)

        summary = reconcile_fleet(system, entities, force_replace=True)

        assert summary.outcomes[0].action is OutcomeAction.SKIPPED
        assert summary.outcomes[1].action is OutcomeAction.REPLACED
        assert summary.outcomes[1].backup_path.is_file()
        assert summary.restart_required is True

    def test_replace_with_system(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, n_entities=1)
        reconcile_fleet(system, entities, force_replace=False)

        summary = reconcile_fleet(system, entities, force_replace=True, system=True)

        assert [o.action for o in summary.outcomes] == [
            OutcomeAction.REPLACED,
            OutcomeAction.REPLACED,
        ]

    @pytest.mark.parametrize("n_entities", [1, 2, 5, 12])
    def test_filter_yields_one_entity_outcome(self, tmp_path: Path, n_entities: int):
        system, entities = _fleet(tmp_path, n_entities=n_entities)
        summary = reconcile_fleet(system, entities, force_replace=False, entity_filter="repo0")

        entity_outcomes = [o for o in summary.outcomes if o.target_id != "system"]
        assert len(entity_outcomes) == 1
        assert entity_outcomes[0].target_id == "repo0"
        assert summary.for_target("system")

    def test_unmatched_filter_is_not_an_error(self, tmp_path: Path):
        system, entities = _fleet(tmp_path)
        summary = reconcile_fleet(system, entities, force_replace=False, entity_filter="nope")
        assert [o.target_id for o in summary.outcomes] == ["system"]

    @pytest.mark.parametrize("force_replace", [False, True])
    @pytest.mark.parametrize("system_flag", [False, True])
    def test_secondary_absent_without_precondition(
        self, tmp_path: Path, force_replace: bool, system_flag: bool
    ):
        system, entities = _fleet(tmp_path, n_entities=2, secure={"repo1": True})
        summary = reconcile_fleet(system, entities, force_replace, system=system_flag)

        paths = [o.path for o in summary.outcomes]
        assert tmp_path / "apache_ssl" / "repo0.conf" not in paths
        assert tmp_path / "apache_ssl" / "repo1.conf" in paths
        assert len(summary.for_target("repo0")) == 1
        assert len(summary.for_target("repo1")) == 2

    def test_existing_secondary_skipped_without_replace(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, n_entities=1, secure={"repo0": True})
        reconcile_fleet(system, entities, force_replace=False)

        summary = reconcile_fleet(system, entities, force_replace=False)
        assert summary.for_target("repo0")[1].action is OutcomeAction.SKIPPED

    def test_first_run_checked_before_writes(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, n_entities=0)
        summary = reconcile_fleet(system, entities, force_replace=False)
        assert summary.first_run is True
        assert system[0].path.is_file()

    def test_on_outcome_called_in_order(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, n_entities=2)
        seen = []
        summary = reconcile_fleet(system, entities, force_replace=False, on_outcome=seen.append)
        assert seen == summary.outcomes

    def test_failure_aborts_remaining_targets(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, n_entities=3)
        fs = FailingFilesystem(fail_on=tmp_path / "apache" / "repo1.conf")
        seen = []

        with pytest.raises(FilesystemError, match="repo1.conf"):
            reconcile_fleet(system, entities, False, fs=fs, on_outcome=seen.append)

        assert [o.target_id for o in seen] == ["system", "repo0"]
        assert not (tmp_path / "apache" / "repo2.conf").exists()

    def test_backup_matches_content_before_write(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, n_entities=2)
        reconcile_fleet(system, entities, force_replace=False)
        for target in entities:
            target.path.write_text(f"edited {target.id}\n")

        summary = reconcile_fleet(system, entities, force_replace=True)

        for outcome in summary.outcomes:
            if outcome.action is OutcomeAction.REPLACED:
                assert outcome.backup_path.read_text() == f"edited {outcome.target_id}\n"

    def test_summary_to_dict(self, tmp_path: Path):
        system, entities = _fleet(tmp_path, n_entities=1)
        data = reconcile_fleet(system, entities, force_replace=False).to_dict()
        assert data["first_run"] is True
        assert data["restart_required"] is True
        assert data["outcomes"][0]["action"] == "created"
