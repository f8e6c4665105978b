"""Tests for session storage bootstrap and lock artifact cleanup."""

from gusteau_gateway.storage.bootstrap import (
    LOCK_ARTIFACTS,
    CleanupOutcome,
    bootstrap_storage,
    clean_lock_artifacts,
    ensure_layout,
)


class TestEnsureLayout:
    def test_creates_directories(self, tmp_path):
        layout = ensure_layout(tmp_path / "storage")

        assert layout.root.is_dir()
        assert layout.auth_dir == tmp_path / "storage" / ".wwebjs_auth"
        assert layout.auth_dir.is_dir()
        assert layout.profile_dir == tmp_path / "storage" / "chrome-profile"
        assert layout.profile_dir.is_dir()

    def test_idempotent(self, tmp_path):
        first = ensure_layout(tmp_path / "storage")
        (first.auth_dir / "session.json").write_text("{}")

        second = ensure_layout(tmp_path / "storage")

        assert second == first
        assert (second.auth_dir / "session.json").read_text() == "{}"


class TestCleanLockArtifacts:
    def test_no_artifacts_is_noop(self, tmp_path):
        layout = ensure_layout(tmp_path / "storage")

        results = clean_lock_artifacts(layout.profile_dir)

        assert [r.name for r in results] == list(LOCK_ARTIFACTS)
        assert all(r.outcome is CleanupOutcome.ABSENT for r in results)
        assert layout.profile_dir.is_dir()
        assert layout.auth_dir.is_dir()

    def test_removes_stale_locks(self, tmp_path):
        layout = ensure_layout(tmp_path / "storage")
        (layout.profile_dir / "SingletonLock").write_text("host-123")
        (layout.profile_dir / "SingletonCookie").write_text("cookie")
        (layout.profile_dir / "Preferences").write_text("{}")

        results = {r.name: r.outcome for r in clean_lock_artifacts(layout.profile_dir)}

        assert results["SingletonLock"] is CleanupOutcome.REMOVED
        assert results["SingletonCookie"] is CleanupOutcome.REMOVED
        assert results["SingletonIPC"] is CleanupOutcome.ABSENT
        assert not (layout.profile_dir / "SingletonLock").exists()
        # Unrelated profile data is untouched
        assert (layout.profile_dir / "Preferences").exists()

    def test_dangling_symlink_lock_is_removed(self, tmp_path):
        layout = ensure_layout(tmp_path / "storage")
        (layout.profile_dir / "SingletonLock").symlink_to(tmp_path / "gone-host-1")

        results = {r.name: r.outcome for r in clean_lock_artifacts(layout.profile_dir)}

        assert results["SingletonLock"] is CleanupOutcome.REMOVED
        assert not (layout.profile_dir / "SingletonLock").is_symlink()

    def test_unremovable_artifact_is_ignored(self, tmp_path):
        layout = ensure_layout(tmp_path / "storage")
        (layout.profile_dir / "SingletonSockets").mkdir()

        results = {r.name: r for r in clean_lock_artifacts(layout.profile_dir)}

        assert results["SingletonSockets"].outcome is CleanupOutcome.IGNORED
        assert results["SingletonSockets"].error
        assert (layout.profile_dir / "SingletonSockets").is_dir()

    def test_missing_profile_dir_does_not_raise(self, tmp_path):
        results = clean_lock_artifacts(tmp_path / "does-not-exist")

        assert all(r.outcome is CleanupOutcome.ABSENT for r in results)


class TestBootstrapStorage:
    def test_bootstrap_prepares_layout_and_cleans(self, tmp_path):
        layout = ensure_layout(tmp_path / "storage")
        (layout.profile_dir / "SS").write_text("")

        result = bootstrap_storage(tmp_path / "storage")

        assert result == layout
        assert not (layout.profile_dir / "SS").exists()
