"""Session storage bootstrap.

Prepares the credential store and browser-profile directories and clears the
single-instance lock artifacts an unclean shutdown can leave in the profile.
The embedded browser refuses to start while those artifacts exist.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.observability.redaction import safe_log_context

logger = get_logger(__name__)

AUTH_DIR_NAME = ".wwebjs_auth"
PROFILE_DIR_NAME = "chrome-profile"

LOCK_ARTIFACTS = (
    "SingletonLock",
    "SingletonCookie",
    "SingletonSockets",
    "SingletonIPC",
    "SS",
)


class CleanupOutcome(str, enum.Enum):
    REMOVED = "removed"
    ABSENT = "absent"
    IGNORED = "ignored"


@dataclass(frozen=True)
class LockCleanup:
    """Result of removing one lock artifact."""

    name: str
    outcome: CleanupOutcome
    error: str | None = None


@dataclass(frozen=True)
class StorageLayout:
    root: Path
    auth_dir: Path
    profile_dir: Path

    @classmethod
    def from_root(cls, root: str | Path) -> StorageLayout:
        root = Path(root)
        return cls(
            root=root,
            auth_dir=root / AUTH_DIR_NAME,
            profile_dir=root / PROFILE_DIR_NAME,
        )


def ensure_layout(root: str | Path) -> StorageLayout:
    """Create the storage root, credential store and profile directory. Idempotent."""
    layout = StorageLayout.from_root(root)
    for directory in (layout.root, layout.auth_dir, layout.profile_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return layout


def _remove_artifact(path: Path) -> LockCleanup:
    try:
        path.unlink()
    except FileNotFoundError:
        return LockCleanup(name=path.name, outcome=CleanupOutcome.ABSENT)
    except OSError as e:
        # Directories, permissions, busy sockets: leave them for the engine
        return LockCleanup(name=path.name, outcome=CleanupOutcome.IGNORED, error=str(e))
    return LockCleanup(name=path.name, outcome=CleanupOutcome.REMOVED)


def clean_lock_artifacts(profile_dir: str | Path) -> list[LockCleanup]:
    """Remove stale lock artifacts from the profile directory.

    Best-effort: never raises. Each artifact gets an explicit outcome so the
    ignore policy stays visible to callers and logs.
    """
    profile_dir = Path(profile_dir)
    return [_remove_artifact(profile_dir / name) for name in LOCK_ARTIFACTS]


def bootstrap_storage(root: str | Path) -> StorageLayout:
    """Prepare session storage before the session engine starts."""
    layout = ensure_layout(root)
    results = clean_lock_artifacts(layout.profile_dir)

    removed = [r.name for r in results if r.outcome is CleanupOutcome.REMOVED]
    ignored = [r for r in results if r.outcome is CleanupOutcome.IGNORED]
    for result in ignored:
        logger.warning(
            "lock artifact cleanup ignored",
            extra={
                "extra_fields": safe_log_context(artifact=result.name, error=result.error)
            },
        )
    logger.info(
        "session storage ready",
        extra={
            "extra_fields": safe_log_context(
                root=str(layout.root),
                removed_locks=",".join(removed) or "none",
                ignored_locks=len(ignored),
            )
        },
    )
    return layout
