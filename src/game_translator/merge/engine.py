"""Three-way merge of translation mappings.

``merge(local, remote, ancestor)`` reconciles the local dictionary with a
freshly pulled remote copy, using the ancestor snapshot (the state at the
last sync) as the common base.  It is a pure function: inputs are never
mutated and the only output is a :class:`MergeResult`.

Classification
--------------
Every key in the union of the three mappings (metadata keys excluded) is
classified by where it is present and produces exactly one statistics
increment:

====  ============================  =========================================
Case  Present in                    Outcome
====  ============================  =========================================
1     local only                    take local                (local_only)
2     remote only                   take remote               (remote_added)
3     ancestor only                 drop                      (deleted)
4a    local + remote, identical     keep                      (unchanged)
4b    local + remote, priority      higher priority wins      (local_modified
      differs (tag-aware only)                                 / remote_updated)
4c    local == ancestor != remote   take remote               (remote_updated)
4d    remote == ancestor != local   take local                (local_modified)
4e    both differ / key not in       conflict, default remote  (conflict)
      ancestor
5     local + ancestor              drop if unchanged, else conflict with
                                    default local
6     remote + ancestor             drop if unchanged, else conflict with
                                    default remote
====  ============================  =========================================

Remote wins ties, so the function is not commutative.

The tag-aware variant (:func:`merge`) compares full :class:`Entry` values
and runs the 4b priority check before looking at the ancestor.  The
value-only variant (:func:`merge_values`) compares bare strings and has no
4b step.

Resolutions
-----------
Conflicts are results, not errors.  The merged mapping already holds each
conflict's default value so it can be displayed immediately; a caller then
settles conflicts with :func:`apply_resolutions` or :func:`resolve_all`.
``KEEP_BOTH`` has no dual-value representation and keeps the local value
when both sides exist.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from game_translator.store.entry import Entry, entry_priority, is_metadata_key

logger = logging.getLogger(__name__)

V = TypeVar("V")


class ConflictType(str, Enum):
    BOTH_MODIFIED = "both_modified"
    NO_ANCESTOR = "no_ancestor"
    LOCAL_MODIFIED_REMOTE_DELETED = "local_modified_remote_deleted"
    REMOTE_MODIFIED_LOCAL_DELETED = "remote_modified_local_deleted"


class ConflictResolution(str, Enum):
    KEEP_LOCAL = "keep_local"
    TAKE_REMOTE = "take_remote"
    KEEP_BOTH = "keep_both"


@dataclass(frozen=True)
class MergeConflict(Generic[V]):
    """A key the merge could not settle on its own.

    ``local`` / ``remote`` / ``ancestor`` are ``None`` when the key is
    absent from that side.
    """

    key: str
    local: V | None
    remote: V | None
    ancestor: V | None
    kind: ConflictType


@dataclass
class MergeStatistics:
    unchanged: int = 0
    local_only: int = 0
    local_modified: int = 0
    remote_added: int = 0
    remote_updated: int = 0
    deleted: int = 0
    conflict: int = 0
    resolved: int = 0

    @property
    def total_merged(self) -> int:
        return (
            self.unchanged
            + self.local_only
            + self.local_modified
            + self.remote_added
            + self.remote_updated
        )

    def summary(self) -> str:
        """One-line human readable summary, empty categories omitted."""
        parts = [
            f"{count} {label}"
            for label, count in (
                ("unchanged", self.unchanged),
                ("local additions", self.local_only),
                ("local updates", self.local_modified),
                ("remote additions", self.remote_added),
                ("remote updates", self.remote_updated),
                ("deleted", self.deleted),
                ("conflicts", self.conflict),
                ("resolved", self.resolved),
            )
            if count
        ]
        return ", ".join(parts) if parts else "no changes"


@dataclass
class MergeResult(Generic[V]):
    """Output of a three-way merge.

    Attributes:
        merged:     Merged mapping.  Conflicting keys hold their default value.
        conflicts:  Conflicts still awaiting a decision.
        statistics: Per-case counters.
    """

    merged: dict[str, V] = field(default_factory=dict)
    conflicts: list[MergeConflict[V]] = field(default_factory=list)
    statistics: MergeStatistics = field(default_factory=MergeStatistics)

    @property
    def success(self) -> bool:
        return not self.conflicts

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)


# ── Public API ───────────────────────────────────────────────────────────────


def merge(
    local: Mapping[str, Entry],
    remote: Mapping[str, Entry],
    ancestor: Mapping[str, Entry] | None,
) -> MergeResult[Entry]:
    """Tag-aware three-way merge over :class:`Entry` mappings."""
    return _merge(local, remote, ancestor, _entry_priority_winner)


def merge_values(
    local: Mapping[str, str],
    remote: Mapping[str, str],
    ancestor: Mapping[str, str] | None,
) -> MergeResult[str]:
    """Value-only three-way merge over plain string mappings."""
    return _merge(local, remote, ancestor, None)


def apply_resolutions(
    result: MergeResult[V],
    decisions: Mapping[str, ConflictResolution],
) -> MergeResult[V]:
    """Settle conflicts in place with the caller's decisions.

    Conflicts without a decision stay pending.

    Args:
        result:    Result returned by :func:`merge` or :func:`merge_values`.
        decisions: Resolution per conflicting key.

    Returns:
        The same ``result`` object, for chaining.
    """
    pending: list[MergeConflict[V]] = []
    for conflict in result.conflicts:
        decision = decisions.get(conflict.key)
        if decision is None:
            pending.append(conflict)
            continue
        _resolve(result.merged, conflict, ConflictResolution(decision))
        result.statistics.resolved += 1
    result.conflicts = pending
    return result


def resolve_all(result: MergeResult[V], resolution: ConflictResolution) -> MergeResult[V]:
    """Apply one resolution to every pending conflict."""
    return apply_resolutions(result, {c.key: resolution for c in result.conflicts})


# ── Internal helpers ─────────────────────────────────────────────────────────


def _entry_priority_winner(local: Entry, remote: Entry) -> str | None:
    """Return ``"local"`` / ``"remote"`` when priorities differ, else ``None``.

    Immutable tags sit at the top of the priority order, so an immutable
    entry can only win or tie.
    """
    local_priority = entry_priority(local)
    remote_priority = entry_priority(remote)
    if local_priority > remote_priority and not remote.tag.is_immutable:
        return "local"
    if remote_priority > local_priority and not local.tag.is_immutable:
        return "remote"
    return None


def _merge(
    local: Mapping[str, V],
    remote: Mapping[str, V],
    ancestor: Mapping[str, V] | None,
    priority_winner: Callable[[V, V], str | None] | None,
) -> MergeResult[V]:
    base: Mapping[str, V] = ancestor or {}
    result: MergeResult[V] = MergeResult()
    stats = result.statistics

    keys = {k for k in (*local, *remote, *base) if not is_metadata_key(k)}
    for key in sorted(keys):
        in_local = key in local
        in_remote = key in remote
        in_base = key in base
        local_value = local.get(key)
        remote_value = remote.get(key)
        base_value = base.get(key)

        if in_local and in_remote:
            if local_value == remote_value:
                result.merged[key] = local_value
                stats.unchanged += 1
                continue

            winner = priority_winner(local_value, remote_value) if priority_winner else None
            if winner == "local":
                result.merged[key] = local_value
                stats.local_modified += 1
            elif winner == "remote":
                result.merged[key] = remote_value
                stats.remote_updated += 1
            elif in_base and local_value == base_value:
                result.merged[key] = remote_value
                stats.remote_updated += 1
            elif in_base and remote_value == base_value:
                result.merged[key] = local_value
                stats.local_modified += 1
            else:
                kind = ConflictType.BOTH_MODIFIED if in_base else ConflictType.NO_ANCESTOR
                result.merged[key] = remote_value
                result.conflicts.append(
                    MergeConflict(key, local_value, remote_value, base_value, kind)
                )
                stats.conflict += 1

        elif in_local:
            if not in_base:
                result.merged[key] = local_value
                stats.local_only += 1
            elif local_value == base_value:
                stats.deleted += 1
            else:
                result.merged[key] = local_value
                result.conflicts.append(
                    MergeConflict(
                        key,
                        local_value,
                        None,
                        base_value,
                        ConflictType.LOCAL_MODIFIED_REMOTE_DELETED,
                    )
                )
                stats.conflict += 1

        elif in_remote:
            if not in_base:
                result.merged[key] = remote_value
                stats.remote_added += 1
            elif remote_value == base_value:
                stats.deleted += 1
            else:
                result.merged[key] = remote_value
                result.conflicts.append(
                    MergeConflict(
                        key,
                        None,
                        remote_value,
                        base_value,
                        ConflictType.REMOTE_MODIFIED_LOCAL_DELETED,
                    )
                )
                stats.conflict += 1

        else:
            stats.deleted += 1

    logger.debug("Merge finished: %s", stats.summary())
    return result


def _resolve(merged: dict[str, V], conflict: MergeConflict[V], decision: ConflictResolution) -> None:
    if decision is ConflictResolution.KEEP_LOCAL:
        chosen = conflict.local
    elif decision is ConflictResolution.TAKE_REMOTE:
        chosen = conflict.remote
    elif conflict.local is not None and conflict.remote is not None:
        chosen = conflict.local
    else:
        # KEEP_BOTH with one side missing leaves the default in place.
        return

    if chosen is None:
        merged.pop(conflict.key, None)
    else:
        merged[conflict.key] = chosen
