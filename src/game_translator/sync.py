"""Synchronisation of a local store with its remote copy.

``SyncService`` ties the store, the merge engine and the remote client
together.  It raises :class:`~game_translator.exceptions.RemoteAPIError`
when the server cannot be reached or refuses a request, since the caller has
to decide what to show the user.  Merge conflicts are never errors: they are
returned in :class:`PullOutcome` for the caller to resolve.

Typical flow::

    service = SyncService(store, RemoteClient(url, token))
    direction = service.plan(translation_id)
    if direction is SyncDirection.DOWNLOAD or direction is SyncDirection.MERGE:
        outcome = service.pull(translation_id)
        if outcome.merge is not None:
            service.apply_merge(outcome, strategy="remote")
    elif direction is SyncDirection.UPLOAD:
        service.push(upload_request)

Baselines
---------
After a pull the *remote* mapping becomes the ancestor, so anything the
merge kept from the local side still counts as a local change waiting to be
uploaded.  After a push the mapping that was uploaded becomes the ancestor.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from game_translator.config import SyncSettings
from game_translator.exceptions import RemoteAPIError, SnapshotFormatError
from game_translator.merge.engine import (
    ConflictResolution,
    MergeResult,
    apply_resolutions,
    merge,
    resolve_all,
)
from game_translator.remote.client import RemoteClient, UploadRequest, UploadResult
from game_translator.store.entry import Entry
from game_translator.store.hashing import compute_content_hash
from game_translator.store.translation_store import ParsedSnapshot, TranslationStore

logger = logging.getLogger(__name__)

_STRATEGIES = {
    "remote": ConflictResolution.TAKE_REMOTE,
    "local": ConflictResolution.KEEP_LOCAL,
}


class SyncDirection(str, Enum):
    NONE = "none"
    DOWNLOAD = "download"
    UPLOAD = "upload"
    MERGE = "merge"


@dataclass
class PullOutcome:
    """Result of :meth:`SyncService.pull`.

    Attributes:
        translation_id: Server id that was pulled.
        file_hash:      Server content hash of the pulled copy.
        remote:         Parsed remote snapshot, ``None`` when not modified.
        applied:        The remote copy replaced the store wholesale.
        merge:          Merge result awaiting :meth:`SyncService.apply_merge`.
        not_modified:   The server copy matched ``last_synced_hash``.
    """

    translation_id: int
    file_hash: str | None = None
    remote: ParsedSnapshot | None = None
    applied: bool = False
    merge: MergeResult[Entry] | None = None
    not_modified: bool = False

    @property
    def needs_resolution(self) -> bool:
        return self.merge is not None and not self.merge.success


class SyncService:
    """Pull, merge and push a :class:`TranslationStore`."""

    def __init__(
        self,
        store: TranslationStore,
        client: RemoteClient,
        default_strategy: str | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._default_strategy = default_strategy

    @classmethod
    def from_config(cls, store: TranslationStore, settings: SyncSettings) -> SyncService:
        """Build a service from the ``[sync]`` settings.

        Raises:
            ValueError: If no server URL is configured.
        """
        if not settings.api_base_url:
            raise ValueError("sync.api_base_url is not configured")
        client = RemoteClient(
            settings.api_base_url,
            settings.api_token or None,
            timeout=settings.timeout_seconds,
        )
        return cls(store, client, default_strategy=settings.merge_strategy)

    # ── Checks ────────────────────────────────────────────────────────────────

    def needs_update(self, translation_id: int) -> bool:
        """True when the server copy differs from the local content."""
        check = self._client.check_update(translation_id, self._store.compute_content_hash())
        if not check.success:
            raise RemoteAPIError("Update check failed", detail=check.error or "")
        return check.has_update

    def plan(self, translation_id: int) -> SyncDirection:
        """Decide which way the next sync should go.

        The server is considered changed when its hash differs from
        ``last_synced_hash``.  Without a recorded hash that cannot be told
        apart, so local changes are assumed to conflict.
        """
        check = self._client.check_update(translation_id, self._store.compute_content_hash())
        if not check.success:
            raise RemoteAPIError("Update check failed", detail=check.error or "")
        if not check.has_update:
            return SyncDirection.NONE

        has_local_changes = self._store.local_changes_count > 0
        last_synced = self._store.last_synced_hash
        if last_synced:
            server_changed = check.file_hash != last_synced
        else:
            server_changed = has_local_changes

        if has_local_changes and server_changed:
            direction = SyncDirection.MERGE
        elif has_local_changes:
            direction = SyncDirection.UPLOAD
        else:
            direction = SyncDirection.DOWNLOAD
        logger.info(
            "Sync plan for %d: %s (local_changes=%d)",
            translation_id,
            direction.value,
            self._store.local_changes_count,
        )
        return direction

    # ── Pull ──────────────────────────────────────────────────────────────────

    def pull(self, translation_id: int) -> PullOutcome:
        """Download the server copy and reconcile it with the store.

        A store without local changes simply adopts the remote copy.
        Otherwise a tag-aware three-way merge against the stored ancestor is
        computed and returned, and the store is left untouched until
        :meth:`apply_merge`.

        Raises:
            RemoteAPIError: If the download failed.
            SnapshotFormatError: If the downloaded content is not a store.
        """
        download = self._client.download(translation_id, self._store.last_synced_hash)
        if not download.success:
            raise RemoteAPIError("Download failed", detail=download.error or "")
        if download.not_modified:
            logger.info("Translation %d not modified since last sync", translation_id)
            return PullOutcome(translation_id, file_hash=download.file_hash, not_modified=True)

        try:
            remote = TranslationStore.parse_snapshot(download.content or "")
        except ValueError as exc:
            raise SnapshotFormatError(f"downloaded translation is not valid JSON: {exc}") from exc

        outcome = PullOutcome(translation_id, file_hash=download.file_hash, remote=remote)
        store = self._store
        with store.lock:
            if store.local_changes_count == 0 or len(store) == 0:
                store.replace_entries(remote.entries)
                if remote.uuid:
                    store.uuid = remote.uuid
                if remote.game is not None:
                    store.game = remote.game
                store.last_synced_hash = download.file_hash or store.compute_content_hash()
                store.pin_ancestor()
                store.save()
                outcome.applied = True
                logger.info("Adopted remote copy of %d (%d entries)", translation_id, len(store))
                return outcome

            outcome.merge = merge(store.snapshot(), remote.entries, store.ancestor_snapshot())

        logger.info(
            "Merged remote copy of %d: %s", translation_id, outcome.merge.statistics.summary()
        )
        return outcome

    def apply_merge(
        self,
        outcome: PullOutcome,
        decisions: Mapping[str, ConflictResolution] | None = None,
        strategy: str | None = None,
    ) -> bool:
        """Resolve conflicts and write the merged mapping into the store.

        Explicit ``decisions`` are applied first, then ``strategy``
        (``"remote"`` / ``"local"``) settles whatever is left.  Without a
        ``strategy`` the service default applies; ``"ask"`` or ``None`` leaves
        remaining conflicts pending.

        Returns:
            ``True`` if the merge was applied, ``False`` if conflicts are still
            pending (the store is then left untouched).
        """
        if outcome.merge is None or outcome.remote is None:
            raise ValueError("PullOutcome carries no merge to apply")

        if strategy is None:
            strategy = self._default_strategy
        result = outcome.merge
        if decisions:
            apply_resolutions(result, decisions)
        if result.conflicts and strategy in _STRATEGIES:
            resolve_all(result, _STRATEGIES[strategy])
        if result.conflicts:
            logger.info("%d merge conflicts still need a decision", result.conflict_count)
            return False

        store = self._store
        with store.lock:
            store.replace_entries(result.merged)
            if outcome.remote.uuid:
                store.uuid = outcome.remote.uuid
            store.pin_ancestor_from_remote(outcome.remote.entries)
            store.last_synced_hash = outcome.file_hash
            store.save()
        logger.info(
            "Applied merge for %d, %d local changes to upload",
            outcome.translation_id,
            store.local_changes_count,
        )
        return True

    # ── Push ──────────────────────────────────────────────────────────────────

    def push(self, upload: UploadRequest) -> UploadResult:
        """Upload the store and make the uploaded content the new baseline.

        The request's ``content`` is replaced with the serialised store.
        Entries added while the upload is in flight stay local changes.

        Raises:
            RemoteAPIError: If the upload failed.
        """
        store = self._store
        with store.lock:
            uploaded = store.snapshot()
            content = store.to_json()
        request = dataclasses.replace(upload, content=content)
        result = self._client.upload(request)
        if not result.success:
            raise RemoteAPIError("Upload failed", detail=result.error or "")

        with store.lock:
            store.pin_ancestor_from_remote(uploaded)
            store.last_synced_hash = result.file_hash or compute_content_hash(uploaded, store.uuid)
            store.save()
        logger.info(
            "Uploaded %d entries as translation %s", len(store), result.translation_id
        )
        return result
