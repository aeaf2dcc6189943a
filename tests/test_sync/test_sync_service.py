"""Unit tests for SyncService pull, merge and push flows."""

import json
from unittest.mock import MagicMock, patch

import pytest

from game_translator.config import SyncSettings
from game_translator.exceptions import RemoteAPIError, SnapshotFormatError
from game_translator.merge import ConflictResolution
from game_translator.remote import Download, RemoteClient, UpdateCheck, UploadRequest, UploadResult
from game_translator.store import TranslationStore, TranslationTag
from game_translator.sync import PullOutcome, SyncDirection, SyncService
from tests.helpers import ai, human

REMOTE_UUID = "remote-uuid"


@pytest.fixture
def client():
    return MagicMock(spec=RemoteClient)


@pytest.fixture
def service(store, client):
    return SyncService(store, client)


def _remote_content(entries: dict[str, str]) -> str:
    data = {"_uuid": REMOTE_UUID, "_game": {"name": "Hollow Deep", "steam_id": "1"}}
    data.update({key: {"v": value, "t": "A"} for key, value in entries.items()})
    return json.dumps(data)


def _synced(store: TranslationStore, entries: dict[str, str], file_hash="h1") -> None:
    for key, value in entries.items():
        store.add_entry(key, value)
    store.pin_ancestor()
    store.last_synced_hash = file_hash


# ============================================================================
# CHECKS
# ============================================================================


@pytest.mark.unit
class TestChecks:
    def test_needs_update_uses_content_hash(self, service, store, client):
        client.check_update.return_value = UpdateCheck(success=True, has_update=True)
        assert service.needs_update(7) is True
        client.check_update.assert_called_once_with(7, store.compute_content_hash())

    def test_needs_update_failure_raises(self, service, client):
        client.check_update.return_value = UpdateCheck(success=False, error="offline")
        with pytest.raises(RemoteAPIError, match="offline"):
            service.needs_update(7)

    def test_plan_none_when_up_to_date(self, service, client):
        client.check_update.return_value = UpdateCheck(success=True, has_update=False)
        assert service.plan(7) is SyncDirection.NONE

    def test_plan_download_without_local_changes(self, service, store, client):
        _synced(store, {"a": "1"})
        client.check_update.return_value = UpdateCheck(success=True, has_update=True, file_hash="h2")
        assert service.plan(7) is SyncDirection.DOWNLOAD

    def test_plan_upload_when_server_unchanged(self, service, store, client):
        _synced(store, {"a": "1"})
        store.add_entry("b", "2")
        client.check_update.return_value = UpdateCheck(success=True, has_update=True, file_hash="h1")
        assert service.plan(7) is SyncDirection.UPLOAD

    def test_plan_merge_when_both_changed(self, service, store, client):
        _synced(store, {"a": "1"})
        store.add_entry("b", "2")
        client.check_update.return_value = UpdateCheck(success=True, has_update=True, file_hash="h2")
        assert service.plan(7) is SyncDirection.MERGE

    def test_plan_merge_without_recorded_hash(self, service, store, client):
        store.add_entry("b", "2")
        client.check_update.return_value = UpdateCheck(success=True, has_update=True, file_hash="h2")
        assert service.plan(7) is SyncDirection.MERGE


# ============================================================================
# PULL
# ============================================================================


@pytest.mark.unit
class TestPull:
    def test_download_failure_raises(self, service, client):
        client.download.return_value = Download(success=False, error="offline")
        with pytest.raises(RemoteAPIError):
            service.pull(7)

    def test_not_modified(self, service, store, client):
        _synced(store, {"a": "1"})
        client.download.return_value = Download(success=True, not_modified=True, file_hash="h1")
        outcome = service.pull(7)
        assert outcome.not_modified
        client.download.assert_called_once_with(7, "h1")

    def test_invalid_content_raises(self, service, client):
        client.download.return_value = Download(success=True, content="<html>", file_hash="h")
        with pytest.raises(SnapshotFormatError):
            service.pull(7)

    def test_non_object_content_raises(self, service, client):
        client.download.return_value = Download(success=True, content="[]", file_hash="h")
        with pytest.raises(SnapshotFormatError):
            service.pull(7)

    def test_clean_store_adopts_remote(self, service, store, store_path, client):
        _synced(store, {"a": "1"})
        client.download.return_value = Download(
            success=True, content=_remote_content({"a": "1", "b": "2"}), file_hash="h2"
        )

        outcome = service.pull(7)

        assert outcome.applied
        assert outcome.merge is None
        assert store.snapshot() == {"a": ai("1"), "b": ai("2")}
        assert store.uuid == REMOTE_UUID
        assert store.game.name == "Hollow Deep"
        assert store.last_synced_hash == "h2"
        assert store.ancestor_snapshot() == store.snapshot()
        assert store.local_changes_count == 0
        assert json.loads(store_path.read_text(encoding="utf-8"))["_uuid"] == REMOTE_UUID

    def test_local_changes_produce_merge(self, service, store, client):
        _synced(store, {"a": "1", "b": "2"})
        store.set_entry("a", "local", TranslationTag.AI)
        before = store.snapshot()
        client.download.return_value = Download(
            success=True, content=_remote_content({"a": "remote", "b": "2", "c": "3"}), file_hash="h2"
        )

        outcome = service.pull(7)

        assert not outcome.applied
        assert outcome.needs_resolution
        assert [c.key for c in outcome.merge.conflicts] == ["a"]
        assert outcome.merge.merged["c"] == ai("3")
        assert store.snapshot() == before


# ============================================================================
# APPLY MERGE
# ============================================================================


@pytest.mark.unit
class TestApplyMerge:
    def _pull_with_conflict(self, service, store, client):
        _synced(store, {"a": "1", "b": "2"})
        store.set_entry("a", "local", TranslationTag.AI)
        store.set_entry("d", "mine")
        client.download.return_value = Download(
            success=True, content=_remote_content({"a": "remote", "b": "2", "c": "3"}), file_hash="h2"
        )
        return service.pull(7)

    def test_pending_conflicts_leave_store_untouched(self, service, store, client):
        outcome = self._pull_with_conflict(service, store, client)
        before = store.snapshot()
        assert service.apply_merge(outcome) is False
        assert service.apply_merge(outcome, strategy="ask") is False
        assert store.snapshot() == before

    def test_remote_strategy(self, service, store, client):
        outcome = self._pull_with_conflict(service, store, client)
        assert service.apply_merge(outcome, strategy="remote") is True
        assert store.get("a") == ai("remote")
        assert store.get("c") == ai("3")
        assert store.get("d") == human("mine")
        assert store.uuid == REMOTE_UUID
        assert store.last_synced_hash == "h2"
        # Only the local addition differs from the pulled copy.
        assert store.local_changes_count == 1

    def test_explicit_decision(self, service, store, client):
        outcome = self._pull_with_conflict(service, store, client)
        assert service.apply_merge(outcome, {"a": ConflictResolution.KEEP_LOCAL}) is True
        assert store.get("a") == ai("local")
        assert store.local_changes_count == 2

    def test_without_merge_raises(self, service):
        with pytest.raises(ValueError):
            service.apply_merge(PullOutcome(7, not_modified=True))

    def test_default_strategy_applies(self, store, client):
        service = SyncService(store, client, default_strategy="local")
        outcome = self._pull_with_conflict(service, store, client)
        assert service.apply_merge(outcome) is True
        assert store.get("a") == ai("local")

    def test_explicit_strategy_overrides_default(self, store, client):
        service = SyncService(store, client, default_strategy="local")
        outcome = self._pull_with_conflict(service, store, client)
        assert service.apply_merge(outcome, strategy="remote") is True
        assert store.get("a") == ai("remote")


# ============================================================================
# PUSH
# ============================================================================


@pytest.mark.unit
class TestPush:
    def _upload(self):
        return UploadRequest("1", "Hollow Deep", "en", "fr", content="")

    def test_uploads_serialised_store(self, service, store, client):
        store.add_entry("a", "1")
        client.upload.return_value = UploadResult(success=True, translation_id=5, file_hash="srv")

        result = service.push(self._upload())

        sent = client.upload.call_args[0][0]
        assert json.loads(sent.content)["a"] == {"v": "1", "t": "A"}
        assert result.translation_id == 5
        assert store.last_synced_hash == "srv"
        assert store.local_changes_count == 0
        assert store.ancestor_snapshot() == store.snapshot()

    def test_hash_falls_back_to_local(self, service, store, client):
        store.add_entry("a", "1")
        client.upload.return_value = UploadResult(success=True, translation_id=5)
        service.push(self._upload())
        assert store.last_synced_hash == store.compute_content_hash()

    def test_entry_added_during_upload_stays_local_change(self, service, store, client):
        store.add_entry("a", "1")

        def upload(request):
            store.add_entry("b", "2")
            return UploadResult(success=True, translation_id=5, file_hash="h9")

        client.upload.side_effect = upload
        service.push(self._upload())

        sent = json.loads(client.upload.call_args[0][0].content)
        assert "b" not in sent
        assert set(store.ancestor_snapshot()) == {"a"}
        assert store.local_changes_count == 1
        assert store.last_synced_hash == "h9"

    def test_failure_raises_and_keeps_changes(self, service, store, client):
        store.add_entry("a", "1")
        client.upload.return_value = UploadResult(success=False, error="Forbidden")
        with pytest.raises(RemoteAPIError, match="Forbidden"):
            service.push(self._upload())
        assert store.local_changes_count == 1
        assert store.has_ancestor is False


# ============================================================================
# CONFIGURATION
# ============================================================================


@pytest.mark.unit
class TestFromConfig:
    def test_builds_client_from_settings(self, store):
        settings = SyncSettings(
            api_base_url="https://t.example.org/api",
            api_token="tok",
            timeout_seconds=5.0,
            merge_strategy="remote",
        )
        with patch("game_translator.sync.RemoteClient") as mock_client:
            service = SyncService.from_config(store, settings)
        mock_client.assert_called_once_with("https://t.example.org/api", "tok", timeout=5.0)
        assert service._default_strategy == "remote"

    def test_missing_url_raises(self, store):
        with pytest.raises(ValueError, match="api_base_url"):
            SyncService.from_config(store, SyncSettings())
