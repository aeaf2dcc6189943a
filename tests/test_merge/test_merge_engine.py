"""Unit tests for the three-way merge engine."""

import pytest

from game_translator.merge import (
    ConflictResolution,
    ConflictType,
    MergeStatistics,
    apply_resolutions,
    merge,
    merge_values,
    resolve_all,
)
from tests.helpers import ai, human, mod_ui, skipped, validated

# ============================================================================
# CLASSIFICATION CASES
# ============================================================================


@pytest.mark.unit
class TestSingleSideKeys:
    def test_local_only_is_kept(self):
        result = merge_values({"a": "1"}, {}, {})
        assert result.merged == {"a": "1"}
        assert result.statistics.local_only == 1

    def test_remote_only_is_added(self):
        result = merge_values({}, {"a": "1"}, {})
        assert result.merged == {"a": "1"}
        assert result.statistics.remote_added == 1

    def test_ancestor_only_is_dropped(self):
        result = merge_values({}, {}, {"a": "1"})
        assert result.merged == {}
        assert result.statistics.deleted == 1


@pytest.mark.unit
class TestBothSides:
    def test_identical_is_unchanged(self):
        result = merge_values({"a": "1"}, {"a": "1"}, {"a": "0"})
        assert result.merged == {"a": "1"}
        assert result.statistics.unchanged == 1

    def test_only_remote_changed_takes_remote(self):
        result = merge_values({"a": "old"}, {"a": "new"}, {"a": "old"})
        assert result.merged == {"a": "new"}
        assert result.statistics.remote_updated == 1
        assert result.success

    def test_only_local_changed_keeps_local(self):
        result = merge_values({"a": "mine"}, {"a": "old"}, {"a": "old"})
        assert result.merged == {"a": "mine"}
        assert result.statistics.local_modified == 1

    def test_both_changed_conflicts_with_remote_default(self):
        result = merge_values({"a": "mine"}, {"a": "theirs"}, {"a": "old"})
        assert result.merged == {"a": "theirs"}
        assert result.conflict_count == 1
        conflict = result.conflicts[0]
        assert conflict.kind is ConflictType.BOTH_MODIFIED
        assert (conflict.local, conflict.remote, conflict.ancestor) == ("mine", "theirs", "old")

    def test_no_ancestor_conflict_defaults_to_remote(self):
        result = merge_values({"a": "mine"}, {"a": "theirs"}, None)
        assert result.merged == {"a": "theirs"}
        assert result.conflicts[0].kind is ConflictType.NO_ANCESTOR
        assert result.conflicts[0].ancestor is None

    def test_key_missing_from_ancestor_is_no_ancestor_conflict(self):
        result = merge({"k": ai("x")}, {"k": ai("y")}, {"other": ai("z")})
        assert result.merged == {"k": ai("y")}
        assert result.conflicts[0].kind is ConflictType.NO_ANCESTOR
        assert result.conflicts[0].ancestor is None


@pytest.mark.unit
class TestDeletions:
    def test_remote_deletion_of_unchanged_local_is_accepted(self):
        result = merge_values({"a": "1"}, {}, {"a": "1"})
        assert "a" not in result.merged
        assert result.statistics.deleted == 1
        assert result.success

    def test_local_deletion_of_unchanged_remote_is_accepted(self):
        result = merge_values({}, {"a": "1"}, {"a": "1"})
        assert "a" not in result.merged
        assert result.statistics.deleted == 1

    def test_remote_deletion_of_modified_local_conflicts(self):
        result = merge_values({"a": "edited"}, {}, {"a": "1"})
        assert result.merged == {"a": "edited"}
        assert result.conflicts[0].kind is ConflictType.LOCAL_MODIFIED_REMOTE_DELETED
        assert result.conflicts[0].remote is None

    def test_local_deletion_of_modified_remote_conflicts(self):
        result = merge_values({}, {"a": "edited"}, {"a": "1"})
        assert result.merged == {"a": "edited"}
        assert result.conflicts[0].kind is ConflictType.REMOTE_MODIFIED_LOCAL_DELETED
        assert result.conflicts[0].local is None


# ============================================================================
# TAG-AWARE PRIORITY
# ============================================================================


@pytest.mark.unit
class TestTagPriority:
    def test_human_beats_ai_without_conflict(self):
        result = merge({"a": human("Bonjour")}, {"a": ai("Salut")}, None)
        assert result.merged == {"a": human("Bonjour")}
        assert result.success
        assert result.statistics.local_modified == 1

    def test_remote_human_beats_local_ai(self):
        result = merge({"a": ai("Salut")}, {"a": human("Bonjour")}, {"a": ai("Salut")})
        assert result.merged == {"a": human("Bonjour")}
        assert result.statistics.remote_updated == 1

    def test_validated_beats_ai(self):
        result = merge({"a": ai("x")}, {"a": validated("y")}, {"a": ai("z")})
        assert result.merged["a"] == validated("y")
        assert result.success

    def test_ai_beats_human_placeholder(self):
        result = merge({"a": human("")}, {"a": ai("Bonjour")}, None)
        assert result.merged == {"a": ai("Bonjour")}
        assert result.success

    @pytest.mark.parametrize("immutable", [skipped("Hello"), mod_ui("Réglages")])
    def test_immutable_local_never_replaced(self, immutable):
        result = merge({"a": immutable}, {"a": human("Bonjour")}, None)
        assert result.merged == {"a": immutable}
        assert result.success

    @pytest.mark.parametrize("immutable", [skipped("Hello"), mod_ui("Réglages")])
    def test_immutable_remote_never_replaced(self, immutable):
        result = merge({"a": human("Bonjour")}, {"a": immutable}, None)
        assert result.merged == {"a": immutable}

    def test_equal_priority_falls_back_to_ancestor(self):
        result = merge({"a": ai("old")}, {"a": ai("new")}, {"a": ai("old")})
        assert result.merged == {"a": ai("new")}
        assert result.statistics.remote_updated == 1

    def test_equal_priority_both_changed_conflicts(self):
        result = merge({"a": human("mine")}, {"a": human("theirs")}, {"a": human("old")})
        assert result.conflict_count == 1
        assert result.merged["a"] == human("theirs")

    def test_same_value_different_tag_is_not_unchanged(self):
        result = merge({"a": ai("x")}, {"a": validated("x")}, None)
        assert result.statistics.unchanged == 0
        assert result.merged["a"] == validated("x")


# ============================================================================
# GLOBAL PROPERTIES
# ============================================================================


@pytest.mark.unit
class TestProperties:
    def test_merge_of_identical_states_is_identity(self, sample_entries):
        result = merge(sample_entries, sample_entries, sample_entries)
        assert result.merged == sample_entries
        assert result.success
        assert result.statistics.unchanged == len(sample_entries)

    def test_remote_preferred_on_ties(self):
        forward = merge_values({"a": "L"}, {"a": "R"}, None)
        backward = merge_values({"a": "R"}, {"a": "L"}, None)
        assert forward.merged["a"] == "R"
        assert backward.merged["a"] == "L"

    def test_inputs_not_mutated(self):
        local = {"a": "1", "b": "2"}
        remote = {"a": "x"}
        ancestor = {"a": "1", "b": "2"}
        merge_values(local, remote, ancestor)
        assert local == {"a": "1", "b": "2"}
        assert remote == {"a": "x"}
        assert ancestor == {"a": "1", "b": "2"}

    def test_metadata_keys_excluded(self):
        result = merge_values({"_uuid": "l", "a": "1"}, {"_uuid": "r"}, None)
        assert result.merged == {"a": "1"}

    def test_each_key_counted_once(self):
        local = {"keep": "1", "mine": "m", "edit": "e", "gone": "g", "clash": "L"}
        remote = {"keep": "1", "theirs": "t", "edit": "0", "clash": "R"}
        ancestor = {"edit": "0", "gone": "g", "dropped": "d", "clash": "0"}
        stats = merge_values(local, remote, ancestor).statistics
        counted = (
            stats.unchanged
            + stats.local_only
            + stats.local_modified
            + stats.remote_added
            + stats.remote_updated
            + stats.deleted
            + stats.conflict
        )
        assert counted == len(set(local) | set(remote) | set(ancestor))


# ============================================================================
# RESOLUTIONS
# ============================================================================


@pytest.mark.unit
class TestResolutions:
    def _conflicted(self):
        return merge_values(
            {"a": "mine", "b": "edited", "c": "L"},
            {"a": "theirs", "c": "R"},
            {"a": "old", "b": "orig", "c": "old"},
        )

    def test_keep_local(self):
        result = apply_resolutions(self._conflicted(), {"a": ConflictResolution.KEEP_LOCAL})
        assert result.merged["a"] == "mine"
        assert result.statistics.resolved == 1
        assert {c.key for c in result.conflicts} == {"b", "c"}

    def test_take_remote_of_deletion_drops_key(self):
        result = apply_resolutions(self._conflicted(), {"b": ConflictResolution.TAKE_REMOTE})
        assert "b" not in result.merged

    def test_keep_both_keeps_local_when_both_exist(self):
        result = apply_resolutions(self._conflicted(), {"a": ConflictResolution.KEEP_BOTH})
        assert result.merged["a"] == "mine"

    def test_keep_both_with_one_side_missing_keeps_default(self):
        result = apply_resolutions(self._conflicted(), {"b": ConflictResolution.KEEP_BOTH})
        assert result.merged["b"] == "edited"
        assert result.statistics.resolved == 1

    def test_undecided_conflicts_remain(self):
        result = apply_resolutions(self._conflicted(), {})
        assert result.conflict_count == 3
        assert result.statistics.resolved == 0

    def test_resolve_all(self):
        result = resolve_all(self._conflicted(), ConflictResolution.KEEP_LOCAL)
        assert result.success
        assert result.merged == {"a": "mine", "b": "edited", "c": "L"}
        assert result.statistics.resolved == 3

    def test_string_decision_accepted(self):
        result = apply_resolutions(self._conflicted(), {"c": "keep_local"})
        assert result.merged["c"] == "L"


@pytest.mark.unit
class TestStatistics:
    def test_empty_summary(self):
        assert MergeStatistics().summary() == "no changes"

    def test_summary_omits_zero_counters(self):
        stats = MergeStatistics(unchanged=2, conflict=1)
        assert stats.summary() == "2 unchanged, 1 conflicts"

    def test_total_merged(self):
        stats = MergeStatistics(unchanged=1, local_only=2, remote_added=3, deleted=4, conflict=5)
        assert stats.total_merged == 6
