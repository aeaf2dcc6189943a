"""Three-way, priority-aware merge of translation dictionaries."""

from game_translator.merge.engine import (
    ConflictResolution,
    ConflictType,
    MergeConflict,
    MergeResult,
    MergeStatistics,
    apply_resolutions,
    merge,
    merge_values,
    resolve_all,
)

__all__ = [
    "ConflictResolution",
    "ConflictType",
    "MergeConflict",
    "MergeResult",
    "MergeStatistics",
    "apply_resolutions",
    "merge",
    "merge_values",
    "resolve_all",
]
