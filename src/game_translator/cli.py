"""
Command-line interface for game-translator.

Provides CLI commands for inspecting and maintaining translation stores:
- stats: Entry counts per tag, identity and sync state of a store
- hash: Content hash of a store (the value compared with the server)
- fork: Give a store a new identity, severing it from its remote copy
- merge: Offline three-way merge of two store files
- translate: One-shot provider call, for checking an Ollama setup
- config: Print the effective configuration

Usage:
    game-translator stats [--store PATH]
    game-translator hash [--store PATH]
    game-translator fork [--store PATH]
    game-translator merge LOCAL REMOTE [--ancestor FILE] [--strategy remote|local] [--output FILE]
    game-translator translate TEXT
    game-translator config

Environment Variables:
    GT_DATA_DIR: Directory holding the default store file
    GT_OLLAMA_URL: Ollama server URL used by `translate`
    GT_MODEL: Ollama model used by `translate`
    GT_LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import logging
import sys
from pathlib import Path

from game_translator.config import LoggingSettings, TranslatorConfig, load_config

_LOG_FORMATS = {
    "simple": "%(levelname)s %(name)s: %(message)s",
    "detailed": "%(asctime)s [%(threadName)s] %(levelname)s %(name)s:%(lineno)d: %(message)s",
}


def configure_logging(settings: LoggingSettings) -> None:
    """Install a root handler with the configured level and format."""
    level = getattr(logging, settings.level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=_LOG_FORMATS.get(settings.format, _LOG_FORMATS["simple"]),
        force=True,
    )


def _load_cli_config(args: argparse.Namespace) -> TranslatorConfig:
    return load_config(getattr(args, "config", None))


def _store_path(args: argparse.Namespace, cfg: TranslatorConfig) -> Path:
    if getattr(args, "store", None):
        return Path(args.store)
    return cfg.storage.store_path


def _read_snapshot(path: Path):
    from game_translator.store import TranslationStore

    return TranslationStore.parse_snapshot(path.read_text(encoding="utf-8"))


def cmd_stats(args: argparse.Namespace) -> int:
    """
    Print a summary of a store.

    Returns:
        0 on success, 1 if the store file does not exist
    """
    from game_translator.store import TranslationStore

    path = _store_path(args, _load_cli_config(args))
    if not path.exists():
        print(f"No store file at {path}", file=sys.stderr)
        return 1

    store = TranslationStore.load(path)
    print(f"Store:         {path}")
    print(f"UUID:          {store.uuid}")
    if store.game is not None:
        print(f"Game:          {store.game.name} (steam_id={store.game.steam_id})")
    print(f"Entries:       {len(store)}")
    for tag, count in store.tag_counts().items():
        print(f"  {tag.name:<12} {count}")
    print(f"Local changes: {store.local_changes_count}")
    print(f"Ancestor:      {'yes' if store.has_ancestor else 'no'}")
    print(f"Last synced:   {store.last_synced_hash or '-'}")
    return 0


def cmd_hash(args: argparse.Namespace) -> int:
    """
    Print the content hash of a store.

    Returns:
        0 on success, 1 if the store file does not exist
    """
    from game_translator.store import TranslationStore

    path = _store_path(args, _load_cli_config(args))
    if not path.exists():
        print(f"No store file at {path}", file=sys.stderr)
        return 1
    print(TranslationStore.load(path).compute_content_hash())
    return 0


def cmd_fork(args: argparse.Namespace) -> int:
    """
    Assign a new identity to a store and discard its ancestor.

    Returns:
        0 on success, 1 on error
    """
    from game_translator.store import TranslationStore

    path = _store_path(args, _load_cli_config(args))
    if not path.exists():
        print(f"No store file at {path}", file=sys.stderr)
        return 1

    store = TranslationStore.load(path)
    old_uuid = store.uuid
    new_uuid = store.fork()
    if store.dirty:
        print(f"Error writing {path}", file=sys.stderr)
        return 1
    print(f"Forked {old_uuid} -> {new_uuid} ({store.local_changes_count} local changes)")
    return 0


def cmd_merge(args: argparse.Namespace) -> int:
    """
    Merge two store files against an optional ancestor.

    Without --ancestor, LOCAL's sibling ``.ancestor`` file is used when
    present. Conflicts are listed; --strategy settles them automatically.

    Returns:
        0 on success, 1 on error or when --output is requested while
        conflicts remain
    """
    from game_translator.merge import ConflictResolution, resolve_all
    from game_translator.merge import merge as merge_entries
    from game_translator.store import TranslationStore

    local_path = Path(args.local)
    remote_path = Path(args.remote)
    ancestor_path = Path(args.ancestor) if args.ancestor else local_path.with_name(
        local_path.name + ".ancestor"
    )

    try:
        local = _read_snapshot(local_path)
        remote = _read_snapshot(remote_path)
        ancestor = _read_snapshot(ancestor_path).entries if ancestor_path.exists() else None
    except (OSError, ValueError) as e:
        print(f"Error reading store files: {e}", file=sys.stderr)
        return 1

    result = merge_entries(local.entries, remote.entries, ancestor)
    if args.strategy and result.conflicts:
        resolution = (
            ConflictResolution.TAKE_REMOTE if args.strategy == "remote" else ConflictResolution.KEEP_LOCAL
        )
        resolve_all(result, resolution)

    print(f"Merge: {result.statistics.summary()}")
    for conflict in result.conflicts:
        local_value = conflict.local.value if conflict.local else "<deleted>"
        remote_value = conflict.remote.value if conflict.remote else "<deleted>"
        print(f"  [{conflict.kind.value}] {conflict.key!r}")
        print(f"      local:  {local_value!r}")
        print(f"      remote: {remote_value!r}")

    if not args.output:
        return 0
    if result.conflicts:
        print(
            f"{result.conflict_count} conflicts unresolved; pass --strategy to write the merge",
            file=sys.stderr,
        )
        return 1

    merged = TranslationStore(
        args.output,
        uuid=remote.uuid or local.uuid,
        entries=result.merged,
        game=local.game or remote.game,
    )
    merged.pin_ancestor_from_remote(remote.entries)
    if not merged.save():
        print(f"Error writing {args.output}", file=sys.stderr)
        return 1
    print(f"Wrote {len(merged)} entries to {args.output}")
    return 0


def cmd_translate(args: argparse.Namespace) -> int:
    """
    Translate one string synchronously through the configured provider.

    Returns:
        0 on success, 1 if the provider returned nothing usable
    """
    from game_translator.languages import resolve_language
    from game_translator.normalization import NormalizedText, classify_text, extract_numbers
    from game_translator.provider import OllamaProvider, OutputCleaner, ProviderRequest

    cfg = _load_cli_config(args)
    provider = OllamaProvider(
        api_endpoint=cfg.provider.api_endpoint,
        model=cfg.provider.model,
        timeout_seconds=cfg.provider.timeout_seconds,
        max_text_length=cfg.provider.max_text_length,
    )
    if cfg.translation.normalize_numbers:
        normalized = extract_numbers(args.text)
    else:
        normalized = NormalizedText(args.text)
    key = normalized.text
    request = ProviderRequest(
        text=key,
        source_language=resolve_language(args.source or cfg.translation.source_language, is_source=True),
        target_language=resolve_language(args.target or cfg.translation.target_language) or "English",
        game_context=cfg.translation.game_context,
        text_type=classify_text(key),
    )

    cleaned = OutputCleaner().clean(provider.translate(request))
    if cleaned is None:
        print("No translation returned (is Ollama running?)", file=sys.stderr)
        return 1
    print(normalized.restore(cleaned))
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the effective configuration."""
    from game_translator import config as config_module

    if getattr(args, "config", None):
        config_module.config = load_config(args.config)
    config_module.print_config_summary()
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="game-translator",
        description="game-translator - per-game translation dictionary tools",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="INI file to read instead of config/translator.ini",
    )
    parser.add_argument(
        "--store",
        type=str,
        help="Store file (default: storage.data_dir/storage.store_filename)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    stats_parser = subparsers.add_parser("stats", help="Show store statistics")
    stats_parser.set_defaults(func=cmd_stats)

    hash_parser = subparsers.add_parser("hash", help="Print the store content hash")
    hash_parser.set_defaults(func=cmd_hash)

    fork_parser = subparsers.add_parser(
        "fork",
        help="Give the store a new identity",
        description=(
            "Assign a new UUID and discard the ancestor snapshot. Every entry "
            "becomes a local change, and the next upload creates a new remote copy."
        ),
    )
    fork_parser.set_defaults(func=cmd_fork)

    merge_parser = subparsers.add_parser(
        "merge",
        help="Three-way merge of two store files",
        description=(
            "Merge REMOTE into LOCAL using ANCESTOR as the common base. "
            "Conflicts default to the remote value for display only."
        ),
    )
    merge_parser.add_argument("local", help="Local store file")
    merge_parser.add_argument("remote", help="Remote store file")
    merge_parser.add_argument("--ancestor", help="Ancestor file (default: LOCAL.ancestor)")
    merge_parser.add_argument(
        "--strategy",
        choices=["remote", "local"],
        help="Resolve every conflict in favour of one side",
    )
    merge_parser.add_argument("--output", "-o", help="Write the merged store here")
    merge_parser.set_defaults(func=cmd_merge)

    translate_parser = subparsers.add_parser(
        "translate",
        help="Translate one string through the provider",
    )
    translate_parser.add_argument("text", help="Text to translate")
    translate_parser.add_argument("--target", help="Target language (code or name)")
    translate_parser.add_argument("--source", help="Source language (code or name)")
    translate_parser.set_defaults(func=cmd_translate)

    config_parser = subparsers.add_parser("config", help="Show the effective configuration")
    config_parser.set_defaults(func=cmd_config)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(_load_cli_config(args).logging)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
