"""
audio-tagger CLI - entry point

Commands:
    list DIR [--audio-only]          Show files in a folder
    scan DIR                         Tag a folder's audio files into the catalog
    playlist create|list|show|add|remove|move
"""

import argparse
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.markup import escape
from rich.table import Table

from audio_tagger.context import AppContext
from audio_tagger.core.config import (
    Config,
    ensure_directories,
    get_data_dir,
    load_config,
)
from audio_tagger.core.console import get_console, print_plain
from audio_tagger.core.output import log, setup_loguru
from audio_tagger.domain.library.import_tracks import load_from_directory
from audio_tagger.domain.library.models import Track, format_duration, format_size
from audio_tagger.domain.library.scanner import scan_directory
from audio_tagger.domain.playlists.models import Playlist
from audio_tagger.exceptions import AudioTaggerError, ScanCancelled

FILENAME_WIDTH = 49


def _error(message: str) -> int:
    logger.error(message)
    print(f"Error: {message}", file=sys.stderr)
    return 1


def cmd_list(config: Config, directory: str, audio_only: bool) -> int:
    """Print a table of filename/size/extension for one folder."""
    entries = scan_directory(
        directory,
        audio_only=audio_only,
        supported_extensions=config.library.supported_extensions,
    )
    console = get_console()
    kind = "audio " if audio_only else ""

    if not entries:
        print_plain(f"No {kind}files found: {directory}")
        return 0

    table = Table(
        title=escape(f"=== {'Audio ' if audio_only else ''}Files in {directory} ==="),
        show_edge=False,
    )
    table.add_column("Filename", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Extension", no_wrap=True)
    for entry in entries:
        table.add_row(
            escape(entry.filename[:FILENAME_WIDTH]),
            format_size(entry.size),
            escape(entry.extension),
        )

    console.print(table)
    console.print(f"\nTotal files: {len(entries)}", highlight=False)
    return 0


def cmd_scan(ctx: AppContext, directory: str) -> int:
    """Tag every audio file in a folder and store the tracks in the catalog."""
    library = ctx.config.library
    cancel_event = threading.Event()

    def progress(done: int, total: int, entry) -> None:
        print_plain(f"  [{done}/{total}] {entry.filename}")

    try:
        tracks = load_from_directory(
            directory,
            reader=ctx.reader,
            supported_extensions=library.supported_extensions,
            max_workers=library.max_workers,
            read_timeout=library.read_timeout_seconds,
            cancel_event=cancel_event,
            progress_callback=progress,
        )
    except (KeyboardInterrupt, ScanCancelled):
        cancel_event.set()
        log("Scan aborted, nothing was saved", "warning")
        return 130

    saved = ctx.catalog.upsert_many(tracks)
    log(f"Catalogued {len(saved)} tracks from {directory}", "success")
    return 0


def _print_tracks(tracks: list[Track]) -> None:
    table = Table(show_edge=False)
    table.add_column("#", justify="right")
    table.add_column("ID", justify="right")
    table.add_column("Track")
    table.add_column("Album")
    table.add_column("Duration", justify="right")
    for position, track in enumerate(tracks, 1):
        table.add_row(
            str(position),
            str(track.id),
            escape(track.display_name),
            escape(track.metadata.album or ""),
            track.metadata.formatted_duration,
        )
    get_console().print(table)


def _resolve_track(ctx: AppContext, path: str) -> Track:
    """Catalogued track for a file, tagging and cataloguing it if needed."""
    file_path = str(Path(path).expanduser().resolve())
    track = ctx.catalog.get_by_path(file_path)
    if track is not None:
        return track
    metadata = ctx.reader.extract(file_path)
    return ctx.catalog.upsert(Track.from_file(file_path, metadata))


def cmd_playlist(ctx: AppContext, args: argparse.Namespace) -> int:
    store = ctx.store
    console = get_console()

    if args.playlist_command == "create":
        playlist_id = store.save(Playlist.create(args.title, args.description))
        log(f"Created playlist #{playlist_id}: {args.title}", "success")
        return 0

    if args.playlist_command == "list":
        playlists = store.list_playlists()
        if not playlists:
            print_plain("No playlists yet", "dim")
            return 0
        table = Table(show_edge=False)
        table.add_column("ID", justify="right")
        table.add_column("Title")
        table.add_column("Tracks", justify="right")
        table.add_column("Duration", justify="right")
        for playlist in playlists:
            table.add_row(
                str(playlist.id),
                escape(playlist.title),
                str(playlist.track_count),
                format_duration(playlist.total_duration),
            )
        console.print(table)
        return 0

    playlist = store.get(args.playlist_id)
    if playlist is None:
        return _error(f"Playlist #{args.playlist_id} not found")

    if args.playlist_command == "show":
        console.print(f"[bold]{escape(playlist.title)}[/bold] (#{playlist.id})")
        if playlist.description:
            print_plain(playlist.description)
        _print_tracks(playlist.get_tracks())
        console.print(
            f"{playlist.track_count} tracks, {format_duration(playlist.total_duration)}",
            highlight=False,
        )
        return 0

    if args.playlist_command == "add":
        track = _resolve_track(ctx, args.path)
        position = playlist.add_track(track, args.position)
        log(f"Added {track.display_name} at position {position}", "success")
        return 0

    if args.playlist_command == "remove":
        track = ctx.catalog.get_by_id(args.track_id)
        if track is None or not playlist.remove_track(track):
            return _error(f"Track #{args.track_id} is not in playlist #{playlist.id}")
        log(f"Removed {track.display_name} from {playlist.title}", "success")
        return 0

    if args.playlist_command == "move":
        store.move_membership(playlist.id, args.from_position, args.to_position)
        log(f"Moved track {args.from_position} -> {args.to_position}", "success")
        return 0

    return _error(f"Unknown playlist command: {args.playlist_command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audio-tagger",
        description="Index a folder of audio files and keep ordered playlists",
    )
    parser.add_argument("--config", type=Path, help="Path to config.toml")
    parser.add_argument("--db", help="SQLite database file (overrides config)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List files in a directory")
    list_parser.add_argument("directory")
    list_parser.add_argument(
        "--audio-only", action="store_true", help="Only show supported audio files"
    )

    scan_parser = subparsers.add_parser(
        "scan", help="Tag a directory's audio files into the catalog"
    )
    scan_parser.add_argument("directory")
    scan_parser.add_argument("--workers", type=int, help="Concurrent tag readers")

    playlist_parser = subparsers.add_parser("playlist", help="Manage playlists")
    playlist_sub = playlist_parser.add_subparsers(
        dest="playlist_command", required=True
    )

    create = playlist_sub.add_parser("create", help="Create a playlist")
    create.add_argument("title")
    create.add_argument("--description")

    playlist_sub.add_parser("list", help="List playlists")

    show = playlist_sub.add_parser("show", help="Show a playlist's tracks")
    show.add_argument("playlist_id", type=int)

    add = playlist_sub.add_parser("add", help="Add an audio file to a playlist")
    add.add_argument("playlist_id", type=int)
    add.add_argument("path")
    add.add_argument("--position", type=int, help="1-based position (default: end)")

    remove = playlist_sub.add_parser("remove", help="Remove a track from a playlist")
    remove.add_argument("playlist_id", type=int)
    remove.add_argument("track_id", type=int)

    move = playlist_sub.add_parser("move", help="Move a track to another position")
    move.add_argument("playlist_id", type=int)
    move.add_argument("from_position", type=int)
    move.add_argument("to_position", type=int)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the audio-tagger command."""
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.db:
        config.database.path = args.db
    if getattr(args, "workers", None):
        config.library.max_workers = max(1, args.workers)

    ensure_directories()
    log_file = (
        Path(config.logging.log_file)
        if config.logging.log_file
        else get_data_dir() / "audio-tagger.log"
    )
    setup_loguru(
        log_file,
        level=config.logging.level,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )

    try:
        if args.command == "list":
            return cmd_list(config, args.directory, args.audio_only)

        ctx = AppContext.create(config)
        try:
            if args.command == "scan":
                return cmd_scan(ctx, args.directory)
            return cmd_playlist(ctx, args)
        finally:
            ctx.close()
    except (AudioTaggerError, ValueError) as e:
        return _error(str(e))


if __name__ == "__main__":
    sys.exit(main())
