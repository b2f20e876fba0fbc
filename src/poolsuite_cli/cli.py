"""
Poolsuite CLI - Entry point

Parses arguments, checks preconditions (mpv, credentials, playlist), then
runs the player UI and playback orchestrator on one asyncio event loop.
"""

import argparse
import asyncio
import contextlib
import sys
from typing import Optional

from blessed import Terminal
from loguru import logger

from poolsuite_cli import __version__
from poolsuite_cli.context import PlayerContext
from poolsuite_cli.core.config import (
    Config,
    ensure_directories,
    get_config_path,
    get_log_file_path,
    load_config,
)
from poolsuite_cli.core.console import (
    configure_console,
    get_console,
    playlist_table,
    safe_print,
    show_error,
    show_hint,
)
from poolsuite_cli.core.output import setup_loguru
from poolsuite_cli.domain.catalogue import (
    PLAYLISTS,
    SoundCloudClient,
    get_playlist,
    get_playlist_names,
    make_stream_resolver,
    make_track_list_provider,
)
from poolsuite_cli.domain.playback import (
    Orchestrator,
    PlaybackController,
    ProcessSpawnFailure,
    check_player_available,
)
from poolsuite_cli.ui import BlessedRenderer, KeyReader

MPV_INSTALL_HINTS = [
    ("macOS", "brew install mpv"),
    ("Arch Linux", "sudo pacman -S mpv"),
    ("Ubuntu", "sudo apt install mpv"),
    ("Fedora", "sudo dnf install mpv"),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="poolsuite",
        description="Stream Poolsuite FM playlists from SoundCloud in your terminal.",
        epilog="Unofficial tool. All music curation credit goes to Poolsuite FM.",
    )
    parser.add_argument(
        "playlist",
        nargs="?",
        help="Playlist key to play (see --list); defaults to the configured playlist",
    )
    parser.add_argument("-s", "--shuffle", action="store_true", help="Shuffle the playlist")
    parser.add_argument("-l", "--list", action="store_true", help="List available playlists")
    parser.add_argument(
        "-v", "--version", action="version", version=f"poolsuite {__version__}"
    )
    return parser


def list_playlists() -> None:
    rows = ((key, info.name, info.description) for key, info in PLAYLISTS.items())
    get_console().print(playlist_table(rows))


def show_mpv_install_instructions() -> None:
    show_error("mpv is not installed")
    show_hint("Install mpv:", MPV_INSTALL_HINTS)


def run_player(config: Config, playlist_key: str, shuffle: bool) -> int:
    """Run the full-screen player until quit or end. Returns an exit code."""
    term = Terminal()
    context = PlayerContext(renderer=BlessedRenderer(term, use_colors=config.ui.use_colors))
    controller = PlaybackController.from_config(config.player)
    client = SoundCloudClient(
        config.soundcloud.client_id,
        oauth_token=config.soundcloud.oauth_token,
        api_base=config.soundcloud.api_base,
        timeout=config.soundcloud.request_timeout,
    )
    orchestrator = Orchestrator(
        context,
        controller,
        make_track_list_provider(client),
        make_stream_resolver(client),
        available_keys=get_playlist_names(),
        shuffle=shuffle,
        refresh_interval=config.ui.refresh_interval,
        seek_seconds=config.player.seek_seconds,
    )

    async def _main() -> int:
        reader_task = asyncio.create_task(KeyReader(term, context.dispatch_key).run())
        try:
            return await orchestrator.run(playlist_key)
        finally:
            reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader_task

    exit_code = 0
    with term.fullscreen(), term.cbreak(), term.hidden_cursor():
        try:
            exit_code = asyncio.run(_main())
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping playback")

    if exit_code:
        show_error("No playable tracks found. Check your SoundCloud client_id.")
    else:
        safe_print("Playback stopped.", style="cyan")
    return exit_code


def run(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list:
        list_playlists()
        return 0

    config = load_config()
    ensure_directories()
    configure_console(config.ui.use_colors)
    setup_loguru(get_log_file_path(config), config.logging.level)

    playlist_key = args.playlist or config.playback.default_playlist
    if get_playlist(playlist_key) is None:
        show_error(f"Unknown playlist '{playlist_key}'")
        safe_print("Run [yellow]poolsuite --list[/yellow] to see available playlists")
        return 1

    try:
        check_player_available(config.player.mpv_path)
    except ProcessSpawnFailure as e:
        logger.error(str(e))
        show_mpv_install_instructions()
        return 1

    if not config.soundcloud.client_id:
        show_error("No SoundCloud client_id configured")
        safe_print(
            f"Set [yellow]client_id[/yellow] under \\[soundcloud] in {get_config_path()} "
            "or export SOUNDCLOUD_CLIENT_ID."
        )
        return 1

    shuffle = args.shuffle or config.playback.shuffle
    logger.info(f"Starting player: playlist={playlist_key} shuffle={shuffle}")
    return run_player(config, playlist_key, shuffle)


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
