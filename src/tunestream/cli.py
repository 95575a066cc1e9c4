"""
tunestream CLI - entry point

Account, library and playback commands against the music API.
"""

import argparse
import getpass
import queue
import sys
import threading
from pathlib import Path
from typing import Any, Optional, TextIO

from rich.table import Table

from tunestream.app import Application, setup_logging
from tunestream.core.config import Config, load_config
from tunestream.core.console import get_console, safe_print
from tunestream.domain.library.models import Album, Track
from tunestream.domain.playback import (
    MpvAudioOutput,
    PlaybackCoordinator,
    PlaybackState,
    PlaybackStatus,
    check_mpv_available,
    format_time,
)
from tunestream.gateway.exceptions import AuthenticationError


def run_register(app: Application, username: str, email: str) -> int:
    password = getpass.getpass("Password: ")
    try:
        message = app.sessions.register(username, email, password)
    except AuthenticationError as e:
        safe_print(f"❌ {e}", style="red")
        return 1
    safe_print(f"✅ {message}", style="green")
    return 0


def run_login(app: Application, email: str) -> int:
    password = getpass.getpass("Password: ")
    try:
        user = app.sessions.login(email, password)
    except AuthenticationError as e:
        safe_print(f"❌ {e}", style="red")
        return 1
    safe_print(f"✅ Logged in as {user.username or user.email}", style="green")
    return 0


def run_logout(app: Application) -> int:
    app.sessions.logout()
    safe_print("Logged out")
    return 0


def run_whoami(app: Application) -> int:
    user = app.sessions.user
    if user is None:
        safe_print("Not logged in")
        return 1
    safe_print(f"{user.username} <{user.email}> (id {user.id})")
    return 0


def _songs_table(tracks: list[Track], title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Length", justify="right")
    for position, track in enumerate(tracks, start=1):
        table.add_row(
            str(position),
            track.title if track.playable else f"[dim]{track.title}[/dim]",
            track.artist,
            track.album,
            format_time(track.duration) if track.duration else "",
        )
    return table


def run_songs(app: Application, query: str = "") -> int:
    if not app.songs.fetch():
        return 1
    show_unplayable = app.player.preferences.show_unplayable
    tracks = [t for t in app.songs.search(query) if show_unplayable or t.playable]
    get_console().print(_songs_table(tracks, f"Songs ({len(tracks)})"))
    return 0


def run_albums(app: Application, query: str = "") -> int:
    if not app.albums.fetch():
        return 1
    table = Table(title="Albums")
    table.add_column("Title")
    table.add_column("Artist")
    table.add_column("Year", justify="right")
    table.add_column("Songs", justify="right")
    for album in app.albums.search(query):
        table.add_row(album.title, album.artist, str(album.year or ""), str(len(album.songs)))
    get_console().print(table)
    return 0


def run_playlists(app: Application, query: str = "") -> int:
    if not app.sessions.is_authenticated:
        safe_print("Log in first: tunestream login EMAIL", style="yellow")
        return 1
    if not app.playlists.fetch():
        return 1
    table = Table(title="My playlists")
    table.add_column("Name")
    table.add_column("Songs", justify="right")
    table.add_column("Public")
    for playlist in app.playlists.search(query):
        table.add_row(playlist.name, str(len(playlist.songs)), "yes" if playlist.is_public else "no")
    get_console().print(table)
    return 0


def run_profile(app: Application, changes: dict[str, Any]) -> int:
    if not changes:
        safe_print("Nothing to update: pass --username, --email or --avatar", style="yellow")
        return 2
    try:
        user = app.sessions.update_profile(changes)
    except AuthenticationError as e:
        safe_print(f"❌ {e}", style="red")
        return 1
    safe_print(f"✅ Profile updated: {user.username} <{user.email}>", style="green")
    return 0


def run_upload(
    app: Application,
    audio_file: str,
    cover_file: Optional[str] = None,
    artist: Optional[str] = None,
    album: Optional[str] = None,
) -> int:
    created = app.songs.upload(
        Path(audio_file).expanduser(),
        Path(cover_file).expanduser() if cover_file else None,
        artist=artist,
        album=album,
    )
    if not created:
        return 1
    for track in created:
        safe_print(f"✅ Added '{track.title}' ({track.id})", style="green")
    return 0


def run_edit_song(app: Application, song_id: str, changes: dict[str, Any]) -> int:
    if not changes:
        safe_print("Nothing to change: pass --title, --artist or --album", style="yellow")
        return 2
    track = app.songs.update(song_id, changes)
    if track is None:
        return 1
    safe_print(f"✅ Updated '{track.title}' - {track.artist}", style="green")
    return 0


def run_delete_song(app: Application, song_id: str) -> int:
    if not app.delete_song(song_id):
        return 1
    safe_print(f"🗑  Deleted song {song_id}")
    return 0


def run_playlist(app: Application, args: argparse.Namespace) -> int:
    if not app.sessions.is_authenticated:
        safe_print("Log in first: tunestream login EMAIL", style="yellow")
        return 1

    if args.action == "create":
        fields = {"name": args.name, "isPublic": not args.private}
        if args.description:
            fields["description"] = args.description
        playlist = app.playlists.add(fields)
        if playlist is None:
            return 1
        safe_print(f"✅ Created playlist '{playlist.name}'", style="green")
        return 0

    if not app.playlists.fetch():
        return 1
    playlist = app.playlists.find_by_name(args.name)
    if playlist is None:
        safe_print(f"❌ No playlist named '{args.name}'", style="red")
        return 1

    if args.action == "rename":
        if app.playlists.update(playlist.id, {"name": args.new_name}) is None:
            return 1
        safe_print(f"✅ Renamed '{playlist.name}' to '{args.new_name}'", style="green")
    elif args.action == "delete":
        if not app.playlists.delete(playlist.id):
            return 1
        safe_print(f"🗑  Deleted playlist '{playlist.name}'")
    return 0


def _find_album(app: Application, ref: str) -> Optional[Album]:
    """Look an album up by id, then by exact case-insensitive title."""
    album = app.albums.get(ref)
    if album is not None:
        return album
    wanted = ref.strip().lower()
    return next((a for a in app.albums.albums if a.title.lower() == wanted), None)


def run_album(app: Application, args: argparse.Namespace) -> int:
    if args.action == "create":
        fields = {"title": args.title, "artist": args.artist, "year": args.year}
        album = app.albums.add({k: v for k, v in fields.items() if v is not None})
        if album is None:
            return 1
        safe_print(f"✅ Created album '{album.title}'", style="green")
        return 0

    if not app.albums.fetch():
        return 1
    album = _find_album(app, args.album)
    if album is None:
        safe_print(f"❌ No album '{args.album}'", style="red")
        return 1
    if not app.albums.delete(album.id):
        return 1
    safe_print(f"🗑  Deleted album '{album.title}'")
    return 0


def _print_now_playing(state: PlaybackState, track: Optional[Track], last: list) -> None:
    key = (track.id if track else None, state.status)
    if key == (last[0] if last else None):
        return
    last[:] = [key]
    if track is None or state.status is PlaybackStatus.STOPPED:
        safe_print("⏹  Stopped")
        return
    icon = "▶" if state.status is PlaybackStatus.PLAYING else "⏸"
    safe_print(f"{icon}  {track.title} - {track.artist}", style="bold")


CONTROLS_HELP = (
    "Controls (type then Enter): n next, p previous, Enter pause/resume, "
    "+/- volume, m mute, l like, s shuffle, r repeat, q quit"
)
VOLUME_STEP = 0.1


def handle_player_key(player: PlaybackCoordinator, key: str) -> bool:
    """Apply one typed playback command.

    Returns:
        False when the user asked to quit, True otherwise
    """
    key = key.strip().lower()

    if key == "q":
        player.stop()
        return False
    elif key in ("", "space"):
        player.toggle_play_pause()
    elif key == "n":
        player.next()
    elif key == "p":
        player.previous()
    elif key in ("+", "-"):
        step = VOLUME_STEP if key == "+" else -VOLUME_STEP
        player.set_volume(round(player.state.volume + step, 2))
        safe_print(f"🔊 Volume {round(player.state.volume * 100)}%")
    elif key == "m":
        player.toggle_mute()
        safe_print("🔇 Muted" if player.state.muted else "🔊 Unmuted")
    elif key == "l":
        track = player.current_track
        if track is None:
            return True
        if player.toggle_like(track):
            safe_print(f"♥  Liked '{track.title}'")
        else:
            safe_print(f"♡  Removed like from '{track.title}'")
    elif key == "s":
        player.toggle_shuffle()
        safe_print(f"Shuffle {'on' if player.state.shuffle else 'off'}")
    elif key == "r":
        safe_print(f"Repeat {player.cycle_repeat_mode().value}")
    else:
        safe_print(CONTROLS_HELP, style="dim")
    return True


def _read_lines(stream: TextIO) -> "queue.Queue[str]":
    """Feed lines typed on ``stream`` into a queue from a daemon thread."""
    lines: "queue.Queue[str]" = queue.Queue()

    def reader() -> None:
        for line in iter(stream.readline, ""):
            lines.put(line.rstrip("\n"))

    threading.Thread(target=reader, name="tunestream-keys", daemon=True).start()
    return lines


def run_play(
    app: Application,
    playlist_name: Optional[str] = None,
    shuffle: bool = False,
    repeat: Optional[str] = None,
    stdin: Optional[TextIO] = None,
) -> int:
    if not check_mpv_available():
        safe_print("❌ mpv is required for playback", style="red")
        return 1
    if not app.songs.fetch():
        return 1

    songs: list = list(app.songs.visible(app.player.preferences.show_unplayable))
    if playlist_name:
        if not app.sessions.is_authenticated or not app.playlists.fetch():
            safe_print("Log in first: tunestream login EMAIL", style="yellow")
            return 1
        playlist = app.playlists.find_by_name(playlist_name)
        if playlist is None:
            safe_print(f"❌ No playlist named '{playlist_name}'", style="red")
            return 1
        songs = list(playlist.songs)

    if not songs:
        safe_print("Nothing to play")
        return 1

    if isinstance(app.audio, MpvAudioOutput) and not app.audio.start():
        safe_print("❌ Failed to start mpv", style="red")
        return 1

    if shuffle and not app.player.state.shuffle:
        app.player.toggle_shuffle()
    if repeat:
        app.player.set_repeat_mode(repeat)

    last: list = []
    app.player.subscribe(lambda state, track: _print_now_playing(state, track, last))
    app.player.play_playlist(songs)
    safe_print(CONTROLS_HELP, style="dim")

    lines = _read_lines(stdin or sys.stdin)
    try:
        while app.player.state.status is not PlaybackStatus.STOPPED:
            app.poll()
            try:
                key = lines.get(timeout=app.config.player.poll_interval)
            except queue.Empty:
                continue
            if not handle_player_key(app.player, key):
                break
    except KeyboardInterrupt:
        app.player.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="tunestream - stream your music library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--api-url", help="Override the API base URL")

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    register_parser = subparsers.add_parser("register", help="Create an account")
    register_parser.add_argument("username")
    register_parser.add_argument("email")

    login_parser = subparsers.add_parser("login", help="Log in")
    login_parser.add_argument("email")

    subparsers.add_parser("logout", help="Log out")
    subparsers.add_parser("whoami", help="Show the logged-in user")

    songs_parser = subparsers.add_parser("songs", help="List songs")
    songs_parser.add_argument("query", nargs="*", help="Filter by title, artist or album")

    albums_parser = subparsers.add_parser("albums", help="List albums")
    albums_parser.add_argument("query", nargs="*", help="Filter by title or artist")

    playlists_parser = subparsers.add_parser("playlists", help="List your playlists")
    playlists_parser.add_argument("query", nargs="*", help="Filter by name")

    profile_parser = subparsers.add_parser("profile", help="Update your profile")
    profile_parser.add_argument("--username")
    profile_parser.add_argument("--email")
    profile_parser.add_argument("--avatar", help="Avatar image URL")

    upload_parser = subparsers.add_parser("upload", help="Upload a song")
    upload_parser.add_argument("file", help="Audio file")
    upload_parser.add_argument("--cover", help="Cover image file")
    upload_parser.add_argument("--artist")
    upload_parser.add_argument("--album")

    edit_parser = subparsers.add_parser("edit-song", help="Change a song's details")
    edit_parser.add_argument("song_id")
    edit_parser.add_argument("--title")
    edit_parser.add_argument("--artist")
    edit_parser.add_argument("--album")

    delete_song_parser = subparsers.add_parser("delete-song", help="Delete a song")
    delete_song_parser.add_argument("song_id")

    playlist_parser = subparsers.add_parser("playlist", help="Create, rename or delete a playlist")
    playlist_actions = playlist_parser.add_subparsers(dest="action", required=True)
    create_playlist = playlist_actions.add_parser("create")
    create_playlist.add_argument("name")
    create_playlist.add_argument("--description")
    create_playlist.add_argument("--private", action="store_true", help="Hide from other users")
    rename_playlist = playlist_actions.add_parser("rename")
    rename_playlist.add_argument("name")
    rename_playlist.add_argument("new_name")
    delete_playlist = playlist_actions.add_parser("delete")
    delete_playlist.add_argument("name")

    album_parser = subparsers.add_parser("album", help="Create or delete an album")
    album_actions = album_parser.add_subparsers(dest="action", required=True)
    create_album = album_actions.add_parser("create")
    create_album.add_argument("title")
    create_album.add_argument("--artist")
    create_album.add_argument("--year", type=int)
    delete_album = album_actions.add_parser("delete")
    delete_album.add_argument("album", help="Album id or title")

    play_parser = subparsers.add_parser("play", help="Play the library or a playlist")
    play_parser.add_argument("--playlist", help="Playlist name")
    play_parser.add_argument("--shuffle", action="store_true", help="Enable shuffle")
    play_parser.add_argument(
        "--repeat", choices=["none", "all", "one"], help="Repeat mode"
    )

    return parser


def _given(args: argparse.Namespace, *names: str, **renamed: str) -> dict[str, Any]:
    """Collect the options that were passed, keyed by API field name."""
    fields = {name: name for name in names}
    fields.update(renamed)
    return {
        api_name: getattr(args, name)
        for name, api_name in fields.items()
        if getattr(args, name) is not None
    }


def dispatch(app: Application, args: argparse.Namespace) -> int:
    query = " ".join(getattr(args, "query", None) or [])

    if args.subcommand == "register":
        return run_register(app, args.username, args.email)
    elif args.subcommand == "login":
        return run_login(app, args.email)
    elif args.subcommand == "logout":
        return run_logout(app)
    elif args.subcommand == "whoami":
        return run_whoami(app)
    elif args.subcommand == "songs":
        return run_songs(app, query)
    elif args.subcommand == "albums":
        return run_albums(app, query)
    elif args.subcommand == "playlists":
        return run_playlists(app, query)
    elif args.subcommand == "profile":
        return run_profile(app, _given(args, "username", "email", avatar="avatarUrl"))
    elif args.subcommand == "upload":
        return run_upload(app, args.file, args.cover, artist=args.artist, album=args.album)
    elif args.subcommand == "edit-song":
        return run_edit_song(app, args.song_id, _given(args, "title", "artist", "album"))
    elif args.subcommand == "delete-song":
        return run_delete_song(app, args.song_id)
    elif args.subcommand == "playlist":
        return run_playlist(app, args)
    elif args.subcommand == "album":
        return run_album(app, args)
    elif args.subcommand == "play":
        return run_play(app, args.playlist, shuffle=args.shuffle, repeat=args.repeat)
    return 2


def main(argv: Optional[list[str]] = None, config: Optional[Config] = None) -> int:
    """Main entry point for the tunestream command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        return 2

    config = config or load_config()
    if args.api_url:
        config.api.base_url = args.api_url.rstrip("/")
    setup_logging(config)

    with Application(config) as app:
        return dispatch(app, args)


if __name__ == "__main__":
    sys.exit(main())
