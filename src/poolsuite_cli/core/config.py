"""
Configuration management for Poolsuite CLI
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class PlayerConfig:
    """Configuration for the external mpv player."""

    mpv_path: str = "mpv"
    volume: Optional[int] = None  # None leaves mpv's own default
    seek_seconds: int = 10
    connect_timeout: float = 5.0  # Seconds allowed for the IPC socket to appear
    command_timeout: float = 3.0  # Per request round trip
    socket_dir: Optional[str] = None  # Defaults to the system temp dir


@dataclass
class PlaybackConfig:
    """Configuration for playlist playback."""

    default_playlist: str = "official"
    shuffle: bool = False


@dataclass
class UIConfig:
    """Configuration for the terminal UI."""

    refresh_interval: float = 0.5  # Seconds between snapshot ticks
    use_colors: bool = True


@dataclass
class SoundCloudConfig:
    """Configuration for the SoundCloud catalogue client."""

    client_id: str = ""
    oauth_token: str = ""
    api_base: str = "https://api-v2.soundcloud.com"
    request_timeout: float = 10.0


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/poolsuite-cli/poolsuite.log)
    )


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    soundcloud: SoundCloudConfig = field(default_factory=SoundCloudConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """~/.config/poolsuite-cli, or under $XDG_CONFIG_HOME when set."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "poolsuite-cli"
    return Path.home() / ".config" / "poolsuite-cli"


def get_config_path() -> Path:
    """Get the main configuration file path."""
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """~/.local/share/poolsuite-cli, or under $XDG_DATA_HOME when set."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "poolsuite-cli"
    return Path.home() / ".local" / "share" / "poolsuite-cli"


def get_log_file_path(config: Config) -> Path:
    """Resolve the log file location, honouring a custom path from config."""
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / "poolsuite.log"


def create_default_config() -> str:
    """Commented TOML written on first run."""
    return """
# Poolsuite CLI Configuration

[player]
# mpv executable (name on PATH or absolute path)
mpv_path = "mpv"

# Startup volume (0-100); leave unset to use mpv's default
# volume = 80

# Seconds to jump with the left/right arrow keys
seek_seconds = 10

# Seconds to wait for mpv's IPC socket to appear
connect_timeout = 5.0

# Seconds to wait for a reply to any IPC command
command_timeout = 3.0

# Directory for mpv IPC sockets (defaults to the system temp dir)
# socket_dir = "/tmp"

[playback]
# Playlist played when none is given on the command line
default_playlist = "official"

# Shuffle tracks by default
shuffle = false

[ui]
# Seconds between progress refreshes
refresh_interval = 0.5

# Use colors in terminal output
use_colors = true

[soundcloud]
# SoundCloud web client_id (can also be set via SOUNDCLOUD_CLIENT_ID)
# client_id = "your-client-id-here"

# Optional OAuth token for authenticated streams (SOUNDCLOUD_OAUTH_TOKEN)
# oauth_token = "your-oauth-token-here"

# Seconds before an API request is abandoned
request_timeout = 10.0

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/poolsuite-cli/poolsuite.log)
# log_file = "/path/to/custom/poolsuite.log"
""".strip()


def _apply_env_overrides(config: Config) -> Config:
    """Override credentials and executable path from environment variables."""
    client_id = os.environ.get("SOUNDCLOUD_CLIENT_ID")
    oauth_token = os.environ.get("SOUNDCLOUD_OAUTH_TOKEN")
    mpv_path = os.environ.get("MPV_PATH")

    if client_id:
        config.soundcloud.client_id = client_id
    if oauth_token:
        config.soundcloud.oauth_token = oauth_token
    if mpv_path:
        config.player.mpv_path = mpv_path

    return config


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data, keeping defaults for missing keys."""
    config = Config()

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_path=player_data.get("mpv_path", config.player.mpv_path),
            volume=player_data.get("volume"),
            seek_seconds=player_data.get("seek_seconds", config.player.seek_seconds),
            connect_timeout=float(
                player_data.get("connect_timeout", config.player.connect_timeout)
            ),
            command_timeout=float(
                player_data.get("command_timeout", config.player.command_timeout)
            ),
            socket_dir=player_data.get("socket_dir"),
        )
        if config.player.volume is not None:
            config.player.volume = max(0, min(100, int(config.player.volume)))

    if "playback" in toml_data:
        playback_data = toml_data["playback"]
        config.playback = PlaybackConfig(
            default_playlist=playback_data.get(
                "default_playlist", config.playback.default_playlist
            ),
            shuffle=playback_data.get("shuffle", config.playback.shuffle),
        )

    if "ui" in toml_data:
        ui_data = toml_data["ui"]
        config.ui = UIConfig(
            refresh_interval=float(
                ui_data.get("refresh_interval", config.ui.refresh_interval)
            ),
            use_colors=ui_data.get("use_colors", config.ui.use_colors),
        )

    if "soundcloud" in toml_data:
        soundcloud_data = toml_data["soundcloud"]
        config.soundcloud = SoundCloudConfig(
            client_id=soundcloud_data.get("client_id", config.soundcloud.client_id),
            oauth_token=soundcloud_data.get(
                "oauth_token", config.soundcloud.oauth_token
            ),
            api_base=soundcloud_data.get("api_base", config.soundcloud.api_base),
            request_timeout=float(
                soundcloud_data.get(
                    "request_timeout", config.soundcloud.request_timeout
                )
            ),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
        )

    return config


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - SOUNDCLOUD_CLIENT_ID
    - SOUNDCLOUD_OAUTH_TOKEN
    - MPV_PATH
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
        config = parse_config(toml_data)
    except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        config = Config()

    return _apply_env_overrides(config)


def ensure_directories() -> None:
    """Create the config and data (log) directories."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
