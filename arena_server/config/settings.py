# arena_server/config/settings.py
"""Game configuration constants and settings."""

import os
from pathlib import Path

# Arena settings
ARENA_WIDTH = 800
ARENA_HEIGHT = 600
ARENA_MARGIN = 10  # Players must stay this far inside the arena edges

# Player settings
MAX_HEALTH = 5
SPAWN_MIN_X = 25
SPAWN_MAX_X = 774
SPAWN_MIN_Y = 25
SPAWN_MAX_Y = 574
PLAYER_COLORS = [
    "#FF0000",
    "#00FF00",
    "#0000FF",
    "#FFFF00",
    "#FF00FF",
    "#00FFFF",
    "#FFA500",
    "#800080",
]

# Projectile settings
PROJECTILE_SPEED = 200  # units per second
HIT_RADIUS = 20

# Simulation settings
TICK_INTERVAL_MS = 16  # ~60 FPS
TICK_DT = 1 / 60  # seconds advanced per tick


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Server settings
HOST = os.getenv("ARENA_HOST", "0.0.0.0")
PORT = int(os.getenv("ARENA_PORT", "3000"))
STATIC_DIR = Path(
    os.getenv("ARENA_STATIC_DIR", str(Path(__file__).resolve().parent.parent / "static"))
)
LOG_LEVEL = os.getenv("ARENA_LOG_LEVEL", "INFO").upper()
SEND_TIMEOUT = float(os.getenv("ARENA_SEND_TIMEOUT", "1.0"))  # seconds per client write

# TLS settings (certificate provisioning happens outside the server)
TLS_ENABLED = _env_flag("ARENA_TLS")
CERT_FILE = os.getenv("ARENA_CERT_FILE", "cert.pem")
KEY_FILE = os.getenv("ARENA_KEY_FILE", "key.pem")


def get_game_config():
    """Get the client-facing game configuration as a dictionary."""
    return {
        "arenaWidth": ARENA_WIDTH,
        "arenaHeight": ARENA_HEIGHT,
        "arenaMargin": ARENA_MARGIN,
        "maxHealth": MAX_HEALTH,
        "colors": list(PLAYER_COLORS),
        "projectileSpeed": PROJECTILE_SPEED,
        "hitRadius": HIT_RADIUS,
        "tickIntervalMs": TICK_INTERVAL_MS,
    }
