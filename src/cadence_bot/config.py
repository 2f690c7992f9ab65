"""User-configurable values loaded from environment variables."""

import os
import sys
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

_REQUIRED = ("DISCORD_TOKEN",)
_missing = [var for var in _REQUIRED if not os.environ.get(var)]
if _missing:
    print(f"Missing required env vars: {', '.join(_missing)}", file=sys.stderr)
    print("Set them in .env or your environment.", file=sys.stderr)
    raise SystemExit(1)

DISCORD_TOKEN: str = os.environ["DISCORD_TOKEN"]

DATA_DIR: Path = Path(
    os.environ.get("CADENCE_DATA_DIR") or Path.home() / ".cadence-bot"
).expanduser()

# Both must be set to use Supabase; otherwise records live in DATA_DIR.
SUPABASE_URL: str | None = os.environ.get("SUPABASE_URL") or None
SUPABASE_KEY: str | None = os.environ.get("SUPABASE_KEY") or None

HEALTH_PORT: int | None = (
    int(os.environ["CADENCE_HEALTH_PORT"])
    if os.environ.get("CADENCE_HEALTH_PORT")
    else None
)
LOG_LEVEL: str = os.environ.get("CADENCE_LOG_LEVEL", "INFO").upper()
OWNER_ONLY: bool = os.environ.get("CADENCE_OWNER_ONLY", "") == "1"


def _detect_local_tz() -> str:
    """Detect the system's IANA timezone name. Falls back to UTC."""
    # Debian/Ubuntu: plain text file with IANA name
    etc_tz = Path("/etc/timezone")
    if etc_tz.exists():
        name = etc_tz.read_text().strip()
        if name:
            return name

    # Most Linux/WSL: /etc/localtime is a symlink into zoneinfo
    localtime = Path("/etc/localtime")
    if localtime.is_symlink():
        target = str(localtime.resolve())
        marker = "/zoneinfo/"
        idx = target.find(marker)
        if idx != -1:
            return target[idx + len(marker) :]

    return "UTC"


TZ: ZoneInfo = ZoneInfo(os.environ.get("CADENCE_TIMEZONE") or _detect_local_tz())
