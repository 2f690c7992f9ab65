"""Reminder record data model: one row per chat holding its desired state."""

from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any

from cadence_bot.config import TZ
from cadence_bot.errors import InvalidInterval

DEFAULT_INTERVAL = 60
MIN_INTERVAL = 5
MAX_INTERVAL = 1440  # 24 hours
PRESET_INTERVALS = (30, 60, 120)


@dataclass(frozen=True, slots=True)
class ReminderRecord:
    chat_id: int
    active: bool = False
    interval_minutes: int = DEFAULT_INTERVAL
    last_reminder: str | None = None  # ISO datetime
    created_at: str = ""  # ISO datetime

    def __post_init__(self) -> None:
        # Stored rows may carry the interval as a numeric string
        object.__setattr__(self, "interval_minutes", validate_interval(self.interval_minutes))

    @staticmethod
    def new(
        chat_id: int,
        *,
        active: bool = False,
        interval_minutes: int = DEFAULT_INTERVAL,
    ) -> "ReminderRecord":
        """Create a record stamped with the current time as created_at."""
        return ReminderRecord(
            chat_id=chat_id,
            active=active,
            interval_minutes=interval_minutes,
            created_at=now_iso(),
        )

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ReminderRecord":
        """Build from a stored row, ignoring unknown columns (id, etc.)."""
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        data["chat_id"] = int(data["chat_id"])
        return cls(**data)


UPDATABLE_FIELDS = frozenset({"active", "interval_minutes", "last_reminder"})


def now_iso() -> str:
    return datetime.now(TZ).isoformat()


def validate_interval(value: object) -> int:
    """Coerce to whole minutes within [MIN_INTERVAL, MAX_INTERVAL].

    Accepts ints and numeric strings; bools and floats are rejected so that
    `True` or `12.5` never sneak through as a cadence.
    """
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise InvalidInterval(f"interval must be a whole number, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidInterval(f"interval must be a whole number, got {value!r}") from None
    if not MIN_INTERVAL <= value <= MAX_INTERVAL:
        raise InvalidInterval(
            f"interval must be between {MIN_INTERVAL} and {MAX_INTERVAL} minutes, got {value}"
        )
    return value


def check_fields(changes: dict[str, Any]) -> dict[str, Any]:
    """Reject unknown columns and out-of-range intervals before any write."""
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown reminder fields: {', '.join(sorted(unknown))}")
    if "interval_minutes" in changes:
        changes = {**changes, "interval_minutes": validate_interval(changes["interval_minutes"])}
    return changes
