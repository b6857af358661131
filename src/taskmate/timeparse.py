"""Best-effort time parsing and mention handling for chat text.

Everything here is pure: a failed parse returns None instead of raising.
"""

import re
from datetime import datetime, timedelta, timezone

# Telegram usernames are 5-32 chars of letters, digits and underscores
MENTION_PATTERN = re.compile(r"(?<![\w@])@([A-Za-z0-9_]{5,32})\b")

_UNIT = r"(?P<unit>minutes?|mins?|hours?|hrs?)"

# "in 15 minutes", "in 2 hrs"
_EN_IN = re.compile(rf"\bin\s+(?P<num>\d+)\s*{_UNIT}\b")
# "15 minutes later", "2 hours after"
_EN_LATER = re.compile(rf"\b(?P<num>\d+)\s*{_UNIT}\s+(?:later|after)\b")
# "15分钟后", "2小时后"
_ZH = re.compile(r"(?P<num>\d+)\s*(?P<unit>分钟|小时)后")

_CLOCK = r"\d{1,2}(?::\d{2})?\s*(?:am|pm)?"

# Whole-string time expressions; a title that merely mentions a time is not one
_TIME_ONLY_SHAPES = (
    re.compile(rf"in\s+\d+\s*{_UNIT}"),
    re.compile(rf"\d+\s*{_UNIT}\s+(?:later|after)"),
    re.compile(r"\d+\s*(?:分钟|小时)后"),
    re.compile(rf"\d{{4}}-\d{{1,2}}-\d{{1,2}}(?:[ t]{_CLOCK})?"),
    re.compile(rf"(?:at\s+)?\d{{1,2}}:\d{{2}}\s*(?:am|pm)?"),
    re.compile(
        rf"(?:today|tonight|tomorrow|next\s+\w+)(?:\s+(?:morning|afternoon|evening|night))?"
        rf"(?:\s+(?:at\s+)?{_CLOCK})?"
    ),
)


def _unit_delta(num: int, unit: str) -> timedelta:
    if unit.startswith(("h", "小")):
        return timedelta(hours=num)
    return timedelta(minutes=num)


def parse_absolute_time(text: str, base: datetime | None = None) -> datetime | None:
    """Parse an ISO-8601 style date/time.

    Naive values are interpreted in the timezone of ``base`` (UTC by default).
    """
    if not text:
        return None
    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        tz = base.tzinfo if base is not None and base.tzinfo else timezone.utc
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def parse_relative_time(text: str | None, base: datetime | None = None) -> datetime | None:
    """Turn free text into an absolute timestamp, or None if nothing matches.

    Tries an absolute date/time first, then English relative phrases
    ("in N minutes", "N hours later"), then Chinese ones ("N分钟后").
    """
    if not text or not text.strip():
        return None
    now = base or datetime.now(timezone.utc)

    absolute = parse_absolute_time(text, now)
    if absolute is not None:
        return absolute

    lowered = text.strip().lower()
    for pattern in (_EN_IN, _EN_LATER, _ZH):
        match = pattern.search(lowered)
        if match:
            return now + _unit_delta(int(match.group("num")), match.group("unit"))

    return None


def looks_like_time(text: str | None) -> bool:
    """True if the whole text is a time expression rather than a task title."""
    if not text or not text.strip():
        return False
    lowered = normalize_whitespace(text.lower())
    if parse_absolute_time(lowered) is not None:
        return True
    return any(shape.fullmatch(lowered) for shape in _TIME_ONLY_SHAPES)


def extract_mentions(text: str) -> list[str]:
    """Return mentioned user ids in first-seen order, without duplicates."""
    seen: dict[str, None] = {}
    for match in MENTION_PATTERN.finditer(text or ""):
        seen.setdefault(match.group(1), None)
    return list(seen)


def normalize_user_id(raw: str | None) -> str:
    """Reduce "@alice", " alice " or "<@alice>" to the bare id "alice"."""
    if not raw:
        return ""
    value = raw.strip()
    if value.startswith("<") and value.endswith(">"):
        value = value[1:-1]
    return value.lstrip("@").strip()


def format_mention(user_id: str) -> str:
    """Render a user id as a chat mention."""
    user_id = normalize_user_id(user_id)
    return f"@{user_id}" if user_id else "<unspecified>"


def normalize_whitespace(text: str | None) -> str | None:
    """Collapse line breaks and runs of whitespace into single spaces."""
    if text is None:
        return None
    return re.sub(r"\s+", " ", text).strip()
